"""DingTalk OAuth2 provider.

Implements "log in to a third-party website with a DingTalk account"
(QR code or account/password) on top of the generic host flow.

DingTalk deviates from plain OAuth2 in a few places:

- scopes are joined with a space and the consent prompt is always requested
- the callback carries the code as `authCode`, not `code`
- the token endpoint takes a camel-cased JSON body and answers with
  `accessToken` / `refreshToken` / `expireIn` (plus `corpId` when the
  `corpid` scope was granted)
- the profile endpoint authenticates with the `x-acs-dingtalk-access-token`
  header instead of a bearer token

See https://open.dingtalk.com/document/orgapp-server/tutorial-obtaining-user-personal-information
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from socialite_dingtalk.manager.contracts import AbstractProvider, User

logger = logging.getLogger(__name__)

DINGTALK_AUTH_URL = "https://login.dingtalk.com/oauth2/auth"
DINGTALK_TOKEN_URL = "https://api.dingtalk.com/v1.0/oauth2/userAccessToken"
DINGTALK_USER_URL = "https://api.dingtalk.com/v1.0/contact/users/me"

ACCESS_TOKEN_HEADER = "x-acs-dingtalk-access-token"

# Host token field name -> DingTalk field name. Fields not listed pass through.
TOKEN_FIELD_NAMES = {
    "client_id": "clientId",
    "client_secret": "clientSecret",
    "code": "code",
    "redirect_uri": "redirectUri",
    "grant_type": "grantType",
}


def rename_token_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {TOKEN_FIELD_NAMES.get(key, key): value for key, value in fields.items()}


class DingTalkProvider(AbstractProvider):
    """DingTalk provider registered as `dingtalk`."""

    IDENTIFIER = "DINGTALK"

    # openid: user id only; openid corpid: also the organization picked at login
    default_scopes: ClassVar[list[str]] = ["openid", "corpid"]
    scope_separator: ClassVar[str] = " "
    parameters: ClassVar[dict[str, str]] = {"prompt": "consent"}

    @classmethod
    def additional_config_keys(cls) -> list[str]:
        return ["scopes"]

    def get_scopes(self) -> list[str]:
        configured = self.get_config("scopes")
        if configured:
            logger.debug("Using configured DingTalk scopes")
            return [configured] if isinstance(configured, str) else list(configured)
        return super().get_scopes()

    def get_auth_url(self, state: str | None) -> str:
        return self.build_auth_url_from_base(DINGTALK_AUTH_URL, state)

    def get_code(self) -> str | None:
        return self.request.get("authCode")

    def get_token_url(self) -> str:
        return DINGTALK_TOKEN_URL

    def get_token_fields(self, code: str) -> dict[str, Any]:
        return rename_token_fields(super().get_token_fields(code))

    def get_access_token_response(self, code: str) -> dict[str, Any]:
        response = self.get_http_client().post(
            self.get_token_url(),
            headers={"Accept": "application/json"},
            json=self.get_token_fields(code),
        )
        return self._decode_response(response, endpoint="token")

    def parse_access_token(self, body: Mapping[str, Any]) -> str | None:
        return body.get("accessToken")

    def parse_refresh_token(self, body: Mapping[str, Any]) -> str | None:
        return body.get("refreshToken")

    def parse_expires_in(self, body: Mapping[str, Any]) -> int | str | None:
        return body.get("expireIn")

    def get_user_by_token(self, token: str) -> dict[str, Any]:
        response = self.get_http_client().get(
            DINGTALK_USER_URL,
            headers={ACCESS_TOKEN_HEADER: token, "Accept": "application/json"},
        )
        return self._decode_response(response, endpoint="users/me")

    def map_user_to_object(self, user: Mapping[str, Any]) -> User:
        # openId is unique per user and app; unionId per user across apps.
        return (
            User()
            .set_raw(user)
            .map(
                {
                    "id": user.get("openId"),
                    "unionid": user.get("unionId"),
                    "nickname": user.get("nick"),
                    "avatar": user.get("avatarUrl"),
                    "name": user.get("mobile"),
                    "email": user.get("email"),
                }
            )
        )


__all__ = [
    "DINGTALK_AUTH_URL",
    "DINGTALK_TOKEN_URL",
    "DINGTALK_USER_URL",
    "DingTalkProvider",
    "TOKEN_FIELD_NAMES",
    "rename_token_fields",
]
