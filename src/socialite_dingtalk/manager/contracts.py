"""Contracts for social-authentication providers.

`AbstractProvider` implements the generic OAuth2 authorization-code flow.
Concrete providers only describe what differs for their IdP: endpoints,
parameter names, response shapes and the profile mapping.

The flow a host runs for one login attempt:

```python
provider = manager.driver("dingtalk")
url = provider.redirect()            # send the browser here, keep provider.state
...
provider.set_request(callback_params)
user = provider.user(expected_state=saved_state)
```
"""

from __future__ import annotations

import logging
import secrets
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar
from urllib.parse import urlencode

import httpx
from pydantic import ConfigDict, Field

from socialite_dingtalk.models import SocialiteBaseModel

from .config import ProviderConfigModel
from .errors import ConfigurationError, InvalidStateError, ProviderError

logger = logging.getLogger(__name__)


class User(SocialiteBaseModel):
    """Normalized user returned to the application after a login.

    Providers may map attributes beyond the declared fields (e.g. a union id);
    they are kept as extra attributes and show up in `model_dump()`.
    """

    model_config = ConfigDict(extra="allow", frozen=False)

    id: str | int | None = None
    nickname: str | None = None
    name: str | None = None
    email: str | None = None
    avatar: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    token: str | None = None
    refresh_token: str | None = None
    expires_in: int | str | None = None
    approved_scopes: list[str] = Field(default_factory=list)
    access_token_response_body: dict[str, Any] = Field(default_factory=dict)

    def set_raw(self, user: Mapping[str, Any]) -> User:
        self.raw = dict(user)
        return self

    def map(self, attributes: Mapping[str, Any]) -> User:
        for key, value in attributes.items():
            setattr(self, key, value)
        return self

    def set_token(self, token: str) -> User:
        self.token = token
        return self

    def set_refresh_token(self, refresh_token: str | None) -> User:
        self.refresh_token = refresh_token
        return self

    def set_expires_in(self, expires_in: int | str | None) -> User:
        self.expires_in = expires_in
        return self

    def set_approved_scopes(self, scopes: Sequence[str]) -> User:
        self.approved_scopes = list(scopes)
        return self

    def set_access_token_response_body(self, body: Mapping[str, Any]) -> User:
        self.access_token_response_body = dict(body)
        return self


class AbstractProvider(ABC):
    """Base class for OAuth2 providers.

    Subclasses must implement `get_auth_url`, `get_token_url`,
    `get_user_by_token` and `map_user_to_object`; every other step of the
    flow can be overridden where the IdP deviates from plain OAuth2.
    """

    IDENTIFIER: ClassVar[str] = ""

    default_scopes: ClassVar[list[str]] = []
    scope_separator: ClassVar[str] = ","
    parameters: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        config: ProviderConfigModel,
        request: Mapping[str, Any] | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.config = config
        self.request: Mapping[str, Any] = request or {}
        self.state: str | None = None
        self._scopes = list(self.default_scopes)
        self._parameters = dict(self.parameters)
        self._stateless = False
        self._http_client = http_client
        self._owns_http_client = False

    @classmethod
    def additional_config_keys(cls) -> list[str]:
        """Extra services-config keys this provider reads besides the required ones."""
        return []

    # ── provider specifics ──────────────────────────────────────────────────
    @abstractmethod
    def get_auth_url(self, state: str | None) -> str:
        """Return the authorization URL the user agent is redirected to."""

    @abstractmethod
    def get_token_url(self) -> str:
        """Return the token endpoint URL."""

    @abstractmethod
    def get_user_by_token(self, token: str) -> dict[str, Any]:
        """Fetch the raw user profile for an access token."""

    @abstractmethod
    def map_user_to_object(self, user: Mapping[str, Any]) -> User:
        """Map a raw user profile to a normalized `User`."""

    # ── configuration ───────────────────────────────────────────────────────
    def get_config(self, key: str, default: Any = None) -> Any:
        return self.config.additional.get(key, default)

    def get_scopes(self) -> list[str]:
        return list(self._scopes)

    def scopes(self, scopes: str | Sequence[str]) -> AbstractProvider:
        """Add scopes to the requested set, keeping order and dropping duplicates."""
        extra = [scopes] if isinstance(scopes, str) else list(scopes)
        self._scopes = list(dict.fromkeys([*self._scopes, *extra]))
        return self

    def set_scopes(self, scopes: str | Sequence[str]) -> AbstractProvider:
        self._scopes = [scopes] if isinstance(scopes, str) else list(dict.fromkeys(scopes))
        return self

    def with_parameters(self, parameters: Mapping[str, str]) -> AbstractProvider:
        """Add custom query parameters to the authorization URL."""
        self._parameters.update(parameters)
        return self

    def stateless(self, stateless: bool = True) -> AbstractProvider:
        self._stateless = stateless
        return self

    def uses_state(self) -> bool:
        return not self._stateless

    def set_request(self, request: Mapping[str, Any]) -> AbstractProvider:
        self.request = request
        return self

    # ── authorization URL ───────────────────────────────────────────────────
    def redirect(self, state: str | None = None) -> str:
        """Return the authorization URL, generating a state when one is needed."""
        if self.uses_state():
            self.state = state or self.get_state()
        else:
            self.state = None
        return self.get_auth_url(self.state)

    def get_state(self) -> str:
        return secrets.token_urlsafe(30)

    def format_scopes(self, scopes: Sequence[str], separator: str) -> str:
        return separator.join(scopes)

    def get_code_fields(self, state: str | None = None) -> dict[str, str]:
        fields = {
            "client_id": self._require_config("client_id"),
            "redirect_uri": self._require_config("redirect"),
            "scope": self.format_scopes(self.get_scopes(), self.scope_separator),
            "response_type": "code",
        }
        if self.uses_state() and state is not None:
            fields["state"] = state
        fields.update(self._parameters)
        return fields

    def build_auth_url_from_base(self, url: str, state: str | None) -> str:
        query_string = urlencode(self.get_code_fields(state))
        logger.debug(
            "Built authorization URL",
            extra={"provider": self.IDENTIFIER, "endpoint": url},
        )
        return f"{url}?{query_string}"

    # ── callback handling ───────────────────────────────────────────────────
    def user(self, expected_state: str | None = None) -> User:
        """Complete the login from the callback request and return the user.

        Raises:
            InvalidStateError: If the callback state does not match.
            ProviderError: If the callback carries no code or no access token
                could be obtained.
            httpx.HTTPError: If a request to the provider fails.
        """
        if self.has_invalid_state(expected_state):
            raise InvalidStateError("Callback state does not match the issued state")

        code = self.get_code()
        if not code:
            raise ProviderError("invalid_request", "Authorization code missing from callback")

        response = self.get_access_token_response(code)
        token = self.parse_access_token(response)
        if not token:
            logger.warning(
                "Token response carried no access token",
                extra={"provider": self.IDENTIFIER, "endpoint": "token"},
            )
            raise ProviderError("invalid_grant", "No access token in token response")

        user = self.map_user_to_object(self.get_user_by_token(token))
        return (
            user.set_token(token)
            .set_refresh_token(self.parse_refresh_token(response))
            .set_expires_in(self.parse_expires_in(response))
            .set_approved_scopes(self.parse_approved_scopes(response))
            .set_access_token_response_body(response)
        )

    def user_from_token(self, token: str) -> User:
        """Return the user for an access token obtained elsewhere."""
        user = self.map_user_to_object(self.get_user_by_token(token))
        return user.set_token(token)

    def has_invalid_state(self, expected_state: str | None = None) -> bool:
        if not self.uses_state():
            return False
        expected = expected_state or self.state
        received = self.request.get("state")
        if not expected or not received:
            return True
        return not secrets.compare_digest(str(expected), str(received))

    def get_code(self) -> str | None:
        return self.request.get("code")

    # ── token exchange ──────────────────────────────────────────────────────
    def get_token_fields(self, code: str) -> dict[str, Any]:
        return {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "redirect_uri": self.config.redirect,
            "grant_type": "authorization_code",
        }

    def get_access_token_response(self, code: str) -> dict[str, Any]:
        response = self.get_http_client().post(
            self.get_token_url(),
            headers={"Accept": "application/json"},
            data=self.get_token_fields(code),
        )
        return self._decode_response(response, endpoint="token")

    def parse_access_token(self, body: Mapping[str, Any]) -> str | None:
        return body.get("access_token")

    def parse_refresh_token(self, body: Mapping[str, Any]) -> str | None:
        return body.get("refresh_token")

    def parse_expires_in(self, body: Mapping[str, Any]) -> int | str | None:
        return body.get("expires_in")

    def parse_approved_scopes(self, body: Mapping[str, Any]) -> list[str]:
        scope = body.get("scope")
        if isinstance(scope, str):
            return [item for item in scope.split(self.scope_separator) if item]
        if isinstance(scope, list):
            return [str(item) for item in scope]
        return []

    # ── HTTP ────────────────────────────────────────────────────────────────
    def get_http_client(self) -> httpx.Client:
        """Return the HTTP client, creating one from the `http` config key if needed."""
        if self._http_client is None:
            options = self.get_config("http") or {}
            self._http_client = httpx.Client(**options)
            self._owns_http_client = True
        return self._http_client

    def set_http_client(self, client: httpx.Client) -> AbstractProvider:
        self.close()
        self._http_client = client
        return self

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._http_client is not None and self._owns_http_client:
            self._http_client.close()
            self._http_client = None
        self._owns_http_client = False

    def __enter__(self) -> AbstractProvider:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _require_config(self, key: str) -> str:
        value = getattr(self.config, key)
        if not value:
            raise ConfigurationError(
                f"Missing configuration key '{key}' for provider '{self.IDENTIFIER or type(self).__name__}'"
            )
        return str(value)

    def _decode_response(self, response: httpx.Response, *, endpoint: str) -> dict[str, Any]:
        """Decode a JSON object body; non-2xx responses raise `httpx.HTTPStatusError`.

        Bodies that are not a JSON object decode to an empty dict.
        """
        if response.is_error:
            logger.warning(
                "Provider endpoint returned an error status",
                extra={
                    "provider": self.IDENTIFIER,
                    "endpoint": endpoint,
                    "status_code": response.status_code,
                },
            )
            response.raise_for_status()

        try:
            payload = response.json()
        except ValueError:
            logger.warning(
                "Provider endpoint returned invalid JSON",
                extra={
                    "provider": self.IDENTIFIER,
                    "endpoint": endpoint,
                    "status_code": response.status_code,
                },
            )
            return {}

        if not isinstance(payload, dict):
            logger.warning(
                "Provider endpoint returned non-object JSON",
                extra={
                    "provider": self.IDENTIFIER,
                    "endpoint": endpoint,
                    "status_code": response.status_code,
                },
            )
            return {}
        return payload


__all__ = ["AbstractProvider", "User"]
