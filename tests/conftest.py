"""
Global pytest configuration and fixtures.
"""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from socialite_dingtalk.dingtalk import DingTalkProvider
from socialite_dingtalk.manager import ProviderConfigModel


class FakeDingTalkApi:
    """In-process DingTalk API served through `httpx.MockTransport`.

    - token endpoint answers with `token_status` / `token_json` (or `token_content`)
    - profile endpoint answers with `user_status` / `user_json` (or `user_content`)
    - every request is recorded in `requests`
    """

    def __init__(self) -> None:
        self.token_status = 200
        self.token_json: Any = {
            "accessToken": "T",
            "refreshToken": "R",
            "expireIn": 7200,
            "corpId": "ding-corp",
        }
        self.token_content: bytes | None = None
        self.user_status = 200
        self.user_json: Any = {
            "openId": "123",
            "unionId": "U1",
            "nick": "zhangsan",
            "avatarUrl": "https://x",
            "mobile": "150xxxx9144",
            "email": "a@b.com",
            "stateCode": "86",
        }
        self.user_content: bytes | None = None
        self.error: Callable[[httpx.Request], Exception] | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        if request.url.path == "/v1.0/oauth2/userAccessToken":
            return self._respond(self.token_status, self.token_json, self.token_content)
        if request.url.path == "/v1.0/contact/users/me":
            return self._respond(self.user_status, self.user_json, self.user_content)
        return httpx.Response(404, json={"code": "NotFound"})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    @staticmethod
    def _respond(status: int, payload: Any, content: bytes | None) -> httpx.Response:
        if content is not None:
            return httpx.Response(status, content=content)
        return httpx.Response(status, json=payload)


@pytest.fixture
def dingtalk_api() -> FakeDingTalkApi:
    return FakeDingTalkApi()


@pytest.fixture
def dingtalk_services() -> dict[str, Any]:
    return {
        "dingtalk": {
            "client_id": "ding-client",
            "client_secret": "ding-secret",
            "redirect": "https://app.example.com/auth/dingtalk/callback",
        }
    }


@pytest.fixture
def dingtalk_config() -> ProviderConfigModel:
    return ProviderConfigModel(
        client_id="ding-client",
        client_secret="ding-secret",
        redirect="https://app.example.com/auth/dingtalk/callback",
    )


@pytest.fixture
def provider(dingtalk_config: ProviderConfigModel, dingtalk_api: FakeDingTalkApi) -> DingTalkProvider:
    return DingTalkProvider(dingtalk_config, http_client=dingtalk_api.client())
