import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from socialite_dingtalk.dingtalk.provider import (
    DINGTALK_TOKEN_URL,
    DINGTALK_USER_URL,
    DingTalkProvider,
)
from socialite_dingtalk.manager import (
    ConfigurationError,
    InvalidStateError,
    ProviderConfigModel,
    ProviderError,
)


def _with_scopes(config: ProviderConfigModel, scopes: object) -> ProviderConfigModel:
    return config.model_copy(update={"additional": {"scopes": scopes}})


# ── scopes ──────────────────────────────────────────────────────────────────


def test_default_scopes(provider: DingTalkProvider) -> None:
    assert provider.get_scopes() == ["openid", "corpid"]


def test_configured_scopes_replace_defaults(dingtalk_config: ProviderConfigModel) -> None:
    provider = DingTalkProvider(_with_scopes(dingtalk_config, ["openid"]))
    assert provider.get_scopes() == ["openid"]


def test_scalar_scope_is_coerced_to_list(dingtalk_config: ProviderConfigModel) -> None:
    provider = DingTalkProvider(_with_scopes(dingtalk_config, "openid"))
    assert provider.get_scopes() == ["openid"]


def test_empty_scope_override_keeps_defaults(dingtalk_config: ProviderConfigModel) -> None:
    provider = DingTalkProvider(_with_scopes(dingtalk_config, []))
    assert provider.get_scopes() == ["openid", "corpid"]


def test_additional_config_keys_declares_scopes() -> None:
    assert DingTalkProvider.additional_config_keys() == ["scopes"]


# ── authorization URL ───────────────────────────────────────────────────────


def test_auth_url_includes_required_params(provider: DingTalkProvider) -> None:
    url = provider.get_auth_url("abc")

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://login.dingtalk.com/oauth2/auth"
    query = parse_qs(parts.query)
    assert query["client_id"] == ["ding-client"]
    assert query["redirect_uri"] == ["https://app.example.com/auth/dingtalk/callback"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid corpid"]
    assert query["state"] == ["abc"]
    assert query["prompt"] == ["consent"]


def test_auth_url_joins_scopes_with_space_not_comma(dingtalk_config: ProviderConfigModel) -> None:
    provider = DingTalkProvider(_with_scopes(dingtalk_config, ["openid", "corpid", "extra"]))
    url = provider.get_auth_url("abc")

    assert "scope=openid+corpid+extra" in url
    assert "%2C" not in url
    assert "," not in url


def test_redirect_generates_and_keeps_state(provider: DingTalkProvider) -> None:
    url = provider.redirect()

    assert provider.state
    assert parse_qs(urlsplit(url).query)["state"] == [provider.state]


def test_stateless_redirect_omits_state(provider: DingTalkProvider) -> None:
    url = provider.stateless().redirect()

    query = parse_qs(urlsplit(url).query)
    assert "state" not in query
    assert query["prompt"] == ["consent"]


def test_with_parameters_adds_to_auth_url(provider: DingTalkProvider) -> None:
    url = provider.with_parameters({"org_type": "management"}).get_auth_url("abc")

    query = parse_qs(urlsplit(url).query)
    assert query["org_type"] == ["management"]
    assert query["prompt"] == ["consent"]


@pytest.mark.parametrize("missing", ["client_id", "redirect"])
def test_auth_url_requires_client_id_and_redirect(
    dingtalk_config: ProviderConfigModel, missing: str
) -> None:
    provider = DingTalkProvider(dingtalk_config.model_copy(update={missing: None}))

    with pytest.raises(ConfigurationError, match=missing):
        provider.get_auth_url("abc")


# ── callback ────────────────────────────────────────────────────────────────


def test_get_code_reads_auth_code(provider: DingTalkProvider) -> None:
    provider.set_request({"authCode": "AUTH", "code": "OTHER"})
    assert provider.get_code() == "AUTH"


def test_get_code_ignores_plain_code_field(provider: DingTalkProvider) -> None:
    provider.set_request({"code": "OTHER"})
    assert provider.get_code() is None


# ── token exchange ──────────────────────────────────────────────────────────


def test_token_fields_are_camel_cased(provider: DingTalkProvider) -> None:
    fields = provider.get_token_fields("ABC")

    assert set(fields) == {"clientId", "clientSecret", "grantType", "code", "redirectUri"}
    assert fields == {
        "clientId": "ding-client",
        "clientSecret": "ding-secret",
        "grantType": "authorization_code",
        "code": "ABC",
        "redirectUri": "https://app.example.com/auth/dingtalk/callback",
    }


def test_access_token_response_posts_json_body(provider: DingTalkProvider, dingtalk_api) -> None:
    body = provider.get_access_token_response("ABC")

    assert body["accessToken"] == "T"
    assert body["corpId"] == "ding-corp"
    request = dingtalk_api.requests[0]
    assert request.method == "POST"
    assert str(request.url) == DINGTALK_TOKEN_URL
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content)["grantType"] == "authorization_code"


def test_access_token_response_invalid_json_gives_empty_mapping(
    provider: DingTalkProvider, dingtalk_api
) -> None:
    dingtalk_api.token_content = b"<html>oops</html>"

    assert provider.get_access_token_response("ABC") == {}


def test_access_token_response_non_object_json_gives_empty_mapping(
    provider: DingTalkProvider, dingtalk_api
) -> None:
    dingtalk_api.token_json = ["not", "a", "mapping"]

    assert provider.get_access_token_response("ABC") == {}


def test_access_token_response_error_status_propagates(
    provider: DingTalkProvider, dingtalk_api
) -> None:
    dingtalk_api.token_status = 400
    dingtalk_api.token_json = {"code": "invalidParameter", "message": "bad authCode"}

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        provider.get_access_token_response("ABC")
    assert exc_info.value.response.status_code == 400


def test_transport_errors_propagate(provider: DingTalkProvider, dingtalk_api) -> None:
    dingtalk_api.error = lambda request: httpx.ConnectError("connection refused", request=request)

    with pytest.raises(httpx.ConnectError):
        provider.get_access_token_response("ABC")


def test_parse_token_fields(provider: DingTalkProvider) -> None:
    body = {"accessToken": "T", "refreshToken": "R", "expireIn": 7200}

    assert provider.parse_access_token(body) == "T"
    assert provider.parse_refresh_token(body) == "R"
    assert provider.parse_expires_in(body) == 7200


def test_parse_token_fields_missing_keys(provider: DingTalkProvider) -> None:
    assert provider.parse_access_token({}) is None
    assert provider.parse_refresh_token({}) is None
    assert provider.parse_expires_in({}) is None


def test_parse_ignores_oauth2_standard_names(provider: DingTalkProvider) -> None:
    assert provider.parse_access_token({"access_token": "T"}) is None


# ── profile ─────────────────────────────────────────────────────────────────


def test_user_by_token_sends_dingtalk_header(provider: DingTalkProvider, dingtalk_api) -> None:
    profile = provider.get_user_by_token("T")

    assert profile["openId"] == "123"
    request = dingtalk_api.requests[0]
    assert request.method == "GET"
    assert str(request.url) == DINGTALK_USER_URL
    assert request.headers["x-acs-dingtalk-access-token"] == "T"
    assert "authorization" not in request.headers


def test_user_by_token_error_status_propagates(provider: DingTalkProvider, dingtalk_api) -> None:
    dingtalk_api.user_status = 401

    with pytest.raises(httpx.HTTPStatusError):
        provider.get_user_by_token("T")


def test_map_user_to_object(provider: DingTalkProvider) -> None:
    profile = {
        "openId": "123",
        "unionId": "U1",
        "nick": "zhangsan",
        "avatarUrl": "https://x",
        "mobile": "150xxxx9144",
        "email": "a@b.com",
    }

    user = provider.map_user_to_object(profile)

    assert user.id == "123"
    assert user.unionid == "U1"
    assert user.nickname == "zhangsan"
    assert user.avatar == "https://x"
    assert user.name == "150xxxx9144"
    assert user.email == "a@b.com"
    assert user.raw == profile


def test_map_user_to_object_missing_fields(provider: DingTalkProvider) -> None:
    user = provider.map_user_to_object({"openId": "123", "stateCode": "86"})

    assert user.id == "123"
    assert user.unionid is None
    assert user.nickname is None
    assert user.email is None
    assert user.raw == {"openId": "123", "stateCode": "86"}


# ── full flow ───────────────────────────────────────────────────────────────


def test_user_completes_login(provider: DingTalkProvider, dingtalk_api) -> None:
    provider.redirect()
    provider.set_request({"authCode": "AUTH", "state": provider.state})

    user = provider.user()

    assert user.id == "123"
    assert user.unionid == "U1"
    assert user.token == "T"
    assert user.refresh_token == "R"
    assert user.expires_in == 7200
    assert user.approved_scopes == []
    assert user.access_token_response_body["corpId"] == "ding-corp"
    assert user.raw["stateCode"] == "86"
    assert [r.method for r in dingtalk_api.requests] == ["POST", "GET"]
    assert json.loads(dingtalk_api.requests[0].content)["code"] == "AUTH"


def test_user_rejects_mismatched_state(provider: DingTalkProvider, dingtalk_api) -> None:
    provider.set_request({"authCode": "AUTH", "state": "forged"})

    with pytest.raises(InvalidStateError):
        provider.user(expected_state="issued")
    assert dingtalk_api.requests == []


def test_stateless_user_skips_state_check(provider: DingTalkProvider) -> None:
    provider.stateless().set_request({"authCode": "AUTH"})

    assert provider.user().id == "123"


def test_user_without_auth_code_fails(provider: DingTalkProvider) -> None:
    provider.stateless().set_request({"code": "AUTH"})

    with pytest.raises(ProviderError) as exc_info:
        provider.user()
    assert exc_info.value.error == "invalid_request"


def test_user_with_empty_token_response_fails(provider: DingTalkProvider, dingtalk_api) -> None:
    dingtalk_api.token_json = {}
    provider.stateless().set_request({"authCode": "AUTH"})

    with pytest.raises(ProviderError) as exc_info:
        provider.user()
    assert exc_info.value.error == "invalid_grant"
    assert len(dingtalk_api.requests) == 1


def test_user_from_token(provider: DingTalkProvider) -> None:
    user = provider.user_from_token("T")

    assert user.token == "T"
    assert user.nickname == "zhangsan"
