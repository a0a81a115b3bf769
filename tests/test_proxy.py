import base64

import httpx
import pytest
import respx

from pqvault.providers import AuthKind, AuthMethod, ProviderConfig
from pqvault.proxy import (
    MAX_RESPONSE_BYTES,
    DomainNotAllowed,
    HttpError,
    InvalidMethod,
    InvalidUrl,
    NoAuthMethod,
    NoBaseUrl,
    ProxyError,
    SsrfBlocked,
    execute_proxy,
    inject_auth,
    parse_auth_override,
    parse_method,
    resolve_url,
    validate_url,
)


def _provider():
    return ProviderConfig(
        name="test",
        display_name="Test",
        rotation_days=90,
        base_url="https://api.example.com",
        auth_method=AuthMethod.bearer(),
        allowed_domains=("api.example.com",),
    )


# --- resolve_url ---


def test_resolve_url_relative_path():
    url = resolve_url("/v1/test", _provider())
    assert str(url) == "https://api.example.com/v1/test"


def test_resolve_url_relative_without_slash():
    url = resolve_url("v1/test", _provider())
    assert str(url) == "https://api.example.com/v1/test"


def test_resolve_url_full_url():
    url = resolve_url("https://api.stripe.com/v1/balance", None)
    assert str(url) == "https://api.stripe.com/v1/balance"


def test_resolve_url_relative_no_base():
    with pytest.raises(NoBaseUrl):
        resolve_url("/v1/test", None)


def test_resolve_url_empty_host():
    with pytest.raises(InvalidUrl):
        resolve_url("https://", None)


# --- validate_url ---


def test_validate_url_https_required():
    with pytest.raises(SsrfBlocked):
        validate_url(httpx.URL("http://api.example.com/test"), ["api.example.com"])


def test_validate_url_no_ip_literal():
    with pytest.raises(SsrfBlocked):
        validate_url(httpx.URL("https://127.0.0.1/test"), ["127.0.0.1"])


def test_validate_url_no_localhost():
    with pytest.raises(SsrfBlocked):
        validate_url(httpx.URL("https://localhost/test"), ["localhost"])


def test_validate_url_no_internal():
    with pytest.raises(SsrfBlocked):
        validate_url(httpx.URL("https://foo.internal/test"), ["foo.internal"])


def test_validate_url_no_metadata():
    with pytest.raises(SsrfBlocked):
        validate_url(
            httpx.URL("https://metadata.google.internal/computeMetadata"),
            ["metadata.google.internal"],
        )


def test_validate_url_no_local():
    with pytest.raises(SsrfBlocked):
        validate_url(httpx.URL("https://myhost.local/test"), ["myhost.local"])


def test_validate_url_allowed_domain():
    assert validate_url(httpx.URL("https://api.stripe.com/v1/balance"), ["api.stripe.com"]) is None


def test_validate_url_wrong_domain():
    with pytest.raises(DomainNotAllowed) as info:
        validate_url(httpx.URL("https://evil.com/steal"), ["api.stripe.com"])
    assert "evil.com" in str(info.value)


def test_validate_url_wildcard_domain():
    assert (
        validate_url(
            httpx.URL("https://sheets.googleapis.com/v4/spreadsheets"),
            ["*.googleapis.com"],
        )
        is None
    )


def test_validate_url_wildcard_exact():
    assert validate_url(httpx.URL("https://googleapis.com/test"), ["*.googleapis.com"]) is None


def test_validate_url_empty_allowed():
    with pytest.raises(DomainNotAllowed):
        validate_url(httpx.URL("https://api.stripe.com/v1"), [])


def test_validate_url_ipv6():
    with pytest.raises(SsrfBlocked):
        validate_url(httpx.URL("https://[::1]/test"), ["::1"])


def test_validate_url_accepts_string():
    with pytest.raises(SsrfBlocked):
        validate_url("http://api.example.com/", ["api.example.com"])


def test_error_messages():
    assert str(SsrfBlocked("x")) == "SSRF blocked: x"
    assert str(NoBaseUrl()) == "No base URL configured and url is a relative path"
    assert isinstance(DomainNotAllowed("d"), ProxyError)


# --- inject_auth ---


def test_inject_auth_bearer():
    headers, _ = inject_auth({}, httpx.URL("https://api.example.com/test"), "token", AuthMethod.bearer())
    assert headers.get("authorization") == "Bearer token"


def test_inject_auth_custom_header():
    headers, _ = inject_auth(
        {}, httpx.URL("https://api.example.com/test"), "token", AuthMethod.header("x-api-key")
    )
    assert headers.get("x-api-key") == "token"


def test_inject_auth_basic():
    headers, _ = inject_auth({}, httpx.URL("https://api.example.com/test"), "secret", AuthMethod.basic())
    auth = headers.get("authorization")
    assert auth.startswith("Basic ")
    assert base64.b64decode(auth[len("Basic "):]).decode() == "secret:"


def test_inject_auth_query_param():
    headers, url = inject_auth(
        {}, httpx.URL("https://api.example.com/test"), "placeholder", AuthMethod.query("key")
    )
    assert "key=placeholder" in str(url)
    assert len(headers) == 0


def test_inject_auth_does_not_mutate_input():
    original = {"accept": "application/json"}
    headers, _ = inject_auth(original, "https://api.example.com/", "token", AuthMethod.bearer())
    assert original == {"accept": "application/json"}
    assert headers.get("accept") == "application/json"


def test_inject_auth_invalid_header_name():
    with pytest.raises(HttpError):
        inject_auth({}, "https://api.example.com/", "token", AuthMethod.header("bad name"))


def test_inject_auth_invalid_value():
    with pytest.raises(HttpError):
        inject_auth({}, "https://api.example.com/", "tok\nen", AuthMethod.bearer())


# --- parse_method ---


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("GET", "GET"),
        ("post", "POST"),
        ("Put", "PUT"),
        ("PATCH", "PATCH"),
        ("DELETE", "DELETE"),
        ("HEAD", "HEAD"),
    ],
)
def test_parse_method_valid(raw, expected):
    assert parse_method(raw) == expected


def test_parse_method_invalid():
    with pytest.raises(InvalidMethod):
        parse_method("CONNECT")


# --- parse_auth_override ---


def test_parse_auth_override_bearer():
    assert parse_auth_override("bearer").kind is AuthKind.BEARER


def test_parse_auth_override_basic():
    assert parse_auth_override("basic").kind is AuthKind.BASIC


def test_parse_auth_override_header():
    method = parse_auth_override("header:X-Custom-Key")
    assert method == AuthMethod.header("X-Custom-Key")


def test_parse_auth_override_query():
    method = parse_auth_override("query:api_key")
    assert method == AuthMethod.query("api_key")


def test_parse_auth_override_invalid():
    with pytest.raises(NoAuthMethod):
        parse_auth_override("unknown")


# --- execute_proxy ---


@pytest.mark.asyncio
async def test_execute_proxy_text_response():
    with respx.mock(assert_all_called=False) as mock:
        route = mock.get("https://api.example.com/test").mock(
            return_value=httpx.Response(200, json={"ok": True})
        )
        async with httpx.AsyncClient() as client:
            result = await execute_proxy(
                client,
                "GET",
                httpx.URL("https://api.example.com/test"),
                {"Authorization": "Bearer token"},
                None,
                None,
                None,
            )
    assert result.startswith("Status: 200 OK\n")
    assert '"ok"' in result
    assert route.calls.last.request.headers["authorization"] == "Bearer token"


@pytest.mark.asyncio
async def test_execute_proxy_body_and_extras():
    with respx.mock(assert_all_called=False) as mock:
        route = mock.post(url__startswith="https://api.example.com/items").mock(
            return_value=httpx.Response(201, text="created")
        )
        async with httpx.AsyncClient() as client:
            result = await execute_proxy(
                client,
                "POST",
                "https://api.example.com/items",
                {},
                '{"a":1}',
                {"X-Trace": "abc"},
                {"page": "2"},
            )
    request = route.calls.last.request
    assert result == "Status: 201 Created\ncreated"
    assert request.content == b'{"a":1}'
    assert request.headers["content-type"] == "application/json"
    assert request.headers["x-trace"] == "abc"
    assert request.url.params["page"] == "2"


@pytest.mark.asyncio
async def test_execute_proxy_binary_response():
    with respx.mock(assert_all_called=False) as mock:
        mock.get("https://api.example.com/img").mock(
            return_value=httpx.Response(
                200, headers={"Content-Type": "image/png"}, content=b"abcd"
            )
        )
        async with httpx.AsyncClient() as client:
            result = await execute_proxy(
                client, "GET", "https://api.example.com/img", {}, None, None, None
            )
    assert result == "Status: 200 OK\n[Binary response: image/png, 4 bytes]"


@pytest.mark.asyncio
async def test_execute_proxy_truncates_large_body():
    payload = b"a" * (MAX_RESPONSE_BYTES + 10)
    with respx.mock(assert_all_called=False) as mock:
        mock.get("https://api.example.com/big").mock(
            return_value=httpx.Response(
                200, headers={"Content-Type": "text/plain"}, content=payload
            )
        )
        async with httpx.AsyncClient() as client:
            result = await execute_proxy(
                client, "GET", "https://api.example.com/big", {}, None, None, None
            )
    assert result.endswith("\n\n--- RESPONSE TRUNCATED (1MB limit) ---")
    assert result.count("a") >= MAX_RESPONSE_BYTES


@pytest.mark.asyncio
async def test_execute_proxy_transport_error():
    with respx.mock(assert_all_called=False) as mock:
        mock.get("https://api.example.com/down").mock(
            side_effect=httpx.ConnectError("boom")
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(HttpError) as info:
                await execute_proxy(
                    client, "GET", "https://api.example.com/down", {}, None, None, None
                )
    assert "boom" in str(info.value)


@pytest.mark.asyncio
async def test_execute_proxy_invalid_extra_header():
    async with httpx.AsyncClient() as client:
        with pytest.raises(HttpError):
            await execute_proxy(
                client,
                "GET",
                "https://api.example.com/x",
                {},
                None,
                {"bad header": "v"},
                None,
            )