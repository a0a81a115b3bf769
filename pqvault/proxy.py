"""Credential-injecting HTTP proxy with SSRF protection."""

from __future__ import annotations

import base64
import ipaddress
import json
import re
from typing import Mapping, Sequence

import httpx

from .providers import AuthKind, AuthMethod, ProviderConfig

MAX_RESPONSE_BYTES = 1_048_576  # 1 MB

_ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"})
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_TEXT_MARKERS = ("json", "text", "xml", "html")


class ProxyError(Exception):
    """Base class for every proxy failure."""

    _template = "{}"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(self._template.format(detail))


class DomainNotAllowed(ProxyError):
    _template = "Domain not allowed: {}"


class SsrfBlocked(ProxyError):
    _template = "SSRF blocked: {}"


class InvalidUrl(ProxyError):
    _template = "Invalid URL: {}"


class InvalidMethod(ProxyError):
    _template = "Invalid HTTP method: {}"


class HttpError(ProxyError):
    _template = "HTTP error: {}"


class ResponseTooLarge(ProxyError):
    _template = "Response exceeds 1MB limit"


class NoAuthMethod(ProxyError):
    _template = "No auth method configured — use auth_override parameter"


class NoBaseUrl(ProxyError):
    _template = "No base URL configured and url is a relative path"


def _parse_url(text: str) -> httpx.URL:
    try:
        url = httpx.URL(text)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidUrl(str(exc)) from None
    if url.scheme in ("http", "https") and not url.host:
        raise InvalidUrl("empty host")
    return url


def _as_url(url: httpx.URL | str) -> httpx.URL:
    return url if isinstance(url, httpx.URL) else _parse_url(url)


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    # Hosts ending in a numeric label are read as IPv4 by URL parsers.
    last = host.rstrip(".").rsplit(".", 1)[-1].lower()
    if last.isdigit():
        return True
    if last.startswith("0x") and all(c in "0123456789abcdef" for c in last[2:]):
        return True
    return False


def _check_header_name(name: str) -> str:
    if not _HEADER_NAME_RE.match(name):
        raise HttpError(f"Invalid header name: {name!r}")
    return name


def _check_header_value(value: str) -> str:
    if not all(ch == "\t" or 32 <= ord(ch) < 127 for ch in value):
        raise HttpError("invalid HTTP header value")
    return value


def resolve_url(url_input: str, provider: ProviderConfig | None) -> httpx.URL:
    """Resolve a relative path or full URL against a provider's base URL."""
    if url_input.startswith(("https://", "http://")):
        return _parse_url(url_input)

    base = provider.base_url if provider is not None else None
    if not base:
        raise NoBaseUrl()

    if url_input.startswith("/"):
        full = f"{base}{url_input}"
    else:
        full = f"{base}/{url_input}"
    return _parse_url(full)


def validate_url(url: httpx.URL | str, allowed_domains: Sequence[str]) -> None:
    """Raise unless the URL is HTTPS, public, and within the allowed domains."""
    url = _as_url(url)

    if url.scheme != "https":
        raise SsrfBlocked(f"Only HTTPS allowed, got: {url.scheme}")

    host = url.host
    if not host:
        raise InvalidUrl("No host in URL")

    if _is_ip_literal(host):
        raise SsrfBlocked("IP addresses not allowed — use domain name")

    lower = host.lower()
    if (
        lower == "localhost"
        or lower.endswith(".local")
        or lower.endswith(".internal")
        or lower == "metadata.google.internal"
        or lower == "169.254.169.254"
    ):
        raise SsrfBlocked(f"Internal hostname blocked: {host}")

    if not allowed_domains:
        raise DomainNotAllowed("No allowed domains configured")

    def matches(pattern: str) -> bool:
        if pattern.startswith("*."):
            return lower.endswith(pattern[1:]) or lower == pattern[2:]
        return lower == pattern.lower()

    if not any(matches(pattern) for pattern in allowed_domains):
        raise DomainNotAllowed(
            f"{host} not in allowed domains: {json.dumps(list(allowed_domains))}"
        )


def parse_auth_override(override_str: str) -> AuthMethod:
    """Parse "bearer", "basic", "header:<name>" or "query:<name>"."""
    lower = override_str.lower()
    if lower == "bearer":
        return AuthMethod.bearer()
    if lower == "basic":
        return AuthMethod.basic()
    if override_str.startswith("header:"):
        return AuthMethod.header(override_str[len("header:"):])
    if override_str.startswith("query:"):
        return AuthMethod.query(override_str[len("query:"):])
    raise NoAuthMethod()


def inject_auth(
    headers: Mapping[str, str] | None,
    url: httpx.URL | str,
    key_value: str,
    auth_method: AuthMethod,
) -> tuple[httpx.Headers, httpx.URL]:
    """Return copies of the headers and URL carrying the credential."""
    new_headers = httpx.Headers(headers or {})
    new_url = _as_url(url)

    if auth_method.kind is AuthKind.BEARER:
        new_headers["Authorization"] = _check_header_value(f"Bearer {key_value}")
    elif auth_method.kind is AuthKind.CUSTOM_HEADER:
        name = _check_header_name(auth_method.name)
        new_headers[name] = _check_header_value(key_value)
    elif auth_method.kind is AuthKind.BASIC:
        encoded = base64.b64encode(f"{key_value}:".encode()).decode("ascii")
        new_headers["Authorization"] = _check_header_value(f"Basic {encoded}")
    elif auth_method.kind is AuthKind.QUERY_PARAM:
        new_url = new_url.copy_add_param(auth_method.name, key_value)
    return new_headers, new_url


def parse_method(method: str) -> str:
    """Normalise an HTTP method name, rejecting unsupported ones."""
    upper = method.upper()
    if upper not in _ALLOWED_METHODS:
        raise InvalidMethod(method)
    return upper


async def execute_proxy(
    client: httpx.AsyncClient,
    method: str,
    url: httpx.URL | str,
    headers: Mapping[str, str] | None,
    body: str | None,
    extra_headers: Mapping[str, str] | None,
    extra_query: Mapping[str, str] | None,
) -> str:
    """Send the request and render the response as text."""
    target = _as_url(url)
    request_headers = httpx.Headers(headers or {})

    for name, value in (extra_headers or {}).items():
        request_headers[_check_header_name(name)] = _check_header_value(value)

    for name, value in (extra_query or {}).items():
        target = target.copy_add_param(name, value)

    content: bytes | None = None
    if body is not None:
        request_headers["Content-Type"] = "application/json"
        content = body.encode()

    try:
        request = client.build_request(
            method, target, headers=request_headers, content=content
        )
        response = await client.send(request, stream=True)
    except httpx.HTTPError as exc:
        raise HttpError(str(exc)) from None

    try:
        status_line = f"Status: {response.status_code} {response.reason_phrase or ''}"
        content_type = response.headers.get("content-type", "")
        is_text = not content_type or any(m in content_type for m in _TEXT_MARKERS)

        if not is_text:
            length = response.headers.get("content-length")
            size = f"{length} bytes" if length and length.isdigit() else "unknown size"
            return f"{status_line}\n[Binary response: {content_type}, {size}]"

        received = bytearray()
        try:
            async for chunk in response.aiter_bytes():
                received.extend(chunk)
                if len(received) > MAX_RESPONSE_BYTES:
                    break
        except httpx.HTTPError as exc:
            raise HttpError(str(exc)) from None
    finally:
        await response.aclose()

    if len(received) > MAX_RESPONSE_BYTES:
        text = bytes(received[:MAX_RESPONSE_BYTES]).decode("utf-8", errors="replace")
        body_str = f"{text}\n\n--- RESPONSE TRUNCATED (1MB limit) ---"
    else:
        body_str = bytes(received).decode("utf-8", errors="replace")

    return f"{status_line}\n{body_str}"