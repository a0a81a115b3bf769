"""Known API providers: rate limits, auth style and detection from key names."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


class AuthKind(enum.Enum):
    """How a credential is attached to a request."""

    BEARER = "bearer"
    CUSTOM_HEADER = "header"
    BASIC = "basic"
    QUERY_PARAM = "query"


@dataclass(frozen=True)
class AuthMethod:
    """An auth style; ``name`` is the header or query parameter name where one applies."""

    kind: AuthKind
    name: str = ""

    @classmethod
    def bearer(cls) -> AuthMethod:
        return cls(AuthKind.BEARER)

    @classmethod
    def basic(cls) -> AuthMethod:
        return cls(AuthKind.BASIC)

    @classmethod
    def header(cls, header_name: str) -> AuthMethod:
        return cls(AuthKind.CUSTOM_HEADER, header_name)

    @classmethod
    def query(cls, param_name: str) -> AuthMethod:
        return cls(AuthKind.QUERY_PARAM, param_name)


@dataclass(frozen=True)
class ProviderConfig:
    """Static description of an API provider."""

    name: str
    display_name: str
    requests_per_minute: int | None = None
    requests_per_day: int | None = None
    requests_per_month: int | None = None
    cost_per_request: float = 0.0
    key_pattern: str | None = None
    rotation_days: int = 90
    base_url: str | None = None
    auth_method: AuthMethod | None = None
    allowed_domains: tuple[str, ...] = ()
    verify_path: str | None = None


_PROVIDER_LIST = (
    ProviderConfig(
        name="anthropic",
        display_name="Anthropic",
        requests_per_minute=50,
        requests_per_day=10000,
        cost_per_request=0.003,
        key_pattern=r"^sk-ant-",
        rotation_days=90,
        base_url="https://api.anthropic.com",
        auth_method=AuthMethod.header("x-api-key"),
        allowed_domains=("api.anthropic.com",),
        verify_path="/v1/models",
    ),
    ProviderConfig(
        name="openai",
        display_name="OpenAI",
        requests_per_minute=60,
        requests_per_day=10000,
        cost_per_request=0.002,
        key_pattern=r"^sk-[a-zA-Z0-9]{20,}",
        rotation_days=90,
        base_url="https://api.openai.com",
        auth_method=AuthMethod.bearer(),
        allowed_domains=("api.openai.com",),
        verify_path="/v1/models",
    ),
    ProviderConfig(
        name="brave",
        display_name="Brave Search",
        requests_per_minute=10,
        requests_per_month=2000,
        cost_per_request=0.0,
        key_pattern=r"^BSA[a-zA-Z0-9]{20,}",
        rotation_days=365,
        base_url="https://api.search.brave.com",
        auth_method=AuthMethod.header("X-Subscription-Token"),
        allowed_domains=("api.search.brave.com",),
        verify_path="/res/v1/web/search?q=test&count=1",
    ),
    ProviderConfig(
        name="github",
        display_name="GitHub",
        requests_per_minute=83,
        requests_per_day=5000,
        cost_per_request=0.0,
        key_pattern=r"^(ghp_|gho_|github_pat_)",
        rotation_days=90,
        base_url="https://api.github.com",
        auth_method=AuthMethod.bearer(),
        allowed_domains=("api.github.com",),
        verify_path="/user",
    ),
    ProviderConfig(
        name="google",
        display_name="Google APIs",
        requests_per_minute=100,
        requests_per_day=10000,
        cost_per_request=0.001,
        key_pattern=r"^AIza",
        rotation_days=180,
        base_url="https://www.googleapis.com",
        auth_method=AuthMethod.query("key"),
        allowed_domains=("*.googleapis.com",),
        verify_path=None,
    ),
    ProviderConfig(
        name="serper",
        display_name="Serper.dev",
        requests_per_minute=5,
        requests_per_month=100,
        cost_per_request=0.0,
        key_pattern=None,
        rotation_days=365,
        base_url="https://google.serper.dev",
        auth_method=AuthMethod.header("X-API-KEY"),
        allowed_domains=("google.serper.dev",),
        verify_path=None,
    ),
    ProviderConfig(
        name="resend",
        display_name="Resend",
        requests_per_minute=10,
        requests_per_day=100,
        cost_per_request=0.0,
        key_pattern=r"^re_",
        rotation_days=180,
        base_url="https://api.resend.com",
        auth_method=AuthMethod.bearer(),
        allowed_domains=("api.resend.com",),
        verify_path="/api-keys",
    ),
    ProviderConfig(
        name="cloudflare",
        display_name="Cloudflare",
        requests_per_minute=50,
        requests_per_day=10000,
        cost_per_request=0.0,
        key_pattern=None,
        rotation_days=90,
        base_url="https://api.cloudflare.com",
        auth_method=AuthMethod.bearer(),
        allowed_domains=("api.cloudflare.com",),
        verify_path="/client/v4/user/tokens/verify",
    ),
    ProviderConfig(
        name="stripe",
        display_name="Stripe",
        requests_per_minute=100,
        requests_per_day=10000,
        cost_per_request=0.0,
        key_pattern=r"^(sk_live_|sk_test_|pk_)",
        rotation_days=30,
        base_url="https://api.stripe.com",
        auth_method=AuthMethod.bearer(),
        allowed_domains=("api.stripe.com",),
        verify_path="/v1/balance",
    ),
    ProviderConfig(
        name="elevenlabs",
        display_name="ElevenLabs",
        requests_per_minute=20,
        requests_per_day=500,
        cost_per_request=0.005,
        key_pattern=None,
        rotation_days=180,
        base_url="https://api.elevenlabs.io",
        auth_method=AuthMethod.header("xi-api-key"),
        allowed_domains=("api.elevenlabs.io",),
        verify_path="/v1/user",
    ),
)

PROVIDERS: Mapping[str, ProviderConfig] = MappingProxyType(
    {provider.name: provider for provider in _PROVIDER_LIST}
)

_NAME_TO_PROVIDER = (
    ("ANTHROPIC", "anthropic"),
    ("OPENAI", "openai"),
    ("BRAVE", "brave"),
    ("GITHUB", "github"),
    ("GOOGLE_API", "google"),
    ("SERPER", "serper"),
    ("RESEND", "resend"),
    ("CLOUDFLARE", "cloudflare"),
    ("CF_API", "cloudflare"),
    ("STRIPE", "stripe"),
    ("ELEVENLABS", "elevenlabs"),
)

# Longest patterns first so that short ones do not win greedily.
_SORTED_NAME_PATTERNS = sorted(_NAME_TO_PROVIDER, key=lambda item: -len(item[0]))

_VALUE_PATTERNS = tuple(
    (provider.name, re.compile(provider.key_pattern))
    for provider in _PROVIDER_LIST
    if provider.key_pattern is not None
)


def _is_ascii_letter(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def word_boundary_match(haystack: str, needle: str) -> bool:
    """Whether the first occurrence of needle is not flanked by ASCII letters."""
    pos = haystack.find(needle)
    if pos < 0:
        return False
    before_ok = pos == 0 or not _is_ascii_letter(haystack[pos - 1])
    after = pos + len(needle)
    after_ok = after >= len(haystack) or not _is_ascii_letter(haystack[after])
    return before_ok and after_ok


def detect_provider(key_name: str, value: str) -> str | None:
    """Guess the provider of a key from its name, then from its value."""
    upper = key_name.upper()
    for pattern, provider in _SORTED_NAME_PATTERNS:
        if word_boundary_match(upper, pattern):
            return provider

    if value:
        for name, regex in _VALUE_PATTERNS:
            if regex.search(value):
                return name
    return None


def get_provider(name: str) -> ProviderConfig | None:
    """Look up a provider by its short name."""
    return PROVIDERS.get(name)