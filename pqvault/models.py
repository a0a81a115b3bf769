"""Vault data model: secrets, projects, lifecycle rules and categorisation."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Mapping

from .providers import word_boundary_match

_LIFECYCLE_STATES = ("active", "deprecated", "disabled", "archived")

_LIFECYCLE_TRANSITIONS = frozenset(
    {
        ("active", "deprecated"),
        ("deprecated", "disabled"),
        ("deprecated", "active"),  # un-deprecate
        ("disabled", "archived"),
        ("disabled", "active"),  # re-enable
        ("archived", "active"),  # restore
    }
)

_CATEGORY_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "ai",
        (
            "ANTHROPIC",
            "OPENAI",
            "HF_TOKEN",
            "HUGGING",
            "REPLICATE",
            "STABILITY",
            "ELEVENLABS",
            "CLAUDE",
        ),
    ),
    ("payment", ("STRIPE", "PAYPAL", "RAZORPAY")),
    (
        "cloud",
        ("AWS", "GCP", "GOOGLE_APPLICATION", "CLOUDFLARE", "VERCEL", "FIREBASE"),
    ),
    (
        "social",
        (
            "TWITTER",
            "X_API",
            "X_ACCESS",
            "LINKEDIN",
            "INSTAGRAM",
            "FACEBOOK",
            "UNSPLASH",
        ),
    ),
    ("email", ("RESEND", "SENDGRID", "MAILGUN", "GMAIL", "SMTP", "EMAIL")),
    (
        "database",
        ("SUPABASE", "POSTGRES", "MYSQL", "REDIS", "MONGO", "DATABASE_URL", "DB"),
    ),
    ("auth", ("SESSION_SECRET", "JWT", "OAUTH", "AUTH", "GOOGLE_CLIENT")),
    ("search", ("SERPER", "SERPAPI", "ALGOLIA")),
)


def _today_str() -> str:
    return date.today().isoformat()


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


def _require(data: Mapping[str, Any], key: str, owner: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"{owner}: missing field '{key}'") from None


@dataclass
class SecretVersion:
    """A historical value of a secret."""

    value: str
    rotated_at: str
    rotated_by: str = ""
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SecretVersion:
        return cls(
            value=_require(data, "value", cls.__name__),
            rotated_at=_require(data, "rotated_at", cls.__name__),
            rotated_by=data.get("rotated_by", ""),
            reason=data.get("reason", ""),
        )


@dataclass
class RotationPolicy:
    """Per-key rotation policy."""

    interval_days: int
    auto_rotate: bool = False
    notify_before_days: int = 7
    last_auto_rotation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RotationPolicy:
        return cls(
            interval_days=_require(data, "interval_days", cls.__name__),
            auto_rotate=data.get("auto_rotate", False),
            notify_before_days=data.get("notify_before_days", 7),
            last_auto_rotation=data.get("last_auto_rotation"),
        )


@dataclass
class SecretEntry:
    """A stored secret together with its metadata."""

    value: str
    category: str = "general"
    description: str = ""
    created: str = field(default_factory=_today_str)
    rotated: str = field(default_factory=_today_str)
    expires: str | None = None
    rotation_days: int = 90
    projects: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    account: str | None = None
    environment: str | None = None
    related_keys: list[str] = field(default_factory=list)
    last_verified: str | None = None
    last_error: str | None = None
    key_status: str = "unknown"
    lifecycle: str = "active"
    lifecycle_reason: str | None = None
    lifecycle_changed: str | None = None
    versions: list[SecretVersion] = field(default_factory=list)
    max_versions: int = 10
    rotation_policy: RotationPolicy | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SecretEntry:
        policy = data.get("rotation_policy")
        return cls(
            value=_require(data, "value", cls.__name__),
            category=data.get("category", "general"),
            description=data.get("description", ""),
            created=data["created"] if "created" in data else _today_str(),
            rotated=data["rotated"] if "rotated" in data else _today_str(),
            expires=data.get("expires"),
            rotation_days=data.get("rotation_days", 90),
            projects=list(data.get("projects", [])),
            tags=list(data.get("tags", [])),
            account=data.get("account"),
            environment=data.get("environment"),
            related_keys=list(data.get("related_keys", [])),
            last_verified=data.get("last_verified"),
            last_error=data.get("last_error"),
            key_status=data.get("key_status", "unknown"),
            lifecycle=data.get("lifecycle", "active"),
            lifecycle_reason=data.get("lifecycle_reason"),
            lifecycle_changed=data.get("lifecycle_changed"),
            versions=[SecretVersion.from_dict(v) for v in data.get("versions", [])],
            max_versions=data.get("max_versions", 10),
            rotation_policy=(
                RotationPolicy.from_dict(policy) if policy is not None else None
            ),
        )


@dataclass
class ProjectEntry:
    """A registered project and the keys it uses."""

    path: str
    keys: list[str] = field(default_factory=list)
    env_file: str = ".env.local"
    env_extras: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProjectEntry:
        return cls(
            path=_require(data, "path", cls.__name__),
            keys=list(data.get("keys", [])),
            env_file=data.get("env_file", ".env.local"),
            env_extras=dict(data.get("env_extras", {})),
        )


@dataclass
class VaultData:
    """The full decrypted contents of a vault."""

    version: str = "1.0"
    created: str = field(default_factory=_now_iso)
    secrets: dict[str, SecretEntry] = field(default_factory=dict)
    projects: dict[str, ProjectEntry] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VaultData:
        return cls(
            version=data.get("version", "1.0"),
            created=data["created"] if "created" in data else _now_iso(),
            secrets={
                name: SecretEntry.from_dict(entry)
                for name, entry in data.get("secrets", {}).items()
            },
            projects={
                name: ProjectEntry.from_dict(entry)
                for name, entry in data.get("projects", {}).items()
            },
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str | bytes) -> VaultData:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("vault JSON must be an object")
        return cls.from_dict(data)


def valid_lifecycle_transition(from_state: str, to_state: str) -> bool:
    """Return whether a secret may move from one lifecycle state to another."""
    return (from_state, to_state) in _LIFECYCLE_TRANSITIONS


def lifecycle_states() -> list[str]:
    """All valid lifecycle states."""
    return list(_LIFECYCLE_STATES)


def mask_value(val: str) -> str:
    """Masked preview: the first 4 and last 4 characters, or all stars if short."""
    if len(val) <= 8:
        return "*" * len(val)
    return f"{val[:4]}...{val[-4:]}"


def category_patterns() -> list[tuple[str, list[str]]]:
    """Category names paired with the key-name fragments that select them."""
    return [(category, list(patterns)) for category, patterns in _CATEGORY_PATTERNS]


def auto_categorize(key_name: str) -> str:
    """Guess a category for a key from its name."""
    upper = key_name.upper()
    for category, patterns in _CATEGORY_PATTERNS:
        if any(word_boundary_match(upper, pattern) for pattern in patterns):
            return category
    return "general"