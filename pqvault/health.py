"""Vault health checks: expiry, rotation, dead keys, duplicates and scoring."""

from __future__ import annotations

import hashlib
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .models import VaultData


@dataclass
class DeadKeyInfo:
    """A key that has not been rotated in a long time."""

    name: str
    category: str
    days_unused: int
    recommendation: str


@dataclass
class DuplicateGroup:
    """Keys sharing the same value, grouped by a short hash of it."""

    value_hash: str
    keys: list[str]


@dataclass
class KeyHealthScore:
    """Health score from 0 to 100 for one key, with the issues that lowered it."""

    name: str
    score: int
    issues: list[str] = field(default_factory=list)


@dataclass
class HealthReport:
    """Summary of the state of every secret in a vault."""

    total_secrets: int = 0
    expired: list[str] = field(default_factory=list)
    needs_rotation: list[str] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    by_category: dict[str, int] = field(default_factory=dict)
    by_lifecycle: dict[str, int] = field(default_factory=dict)
    deprecated: list[str] = field(default_factory=list)
    disabled: list[str] = field(default_factory=list)
    error_keys: list[str] = field(default_factory=list)
    expiring_soon: list[tuple[str, int]] = field(default_factory=list)
    dead_keys: list[DeadKeyInfo] = field(default_factory=list)
    duplicates: list[DuplicateGroup] = field(default_factory=list)
    key_scores: list[KeyHealthScore] = field(default_factory=list)

    def is_healthy(self) -> bool:
        return not (self.expired or self.needs_rotation or self.error_keys)


def _parse_date(text: str | None) -> date | None:
    if not text:
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def check_health(vault: VaultData, today: date | None = None) -> HealthReport:
    """Inspect every secret in the vault; ``today`` defaults to the local date."""
    if today is None:
        today = date.today()

    report = HealthReport()
    by_category: Counter[str] = Counter()
    by_lifecycle: Counter[str] = Counter()
    value_hashes: defaultdict[str, list[str]] = defaultdict(list)

    for name, secret in vault.secrets.items():
        report.total_secrets += 1
        by_category[secret.category] += 1
        by_lifecycle[secret.lifecycle] += 1

        score = 100
        issues: list[str] = []

        def penalise(points: int, issue: str) -> None:
            nonlocal score
            score = max(0, score - points)
            issues.append(issue)

        if secret.lifecycle == "deprecated":
            report.deprecated.append(name)
            penalise(20, "deprecated")
        if secret.lifecycle == "disabled":
            report.disabled.append(name)
            penalise(40, "disabled")

        if secret.key_status == "error":
            report.error_keys.append(name)
            penalise(30, "key error")

        rotated = _parse_date(secret.rotated)

        if secret.lifecycle == "active":
            created = _parse_date(secret.created)
            if created is not None and rotated is not None:
                age_days = (today - created).days
                since_rotation = (today - rotated).days
                if since_rotation > 180 and age_days > 180:
                    recommendation = (
                        "Archive or delete - unused for over a year"
                        if since_rotation > 365
                        else "Consider archiving - unused for 6+ months"
                    )
                    report.dead_keys.append(
                        DeadKeyInfo(
                            name=name,
                            category=secret.category,
                            days_unused=since_rotation,
                            recommendation=recommendation,
                        )
                    )
                    penalise(15, f"unused {since_rotation}d")

        digest = hashlib.sha256(secret.value.encode("utf-8")).hexdigest()
        value_hashes[digest[:8]].append(name)

        if secret.lifecycle != "active":
            report.key_scores.append(KeyHealthScore(name, score, issues))
            continue

        expires = _parse_date(secret.expires)
        if expires is not None:
            days_until = (expires - today).days
            if days_until <= 0:
                report.expired.append(name)
                penalise(25, "expired")
            elif days_until <= 14:
                report.expiring_soon.append((name, days_until))
                penalise(10, f"expires in {days_until}d")

        rotation_days = (
            secret.rotation_policy.interval_days
            if secret.rotation_policy is not None
            else secret.rotation_days
        )
        if rotation_days > 0 and rotated is not None:
            try:
                due = rotated + timedelta(days=rotation_days)
            except OverflowError:
                due = None
            if due is not None and due <= today:
                report.needs_rotation.append(name)
                penalise(15, "needs rotation")

        if not secret.description:
            penalise(5, "no description")

        if not secret.projects:
            report.orphaned.append(name)
            penalise(5, "no project")

        report.key_scores.append(KeyHealthScore(name, score, issues))

    report.by_category = dict(by_category)
    report.by_lifecycle = dict(by_lifecycle)
    report.duplicates = [
        DuplicateGroup(value_hash=digest, keys=keys)
        for digest, keys in value_hashes.items()
        if len(keys) > 1
    ]
    report.key_scores.sort(key=lambda s: s.score)
    return report