"""Relevance-ranked search over vault secrets with fuzzy name matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .models import SecretEntry

_FUZZY_THRESHOLD = 0.85


def tokenize(text: str) -> list[str]:
    """Split a key name or query into lowercase words longer than one byte."""
    normalised = text.lower().replace("_", " ").replace("-", " ").replace(".", " ")
    return [token for token in normalised.split() if len(token.encode("utf-8")) > 1]


def _jaro(a: str, b: str) -> float:
    len_a, len_b = len(a), len(b)
    if not len_a and not len_b:
        return 1.0
    if not len_a or not len_b:
        return 0.0

    search_range = max(max(len_a, len_b) // 2 - 1, 0)
    a_flags = [False] * len_a
    b_flags = [False] * len_b
    matches = 0

    for i, ch in enumerate(a):
        low = max(i - search_range, 0)
        high = min(len_b, i + search_range + 1)
        for j in range(low, high):
            if not b_flags[j] and b[j] == ch:
                a_flags[i] = True
                b_flags[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    matched_a = (ch for ch, flag in zip(a, a_flags) if flag)
    matched_b = (ch for ch, flag in zip(b, b_flags) if flag)
    transpositions = sum(x != y for x, y in zip(matched_a, matched_b)) // 2

    return (
        matches / len_a + matches / len_b + (matches - transpositions) / matches
    ) / 3.0


def jaro_winkler(a: str, b: str) -> float:
    """Jaro-Winkler similarity in [0, 1], favouring a common prefix of up to 4."""
    sim = _jaro(a, b)
    if sim <= 0.7:
        return sim
    prefix = 0
    for x, y in zip(a[:4], b):
        if x != y:
            break
        prefix += 1
    return sim + 0.1 * prefix * (1.0 - sim)


@dataclass
class SearchResult:
    """A secret matched by a search, with its score and the reasons for it."""

    key_name: str
    score: float
    match_reasons: list[str] = field(default_factory=list)
    category: str = ""
    projects: list[str] = field(default_factory=list)
    lifecycle: str = ""


def _score_entry(query_tokens: Sequence[str], name: str, entry: SecretEntry) -> SearchResult:
    key_tokens = tokenize(name)
    cat_tokens = tokenize(entry.category)
    name_lower = name.lower()
    category_lower = entry.category.lower()

    score = 0.0
    reasons: list[str] = []

    for qt in query_tokens:
        qt_lower = qt.lower()
        in_name = qt_lower in name_lower

        if in_name:
            score += 5.0
            reasons.append(f"name contains '{qt}'")

        if category_lower == qt:
            score += 3.0
            reasons.append(f"category = '{qt}'")

        project = next((p for p in entry.projects if qt_lower in p.lower()), None)
        if project is not None:
            score += 3.0
            reasons.append(f"project '{project}'")

        tag = next((t for t in entry.tags if qt_lower in t.lower()), None)
        if tag is not None:
            score += 2.5
            reasons.append(f"tag '{tag}'")

        for kt in key_tokens:
            sim = jaro_winkler(qt, kt)
            if sim > _FUZZY_THRESHOLD and not in_name:
                score += sim * 3.0
                reasons.append(f"'{kt}' ~ '{qt}' ({sim * 100.0:.0f}%)")

        for ct in cat_tokens:
            sim = jaro_winkler(qt, ct)
            if sim > _FUZZY_THRESHOLD and category_lower != qt:
                score += sim * 1.5
                reasons.append(f"category '{ct}' ~ '{qt}'")

    return SearchResult(
        key_name=name,
        score=score,
        match_reasons=reasons,
        category=entry.category,
        projects=list(entry.projects),
        lifecycle=entry.lifecycle,
    )


def search_secrets(
    secrets: Mapping[str, SecretEntry],
    query: str,
    min_score: float,
    limit: int,
) -> list[SearchResult]:
    """Score every secret against a free-text query, best matches first."""
    query_tokens = tokenize(query)
    if not query_tokens:
        return []

    results = [
        result
        for result in (
            _score_entry(query_tokens, name, entry) for name, entry in secrets.items()
        )
        if result.score >= min_score
    ]
    results.sort(key=lambda r: r.score, reverse=True)
    return results[:limit]