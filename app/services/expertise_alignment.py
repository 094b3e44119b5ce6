"""Keyword-overlap scoring between an expert profile and generated content."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

RECOMMENDATION_THRESHOLD = 0.5
DUPLICATE_TITLE_SIMILARITY = 0.8

CONNECTOR_STOPWORDS = {
    "a",
    "about",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "by",
    "for",
    "from",
    "how",
    "in",
    "into",
    "is",
    "it",
    "its",
    "of",
    "on",
    "or",
    "that",
    "the",
    "their",
    "this",
    "to",
    "what",
    "when",
    "why",
    "with",
    "your",
}

TOKEN_PATTERN = re.compile(r"[a-z0-9][a-z0-9+._-]*")


def _normalize_token(token: str) -> str | None:
    cleaned = token.strip().lower().strip("._-")
    if len(cleaned) < 2 or cleaned in CONNECTOR_STOPWORDS:
        return None
    # Fold simple plurals so "leaders" matches "leader"
    if len(cleaned) > 3 and cleaned.endswith("s") and not cleaned.endswith("ss"):
        cleaned = cleaned[:-1]
    return cleaned


def normalize_text_tokens(text: str) -> set[str]:
    """Normalize free text into set tokens for overlap calculations."""
    tokens: set[str] = set()
    for raw in TOKEN_PATTERN.findall((text or "").lower()):
        token = _normalize_token(raw)
        if token is not None:
            tokens.add(token)
    return tokens


def jaccard(a: set[str], b: set[str]) -> float:
    """Compute Jaccard similarity for two token sets."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def profile_terms(profile: Any) -> list[str]:
    """Distinct expertise terms of a profile, primary expertise first."""
    candidates = [
        getattr(profile, "primary_expertise", None) or "",
        *(getattr(profile, "secondary_expertise", None) or []),
        *(getattr(profile, "expertise_keywords", None) or []),
    ]
    seen: set[str] = set()
    terms: list[str] = []
    for candidate in candidates:
        term = str(candidate).strip()
        key = term.lower()
        if term and key not in seen:
            seen.add(key)
            terms.append(term)
    return terms


def keyword_alignment(terms: Iterable[str], text: str) -> float:
    """Share of expertise terms whose tokens all occur in the text (0-1).

    Terms with no meaningful tokens are ignored.
    """
    text_tokens = normalize_text_tokens(text)
    term_token_sets = [tokens for tokens in (normalize_text_tokens(t) for t in terms) if tokens]
    if not term_token_sets:
        return 0.0
    matched = sum(1 for tokens in term_token_sets if tokens <= text_tokens)
    return round(matched / len(term_token_sets), 4)


def score_topic_alignment(
    profile: Any,
    *,
    title: str,
    description: str,
    tags: Iterable[str] = (),
    viewpoints: Iterable[str] = (),
) -> float:
    text = " ".join([title, description, *tags, *viewpoints])
    return keyword_alignment(profile_terms(profile), text)


def is_recommended(alignment: float) -> bool:
    return alignment >= RECOMMENDATION_THRESHOLD


def is_near_duplicate_title(title: str, existing_titles: Iterable[str]) -> bool:
    """True when a title's tokens mostly coincide with an existing title."""
    tokens = normalize_text_tokens(title)
    return any(
        jaccard(tokens, normalize_text_tokens(other)) >= DUPLICATE_TITLE_SIMILARITY
        for other in existing_titles
    )
