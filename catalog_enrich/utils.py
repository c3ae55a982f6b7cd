"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import re
import unicodedata

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
WHITESPACE_PATTERN = re.compile(r"\s+")
DISALLOWED_PATTERN = re.compile(r"[^\w\s\-áéíóúüñ]")


def slugify(value: str, fallback: str = "product") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = unicodedata.normalize("NFKD", value)
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def normalize_text(value: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace for comparisons."""
    normalized = value.lower()
    normalized = DISALLOWED_PATTERN.sub("", normalized)
    normalized = WHITESPACE_PATTERN.sub(" ", normalized)
    return normalized.strip()


def collapse_whitespace(value: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def truncate(value: str, max_chars: int) -> str:
    """Cut text to ``max_chars`` without leaving trailing whitespace."""
    if len(value) <= max_chars:
        return value
    return value[:max_chars].rstrip()
