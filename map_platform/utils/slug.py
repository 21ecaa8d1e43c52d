"""Slug generation for archive names and asset filenames."""

from __future__ import annotations

import re
import unicodedata

_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-{2,}")


def slugify(text: object) -> str:
    """Return a lowercase, hyphenated token safe for filenames and URLs.

    >>> slugify("Île de Ré  Tour")
    'ile-de-re-tour'
    """

    if text is None:
        return ""
    normalized = unicodedata.normalize("NFKD", str(text))
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")
    cleaned = _DISALLOWED.sub("", ascii_only).strip()
    hyphenated = _HYPHENS.sub("-", _WHITESPACE.sub("-", cleaned))
    return hyphenated.strip("-").lower()
