"""Normalization helpers.

Centralizes defensive parsing shared by every provider normalizer. None of
these helpers raise on malformed input; they return ``None`` instead.
"""

from __future__ import annotations

import html
import math
import re
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return None
    text = str(value).strip()
    return text if text else None


def dig(data: Any, *path: str) -> Any:
    """Walk nested mappings; ``None`` as soon as a level is missing or not a mapping."""
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def as_list(value: Any) -> list[Any]:
    """Return *value* if it is a real sequence, else an empty list."""
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(value)
    return []


def first_present(*values: Any) -> str | None:
    """First value that is a non-empty string after stripping."""
    for value in values:
        text = safe_str(value)
        if text is not None:
            return text
    return None


def names_of(items: Any) -> list[str]:
    """Extract ``name`` from a list of ``{"name": ...}`` objects, skipping blanks."""
    names: list[str] = []
    for item in as_list(items):
        name = safe_str(item.get("name")) if isinstance(item, Mapping) else safe_str(item)
        if name is not None:
            names.append(name)
    return names


def scale_score(value: Any, divisor: float = 1.0) -> float | None:
    """Convert a provider score to the canonical 0-10 scale.

    Out-of-range results are dropped rather than clamped; a score outside
    the provider's own scale is garbage, not an extreme opinion.
    """
    parsed = safe_float(value)
    if parsed is None:
        return None
    scaled = parsed / divisor
    if not 0.0 <= scaled <= 10.0:
        return None
    return scaled


# ------------------------------------------------------------------
# HTML
# ------------------------------------------------------------------

_BLOCK_TAG_RE = re.compile(
    r"<\s*/?\s*(?:br|p|div|li|ul|ol|h[1-6]|blockquote|tr|table|hr)\b[^>]*>",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^>]*>")
_INLINE_WS_RE = re.compile(r"[ \t\f\v\xa0]+")
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")


def strip_html(value: Any) -> str | None:
    """Convert an HTML fragment to plain text.

    Block-level tags (``<br>``, ``<p>``, ...) become line breaks so text
    separated only by such a tag is not glued together; other tags are
    dropped and entities unescaped.
    """
    text = safe_str(value)
    if text is None:
        return None
    text = text.replace("\r\n", "\n")
    text = _BLOCK_TAG_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    lines = [_INLINE_WS_RE.sub(" ", line).strip() for line in text.split("\n")]
    text = _EXTRA_NEWLINES_RE.sub("\n\n", "\n".join(lines)).strip()
    return text or None


# ------------------------------------------------------------------
# Dates / durations
# ------------------------------------------------------------------

_YEAR_RE = re.compile(r"\d{4}")
_YEAR_MONTH_RE = re.compile(r"(\d{4})-(\d{2})")


def parse_year(value: Any) -> int | None:
    """Year of an ISO date (``2023``, ``2023-04``, ``2023-04-05``, full timestamps).

    Anything unparsable yields ``None``.
    """
    text = safe_str(value)
    if text is None:
        return None
    if _YEAR_RE.fullmatch(text):
        return int(text)
    partial = _YEAR_MONTH_RE.fullmatch(text)
    if partial is not None:
        return int(partial.group(1)) if 1 <= int(partial.group(2)) <= 12 else None
    try:
        return datetime.fromisoformat(text).year
    except ValueError:
        return None


def derive_year(explicit: Any, date_value: Any = None) -> int | None:
    """Prefer an explicit year field, then the year of a start/aired date."""
    year = safe_int(explicit)
    if year is not None and year > 0:
        return year
    return parse_year(date_value)


_HOURS_RE = re.compile(r"(\d+)\s*(?:hr|hour)", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+)\s*min", re.IGNORECASE)


def parse_duration_minutes(value: Any) -> int | None:
    """Minutes per episode from a number or a Jikan-style ``"1 hr 30 min per ep"``."""
    if isinstance(value, str):
        hours = _HOURS_RE.search(value)
        minutes = _MINUTES_RE.search(value)
        if hours is None and minutes is None:
            return safe_int(value)
        total = (int(hours.group(1)) * 60 if hours else 0) + (int(minutes.group(1)) if minutes else 0)
        return total or None
    parsed = safe_int(value)
    if parsed is None or parsed <= 0:
        return None
    return parsed
