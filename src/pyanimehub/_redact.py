"""Redaction for debug logs.

MAL sends its client id as a header, AniList and MAL both use bearer
tokens, and OAuth callbacks carry the authorization ``code`` in the query
string. None of that may reach a log line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "client_id",
        "client_secret",
        "x_mal_client_id",
        "code",
        "code_verifier",
        "cookie",
        "password",
    }
)


def _is_sensitive(key: str) -> bool:
    # matches "X-MAL-CLIENT-ID" as well as camelCase "accessToken"
    normalized = key.replace("-", "_").lower()
    if normalized in _SENSITIVE_KEYS:
        return True
    return normalized.endswith("token")


def redact_url(url: str) -> str:
    """*url* with sensitive query parameters masked."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [(key, REDACTED if _is_sensitive(key) else value) for key, value in parse_qsl(parts.query, True)]
    return urlunsplit(parts._replace(query=urlencode(query, safe="<>")))


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Copy of *value* with secrets masked and long strings cut.

    GraphQL payloads nest their secrets under ``variables``, so mappings
    and sequences are walked recursively.
    """
    if _depth > 20:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}...<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED
            if _is_sensitive(str(key))
            else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, Sequence):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    return repr(value)
