"""Helpers shared by the provider clients."""

from __future__ import annotations

from datetime import date

from pyanimehub._constants import month_to_season
from pyanimehub.exceptions import AnimeHubAuthenticationError
from pyanimehub.models.anime import AnimeSource


def require_token(access_token: str | None, source: AnimeSource, operation: str) -> str:
    """Return *access_token* or raise for user endpoints called signed out."""
    if not access_token:
        raise AnimeHubAuthenticationError(
            f"{operation} on {source.value} requires an access token",
            source=source.value,
            operation=operation,
        )
    return access_token


def current_season(today: date) -> tuple[int, str]:
    """``(year, season)`` for *today*, season lower-case (``"winter"`` ... ``"fall"``)."""
    return today.year, month_to_season(today.month)
