"""User list status vocabularies.

MAL (and Jikan, which shares MAL's ID space and list service) uses
lower-case tokens; AniList uses upper-case enum names. Statuses are kept
in the provider's vocabulary on the entity; these helpers translate when
a caller needs to compare or display them.
"""

from __future__ import annotations

from enum import StrEnum

from pyanimehub.models.anime import AnimeSource


class MalListStatus(StrEnum):
    WATCHING = "watching"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    DROPPED = "dropped"
    PLAN_TO_WATCH = "plan_to_watch"


class AniListListStatus(StrEnum):
    CURRENT = "CURRENT"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"
    DROPPED = "DROPPED"
    PLANNING = "PLANNING"
    REPEATING = "REPEATING"


#: Tokens that mean "actively watching" in any provider vocabulary.
WATCHING_STATUSES: frozenset[str] = frozenset({MalListStatus.WATCHING.value, AniListListStatus.CURRENT.value})

_LABELS: dict[str, str] = {
    "watching": "Watching",
    "CURRENT": "Watching",
    "completed": "Completed",
    "COMPLETED": "Completed",
    "on_hold": "On Hold",
    "PAUSED": "On Hold",
    "dropped": "Dropped",
    "DROPPED": "Dropped",
    "plan_to_watch": "Plan to Watch",
    "PLANNING": "Plan to Watch",
    "REPEATING": "Rewatching",
}

_ANILIST_TO_MAL: dict[str, str] = {
    "CURRENT": "watching",
    "COMPLETED": "completed",
    "PAUSED": "on_hold",
    "DROPPED": "dropped",
    "PLANNING": "plan_to_watch",
    "REPEATING": "watching",
}

_MAL_TO_ANILIST: dict[str, str] = {
    "watching": "CURRENT",
    "completed": "COMPLETED",
    "on_hold": "PAUSED",
    "dropped": "DROPPED",
    "plan_to_watch": "PLANNING",
}


def is_watching_status(status: str | None) -> bool:
    return status is not None and status in WATCHING_STATUSES


def status_label(status: str | None) -> str:
    """Human-readable label for a list status in either vocabulary."""
    if not status:
        return "Add to List"
    return _LABELS.get(status, "Unknown Status")


def status_options(source: AnimeSource) -> tuple[str, ...]:
    """All list status tokens accepted by *source*."""
    if source == AnimeSource.ANILIST:
        return tuple(member.value for member in AniListListStatus)
    return tuple(member.value for member in MalListStatus)


def is_valid_status(status: str, source: AnimeSource) -> bool:
    return status in status_options(source)


def convert_status(status: str, from_source: AnimeSource, to_source: AnimeSource) -> str:
    """Translate *status* between provider vocabularies.

    Unknown tokens are returned unchanged. ``REPEATING`` has no MAL
    counterpart and maps to ``watching``.
    """
    from_anilist = from_source == AnimeSource.ANILIST
    to_anilist = to_source == AnimeSource.ANILIST
    if from_anilist == to_anilist:
        return status

    if from_anilist:
        return _ANILIST_TO_MAL.get(status, status)
    return _MAL_TO_ANILIST.get(status, status)
