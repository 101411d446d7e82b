"""Data models for canonical anime entities and user list state."""

from pyanimehub.models.anime import Anime, AnimeKey, AnimeSource
from pyanimehub.models.status import (
    WATCHING_STATUSES,
    AniListListStatus,
    MalListStatus,
    convert_status,
    is_valid_status,
    is_watching_status,
    status_label,
    status_options,
)
from pyanimehub.models.token import AuthToken

__all__ = [
    "AniListListStatus",
    "Anime",
    "AnimeKey",
    "AnimeSource",
    "AuthToken",
    "MalListStatus",
    "WATCHING_STATUSES",
    "convert_status",
    "is_valid_status",
    "is_watching_status",
    "status_label",
    "status_options",
]
