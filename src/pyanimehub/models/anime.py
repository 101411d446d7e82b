"""Canonical anime entity.

Every provider payload is normalized into :class:`Anime`. Entities are
frozen; "updating" one means ``model_copy(update=...)``, which leaves the
original (and every collection still holding it) untouched.
"""

from __future__ import annotations

from enum import StrEnum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class AnimeSource(StrEnum):
    MAL = "mal"
    ANILIST = "anilist"
    JIKAN = "jikan"


class AnimeKey(NamedTuple):
    """Composite identity of an entity.

    Provider ID spaces overlap (MAL 1 and AniList 1 are different shows),
    so nothing in the store is ever indexed by the bare ``id``.
    """

    source: AnimeSource
    id: int

    def __str__(self) -> str:
        return f"{self.source.value}:{self.id}"


class Anime(BaseModel):
    """A single anime in the canonical, provider-independent shape."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    source: AnimeSource
    title: str = ""
    synopsis: str | None = None
    """Plain text, HTML stripped."""
    image: str | None = None
    cover_image: str | None = None
    score: float | None = Field(default=None, ge=0, le=10)
    """Community score on the 0-10 scale, whatever the provider's native scale."""
    user_score: float | None = None
    user_status: str | None = None
    """List status in the provider's own vocabulary (``watching`` vs ``CURRENT``)."""
    user_progress: int | None = None
    episodes: int | None = None
    status: str | None = None
    """Airing status as reported by the provider."""
    genres: list[str] = Field(default_factory=list)
    year: int | None = None
    season: str | None = None
    format: str | None = None
    duration: int | None = None
    """Minutes per episode."""
    studios: list[str] = Field(default_factory=list)
    popularity: int | None = None
    """Number of users listing the entry."""
    related_anime: list[Anime] | None = None
    """Shallow related entries (never carry their own ``related_anime``)."""

    @property
    def key(self) -> AnimeKey:
        return AnimeKey(self.source, self.id)
