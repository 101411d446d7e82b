"""Immutable store snapshot.

The store never mutates a snapshot; every write produces a new
:class:`StoreState` via :func:`dataclasses.replace`. Collections are
tuples and overlay maps are replaced copy-on-write, so an unchanged
collection or map keeps its identity across writes and consumers can use
``is`` to detect change.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from pyanimehub.models.anime import Anime, AnimeKey, AnimeSource


class Collection(StrEnum):
    """Named entity collections; values are the :class:`StoreState` field names."""

    TRENDING = "trending"
    POPULAR = "popular"
    TOP_RATED = "top_rated"
    CURRENT_SEASON = "current_season"
    SEARCH_RESULTS = "search_results"
    CURRENTLY_WATCHING = "currently_watching"


#: Collections that feed the derived "currently watching" view.
BROWSE_COLLECTIONS: tuple[Collection, ...] = (
    Collection.TRENDING,
    Collection.POPULAR,
    Collection.TOP_RATED,
    Collection.CURRENT_SEASON,
    Collection.SEARCH_RESULTS,
)

ALL_COLLECTIONS: tuple[Collection, ...] = (*BROWSE_COLLECTIONS, Collection.CURRENTLY_WATCHING)


class LoadingKey(StrEnum):
    TRENDING = "trending"
    POPULAR = "popular"
    TOP_RATED = "top_rated"
    CURRENT_SEASON = "current_season"
    SEARCH = "search"
    DETAILS = "details"
    USER_SCORES = "user_scores"
    USER_STATUS = "user_status"
    CURRENTLY_WATCHING = "currently_watching"
    LIST_UPDATE = "list_update"


def _empty_loading() -> Mapping[LoadingKey, bool]:
    return MappingProxyType({key: False for key in LoadingKey})


def _empty_map() -> Mapping[Any, Any]:
    return MappingProxyType({})


@dataclasses.dataclass(frozen=True, slots=True)
class StoreState:
    current_source: AnimeSource = AnimeSource.MAL
    trending: tuple[Anime, ...] = ()
    popular: tuple[Anime, ...] = ()
    top_rated: tuple[Anime, ...] = ()
    current_season: tuple[Anime, ...] = ()
    search_results: tuple[Anime, ...] = ()
    currently_watching: tuple[Anime, ...] = ()
    user_anime_scores: Mapping[AnimeKey, float] = dataclasses.field(default_factory=_empty_map)
    user_anime_status: Mapping[AnimeKey, str] = dataclasses.field(default_factory=_empty_map)
    loading: Mapping[LoadingKey, bool] = dataclasses.field(default_factory=_empty_loading)

    def collection(self, name: Collection) -> tuple[Anime, ...]:
        items: tuple[Anime, ...] = getattr(self, name.value)
        return items

    def collections(self) -> dict[Collection, tuple[Anime, ...]]:
        return {name: self.collection(name) for name in ALL_COLLECTIONS}

    def is_loading(self, key: LoadingKey | None = None) -> bool:
        if key is None:
            return any(self.loading.values())
        return bool(self.loading.get(key, False))
