"""AniList GraphQL client."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

from pyanimehub._api._common import current_season, require_token
from pyanimehub._api.base import PassthroughCache, RequestCache, cache_key
from pyanimehub._transport import Transport
from pyanimehub.config import AnimeHubConfig
from pyanimehub.exceptions import (
    AnimeHubApiError,
    AnimeHubAuthenticationError,
    AnimeHubRateLimitError,
)
from pyanimehub.ingestion.normalize import as_list, dig, safe_float, safe_int, safe_str
from pyanimehub.ingestion.normalizers import AniListNormalizer
from pyanimehub.models.anime import Anime, AnimeSource
from pyanimehub.models.status import AniListListStatus

_logger = logging.getLogger(__name__)

#: ``id_in`` is capped by AniList's page size.
SCORE_BATCH_SIZE = 50

_MEDIA_FIELDS = """
    id
    title { romaji english native }
    description(asHtml: false)
    coverImage { extraLarge large medium }
    averageScore
    episodes
    status
    genres
    startDate { year month day }
    season
    seasonYear
    format
    duration
    popularity
    studios(isMain: true) { edges { node { id name } } }
"""

_LIST_ENTRY_FIELDS = "mediaListEntry { score(format: POINT_10_DECIMAL) status progress }"

BROWSE_QUERY = f"""
query ($perPage: Int, $sort: [MediaSort], $search: String, $season: MediaSeason, $seasonYear: Int) {{
  Page(page: 1, perPage: $perPage) {{
    media(type: ANIME, sort: $sort, search: $search, season: $season, seasonYear: $seasonYear) {{
      {_MEDIA_FIELDS}
      {_LIST_ENTRY_FIELDS}
    }}
  }}
}}
"""

DETAILS_QUERY = f"""
query ($id: Int) {{
  Media(id: $id, type: ANIME) {{
    {_MEDIA_FIELDS}
    {_LIST_ENTRY_FIELDS}
    relations {{
      edges {{
        relationType
        node {{
          type
          {_MEDIA_FIELDS}
        }}
      }}
    }}
  }}
}}
"""

VIEWER_QUERY = "query { Viewer { id name } }"

WATCHING_QUERY = f"""
query ($userId: Int) {{
  MediaListCollection(userId: $userId, type: ANIME, status: CURRENT) {{
    lists {{
      entries {{
        score(format: POINT_10_DECIMAL)
        status
        progress
        media {{
          {_MEDIA_FIELDS}
        }}
      }}
    }}
  }}
}}
"""

STATUS_MAP_QUERY = """
query ($userId: Int) {
  MediaListCollection(userId: $userId, type: ANIME) {
    lists {
      entries {
        status
        media { id }
      }
    }
  }
}
"""

SCORES_QUERY = f"""
query ($ids: [Int], $perPage: Int) {{
  Page(page: 1, perPage: $perPage) {{
    media(id_in: $ids, type: ANIME) {{
      id
      {_LIST_ENTRY_FIELDS}
    }}
  }}
}}
"""

# scoreRaw is always 0-100, whatever score format the user picked.
SAVE_ENTRY_MUTATION = """
mutation ($mediaId: Int, $status: MediaListStatus, $scoreRaw: Int, $progress: Int) {
  SaveMediaListEntry(mediaId: $mediaId, status: $status, scoreRaw: $scoreRaw, progress: $progress) {
    id
    status
    progress
  }
}
"""

LIST_ENTRY_ID_QUERY = """
query ($id: Int) {
  Media(id: $id, type: ANIME) {
    id
    mediaListEntry { id }
  }
}
"""

DELETE_ENTRY_MUTATION = """
mutation ($id: Int) {
  DeleteMediaListEntry(id: $id) {
    deleted
  }
}
"""

_AUTH_ERROR_MARKERS = ("invalid token", "unauthorized", "unauthenticated")
_LIST_STATUSES = frozenset(status.value for status in AniListListStatus)


class AniListClient:
    source = AnimeSource.ANILIST

    def __init__(
        self,
        config: AnimeHubConfig,
        transport: Transport,
        *,
        cache: RequestCache | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._config = config
        self._transport = transport
        self._cache = cache or PassthroughCache()
        self._today = today
        self._normalizer = AniListNormalizer()
        self._viewer_ids: dict[str, int] = {}

    async def _graphql(
        self,
        operation: str,
        query: str,
        variables: dict[str, Any],
        access_token: str | None,
        *,
        cached: bool = False,
    ) -> dict[str, Any]:
        headers: dict[str, str] = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        async def _fetch() -> Any:
            return await self._transport.post_json(
                self._config.anilist_url,
                {"query": query, "variables": variables},
                headers=headers,
            )

        if cached:
            key = cache_key(self.source, operation, variables, personalized=access_token is not None)
            body = await self._cache.get_or_fetch(key, _fetch)
        else:
            body = await _fetch()

        errors = as_list(dig(body, "errors"))
        if errors:
            message = "; ".join(safe_str(dig(error, "message")) or "unknown error" for error in errors)
            lowered = message.lower()
            if "too many requests" in lowered:
                raise AnimeHubRateLimitError(
                    f"AniList {operation}: {message}",
                    status_code=429,
                    url=self._config.anilist_url,
                )
            if any(marker in lowered for marker in _AUTH_ERROR_MARKERS):
                raise AnimeHubAuthenticationError(
                    f"AniList {operation}: {message}",
                    source=self.source.value,
                    operation=operation,
                )
            raise AnimeHubApiError(f"AniList {operation}: {message}", source=self.source.value, operation=operation)

        data = dig(body, "data")
        return data if isinstance(data, dict) else {}

    async def _browse(self, operation: str, access_token: str | None, **filters: Any) -> list[Anime]:
        variables = {"perPage": self._config.page_size, **filters}
        data = await self._graphql(operation, BROWSE_QUERY, variables, access_token, cached="search" not in filters)
        return self._normalizer.normalize_many(as_list(dig(data, "Page", "media")))

    # ------------------------------------------------------------------
    # Browse
    # ------------------------------------------------------------------

    async def get_trending(self, access_token: str | None = None) -> list[Anime]:
        return await self._browse("trending", access_token, sort=["TRENDING_DESC"])

    async def get_popular(self, access_token: str | None = None) -> list[Anime]:
        return await self._browse("popular", access_token, sort=["POPULARITY_DESC"])

    async def get_top_rated(self, access_token: str | None = None) -> list[Anime]:
        return await self._browse("top_rated", access_token, sort=["SCORE_DESC"])

    async def get_current_season(self, access_token: str | None = None) -> list[Anime]:
        year, season = current_season(self._today())
        return await self._browse(
            "current_season",
            access_token,
            sort=["POPULARITY_DESC"],
            season=season.upper(),
            seasonYear=year,
        )

    async def search_anime(self, query: str, access_token: str | None = None) -> list[Anime]:
        return await self._browse("search", access_token, search=query)

    async def get_anime_details(self, anime_id: int, access_token: str | None = None) -> Anime:
        data = await self._graphql("details", DETAILS_QUERY, {"id": anime_id}, access_token)
        media = data.get("Media")
        if not isinstance(media, dict):
            raise AnimeHubApiError(f"AniList has no anime {anime_id}", source=self.source.value, operation="details")
        return self._normalizer.normalize(media, include_related=True)

    # ------------------------------------------------------------------
    # User
    # ------------------------------------------------------------------

    async def _viewer_id(self, token: str) -> int:
        cached = self._viewer_ids.get(token)
        if cached is not None:
            return cached
        data = await self._graphql("viewer", VIEWER_QUERY, {}, token)
        viewer_id = safe_int(dig(data, "Viewer", "id"))
        if viewer_id is None:
            raise AnimeHubAuthenticationError(
                "AniList did not return the signed-in user",
                source=self.source.value,
                operation="viewer",
            )
        self._viewer_ids[token] = viewer_id
        return viewer_id

    @staticmethod
    def _entries(data: dict[str, Any]) -> list[Any]:
        return [
            entry
            for group in as_list(dig(data, "MediaListCollection", "lists"))
            for entry in as_list(dig(group, "entries"))
        ]

    async def get_user_watching_anime(self, access_token: str | None = None) -> list[Anime]:
        token = require_token(access_token, self.source, "get_user_watching_anime")
        user_id = await self._viewer_id(token)
        data = await self._graphql("watching", WATCHING_QUERY, {"userId": user_id}, token)
        watching: list[Anime] = []
        for entry in self._entries(data):
            if safe_int(dig(entry, "media", "id")) is None:
                continue
            watching.append(self._normalizer.normalize_list_entry(entry))
            if len(watching) >= self._config.user_list_limit:
                break
        return watching

    async def get_user_anime_status_map(self, access_token: str | None = None) -> dict[int, str]:
        token = require_token(access_token, self.source, "get_user_anime_status_map")
        user_id = await self._viewer_id(token)
        data = await self._graphql("status_map", STATUS_MAP_QUERY, {"userId": user_id}, token)
        status_map: dict[int, str] = {}
        for entry in self._entries(data):
            anime_id = safe_int(dig(entry, "media", "id"))
            status = safe_str(dig(entry, "status"))
            if anime_id is None or status is None:
                continue
            if status not in _LIST_STATUSES:
                _logger.debug("Ignoring unknown AniList list status %r for %d", status, anime_id)
                continue
            status_map[anime_id] = status
        return status_map

    async def get_user_scores_for_anime(
        self,
        anime_ids: Sequence[int],
        access_token: str | None = None,
    ) -> dict[int, float]:
        token = require_token(access_token, self.source, "get_user_scores_for_anime")
        scores: dict[int, float] = {}
        ids = list(anime_ids)
        for start in range(0, len(ids), SCORE_BATCH_SIZE):
            batch = ids[start : start + SCORE_BATCH_SIZE]
            data = await self._graphql("user_scores", SCORES_QUERY, {"ids": batch, "perPage": len(batch)}, token)
            for media in as_list(dig(data, "Page", "media")):
                anime_id = safe_int(dig(media, "id"))
                score = safe_float(dig(media, "mediaListEntry", "score"))
                if anime_id is None or score is None or score <= 0:
                    continue
                scores[anime_id] = score
        return scores

    # ------------------------------------------------------------------
    # List writes
    # ------------------------------------------------------------------

    async def update_list_entry(
        self,
        anime_id: int,
        access_token: str | None = None,
        *,
        status: str | None = None,
        score: float | None = None,
        progress: int | None = None,
    ) -> None:
        """``SaveMediaListEntry``; creates the entry when the anime is not on the list yet."""
        token = require_token(access_token, self.source, "update_list_entry")
        if status and status not in _LIST_STATUSES:
            raise AnimeHubApiError(
                f"AniList has no list status {status!r}",
                source=self.source.value,
                operation="update_list_entry",
            )
        variables: dict[str, Any] = {"mediaId": anime_id}
        if status:
            variables["status"] = status
        if score is not None:
            variables["scoreRaw"] = round(score * 10)
        if progress is not None:
            variables["progress"] = progress
        await self._graphql("save_entry", SAVE_ENTRY_MUTATION, variables, token)

    async def delete_list_entry(self, anime_id: int, access_token: str | None = None) -> None:
        """Look up the user's list entry id for *anime_id* and delete it."""
        token = require_token(access_token, self.source, "delete_list_entry")
        data = await self._graphql("list_entry_id", LIST_ENTRY_ID_QUERY, {"id": anime_id}, token)
        entry_id = safe_int(dig(data, "Media", "mediaListEntry", "id"))
        if entry_id is None:
            raise AnimeHubApiError(
                f"Anime {anime_id} is not on the AniList list",
                source=self.source.value,
                operation="delete_list_entry",
            )
        data = await self._graphql("delete_entry", DELETE_ENTRY_MUTATION, {"id": entry_id}, token)
        if dig(data, "DeleteMediaListEntry", "deleted") is not True:
            raise AnimeHubApiError(
                f"AniList did not delete list entry {entry_id}",
                source=self.source.value,
                operation="delete_list_entry",
            )
