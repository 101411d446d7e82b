"""MyAnimeList v2 REST client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

from pyanimehub._api._common import current_season, require_token
from pyanimehub._api.base import PassthroughCache, RequestCache, cache_key
from pyanimehub._constants import MAL_DETAIL_FIELDS, MAL_LIST_FIELDS
from pyanimehub._transport import Transport
from pyanimehub.config import AnimeHubConfig
from pyanimehub.exceptions import AnimeHubRateLimitError, AnimeHubTransportError
from pyanimehub.ingestion.normalize import as_list, dig, safe_float, safe_int
from pyanimehub.ingestion.normalizers import MalNormalizer
from pyanimehub.models.anime import Anime, AnimeSource
from pyanimehub.models.status import MalListStatus

_logger = logging.getLogger(__name__)

#: ``/anime/ranking`` ranking types backing the browse collections.
RANKING_TRENDING = "airing"
RANKING_POPULAR = "bypopularity"
RANKING_TOP_RATED = "all"


class MalClient:
    source = AnimeSource.MAL

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
        self._normalizer = MalNormalizer()

    def _headers(self, access_token: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._config.mal_client_id:
            headers["X-MAL-CLIENT-ID"] = self._config.mal_client_id
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _get(
        self,
        path: str,
        params: dict[str, Any],
        access_token: str | None,
        *,
        cached: bool = False,
    ) -> Any:
        url = f"{self._config.mal_base_url}{path}"

        async def _fetch() -> Any:
            return await self._transport.get_json(url, params=params, headers=self._headers(access_token))

        if not cached:
            return await _fetch()
        key = cache_key(self.source, path, params, personalized=access_token is not None)
        return await self._cache.get_or_fetch(key, _fetch)

    def _nodes(self, payload: Any) -> list[Anime]:
        return self._normalizer.normalize_many(dig(item, "node") for item in as_list(dig(payload, "data")))

    # ------------------------------------------------------------------
    # Browse
    # ------------------------------------------------------------------

    async def get_ranking(self, ranking_type: str, access_token: str | None = None) -> list[Anime]:
        params = {"ranking_type": ranking_type, "limit": self._config.page_size, "fields": MAL_LIST_FIELDS}
        payload = await self._get("/anime/ranking", params, access_token, cached=True)
        return self._nodes(payload)

    async def get_trending(self, access_token: str | None = None) -> list[Anime]:
        return await self.get_ranking(RANKING_TRENDING, access_token)

    async def get_popular(self, access_token: str | None = None) -> list[Anime]:
        return await self.get_ranking(RANKING_POPULAR, access_token)

    async def get_top_rated(self, access_token: str | None = None) -> list[Anime]:
        return await self.get_ranking(RANKING_TOP_RATED, access_token)

    async def get_current_season(self, access_token: str | None = None) -> list[Anime]:
        """Seasonal chart for today's season, falling back to the airing ranking."""
        year, season = current_season(self._today())
        params = {"limit": self._config.page_size, "fields": MAL_LIST_FIELDS, "sort": "anime_num_list_users"}
        try:
            payload = await self._get(f"/anime/season/{year}/{season}", params, access_token, cached=True)
        except AnimeHubRateLimitError:
            raise
        except AnimeHubTransportError as exc:
            _logger.warning("MAL seasonal chart %s %d unavailable (%s); using airing ranking", season, year, exc)
            return await self.get_ranking(RANKING_TRENDING, access_token)
        return self._nodes(payload)

    async def search_anime(self, query: str, access_token: str | None = None) -> list[Anime]:
        params = {"q": query, "limit": self._config.page_size, "fields": MAL_LIST_FIELDS}
        payload = await self._get("/anime", params, access_token)
        return self._nodes(payload)

    async def get_anime_details(self, anime_id: int, access_token: str | None = None) -> Anime:
        payload = await self._get(f"/anime/{anime_id}", {"fields": MAL_DETAIL_FIELDS}, access_token)
        return self._normalizer.normalize(payload, include_related=True)

    # ------------------------------------------------------------------
    # User
    # ------------------------------------------------------------------

    async def get_user_watching_anime(self, access_token: str | None = None) -> list[Anime]:
        token = require_token(access_token, self.source, "get_user_watching_anime")
        params = {
            "status": MalListStatus.WATCHING.value,
            "limit": self._config.user_list_limit,
            "fields": f"{MAL_LIST_FIELDS},list_status",
        }
        payload = await self._get("/users/@me/animelist", params, token)
        return [
            self._normalizer.normalize_list_entry(item)
            for item in as_list(dig(payload, "data"))
            if safe_int(dig(item, "node", "id")) is not None
        ]

    async def _status_ids(self, status: MalListStatus, token: str) -> list[int]:
        params = {"status": status.value, "limit": self._config.status_map_limit, "fields": "list_status"}
        payload = await self._get("/users/@me/animelist", params, token)
        ids = (safe_int(dig(item, "node", "id")) for item in as_list(dig(payload, "data")))
        return [anime_id for anime_id in ids if anime_id is not None]

    async def get_user_anime_status_map(self, access_token: str | None = None) -> dict[int, str]:
        """``{anime_id: status}`` across all five list statuses."""
        token = require_token(access_token, self.source, "get_user_anime_status_map")
        statuses = list(MalListStatus)
        pages = await asyncio.gather(*(self._status_ids(status, token) for status in statuses))
        status_map: dict[int, str] = {}
        for status, ids in zip(statuses, pages, strict=True):
            for anime_id in ids:
                status_map[anime_id] = status.value
        return status_map

    async def _user_score(self, anime_id: int, token: str) -> float | None:
        payload = await self._get(f"/anime/{anime_id}", {"fields": "my_list_status"}, token)
        score = safe_float(dig(payload, "my_list_status", "score"))
        if score is None or score <= 0:
            return None
        return score

    async def get_user_scores_for_anime(
        self,
        anime_ids: Sequence[int],
        access_token: str | None = None,
    ) -> dict[int, float]:
        """Personal scores for *anime_ids*; unscored and failed lookups are left out."""
        token = require_token(access_token, self.source, "get_user_scores_for_anime")
        results = await asyncio.gather(
            *(self._user_score(anime_id, token) for anime_id in anime_ids),
            return_exceptions=True,
        )
        scores: dict[int, float] = {}
        for anime_id, result in zip(anime_ids, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, AnimeHubRateLimitError) or not isinstance(result, Exception):
                    raise result
                _logger.debug("MAL score lookup for %d failed", anime_id, exc_info=result)
                continue
            if result is not None:
                scores[anime_id] = result
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
        """PUT ``my_list_status``. MAL scores are whole numbers; 0 clears the score."""
        token = require_token(access_token, self.source, "update_list_entry")
        form = {
            "status": status or None,
            "score": round(score) if score is not None else None,
            "num_watched_episodes": progress,
        }
        url = f"{self._config.mal_base_url}/anime/{anime_id}/my_list_status"
        await self._transport.put_form(url, form, headers=self._headers(token))

    async def delete_list_entry(self, anime_id: int, access_token: str | None = None) -> None:
        token = require_token(access_token, self.source, "delete_list_entry")
        url = f"{self._config.mal_base_url}/anime/{anime_id}/my_list_status"
        await self._transport.delete_json(url, headers=self._headers(token))

