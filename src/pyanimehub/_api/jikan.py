"""Jikan v4 REST client (public MAL mirror).

Jikan has no user state. Because it shares MAL's ID space, user
operations are delegated to a :class:`MalClient` when one is supplied and
answer empty otherwise.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pyanimehub._api.base import PassthroughCache, RequestCache, cache_key
from pyanimehub._api.mal import MalClient
from pyanimehub._transport import Transport
from pyanimehub.config import AnimeHubConfig
from pyanimehub.exceptions import AnimeHubApiError
from pyanimehub.ingestion.normalize import as_list, dig
from pyanimehub.ingestion.normalizers import JikanNormalizer
from pyanimehub.models.anime import Anime, AnimeSource

_logger = logging.getLogger(__name__)


class JikanClient:
    source = AnimeSource.JIKAN

    def __init__(
        self,
        config: AnimeHubConfig,
        transport: Transport,
        *,
        cache: RequestCache | None = None,
        user_delegate: MalClient | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._cache = cache or PassthroughCache()
        self._user_delegate = user_delegate
        self._normalizer = JikanNormalizer()

    async def _get(self, path: str, params: dict[str, Any], *, cached: bool = True) -> Any:
        url = f"{self._config.jikan_base_url}{path}"

        async def _fetch() -> Any:
            return await self._transport.get_json(url, params=params)

        if not cached:
            return await _fetch()
        return await self._cache.get_or_fetch(cache_key(self.source, path, params, personalized=False), _fetch)

    async def _page(self, path: str, **params: Any) -> list[Anime]:
        payload = await self._get(path, {**params, "limit": self._config.page_size}, cached="q" not in params)
        return self._normalizer.normalize_many(as_list(dig(payload, "data")))

    # ------------------------------------------------------------------
    # Browse (the access token is accepted for interface parity and unused)
    # ------------------------------------------------------------------

    async def get_trending(self, access_token: str | None = None) -> list[Anime]:
        return await self._page("/top/anime", filter="airing")

    async def get_popular(self, access_token: str | None = None) -> list[Anime]:
        return await self._page("/top/anime", filter="bypopularity")

    async def get_top_rated(self, access_token: str | None = None) -> list[Anime]:
        return await self._page("/top/anime")

    async def get_current_season(self, access_token: str | None = None) -> list[Anime]:
        return await self._page("/seasons/now")

    async def search_anime(self, query: str, access_token: str | None = None) -> list[Anime]:
        return await self._page("/anime", q=query)

    async def get_anime_details(self, anime_id: int, access_token: str | None = None) -> Anime:
        payload = await self._get(f"/anime/{anime_id}/full", {})
        data = dig(payload, "data")
        if not isinstance(data, dict):
            raise AnimeHubApiError(f"Jikan has no anime {anime_id}", source=self.source.value, operation="details")
        return self._normalizer.normalize(data, include_related=True)

    # ------------------------------------------------------------------
    # User (delegated)
    # ------------------------------------------------------------------

    async def get_user_watching_anime(self, access_token: str | None = None) -> list[Anime]:
        if self._user_delegate is None:
            _logger.debug("Jikan has no user lists and no MAL delegate is configured")
            return []
        watching = await self._user_delegate.get_user_watching_anime(access_token)
        # Same IDs, re-keyed so they live alongside Jikan browse results.
        return [anime.model_copy(update={"source": self.source}) for anime in watching]

    async def get_user_anime_status_map(self, access_token: str | None = None) -> dict[int, str]:
        if self._user_delegate is None:
            return {}
        return await self._user_delegate.get_user_anime_status_map(access_token)

    async def get_user_scores_for_anime(
        self,
        anime_ids: Sequence[int],
        access_token: str | None = None,
    ) -> dict[int, float]:
        if self._user_delegate is None:
            return {}
        return await self._user_delegate.get_user_scores_for_anime(anime_ids, access_token)

    def _writer(self, operation: str) -> MalClient:
        if self._user_delegate is None:
            raise AnimeHubApiError(
                "Jikan is read-only and no MAL delegate is configured",
                source=self.source.value,
                operation=operation,
            )
        return self._user_delegate

    async def update_list_entry(
        self,
        anime_id: int,
        access_token: str | None = None,
        *,
        status: str | None = None,
        score: float | None = None,
        progress: int | None = None,
    ) -> None:
        writer = self._writer("update_list_entry")
        await writer.update_list_entry(anime_id, access_token, status=status, score=score, progress=progress)

    async def delete_list_entry(self, anime_id: int, access_token: str | None = None) -> None:
        await self._writer("delete_list_entry").delete_list_entry(anime_id, access_token)
