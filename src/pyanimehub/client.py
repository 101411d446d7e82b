"""High-level async entry point wiring transport, clients and store."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyanimehub._api.anilist import AniListClient
from pyanimehub._api.base import RequestCache
from pyanimehub._api.jikan import JikanClient
from pyanimehub._api.mal import MalClient
from pyanimehub._transport import HttpTransport
from pyanimehub.auth import AuthProvider, TokenStore
from pyanimehub.config import AnimeHubConfig
from pyanimehub.exceptions import AnimeHubError
from pyanimehub.service import AnimeService
from pyanimehub.state.store import AnimeStore

_logger = logging.getLogger(__name__)


class AnimeHubClient:
    """Async client for MAL, AniList and Jikan behind one store.

    Usage::

        async with AnimeHubClient(AnimeHubConfig.from_env()) as hub:
            hub.tokens.set_token("mal", access_token)
            await hub.store.initialize()
            watching = hub.store.get_currently_watching()
    """

    def __init__(
        self,
        config: AnimeHubConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        auth: AuthProvider | None = None,
        cache: RequestCache | None = None,
    ) -> None:
        self._config = config or AnimeHubConfig()
        self._external_session = session is not None
        self._http_session = session
        self._auth: AuthProvider = auth if auth is not None else TokenStore()
        self._cache = cache
        self._store: AnimeStore | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AnimeHubClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        transport = HttpTransport(
            self._http_session,
            timeout=self._config.request_timeout,
            trace=self._config.api_trace_enabled,
        )
        mal = MalClient(self._config, transport, cache=self._cache)
        service = AnimeService(
            {
                mal.source: mal,
                AniListClient.source: AniListClient(self._config, transport, cache=self._cache),
                JikanClient.source: JikanClient(self._config, transport, cache=self._cache, user_delegate=mal),
            },
            source=self._config.default_source,
        )
        self._store = AnimeStore(service, auth=self._auth)
        _logger.debug("AnimeHubClient ready (source=%s)", service.source.value)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._store = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> AnimeHubConfig:
        return self._config

    @property
    def auth(self) -> AuthProvider:
        return self._auth

    @property
    def tokens(self) -> TokenStore:
        """The built-in token store (only when no custom ``auth`` was given)."""
        if not isinstance(self._auth, TokenStore):
            raise AnimeHubError("A custom AuthProvider is in use; manage tokens there")
        return self._auth

    @property
    def store(self) -> AnimeStore:
        if self._store is None:
            raise AnimeHubError("Client not initialized. Use 'async with AnimeHubClient(...) as hub:'")
        return self._store
