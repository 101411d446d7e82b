"""Active-source selection over the provider clients."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pyanimehub._api.base import AnimeProviderClient
from pyanimehub.exceptions import AnimeHubConfigError
from pyanimehub.models.anime import AnimeSource

_logger = logging.getLogger(__name__)


class AnimeService:
    """Holds one client per source and routes calls to the active one."""

    def __init__(
        self,
        clients: Mapping[AnimeSource, AnimeProviderClient],
        source: AnimeSource | str = AnimeSource.MAL,
    ) -> None:
        if not clients:
            raise AnimeHubConfigError("AnimeService needs at least one provider client")
        self._clients: dict[AnimeSource, AnimeProviderClient] = dict(clients)
        self._source = self._validate(source)

    def _validate(self, source: AnimeSource | str) -> AnimeSource:
        try:
            resolved = AnimeSource(source)
        except ValueError as exc:
            raise AnimeHubConfigError(f"Unknown anime source: {source!r}") from exc
        if resolved not in self._clients:
            raise AnimeHubConfigError(f"No client configured for source {resolved.value!r}")
        return resolved

    @property
    def source(self) -> AnimeSource:
        return self._source

    @property
    def sources(self) -> tuple[AnimeSource, ...]:
        return tuple(self._clients)

    @property
    def client(self) -> AnimeProviderClient:
        return self._clients[self._source]

    def client_for(self, source: AnimeSource | str) -> AnimeProviderClient:
        return self._clients[self._validate(source)]

    def set_source(self, source: AnimeSource | str) -> AnimeSource:
        resolved = self._validate(source)
        if resolved != self._source:
            _logger.debug("Switching active source %s -> %s", self._source.value, resolved.value)
        self._source = resolved
        return resolved
