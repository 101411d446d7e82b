"""Unified entity store.

The only component allowed to write :class:`StoreState`. Every write
replaces the snapshot and notifies subscribers with ``(new, old)``.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

from pyanimehub._api._common import require_token
from pyanimehub._api.base import AnimeProviderClient
from pyanimehub.auth import AuthProvider, token_source
from pyanimehub.models.anime import Anime, AnimeKey, AnimeSource
from pyanimehub.models.status import convert_status, is_watching_status
from pyanimehub.service import AnimeService
from pyanimehub.state import merge
from pyanimehub.state.mutations import plan_removal, plan_score_update, plan_status_update, with_entries
from pyanimehub.state.result import ActionResult, Err, Ok
from pyanimehub.state.snapshot import ALL_COLLECTIONS, BROWSE_COLLECTIONS, Collection, LoadingKey, StoreState

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[StoreState, StoreState], None]
_Fetch = Callable[[AnimeProviderClient, str | None], Awaitable[list[Anime]]]


class AnimeStore:
    """Session-wide store of normalized anime entities and user overlays.

    Collections are replaced wholesale by fetch actions and updated in
    place (copy-on-write) by the mutation actions. The two overlay maps
    survive collection refreshes and source switches; entries are keyed by
    :class:`AnimeKey` so sources never collide.
    """

    def __init__(
        self,
        service: AnimeService,
        *,
        auth: AuthProvider | None = None,
    ) -> None:
        self._service = service
        self._auth = auth
        self._state = StoreState(current_source=service.source)
        self._listeners: list[Listener] = []
        # Bumped on every source switch; results of fetches started under an
        # older generation are dropped.
        self._generation = 0

    # ------------------------------------------------------------------
    # Snapshot access and change notification
    # ------------------------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def current_source(self) -> AnimeSource:
        return self._state.current_source

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener(new, old)* after every write. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set(self, **changes: Any) -> None:
        if not changes:
            return
        old = self._state
        new = dataclasses.replace(old, **changes)
        self._state = new
        for listener in list(self._listeners):
            try:
                listener(new, old)
            except Exception:
                _logger.debug("Store listener failed", exc_info=True)

    def _set_loading(self, key: LoadingKey, value: bool) -> None:
        loading = self._state.loading
        if loading.get(key) is value:
            return
        updated = dict(loading)
        updated[key] = value
        self._set(loading=MappingProxyType(updated))

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def get_auth_token(self, source: AnimeSource | None = None) -> str | None:
        """Access token for *source* (default: the active one), or ``None``.

        Jikan has no accounts of its own; it answers with the MAL token.
        """
        account = token_source(source or self._state.current_source)
        if self._auth is None or not self._auth.is_authenticated(account):
            return None
        token = self._auth.get_token(account)
        return token.access_token if token is not None else None

    # ------------------------------------------------------------------
    # Overlay merge bound to the current maps
    # ------------------------------------------------------------------

    def merge_user_scores(self, entities: Iterable[Anime]) -> tuple[Anime, ...]:
        return merge.merge_user_scores(entities, self._state.user_anime_scores)

    def merge_user_status(self, entities: Iterable[Anime]) -> tuple[Anime, ...]:
        return merge.merge_user_status(entities, self._state.user_anime_status)

    def apply_user_data(self, entities: Iterable[Anime]) -> tuple[Anime, ...]:
        return merge.apply_user_data(entities, self._state.user_anime_scores, self._state.user_anime_status)

    def _commit_overlays(self, base: StoreState | None = None, **overlays: Mapping[AnimeKey, Any]) -> None:
        """Write overlay maps and re-apply them to every collection in one write.

        *base* is a planned snapshot to start from instead of the current one.
        """
        target = dataclasses.replace(base if base is not None else self._state, **overlays)
        changes: dict[str, Any] = {
            name: getattr(target, name)
            for name in ("user_anime_scores", "user_anime_status")
            if getattr(target, name) is not getattr(self._state, name)
        }
        for name in ALL_COLLECTIONS:
            items = target.collection(name)
            merged = merge.reuse_if_unchanged(
                items,
                merge.apply_user_data(items, target.user_anime_scores, target.user_anime_status),
            )
            if merged is not self._state.collection(name):
                changes[name.value] = merged
        self._set(**changes)

    def _sync_overlay(
        self,
        name: str,
        entries: Mapping[AnimeKey, Any],
        scope: Iterable[AnimeKey],
        unset: Callable[[StoreState, AnimeKey], dict[str, Any] | None],
    ) -> None:
        """Make *entries* the overlay *name* for every key in *scope*.

        Keys in *scope* that *entries* lacks are unset through *unset* so the
        entities holding them lose the stale value too.
        """
        state = self._state
        for key in scope:
            if key in entries or key not in getattr(state, name):
                continue
            planned = unset(state, key)
            if planned is not None:
                state = dataclasses.replace(state, **planned)
        self._commit_overlays(state, **{name: with_entries(getattr(state, name), entries)})

    # ------------------------------------------------------------------
    # Supervisors
    # ------------------------------------------------------------------

    async def with_loading(self, key: LoadingKey, action: Callable[[], Awaitable[T]]) -> ActionResult[T]:
        """Run *action* with ``loading[key]`` raised.

        The flag is lowered on every exit path. Failures are logged once and
        returned as :class:`Err`; they never propagate to the caller.
        """
        self._set_loading(key, True)
        try:
            value = await action()
        except Exception as exc:
            _logger.error("Store action %s failed: %s", key.value, exc, exc_info=True)
            return Err.from_exception(exc)
        finally:
            self._set_loading(key, False)
        return Ok(value)

    def set_source(self, source: AnimeSource | str) -> AnimeSource:
        """Switch the active source and clear every collection.

        Overlay maps are kept. Fetches still in flight for the previous
        source are discarded when they complete.
        """
        resolved = self._service.set_source(source)
        self._generation += 1
        self._set(current_source=resolved, **{name.value: () for name in ALL_COLLECTIONS})
        _logger.debug("Active source is now %s (generation %d)", resolved.value, self._generation)
        return resolved

    # ------------------------------------------------------------------
    # Fetch actions
    # ------------------------------------------------------------------

    async def _fetch_collection(
        self,
        key: LoadingKey,
        collection: Collection,
        fetch: _Fetch,
    ) -> ActionResult[tuple[Anime, ...]]:
        generation = self._generation
        source = self._state.current_source
        client = self._service.client_for(source)
        token = self.get_auth_token(source)

        async def _run() -> tuple[Anime, ...]:
            entities = self.apply_user_data(await fetch(client, token))
            if self._is_stale(generation):
                _logger.debug("Discarding %s fetched for %s after a source switch", collection.value, source.value)
                return entities
            self._set(**{collection.value: entities})
            return entities

        return await self.with_loading(key, _run)

    async def fetch_trending(self) -> ActionResult[tuple[Anime, ...]]:
        return await self._fetch_collection(
            LoadingKey.TRENDING, Collection.TRENDING, lambda client, token: client.get_trending(token)
        )

    async def fetch_popular(self) -> ActionResult[tuple[Anime, ...]]:
        return await self._fetch_collection(
            LoadingKey.POPULAR, Collection.POPULAR, lambda client, token: client.get_popular(token)
        )

    async def fetch_top_rated(self) -> ActionResult[tuple[Anime, ...]]:
        return await self._fetch_collection(
            LoadingKey.TOP_RATED, Collection.TOP_RATED, lambda client, token: client.get_top_rated(token)
        )

    async def fetch_current_season(self) -> ActionResult[tuple[Anime, ...]]:
        return await self._fetch_collection(
            LoadingKey.CURRENT_SEASON,
            Collection.CURRENT_SEASON,
            lambda client, token: client.get_current_season(token),
        )

    async def search_anime(self, query: str) -> ActionResult[tuple[Anime, ...]]:
        """Replace the search results; a blank *query* just clears them."""
        query = query.strip()
        if not query:
            self.clear_search()
            return Ok(())
        return await self._fetch_collection(
            LoadingKey.SEARCH,
            Collection.SEARCH_RESULTS,
            lambda client, token: client.search_anime(query, token),
        )

    def clear_search(self) -> None:
        if self._state.search_results:
            self._set(search_results=())

    async def fetch_anime_details(self, anime_id: int) -> ActionResult[Anime]:
        """Full record for *anime_id* from the active source, overlays applied.

        The record is returned, not stored.
        """
        source = self._state.current_source
        client = self._service.client_for(source)
        token = self.get_auth_token(source)

        async def _run() -> Anime:
            anime = await client.get_anime_details(anime_id, token)
            (merged,) = self.apply_user_data((anime,))
            return merged

        return await self.with_loading(LoadingKey.DETAILS, _run)

    # ------------------------------------------------------------------
    # User data actions (no-ops when signed out)
    # ------------------------------------------------------------------

    def _known_ids(self, source: AnimeSource) -> list[int]:
        ids = {anime.id for name in ALL_COLLECTIONS for anime in self._state.collection(name) if anime.source == source}
        return sorted(ids)

    async def refresh_user_scores(self) -> ActionResult[Mapping[AnimeKey, float]]:
        """Fetch personal scores for every entity currently held."""
        source = self._state.current_source
        token = self.get_auth_token(source)
        if token is None:
            return Ok(self._state.user_anime_scores)
        generation = self._generation
        client = self._service.client_for(source)

        async def _run() -> Mapping[AnimeKey, float]:
            ids = self._known_ids(source)
            if not ids:
                return self._state.user_anime_scores
            fetched = await client.get_user_scores_for_anime(ids, token)
            if self._is_stale(generation):
                _logger.debug("Discarding user scores fetched for %s after a source switch", source.value)
                return self._state.user_anime_scores
            entries = {AnimeKey(source, anime_id): float(score) for anime_id, score in fetched.items()}
            scope = [AnimeKey(source, anime_id) for anime_id in ids]
            self._sync_overlay(
                "user_anime_scores", entries, scope, lambda state, key: plan_score_update(state, key, None)
            )
            return self._state.user_anime_scores

        return await self.with_loading(LoadingKey.USER_SCORES, _run)

    async def refresh_user_status(self) -> ActionResult[Mapping[AnimeKey, str]]:
        """Fetch the user's full list status map for the active source."""
        source = self._state.current_source
        token = self.get_auth_token(source)
        if token is None:
            return Ok(self._state.user_anime_status)
        generation = self._generation
        client = self._service.client_for(source)

        async def _run() -> Mapping[AnimeKey, str]:
            fetched = await client.get_user_anime_status_map(token)
            if self._is_stale(generation):
                _logger.debug("Discarding user status map fetched for %s after a source switch", source.value)
                return self._state.user_anime_status
            entries = {AnimeKey(source, anime_id): status for anime_id, status in fetched.items() if status}
            # the fetched map is the whole list for this source
            scope = [key for key in self._state.user_anime_status if key.source == source]
            self._sync_overlay(
                "user_anime_status", entries, scope, lambda state, key: plan_status_update(state, key, "")
            )
            return self._state.user_anime_status

        return await self.with_loading(LoadingKey.USER_STATUS, _run)

    async def refresh_user_data(self) -> tuple[ActionResult[Any], ActionResult[Any]]:
        """Refresh both overlay maps concurrently."""
        scores, statuses = await asyncio.gather(self.refresh_user_scores(), self.refresh_user_status())
        return scores, statuses

    async def fetch_currently_watching(self) -> ActionResult[tuple[Anime, ...]]:
        if self.get_auth_token() is None:
            return Ok(self._state.currently_watching)
        return await self._fetch_collection(
            LoadingKey.CURRENTLY_WATCHING,
            Collection.CURRENTLY_WATCHING,
            lambda client, token: client.get_user_watching_anime(token),
        )

    async def initialize(self) -> dict[LoadingKey, ActionResult[Any]]:
        """Load the browse collections, then the user data.

        User data is requested only after all four browse fetches have
        settled, so the score refresh sees every entity they produced.
        """
        trending, popular, top_rated, season = await asyncio.gather(
            self.fetch_trending(),
            self.fetch_popular(),
            self.fetch_top_rated(),
            self.fetch_current_season(),
        )
        scores, statuses, watching = await asyncio.gather(
            self.refresh_user_scores(),
            self.refresh_user_status(),
            self.fetch_currently_watching(),
        )
        return {
            LoadingKey.TRENDING: trending,
            LoadingKey.POPULAR: popular,
            LoadingKey.TOP_RATED: top_rated,
            LoadingKey.CURRENT_SEASON: season,
            LoadingKey.USER_SCORES: scores,
            LoadingKey.USER_STATUS: statuses,
            LoadingKey.CURRENTLY_WATCHING: watching,
        }

    # ------------------------------------------------------------------
    # Mutations (local)
    # ------------------------------------------------------------------

    def update_anime_status(self, anime_id: int, source: AnimeSource | str, new_status: str) -> bool:
        """Apply a list status change locally. ``""`` removes the status.

        Returns ``True`` when the store changed.
        """
        changes = plan_status_update(self._state, AnimeKey(AnimeSource(source), anime_id), new_status)
        if changes is None:
            return False
        self._set(**changes)
        return True

    def update_anime_score(self, anime_id: int, source: AnimeSource | str, new_score: float | None) -> bool:
        changes = plan_score_update(self._state, AnimeKey(AnimeSource(source), anime_id), new_score)
        if changes is None:
            return False
        self._set(**changes)
        return True

    def remove_anime_from_store(self, anime_id: int, source: AnimeSource | str) -> bool:
        """Delete the entity from every collection and both overlays."""
        changes = plan_removal(self._state, AnimeKey(AnimeSource(source), anime_id))
        if changes is None:
            return False
        self._set(**changes)
        return True

    # ------------------------------------------------------------------
    # Mutations written through to the provider list
    # ------------------------------------------------------------------

    def _list_writer(self, source: AnimeSource, operation: str) -> tuple[AnimeProviderClient, str]:
        client = self._service.client_for(source)
        return client, require_token(self.get_auth_token(source), source, operation)

    async def save_anime_status(
        self,
        anime_id: int,
        source: AnimeSource | str,
        new_status: str,
    ) -> ActionResult[bool]:
        """Write *new_status* to the user's list on *source*, then to the store.

        Either vocabulary is accepted and translated for *source*. The store
        is only touched once the provider accepted the change; use
        :meth:`delete_anime_from_list` to drop an entry.
        """
        source = AnimeSource(source)
        other = AnimeSource.MAL if source == AnimeSource.ANILIST else AnimeSource.ANILIST
        status = convert_status(new_status, other, source)

        async def _run() -> bool:
            if not status:
                raise ValueError("a list status is required")
            client, token = self._list_writer(source, "save_anime_status")
            await client.update_list_entry(anime_id, token, status=status)
            return self.update_anime_status(anime_id, source, status)

        return await self.with_loading(LoadingKey.LIST_UPDATE, _run)

    async def save_anime_score(
        self,
        anime_id: int,
        source: AnimeSource | str,
        new_score: float | None,
    ) -> ActionResult[bool]:
        """Write a personal score (``None`` clears it) to *source*, then to the store."""
        source = AnimeSource(source)

        async def _run() -> bool:
            client, token = self._list_writer(source, "save_anime_score")
            await client.update_list_entry(anime_id, token, score=new_score if new_score is not None else 0)
            return self.update_anime_score(anime_id, source, new_score)

        return await self.with_loading(LoadingKey.LIST_UPDATE, _run)

    async def delete_anime_from_list(self, anime_id: int, source: AnimeSource | str) -> ActionResult[bool]:
        """Delete the entry from the user's list on *source*, then from the store."""
        source = AnimeSource(source)

        async def _run() -> bool:
            client, token = self._list_writer(source, "delete_anime_from_list")
            await client.delete_list_entry(anime_id, token)
            return self.remove_anime_from_store(anime_id, source)

        return await self.with_loading(LoadingKey.LIST_UPDATE, _run)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def get_currently_watching(self) -> tuple[Anime, ...]:
        """Entities in the browse collections whose status means "watching".

        The first occurrence of each key wins.
        """
        seen: set[AnimeKey] = set()
        watching: list[Anime] = []
        for name in BROWSE_COLLECTIONS:
            for anime in self._state.collection(name):
                if anime.key in seen or not is_watching_status(anime.user_status):
                    continue
                seen.add(anime.key)
                watching.append(anime)
        return tuple(watching)
