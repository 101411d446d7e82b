"""Contracts shared by the provider clients."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from pyanimehub.models.anime import Anime, AnimeSource


@runtime_checkable
class AnimeProviderClient(Protocol):
    """Fetch canonical entities from one metadata source.

    Every operation accepts an optional user access token. Browse
    operations work anonymously; user operations raise
    :class:`pyanimehub.exceptions.AnimeHubAuthenticationError` without one.
    """

    source: AnimeSource

    async def get_trending(self, access_token: str | None = None) -> list[Anime]: ...

    async def get_popular(self, access_token: str | None = None) -> list[Anime]: ...

    async def get_top_rated(self, access_token: str | None = None) -> list[Anime]: ...

    async def get_current_season(self, access_token: str | None = None) -> list[Anime]: ...

    async def search_anime(self, query: str, access_token: str | None = None) -> list[Anime]: ...

    async def get_anime_details(self, anime_id: int, access_token: str | None = None) -> Anime: ...

    async def get_user_watching_anime(self, access_token: str | None = None) -> list[Anime]: ...

    async def get_user_anime_status_map(self, access_token: str | None = None) -> dict[int, str]: ...

    async def get_user_scores_for_anime(
        self,
        anime_ids: Sequence[int],
        access_token: str | None = None,
    ) -> dict[int, float]: ...

    async def update_list_entry(
        self,
        anime_id: int,
        access_token: str | None = None,
        *,
        status: str | None = None,
        score: float | None = None,
        progress: int | None = None,
    ) -> None:
        """Create or update the user's list entry. ``None`` fields are left as they are."""
        ...

    async def delete_list_entry(self, anime_id: int, access_token: str | None = None) -> None: ...


class RequestCache(Protocol):
    """Memoize raw provider payloads by key."""

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any: ...


class PassthroughCache:
    """Cache that never stores anything."""

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        return await fetch()


def cache_key(source: AnimeSource, operation: str, params: Mapping[str, Any], *, personalized: bool) -> str:
    """Stable cache key; personalized payloads never share a key with anonymous ones."""
    rendered = "&".join(f"{name}={params[name]}" for name in sorted(params))
    scope = "user" if personalized else "anon"
    return f"{source.value}:{operation}:{rendered}:{scope}"
