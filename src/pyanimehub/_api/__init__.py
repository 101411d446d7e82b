"""Provider clients. Internal; use :class:`pyanimehub.client.AnimeHubClient`."""

from pyanimehub._api.anilist import AniListClient
from pyanimehub._api.base import AnimeProviderClient, PassthroughCache, RequestCache
from pyanimehub._api.jikan import JikanClient
from pyanimehub._api.mal import MalClient

__all__ = [
    "AniListClient",
    "AnimeProviderClient",
    "JikanClient",
    "MalClient",
    "PassthroughCache",
    "RequestCache",
]
