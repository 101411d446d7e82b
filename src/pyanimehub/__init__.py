"""pyanimehub - Async anime metadata aggregation across MAL, AniList and Jikan."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyanimehub")
except PackageNotFoundError:
    __version__ = "0+local"
from pyanimehub.auth import AuthProvider, TokenStore
from pyanimehub.client import AnimeHubClient
from pyanimehub.config import AnimeHubConfig
from pyanimehub.exceptions import (
    AnimeHubApiError,
    AnimeHubAuthenticationError,
    AnimeHubConfigError,
    AnimeHubError,
    AnimeHubRateLimitError,
    AnimeHubTransportError,
)
from pyanimehub.models import (
    AniListListStatus,
    Anime,
    AnimeKey,
    AnimeSource,
    AuthToken,
    MalListStatus,
)
from pyanimehub.service import AnimeService
from pyanimehub.state import (
    ActionResult,
    AnimeStore,
    Collection,
    Err,
    ErrorKind,
    LoadingKey,
    Ok,
    StoreState,
)

__all__ = [
    "__version__",
    "ActionResult",
    "AniListListStatus",
    "Anime",
    "AnimeHubApiError",
    "AnimeHubAuthenticationError",
    "AnimeHubClient",
    "AnimeHubConfig",
    "AnimeHubConfigError",
    "AnimeHubError",
    "AnimeHubRateLimitError",
    "AnimeHubTransportError",
    "AnimeKey",
    "AnimeService",
    "AnimeSource",
    "AnimeStore",
    "AuthProvider",
    "AuthToken",
    "Collection",
    "Err",
    "ErrorKind",
    "LoadingKey",
    "MalListStatus",
    "Ok",
    "StoreState",
    "TokenStore",
]
