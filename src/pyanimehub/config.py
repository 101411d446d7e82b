"""Client configuration for pyanimehub."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyanimehub._constants import ANILIST_URL, JIKAN_BASE_URL, MAL_BASE_URL
from pyanimehub.exceptions import AnimeHubConfigError
from pyanimehub.models.anime import AnimeSource


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise AnimeHubConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class AnimeHubConfig:
    """Client configuration.

    Parameters
    ----------
    default_source : AnimeSource
        Provider selected when a store is created.
    mal_client_id : str or None
        MAL API client id, sent as ``X-MAL-CLIENT-ID``. Required for public
        MAL endpoints; user endpoints use the bearer token instead.
    mal_base_url : str
        MAL v2 API base URL.
    anilist_url : str
        AniList GraphQL endpoint.
    jikan_base_url : str
        Jikan v4 REST base URL.
    page_size : int
        Entries requested for each browse collection.
    user_list_limit : int
        Entries requested for the "currently watching" list.
    status_map_limit : int
        Entries requested per status when building the user status map.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    api_trace_enabled : bool
        Log (redacted) request/response bodies at DEBUG level.
    """

    default_source: AnimeSource = AnimeSource.MAL
    mal_client_id: str | None = None
    mal_base_url: str = MAL_BASE_URL
    anilist_url: str = ANILIST_URL
    jikan_base_url: str = JIKAN_BASE_URL
    page_size: int = 6
    user_list_limit: int = 50
    status_map_limit: int = 1000
    request_timeout: float = 15.0
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "default_source", AnimeSource(self.default_source))
        except ValueError as exc:
            raise AnimeHubConfigError(f"Unknown source: {self.default_source!r}") from exc
        for name in ("page_size", "user_list_limit", "status_map_limit"):
            if getattr(self, name) < 1:
                raise AnimeHubConfigError(f"{name} must be >= 1")
        if self.request_timeout <= 0:
            raise AnimeHubConfigError("request_timeout must be > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> AnimeHubConfig:
        """Create configuration from environment variables.

        Reads optional ``ANIMEHUB_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        AnimeHubConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ANIMEHUB_DEFAULT_SOURCE": "default_source",
            "ANIMEHUB_MAL_CLIENT_ID": "mal_client_id",
            "ANIMEHUB_MAL_BASE_URL": "mal_base_url",
            "ANIMEHUB_ANILIST_URL": "anilist_url",
            "ANIMEHUB_JIKAN_BASE_URL": "jikan_base_url",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "ANIMEHUB_PAGE_SIZE": ("page_size", int),
            "ANIMEHUB_USER_LIST_LIMIT": ("user_list_limit", int),
            "ANIMEHUB_STATUS_MAP_LIMIT": ("status_map_limit", int),
            "ANIMEHUB_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("ANIMEHUB_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
