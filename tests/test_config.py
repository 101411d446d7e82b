from __future__ import annotations

import pytest

from pyanimehub.config import AnimeHubConfig
from pyanimehub.exceptions import AnimeHubConfigError
from pyanimehub.models.anime import AnimeSource


def test_defaults() -> None:
    config = AnimeHubConfig()

    assert config.default_source == AnimeSource.MAL
    assert config.page_size == 6
    assert config.user_list_limit == 50
    assert config.mal_client_id is None
    assert config.api_trace_enabled is False


def test_from_env_reads_animehub_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANIMEHUB_DEFAULT_SOURCE", "anilist")
    monkeypatch.setenv("ANIMEHUB_MAL_CLIENT_ID", "client-123")
    monkeypatch.setenv("ANIMEHUB_PAGE_SIZE", "12")
    monkeypatch.setenv("ANIMEHUB_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("ANIMEHUB_API_TRACE_ENABLED", "yes")

    config = AnimeHubConfig.from_env()

    assert config.default_source == AnimeSource.ANILIST
    assert config.mal_client_id == "client-123"
    assert config.page_size == 12
    assert config.request_timeout == 2.5
    assert config.api_trace_enabled is True


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANIMEHUB_PAGE_SIZE", "12")
    monkeypatch.setenv("ANIMEHUB_DEFAULT_SOURCE", "anilist")

    config = AnimeHubConfig.from_env(page_size=3, default_source=AnimeSource.JIKAN)

    assert config.page_size == 3
    assert config.default_source == AnimeSource.JIKAN


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANIMEHUB_PAGE_SIZE", "lots")

    with pytest.raises(AnimeHubConfigError, match="ANIMEHUB_PAGE_SIZE"):
        AnimeHubConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [{"default_source": "kitsu"}, {"page_size": 0}, {"request_timeout": 0}],
)
def test_invalid_values_raise_config_error(kwargs: dict[str, object]) -> None:
    with pytest.raises(AnimeHubConfigError):
        AnimeHubConfig(**kwargs)  # type: ignore[arg-type]
