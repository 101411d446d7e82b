from __future__ import annotations

from typing import Any

import pytest

from pyanimehub import AnimeHubClient, AnimeHubConfig, AnimeHubError, AnimeService, AuthToken, TokenStore
from pyanimehub._api import JikanClient, MalClient
from pyanimehub.auth import token_source
from pyanimehub.exceptions import AnimeHubConfigError
from pyanimehub.models.anime import AnimeSource


class _UnusedSession:
    def request(self, *_args: Any, **_kwargs: Any) -> Any:
        raise AssertionError("no HTTP expected")

    async def close(self) -> None:
        raise AssertionError("external sessions are not closed")


def test_token_store_wraps_plain_strings() -> None:
    tokens = TokenStore()

    token = tokens.set_token("anilist", "abc")

    assert isinstance(token, AuthToken)
    assert token.token_type == "Bearer"
    assert tokens.is_authenticated(AnimeSource.ANILIST)
    assert not tokens.is_authenticated(AnimeSource.MAL)
    assert tokens.get_token(AnimeSource.ANILIST) == token

    tokens.clear("anilist")
    assert tokens.get_token(AnimeSource.ANILIST) is None


def test_token_source_maps_jikan_to_mal() -> None:
    assert token_source("jikan") is AnimeSource.MAL
    assert token_source(AnimeSource.ANILIST) is AnimeSource.ANILIST
    assert token_source(AnimeSource.MAL) is AnimeSource.MAL


def test_service_routes_to_active_source() -> None:
    config = AnimeHubConfig()
    mal = MalClient(config, transport=None)  # type: ignore[arg-type]
    jikan = JikanClient(config, transport=None)  # type: ignore[arg-type]
    service = AnimeService({AnimeSource.MAL: mal, AnimeSource.JIKAN: jikan})

    assert service.client is mal
    assert service.set_source("jikan") == AnimeSource.JIKAN
    assert service.client is jikan
    assert service.client_for(AnimeSource.MAL) is mal

    with pytest.raises(AnimeHubConfigError):
        service.set_source(AnimeSource.ANILIST)
    assert service.source == AnimeSource.JIKAN


def test_service_needs_a_client_for_the_initial_source() -> None:
    with pytest.raises(AnimeHubConfigError):
        AnimeService({}, source=AnimeSource.MAL)
    with pytest.raises(AnimeHubConfigError):
        AnimeService({AnimeSource.MAL: MalClient(AnimeHubConfig(), None)}, source="anilist")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_client_wires_store_for_configured_source() -> None:
    config = AnimeHubConfig(default_source=AnimeSource.ANILIST)

    async with AnimeHubClient(config, session=_UnusedSession()) as hub:  # type: ignore[arg-type]
        hub.tokens.set_token(AnimeSource.ANILIST, "tok")

        assert hub.store.current_source == AnimeSource.ANILIST
        assert hub.store.get_auth_token() == "tok"
        assert hub.store.get_auth_token(AnimeSource.MAL) is None

    with pytest.raises(AnimeHubError):
        _ = hub.store


def test_client_store_requires_context_manager() -> None:
    hub = AnimeHubClient()

    with pytest.raises(AnimeHubError):
        _ = hub.store
