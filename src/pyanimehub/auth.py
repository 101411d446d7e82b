"""Per-source access tokens.

The OAuth flows themselves live outside this package; the store only needs
to know whether the user is signed in to a source and which token to send.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from pyanimehub.models.anime import AnimeSource
from pyanimehub.models.token import AuthToken

_logger = logging.getLogger(__name__)


@runtime_checkable
class AuthProvider(Protocol):
    def is_authenticated(self, source: AnimeSource) -> bool: ...

    def get_token(self, source: AnimeSource) -> AuthToken | None: ...


class TokenStore:
    """In-memory :class:`AuthProvider`."""

    def __init__(self, tokens: dict[AnimeSource, AuthToken] | None = None) -> None:
        self._tokens: dict[AnimeSource, AuthToken] = dict(tokens or {})

    def set_token(self, source: AnimeSource | str, token: AuthToken | str) -> AuthToken:
        """Store *token* for *source*; a bare string is wrapped as a bearer token."""
        if isinstance(token, str):
            token = AuthToken(access_token=token)
        source = AnimeSource(source)
        self._tokens[source] = token
        _logger.debug("Stored access token for %s", source.value)
        return token

    def clear(self, source: AnimeSource | str | None = None) -> None:
        if source is None:
            self._tokens.clear()
            return
        self._tokens.pop(AnimeSource(source), None)

    def is_authenticated(self, source: AnimeSource) -> bool:
        return source in self._tokens

    def get_token(self, source: AnimeSource) -> AuthToken | None:
        return self._tokens.get(source)


#: Jikan mirrors MAL's ID space; its user operations run on the MAL account.
_TOKEN_SOURCES: dict[AnimeSource, AnimeSource] = {AnimeSource.JIKAN: AnimeSource.MAL}


def token_source(source: AnimeSource | str) -> AnimeSource:
    """Source whose access token authorizes user operations on *source*."""
    source = AnimeSource(source)
    return _TOKEN_SOURCES.get(source, source)
