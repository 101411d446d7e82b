"""Authentication token model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuthToken(BaseModel):
    """OAuth token issued by a provider.

    Issuing and refreshing tokens happens outside this library; the store
    only reads ``access_token`` through an :class:`pyanimehub.auth.AuthProvider`.

    Parameters
    ----------
    access_token : str
        Bearer token sent with user endpoints.
    token_type : str
        Token type, normally ``"Bearer"``.
    refresh_token : str or None
        Refresh token, if the provider issued one.
    expires_in : int or None
        Lifetime in seconds as reported by the provider.
    raw : dict
        Full token response for access to additional fields.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    refresh_token: str | None = None
    expires_in: int | None = None
    raw: dict[str, Any] = Field(default_factory=dict)
