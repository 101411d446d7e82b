"""Unified entity store, merge engine and mutation pipeline."""

from pyanimehub.state.result import ActionResult, Err, ErrorKind, Ok
from pyanimehub.state.snapshot import ALL_COLLECTIONS, BROWSE_COLLECTIONS, Collection, LoadingKey, StoreState
from pyanimehub.state.store import AnimeStore

__all__ = [
    "ALL_COLLECTIONS",
    "BROWSE_COLLECTIONS",
    "ActionResult",
    "AnimeStore",
    "Collection",
    "Err",
    "ErrorKind",
    "LoadingKey",
    "Ok",
    "StoreState",
]
