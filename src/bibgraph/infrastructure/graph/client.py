"""GraphClient — explicit, lazily initialized handle on the graph store.

The store is created and initialized on first use, never at import time.
An initialization failure is logged and leaves the client
``UNAVAILABLE``; callers check :meth:`GraphClient.ensure_ready` and
report the store as unavailable instead of failing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from bibgraph.infrastructure.graph.store import GraphStore

logger = logging.getLogger(__name__)


class StoreStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class GraphUnavailableError(RuntimeError):
    """The persisted graph store could not be initialized."""


class GraphClient:
    """Owns one :class:`GraphStore` and its readiness state."""

    def __init__(self, factory: Callable[[], GraphStore]) -> None:
        self._factory = factory
        self._store: GraphStore | None = None
        self._status = StoreStatus.PENDING
        self._error: str | None = None

    @property
    def status(self) -> StoreStatus:
        return self._status

    @property
    def error(self) -> str | None:
        """Why initialization failed, when it did."""
        return self._error

    def ensure_ready(self) -> bool:
        """Initialize the store on first call; report whether it is usable."""
        if self._status is StoreStatus.PENDING:
            try:
                store = self._factory()
                store.initialize()
            except Exception as exc:
                logger.warning("Graph store unavailable: %s", exc, exc_info=True)
                self._status = StoreStatus.UNAVAILABLE
                self._error = str(exc) or type(exc).__name__
            else:
                self._store = store
                self._status = StoreStatus.READY
        return self._status is StoreStatus.READY

    @property
    def store(self) -> GraphStore:
        """The ready store. Raises :class:`GraphUnavailableError` otherwise."""
        if not self.ensure_ready() or self._store is None:
            raise GraphUnavailableError(self._error or "graph store unavailable")
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
        self._store = None
        if self._status is StoreStatus.READY:
            self._status = StoreStatus.PENDING
