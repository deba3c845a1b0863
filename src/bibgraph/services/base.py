"""BaseService — foundation for all bibgraph services.

Every service receives a :class:`Library` at construction time. The
Library provides the relational repository and the graph-store client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bibgraph.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from bibgraph.infrastructure.graph.store import GraphStore
    from bibgraph.infrastructure.library import Library

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class TraversalService(BaseService):
            def citation_network(self, entry_id: str) -> ServiceResult:
                store = self._graph_store()
                ...
    """

    def __init__(self, library: Library) -> None:
        self._library = library

    def _graph_store(self) -> GraphStore | None:
        """The persisted graph store, or None when it is unavailable."""
        client = self._library.graph
        if not client.ensure_ready():
            return None
        return client.store

    def _unavailable(self, op: str) -> ServiceResult:
        reason = self._library.graph.error or "graph store unavailable"
        logger.debug("%s skipped: %s", op, reason)
        return ServiceResult.failure(
            op,
            ErrorCode.GRAPH_UNAVAILABLE,
            f"Graph store is unavailable: {reason}",
        )
