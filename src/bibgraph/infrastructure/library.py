"""Library — the single dependency injected into every service.

Owns the relational engine, the read-only :class:`LibraryRepository`
over it, and the lazily initialized :class:`GraphClient` for the
persisted graph mirror.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bibgraph.config.models import GraphBackend
from bibgraph.infrastructure.database.engine import create_db_engine, init_database
from bibgraph.infrastructure.graph.client import GraphClient
from bibgraph.infrastructure.repositories.library import LibraryRepository

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from bibgraph.config.settings import BibgraphSettings
    from bibgraph.infrastructure.graph.store import GraphStore

logger = logging.getLogger(__name__)


class Library:
    """Repository encapsulating relational reads and graph-store access.

    Constructed once per CLI invocation from :class:`BibgraphSettings`
    and stored on the AppContext. Services receive the Library via their
    :class:`BaseService` constructor.
    """

    def __init__(self, settings: BibgraphSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.database_url)
        self._repository = LibraryRepository(self._engine)
        self._graph: GraphClient | None = None
        self._graph_engine: Engine | None = None

    @property
    def settings(self) -> BibgraphSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def repository(self) -> LibraryRepository:
        return self._repository

    @property
    def graph(self) -> GraphClient:
        """The graph-store client. Nothing connects until first use."""
        if self._graph is None:
            self._graph = GraphClient(self._build_store)
        return self._graph

    def _build_store(self) -> GraphStore:
        cfg = self._settings.graph
        if cfg.backend is GraphBackend.AGE:
            from bibgraph.infrastructure.graph.age_store import AgeGraphStore

            logger.debug("Using AGE graph store %s", cfg.name)
            return AgeGraphStore(self._settings.graph_url, cfg.name)

        from bibgraph.infrastructure.graph.sql_store import SqlGraphStore

        engine = self._engine
        if cfg.url and cfg.url != self._settings.database_url:
            self._graph_engine = create_db_engine(cfg.url)
            engine = self._graph_engine
        return SqlGraphStore(engine, cfg.name)

    def close(self) -> None:
        """Release the graph store and dispose of engines."""
        if self._graph is not None:
            self._graph.close()
        if self._graph_engine is not None:
            self._graph_engine.dispose()
        self._engine.dispose()
