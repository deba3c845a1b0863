"""Synchronization of the persisted graph mirror.

:class:`GraphSynchronizer` holds one merge primitive per vertex and
relationship kind; every call is idempotent. :class:`SyncService`
orchestrates them and is best-effort: store failures come back as
``SYNC_FAILED`` / ``GRAPH_UNAVAILABLE`` results, never as exceptions.

Vertex keys derive from entry id and normalized author/topic names, not
from the project, so projects sharing an author converge on one vertex.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError

from bibgraph.domain.keys import author_vertex_key, normalize_name, topic_vertex_key
from bibgraph.domain.types import EntryRecord
from bibgraph.infrastructure.graph.store import (
    GraphStore,
    RelType,
    VertexLabel,
    VertexRef,
    entry_ref,
)
from bibgraph.services.base import BaseService
from bibgraph.services.result import ErrorCode, ServiceResult
from bibgraph.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

PROJECT_IDS = "project_ids"


class GraphSynchronizer:
    """Merge primitives over a :class:`GraphStore`.

    Links are silent no-ops (returning False) when an endpoint vertex
    does not exist yet; create vertices first.
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    def merge_entry(self, entry: EntryRecord, project_id: str | None = None) -> None:
        properties = {
            "title": entry.title,
            "type": entry.entry_type,
            "year": entry.year,
            "authors": ", ".join(entry.author_names),
        }
        add_to_sets = {PROJECT_IDS: project_id} if project_id else None
        self._store.merge_vertex(entry_ref(entry.id), properties, add_to_sets=add_to_sets)

    def merge_author(self, name: str) -> str:
        """Create-or-match the Author vertex for *name*; return its key."""
        key = author_vertex_key(name)
        self._store.merge_vertex(VertexRef(VertexLabel.AUTHOR, key), {"name": name.strip()})
        return key

    def merge_topic(self, name: str) -> str:
        """Create-or-match the Topic vertex for *name*; return its key."""
        key = topic_vertex_key(name)
        self._store.merge_vertex(VertexRef(VertexLabel.TOPIC, key), {"name": name.strip()})
        return key

    def link_author(self, entry_id: str, author_key: str) -> bool:
        return self._store.merge_edge(
            RelType.AUTHORED_BY,
            entry_ref(entry_id),
            VertexRef(VertexLabel.AUTHOR, author_key),
        )

    def link_topic(self, entry_id: str, topic_key: str) -> bool:
        return self._store.merge_edge(
            RelType.HAS_TOPIC,
            entry_ref(entry_id),
            VertexRef(VertexLabel.TOPIC, topic_key),
        )

    def add_citation(self, source_id: str, target_id: str) -> bool:
        return self._store.merge_edge(RelType.CITES, entry_ref(source_id), entry_ref(target_id))

    def add_user_link(self, source_id: str, target_id: str, link_type: str, note: str = "") -> bool:
        """One link per (source, target, type); the note is overwritten."""
        return self._store.merge_edge(
            RelType.USER_LINK,
            entry_ref(source_id),
            entry_ref(target_id),
            identity={"type": link_type},
            properties={"notes": note},
        )


class SyncService(BaseService):
    """Best-effort orchestration of graph-mirror writes."""

    @traced
    def initialize(self) -> ServiceResult:
        """Enable the store and create the named graph (idempotent)."""
        op = "init_graph"
        if self._graph_store() is None:
            return self._unavailable(op)
        settings = self._library.settings
        return ServiceResult(
            ok=True,
            op=op,
            data={"backend": str(settings.graph.backend), "graph": settings.graph.name},
        )

    @traced
    def resync_project(self, project_ref: str, owner_id: str) -> ServiceResult:
        """Re-assert every entry in a project plus all its author/topic links.

        A full resync, not incremental; safe to repeat.
        """
        op = "resync_project"
        store = self._graph_store()
        if store is None:
            return self._unavailable(op)

        repo = self._library.repository
        project = repo.resolve_project(project_ref, owner_id)
        if project is None:
            return ServiceResult.failure(
                op, ErrorCode.NOT_FOUND, f"No project '{project_ref}' in this library"
            )
        project_id = str(project["id"])

        sync = GraphSynchronizer(store)
        # authors/topics: distinct vertices asserted; links: edges asserted
        counts = {"entries": 0, "authors": 0, "topics": 0, "links": 0}
        author_keys: set[str] = set()
        topic_keys: set[str] = set()
        warnings: list[str] = []
        try:
            with trace_span("load_scope"):
                records = repo.get_entries(repo.scope_entry_ids(project_id, owner_id), owner_id)
                associations = repo.get_tag_associations([r.id for r in records])

            topics_by_entry: dict[str, list[str]] = {}
            for assoc in associations:
                topics_by_entry.setdefault(assoc.entry_id, []).append(assoc.tag_name)

            with trace_span("merge") as span:
                for record in records:
                    sync.merge_entry(record, project_id)
                    counts["entries"] += 1
                    for name in dict.fromkeys(record.author_names):
                        if not normalize_name(name):
                            continue
                        key = sync.merge_author(name)
                        author_keys.add(key)
                        counts["links"] += int(sync.link_author(record.id, key))
                    for name in dict.fromkeys(topics_by_entry.get(record.id, [])):
                        if not normalize_name(name):
                            continue
                        key = sync.merge_topic(name)
                        topic_keys.add(key)
                        counts["links"] += int(sync.link_topic(record.id, key))
                counts["authors"] = len(author_keys)
                counts["topics"] = len(topic_keys)
                if span:
                    span.annotate(entries=counts["entries"], links=counts["links"])
        except SQLAlchemyError as exc:
            logger.warning("Resync of project %s failed: %s", project_id, exc, exc_info=True)
            return ServiceResult.failure(
                op,
                ErrorCode.SYNC_FAILED,
                f"Graph sync failed: {exc}",
                detail={
                    "project_id": project_id,
                    **counts,
                    "authors": len(author_keys),
                    "topics": len(topic_keys),
                },
            )

        if not records:
            warnings.append(f"Project '{project_ref}' has no entries to sync")
        return ServiceResult(
            ok=True,
            op=op,
            data={"project_id": project_id, **counts},
            warnings=warnings,
        )

    @traced
    def cite(self, source_id: str, target_id: str) -> ServiceResult:
        """Record that *source_id* cites *target_id*."""
        op = "add_citation"
        return self._link(op, lambda sync: sync.add_citation(source_id, target_id), source_id, target_id)

    @traced
    def link(self, source_id: str, target_id: str, link_type: str, note: str = "") -> ServiceResult:
        """Record a typed user link between two entries."""
        op = "add_user_link"
        if not link_type.strip():
            return ServiceResult.failure(op, ErrorCode.INVALID_ARGUMENT, "link type must not be empty")
        return self._link(
            op,
            lambda sync: sync.add_user_link(source_id, target_id, link_type.strip(), note),
            source_id,
            target_id,
        )

    def _link(
        self,
        op: str,
        write: Callable[[GraphSynchronizer], bool],
        source_id: str,
        target_id: str,
    ) -> ServiceResult:
        store = self._graph_store()
        if store is None:
            return self._unavailable(op)
        try:
            linked = write(GraphSynchronizer(store))
        except SQLAlchemyError as exc:
            logger.warning("%s failed: %s", op, exc, exc_info=True)
            return ServiceResult.failure(op, ErrorCode.SYNC_FAILED, f"Graph write failed: {exc}")

        warnings: list[str] = []
        if not linked:
            warnings.append(
                f"Nothing linked: '{source_id}' or '{target_id}' is not in the graph yet (run a resync first)"
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"source": source_id, "target": target_id, "linked": linked},
            warnings=warnings,
        )

    @traced
    def status(self) -> ServiceResult:
        """Store readiness plus vertex/edge counts by label."""
        op = "graph_status"
        client = self._library.graph
        store = self._graph_store()
        data: dict[str, object] = {"status": str(client.status)}
        if store is None:
            data["error"] = client.error
            return ServiceResult(ok=True, op=op, data=data, warnings=["Graph store is unavailable"])
        try:
            data.update(store.stats())
        except SQLAlchemyError as exc:
            logger.warning("Graph stats failed: %s", exc, exc_info=True)
            return ServiceResult.failure(op, ErrorCode.GRAPH_UNAVAILABLE, f"Graph stats failed: {exc}")
        return ServiceResult(ok=True, op=op, data=data)
