"""TraversalService — bounded multi-hop reads over the graph mirror.

Results are eventually consistent with the relational library: the
mirror reflects the last resync, not the current state. Depth and path
length are capped by ``[graph] max_depth`` / ``max_path_hops``; those
caps are the only bound on query cost.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from bibgraph.domain.types import GraphData
from bibgraph.infrastructure.graph.rows import normalize_rows, parse_cluster_rows
from bibgraph.infrastructure.graph.store import GraphStore, RelType
from bibgraph.services.base import BaseService
from bibgraph.services.result import ErrorCode, ServiceResult
from bibgraph.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class TraversalService(BaseService):
    """Citation networks, shared-vertex lookups, shortest paths, clusters."""

    def _query(
        self,
        op: str,
        read: Callable[[GraphStore], list[Any]],
    ) -> list[Any] | ServiceResult:
        """Run *read* against the store, or return the failure result."""
        store = self._graph_store()
        if store is None:
            return self._unavailable(op)
        try:
            with trace_span("query") as span:
                rows = read(store)
                if span:
                    span.annotate(rows=len(rows))
        except SQLAlchemyError as exc:
            logger.warning("%s query failed: %s", op, exc, exc_info=True)
            return ServiceResult.failure(op, ErrorCode.GRAPH_UNAVAILABLE, f"Graph query failed: {exc}")
        return rows

    @traced
    def citation_network(self, entry_id: str, depth: int | None = None) -> ServiceResult:
        """Entries reachable from *entry_id* over ``cites`` edges.

        ``depth=0`` returns only the start vertex. Depth beyond the
        configured cap is clamped, with a warning.
        """
        op = "citation_network"
        cfg = self._library.settings.graph
        warnings: list[str] = []
        if depth is None:
            effective = cfg.default_depth
        else:
            effective = max(0, min(depth, cfg.max_depth))
            if effective != depth:
                warnings.append(f"depth {depth} clamped to {effective}")

        rows = self._query(op, lambda store: store.citation_rows(entry_id, effective))
        if isinstance(rows, ServiceResult):
            return rows

        graph = normalize_rows(rows)
        if not graph.nodes:
            warnings.append(f"Entry '{entry_id}' is not in the graph")
        return _graph_result(op, graph, warnings, entry_id=entry_id, depth=effective)

    @traced
    def related_by_author(self, entry_id: str) -> ServiceResult:
        """Entries sharing at least one author with *entry_id*."""
        return self._related("related_by_author", entry_id, RelType.AUTHORED_BY)

    @traced
    def related_by_topic(self, entry_id: str) -> ServiceResult:
        """Entries sharing at least one topic with *entry_id*."""
        return self._related("related_by_topic", entry_id, RelType.HAS_TOPIC)

    def _related(self, op: str, entry_id: str, via: RelType) -> ServiceResult:
        rows = self._query(op, lambda store: store.related_rows(entry_id, via))
        if isinstance(rows, ServiceResult):
            return rows
        graph = normalize_rows(rows)
        nodes = [n for n in graph.nodes if n.id != entry_id]
        return _graph_result(op, GraphData(nodes=nodes, edges=[]), [], entry_id=entry_id)

    @traced
    def shortest_path(self, source_id: str, target_id: str) -> ServiceResult:
        """One unweighted shortest path over every relationship kind.

        Direction is ignored. ``source == target`` yields a single-vertex
        path; an unreachable target (or one further than ``max_path_hops``)
        yields an empty result.
        """
        op = "shortest_path"
        max_hops = self._library.settings.graph.max_path_hops
        rows = self._query(op, lambda store: store.path_rows(source_id, target_id, max_hops))
        if isinstance(rows, ServiceResult):
            return rows

        graph = normalize_rows(rows)
        found = bool(graph.nodes)
        warnings = [] if found else [f"No path within {max_hops} hops"]
        return _graph_result(
            op,
            graph,
            warnings,
            source=source_id,
            target=target_id,
            found=found,
            length=len(graph.edges) if found else None,
        )

    @traced
    def topic_clusters(self, project_ref: str, owner_id: str) -> ServiceResult:
        """Entries of a project grouped by topic, largest cluster first.

        *project_ref* is an id or slug resolved against the owner's library,
        matching what ``resync_project`` wrote into ``project_ids``.
        """
        op = "topic_clusters"
        if self._graph_store() is None:
            return self._unavailable(op)
        project = self._library.repository.resolve_project(project_ref, owner_id)
        if project is None:
            return ServiceResult.failure(
                op, ErrorCode.NOT_FOUND, f"No project '{project_ref}' in this library"
            )
        project_id = str(project["id"])
        rows = self._query(op, lambda store: store.cluster_rows(project_id))
        if isinstance(rows, ServiceResult):
            return rows
        clusters = parse_cluster_rows(rows)
        warnings: list[str] = []
        if not clusters:
            warnings.append(f"No topics mirrored for project '{project_ref}' (run a resync first)")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project_id": project_id,
                "count": len(clusters),
                "clusters": [c.model_dump(mode="json") for c in clusters],
            },
            warnings=warnings,
        )


def _graph_result(op: str, graph: GraphData, warnings: list[str], **extra: Any) -> ServiceResult:
    data: dict[str, Any] = dict(extra)
    data.update(graph.to_payload())
    data["counts"] = graph.counts()
    return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
