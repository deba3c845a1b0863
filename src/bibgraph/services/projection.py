"""ProjectionService — request-scoped graph fetch.

The graph is rebuilt from relational source truth on every call, then
trimmed by the view filter. It is never cached or persisted. Adapter
failures propagate unchanged; nothing here retries.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from bibgraph.domain.projection import project_graph
from bibgraph.domain.types import GraphData
from bibgraph.domain.view import ViewOptions, filter_graph
from bibgraph.infrastructure.repositories.library import LibraryRepository
from bibgraph.services.base import BaseService
from bibgraph.services.result import ErrorCode, ServiceResult
from bibgraph.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class GraphProjector:
    """Builds the full node/edge graph for one scope."""

    def __init__(self, repository: LibraryRepository) -> None:
        self._repo = repository

    def build_graph(self, project_id: str, owner_id: str) -> GraphData:
        """Graph of every entry in *project_id* that *owner_id* owns.

        An empty scope yields an empty graph, not an error.
        """
        entry_ids = self._repo.scope_entry_ids(project_id, owner_id)
        if not entry_ids:
            return GraphData.empty()
        return self._build(entry_ids, owner_id)

    def build_library_graph(self, owner_id: str, limit: int) -> GraphData:
        """Graph of the owner's *limit* most recent entries."""
        entry_ids = self._repo.recent_entry_ids(owner_id, limit)
        if not entry_ids:
            return GraphData.empty()
        return self._build(entry_ids, owner_id)

    def _build(self, entry_ids: Sequence[str], owner_id: str) -> GraphData:
        records = self._repo.get_entries(entry_ids, owner_id)
        if not records:
            return GraphData.empty()
        ids = [r.id for r in records]
        associations = self._repo.get_tag_associations(ids)
        counts = self._repo.get_annotation_counts(ids)
        return project_graph(records, associations, counts)


class ProjectionService(BaseService):
    """Fetch filtered graphs for a project or for a whole library."""

    @traced
    def fetch(
        self,
        project_ref: str,
        owner_id: str,
        options: ViewOptions | None = None,
    ) -> ServiceResult:
        """Build and filter the graph of one project (by id or slug).

        An unknown project, or one the owner does not own, returns an
        empty graph with a warning.
        """
        op = "fetch_graph"
        project = self._library.repository.resolve_project(project_ref, owner_id)
        if project is None:
            logger.info("No project %r for owner %r", project_ref, owner_id)
            return ServiceResult(
                ok=True,
                op=op,
                data=_graph_data(GraphData.empty(), project_id=None),
                warnings=[f"No project '{project_ref}' in this library; graph is empty"],
            )

        projector = GraphProjector(self._library.repository)
        with trace_span("build_graph") as span:
            graph = projector.build_graph(str(project["id"]), owner_id)
            if span:
                span.annotate(nodes=len(graph.nodes), edges=len(graph.edges))

        with trace_span("filter_graph"):
            view = filter_graph(graph, options)

        return ServiceResult(
            ok=True,
            op=op,
            data=_graph_data(view, project_id=str(project["id"]), project_name=project.get("name")),
        )

    @traced
    def fetch_library(
        self,
        owner_id: str,
        *,
        limit: int | None = None,
        options: ViewOptions | None = None,
    ) -> ServiceResult:
        """Build and filter the graph of the owner's most recent entries."""
        op = "fetch_library_graph"
        cfg = self._library.settings.projection
        if limit is not None and limit < 1:
            return ServiceResult.failure(op, ErrorCode.INVALID_ARGUMENT, "limit must be at least 1")

        warnings: list[str] = []
        effective = cfg.library_limit if limit is None else limit
        if effective > cfg.library_limit_max:
            warnings.append(f"limit {effective} capped at {cfg.library_limit_max}")
            effective = cfg.library_limit_max

        projector = GraphProjector(self._library.repository)
        with trace_span("build_graph") as span:
            graph = projector.build_library_graph(owner_id, effective)
            if span:
                span.annotate(nodes=len(graph.nodes), edges=len(graph.edges))

        view = filter_graph(graph, options)
        data = _graph_data(view, project_id=None)
        data["limit"] = effective
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)


def _graph_data(
    graph: GraphData,
    *,
    project_id: str | None,
    project_name: str | None = None,
) -> dict[str, object]:
    data: dict[str, object] = {"project_id": project_id}
    if project_name is not None:
        data["project_name"] = project_name
    data.update(graph.to_payload())
    data["counts"] = graph.counts()
    return data
