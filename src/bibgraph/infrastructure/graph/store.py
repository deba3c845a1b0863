"""GraphStore protocol — the persisted property-graph mirror.

Two backends implement it: :class:`~bibgraph.infrastructure.graph.sql_store.SqlGraphStore`
(SQLAlchemy tables + NetworkX) and
:class:`~bibgraph.infrastructure.graph.age_store.AgeGraphStore`
(PostgreSQL + Apache AGE). Writes are merges keyed by ``(label, key)``.
Reads return raw pattern-match rows in AGE's vertex/edge/path JSON shape;
callers normalize them with :mod:`bibgraph.infrastructure.graph.rows`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from bibgraph.domain.types import EdgeKind, NodeKind


class VertexLabel(StrEnum):
    """Vertex labels in the persisted graph."""

    ENTRY = "Entry"
    AUTHOR = "Author"
    TOPIC = "Topic"


class RelType(StrEnum):
    """Relationship types in the persisted graph."""

    AUTHORED_BY = "AUTHORED_BY"
    HAS_TOPIC = "HAS_TOPIC"
    CITES = "CITES"
    USER_LINK = "USER_LINK"


NODE_KINDS: dict[str, NodeKind] = {
    VertexLabel.ENTRY: NodeKind.ENTRY,
    VertexLabel.AUTHOR: NodeKind.AUTHOR,
    VertexLabel.TOPIC: NodeKind.TOPIC,
}

EDGE_KINDS: dict[str, EdgeKind] = {
    RelType.AUTHORED_BY: EdgeKind.AUTHORED_BY,
    RelType.HAS_TOPIC: EdgeKind.HAS_TAG,
    RelType.CITES: EdgeKind.CITES,
    RelType.USER_LINK: EdgeKind.USER_LINK,
}


@dataclass(frozen=True)
class VertexRef:
    """Natural identity of a persisted vertex."""

    label: VertexLabel
    key: str


def entry_ref(entry_id: str) -> VertexRef:
    return VertexRef(VertexLabel.ENTRY, entry_id)


class GraphStore(Protocol):
    """Merge-only writes and bounded pattern reads over one named graph."""

    graph_name: str

    def initialize(self) -> None:
        """Enable the store and create the named graph. Idempotent."""
        ...

    def merge_vertex(
        self,
        ref: VertexRef,
        properties: Mapping[str, Any],
        *,
        add_to_sets: Mapping[str, str] | None = None,
    ) -> None:
        """Create-or-match *ref*, then set *properties*.

        ``add_to_sets`` appends a value to a list-valued property unless
        already present.
        """
        ...

    def merge_edge(
        self,
        rel: RelType,
        start: VertexRef,
        end: VertexRef,
        *,
        identity: Mapping[str, str] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> bool:
        """Create-or-match a relationship between two existing vertices.

        ``identity`` properties take part in the match; ``properties`` are
        set afterwards. Returns False, writing nothing, when either
        endpoint does not exist.
        """
        ...

    def citation_rows(self, entry_key: str, depth: int) -> list[Any]:
        """The start vertex plus every ``CITES`` path of length 1..depth from it."""
        ...

    def related_rows(self, entry_key: str, via: RelType) -> list[Any]:
        """Entries sharing a ``via`` neighbour with the start entry (self excluded)."""
        ...

    def path_rows(self, source_key: str, target_key: str, max_hops: int) -> list[Any]:
        """One shortest undirected path, at most *max_hops* long, or no rows."""
        ...

    def cluster_rows(self, project_id: str) -> list[Any]:
        """``{topic, entries, count}`` rows for entries in *project_id*."""
        ...

    def stats(self) -> dict[str, dict[str, int]]:
        """Vertex and edge counts by label."""
        ...

    def close(self) -> None: ...
