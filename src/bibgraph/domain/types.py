"""Graph node/edge kinds and the shared result shape.

Both graph representations (the request-scoped projection and the
persisted traversal mirror) return :class:`GraphData`, serialized as
``{nodes: [{id, type, label, metadata}], edges: [{source, target, type, weight}]}``.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class NodeKind(StrEnum):
    """Vertex kinds in the relationship graph."""

    ENTRY = "entry"
    AUTHOR = "author"
    TAG = "tag"
    TOPIC = "topic"


class EdgeKind(StrEnum):
    """Edge kinds. ``cites`` and ``user_link`` are user-asserted, never inferred."""

    AUTHORED_BY = "authored_by"
    HAS_TAG = "has_tag"
    CITES = "cites"
    SAME_AUTHOR = "same_author"
    SIMILAR_TO = "similar_to"
    USER_LINK = "user_link"


EDGE_WEIGHTS: dict[EdgeKind, float] = {
    EdgeKind.AUTHORED_BY: 1.0,
    EdgeKind.HAS_TAG: 1.0,
    EdgeKind.CITES: 1.0,
    EdgeKind.USER_LINK: 1.0,
    EdgeKind.SAME_AUTHOR: 0.5,
    EdgeKind.SIMILAR_TO: 0.3,
}

INFERRED_EDGE_KINDS = frozenset({EdgeKind.SAME_AUTHOR, EdgeKind.SIMILAR_TO})


class GraphNode(BaseModel):
    """A typed, labeled vertex."""

    model_config = {"frozen": True}

    id: str
    type: NodeKind
    label: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class GraphEdge(BaseModel):
    """A typed, weighted, directed connection between two nodes."""

    model_config = {"frozen": True}

    source: str
    target: str
    type: EdgeKind
    weight: float = 1.0

    @property
    def triple(self) -> tuple[str, str, str]:
        return (self.source, self.target, str(self.type))


class GraphData(BaseModel):
    """Node/edge payload shared by projection and traversal."""

    model_config = {"frozen": True}

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> GraphData:
        return cls(nodes=[], edges=[])

    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def edge_triples(self) -> list[tuple[str, str, str]]:
        return [e.triple for e in self.edges]

    def counts(self) -> dict[str, Any]:
        """Totals and per-kind counts, used for summaries and logging."""
        return {
            "nodes": len(self.nodes),
            "edges": len(self.edges),
            "node_types": dict(Counter(str(n.type) for n in self.nodes)),
            "edge_types": dict(Counter(str(e.type) for e in self.edges)),
        }

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready ``{nodes, edges}`` dict."""
        return self.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Source records supplied by the relational adapter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuthorName:
    """An author embedded in an entry record."""

    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @classmethod
    def from_raw(cls, raw: Any) -> AuthorName:
        """Build from the JSON shape stored on entries (``firstName``/``lastName``).

        Plain strings are accepted as a full name.
        """
        if isinstance(raw, str):
            return cls(last_name=raw)
        if isinstance(raw, dict):
            return cls(
                first_name=str(raw.get("firstName") or raw.get("first_name") or ""),
                last_name=str(raw.get("lastName") or raw.get("last_name") or ""),
            )
        return cls()


@dataclass(frozen=True)
class EntryRecord:
    """One bibliography entry as read from the relational source."""

    id: str
    title: str
    entry_type: str
    year: int | None = None
    authors: tuple[AuthorName, ...] = ()
    tag_ids: tuple[str, ...] = field(default=())

    @property
    def author_names(self) -> list[str]:
        return [a.display_name for a in self.authors if a.display_name]


@dataclass(frozen=True)
class TagAssociation:
    """An entry–tag association with tag display metadata."""

    entry_id: str
    tag_id: str
    tag_name: str
    tag_color: str | None = None


class TopicCluster(BaseModel):
    """Entries in one project grouped under a shared topic."""

    model_config = {"frozen": True}

    topic: str
    entries: list[str] = Field(default_factory=list)
    count: int = 0
