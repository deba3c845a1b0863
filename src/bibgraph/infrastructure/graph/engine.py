"""PropertyGraphEngine — lazy-built NetworkX graph from the mirror tables.

Rebuilt per invocation, no cross-invocation cache. Reads that never touch
the graph never build it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeAlias

import networkx as nx

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

_Graph: TypeAlias = nx.MultiDiGraph


class PropertyGraphEngine:
    """Lazy-loading multigraph of one named graph's vertices and edges.

    Nodes are internal vertex gids with ``label``/``properties`` attributes;
    edges are keyed by edge gid with the same attributes.
    """

    def __init__(self, db: Engine, graph_name: str) -> None:
        self._db = db
        self._graph_name = graph_name
        self._graph: _Graph | None = None
        self._index: dict[tuple[str, str], int] = {}

    @property
    def graph(self) -> _Graph:
        """Return the graph, building from DB on first access."""
        if self._graph is None:
            self._graph = self._build_from_db()
        return self._graph

    def find(self, label: str, key: str) -> int | None:
        """Internal gid of the vertex ``(label, key)``, if present."""
        _ = self.graph
        return self._index.get((label, key))

    def vertex(self, gid: int) -> dict[str, Any]:
        """AGE-shaped vertex dict."""
        attrs = self.graph.nodes[gid]
        return {"id": gid, "label": attrs["label"], "properties": dict(attrs["properties"])}

    def edge(self, start: int, end: int, key: int) -> dict[str, Any]:
        """AGE-shaped edge dict."""
        attrs = self.graph.edges[start, end, key]
        return {
            "id": key,
            "label": attrs["label"],
            "start_id": start,
            "end_id": end,
            "properties": dict(attrs["properties"]),
        }

    def _build_from_db(self) -> _Graph:
        """Load vertices first (so isolated vertices exist), then edges."""
        from sqlalchemy import select

        from bibgraph.infrastructure.database.schema import graph_edges, graph_vertices

        g: _Graph = nx.MultiDiGraph()
        index: dict[tuple[str, str], int] = {}
        with self._db.connect() as conn:
            vertex_rows = conn.execute(
                select(graph_vertices).where(graph_vertices.c.graph == self._graph_name)
            )
            for row in vertex_rows:
                props = dict(row.properties or {})
                props["id"] = row.key
                g.add_node(row.gid, label=row.label, properties=props)
                index[(row.label, row.key)] = row.gid

            edge_rows = conn.execute(
                select(graph_edges)
                .where(graph_edges.c.graph == self._graph_name)
                .order_by(graph_edges.c.gid)
            )
            for row in edge_rows:
                g.add_edge(
                    row.start_gid,
                    row.end_gid,
                    key=row.gid,
                    label=row.label,
                    properties=dict(row.properties or {}),
                )
        self._index = index
        return g
