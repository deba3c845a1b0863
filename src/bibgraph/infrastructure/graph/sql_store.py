"""SqlGraphStore — the property-graph mirror on plain SQLAlchemy tables.

Merges are insert-if-absent on the ``(graph, label, key)`` and
``(graph, label, start, end, discriminator)`` unique constraints, so
concurrent or repeated merges converge on one vertex/edge. Reads load a
:class:`PropertyGraphEngine` per call and walk it with NetworkX, emitting
rows in the same shape AGE returns.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Mapping
from typing import Any

import networkx as nx
from sqlalchemy import func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql.schema import Table

from bibgraph.infrastructure.database.schema import graph_edges, graph_metadata, graph_vertices
from bibgraph.infrastructure.graph.engine import PropertyGraphEngine
from bibgraph.infrastructure.graph.store import RelType, VertexLabel, VertexRef

logger = logging.getLogger(__name__)


class SqlGraphStore:
    """GraphStore over ``graph_vertices`` / ``graph_edges``."""

    def __init__(self, engine: Engine, graph_name: str = "annobib_graph") -> None:
        self._engine = engine
        self.graph_name = graph_name

    def initialize(self) -> None:
        graph_metadata.create_all(self._engine)

    def close(self) -> None:
        """The engine belongs to the caller; nothing to release."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def merge_vertex(
        self,
        ref: VertexRef,
        properties: Mapping[str, Any],
        *,
        add_to_sets: Mapping[str, str] | None = None,
    ) -> None:
        with self._engine.begin() as conn:
            _insert_if_absent(
                conn,
                graph_vertices,
                {
                    "graph": self.graph_name,
                    "label": str(ref.label),
                    "key": ref.key,
                    "properties": {"id": ref.key},
                },
            )
            row = conn.execute(
                select(graph_vertices.c.gid, graph_vertices.c.properties).where(
                    graph_vertices.c.graph == self.graph_name,
                    graph_vertices.c.label == str(ref.label),
                    graph_vertices.c.key == ref.key,
                )
            ).one()

            current = dict(row.properties or {})
            merged = {**current, **properties, "id": ref.key}
            for name, value in (add_to_sets or {}).items():
                members = list(merged.get(name) or [])
                if value not in members:
                    members.append(value)
                merged[name] = members

            if merged != current:
                conn.execute(
                    update(graph_vertices)
                    .where(graph_vertices.c.gid == row.gid)
                    .values(properties=merged)
                )

    def merge_edge(
        self,
        rel: RelType,
        start: VertexRef,
        end: VertexRef,
        *,
        identity: Mapping[str, str] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> bool:
        identity = dict(identity or {})
        discriminator = json.dumps(identity, sort_keys=True) if identity else ""
        with self._engine.begin() as conn:
            start_gid = self._gid(conn, start)
            end_gid = self._gid(conn, end)
            if start_gid is None or end_gid is None:
                logger.debug("Skipping %s %s -> %s: endpoint missing", rel, start.key, end.key)
                return False

            match = (
                graph_edges.c.graph == self.graph_name,
                graph_edges.c.label == str(rel),
                graph_edges.c.start_gid == start_gid,
                graph_edges.c.end_gid == end_gid,
                graph_edges.c.discriminator == discriminator,
            )
            _insert_if_absent(
                conn,
                graph_edges,
                {
                    "graph": self.graph_name,
                    "label": str(rel),
                    "start_gid": start_gid,
                    "end_gid": end_gid,
                    "discriminator": discriminator,
                    "properties": identity,
                },
            )
            if properties:
                row = conn.execute(select(graph_edges.c.gid, graph_edges.c.properties).where(*match)).one()
                current = dict(row.properties or {})
                merged = {**current, **properties, **identity}
                if merged != current:
                    conn.execute(
                        update(graph_edges).where(graph_edges.c.gid == row.gid).values(properties=merged)
                    )
        return True

    def _gid(self, conn: Connection, ref: VertexRef) -> int | None:
        return conn.execute(
            select(graph_vertices.c.gid).where(
                graph_vertices.c.graph == self.graph_name,
                graph_vertices.c.label == str(ref.label),
                graph_vertices.c.key == ref.key,
            )
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load(self) -> PropertyGraphEngine:
        return PropertyGraphEngine(self._engine, self.graph_name)

    def citation_rows(self, entry_key: str, depth: int) -> list[Any]:
        ge = self._load()
        start = ge.find(VertexLabel.ENTRY, entry_key)
        if start is None:
            return []

        rows: list[Any] = [{"s": ge.vertex(start)}]
        g = ge.graph
        distance = {start: 0}
        queue = deque([start])
        while queue:
            u = queue.popleft()
            if distance[u] >= depth:
                continue
            for _, v, key, data in g.out_edges(u, keys=True, data=True):
                if data["label"] != RelType.CITES or g.nodes[v]["label"] != VertexLabel.ENTRY:
                    continue
                if v not in distance:
                    distance[v] = distance[u] + 1
                    queue.append(v)
                rows.append({"p": [ge.vertex(u), ge.edge(u, v, key), ge.vertex(v)]})
        return rows

    def related_rows(self, entry_key: str, via: RelType) -> list[Any]:
        ge = self._load()
        start = ge.find(VertexLabel.ENTRY, entry_key)
        if start is None:
            return []

        g = ge.graph
        hubs = {v for _, v, data in g.out_edges(start, data=True) if data["label"] == via}
        related: dict[int, None] = {}
        for hub in sorted(hubs):
            for r, _, data in g.in_edges(hub, data=True):
                if r != start and data["label"] == via and g.nodes[r]["label"] == VertexLabel.ENTRY:
                    related.setdefault(r)
        return [{"related": ge.vertex(r)} for r in related]

    def path_rows(self, source_key: str, target_key: str, max_hops: int) -> list[Any]:
        ge = self._load()
        source = ge.find(VertexLabel.ENTRY, source_key)
        target = ge.find(VertexLabel.ENTRY, target_key)
        if source is None or target is None:
            return []
        if source == target:
            return [{"p": [ge.vertex(source)]}]

        g = ge.graph
        reachable = nx.single_source_shortest_path(g.to_undirected(as_view=True), source, cutoff=max_hops)
        path = reachable.get(target)
        if path is None:
            return []

        elements: list[dict[str, Any]] = [ge.vertex(path[0])]
        for a, b in zip(path, path[1:]):
            if g.has_edge(a, b):
                start, end = a, b
            else:
                start, end = b, a
            key = min(g[start][end])
            elements.append(ge.edge(start, end, key))
            elements.append(ge.vertex(b))
        return [{"p": elements}]

    def cluster_rows(self, project_id: str) -> list[Any]:
        ge = self._load()
        g = ge.graph
        members: dict[str, list[str]] = {}
        for gid, attrs in g.nodes(data=True):
            if attrs["label"] != VertexLabel.ENTRY:
                continue
            if project_id not in (attrs["properties"].get("project_ids") or []):
                continue
            for _, topic, data in g.out_edges(gid, data=True):
                if data["label"] != RelType.HAS_TOPIC:
                    continue
                name = g.nodes[topic]["properties"].get("name")
                if name is not None:
                    members.setdefault(str(name), []).append(attrs["properties"]["id"])

        # Columns are agtype-encoded, as AGE returns them.
        return [
            {"topic": json.dumps(topic), "entries": json.dumps(ids), "count": json.dumps(len(ids))}
            for topic, ids in members.items()
        ]

    def stats(self) -> dict[str, dict[str, int]]:
        with self._engine.connect() as conn:
            vertices = conn.execute(
                select(graph_vertices.c.label, func.count())
                .where(graph_vertices.c.graph == self.graph_name)
                .group_by(graph_vertices.c.label)
            ).all()
            edges = conn.execute(
                select(graph_edges.c.label, func.count())
                .where(graph_edges.c.graph == self.graph_name)
                .group_by(graph_edges.c.label)
            ).all()
        return {
            "vertices": {str(label): int(n) for label, n in vertices},
            "edges": {str(label): int(n) for label, n in edges},
        }


def _insert_if_absent(conn: Connection, table: Table, values: dict[str, Any]) -> None:
    """INSERT that silently yields to an existing row with the same unique key."""
    dialect = conn.dialect.name
    if dialect == "sqlite":
        conn.execute(sqlite.insert(table).values(**values).on_conflict_do_nothing())
    elif dialect == "postgresql":
        conn.execute(postgresql.insert(table).values(**values).on_conflict_do_nothing())
    else:
        try:
            with conn.begin_nested():
                conn.execute(insert(table).values(**values))
        except IntegrityError:
            logger.debug("Row already present in %s", table.name)
