"""AgeGraphStore — the property-graph mirror on PostgreSQL + Apache AGE.

AGE does not accept bind parameters inside ``cypher()`` calls, so values
are rendered as Cypher literals by :func:`cypher_literal`. String
literals escape every character that could end the literal, the
``$$`` dollar quote, or be read as a SQLAlchemy bind (``:name``), using
Cypher ``\\uXXXX`` escapes. Structural colons in the query text
(``[:CITES]``) are then protected from bind parsing by
:func:`escape_binds`.

Requires a PostgreSQL driver (``pip install bibgraph[age]``).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine

from bibgraph.infrastructure.graph.store import RelType, VertexLabel, VertexRef

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_UNSAFE_CHARS = frozenset("\\'\"$:%")
_BIND_LIKE = re.compile(r"(?<![:\w\\]):(?=\w)")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid graph identifier: {name!r}")
    return name


def _escape_char(ch: str) -> str:
    if ch in _UNSAFE_CHARS or ord(ch) < 0x20:
        return f"\\u{ord(ch):04X}"
    return ch


def cypher_literal(value: Any) -> str:
    """Render *value* as an inline Cypher literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return "'" + "".join(_escape_char(ch) for ch in value) + "'"
    if isinstance(value, Mapping):
        items = (f"{_check_identifier(str(k))}: {cypher_literal(v)}" for k, v in value.items())
        return "{" + ", ".join(items) + "}"
    if isinstance(value, Sequence):
        return "[" + ", ".join(cypher_literal(v) for v in value) + "]"
    raise TypeError(f"Cannot render {type(value).__name__} as a Cypher literal")


def escape_binds(sql: str) -> str:
    """Backslash-escape colons SQLAlchemy's ``text()`` would read as binds."""
    return _BIND_LIKE.sub(r"\\:", sql)


class AgeGraphStore:
    """GraphStore over an AGE graph, queried through SQLAlchemy ``text()``."""

    def __init__(
        self,
        url: str,
        graph_name: str = "annobib_graph",
        *,
        engine: Engine | None = None,
    ) -> None:
        self.graph_name = _check_identifier(graph_name)
        self._owns_engine = engine is None
        self._engine = engine if engine is not None else create_engine(url, echo=False)
        event.listen(self._engine, "connect", _setup_age)

    def initialize(self) -> None:
        """Create the extension and the named graph when missing."""
        with self._engine.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS age"))
            conn.execute(text("LOAD 'age'"))
            conn.execute(text('SET search_path = ag_catalog, "$user", public'))
            exists = conn.execute(
                text("SELECT count(*) FROM ag_catalog.ag_graph WHERE name = :name"),
                {"name": self.graph_name},
            ).scalar_one()
            if not exists:
                conn.execute(text("SELECT create_graph(:name)"), {"name": self.graph_name})
                logger.info("Created graph %s", self.graph_name)

    def close(self) -> None:
        if self._owns_engine:
            self._engine.dispose()

    # ------------------------------------------------------------------
    # Query plumbing
    # ------------------------------------------------------------------

    def render(self, query: str, columns: Sequence[str]) -> str:
        """Wrap a Cypher *query* in the ``cypher()`` SQL call."""
        spec = ", ".join(f"{_check_identifier(c)} agtype" for c in columns)
        sql = f"SELECT * FROM cypher('{self.graph_name}', $$ {query} $$) AS ({spec})"
        return escape_binds(sql)

    def _run(self, query: str, columns: Sequence[str], conn: Connection | None = None) -> list[dict[str, Any]]:
        statement = text(self.render(query, columns))
        if conn is not None:
            return [dict(r) for r in conn.execute(statement).mappings()]
        with self._engine.begin() as own:
            return [dict(r) for r in own.execute(statement).mappings()]

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
        self._run(self.merge_vertex_query(ref, properties, add_to_sets=add_to_sets), ["v"])

    def merge_vertex_query(
        self,
        ref: VertexRef,
        properties: Mapping[str, Any],
        *,
        add_to_sets: Mapping[str, str] | None = None,
    ) -> str:
        label = _check_identifier(str(ref.label))
        assignments = [
            f"v.{_check_identifier(k)} = {cypher_literal(v)}"
            for k, v in properties.items()
            if k != "id"
        ]
        for name, value in (add_to_sets or {}).items():
            prop = f"v.{_check_identifier(name)}"
            lit = cypher_literal(value)
            assignments.append(
                f"{prop} = CASE WHEN {lit} IN coalesce({prop}, []) "
                f"THEN {prop} ELSE coalesce({prop}, []) + [{lit}] END"
            )
        query = f"MERGE (v:{label} {{id: {cypher_literal(ref.key)}}})"
        if assignments:
            query += " SET " + ", ".join(assignments)
        return query + " RETURN v"

    def merge_edge(
        self,
        rel: RelType,
        start: VertexRef,
        end: VertexRef,
        *,
        identity: Mapping[str, str] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> bool:
        query = self.merge_edge_query(rel, start, end, identity=identity, properties=properties)
        rows = self._run(query, ["r"])
        if not rows:
            logger.debug("Skipping %s %s -> %s: endpoint missing", rel, start.key, end.key)
        return bool(rows)

    def merge_edge_query(
        self,
        rel: RelType,
        start: VertexRef,
        end: VertexRef,
        *,
        identity: Mapping[str, str] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> str:
        match_props = f" {cypher_literal(dict(identity))}" if identity else ""
        query = (
            f"MATCH (a:{_check_identifier(str(start.label))} {{id: {cypher_literal(start.key)}}}) "
            f"MATCH (b:{_check_identifier(str(end.label))} {{id: {cypher_literal(end.key)}}}) "
            f"MERGE (a)-[r:{_check_identifier(str(rel))}{match_props}]->(b)"
        )
        if properties:
            query += " SET " + ", ".join(
                f"r.{_check_identifier(k)} = {cypher_literal(v)}" for k, v in properties.items()
            )
        return query + " RETURN r"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def citation_rows(self, entry_key: str, depth: int) -> list[Any]:
        key = cypher_literal(entry_key)
        with self._engine.begin() as conn:
            rows = self._run(f"MATCH (s:Entry {{id: {key}}}) RETURN s", ["s"], conn)
            if rows and depth >= 1:
                rows += self._run(
                    f"MATCH p = (s:Entry {{id: {key}}})-[:CITES*1..{int(depth)}]->(c:Entry) RETURN p",
                    ["p"],
                    conn,
                )
        return rows

    def related_rows(self, entry_key: str, via: RelType) -> list[Any]:
        key = cypher_literal(entry_key)
        rel = _check_identifier(str(via))
        return self._run(
            f"MATCH (s:Entry {{id: {key}}})-[:{rel}]->(x)<-[:{rel}]-(related:Entry) "
            f"WHERE related.id <> {key} RETURN DISTINCT related",
            ["related"],
        )

    def path_rows(self, source_key: str, target_key: str, max_hops: int) -> list[Any]:
        source = cypher_literal(source_key)
        target = cypher_literal(target_key)
        with self._engine.begin() as conn:
            if source_key == target_key:
                return self._run(f"MATCH (s:Entry {{id: {source}}}) RETURN s", ["s"], conn)
            # Deepen one hop at a time so the first hit is a shortest path.
            for hops in range(1, int(max_hops) + 1):
                rows = self._run(
                    f"MATCH p = (s:Entry {{id: {source}}})-[*{hops}..{hops}]-(t:Entry {{id: {target}}}) "
                    "RETURN p LIMIT 1",
                    ["p"],
                    conn,
                )
                if rows:
                    return rows
        return []

    def cluster_rows(self, project_id: str) -> list[Any]:
        pid = cypher_literal(project_id)
        return self._run(
            f"MATCH (e:{VertexLabel.ENTRY})-[:{RelType.HAS_TOPIC}]->(t:{VertexLabel.TOPIC}) "
            f"WHERE {pid} IN e.project_ids "
            "WITH t.name AS topic, collect(DISTINCT e.id) AS entries, count(DISTINCT e) AS n "
            "RETURN topic, entries, n",
            ["topic", "entries", "count"],
        )

    def stats(self) -> dict[str, dict[str, int]]:
        with self._engine.begin() as conn:
            vertices = self._run("MATCH (v) RETURN label(v), count(v)", ["label", "n"], conn)
            edges = self._run("MATCH ()-[r]->() RETURN label(r), count(r)", ["label", "n"], conn)
        return {
            "vertices": {_unquote(r["label"]): int(r["n"]) for r in vertices},
            "edges": {_unquote(r["label"]): int(r["n"]) for r in edges},
        }


def _unquote(value: Any) -> str:
    return str(value).strip('"')


def _setup_age(dbapi_conn: Any, _: Any) -> None:
    """Load AGE and put ag_catalog on the search path for every new connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("LOAD 'age'")
    cursor.execute('SET search_path = ag_catalog, "$user", public')
    cursor.close()
