"""Normalization of raw pattern-match rows into :class:`GraphData`.

Store reads return rows whose columns hold vertices, edges, paths (lists
of both) or scalars, either already decoded or as AGE ``agtype`` text
(JSON followed by a ``::vertex`` / ``::edge`` / ``::path`` suffix).
Each decoded element is classified as a :class:`VertexRow`,
:class:`EdgeRow` or :class:`Unrecognized`; only the first two reach the
result. A row that fails to decode is dropped whole and the rest of the
result set is kept.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from bibgraph.domain.types import (
    EDGE_WEIGHTS,
    GraphData,
    GraphEdge,
    GraphNode,
    TopicCluster,
)
from bibgraph.infrastructure.graph.store import EDGE_KINDS, NODE_KINDS

logger = logging.getLogger(__name__)

_AGTYPE_SUFFIX = re.compile(r"(?<=[}\]])::(?:vertex|edge|path)")


class MalformedRowError(ValueError):
    """A row column could not be decoded."""


@dataclass(frozen=True)
class VertexRow:
    gid: str
    label: str
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return str(self.properties["id"])


@dataclass(frozen=True)
class EdgeRow:
    gid: str
    label: str
    start_id: str
    end_id: str
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Unrecognized:
    raw: Any


ParsedElement: TypeAlias = VertexRow | EdgeRow | Unrecognized


def decode_agtype(value: Any) -> Any:
    """Decode one column value. Already-decoded values pass through."""
    if value is None or isinstance(value, (dict, list, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    text = _AGTYPE_SUFFIX.sub("", str(value).strip())
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedRowError(f"Undecodable agtype value: {text[:80]!r}") from exc


def parse_element(obj: Any) -> ParsedElement:
    """Classify one decoded value."""
    if not isinstance(obj, Mapping):
        return Unrecognized(obj)
    props = obj.get("properties")
    if not isinstance(props, Mapping) or "id" not in obj or "label" not in obj:
        return Unrecognized(obj)
    if "start_id" in obj and "end_id" in obj:
        return EdgeRow(
            gid=str(obj["id"]),
            label=str(obj["label"]),
            start_id=str(obj["start_id"]),
            end_id=str(obj["end_id"]),
            properties=dict(props),
        )
    if props.get("id") is None:
        return Unrecognized(obj)
    return VertexRow(gid=str(obj["id"]), label=str(obj["label"]), properties=dict(props))


def parse_row(row: Any) -> list[ParsedElement]:
    """Decode every column of *row* and flatten paths into elements.

    Raises :class:`MalformedRowError` when any column fails to decode.
    """
    columns: Iterable[Any]
    if isinstance(row, Mapping):
        columns = row.values()
    elif isinstance(row, (list, tuple)):
        columns = row
    else:
        columns = [row]

    elements: list[ParsedElement] = []
    for column in columns:
        _flatten(decode_agtype(column), elements)
    return elements


def _flatten(value: Any, out: list[ParsedElement]) -> None:
    if isinstance(value, list):
        for item in value:
            _flatten(item, out)
        return
    out.append(parse_element(value))


def normalize_rows(rows: Iterable[Any]) -> GraphData:
    """Turn raw rows into deduplicated nodes and edges.

    Vertices are keyed by their domain id (``properties.id``). Edges are
    translated from internal graph ids to domain ids; an edge whose
    endpoints are not both in the result is dropped. Duplicate
    ``(source, target, kind)`` edges collapse to one.
    """
    nodes: dict[str, GraphNode] = {}
    gid_to_key: dict[str, str] = {}
    pending: list[EdgeRow] = []
    dropped = 0

    for row in rows:
        try:
            elements = parse_row(row)
        except (MalformedRowError, TypeError) as exc:
            dropped += 1
            logger.debug("Dropping malformed graph row: %s", exc)
            continue
        for element in elements:
            if isinstance(element, VertexRow):
                node = _to_node(element)
                if node is None:
                    continue
                gid_to_key[element.gid] = node.id
                nodes.setdefault(node.id, node)
            elif isinstance(element, EdgeRow):
                pending.append(element)

    edges: dict[tuple[str, str, str], GraphEdge] = {}
    for edge_row in pending:
        kind = EDGE_KINDS.get(edge_row.label)
        source = gid_to_key.get(edge_row.start_id)
        target = gid_to_key.get(edge_row.end_id)
        if kind is None or source is None or target is None:
            continue
        edge = GraphEdge(source=source, target=target, type=kind, weight=EDGE_WEIGHTS[kind])
        edges.setdefault(edge.triple, edge)

    if dropped:
        logger.info("Dropped %d malformed graph row(s)", dropped)
    return GraphData(nodes=list(nodes.values()), edges=list(edges.values()))


def _to_node(row: VertexRow) -> GraphNode | None:
    kind = NODE_KINDS.get(row.label)
    if kind is None:
        return None
    props = row.properties
    label = props.get("title") or props.get("name") or row.key
    metadata = {k: v for k, v in props.items() if k not in ("id", "title", "name")}
    return GraphNode(id=row.key, type=kind, label=str(label), metadata=metadata)


def parse_cluster_rows(rows: Iterable[Any]) -> list[TopicCluster]:
    """Parse ``{topic, entries, count}`` rows, dropping malformed ones.

    Clusters are ordered by size, largest first, then by topic name.
    """
    clusters: list[TopicCluster] = []
    for row in rows:
        try:
            cluster = _parse_cluster(row)
        except (MalformedRowError, TypeError, ValueError) as exc:
            logger.debug("Dropping malformed cluster row: %s", exc)
            continue
        if cluster is not None:
            clusters.append(cluster)
    clusters.sort(key=lambda c: (-c.count, c.topic))
    return clusters


def _parse_cluster(row: Any) -> TopicCluster | None:
    if isinstance(row, Mapping):
        values = [row.get("topic"), row.get("entries"), row.get("count")]
    else:
        values = list(row)
    if len(values) != 3:
        return None
    topic, members, _ = (decode_agtype(v) for v in values)
    if not isinstance(topic, str) or not isinstance(members, list):
        return None
    entries = list(dict.fromkeys(str(m) for m in members if m is not None))
    if not entries:
        return None
    return TopicCluster(topic=topic, entries=entries, count=len(entries))
