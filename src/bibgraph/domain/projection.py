"""Edge inference for the request-scoped graph.

:func:`project_graph` is pure: given entry records, tag associations and
annotation counts it emits entry/author/tag nodes, the explicit
``authored_by``/``has_tag`` edges, and the inferred co-occurrence edges.

Precedence: a pair of entries that shares an author gets one
``same_author`` edge and never a ``similar_to`` edge, even when they
also share a tag.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from itertools import combinations
from typing import Any

from bibgraph.domain.keys import author_node_id, normalize_name, pair_key, tag_node_id, truncate_label
from bibgraph.domain.types import (
    EDGE_WEIGHTS,
    EdgeKind,
    EntryRecord,
    GraphData,
    GraphEdge,
    GraphNode,
    NodeKind,
    TagAssociation,
)


def entry_node(record: EntryRecord, annotation_count: int = 0) -> GraphNode:
    metadata: dict[str, Any] = {
        "entryType": record.entry_type,
        "authors": record.author_names,
        "annotationCount": annotation_count,
    }
    if record.year is not None:
        metadata["year"] = record.year
    return GraphNode(
        id=record.id,
        type=NodeKind.ENTRY,
        label=truncate_label(record.title),
        metadata=metadata,
    )


def _edge(source: str, target: str, kind: EdgeKind) -> GraphEdge:
    return GraphEdge(source=source, target=target, type=kind, weight=EDGE_WEIGHTS[kind])


def project_graph(
    records: Sequence[EntryRecord],
    associations: Iterable[TagAssociation] = (),
    annotation_counts: Mapping[str, int] | None = None,
) -> GraphData:
    """Build the full node/edge graph for one scope.

    Records repeating an id are emitted once. Associations for entries
    outside *records* are ignored.
    """
    counts = annotation_counts or {}
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []

    entries: dict[str, EntryRecord] = {}
    for record in records:
        if record.id not in entries:
            entries[record.id] = record
            nodes.append(entry_node(record, counts.get(record.id, 0)))

    # Keyed by node id: spellings differing only in spaces vs hyphens share one.
    by_author: dict[str, list[str]] = {}
    for record in entries.values():
        for name in record.author_names:
            if not normalize_name(name):
                continue
            node_id = author_node_id(name)
            if node_id not in by_author:
                by_author[node_id] = []
                nodes.append(GraphNode(id=node_id, type=NodeKind.AUTHOR, label=name.strip()))
            if record.id in by_author[node_id]:
                continue
            by_author[node_id].append(record.id)
            edges.append(_edge(record.id, node_id, EdgeKind.AUTHORED_BY))

    by_tag: dict[str, list[str]] = {}
    for assoc in associations:
        if assoc.entry_id not in entries:
            continue
        node_id = tag_node_id(assoc.tag_id)
        if node_id not in by_tag:
            by_tag[node_id] = []
            metadata = {"color": assoc.tag_color} if assoc.tag_color else {}
            nodes.append(GraphNode(id=node_id, type=NodeKind.TAG, label=assoc.tag_name, metadata=metadata))
        if assoc.entry_id in by_tag[node_id]:
            continue
        by_tag[node_id].append(assoc.entry_id)
        edges.append(_edge(assoc.entry_id, node_id, EdgeKind.HAS_TAG))

    same_author: set[tuple[str, str]] = set()
    for members in by_author.values():
        for a, b in combinations(members, 2):
            pair = pair_key(a, b)
            if pair in same_author:
                continue
            same_author.add(pair)
            edges.append(_edge(a, b, EdgeKind.SAME_AUTHOR))

    similar: set[tuple[str, str]] = set()
    for members in by_tag.values():
        for a, b in combinations(members, 2):
            pair = pair_key(a, b)
            if pair in same_author or pair in similar:
                continue
            similar.add(pair)
            edges.append(_edge(a, b, EdgeKind.SIMILAR_TO))

    return GraphData(nodes=nodes, edges=edges)
