"""View filter — trim node/edge kinds from an already-built graph.

Pure function, no I/O. The author/tag node cascade only removes edges
that touch a removed node; ``same_author`` and ``similar_to`` connect two
entries and are dropped only by their own flags.
"""

from __future__ import annotations

from dataclasses import dataclass

from bibgraph.domain.types import EdgeKind, GraphData, NodeKind


@dataclass(frozen=True)
class ViewOptions:
    """Display flags for :func:`filter_graph`. Everything is shown by default."""

    show_authors: bool = True
    show_tags: bool = True
    show_same_author_edges: bool = True
    show_similar_edges: bool = True

    @property
    def shows_everything(self) -> bool:
        return (
            self.show_authors
            and self.show_tags
            and self.show_same_author_edges
            and self.show_similar_edges
        )


def filter_graph(graph: GraphData, options: ViewOptions | None = None) -> GraphData:
    """Return a new graph with hidden node and edge kinds removed.

    Idempotent: ``filter_graph(filter_graph(g, o), o) == filter_graph(g, o)``.
    """
    options = options or ViewOptions()

    hidden_nodes: set[NodeKind] = set()
    if not options.show_authors:
        hidden_nodes.add(NodeKind.AUTHOR)
    if not options.show_tags:
        hidden_nodes.add(NodeKind.TAG)

    hidden_edges: set[EdgeKind] = set()
    if not options.show_same_author_edges:
        hidden_edges.add(EdgeKind.SAME_AUTHOR)
    if not options.show_similar_edges:
        hidden_edges.add(EdgeKind.SIMILAR_TO)

    nodes = [n for n in graph.nodes if n.type not in hidden_nodes]
    kept = {n.id for n in nodes}
    removed = {n.id for n in graph.nodes} - kept

    edges = [
        e
        for e in graph.edges
        if e.source not in removed and e.target not in removed and e.type not in hidden_edges
    ]
    return GraphData(nodes=nodes, edges=edges)
