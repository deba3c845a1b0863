"""Command group: multi-hop queries over the graph mirror."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bibgraph.commands._base import BibGroup
from bibgraph.services.traversal import TraversalService

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext

_TRAVERSE_EXAMPLES = """\
  bibgraph traverse citations e1 --depth 3
  bibgraph traverse related e1 --by topic
  bibgraph traverse path e1 e9
  bibgraph --owner u1 traverse clusters thesis"""


@click.group(cls=BibGroup, examples=_TRAVERSE_EXAMPLES)
@click.pass_obj
def traverse(app: AppContext) -> None:
    """Query the persisted graph."""


@traverse.command(
    examples="""\
  bibgraph traverse citations e1
  bibgraph traverse citations e1 --depth 0
  bibgraph --json traverse citations e1 --depth 4"""
)
@click.argument("entry_id")
@click.option("--depth", type=int, default=None, help="Hops to follow (capped by [graph] max_depth).")
@click.pass_obj
def citations(app: AppContext, entry_id: str, depth: int | None) -> None:
    """Entries reachable from ENTRY_ID over cites edges."""
    app.emit(TraversalService(app.library).citation_network(entry_id, depth))


@traverse.command(
    examples="""\
  bibgraph traverse related e1
  bibgraph traverse related e1 --by topic"""
)
@click.argument("entry_id")
@click.option(
    "--by",
    type=click.Choice(["author", "topic"]),
    default="author",
    show_default=True,
    help="Shared vertex kind.",
)
@click.pass_obj
def related(app: AppContext, entry_id: str, by: str) -> None:
    """Entries sharing an author or topic with ENTRY_ID."""
    svc = TraversalService(app.library)
    if by == "topic":
        app.emit(svc.related_by_topic(entry_id))
    else:
        app.emit(svc.related_by_author(entry_id))


@traverse.command(
    examples="""\
  bibgraph traverse path e1 e9
  bibgraph --json traverse path e1 e9"""
)
@click.argument("source_id")
@click.argument("target_id")
@click.pass_obj
def path(app: AppContext, source_id: str, target_id: str) -> None:
    """Shortest connection between two entries."""
    app.emit(TraversalService(app.library).shortest_path(source_id, target_id))


@traverse.command(
    examples="""\
  bibgraph --owner u1 traverse clusters thesis
  bibgraph --owner u1 traverse clusters 3f2a9c"""
)
@click.argument("project")
@click.pass_obj
def clusters(app: AppContext, project: str) -> None:
    """Entries of PROJECT (id or slug) grouped by topic."""
    app.emit(TraversalService(app.library).topic_clusters(project, app.require_owner()))
