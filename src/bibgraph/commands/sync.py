"""Command group: writes to the persisted graph mirror."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bibgraph.commands._base import BibGroup
from bibgraph.services.sync import SyncService

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext

_SYNC_EXAMPLES = """\
  bibgraph sync init
  bibgraph --owner u1 sync project thesis
  bibgraph sync cite e1 e2
  bibgraph sync link e1 e2 --type extends --note "builds on section 3"
  bibgraph sync status"""


@click.group(cls=BibGroup, examples=_SYNC_EXAMPLES)
@click.pass_obj
def sync(app: AppContext) -> None:
    """Mirror the library into the traversal graph."""


@sync.command(
    "init",
    examples="""\
  bibgraph sync init
  BIBGRAPH_GRAPH__BACKEND=age bibgraph sync init""",
)
@click.pass_obj
def init_graph(app: AppContext) -> None:
    """Enable the graph store and create the named graph."""
    app.emit(SyncService(app.library).initialize())


@sync.command(
    examples="""\
  bibgraph --owner u1 sync project thesis
  bibgraph --owner u1 --json sync project 3f2a9c"""
)
@click.argument("project")
@click.pass_obj
def project(app: AppContext, project: str) -> None:
    """Resync every entry of PROJECT with its authors and topics."""
    app.emit(SyncService(app.library).resync_project(project, app.require_owner()))


@sync.command(
    examples="""\
  bibgraph sync cite e1 e2"""
)
@click.argument("source_id")
@click.argument("target_id")
@click.pass_obj
def cite(app: AppContext, source_id: str, target_id: str) -> None:
    """Record that SOURCE_ID cites TARGET_ID."""
    app.emit(SyncService(app.library).cite(source_id, target_id))


@sync.command(
    examples="""\
  bibgraph sync link e1 e2 --type contradicts
  bibgraph sync link e1 e2 --type extends --note 'same dataset'"""
)
@click.argument("source_id")
@click.argument("target_id")
@click.option("--type", "link_type", required=True, help="Link type, e.g. extends.")
@click.option("--note", default="", help="Free-text note stored on the link.")
@click.pass_obj
def link(app: AppContext, source_id: str, target_id: str, link_type: str, note: str) -> None:
    """Add a typed link from SOURCE_ID to TARGET_ID."""
    app.emit(SyncService(app.library).link(source_id, target_id, link_type, note))


@sync.command(
    examples="""\
  bibgraph sync status
  bibgraph --json sync status"""
)
@click.pass_obj
def status(app: AppContext) -> None:
    """Show graph store status and element counts."""
    app.emit(SyncService(app.library).status())
