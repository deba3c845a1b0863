"""Command group: request-scoped graph fetches."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from bibgraph.commands._base import BibGroup
from bibgraph.domain.view import ViewOptions
from bibgraph.services.projection import ProjectionService

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext

_GRAPH_EXAMPLES = """\
  bibgraph --owner u1 graph fetch thesis
  bibgraph --owner u1 graph fetch thesis --no-authors --no-similar
  bibgraph --owner u1 --json graph library --limit 100"""


def _view_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the four display flags to a command."""
    options = [
        click.option("--no-authors", "hide_authors", is_flag=True, help="Hide author nodes."),
        click.option("--no-tags", "hide_tags", is_flag=True, help="Hide tag nodes."),
        click.option(
            "--no-same-author", "hide_same_author", is_flag=True, help="Hide same_author edges."
        ),
        click.option("--no-similar", "hide_similar", is_flag=True, help="Hide similar_to edges."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _options(hide_authors: bool, hide_tags: bool, hide_same_author: bool, hide_similar: bool) -> ViewOptions:
    return ViewOptions(
        show_authors=not hide_authors,
        show_tags=not hide_tags,
        show_same_author_edges=not hide_same_author,
        show_similar_edges=not hide_similar,
    )


@click.group(cls=BibGroup, examples=_GRAPH_EXAMPLES)
@click.pass_obj
def graph(app: AppContext) -> None:
    """Build relationship graphs from the library."""


@graph.command(
    examples="""\
  bibgraph --owner u1 graph fetch thesis
  bibgraph --owner u1 graph fetch 3f2a9c --no-tags
  bibgraph --owner u1 --json graph fetch thesis --no-same-author"""
)
@click.argument("project")
@_view_options
@click.pass_obj
def fetch(
    app: AppContext,
    project: str,
    hide_authors: bool,
    hide_tags: bool,
    hide_same_author: bool,
    hide_similar: bool,
) -> None:
    """Build the graph of PROJECT (id or slug)."""
    options = _options(hide_authors, hide_tags, hide_same_author, hide_similar)
    app.emit(ProjectionService(app.library).fetch(project, app.require_owner(), options))


@graph.command(
    examples="""\
  bibgraph --owner u1 graph library
  bibgraph --owner u1 graph library --limit 50 --no-authors"""
)
@click.option("--limit", type=int, default=None, help="Most recent entries to include.")
@_view_options
@click.pass_obj
def library(
    app: AppContext,
    limit: int | None,
    hide_authors: bool,
    hide_tags: bool,
    hide_same_author: bool,
    hide_similar: bool,
) -> None:
    """Build the graph of the owner's most recent entries."""
    options = _options(hide_authors, hide_tags, hide_same_author, hide_similar)
    app.emit(
        ProjectionService(app.library).fetch_library(app.require_owner(), limit=limit, options=options)
    )
