"""Subcommand groups for bibgraph.

register_commands() imports each group lazily so ``bibgraph --help``
stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``graph``, ``sync`` and ``traverse`` groups on the root CLI."""
    from bibgraph.commands.graph import graph
    from bibgraph.commands.sync import sync
    from bibgraph.commands.traverse import traverse

    cli.add_command(graph)
    cli.add_command(sync)
    cli.add_command(traverse)
