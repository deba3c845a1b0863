"""Click command classes carrying on-demand usage examples.

``--help`` stays short; ``--examples`` prints the example block registered
with ``examples=...`` and exits. On a group, the listing also names the
subcommands that have their own examples.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click


class ExamplesOption(click.Option):
    """Eager ``--examples`` flag that prints and exits."""

    def __init__(self) -> None:
        super().__init__(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=self._show,
            help="Show usage examples.",
        )

    @staticmethod
    def _show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        command = ctx.command
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(getattr(command, "examples", "") or "")
        if isinstance(command, click.Group):
            related = [
                name
                for name, sub in sorted(command.commands.items())
                if getattr(sub, "examples", None) and not sub.hidden
            ]
            if related:
                click.echo(f"\nMore with: {ctx.command_path} <{'|'.join(related)}> --examples")
        ctx.exit(0)


def _normalize(examples: str | None) -> str | None:
    if not examples:
        return None
    return textwrap.indent(textwrap.dedent(examples).strip("\n"), "  ")


class BibCommand(click.Command):
    """Command accepting an ``examples`` block."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = _normalize(examples)
        if self.examples:
            self.params.append(ExamplesOption())


class BibGroup(click.Group):
    """Group accepting an ``examples`` block.

    Subcommands created through the group decorator are :class:`BibCommand`.
    """

    command_class = BibCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = _normalize(examples)
        if self.examples:
            self.params.append(ExamplesOption())
