"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Opens the Library lazily and routes results to
stdout/stderr with the right exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bibgraph.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from bibgraph.config.settings import BibgraphSettings
    from bibgraph.infrastructure.library import Library
    from bibgraph.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The library is opened on first use so ``--help`` and ``--version``
    never touch a database.
    """

    def __init__(self, settings: BibgraphSettings) -> None:
        self.settings = settings
        self._library: Library | None = None

        from bibgraph.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from bibgraph.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def library(self) -> Library:
        """The library instance (created lazily on first access)."""
        if self._library is None:
            from bibgraph.infrastructure.library import Library

            self._library = Library(self.settings)
        return self._library

    def require_owner(self) -> str:
        """The owner scope for library reads. Raises a usage error if unset."""
        if not self.settings.owner:
            raise click.UsageError("No owner set. Pass --owner or set BIBGRAPH_OWNER.")
        return self.settings.owner

    def close(self) -> None:
        if self._library is not None:
            self._library.close()
            self._library = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout, normal return. Warnings go to stderr so they
          stay out of piped output.
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
