"""Root CLI group for bibgraph with global flags and command registration."""

from __future__ import annotations

import click

from bibgraph import __version__
from bibgraph.commands import register_commands
from bibgraph.commands._context import AppContext
from bibgraph.config.settings import BibgraphSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="bibgraph")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with timings.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--owner", default=None, help="Owner scope for library reads [env: BIBGRAPH_OWNER].")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    owner: str | None,
) -> None:
    """bibgraph — relationship graphs over a bibliographic library."""
    settings = BibgraphSettings.from_cli(
        config_path=config_path,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        owner=owner,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
