"""Resolved bibgraph settings.

Sources, strongest first:

1. keyword arguments (the CLI flags that were actually given)
2. ``BIBGRAPH_*`` environment variables, ``__`` separating nested sections
   (``BIBGRAPH_GRAPH__BACKEND=age``)
3. the workspace config file found by :func:`find_config`
4. defaults on the section models
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from bibgraph.config.discovery import STATE_DIRNAME, find_config, workspace_root
from bibgraph.config.models import DatabaseConfig, GraphConfig, ProjectionConfig

# File read by the TOML source while a settings object is being built.
_active_toml: ContextVar[Path | None] = ContextVar("bibgraph_active_toml", default=None)


class BibgraphSettings(BaseSettings):
    """Settings shared by the CLI and the services.

    ``root`` is the workspace directory: the config file's workspace when one
    was found, otherwise the working directory. The default SQLite library
    lives at ``<root>/.bibgraph/library.db``.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="BIBGRAPH_",
        env_nested_delimiter="__",
    )

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    owner: str | None = None

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    projection: ProjectionConfig = Field(default_factory=ProjectionConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        toml_path = _active_toml.get()
        if toml_path is not None:
            sources.append(TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return tuple(sources)

    @property
    def database_url(self) -> str:
        if self.database.url:
            return self.database.url
        return f"sqlite:///{self.root / STATE_DIRNAME / 'library.db'}"

    @property
    def graph_url(self) -> str:
        """AGE connection URL; the library database unless ``[graph] url`` is set."""
        return self.graph.url or self.database_url

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> BibgraphSettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* must exist; otherwise the file is
        discovered from *root* (or the working directory). Flags given as
        None were not passed on the command line and are left to the
        weaker sources.
        """
        if config_path:
            toml_path: Path | None = Path(config_path).expanduser()
            if not toml_path.is_file():
                raise click.ClickException(f"Config file not found: {config_path}")
        else:
            toml_path = find_config(root)

        if root is None:
            root = workspace_root(toml_path) if toml_path else Path.cwd()

        flags = {name: value for name, value in cli_flags.items() if value is not None}
        token = _active_toml.set(toml_path)
        try:
            return cls(root=root, config_path=toml_path, **flags)
        except tomllib.TOMLDecodeError as exc:
            raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc
        finally:
            _active_toml.reset(token)
