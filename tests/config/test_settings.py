"""Tests for BibgraphSettings — unified settings with TOML source."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from bibgraph.config.models import GraphBackend
from bibgraph.config.settings import BibgraphSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(root=tmp_path)
        assert settings.root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.owner is None
        assert settings.graph.backend == GraphBackend.SQL
        assert settings.graph.max_depth == 5
        assert settings.projection.library_limit == 200

    def test_default_database_url(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(root=tmp_path)
        assert settings.database_url == f"sqlite:///{tmp_path / '.bibgraph' / 'library.db'}"
        assert settings.graph_url == settings.database_url

    def test_frozen(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "bibgraph.toml").write_text(
            '[graph]\nbackend = "age"\nmax_depth = 4\n[database]\nurl = "sqlite:///x.db"\n'
        )
        settings = BibgraphSettings.from_cli(root=tmp_path)
        assert settings.graph.backend == GraphBackend.AGE
        assert settings.graph.max_depth == 4
        assert settings.graph.default_depth == 2  # default preserved
        assert settings.database_url == "sqlite:///x.db"

    def test_root_from_config_parent(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "bibgraph.toml").write_text("")
        child = tmp_path / "sub"
        child.mkdir()
        monkeypatch.chdir(child)
        settings = BibgraphSettings.from_cli()
        assert settings.root == tmp_path
        assert settings.config_path == tmp_path / "bibgraph.toml"

    def test_root_from_state_dir_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / ".bibgraph").mkdir()
        (tmp_path / ".bibgraph" / "config.toml").write_text("[graph]\nmax_depth = 3\n")
        monkeypatch.chdir(tmp_path)
        settings = BibgraphSettings.from_cli()
        assert settings.root == tmp_path
        assert settings.graph.max_depth == 3
        assert settings.database_url.endswith(".bibgraph/library.db")

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('owner = "toml-owner"\n')
        settings = BibgraphSettings.from_cli(config_path=str(custom), root=tmp_path)
        assert settings.owner == "toml-owner"
        assert settings.config_path == custom

    def test_missing_explicit_config_raises(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            BibgraphSettings.from_cli(config_path=str(tmp_path / "nope.toml"), root=tmp_path)

    def test_graph_url_override(self, tmp_path: Path) -> None:
        (tmp_path / "bibgraph.toml").write_text('[graph]\nurl = "postgresql://h/db"\n')
        settings = BibgraphSettings.from_cli(root=tmp_path)
        assert settings.graph_url == "postgresql://h/db"

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        (tmp_path / "bibgraph.toml").write_text("[graph\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            BibgraphSettings.from_cli(root=tmp_path)


class TestEnvVars:
    def test_nested_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "bibgraph.toml").write_text("[graph]\nmax_depth = 4\n")
        monkeypatch.setenv("BIBGRAPH_GRAPH__MAX_DEPTH", "3")
        settings = BibgraphSettings.from_cli(root=tmp_path)
        assert settings.graph.max_depth == 3

    def test_owner_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BIBGRAPH_OWNER", "env-owner")
        assert BibgraphSettings.from_cli(root=tmp_path).owner == "env-owner"


class TestCliFlags:
    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(root=tmp_path, json_output=True, quiet=True, verbose=True)
        assert settings.json_output is True
        assert settings.quiet is True
        assert settings.verbose is True

    def test_cli_flag_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BIBGRAPH_OWNER", "env-owner")
        settings = BibgraphSettings.from_cli(root=tmp_path, owner="flag-owner")
        assert settings.owner == "flag-owner"

    def test_none_flags_fall_through(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BIBGRAPH_OWNER", "env-owner")
        settings = BibgraphSettings.from_cli(root=tmp_path, owner=None, quiet=None)
        assert settings.owner == "env-owner"
        assert settings.quiet is False
