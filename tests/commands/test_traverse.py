"""Tests for traverse CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from bibgraph.cli import cli
from bibgraph.infrastructure.library import Library
from bibgraph.services.sync import SyncService
from tests.conftest import OWNER, seed_worked_example


@pytest.fixture
def synced(cli_library: Library) -> Library:
    seed_worked_example(cli_library.engine)
    svc = SyncService(cli_library)
    svc.resync_project("p1", OWNER)
    svc.cite("E1", "E2")
    svc.cite("E2", "E3")
    return cli_library


class TestTraverseCommands:
    def test_citations(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["--json", "traverse", "citations", "E1"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert [n["id"] for n in data["nodes"]] == ["E1", "E2", "E3"]

    def test_citations_depth_zero(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["-q", "traverse", "citations", "E1", "--depth", "0"])
        assert result.output.split() == ["E1"]

    def test_citations_clamped_warns(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["traverse", "citations", "E1", "--depth", "50"])
        assert result.exit_code == 0
        assert "WARNING: depth 50 clamped to 5" in result.output

    def test_related(self, cli_runner: CliRunner, synced: Library) -> None:
        by_author = cli_runner.invoke(cli, ["-q", "traverse", "related", "E1"])
        assert by_author.output.split() == ["E2"]
        by_topic = cli_runner.invoke(cli, ["-q", "traverse", "related", "E2", "--by", "topic"])
        assert by_topic.output.split() == ["E1"]

    def test_related_bad_choice(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["traverse", "related", "E1", "--by", "venue"])
        assert result.exit_code == 2

    def test_path(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["traverse", "path", "E1", "E3"])
        assert result.exit_code == 0
        assert "Path length: 2" in result.output
        assert "E1 (Title of E1) → E2 (Title of E2) → E3 (Title of E3)" in result.output

    def test_path_not_found(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["traverse", "path", "E1", "ghost"])
        assert result.exit_code == 0
        assert "No path found." in result.output

    def test_clusters(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["--json", "traverse", "clusters", "p1"])
        clusters = json.loads(result.output)["data"]["clusters"]
        assert clusters == [{"topic": "t1", "entries": ["E1", "E2"], "count": 2}]

    def test_clusters_by_slug(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["--json", "traverse", "clusters", "p1-slug"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["project_id"] == "p1"
        assert data["count"] == 1

    def test_clusters_unknown_project(self, cli_runner: CliRunner, synced: Library) -> None:
        result = cli_runner.invoke(cli, ["--json", "traverse", "clusters", "nope"])
        assert result.exit_code == 1
        assert '"NOT_FOUND"' in result.output

    def test_unavailable_age_backend(
        self, cli_runner: CliRunner, cli_library: Library, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BIBGRAPH_GRAPH__BACKEND", "age")
        monkeypatch.setenv("BIBGRAPH_GRAPH__URL", "postgresql://nobody@127.0.0.1:1/none")
        result = cli_runner.invoke(cli, ["--json", "traverse", "citations", "E1"])
        assert result.exit_code == 1
        assert '"GRAPH_UNAVAILABLE"' in result.output
