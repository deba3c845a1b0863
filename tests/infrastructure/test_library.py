"""Tests for Library — engine, repository and graph-store wiring."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import inspect

from bibgraph.config.settings import BibgraphSettings
from bibgraph.infrastructure.graph.client import StoreStatus
from bibgraph.infrastructure.graph.sql_store import SqlGraphStore
from bibgraph.infrastructure.library import Library


class TestLibrary:
    def test_creates_default_database(self, library: Library) -> None:
        assert (library.settings.root / ".bibgraph" / "library.db").exists()

    def test_graph_is_lazy(self, library: Library) -> None:
        assert library.graph.status is StoreStatus.PENDING
        assert "graph_vertices" not in inspect(library.engine).get_table_names()

    def test_sql_backend_shares_engine(self, library: Library) -> None:
        assert library.graph.ensure_ready()
        assert isinstance(library.graph.store, SqlGraphStore)
        assert library.graph.store.graph_name == "annobib_graph"
        assert "graph_vertices" in inspect(library.engine).get_table_names()

    def test_separate_graph_database(self, tmp_path: Path) -> None:
        graph_db = tmp_path / "graph.db"
        settings = BibgraphSettings.from_cli(
            root=tmp_path, graph={"url": f"sqlite:///{graph_db}", "name": "g"}
        )
        lib = Library(settings)
        try:
            assert lib.graph.ensure_ready()
            assert graph_db.exists()
            assert "graph_vertices" not in inspect(lib.engine).get_table_names()
        finally:
            lib.close()

    def test_unreachable_age_backend_is_unavailable(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(
            root=tmp_path,
            graph={"backend": "age", "url": "postgresql://nobody@127.0.0.1:1/none"},
        )
        lib = Library(settings)
        try:
            assert lib.graph.ensure_ready() is False
            assert lib.graph.status is StoreStatus.UNAVAILABLE
            assert lib.graph.error
        finally:
            lib.close()

    def test_close_is_safe_before_use(self, tmp_path: Path) -> None:
        Library(BibgraphSettings.from_cli(root=tmp_path)).close()
