"""Tests for table definitions."""

from __future__ import annotations

import pytest
from sqlalchemy import insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from bibgraph.infrastructure.database.schema import (
    graph_edges,
    graph_metadata,
    graph_vertices,
    metadata,
)
from tests.conftest import add_entry, add_project


class TestLibraryTables:
    def test_metadata_collections_are_disjoint(self) -> None:
        assert not set(metadata.tables) & set(graph_metadata.tables)

    def test_entry_project_pair_unique(self, engine: Engine) -> None:
        add_project(engine, "p1")
        add_entry(engine, "E1", projects=["p1"])
        with pytest.raises(IntegrityError):
            add_entry(engine, "E2", projects=["p1", "p1"])


class TestGraphTables:
    def test_vertex_identity_unique_per_graph(self, engine: Engine) -> None:
        graph_metadata.create_all(engine)
        row = {"label": "Entry", "key": "E1", "properties": {"id": "E1"}}
        with engine.begin() as conn:
            conn.execute(insert(graph_vertices).values(graph="g1", **row))
            conn.execute(insert(graph_vertices).values(graph="g2", **row))
        with pytest.raises(IntegrityError), engine.begin() as conn:
            conn.execute(insert(graph_vertices).values(graph="g1", **row))

    def test_edge_discriminator_defaults_to_empty(self) -> None:
        assert graph_edges.c.discriminator.server_default.arg == ""
