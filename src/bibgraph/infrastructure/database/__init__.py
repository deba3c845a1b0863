"""Relational library and graph-mirror tables via SQLAlchemy Core."""

from bibgraph.infrastructure.database.engine import create_db_engine, init_database
from bibgraph.infrastructure.database.schema import (
    annotations,
    entries,
    entry_projects,
    entry_tags,
    graph_edges,
    graph_metadata,
    graph_vertices,
    metadata,
    projects,
    tags,
)

__all__ = [
    "annotations",
    "create_db_engine",
    "entries",
    "entry_projects",
    "entry_tags",
    "graph_edges",
    "graph_metadata",
    "graph_vertices",
    "init_database",
    "metadata",
    "projects",
    "tags",
]
