"""SQLAlchemy Core table definitions.

Two metadata collections:

- :data:`metadata`: the relational library (projects, entries, tags,
  annotations and their associations). bibgraph only reads these; the
  tables are declared so a local SQLite library can be created and so
  queries are typed.
- :data:`graph_metadata`: vertex/edge tables backing the ``sql``
  property-graph store. Every row carries the name of the graph it
  belongs to, so several named graphs can share one database.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

projects = Table(
    "projects",
    metadata,
    Column("id", Text, primary_key=True),
    Column("owner_id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("slug", Text),
    Column("description", Text),
    Column("color", Text, server_default="#4F46E5"),
    Column("created_at", Text, nullable=False),
)

entries = Table(
    "entries",
    metadata,
    Column("id", Text, primary_key=True),
    Column("owner_id", Text, nullable=False),
    Column("entry_type", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("authors", JSON),  # [{"firstName": ..., "lastName": ...}, ...]
    Column("year", Integer),
    Column("created_at", Text, nullable=False),
)

entry_projects = Table(
    "entry_projects",
    metadata,
    Column("entry_id", Text, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
    Column("project_id", Text, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
    Column("added_at", Text, nullable=False),
    UniqueConstraint("entry_id", "project_id"),
)

tags = Table(
    "tags",
    metadata,
    Column("id", Text, primary_key=True),
    Column("owner_id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("color", Text, server_default="#6B7280"),
    UniqueConstraint("owner_id", "name"),
)

entry_tags = Table(
    "entry_tags",
    metadata,
    Column("entry_id", Text, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
    Column("tag_id", Text, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("entry_id", "tag_id"),
)

annotations = Table(
    "annotations",
    metadata,
    Column("id", Text, primary_key=True),
    Column("entry_id", Text, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
    Column("owner_id", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("created_at", Text, nullable=False),
)

Index("ix_projects_owner", projects.c.owner_id)
Index("ix_entries_owner", entries.c.owner_id)
Index("ix_entry_projects_project", entry_projects.c.project_id)
Index("ix_entry_tags_entry", entry_tags.c.entry_id)
Index("ix_annotations_entry", annotations.c.entry_id)

# ---------------------------------------------------------------------------
# Property-graph mirror (sql backend)
# ---------------------------------------------------------------------------

graph_metadata = MetaData()

graph_vertices = Table(
    "graph_vertices",
    graph_metadata,
    Column("gid", Integer, primary_key=True, autoincrement=True),
    Column("graph", Text, nullable=False),
    Column("label", Text, nullable=False),  # Entry | Author | Topic
    Column("key", Text, nullable=False),
    Column("properties", JSON, nullable=False),
    UniqueConstraint("graph", "label", "key"),
)

graph_edges = Table(
    "graph_edges",
    graph_metadata,
    Column("gid", Integer, primary_key=True, autoincrement=True),
    Column("graph", Text, nullable=False),
    Column("label", Text, nullable=False),  # AUTHORED_BY | HAS_TOPIC | CITES | USER_LINK
    Column("start_gid", Integer, ForeignKey("graph_vertices.gid"), nullable=False),
    Column("end_gid", Integer, ForeignKey("graph_vertices.gid"), nullable=False),
    # Extra identity component; USER_LINK uses the link type, others "".
    Column("discriminator", Text, nullable=False, server_default=""),
    Column("properties", JSON, nullable=False),
    UniqueConstraint("graph", "label", "start_gid", "end_gid", "discriminator"),
)

Index("ix_graph_edges_start", graph_edges.c.start_gid)
Index("ix_graph_edges_end", graph_edges.c.end_gid)
