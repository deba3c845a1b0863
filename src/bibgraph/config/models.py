"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, bibgraph.toml only contains
overrides. A fresh install needs no config file at all.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class GraphBackend(StrEnum):
    """Persisted property-graph store implementations."""

    SQL = "sql"
    AGE = "age"


# --- bibgraph.toml sections ---


class DatabaseConfig(BaseModel):
    """[database] section.

    ``url`` points at the relational library. When unset, a SQLite file
    under ``<root>/.bibgraph/`` is used.
    """

    model_config = {"frozen": True}

    url: str | None = None


class GraphConfig(BaseModel):
    """[graph] section: persisted store and traversal bounds."""

    model_config = {"frozen": True}

    backend: GraphBackend = GraphBackend.SQL
    url: str | None = None  # AGE connection; falls back to [database] url
    name: str = "annobib_graph"
    max_depth: int = Field(default=5, ge=0)
    default_depth: int = Field(default=2, ge=0)
    max_path_hops: int = Field(default=6, ge=1)

    @model_validator(mode="after")
    def _default_within_cap(self) -> GraphConfig:
        if self.default_depth > self.max_depth:
            msg = f"default_depth ({self.default_depth}) exceeds max_depth ({self.max_depth})"
            raise ValueError(msg)
        return self


class ProjectionConfig(BaseModel):
    """[projection] section: whole-library graph bounds."""

    model_config = {"frozen": True}

    library_limit: int = Field(default=200, ge=1)
    library_limit_max: int = Field(default=500, ge=1)

