"""Shared pytest fixtures and test helpers for bibgraph tests."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from itertools import count
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy import insert
from sqlalchemy.engine import Engine

from bibgraph.config.settings import BibgraphSettings
from bibgraph.infrastructure.database.schema import (
    annotations,
    entries,
    entry_projects,
    entry_tags,
    projects,
    tags,
)
from bibgraph.infrastructure.library import Library
from bibgraph.services.telemetry import disable_telemetry

OWNER = "owner-1"

_clock = count(1)


def _stamp() -> str:
    """Strictly increasing timestamps so insertion order is recoverable."""
    return f"2024-01-01T00:00:{next(_clock):06d}"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("BIBGRAPH_CONFIG", "BIBGRAPH_OWNER", "BIBGRAPH_DATABASE__URL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _telemetry_off() -> Iterator[None]:
    """``--verbose`` turns telemetry on for the whole context; switch it back off."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """The CLI reconfigures logging onto CliRunner's streams; undo that."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> BibgraphSettings:
    return BibgraphSettings.from_cli(root=tmp_path)


@pytest.fixture
def library(settings: BibgraphSettings) -> Iterator[Library]:
    """Library on a temp SQLite file with the ``sql`` graph backend."""
    lib = Library(settings)
    try:
        yield lib
    finally:
        lib.close()


@pytest.fixture
def engine(library: Library) -> Engine:
    return library.engine


@pytest.fixture
def cli_library(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Library]:
    """A library the CLI will open too: same database URL via env, CWD in tmp."""
    url = f"sqlite:///{tmp_path / 'cli-library.db'}"
    monkeypatch.setenv("BIBGRAPH_DATABASE__URL", url)
    monkeypatch.setenv("BIBGRAPH_OWNER", OWNER)
    monkeypatch.chdir(tmp_path)
    lib = Library(BibgraphSettings.from_cli(root=tmp_path))
    try:
        yield lib
    finally:
        lib.close()


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def add_project(
    engine: Engine,
    project_id: str,
    *,
    owner: str = OWNER,
    name: str | None = None,
    slug: str | None = None,
) -> str:
    with engine.begin() as conn:
        conn.execute(
            insert(projects).values(
                id=project_id,
                owner_id=owner,
                name=name or project_id.title(),
                slug=slug,
                created_at=_stamp(),
            )
        )
    return project_id


def _author(raw: str | dict[str, str]) -> dict[str, str]:
    if isinstance(raw, dict):
        return raw
    first, _, last = raw.partition(" ")
    return {"firstName": first, "lastName": last}


def add_entry(
    engine: Engine,
    entry_id: str,
    *,
    owner: str = OWNER,
    title: str | None = None,
    authors: Iterable[str | dict[str, str]] = (),
    year: int | None = None,
    entry_type: str = "article",
    projects: Iterable[str] = (),
) -> str:
    """Insert an entry. ``"Alice Smith"`` authors become firstName/lastName dicts."""
    with engine.begin() as conn:
        conn.execute(
            insert(entries).values(
                id=entry_id,
                owner_id=owner,
                entry_type=entry_type,
                title=title or f"Title of {entry_id}",
                authors=[_author(a) for a in authors],
                year=year,
                created_at=_stamp(),
            )
        )
        for project_id in projects:
            conn.execute(
                insert(entry_projects).values(
                    entry_id=entry_id, project_id=project_id, added_at=_stamp()
                )
            )
    return entry_id


def add_tag(
    engine: Engine,
    tag_id: str,
    *,
    owner: str = OWNER,
    name: str | None = None,
    color: str | None = "#ff0000",
    entry_ids: Iterable[str] = (),
) -> str:
    with engine.begin() as conn:
        conn.execute(
            insert(tags).values(id=tag_id, owner_id=owner, name=name or tag_id, color=color)
        )
        for entry_id in entry_ids:
            conn.execute(insert(entry_tags).values(entry_id=entry_id, tag_id=tag_id))
    return tag_id


def add_annotations(engine: Engine, entry_id: str, n: int, *, owner: str = OWNER) -> None:
    with engine.begin() as conn:
        for i in range(n):
            conn.execute(
                insert(annotations).values(
                    id=f"{entry_id}-ann-{i}",
                    entry_id=entry_id,
                    owner_id=owner,
                    content=f"note {i}",
                    created_at=_stamp(),
                )
            )


def seed_worked_example(engine: Engine, project_id: str = "p1") -> None:
    """E1/E2 by Alice, E3 by Bob; E1 and E2 tagged t1."""
    add_project(engine, project_id, slug=f"{project_id}-slug")
    add_entry(engine, "E1", authors=["Alice"], projects=[project_id])
    add_entry(engine, "E2", authors=["Alice"], projects=[project_id])
    add_entry(engine, "E3", authors=["Bob"], projects=[project_id])
    add_tag(engine, "t1", entry_ids=["E1", "E2"])


def ok_data(result: Any) -> dict[str, Any]:
    """Assert a ServiceResult succeeded and return its data."""
    assert result.ok, result.error
    return result.data
