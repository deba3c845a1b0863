"""Read-only adapter over the relational library.

Every entry read is scoped by owner. Callers pass the owner again on the
second read (``get_entries``) even though the scope query already
filtered by it; the repository applies it each time.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.engine import Engine

from bibgraph.domain.types import AuthorName, EntryRecord, TagAssociation
from bibgraph.infrastructure.database.schema import (
    annotations,
    entries,
    entry_projects,
    entry_tags,
    projects,
    tags,
)


class LibraryRepository:
    """Encapsulates SQL for the reads the graph subsystem needs."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def resolve_project(self, project_ref: str, owner_id: str) -> dict[str, Any] | None:
        """Find an owner's project by id or slug."""
        stmt = select(projects).where(
            or_(projects.c.id == project_ref, projects.c.slug == project_ref),
            projects.c.owner_id == owner_id,
        )
        with self._engine.connect() as conn:
            row = conn.execute(stmt.order_by(projects.c.id)).mappings().first()
        return dict(row) if row is not None else None

    def scope_entry_ids(self, project_id: str, owner_id: str) -> list[str]:
        """Entry ids in a project that belong to *owner_id*, in insertion order."""
        stmt = (
            select(entry_projects.c.entry_id)
            .join(entries, entries.c.id == entry_projects.c.entry_id)
            .where(entry_projects.c.project_id == project_id, entries.c.owner_id == owner_id)
            .order_by(entry_projects.c.added_at, entry_projects.c.entry_id)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return _unique(str(row.entry_id) for row in rows)

    def recent_entry_ids(self, owner_id: str, limit: int) -> list[str]:
        """The owner's most recently created entries, newest first."""
        stmt = (
            select(entries.c.id)
            .where(entries.c.owner_id == owner_id)
            .order_by(entries.c.created_at.desc(), entries.c.id)
            .limit(limit)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [str(row.id) for row in rows]

    def get_entries(self, entry_ids: Sequence[str], owner_id: str) -> list[EntryRecord]:
        """Full entry records for *entry_ids*, returned in the order given."""
        if not entry_ids:
            return []

        stmt = select(
            entries.c.id,
            entries.c.title,
            entries.c.entry_type,
            entries.c.year,
            entries.c.authors,
        ).where(entries.c.id.in_(entry_ids), entries.c.owner_id == owner_id)
        tag_stmt = select(entry_tags.c.entry_id, entry_tags.c.tag_id).where(
            entry_tags.c.entry_id.in_(entry_ids)
        )

        with self._engine.connect() as conn:
            rows = {str(r.id): r for r in conn.execute(stmt).fetchall()}
            tag_ids: dict[str, list[str]] = {}
            for r in conn.execute(tag_stmt.order_by(entry_tags.c.tag_id)).fetchall():
                tag_ids.setdefault(str(r.entry_id), []).append(str(r.tag_id))

        records: list[EntryRecord] = []
        for entry_id in _unique(entry_ids):
            row = rows.get(entry_id)
            if row is None:
                continue
            records.append(
                EntryRecord(
                    id=entry_id,
                    title=str(row.title),
                    entry_type=str(row.entry_type),
                    year=row.year,
                    authors=tuple(AuthorName.from_raw(a) for a in _parse_authors(row.authors)),
                    tag_ids=tuple(tag_ids.get(entry_id, [])),
                )
            )
        return records

    def get_tag_associations(self, entry_ids: Sequence[str]) -> list[TagAssociation]:
        """Entry–tag associations with tag name and colour."""
        if not entry_ids:
            return []

        stmt = (
            select(entry_tags.c.entry_id, tags.c.id, tags.c.name, tags.c.color)
            .join(tags, tags.c.id == entry_tags.c.tag_id)
            .where(entry_tags.c.entry_id.in_(entry_ids))
            .order_by(entry_tags.c.entry_id, tags.c.name, tags.c.id)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [
            TagAssociation(
                entry_id=str(r.entry_id),
                tag_id=str(r.id),
                tag_name=str(r.name),
                tag_color=r.color,
            )
            for r in rows
        ]

    def get_annotation_counts(self, entry_ids: Sequence[str]) -> dict[str, int]:
        """Annotation count per entry. Entries without annotations are absent."""
        if not entry_ids:
            return {}

        stmt = (
            select(annotations.c.entry_id, func.count(annotations.c.id).label("n"))
            .where(annotations.c.entry_id.in_(entry_ids))
            .group_by(annotations.c.entry_id)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return {str(r.entry_id): int(r.n) for r in rows}


def _unique(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def _parse_authors(raw: Any) -> list[Any]:
    """Authors are stored as JSON; tolerate text columns and nulls."""
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return []
    return list(raw) if isinstance(raw, list) else []
