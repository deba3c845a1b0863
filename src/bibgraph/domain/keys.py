"""Identity keys for derived vertices.

Author and tag identities are derived from display text, not from any
stable global identifier. Two spellings of one real author produce two
keys, and two people sharing a name collapse into one. No entity
resolution happens here.

Two key families exist:
- Projection node ids (per build): ``author-<name>``, ``tag-<tag id>``.
- Persisted vertex keys (shared across projects): ``author:<name>``,
  ``topic:<name>``.
"""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")

LABEL_MAX_LENGTH = 50
_ELLIPSIS = "..."


def normalize_name(name: str) -> str:
    """Casefold and collapse runs of whitespace to a single space.

    Examples:
        >>> normalize_name("  Ada   LOVELACE ")
        'ada lovelace'
    """
    return _WHITESPACE.sub(" ", name.casefold()).strip()


def author_node_id(name: str) -> str:
    """Projection node id for an author display name.

    Examples:
        >>> author_node_id("Alice  Smith")
        'author-alice-smith'
    """
    return "author-" + normalize_name(name).replace(" ", "-")


def tag_node_id(tag_id: str) -> str:
    """Projection node id for a tag."""
    return f"tag-{tag_id}"


def author_vertex_key(name: str) -> str:
    """Persisted Author vertex key.

    Examples:
        >>> author_vertex_key("Alice Smith")
        'author:alice_smith'
    """
    return "author:" + normalize_name(name).replace(" ", "_")


def topic_vertex_key(name: str) -> str:
    """Persisted Topic vertex key."""
    return "topic:" + normalize_name(name).replace(" ", "_")


def truncate_label(title: str) -> str:
    """Cap an entry label at 50 characters, ending in ``...`` when cut."""
    if len(title) <= LABEL_MAX_LENGTH:
        return title
    return title[: LABEL_MAX_LENGTH - len(_ELLIPSIS)] + _ELLIPSIS


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Order-independent key for an unordered entry pair."""
    return (a, b) if a <= b else (b, a)
