"""Rich theme and buffered consoles for human-readable bibgraph output.

Renderers print into a StringIO-backed console and hand back the text, so
commands decide where it goes. Rich drops color codes when stdout is not a
terminal, which keeps test output plain.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

from bibgraph.domain.types import EdgeKind, NodeKind

_NODE_COLORS: dict[NodeKind, str] = {
    NodeKind.ENTRY: "green",
    NodeKind.AUTHOR: "yellow",
    NodeKind.TAG: "cyan",
    NodeKind.TOPIC: "blue",
}

# Derived edges are dimmed; explicit relations stand out.
_EDGE_COLORS: dict[EdgeKind, str] = {
    EdgeKind.AUTHORED_BY: "default",
    EdgeKind.HAS_TAG: "default",
    EdgeKind.CITES: "bold",
    EdgeKind.SAME_AUTHOR: "dim",
    EdgeKind.SIMILAR_TO: "dim",
    EdgeKind.USER_LINK: "bold magenta",
}

BIB_THEME = Theme(
    {
        "bib.ok": "bold green",
        "bib.error": "bold red",
        "bib.warning": "bold yellow",
        "bib.op": "bold cyan",
        "bib.key": "dim",
        "bib.id": "bold blue",
        "bib.label": "bold",
        "bib.weight": "magenta",
        **{f"bib.node.{kind.value}": color for kind, color in _NODE_COLORS.items()},
        **{f"bib.edge.{kind.value}": color for kind, color in _EDGE_COLORS.items()},
    }
)

DEFAULT_WIDTH = 120


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Console writing into an in-memory buffer; read it back with get_output."""
    return Console(
        file=StringIO(),
        theme=BIB_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Theme style for a node kind, or "" when the kind is unknown."""
    name = f"bib.node.{kind}"
    return name if name in BIB_THEME.styles else ""


def style_for_edge(kind: str) -> str:
    """Theme style for an edge kind, or "" when the kind is unknown."""
    name = f"bib.edge.{kind}"
    return name if name in BIB_THEME.styles else ""
