"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console backed by StringIO; the caller
extracts the text via ``get_output(console)``. Renderers are dispatched
by ``result.op`` in :func:`render_result`; unknown ops fall through to a
generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from bibgraph.output.console import create_console, get_output, style_for_edge, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from bibgraph.services.result import ServiceResult


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: node ids, topic names, or a status."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    nodes = result.data.get("nodes")
    if isinstance(nodes, list) and nodes:
        return "\n".join(str(n.get("id", "")) for n in nodes if isinstance(n, dict))
    clusters = result.data.get("clusters")
    if isinstance(clusters, list) and clusters:
        return "\n".join(str(c.get("topic", "")) for c in clusters if isinstance(c, dict))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="bib.ok")
    op = Text(f"  {result.op}", style="bib.op")
    console.print(label, op, sep="", end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="bib.key")
    if key in ("id", "source", "target") or key.endswith("_id"):
        v = Text(str(value), style="bib.id")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block, including the telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _node_table(nodes: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="bib.id", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Label", style="bib.label")
    if verbose:
        table.add_column("Metadata", style="dim")

    for node in nodes:
        kind = str(node.get("type", ""))
        row = [
            str(node.get("id", "")),
            Text(kind, style=style_for_kind(kind)),
            Text(str(node.get("label", ""))),
        ]
        if verbose:
            row.append(Text(_json.dumps(node.get("metadata") or {}, separators=(",", ":"))))
        table.add_row(*row)
    return table


def _edge_table(edges: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Source", style="bib.id", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Target", style="bib.id", no_wrap=True)
    table.add_column("Weight", style="bib.weight", justify="right")
    for edge in edges:
        kind = str(edge.get("type", ""))
        table.add_row(
            str(edge.get("source", "")),
            Text(kind, style=style_for_edge(kind)),
            str(edge.get("target", "")),
            f"{float(edge.get('weight', 0.0)):.1f}",
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="bib.error")
    op = Text(f"  {result.op}", style="bib.op")
    code = Text(f" [{err.code}] " if err else " ", style="bib.key")
    console.print(label, op, code, Text(msg), sep="")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Graph renderers ───────────────────────────────────────────────────


def _render_graph(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fetched or traversed graphs: summary fields, then node and edge tables."""
    _status_line(console, result)
    d = result.data
    for key, value in d.items():
        if key in ("nodes", "edges", "counts"):
            continue
        if value is not None:
            _field(console, key, value)

    counts = d.get("counts") or {}
    _field(console, "nodes", counts.get("nodes", len(d.get("nodes", []))))
    _field(console, "edges", counts.get("edges", len(d.get("edges", []))))

    nodes = d.get("nodes") or []
    edges = d.get("edges") or []
    if nodes:
        console.print()
        console.print(_node_table(nodes, verbose=verbose))
    if edges:
        console.print()
        console.print(_edge_table(edges))
    if verbose:
        _render_meta(console, result)


def _render_path(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Shortest path as a chain of node labels."""
    nodes = result.data.get("nodes") or []
    if not nodes:
        console.print("No path found.")
        return

    chain = [
        f"[bib.id]{escape(str(n.get('id', '?')))}[/bib.id] ({escape(str(n.get('label', '')))})"
        for n in nodes
    ]
    console.print(" → ".join(chain))
    console.print(f"\nPath length: {result.data.get('length', 0)}")
    if verbose:
        _render_meta(console, result)


def _render_clusters(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    clusters = result.data.get("clusters") or []
    _field(console, "project_id", result.data.get("project_id", ""))
    _field(console, "clusters", len(clusters))
    if clusters:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Topic", style="bib.node.topic")
        table.add_column("Count", justify="right")
        table.add_column("Entries", style="bib.id")
        for cluster in clusters:
            table.add_row(
                Text(str(cluster.get("topic", ""))),
                str(cluster.get("count", 0)),
                ", ".join(cluster.get("entries", [])),
            )
        console.print()
        console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_status(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "status", d.get("status", ""))
    if d.get("error"):
        _field(console, "error", d["error"])
    for section in ("vertices", "edges"):
        counts = d.get(section)
        if isinstance(counts, dict):
            total = sum(counts.values())
            detail = ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
            _field(console, section, f"{total} ({detail})" if detail else total)
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Status line plus every data field."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_Renderer = Callable[..., None]

_OP_RENDERERS: dict[str, _Renderer] = {
    "fetch_graph": _render_graph,
    "fetch_library_graph": _render_graph,
    "citation_network": _render_graph,
    "related_by_author": _render_graph,
    "related_by_topic": _render_graph,
    "shortest_path": _render_path,
    "topic_clusters": _render_clusters,
    "graph_status": _render_status,
}
