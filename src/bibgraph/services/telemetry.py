"""Span timing for service calls.

Disabled unless ``--verbose`` is given, in which case each ``@traced``
service method records a tree of timed steps and returns it under
``ServiceResult.meta["telemetry"]``. Steps can carry annotations such as
row, node and edge counts. Disabled cost is one ContextVar lookup.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from bibgraph.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("bibgraph_telemetry", default=False)
_current_span: ContextVar[Span | None] = ContextVar("bibgraph_span", default=None)

log = structlog.get_logger("bibgraph.telemetry")


@dataclass
class Span:
    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, **fields: Any) -> None:
        self.annotations.update(fields)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def _activate(span: Span) -> Generator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a step inside the active traced call.

    Yields None when telemetry is off or nothing is being traced, so callers
    guard annotations with ``if span:``.
    """
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    child = Span(name=name, parent=parent)
    parent.children.append(child)
    with _activate(child):
        yield child


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Record a root span around a service method.

    A returned ServiceResult gets a copy with the span tree merged into its
    ``meta``; other return values pass through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        ok = False
        try:
            with _activate(root):
                result = func(*args, **kwargs)
            ok = bool(getattr(result, "ok", True))
        finally:
            log.debug(
                "span.complete",
                span_name=root.name,
                duration_ms=round(root.duration_ms, 2),
                ok=ok,
                children=len(root.children),
                **root.annotations,
            )

        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": root.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Start collecting spans in the current context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """Innermost active span, or None when telemetry is off."""
    return _current_span.get() if _enabled.get() else None
