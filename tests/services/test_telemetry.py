"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import time
from collections.abc import Generator

import pytest
from sqlalchemy.engine import Engine

from bibgraph.infrastructure.library import Library
from bibgraph.services.result import ServiceError, ServiceResult
from bibgraph.services.telemetry import (
    Span,
    _current_span,
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)
from tests.conftest import OWNER, seed_worked_example


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)


# ── Span unit tests ──────────────────────────────────────────────────


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        assert Span(name="test").duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_minimal(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "duration_ms" in d
        assert "children" not in d
        assert "annotations" not in d

    def test_to_dict_with_children(self) -> None:
        root = Span(name="root")
        child = Span(name="child", parent=root)
        root.children.append(child)
        child.end()
        root.end()
        assert root.to_dict()["children"][0]["name"] == "child"

    def test_annotate(self) -> None:
        span = Span(name="test")
        span.annotate(rows=42)
        span.end()
        assert span.to_dict()["annotations"] == {"rows": 42}


# ── trace_span tests ─────────────────────────────────────────────────


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("test") as span:
            assert span is None

    def test_no_root_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("test") as span:
            assert span is None

    def test_nested_spans(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("a"):
                with trace_span("b"):
                    pass
            assert root.children[0].name == "a"
            assert root.children[0].children[0].name == "b"
            assert root.children[0].end_time is not None
        finally:
            _current_span.reset(token)


# ── @traced decorator tests ──────────────────────────────────────────


class TestTracedDecorator:
    def test_noop_when_disabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        assert my_func().meta is None

    def test_injects_meta_when_enabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            with trace_span("stage_a"):
                pass
            return ServiceResult(ok=True, op="test", meta={"existing": "data"})

        enable_telemetry()
        result = my_func()
        assert result.meta is not None
        assert result.meta["existing"] == "data"
        assert result.meta["telemetry"]["name"].endswith("my_func")
        assert result.meta["telemetry"]["children"][0]["name"] == "stage_a"

    def test_non_service_result_passthrough(self) -> None:
        @traced
        def my_func() -> str:
            return "hello"

        enable_telemetry()
        assert my_func() == "hello"

    def test_exception_propagates(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            msg = "boom"
            raise ValueError(msg)

        enable_telemetry()
        with pytest.raises(ValueError, match="boom"):
            my_func()
        assert _current_span.get() is None

    def test_error_result_gets_telemetry(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=False, op="test", error=ServiceError(code="FAIL", message="oops"))

        enable_telemetry()
        result = my_func()
        assert result.meta is not None
        assert "telemetry" in result.meta


class TestGetCurrentSpan:
    def test_returns_none_when_disabled(self) -> None:
        assert get_current_span() is None

    def test_returns_span_when_enabled(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            assert get_current_span() is root
        finally:
            _current_span.reset(token)


# ── Spans from real services ─────────────────────────────────────────


class TestTracedOnRealServices:
    def test_fetch_has_child_spans(self, library: Library, engine: Engine) -> None:
        from bibgraph.services.projection import ProjectionService

        seed_worked_example(engine)
        enable_telemetry()
        result = ProjectionService(library).fetch("p1", OWNER)
        assert result.ok
        assert result.meta is not None
        tel = result.meta["telemetry"]
        assert "ProjectionService.fetch" in tel["name"]
        children = {c["name"]: c for c in tel.get("children", [])}
        assert {"build_graph", "filter_graph"} <= set(children)
        assert children["build_graph"]["annotations"] == {"nodes": 6, "edges": 6}

    def test_traversal_query_span(self, library: Library) -> None:
        from bibgraph.services.traversal import TraversalService

        enable_telemetry()
        result = TraversalService(library).citation_network("ghost")
        assert result.meta is not None
        children = result.meta["telemetry"]["children"]
        assert children[0]["name"] == "query"
        assert children[0]["annotations"] == {"rows": 0}
