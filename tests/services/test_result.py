"""Tests for ServiceResult and ServiceError."""

from __future__ import annotations

import json

import pytest

from bibgraph.services.result import ErrorCode, ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="fetch_graph", data={"project_id": "p1"})
        assert result.ok is True
        assert result.op == "fetch_graph"
        assert result.data == {"project_id": "p1"}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_helper(self) -> None:
        result = ServiceResult.failure(
            "resync_project",
            ErrorCode.NOT_FOUND,
            "No project 'x'",
            detail={"project": "x"},
            warnings=["careful"],
        )
        assert result.ok is False
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.detail == {"project": "x"}
        assert result.warnings == ["careful"]
        assert result.data == {}

    def test_json_serialization(self) -> None:
        result = ServiceResult(ok=True, op="test", data={"key": "value"}, meta={"duration_ms": 42})
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"]["key"] == "value"
        assert parsed["meta"]["duration_ms"] == 42

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(Exception):
            result.ok = False  # type: ignore[misc]


class TestErrorCode:
    def test_values(self) -> None:
        assert {c.value for c in ErrorCode} == {
            "NOT_FOUND",
            "GRAPH_UNAVAILABLE",
            "SYNC_FAILED",
            "INVALID_ARGUMENT",
        }

    def test_error_detail_defaults_empty(self) -> None:
        assert ServiceError(code="X", message="m").detail == {}
