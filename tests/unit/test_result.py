"""Tests for Envelope, PaginationMeta and the Success/Abort results."""

from __future__ import annotations

import datetime

import pytest

from fastapi_resource_pipeline.result import (
    Abort,
    Envelope,
    PaginationMeta,
    Success,
    failure,
    success,
)


class TestEnvelope:
    def test_success_defaults(self) -> None:
        envelope = success({"id": 1})
        assert envelope.to_dict() == {"code": 200, "msg": "Success", "data": {"id": 1}}

    def test_pagination_only_present_when_set(self) -> None:
        meta = PaginationMeta(current_page=1, per_page=2, total_pages=2, total_count=3)
        body = success([], pagination=meta).to_dict()
        assert body["pagination"] == {
            "current_page": 1,
            "per_page": 2,
            "total_pages": 2,
            "total_count": 3,
        }
        assert "pagination" not in success([]).to_dict()

    def test_failure_keeps_null_data(self) -> None:
        assert failure("access denied", code=403).to_dict() == {
            "code": 403,
            "msg": "access denied",
            "data": None,
        }

    def test_msg_may_be_field_errors(self) -> None:
        envelope = failure({"email": ["Field required"]}, code=400)
        assert envelope.to_dict()["msg"] == {"email": ["Field required"]}

    def test_data_is_made_json_safe(self) -> None:
        envelope = success({"at": datetime.date(2024, 5, 1)})
        assert envelope.to_dict()["data"] == {"at": "2024-05-01"}

    def test_custom_success_code(self) -> None:
        assert success(None, code=201, msg="Created").to_dict()["code"] == 201


class TestResults:
    def test_success_is_ok(self) -> None:
        assert Success(success(None)).ok is True

    def test_abort_is_not_ok(self) -> None:
        assert Abort(failure("x")).ok is False

    def test_results_are_frozen(self) -> None:
        result = Success(Envelope(code=200, msg="Success"))
        with pytest.raises(AttributeError):
            result.envelope = Envelope(code=500, msg="x")  # type: ignore[misc]
