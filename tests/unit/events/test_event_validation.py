# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""Unit tests for status change envelope validation."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from booknotify.events.validation import (
    format_event_timestamp,
    is_valid_event_id,
    is_valid_event_timestamp,
    parse_event_timestamp,
    validate_event,
)
from booknotify.testing import make_event, make_event_dict


@pytest.mark.unit
class TestEventIdentifiers:
    @pytest.mark.parametrize(
        "event_id",
        [
            "550e8400-e29b-41d4-a716-446655440000",
            "550E8400-E29B-41D4-A716-446655440000",
            "test-direct-1700000000",
            "debug-local-run-7",
        ],
    )
    def test_accepted(self, event_id: str) -> None:
        assert is_valid_event_id(event_id) is True

    @pytest.mark.parametrize(
        "event_id",
        [
            "550e8400-e29b-11d4-a716-446655440000",  # version 1
            "test-direct-abc",
            "debug-",
            "not-a-uuid",
            "",
            42,
        ],
    )
    def test_rejected(self, event_id: Any) -> None:
        assert is_valid_event_id(event_id) is False


@pytest.mark.unit
class TestTimestamps:
    def test_format_has_millisecond_precision(self) -> None:
        moment = datetime(2025, 10, 18, 10, 0, 0, 123456, tzinfo=UTC)
        assert format_event_timestamp(moment) == "2025-10-18T10:00:00.123Z"

    def test_round_trip(self) -> None:
        moment = datetime(2025, 10, 18, 10, 0, 0, 123000, tzinfo=UTC)
        assert parse_event_timestamp(format_event_timestamp(moment)) == moment

    @pytest.mark.parametrize(
        "value",
        [
            "2025-10-18T10:00:00Z",
            "2025-10-18T10:00:00.000+00:00",
            "2025-02-30T10:00:00.000Z",
            "yesterday",
        ],
    )
    def test_non_canonical_rejected(self, value: str) -> None:
        assert is_valid_event_timestamp(value) is False
        with pytest.raises(ValueError):
            parse_event_timestamp(value)


@pytest.mark.unit
class TestValidateEvent:
    def test_valid_event(self, sample_event_dict: dict[str, Any]) -> None:
        result = validate_event(sample_event_dict)

        assert result.is_valid is True
        assert result.errors == []

    def test_accepts_model_instances(self) -> None:
        assert validate_event(make_event()).is_valid is True

    def test_non_object(self) -> None:
        result = validate_event(["not", "an", "object"])

        assert result.is_valid is False
        assert result.errors == ["Event must be a valid object"]

    def test_collects_every_violation(self) -> None:
        candidate = make_event_dict(event_id="nope", source="somewhere-else")
        candidate["version"] = "2.0"
        candidate["timestamp"] = "2025-10-18"

        result = validate_event(candidate)

        assert result.is_valid is False
        assert len(result.errors) == 4
        assert any(e.startswith("eventId must be a valid UUID v4") for e in result.errors)
        assert "timestamp must be in ISO 8601 format" in result.errors
        assert any(e.startswith("source must be one of:") for e in result.errors)
        assert 'version must be "1.0"' in result.errors

    def test_missing_fields(self) -> None:
        result = validate_event({})

        assert "Missing required field: eventType" in result.errors
        assert "Missing required field: data" in result.errors
        assert "data must be a valid object" in result.errors

    def test_empty_source_is_accepted(self) -> None:
        assert validate_event(make_event_dict(source="")).is_valid is True

    def test_debug_source_is_accepted(self) -> None:
        assert validate_event(make_event_dict(source="debug-script")).is_valid is True

    def test_data_field_rules(self) -> None:
        candidate = make_event_dict(
            previous_status="ARCHIVED", new_status="GONE", title=""
        )
        candidate["data"]["metadata"] = "not-a-dict"
        candidate["data"]["changeReason"] = 7

        result = validate_event(candidate)

        assert "data.title is required and must be a non-empty string" in result.errors
        assert any(e.startswith("data.newStatus must be one of:") for e in result.errors)
        assert any(
            e.startswith("data.previousStatus must be null or one of:")
            for e in result.errors
        )
        assert "data.metadata must be an object if provided" in result.errors
        assert "data.changeReason must be a string if provided" in result.errors

    def test_null_previous_status_is_valid(self) -> None:
        assert validate_event(make_event_dict(previous_status=None)).is_valid is True

    def test_wrong_event_type(self, sample_event_dict: dict[str, Any]) -> None:
        sample_event_dict["eventType"] = "book_deleted"

        result = validate_event(sample_event_dict)

        assert result.errors == ['eventType must be "book_status_changed"']
