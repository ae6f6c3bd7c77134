# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""Unit tests for event JSON encoding and transport unwrapping."""

from __future__ import annotations

import json
from typing import Any

import pytest

from booknotify.enums import EnumBookStatus
from booknotify.errors import InvalidEventError, MalformedPayloadError
from booknotify.events.serialization import (
    create_status_change_event,
    deserialize_event,
    extract_event_from_record,
    extract_events_from_records,
    serialize_event,
    unwrap_record_body,
)
from booknotify.events.validation import is_valid_event_id
from booknotify.testing import make_event, make_queue_record, make_transport_body


@pytest.mark.unit
class TestSerializeEvent:
    def test_round_trip_preserves_event(self) -> None:
        event = make_event(change_reason="Ready for review", metadata={"k": "v"})

        restored = deserialize_event(serialize_event(event))

        assert restored == event

    def test_optional_fields_omitted_when_unset(self) -> None:
        payload = json.loads(serialize_event(make_event()))

        assert "changeReason" not in payload["data"]
        assert "metadata" not in payload["data"]
        assert payload["data"]["previousStatus"] == "DRAFT"

    def test_null_previous_status_kept(self) -> None:
        payload = json.loads(serialize_event(make_event(previous_status=None)))

        assert payload["data"]["previousStatus"] is None

    def test_refuses_invalid_event(self) -> None:
        event = make_event(event_id="not-an-id")

        with pytest.raises(InvalidEventError) as exc_info:
            serialize_event(event)
        assert exc_info.value.errors


@pytest.mark.unit
class TestDeserializeEvent:
    @pytest.mark.parametrize("text", ["", None, 12])
    def test_rejects_empty_or_non_string(self, text: Any) -> None:
        with pytest.raises(MalformedPayloadError):
            deserialize_event(text)

    def test_rejects_broken_json(self) -> None:
        with pytest.raises(MalformedPayloadError) as exc_info:
            deserialize_event("{not json")
        assert exc_info.value.preview == "{not json"

    def test_rejects_invalid_structure(self, sample_event_dict: dict[str, Any]) -> None:
        sample_event_dict["version"] = "0.9"

        with pytest.raises(InvalidEventError, match="Invalid event structure"):
            deserialize_event(json.dumps(sample_event_dict))

    def test_malformed_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            deserialize_event("[")


@pytest.mark.unit
class TestUnwrapRecordBody:
    def test_wrapped_body(self, sample_event_dict: dict[str, Any]) -> None:
        inner = json.dumps(sample_event_dict)

        assert unwrap_record_body(make_transport_body(inner)) == inner

    def test_bare_body_returned_unchanged(self, sample_event_dict: dict[str, Any]) -> None:
        body = json.dumps(sample_event_dict)

        assert unwrap_record_body(body) == body

    @pytest.mark.parametrize("body", ["", "not json"])
    def test_unreadable_body(self, body: str) -> None:
        with pytest.raises(MalformedPayloadError):
            unwrap_record_body(body)

    def test_record_wrapped_and_bare_decode_alike(
        self, sample_event_dict: dict[str, Any]
    ) -> None:
        wrapped = extract_event_from_record(make_queue_record(sample_event_dict))
        bare = extract_event_from_record(make_queue_record(sample_event_dict, wrap=False))

        assert wrapped == bare
        assert wrapped.event_id == sample_event_dict["eventId"]


@pytest.mark.unit
def test_extract_events_from_records_splits_rejects() -> None:
    good = make_queue_record(message_id="good")
    bad = make_queue_record("garbage", message_id="bad")

    valid, invalid = extract_events_from_records([good, bad])

    assert [record.message_id for _, record in valid] == ["good"]
    assert [record.message_id for record, _ in invalid] == ["bad"]


@pytest.mark.unit
def test_create_status_change_event_assigns_identity() -> None:
    event = create_status_change_event(
        book_id="book-1",
        title="Atlas",
        author="author-1",
        previous_status=EnumBookStatus.DRAFT,
        new_status=EnumBookStatus.SUBMITTED_FOR_EDITING,
        changed_by="user-1",
    )

    assert is_valid_event_id(event.event_id)
    assert event.source == "workflow-service"
    assert event.version == "1.0"
    assert event.data.status_transition == "DRAFT -> SUBMITTED_FOR_EDITING"


@pytest.mark.unit
def test_create_status_change_event_rejects_bad_status() -> None:
    with pytest.raises(InvalidEventError):
        create_status_change_event(
            book_id="book-1",
            title="Atlas",
            author="author-1",
            previous_status=None,
            new_status="ARCHIVED",
            changed_by="user-1",
        )
