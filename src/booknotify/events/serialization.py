# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""JSON encoding of status change events and transport unwrapping.

Events travel either bare (the queue body *is* the event JSON) or wrapped by
the topic fan-out layer, in which case the body is a JSON object whose
``Message`` field holds the event JSON as a string. ``unwrap_record_body``
is the only place that knows about the wrapper; everything downstream works
on ``ModelStatusChangeEvent``.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Any

from booknotify.constants import (
    EVENT_SCHEMA_VERSION,
    EVENT_SOURCE_WORKFLOW_SERVICE,
    EVENT_TYPE_BOOK_STATUS_CHANGED,
)
from booknotify.enums.enum_book_status import EnumBookStatus
from booknotify.errors import (
    PAYLOAD_PREVIEW_CHARS,
    InvalidEventError,
    MalformedPayloadError,
)
from booknotify.events.models import ModelStatusChangeEvent
from booknotify.events.validation import format_event_timestamp, validate_event

if TYPE_CHECKING:
    from booknotify.consumer.models import QueueRecord

logger = logging.getLogger(__name__)

TRANSPORT_NOTIFICATION_TYPE = "Notification"


# ---------------------------------------------------------------------------
# Event <-> JSON
# ---------------------------------------------------------------------------


def serialize_event(event: ModelStatusChangeEvent) -> str:
    """Validate ``event`` and encode it as compact JSON.

    Raises:
        InvalidEventError: If the event fails envelope validation.
    """
    result = validate_event(event)
    if not result.is_valid:
        logger.error(
            "Refusing to serialize invalid event. event_id=%s errors=%s",
            event.event_id,
            result.errors,
        )
        raise InvalidEventError(
            f"Invalid event: {', '.join(result.errors)}", result.errors
        )
    return json.dumps(event.to_dict(), separators=(",", ":"))


def deserialize_event(text: Any) -> ModelStatusChangeEvent:
    """Decode and validate event JSON.

    Raises:
        MalformedPayloadError: If ``text`` is not a non-empty string or is not
            valid JSON.
        InvalidEventError: If the decoded object fails envelope validation.
    """
    if not isinstance(text, str) or not text:
        raise MalformedPayloadError("Event JSON must be a non-empty string")

    try:
        candidate = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning(
            "Event JSON could not be parsed. length=%d preview=%r error=%s",
            len(text),
            text[:PAYLOAD_PREVIEW_CHARS],
            exc,
        )
        raise MalformedPayloadError(
            f"Event JSON could not be parsed: {exc.msg}", text
        ) from exc

    result = validate_event(candidate)
    if not result.is_valid:
        logger.warning(
            "Event failed validation during deserialization. event_id=%s errors=%s",
            candidate.get("eventId") if isinstance(candidate, dict) else None,
            result.errors,
        )
        raise InvalidEventError(
            f"Invalid event structure: {', '.join(result.errors)}", result.errors
        )

    event = ModelStatusChangeEvent.model_validate(candidate)
    logger.debug(
        "Event deserialized. event_id=%s book_id=%s transition=%s",
        event.event_id,
        event.data.book_id,
        event.data.status_transition,
    )
    return event


# ---------------------------------------------------------------------------
# Transport unwrapping
# ---------------------------------------------------------------------------


def unwrap_record_body(body: Any) -> str:
    """Return the event JSON carried by a queue body.

    A body that decodes to an object with a string ``Message`` field is a
    transport wrapper and its ``Message`` is returned. Any other body is
    assumed to be the bare event and is returned unchanged so that
    ``deserialize_event`` reports the real problem.

    Raises:
        MalformedPayloadError: If ``body`` is empty or not JSON at all.
    """
    if not isinstance(body, str) or not body:
        raise MalformedPayloadError("Record body must be a non-empty string")
    try:
        decoded = json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(
            f"Record body is not valid JSON: {exc.msg}", body
        ) from exc

    if isinstance(decoded, dict) and isinstance(decoded.get("Message"), str):
        return decoded["Message"]
    return body


def extract_event_from_transport_message(message: dict[str, Any]) -> ModelStatusChangeEvent:
    """Deserialize the event held in a transport wrapper's ``Message`` field."""
    if not isinstance(message, dict):
        raise MalformedPayloadError("Transport message must be an object")
    logger.debug(
        "Extracting event from transport message. message_id=%s type=%s",
        message.get("MessageId"),
        message.get("Type"),
    )
    return deserialize_event(message.get("Message"))


def extract_event_from_record(record: QueueRecord) -> ModelStatusChangeEvent:
    """Deserialize the event carried by a queue record, wrapped or bare."""
    return deserialize_event(unwrap_record_body(record.body))


def extract_events_from_records(
    records: list[QueueRecord],
) -> tuple[list[tuple[ModelStatusChangeEvent, QueueRecord]], list[tuple[QueueRecord, str]]]:
    """Split records into decoded events and rejects.

    Returns:
        ``(valid, invalid)`` where ``valid`` pairs each event with its record
        and ``invalid`` pairs each rejected record with the error message.
    """
    valid: list[tuple[ModelStatusChangeEvent, QueueRecord]] = []
    invalid: list[tuple[QueueRecord, str]] = []
    for record in records:
        try:
            valid.append((extract_event_from_record(record), record))
        except (MalformedPayloadError, InvalidEventError) as exc:
            invalid.append((record, str(exc)))
            logger.warning(
                "Skipping invalid queue record. message_id=%s error=%s",
                record.message_id,
                exc,
            )
    return valid, invalid


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def create_status_change_event(
    *,
    book_id: str,
    title: str,
    author: str,
    previous_status: EnumBookStatus | str | None,
    new_status: EnumBookStatus | str,
    changed_by: str,
    change_reason: str | None = None,
    metadata: dict[str, Any] | None = None,
    source: str = EVENT_SOURCE_WORKFLOW_SERVICE,
) -> ModelStatusChangeEvent:
    """Build a fresh, validated envelope with a new UUIDv4 and current time.

    Raises:
        InvalidEventError: If the assembled event fails validation.
    """
    data: dict[str, Any] = {
        "bookId": book_id,
        "title": title,
        "author": author,
        "previousStatus": (
            previous_status.value
            if isinstance(previous_status, EnumBookStatus)
            else previous_status
        ),
        "newStatus": (
            new_status.value if isinstance(new_status, EnumBookStatus) else new_status
        ),
        "changedBy": changed_by,
    }
    if change_reason is not None:
        data["changeReason"] = change_reason
    if metadata is not None:
        data["metadata"] = metadata

    candidate = {
        "eventType": EVENT_TYPE_BOOK_STATUS_CHANGED,
        "eventId": str(uuid.uuid4()),
        "timestamp": format_event_timestamp(),
        "source": source,
        "version": EVENT_SCHEMA_VERSION,
        "data": data,
    }
    result = validate_event(candidate)
    if not result.is_valid:
        raise InvalidEventError(
            f"Failed to create valid event: {', '.join(result.errors)}", result.errors
        )
    return ModelStatusChangeEvent.model_validate(candidate)


__all__ = [
    "TRANSPORT_NOTIFICATION_TYPE",
    "create_status_change_event",
    "deserialize_event",
    "extract_event_from_record",
    "extract_event_from_transport_message",
    "extract_events_from_records",
    "serialize_event",
    "unwrap_record_body",
]
