# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""Builders for events, transport bodies and queue records used in tests."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from booknotify.constants import (
    EVENT_SCHEMA_VERSION,
    EVENT_SOURCE_WORKFLOW_SERVICE,
    EVENT_TYPE_BOOK_STATUS_CHANGED,
)
from booknotify.consumer.models import QueueRecord
from booknotify.events.models import ModelStatusChangeEvent
from booknotify.events.serialization import TRANSPORT_NOTIFICATION_TYPE
from booknotify.events.validation import format_event_timestamp


def make_event_dict(
    *,
    previous_status: str | None = "DRAFT",
    new_status: str = "SUBMITTED_FOR_EDITING",
    book_id: str = "book-123",
    title: str = "The Quiet Harbour",
    author: str = "author-456",
    changed_by: str = "user-789",
    change_reason: str | None = None,
    metadata: dict[str, Any] | None = None,
    event_id: str | None = None,
    timestamp: datetime | str | None = None,
    source: str = EVENT_SOURCE_WORKFLOW_SERVICE,
) -> dict[str, Any]:
    """Return a valid wire-format event; every field can be overridden."""
    data: dict[str, Any] = {
        "bookId": book_id,
        "title": title,
        "author": author,
        "previousStatus": previous_status,
        "newStatus": new_status,
        "changedBy": changed_by,
    }
    if change_reason is not None:
        data["changeReason"] = change_reason
    if metadata is not None:
        data["metadata"] = metadata
    if not isinstance(timestamp, str):
        timestamp = format_event_timestamp(timestamp)
    return {
        "eventType": EVENT_TYPE_BOOK_STATUS_CHANGED,
        "eventId": event_id or str(uuid4()),
        "timestamp": timestamp,
        "source": source,
        "version": EVENT_SCHEMA_VERSION,
        "data": data,
    }


def make_event(**kwargs: Any) -> ModelStatusChangeEvent:
    return ModelStatusChangeEvent.model_validate(make_event_dict(**kwargs))


def make_transport_body(event: dict[str, Any] | str, *, message_id: str | None = None) -> str:
    """Wrap an event (dict or JSON text) the way the fan-out topic delivers it."""
    message = event if isinstance(event, str) else json.dumps(event)
    return json.dumps(
        {
            "Type": TRANSPORT_NOTIFICATION_TYPE,
            "MessageId": message_id or str(uuid4()),
            "Subject": "Book Status Changed",
            "Message": message,
        }
    )


def make_queue_record(
    body: dict[str, Any] | str | None = None,
    *,
    message_id: str | None = None,
    receive_count: int = 1,
    wrap: bool = True,
    sent_at: datetime | None = None,
) -> QueueRecord:
    """Build a ``QueueRecord``.

    A dict ``body`` is treated as an event and, when ``wrap`` is set, wrapped
    in a transport envelope. A string ``body`` is used verbatim.
    """
    if body is None:
        body = make_event_dict()
    if isinstance(body, dict):
        body = make_transport_body(body) if wrap else json.dumps(body)
    attributes = {"ApproximateReceiveCount": str(receive_count)}
    if sent_at is not None:
        attributes["SentTimestamp"] = str(int(sent_at.timestamp() * 1000))
    return QueueRecord(
        message_id=message_id or str(uuid4()),
        body=body,
        receipt_handle=f"rh-{uuid4()}",
        attributes=attributes,
    )


__all__ = [
    "make_event",
    "make_event_dict",
    "make_queue_record",
    "make_transport_body",
]
