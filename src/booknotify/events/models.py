# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Canonical book status change event models.

Schema (wire format, camelCase):
{
  "eventType": "book_status_changed",
  "eventId": "uuid-v4",
  "timestamp": "2025-10-18T10:00:00.000Z",
  "source": "workflow-service",
  "version": "1.0",
  "data": {
    "bookId": "book-123",
    "title": "The Title",
    "author": "author-456",
    "previousStatus": "DRAFT",
    "newStatus": "SUBMITTED_FOR_EDITING",
    "changedBy": "user-789",
    "changeReason": "optional",
    "metadata": {}
  }
}

The models are immutable after creation. Field-level rules that must report
*every* violation at once (eventId grammar, timestamp strictness, source
allow-list) live in ``booknotify.events.validation``; the models only enforce
types so that ``model_validate`` never runs on an unvalidated payload in the
pipeline.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from booknotify.constants import EVENT_SCHEMA_VERSION, EVENT_TYPE_BOOK_STATUS_CHANGED
from booknotify.enums.enum_book_status import EnumBookStatus


class ModelStatusChangeData(BaseModel):
    """Business payload of a status change event."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    book_id: str = Field(
        ..., alias="bookId", min_length=1, description="Book identifier"
    )
    title: str = Field(..., min_length=1, description="Book title")
    author: str = Field(
        ..., min_length=1, description="Author display name or identifier"
    )
    previous_status: EnumBookStatus | None = Field(
        default=None,
        alias="previousStatus",
        description="Status before the change; None when the book was just created",
    )
    new_status: EnumBookStatus = Field(
        ..., alias="newStatus", description="Status after the change"
    )
    changed_by: str = Field(
        ..., alias="changedBy", min_length=1, description="User who made the change"
    )
    change_reason: str | None = Field(
        default=None, alias="changeReason", description="Free-text reason"
    )
    metadata: dict[str, Any] | None = Field(
        default=None, description="Producer supplied extras (notificationType, nextSteps, ...)"
    )

    @property
    def status_transition(self) -> str:
        """``PREVIOUS -> NEW`` label used in log lines."""
        previous = self.previous_status.value if self.previous_status else None
        return f"{previous} -> {self.new_status.value}"


class ModelStatusChangeEvent(BaseModel):
    """Versioned, self-describing status change envelope."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    event_type: str = Field(
        default=EVENT_TYPE_BOOK_STATUS_CHANGED,
        alias="eventType",
        description="Constant event type discriminator",
    )
    event_id: str = Field(
        ...,
        alias="eventId",
        description="UUIDv4, or a whitelisted test/debug identifier",
        examples=["550e8400-e29b-41d4-a716-446655440000", "test-direct-1700000000"],
    )
    timestamp: str = Field(
        ...,
        description="ISO-8601 UTC creation time, kept as the exact wire string",
        examples=["2025-10-18T10:00:00.000Z"],
    )
    source: str = Field(..., description="Producer identity")
    version: str = Field(default=EVENT_SCHEMA_VERSION, description="Envelope version")
    data: ModelStatusChangeData

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire representation.

        ``changeReason`` and ``metadata`` are omitted when unset;
        ``previousStatus`` is always present (null on creation).
        """
        payload = self.model_dump(mode="json", by_alias=True)
        data = payload["data"]
        for optional_key in ("changeReason", "metadata"):
            if data.get(optional_key) is None:
                data.pop(optional_key, None)
        return payload


__all__ = ["ModelStatusChangeData", "ModelStatusChangeEvent"]
