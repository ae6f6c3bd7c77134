# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Envelope validation for book status change events.

``validate_event`` inspects a raw (already JSON-decoded) candidate and
collects *every* violation rather than stopping at the first, so a single
DLQ log line explains everything wrong with a payload.

Accepted identifiers:
    - UUID v4 (case-insensitive)
    - ``test-direct-<digits>`` for direct test harness invocations
    - ``debug-<alnum/dash>`` for debug scripts

Timestamps must be the exact millisecond-precision UTC form produced by
``format_event_timestamp`` (``2025-10-18T10:00:00.000Z``); other ISO-8601
spellings and impossible calendar dates are rejected.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from booknotify.constants import (
    EVENT_SCHEMA_VERSION,
    EVENT_TYPE_BOOK_STATUS_CHANGED,
    VALID_EVENT_SOURCES,
)
from booknotify.enums.enum_book_status import EnumBookStatus, is_valid_book_status

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Grammars
# ---------------------------------------------------------------------------

UUID_V4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
TEST_EVENT_ID_PATTERN = re.compile(r"^test-direct-\d+$")
DEBUG_EVENT_ID_PATTERN = re.compile(r"^debug-[a-zA-Z0-9-]+$")

_TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

REQUIRED_EVENT_FIELDS: tuple[str, ...] = (
    "eventType",
    "eventId",
    "timestamp",
    "source",
    "version",
    "data",
)
REQUIRED_DATA_FIELDS: tuple[str, ...] = (
    "bookId",
    "title",
    "author",
    "newStatus",
    "changedBy",
)

_STATUS_LIST = ", ".join(status.value for status in EnumBookStatus)


@dataclass(frozen=True)
class EventValidationResult:
    """Validation verdict with every violation found."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def is_valid_event_id(event_id: object) -> bool:
    """Return True for UUID v4, ``test-direct-N`` or ``debug-...`` identifiers."""
    if not isinstance(event_id, str):
        return False
    return bool(
        UUID_V4_PATTERN.match(event_id)
        or TEST_EVENT_ID_PATTERN.match(event_id)
        or DEBUG_EVENT_ID_PATTERN.match(event_id)
    )


def is_valid_event_timestamp(value: object) -> bool:
    """Return True only for ``YYYY-MM-DDTHH:MM:SS.mmmZ`` naming a real instant."""
    if not isinstance(value, str) or not _TIMESTAMP_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, _TIMESTAMP_FORMAT)
    except ValueError:
        return False
    return True


def format_event_timestamp(moment: datetime | None = None) -> str:
    """Render ``moment`` (default: now) in the canonical envelope form."""
    moment = (moment or datetime.now(UTC)).astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_event_timestamp(value: str) -> datetime:
    """Parse a canonical envelope timestamp into an aware UTC datetime.

    Raises:
        ValueError: If ``value`` is not in the canonical form.
    """
    if not is_valid_event_timestamp(value):
        raise ValueError(f"Invalid event timestamp: {value!r}")
    return datetime.strptime(value, _TIMESTAMP_FORMAT).replace(tzinfo=UTC)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_data(data: dict[str, Any]) -> list[str]:
    errors: list[str] = []

    for name in REQUIRED_DATA_FIELDS:
        value = data.get(name)
        if not isinstance(value, str) or not value:
            errors.append(f"data.{name} is required and must be a non-empty string")

    new_status = data.get("newStatus")
    if new_status and not is_valid_book_status(new_status):
        errors.append(f"data.newStatus must be one of: {_STATUS_LIST}")

    previous_status = data.get("previousStatus")
    if previous_status is not None and not is_valid_book_status(previous_status):
        errors.append(f"data.previousStatus must be null or one of: {_STATUS_LIST}")

    if "changeReason" in data and not isinstance(data["changeReason"], str):
        errors.append("data.changeReason must be a string if provided")

    if "metadata" in data and not isinstance(data["metadata"], dict):
        errors.append("data.metadata must be an object if provided")

    return errors


def validate_event(candidate: Any) -> EventValidationResult:
    """Validate a decoded event payload against the canonical envelope.

    Args:
        candidate: JSON-decoded object, or a ``ModelStatusChangeEvent``.

    Returns:
        EventValidationResult listing every violation. An empty ``source``
        is accepted: only non-empty sources are checked against the
        allow-list.
    """
    if hasattr(candidate, "to_dict"):
        candidate = candidate.to_dict()

    if not isinstance(candidate, dict):
        return EventValidationResult(False, ["Event must be a valid object"])

    errors: list[str] = []

    for name in REQUIRED_EVENT_FIELDS:
        if name not in candidate:
            errors.append(f"Missing required field: {name}")

    if candidate.get("eventType") != EVENT_TYPE_BOOK_STATUS_CHANGED:
        errors.append(f'eventType must be "{EVENT_TYPE_BOOK_STATUS_CHANGED}"')

    event_id = candidate.get("eventId")
    if not isinstance(event_id, str) or not event_id.strip():
        errors.append("eventId is required and cannot be empty")
    elif not is_valid_event_id(event_id):
        errors.append(
            "eventId must be a valid UUID v4, test-direct-{timestamp}, or debug-{id}"
        )

    if "timestamp" in candidate and not is_valid_event_timestamp(
        candidate["timestamp"]
    ):
        errors.append("timestamp must be in ISO 8601 format")

    source = candidate.get("source")
    if "source" in candidate and not isinstance(source, str):
        errors.append("source must be a string")
    elif source and source not in VALID_EVENT_SOURCES:
        errors.append(f"source must be one of: {', '.join(sorted(VALID_EVENT_SOURCES))}")

    if candidate.get("version") != EVENT_SCHEMA_VERSION:
        errors.append(f'version must be "{EVENT_SCHEMA_VERSION}"')

    data = candidate.get("data")
    if not isinstance(data, dict):
        errors.append("data must be a valid object")
    else:
        errors.extend(_validate_data(data))

    if errors:
        logger.debug(
            "Event validation failed. event_id=%s error_count=%d errors=%s",
            event_id,
            len(errors),
            errors,
        )
    return EventValidationResult(is_valid=not errors, errors=errors)


__all__ = [
    "DEBUG_EVENT_ID_PATTERN",
    "REQUIRED_DATA_FIELDS",
    "REQUIRED_EVENT_FIELDS",
    "TEST_EVENT_ID_PATTERN",
    "UUID_V4_PATTERN",
    "EventValidationResult",
    "format_event_timestamp",
    "is_valid_event_id",
    "is_valid_event_timestamp",
    "parse_event_timestamp",
    "validate_event",
]
