# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Exception hierarchy for the notification pipeline.

Data errors (malformed payloads, schema violations, unknown notification
types) subclass ``ValueError`` so callers that already guard JSON/schema
work with ``except ValueError`` keep working. Transport errors carry an
explicit retryability split used by the batch consumer.
"""

from __future__ import annotations

from booknotify.enums.enum_publish_error_category import EnumPublishErrorCategory

__all__ = [
    "BookNotifyError",
    "EmailTransportError",
    "EventPublishError",
    "InvalidEventError",
    "MalformedPayloadError",
    "PermanentEmailError",
    "TransientEmailError",
    "UnknownNotificationTypeError",
]

PAYLOAD_PREVIEW_CHARS = 200


class BookNotifyError(Exception):
    """Base class for every error raised by booknotify."""


class InvalidEventError(BookNotifyError, ValueError):
    """Raised when an event fails envelope validation.

    Attributes:
        errors: Every validation violation found, in discovery order.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = list(errors or [])
        super().__init__(message)


class MalformedPayloadError(BookNotifyError, ValueError):
    """Raised when a payload cannot be parsed at all.

    Attributes:
        preview: At most ``PAYLOAD_PREVIEW_CHARS`` characters of the offending
            text, for diagnostics.
    """

    def __init__(self, message: str, payload: str | None = None) -> None:
        self.preview = (payload or "")[:PAYLOAD_PREVIEW_CHARS]
        super().__init__(message)


class UnknownNotificationTypeError(BookNotifyError, ValueError):
    """Raised when email content is requested for an unrecognised type."""

    def __init__(self, notification_type: object) -> None:
        self.notification_type = notification_type
        super().__init__(f"Unknown notification type: {notification_type}")


class EventPublishError(BookNotifyError):
    """Raised when a durable publish fails after all attempts.

    Attributes:
        attempts: Number of publish attempts made.
        category: Category of the last underlying failure.
    """

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        category: EnumPublishErrorCategory = EnumPublishErrorCategory.UNKNOWN,
    ) -> None:
        self.attempts = attempts
        self.category = category
        super().__init__(message)


class EmailTransportError(BookNotifyError):
    """Base class for email transport failures."""

    retryable: bool = False

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TransientEmailError(EmailTransportError):
    """Timeout, throttling or upstream 5xx; safe to redeliver."""

    retryable = True


class PermanentEmailError(EmailTransportError):
    """Rejected recipient, unverified sender or other non-retryable failure."""

    retryable = False
