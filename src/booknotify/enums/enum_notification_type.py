# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Notification type enum for book workflow emails."""

from __future__ import annotations

from enum import Enum


class EnumNotificationType(str, Enum):
    """Email notification emitted for a book status transition.

    Each member selects a template in ``booknotify.notifications.templates``
    and a deep link suffix in ``booknotify.notifications.mapper``.
    """

    BOOK_SUBMITTED = "book_submitted"
    """DRAFT -> SUBMITTED_FOR_EDITING, or direct creation as submitted."""

    BOOK_APPROVED = "book_approved"
    """SUBMITTED_FOR_EDITING -> READY_FOR_PUBLICATION."""

    BOOK_REJECTED = "book_rejected"
    """READY_FOR_PUBLICATION -> SUBMITTED_FOR_EDITING (sent back for revision)."""

    BOOK_PUBLISHED = "book_published"
    """READY_FOR_PUBLICATION -> PUBLISHED."""


def is_valid_notification_type(value: object) -> bool:
    """Check whether ``value`` is a known notification type wire value."""
    if isinstance(value, EnumNotificationType):
        return True
    return (
        isinstance(value, str)
        and value in EnumNotificationType._value2member_map_
    )


__all__ = ["EnumNotificationType", "is_valid_notification_type"]
