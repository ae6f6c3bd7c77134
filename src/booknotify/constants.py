# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Shared Constants for booknotify.

Wire-format constants for the canonical status change event and limits
shared between the publisher, consumer and dead-letter tooling.

Usage:
    from booknotify.constants import EVENT_TYPE_BOOK_STATUS_CHANGED
"""

# =============================================================================
# Canonical Event Envelope
# =============================================================================

EVENT_TYPE_BOOK_STATUS_CHANGED: str = "book_status_changed"
"""Only event type accepted by the notification pipeline."""

EVENT_SCHEMA_VERSION: str = "1.0"
"""Exact envelope version string; any other value is rejected."""

EVENT_SOURCE_WORKFLOW_SERVICE: str = "workflow-service"
EVENT_SOURCE_DEBUG_SCRIPT: str = "debug-script"

VALID_EVENT_SOURCES: frozenset[str] = frozenset(
    {EVENT_SOURCE_WORKFLOW_SERVICE, EVENT_SOURCE_DEBUG_SCRIPT}
)
"""Producer identities allowed in the ``source`` field."""

# =============================================================================
# Text Limits
# =============================================================================

MAX_DESCRIPTION_CHARS: int = 200
"""Cap applied to free-text book descriptions copied into event metadata."""

# =============================================================================
# Notification Defaults
# =============================================================================

DEFAULT_NOTIFICATION_EMAIL: str = "bookmanagement@yopmail.com"
"""Operations mailbox used as both target and fallback CC address."""

DEFAULT_FRONTEND_BASE_URL: str = "https://bookmanagement.example.com"

# =============================================================================
# Queue Limits
# =============================================================================

DEFAULT_MAX_RECEIVE_COUNT: int = 3
"""Redeliveries allowed by the main queue before it dead-letters a record."""

QUEUE_RECEIVE_PAGE_SIZE: int = 10
"""Largest page a queue receive call returns."""


__all__ = [
    "DEFAULT_FRONTEND_BASE_URL",
    "DEFAULT_MAX_RECEIVE_COUNT",
    "DEFAULT_NOTIFICATION_EMAIL",
    "EVENT_SCHEMA_VERSION",
    "EVENT_SOURCE_DEBUG_SCRIPT",
    "EVENT_SOURCE_WORKFLOW_SERVICE",
    "EVENT_TYPE_BOOK_STATUS_CHANGED",
    "MAX_DESCRIPTION_CHARS",
    "QUEUE_RECEIVE_PAGE_SIZE",
    "VALID_EVENT_SOURCES",
]
