# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Durable topic names used by the notification pipeline.

Using ``StrEnum`` makes topic names part of the typed external contract
surface; members compare equal to their string values.
"""

from __future__ import annotations

from enum import StrEnum


class BookNotifyTopics(StrEnum):
    """Topics produced by the workflow service and the DLQ monitor.

    Members:
        BOOK_STATUS_CHANGED: Canonical status change events, fanned out to
            the notification queue.
        DLQ_ALERTS: Alerts raised by ``DLQMonitor`` when dead-letter depth or
            age crosses a threshold.
    """

    BOOK_STATUS_CHANGED = "booknotify.evt.workflow.book-status-changed.v1"
    DLQ_ALERTS = "booknotify.evt.notifications.dlq-alert.v1"


__all__ = ["BookNotifyTopics"]
