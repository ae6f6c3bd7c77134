# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Protocols for the queue and trace-log backends used by the DLQ tools."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from booknotify.consumer.models import QueueRecord
    from booknotify.dlq.models import LogEntry


@runtime_checkable
class ProtocolQueueClient(Protocol):
    """Minimal queue API shared by the consumer's dead-letter sink and the DLQ tools.

    ``receive_messages`` follows visibility-timeout semantics: a received
    message is not returned again until it is deleted or released, so
    repeated receives drain the queue and then return an empty list.
    """

    async def receive_messages(
        self, queue_url: str, max_messages: int = 10
    ) -> list[QueueRecord]:
        """Receive up to ``max_messages`` visible messages."""
        ...

    async def send_message(
        self,
        queue_url: str,
        body: str,
        message_attributes: dict[str, str] | None = None,
    ) -> str:
        """Enqueue ``body`` and return the new message id."""
        ...

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        """Remove a received message permanently."""
        ...

    async def get_queue_attributes(self, queue_url: str) -> dict[str, str]:
        """Return queue attributes.

        At least ``ApproximateNumberOfMessages`` must be present;
        ``ApproximateAgeOfOldestMessage`` (seconds) is used when available.
        """
        ...


@runtime_checkable
class ProtocolLogSource(Protocol):
    """Searchable trace log of the notification consumer."""

    async def filter_log_events(
        self,
        start: datetime,
        end: datetime,
        patterns: list[str],
    ) -> list[LogEntry]:
        """Return entries in ``[start, end]`` containing any of ``patterns``."""
        ...


__all__ = ["ProtocolLogSource", "ProtocolQueueClient"]
