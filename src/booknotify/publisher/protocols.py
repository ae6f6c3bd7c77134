# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Protocol for the durable topic that carries status change events."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProtocolTopicPublisher(Protocol):
    """Publishes one message to a named topic.

    Implementations must raise on failure; the caller owns retries. The
    exception's message and optional ``code`` attribute drive
    ``categorize_publish_error``.
    """

    async def publish(
        self,
        topic: str,
        message: str,
        attributes: dict[str, str],
        *,
        subject: str | None = None,
    ) -> str:
        """Publish ``message`` and return the broker-assigned message id."""
        ...


__all__ = ["ProtocolTopicPublisher"]
