# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""In-memory implementations of the publisher and email transport protocols.

Both record every call and support failure injection, so tests can drive
the retry and partial-failure paths without a broker or an email provider.

Usage:
    from booknotify.testing import InMemoryEmailTransport, InMemoryTopicPublisher

    transport = InMemoryEmailTransport()
    transport.fail_next(TransientEmailError("throttled", status_code=429))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import count

from booknotify.notifications.models import ModelEmailMessage


@dataclass(frozen=True)
class PublishedMessage:
    """One successful ``publish`` call."""

    topic: str
    message: str
    attributes: dict[str, str] = field(default_factory=dict)
    subject: str | None = None
    message_id: str = ""


class InMemoryTopicPublisher:
    """``ProtocolTopicPublisher`` that keeps published messages in a list.

    Attributes:
        published: Successful publishes, in call order.
        calls: Number of ``publish`` calls, including failed ones.
    """

    def __init__(self) -> None:
        self.published: list[PublishedMessage] = []
        self.calls = 0
        self._pending_errors: list[BaseException] = []
        self._ids = count(1)

    def fail_next(self, *errors: BaseException) -> None:
        """Raise ``errors`` from the next calls, one per call, in order."""
        self._pending_errors.extend(errors)

    def messages_for(self, topic: str) -> list[PublishedMessage]:
        return [m for m in self.published if m.topic == topic]

    async def publish(
        self,
        topic: str,
        message: str,
        attributes: dict[str, str],
        *,
        subject: str | None = None,
    ) -> str:
        self.calls += 1
        if self._pending_errors:
            raise self._pending_errors.pop(0)
        message_id = f"msg-{next(self._ids)}"
        self.published.append(
            PublishedMessage(
                topic=topic,
                message=message,
                attributes=dict(attributes),
                subject=subject,
                message_id=message_id,
            )
        )
        return message_id


class InMemoryEmailTransport:
    """``ProtocolEmailTransport`` that records sent messages.

    Failures are injected either positionally (``fail_next``) or by
    predicate (``fail_matching``); predicate rules apply on every call
    until removed with ``clear_failures``.
    """

    def __init__(self) -> None:
        self.sent: list[ModelEmailMessage] = []
        self.calls = 0
        self._pending_errors: list[BaseException] = []
        self._rules: list[tuple[Callable[[ModelEmailMessage], bool], BaseException]] = []
        self._ids = count(1)

    def fail_next(self, *errors: BaseException) -> None:
        self._pending_errors.extend(errors)

    def fail_matching(
        self, predicate: Callable[[ModelEmailMessage], bool], error: BaseException
    ) -> None:
        self._rules.append((predicate, error))

    def clear_failures(self) -> None:
        self._pending_errors.clear()
        self._rules.clear()

    async def send(self, message: ModelEmailMessage) -> str:
        self.calls += 1
        if self._pending_errors:
            raise self._pending_errors.pop(0)
        for predicate, error in self._rules:
            if predicate(message):
                raise error
        self.sent.append(message)
        return f"email-{next(self._ids)}"


__all__ = ["InMemoryEmailTransport", "InMemoryTopicPublisher", "PublishedMessage"]
