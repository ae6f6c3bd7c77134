# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
File and in-memory backends for the DLQ tools.

``InMemoryQueueClient`` and ``InMemoryLogSource`` implement the queue and
log protocols over plain Python containers. The file-backed variants load
from disk and, for the queue, write every mutation back:

    SnapshotQueueClient   JSON object mapping queue URL -> list of messages
                          in receive-call shape (``MessageId``, ``Body``,
                          ``ReceiptHandle``, ``Attributes``,
                          ``MessageAttributes``). A bare list is read as the
                          contents of ``default_queue_url``.
    JsonLinesLogSource    One JSON object per line with ``timestamp`` (ISO
                          8601 or epoch milliseconds) and ``message``.

Receive counts are reported as stored; receiving does not increment them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from booknotify.consumer.models import QueueRecord
from booknotify.dlq.analyzer import parse_log_line
from booknotify.dlq.models import LogEntry

logger = logging.getLogger(__name__)

JSON_INDENT_SPACES = 2


def _to_ms(moment: datetime) -> str:
    return str(int(moment.timestamp() * 1000))


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


class InMemoryQueueClient:
    """Queue client over in-process lists with visibility semantics.

    Attributes:
        send_error: When set, ``send_message`` raises it.
        delete_error: When set, ``delete_message`` raises it.
        attributes_error: When set, ``get_queue_attributes`` raises it.
    """

    def __init__(
        self,
        queues: dict[str, list[dict[str, Any]]] | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._queues: dict[str, list[dict[str, Any]]] = {
            url: [self._normalize(raw) for raw in messages]
            for url, messages in (queues or {}).items()
        }
        self._in_flight: set[str] = set()
        self.send_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.attributes_error: Exception | None = None

    def _normalize(self, raw: dict[str, Any]) -> dict[str, Any]:
        record = QueueRecord.from_dict(raw)
        attributes = dict(record.attributes)
        attributes.setdefault("ApproximateReceiveCount", "1")
        attributes.setdefault("SentTimestamp", _to_ms(self._clock()))
        return {
            "MessageId": record.message_id or str(uuid4()),
            "ReceiptHandle": record.receipt_handle or str(uuid4()),
            "Body": record.body,
            "Attributes": attributes,
            "MessageAttributes": dict(record.message_attributes),
        }

    # -- seeding and inspection --------------------------------------------

    def add_message(
        self,
        queue_url: str,
        body: str,
        *,
        message_id: str | None = None,
        receive_count: int = 1,
        sent_at: datetime | None = None,
        message_attributes: dict[str, str] | None = None,
    ) -> QueueRecord:
        """Place a message directly on a queue, bypassing ``send_message``."""
        raw = self._normalize(
            {
                "MessageId": message_id or str(uuid4()),
                "Body": body,
                "Attributes": {
                    "ApproximateReceiveCount": str(receive_count),
                    "SentTimestamp": _to_ms(sent_at or self._clock()),
                },
                "MessageAttributes": dict(message_attributes or {}),
            }
        )
        self._queues.setdefault(queue_url, []).append(raw)
        self._changed()
        return QueueRecord.from_dict(raw)

    def messages(self, queue_url: str) -> list[QueueRecord]:
        """Every message on ``queue_url``, visible or not."""
        return [QueueRecord.from_dict(raw) for raw in self._queues.get(queue_url, [])]

    def release(self) -> None:
        """Make every in-flight message visible again."""
        self._in_flight.clear()

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {url: [dict(raw) for raw in messages] for url, messages in self._queues.items()}

    def _changed(self) -> None:
        """Hook for subclasses that persist the queues."""

    # -- ProtocolQueueClient -------------------------------------------------

    async def receive_messages(
        self, queue_url: str, max_messages: int = 10
    ) -> list[QueueRecord]:
        visible = [
            raw
            for raw in self._queues.get(queue_url, [])
            if raw["ReceiptHandle"] not in self._in_flight
        ][: max(0, max_messages)]
        for raw in visible:
            self._in_flight.add(raw["ReceiptHandle"])
        return [QueueRecord.from_dict(raw) for raw in visible]

    async def send_message(
        self,
        queue_url: str,
        body: str,
        message_attributes: dict[str, str] | None = None,
    ) -> str:
        if self.send_error is not None:
            raise self.send_error
        message_id = str(uuid4())
        self._queues.setdefault(queue_url, []).append(
            {
                "MessageId": message_id,
                "ReceiptHandle": str(uuid4()),
                "Body": body,
                "Attributes": {
                    "ApproximateReceiveCount": "0",
                    "SentTimestamp": _to_ms(self._clock()),
                },
                "MessageAttributes": dict(message_attributes or {}),
            }
        )
        self._changed()
        logger.debug("InMemoryQueueClient: message sent. queue=%s id=%s", queue_url, message_id)
        return message_id

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        messages = self._queues.get(queue_url, [])
        for index, raw in enumerate(messages):
            if raw["ReceiptHandle"] == receipt_handle:
                del messages[index]
                self._in_flight.discard(receipt_handle)
                self._changed()
                return
        raise ValueError(f"Unknown receipt handle for {queue_url}: {receipt_handle}")

    async def get_queue_attributes(self, queue_url: str) -> dict[str, str]:
        if self.attributes_error is not None:
            raise self.attributes_error
        messages = self._queues.get(queue_url, [])
        in_flight = sum(1 for raw in messages if raw["ReceiptHandle"] in self._in_flight)
        sent = [
            int(raw["Attributes"]["SentTimestamp"])
            for raw in messages
            if str(raw["Attributes"].get("SentTimestamp", "")).isdigit()
        ]
        oldest_age = 0
        if sent:
            oldest_age = max(0, int(self._clock().timestamp() - min(sent) / 1000))
        return {
            "ApproximateNumberOfMessages": str(len(messages) - in_flight),
            "ApproximateNumberOfMessagesNotVisible": str(in_flight),
            "ApproximateAgeOfOldestMessage": str(oldest_age),
        }


class SnapshotQueueClient(InMemoryQueueClient):
    """``InMemoryQueueClient`` loaded from, and saved back to, a JSON file."""

    def __init__(
        self,
        path: Path | str,
        *,
        default_queue_url: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.path = Path(path)
        with self.path.open(encoding="utf-8") as f:
            content = json.load(f)
        if isinstance(content, list):
            content = {default_queue_url: content}
        if not isinstance(content, dict) or not all(
            isinstance(v, list) for v in content.values()
        ):
            raise ValueError(
                f"Snapshot {self.path} must be a list of messages or an object "
                "mapping queue URLs to lists of messages"
            )
        super().__init__(content, clock=clock)
        logger.info(
            "SnapshotQueueClient: loaded snapshot. path=%s queues=%d messages=%d",
            self.path,
            len(content),
            sum(len(v) for v in content.values()),
        )

    def _changed(self) -> None:
        # The base constructor seeds queues before ``path`` exists.
        if not hasattr(self, "path"):
            return
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=JSON_INDENT_SPACES)


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


class InMemoryLogSource:
    """Log source over a list of entries.

    Attributes:
        error: When set, ``filter_log_events`` raises it.
    """

    def __init__(self, entries: list[LogEntry] | None = None) -> None:
        self.entries: list[LogEntry] = list(entries or [])
        self.error: Exception | None = None

    def add(self, timestamp: datetime, message: str) -> LogEntry:
        entry = parse_log_line(timestamp, message)
        self.entries.append(entry)
        return entry

    async def filter_log_events(
        self,
        start: datetime,
        end: datetime,
        patterns: list[str],
    ) -> list[LogEntry]:
        if self.error is not None:
            raise self.error
        return [
            entry
            for entry in self.entries
            if start <= entry.timestamp <= end
            and any(pattern and pattern in entry.message for pattern in patterns)
        ]


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


class JsonLinesLogSource(InMemoryLogSource):
    """``InMemoryLogSource`` loaded from a JSON-lines export."""

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path)
        with self.path.open(encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    raw = json.loads(line)
                    self.add(_parse_timestamp(raw["timestamp"]), str(raw["message"]))
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning(
                        "JsonLinesLogSource: skipping unreadable line. path=%s line=%d "
                        "error=%s",
                        self.path,
                        line_number,
                        e,
                    )
        logger.info(
            "JsonLinesLogSource: loaded log export. path=%s entries=%d",
            self.path,
            len(self.entries),
        )


__all__ = [
    "InMemoryLogSource",
    "InMemoryQueueClient",
    "JsonLinesLogSource",
    "SnapshotQueueClient",
]
