# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Queue record and batch result types for the notification consumer.

``QueueRecord`` is the transport-neutral shape of one delivered message. It
accepts both the lower-camel keys of a queue-triggered batch
(``messageId``/``receiptHandle``/``body``) and the upper-camel keys returned
by a receive call (``MessageId``/``ReceiptHandle``/``Body``), so the consumer
and the DLQ tools share one type.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from booknotify.enums.enum_record_outcome import EnumRecordOutcome

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# QueueRecord
# ---------------------------------------------------------------------------


def _body_text(value: Any) -> str:
    """Queue bodies are text; triggers that hand over a decoded object are re-encoded."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return json.dumps(value, default=str)


def _ms_to_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=UTC)
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass(frozen=True)
class QueueRecord:
    """One message delivered by the queue runtime.

    Attributes:
        message_id: Queue-assigned identifier, echoed back in
            ``batchItemFailures`` to request redelivery.
        body: Raw body; either bare event JSON or a transport wrapper with a
            ``Message`` field holding the event JSON.
        receipt_handle: Opaque handle used to delete the message.
        attributes: System attributes (``ApproximateReceiveCount``,
            ``SentTimestamp``, ...).
        message_attributes: User attributes attached by the sender.
    """

    message_id: str
    body: str
    receipt_handle: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    message_attributes: dict[str, str] = field(default_factory=dict)

    @property
    def approximate_receive_count(self) -> int:
        """Delivery attempt number, starting at 1."""
        try:
            return int(self.attributes.get("ApproximateReceiveCount", "1"))
        except (TypeError, ValueError):
            return 1

    @property
    def sent_timestamp(self) -> datetime | None:
        """Time the message was first enqueued, if the queue reported it."""
        return _ms_to_datetime(self.attributes.get("SentTimestamp"))

    @property
    def first_receive_timestamp(self) -> datetime | None:
        return _ms_to_datetime(self.attributes.get("ApproximateFirstReceiveTimestamp"))

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> QueueRecord:
        """Build a record from either queue-trigger or receive-call keys."""

        def pick(*names: str, default: Any = None) -> Any:
            for name in names:
                if name in raw:
                    return raw[name]
            return default

        message_attributes: dict[str, str] = {}
        for name, value in (pick("messageAttributes", "MessageAttributes") or {}).items():
            if isinstance(value, dict):
                value = value.get("stringValue", value.get("StringValue", ""))
            message_attributes[name] = str(value)

        return cls(
            message_id=str(pick("messageId", "MessageId", default="")),
            body=_body_text(pick("body", "Body")),
            receipt_handle=str(pick("receiptHandle", "ReceiptHandle", default="")),
            attributes={
                str(k): str(v)
                for k, v in (pick("attributes", "Attributes") or {}).items()
            },
            message_attributes=message_attributes,
        )


# ---------------------------------------------------------------------------
# Batch results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecordResult:
    """Outcome of one record within a batch."""

    message_id: str
    outcome: EnumRecordOutcome
    error: str | None = None
    event_id: str | None = None
    email_message_id: str | None = None


@dataclass
class BatchProcessingResult:
    """Aggregate result of ``BatchConsumer.handle_batch``.

    ``batch_item_failures`` lists only records whose outcome asks for
    redelivery; everything else is acknowledged by omission.
    """

    total_records: int = 0
    successfully_processed: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)
    batch_item_failures: list[dict[str, str]] = field(default_factory=list)
    outcomes: list[RecordResult] = field(default_factory=list)

    def record(self, result: RecordResult) -> None:
        """Fold one record outcome into the aggregate counters."""
        self.outcomes.append(result)
        if result.outcome is EnumRecordOutcome.ACK:
            self.successfully_processed += 1
            return
        self.failed += 1
        self.errors.append(
            {"messageId": result.message_id, "error": result.error or "unknown error"}
        )
        if result.outcome.requests_redelivery:
            self.batch_item_failures.append({"itemIdentifier": result.message_id})

    def to_queue_response(self) -> dict[str, list[dict[str, str]]]:
        """Partial-batch response understood by the queue runtime."""
        return {"batchItemFailures": list(self.batch_item_failures)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "successfullyProcessed": self.successfully_processed,
            "failed": self.failed,
            "errors": list(self.errors),
            "batchItemFailures": list(self.batch_item_failures),
        }


__all__ = ["BatchProcessingResult", "QueueRecord", "RecordResult"]
