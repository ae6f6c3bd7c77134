# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Batch consumer for book status change notifications.

Each queue batch is fanned out with ``asyncio.gather``; every record runs
through the same pipeline and produces exactly one ``RecordResult``:

    unwrap -> deserialize/validate -> business checks -> map -> render -> send

Outcome rules:
    - Malformed or invalid payloads are NACK_PERMANENT. Redelivery cannot
      fix them, so they are acknowledged and optionally copied to a
      dead-letter sink.
    - Filtered (non-notifying) events are ACK.
    - ``TransientEmailError`` is NACK_RETRY regardless of receive count; the
      queue's own max-receive policy moves the record to the DLQ.
    - ``PermanentEmailError`` is NACK_PERMANENT.
    - Anything else is NACK_RETRY on first receive and NACK_PERMANENT after.

``handle_batch`` never raises and never lets one record affect another.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from booknotify.config import NotificationSettings, get_config
from booknotify.consumer.models import BatchProcessingResult, QueueRecord, RecordResult
from booknotify.enums.enum_record_outcome import EnumRecordOutcome
from booknotify.errors import (
    EmailTransportError,
    InvalidEventError,
    PAYLOAD_PREVIEW_CHARS,
    MalformedPayloadError,
    PermanentEmailError,
    TransientEmailError,
    UnknownNotificationTypeError,
)
from booknotify.events.models import ModelStatusChangeEvent
from booknotify.events.serialization import deserialize_event, unwrap_record_body
from booknotify.events.validation import parse_event_timestamp
from booknotify.notifications.mapper import NotificationMapper
from booknotify.notifications.models import ModelEmailMessage
from booknotify.notifications.protocols import ProtocolEmailTransport

if TYPE_CHECKING:
    from booknotify.dlq.protocols import ProtocolQueueClient

logger = logging.getLogger(__name__)

# Provider messages that mean the email can never be delivered as addressed.
PERMANENT_ERROR_MARKERS: tuple[str, ...] = (
    "Invalid email address",
    "Email address not verified",
    "Sending quota exceeded",
)


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


def classify_processing_error(error: BaseException, receive_count: int) -> EnumRecordOutcome:
    """Decide the outcome of a record whose processing raised ``error``."""
    if isinstance(error, (MalformedPayloadError, InvalidEventError, UnknownNotificationTypeError)):
        return EnumRecordOutcome.NACK_PERMANENT
    if isinstance(error, TransientEmailError):
        return EnumRecordOutcome.NACK_RETRY
    if isinstance(error, PermanentEmailError):
        return EnumRecordOutcome.NACK_PERMANENT
    if isinstance(error, EmailTransportError):
        return (
            EnumRecordOutcome.NACK_RETRY
            if error.retryable
            else EnumRecordOutcome.NACK_PERMANENT
        )

    message = str(error)
    if any(marker in message for marker in PERMANENT_ERROR_MARKERS):
        return EnumRecordOutcome.NACK_PERMANENT
    if receive_count <= 1:
        return EnumRecordOutcome.NACK_RETRY
    return EnumRecordOutcome.NACK_PERMANENT


def check_business_rules(event: ModelStatusChangeEvent) -> list[str]:
    """Rules beyond the envelope schema: no whitespace-only identity fields."""
    data = event.data
    errors: list[str] = []
    if not data.book_id.strip():
        errors.append("Book ID cannot be empty")
    if not data.title.strip():
        errors.append("Book title cannot be empty")
    if not data.author.strip():
        errors.append("Book author cannot be empty")
    if not data.changed_by.strip():
        errors.append("Changed by user ID cannot be empty")
    return errors


# ---------------------------------------------------------------------------
# Consumer
# ---------------------------------------------------------------------------


class BatchConsumer:
    """Processes queue batches into email sends with per-record outcomes.

    Usage:
        consumer = BatchConsumer(mapper=NotificationMapper(), transport=transport)
        result = await consumer.handle_batch(records)
        return result.to_queue_response()
    """

    def __init__(
        self,
        mapper: NotificationMapper,
        transport: ProtocolEmailTransport,
        settings: NotificationSettings | None = None,
        *,
        dead_letter_queue: ProtocolQueueClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or get_config()
        self._mapper = mapper
        self._transport = transport
        self._dead_letter_queue = dead_letter_queue
        self._clock = clock or (lambda: datetime.now(UTC))

    async def handle_batch(self, records: list[QueueRecord]) -> BatchProcessingResult:
        """Process every record concurrently and aggregate the outcomes."""
        start_time = time.perf_counter()
        result = BatchProcessingResult(total_records=len(records))
        if not records:
            return result

        outcomes = await asyncio.gather(
            *(self._process_record_safely(record) for record in records)
        )
        for outcome in outcomes:
            result.record(outcome)

        logger.info(
            "BatchConsumer: batch complete. total=%d succeeded=%d failed=%d "
            "retry_requested=%d duration=%.2fms",
            result.total_records,
            result.successfully_processed,
            result.failed,
            len(result.batch_item_failures),
            (time.perf_counter() - start_time) * 1000,
        )
        return result

    async def handle_raw_batch(self, batch: dict[str, Any]) -> dict[str, list[dict[str, str]]]:
        """Entry point for a queue trigger payload of the form ``{"Records": [...]}``."""
        records = [QueueRecord.from_dict(raw) for raw in batch.get("Records") or []]
        result = await self.handle_batch(records)
        return result.to_queue_response()

    # -- per record ---------------------------------------------------------

    async def _process_record_safely(self, record: QueueRecord) -> RecordResult:
        try:
            return await self._process_record(record)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # fallback-ok: per-record failures are reported in the batch result
            receive_count = record.approximate_receive_count
            outcome = classify_processing_error(e, receive_count)
            self._log_failure(record, e, outcome, receive_count)
            if outcome is EnumRecordOutcome.NACK_PERMANENT:
                await self._dead_letter(record, str(e))
            return RecordResult(
                message_id=record.message_id,
                outcome=outcome,
                error=str(e),
            )

    async def _process_record(self, record: QueueRecord) -> RecordResult:
        event = deserialize_event(unwrap_record_body(record.body))

        business_errors = check_business_rules(event)
        if business_errors:
            raise InvalidEventError(
                f"Event validation failed: {', '.join(business_errors)}",
                business_errors,
            )
        self._warn_if_stale(event)

        request = self._mapper.map_event_to_notification(event)
        if request is None:
            logger.info(
                "BatchConsumer: event filtered, no notification. message_id=%s "
                "event_id=%s transition=%s",
                record.message_id,
                event.event_id,
                event.data.status_transition,
            )
            return RecordResult(
                message_id=record.message_id,
                outcome=EnumRecordOutcome.ACK,
                event_id=event.event_id,
            )

        content = self._mapper.generate_email_content(request.type, request.variables)
        message = ModelEmailMessage.from_request(
            request, content, sender=self._settings.notification_from_email
        )
        email_message_id = await self._transport.send(message)

        logger.info(
            "BatchConsumer: notification sent. message_id=%s event_id=%s type=%s "
            "email_message_id=%s",
            record.message_id,
            event.event_id,
            request.type.value,
            email_message_id,
        )
        return RecordResult(
            message_id=record.message_id,
            outcome=EnumRecordOutcome.ACK,
            event_id=event.event_id,
            email_message_id=email_message_id,
        )

    def _warn_if_stale(self, event: ModelStatusChangeEvent) -> None:
        age_seconds = (
            self._clock() - parse_event_timestamp(event.timestamp)
        ).total_seconds()
        if age_seconds > self._settings.old_event_warning_seconds:
            logger.warning(
                "BatchConsumer: processing old event. event_id=%s timestamp=%s "
                "age_minutes=%d",
                event.event_id,
                event.timestamp,
                round(age_seconds / 60),
            )

    def _log_failure(
        self,
        record: QueueRecord,
        error: Exception,
        outcome: EnumRecordOutcome,
        receive_count: int,
    ) -> None:
        if isinstance(error, (MalformedPayloadError, InvalidEventError)):
            logger.warning(
                "BatchConsumer: rejecting invalid record. message_id=%s "
                "receive_count=%d error=%s body_preview=%r",
                record.message_id,
                receive_count,
                error,
                str(record.body)[:PAYLOAD_PREVIEW_CHARS],
            )
            return

        if (
            outcome is EnumRecordOutcome.NACK_RETRY
            and receive_count >= self._settings.queue_max_receive_count
        ):
            logger.warning(
                "BatchConsumer: retry requested at max receive count, record will be "
                "dead-lettered by the queue. message_id=%s receive_count=%d error=%s",
                record.message_id,
                receive_count,
                error,
            )
            return

        logger.error(
            "BatchConsumer: record processing failed. message_id=%s outcome=%s "
            "receive_count=%d error_type=%s error=%s",
            record.message_id,
            outcome.value,
            receive_count,
            type(error).__name__,
            error,
            exc_info=not isinstance(error, EmailTransportError),
        )

    async def _dead_letter(self, record: QueueRecord, reason: str) -> None:
        if self._dead_letter_queue is None:
            return
        try:
            await self._dead_letter_queue.send_message(
                self._settings.dlq_url,
                record.body,
                message_attributes={
                    "OriginalMessageId": record.message_id,
                    "FailureReason": reason[:256],
                    "ApproximateReceiveCount": str(record.approximate_receive_count),
                },
            )
        except Exception as e:
            # fallback-ok: the record outcome is already decided
            logger.error(
                "BatchConsumer: failed to copy record to dead-letter queue. "
                "message_id=%s error=%s",
                record.message_id,
                e,
                exc_info=True,
            )
            return
        logger.info(
            "BatchConsumer: record copied to dead-letter queue. message_id=%s dlq=%s",
            record.message_id,
            self._settings.dlq_url,
        )


__all__ = [
    "PERMANENT_ERROR_MARKERS",
    "BatchConsumer",
    "check_business_rules",
    "classify_processing_error",
]
