# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Dead-letter queue reprocessor.

Re-injects dead-lettered messages into the main notification queue. Only
messages the analyzer classifies as reprocessable are ever sent; everything
else is reported as SKIPPED with the reason:

    not reprocessable          -> SKIPPED "Not reprocessable: <type>"
    receive count over limit   -> SKIPPED "Message exceeded maximum retry count"
    body fails re-parse        -> SKIPPED "Invalid message format"
    dry run                    -> SUCCESS "Dry run - would reprocess"
    sent and deleted           -> SUCCESS "Successfully reprocessed via queue"
    send failed                -> FAILED  "Failed to send to original queue"
    delete failed              -> FAILED  "Reprocessing error"

A message is deleted from the dead-letter queue only after it has been
accepted by the main queue. A failed delete after a successful send leaves
the message in both queues; the consumer tolerates the duplicate.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from booknotify.config import NotificationSettings, get_config
from booknotify.consumer.models import QueueRecord
from booknotify.dlq.analyzer import DLQAnalyzer
from booknotify.dlq.models import (
    DLQMessageAnalysis,
    ReprocessOptions,
    ReprocessResult,
    ReprocessSummary,
)
from booknotify.dlq.protocols import ProtocolQueueClient
from booknotify.enums.enum_dlq import EnumReprocessStatus
from booknotify.errors import InvalidEventError, MalformedPayloadError
from booknotify.events.serialization import deserialize_event, unwrap_record_body

logger = logging.getLogger(__name__)

ATTR_REPROCESSED_FROM_DLQ = "ReprocessedFromDLQ"
ATTR_ORIGINAL_MESSAGE_ID = "OriginalMessageId"
ATTR_REPROCESSED_AT = "ReprocessedAt"


class DLQReprocessor:
    """Selective re-injection of dead-lettered messages.

    Usage:
        reprocessor = DLQReprocessor(queue_client, analyzer)
        summary = await reprocessor.reprocess(ReprocessOptions(dry_run=True))
    """

    def __init__(
        self,
        queue_client: ProtocolQueueClient,
        analyzer: DLQAnalyzer,
        settings: NotificationSettings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings or get_config()
        self._queue = queue_client
        self._analyzer = analyzer
        self._clock = clock or (lambda: datetime.now(UTC))
        self._sleep = sleep

    async def reprocess(self, options: ReprocessOptions | None = None) -> ReprocessSummary:
        """Select, check and re-inject messages according to ``options``."""
        options = options or ReprocessOptions()
        start_time = time.perf_counter()
        logger.info(
            "DLQReprocessor: starting. dlq=%s queue=%s dry_run=%s",
            self._settings.dlq_url,
            self._settings.queue_url,
            options.dry_run,
        )

        candidates = await self.select_messages(options)
        results: list[ReprocessResult] = []
        batch_size = max(1, options.batch_size)
        batch_count = (len(candidates) + batch_size - 1) // batch_size
        for index in range(0, len(candidates), batch_size):
            logger.info(
                "DLQReprocessor: processing batch %d/%d",
                index // batch_size + 1,
                batch_count,
            )
            for record, analysis in candidates[index : index + batch_size]:
                results.append(await self.reprocess_message(record, analysis, options))
            if index + batch_size < len(candidates) and options.batch_delay_ms > 0:
                await self._sleep(options.batch_delay_ms / 1000)

        summary = ReprocessSummary(
            results=tuple(results),
            duration_ms=(time.perf_counter() - start_time) * 1000,
            dry_run=options.dry_run,
            errors=tuple(
                f"{r.message_id}: {r.error}"
                for r in results
                if r.status is EnumReprocessStatus.FAILED and r.error
            ),
        )
        logger.info(
            "DLQReprocessor: complete. total=%d successful=%d failed=%d skipped=%d "
            "success_rate=%.1f%%",
            summary.total_processed,
            summary.successful,
            summary.failed,
            summary.skipped,
            summary.success_rate,
        )
        return summary

    async def select_messages(
        self, options: ReprocessOptions
    ) -> list[tuple[QueueRecord, DLQMessageAnalysis]]:
        """Drain the DLQ once and apply the id, type and count filters in that order."""
        records = await self._analyzer.receive_all()
        if options.message_ids:
            wanted = set(options.message_ids)
            records = [r for r in records if r.message_id in wanted]

        analyses = await self._analyzer.analyze_records(records)
        candidates = list(zip(records, analyses, strict=True))
        if options.error_types:
            types = set(options.error_types)
            candidates = [(r, a) for r, a in candidates if a.error_type in types]
        if options.max_messages > 0:
            candidates = candidates[: options.max_messages]

        logger.info("DLQReprocessor: messages selected. count=%d", len(candidates))
        return candidates

    async def reprocess_message(
        self,
        record: QueueRecord,
        analysis: DLQMessageAnalysis,
        options: ReprocessOptions,
    ) -> ReprocessResult:
        if not analysis.is_reprocessable:
            return self._result(
                record,
                EnumReprocessStatus.SKIPPED,
                f"Not reprocessable: {analysis.error_type.value}",
            )

        if record.approximate_receive_count > self._settings.dlq_reprocess_max_receive_count:
            return self._result(
                record,
                EnumReprocessStatus.SKIPPED,
                "Message exceeded maximum retry count",
            )

        parse_error = self._check_body(record, validate=options.validate_before_reprocess)
        if parse_error is not None:
            logger.warning(
                "DLQReprocessor: skipping unparseable message. message_id=%s error=%s",
                record.message_id,
                parse_error,
            )
            return self._result(
                record,
                EnumReprocessStatus.SKIPPED,
                "Invalid message format",
                error=parse_error,
            )

        if options.dry_run:
            logger.info(
                "DLQReprocessor: [dry run] would reprocess. message_id=%s",
                record.message_id,
            )
            return self._result(record, EnumReprocessStatus.SUCCESS, "Dry run - would reprocess")

        try:
            new_message_id = await self._queue.send_message(
                self._settings.queue_url,
                record.body,
                message_attributes={
                    ATTR_REPROCESSED_FROM_DLQ: "true",
                    ATTR_ORIGINAL_MESSAGE_ID: record.message_id,
                    ATTR_REPROCESSED_AT: self._clock().isoformat(),
                },
            )
        except Exception as e:
            # fallback-ok: the failure is reported per message
            logger.error(
                "DLQReprocessor: failed to send to original queue. message_id=%s error=%s",
                record.message_id,
                e,
            )
            return self._result(
                record,
                EnumReprocessStatus.FAILED,
                "Failed to send to original queue",
                error=str(e),
            )

        try:
            await self._queue.delete_message(self._settings.dlq_url, record.receipt_handle)
        except Exception as e:
            # fallback-ok: the failure is reported per message
            logger.error(
                "DLQReprocessor: re-sent but could not delete from DLQ. message_id=%s "
                "new_message_id=%s error=%s",
                record.message_id,
                new_message_id,
                e,
            )
            return self._result(
                record,
                EnumReprocessStatus.FAILED,
                "Reprocessing error",
                error=str(e),
                new_message_id=new_message_id,
            )

        logger.info(
            "DLQReprocessor: message reprocessed. message_id=%s new_message_id=%s",
            record.message_id,
            new_message_id,
        )
        return self._result(
            record,
            EnumReprocessStatus.SUCCESS,
            "Successfully reprocessed via queue",
            new_message_id=new_message_id,
        )

    @staticmethod
    def _check_body(record: QueueRecord, *, validate: bool) -> str | None:
        try:
            inner = unwrap_record_body(record.body)
            if validate:
                deserialize_event(inner)
        except (MalformedPayloadError, InvalidEventError) as e:
            return str(e)
        return None

    def _result(
        self,
        record: QueueRecord,
        status: EnumReprocessStatus,
        reason: str,
        *,
        error: str | None = None,
        new_message_id: str | None = None,
    ) -> ReprocessResult:
        return ReprocessResult(
            message_id=record.message_id,
            status=status,
            reason=reason,
            timestamp=self._clock(),
            error=error,
            new_message_id=new_message_id,
        )


__all__ = [
    "ATTR_ORIGINAL_MESSAGE_ID",
    "ATTR_REPROCESSED_AT",
    "ATTR_REPROCESSED_FROM_DLQ",
    "DLQReprocessor",
]
