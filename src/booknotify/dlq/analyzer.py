# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Dead-letter queue analyzer.

Drains the dead-letter queue (bounded pagination, pages of 10), correlates
each message with trace-log lines written around its enqueue time, and
classifies it into a closed root-cause taxonomy. Categories are tested in a
fixed order; the first match wins:

    1. EVENT_DETECTION_ERROR   logs show an undefined-property failure in
                               event detection
    2. INVALID_MESSAGE_FORMAT  body is neither a transport wrapper nor a bare
                               event object
    3. INVALID_EVENT_DATA      inner event fails envelope validation
    4. VALIDATION_ERROR        logs mention validation
    5. PROCESSING_TIMEOUT      logs mention a timeout
    6. REPEATED_FAILURE        receive count above the main queue's limit
    7. UNKNOWN_ERROR           anything else

The analyzer only receives; it never deletes or re-sends. Received messages
stay invisible for the queue's visibility timeout, which is what lets the
reprocessor act on the same drain.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from booknotify.config import NotificationSettings, get_config
from booknotify.constants import QUEUE_RECEIVE_PAGE_SIZE
from booknotify.consumer.models import QueueRecord
from booknotify.dlq.models import (
    DLQAnalysisReport,
    DLQAnalysisSummary,
    DLQMessageAnalysis,
    LogEntry,
)
from booknotify.dlq.protocols import ProtocolLogSource, ProtocolQueueClient
from booknotify.enums.enum_dlq import EnumDLQErrorType
from booknotify.errors import PAYLOAD_PREVIEW_CHARS, MalformedPayloadError
from booknotify.events.serialization import unwrap_record_body
from booknotify.events.validation import validate_event

logger = logging.getLogger(__name__)

DEFAULT_MAX_DRAIN_MESSAGES = 1000
"""Upper bound on messages received by one drain."""

LOG_FILTER_PATTERNS: tuple[str, ...] = (
    "Cannot read properties of undefined",
    "TypeError",
    "AttributeError",
    "Error processing",
    "record processing failed",
)
"""Searched in addition to the message id itself."""

UNDEFINED_ACCESS_MARKERS: tuple[str, ...] = (
    "Cannot read properties of undefined",
    "'NoneType' object has no attribute",
)
EVENT_DETECTION_MARKERS: tuple[str, ...] = ("endsWith", "event detection")

NO_ACTION_RECOMMENDATION = "No action needed - dead-letter queue is empty"

_REQUEST_ID_PATTERN = re.compile(r"RequestId: ([a-f0-9-]+)")


@dataclass(frozen=True)
class ErrorCategory:
    """Static description of one taxonomy member."""

    root_cause: str
    is_reprocessable: bool
    failure_reason: str


ERROR_CATEGORIES: dict[EnumDLQErrorType, ErrorCategory] = {
    EnumDLQErrorType.EVENT_DETECTION_ERROR: ErrorCategory(
        root_cause="Undefined property access in event detection logic",
        is_reprocessable=True,
        failure_reason="Event detection bug - accessing undefined properties",
    ),
    EnumDLQErrorType.INVALID_MESSAGE_FORMAT: ErrorCategory(
        root_cause="Message does not have a valid transport structure",
        is_reprocessable=False,
        failure_reason="Malformed transport message structure",
    ),
    EnumDLQErrorType.INVALID_EVENT_DATA: ErrorCategory(
        root_cause="Event data missing required fields",
        is_reprocessable=False,
        failure_reason="Invalid or incomplete event data",
    ),
    EnumDLQErrorType.VALIDATION_ERROR: ErrorCategory(
        root_cause="Event data failed validation checks",
        is_reprocessable=True,
        failure_reason="Event validation failure",
    ),
    EnumDLQErrorType.PROCESSING_TIMEOUT: ErrorCategory(
        root_cause="Function timeout during processing",
        is_reprocessable=True,
        failure_reason="Timeout during event processing",
    ),
    EnumDLQErrorType.REPEATED_FAILURE: ErrorCategory(
        root_cause="Message failed processing multiple times",
        is_reprocessable=False,
        failure_reason="Exceeded maximum retry attempts",
    ),
    EnumDLQErrorType.UNKNOWN_ERROR: ErrorCategory(
        root_cause="Unable to determine specific cause",
        is_reprocessable=True,
        failure_reason="Unknown processing error",
    ),
}

CATEGORY_RECOMMENDATIONS: dict[EnumDLQErrorType, tuple[str, ...]] = {
    EnumDLQErrorType.EVENT_DETECTION_ERROR: (
        "Fix event detection logic in notification service to handle undefined properties",
        "Add null safety checks in event processing code",
    ),
    EnumDLQErrorType.INVALID_MESSAGE_FORMAT: (
        "Investigate topic message publishing to ensure proper format",
        "Add message format validation before processing",
    ),
    EnumDLQErrorType.PROCESSING_TIMEOUT: (
        "Optimize notification consumer performance to reduce processing time",
        "Consider increasing the consumer timeout configuration",
    ),
}


# ---------------------------------------------------------------------------
# Log line helpers
# ---------------------------------------------------------------------------


def extract_log_level(message: str) -> str:
    """Infer the level of a raw log line from its text."""
    if "ERROR" in message:
        return "ERROR"
    if "WARN" in message:
        return "WARN"
    if "INFO" in message:
        return "INFO"
    return "DEBUG"


def extract_request_id(message: str) -> str | None:
    match = _REQUEST_ID_PATTERN.search(message)
    return match.group(1) if match else None


def parse_log_line(timestamp: datetime, message: str) -> LogEntry:
    """Build a ``LogEntry`` from a raw line, inferring level and request id."""
    return LogEntry(
        timestamp=timestamp,
        message=message,
        level=extract_log_level(message),
        request_id=extract_request_id(message),
    )


# ---------------------------------------------------------------------------
# Body inspection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BodyInspection:
    """What could be read from a dead-lettered message body.

    Attributes:
        has_valid_structure: Body is a transport wrapper with a string
            ``Message`` or a bare object carrying ``eventType``.
        has_valid_event: The inner event passes envelope validation.
        event: The decoded inner event, when it decoded to an object.
        validation_errors: Envelope violations of the inner event.
    """

    has_valid_structure: bool
    has_valid_event: bool
    event: dict[str, Any] | None = None
    validation_errors: tuple[str, ...] = ()

    def event_field(self, name: str) -> str | None:
        value = (self.event or {}).get(name)
        return value if isinstance(value, str) else None

    def data_field(self, name: str) -> str | None:
        data = (self.event or {}).get("data")
        if isinstance(data, dict) and isinstance(data.get(name), str):
            return data[name]
        return None

    @property
    def book_id(self) -> str | None:
        return self.data_field("bookId")

    @property
    def new_status(self) -> str | None:
        return self.data_field("newStatus")


def inspect_body(body: str) -> BodyInspection:
    """Decode the transport and business envelopes of a message body.

    Wrappers are recognised with the consumer's rule (``unwrap_record_body``):
    any object with a string ``Message`` field. A bare body must be an object
    carrying ``eventType``.
    """
    try:
        event_json = unwrap_record_body(body)
    except MalformedPayloadError:
        return BodyInspection(has_valid_structure=False, has_valid_event=False)

    if event_json == body:
        decoded = json.loads(body)
        if not isinstance(decoded, dict) or "eventType" not in decoded:
            return BodyInspection(has_valid_structure=False, has_valid_event=False)
        inner: Any = decoded
    else:
        try:
            inner = json.loads(event_json)
        except json.JSONDecodeError:
            return BodyInspection(
                has_valid_structure=True,
                has_valid_event=False,
                validation_errors=("Message field is not valid JSON",),
            )

    if not isinstance(inner, dict):
        return BodyInspection(
            has_valid_structure=True,
            has_valid_event=False,
            validation_errors=("Event must be a valid object",),
        )
    result = validate_event(inner)
    return BodyInspection(
        has_valid_structure=True,
        has_valid_event=result.is_valid,
        event=inner,
        validation_errors=tuple(result.errors),
    )


# ---------------------------------------------------------------------------
# Report construction
# ---------------------------------------------------------------------------


def generate_recommendations(analyses: list[DLQMessageAnalysis]) -> list[str]:
    if not analyses:
        return [NO_ACTION_RECOMMENDATION]

    recommendations: list[str] = []
    present = {a.error_type for a in analyses}
    for error_type, texts in CATEGORY_RECOMMENDATIONS.items():
        if error_type in present:
            recommendations.extend(texts)

    reprocessable = sum(1 for a in analyses if a.is_reprocessable)
    if reprocessable:
        recommendations.append(
            f"{reprocessable} messages can be reprocessed after fixes are deployed"
        )
    non_reprocessable = len(analyses) - reprocessable
    if non_reprocessable:
        recommendations.append(
            f"{non_reprocessable} messages should be purged as they cannot be reprocessed"
        )
    return recommendations


def generate_summary(analyses: list[DLQMessageAnalysis]) -> DLQAnalysisSummary:
    if not analyses:
        return DLQAnalysisSummary()

    counts = Counter(a.error_type for a in analyses)
    critical: list[str] = []
    if counts[EnumDLQErrorType.EVENT_DETECTION_ERROR]:
        critical.append(
            "Event detection errors affecting "
            f"{counts[EnumDLQErrorType.EVENT_DETECTION_ERROR]} messages"
        )
    if counts[EnumDLQErrorType.PROCESSING_TIMEOUT]:
        critical.append(
            "Processing timeout issues affecting "
            f"{counts[EnumDLQErrorType.PROCESSING_TIMEOUT]} messages"
        )

    most_common, occurrences = counts.most_common(1)[0]
    average_failures = sum(a.failure_count for a in analyses) / len(analyses)
    patterns = [
        f"Most common error: {most_common.value} ({occurrences} occurrences)",
        f"Average failure count per message: {average_failures:.1f}",
    ]

    actions: list[str] = []
    if counts[EnumDLQErrorType.EVENT_DETECTION_ERROR]:
        actions.append("Deploy fixes for event detection logic")
    if any(a.is_reprocessable for a in analyses):
        actions.append("Reprocess reprocessable messages after fixes")
    if any(not a.is_reprocessable for a in analyses):
        actions.append("Purge non-reprocessable messages")
    actions.append("Implement enhanced monitoring to prevent future accumulation")

    return DLQAnalysisSummary(
        critical_issues=tuple(critical),
        common_patterns=tuple(patterns),
        suggested_actions=tuple(actions),
    )


def build_report(
    analyses: list[DLQMessageAnalysis],
    *,
    generated_at: datetime,
    queue_attributes: dict[str, str] | None = None,
) -> DLQAnalysisReport:
    """Aggregate per-message analyses into a report."""
    by_type: Counter[str] = Counter(a.error_type.value for a in analyses)
    by_cause: Counter[str] = Counter(a.root_cause for a in analyses)
    timestamps = [a.original_timestamp for a in analyses if a.original_timestamp]
    reprocessable = sum(1 for a in analyses if a.is_reprocessable)

    return DLQAnalysisReport(
        generated_at=generated_at,
        total_messages=len(analyses),
        messages_by_error_type=dict(by_type),
        messages_by_root_cause=dict(by_cause),
        oldest_message=min(timestamps) if timestamps else None,
        newest_message=max(timestamps) if timestamps else None,
        reprocessable_count=reprocessable,
        non_reprocessable_count=len(analyses) - reprocessable,
        recommendations=tuple(generate_recommendations(analyses)),
        detailed_analysis=tuple(analyses),
        summary=generate_summary(analyses),
        queue_attributes=dict(queue_attributes or {}),
    )


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class DLQAnalyzer:
    """Classifies the contents of the dead-letter queue.

    Usage:
        analyzer = DLQAnalyzer(queue_client, log_source)
        report = await analyzer.analyze()
        print(render_markdown_report(report))
    """

    def __init__(
        self,
        queue_client: ProtocolQueueClient,
        log_source: ProtocolLogSource | None = None,
        settings: NotificationSettings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        max_messages: int = DEFAULT_MAX_DRAIN_MESSAGES,
    ) -> None:
        self._settings = settings or get_config()
        self._queue = queue_client
        self._log_source = log_source
        self._clock = clock or (lambda: datetime.now(UTC))
        self._max_messages = max_messages

    @property
    def dlq_url(self) -> str:
        return self._settings.dlq_url

    async def analyze(self) -> DLQAnalysisReport:
        """Drain the dead-letter queue and build a full report."""
        attributes = await self._queue.get_queue_attributes(self.dlq_url)
        logger.info(
            "DLQAnalyzer: starting analysis. dlq=%s approximate_messages=%s",
            self.dlq_url,
            attributes.get("ApproximateNumberOfMessages", "unknown"),
        )
        records = await self.receive_all()
        analyses = await self.analyze_records(records)
        report = build_report(
            analyses, generated_at=self._clock(), queue_attributes=attributes
        )
        logger.info(
            "DLQAnalyzer: analysis complete. total=%d reprocessable=%d "
            "non_reprocessable=%d",
            report.total_messages,
            report.reprocessable_count,
            report.non_reprocessable_count,
        )
        return report

    async def receive_all(self) -> list[QueueRecord]:
        """Receive pages until the queue reports empty or the drain bound is hit."""
        records: list[QueueRecord] = []
        while len(records) < self._max_messages:
            page_size = min(QUEUE_RECEIVE_PAGE_SIZE, self._max_messages - len(records))
            page = await self._queue.receive_messages(self.dlq_url, max_messages=page_size)
            if not page:
                break
            records.extend(page)
        else:
            logger.warning(
                "DLQAnalyzer: drain bound reached, remaining messages not analysed. "
                "max_messages=%d",
                self._max_messages,
            )
        logger.debug("DLQAnalyzer: received messages. count=%d", len(records))
        return records

    async def analyze_records(self, records: list[QueueRecord]) -> list[DLQMessageAnalysis]:
        return list(await asyncio.gather(*(self.analyze_message(r) for r in records)))

    async def analyze_message(self, record: QueueRecord) -> DLQMessageAnalysis:
        inspection = inspect_body(record.body)
        if not inspection.has_valid_structure:
            logger.warning(
                "DLQAnalyzer: message body has no readable envelope. message_id=%s "
                "body_preview=%r",
                record.message_id,
                str(record.body)[:PAYLOAD_PREVIEW_CHARS],
            )
        log_entries = await self.get_related_log_entries(record)
        error_type = self.categorize(record, inspection, log_entries)
        category = ERROR_CATEGORIES[error_type]

        return DLQMessageAnalysis(
            message_id=record.message_id,
            error_type=error_type,
            root_cause=category.root_cause,
            is_reprocessable=category.is_reprocessable,
            failure_reason=category.failure_reason,
            original_timestamp=record.sent_timestamp,
            failure_count=record.approximate_receive_count,
            correlated_log_entries=tuple(log_entries),
            event_type=inspection.event_field("eventType"),
            event_id=inspection.event_field("eventId"),
            book_id=inspection.book_id,
            new_status=inspection.new_status,
        )

    async def get_related_log_entries(self, record: QueueRecord) -> list[LogEntry]:
        """Trace-log lines within the correlation window around the enqueue time."""
        if self._log_source is None:
            return []
        anchor = record.sent_timestamp or self._clock()
        window = timedelta(minutes=self._settings.dlq_log_window_minutes)
        patterns = [record.message_id, *LOG_FILTER_PATTERNS]
        try:
            return await self._log_source.filter_log_events(
                anchor - window, anchor + window, patterns
            )
        except Exception as e:
            # fallback-ok: classification proceeds on the message body alone
            logger.warning(
                "DLQAnalyzer: failed to fetch log entries. message_id=%s error=%s",
                record.message_id,
                e,
            )
            return []

    def categorize(
        self,
        record: QueueRecord,
        inspection: BodyInspection,
        log_entries: list[LogEntry],
    ) -> EnumDLQErrorType:
        """Pick the first matching taxonomy member; see the module docstring."""
        texts = [entry.message for entry in log_entries]
        has_undefined_access = any(
            marker in text for text in texts for marker in UNDEFINED_ACCESS_MARKERS
        )
        has_detection_failure = any(
            marker in text for text in texts for marker in EVENT_DETECTION_MARKERS
        )
        has_validation_failure = any("validation" in text.lower() for text in texts)
        has_timeout = any(
            "timeout" in text.lower() or "timed out" in text.lower() for text in texts
        )

        if has_undefined_access and has_detection_failure:
            return EnumDLQErrorType.EVENT_DETECTION_ERROR
        if not inspection.has_valid_structure:
            return EnumDLQErrorType.INVALID_MESSAGE_FORMAT
        if not inspection.has_valid_event:
            return EnumDLQErrorType.INVALID_EVENT_DATA
        if has_validation_failure:
            return EnumDLQErrorType.VALIDATION_ERROR
        if has_timeout:
            return EnumDLQErrorType.PROCESSING_TIMEOUT
        if record.approximate_receive_count > self._settings.queue_max_receive_count:
            return EnumDLQErrorType.REPEATED_FAILURE
        return EnumDLQErrorType.UNKNOWN_ERROR


__all__ = [
    "CATEGORY_RECOMMENDATIONS",
    "DEFAULT_MAX_DRAIN_MESSAGES",
    "ERROR_CATEGORIES",
    "LOG_FILTER_PATTERNS",
    "NO_ACTION_RECOMMENDATION",
    "BodyInspection",
    "DLQAnalyzer",
    "ErrorCategory",
    "build_report",
    "extract_log_level",
    "extract_request_id",
    "generate_recommendations",
    "generate_summary",
    "inspect_body",
    "parse_log_line",
]
