# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Result and configuration types for the dead-letter queue tools.

Analysis, reprocessing and monitoring results are frozen dataclasses with a
``to_dict()`` producing the camelCase JSON written by the CLI. The monitor
configuration is a pydantic model so presets and CLI overrides are
validated the same way as ``NotificationSettings``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from booknotify.enums.enum_dlq import (
    EnumAlertSeverity,
    EnumDLQAlertType,
    EnumDLQErrorType,
    EnumHealthStatus,
    EnumReprocessStatus,
)


def _iso(moment: datetime | None) -> str | None:
    return moment.isoformat() if moment is not None else None


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LogEntry:
    """One trace-log line correlated with a dead-lettered message."""

    timestamp: datetime
    message: str
    level: str = "DEBUG"
    request_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "level": self.level,
            "message": self.message,
            "requestId": self.request_id,
        }


@dataclass(frozen=True)
class DLQMessageAnalysis:
    """Classification of a single dead-lettered message.

    Purely observational: producing an analysis never changes the queue.

    Attributes:
        message_id: Queue message id.
        error_type: Root-cause category.
        root_cause: Human description of the category.
        is_reprocessable: Whether re-injecting the message can succeed once
            the underlying fault is fixed.
        failure_reason: Short failure label for reports.
        original_timestamp: When the message was first enqueued.
        failure_count: Approximate receive count reported by the queue.
        correlated_log_entries: Trace-log lines near the enqueue time.
        event_type: ``eventType`` of the inner event, when it could be read.
        event_id: ``eventId`` of the inner event, when it could be read.
        book_id: ``data.bookId`` of the inner event, when it could be read.
        new_status: ``data.newStatus`` of the inner event, when it could be read.
    """

    message_id: str
    error_type: EnumDLQErrorType
    root_cause: str
    is_reprocessable: bool
    failure_reason: str
    original_timestamp: datetime | None
    failure_count: int
    correlated_log_entries: tuple[LogEntry, ...] = ()
    event_type: str | None = None
    event_id: str | None = None
    book_id: str | None = None
    new_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "errorType": self.error_type.value,
            "rootCause": self.root_cause,
            "isReprocessable": self.is_reprocessable,
            "failureReason": self.failure_reason,
            "originalTimestamp": _iso(self.original_timestamp),
            "failureCount": self.failure_count,
            "eventType": self.event_type,
            "eventId": self.event_id,
            "bookId": self.book_id,
            "newStatus": self.new_status,
            "correlatedLogEntries": [e.to_dict() for e in self.correlated_log_entries],
        }


@dataclass(frozen=True)
class DLQAnalysisSummary:
    """Narrative part of an analysis report."""

    critical_issues: tuple[str, ...] = ()
    common_patterns: tuple[str, ...] = ()
    suggested_actions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "criticalIssues": list(self.critical_issues),
            "commonPatterns": list(self.common_patterns),
            "suggestedActions": list(self.suggested_actions),
        }


@dataclass(frozen=True)
class DLQAnalysisReport:
    """Aggregate report over one point-in-time drain of the dead-letter queue."""

    generated_at: datetime
    total_messages: int
    messages_by_error_type: dict[str, int]
    messages_by_root_cause: dict[str, int]
    oldest_message: datetime | None
    newest_message: datetime | None
    reprocessable_count: int
    non_reprocessable_count: int
    recommendations: tuple[str, ...]
    detailed_analysis: tuple[DLQMessageAnalysis, ...]
    summary: DLQAnalysisSummary
    queue_attributes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": _iso(self.generated_at),
            "totalMessages": self.total_messages,
            "messagesByErrorType": dict(self.messages_by_error_type),
            "messagesByRootCause": dict(self.messages_by_root_cause),
            "oldestMessage": _iso(self.oldest_message),
            "newestMessage": _iso(self.newest_message),
            "reprocessableCount": self.reprocessable_count,
            "nonReprocessableCount": self.non_reprocessable_count,
            "recommendations": list(self.recommendations),
            "summary": self.summary.to_dict(),
            "queueAttributes": dict(self.queue_attributes),
            "detailedAnalysis": [a.to_dict() for a in self.detailed_analysis],
        }


# ---------------------------------------------------------------------------
# Reprocessing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReprocessOptions:
    """Selection and safety options for ``DLQReprocessor.reprocess``.

    Attributes:
        message_ids: Only consider these message ids (all when empty).
        error_types: Only consider messages classified into these types.
        max_messages: Cap on messages considered after filtering (0 = no cap).
        dry_run: Report intended actions without touching either queue.
        validate_before_reprocess: Also require the inner event to pass
            envelope validation, not just to parse.
        batch_size: Messages handled between inter-batch pauses.
        batch_delay_ms: Pause between batches.
    """

    message_ids: tuple[str, ...] = ()
    error_types: tuple[EnumDLQErrorType, ...] = ()
    max_messages: int = 0
    dry_run: bool = False
    validate_before_reprocess: bool = True
    batch_size: int = 5
    batch_delay_ms: int = 1000


@dataclass(frozen=True)
class ReprocessResult:
    """Outcome of reprocessing one message."""

    message_id: str
    status: EnumReprocessStatus
    reason: str
    timestamp: datetime
    error: str | None = None
    new_message_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "status": self.status.value,
            "reason": self.reason,
            "timestamp": _iso(self.timestamp),
            "error": self.error,
            "newMessageId": self.new_message_id,
        }


@dataclass(frozen=True)
class ReprocessSummary:
    """Aggregate outcome of one reprocessing run."""

    results: tuple[ReprocessResult, ...]
    duration_ms: float
    dry_run: bool
    errors: tuple[str, ...] = ()

    @property
    def total_processed(self) -> int:
        return len(self.results)

    def _count(self, status: EnumReprocessStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def successful(self) -> int:
        return self._count(EnumReprocessStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self._count(EnumReprocessStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(EnumReprocessStatus.SKIPPED)

    @property
    def success_rate(self) -> float:
        """Percentage of considered messages that succeeded (0 when none)."""
        if not self.results:
            return 0.0
        return self.successful / len(self.results) * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalProcessed": self.total_processed,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "dryRun": self.dry_run,
            "summary": {
                "durationMs": round(self.duration_ms, 2),
                "successRate": round(self.success_rate, 1),
                "errors": list(self.errors),
            },
            "results": [r.to_dict() for r in self.results],
        }


# ---------------------------------------------------------------------------
# Monitoring
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DLQMetrics:
    """One sample of dead-letter queue depth and age.

    ``message_rate`` is the growth in depth since the previous sample,
    in messages per minute; it is 0 for the first sample.
    """

    queue_name: str
    message_count: int
    oldest_message_age_seconds: float
    message_rate: float
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "queueName": self.queue_name,
            "messageCount": self.message_count,
            "oldestMessageAge": self.oldest_message_age_seconds,
            "messageRate": self.message_rate,
            "timestamp": _iso(self.timestamp),
        }


@dataclass(frozen=True)
class DLQAlert:
    """A threshold breach detected on one metrics sample."""

    alert_type: EnumDLQAlertType
    severity: EnumAlertSeverity
    message: str
    metrics: DLQMetrics
    threshold: float
    current_value: float

    def to_payload(self) -> dict[str, Any]:
        """JSON payload published to the alert topic."""
        return {
            "alertType": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "queueName": self.metrics.queue_name,
            "currentValue": self.current_value,
            "threshold": self.threshold,
            "timestamp": _iso(self.metrics.timestamp),
            "metrics": {
                "messageCount": self.metrics.message_count,
                "oldestMessageAge": self.metrics.oldest_message_age_seconds,
                "messageRate": self.metrics.message_rate,
            },
        }


@dataclass(frozen=True)
class DLQHealth:
    status: EnumHealthStatus
    metrics: DLQMetrics
    alerts: tuple[DLQAlert, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "metrics": self.metrics.to_dict(),
            "alerts": [a.to_payload() for a in self.alerts],
        }


@dataclass(frozen=True)
class DLQDashboard:
    current_metrics: DLQMetrics
    alerts: tuple[DLQAlert, ...]
    recommendations: tuple[str, ...]
    history: tuple[DLQMetrics, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentMetrics": self.current_metrics.to_dict(),
            "alerts": [a.to_payload() for a in self.alerts],
            "recommendations": list(self.recommendations),
            "historicalData": [m.to_dict() for m in self.history],
        }


MonitorEnvironment = Literal["local", "qa", "prod"]


class DLQMonitorConfig(BaseModel):
    """Thresholds and cadence for ``DLQMonitor``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    message_count_threshold: int = Field(
        default=10, ge=0, description="Alert when depth exceeds this many messages"
    )
    oldest_message_age_hours: float = Field(
        default=2.0, ge=0, description="Alert when the oldest message is older than this"
    )
    message_rate_per_minute: float = Field(
        default=5.0, ge=0, description="Alert when depth grows faster than this"
    )
    check_interval_seconds: float = Field(
        default=60.0, gt=0, description="Delay between periodic checks"
    )
    alert_topic: str | None = Field(
        default=None,
        description="Topic alerts are published to; None disables publication",
    )
    history_size: int = Field(
        default=288, ge=1, description="Metric samples kept for the dashboard"
    )

    @classmethod
    def for_environment(
        cls, environment: MonitorEnvironment, *, alert_topic: str | None = None
    ) -> DLQMonitorConfig:
        """Preset thresholds for a deployment environment.

        Local never publishes alerts; qa and prod publish to ``alert_topic``.
        """
        presets: dict[str, dict[str, float]] = {
            "local": {
                "message_count_threshold": 5,
                "oldest_message_age_hours": 1,
                "message_rate_per_minute": 2,
                "check_interval_seconds": 30,
            },
            "qa": {
                "message_count_threshold": 10,
                "oldest_message_age_hours": 2,
                "message_rate_per_minute": 5,
                "check_interval_seconds": 60,
            },
            "prod": {
                "message_count_threshold": 20,
                "oldest_message_age_hours": 4,
                "message_rate_per_minute": 10,
                "check_interval_seconds": 300,
            },
        }
        if environment not in presets:
            raise ValueError(
                f"Unknown monitor environment: {environment!r} "
                f"(expected one of {', '.join(presets)})"
            )
        return cls(
            message_count_threshold=int(presets[environment]["message_count_threshold"]),
            oldest_message_age_hours=presets[environment]["oldest_message_age_hours"],
            message_rate_per_minute=presets[environment]["message_rate_per_minute"],
            check_interval_seconds=presets[environment]["check_interval_seconds"],
            alert_topic=None if environment == "local" else alert_topic,
        )


__all__ = [
    "DLQAlert",
    "DLQAnalysisReport",
    "DLQAnalysisSummary",
    "DLQDashboard",
    "DLQHealth",
    "DLQMessageAnalysis",
    "DLQMetrics",
    "DLQMonitorConfig",
    "LogEntry",
    "MonitorEnvironment",
    "ReprocessOptions",
    "ReprocessResult",
    "ReprocessSummary",
]
