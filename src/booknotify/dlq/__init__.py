# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Dead-letter queue analysis, reprocessing and monitoring.

Usage:
    from booknotify.dlq import DLQAnalyzer, DLQReprocessor, DLQMonitor

CLI:
    python -m booknotify.dlq --help
"""

from booknotify.dlq.analyzer import (
    ERROR_CATEGORIES,
    DLQAnalyzer,
    build_report,
    inspect_body,
    parse_log_line,
)
from booknotify.dlq.models import (
    DLQAlert,
    DLQAnalysisReport,
    DLQAnalysisSummary,
    DLQDashboard,
    DLQHealth,
    DLQMessageAnalysis,
    DLQMetrics,
    DLQMonitorConfig,
    LogEntry,
    ReprocessOptions,
    ReprocessResult,
    ReprocessSummary,
)
from booknotify.dlq.monitor import DLQMonitor
from booknotify.dlq.protocols import ProtocolLogSource, ProtocolQueueClient
from booknotify.dlq.report import render_markdown_report, render_reprocess_report
from booknotify.dlq.reprocessor import DLQReprocessor
from booknotify.dlq.snapshot import (
    InMemoryLogSource,
    InMemoryQueueClient,
    JsonLinesLogSource,
    SnapshotQueueClient,
)

__all__ = [
    "ERROR_CATEGORIES",
    "DLQAlert",
    "DLQAnalysisReport",
    "DLQAnalysisSummary",
    "DLQAnalyzer",
    "DLQDashboard",
    "DLQHealth",
    "DLQMessageAnalysis",
    "DLQMetrics",
    "DLQMonitor",
    "DLQMonitorConfig",
    "DLQReprocessor",
    "InMemoryLogSource",
    "InMemoryQueueClient",
    "JsonLinesLogSource",
    "LogEntry",
    "ProtocolLogSource",
    "ProtocolQueueClient",
    "ReprocessOptions",
    "ReprocessResult",
    "ReprocessSummary",
    "SnapshotQueueClient",
    "build_report",
    "inspect_body",
    "parse_log_line",
    "render_markdown_report",
    "render_reprocess_report",
]
