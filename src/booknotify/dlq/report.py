# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Markdown renderings of DLQ analysis and reprocessing results."""

from __future__ import annotations

from datetime import datetime

from booknotify.dlq.models import DLQAnalysisReport, ReprocessSummary
from booknotify.enums.enum_dlq import EnumReprocessStatus


def _iso(moment: datetime | None) -> str:
    return moment.isoformat() if moment is not None else "n/a"


def _bullets(items: list[str] | tuple[str, ...], empty: str = "None") -> list[str]:
    return [f"- {item}" for item in items] if items else [empty]


def render_markdown_report(report: DLQAnalysisReport) -> str:
    """Render an analysis report as a Markdown document."""
    lines = [
        "# DLQ Analysis Report",
        "",
        f"Generated: {_iso(report.generated_at)}",
        "",
        "## Summary",
        "",
        f"- **Total Messages**: {report.total_messages}",
        f"- **Reprocessable**: {report.reprocessable_count}",
        f"- **Non-reprocessable**: {report.non_reprocessable_count}",
        f"- **Date Range**: {_iso(report.oldest_message)} to {_iso(report.newest_message)}",
        "",
        "## Messages by Error Type",
        "",
        *_bullets(
            [f"**{name}**: {count}" for name, count in report.messages_by_error_type.items()]
        ),
        "",
        "## Messages by Root Cause",
        "",
        *_bullets(
            [f"**{cause}**: {count}" for cause, count in report.messages_by_root_cause.items()]
        ),
        "",
        "## Critical Issues",
        "",
        *_bullets(report.summary.critical_issues),
        "",
        "## Common Patterns",
        "",
        *_bullets(report.summary.common_patterns),
        "",
        "## Recommendations",
        "",
        *_bullets(report.recommendations),
        "",
        "## Suggested Actions",
        "",
        *_bullets(report.summary.suggested_actions),
        "",
        "## Detailed Analysis",
    ]
    for analysis in report.detailed_analysis:
        lines += [
            "",
            f"### Message {analysis.message_id}",
            "",
            f"- **Error Type**: {analysis.error_type.value}",
            f"- **Root Cause**: {analysis.root_cause}",
            f"- **Reprocessable**: {'Yes' if analysis.is_reprocessable else 'No'}",
            f"- **Failure Reason**: {analysis.failure_reason}",
            f"- **Event Type**: {analysis.event_type or 'Unknown'}",
            f"- **Event ID**: {analysis.event_id or 'Unknown'}",
            f"- **Book ID**: {analysis.book_id or 'Unknown'}",
            f"- **Failure Count**: {analysis.failure_count}",
            f"- **Original Timestamp**: {_iso(analysis.original_timestamp)}",
            f"- **Log Entries**: {len(analysis.correlated_log_entries)}",
        ]
    return "\n".join(lines) + "\n"


def render_reprocess_report(summary: ReprocessSummary, *, generated_at: datetime) -> str:
    """Render a reprocessing run as a Markdown document."""

    def section(status: EnumReprocessStatus, title: str) -> list[str]:
        results = [r for r in summary.results if r.status is status]
        entries = [
            f"{r.message_id}: {r.reason}" + (f" ({r.error})" if r.error else "")
            for r in results
        ]
        return [f"### {title} ({len(results)})", *_bullets(entries), ""]

    recommendations: list[str] = []
    if summary.successful:
        recommendations.append("Monitor reprocessed messages for successful delivery")
    if summary.failed:
        recommendations.append("Investigate failed reprocessing attempts")
    if summary.skipped:
        recommendations.append("Review skipped messages for manual handling")

    lines = [
        "# DLQ Reprocessing Report",
        "",
        f"Generated: {_iso(generated_at)}",
        "",
        "## Summary",
        "",
        f"- **Mode**: {'Dry run' if summary.dry_run else 'Live'}",
        f"- **Total Processed**: {summary.total_processed}",
        f"- **Successful**: {summary.successful}",
        f"- **Failed**: {summary.failed}",
        f"- **Skipped**: {summary.skipped}",
        f"- **Success Rate**: {summary.success_rate:.1f}%",
        f"- **Duration**: {summary.duration_ms / 1000:.2f} seconds",
        "",
        "## Results by Status",
        "",
        *section(EnumReprocessStatus.SUCCESS, "Successful"),
        *section(EnumReprocessStatus.FAILED, "Failed"),
        *section(EnumReprocessStatus.SKIPPED, "Skipped"),
        "## Errors",
        "",
        *_bullets(summary.errors, empty="No errors occurred"),
        "",
        "## Recommendations",
        "",
        *_bullets(recommendations),
    ]
    return "\n".join(lines) + "\n"


__all__ = ["render_markdown_report", "render_reprocess_report"]
