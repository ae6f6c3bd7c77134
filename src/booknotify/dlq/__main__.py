# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""
Dead-letter queue CLI.

Runs the DLQ analyzer, reprocessor and monitor, reports queue depth and
purges unrecoverable messages against a queue snapshot file
(see ``booknotify.dlq.snapshot`` for the format) and an optional JSON-lines
log export.

Usage:
    python -m booknotify.dlq analyze --snapshot dlq.json --logs consumer.jsonl
    python -m booknotify.dlq analyze --snapshot dlq.json --markdown report.md
    python -m booknotify.dlq reprocess --snapshot dlq.json --dry-run
    python -m booknotify.dlq reprocess --snapshot dlq.json --message-id abc --message-id def
    python -m booknotify.dlq reprocess --snapshot dlq.json --error-type PROCESSING_TIMEOUT
    python -m booknotify.dlq monitor --snapshot dlq.json --environment prod --json
    python -m booknotify.dlq status --snapshot dlq.json
    python -m booknotify.dlq purge --snapshot dlq.json --logs consumer.jsonl
    python -m booknotify.dlq purge --snapshot dlq.json --confirm

Exit Codes:
    0 - Success: DLQ empty / every reprocess or purge attempt succeeded /
        DLQ healthy / dry-run purge found nothing to delete
    1 - Attention needed: messages found / a reprocess or purge attempt failed /
        DLQ in WARNING or CRITICAL / dry-run purge found messages to delete
    2 - Error: CLI usage error or unexpected failure
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from booknotify.config import NotificationSettings, get_config
from booknotify.dlq.analyzer import DLQAnalyzer
from booknotify.dlq.models import DLQMonitorConfig, ReprocessOptions
from booknotify.dlq.monitor import DLQMonitor
from booknotify.dlq.report import render_markdown_report, render_reprocess_report
from booknotify.dlq.reprocessor import DLQReprocessor
from booknotify.dlq.snapshot import JsonLinesLogSource, SnapshotQueueClient
from booknotify.enums.enum_dlq import EnumDLQErrorType, EnumHealthStatus
from booknotify.publisher.kafka_topic_publisher import KafkaTopicPublisher

logger = logging.getLogger(__name__)

# JSON output indentation (spaces)
JSON_INDENT_SPACES = 2

EXIT_OK = 0
EXIT_ATTENTION = 1
EXIT_ERROR = 2


def _settings(parsed_args: argparse.Namespace) -> NotificationSettings:
    overrides: dict[str, Any] = {}
    if parsed_args.dlq_url:
        overrides["dlq_url"] = parsed_args.dlq_url
    if parsed_args.queue_url:
        overrides["queue_url"] = parsed_args.queue_url
    settings = get_config()
    return settings.model_copy(update=overrides) if overrides else settings


def _write_text(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")
    print(f"Report written to {path}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


async def _run_analyze(parsed_args: argparse.Namespace, settings: NotificationSettings) -> int:
    queue = SnapshotQueueClient(parsed_args.snapshot, default_queue_url=settings.dlq_url)
    logs = JsonLinesLogSource(parsed_args.logs) if parsed_args.logs else None
    report = await DLQAnalyzer(queue, logs, settings).analyze()

    if parsed_args.markdown:
        _write_text(parsed_args.markdown, render_markdown_report(report))
    if parsed_args.json:
        print(json.dumps(report.to_dict(), indent=JSON_INDENT_SPACES))
    else:
        lines = [
            f"Total messages: {report.total_messages}",
            f"Reprocessable: {report.reprocessable_count}",
            f"Non-reprocessable: {report.non_reprocessable_count}",
        ]
        if report.messages_by_error_type:
            lines.append("By error type:")
            lines += [
                f"  {name}: {count}"
                for name, count in sorted(report.messages_by_error_type.items())
            ]
        lines.append("Recommendations:")
        lines += [f"  - {rec}" for rec in report.recommendations]
        print("\n".join(lines))
    return EXIT_ATTENTION if report.total_messages else EXIT_OK


async def _run_reprocess(parsed_args: argparse.Namespace, settings: NotificationSettings) -> int:
    queue = SnapshotQueueClient(parsed_args.snapshot, default_queue_url=settings.dlq_url)
    logs = JsonLinesLogSource(parsed_args.logs) if parsed_args.logs else None
    reprocessor = DLQReprocessor(queue, DLQAnalyzer(queue, logs, settings), settings)
    options = ReprocessOptions(
        message_ids=tuple(parsed_args.message_id or ()),
        error_types=tuple(EnumDLQErrorType(t) for t in parsed_args.error_type or ()),
        max_messages=parsed_args.max_messages,
        dry_run=parsed_args.dry_run,
        validate_before_reprocess=not parsed_args.no_validate,
        batch_size=parsed_args.batch_size or settings.dlq_reprocess_batch_size,
        batch_delay_ms=parsed_args.batch_delay_ms,
    )
    summary = await reprocessor.reprocess(options)

    if parsed_args.markdown:
        _write_text(
            parsed_args.markdown,
            render_reprocess_report(summary, generated_at=datetime.now(UTC)),
        )
    if parsed_args.json:
        print(json.dumps(summary.to_dict(), indent=JSON_INDENT_SPACES))
    else:
        mode = "DRY RUN - " if summary.dry_run else ""
        lines = [
            f"{mode}Processed {summary.total_processed} message(s): "
            f"{summary.successful} successful, {summary.failed} failed, "
            f"{summary.skipped} skipped ({summary.success_rate:.1f}% success)"
        ]
        if parsed_args.verbose:
            lines += [
                f"  {r.message_id}: {r.status.value} - {r.reason}" for r in summary.results
            ]
        lines += [f"  error: {e}" for e in summary.errors]
        print("\n".join(lines))
    return EXIT_ATTENTION if summary.failed else EXIT_OK


async def _run_monitor(parsed_args: argparse.Namespace, settings: NotificationSettings) -> int:
    queue = SnapshotQueueClient(parsed_args.snapshot, default_queue_url=settings.dlq_url)
    config = DLQMonitorConfig.for_environment(
        parsed_args.environment, alert_topic=settings.dlq_alert_topic
    )

    publisher: KafkaTopicPublisher | None = None
    if parsed_args.publish_alerts:
        publisher = KafkaTopicPublisher(
            settings.kafka_bootstrap_servers,
            request_timeout_ms=settings.kafka_request_timeout_ms,
        )
        await publisher.start()
    try:
        monitor = DLQMonitor(queue, config, settings, topic_publisher=publisher)
        health = await monitor.check()
        dashboard = await monitor.get_dashboard()
    finally:
        if publisher is not None:
            await publisher.stop()

    if parsed_args.json:
        output = health.to_dict()
        output["recommendations"] = list(dashboard.recommendations)
        print(json.dumps(output, indent=JSON_INDENT_SPACES))
    else:
        lines = [
            f"DLQ {health.metrics.queue_name}: {health.status.value}",
            f"  Messages: {health.metrics.message_count}",
            f"  Oldest message age: {health.metrics.oldest_message_age_seconds:.0f}s",
        ]
        lines += [f"  [{a.severity.value}] {a.message}" for a in health.alerts]
        lines.append("Recommendations:")
        lines += [f"  - {rec}" for rec in dashboard.recommendations]
        print("\n".join(lines))
    return EXIT_OK if health.status is EnumHealthStatus.HEALTHY else EXIT_ATTENTION


async def _run_status(parsed_args: argparse.Namespace, settings: NotificationSettings) -> int:
    queue = SnapshotQueueClient(parsed_args.snapshot, default_queue_url=settings.dlq_url)
    attributes = await queue.get_queue_attributes(settings.dlq_url)
    visible = int(attributes.get("ApproximateNumberOfMessages", "0"))
    not_visible = int(attributes.get("ApproximateNumberOfMessagesNotVisible", "0"))
    oldest_age = int(attributes.get("ApproximateAgeOfOldestMessage", "0"))

    if parsed_args.json:
        output = {
            "queueUrl": settings.dlq_url,
            "visibleMessages": visible,
            "notVisibleMessages": not_visible,
            "totalMessages": visible + not_visible,
            "oldestMessageAgeSeconds": oldest_age,
        }
        print(json.dumps(output, indent=JSON_INDENT_SPACES))
    else:
        print(
            "\n".join(
                [
                    f"DLQ {settings.dlq_url}",
                    f"  Visible messages: {visible}",
                    f"  Not visible messages: {not_visible}",
                    f"  Oldest message age: {oldest_age}s",
                ]
            )
        )
    return EXIT_ATTENTION if visible + not_visible else EXIT_OK


async def _run_purge(parsed_args: argparse.Namespace, settings: NotificationSettings) -> int:
    """Delete the messages the analyzer marks as not reprocessable.

    Without ``--confirm`` nothing is deleted and the candidates are listed.
    """
    queue = SnapshotQueueClient(parsed_args.snapshot, default_queue_url=settings.dlq_url)
    logs = JsonLinesLogSource(parsed_args.logs) if parsed_args.logs else None
    analyzer = DLQAnalyzer(queue, logs, settings)
    records = await analyzer.receive_all()
    analyses = await analyzer.analyze_records(records)
    candidates = [
        (record, analysis)
        for record, analysis in zip(records, analyses, strict=True)
        if not analysis.is_reprocessable
    ]

    dry_run = not parsed_args.confirm
    deleted: list[str] = []
    errors: list[str] = []
    if not dry_run:
        for record, _ in candidates:
            try:
                await queue.delete_message(settings.dlq_url, record.receipt_handle)
            except Exception as e:
                # fallback-ok: the failure is reported per message
                logger.error(
                    "DLQ purge: could not delete message. message_id=%s error=%s",
                    record.message_id,
                    e,
                )
                errors.append(f"{record.message_id}: {e}")
            else:
                deleted.append(record.message_id)
        logger.info(
            "DLQ purge: completed. candidates=%d deleted=%d failed=%d",
            len(candidates),
            len(deleted),
            len(errors),
        )

    attributes = await queue.get_queue_attributes(settings.dlq_url)
    remaining = int(attributes.get("ApproximateNumberOfMessages", "0")) + int(
        attributes.get("ApproximateNumberOfMessagesNotVisible", "0")
    )

    if parsed_args.json:
        output = {
            "dryRun": dry_run,
            "totalMessages": len(records),
            "candidates": [
                {
                    "messageId": analysis.message_id,
                    "errorType": analysis.error_type.value,
                    "rootCause": analysis.root_cause,
                }
                for _, analysis in candidates
            ],
            "deleted": deleted,
            "errors": errors,
            "remainingMessages": remaining,
        }
        print(json.dumps(output, indent=JSON_INDENT_SPACES))
    else:
        if dry_run:
            lines = [
                f"DRY RUN - {len(candidates)} of {len(records)} message(s) would be purged "
                "(pass --confirm to delete)"
            ]
        else:
            lines = [
                f"Purged {len(deleted)} of {len(candidates)} non-reprocessable message(s), "
                f"{len(errors)} failed"
            ]
        if parsed_args.verbose or dry_run:
            lines += [
                f"  {analysis.message_id}: {analysis.error_type.value} - {analysis.root_cause}"
                for _, analysis in candidates
            ]
        lines += [f"  error: {e}" for e in errors]
        lines.append(f"Messages remaining in DLQ: {remaining}")
        print("\n".join(lines))

    if dry_run:
        return EXIT_ATTENTION if candidates else EXIT_OK
    return EXIT_ATTENTION if errors else EXIT_OK


_COMMANDS = {
    "analyze": _run_analyze,
    "reprocess": _run_reprocess,
    "monitor": _run_monitor,
    "status": _run_status,
    "purge": _run_purge,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--snapshot",
        type=Path,
        required=True,
        metavar="PATH",
        help="Queue snapshot JSON file (a list of DLQ messages, or URL -> messages)",
    )
    common.add_argument("--dlq-url", metavar="URL", help="Override DLQ_URL")
    common.add_argument("--queue-url", metavar="URL", help="Override QUEUE_URL")
    common.add_argument(
        "--json", action="store_true", help="Output in JSON format for automation"
    )
    common.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    parser = argparse.ArgumentParser(
        description="Dead-letter queue analysis, reprocessing, monitoring and purging",
        prog="python -m booknotify.dlq",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyze --snapshot dlq.json --logs consumer.jsonl
  %(prog)s reprocess --snapshot dlq.json --dry-run
  %(prog)s monitor --snapshot dlq.json --environment qa --json
  %(prog)s status --snapshot dlq.json
  %(prog)s purge --snapshot dlq.json --confirm
""",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", parents=[common], help="Classify DLQ messages")
    analyze.add_argument("--logs", type=Path, metavar="PATH", help="JSON-lines log export")
    analyze.add_argument(
        "--markdown", type=Path, metavar="PATH", help="Also write a Markdown report"
    )

    reprocess = sub.add_parser(
        "reprocess", parents=[common], help="Re-inject reprocessable DLQ messages"
    )
    reprocess.add_argument("--logs", type=Path, metavar="PATH", help="JSON-lines log export")
    reprocess.add_argument(
        "--markdown", type=Path, metavar="PATH", help="Also write a Markdown report"
    )
    reprocess.add_argument(
        "--message-id", action="append", metavar="ID", help="Only reprocess this id"
    )
    reprocess.add_argument(
        "--error-type",
        action="append",
        choices=[t.value for t in EnumDLQErrorType],
        help="Only reprocess messages classified as this type",
    )
    reprocess.add_argument("--max-messages", type=int, default=0, metavar="N")
    reprocess.add_argument("--batch-size", type=int, default=0, metavar="N")
    reprocess.add_argument("--batch-delay-ms", type=int, default=1000, metavar="MS")
    reprocess.add_argument(
        "--dry-run", "-n", action="store_true", help="Report actions without side effects"
    )
    reprocess.add_argument(
        "--no-validate",
        action="store_true",
        help="Only require the body to parse, not to pass envelope validation",
    )

    monitor = sub.add_parser("monitor", parents=[common], help="Check DLQ health once")
    monitor.add_argument(
        "--environment", choices=["local", "qa", "prod"], default="local"
    )
    monitor.add_argument(
        "--publish-alerts",
        action="store_true",
        help="Publish alerts to DLQ_ALERT_TOPIC through Kafka",
    )

    sub.add_parser("status", parents=[common], help="Show visible and in-flight DLQ counts")

    purge = sub.add_parser(
        "purge", parents=[common], help="Delete DLQ messages that cannot be reprocessed"
    )
    purge.add_argument("--logs", type=Path, metavar="PATH", help="JSON-lines log export")
    purge.add_argument(
        "--confirm",
        action="store_true",
        help="Actually delete; without it the purge is a dry run",
    )
    return parser


def main(args: list[str] | None = None) -> int:
    """CLI entry point for the DLQ tools.

    Args:
        args: Command line arguments (uses sys.argv if None).

    Returns:
        Exit code; see the module docstring.
    """
    parser = _build_parser()
    try:
        parsed_args = parser.parse_args(args)
    except SystemExit as e:
        return EXIT_OK if e.code == 0 else EXIT_ERROR

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = _settings(parsed_args)
        return asyncio.run(_COMMANDS[parsed_args.command](parsed_args, settings))

    except (FileNotFoundError, ValueError) as e:
        error_type = "file_not_found" if isinstance(e, FileNotFoundError) else "invalid_input"
        error_msg = f"Error: {e}"
        if parsed_args.json:
            print(
                json.dumps(
                    {"error": error_msg, "error_type": error_type},
                    indent=JSON_INDENT_SPACES,
                )
            )
        else:
            print(error_msg, file=sys.stderr)
        return EXIT_ERROR

    except Exception as e:
        error_msg = f"Unexpected error: {e}"
        if parsed_args.json:
            print(
                json.dumps(
                    {"error": error_msg, "error_type": "unexpected_error"},
                    indent=JSON_INDENT_SPACES,
                )
            )
        else:
            print(error_msg, file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
