# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""
Unit tests for DLQReprocessor.

Tests cover:
- Dry runs leave both queues untouched
- Live re-injection: send to the main queue, then delete from the DLQ
- Skips for non-reprocessable, over-limit and unparseable messages
- Send and delete failures
- Selection filters and batching
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from booknotify.config import NotificationSettings
from booknotify.consumer.models import QueueRecord
from booknotify.dlq.analyzer import DLQAnalyzer
from booknotify.dlq.models import ReprocessOptions
from booknotify.dlq.report import render_reprocess_report
from booknotify.dlq.reprocessor import DLQReprocessor
from booknotify.enums import EnumDLQErrorType, EnumReprocessStatus
from booknotify.testing import (
    InMemoryLogSource,
    InMemoryQueueClient,
    make_event_dict,
    make_transport_body,
)

SeedMessage = Callable[..., QueueRecord]
R = EnumReprocessStatus

DETECTION_LOG = "ERROR TypeError: Cannot read properties of undefined (reading 'endsWith')"


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def reprocessor(
    queue_client: InMemoryQueueClient,
    analyzer: DLQAnalyzer,
    settings: NotificationSettings,
    fixed_now: datetime,
    sleep: AsyncMock,
) -> DLQReprocessor:
    return DLQReprocessor(
        queue_client, analyzer, settings, clock=lambda: fixed_now, sleep=sleep
    )


@pytest.mark.unit
class TestDryRun:
    @pytest.mark.asyncio
    async def test_dry_run_has_no_side_effects(
        self,
        reprocessor: DLQReprocessor,
        queue_client: InMemoryQueueClient,
        settings: NotificationSettings,
        seed_dlq: SeedMessage,
    ) -> None:
        seed_dlq("m-1")
        seed_dlq("m-2", "not json")

        summary = await reprocessor.reprocess(ReprocessOptions(dry_run=True))

        assert summary.dry_run is True
        by_id = {r.message_id: r for r in summary.results}
        assert by_id["m-1"].status is R.SUCCESS
        assert by_id["m-1"].reason == "Dry run - would reprocess"
        assert by_id["m-2"].status is R.SKIPPED
        assert by_id["m-2"].reason == "Not reprocessable: INVALID_MESSAGE_FORMAT"
        assert queue_client.messages(settings.queue_url) == []
        assert len(queue_client.messages(settings.dlq_url)) == 2


@pytest.mark.unit
class TestLiveReprocess:
    @pytest.mark.asyncio
    async def test_send_then_delete(
        self,
        reprocessor: DLQReprocessor,
        queue_client: InMemoryQueueClient,
        settings: NotificationSettings,
        seed_dlq: SeedMessage,
        fixed_now: datetime,
    ) -> None:
        original = seed_dlq("m-1")

        summary = await reprocessor.reprocess()

        [result] = summary.results
        assert result.status is R.SUCCESS
        assert result.reason == "Successfully reprocessed via queue"
        assert queue_client.messages(settings.dlq_url) == []
        [requeued] = queue_client.messages(settings.queue_url)
        assert requeued.message_id == result.new_message_id
        assert requeued.body == original.body
        assert requeued.message_attributes == {
            "ReprocessedFromDLQ": "true",
            "OriginalMessageId": "m-1",
            "ReprocessedAt": fixed_now.isoformat(),
        }
        assert summary.success_rate == 100.0

    @pytest.mark.asyncio
    async def test_over_limit_is_skipped(
        self,
        reprocessor: DLQReprocessor,
        queue_client: InMemoryQueueClient,
        settings: NotificationSettings,
        seed_dlq: SeedMessage,
        log_source: InMemoryLogSource,
        fixed_now: datetime,
    ) -> None:
        # Timeout is tested before the receive count, so this stays reprocessable.
        seed_dlq("m-1", receive_count=6, sent_at=fixed_now)
        log_source.add(fixed_now, "ERROR Task timed out m-1")

        [result] = (await reprocessor.reprocess()).results

        assert result.status is R.SKIPPED
        assert result.reason == "Message exceeded maximum retry count"
        assert queue_client.messages(settings.queue_url) == []

    @pytest.mark.asyncio
    async def test_unparseable_body_is_skipped(
        self,
        reprocessor: DLQReprocessor,
        queue_client: InMemoryQueueClient,
        settings: NotificationSettings,
        seed_dlq: SeedMessage,
        log_source: InMemoryLogSource,
        fixed_now: datetime,
    ) -> None:
        seed_dlq("m-1", "not json", sent_at=fixed_now)
        log_source.add(fixed_now, DETECTION_LOG)

        [result] = (await reprocessor.reprocess()).results

        assert result.status is R.SKIPPED
        assert result.reason == "Invalid message format"
        assert result.error
        assert len(queue_client.messages(settings.dlq_url)) == 1

    @pytest.mark.asyncio
    async def test_validation_can_be_disabled(
        self,
        reprocessor: DLQReprocessor,
        queue_client: InMemoryQueueClient,
        settings: NotificationSettings,
        seed_dlq: SeedMessage,
        log_source: InMemoryLogSource,
        fixed_now: datetime,
    ) -> None:
        event = make_event_dict()
        event["version"] = "2.0"
        seed_dlq("strict", make_transport_body(event), sent_at=fixed_now)
        log_source.add(fixed_now, DETECTION_LOG)

        [validated] = (await reprocessor.reprocess()).results
        queue_client.release()
        [lenient] = (
            await reprocessor.reprocess(ReprocessOptions(validate_before_reprocess=False))
        ).results

        assert validated.status is R.SKIPPED
        assert lenient.status is R.SUCCESS
        assert len(queue_client.messages(settings.queue_url)) == 1

    @pytest.mark.asyncio
    async def test_send_failure_keeps_message(
        self,
        reprocessor: DLQReprocessor,
        queue_client: InMemoryQueueClient,
        settings: NotificationSettings,
        seed_dlq: SeedMessage,
    ) -> None:
        seed_dlq("m-1")
        queue_client.send_error = ConnectionError("queue unreachable")

        summary = await reprocessor.reprocess()

        [result] = summary.results
        assert result.status is R.FAILED
        assert result.reason == "Failed to send to original queue"
        assert summary.errors == ("m-1: queue unreachable",)
        assert len(queue_client.messages(settings.dlq_url)) == 1

    @pytest.mark.asyncio
    async def test_delete_failure_after_send(
        self,
        reprocessor: DLQReprocessor,
        queue_client: InMemoryQueueClient,
        settings: NotificationSettings,
        seed_dlq: SeedMessage,
    ) -> None:
        seed_dlq("m-1")
        queue_client.delete_error = PermissionError("delete denied")

        [result] = (await reprocessor.reprocess()).results

        assert result.status is R.FAILED
        assert result.reason == "Reprocessing error"
        assert result.new_message_id is not None
        assert len(queue_client.messages(settings.queue_url)) == 1
        assert len(queue_client.messages(settings.dlq_url)) == 1


@pytest.mark.unit
class TestSelection:
    @pytest.mark.asyncio
    async def test_message_id_filter(
        self, reprocessor: DLQReprocessor, seed_dlq: SeedMessage
    ) -> None:
        for n in range(4):
            seed_dlq(f"m-{n}")

        summary = await reprocessor.reprocess(
            ReprocessOptions(message_ids=("m-1", "m-3"), dry_run=True)
        )

        assert sorted(r.message_id for r in summary.results) == ["m-1", "m-3"]

    @pytest.mark.asyncio
    async def test_error_type_filter_and_cap(
        self, reprocessor: DLQReprocessor, seed_dlq: SeedMessage
    ) -> None:
        seed_dlq("bad", "not json")
        for n in range(3):
            seed_dlq(f"m-{n}")

        summary = await reprocessor.reprocess(
            ReprocessOptions(
                error_types=(EnumDLQErrorType.UNKNOWN_ERROR,),
                max_messages=2,
                dry_run=True,
            )
        )

        assert summary.total_processed == 2
        assert all(r.message_id != "bad" for r in summary.results)

    @pytest.mark.asyncio
    async def test_batches_pause_between_each_other(
        self, reprocessor: DLQReprocessor, seed_dlq: SeedMessage, sleep: AsyncMock
    ) -> None:
        for n in range(7):
            seed_dlq(f"m-{n}")

        summary = await reprocessor.reprocess(
            ReprocessOptions(batch_size=3, batch_delay_ms=250)
        )

        assert summary.successful == 7
        assert [c.args[0] for c in sleep.await_args_list] == [0.25, 0.25]

    @pytest.mark.asyncio
    async def test_empty_dlq(self, reprocessor: DLQReprocessor) -> None:
        summary = await reprocessor.reprocess()

        assert summary.total_processed == 0
        assert summary.success_rate == 0.0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reprocess_report(
    reprocessor: DLQReprocessor, seed_dlq: SeedMessage, fixed_now: datetime
) -> None:
    seed_dlq("ok")
    seed_dlq("bad", "not json")

    markdown = render_reprocess_report(await reprocessor.reprocess(), generated_at=fixed_now)

    assert markdown.startswith("# DLQ Reprocessing Report")
    assert "- **Mode**: Live" in markdown
    assert "- **Successful**: 1" in markdown
    assert "- **Skipped**: 1" in markdown
    assert "No errors occurred" in markdown
