# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""
Unit tests for EventPublisher.

Tests cover:
- Transition filtering before any network call
- Envelope, subject and routing attributes of a published event
- Bounded retries with exponential backoff
- Early stop on non-retryable error categories
- Error categorisation
- Metrics tracking

All tests use InMemoryTopicPublisher and an AsyncMock sleep - NO real broker.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from aiokafka.errors import (
    KafkaConnectionError,
    KafkaTimeoutError,
    MessageSizeTooLargeError,
    TopicAuthorizationFailedError,
    UnknownTopicOrPartitionError,
)

from booknotify.config import NotificationSettings
from booknotify.enums import EnumBookStatus, EnumPublishErrorCategory
from booknotify.errors import EventPublishError
from booknotify.events.models import ModelStatusChangeData
from booknotify.events.serialization import deserialize_event
from booknotify.publisher.event_publisher import (
    EventPublisher,
    categorize_publish_error,
    is_retryable_publish_error,
)
from booknotify.testing import InMemoryTopicPublisher, make_event

C = EnumPublishErrorCategory


class CodedError(Exception):
    """Broker-style error carrying a ``code`` attribute."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def publisher(
    topic_publisher: InMemoryTopicPublisher,
    settings: NotificationSettings,
    sleep: AsyncMock,
) -> EventPublisher:
    return EventPublisher(topic_publisher, settings, sleep=sleep)


def _data(
    previous: EnumBookStatus | None = EnumBookStatus.DRAFT,
    new: EnumBookStatus = EnumBookStatus.SUBMITTED_FOR_EDITING,
) -> ModelStatusChangeData:
    return ModelStatusChangeData(
        book_id="book-123",
        title="The Quiet Harbour",
        author="author-456",
        previous_status=previous,
        new_status=new,
        changed_by="user-789",
    )


# ============================================================================
# Publishing
# ============================================================================


@pytest.mark.unit
class TestPublishStatusChange:
    @pytest.mark.asyncio
    async def test_publishes_envelope(
        self, publisher: EventPublisher, topic_publisher: InMemoryTopicPublisher
    ) -> None:
        result = await publisher.publish_status_change(_data())

        assert result is not None
        assert result.attempts == 1
        assert result.retry_count == 0
        assert result.message_id == "msg-1"

        [published] = topic_publisher.published
        assert published.topic == publisher.topic
        assert published.subject == "Book Status Changed: The Quiet Harbour"
        event = deserialize_event(published.message)
        assert event.event_id == result.event_id
        assert event.data.status_transition == "DRAFT -> SUBMITTED_FOR_EDITING"
        assert published.attributes == {
            "eventType": "book_status_changed",
            "bookId": "book-123",
            "newStatus": "SUBMITTED_FOR_EDITING",
            "source": "workflow-service",
            "timestamp": event.timestamp,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("previous", "new"),
        [
            (None, EnumBookStatus.DRAFT),
            (EnumBookStatus.DRAFT, EnumBookStatus.DRAFT),
            (EnumBookStatus.SUBMITTED_FOR_EDITING, EnumBookStatus.DRAFT),
            (EnumBookStatus.DRAFT, EnumBookStatus.PUBLISHED),
        ],
    )
    async def test_non_notifying_transition_is_filtered(
        self,
        publisher: EventPublisher,
        topic_publisher: InMemoryTopicPublisher,
        previous: EnumBookStatus | None,
        new: EnumBookStatus,
    ) -> None:
        result = await publisher.publish_status_change(_data(previous, new))

        assert result is None
        assert topic_publisher.calls == 0
        assert publisher.get_metrics()["events_filtered"] == 1

    @pytest.mark.asyncio
    async def test_publish_event_keeps_payload_verbatim(
        self, publisher: EventPublisher, topic_publisher: InMemoryTopicPublisher
    ) -> None:
        event = make_event(event_id="test-direct-1700000000")

        await publisher.publish_event(event)

        assert json.loads(topic_publisher.published[0].message) == event.to_dict()


@pytest.mark.unit
class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_until_success(
        self,
        publisher: EventPublisher,
        topic_publisher: InMemoryTopicPublisher,
        sleep: AsyncMock,
    ) -> None:
        topic_publisher.fail_next(
            KafkaConnectionError("broker unavailable"), KafkaTimeoutError()
        )

        result = await publisher.publish_status_change(_data())

        assert result is not None
        assert result.attempts == 3
        assert topic_publisher.calls == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
        metrics = publisher.get_metrics()
        assert metrics["retries_attempted"] == 2
        assert metrics["timeouts"] == 1
        assert metrics["events_published"] == 1

    @pytest.mark.asyncio
    async def test_exhaustion_raises_with_attempts(
        self,
        publisher: EventPublisher,
        topic_publisher: InMemoryTopicPublisher,
        sleep: AsyncMock,
    ) -> None:
        topic_publisher.fail_next(*(ConnectionError("ECONNRESET") for _ in range(3)))

        with pytest.raises(EventPublishError) as exc_info:
            await publisher.publish_status_change(_data())

        assert exc_info.value.attempts == 3
        assert exc_info.value.category is C.NETWORK_ERROR
        assert topic_publisher.calls == 3
        # No sleep after the final attempt.
        assert sleep.await_count == 2
        assert publisher.get_metrics()["events_failed"] == 1

    @pytest.mark.asyncio
    async def test_non_retryable_stops_immediately(
        self,
        publisher: EventPublisher,
        topic_publisher: InMemoryTopicPublisher,
        sleep: AsyncMock,
    ) -> None:
        topic_publisher.fail_next(TopicAuthorizationFailedError())

        with pytest.raises(EventPublishError) as exc_info:
            await publisher.publish_status_change(_data())

        assert exc_info.value.attempts == 1
        assert exc_info.value.category is C.ACCESS_DENIED
        assert topic_publisher.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_attempt_configuration(
        self,
        settings: NotificationSettings,
        topic_publisher: InMemoryTopicPublisher,
        sleep: AsyncMock,
    ) -> None:
        publisher = EventPublisher(
            topic_publisher,
            settings.model_copy(update={"publish_max_attempts": 1}),
            sleep=sleep,
        )
        topic_publisher.fail_next(RuntimeError("boom"))

        with pytest.raises(EventPublishError):
            await publisher.publish_status_change(_data())
        assert topic_publisher.calls == 1


@pytest.mark.unit
class TestRetryDelay:
    def test_exponential_growth_is_capped(self, publisher: EventPublisher) -> None:
        delays = [publisher.calculate_retry_delay(n) for n in range(1, 7)]

        assert delays == [1000, 2000, 4000, 8000, 10000, 10000]

    def test_jitter_stays_within_bounds(
        self, settings: NotificationSettings, topic_publisher: InMemoryTopicPublisher
    ) -> None:
        jittered = settings.model_copy(update={"publish_jitter_enabled": True})
        low = EventPublisher(topic_publisher, jittered, rng=lambda: 0.0)
        high = EventPublisher(topic_publisher, jittered, rng=lambda: 1.0)

        assert low.calculate_retry_delay(1) == pytest.approx(875.0)
        assert high.calculate_retry_delay(1) == pytest.approx(1125.0)


@pytest.mark.unit
class TestCategorizePublishError:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (None, C.UNKNOWN),
            (KafkaTimeoutError(), C.TIMEOUT),
            (TimeoutError("slow"), C.TIMEOUT),
            (KafkaConnectionError("refused"), C.NETWORK_ERROR),
            (TopicAuthorizationFailedError(), C.ACCESS_DENIED),
            (UnknownTopicOrPartitionError(), C.TOPIC_NOT_FOUND),
            (MessageSizeTooLargeError(), C.MESSAGE_TOO_LARGE),
            (Exception("request timeout exceeded"), C.TIMEOUT),
            (Exception("getaddrinfo ENOTFOUND broker"), C.NETWORK_ERROR),
            (CodedError("slow down", "Throttling"), C.THROTTLING),
            (CodedError("bad", "InvalidParameter"), C.INVALID_PARAMETER),
            (CodedError("no", "AccessDenied"), C.ACCESS_DENIED),
            (CodedError("down", "ServiceUnavailable"), C.SERVICE_UNAVAILABLE),
            (Exception("Topic does not exist"), C.TOPIC_NOT_FOUND),
            (Exception("payload too large"), C.MESSAGE_TOO_LARGE),
            (Exception("something odd"), C.UNKNOWN),
        ],
    )
    def test_categories(self, error: Exception | None, expected: C) -> None:
        assert categorize_publish_error(error) is expected

    def test_retryability(self) -> None:
        assert is_retryable_publish_error(KafkaTimeoutError()) is True
        assert is_retryable_publish_error(Exception("something odd")) is True
        assert is_retryable_publish_error(MessageSizeTooLargeError()) is False
        assert is_retryable_publish_error(CodedError("bad", "InvalidParameter")) is False


@pytest.mark.unit
def test_average_publish_time_without_publishes(publisher: EventPublisher) -> None:
    assert publisher.get_metrics()["avg_publish_time_ms"] == 0.0
