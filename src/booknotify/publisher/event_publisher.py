# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Book status change event publisher.

Publishes the canonical envelope to the durable topic with:
- Transition filtering (non-notifying changes never touch the network)
- Bounded retries with exponential backoff and jitter
- Error categorisation that stops early on non-retryable failures
- Lifetime counters for observability

Retry Behavior:
    ``publish_max_attempts`` is the *total* number of attempts (default 3).
    The delay before attempt ``n + 1`` is
    ``min(base * multiplier ** (n - 1), max_delay)`` plus up to +/-12.5%
    jitter. Categories INVALID_PARAMETER, ACCESS_DENIED, TOPIC_NOT_FOUND and
    MESSAGE_TOO_LARGE will never succeed on retry and end the loop at once.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypedDict

from aiokafka.errors import (
    KafkaConnectionError,
    KafkaTimeoutError,
    MessageSizeTooLargeError,
    RequestTimedOutError,
    TopicAuthorizationFailedError,
    UnknownTopicOrPartitionError,
)

from booknotify.config import NotificationSettings, get_config
from booknotify.enums.enum_publish_error_category import EnumPublishErrorCategory
from booknotify.errors import EventPublishError
from booknotify.events.models import ModelStatusChangeData, ModelStatusChangeEvent
from booknotify.events.serialization import create_status_change_event, serialize_event
from booknotify.events.transition_policy import should_notify
from booknotify.publisher.protocols import ProtocolTopicPublisher

logger = logging.getLogger(__name__)

_C = EnumPublishErrorCategory

_NETWORK_MARKERS = ("ENOTFOUND", "ECONNREFUSED", "ECONNRESET", "ETIMEDOUT")


class PublisherCounters(TypedDict):
    """Mutable counters tracked by EventPublisher during its lifetime."""

    events_published: int
    events_failed: int
    events_filtered: int
    retries_attempted: int
    timeouts: int
    total_publish_time_ms: float


@dataclass(frozen=True)
class PublishResult:
    """Successful publish outcome."""

    event_id: str
    message_id: str
    attempts: int
    duration_ms: float

    @property
    def retry_count(self) -> int:
        return self.attempts - 1


# ---------------------------------------------------------------------------
# Error categorisation
# ---------------------------------------------------------------------------


def categorize_publish_error(error: BaseException | None) -> EnumPublishErrorCategory:
    """Map a publish failure onto an ``EnumPublishErrorCategory``.

    Typed broker errors are matched first; anything else falls back to the
    message text and an optional ``code`` attribute.
    """
    if error is None:
        return _C.UNKNOWN

    if isinstance(error, (KafkaTimeoutError, RequestTimedOutError, TimeoutError)):
        return _C.TIMEOUT
    if isinstance(error, (KafkaConnectionError, ConnectionError)):
        return _C.NETWORK_ERROR
    if isinstance(error, TopicAuthorizationFailedError):
        return _C.ACCESS_DENIED
    if isinstance(error, UnknownTopicOrPartitionError):
        return _C.TOPIC_NOT_FOUND
    if isinstance(error, MessageSizeTooLargeError):
        return _C.MESSAGE_TOO_LARGE

    message = str(error)
    code = getattr(error, "code", None) or getattr(error, "status_code", None)

    if "timeout" in message.lower():
        return _C.TIMEOUT
    if any(marker in message for marker in _NETWORK_MARKERS):
        return _C.NETWORK_ERROR
    if code in ("Throttling", "ThrottlingException"):
        return _C.THROTTLING
    if code in ("InvalidParameter", "ValidationException"):
        return _C.INVALID_PARAMETER
    if code in ("AccessDenied", "UnauthorizedOperation"):
        return _C.ACCESS_DENIED
    if code in ("ServiceUnavailable", "InternalError"):
        return _C.SERVICE_UNAVAILABLE
    if "does not exist" in message or code == "NotFound":
        return _C.TOPIC_NOT_FOUND
    if "too large" in message or code == "InvalidParameterValue":
        return _C.MESSAGE_TOO_LARGE
    return _C.UNKNOWN


def is_retryable_publish_error(error: BaseException | None) -> bool:
    """Return True unless the error's category can never succeed on retry."""
    return categorize_publish_error(error).is_retryable


# ---------------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------------


class EventPublisher:
    """
    Publishes book status change events to the durable topic.

    Usage:
        publisher = EventPublisher(topic_publisher=KafkaTopicPublisher(...))
        result = await publisher.publish_status_change(data)
        if result is None:
            ...  # transition does not notify
    """

    def __init__(
        self,
        topic_publisher: ProtocolTopicPublisher,
        settings: NotificationSettings | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._settings = settings or get_config()
        self._topic_publisher = topic_publisher
        self._sleep = sleep
        self._rng = rng
        self.topic = self._settings.book_events_topic
        self.max_attempts = self._settings.publish_max_attempts
        self.metrics: PublisherCounters = {
            "events_published": 0,
            "events_failed": 0,
            "events_filtered": 0,
            "retries_attempted": 0,
            "timeouts": 0,
            "total_publish_time_ms": 0.0,
        }

        logger.info(
            "EventPublisher initialized. topic=%s max_attempts=%d base_delay_ms=%d "
            "max_delay_ms=%d jitter=%s",
            self.topic,
            self.max_attempts,
            self._settings.publish_base_delay_ms,
            self._settings.publish_max_delay_ms,
            self._settings.publish_jitter_enabled,
        )

    async def publish_status_change(
        self, event_data: ModelStatusChangeData
    ) -> PublishResult | None:
        """Build and publish the envelope for one status change.

        Args:
            event_data: Business payload of the change.

        Returns:
            PublishResult on success, or None when the transition does not
            notify (no network call is made).

        Raises:
            EventPublishError: When every attempt failed or a non-retryable
                error was hit.
        """
        if not should_notify(event_data.previous_status, event_data.new_status):
            self.metrics["events_filtered"] += 1
            logger.info(
                "EventPublisher: transition does not notify, skipping publish. "
                "book_id=%s transition=%s",
                event_data.book_id,
                event_data.status_transition,
            )
            return None

        event = create_status_change_event(
            book_id=event_data.book_id,
            title=event_data.title,
            author=event_data.author,
            previous_status=event_data.previous_status,
            new_status=event_data.new_status,
            changed_by=event_data.changed_by,
            change_reason=event_data.change_reason,
            metadata=event_data.metadata,
            source=self._settings.event_source,
        )
        return await self.publish_event(event)

    async def publish_event(self, event: ModelStatusChangeEvent) -> PublishResult:
        """Publish an already-built envelope with retries."""
        message = serialize_event(event)
        subject = f"Book Status Changed: {event.data.title}"
        attributes = self.build_attributes(event)

        start_time = time.perf_counter()
        last_error: Exception | None = None
        attempts = 0

        for attempt in range(1, self.max_attempts + 1):
            attempts = attempt
            try:
                message_id = await self._topic_publisher.publish(
                    self.topic, message, attributes, subject=subject
                )
            except asyncio.CancelledError:
                logger.info(
                    "EventPublisher: publish cancelled. event_id=%s attempt=%d",
                    event.event_id,
                    attempt,
                )
                raise
            except Exception as e:
                last_error = e
                category = categorize_publish_error(e)
                if category is _C.TIMEOUT:
                    self.metrics["timeouts"] += 1
                logger.warning(
                    "EventPublisher: publish attempt failed. event_id=%s attempt=%d/%d "
                    "category=%s error=%s",
                    event.event_id,
                    attempt,
                    self.max_attempts,
                    category.value,
                    e,
                )
                if not category.is_retryable:
                    logger.warning(
                        "EventPublisher: non-retryable error, stopping. event_id=%s category=%s",
                        event.event_id,
                        category.value,
                    )
                    break
                if attempt < self.max_attempts:
                    delay_ms = self.calculate_retry_delay(attempt)
                    self.metrics["retries_attempted"] += 1
                    await self._sleep(delay_ms / 1000.0)
                continue

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self.metrics["events_published"] += 1
            self.metrics["total_publish_time_ms"] += elapsed_ms
            logger.info(
                "EventPublisher: event published. event_id=%s book_id=%s message_id=%s "
                "attempts=%d duration=%.2fms",
                event.event_id,
                event.data.book_id,
                message_id,
                attempt,
                elapsed_ms,
            )
            return PublishResult(
                event_id=event.event_id,
                message_id=message_id,
                attempts=attempt,
                duration_ms=elapsed_ms,
            )

        self.metrics["events_failed"] += 1
        category = categorize_publish_error(last_error)
        logger.error(
            "EventPublisher: publish failed. event_id=%s attempts=%d category=%s error=%s",
            event.event_id,
            attempts,
            category.value,
            last_error,
        )
        raise EventPublishError(
            f"Failed to publish event after {self.max_attempts} attempts: {last_error}",
            attempts=attempts,
            category=category,
        ) from last_error

    def calculate_retry_delay(self, attempt: int) -> float:
        """Delay in milliseconds to wait after failed attempt ``attempt`` (1-based)."""
        settings = self._settings
        delay = settings.publish_base_delay_ms * (
            settings.publish_backoff_multiplier ** (attempt - 1)
        )
        delay = min(delay, settings.publish_max_delay_ms)
        if settings.publish_jitter_enabled:
            delay += delay * 0.25 * (self._rng() - 0.5)
        return max(0.0, delay)

    @staticmethod
    def build_attributes(event: ModelStatusChangeEvent) -> dict[str, str]:
        """Routing attributes attached to every published message."""
        return {
            "eventType": event.event_type,
            "bookId": event.data.book_id,
            "newStatus": event.data.new_status.value,
            "source": event.source,
            "timestamp": event.timestamp,
        }

    def get_metrics(self) -> dict[str, float]:
        """Snapshot of the counters plus the average publish time."""
        published = self.metrics["events_published"]
        snapshot: dict[str, float] = dict(self.metrics)
        snapshot["avg_publish_time_ms"] = (
            self.metrics["total_publish_time_ms"] / published if published else 0.0
        )
        return snapshot


__all__ = [
    "EventPublisher",
    "PublishResult",
    "PublisherCounters",
    "categorize_publish_error",
    "is_retryable_publish_error",
]
