# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""booknotify - event-driven notifications for the book publishing workflow.

A status change travels through four stages:

    EventPublisher -> topic -> queue -> BatchConsumer -> email transport

and failed deliveries are recovered with the DLQ tools.

Quick Start - consuming a queue batch:
    >>> from booknotify import BatchConsumer, NotificationMapper
    >>> consumer = BatchConsumer(NotificationMapper(), transport)
    >>> response = await consumer.handle_raw_batch({"Records": records})
    >>> response["batchItemFailures"]
    []
"""

from booknotify.consumer import BatchConsumer, BatchProcessingResult, QueueRecord
from booknotify.enums import EnumBookStatus, EnumNotificationType, EnumRecordOutcome
from booknotify.events import (
    ModelStatusChangeEvent,
    deserialize_event,
    serialize_event,
    should_notify,
)
from booknotify.notifications import NotificationMapper
from booknotify.publisher import EventPublisher

__version__ = "0.1.0"

__all__ = [
    "BatchConsumer",
    "BatchProcessingResult",
    "EnumBookStatus",
    "EnumNotificationType",
    "EnumRecordOutcome",
    "EventPublisher",
    "ModelStatusChangeEvent",
    "NotificationMapper",
    "QueueRecord",
    "deserialize_event",
    "serialize_event",
    "should_notify",
]
