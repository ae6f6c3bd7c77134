# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Producer side: publishes status change events to the durable topic."""

from booknotify.publisher.event_publisher import (
    EventPublisher,
    PublisherCounters,
    PublishResult,
    categorize_publish_error,
    is_retryable_publish_error,
)
from booknotify.publisher.kafka_topic_publisher import KafkaTopicPublisher
from booknotify.publisher.protocols import ProtocolTopicPublisher
from booknotify.publisher.workflow_integration import (
    ModelBookSnapshot,
    WorkflowEventIntegration,
)

__all__ = [
    "EventPublisher",
    "KafkaTopicPublisher",
    "ModelBookSnapshot",
    "ProtocolTopicPublisher",
    "PublishResult",
    "PublisherCounters",
    "WorkflowEventIntegration",
    "categorize_publish_error",
    "is_retryable_publish_error",
]
