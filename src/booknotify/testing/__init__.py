# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""Testing utilities for booknotify.

In-memory implementations of every external protocol plus builders for
events and queue records. Importable from the test suite and from
downstream services that exercise the pipeline without infrastructure.

Modules:
    in_memory: Topic publisher and email transport fakes
    builders: Event, transport body and queue record builders

The queue and log fakes live in ``booknotify.dlq.snapshot`` because the
file-backed CLI backends extend them; they are re-exported here.
"""

from booknotify.dlq.snapshot import InMemoryLogSource, InMemoryQueueClient
from booknotify.testing.builders import (
    make_event,
    make_event_dict,
    make_queue_record,
    make_transport_body,
)
from booknotify.testing.in_memory import (
    InMemoryEmailTransport,
    InMemoryTopicPublisher,
    PublishedMessage,
)

__all__ = [
    "InMemoryEmailTransport",
    "InMemoryLogSource",
    "InMemoryQueueClient",
    "InMemoryTopicPublisher",
    "PublishedMessage",
    "make_event",
    "make_event_dict",
    "make_queue_record",
    "make_transport_body",
]
