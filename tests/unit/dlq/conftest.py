# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""Fixtures shared by the dead-letter queue tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from booknotify.config import NotificationSettings
from booknotify.consumer.models import QueueRecord
from booknotify.dlq.analyzer import DLQAnalyzer
from booknotify.testing import (
    InMemoryLogSource,
    InMemoryQueueClient,
    make_event_dict,
    make_transport_body,
)

SeedMessage = Callable[..., QueueRecord]


@pytest.fixture
def seed_dlq(
    queue_client: InMemoryQueueClient, settings: NotificationSettings
) -> SeedMessage:
    """Place a message on the DLQ; a valid wrapped event unless ``body`` is given."""

    def _seed(
        message_id: str,
        body: str | None = None,
        *,
        receive_count: int = 3,
        sent_at: datetime | None = None,
        **event_fields: Any,
    ) -> QueueRecord:
        if body is None:
            body = make_transport_body(make_event_dict(**event_fields))
        return queue_client.add_message(
            settings.dlq_url,
            body,
            message_id=message_id,
            receive_count=receive_count,
            sent_at=sent_at,
        )

    return _seed


@pytest.fixture
def analyzer(
    queue_client: InMemoryQueueClient,
    log_source: InMemoryLogSource,
    settings: NotificationSettings,
    fixed_now: datetime,
) -> DLQAnalyzer:
    return DLQAnalyzer(queue_client, log_source, settings, clock=lambda: fixed_now)
