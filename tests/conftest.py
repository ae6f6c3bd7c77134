# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""
Pytest configuration and fixtures for booknotify tests.

Shared fixtures: explicit settings, in-memory collaborators and event
builders. Every test runs with the configuration singletons reset so no
cached environment leaks between tests.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

import pytest

from booknotify.config import NotificationSettings, reset_config
from booknotify.notifications.cc_configuration import (
    CCConfiguration,
    reset_cc_configuration,
)
from booknotify.testing import (
    InMemoryEmailTransport,
    InMemoryLogSource,
    InMemoryQueueClient,
    InMemoryTopicPublisher,
    make_event_dict,
)

# =========================================================================
# Isolation
# =========================================================================


@pytest.fixture(autouse=True)
def _reset_singletons() -> Iterator[None]:
    """Drop cached settings and CC configuration around every test."""
    reset_config()
    reset_cc_configuration()
    yield
    reset_config()
    reset_cc_configuration()


# =========================================================================
# Basic Sample Data Fixtures
# =========================================================================


@pytest.fixture
def correlation_id() -> str:
    """Provide a valid UUID test correlation ID for distributed tracing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 10, 18, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def settings() -> NotificationSettings:
    """Settings with every value the tests depend on pinned explicitly."""
    return NotificationSettings(
        notification_target_email="ops@bookmanagement.example.com",
        notification_from_email="noreply@bookmanagement.example.com",
        frontend_base_url="https://books.example.com/",
        publish_max_attempts=3,
        publish_base_delay_ms=1000,
        publish_max_delay_ms=10000,
        publish_backoff_multiplier=2.0,
        publish_jitter_enabled=False,
        queue_max_receive_count=3,
        old_event_warning_seconds=3600,
        queue_url="local://user-notifications-queue",
        dlq_url="local://user-notifications-dlq",
        dlq_reprocess_max_receive_count=5,
        dlq_log_window_minutes=5,
    )


@pytest.fixture
def cc_configuration() -> CCConfiguration:
    return CCConfiguration(enabled=True, emails=("editor@example.com",))


@pytest.fixture
def sample_event_dict() -> dict[str, Any]:
    """A valid DRAFT -> SUBMITTED_FOR_EDITING event in wire format."""
    return make_event_dict(event_id="550e8400-e29b-41d4-a716-446655440000")


# =========================================================================
# In-memory collaborators
# =========================================================================


@pytest.fixture
def topic_publisher() -> InMemoryTopicPublisher:
    return InMemoryTopicPublisher()


@pytest.fixture
def email_transport() -> InMemoryEmailTransport:
    return InMemoryEmailTransport()


@pytest.fixture
def queue_client(fixed_now: datetime) -> InMemoryQueueClient:
    return InMemoryQueueClient(clock=lambda: fixed_now)


@pytest.fixture
def log_source() -> InMemoryLogSource:
    return InMemoryLogSource()
