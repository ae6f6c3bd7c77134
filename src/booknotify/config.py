# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Configuration management for the notification pipeline.

Uses Pydantic settings for environment variable management with validation
and type safety. Settings are read once per process through ``get_config()``
and then passed explicitly to the publisher, consumer, mapper and DLQ tools.

CC recipients are deliberately not part of this model: their "unset" versus
"present but blank" distinction is handled by
``booknotify.notifications.cc_configuration``.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from booknotify.constants import (
    DEFAULT_FRONTEND_BASE_URL,
    DEFAULT_MAX_RECEIVE_COUNT,
    DEFAULT_NOTIFICATION_EMAIL,
    EVENT_SOURCE_WORKFLOW_SERVICE,
)
from booknotify.topics import BookNotifyTopics


class NotificationSettings(BaseSettings):
    """Configuration for the book notification pipeline."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Recipients and links
    notification_target_email: str = Field(
        default=DEFAULT_NOTIFICATION_EMAIL,
        description="Operations mailbox that receives every workflow notification",
    )
    notification_from_email: str = Field(
        default="noreply@bookmanagement.example.com",
        description="Sender address used by the email transport",
    )
    frontend_base_url: str = Field(
        default=DEFAULT_FRONTEND_BASE_URL,
        description="Base URL for deep links in email bodies",
    )

    # Producer identity
    event_source: str = Field(
        default=EVENT_SOURCE_WORKFLOW_SERVICE,
        description="Source identity stamped on published events",
    )

    # Durable topic
    book_events_topic: str = Field(
        default=BookNotifyTopics.BOOK_STATUS_CHANGED.value,
        description="Topic that receives status change events",
    )
    dlq_alert_topic: str = Field(
        default=BookNotifyTopics.DLQ_ALERTS.value,
        description="Topic that receives DLQ monitor alerts",
    )
    kafka_bootstrap_servers: str = Field(
        default="localhost:9092", description="Kafka bootstrap servers"
    )
    kafka_request_timeout_ms: int = Field(
        default=30000, description="Producer request timeout in milliseconds"
    )

    # Publish retry configuration
    publish_max_attempts: int = Field(
        default=3, ge=1, description="Total publish attempts before giving up"
    )
    publish_base_delay_ms: int = Field(
        default=1000, ge=0, description="Delay before the second attempt"
    )
    publish_max_delay_ms: int = Field(
        default=10000, ge=0, description="Upper bound on a single retry delay"
    )
    publish_backoff_multiplier: float = Field(
        default=2.0, ge=1.0, description="Exponential backoff multiplier"
    )
    publish_jitter_enabled: bool = Field(
        default=True, description="Apply +/-12.5% random jitter to retry delays"
    )

    # Consumer configuration
    queue_max_receive_count: int = Field(
        default=DEFAULT_MAX_RECEIVE_COUNT,
        ge=1,
        description="Main queue max-receive count before records are dead-lettered",
    )
    old_event_warning_seconds: int = Field(
        default=3600, description="Age after which a consumed event is logged as stale"
    )

    # Email transport
    email_api_url: str = Field(
        default="http://localhost:8025/api/send",
        description="HTTP endpoint of the email service provider",
    )
    email_api_key: str = Field(default="", description="Bearer token for the ESP")
    email_timeout_seconds: float = Field(
        default=10.0, description="Email send timeout in seconds"
    )

    # Dead-letter tooling
    queue_url: str = Field(
        default="local://user-notifications-queue",
        description="Main notification queue URL",
    )
    dlq_url: str = Field(
        default="local://user-notifications-dlq",
        description="Dead-letter queue URL",
    )
    dlq_reprocess_max_receive_count: int = Field(
        default=5,
        description="Messages received more often than this are never reprocessed",
    )
    dlq_log_window_minutes: int = Field(
        default=5, description="Half-width of the log correlation window"
    )
    dlq_reprocess_batch_size: int = Field(
        default=5, ge=1, description="Messages re-injected per reprocessing batch"
    )


# Singleton instance
_config: NotificationSettings | None = None


def get_config() -> NotificationSettings:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = NotificationSettings()
    return _config


def reset_config() -> None:
    """Drop the cached settings so the next ``get_config()`` re-reads the environment."""
    global _config
    _config = None


__all__ = ["NotificationSettings", "get_config", "reset_config"]
