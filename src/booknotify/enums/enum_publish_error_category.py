# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Failure categories for durable topic publishes."""

from __future__ import annotations

from enum import Enum


class EnumPublishErrorCategory(str, Enum):
    """Category assigned to a publish failure for logging and retry decisions."""

    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    THROTTLING = "THROTTLING"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    ACCESS_DENIED = "ACCESS_DENIED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TOPIC_NOT_FOUND = "TOPIC_NOT_FOUND"
    MESSAGE_TOO_LARGE = "MESSAGE_TOO_LARGE"
    UNKNOWN = "UNKNOWN"

    @property
    def is_retryable(self) -> bool:
        """Unknown failures are retried; data and permission errors are not."""
        return self not in _NON_RETRYABLE


_NON_RETRYABLE = frozenset(
    {
        EnumPublishErrorCategory.INVALID_PARAMETER,
        EnumPublishErrorCategory.ACCESS_DENIED,
        EnumPublishErrorCategory.TOPIC_NOT_FOUND,
        EnumPublishErrorCategory.MESSAGE_TOO_LARGE,
    }
)


__all__ = ["EnumPublishErrorCategory"]
