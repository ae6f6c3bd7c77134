# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Enums for dead-letter queue analysis, reprocessing and monitoring.

These values are written into JSON reports and alert payloads, so they are
string enums with stable upper-case wire values.
"""

from __future__ import annotations

from enum import Enum


class EnumDLQErrorType(str, Enum):
    """Closed root-cause taxonomy for dead-lettered messages.

    Classification order matters; see ``DLQAnalyzer.categorize``.
    """

    EVENT_DETECTION_ERROR = "EVENT_DETECTION_ERROR"
    INVALID_MESSAGE_FORMAT = "INVALID_MESSAGE_FORMAT"
    INVALID_EVENT_DATA = "INVALID_EVENT_DATA"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PROCESSING_TIMEOUT = "PROCESSING_TIMEOUT"
    REPEATED_FAILURE = "REPEATED_FAILURE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class EnumReprocessStatus(str, Enum):
    """Outcome of reprocessing a single dead-lettered message."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class EnumDLQAlertType(str, Enum):
    """Alert raised by the DLQ monitor."""

    MESSAGE_ACCUMULATION = "MESSAGE_ACCUMULATION"
    OLD_MESSAGES = "OLD_MESSAGES"
    HIGH_RATE = "HIGH_RATE"
    QUEUE_UNAVAILABLE = "QUEUE_UNAVAILABLE"


class EnumAlertSeverity(str, Enum):
    """Alert severity, lowest first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class EnumHealthStatus(str, Enum):
    """Overall dead-letter queue health."""

    HEALTHY = "HEALTHY"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


__all__ = [
    "EnumAlertSeverity",
    "EnumDLQAlertType",
    "EnumDLQErrorType",
    "EnumHealthStatus",
    "EnumReprocessStatus",
]
