# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Book notification enums.

Unified import location for all enums:

    from booknotify.enums import EnumBookStatus, EnumNotificationType

Exports:
    Workflow Enums:
        - EnumBookStatus: Four-state book lifecycle
        - EnumNotificationType: Email notification kinds

    Pipeline Enums:
        - EnumRecordOutcome: Per-record consumer outcome (ACK / NACK_RETRY / NACK_PERMANENT)
        - EnumPublishErrorCategory: Publish failure categories

    Dead-letter Enums:
        - EnumDLQErrorType, EnumReprocessStatus, EnumDLQAlertType,
          EnumAlertSeverity, EnumHealthStatus
"""

from booknotify.enums.enum_book_status import (
    EnumBookStatus,
    get_all_book_statuses,
    get_status_display_name,
    is_valid_book_status,
)
from booknotify.enums.enum_dlq import (
    EnumAlertSeverity,
    EnumDLQAlertType,
    EnumDLQErrorType,
    EnumHealthStatus,
    EnumReprocessStatus,
)
from booknotify.enums.enum_notification_type import (
    EnumNotificationType,
    is_valid_notification_type,
)
from booknotify.enums.enum_publish_error_category import EnumPublishErrorCategory
from booknotify.enums.enum_record_outcome import EnumRecordOutcome

__all__ = [
    "EnumAlertSeverity",
    "EnumBookStatus",
    "EnumDLQAlertType",
    "EnumDLQErrorType",
    "EnumHealthStatus",
    "EnumNotificationType",
    "EnumPublishErrorCategory",
    "EnumRecordOutcome",
    "EnumReprocessStatus",
    "get_all_book_statuses",
    "get_status_display_name",
    "is_valid_book_status",
    "is_valid_notification_type",
]
