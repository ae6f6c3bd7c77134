# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""Unit tests for booknotify enums and their helpers."""

from __future__ import annotations

import pytest

from booknotify.enums import (
    EnumBookStatus,
    EnumNotificationType,
    EnumPublishErrorCategory,
    EnumRecordOutcome,
    get_all_book_statuses,
    get_status_display_name,
    is_valid_book_status,
    is_valid_notification_type,
)


@pytest.mark.unit
class TestEnumBookStatus:
    def test_declaration_order(self) -> None:
        assert get_all_book_statuses() == [
            EnumBookStatus.DRAFT,
            EnumBookStatus.SUBMITTED_FOR_EDITING,
            EnumBookStatus.READY_FOR_PUBLICATION,
            EnumBookStatus.PUBLISHED,
        ]

    def test_values_are_wire_strings(self) -> None:
        assert EnumBookStatus("READY_FOR_PUBLICATION") is EnumBookStatus.READY_FOR_PUBLICATION
        assert EnumBookStatus.DRAFT == "DRAFT"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (EnumBookStatus.PUBLISHED, True),
            ("SUBMITTED_FOR_EDITING", True),
            ("draft", False),
            ("ARCHIVED", False),
            (None, False),
            (3, False),
        ],
    )
    def test_is_valid_book_status(self, value: object, expected: bool) -> None:
        assert is_valid_book_status(value) is expected

    def test_display_names(self) -> None:
        assert EnumBookStatus.SUBMITTED_FOR_EDITING.display_name == "Submitted for Editing"
        assert get_status_display_name("READY_FOR_PUBLICATION") == "Ready for Publication"
        assert get_status_display_name("ARCHIVED") == "ARCHIVED"


@pytest.mark.unit
class TestEnumNotificationType:
    def test_is_valid_notification_type(self) -> None:
        assert is_valid_notification_type(EnumNotificationType.BOOK_APPROVED)
        assert is_valid_notification_type("book_rejected")
        assert not is_valid_notification_type("BOOK_REJECTED")
        assert not is_valid_notification_type(None)


@pytest.mark.unit
class TestEnumPublishErrorCategory:
    @pytest.mark.parametrize(
        "category",
        [
            EnumPublishErrorCategory.TIMEOUT,
            EnumPublishErrorCategory.NETWORK_ERROR,
            EnumPublishErrorCategory.THROTTLING,
            EnumPublishErrorCategory.SERVICE_UNAVAILABLE,
            EnumPublishErrorCategory.UNKNOWN,
        ],
    )
    def test_retryable(self, category: EnumPublishErrorCategory) -> None:
        assert category.is_retryable is True

    @pytest.mark.parametrize(
        "category",
        [
            EnumPublishErrorCategory.INVALID_PARAMETER,
            EnumPublishErrorCategory.ACCESS_DENIED,
            EnumPublishErrorCategory.TOPIC_NOT_FOUND,
            EnumPublishErrorCategory.MESSAGE_TOO_LARGE,
        ],
    )
    def test_not_retryable(self, category: EnumPublishErrorCategory) -> None:
        assert category.is_retryable is False


@pytest.mark.unit
class TestEnumRecordOutcome:
    def test_only_ack_is_success(self) -> None:
        assert EnumRecordOutcome.ACK.is_failure is False
        assert EnumRecordOutcome.NACK_RETRY.is_failure is True
        assert EnumRecordOutcome.NACK_PERMANENT.is_failure is True

    def test_only_retry_requests_redelivery(self) -> None:
        assert [o for o in EnumRecordOutcome if o.requests_redelivery] == [
            EnumRecordOutcome.NACK_RETRY
        ]
