# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Workflow-side hook that publishes status change events.

The workflow service calls ``publish_book_status_change`` after it has
committed a transition. Publishing is best effort: a failure is logged and
reported as ``False`` but never propagates, so a broker outage cannot roll
back a book's status.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from booknotify.constants import MAX_DESCRIPTION_CHARS
from booknotify.enums.enum_book_status import EnumBookStatus
from booknotify.events.models import ModelStatusChangeData
from booknotify.events.transition_policy import notification_type_for, should_notify
from booknotify.publisher.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class ModelBookSnapshot(BaseModel):
    """The fields of a book record the event needs."""

    model_config = ConfigDict(frozen=True)

    book_id: str = Field(..., min_length=1, description="Book identifier")
    title: str = Field(..., min_length=1, description="Book title")
    author_id: str = Field(..., min_length=1, description="Author identifier")
    genre: str | None = Field(default=None, description="Book genre")
    description: str | None = Field(default=None, description="Free-text description")


class WorkflowEventIntegration:
    """Non-fatal wrapper around ``EventPublisher`` for workflow transitions."""

    def __init__(self, publisher: EventPublisher) -> None:
        self._publisher = publisher

    @property
    def publisher(self) -> EventPublisher:
        return self._publisher

    async def publish_book_status_change(
        self,
        book: ModelBookSnapshot,
        previous_status: EnumBookStatus | None,
        new_status: EnumBookStatus,
        changed_by: str,
        change_reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Publish the change if it notifies.

        Returns:
            True when an event was published. False when the transition does
            not notify or publishing failed.
        """
        if not should_notify(previous_status, new_status):
            logger.debug(
                "Status transition does not trigger notification. book_id=%s "
                "previous=%s new=%s",
                book.book_id,
                previous_status,
                new_status,
            )
            return False

        notification_type = notification_type_for(previous_status, new_status)
        if notification_type is None:
            logger.debug(
                "No notification type mapped for transition. book_id=%s", book.book_id
            )
            return False

        enriched: dict[str, Any] = dict(metadata or {})
        enriched["notificationType"] = notification_type.value
        enriched["bookGenre"] = book.genre
        enriched["bookDescription"] = (
            book.description[:MAX_DESCRIPTION_CHARS] if book.description else None
        )

        try:
            data = ModelStatusChangeData(
                book_id=book.book_id,
                title=book.title,
                author=book.author_id,
                previous_status=previous_status,
                new_status=new_status,
                changed_by=changed_by,
                change_reason=change_reason or None,
                metadata=enriched,
            )
        except ValidationError as e:
            # fallback-ok: an unpublishable change must not fail the workflow
            logger.warning(
                "Book status change is not a valid event, not published. book_id=%s "
                "previous=%s new=%s error_count=%d errors=%s",
                book.book_id,
                previous_status,
                new_status,
                e.error_count(),
                e,
            )
            return False

        try:
            result = await self._publisher.publish_status_change(data)
        except Exception as e:
            # fallback-ok: the workflow transition is already committed
            logger.error(
                "Failed to publish book status change event. book_id=%s previous=%s "
                "new=%s changed_by=%s error=%s",
                book.book_id,
                previous_status,
                new_status,
                changed_by,
                e,
                exc_info=True,
            )
            return False

        if result is None:
            return False
        logger.info(
            "Published book status change event. book_id=%s notification_type=%s "
            "event_id=%s",
            book.book_id,
            notification_type.value,
            result.event_id,
        )
        return True


__all__ = ["ModelBookSnapshot", "WorkflowEventIntegration"]
