# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Maps status change events to notification requests and email content."""

from __future__ import annotations

import logging

from booknotify.config import NotificationSettings, get_config
from booknotify.enums.enum_notification_type import EnumNotificationType
from booknotify.events.models import ModelStatusChangeEvent
from booknotify.events.transition_policy import notification_type_for
from booknotify.notifications.cc_configuration import (
    CCConfiguration,
    get_cc_configuration,
    get_effective_cc_emails,
)
from booknotify.notifications.models import (
    ModelEmailContent,
    ModelEmailVariables,
    ModelNotificationRequest,
)
from booknotify.notifications.templates import render_email

logger = logging.getLogger(__name__)

ACTION_PATHS: dict[EnumNotificationType, str] = {
    EnumNotificationType.BOOK_SUBMITTED: "review",
    EnumNotificationType.BOOK_APPROVED: "publish",
    EnumNotificationType.BOOK_REJECTED: "edit",
    EnumNotificationType.BOOK_PUBLISHED: "view",
}


class NotificationMapper:
    """Turns a validated event into a ``ModelNotificationRequest``.

    Both the target mailbox and the CC configuration are fixed at
    construction; the mapper holds no other state.
    """

    def __init__(
        self,
        settings: NotificationSettings | None = None,
        cc_configuration: CCConfiguration | None = None,
    ) -> None:
        self._settings = settings or get_config()
        self._cc = cc_configuration if cc_configuration is not None else get_cc_configuration()
        self.target_email = self._settings.notification_target_email
        self.frontend_base_url = self._settings.frontend_base_url.rstrip("/")

        logger.info(
            "NotificationMapper initialized. target_email=%s cc_enabled=%s cc_count=%d",
            self.target_email,
            self._cc.enabled,
            len(self._cc.emails),
        )

    @property
    def cc_configuration(self) -> CCConfiguration:
        return self._cc

    def map_event_to_notification(
        self, event: ModelStatusChangeEvent
    ) -> ModelNotificationRequest | None:
        """Build the notification request, or None if the change is silent."""
        data = event.data
        notification_type = notification_type_for(data.previous_status, data.new_status)
        if notification_type is None:
            logger.info(
                "NotificationMapper: no notification required. event_id=%s book_id=%s "
                "transition=%s",
                event.event_id,
                data.book_id,
                data.status_transition,
            )
            return None

        metadata = data.metadata or {}
        comments = data.change_reason or metadata.get("reviewComments") or None
        next_steps = metadata.get("nextSteps")
        if next_steps:
            comments = (
                f"{comments}\n\nNext Steps: {next_steps}"
                if comments
                else f"Next Steps: {next_steps}"
            )

        variables = ModelEmailVariables(
            user_name=data.author,
            book_title=data.title,
            book_id=data.book_id,
            comments=comments,
            action_url=(
                f"{self.frontend_base_url}/books/{data.book_id}/"
                f"{ACTION_PATHS[notification_type]}"
            ),
        )
        cc_emails = get_effective_cc_emails(self._cc, self.target_email)

        logger.info(
            "NotificationMapper: request created. event_id=%s type=%s recipient=%s "
            "cc_count=%d book_id=%s",
            event.event_id,
            notification_type.value,
            self.target_email,
            len(cc_emails),
            data.book_id,
        )
        return ModelNotificationRequest(
            type=notification_type,
            recipient_email=self.target_email,
            cc_emails=tuple(cc_emails),
            variables=variables,
        )

    def generate_email_content(
        self,
        notification_type: EnumNotificationType | str,
        variables: ModelEmailVariables,
    ) -> ModelEmailContent:
        """Render the email for a notification type.

        Raises:
            UnknownNotificationTypeError: For an unrecognised type.
        """
        content = render_email(notification_type, variables)
        logger.debug(
            "NotificationMapper: email content generated. type=%s book_id=%s",
            notification_type,
            variables.book_id,
        )
        return content


__all__ = ["ACTION_PATHS", "NotificationMapper"]
