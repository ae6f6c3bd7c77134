# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Notification request and email models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from booknotify.enums.enum_notification_type import EnumNotificationType


class ModelEmailVariables(BaseModel):
    """Template variables for one notification.

    Field names follow the camelCase template placeholders so that
    ``model_dump(by_alias=True)`` can be handed to any template engine.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_name: str | None = Field(default=None, alias="userName")
    book_title: str | None = Field(default=None, alias="bookTitle")
    book_id: str | None = Field(default=None, alias="bookId")
    comments: str | None = Field(
        default=None, description="Reviewer comments and next steps, may be multi-line"
    )
    action_url: str | None = Field(default=None, alias="actionUrl")


class ModelNotificationRequest(BaseModel):
    """What to send and to whom, before rendering."""

    model_config = ConfigDict(frozen=True)

    type: EnumNotificationType
    recipient_email: str = Field(..., min_length=1)
    cc_emails: tuple[str, ...] = Field(
        default=(), description="CC recipients, already filtered against the primary"
    )
    variables: ModelEmailVariables


class ModelEmailContent(BaseModel):
    """Rendered email."""

    model_config = ConfigDict(frozen=True)

    subject: str
    html_body: str
    text_body: str


class ModelEmailMessage(BaseModel):
    """Fully addressed email handed to the transport."""

    model_config = ConfigDict(frozen=True)

    sender: str
    to: str
    cc: tuple[str, ...] = ()
    subject: str
    html_body: str
    text_body: str

    @classmethod
    def from_request(
        cls, request: ModelNotificationRequest, content: ModelEmailContent, sender: str
    ) -> ModelEmailMessage:
        return cls(
            sender=sender,
            to=request.recipient_email,
            cc=request.cc_emails,
            subject=content.subject,
            html_body=content.html_body,
            text_body=content.text_body,
        )


__all__ = [
    "ModelEmailContent",
    "ModelEmailMessage",
    "ModelEmailVariables",
    "ModelNotificationRequest",
]
