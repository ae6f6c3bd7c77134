# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Email templates, one per notification type.

Each type is described by an ``EmailTemplate`` and rendered through the same
HTML and plain-text layouts. Values interpolated into HTML are escaped;
multi-line comments become ``<br>`` in HTML and stay literal newlines in
text.
"""

from __future__ import annotations

import html
from dataclasses import dataclass

from booknotify.enums.enum_notification_type import EnumNotificationType
from booknotify.errors import UnknownNotificationTypeError
from booknotify.notifications.models import ModelEmailContent, ModelEmailVariables

FOOTER_TEXT = "This is an automated notification from the Book Management System."


@dataclass(frozen=True)
class EmailTemplate:
    """Static copy and colours for one notification type."""

    subject_prefix: str
    heading: str
    accent_color: str
    status_label: str
    comments_heading: str
    comments_background: str
    next_steps_heading: str
    next_steps_text: str
    action_label: str
    button_color: str
    button_text_color: str = "white"
    banner_title: str | None = None
    banner_text: str | None = None
    banner_background: str = "#f8f9fa"


TEMPLATES: dict[EnumNotificationType, EmailTemplate] = {
    EnumNotificationType.BOOK_SUBMITTED: EmailTemplate(
        subject_prefix="Book Submitted for Review",
        heading="New Book Submitted for Review",
        accent_color="#2c5aa0",
        status_label="Submitted for Editing",
        comments_heading="Submission Notes",
        comments_background="#e3f2fd",
        next_steps_heading="Next Steps",
        next_steps_text=(
            "The book is now ready for editorial review. Please review the content "
            "and provide feedback to the author."
        ),
        action_label="Review Book",
        button_color="#28a745",
    ),
    EnumNotificationType.BOOK_APPROVED: EmailTemplate(
        subject_prefix="Book Approved for Publication",
        heading="Book Approved for Publication",
        accent_color="#28a745",
        status_label="Ready for Publication",
        comments_heading="Review Comments",
        comments_background="#e8f5e8",
        next_steps_heading="Next Steps",
        next_steps_text=(
            "The book is now ready to be published. You can proceed with the "
            "publication process."
        ),
        action_label="Publish Book",
        button_color="#007bff",
        banner_title="Great News!",
        banner_text='The book "{title}" has been approved and is ready for publication.',
        banner_background="#d4edda",
    ),
    EnumNotificationType.BOOK_REJECTED: EmailTemplate(
        subject_prefix="Book Requires Revision",
        heading="Book Requires Revision",
        accent_color="#dc3545",
        status_label="Submitted for Editing (Revision Required)",
        comments_heading="Feedback & Required Changes",
        comments_background="#fff3cd",
        next_steps_heading="Next Steps",
        next_steps_text=(
            "Please review the feedback provided and make the necessary revisions "
            "to your book. Once you've addressed the comments, you can resubmit "
            "the book for review."
        ),
        action_label="Edit Book",
        button_color="#ffc107",
        button_text_color="#212529",
        banner_title="Revision Required",
        banner_text=(
            'The book "{title}" requires revisions before it can be approved for '
            "publication."
        ),
        banner_background="#f8d7da",
    ),
    EnumNotificationType.BOOK_PUBLISHED: EmailTemplate(
        subject_prefix="Book Published Successfully",
        heading="Book Published Successfully",
        accent_color="#6f42c1",
        status_label="Published",
        comments_heading="Publication Notes",
        comments_background="#e3f2fd",
        next_steps_heading="What's Next?",
        next_steps_text=(
            "Your book is now live and available to readers. You can view the "
            "published book and track its performance through the dashboard."
        ),
        action_label="View Published Book",
        button_color="#6f42c1",
        banner_title="Congratulations!",
        banner_text=(
            'The book "{title}" has been successfully published and is now '
            "available to readers."
        ),
        banner_background="#e7e3ff",
    ),
}


def get_template(notification_type: EnumNotificationType | str) -> EmailTemplate:
    """Look up the template for a type.

    Raises:
        UnknownNotificationTypeError: For anything outside the four types.
    """
    try:
        return TEMPLATES[EnumNotificationType(notification_type)]
    except (ValueError, KeyError) as e:
        raise UnknownNotificationTypeError(
            getattr(notification_type, "value", notification_type)
        ) from e


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_html(template: EmailTemplate, variables: ModelEmailVariables) -> str:
    esc = html.escape
    title = variables.book_title or ""
    parts = [
        "<html>",
        '<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">',
        '<div style="max-width: 600px; margin: 0 auto; padding: 20px;">',
        f'<h2 style="color: {template.accent_color};">{esc(template.heading)}</h2>',
    ]
    if template.banner_title and template.banner_text:
        banner = esc(template.banner_text.format(title="\x00")).replace(
            "\x00", f"<strong>{esc(title)}</strong>"
        )
        parts.append(
            f'<div style="background-color: {template.banner_background}; padding: 20px; '
            f'border-radius: 8px; border-left: 4px solid {template.accent_color};">'
            f'<h3 style="margin-top: 0;">{esc(template.banner_title)}</h3>'
            f'<p style="margin-bottom: 0;">{banner}</p></div>'
        )
    parts.append(
        '<div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px;">'
        '<h3 style="margin-top: 0; color: #495057;">Book Details</h3>'
        f"<p><strong>Title:</strong> {esc(title)}</p>"
        f"<p><strong>Author:</strong> {esc(variables.user_name or '')}</p>"
        f"<p><strong>Book ID:</strong> {esc(variables.book_id or '')}</p>"
        f"<p><strong>Status:</strong> {esc(template.status_label)}</p></div>"
    )
    if variables.comments:
        comments = esc(variables.comments).replace("\n", "<br>")
        parts.append(
            f'<div style="background-color: {template.comments_background}; padding: 15px; '
            'border-radius: 8px;">'
            f'<h4 style="margin-top: 0;">{esc(template.comments_heading)}</h4>'
            f'<p style="margin-bottom: 0;">{comments}</p></div>'
        )
    parts.append(
        '<div style="margin: 30px 0;">'
        f'<h4 style="color: #495057;">{esc(template.next_steps_heading)}</h4>'
        f"<p>{esc(template.next_steps_text)}</p></div>"
    )
    if variables.action_url:
        parts.append(
            '<div style="text-align: center; margin: 30px 0;">'
            f'<a href="{esc(variables.action_url, quote=True)}" '
            f'style="background-color: {template.button_color}; color: {template.button_text_color}; '
            'padding: 12px 24px; text-decoration: none; border-radius: 5px; '
            f'display: inline-block;">{esc(template.action_label)}</a></div>'
        )
    parts.extend(
        [
            '<hr style="border: none; border-top: 1px solid #dee2e6; margin: 30px 0;">',
            '<p style="font-size: 12px; color: #6c757d; text-align: center;">'
            f"{FOOTER_TEXT}</p>",
            "</div>",
            "</body>",
            "</html>",
        ]
    )
    return "\n".join(parts)


def _as_label(text: str) -> str:
    return text if text.endswith(("!", "?")) else f"{text}:"


def _render_text(template: EmailTemplate, variables: ModelEmailVariables) -> str:
    title = variables.book_title or ""
    lines = [template.heading.upper(), ""]
    if template.banner_title and template.banner_text:
        lines += [_as_label(template.banner_title), template.banner_text.format(title=title), ""]
    lines += [
        "Book Details:",
        f"- Title: {title}",
        f"- Author: {variables.user_name or ''}",
        f"- Book ID: {variables.book_id or ''}",
        f"- Status: {template.status_label}",
        "",
    ]
    if variables.comments:
        lines += [f"{template.comments_heading}:", variables.comments, ""]
    lines += [_as_label(template.next_steps_heading), template.next_steps_text, ""]
    if variables.action_url:
        lines += [f"{template.action_label}: {variables.action_url}", ""]
    lines += ["---", FOOTER_TEXT]
    return "\n".join(lines)


def render_email(
    notification_type: EnumNotificationType | str, variables: ModelEmailVariables
) -> ModelEmailContent:
    """Render subject, HTML body and text body for one notification."""
    template = get_template(notification_type)
    return ModelEmailContent(
        subject=f'{template.subject_prefix}: "{variables.book_title or ""}"',
        html_body=_render_html(template, variables),
        text_body=_render_text(template, variables),
    )


__all__ = [
    "FOOTER_TEXT",
    "TEMPLATES",
    "EmailTemplate",
    "get_template",
    "render_email",
]
