# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""Unit tests for notification email templates."""

from __future__ import annotations

import pytest

from booknotify.enums import EnumNotificationType
from booknotify.errors import UnknownNotificationTypeError
from booknotify.notifications.models import ModelEmailVariables
from booknotify.notifications.templates import FOOTER_TEXT, render_email

N = EnumNotificationType


def _variables(**overrides: str | None) -> ModelEmailVariables:
    values: dict[str, str | None] = {
        "user_name": "author-456",
        "book_title": "The Quiet Harbour",
        "book_id": "book-123",
        "comments": None,
        "action_url": "https://books.example.com/books/book-123/review",
    }
    values.update(overrides)
    return ModelEmailVariables(**values)


@pytest.mark.unit
class TestRenderEmail:
    @pytest.mark.parametrize(
        ("notification_type", "subject"),
        [
            (N.BOOK_SUBMITTED, 'Book Submitted for Review: "The Quiet Harbour"'),
            (N.BOOK_APPROVED, 'Book Approved for Publication: "The Quiet Harbour"'),
            (N.BOOK_REJECTED, 'Book Requires Revision: "The Quiet Harbour"'),
            (N.BOOK_PUBLISHED, 'Book Published Successfully: "The Quiet Harbour"'),
        ],
    )
    def test_subjects(self, notification_type: N, subject: str) -> None:
        content = render_email(notification_type, _variables())

        assert content.subject == subject
        assert FOOTER_TEXT in content.html_body
        assert content.text_body.endswith(FOOTER_TEXT)

    def test_accepts_wire_value(self) -> None:
        assert render_email("book_published", _variables()).subject.startswith(
            "Book Published Successfully"
        )

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownNotificationTypeError, match="book_archived"):
            render_email("book_archived", _variables())

    def test_html_escapes_untrusted_values(self) -> None:
        content = render_email(
            N.BOOK_APPROVED,
            _variables(book_title="Tom & Jerry <3", comments="Use <b>bold</b>"),
        )

        assert "Tom &amp; Jerry &lt;3" in content.html_body
        assert "<b>bold</b>" not in content.html_body
        assert "Use &lt;b&gt;bold&lt;/b&gt;" in content.html_body
        assert "<strong>Tom &amp; Jerry &lt;3</strong>" in content.html_body

    def test_text_body_keeps_literal_values(self) -> None:
        content = render_email(
            N.BOOK_REJECTED,
            _variables(
                book_title="Tom & Jerry",
                comments="Fix chapter 2\n\nNext Steps: Resubmit",
            ),
        )

        assert "- Title: Tom & Jerry" in content.text_body
        assert "Fix chapter 2\n\nNext Steps: Resubmit" in content.text_body
        assert 'The book "Tom & Jerry" requires revisions' in content.text_body
        assert "&amp;" not in content.text_body

    def test_multiline_comments_become_line_breaks_in_html(self) -> None:
        content = render_email(N.BOOK_SUBMITTED, _variables(comments="one\ntwo"))

        assert "one<br>two" in content.html_body
        assert "Submission Notes" in content.html_body

    def test_comments_section_omitted_without_comments(self) -> None:
        content = render_email(N.BOOK_SUBMITTED, _variables())

        assert "Submission Notes" not in content.html_body
        assert "Submission Notes" not in content.text_body

    def test_action_link(self) -> None:
        content = render_email(N.BOOK_SUBMITTED, _variables())

        assert 'href="https://books.example.com/books/book-123/review"' in content.html_body
        assert (
            "Review Book: https://books.example.com/books/book-123/review"
            in content.text_body
        )

    def test_no_action_section_without_url(self) -> None:
        content = render_email(N.BOOK_SUBMITTED, _variables(action_url=None))

        assert "href=" not in content.html_body
        assert "Review Book:" not in content.text_body
