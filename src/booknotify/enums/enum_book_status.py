# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Book lifecycle status enum.

Transitions between statuses are graph edges, not a linear chain, so no
ordering is defined on the members. Legality of a transition lives in
``booknotify.events.transition_policy``.
"""

from __future__ import annotations

from enum import Enum


class EnumBookStatus(str, Enum):
    """Workflow status of a book.

    Wire values equal member names so that the canonical event payload reads
    ``"newStatus": "SUBMITTED_FOR_EDITING"``.

    Example:
        >>> EnumBookStatus("DRAFT").display_name
        'Draft'
    """

    DRAFT = "DRAFT"
    """Author is still writing; never notified on creation."""

    SUBMITTED_FOR_EDITING = "SUBMITTED_FOR_EDITING"
    """Waiting for an editor to review."""

    READY_FOR_PUBLICATION = "READY_FOR_PUBLICATION"
    """Approved by an editor, waiting for a publisher."""

    PUBLISHED = "PUBLISHED"
    """Live and visible to readers."""

    @property
    def display_name(self) -> str:
        """Human readable label used in email bodies and logs."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[EnumBookStatus, str] = {
    EnumBookStatus.DRAFT: "Draft",
    EnumBookStatus.SUBMITTED_FOR_EDITING: "Submitted for Editing",
    EnumBookStatus.READY_FOR_PUBLICATION: "Ready for Publication",
    EnumBookStatus.PUBLISHED: "Published",
}


def get_all_book_statuses() -> list[EnumBookStatus]:
    """Return every book status in declaration order."""
    return list(EnumBookStatus)


def is_valid_book_status(value: object) -> bool:
    """Check whether ``value`` is a known book status wire value."""
    if isinstance(value, EnumBookStatus):
        return True
    return isinstance(value, str) and value in EnumBookStatus._value2member_map_


def get_status_display_name(status: EnumBookStatus | str) -> str:
    """Return the display label for a status, or the raw value if unknown."""
    if is_valid_book_status(status):
        return EnumBookStatus(status).display_name
    return str(status)


__all__ = [
    "EnumBookStatus",
    "get_all_book_statuses",
    "get_status_display_name",
    "is_valid_book_status",
]
