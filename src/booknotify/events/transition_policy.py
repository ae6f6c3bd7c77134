# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Book status transition policy.

Pure, synchronous decision functions that map a ``(previous, new)`` status
pair to a notification type (or none) and report whether the transition is
legal at all. Both the publisher and the consumer-side mapper call
``should_notify`` so a filtered event is dropped on either side.

Rules:
    - ``previous == new`` never notifies.
    - ``None -> DRAFT`` (silent creation) never notifies.
    - ``None -> other`` notifies with the destination default.
    - ``READY_FOR_PUBLICATION -> SUBMITTED_FOR_EDITING`` is a rejection and
      is matched on the pair before the per-destination table.
    - Illegal pairs never notify.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from booknotify.enums.enum_book_status import EnumBookStatus, is_valid_book_status
from booknotify.enums.enum_notification_type import (
    EnumNotificationType,
    is_valid_notification_type,
)

logger = logging.getLogger(__name__)

_S = EnumBookStatus
_N = EnumNotificationType

# ---------------------------------------------------------------------------
# Transition tables
# ---------------------------------------------------------------------------

VALID_TRANSITIONS: dict[EnumBookStatus, frozenset[EnumBookStatus]] = {
    _S.DRAFT: frozenset({_S.DRAFT, _S.SUBMITTED_FOR_EDITING}),
    _S.SUBMITTED_FOR_EDITING: frozenset(
        {_S.SUBMITTED_FOR_EDITING, _S.READY_FOR_PUBLICATION, _S.DRAFT}
    ),
    _S.READY_FOR_PUBLICATION: frozenset(
        {_S.READY_FOR_PUBLICATION, _S.PUBLISHED, _S.SUBMITTED_FOR_EDITING}
    ),
    _S.PUBLISHED: frozenset({_S.PUBLISHED}),
}

# Pair-specific overrides, checked before the destination table.
SPECIAL_TRANSITIONS: dict[tuple[EnumBookStatus, EnumBookStatus], EnumNotificationType] = {
    (_S.READY_FOR_PUBLICATION, _S.SUBMITTED_FOR_EDITING): _N.BOOK_REJECTED,
}

STATUS_TO_NOTIFICATION: dict[EnumBookStatus, EnumNotificationType | None] = {
    _S.DRAFT: None,
    _S.SUBMITTED_FOR_EDITING: _N.BOOK_SUBMITTED,
    _S.READY_FOR_PUBLICATION: _N.BOOK_APPROVED,
    _S.PUBLISHED: _N.BOOK_PUBLISHED,
}

NOTIFYING_TRANSITIONS: frozenset[tuple[EnumBookStatus, EnumBookStatus]] = frozenset(
    {
        (_S.DRAFT, _S.SUBMITTED_FOR_EDITING),
        (_S.SUBMITTED_FOR_EDITING, _S.READY_FOR_PUBLICATION),
        (_S.READY_FOR_PUBLICATION, _S.PUBLISHED),
        (_S.READY_FOR_PUBLICATION, _S.SUBMITTED_FOR_EDITING),
    }
)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransitionValidationResult:
    """Outcome of a transition or configuration check.

    Warnings and validity are independent: a transition may carry a warning
    and still be invalid.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


def _coerce(status: EnumBookStatus | str | None) -> EnumBookStatus | None:
    if status is None:
        return None
    return EnumBookStatus(status)


def is_legal_transition(
    previous: EnumBookStatus | str | None, new: EnumBookStatus | str
) -> bool:
    """Return True when ``previous -> new`` is an edge of the lifecycle graph.

    Creation (``previous is None``) is always legal.
    """
    prev_status = _coerce(previous)
    new_status = _coerce(new)
    if prev_status is None:
        return True
    return new_status in VALID_TRANSITIONS[prev_status]


def should_notify(
    previous: EnumBookStatus | str | None, new: EnumBookStatus | str
) -> bool:
    """Decide whether a status change triggers an email notification.

    Args:
        previous: Status before the change, or None on creation.
        new: Status after the change.

    Returns:
        True only for the four notifying edges and for direct non-draft
        creation.
    """
    prev_status = _coerce(previous)
    new_status = _coerce(new)
    if prev_status is None:
        return new_status is not EnumBookStatus.DRAFT
    if prev_status is new_status:
        return False
    return (prev_status, new_status) in NOTIFYING_TRANSITIONS


def notification_type_for(
    previous: EnumBookStatus | str | None, new: EnumBookStatus | str
) -> EnumNotificationType | None:
    """Resolve the notification type for a transition.

    Returns:
        The notification type, or None when ``should_notify`` is False.
    """
    if not should_notify(previous, new):
        return None
    prev_status = _coerce(previous)
    new_status = _coerce(new)
    if prev_status is not None:
        special = SPECIAL_TRANSITIONS.get((prev_status, new_status))
        if special is not None:
            return special
    return STATUS_TO_NOTIFICATION[new_status]


def validate_status_transition(
    previous: EnumBookStatus | str | None, new: EnumBookStatus | str
) -> TransitionValidationResult:
    """Check a transition against the lifecycle graph.

    Args:
        previous: Status before the change, or None on creation.
        new: Status after the change.

    Returns:
        Result with ``Invalid transition from X to Y`` errors and warnings
        for unusual moves out of PUBLISHED or READY_FOR_PUBLICATION -> DRAFT.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not is_valid_book_status(new):
        errors.append(f"Invalid new status: {new}")
    if previous is not None and not is_valid_book_status(previous):
        errors.append(f"Invalid previous status: {previous}")
    if errors or previous is None:
        return TransitionValidationResult(is_valid=not errors, errors=errors)

    prev_status = EnumBookStatus(previous)
    new_status = EnumBookStatus(new)

    if new_status not in VALID_TRANSITIONS[prev_status]:
        errors.append(
            f"Invalid transition from {prev_status.value} to {new_status.value}"
        )
    if prev_status is _S.PUBLISHED and new_status is not _S.PUBLISHED:
        warnings.append("Transitioning from PUBLISHED status is unusual")
    if prev_status is _S.READY_FOR_PUBLICATION and new_status is _S.DRAFT:
        warnings.append(
            "Transitioning from READY_FOR_PUBLICATION to DRAFT skips normal workflow"
        )

    return TransitionValidationResult(
        is_valid=not errors, errors=errors, warnings=warnings
    )


def validate_notification_for_transition(
    previous: EnumBookStatus | str | None,
    new: EnumBookStatus | str,
    expected: EnumNotificationType | str | None = None,
) -> TransitionValidationResult:
    """Check that ``expected`` is the notification the transition produces.

    A mismatch on a notifying transition is an error; expecting a
    notification from a non-notifying transition is only a warning.
    """
    transition = validate_status_transition(previous, new)
    errors = list(transition.errors)
    warnings = list(transition.warnings)
    if errors:
        return TransitionValidationResult(False, errors, warnings)

    notify = should_notify(previous, new)
    actual = notification_type_for(previous, new)

    if expected is not None:
        if not is_valid_notification_type(expected):
            errors.append(f"Invalid notification type: {expected}")
        else:
            expected_type = EnumNotificationType(expected)
            if actual is not expected_type:
                if notify and actual is not None:
                    errors.append(
                        f"Expected notification type {expected_type.value} "
                        f"but transition requires {actual.value}"
                    )
                elif not notify:
                    warnings.append(
                        f"Expected notification type {expected_type.value} "
                        "but transition does not trigger notifications"
                    )

    logger.debug(
        "Notification validation for transition previous=%s new=%s "
        "should_notify=%s actual=%s expected=%s",
        previous,
        new,
        notify,
        actual,
        expected,
    )
    return TransitionValidationResult(not errors, errors, warnings)


def validate_event_type_configuration() -> TransitionValidationResult:
    """Self-check the transition tables for internal consistency.

    Every status must have an outgoing-edge entry and a destination default,
    every notifying edge must be legal, and every pair that notifies must
    resolve to a type.
    """
    errors: list[str] = []
    warnings: list[str] = []

    for status in EnumBookStatus:
        if status not in VALID_TRANSITIONS:
            errors.append(f"Book status {status.value} has no transition entry")
        if status not in STATUS_TO_NOTIFICATION:
            errors.append(f"Book status {status.value} has no notification mapping")

    for prev_status, new_status in NOTIFYING_TRANSITIONS.union(SPECIAL_TRANSITIONS):
        if new_status not in VALID_TRANSITIONS.get(prev_status, frozenset()):
            errors.append(
                f"Notifying transition {prev_status.value} -> {new_status.value} "
                "is not a legal transition"
            )

    for prev_status in EnumBookStatus:
        for new_status in EnumBookStatus:
            notify = should_notify(prev_status, new_status)
            notification_type = notification_type_for(prev_status, new_status)
            if notify and notification_type is None:
                warnings.append(
                    f"Transition {prev_status.value} -> {new_status.value} "
                    "should notify but has no notification type"
                )

    return TransitionValidationResult(not errors, errors, warnings)


__all__ = [
    "NOTIFYING_TRANSITIONS",
    "SPECIAL_TRANSITIONS",
    "STATUS_TO_NOTIFICATION",
    "VALID_TRANSITIONS",
    "TransitionValidationResult",
    "is_legal_transition",
    "notification_type_for",
    "should_notify",
    "validate_event_type_configuration",
    "validate_notification_for_transition",
    "validate_status_transition",
]
