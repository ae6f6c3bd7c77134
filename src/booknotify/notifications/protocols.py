# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Protocol for the email delivery boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from booknotify.notifications.models import ModelEmailMessage


@runtime_checkable
class ProtocolEmailTransport(Protocol):
    """Delivers one rendered email.

    Implementations raise ``TransientEmailError`` for failures that a later
    redelivery may fix and ``PermanentEmailError`` for those it cannot.
    """

    async def send(self, message: ModelEmailMessage) -> str:
        """Send ``message`` and return the provider's message id."""
        ...


__all__ = ["ProtocolEmailTransport"]
