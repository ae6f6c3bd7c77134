# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Notification mapping, email rendering, CC resolution and delivery."""

from booknotify.notifications.cc_configuration import (
    CCConfiguration,
    get_cc_configuration,
    get_cc_configuration_summary,
    get_effective_cc_emails,
    load_cc_configuration,
    validate_cc_configuration_at_startup,
)
from booknotify.notifications.email_transport import HttpEmailTransport
from booknotify.notifications.mapper import NotificationMapper
from booknotify.notifications.models import (
    ModelEmailContent,
    ModelEmailMessage,
    ModelEmailVariables,
    ModelNotificationRequest,
)
from booknotify.notifications.protocols import ProtocolEmailTransport
from booknotify.notifications.templates import render_email

__all__ = [
    "CCConfiguration",
    "HttpEmailTransport",
    "ModelEmailContent",
    "ModelEmailMessage",
    "ModelEmailVariables",
    "ModelNotificationRequest",
    "NotificationMapper",
    "ProtocolEmailTransport",
    "get_cc_configuration",
    "get_cc_configuration_summary",
    "get_effective_cc_emails",
    "load_cc_configuration",
    "render_email",
    "validate_cc_configuration_at_startup",
]
