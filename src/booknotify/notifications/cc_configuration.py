# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
CC recipient configuration.

Resolved once from the environment into an immutable ``CCConfiguration`` and
injected into ``NotificationMapper``.

Resolution order:
    1. ``NOTIFICATION_CC_EMAILS`` (comma separated) when non-blank. Entries
       are trimmed, lower-cased, validated and de-duplicated. Valid entries
       win even if some are invalid.
    2. ``NOTIFICATION_CC_EMAIL`` when *present*. Blank means "CC off" and
       yields no recipients. An invalid value falls through to the default.
    3. The default mailbox.

``NOTIFICATION_CC_ENABLED`` is true unless set to ``false``, ``0`` or
``no`` (case-insensitive).
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from booknotify.constants import DEFAULT_NOTIFICATION_EMAIL

logger = logging.getLogger(__name__)

ENV_CC_EMAIL = "NOTIFICATION_CC_EMAIL"
ENV_CC_EMAILS = "NOTIFICATION_CC_EMAILS"
ENV_CC_ENABLED = "NOTIFICATION_CC_ENABLED"

DEFAULT_CC_EMAIL = DEFAULT_NOTIFICATION_EMAIL

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DISABLED_VALUES = frozenset({"false", "0", "no"})


@dataclass(frozen=True)
class CCConfiguration:
    """Resolved CC settings."""

    enabled: bool
    emails: tuple[str, ...]
    default_email: str = DEFAULT_CC_EMAIL


@dataclass(frozen=True)
class CCEmailValidation:
    valid: bool
    valid_emails: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CCStartupValidation:
    valid: bool
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_PATTERN.match(email))


def parse_comma_separated_emails(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def validate_cc_emails(emails: list[str]) -> CCEmailValidation:
    """Normalise, validate and de-duplicate candidate CC addresses.

    Order of first appearance is preserved.
    """
    valid_emails: list[str] = []
    errors: list[str] = []
    for raw in emails:
        email = raw.strip().lower()
        if not is_valid_email(email):
            errors.append(f"Invalid email format: {raw}")
            continue
        if email not in valid_emails:
            valid_emails.append(email)
    return CCEmailValidation(valid=not errors, valid_emails=valid_emails, errors=errors)


def _is_enabled(env: Mapping[str, str]) -> bool:
    value = env.get(ENV_CC_ENABLED)
    if not value:
        return True
    return value.strip().lower() not in _DISABLED_VALUES


def _resolve_emails(env: Mapping[str, str]) -> list[str]:
    multi = env.get(ENV_CC_EMAILS)
    if multi and multi.strip():
        result = validate_cc_emails(parse_comma_separated_emails(multi))
        if result.errors:
            logger.warning(
                "Invalid CC emails in %s: %s", ENV_CC_EMAILS, ", ".join(result.errors)
            )
        if result.valid_emails:
            return result.valid_emails

    single = env.get(ENV_CC_EMAIL)
    if single is not None:
        if not single.strip():
            return []
        result = validate_cc_emails([single])
        if result.valid_emails:
            return result.valid_emails
        logger.warning(
            "Invalid CC email in %s, using default. errors=%s default=%s",
            ENV_CC_EMAIL,
            result.errors,
            DEFAULT_CC_EMAIL,
        )

    return [DEFAULT_CC_EMAIL]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_cc_configuration(env: Mapping[str, str] | None = None) -> CCConfiguration:
    """Resolve CC settings from ``env`` (default: the process environment)."""
    env = os.environ if env is None else env
    return CCConfiguration(
        enabled=_is_enabled(env),
        emails=tuple(_resolve_emails(env)),
        default_email=DEFAULT_CC_EMAIL,
    )


_cc_configuration: CCConfiguration | None = None


def get_cc_configuration() -> CCConfiguration:
    """Process-wide CC configuration, resolved on first use."""
    global _cc_configuration
    if _cc_configuration is None:
        _cc_configuration = load_cc_configuration()
    return _cc_configuration


def reset_cc_configuration() -> None:
    global _cc_configuration
    _cc_configuration = None


def get_effective_cc_emails(configuration: CCConfiguration, primary: str) -> list[str]:
    """CC list for one email with the primary recipient removed.

    Comparison ignores case and surrounding whitespace.
    """
    if not configuration.enabled or not configuration.emails:
        return []
    normalized_primary = primary.strip().lower()
    return [
        email
        for email in configuration.emails
        if email.strip().lower() != normalized_primary
    ]


def validate_cc_configuration_at_startup(
    env: Mapping[str, str] | None = None,
) -> CCStartupValidation:
    """Report configuration problems worth surfacing at boot.

    Never raises; everything found is returned as a warning.
    """
    env = os.environ if env is None else env
    warnings: list[str] = []

    multi = env.get(ENV_CC_EMAILS)
    single = env.get(ENV_CC_EMAIL)

    if not multi and not single:
        warnings.append(
            f"No CC email configuration found, using default: {DEFAULT_CC_EMAIL}"
        )

    has_valid_configured = False
    if multi and multi.strip():
        result = validate_cc_emails(parse_comma_separated_emails(multi))
        if result.valid and result.valid_emails:
            has_valid_configured = True
        elif result.errors:
            warnings.append(
                "Some CC emails failed validation in "
                f"{ENV_CC_EMAILS}: {', '.join(result.errors)}"
            )
    elif single and single.strip():
        result = validate_cc_emails([single])
        if result.valid and result.valid_emails:
            has_valid_configured = True
        elif result.errors:
            warnings.append(
                f"CC email failed validation in {ENV_CC_EMAIL}: {', '.join(result.errors)}"
            )

    configuration = load_cc_configuration(env)
    if configuration.enabled and not has_valid_configured and (multi or single):
        warnings.append(
            "CC is enabled but no valid CC emails found in configuration, "
            "falling back to default"
        )

    return CCStartupValidation(valid=True, warnings=warnings, errors=[])


def get_cc_configuration_summary(env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Loggable snapshot of the resolved configuration and its inputs."""
    env = os.environ if env is None else env
    configuration = load_cc_configuration(env)
    return {
        "enabled": configuration.enabled,
        "email_count": len(configuration.emails),
        "emails": list(configuration.emails),
        "default_email": configuration.default_email,
        "environment_variables": {
            "cc_email": env.get(ENV_CC_EMAIL),
            "cc_emails": env.get(ENV_CC_EMAILS),
            "cc_enabled": env.get(ENV_CC_ENABLED),
        },
    }


__all__ = [
    "DEFAULT_CC_EMAIL",
    "ENV_CC_EMAIL",
    "ENV_CC_EMAILS",
    "ENV_CC_ENABLED",
    "CCConfiguration",
    "CCEmailValidation",
    "CCStartupValidation",
    "get_cc_configuration",
    "get_cc_configuration_summary",
    "get_effective_cc_emails",
    "is_valid_email",
    "load_cc_configuration",
    "parse_comma_separated_emails",
    "reset_cc_configuration",
    "validate_cc_configuration_at_startup",
    "validate_cc_emails",
]
