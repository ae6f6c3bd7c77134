# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Book status change events.

Transition policy, the canonical envelope model, its validation rules and
JSON encoding.
"""

from booknotify.events.models import ModelStatusChangeData, ModelStatusChangeEvent
from booknotify.events.serialization import (
    create_status_change_event,
    deserialize_event,
    extract_event_from_record,
    extract_event_from_transport_message,
    extract_events_from_records,
    serialize_event,
    unwrap_record_body,
)
from booknotify.events.transition_policy import (
    TransitionValidationResult,
    is_legal_transition,
    notification_type_for,
    should_notify,
    validate_event_type_configuration,
    validate_notification_for_transition,
    validate_status_transition,
)
from booknotify.events.validation import (
    EventValidationResult,
    format_event_timestamp,
    is_valid_event_id,
    is_valid_event_timestamp,
    parse_event_timestamp,
    validate_event,
)

__all__ = [
    "EventValidationResult",
    "ModelStatusChangeData",
    "ModelStatusChangeEvent",
    "TransitionValidationResult",
    "create_status_change_event",
    "deserialize_event",
    "extract_event_from_record",
    "extract_event_from_transport_message",
    "extract_events_from_records",
    "format_event_timestamp",
    "is_legal_transition",
    "is_valid_event_id",
    "is_valid_event_timestamp",
    "notification_type_for",
    "parse_event_timestamp",
    "serialize_event",
    "should_notify",
    "unwrap_record_body",
    "validate_event",
    "validate_event_type_configuration",
    "validate_notification_for_transition",
    "validate_status_transition",
]
