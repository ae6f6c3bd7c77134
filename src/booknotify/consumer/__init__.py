# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Queue consumer that turns status change events into emails."""

from booknotify.consumer.batch_consumer import (
    BatchConsumer,
    check_business_rules,
    classify_processing_error,
)
from booknotify.consumer.models import BatchProcessingResult, QueueRecord, RecordResult

__all__ = [
    "BatchConsumer",
    "BatchProcessingResult",
    "QueueRecord",
    "RecordResult",
    "check_business_rules",
    "classify_processing_error",
]
