# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Per-record outcome of a consumer batch."""

from __future__ import annotations

from enum import Enum


class EnumRecordOutcome(str, Enum):
    """Three-way outcome reported for every record in a batch.

    Only ``NACK_RETRY`` records appear in ``batchItemFailures``. A
    ``NACK_PERMANENT`` record is acknowledged to the queue so it is never
    redelivered; it is reported as failed and optionally forwarded to a
    dead-letter sink.
    """

    ACK = "ack"
    """Processed (or intentionally filtered); delete from the queue."""

    NACK_RETRY = "nack_retry"
    """Transient failure; ask the queue runtime to redeliver this record."""

    NACK_PERMANENT = "nack_permanent"
    """Structural or permanent failure; redelivery cannot help."""

    @property
    def is_failure(self) -> bool:
        return self is not EnumRecordOutcome.ACK

    @property
    def requests_redelivery(self) -> bool:
        return self is EnumRecordOutcome.NACK_RETRY


__all__ = ["EnumRecordOutcome"]
