# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Kafka implementation of ``ProtocolTopicPublisher``.

Wraps an ``AIOKafkaProducer``. Message attributes and the optional subject
travel as record headers; the book id (when present) is the partition key so
every change for one book lands on one partition in order.

Usage:
    publisher = KafkaTopicPublisher(bootstrap_servers="localhost:9092")
    await publisher.start()
    message_id = await publisher.publish(topic, payload, attributes)
    await publisher.stop()
"""

from __future__ import annotations

import logging

from aiokafka import AIOKafkaProducer

logger = logging.getLogger(__name__)

SUBJECT_HEADER = "subject"
PARTITION_KEY_ATTRIBUTE = "bookId"


class KafkaTopicPublisher:
    """Publishes messages to Kafka topics with ``send_and_wait``."""

    def __init__(
        self,
        bootstrap_servers: str,
        *,
        request_timeout_ms: int = 30000,
        producer: AIOKafkaProducer | None = None,
    ) -> None:
        self.bootstrap_servers = bootstrap_servers
        self.request_timeout_ms = request_timeout_ms
        self._producer = producer
        self._started = False

    async def start(self) -> None:
        """Create (if needed) and start the underlying producer."""
        if self._started:
            return
        if self._producer is None:
            self._producer = AIOKafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                request_timeout_ms=self.request_timeout_ms,
                acks="all",
            )
        await self._producer.start()
        self._started = True
        logger.info(
            "KafkaTopicPublisher started. bootstrap_servers=%s", self.bootstrap_servers
        )

    async def stop(self) -> None:
        """Flush and stop the producer. Safe to call more than once."""
        if self._producer is None or not self._started:
            return
        await self._producer.stop()
        self._started = False
        logger.info("KafkaTopicPublisher stopped")

    async def publish(
        self,
        topic: str,
        message: str,
        attributes: dict[str, str],
        *,
        subject: str | None = None,
    ) -> str:
        """Send one record and wait for the broker acknowledgement.

        Returns:
            ``<topic>:<partition>:<offset>`` of the written record.

        Raises:
            RuntimeError: If ``start()`` has not been awaited.
            aiokafka.errors.KafkaError: On broker or network failure.
        """
        if self._producer is None or not self._started:
            raise RuntimeError("KafkaTopicPublisher is not started")

        headers = [(name, str(value).encode("utf-8")) for name, value in attributes.items()]
        if subject is not None:
            headers.append((SUBJECT_HEADER, subject.encode("utf-8")))
        key = attributes.get(PARTITION_KEY_ATTRIBUTE)

        metadata = await self._producer.send_and_wait(
            topic,
            value=message.encode("utf-8"),
            key=key.encode("utf-8") if key else None,
            headers=headers,
        )
        message_id = f"{metadata.topic}:{metadata.partition}:{metadata.offset}"
        logger.debug(
            "KafkaTopicPublisher: record written. topic=%s message_id=%s",
            topic,
            message_id,
        )
        return message_id

    async def __aenter__(self) -> KafkaTopicPublisher:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()


__all__ = ["KafkaTopicPublisher"]
