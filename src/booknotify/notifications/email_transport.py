# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""HTTP email transport.

Posts a JSON send request to an email service provider and maps failures
onto the transient/permanent split the batch consumer acts on:

    timeout, connection error, 429, 5xx  -> TransientEmailError
    any other 4xx                        -> PermanentEmailError

The transport makes exactly one request per ``send``; redelivery is the
queue's job.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from booknotify.config import NotificationSettings, get_config
from booknotify.errors import PermanentEmailError, TransientEmailError
from booknotify.notifications.models import ModelEmailMessage

logger = logging.getLogger(__name__)

_THROTTLED = 429


class HttpEmailTransport:
    """Sends email through an HTTP API using a persistent ``httpx.AsyncClient``.

    Usage:
        async with HttpEmailTransport(settings) as transport:
            message_id = await transport.send(message)
    """

    def __init__(
        self,
        settings: NotificationSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_config()
        self._client = client
        self._owns_client = client is None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        if self._client is not None:
            return
        headers: dict[str, str] = {}
        if self._settings.email_api_key:
            headers["Authorization"] = f"Bearer {self._settings.email_api_key}"
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.email_timeout_seconds),
            headers=headers,
        )
        self._owns_client = True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpEmailTransport:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @staticmethod
    def build_payload(message: ModelEmailMessage) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": message.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html_body,
            "text": message.text_body,
        }
        if message.cc:
            payload["cc"] = list(message.cc)
        return payload

    async def send(self, message: ModelEmailMessage) -> str:
        """Send one email and return the provider's message id.

        Raises:
            TransientEmailError: Timeout, network failure, throttling or 5xx.
            PermanentEmailError: Rejected request (4xx other than 429).
        """
        await self.connect()
        client = self._client
        if client is None:
            raise TransientEmailError("Email transport is not connected")

        try:
            response = await client.post(
                self._settings.email_api_url, json=self.build_payload(message)
            )
        except httpx.TimeoutException as exc:
            raise TransientEmailError(f"Email send timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransientEmailError(f"Email transport unavailable: {exc}") from exc

        status = response.status_code
        if status == _THROTTLED or status >= 500:
            raise TransientEmailError(
                f"Email provider returned {status}: {response.text[:200]}",
                status_code=status,
            )
        if status >= 400:
            raise PermanentEmailError(
                f"Email provider rejected message with {status}: {response.text[:200]}",
                status_code=status,
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}
        message_id = str(
            body.get("messageId") or body.get("id") or response.headers.get("x-message-id", "")
        )
        logger.info(
            "HttpEmailTransport: email sent. to=%s cc_count=%d message_id=%s",
            message.to,
            len(message.cc),
            message_id,
        )
        return message_id


__all__ = ["HttpEmailTransport"]
