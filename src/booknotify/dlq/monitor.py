# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Dead-letter queue monitor.

Samples queue depth and the age of the oldest message, derives the growth
rate from consecutive samples, and raises alerts when a threshold is
crossed:

    MESSAGE_ACCUMULATION  depth > threshold; severity by depth
                          (>50 CRITICAL, >20 HIGH, >10 MEDIUM, else LOW)
    OLD_MESSAGES          oldest age > threshold hours; severity by age
                          (>24h CRITICAL, >12h HIGH, >6h MEDIUM, else LOW)
    HIGH_RATE             growth per minute > threshold; always HIGH
    QUEUE_UNAVAILABLE     queue attributes could not be read; CRITICAL

Health is CRITICAL if any alert is CRITICAL, WARNING if any is HIGH or
MEDIUM, otherwise HEALTHY. LOW alerts do not degrade health.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime

from booknotify.config import NotificationSettings, get_config
from booknotify.dlq.models import (
    DLQAlert,
    DLQDashboard,
    DLQHealth,
    DLQMetrics,
    DLQMonitorConfig,
)
from booknotify.dlq.protocols import ProtocolQueueClient
from booknotify.enums.enum_dlq import EnumAlertSeverity, EnumDLQAlertType, EnumHealthStatus
from booknotify.publisher.protocols import ProtocolTopicPublisher

logger = logging.getLogger(__name__)

HEALTHY_RECOMMENDATION = "DLQ is healthy - continue monitoring"

_ALERT_RECOMMENDATIONS: dict[EnumDLQAlertType, tuple[str, ...]] = {
    EnumDLQAlertType.MESSAGE_ACCUMULATION: (
        "Investigate notification service for processing failures",
        "Check notification consumer logs for error patterns",
    ),
    EnumDLQAlertType.OLD_MESSAGES: (
        "Review old messages for manual processing or purging",
        "Consider implementing message TTL to prevent indefinite accumulation",
    ),
    EnumDLQAlertType.HIGH_RATE: (
        "Monitor upstream services for increased error rates",
        "Consider scaling notification processing capacity",
    ),
    EnumDLQAlertType.QUEUE_UNAVAILABLE: (
        "Verify dead-letter queue URL and access permissions",
    ),
}


def severity_for_message_count(count: int) -> EnumAlertSeverity:
    if count > 50:
        return EnumAlertSeverity.CRITICAL
    if count > 20:
        return EnumAlertSeverity.HIGH
    if count > 10:
        return EnumAlertSeverity.MEDIUM
    return EnumAlertSeverity.LOW


def severity_for_message_age(age_hours: float) -> EnumAlertSeverity:
    if age_hours > 24:
        return EnumAlertSeverity.CRITICAL
    if age_hours > 12:
        return EnumAlertSeverity.HIGH
    if age_hours > 6:
        return EnumAlertSeverity.MEDIUM
    return EnumAlertSeverity.LOW


def health_status_for(alerts: list[DLQAlert] | tuple[DLQAlert, ...]) -> EnumHealthStatus:
    severities = {alert.severity for alert in alerts}
    if EnumAlertSeverity.CRITICAL in severities:
        return EnumHealthStatus.CRITICAL
    if severities & {EnumAlertSeverity.HIGH, EnumAlertSeverity.MEDIUM}:
        return EnumHealthStatus.WARNING
    return EnumHealthStatus.HEALTHY


def queue_name_from_url(queue_url: str) -> str:
    return queue_url.rstrip("/").rsplit("/", 1)[-1]


def _int_attribute(attributes: dict[str, str], name: str) -> int:
    try:
        return int(attributes.get(name, "0") or 0)
    except (TypeError, ValueError):
        return 0


class DLQMonitor:
    """Periodic health check and alerting over the dead-letter queue.

    Usage:
        monitor = DLQMonitor(queue_client, DLQMonitorConfig.for_environment("qa"),
                             topic_publisher=publisher)
        await monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(
        self,
        queue_client: ProtocolQueueClient,
        config: DLQMonitorConfig | None = None,
        settings: NotificationSettings | None = None,
        *,
        topic_publisher: ProtocolTopicPublisher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or get_config()
        self._queue = queue_client
        self.config = config or DLQMonitorConfig()
        self._publisher = topic_publisher
        self._clock = clock or (lambda: datetime.now(UTC))
        self._history: deque[DLQMetrics] = deque(maxlen=self.config.history_size)
        self._task: asyncio.Task[None] | None = None

    @property
    def queue_name(self) -> str:
        return queue_name_from_url(self._settings.dlq_url)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def history(self) -> tuple[DLQMetrics, ...]:
        return tuple(self._history)

    # -- sampling -----------------------------------------------------------

    async def collect_metrics(self) -> DLQMetrics:
        """Sample the queue and append the sample to the history.

        Raises:
            Exception: Whatever the queue client raises when the attributes
                cannot be read.
        """
        attributes = await self._queue.get_queue_attributes(self._settings.dlq_url)
        now = self._clock()
        count = _int_attribute(attributes, "ApproximateNumberOfMessages")

        rate = 0.0
        if self._history:
            previous = self._history[-1]
            elapsed_minutes = (now - previous.timestamp).total_seconds() / 60
            if elapsed_minutes > 0:
                rate = max(0, count - previous.message_count) / elapsed_minutes

        metrics = DLQMetrics(
            queue_name=self.queue_name,
            message_count=count,
            oldest_message_age_seconds=float(
                _int_attribute(attributes, "ApproximateAgeOfOldestMessage")
            ),
            message_rate=rate,
            timestamp=now,
        )
        self._history.append(metrics)
        logger.debug(
            "DLQMonitor: metrics collected. queue=%s count=%d oldest_age_s=%.0f rate_per_min=%.2f",
            metrics.queue_name,
            metrics.message_count,
            metrics.oldest_message_age_seconds,
            metrics.message_rate,
        )
        return metrics

    def evaluate_alerts(self, metrics: DLQMetrics) -> list[DLQAlert]:
        """Compare one sample against the configured thresholds."""
        cfg = self.config
        alerts: list[DLQAlert] = []

        if metrics.message_count > cfg.message_count_threshold:
            alerts.append(
                DLQAlert(
                    alert_type=EnumDLQAlertType.MESSAGE_ACCUMULATION,
                    severity=severity_for_message_count(metrics.message_count),
                    message=(
                        f"DLQ {metrics.queue_name} has {metrics.message_count} messages "
                        f"(threshold: {cfg.message_count_threshold})"
                    ),
                    metrics=metrics,
                    threshold=cfg.message_count_threshold,
                    current_value=metrics.message_count,
                )
            )

        age_hours = metrics.oldest_message_age_seconds / 3600
        if age_hours > cfg.oldest_message_age_hours:
            alerts.append(
                DLQAlert(
                    alert_type=EnumDLQAlertType.OLD_MESSAGES,
                    severity=severity_for_message_age(age_hours),
                    message=(
                        f"DLQ {metrics.queue_name} has messages older than "
                        f"{age_hours:.1f} hours (threshold: {cfg.oldest_message_age_hours}h)"
                    ),
                    metrics=metrics,
                    threshold=cfg.oldest_message_age_hours,
                    current_value=age_hours,
                )
            )

        if metrics.message_rate > cfg.message_rate_per_minute:
            alerts.append(
                DLQAlert(
                    alert_type=EnumDLQAlertType.HIGH_RATE,
                    severity=EnumAlertSeverity.HIGH,
                    message=(
                        f"DLQ {metrics.queue_name} receiving messages at "
                        f"{metrics.message_rate:.2f}/min "
                        f"(threshold: {cfg.message_rate_per_minute}/min)"
                    ),
                    metrics=metrics,
                    threshold=cfg.message_rate_per_minute,
                    current_value=metrics.message_rate,
                )
            )
        return alerts

    def _unavailable(self, error: Exception) -> tuple[DLQMetrics, DLQAlert]:
        metrics = DLQMetrics(
            queue_name=self.queue_name,
            message_count=0,
            oldest_message_age_seconds=0.0,
            message_rate=0.0,
            timestamp=self._clock(),
        )
        alert = DLQAlert(
            alert_type=EnumDLQAlertType.QUEUE_UNAVAILABLE,
            severity=EnumAlertSeverity.CRITICAL,
            message=f"DLQ {metrics.queue_name} is unavailable: {error}",
            metrics=metrics,
            threshold=0,
            current_value=0,
        )
        return metrics, alert

    # -- checks -------------------------------------------------------------

    async def get_health_status(self) -> DLQHealth:
        """Sample once and grade the result. Never raises for queue errors."""
        try:
            metrics = await self.collect_metrics()
        except Exception as e:
            # fallback-ok: an unreadable queue is reported as a CRITICAL alert
            logger.error(
                "DLQMonitor: failed to read queue attributes. queue=%s error=%s",
                self.queue_name,
                e,
            )
            metrics, alert = self._unavailable(e)
            return DLQHealth(EnumHealthStatus.CRITICAL, metrics, (alert,))

        alerts = self.evaluate_alerts(metrics)
        return DLQHealth(health_status_for(alerts), metrics, tuple(alerts))

    async def check(self) -> DLQHealth:
        """One monitoring cycle: sample, grade and publish every alert."""
        health = await self.get_health_status()
        for alert in health.alerts:
            await self.send_alert(alert)
        logger.info(
            "DLQMonitor: check complete. queue=%s status=%s count=%d alerts=%d",
            health.metrics.queue_name,
            health.status.value,
            health.metrics.message_count,
            len(health.alerts),
        )
        return health

    async def get_dashboard(self) -> DLQDashboard:
        health = await self.get_health_status()
        return DLQDashboard(
            current_metrics=health.metrics,
            alerts=health.alerts,
            recommendations=tuple(self.generate_recommendations(health.metrics, health.alerts)),
            history=self.history,
        )

    @staticmethod
    def generate_recommendations(
        metrics: DLQMetrics, alerts: list[DLQAlert] | tuple[DLQAlert, ...]
    ) -> list[str]:
        recommendations: list[str] = []
        if metrics.message_count > 0:
            recommendations.append("Analyze DLQ messages to identify root causes")
            recommendations.append(
                "Consider reprocessing messages after fixing underlying issues"
            )
        raised = {alert.alert_type for alert in alerts}
        for alert_type, texts in _ALERT_RECOMMENDATIONS.items():
            if alert_type in raised:
                recommendations.extend(texts)
        if not recommendations:
            recommendations.append(HEALTHY_RECOMMENDATION)
        return recommendations

    async def send_alert(self, alert: DLQAlert) -> None:
        log = logger.error if alert.severity is EnumAlertSeverity.CRITICAL else logger.warning
        log("DLQMonitor: %s alert. %s", alert.severity.value, alert.message)

        topic = self.config.alert_topic
        if self._publisher is None or not topic:
            return
        try:
            await self._publisher.publish(
                topic,
                json.dumps(alert.to_payload(), indent=2),
                {
                    "alertType": alert.alert_type.value,
                    "severity": alert.severity.value,
                    "queueName": alert.metrics.queue_name,
                },
                subject=f"DLQ Alert: {alert.alert_type.value} - {alert.severity.value}",
            )
        except Exception as e:
            # fallback-ok: alert publication must not stop the monitor
            logger.error(
                "DLQMonitor: failed to publish alert. topic=%s alert_type=%s error=%s",
                topic,
                alert.alert_type.value,
                e,
            )
            return
        logger.info("DLQMonitor: alert published. topic=%s", topic)

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        """Run an immediate check, then keep checking in the background."""
        if self.is_running:
            logger.warning("DLQMonitor: monitoring is already running")
            return
        logger.info(
            "DLQMonitor: starting. queue=%s interval_s=%.0f",
            self.queue_name,
            self.config.check_interval_seconds,
        )
        await self.check()
        self._task = asyncio.create_task(self._periodic_check())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("DLQMonitor: stopped. queue=%s", self.queue_name)

    async def _periodic_check(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.config.check_interval_seconds)
                await self.check()
            except asyncio.CancelledError:
                logger.debug("DLQMonitor: periodic task cancelled")
                raise
            except Exception as e:
                # fallback-ok: keep monitoring after an unexpected failure
                logger.warning("DLQMonitor: periodic check failed. error=%s", e)


__all__ = [
    "HEALTHY_RECOMMENDATION",
    "DLQMonitor",
    "health_status_for",
    "queue_name_from_url",
    "severity_for_message_age",
    "severity_for_message_count",
]
