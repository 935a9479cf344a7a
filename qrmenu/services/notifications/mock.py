"""
Mock Notification Service

Simulates email sending for development.
No actual messages are sent - just logged and kept in `outbox`.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import random
import uuid
import logging
from dataclasses import dataclass
from typing import Optional

from qrmenu.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    message_id: str
    to_email: str
    subject: str
    body_text: Optional[str]


class MockNotificationService(BaseNotificationService):
    """Mock notification service for development."""

    def __init__(self, failure_rate: float = 0.0, latency: tuple[float, float] = (0.0, 0.0)):
        self.failure_rate = failure_rate
        self.latency = latency
        self.outbox: list[SentEmail] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        low, high = self.latency
        if high > 0:
            await asyncio.sleep(random.uniform(low, high))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Simulate sending email."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock email failed (simulated) to {to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider="mock"
            )

        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        self.outbox.append(SentEmail(message_id, to_email, subject, body_text))
        logger.info(f"Mock email sent to {to_email}: {subject} (ID: {message_id})")
        if body_text:
            logger.debug(body_text)

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
