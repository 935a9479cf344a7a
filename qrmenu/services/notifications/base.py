"""
Notification Service Abstract Base Class

Defines the interface for the emails the service sends to owners
(sign-up confirmation links). Customers are never emailed.

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def confirmation_email(restaurant_name: str, confirm_url: str) -> tuple[str, str, str]:
    """Subject, HTML body and text body of the sign-up confirmation email."""
    subject = f"Confirm your QR menu account - {restaurant_name}"
    text = (
        f"Welcome! Confirm the account for {restaurant_name} by opening this link:\n"
        f"{confirm_url}\n"
        f"If you did not sign up, ignore this email."
    )
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h1>Welcome to QR Menu</h1>
        <p>Confirm the account for <strong>{restaurant_name}</strong> to start taking orders.</p>
        <a href="{confirm_url}" style="display: inline-block; background: #ff4757; color: white; padding: 15px 30px; text-decoration: none; border-radius: 8px; margin: 20px 0;">
            Confirm email
        </a>
        <p style="color: #666; font-size: 12px;">If you did not sign up, ignore this email.</p>
    </div>
    """
    return subject, html, text


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    async def send_signup_confirmation(
        self,
        to_email: str,
        restaurant_name: str,
        confirm_url: str,
    ) -> NotificationResult:
        """Send the link that confirms a new owner's email address."""
        subject, html, text = confirmation_email(restaurant_name, confirm_url)
        return await self.send_email(
            to_email=to_email,
            subject=subject,
            body_html=html,
            body_text=text,
        )

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass
