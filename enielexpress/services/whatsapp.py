"""WhatsApp Cloud API client and the message templates sent to customers.

One instance is created in the application lifespan and shared through
``api.deps.get_messenger``; it owns a persistent HTTP session.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from enielexpress.core.config import Settings
from enielexpress.services.helpers import format_currency

logger = logging.getLogger(__name__)

BRAND = "P&D EnielExpress"


def format_phone(phone_number: str) -> str:
    """Cloud API expects digits only, country code first."""
    return "".join(ch for ch in phone_number if ch.isdigit())


def tracking_update_text(tracking_number: str, status: str, location: str,
                         description: Optional[str], frontend_url: str) -> str:
    return (
        f"*{BRAND} Tracking Update*\n\n"
        f"Tracking Number: {tracking_number}\n"
        f"Status: {status}\n"
        f"Location: {location}\n"
        f"Description: {description or '-'}\n\n"
        f"Track your shipment: {frontend_url}/tracking.html?number={tracking_number}"
    )


def payment_confirmation_text(invoice_number: str, amount: float, currency: str,
                              payment_date: Optional[datetime]) -> str:
    paid_on = payment_date.strftime("%Y-%m-%d %H:%M") if payment_date else "-"
    return (
        f"*{BRAND} Payment Confirmation*\n\n"
        f"Invoice Number: {invoice_number}\n"
        f"Amount: {format_currency(amount, currency)}\n"
        f"Payment Date: {paid_on}\n\n"
        "Thank you for your payment! Your invoice has been marked as paid."
    )


def delivery_notification_text(tracking_number: str, recipient_name: str, delivery_time: Optional[str]) -> str:
    return (
        f"*{BRAND} Delivery Notification*\n\n"
        f"Dear {recipient_name},\n\n"
        f"Your package with tracking number {tracking_number} has been delivered.\n"
        f"Delivery Time: {delivery_time or '-'}\n\n"
        f"Thank you for choosing {BRAND}!"
    )


def subscription_text(tracking_number: str) -> str:
    return (
        f"You have successfully subscribed to tracking updates for shipment {tracking_number}. "
        "You will receive notifications when the status changes."
    )


class WhatsAppClient:
    def __init__(self, api_url: str, token: str, phone_number_id: str,
                 frontend_url: str = "http://localhost:3000", timeout: float = 10.0):
        self.phone_number_id = phone_number_id
        self.frontend_url = frontend_url
        self.configured = bool(token and phone_number_id)
        self._http = httpx.Client(
            base_url=api_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {token}"},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppClient":
        return cls(settings.WHATSAPP_API_URL, settings.WHATSAPP_TOKEN,
                   settings.WHATSAPP_PHONE_NUMBER_ID, settings.FRONTEND_URL)

    def send_message(self, phone_number: str, message: str) -> Dict[str, Any]:
        if not self.configured:
            raise RuntimeError("WhatsApp client is not configured")
        resp = self._http.post(
            f"/{self.phone_number_id}/messages",
            json={
                "messaging_product": "whatsapp",
                "to": format_phone(phone_number),
                "type": "text",
                "text": {"body": message},
            },
        )
        resp.raise_for_status()
        logger.debug("WhatsApp message sent to %s", phone_number)
        return resp.json()

    def send_tracking_update(self, phone_number: str, tracking_number: str, status: str,
                             location: str, description: Optional[str] = None) -> Dict[str, Any]:
        text = tracking_update_text(tracking_number, status, location, description, self.frontend_url)
        return self.send_message(phone_number, text)

    def send_payment_confirmation(self, phone_number: str, invoice_number: str, amount: float,
                                  currency: str = "USD", payment_date: Optional[datetime] = None) -> Dict[str, Any]:
        return self.send_message(phone_number, payment_confirmation_text(invoice_number, amount, currency, payment_date))

    def send_delivery_notification(self, phone_number: str, tracking_number: str, recipient_name: str,
                                   delivery_time: Optional[str] = None) -> Dict[str, Any]:
        return self.send_message(phone_number, delivery_notification_text(tracking_number, recipient_name, delivery_time))

    def send_subscription_confirmation(self, phone_number: str, tracking_number: str) -> Dict[str, Any]:
        return self.send_message(phone_number, subscription_text(tracking_number))

    def status(self) -> Dict[str, Any]:
        return {
            "ready": self.configured,
            "phoneNumberId": self.phone_number_id or None,
            "platform": "whatsapp-cloud-api",
            "connected": self.configured,
        }

    def close(self) -> None:
        self._http.close()
