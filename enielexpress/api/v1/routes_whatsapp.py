import logging
from typing import Any, Callable

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from enielexpress.api import validation as rules
from enielexpress.api.deps import get_current_user, get_db, get_messenger, require_admin
from enielexpress.api.validation import validated
from enielexpress.api.v1.schemas import (
    DeliveryNotificationPayload,
    MessagePayload,
    PaymentConfirmationPayload,
    TrackingUpdatePayload,
    WhatsAppSubscribe,
)
from enielexpress.core.errors import ServiceUnavailable
from enielexpress.db.models import User
from enielexpress.services import shipments as ops
from enielexpress.services.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)

router = APIRouter()  # main.py mounts at /api/whatsapp


def _send(send: Callable[..., Any], *args) -> Any:
    # direct sends report delivery failures to the caller
    try:
        return send(*args)
    except (httpx.HTTPError, RuntimeError) as e:
        logger.error("WhatsApp send failed: %s", e)
        raise ServiceUnavailable('Failed to send WhatsApp message')


@router.post('/send')
def send_message(payload: MessagePayload = Depends(validated(MessagePayload, rules.WHATSAPP_SEND)),
                 _: User = Depends(get_current_user), messenger: WhatsAppClient = Depends(get_messenger)):
    response = _send(messenger.send_message, payload.phone_number, payload.message)
    return {"message": "Message sent successfully", "response": response}


@router.post('/subscribe')
def subscribe(payload: WhatsAppSubscribe = Depends(validated(WhatsAppSubscribe, rules.WHATSAPP_SUBSCRIBE)),
              db: Session = Depends(get_db), messenger: WhatsAppClient = Depends(get_messenger)):
    shipment = ops.find_shipment_or_404(db, payload.tracking_number.strip())
    ops.subscribe_phone(db, shipment, payload.phone_number.strip(), messenger)
    return {"message": "Successfully subscribed to WhatsApp notifications", "trackingNumber": shipment.tracking_number}


@router.post('/tracking-update')
def tracking_update(payload: TrackingUpdatePayload = Depends(validated(TrackingUpdatePayload, rules.WHATSAPP_TRACKING)),
                    _: User = Depends(get_current_user), messenger: WhatsAppClient = Depends(get_messenger)):
    response = _send(messenger.send_tracking_update, payload.phone_number, payload.tracking_number,
                     payload.status, payload.location, payload.description)
    return {"message": "Tracking update sent successfully", "response": response}


@router.post('/payment-confirmation')
def payment_confirmation(payload: PaymentConfirmationPayload = Depends(validated(PaymentConfirmationPayload, rules.WHATSAPP_PAYMENT)),
                         _: User = Depends(get_current_user), messenger: WhatsAppClient = Depends(get_messenger)):
    response = _send(messenger.send_payment_confirmation, payload.phone_number, payload.invoice_number,
                     payload.amount, payload.currency, payload.payment_date)
    return {"message": "Payment confirmation sent successfully", "response": response}


@router.post('/delivery-notification')
def delivery_notification(payload: DeliveryNotificationPayload = Depends(validated(DeliveryNotificationPayload, rules.WHATSAPP_DELIVERY)),
                          _: User = Depends(get_current_user), messenger: WhatsAppClient = Depends(get_messenger)):
    response = _send(messenger.send_delivery_notification, payload.phone_number, payload.tracking_number,
                     payload.recipient_name, payload.delivery_time)
    return {"message": "Delivery notification sent successfully", "response": response}


@router.get('/status')
def whatsapp_status(_: User = Depends(require_admin), messenger: WhatsAppClient = Depends(get_messenger)):
    return {"message": "WhatsApp status retrieved successfully", "status": messenger.status()}
