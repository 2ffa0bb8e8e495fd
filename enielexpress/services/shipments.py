"""Shipment operations shared by the tracking, scan and WhatsApp routes."""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from enielexpress.core.errors import NotFound
from enielexpress.db.models import Shipment, ShipmentStatus, User
from enielexpress.services.helpers import calculate_estimated_delivery, generate_tracking_number, to_naive_utc
from enielexpress.services.notify import notify
from enielexpress.services.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)

RECEIVED_DESCRIPTION = 'Package has been received at the origin facility'
RECEIVED_NOTICE = 'Your package has been received and is being processed'


def find_shipment(db: Session, tracking_number: str) -> Optional[Shipment]:
    return db.execute(select(Shipment).where(Shipment.tracking_number == tracking_number)).scalar_one_or_none()


def find_shipment_or_404(db: Session, tracking_number: str) -> Shipment:
    shipment = find_shipment(db, tracking_number)
    if not shipment:
        raise NotFound('Shipment not found')
    return shipment


def create_shipment(db: Session, data: dict, creator: User, messenger: WhatsAppClient) -> Shipment:
    """Persist a new shipment seeded with its "Package Received" history entry."""
    data = dict(data)
    if data.get('estimated_delivery'):
        data['estimated_delivery'] = to_naive_utc(data['estimated_delivery'])
    else:
        data['estimated_delivery'] = calculate_estimated_delivery(data['service_type'])
    shipment = Shipment(
        tracking_number=generate_tracking_number(),
        tracking_history=[],
        notification_phone_numbers=[],
        created_by=creator.id,
        **data,
    )
    shipment.add_tracking_update(ShipmentStatus.PACKAGE_RECEIVED, shipment.origin, RECEIVED_DESCRIPTION)
    db.add(shipment)
    db.commit()
    db.refresh(shipment)
    logger.info("Shipment %s created by %s", shipment.tracking_number, creator.id)

    notify(messenger.send_tracking_update, shipment.sender_phone, shipment.tracking_number,
           ShipmentStatus.PACKAGE_RECEIVED.value, shipment.origin, RECEIVED_NOTICE)
    return shipment


def record_status_update(db: Session, shipment: Shipment, status, location: str,
                         description: Optional[str], actor: User, messenger: WhatsAppClient) -> Shipment:
    """Append a history entry, persist, then notify the recipient and every subscriber."""
    shipment.add_tracking_update(status, location, description)
    shipment.updated_by = actor.id
    db.commit()
    db.refresh(shipment)
    logger.info("Shipment %s -> %s at %s", shipment.tracking_number, shipment.status.value, location)

    recipients = [shipment.recipient_phone]
    recipients += [p for p in (shipment.notification_phone_numbers or []) if p not in recipients]
    for phone_number in recipients:
        notify(messenger.send_tracking_update, phone_number, shipment.tracking_number,
               shipment.status.value, location, description)
    return shipment


def subscribe_phone(db: Session, shipment: Shipment, phone_number: str, messenger: WhatsAppClient) -> bool:
    """Add ``phone_number`` to the shipment's notification list; returns False if already there."""
    added = shipment.add_notification_number(phone_number)
    if added:
        db.commit()
    notify(messenger.send_subscription_confirmation, phone_number, shipment.tracking_number)
    return added
