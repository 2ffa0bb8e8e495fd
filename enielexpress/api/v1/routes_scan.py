import json
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from enielexpress.api import validation as rules
from enielexpress.api.deps import get_current_user, get_db, get_messenger
from enielexpress.api.validation import validated
from enielexpress.api.v1.schemas import LocationScan, ScanPayload, ShipmentRead
from enielexpress.core.errors import ValidationError
from enielexpress.db.models import User
from enielexpress.services import shipments as ops
from enielexpress.services.scan import extract_tracking_number
from enielexpress.services.whatsapp import WhatsAppClient

router = APIRouter()  # main.py mounts at /api/scan

QR_RENDERER = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data="
BARCODE_RENDERER = "https://api.barcode.com/v1/barcode?data={data}&type=code128"


@router.post('/process')
def process_scan(payload: ScanPayload = Depends(validated(ScanPayload, rules.SCAN)), db: Session = Depends(get_db)):
    tracking_number = extract_tracking_number(payload.code, payload.code_type)
    if not tracking_number:
        raise ValidationError('Could not extract tracking number from code')
    shipment = ops.find_shipment_or_404(db, tracking_number)
    return {
        "message": "Code processed successfully",
        "trackingNumber": tracking_number,
        "shipment": ShipmentRead.model_validate(shipment),
    }


@router.post('/update-location')
def update_location(payload: LocationScan = Depends(validated(LocationScan, rules.LOCATION_SCAN)),
                    db: Session = Depends(get_db), user: User = Depends(get_current_user),
                    messenger: WhatsAppClient = Depends(get_messenger)) -> Any:
    shipment = ops.find_shipment_or_404(db, payload.tracking_number.strip())
    location = payload.location.strip()
    shipment = ops.record_status_update(
        db, shipment,
        payload.status,
        location,
        payload.description or f"Scanned at {location}",
        user, messenger,
    )
    return {"message": "Shipment location updated successfully", "shipment": ShipmentRead.model_validate(shipment)}


@router.get('/qr/{tracking_number}')
def qr_code(tracking_number: str, db: Session = Depends(get_db)):
    shipment = ops.find_shipment_or_404(db, tracking_number)
    qr_data = {
        "trackingNumber": tracking_number,
        "origin": shipment.origin,
        "destination": shipment.destination,
        "status": shipment.status.value,
    }
    return {
        "message": "QR code data generated successfully",
        "qrData": qr_data,
        "qrUrl": QR_RENDERER + quote(json.dumps(qr_data, separators=(",", ":")), safe=""),
    }


@router.get('/barcode/{tracking_number}')
def barcode(tracking_number: str, db: Session = Depends(get_db)):
    ops.find_shipment_or_404(db, tracking_number)
    return {
        "message": "Barcode data generated successfully",
        "barcodeData": tracking_number,
        "barcodeUrl": BARCODE_RENDERER.format(data=quote(tracking_number, safe="")),
    }
