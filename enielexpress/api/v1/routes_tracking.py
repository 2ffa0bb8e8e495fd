from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from enielexpress.api import validation as rules
from enielexpress.api.deps import get_current_user, get_db, get_messenger, require_admin
from enielexpress.api.validation import validated
from enielexpress.api.v1.schemas import (
    ItemCreate,
    ItemRead,
    QuoteRequest,
    ShipmentCreate,
    ShipmentDetail,
    ShipmentRead,
    StatusUpdate,
    SubscribePayload,
)
from enielexpress.core.auth import ensure_owner_or_admin, ensure_self_or_admin
from enielexpress.db.models import Item, Shipment, ShipmentStatus, User
from enielexpress.services import shipments as ops
from enielexpress.services.helpers import (
    calculate_estimated_delivery,
    calculate_shipping_cost,
    paginate,
    pagination_response,
)
from enielexpress.services.whatsapp import WhatsAppClient

router = APIRouter()  # main.py mounts at /api/tracking


def _detail(shipment: Shipment) -> ShipmentDetail:
    return ShipmentDetail.model_validate(shipment).model_copy(update={"history": shipment.history_for_display()})


@router.get('')
def list_shipments(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100),
                   status_filter: Optional[ShipmentStatus] = Query(None, alias="status"),
                   db: Session = Depends(get_db), _: User = Depends(require_admin)):
    stmt = select(Shipment)
    count_stmt = select(func.count()).select_from(Shipment)
    if status_filter is not None:
        stmt = stmt.where(Shipment.status == status_filter)
        count_stmt = count_stmt.where(Shipment.status == status_filter)
    size, offset = paginate(page, limit)
    rows = db.execute(stmt.order_by(Shipment.created_at.desc()).offset(offset).limit(size)).scalars().all()
    total = db.execute(count_stmt).scalar_one()
    return pagination_response([ShipmentRead.model_validate(s) for s in rows], page, limit, total)


@router.get('/stats')
def shipment_stats(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    counts = dict(db.execute(select(Shipment.status, func.count()).group_by(Shipment.status)).all())
    by_status = {s.value: counts.get(s, 0) for s in ShipmentStatus}
    return {"total": sum(by_status.values()), "byStatus": by_status}


@router.get('/items/stats')
def item_stats(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    rows = db.execute(
        select(Item.category, func.count(), func.sum(Item.value), func.avg(Item.weight)).group_by(Item.category)
    ).all()
    return {
        category.value: {"count": n, "totalValue": total_value, "avgWeight": avg_weight}
        for category, n, total_value, avg_weight in rows
    }


@router.post('/quote')
def quote(payload: QuoteRequest):
    dims = payload.dimensions.model_dump() if payload.dimensions else None
    service = payload.service_type.value
    return {
        "cost": calculate_shipping_cost(payload.weight, dims, service, payload.distance),
        "estimatedDelivery": calculate_estimated_delivery(service, payload.distance),
        "serviceType": service,
    }


@router.get('/user/{user_id}')
def user_shipments(user_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ensure_self_or_admin(user_id, user)
    stmt = (
        select(Shipment)
        .where(or_(Shipment.created_by == user_id,
                   Shipment.sender_email == user.email,
                   Shipment.recipient_email == user.email))
        .order_by(Shipment.created_at.desc())
    )
    return [ShipmentRead.model_validate(s) for s in db.execute(stmt).scalars().all()]


@router.post('', status_code=status.HTTP_201_CREATED)
def create_shipment(payload: ShipmentCreate = Depends(validated(ShipmentCreate, rules.SHIPMENT_CREATE)),
                    db: Session = Depends(get_db), user: User = Depends(get_current_user),
                    messenger: WhatsAppClient = Depends(get_messenger)) -> Any:
    data = payload.model_dump()
    for k in ('sender_email', 'recipient_email'):
        data[k] = str(data[k]).lower()
    shipment = ops.create_shipment(db, data, user, messenger)
    return {"message": "Shipment created successfully", "shipment": ShipmentRead.model_validate(shipment)}


@router.get('/{tracking_number}')
def get_shipment(tracking_number: str, db: Session = Depends(get_db)):
    rules.TRACKING_NUMBER.check({"tracking_number": tracking_number})
    return _detail(ops.find_shipment_or_404(db, tracking_number))


@router.put('/{tracking_number}/status')
def update_status(tracking_number: str,
                  payload: StatusUpdate = Depends(validated(StatusUpdate, rules.STATUS_UPDATE)),
                  db: Session = Depends(get_db), user: User = Depends(get_current_user),
                  messenger: WhatsAppClient = Depends(get_messenger)) -> Any:
    shipment = ops.find_shipment_or_404(db, tracking_number)
    shipment = ops.record_status_update(db, shipment, payload.status, payload.location.strip(),
                                        payload.description, user, messenger)
    return {"message": "Shipment status updated successfully", "shipment": ShipmentRead.model_validate(shipment)}


@router.post('/{tracking_number}/subscribe')
def subscribe(tracking_number: str,
              payload: SubscribePayload = Depends(validated(SubscribePayload, rules.SUBSCRIBE)),
              db: Session = Depends(get_db), messenger: WhatsAppClient = Depends(get_messenger)):
    shipment = ops.find_shipment_or_404(db, tracking_number)
    ops.subscribe_phone(db, shipment, payload.phone_number.strip(), messenger)
    return {"message": "Successfully subscribed to WhatsApp notifications", "trackingNumber": tracking_number}


@router.post('/{tracking_number}/items', status_code=status.HTTP_201_CREATED)
def add_item(tracking_number: str, payload: ItemCreate, db: Session = Depends(get_db),
             user: User = Depends(get_current_user)):
    shipment = ops.find_shipment_or_404(db, tracking_number)
    ensure_owner_or_admin(shipment, user)
    item = Item(shipment_id=shipment.id, created_by=user.id, **payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return {"message": "Item added successfully", "item": ItemRead.model_validate(item)}


@router.get('/{tracking_number}/items')
def list_items(tracking_number: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    shipment = ops.find_shipment_or_404(db, tracking_number)
    ensure_owner_or_admin(shipment, user)
    return [ItemRead.model_validate(i) for i in shipment.cargo_items]
