import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from enielexpress.api import validation as rules
from enielexpress.api.deps import get_current_user, get_db, require_admin
from enielexpress.api.validation import validated
from enielexpress.api.v1.schemas import InvoiceCreate, InvoiceRead, InvoiceUpdate
from enielexpress.core.auth import ensure_owner_or_admin, ensure_self_or_admin
from enielexpress.db.models import Invoice, InvoiceStatus, User
from enielexpress.services import invoices as ops
from enielexpress.services.helpers import (
    format_currency,
    generate_invoice_number,
    now_utc,
    paginate,
    pagination_response,
    to_naive_utc,
)

logger = logging.getLogger(__name__)

router = APIRouter()  # main.py mounts at /api/invoices

ITEM_FIELDS = {'description', 'quantity', 'price'}


def _items(payload_items) -> list:
    return [it.model_dump(include=ITEM_FIELDS) for it in payload_items]


@router.get('')
def list_invoices(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100),
                  status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
                  db: Session = Depends(get_db), _: User = Depends(require_admin)):
    stmt = select(Invoice)
    count_stmt = select(func.count()).select_from(Invoice)
    if status_filter is not None:
        stmt = stmt.where(Invoice.status == status_filter)
        count_stmt = count_stmt.where(Invoice.status == status_filter)
    size, offset = paginate(page, limit)
    rows = db.execute(stmt.order_by(Invoice.created_at.desc()).offset(offset).limit(size)).scalars().all()
    total = db.execute(count_stmt).scalar_one()
    return pagination_response([InvoiceRead.model_validate(i) for i in rows], page, limit, total)


@router.get('/stats')
def invoice_stats(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    rows = db.execute(
        select(Invoice.status, func.count(), func.coalesce(func.sum(Invoice.total), 0.0)).group_by(Invoice.status)
    ).all()
    found = {s: (n, amount) for s, n, amount in rows}
    by_status = {
        s.value: {"count": found.get(s, (0, 0.0))[0], "total": round(found.get(s, (0, 0.0))[1], 2)}
        for s in InvoiceStatus
    }
    return {
        "total": sum(v["count"] for v in by_status.values()),
        "revenue": by_status[InvoiceStatus.PAID.value]["total"],
        "byStatus": by_status,
    }


@router.get('/overdue')
def overdue_invoices(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    # includes pending invoices no flush has escalated yet
    stmt = (
        select(Invoice)
        .where(Invoice.due_date < now_utc(), Invoice.status != InvoiceStatus.PAID)
        .order_by(Invoice.due_date)
    )
    return [InvoiceRead.model_validate(i) for i in db.execute(stmt).scalars().all()]


@router.get('/user/{user_id}')
def user_invoices(user_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ensure_self_or_admin(user_id, user)
    stmt = select(Invoice).where(Invoice.customer_id == user_id).order_by(Invoice.created_at.desc())
    return [InvoiceRead.model_validate(i) for i in db.execute(stmt).scalars().all()]


@router.get('/{invoice_id}')
def get_invoice(invoice_id: str, db: Session = Depends(get_db)):
    return InvoiceRead.model_validate(ops.get_invoice_or_404(db, invoice_id))


@router.post('', status_code=status.HTTP_201_CREATED)
def create_invoice(payload: InvoiceCreate = Depends(validated(InvoiceCreate, rules.INVOICE_CREATE)),
                   db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Any:
    invoice = Invoice(
        invoice_number=generate_invoice_number(),
        customer_id=payload.customer_id or user.id,
        customer_name=payload.customer_name.strip(),
        customer_email=str(payload.customer_email).lower(),
        customer_phone=payload.customer_phone.strip(),
        customer_address=payload.customer_address.strip(),
        items=_items(payload.items),
        currency=payload.currency.upper(),
        due_date=to_naive_utc(payload.due_date),
        shipment_id=payload.shipment_id,
        notes=payload.notes,
        status=InvoiceStatus.PENDING,
        created_by=user.id,
    )
    db.add(invoice)
    db.flush()
    ops.link_shipment(db, invoice)
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s created for %s", invoice.invoice_number, format_currency(invoice.total, invoice.currency))
    return {"message": "Invoice created successfully", "invoice": InvoiceRead.model_validate(invoice)}


@router.put('/{invoice_id}')
def update_invoice(invoice_id: str,
                   payload: InvoiceUpdate = Depends(validated(InvoiceUpdate, rules.INVOICE_UPDATE)),
                   db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Any:
    invoice = ops.get_invoice_or_404(db, invoice_id)
    ensure_owner_or_admin(invoice, user)
    # totals always follow the items
    changes = payload.model_dump(exclude_unset=True, exclude={'subtotal', 'tax', 'total', 'items'})
    for k, v in changes.items():
        if k == 'due_date':
            v = to_naive_utc(v)
        setattr(invoice, k, v)
    if payload.items is not None:
        invoice.items = _items(payload.items)
    invoice.updated_by = user.id
    db.commit()
    db.refresh(invoice)
    return {"message": "Invoice updated successfully", "invoice": InvoiceRead.model_validate(invoice)}


@router.delete('/{invoice_id}')
def delete_invoice(invoice_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    invoice = ops.get_invoice_or_404(db, invoice_id)
    ensure_owner_or_admin(invoice, user)
    ops.delete_invoice(db, invoice)
    return {"message": "Invoice deleted successfully"}


@router.post('/{invoice_id}/send-email')
def send_invoice_email(invoice_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    invoice = ops.get_invoice_or_404(db, invoice_id)
    ensure_owner_or_admin(invoice, user)
    # no mail transport is configured; dispatch is recorded only
    logger.info("Invoice %s queued for email to %s", invoice.invoice_number, invoice.customer_email)
    return {"message": "Invoice sent successfully", "invoice": InvoiceRead.model_validate(invoice)}


@router.get('/{invoice_id}/pdf')
def invoice_pdf(invoice_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    invoice = ops.get_invoice_or_404(db, invoice_id)
    ensure_owner_or_admin(invoice, user)
    return {
        "message": "PDF generated successfully",
        "pdfUrl": f"https://example.com/invoices/{invoice.invoice_number}.pdf",
    }
