import logging
import time
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy import select
from sqlalchemy.orm import Session

from enielexpress.api import validation as rules
from enielexpress.api.deps import get_current_user, get_db, get_messenger, get_payment_gateway, require_admin
from enielexpress.api.validation import validated
from enielexpress.api.v1.schemas import BankTransferReview, InvoiceRead, PaymentInit, PaymentVerify
from enielexpress.core.auth import ensure_self_or_admin
from enielexpress.core.errors import (
    Conflict,
    PaymentVerificationFailed,
    ServiceUnavailable,
    ValidationError,
)
from enielexpress.db.models import Invoice, InvoiceStatus, PaymentMethod, User
from enielexpress.services import invoices as ops
from enielexpress.services.paystack import PaymentGatewayError, PaystackClient, to_minor_units
from enielexpress.services.storage import read_upload, save_bytes
from enielexpress.services.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)

router = APIRouter()  # main.py mounts at /api/payments


@router.post('/initialize')
def initialize_payment(payload: PaymentInit = Depends(validated(PaymentInit, rules.PAYMENT)),
                       db: Session = Depends(get_db), user: User = Depends(get_current_user),
                       gateway: PaystackClient = Depends(get_payment_gateway)) -> Any:
    invoice = ops.get_invoice_or_404(db, payload.invoice_id)
    ops.ensure_unpaid(invoice)

    reference = f"ENX{int(time.time() * 1000)}"
    try:
        data = gateway.initialize(invoice.customer_email, invoice.total, reference, invoice.currency)
    except PaymentGatewayError as e:
        logger.error("Paystack initialize failed for %s: %s", invoice.invoice_number, e)
        raise ServiceUnavailable('Payment initialization failed', details=e.payload)

    return {
        "message": "Payment initialized",
        "reference": data.get("reference", reference),
        "authorizationUrl": data.get("authorization_url"),
        "accessCode": data.get("access_code"),
    }


@router.post('/verify')
def verify_payment(payload: PaymentVerify = Depends(validated(PaymentVerify, rules.PAYMENT_VERIFY)),
                   db: Session = Depends(get_db),
                   gateway: PaystackClient = Depends(get_payment_gateway),
                   messenger: WhatsAppClient = Depends(get_messenger)) -> Any:
    try:
        data = gateway.verify(payload.reference)
    except PaymentGatewayError as e:
        raise PaymentVerificationFailed(details=e.payload or {"error": str(e)})
    if data.get("status") != "success":
        raise PaymentVerificationFailed(details=data)

    invoice = ops.get_invoice_or_404(db, payload.invoice_id)
    ops.ensure_unpaid(invoice)
    amount = data.get("amount")
    if amount is not None and amount < to_minor_units(invoice.total):
        raise PaymentVerificationFailed('Payment amount does not cover the invoice total', details=data)

    invoice = ops.mark_invoice_paid(db, invoice, PaymentMethod.CARD, messenger, reference=payload.reference)
    return {"message": "Payment verified successfully", "invoice": InvoiceRead.model_validate(invoice)}


@router.post('/bank-transfer')
def bank_transfer(invoice_id: Optional[str] = Form(None, alias='invoiceId'),
                  transfer_proof: Optional[UploadFile] = File(None, alias='transferProof'),
                  db: Session = Depends(get_db)):
    if transfer_proof is None or not transfer_proof.filename:
        raise ValidationError('Please upload proof of transfer')
    content = read_upload(transfer_proof.file, transfer_proof.filename)
    rules.PAYMENT.check({"invoice_id": invoice_id})

    invoice = ops.get_invoice_or_404(db, invoice_id)
    ops.ensure_unpaid(invoice)

    invoice.transfer_proof = save_bytes(content, transfer_proof.filename)
    invoice.payment_method = PaymentMethod.BANK
    invoice.status = InvoiceStatus.PENDING_VERIFICATION
    db.commit()
    db.refresh(invoice)
    logger.info("Transfer proof for %s stored at %s", invoice.invoice_number, invoice.transfer_proof)
    return {
        "message": "Proof of transfer submitted successfully. Your payment will be verified shortly.",
        "invoice": InvoiceRead.model_validate(invoice),
    }


@router.get('/history/{user_id}')
def payment_history(user_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ensure_self_or_admin(user_id, user)
    stmt = select(Invoice).where(Invoice.customer_id == user_id).order_by(Invoice.created_at.desc())
    return [InvoiceRead.model_validate(i) for i in db.execute(stmt).scalars().all()]


@router.put('/verify-bank-transfer/{invoice_id}')
def verify_bank_transfer(invoice_id: str, payload: BankTransferReview, db: Session = Depends(get_db),
                         _: User = Depends(require_admin),
                         messenger: WhatsAppClient = Depends(get_messenger)) -> Any:
    invoice = ops.get_invoice_or_404(db, invoice_id)
    if invoice.status == InvoiceStatus.PAID:
        raise Conflict('Invoice is already paid')

    if payload.verified:
        invoice = ops.mark_invoice_paid(db, invoice, invoice.payment_method or PaymentMethod.BANK,
                                        messenger, admin_notes=payload.notes)
    else:
        invoice.status = InvoiceStatus.PAYMENT_REJECTED
        invoice.admin_notes = payload.notes
        db.commit()
        db.refresh(invoice)
    outcome = 'verified' if payload.verified else 'rejected'
    logger.info("Bank transfer for %s %s", invoice.invoice_number, outcome)
    return {"message": f"Bank transfer {outcome} successfully", "invoice": InvoiceRead.model_validate(invoice)}
