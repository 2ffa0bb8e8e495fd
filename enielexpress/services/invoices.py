"""Invoice operations shared by the invoice and payment routes."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from enielexpress.core.errors import Conflict, NotFound
from enielexpress.db.models import Invoice, InvoiceStatus, PaymentStatus, Shipment
from enielexpress.services.notify import notify
from enielexpress.services.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)


def get_invoice_or_404(db: Session, invoice_id: str) -> Invoice:
    invoice = db.get(Invoice, invoice_id)
    if not invoice:
        raise NotFound('Invoice not found')
    return invoice


def ensure_unpaid(invoice: Invoice) -> None:
    if invoice.status == InvoiceStatus.PAID:
        raise Conflict('Invoice is already paid')


def link_shipment(db: Session, invoice: Invoice) -> None:
    if not invoice.shipment_id:
        return
    shipment = db.get(Shipment, invoice.shipment_id)
    if shipment:
        shipment.invoice_id = invoice.id
    else:
        logger.warning("Invoice %s references unknown shipment %s", invoice.invoice_number, invoice.shipment_id)


def delete_invoice(db: Session, invoice: Invoice) -> None:
    """Delete an unpaid invoice and clear the back-reference on its shipment."""
    if invoice.status == InvoiceStatus.PAID:
        raise Conflict('Cannot delete a paid invoice')
    if invoice.shipment_id:
        shipment = db.get(Shipment, invoice.shipment_id)
        if shipment and shipment.invoice_id == invoice.id:
            shipment.invoice_id = None
    db.delete(invoice)
    db.commit()
    logger.info("Invoice %s deleted", invoice.invoice_number)


def mark_invoice_paid(db: Session, invoice: Invoice, method, messenger: WhatsAppClient,
                      reference: Optional[str] = None, admin_notes: Optional[str] = None,
                      paid_at: Optional[datetime] = None) -> Invoice:
    """Mark ``invoice`` paid and propagate to its shipment in one commit, then notify the customer."""
    invoice.mark_as_paid(method, reference=reference, paid_at=paid_at)
    if admin_notes is not None:
        invoice.admin_notes = admin_notes
    if invoice.shipment_id:
        shipment = db.get(Shipment, invoice.shipment_id)
        if shipment:
            shipment.payment_status = PaymentStatus.PAID
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s paid via %s", invoice.invoice_number, invoice.payment_method.value)

    notify(messenger.send_payment_confirmation, invoice.customer_phone, invoice.invoice_number,
           invoice.total, invoice.currency, invoice.payment_date)
    return invoice
