from datetime import timedelta

import pytest

from enielexpress.db.models import (
    Invoice, InvoiceStatus, Item, PaymentMethod, ServiceType, Shipment, ShipmentStatus,
)
from enielexpress.services.helpers import now_utc


def _shipment(owner_id, **kw):
    data = dict(
        tracking_number="ENX123456001",
        sender_name="A", sender_phone="+2348011111111", sender_email="a@example.com", sender_address="x",
        recipient_name="B", recipient_phone="+2348022222222", recipient_email="b@example.com", recipient_address="y",
        package_description="Books", package_weight=1, package_value=10,
        service_type=ServiceType.STANDARD, origin="Lagos", destination="Abuja",
        estimated_delivery=now_utc() + timedelta(days=5), created_by=owner_id,
        tracking_history=[], notification_phone_numbers=[],
    )
    data.update(kw)
    return Shipment(**data)


def _invoice(owner_id, **kw):
    data = dict(
        invoice_number="INV20261019001", customer_id=owner_id, customer_name="C",
        customer_email="c@example.com", customer_phone="+2348012345678", customer_address="z",
        items=[{"description": "a", "quantity": 2, "price": 10}, {"description": "b", "quantity": 1, "price": 5}],
        due_date=now_utc() + timedelta(days=7), created_by=owner_id,
    )
    data.update(kw)
    return Invoice(**data)


def test_totals_recomputed_on_insert(db, customer):
    inv = _invoice(customer.id, subtotal=999, tax=999, total=999)
    db.add(inv)
    db.commit()
    db.refresh(inv)
    assert inv.subtotal == 25
    assert inv.tax == pytest.approx(2.5)
    assert inv.total == pytest.approx(27.5)
    assert [it["total"] for it in inv.items] == [20, 5]


def test_totals_follow_item_changes(db, customer):
    inv = _invoice(customer.id)
    db.add(inv)
    db.commit()
    inv.items = [{"description": "c", "quantity": 3, "price": 4}]
    db.commit()
    db.refresh(inv)
    assert inv.subtotal == 12
    assert inv.total == pytest.approx(inv.subtotal + inv.tax)
    assert inv.tax == pytest.approx(0.1 * inv.subtotal)


def test_totals_untouched_when_items_unchanged(db, customer):
    inv = _invoice(customer.id)
    db.add(inv)
    db.commit()
    inv.notes = "hello"
    inv.total = 1.0
    db.commit()
    db.refresh(inv)
    assert inv.total == 1.0


def test_pending_invoice_past_due_becomes_overdue(db, customer):
    inv = _invoice(customer.id, due_date=now_utc() - timedelta(days=1))
    db.add(inv)
    db.commit()
    db.refresh(inv)
    assert inv.status == InvoiceStatus.OVERDUE


def test_paid_invoice_never_overdue(db, customer):
    inv = _invoice(customer.id, due_date=now_utc() - timedelta(days=1))
    inv.mark_as_paid(PaymentMethod.CARD, reference="ref")
    db.add(inv)
    db.commit()
    db.refresh(inv)
    assert inv.status == InvoiceStatus.PAID
    assert not inv.is_overdue()
    assert inv.payment_reference == "ref"
    assert inv.payment_date is not None


def test_pending_verification_not_escalated(db, customer):
    inv = _invoice(customer.id, due_date=now_utc() - timedelta(days=1), status=InvoiceStatus.PENDING_VERIFICATION)
    db.add(inv)
    db.commit()
    db.refresh(inv)
    assert inv.status == InvoiceStatus.PENDING_VERIFICATION


def test_history_is_append_only(db, customer):
    s = _shipment(customer.id)
    s.add_tracking_update(ShipmentStatus.PACKAGE_RECEIVED, "Lagos", "received")
    db.add(s)
    db.commit()
    first = list(s.tracking_history)
    lengths = [len(first)]
    for status in (ShipmentStatus.IN_TRANSIT, ShipmentStatus.CUSTOMS, ShipmentStatus.OUT_FOR_DELIVERY):
        s.add_tracking_update(status, "Somewhere")
        db.commit()
        db.refresh(s)
        lengths.append(len(s.tracking_history))
    assert lengths == sorted(lengths) and lengths[-1] == 4
    assert s.tracking_history[0] == first[0]
    assert s.history_for_display()[0]["status"] == "Out for Delivery"


def test_delivered_sets_actual_delivery_only_then(db, customer):
    s = _shipment(customer.id)
    s.add_tracking_update(ShipmentStatus.IN_TRANSIT, "Lokoja")
    assert s.actual_delivery is None
    s.add_tracking_update("Delivered", "Abuja")
    assert s.status == ShipmentStatus.DELIVERED
    delivered_at = s.actual_delivery
    assert delivered_at is not None
    s.add_tracking_update(ShipmentStatus.EXCEPTION, "Abuja")
    assert s.actual_delivery == delivered_at


def test_update_without_status_keeps_delivery_time(db, customer):
    s = _shipment(customer.id)
    s.add_tracking_update(ShipmentStatus.DELIVERED, "Abuja")
    delivered_at = s.actual_delivery
    entry = s.add_tracking_update(None, "Returns desk", "Scanned at Returns desk")
    assert entry["status"] == "Delivered"
    assert s.status == ShipmentStatus.DELIVERED
    assert s.actual_delivery == delivered_at
    assert len(s.tracking_history) == 2


def test_subscribe_dedupes(db, customer):
    s = _shipment(customer.id)
    db.add(s)
    db.commit()
    assert s.add_notification_number("+2348033333333") is True
    assert s.add_notification_number("+2348033333333") is False
    db.commit()
    db.refresh(s)
    assert s.notification_phone_numbers == ["+2348033333333"]


def test_item_volume(db, customer):
    s = _shipment(customer.id)
    db.add(s)
    db.flush()
    item = Item(name="Box", weight=1, value=5, shipment_id=s.id, created_by=customer.id,
                dimensions={"length": 2, "width": 3, "height": 4})
    assert item.volume == 24
    assert Item(name="Flat", weight=1, value=5, dimensions={"length": 2}).volume == 0
