from sqlalchemy.orm import Mapped, mapped_column, relationship, Session
from sqlalchemy import String, Text, Float, Boolean, DateTime, JSON, ForeignKey, Enum as SAEnum, event, inspect
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from enielexpress.core.config import settings
from enielexpress.db.session import Base
from enielexpress.services.helpers import now_utc


def new_id() -> str:
    return uuid.uuid4().hex


def _enum(cls):
    # persist the human-readable values ("Package Received"), not member names
    return SAEnum(cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32)


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"

class ShipmentStatus(str, Enum):
    PACKAGE_RECEIVED = "Package Received"
    IN_TRANSIT = "In Transit"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CUSTOMS = "Customs"
    EXCEPTION = "Exception"

class ServiceType(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"
    INTERNATIONAL = "international"

class PackageType(str, Enum):
    DOCUMENT = "document"
    PARCEL = "parcel"
    FREIGHT = "freight"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    PENDING_VERIFICATION = "pending_verification"
    PAYMENT_REJECTED = "payment_rejected"

class PaymentMethod(str, Enum):
    CARD = "card"
    BANK = "bank"
    CASH = "cash"

class ItemCategory(str, Enum):
    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    BOOKS = "books"
    DOCUMENTS = "documents"
    FOOD = "food"
    FURNITURE = "furniture"
    OTHER = "other"


class User(Base):
    __tablename__ = 'users'
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    role: Mapped[UserRole] = mapped_column(_enum(UserRole), default=UserRole.CUSTOMER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc, onupdate=now_utc)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Shipment(Base):
    __tablename__ = 'shipments'
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    tracking_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)

    sender_name: Mapped[str] = mapped_column(String(120), nullable=False)
    sender_phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    sender_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sender_address: Mapped[str] = mapped_column(Text, nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(120), nullable=False)
    recipient_phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    recipient_address: Mapped[str] = mapped_column(Text, nullable=False)

    package_description: Mapped[str] = mapped_column(Text, nullable=False)
    package_weight: Mapped[float] = mapped_column(Float, nullable=False)
    package_dimensions: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    package_value: Mapped[float] = mapped_column(Float, nullable=False)
    package_type: Mapped[PackageType] = mapped_column(_enum(PackageType), default=PackageType.PARCEL)
    service_type: Mapped[ServiceType] = mapped_column(_enum(ServiceType), nullable=False)

    origin: Mapped[str] = mapped_column(String(255), nullable=False)
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ShipmentStatus] = mapped_column(_enum(ShipmentStatus), default=ShipmentStatus.PACKAGE_RECEIVED)
    # append-only; entries are {status, location, date, description}
    tracking_history: Mapped[list] = mapped_column(JSON, default=list)
    estimated_delivery: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
    actual_delivery: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)

    payment_status: Mapped[PaymentStatus] = mapped_column(_enum(PaymentStatus), default=PaymentStatus.PENDING)
    invoice_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    notification_phone_numbers: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(ForeignKey('users.id'), nullable=False, index=True)
    updated_by: Mapped[Optional[str]] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc, onupdate=now_utc)

    cargo_items = relationship('Item', back_populates='shipment', cascade='all, delete-orphan')

    def add_tracking_update(self, status, location: str, description: Optional[str] = None) -> dict:
        """Append one history entry and move the shipment to ``status``.

        With ``status=None`` the current status is recorded again and
        ``actual_delivery`` is left alone.
        """
        stamp_delivery = status is not None
        status = ShipmentStatus(self.status if status is None else status)
        at = now_utc()
        entry = {
            "status": status.value,
            "location": location,
            "date": at.isoformat(),
            "description": description,
        }
        # reassign so the JSON column registers the change
        self.tracking_history = [*(self.tracking_history or []), entry]
        self.status = status
        if stamp_delivery and status == ShipmentStatus.DELIVERED:
            self.actual_delivery = at
        return entry

    def history_for_display(self) -> list:
        return list(reversed(self.tracking_history or []))

    def add_notification_number(self, phone_number: str) -> bool:
        numbers = list(self.notification_phone_numbers or [])
        if phone_number in numbers:
            return False
        self.notification_phone_numbers = [*numbers, phone_number]
        return True


class Invoice(Base):
    __tablename__ = 'invoices'
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    invoice_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)

    customer_id: Mapped[str] = mapped_column(ForeignKey('users.id'), nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(120), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    customer_address: Mapped[str] = mapped_column(Text, nullable=False)

    # entries are {description, quantity, price, total}
    items: Mapped[list] = mapped_column(JSON, default=list)
    subtotal: Mapped[float] = mapped_column(Float, default=0.0)
    tax: Mapped[float] = mapped_column(Float, default=0.0)
    total: Mapped[float] = mapped_column(Float, default=0.0)
    currency: Mapped[str] = mapped_column(String(3), default='USD')

    due_date: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
    issue_date: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)
    status: Mapped[InvoiceStatus] = mapped_column(_enum(InvoiceStatus), default=InvoiceStatus.PENDING, index=True)

    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(_enum(PaymentMethod), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    transfer_proof: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    shipment_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(ForeignKey('users.id'), nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc, onupdate=now_utc)

    def calculate_totals(self) -> "Invoice":
        items = [dict(it, total=it["price"] * it["quantity"]) for it in (self.items or [])]
        self.items = items
        self.subtotal = sum(it["total"] for it in items)
        self.tax = self.subtotal * settings.TAX_RATE
        self.total = self.subtotal + self.tax
        return self

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        return self.due_date < (now or now_utc()) and self.status != InvoiceStatus.PAID

    def mark_as_paid(self, method, reference: Optional[str] = None, paid_at: Optional[datetime] = None) -> None:
        self.status = InvoiceStatus.PAID
        self.payment_date = paid_at or now_utc()
        self.payment_method = PaymentMethod(method)
        if reference is not None:
            self.payment_reference = reference


class Item(Base):
    __tablename__ = 'items'
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    category: Mapped[ItemCategory] = mapped_column(_enum(ItemCategory), default=ItemCategory.OTHER)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    dimensions: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default='USD')
    fragile: Mapped[bool] = mapped_column(Boolean, default=False)
    hazardous: Mapped[bool] = mapped_column(Boolean, default=False)
    requires_special_handling: Mapped[bool] = mapped_column(Boolean, default=False)
    special_handling_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    shipment_id: Mapped[str] = mapped_column(ForeignKey('shipments.id', ondelete='CASCADE'), nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(ForeignKey('users.id'), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc, onupdate=now_utc)

    shipment = relationship('Shipment', back_populates='cargo_items')

    @property
    def volume(self) -> float:
        d = self.dimensions or {}
        if d.get("length") and d.get("width") and d.get("height"):
            return d["length"] * d["width"] * d["height"]
        return 0


def _items_changed(invoice: Invoice) -> bool:
    state = inspect(invoice)
    if state.pending or state.transient:
        return True
    return state.attrs["items"].history.has_changes()


@event.listens_for(Session, "before_flush")
def _apply_invoice_rules(session, flush_context, instances):
    for obj in list(session.new) + list(session.dirty):
        if not isinstance(obj, Invoice):
            continue
        if _items_changed(obj):
            obj.calculate_totals()
        if obj.status in (None, InvoiceStatus.PENDING) and obj.due_date and obj.is_overdue():
            obj.status = InvoiceStatus.OVERDUE
