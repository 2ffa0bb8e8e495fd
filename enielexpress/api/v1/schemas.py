from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from enielexpress.db.models import (
    InvoiceStatus, ItemCategory, PackageType, PaymentMethod, PaymentStatus,
    ServiceType, ShipmentStatus, UserRole,
)


class CamelModel(BaseModel):
    # wire format is camelCase; snake_case is accepted too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# auth

class RegisterPayload(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    phone: Optional[str] = None

class LoginPayload(CamelModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None

class ProfileUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

class PasswordChange(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None

class ForgotPassword(CamelModel):
    email: Optional[EmailStr] = None

class ResetPassword(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None

class UserRead(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


# shipments

class Dimensions(CamelModel):
    length: Optional[float] = Field(default=None, ge=0)
    width: Optional[float] = Field(default=None, ge=0)
    height: Optional[float] = Field(default=None, ge=0)

class ShipmentCreate(CamelModel):
    sender_name: Optional[str] = None
    sender_phone: Optional[str] = None
    sender_email: Optional[EmailStr] = None
    sender_address: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_email: Optional[EmailStr] = None
    recipient_address: Optional[str] = None
    package_description: Optional[str] = None
    package_weight: float = Field(ge=0)
    package_value: float = Field(ge=0)
    package_dimensions: Optional[Dimensions] = None
    package_type: PackageType = PackageType.PARCEL
    service_type: ServiceType
    origin: Optional[str] = None
    destination: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    notes: Optional[str] = None

class StatusUpdate(CamelModel):
    status: ShipmentStatus
    location: Optional[str] = None
    description: Optional[str] = None

class SubscribePayload(CamelModel):
    phone_number: Optional[str] = None

class ShipmentRead(CamelModel):
    id: str
    tracking_number: str
    sender_name: str
    sender_phone: str
    sender_email: str
    sender_address: str
    recipient_name: str
    recipient_phone: str
    recipient_email: str
    recipient_address: str
    package_description: str
    package_weight: float
    package_value: float
    package_dimensions: Optional[dict] = None
    package_type: PackageType
    service_type: ServiceType
    origin: str
    destination: str
    status: ShipmentStatus
    tracking_history: List[dict] = []
    estimated_delivery: datetime
    actual_delivery: Optional[datetime] = None
    payment_status: PaymentStatus
    invoice_id: Optional[str] = None
    notification_phone_numbers: List[str] = []
    notes: Optional[str] = None
    created_by: str
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ShipmentDetail(ShipmentRead):
    # newest first
    history: List[dict] = []

class QuoteRequest(CamelModel):
    weight: float = Field(ge=0)
    dimensions: Optional[Dimensions] = None
    service_type: ServiceType = ServiceType.STANDARD
    distance: float = Field(default=0, ge=0)


# cargo items

class ItemCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: ItemCategory = ItemCategory.OTHER
    weight: float = Field(ge=0)
    dimensions: Optional[Dimensions] = None
    value: float = Field(ge=0)
    currency: str = 'USD'
    fragile: bool = False
    hazardous: bool = False
    requires_special_handling: bool = False
    special_handling_instructions: Optional[str] = None
    barcode: Optional[str] = None

class ItemRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    category: ItemCategory
    weight: float
    dimensions: Optional[dict] = None
    volume: float = 0
    value: float
    currency: str
    fragile: bool
    hazardous: bool
    requires_special_handling: bool
    special_handling_instructions: Optional[str] = None
    barcode: Optional[str] = None
    shipment_id: str
    created_by: str
    created_at: Optional[datetime] = None


# invoices

class InvoiceItemIn(CamelModel):
    description: Optional[str] = None
    quantity: int = Field(ge=1, validation_alias=AliasChoices('quantity', 'qty'))
    price: float = Field(ge=0)

class InvoiceCreate(CamelModel):
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    items: Optional[List[InvoiceItemIn]] = None
    # client figures are accepted but always recomputed from items
    subtotal: Optional[float] = Field(default=None, ge=0)
    tax: Optional[float] = Field(default=None, ge=0)
    total: Optional[float] = Field(default=None, ge=0)
    currency: str = 'USD'
    due_date: Optional[datetime] = None
    shipment_id: Optional[str] = None
    notes: Optional[str] = None

class InvoiceUpdate(CamelModel):
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    items: Optional[List[InvoiceItemIn]] = None
    subtotal: Optional[float] = Field(default=None, ge=0)
    tax: Optional[float] = Field(default=None, ge=0)
    total: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None

class InvoiceRead(CamelModel):
    id: str
    invoice_number: str
    customer_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: str
    items: List[dict] = []
    subtotal: float
    tax: float
    total: float
    currency: str
    due_date: datetime
    issue_date: Optional[datetime] = None
    status: InvoiceStatus
    payment_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = None
    transfer_proof: Optional[str] = None
    shipment_id: Optional[str] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# payments

class PaymentInit(CamelModel):
    invoice_id: Optional[str] = None

class PaymentVerify(CamelModel):
    reference: Optional[str] = None
    invoice_id: Optional[str] = None

class BankTransferReview(CamelModel):
    verified: bool = False
    notes: Optional[str] = None


# scan

class ScanPayload(CamelModel):
    code: Optional[str] = None
    code_type: Optional[Literal['qr', 'barcode', 'auto']] = Field(default=None, alias='type')

class LocationScan(CamelModel):
    tracking_number: Optional[str] = None
    location: Optional[str] = None
    status: Optional[ShipmentStatus] = None
    description: Optional[str] = None


# whatsapp

class MessagePayload(CamelModel):
    phone_number: Optional[str] = None
    message: Optional[str] = None

class WhatsAppSubscribe(CamelModel):
    phone_number: Optional[str] = None
    tracking_number: Optional[str] = None

class TrackingUpdatePayload(CamelModel):
    phone_number: Optional[str] = None
    tracking_number: Optional[str] = None
    status: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None

class PaymentConfirmationPayload(CamelModel):
    phone_number: Optional[str] = None
    invoice_number: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    currency: str = 'USD'
    payment_date: Optional[datetime] = None

class DeliveryNotificationPayload(CamelModel):
    phone_number: Optional[str] = None
    tracking_number: Optional[str] = None
    recipient_name: Optional[str] = None
    delivery_time: Optional[str] = None