"""Declarative per-route field rules run before a handler body.

Pydantic models already enforce presence and types; a ``RulePipeline`` adds
the format constraints (phone numbers, trimmed non-empty strings, ...) as an
ordered list of ``(field, predicate, message)`` rules. Every failing rule is
collected so the client gets one aggregated 400 response.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Type

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from enielexpress.core.errors import ValidationError

PHONE_RE = re.compile(r"^\+?[0-9]{10,15}$")
ALNUM_RE = re.compile(r"^[A-Za-z0-9]+$")

_MISSING = object()


def not_blank(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_phone(value: Any) -> bool:
    return isinstance(value, str) and bool(PHONE_RE.match(value.strip()))


def is_alphanumeric(value: Any) -> bool:
    return isinstance(value, str) and bool(ALNUM_RE.match(value.strip()))


def max_length(n: int) -> Callable[[Any], bool]:
    return lambda value: isinstance(value, str) and len(value.strip()) <= n


@dataclass(frozen=True)
class Rule:
    field: str
    predicate: Callable[[Any], bool]
    message: str
    optional: bool = False


class RulePipeline:
    def __init__(self, rules: Iterable[Rule], message: str = "Validation failed"):
        self.rules = list(rules)
        self.message = message

    def evaluate(self, data: dict) -> list[dict]:
        errors = []
        failed = set()
        for rule in self.rules:
            # first failure per field wins, like a validator chain
            if rule.field in failed:
                continue
            value = data.get(rule.field, _MISSING)
            if rule.optional and (value is _MISSING or value is None):
                continue
            if value is _MISSING or not rule.predicate(value):
                errors.append({"field": to_camel(rule.field), "message": rule.message})
                failed.add(rule.field)
        return errors

    def check(self, data: dict) -> None:
        errors = self.evaluate(data)
        if errors:
            raise ValidationError(self.message, errors=errors)


def validated(model: Type[BaseModel], pipeline: RulePipeline):
    """Dependency that parses ``model`` from the body and runs ``pipeline`` on it."""
    def _dependency(payload: model) -> model:
        pipeline.check(payload.model_dump())
        return payload
    return _dependency


def required(field: str, label: str) -> Rule:
    return Rule(field, not_blank, f"{label} is required")


def phone(field: str, optional: bool = False) -> Rule:
    return Rule(field, is_phone, "Please provide a valid phone number", optional=optional)


def present(value: Any) -> bool:
    return value is not None


def non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def min_length(n: int) -> Callable[[Any], bool]:
    return lambda value: isinstance(value, str) and len(value) >= n


REGISTER = RulePipeline([
    required("first_name", "First name"),
    Rule("first_name", max_length(50), "First name cannot exceed 50 characters"),
    required("last_name", "Last name"),
    Rule("last_name", max_length(50), "Last name cannot exceed 50 characters"),
    Rule("email", present, "Email is required"),
    Rule("password", not_blank, "Password is required"),
    Rule("password", min_length(6), "Password must be at least 6 characters"),
    phone("phone", optional=True),
])

LOGIN = RulePipeline([
    Rule("email", present, "Email is required"),
    Rule("password", not_blank, "Password is required"),
])

PROFILE_UPDATE = RulePipeline([
    Rule("first_name", not_blank, "First name cannot be empty", optional=True),
    Rule("first_name", max_length(50), "First name cannot exceed 50 characters", optional=True),
    Rule("last_name", not_blank, "Last name cannot be empty", optional=True),
    Rule("last_name", max_length(50), "Last name cannot exceed 50 characters", optional=True),
    phone("phone", optional=True),
])

PASSWORD_CHANGE = RulePipeline([
    Rule("current_password", not_blank, "Current password is required"),
    Rule("new_password", not_blank, "New password is required"),
    Rule("new_password", min_length(6), "New password must be at least 6 characters"),
])

FORGOT_PASSWORD = RulePipeline([Rule("email", present, "Email is required")])

RESET_PASSWORD = RulePipeline([
    required("token", "Token"),
    Rule("new_password", not_blank, "New password is required"),
    Rule("new_password", min_length(6), "New password must be at least 6 characters"),
])

SHIPMENT_CREATE = RulePipeline([
    required("sender_name", "Sender name"),
    required("sender_phone", "Sender phone"),
    phone("sender_phone"),
    Rule("sender_email", present, "Sender email is required"),
    required("sender_address", "Sender address"),
    required("recipient_name", "Recipient name"),
    required("recipient_phone", "Recipient phone"),
    phone("recipient_phone"),
    Rule("recipient_email", present, "Recipient email is required"),
    required("recipient_address", "Recipient address"),
    required("package_description", "Package description"),
    required("origin", "Origin"),
    required("destination", "Destination"),
])

STATUS_UPDATE = RulePipeline([required("location", "Location")])

SUBSCRIBE = RulePipeline([
    required("phone_number", "Phone number"),
    phone("phone_number"),
], message="Phone number is required")

INVOICE_CREATE = RulePipeline([
    required("customer_name", "Customer name"),
    Rule("customer_email", present, "Customer email is required"),
    required("customer_phone", "Customer phone"),
    phone("customer_phone"),
    required("customer_address", "Customer address"),
    Rule("items", non_empty_list, "At least one item is required"),
    Rule("due_date", present, "Due date must be a valid date"),
])

INVOICE_UPDATE = RulePipeline([
    Rule("customer_name", not_blank, "Customer name cannot be empty", optional=True),
    phone("customer_phone", optional=True),
    Rule("items", non_empty_list, "At least one item is required", optional=True),
])

PAYMENT = RulePipeline([required("invoice_id", "Invoice ID")])

PAYMENT_VERIFY = RulePipeline([
    required("reference", "Payment reference"),
    required("invoice_id", "Invoice ID"),
])

SCAN = RulePipeline([required("code", "Code")], message="Code is required")

LOCATION_SCAN = RulePipeline([
    required("tracking_number", "Tracking number"),
    required("location", "Location"),
], message="Tracking number and location are required")

WHATSAPP_SEND = RulePipeline([
    required("phone_number", "Phone number"),
    required("message", "Message"),
], message="Phone number and message are required")

WHATSAPP_SUBSCRIBE = RulePipeline([
    required("phone_number", "Phone number"),
    required("tracking_number", "Tracking number"),
], message="Phone number and tracking number are required")

WHATSAPP_TRACKING = RulePipeline([
    required("phone_number", "Phone number"),
    required("tracking_number", "Tracking number"),
    required("status", "Status"),
    required("location", "Location"),
], message="Phone number, tracking number, status, and location are required")

WHATSAPP_PAYMENT = RulePipeline([
    required("phone_number", "Phone number"),
    required("invoice_number", "Invoice number"),
    Rule("amount", present, "Amount is required"),
], message="Phone number, invoice number, and amount are required")

WHATSAPP_DELIVERY = RulePipeline([
    required("phone_number", "Phone number"),
    required("tracking_number", "Tracking number"),
    required("recipient_name", "Recipient name"),
], message="Phone number, tracking number, and recipient name are required")

TRACKING_NUMBER = RulePipeline([
    Rule("tracking_number", is_alphanumeric, "Tracking number must be alphanumeric"),
])
