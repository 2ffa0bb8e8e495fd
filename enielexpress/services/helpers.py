"""Stateless helpers: identifiers, cost/delivery estimates, pagination, money formatting."""
import math
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

SERVICE_DAYS = {"overnight": 1, "express": 2, "standard": 5, "international": 10}
SERVICE_MULTIPLIER = {"overnight": 3, "express": 2, "standard": 1, "international": 4}
CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "NGN": "₦"}


def now_utc() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def generate_tracking_number(now: Optional[datetime] = None) -> str:
    """ENX + last 6 digits of the epoch millis + 3 random digits.

    Uniqueness is not checked against the database.
    """
    now = now or datetime.now(timezone.utc)
    millis = str(int(now.timestamp() * 1000))
    return f"ENX{millis[-6:]}{random.randint(0, 999):03d}"


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"INV{now:%Y%m%d}{random.randint(0, 999):03d}"


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres (haversine)."""
    r = 6371
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return r * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_estimated_delivery(service_type: str, distance: float = 0, now: Optional[datetime] = None) -> datetime:
    days = SERVICE_DAYS.get(service_type, 5)
    # one extra day per full 1000 km
    if distance > 1000:
        days += int(distance // 1000)
    return (now or now_utc()) + timedelta(days=days)


def calculate_shipping_cost(weight: float, dimensions: Optional[dict], service_type: str, distance: float = 0) -> float:
    cost = 5.0
    if weight <= 1:
        cost += 5
    elif weight <= 5:
        cost += 10
    elif weight <= 10:
        cost += 20
    else:
        cost += 30 + (weight - 10) * 2

    if dimensions and dimensions.get("length") and dimensions.get("width") and dimensions.get("height"):
        volumetric = dimensions["length"] * dimensions["width"] * dimensions["height"] / 5000
        if volumetric > weight:
            cost += (volumetric - weight) * 2

    cost *= SERVICE_MULTIPLIER.get(service_type, 1)

    if distance > 100:
        cost += (distance / 100) * 2

    return round(cost, 2)


def paginate(page: int = 1, limit: int = 10) -> tuple[int, int]:
    """Return ``(limit, offset)`` for a 1-based page."""
    return limit, (page - 1) * limit


def pagination_response(data: Sequence[Any], page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "data": list(data),
        "pagination": {
            "currentPage": page,
            "totalPages": total_pages,
            "totalItems": total,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        },
    }


def format_currency(amount: float, currency: str = "USD") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    text = f"{abs(amount):,.2f}"
    sign = "-" if amount < 0 else ""
    if symbol:
        return f"{sign}{symbol}{text}"
    return f"{sign}{currency.upper()} {text}"
