import re
from datetime import datetime, timedelta, timezone

import pytest

from enielexpress.services.helpers import (
    calculate_distance,
    calculate_estimated_delivery,
    calculate_shipping_cost,
    format_currency,
    generate_invoice_number,
    generate_tracking_number,
    paginate,
    pagination_response,
    to_naive_utc,
)


def test_tracking_number_format():
    for _ in range(50):
        assert re.match(r"^ENX\d{6}\d{3}$", generate_tracking_number())


def test_tracking_number_uses_last_six_millis():
    now = datetime(2026, 10, 19, 12, 0, 0, 123000, tzinfo=timezone.utc)
    millis = str(int(now.timestamp() * 1000))
    assert generate_tracking_number(now)[3:9] == millis[-6:]


def test_invoice_number_format():
    now = datetime(2026, 3, 7, tzinfo=timezone.utc)
    number = generate_invoice_number(now)
    assert re.match(r"^INV20260307\d{3}$", number)


def test_estimated_delivery_by_service():
    base = datetime(2026, 1, 1)
    assert calculate_estimated_delivery("overnight", now=base) == base + timedelta(days=1)
    assert calculate_estimated_delivery("express", now=base) == base + timedelta(days=2)
    assert calculate_estimated_delivery("international", now=base) == base + timedelta(days=10)
    assert calculate_estimated_delivery("unknown", now=base) == base + timedelta(days=5)


def test_estimated_delivery_adds_a_day_per_thousand_km():
    base = datetime(2026, 1, 1)
    assert calculate_estimated_delivery("standard", 2500, now=base) == base + timedelta(days=7)
    assert calculate_estimated_delivery("standard", 1000, now=base) == base + timedelta(days=5)


@pytest.mark.parametrize("weight,service,expected", [
    (0.5, "standard", 10.0),
    (3, "express", 30.0),
    (8, "overnight", 75.0),
    (12, "international", 156.0),
])
def test_shipping_cost_weight_bands(weight, service, expected):
    assert calculate_shipping_cost(weight, None, service) == expected


def test_shipping_cost_volumetric_and_distance():
    # volumetric 50*40*30/5000 = 12kg > 2kg actual
    dims = {"length": 50, "width": 40, "height": 30}
    assert calculate_shipping_cost(2, dims, "standard") == 35.0
    assert calculate_shipping_cost(0.5, None, "standard", distance=500) == 20.0


def test_distance_lagos_abuja_roughly():
    d = calculate_distance(6.5244, 3.3792, 9.0765, 7.3986)
    assert 500 < d < 560
    assert calculate_distance(1, 1, 1, 1) == 0


def test_paginate_and_response():
    assert paginate(1, 10) == (10, 0)
    assert paginate(3, 20) == (20, 40)
    body = pagination_response([1, 2], page=2, limit=2, total=5)
    assert body["data"] == [1, 2]
    assert body["pagination"] == {
        "currentPage": 2, "totalPages": 3, "totalItems": 5, "hasNextPage": True, "hasPrevPage": True,
    }


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(27.5, "NGN") == "₦27.50"
    assert format_currency(-3, "eur") == "-€3.00"
    assert format_currency(10, "KES") == "KES 10.00"


def test_to_naive_utc():
    aware = datetime(2026, 1, 1, 13, 0, tzinfo=timezone(timedelta(hours=1)))
    assert to_naive_utc(aware) == datetime(2026, 1, 1, 12, 0)
    assert to_naive_utc(None) is None
