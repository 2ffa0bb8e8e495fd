import pytest

from enielexpress.api import validation as rules
from enielexpress.api.validation import Rule, RulePipeline, is_phone, not_blank
from enielexpress.core.errors import ValidationError


def test_pipeline_collects_every_failing_field():
    pipeline = RulePipeline([
        Rule("sender_name", not_blank, "Sender name is required"),
        Rule("sender_phone", is_phone, "Please provide a valid phone number"),
    ])
    errors = pipeline.evaluate({"sender_name": " ", "sender_phone": "123"})
    assert errors == [
        {"field": "senderName", "message": "Sender name is required"},
        {"field": "senderPhone", "message": "Please provide a valid phone number"},
    ]


def test_first_failure_per_field_wins():
    errors = rules.REGISTER.evaluate({"first_name": None, "last_name": "L", "email": "a@b.co", "password": "x"})
    fields = [e["field"] for e in errors]
    assert fields == ["firstName", "password"]
    assert errors[1]["message"] == "Password must be at least 6 characters"


def test_optional_rules_skip_missing_values():
    assert rules.PROFILE_UPDATE.evaluate({"first_name": None, "last_name": None, "phone": None}) == []
    errors = rules.PROFILE_UPDATE.evaluate({"first_name": "", "phone": "abc"})
    assert [e["message"] for e in errors] == ["First name cannot be empty", "Please provide a valid phone number"]


def test_check_raises_aggregated_error_with_pipeline_message():
    with pytest.raises(ValidationError) as exc:
        rules.LOCATION_SCAN.check({"tracking_number": "", "location": None})
    assert exc.value.message == "Tracking number and location are required"
    assert len(exc.value.errors) == 2


@pytest.mark.parametrize("value,ok", [
    ("+2348012345678", True),
    ("08012345678", True),
    ("12345", False),
    ("+234-801-234", False),
    (None, False),
])
def test_phone_predicate(value, ok):
    assert is_phone(value) is ok


def test_tracking_number_must_be_alphanumeric():
    rules.TRACKING_NUMBER.check({"tracking_number": "ENX123456789"})
    with pytest.raises(ValidationError):
        rules.TRACKING_NUMBER.check({"tracking_number": "ENX-1"})
