import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from enielexpress.main import app
from enielexpress.api.deps import get_db, get_messenger, get_payment_gateway, get_rate_limiter
from enielexpress.core.config import settings
from enielexpress.core.ratelimit import RateLimiter
from enielexpress.db.session import Base
from enielexpress.db.models import User, UserRole
from enielexpress.security.utils import create_access_token, hash_password
from enielexpress.services.paystack import PaystackClient
from enielexpress.services.whatsapp import WhatsAppClient

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSession = sessionmaker(bind=engine, autoflush=False)

PASSWORD = "secret123"

SHIPMENT_BODY = {
    "senderName": "Ada Sender",
    "senderPhone": "+2348011111111",
    "senderEmail": "sender@example.com",
    "senderAddress": "1 Marina, Lagos",
    "recipientName": "Bola Recipient",
    "recipientPhone": "+2348022222222",
    "recipientEmail": "recipient@example.com",
    "recipientAddress": "2 Wuse, Abuja",
    "packageDescription": "Books",
    "packageWeight": 2.5,
    "packageValue": 40,
    "serviceType": "express",
    "origin": "Lagos",
    "destination": "Abuja",
}

INVOICE_BODY = {
    "customerName": "Ada Customer",
    "customerEmail": "ada@example.com",
    "customerPhone": "+2348012345678",
    "customerAddress": "1 Marina, Lagos",
    "items": [
        {"description": "Express shipping", "price": 10, "qty": 2},
        {"description": "Insurance", "price": 5, "qty": 1},
    ],
    "dueDate": "2099-01-01T00:00:00Z",
}


class FakeMessenger(WhatsAppClient):
    def __init__(self):
        super().__init__("http://whatsapp.test", "token", "12345")
        self.sent = []
        self.fail = False

    def send_message(self, phone_number, message):
        if self.fail:
            raise RuntimeError("WhatsApp is down")
        self.sent.append((phone_number, message))
        return {"messages": [{"id": f"wamid.{len(self.sent)}"}]}

    def sent_to(self, phone_number):
        return [m for p, m in self.sent if p == phone_number]


class FakeGateway(PaystackClient):
    def __init__(self):
        super().__init__("sk_test", "http://paystack.test")
        self.initialized = []
        self.verify_result = {"status": "success", "reference": "ref-1"}
        self.error = None

    def initialize(self, email, amount, reference, currency="USD"):
        if self.error:
            raise self.error
        self.initialized.append((email, amount, reference, currency))
        return {"authorization_url": "https://checkout.paystack.test/abc", "access_code": "abc", "reference": reference}

    def verify(self, reference):
        if self.error:
            raise self.error
        return dict(self.verify_result, reference=reference)


class FakeRedis:
    def __init__(self):
        self.counts = {}
        self.ttls = {}

    def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def expire(self, key, seconds):
        self.ttls[key] = seconds


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    return tmp_path / "uploads"


@pytest.fixture
def db():
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def redis_store():
    return FakeRedis()


@pytest.fixture
def client(messenger, gateway, redis_store):
    def _get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    limiter = RateLimiter(redis_store, settings.AUTH_RATE_LIMIT, settings.AUTH_RATE_WINDOW_SECONDS)
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_messenger] = lambda: messenger
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="user@example.com", role=UserRole.CUSTOMER, active=True):
        user = User(first_name="Test", last_name="User", email=email, password_hash=hash_password(PASSWORD),
                    phone="+2348000000000", role=role, is_active=active)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


def bearer(user):
    token, _ = create_access_token(user.id, user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(make_user):
    return make_user("customer@example.com")


@pytest.fixture
def other_customer(make_user):
    return make_user("other@example.com")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def customer_headers(customer):
    return bearer(customer)


@pytest.fixture
def other_headers(other_customer):
    return bearer(other_customer)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def shipment(client, customer_headers):
    r = client.post("/api/tracking", json=SHIPMENT_BODY, headers=customer_headers)
    assert r.status_code == 201, r.text
    return r.json()["shipment"]


@pytest.fixture
def invoice(client, customer_headers, shipment):
    body = dict(INVOICE_BODY, shipmentId=shipment["id"])
    r = client.post("/api/invoices", json=body, headers=customer_headers)
    assert r.status_code == 201, r.text
    return r.json()["invoice"]

