from conftest import bearer


def test_send_message(client, customer_headers, messenger):
    r = client.post("/api/whatsapp/send", headers=customer_headers,
                    json={"phoneNumber": "+2348099999999", "message": "hello"})
    assert r.status_code == 200
    assert r.json()["message"] == "Message sent successfully"
    assert r.json()["response"]["messages"][0]["id"] == "wamid.1"
    assert messenger.sent_to("+2348099999999") == ["hello"]


def test_send_requires_auth(client):
    r = client.post("/api/whatsapp/send", json={"phoneNumber": "+2348099999999", "message": "hello"})
    assert r.status_code == 401


def test_send_failure_is_reported(client, customer_headers, messenger):
    messenger.fail = True
    r = client.post("/api/whatsapp/send", headers=customer_headers,
                    json={"phoneNumber": "+2348099999999", "message": "hello"})
    assert r.status_code == 503
    assert r.json()["message"] == "Failed to send WhatsApp message"


def test_send_validation(client, customer_headers):
    r = client.post("/api/whatsapp/send", headers=customer_headers, json={"phoneNumber": "+2348099999999"})
    assert r.status_code == 400
    assert r.json()["message"] == "Phone number and message are required"


def test_tracking_update(client, customer_headers, messenger):
    r = client.post("/api/whatsapp/tracking-update", headers=customer_headers,
                    json={"phoneNumber": "+2348099999999", "trackingNumber": "ENX123456789",
                          "status": "In Transit", "location": "Lokoja"})
    assert r.status_code == 200
    text = messenger.sent_to("+2348099999999")[0]
    assert "Tracking Number: ENX123456789" in text
    assert "Status: In Transit" in text
    assert "tracking.html?number=ENX123456789" in text


def test_tracking_update_validation(client, customer_headers):
    r = client.post("/api/whatsapp/tracking-update", headers=customer_headers,
                    json={"phoneNumber": "+2348099999999", "trackingNumber": "ENX123456789"})
    assert r.status_code == 400
    assert r.json()["message"] == "Phone number, tracking number, status, and location are required"


def test_payment_confirmation(client, customer_headers, messenger):
    r = client.post("/api/whatsapp/payment-confirmation", headers=customer_headers,
                    json={"phoneNumber": "+2348099999999", "invoiceNumber": "INV20261019001", "amount": 1250})
    assert r.status_code == 200
    assert "Amount: $1,250.00" in messenger.sent_to("+2348099999999")[0]


def test_payment_confirmation_requires_amount(client, customer_headers):
    r = client.post("/api/whatsapp/payment-confirmation", headers=customer_headers,
                    json={"phoneNumber": "+2348099999999", "invoiceNumber": "INV20261019001"})
    assert r.status_code == 400
    assert r.json()["message"] == "Phone number, invoice number, and amount are required"


def test_delivery_notification(client, customer_headers, messenger):
    r = client.post("/api/whatsapp/delivery-notification", headers=customer_headers,
                    json={"phoneNumber": "+2348099999999", "trackingNumber": "ENX123456789", "recipientName": "Bola"})
    assert r.status_code == 200
    assert "Dear Bola" in messenger.sent_to("+2348099999999")[0]


def test_subscribe_is_public(client, shipment, messenger):
    tn = shipment["trackingNumber"]
    body = {"phoneNumber": "+2348033333333", "trackingNumber": tn}
    r = client.post("/api/whatsapp/subscribe", json=body)
    assert r.status_code == 200
    assert r.json() == {"message": "Successfully subscribed to WhatsApp notifications", "trackingNumber": tn}
    client.post("/api/whatsapp/subscribe", json=body)
    detail = client.get(f"/api/tracking/{tn}").json()
    assert detail["notificationPhoneNumbers"] == ["+2348033333333"]
    assert len(messenger.sent_to("+2348033333333")) == 2


def test_subscribe_unknown_shipment(client):
    r = client.post("/api/whatsapp/subscribe", json={"phoneNumber": "+2348033333333", "trackingNumber": "ENX000000000"})
    assert r.status_code == 404


def test_status_admin_only(client, customer_headers, admin_headers):
    assert client.get("/api/whatsapp/status", headers=customer_headers).status_code == 403
    r = client.get("/api/whatsapp/status", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"]["ready"] is True
    assert r.json()["status"]["phoneNumberId"] == "12345"
