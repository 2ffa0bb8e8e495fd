import json
from urllib.parse import unquote

import pytest


@pytest.mark.parametrize("code, code_type", [
    ("{tn}", None),
    ('{{"trackingNumber": "{tn}"}}', "qr"),
    ("https://enielexpress.com/tracking.html?number={tn}", "auto"),
    ("{tn}", "barcode"),
])
def test_process_scan_finds_shipment(client, shipment, code, code_type):
    tn = shipment["trackingNumber"]
    body = {"code": code.format(tn=tn)}
    if code_type:
        body["type"] = code_type
    r = client.post("/api/scan/process", json=body)
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Code processed successfully"
    assert r.json()["trackingNumber"] == tn
    assert r.json()["shipment"]["id"] == shipment["id"]


def test_process_scan_requires_code(client):
    r = client.post("/api/scan/process", json={"code": "  "})
    assert r.status_code == 400
    assert r.json()["message"] == "Code is required"


def test_process_scan_unextractable(client):
    r = client.post("/api/scan/process", json={"code": '{"other": 1}', "type": "qr"})
    assert r.status_code == 400
    assert r.json()["message"] == "Could not extract tracking number from code"


def test_process_scan_unknown_shipment(client):
    r = client.post("/api/scan/process", json={"code": "ENX000000000"})
    assert r.status_code == 404


def test_update_location_keeps_status(client, shipment, customer_headers, messenger):
    tn = shipment["trackingNumber"]
    r = client.post("/api/scan/update-location", headers=customer_headers,
                    json={"trackingNumber": tn, "location": " Lokoja hub "})
    assert r.status_code == 200, r.text
    s = r.json()["shipment"]
    assert s["status"] == "Package Received"
    last = s["trackingHistory"][-1]
    assert last["location"] == "Lokoja hub"
    assert last["description"] == "Scanned at Lokoja hub"
    assert len(s["trackingHistory"]) == 2
    assert messenger.sent_to(shipment["recipientPhone"])


def test_update_location_with_status(client, shipment, customer_headers):
    r = client.post("/api/scan/update-location", headers=customer_headers,
                    json={"trackingNumber": shipment["trackingNumber"], "location": "Abuja", "status": "Out for Delivery"})
    assert r.json()["shipment"]["status"] == "Out for Delivery"


def test_update_location_rules(client, shipment, customer_headers, other_headers):
    r = client.post("/api/scan/update-location", headers=customer_headers, json={"trackingNumber": shipment["trackingNumber"]})
    assert r.status_code == 400
    assert r.json()["message"] == "Tracking number and location are required"
    r = client.post("/api/scan/update-location", headers=other_headers,
                    json={"trackingNumber": shipment["trackingNumber"], "location": "x"})
    assert r.status_code == 200
    r = client.post("/api/scan/update-location", json={"trackingNumber": shipment["trackingNumber"], "location": "x"})
    assert r.status_code == 401


def test_scan_after_delivery_keeps_delivery_time(client, shipment, customer_headers, other_headers):
    tn = shipment["trackingNumber"]
    delivered = client.put(f"/api/tracking/{tn}/status", headers=customer_headers,
                           json={"status": "Delivered", "location": "Abuja"}).json()["shipment"]
    r = client.post("/api/scan/update-location", headers=other_headers,
                    json={"trackingNumber": tn, "location": "Returns desk"})
    assert r.status_code == 200
    s = r.json()["shipment"]
    assert s["status"] == "Delivered"
    assert s["actualDelivery"] == delivered["actualDelivery"]
    assert s["trackingHistory"][-1]["location"] == "Returns desk"


def test_qr_code(client, shipment):
    tn = shipment["trackingNumber"]
    r = client.get(f"/api/scan/qr/{tn}")
    assert r.status_code == 200
    body = r.json()
    assert body["qrData"] == {"trackingNumber": tn, "origin": "Lagos", "destination": "Abuja", "status": "Package Received"}
    prefix = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data="
    assert body["qrUrl"].startswith(prefix)
    assert json.loads(unquote(body["qrUrl"][len(prefix):])) == body["qrData"]


def test_barcode(client, shipment):
    tn = shipment["trackingNumber"]
    r = client.get(f"/api/scan/barcode/{tn}")
    assert r.json()["barcodeData"] == tn
    assert r.json()["barcodeUrl"] == f"https://api.barcode.com/v1/barcode?data={tn}&type=code128"
    assert client.get("/api/scan/barcode/ENX000000000").status_code == 404
