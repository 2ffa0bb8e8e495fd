#!/usr/bin/env python3
"""
run_demo.py - End-to-end demo against a running EnielExpress API
- Registers/logs in a customer (admin login is optional, see create_admin.py)
- Creates a shipment and moves it through In Transit -> Delivered
- Subscribes a phone number and processes a scanned QR payload
- Raises an invoice for the shipment and requests the PDF link
- Admin (if available) lists invoices and shipment stats
"""

import requests
import json
import os
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, List

class DemoRunner:
    def __init__(self):
        self.base_url = os.getenv("API_BASE", "http://localhost:5000")
        self.auth_url = f"{self.base_url}/api/auth"
        self.tracking_url = f"{self.base_url}/api/tracking"
        self.invoice_url = f"{self.base_url}/api/invoices"
        self.scan_url = f"{self.base_url}/api/scan"

        self.cust_email = os.getenv("DEMO_EMAIL", f"demo{int(time.time())}@example.com")
        self.cust_pass = "P@ssw0rd!"
        self.admin_email = os.getenv("ADMIN_EMAIL")
        self.admin_pass = os.getenv("ADMIN_PASSWORD")

        self.cust_token: Optional[str] = None
        self.admin_token: Optional[str] = None

    # ---------- helpers ----------
    def show_step(self, title: str):
        print(f"\n=== {title} ===")

    def mask_token(self, token: str) -> str:
        if not token:
            return "<none>"
        return token if len(token) <= 12 else f"{token[:8]}...{token[-6:]}"

    def headers(self, token: Optional[str]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"} if token else {}

    def call_api(
        self,
        method: str,
        url: str,
        headers: Optional[Dict] = None,
        data: Optional[Any] = None,
        expected_status: List[int] = [200, 201],
        quiet: bool = False,
        timeout: int = 30,
    ):
        if not quiet:
            print(f"\n-> {method} {url}")
            if data is not None:
                print(f"   Body: {json.dumps(data, indent=2)}")

        try:
            resp = requests.request(method=method, url=url, headers=headers, json=data, timeout=timeout)
        except requests.exceptions.RequestException as e:
            if not quiet:
                print(f"   Error: \033[91m{e}\033[0m")
            return {"status": None, "data": None, "error": str(e)}

        if not quiet:
            status_color = "\033[92m" if resp.status_code in expected_status else "\033[93m"
            print(f"   Status: {status_color}{resp.status_code}\033[0m")
        try:
            js = resp.json()
        except ValueError:
            js = None
        if js is not None and not quiet:
            print(json.dumps(js, indent=2))
        return {"status": resp.status_code, "data": js}

    # ---------- flow ----------
    def run_demo(self):
        print("Starting EnielExpress Demo")
        print("=" * 50)

        self.show_step("Preflight: health")
        h = self.call_api("GET", f"{self.base_url}/api/health", quiet=True)
        if h.get("status") != 200:
            print(f"\033[91mAPI not reachable at {self.base_url}\033[0m")
            return

        # 1) Customer register + login
        self.show_step("Customer: register")
        self.call_api(
            "POST",
            f"{self.auth_url}/register",
            data={"firstName": "Demo", "lastName": "Customer", "email": self.cust_email,
                  "password": self.cust_pass, "phone": "+2348012345678"},
            expected_status=[201, 400],
        )

        self.show_step("Customer: login")
        lr = self.call_api("POST", f"{self.auth_url}/login", data={"email": self.cust_email, "password": self.cust_pass})
        self.cust_token = (lr.get("data") or {}).get("token")
        print(f"Customer token: {self.mask_token(self.cust_token)}")
        cust_hdrs = self.headers(self.cust_token)

        # 2) Shipment
        self.show_step("Customer: create shipment")
        sr = self.call_api(
            "POST",
            self.tracking_url,
            headers=cust_hdrs,
            data={
                "senderName": "Ada Sender", "senderPhone": "+2348011111111",
                "senderEmail": "sender@example.com", "senderAddress": "1 Marina, Lagos",
                "recipientName": "Bola Recipient", "recipientPhone": "+2348022222222",
                "recipientEmail": "recipient@example.com", "recipientAddress": "2 Wuse, Abuja",
                "packageDescription": "Books", "packageWeight": 2.5, "packageValue": 40,
                "serviceType": "express", "origin": "Lagos", "destination": "Abuja",
            },
            expected_status=[201],
        )
        shipment = (sr.get("data") or {}).get("shipment") or {}
        tn = shipment.get("trackingNumber")
        print(f"Tracking number: {tn}")
        if not tn:
            print("Skipping remaining steps - no shipment")
            return

        self.show_step("Public: subscribe to updates")
        self.call_api("POST", f"{self.tracking_url}/{tn}/subscribe", data={"phoneNumber": "+2348033333333"})

        self.show_step("Customer: status updates")
        for status, location in (("In Transit", "Lokoja hub"), ("Delivered", "Abuja")):
            self.call_api("PUT", f"{self.tracking_url}/{tn}/status", headers=cust_hdrs,
                          data={"status": status, "location": location})

        self.show_step("Public: scan QR payload")
        self.call_api("POST", f"{self.scan_url}/process", data={"code": json.dumps({"trackingNumber": tn}), "type": "qr"})

        self.show_step("Public: track")
        self.call_api("GET", f"{self.tracking_url}/{tn}")

        # 3) Invoice
        self.show_step("Customer: create invoice")
        due = (datetime.now(timezone.utc) + timedelta(days=14)).isoformat()
        ir = self.call_api(
            "POST",
            self.invoice_url,
            headers=cust_hdrs,
            data={
                "customerName": "Demo Customer", "customerEmail": self.cust_email,
                "customerPhone": "+2348012345678", "customerAddress": "1 Marina, Lagos",
                "items": [{"description": "Express shipping", "price": 10, "qty": 2},
                          {"description": "Insurance", "price": 5, "qty": 1}],
                "dueDate": due, "shipmentId": shipment.get("id"),
            },
            expected_status=[201],
        )
        invoice = (ir.get("data") or {}).get("invoice") or {}
        if invoice.get("id"):
            print(f"Invoice {invoice.get('invoiceNumber')}: total {invoice.get('total')}")
            self.call_api("GET", f"{self.invoice_url}/{invoice['id']}/pdf", headers=cust_hdrs)

        # 4) Admin views (optional)
        self.show_step("Admin: overview")
        if self.admin_email and self.admin_pass:
            ar = self.call_api("POST", f"{self.auth_url}/login",
                               data={"email": self.admin_email, "password": self.admin_pass}, quiet=True)
            self.admin_token = (ar.get("data") or {}).get("token")
        if self.admin_token:
            admin_hdrs = self.headers(self.admin_token)
            self.call_api("GET", f"{self.tracking_url}/stats", headers=admin_hdrs)
            self.call_api("GET", f"{self.invoice_url}/stats", headers=admin_hdrs)
        else:
            print("Skipping - set ADMIN_EMAIL/ADMIN_PASSWORD (see scripts/create_admin.py)")

        print("\n\033[92m=== DEMO COMPLETE ===\033[0m")


if __name__ == "__main__":
    DemoRunner().run_demo()
