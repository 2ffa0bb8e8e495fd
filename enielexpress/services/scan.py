"""Pull a tracking number out of whatever a QR/barcode scanner produced."""
import json
from typing import Optional
from urllib.parse import parse_qs, urlparse

JSON_KEYS = ("trackingNumber", "tracking_id", "id")
QUERY_KEYS = ("number", "id", "tracking")


def _from_json(code: str) -> tuple[bool, Optional[str]]:
    try:
        data = json.loads(code)
    except ValueError:
        return False, None
    # bare JSON scalars ("123456") are plain codes, not payloads
    if not isinstance(data, dict):
        return False, None
    for key in JSON_KEYS:
        if data.get(key):
            return True, str(data[key])
    return True, None


def _from_url(code: str) -> tuple[bool, Optional[str]]:
    if "tracking" not in code and "track" not in code:
        return False, None
    parsed = urlparse(code)
    if not parsed.scheme or not parsed.netloc:
        return False, None
    params = parse_qs(parsed.query)
    for key in QUERY_KEYS:
        if params.get(key) and params[key][0]:
            return True, params[key][0]
    return True, None


def extract_tracking_number(code: str, code_type: Optional[str] = None) -> Optional[str]:
    """Return the tracking number encoded in ``code`` or None.

    Tried in order: JSON payload field, URL query parameter, raw string.
    ``barcode`` codes are always raw; ``qr`` and auto-detect try all three.
    """
    code = (code or "").strip()
    if not code:
        return None
    if code_type == "barcode":
        return code
    for parser in (_from_json, _from_url):
        matched, value = parser(code)
        if matched:
            return value
    return code
