import time, uuid
from pathlib import Path
from typing import BinaryIO
from enielexpress.core.config import settings
from enielexpress.core.errors import ValidationError

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif'}

def check_upload(filename: str, size: int, max_bytes: int | None = None) -> str:
    ext = Path(filename or '').suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError('Only image files are allowed!')
    if size > (max_bytes or settings.MAX_UPLOAD_BYTES):
        raise ValidationError('File too large')
    return ext

def read_upload(fileobj: BinaryIO, filename: str, max_bytes: int | None = None) -> bytes:
    """Read an upload, never buffering more than one byte past the limit."""
    limit = max_bytes or settings.MAX_UPLOAD_BYTES
    check_upload(filename, 0, limit)
    data = fileobj.read(limit + 1)
    check_upload(filename, len(data), limit)
    return data

def save_bytes(data: bytes, filename: str, upload_dir: str | None = None) -> str:
    """Write an uploaded proof to local disk and return its path."""
    ext = check_upload(filename, len(data))
    target = Path(upload_dir or settings.UPLOAD_DIR)
    target.mkdir(parents=True, exist_ok=True)
    path = target / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ext}"
    path.write_bytes(data)
    return str(path)
