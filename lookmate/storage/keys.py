import os
import re
import secrets
import uuid
from datetime import datetime, timezone


def _safe_basename(filename: str) -> tuple[str, str]:
    base, ext = os.path.splitext(os.path.basename(filename or "upload"))
    base = re.sub(r"\s+", "-", base.strip()) or "upload"
    base = re.sub(r"[^A-Za-z0-9._-]", "", base)[:64] or "upload"
    return base, ext.lower()


def upload_filename(filename: str) -> str:
    """``YYYYMMDDTHHMMSS-rand-basename.ext``, unique per upload."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    base, ext = _safe_basename(filename)
    return f"{stamp}-{secrets.token_hex(3)}-{base}{ext}"


def upload_key(folder: str, filename: str) -> str:
    return f"uploads/{folder}/{uuid.uuid4().hex[:8]}/{upload_filename(filename)}"
