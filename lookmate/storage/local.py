from pathlib import Path

from lookmate.core.config import settings


def upload_root() -> Path:
    root = Path(settings.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_file(filename: str, data: bytes) -> Path:
    path = upload_root() / filename
    path.write_bytes(data)
    return path


def public_path(filename: str) -> str:
    return f"{settings.UPLOAD_URL_PATH.rstrip('/')}/{filename}"
