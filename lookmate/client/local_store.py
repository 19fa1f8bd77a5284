import json
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger("lookmate.client.local_store")

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStore:
    """Durable key/value store: one JSON file per key under ``root``.

    Keys are namespaced by the caller (``closet:<uid>``, ``looks:<uid>``,
    ``public_looks``). A corrupt file reads as the default.
    """

    def __init__(self, root: str) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{_UNSAFE.sub('_', key)}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("local-store: unreadable key=%s", key)
            return default

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
