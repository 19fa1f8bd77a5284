import os
import time
from typing import Any, Dict, Optional

import jwt

from lookmate.core.config import settings

ALG = os.getenv("JWT_ALG", "HS256")
SECRET = os.environ.get("JWT_SECRET") or settings.SECRET_KEY
ACCESS_TTL = int(os.getenv("JWT_ACCESS_TTL_SECONDS", "3600"))


def mint_access(user_id: str, email: str, display_name: Optional[str] = None) -> str:
    now = int(time.time())
    claims = {
        "sub": user_id,
        "email": email,
        "displayName": display_name,
        "iat": now,
        "exp": now + ACCESS_TTL,
        "typ": "access",
    }
    return jwt.encode(claims, SECRET, algorithm=ALG)


def decode_token(tok: str) -> Dict[str, Any]:
    return jwt.decode(tok, SECRET, algorithms=[ALG])
