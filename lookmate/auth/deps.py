from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from lookmate.auth.jwt import decode_token

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    display_name: Optional[str] = None


def _user_from_claims(data: dict) -> Optional[AuthUser]:
    if data.get("typ") != "access" or not data.get("sub"):
        return None
    return AuthUser(id=data["sub"], email=data.get("email") or "", display_name=data.get("displayName"))


def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> AuthUser:
    if not creds:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    try:
        data = decode_token(creds.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    user = _user_from_claims(data)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    return user


def get_user_optional(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> Optional[AuthUser]:
    if not creds:
        return None
    try:
        return _user_from_claims(decode_token(creds.credentials))
    except jwt.PyJWTError:
        return None
