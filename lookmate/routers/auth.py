from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.auth.deps import AuthUser, get_current_user
from lookmate.auth.jwt import mint_access
from lookmate.auth.passwords import hash_pw, needs_rehash, verify_pw
from lookmate.core.db import get_session
from lookmate.models.models import User
from lookmate.schemas.common import CamelModel, SuccessOut
from lookmate.schemas.profile import ProfileOut, ProfilePatch
from lookmate.services.users import get_user_by_email

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterIn(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    display_name: str = Field(min_length=1)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenOut(BaseModel):
    token: str


class MeOut(CamelModel):
    id: str
    email: str
    display_name: Optional[str] = None


def _profile_out(user: User) -> ProfileOut:
    return ProfileOut(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        height=user.height,
        body_type=user.body_type,
        gender=user.gender,
    )


@router.post("/register", response_model=SuccessOut)
async def register(body: RegisterIn, session: AsyncSession = Depends(get_session)):
    existing = await get_user_by_email(session, body.email)
    if existing:
        if existing.password_hash:
            raise HTTPException(status_code=409, detail="email_exists")
        # claim a passwordless account created by an email-keyed flow
        existing.password_hash = hash_pw(body.password)
        existing.display_name = body.display_name
        await session.commit()
        return SuccessOut()
    user = User(
        email=body.email,
        name=body.display_name,
        display_name=body.display_name,
        password_hash=hash_pw(body.password),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="email_exists")
    return SuccessOut()


@router.post("/login", response_model=TokenOut)
async def login(body: LoginIn, session: AsyncSession = Depends(get_session)):
    user = await get_user_by_email(session, body.email)
    if not user or not user.password_hash or not verify_pw(user.password_hash, body.password):
        raise HTTPException(status_code=401, detail="invalid_credentials")
    if needs_rehash(user.password_hash):
        user.password_hash = hash_pw(body.password)
        await session.commit()
    return TokenOut(token=mint_access(user.id, user.email, user.display_name))


@router.post("/logout", response_model=SuccessOut)
async def logout():
    # tokens are stateless; the client drops its copy
    return SuccessOut()


@router.get("/me", response_model=MeOut)
async def me(user: AuthUser = Depends(get_current_user)):
    return MeOut(id=user.id, email=user.email, display_name=user.display_name)


@router.get("/me/profile", response_model=ProfileOut)
async def get_profile(
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    row = await session.get(User, user.id)
    if not row:
        raise HTTPException(status_code=404, detail="user_not_found")
    return _profile_out(row)


@router.patch("/me", response_model=ProfileOut)
async def update_profile(
    payload: ProfilePatch,
    user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    row = await session.get(User, user.id)
    if not row:
        raise HTTPException(status_code=404, detail="user_not_found")
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(row, field, value)
    if "display_name" in data:
        row.name = data["display_name"]
    await session.commit()
    return _profile_out(row)
