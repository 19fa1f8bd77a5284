import logging
import uuid
from typing import Optional

from lookmate.auth.passwords import hash_pw, verify_pw
from lookmate.client.errors import RepositoryError
from lookmate.client.local_store import LocalStore
from lookmate.client.session import SessionUser
from lookmate.schemas.profile import ProfileOut, ProfilePatch

logger = logging.getLogger("lookmate.client.auth")

USERS_KEY = "users"


class LocalAuth:
    """Accounts for local mode, kept in the local store with argon2 hashes."""

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def _users(self) -> dict:
        return self.store.get(USERS_KEY, {})

    def register(self, email: str, password: str, display_name: Optional[str] = None) -> SessionUser:
        key = email.strip().lower()
        users = self._users()
        if key in users:
            raise RepositoryError(409, "email_exists")
        users[key] = {
            "id": str(uuid.uuid4()),
            "email": email.strip(),
            "displayName": display_name,
            "passwordHash": hash_pw(password),
        }
        self.store.set(USERS_KEY, users)
        logger.info("auth: local register email=%s", key)
        return self._user(users[key])

    def login(self, email: str, password: str) -> SessionUser:
        row = self._users().get(email.strip().lower())
        if not row or not verify_pw(row["passwordHash"], password):
            raise RepositoryError(401, "invalid_credentials")
        return self._user(row)

    def update_profile(self, user: SessionUser, patch: ProfilePatch) -> ProfileOut:
        key = user.email.strip().lower()
        users = self._users()
        row = users.get(key)
        if not row or row["id"] != user.id:
            raise RepositoryError(404, "user_not_found")
        row.update(patch.model_dump(mode="json", by_alias=True, exclude_unset=True))
        self.store.set(USERS_KEY, users)
        logger.info("auth: local profile update email=%s", key)
        return ProfileOut.model_validate({k: v for k, v in row.items() if k != "passwordHash"})

    @staticmethod
    def _user(row: dict) -> SessionUser:
        return SessionUser(id=row["id"], email=row["email"], display_name=row.get("displayName"))
