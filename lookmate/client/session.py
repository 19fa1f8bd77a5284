from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str
    display_name: Optional[str] = None

    @property
    def name(self) -> str:
        return self.display_name or self.email.split("@")[0]


@dataclass
class SessionState:
    user: Optional[SessionUser] = None
    token: Optional[str] = None
    # one "session expired" teardown per session; reset on login
    expiry_handled: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def start(self, user: SessionUser, token: Optional[str] = None) -> None:
        self.user = user
        self.token = token
        self.expiry_handled = False

    def end(self) -> None:
        self.user = None
        self.token = None
