from typing import Optional


class RepositoryError(Exception):
    """A read or write against the backing store failed."""

    def __init__(self, status: int, detail: Optional[str] = None) -> None:
        super().__init__(f"{status} {detail or ''}".strip())
        self.status = status
        self.detail = detail


class ApiError(RepositoryError):
    """Non-2xx response (or transport failure, status 0) from the LookMate API."""


class AuthRequiredError(Exception):
    """A mutation was attempted without a logged-in user."""
