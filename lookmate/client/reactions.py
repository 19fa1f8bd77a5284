"""Optimistic like/bookmark toggles on feed entries.

A :class:`ReactionToggle` is a small command: ``apply`` flips the flag and moves
the counter on the in-memory entry right away, ``commit`` sends the toggle and
adopts the server's authoritative state, and ``rollback`` reverts the local
change if the request fails. Counters never go below zero.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Optional

from lookmate.client.errors import RepositoryError
from lookmate.client.notifications import Notifier
from lookmate.client.repository import DataRepository
from lookmate.client.session import SessionUser
from lookmate.schemas.public_looks import PublicLookOut

logger = logging.getLogger("lookmate.client.reactions")

ReactionName = Literal["like", "bookmark"]


@dataclass(frozen=True)
class _Fields:
    flag: str
    counter: str
    failure: str


_FIELDS = {
    "like": _Fields("liked", "likes_count", "Couldn't update your like. Please try again."),
    "bookmark": _Fields("bookmarked", "bookmarks_count", "Couldn't update your bookmark. Please try again."),
}


class ReactionToggle:
    def __init__(
        self,
        entry: PublicLookOut,
        kind: ReactionName,
        repository: DataRepository,
        user: SessionUser,
        notifier: Notifier,
    ) -> None:
        self.entry = entry
        self.kind = kind
        self.repository = repository
        self.user = user
        self.notifier = notifier
        self._fields = _FIELDS[kind]
        self._prev_flag: Optional[bool] = None
        self._delta = 0

    @property
    def active(self) -> bool:
        return bool(getattr(self.entry, self._fields.flag))

    @property
    def count(self) -> int:
        return getattr(self.entry, self._fields.counter)

    def _set(self, flag: bool, count: int) -> None:
        setattr(self.entry, self._fields.flag, flag)
        setattr(self.entry, self._fields.counter, max(count, 0))

    def apply(self) -> None:
        self._prev_flag = self.active
        before = self.count
        flag = not self._prev_flag
        self._set(flag, before + (1 if flag else -1))
        self._delta = self.count - before

    def rollback(self) -> None:
        self._set(bool(self._prev_flag), self.count - self._delta)
        self._delta = 0
        self.notifier.error(self._fields.failure)

    async def commit(self) -> bool:
        try:
            result = await self.repository.toggle_reaction(self.user, self.entry.public_id, self.kind)
        except RepositoryError as e:
            logger.warning(
                "reactions: %s failed public_id=%s status=%s", self.kind, self.entry.public_id, e.status
            )
            self.rollback()
            return False
        if result is not None:
            flag, count = result
            self._set(flag, count)
        return True

    async def run(self) -> bool:
        self.apply()
        return await self.commit()
