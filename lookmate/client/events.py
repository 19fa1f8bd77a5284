import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

logger = logging.getLogger("lookmate.client.events")

LOGOUT = "logout"
SESSION_EXPIRED = "session_expired"
LOGIN = "login"

Handler = Callable[..., Any]


class EventBus:
    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: str, **payload: Any) -> None:
        logger.debug("events: emit %s handlers=%d", event, len(self._handlers[event]))
        for handler in list(self._handlers[event]):
            handler(**payload)
