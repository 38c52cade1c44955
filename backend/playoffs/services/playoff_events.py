"""
Playoff events: queued while the engine decides, dispatched after commit.

The engine only appends (event_type, league_id, payload) tuples. Delivery is
tied to the caller's transaction: bind() hooks the Session so the queue is
flushed on commit and discarded on rollback, so observers never see a
decision that was rolled back.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import event
from sqlmodel import Session

logger = logging.getLogger(__name__)

EVENT_BRACKET_GENERATED = "playoff:bracket_generated"
EVENT_ROUND_ADVANCED = "playoff:round_advanced"
EVENT_THIRD_PLACE_CREATED = "playoff:third_place_created"
EVENT_CHAMPION_CROWNED = "playoff:champion_crowned"
EVENT_THIRD_PLACE_DECIDED = "playoff:third_place_decided"
EVENT_CONSOLATION_DECIDED = "playoff:consolation_decided"
EVENT_BRACKET_COMPLETED = "playoff:bracket_completed"
EVENT_BRACKET_DELETED = "playoff:bracket_deleted"


@dataclass
class PlayoffEvent:
    event_type: str
    league_id: int
    payload: Dict[str, Any] = field(default_factory=dict)


Dispatcher = Callable[[PlayoffEvent], None]


def log_dispatcher(evt: PlayoffEvent) -> None:
    """Default sink. Real-time push and webhooks plug in here."""
    logger.info("Playoff event %s league=%s payload=%s", evt.event_type, evt.league_id, evt.payload)


class PendingEvents:
    def __init__(self):
        self._queue: List[PlayoffEvent] = []
        self._session: Optional[Session] = None
        self._dispatcher: Dispatcher = log_dispatcher

    @property
    def queued(self) -> List[PlayoffEvent]:
        return list(self._queue)

    def queue(self, event_type: str, league_id: int, payload: Optional[Dict[str, Any]] = None) -> None:
        self._queue.append(PlayoffEvent(event_type=event_type, league_id=league_id, payload=payload or {}))

    def bind(self, session: Session, dispatcher: Optional[Dispatcher] = None) -> "PendingEvents":
        """Flush on the session's next commit, discard on rollback."""
        if dispatcher is not None:
            self._dispatcher = dispatcher
        self.unbind()
        self._session = session
        event.listen(session, "after_commit", self._on_commit)
        event.listen(session, "after_rollback", self._on_rollback)
        return self

    def unbind(self) -> None:
        """Detach from the session. Anything still queued was never committed."""
        self.discard()
        if self._session is None:
            return
        event.remove(self._session, "after_commit", self._on_commit)
        event.remove(self._session, "after_rollback", self._on_rollback)
        self._session = None

    def flush(self) -> int:
        """Dispatch and clear. A failing dispatcher never undoes the committed work."""
        pending, self._queue = self._queue, []
        for evt in pending:
            try:
                self._dispatcher(evt)
            except Exception:
                logger.exception("Playoff event dispatch failed: %s league=%s", evt.event_type, evt.league_id)
        return len(pending)

    def discard(self) -> int:
        dropped = len(self._queue)
        if dropped:
            logger.info("Discarding %d playoff event(s) after rollback", dropped)
        self._queue = []
        return dropped

    def _on_commit(self, session) -> None:
        self.flush()

    def _on_rollback(self, session) -> None:
        self.discard()
