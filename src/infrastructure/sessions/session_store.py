from __future__ import annotations

import logging
import os
from collections.abc import Callable

from src.domain.entities.edit_session import EditSession
from src.domain.entities.history_buffer import HistoryBuffer
from src.domain.errors import SessionBusyError
from src.domain.services.session_reducer import SessionAction, reduce_session

logger = logging.getLogger(__name__)

SessionListener = Callable[[EditSession], None]

# module-level in-memory stores, one session per user for the process lifetime
_MEM_SESSIONS: dict[str, EditSession] = {}
_LISTENERS: dict[str, list[SessionListener]] = {}


def _max_entries_from_env() -> int | None:
    value = int(os.getenv("HISTORY_MAX_ENTRIES", "0") or 0)
    return value if value > 0 else None


class SessionStore:
    """Owns the current ``EditSession`` value of every user.

    All writes go through ``save`` so subscribers see every state change.
    """

    def __init__(
        self,
        sessions: dict[str, EditSession] | None = None,
        listeners: dict[str, list[SessionListener]] | None = None,
        history_max_entries: int | None = None,
    ) -> None:
        self._sessions = _MEM_SESSIONS if sessions is None else sessions
        self._listeners = _LISTENERS if listeners is None else listeners
        self.history_max_entries = (
            history_max_entries if history_max_entries is not None else _max_entries_from_env()
        )

    def new_session(self, next_entry_seq: int = 1) -> EditSession:
        return EditSession(
            history=HistoryBuffer(max_entries=self.history_max_entries),
            next_entry_seq=next_entry_seq,
        )

    def get(self, user_id: str) -> EditSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = self.new_session()
            self._sessions[user_id] = session
        return session

    def save(self, user_id: str, session: EditSession) -> EditSession:
        self._sessions[user_id] = session
        for listener in list(self._listeners.get(user_id, [])):
            listener(session)
        return session

    def dispatch(self, user_id: str, action: SessionAction) -> EditSession:
        """Reduce ``action`` against the stored session and store the result.

        Rejected actions raise before anything is stored.
        """
        current = self.get(user_id)
        updated = reduce_session(current, action)
        if updated is current:
            return current
        return self.save(user_id, updated)

    def reset(self, user_id: str) -> EditSession:
        """Replace the session with an empty one.

        History ids keep counting from the old session, so an id handed out
        before the reset never names an entry created after it.
        """
        current = self.get(user_id)
        if current.is_pending:
            raise SessionBusyError("Cannot reset the session while an edit request is in flight")
        logger.debug("Resetting edit session for user %s", user_id)
        return self.save(user_id, self.new_session(next_entry_seq=current.next_entry_seq))

    def subscribe(self, user_id: str, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener`` for changes to ``user_id``'s session.

        Returns a callable that removes the subscription.
        """
        self._listeners.setdefault(user_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(user_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe
