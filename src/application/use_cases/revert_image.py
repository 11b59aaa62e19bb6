from __future__ import annotations

import logging
from dataclasses import dataclass

from src.domain.entities.edit_session import EditSession
from src.domain.services.session_reducer import SelectHistoryEntry
from src.infrastructure.sessions.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class RevertImageUseCase:
    """
    Use case for reverting the working image to an archived one.

    The selected entry is moved out of the history into the working slot and
    the image it replaces is archived in its place, so reverting never loses
    a branch of the edit chain.
    """

    sessions: SessionStore

    def execute(self, user_id: str, entry_id: str) -> EditSession:
        """
        Restore the history entry ``entry_id``.

        Args:
            user_id: The user owning the session
            entry_id: ID of the history entry to restore

        Returns:
            The resulting EditSession. Unchanged when the id is unknown.

        Raises:
            SessionBusyError: An edit request is in flight
        """
        before = self.sessions.get(user_id)
        after = self.sessions.dispatch(user_id, SelectHistoryEntry(entry_id))
        if after is before:
            logger.debug("History entry %s not found for user %s, nothing restored", entry_id, user_id)
        else:
            logger.debug("User %s restored history entry %s", user_id, entry_id)
        return after
