"""Per-browser state: edit mode flags and the now-playing panel."""

import logging
import secrets
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Optional

from soundboard.services.edit_gate import EditSession
from soundboard.services.now_playing import NowPlayingPanel

logger = logging.getLogger(__name__)


@dataclass
class ClientSession:
    id: str
    panel: NowPlayingPanel
    edit: EditSession = field(default_factory=EditSession)


class SessionRegistry:
    """
    Sessions keyed by cookie value, created on first sight.

    At most ``max_sessions`` are kept. The least recently used one is dropped
    (its panel closed) when a new session would go over the cap.
    """

    def __init__(self, panel_factory: Callable[[], NowPlayingPanel], max_sessions: int = 1000):
        self._panel_factory = panel_factory
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ClientSession]" = OrderedDict()

    def get_or_create(self, session_id: Optional[str]) -> ClientSession:
        if session_id and session_id in self._sessions:
            self._sessions.move_to_end(session_id)
            return self._sessions[session_id]
        session_id = secrets.token_urlsafe(16)
        session = ClientSession(id=session_id, panel=self._panel_factory())
        self._sessions[session_id] = session
        while len(self._sessions) > self.max_sessions:
            _, evicted = self._sessions.popitem(last=False)
            evicted.panel.close()
            logger.debug(f"Evicted session {evicted.id}")
        return session

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def close_all(self):
        for session in self._sessions.values():
            session.panel.close()
        self._sessions.clear()

    def __len__(self):
        return len(self._sessions)
