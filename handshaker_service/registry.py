"""Registry of live handshake sessions."""

from __future__ import annotations

from typing import Any

from .negotiator import HandshakeSession


class SessionRegistry:
    """Tracks the sessions of currently open handshake streams."""

    def __init__(self):
        self.sessions: dict[str, HandshakeSession] = {}

    def add_session(self, session: HandshakeSession) -> None:
        """Add a session, rejecting an id that is already registered."""
        if session.session_id in self.sessions:
            raise ValueError(f"Session {session.session_id} already registered")
        self.sessions[session.session_id] = session

    def remove_session(self, session_id: str) -> HandshakeSession | None:
        return self.sessions.pop(session_id, None)

    def get_session(self, session_id: str) -> HandshakeSession | None:
        return self.sessions.get(session_id)

    def __len__(self) -> int:
        return len(self.sessions)

    def get_all_sessions_info(self) -> dict[str, dict[str, Any]]:
        return {session_id: session.get_session_info() for session_id, session in self.sessions.items()}
