"""Per-conversation message history."""

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

DEFAULT_MAX_MESSAGES = 20


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    timestamp: float


class ConversationSession:
    """Bounded message history for one conversation.

    Only the most recent ``max_messages`` messages are kept (10 exchanges by
    default).

    Args:
        session_id: Conversation identifier.
        max_messages: History cap.
        clock: Returns the current time in seconds.
    """

    def __init__(
        self,
        session_id: str,
        *,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.session_id = session_id
        self._max = max_messages
        self._clock = clock
        self._history: list[Message] = []

    def __len__(self) -> int:
        return len(self._history)

    def add_user(self, content: str) -> None:
        self._append(Role.USER, content)

    def add_assistant(self, content: str) -> None:
        self._append(Role.ASSISTANT, content)

    def _append(self, role: Role, content: str) -> None:
        self._history.append(Message(role=role, content=content, timestamp=self._clock()))
        if len(self._history) > self._max:
            self._history = self._history[-self._max :]

    def clear(self) -> None:
        self._history = []

    def history(self) -> list[Message]:
        return list(self._history)

    def plain_history(self, max_items: int = 8) -> str:
        """Last ``max_items`` messages as ``User: ...`` / ``Assistant: ...`` lines."""
        if max_items <= 0:
            return ""
        lines = []
        for message in self._history[-max_items:]:
            speaker = "User" if message.role == Role.USER else "Assistant"
            lines.append(f"{speaker}: {message.content}")
        return "\n".join(lines)

    def history_parts(self, max_items: int = 12) -> list[dict[str, Any]]:
        """Last ``max_items`` messages in Anthropic messages-API shape."""
        if max_items <= 0:
            return []
        return [
            {"role": str(message.role), "content": message.content}
            for message in self._history[-max_items:]
        ]


class SessionStore:
    """Conversation sessions keyed by id, owned by whoever creates the store.

    Args:
        max_messages: History cap applied to every session it creates.
        clock: Clock passed on to sessions.
    """

    def __init__(
        self,
        *,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max = max_messages
        self._clock = clock
        self._sessions: dict[str, ConversationSession] = {}

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self, session_id: str | None = None) -> ConversationSession:
        """Create a session, replacing any existing one with the same id."""
        session_id = session_id or uuid.uuid4().hex
        session = ConversationSession(session_id, max_messages=self._max, clock=self._clock)
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> ConversationSession | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> ConversationSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = self.create(session_id)
        return session

    def append(self, session_id: str, role: Role | str, content: str) -> ConversationSession:
        """Append a message, creating the session on first use."""
        role = Role(role)
        session = self.get_or_create(session_id)
        if role == Role.USER:
            session.add_user(content)
        else:
            session.add_assistant(content)
        return session

    def truncate(self, session_id: str) -> None:
        """Drop a session's history but keep the session."""
        session = self._sessions.get(session_id)
        if session is not None:
            session.clear()

    def destroy(self, session_id: str) -> bool:
        """Forget a session entirely. Returns whether it existed."""
        return self._sessions.pop(session_id, None) is not None
