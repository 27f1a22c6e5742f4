"""Per-session conversation history storage."""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from faqbot.models import Message, Role


class SessionStore(ABC):
    """Holds the ordered message history of each session id."""

    @abstractmethod
    def create(self, session_id: str) -> None:
        """Create an empty history for `session_id` if it does not exist."""

    @abstractmethod
    def append(self, session_id: str, messages: Iterable[Message]) -> None:
        """Append messages to the session's history in the given order."""

    @abstractmethod
    def read(self, session_id: str) -> Tuple[Message, ...]:
        """Return the session's history, oldest first."""


class InMemorySessionStore(SessionStore):
    """Process-lifetime history keyed by session id.

    With max_messages set, only the newest max_messages are kept, trimmed
    so the history still starts with a user message.
    """

    def __init__(self, max_messages: Optional[int] = None):
        if max_messages is not None and max_messages < 1:
            raise ValueError(f"max_messages must be at least 1, got {max_messages}")
        self._max_messages = max_messages
        self._histories: Dict[str, List[Message]] = {}

    def create(self, session_id: str) -> None:
        if session_id not in self._histories:
            self._histories[session_id] = []

    def append(self, session_id: str, messages: Iterable[Message]) -> None:
        batch = list(messages)
        self.create(session_id)
        history = self._histories[session_id]
        history.extend(batch)
        if self._max_messages is not None and len(history) > self._max_messages:
            del history[: len(history) - self._max_messages]
            # Keep whole turns: history never starts with an assistant reply
            while history and history[0].role is not Role.USER:
                del history[0]

    def read(self, session_id: str) -> Tuple[Message, ...]:
        self.create(session_id)
        return tuple(self._histories[session_id])

    def session_ids(self) -> Tuple[str, ...]:
        return tuple(self._histories)
