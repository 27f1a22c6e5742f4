"""Conversation message models."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class Role(str, Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """One message in a session's conversation history."""

    role: Role
    content: str

    def to_openai(self) -> Dict[str, str]:
        """Render as an OpenAI chat message."""
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class TurnResult:
    """Everything produced by one completed conversation turn."""

    session_id: str
    question: str
    standalone_question: str
    context: str
    answer: str
