"""Chat module: question rephrasing, answer generation and sessions."""

from faqbot.chat.answer_generator import AnswerGenerator
from faqbot.chat.conversational_session import (
    DEFAULT_SESSION_ID,
    ConversationalSession,
    TurnState,
)
from faqbot.chat.rephraser import QuestionRephraser
from faqbot.chat.session_store import InMemorySessionStore, SessionStore

__all__ = [
    "AnswerGenerator",
    "ConversationalSession",
    "DEFAULT_SESSION_ID",
    "InMemorySessionStore",
    "QuestionRephraser",
    "SessionStore",
    "TurnState",
]
