"""Per-turn conversational retrieval pipeline.

Each turn runs rephrase -> retrieve -> generate. The rephrased question only
drives retrieval; the answer stage sees the question as the user asked it.
History is appended only once a turn has fully succeeded.
"""

import logging
import sqlite3
from enum import Enum
from typing import Optional, Tuple

from faqbot.chat.answer_generator import AnswerGenerator
from faqbot.chat.rephraser import QuestionRephraser
from faqbot.chat.session_store import SessionStore
from faqbot.models import Message, RagLog, Role, TurnResult
from faqbot.retrieval.retriever import Retriever, to_context_string
from faqbot.services.rag_log_service import RagLogService

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


class TurnState(str, Enum):
    """Stage of the turn currently being processed."""

    IDLE = "idle"
    REPHRASING = "rephrasing"
    RETRIEVING = "retrieving"
    GENERATING = "generating"


class ConversationalSession:
    """Runs conversation turns and keeps per-session history."""

    def __init__(
        self,
        rephraser: QuestionRephraser,
        retriever: Retriever,
        answer_generator: AnswerGenerator,
        session_store: SessionStore,
        rag_log_service: Optional[RagLogService] = None,
    ):
        self._rephraser = rephraser
        self._retriever = retriever
        self._answer_generator = answer_generator
        self._session_store = session_store
        self._rag_log_service = rag_log_service
        self._state = TurnState.IDLE

    @property
    def state(self) -> TurnState:
        return self._state

    def history(self, session_id: str = DEFAULT_SESSION_ID) -> Tuple[Message, ...]:
        """Completed turns of `session_id`, oldest first."""
        return self._session_store.read(session_id)

    def ask(self, question: str, session_id: str = DEFAULT_SESSION_ID) -> TurnResult:
        """
        Answer one question within a session.

        Args:
            question: The user's question.
            session_id: Conversation the question belongs to.

        Returns:
            TurnResult with the standalone question, context and answer.

        Raises:
            ModelCallError: If rephrasing or answer generation fails.
            EmbeddingError: If the question cannot be embedded for retrieval.
            Any failure leaves the session's history unchanged.
        """
        history = self._session_store.read(session_id)

        try:
            self._state = TurnState.REPHRASING
            standalone_question = self._rephraser.rephrase(history, question)

            self._state = TurnState.RETRIEVING
            results = self._retriever.retrieve(standalone_question)
            context = to_context_string(results)

            self._state = TurnState.GENERATING
            answer = self._answer_generator.answer(context, history, question)
        finally:
            self._state = TurnState.IDLE

        self._session_store.append(
            session_id,
            [
                Message(role=Role.USER, content=question),
                Message(role=Role.ASSISTANT, content=answer),
            ],
        )
        logger.info(
            f"Completed turn in session {session_id!r} "
            f"({len(results)} documents retrieved, {len(history) + 2} messages in history)"
        )

        result = TurnResult(
            session_id=session_id,
            question=question,
            standalone_question=standalone_question,
            context=context,
            answer=answer,
        )
        self._audit(result)
        return result

    def _audit(self, result: TurnResult) -> None:
        if self._rag_log_service is None:
            return

        rag_log = RagLog(
            session_id=result.session_id,
            user_question=result.question,
            standalone_question=result.standalone_question,
            retrieved_context=result.context,
            final_answer=result.answer,
        )
        try:
            self._rag_log_service.store_turn(rag_log)
        except sqlite3.Error as e:
            logger.error(f"Failed to write audit log for session {result.session_id!r}: {e}")
