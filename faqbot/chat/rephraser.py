"""Rewrites a follow-up question so it stands on its own."""

import logging
from typing import Dict, List, Sequence

from faqbot.chat.prompts import (
    REPHRASE_QUESTION_SYSTEM_MESSAGE,
    REPHRASE_QUESTION_USER_TEMPLATE,
)
from faqbot.clients.openai_client import Completer
from faqbot.models import Message

logger = logging.getLogger(__name__)


class QuestionRephraser:
    """Turns (history, follow-up question) into a standalone question."""

    def __init__(self, completer: Completer):
        self._completer = completer

    def build_messages(
        self, history: Sequence[Message], question: str
    ) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": REPHRASE_QUESTION_SYSTEM_MESSAGE}]
        messages.extend(message.to_openai() for message in history)
        messages.append(
            {"role": "user", "content": REPHRASE_QUESTION_USER_TEMPLATE.format(question=question)}
        )
        return messages

    def rephrase(self, history: Sequence[Message], question: str) -> str:
        """
        Ask the model for a standalone version of `question`.

        The model output is returned verbatim, even if it simply echoes the
        question.

        Raises:
            ModelCallError: If the completion call fails.
        """
        standalone = self._completer.complete(self.build_messages(history, question))
        logger.debug(f"Rephrased {question!r} as {standalone!r}")
        return standalone
