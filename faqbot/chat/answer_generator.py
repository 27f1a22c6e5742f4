"""Generates the final answer from retrieved context and chat history."""

from typing import Dict, List, Sequence

from faqbot.chat.prompts import ANSWER_SYSTEM_TEMPLATE, ANSWER_USER_TEMPLATE
from faqbot.clients.openai_client import Completer
from faqbot.models import Message


class AnswerGenerator:
    """Answers a question from the supplied context and conversation."""

    def __init__(self, completer: Completer):
        self._completer = completer

    def build_messages(
        self, context: str, history: Sequence[Message], question: str
    ) -> List[Dict[str, str]]:
        """Build the prompt: system instruction with context, history, then the question."""
        messages = [
            {"role": "system", "content": ANSWER_SYSTEM_TEMPLATE.format(context=context)}
        ]
        messages.extend(message.to_openai() for message in history)
        messages.append(
            {"role": "user", "content": ANSWER_USER_TEMPLATE.format(question=question)}
        )
        return messages

    def answer(self, context: str, history: Sequence[Message], question: str) -> str:
        """
        Generate an answer.

        Args:
            context: Formatted retrieval context, embedded verbatim.
            history: Conversation so far, oldest first.
            question: The user's question as they asked it.

        Returns:
            The model output, unparsed.

        Raises:
            ModelCallError: If the completion call fails.
        """
        return self._completer.complete(self.build_messages(context, history, question))
