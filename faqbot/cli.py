"""Interactive question-answer loop."""

import logging
from typing import Callable, Optional

from faqbot.chat import (
    AnswerGenerator,
    ConversationalSession,
    InMemorySessionStore,
    QuestionRephraser,
)
from faqbot.clients import OpenAICompleter, OpenAIEmbedder, RetryPolicy, create_openai_client
from faqbot.config import AppConfig, LoggingConfig, OpenAIConfig, get_config
from faqbot.errors import FaqBotError
from faqbot.ingestion import VectorIndexManager, prepare_index
from faqbot.retrieval import Retriever
from faqbot.services import RagLogService

logger = logging.getLogger(__name__)

QUESTION_PROMPT = "Ask a question: "
ANSWER_LABEL = "AI Response: "
ERROR_LABEL = "AI Error: "


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(
        level=config.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def embedding_model_label(config: OpenAIConfig) -> str:
    """Identifies the embedding space the index was built in."""
    if config.embedding_dimensions:
        return f"{config.embedding_model}/{config.embedding_dimensions}"
    return config.embedding_model


def build_session(config: AppConfig) -> ConversationalSession:
    """
    Wire up the indexing and chat pipeline from configuration.

    Rebuilds the vector index if the corpus or embedding model changed,
    then loads it.

    Raises:
        FaqBotError: If no usable index can be produced.
    """
    client = create_openai_client(config.openai)
    retry_policy = RetryPolicy.from_config(config.openai.retry)
    embedder = OpenAIEmbedder.from_config(client, config.openai)

    index, result = prepare_index(
        corpus_path=config.corpus.csv_path,
        fingerprint_path=config.corpus.fingerprint_path,
        index_dir=config.vector_store.directory,
        manager=VectorIndexManager(embedder, embedding_model=embedding_model_label(config.openai)),
    )
    logger.info(
        f"Index ready: {result.document_count} documents "
        f"(rebuilt={result.rebuilt}, fell_back={result.fell_back})"
    )

    rephrase_completer = OpenAICompleter(
        client,
        model=config.openai.model,
        temperature=config.openai.rephrase_temperature,
        retry_policy=retry_policy,
    )
    answer_completer = OpenAICompleter(
        client,
        model=config.openai.model,
        retry_policy=retry_policy,
    )

    rag_log_service = None
    if config.audit_log.enabled:
        rag_log_service = RagLogService(config.audit_log.sqlite_path)

    return ConversationalSession(
        rephraser=QuestionRephraser(rephrase_completer),
        retriever=Retriever(index, embedder, top_k=config.vector_store.top_k),
        answer_generator=AnswerGenerator(answer_completer),
        session_store=InMemorySessionStore(max_messages=config.chat.max_history_messages),
        rag_log_service=rag_log_service,
    )


def run_chat_loop(
    session: ConversationalSession,
    session_id: str,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
    max_turns: Optional[int] = None,
) -> int:
    """
    Read questions and print answers until input ends.

    A failed turn is reported and the loop keeps going.

    Returns:
        Number of questions read.
    """
    turns = 0
    while max_turns is None or turns < max_turns:
        try:
            question = input_fn(QUESTION_PROMPT)
        except EOFError:
            break

        turns += 1
        if not question.strip():
            continue

        try:
            result = session.ask(question, session_id=session_id)
        except FaqBotError as e:
            logger.error(f"Turn failed: {e}")
            output_fn(f"{ERROR_LABEL}{e}")
            continue

        output_fn(f"{ANSWER_LABEL}{result.answer}")

    return turns


def main() -> None:
    config = get_config()
    configure_logging(config.logging)

    session = build_session(config)
    try:
        run_chat_loop(session, session_id=config.chat.session_id)
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
