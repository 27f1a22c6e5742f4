"""Embedding and chat-completion capabilities backed by the OpenAI API.

The rest of the package depends only on the `Embedder` and `Completer`
protocols, so tests can substitute deterministic stubs.
"""

import logging
from typing import Dict, List, Optional, Protocol, Sequence

from openai import OpenAI, OpenAIError

from faqbot.clients.retry import RetryPolicy, call_with_retry
from faqbot.config.configuration import OpenAIConfig
from faqbot.errors import EmbeddingError, ModelCallError

logger = logging.getLogger(__name__)

ChatMessages = Sequence[Dict[str, str]]


class Embedder(Protocol):
    """Turns text into embedding vectors."""

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        ...

    def embed_query(self, text: str) -> List[float]:
        ...


class Completer(Protocol):
    """Turns a list of chat messages into a single text completion."""

    def complete(self, messages: ChatMessages) -> str:
        ...


def create_openai_client(config: OpenAIConfig) -> OpenAI:
    """Create OpenAI client using configuration.

    The SDK's built-in retries are disabled; retries go through RetryPolicy.
    """
    return OpenAI(
        api_key=config.api_key,
        timeout=config.request_timeout_seconds,
        max_retries=0,
    )


class OpenAIEmbedder:
    """Embedder using the OpenAI embeddings endpoint."""

    def __init__(
        self,
        client: OpenAI,
        model: str,
        dimensions: Optional[int] = None,
        batch_size: int = 512,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._client = client
        self._model = model
        self._dimensions = dimensions
        self._batch_size = batch_size
        self._retry_policy = retry_policy or RetryPolicy()

    @classmethod
    def from_config(cls, client: OpenAI, config: OpenAIConfig) -> "OpenAIEmbedder":
        return cls(
            client=client,
            model=config.embedding_model,
            dimensions=config.embedding_dimensions,
            batch_size=config.embedding_batch_size,
            retry_policy=RetryPolicy.from_config(config.retry),
        )

    def _embed_batch(self, batch: Sequence[str]) -> List[List[float]]:
        kwargs = {"input": list(batch), "model": self._model}
        if self._dimensions:
            kwargs["dimensions"] = self._dimensions

        try:
            response = call_with_retry(
                lambda: self._client.embeddings.create(**kwargs),
                self._retry_policy,
                description=f"Embedding batch of {len(batch)}",
            )
        except OpenAIError as e:
            raise EmbeddingError(f"Failed to generate embeddings: {e}") from e

        # The API may return items out of order; index tells us where each belongs
        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(batch):
            raise EmbeddingError(
                f"Embedding response returned {len(data)} vectors for {len(batch)} inputs"
            )
        return [item.embedding for item in data]

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed many texts, batching requests.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per input text, in input order.

        Raises:
            EmbeddingError: If any batch fails.
        """
        vectors: List[List[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = texts[start:start + self._batch_size]
            vectors.extend(self._embed_batch(batch))
            logger.debug(f"Embedded {len(vectors)}/{len(texts)} texts")
        return vectors

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query string."""
        return self._embed_batch([text])[0]


class OpenAICompleter:
    """Completer using the OpenAI chat completions endpoint."""

    def __init__(
        self,
        client: OpenAI,
        model: str,
        temperature: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._client = client
        self._model = model
        self._temperature = temperature
        self._retry_policy = retry_policy or RetryPolicy()

    def complete(self, messages: ChatMessages) -> str:
        """
        Send chat messages and return the model's text output.

        Args:
            messages: OpenAI-style {"role", "content"} dicts.

        Returns:
            The content of the first choice, unmodified.

        Raises:
            ModelCallError: If the request fails, times out or returns no content.
        """
        kwargs = {"model": self._model, "messages": list(messages)}
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature

        try:
            completion = call_with_retry(
                lambda: self._client.chat.completions.create(**kwargs),
                self._retry_policy,
                description=f"Chat completion ({self._model})",
            )
        except OpenAIError as e:
            raise ModelCallError(f"Chat completion failed: {e}") from e

        if not completion.choices or completion.choices[0].message.content is None:
            raise ModelCallError("Chat completion returned no content")
        return completion.choices[0].message.content
