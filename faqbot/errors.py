"""Exception hierarchy shared by the indexing and chat pipelines."""


class FaqBotError(Exception):
    """Base class for all faqbot failures."""
    pass


class CorpusFileError(FaqBotError):
    """Raised when the corpus file is missing or cannot be read."""
    pass


class ParseError(FaqBotError):
    """Raised when the corpus is not well-formed CSV."""
    pass


class EmbeddingError(FaqBotError):
    """Raised when an embedding call fails, fully or partially."""
    pass


class StorageError(FaqBotError):
    """Raised when the vector index or fingerprint sidecar cannot be read or written."""
    pass


class ModelCallError(FaqBotError):
    """Raised when a chat completion call fails or times out."""
    pass
