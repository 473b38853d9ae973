"""
errors.py - Exception hierarchy for the query pipeline.

Each stage logs the underlying cause and raises one of these with a message
that is safe to show to the user.
"""


class RagifyError(Exception):
    """Base class for pipeline errors."""

    status_code = 500


class LLMError(RagifyError):
    """The language model endpoint failed or returned an unusable reply."""


class TranslationError(RagifyError):
    """An answer could not be translated."""


class RetrievalError(RagifyError):
    """Document retrieval failed."""


class GenerationError(RagifyError):
    """Response generation failed."""


class RagError(RagifyError):
    """The end-to-end RAG pipeline failed."""
