"""
service.py - End-to-end RAG processing for a legal query.
"""

from dataclasses import dataclass, field, asdict
from typing import List

from .generator import Citation, Generator, Source
from ..errors import RagError
from ..retrieval.retriever import Retriever
from ..utils.logger import get_logger


logger = get_logger("rag.service")


@dataclass
class RagResponse:
    answer: str
    citations: List[Citation] = field(default_factory=list)
    sources: List[Source] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


class RagService:
    """Retrieve relevant documents, then generate a cited answer from them."""

    def __init__(self, retriever: Retriever, generator: Generator):
        self.retriever = retriever
        self.generator = generator

    def process_query(self, query: str, topic: str = None, language: str = "en") -> RagResponse:
        """
        Process a user query through the RAG pipeline.

        Args:
            query: The user's legal query.
            topic: Identified legal topic.
            language: Query language (default: "en").
        """
        try:
            documents = self.retriever.retrieve_documents(query, topic)
            logger.info(
                f"Retrieved {len(documents)} documents for topic '{topic}' "
                f"(best score {documents[0].similarity:.3f})" if documents
                else f"Retrieved no documents for topic '{topic}'"
            )
            response = self.generator.generate_response(query, documents, language)
        except Exception as e:
            logger.error(f"Error in RAG processing: {e}")
            raise RagError("Failed to process legal query") from e

        return RagResponse(
            answer=response.answer,
            citations=response.citations,
            sources=response.sources,
            confidence=response.confidence,
        )
