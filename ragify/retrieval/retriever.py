"""
retriever.py - Document retrieval for the RAG pipeline.

Each candidate document gets a fused score:

    similarity = 0.7 * tfidf_score + 0.3 * string_score

tfidf_score is the mean TF-IDF weight of the query's stems in the document;
string_score is the normalised character similarity of the preprocessed texts.
"""

import threading
from dataclasses import dataclass
from typing import List, Optional

from rapidfuzz import fuzz
from sklearn.feature_extraction.text import TfidfVectorizer

from .corpus import LegalDocument, load_documents
from ..errors import RetrievalError
from ..nlp.preprocess import preprocess
from ..utils.logger import get_logger


logger = get_logger("retrieval.retriever")


@dataclass
class ScoredDocument(LegalDocument):
    """A corpus document with its retrieval score."""
    similarity: float = 0.0


class Retriever:
    """
    TF-IDF + string similarity retriever over an in-memory corpus.

    The corpus is loaded and indexed on first use.
    """

    def __init__(
        self,
        documents_path: Optional[str] = None,
        documents: Optional[List[LegalDocument]] = None,
        tfidf_weight: float = 0.7,
        string_weight: float = 0.3,
        top_k: int = 5,
    ):
        self.documents_path = documents_path
        self.documents: List[LegalDocument] = list(documents) if documents is not None else []
        self._preset = documents is not None
        self.tfidf_weight = tfidf_weight
        self.string_weight = string_weight
        self.top_k = top_k

        self.initialized = False
        self._processed: List[str] = []
        self._vectorizer: Optional[TfidfVectorizer] = None
        self._matrix = None
        self._lock = threading.Lock()

    def init(self):
        """Load documents and fit the TF-IDF model."""
        with self._lock:
            if self.initialized:
                return
            try:
                if not self._preset:
                    self.documents = load_documents(self.documents_path)
                self._processed = [preprocess(doc.content) for doc in self.documents]

                self._vectorizer = TfidfVectorizer(
                    tokenizer=str.split,
                    token_pattern=None,
                    lowercase=False,
                    norm=None,
                )
                if any(self._processed):
                    self._matrix = self._vectorizer.fit_transform(self._processed)

                self.initialized = True
                logger.info(
                    f"TF-IDF retriever initialized successfully with {len(self.documents)} documents"
                )
            except Exception as e:
                logger.error(f"Failed to initialize retriever: {e}")
                raise

    def tfidf_similarity(self, query_tokens: List[str], doc_index: int) -> float:
        """Mean TF-IDF weight of the query tokens within one document."""
        if self._matrix is None or not 0 <= doc_index < self._matrix.shape[0]:
            return 0.0
        if not query_tokens:
            return 0.0

        vocabulary = self._vectorizer.vocabulary_
        score = 0.0
        for token in query_tokens:
            column = vocabulary.get(token)
            if column is not None:
                score += float(self._matrix[doc_index, column])
        return score / len(query_tokens)

    @staticmethod
    def string_similarity(a: str, b: str) -> float:
        """Character-level similarity in [0, 1]."""
        return fuzz.ratio(a, b) / 100.0

    def candidates(self, topic: Optional[str]) -> List[int]:
        """Indices of documents matching the topic, or all when none match."""
        indices = list(range(len(self.documents)))
        if not topic:
            return indices

        needle = topic.lower()
        matching = [
            i for i in indices
            if needle in self.documents[i].title.lower()
            or needle in self.documents[i].content.lower()
        ]
        if not matching:
            logger.debug(f"No documents mention topic '{topic}', scoring the whole corpus")
            return indices
        return matching

    def retrieve_documents(
        self,
        query: str,
        topic: Optional[str] = None,
        top_k: Optional[int] = None,
    ) -> List[ScoredDocument]:
        """
        Rank the corpus against a query.

        Args:
            query: User's legal query.
            topic: Identified legal topic, used to narrow the candidates.
            top_k: Number of documents to return (defaults to self.top_k).

        Returns:
            Documents sorted by descending similarity.
        """
        self.init()
        limit = self.top_k if top_k is None else top_k

        try:
            processed_query = preprocess(query)
            query_tokens = processed_query.split()

            scored = []
            for index in self.candidates(topic):
                doc = self.documents[index]
                tfidf_score = self.tfidf_similarity(query_tokens, index)
                string_score = self.string_similarity(processed_query, self._processed[index])
                combined = tfidf_score * self.tfidf_weight + string_score * self.string_weight
                scored.append(ScoredDocument(**doc.to_dict(), similarity=combined))

            scored.sort(key=lambda d: d.similarity, reverse=True)
            return scored[:limit]
        except Exception as e:
            logger.error(f"Error retrieving documents: {e}")
            raise RetrievalError("Failed to retrieve relevant legal information") from e
