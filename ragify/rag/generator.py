"""
generator.py - Answer generation over retrieved legal documents.

The model is asked to reply in two blocks:

    ANSWER: <answer>
    CITATIONS: <numbered list>

Citations of the form "Section N of <Act>" are pulled out of the second
block and linked back to the retrieved documents where possible.
"""

import re
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Sequence, Tuple

from ..errors import GenerationError
from ..nlp.translate import Translator
from ..retrieval.retriever import ScoredDocument
from ..utils.logger import get_logger


logger = get_logger("rag.generator")


ANSWER_RE = re.compile(r"ANSWER:(.*?)(?=CITATIONS:|$)", re.DOTALL)
CITATIONS_RE = re.compile(r"CITATIONS:(.*?)$", re.DOTALL)
CITATION_RE = re.compile(r"Section\s+(\d+(?:\w+)?)\s+of\s+([^,.\n]+)", re.IGNORECASE)


@dataclass
class Citation:
    section: str
    code: str
    document_id: Optional[str] = None


@dataclass
class Source:
    id: str
    title: str
    section: str
    url: str


@dataclass
class GeneratedResponse:
    answer: str
    citations: List[Citation] = field(default_factory=list)
    sources: List[Source] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


class Generator:
    """Builds the prompt, calls the LLM and parses its reply."""

    def __init__(self, llm, translator: Optional[Translator] = None,
                 max_tokens: int = 500, temperature: float = 0.2):
        self.llm = llm
        self.translator = translator or Translator(llm)
        self.max_tokens = max_tokens
        self.temperature = temperature

    def generate_response(
        self,
        query: str,
        documents: List[ScoredDocument],
        language: str = "en",
    ) -> GeneratedResponse:
        """
        Generate an answer with citations for a query.

        Args:
            query: Original user query.
            documents: Retrieved legal documents.
            language: Language code the answer should be returned in.

        Returns:
            Answer, citations, sources and a confidence percentage.
        """
        try:
            context = self.prepare_context(documents)
            prompt = self.create_prompt(query, context)
            reply = self.llm.complete(
                prompt, max_tokens=self.max_tokens, temperature=self.temperature
            )
            answer, citations = self.parse_response(reply, documents)

            if language != "en":
                answer = self.translator.translate(answer, "en", language)

            return GeneratedResponse(
                answer=answer,
                citations=citations,
                sources=[
                    Source(id=doc.id, title=doc.title, section=doc.section, url=doc.url)
                    for doc in documents
                ],
                confidence=self.calculate_confidence(documents),
            )
        except Exception as e:
            logger.error(f"Error generating response: {e}")
            raise GenerationError("Failed to generate legal response") from e

    @staticmethod
    def prepare_context(documents: Sequence[ScoredDocument]) -> str:
        return "\n\n".join(
            f"{doc.title} ({doc.section}): {doc.content}" for doc in documents
        )

    @staticmethod
    def create_prompt(query: str, context: str) -> str:
        return f"""You are an AI legal assistant specializing in Indian law. Answer the following legal question based on the provided legal context.

LEGAL CONTEXT:
{context}

QUESTION:
{query}

INSTRUCTIONS:
1. Answer the question based only on the provided legal context.
2. If the context doesn't contain relevant information, say so.
3. Include specific citations to legal codes or sections when applicable.
4. Format your answer in simple language that's easy to understand.
5. Structure your response in the following format:
   ANSWER: [your detailed answer]
   CITATIONS: [numbered list of citations with section numbers]
"""

    def parse_response(
        self, response: str, documents: Sequence[ScoredDocument]
    ) -> Tuple[str, List[Citation]]:
        """Split a reply into the answer text and structured citations."""
        answer_match = ANSWER_RE.search(response)
        citations_match = CITATIONS_RE.search(response)

        answer = answer_match.group(1).strip() if answer_match else response
        citations_text = citations_match.group(1).strip() if citations_match else ""

        return answer, self.parse_citations(citations_text, documents)

    def parse_citations(
        self, citations_text: str, documents: Sequence[ScoredDocument]
    ) -> List[Citation]:
        if not citations_text:
            return []

        citations = []
        for match in CITATION_RE.finditer(citations_text):
            section, code = match.group(1), match.group(2).strip()
            citations.append(Citation(
                section=section,
                code=code,
                document_id=self.find_document_id(section, code, documents),
            ))
        return citations

    @staticmethod
    def find_document_id(
        section: str, code: str, documents: Sequence[ScoredDocument]
    ) -> Optional[str]:
        """Id of the first document matching both section and act name."""
        code = code.lower()
        for doc in documents:
            if section in doc.section and code in doc.title.lower():
                return doc.id
        return None

    @staticmethod
    def calculate_confidence(documents: Sequence[ScoredDocument]) -> float:
        """Mean retrieval similarity as a percentage, capped at 100."""
        if not documents:
            return 0.0
        average = sum(doc.similarity or 0.0 for doc in documents) / len(documents)
        return min(average * 100, 100.0)
