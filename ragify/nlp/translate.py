"""
translate.py - Answer translation through the language model.
"""

from typing import Dict

from ..errors import LLMError, TranslationError
from ..utils.logger import get_logger


logger = get_logger("nlp.translate")


SUPPORTED_LANGUAGES: Dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "ta": "Tamil",
    "te": "Telugu",
    "bn": "Bengali",
    "mr": "Marathi",
}


class Translator:
    """Translates text between the supported languages using an LLM client."""

    PROMPT = (
        "Translate the following text from {source} to {target}. "
        "Keep legal terms, section numbers and act names accurate. "
        "Reply with the translation only.\n\n{text}"
    )

    def __init__(self, llm):
        self.llm = llm

    def translate(self, text: str, source: str, target: str) -> str:
        for code in (source, target):
            if code not in SUPPORTED_LANGUAGES:
                raise TranslationError(f"Unsupported language: {code}")

        if source == target or not text.strip():
            return text

        prompt = self.PROMPT.format(
            source=SUPPORTED_LANGUAGES[source],
            target=SUPPORTED_LANGUAGES[target],
            text=text,
        )
        try:
            return self.llm.complete(prompt, max_tokens=1000, temperature=0.0).strip()
        except LLMError as e:
            logger.error(f"Translation {source}->{target} failed: {e}")
            raise TranslationError("Failed to translate response") from e
