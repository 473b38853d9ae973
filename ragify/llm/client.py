"""
client.py - Completion API wrapper for RAGify India.

Talks to any OpenAI-compatible completions endpoint. LLM_API_ENDPOINT is the
API base URL (e.g. https://api.openai.com/v1), LLM_API_KEY the bearer key.
"""

from typing import Optional

from openai import OpenAI, OpenAIError

from ..errors import LLMError
from ..utils.logger import get_logger


logger = get_logger("llm.client")


class LLMClient:
    """Wrapper for text completion calls."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "legal-assistant",
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.client = client or OpenAI(
            api_key=api_key or "missing-llm-api-key",
            base_url=base_url,
            timeout=timeout,
        )

    def complete(
        self,
        prompt: str,
        max_tokens: int = 500,
        temperature: float = 0.2,
    ) -> str:
        """Return the model's completion for a prompt."""
        try:
            response = self.client.completions.create(
                model=self.model,
                prompt=prompt,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.error(f"LLM API error: {e}")
            raise LLMError("Failed to generate response from language model") from e

        if not response.choices:
            raise LLMError("Language model returned no choices")
        return response.choices[0].text or ""
