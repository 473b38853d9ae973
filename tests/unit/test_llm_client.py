"""
Unit tests for llm/client.py
"""

import json

import httpx
import pytest
from openai import OpenAI

from ragify.errors import LLMError
from ragify.llm.client import LLMClient


def completion_body(text):
    return {
        "id": "cmpl-1",
        "object": "text_completion",
        "created": 0,
        "model": "legal-assistant",
        "choices": [{"text": text, "index": 0, "finish_reason": "stop", "logprobs": None}],
    }


class TestLLMClient:

    @pytest.fixture
    def captured(self):
        return []

    def make_client(self, captured, status_code=200, text="ANSWER: ok"):
        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            if status_code != 200:
                return httpx.Response(status_code, json={"error": {"message": "boom"}})
            return httpx.Response(200, json=completion_body(text))

        openai_client = OpenAI(
            api_key="test-key",
            base_url="http://llm.test/v1",
            max_retries=0,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        return LLMClient(model="legal-assistant", client=openai_client)

    def test_complete_returns_first_choice(self, captured):
        client = self.make_client(captured, text="ANSWER: Yes.")

        assert client.complete("Is murder punishable?") == "ANSWER: Yes."

        request = captured[0]
        assert request.url.path == "/v1/completions"
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == "legal-assistant"
        assert body["prompt"] == "Is murder punishable?"
        assert body["max_tokens"] == 500
        assert body["temperature"] == 0.2

    def test_api_error_becomes_llm_error(self, captured):
        client = self.make_client(captured, status_code=500)

        with pytest.raises(LLMError):
            client.complete("prompt")
