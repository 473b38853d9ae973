"""
Shared fixtures: a scripted LLM, sample documents and a recording WhatsApp
transport.
"""

import json

import httpx
import pytest

from ragify.db.store import Database, QueryRepository, UserRepository
from ragify.errors import LLMError
from ragify.retrieval.corpus import PLACEHOLDER_DOCUMENTS


SAMPLE_REPLY = (
    "ANSWER: Murder is punishable with death or imprisonment for life, and a fine.\n"
    "CITATIONS:\n"
    "1. Section 302 of Indian Penal Code\n"
    "2. Section 1 of Right to Information Act"
)


class FakeLLM:
    """Returns scripted replies in order and records every prompt."""

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or [SAMPLE_REPLY])
        self.error = error
        self.prompts = []

    def complete(self, prompt, max_tokens=500, temperature=0.2):
        self.prompts.append(prompt)
        if self.error:
            raise LLMError(self.error)
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


class RecordingTransport:
    """httpx transport stand-in for the WhatsApp Graph API."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"messages": [{"id": "wamid.1"}]})

    @property
    def bodies(self):
        return [json.loads(r.content)["text"]["body"] for r in self.requests]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def make_llm():
    return FakeLLM


@pytest.fixture
def documents():
    return list(PLACEHOLDER_DOCUMENTS)


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def users(db):
    return UserRepository(db)


@pytest.fixture
def queries(db):
    return QueryRepository(db)


@pytest.fixture
def transport():
    return RecordingTransport()
