"""
Unit tests for whatsapp/service.py
"""

import json

import httpx
import pytest

from ragify.nlp.topics import TopicIdentifier
from ragify.rag.generator import Generator
from ragify.rag.service import RagService
from ragify.retrieval.retriever import Retriever
from ragify.whatsapp.service import (
    ACK_MESSAGE,
    ERROR_MESSAGE,
    TEXT_ONLY_MESSAGE,
    WhatsAppService,
)


def webhook_payload(message):
    return {
        "object": "whatsapp_business_account",
        "entry": [{"changes": [{"value": {"messages": [message]}}]}],
    }


def text_message(body, sender="919812345678"):
    return {"from": sender, "type": "text", "text": {"body": body}}


class TestWhatsAppService:

    @pytest.fixture
    def make_service(self, documents, users, queries, transport, fake_llm):
        def factory(llm=fake_llm):
            rag = RagService(Retriever(documents=documents), Generator(llm))
            return WhatsAppService(
                rag_service=rag,
                topic_identifier=TopicIdentifier(),
                users=users,
                queries=queries,
                api_url="https://graph.test/v17.0/",
                phone_number_id="12345",
                access_token="wa-token",
                http_client=transport.client(),
            )
        return factory

    def test_text_message_is_answered_with_sources(self, make_service, transport, users, queries):
        service = make_service()

        service.handle_incoming_message(webhook_payload(text_message("Punishment for murder?")))

        assert transport.bodies == [
            ACK_MESSAGE,
            "Murder is punishable with death or imprisonment for life, and a fine.",
            "Sources:\n1. Indian Penal Code Section 302\n2. Right to Information Act Section 1",
        ]
        request = transport.requests[0]
        assert str(request.url) == "https://graph.test/v17.0/12345/messages"
        assert request.headers["Authorization"] == "Bearer wa-token"
        assert json.loads(request.content)["to"] == "919812345678"

        user = users.find_by_phone("919812345678")
        assert user.platform == "whatsapp"
        stored = queries.get_user_queries(user.id)
        assert [(q.query_text, q.topic, q.language) for q in stored] == [
            ("Punishment for murder?", "Criminal Law", "en"),
        ]

    def test_existing_user_is_reused(self, make_service, users):
        service = make_service()
        service.handle_incoming_message(webhook_payload(text_message("murder")))
        service.handle_incoming_message(webhook_payload(text_message("theft")))

        assert users.find_by_phone("919812345678").id == 1
        assert users.get_by_id(2) is None

    def test_no_sources_message_without_citations(self, make_service, make_llm, transport):
        service = make_service(make_llm(["ANSWER: Consult a lawyer."]))
        service.handle_incoming_message(webhook_payload(text_message("murder")))

        assert transport.bodies == [ACK_MESSAGE, "Consult a lawyer."]

    def test_non_text_message(self, make_service, transport):
        service = make_service()
        service.handle_incoming_message(
            webhook_payload({"from": "919812345678", "type": "image", "image": {}})
        )
        assert transport.bodies == [TEXT_ONLY_MESSAGE]

    @pytest.mark.parametrize("payload", [
        {},
        {"object": "page", "entry": []},
        {"object": "whatsapp_business_account", "entry": []},
        {"object": "whatsapp_business_account", "entry": [{"changes": [{"value": {"statuses": []}}]}]},
        webhook_payload("not-a-dict"),
        {"object": "whatsapp_business_account",
         "entry": [{"changes": [{"value": {"messages": {"0": {}}}}]}]},
        webhook_payload({"from": "91", "type": "text", "text": "plain string"}),
        webhook_payload({"from": "91", "type": "text", "text": {"body": 42}}),
    ])
    def test_payloads_without_messages_are_ignored(self, make_service, transport, payload):
        make_service().handle_incoming_message(payload)
        assert transport.requests == []

    def test_pipeline_failure_sends_apology(self, make_service, make_llm, transport):
        service = make_service(make_llm(error="down"))
        service.handle_incoming_message(webhook_payload(text_message("murder")))

        assert transport.bodies == [ACK_MESSAGE, ERROR_MESSAGE]

    def test_close_releases_http_client(self, make_service):
        service = make_service()
        service.close()
        assert service.http.is_closed

    def test_send_message_raises_on_http_error(self, make_service, transport):
        transport.status_code = 500
        with pytest.raises(httpx.HTTPStatusError):
            make_service().send_message("919812345678", "hello")
