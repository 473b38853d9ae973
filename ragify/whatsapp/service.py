"""
service.py - WhatsApp Cloud API relay.

Incoming webhook messages are run through the same topic -> store -> RAG
pipeline as web queries, and the answer is sent back to the sender.
"""

from typing import Optional

import httpx

from ..db.store import QueryRepository, UserRepository
from ..nlp.topics import TopicIdentifier
from ..rag.service import RagService
from ..utils.logger import get_logger


logger = get_logger("whatsapp.service")


ACK_MESSAGE = "I'm processing your legal query. Please wait a moment..."
TEXT_ONLY_MESSAGE = "I can only process text messages for legal queries."
ERROR_MESSAGE = (
    "Sorry, I encountered an error while processing your legal query. "
    "Please try again later."
)


class WhatsAppService:

    def __init__(
        self,
        rag_service: RagService,
        topic_identifier: TopicIdentifier,
        users: UserRepository,
        queries: QueryRepository,
        api_url: str = "https://graph.facebook.com/v17.0",
        phone_number_id: str = "",
        access_token: str = "",
        http_client: Optional[httpx.Client] = None,
    ):
        self.rag_service = rag_service
        self.topic_identifier = topic_identifier
        self.users = users
        self.queries = queries
        self.api_url = api_url.rstrip("/")
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.http = http_client or httpx.Client(timeout=30.0)

    @staticmethod
    def extract_message(payload: dict) -> Optional[dict]:
        """First message of a WhatsApp Business webhook payload, if any."""
        if not isinstance(payload, dict) or payload.get("object") != "whatsapp_business_account":
            return None
        try:
            messages = payload["entry"][0]["changes"][0]["value"].get("messages")
        except (KeyError, IndexError, TypeError, AttributeError):
            return None
        if not isinstance(messages, list) or not messages or not isinstance(messages[0], dict):
            return None
        return messages[0]

    def handle_incoming_message(self, payload: dict):
        """Handle one webhook delivery."""
        message = self.extract_message(payload)
        if message is None:
            logger.debug("Ignoring webhook payload without messages")
            return

        sender = message.get("from")
        if not sender:
            logger.warning("Ignoring WhatsApp message without a sender")
            return

        if message.get("type") != "text":
            self.send_message(sender, TEXT_ONLY_MESSAGE)
            return

        text = message.get("text")
        body = text.get("body") if isinstance(text, dict) else None
        if not isinstance(body, str) or not body.strip():
            logger.warning(f"Ignoring malformed text message from {sender}")
            return
        self.process_legal_query(sender, body)

    def process_legal_query(self, sender: str, query: str):
        """Answer a legal query received over WhatsApp."""
        try:
            user = self.users.find_by_phone(sender)
            if user is None:
                user = self.users.create(phone=sender, platform="whatsapp")

            self.send_message(sender, ACK_MESSAGE)

            topic = self.topic_identifier.identify_topic(query)
            self.queries.create(user.id, query, topic, "en")

            response = self.rag_service.process_query(query, topic)
            self.send_message(sender, response.answer)

            if response.citations:
                lines = [
                    f"{i}. {cite.code} Section {cite.section}"
                    for i, cite in enumerate(response.citations, start=1)
                ]
                self.send_message(sender, "Sources:\n" + "\n".join(lines))
        except Exception as e:
            logger.error(f"Error processing legal query from {sender}: {e}")
            try:
                self.send_message(sender, ERROR_MESSAGE)
            except httpx.HTTPError as send_error:
                logger.error(f"Could not deliver error message to {sender}: {send_error}")

    def send_message(self, recipient: str, message: str):
        """Send a text message to a WhatsApp user."""
        try:
            response = self.http.post(
                f"{self.api_url}/{self.phone_number_id}/messages",
                json={
                    "messaging_product": "whatsapp",
                    "recipient_type": "individual",
                    "to": recipient,
                    "type": "text",
                    "text": {"body": message},
                },
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error sending WhatsApp message: {e}")
            raise

    def close(self):
        self.http.close()
