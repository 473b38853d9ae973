"""
config.py - Environment-driven settings for RAGify India.

Values come from the process environment, optionally seeded from a .env file.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class Settings:
    database_path: str = "ragify.db"
    legal_documents_path: Optional[str] = None
    topic_classifier_path: Optional[str] = None

    llm_api_endpoint: Optional[str] = None
    llm_api_key: str = ""
    llm_model: str = "legal-assistant"

    jwt_secret: str = "your_jwt_secret_key"
    jwt_expiration_hours: int = 24

    whatsapp_api_url: str = "https://graph.facebook.com/v17.0"
    whatsapp_phone_number_id: str = ""
    whatsapp_access_token: str = ""
    whatsapp_verify_token: str = ""

    log_dir: str = "logs"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            database_path=os.getenv("DATABASE_PATH", "ragify.db"),
            legal_documents_path=os.getenv("LEGAL_DOCUMENTS_PATH") or None,
            topic_classifier_path=os.getenv("TOPIC_CLASSIFIER_PATH") or None,
            llm_api_endpoint=os.getenv("LLM_API_ENDPOINT") or None,
            llm_api_key=os.getenv("LLM_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", "legal-assistant"),
            jwt_secret=os.getenv("JWT_SECRET", "your_jwt_secret_key"),
            jwt_expiration_hours=int(os.getenv("JWT_EXPIRATION_HOURS", "24")),
            whatsapp_api_url=os.getenv("WHATSAPP_API_URL", "https://graph.facebook.com/v17.0"),
            whatsapp_phone_number_id=os.getenv("WHATSAPP_PHONE_NUMBER_ID", ""),
            whatsapp_access_token=os.getenv("WHATSAPP_ACCESS_TOKEN", ""),
            whatsapp_verify_token=os.getenv("WHATSAPP_VERIFY_TOKEN", ""),
            log_dir=os.getenv("LOG_DIR", "logs"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings.from_env()
