"""
main.py - FastAPI application for RAGify India.

Endpoints:
- GET  /api/test                       - Health check
- POST /api/auth/register              - Create an account and get a JWT
- POST /api/auth/login                 - Authenticate and get a JWT
- POST /api/queries/query              - Ask a legal question
- GET  /api/queries/queries            - The caller's past queries
- GET  /api/queries/query/{id}         - One stored query
- GET  /api/queries/analytics          - Query statistics for the caller
- GET  /api/queries/topics             - Supported legal topics
- GET  /api/queries/whatsapp/webhook   - WhatsApp webhook verification
- POST /api/queries/whatsapp/webhook   - WhatsApp incoming messages
"""

import sqlite3
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from .auth import TokenPayload, create_token, get_current_user, hash_password, verify_password
from ..config import Settings, get_settings
from ..db.store import Database, QueryRepository, UserRepository
from ..errors import RagifyError
from ..llm.client import LLMClient
from ..nlp.topics import LEGAL_TOPICS, TopicIdentifier
from ..nlp.translate import SUPPORTED_LANGUAGES, Translator
from ..rag.generator import Generator
from ..rag.service import RagService
from ..retrieval.retriever import Retriever
from ..utils.logger import get_logger, setup_logger
from ..whatsapp.service import WhatsAppService


logger = get_logger("api")


# ─────────────────────────────────────────────────────────────────────────────
# Service wiring
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class Services:
    users: UserRepository
    queries: QueryRepository
    topic_identifier: TopicIdentifier
    rag: RagService
    whatsapp: WhatsAppService
    db: Optional[Database] = None

    def close(self):
        """Release the WhatsApp HTTP client and the database connection."""
        self.whatsapp.close()
        if self.db is not None:
            self.db.close()


def build_services(settings: Settings) -> Services:
    """Construct the service graph from settings."""
    db = Database(settings.database_path)
    users = UserRepository(db)
    queries = QueryRepository(db)

    llm = LLMClient(
        api_key=settings.llm_api_key,
        base_url=settings.llm_api_endpoint,
        model=settings.llm_model,
    )
    rag = RagService(
        retriever=Retriever(documents_path=settings.legal_documents_path),
        generator=Generator(llm, translator=Translator(llm)),
    )
    topic_identifier = TopicIdentifier(settings.topic_classifier_path)

    whatsapp = WhatsAppService(
        rag_service=rag,
        topic_identifier=topic_identifier,
        users=users,
        queries=queries,
        api_url=settings.whatsapp_api_url,
        phone_number_id=settings.whatsapp_phone_number_id,
        access_token=settings.whatsapp_access_token,
    )
    return Services(
        users=users,
        queries=queries,
        topic_identifier=topic_identifier,
        rag=rag,
        whatsapp=whatsapp,
        db=db,
    )


@lru_cache(maxsize=1)
def get_services() -> Services:
    return build_services(get_settings())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logger(log_dir=settings.log_dir, log_level=settings.log_level)
    logger.info("RAGify India API starting")
    yield
    if get_services.cache_info().currsize:
        get_services().close()
        get_services.cache_clear()
    logger.info("RAGify India API stopped")


app = FastAPI(
    title="RAGify India API",
    description="Legal question answering over Indian law with cited sources",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using "*"
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RagifyError)
async def ragify_error_handler(request: Request, exc: RagifyError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc)},
    )


# ─────────────────────────────────────────────────────────────────────────────
# Request/Response Models
# ─────────────────────────────────────────────────────────────────────────────

class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserOut(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserOut


class QueryRequest(BaseModel):
    text: str
    language: str = "en"


class QueryOut(BaseModel):
    id: int
    user_id: int
    query_text: str
    topic: Optional[str] = None
    language: str
    created_at: str


class CitationOut(BaseModel):
    section: str
    code: str
    document_id: Optional[str] = None


class SourceOut(BaseModel):
    id: str
    title: str
    section: str
    url: str


class RagResponseOut(BaseModel):
    answer: str
    citations: List[CitationOut]
    sources: List[SourceOut]
    confidence: float


class QueryResponse(BaseModel):
    success: bool = True
    query: QueryOut
    response: RagResponseOut


class QueryListResponse(BaseModel):
    success: bool = True
    queries: List[QueryOut]


class SingleQueryResponse(BaseModel):
    success: bool = True
    query: QueryOut


# ─────────────────────────────────────────────────────────────────────────────
# Endpoints
# ─────────────────────────────────────────────────────────────────────────────

@app.get("/api/test")
async def test_connection():
    """Health check endpoint."""
    return {"message": "Backend server is running!"}


@app.post("/api/auth/register", response_model=AuthResponse)
def register(
    request: RegisterRequest,
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """Create an account and return a JWT."""
    if not request.name or not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Please provide all required fields")

    if services.users.find_by_email(request.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    try:
        user = services.users.create(
            name=request.name,
            email=request.email,
            platform="web",
            password_hash=hash_password(request.password),
        )
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=409, detail="Email already registered")

    logger.info(f"Registered user {user.id}")
    token = create_token(user.id, user.name, user.email, settings)
    return AuthResponse(token=token, user=UserOut(id=user.id, name=user.name, email=user.email))


@app.post("/api/auth/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """Authenticate and return a JWT."""
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Please provide email and password")

    user = services.users.find_by_email(request.email)
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_token(user.id, user.name, user.email, settings)
    return AuthResponse(token=token, user=UserOut(id=user.id, name=user.name, email=user.email))


@app.post("/api/queries/query", response_model=QueryResponse)
def handle_query(
    request: QueryRequest,
    user: TokenPayload = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Answer a legal question.

    The question is classified into a legal topic, stored, and answered
    through the RAG pipeline.
    """
    text = request.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Please provide a query")
    if request.language not in SUPPORTED_LANGUAGES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported language '{request.language}'. "
                   f"Supported: {sorted(SUPPORTED_LANGUAGES)}",
        )

    topic = services.topic_identifier.identify_topic(text)
    record = services.queries.create(int(user.sub), text, topic, request.language)
    logger.info(f"Query {record.id} from user {user.sub} classified as '{topic}'")

    response = services.rag.process_query(text, topic, request.language)

    return QueryResponse(
        query=QueryOut(**record.to_dict()),
        response=RagResponseOut(**response.to_dict()),
    )


@app.get("/api/queries/queries", response_model=QueryListResponse)
def get_user_queries(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: TokenPayload = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Get the caller's queries, newest first."""
    records = services.queries.get_user_queries(int(user.sub), limit, offset)
    return QueryListResponse(queries=[QueryOut(**r.to_dict()) for r in records])


@app.get("/api/queries/query/{query_id}", response_model=SingleQueryResponse)
def get_query_by_id(
    query_id: int,
    user: TokenPayload = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Get one of the caller's stored queries."""
    record = services.queries.get_by_id(query_id)
    if record is None or str(record.user_id) != user.sub:
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": "Query not found"},
        )
    return SingleQueryResponse(query=QueryOut(**record.to_dict()))


@app.get("/api/queries/analytics")
def get_query_analytics(
    user: TokenPayload = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Query statistics for the caller."""
    return {"success": True, "analytics": services.queries.analytics(int(user.sub))}


@app.get("/api/queries/topics")
async def get_topics():
    """Supported legal topics."""
    return {"success": True, "topics": LEGAL_TOPICS}


@app.get("/api/queries/whatsapp/webhook")
async def verify_whatsapp_webhook(request: Request, settings: Settings = Depends(get_settings)):
    """Answer the WhatsApp webhook verification handshake."""
    mode = request.query_params.get("hub.mode")
    token = request.query_params.get("hub.verify_token")
    challenge = request.query_params.get("hub.challenge", "")

    if (
        mode == "subscribe"
        and token
        and settings.whatsapp_verify_token
        and token == settings.whatsapp_verify_token
    ):
        return PlainTextResponse(challenge)

    return PlainTextResponse("Forbidden", status_code=403)


@app.post("/api/queries/whatsapp/webhook")
def whatsapp_webhook(payload: dict, services: Services = Depends(get_services)):
    """Receive WhatsApp messages."""
    try:
        services.whatsapp.handle_incoming_message(payload)
    except Exception as e:
        logger.error(f"WhatsApp webhook error: {e}")
        return PlainTextResponse("Error", status_code=500)
    return PlainTextResponse("OK")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)
