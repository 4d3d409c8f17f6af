from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Literal, Optional

import httpx
import logging
import uvicorn
from fastapi import Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from assistant.advisor import ContactAdvisor
from assistant.core.prompt import StudioProfile, build_system_prompt
from assistant.errors import ConfigurationError, DeliveryError, UpstreamError, ValidationError
from assistant.relay import RedactingRelay
from assistant.tools.mailer import ContactMailer, ContactSubmission
from assistant.upstream import UpstreamChatClient
from config.settings import Settings, get_settings
from config.studio import get_redaction_rules, get_studio_profile


settings = get_settings()

logging.basicConfig(level=settings.log_level, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("luminary")

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Refuse to serve without credentials or with a broken studio config
    settings.require_credentials()
    get_studio_profile()
    get_redaction_rules()
    async with httpx.AsyncClient(timeout=settings.upstream_timeout) as http:
        app.state.http = http
        logger.info(
            "Config: chat_model=%s assist_model=%s history_limit=%s",
            settings.chat_model,
            settings.assist_model,
            settings.history_limit,
        )
        yield


app = FastAPI(title="Luminary Chat Proxy", version="1.0.0", lifespan=lifespan)

# CORS: allow local frontend during development
if settings.is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage] = Field(
        default_factory=list,
        description="Conversation so far (frontend-managed); only the most recent turns are forwarded",
    )
    live_stats: Optional[Any] = Field(
        default=None,
        alias="liveStats",
        description="Game name to live stats; anything but an object is ignored",
    )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_http(request: Request) -> httpx.AsyncClient:
    return request.app.state.http


def get_upstream(
    http: httpx.AsyncClient = Depends(get_http),
    settings: Settings = Depends(get_settings),
) -> UpstreamChatClient:
    return UpstreamChatClient(http, settings)


def get_relay() -> RedactingRelay:
    return RedactingRelay(get_redaction_rules())


def get_advisor(
    upstream: UpstreamChatClient = Depends(get_upstream),
    settings: Settings = Depends(get_settings),
) -> ContactAdvisor:
    return ContactAdvisor(upstream, settings)


def get_mailer(
    http: httpx.AsyncClient = Depends(get_http),
    settings: Settings = Depends(get_settings),
    profile: StudioProfile = Depends(get_studio_profile),
) -> ContactMailer:
    return ContactMailer(http, settings, studio_name=profile.studio_name)


def parse_submission(payload: Any) -> ContactSubmission:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be an object with name, email and message")
    try:
        return ContactSubmission.model_validate(payload)
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ValidationError(f"Missing or invalid fields: {', '.join(fields)}") from exc


# ---------------------------------------------------------------------------
# Error responses
# ---------------------------------------------------------------------------


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": "OpenAI API error"})


@app.exception_handler(DeliveryError)
async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
    logger.error("Contact delivery failed: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Failed to send message"})


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.post("/api/chat")
async def chat(
    req: ChatRequest,
    upstream: UpstreamChatClient = Depends(get_upstream),
    relay: RedactingRelay = Depends(get_relay),
    profile: StudioProfile = Depends(get_studio_profile),
):
    try:
        logger.info(
            "Incoming chat: history_turns=%s live_stats=%s",
            len(req.messages),
            isinstance(req.live_stats, dict),
        )
        system_prompt = build_system_prompt(req.live_stats, profile)
        chunks = await upstream.stream_completion(
            system_prompt, [m.model_dump() for m in req.messages]
        )
    except UpstreamError:
        raise
    except Exception as e:
        logger.exception("Chat error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # From here on the status line is sent; failures can only end the stream
    return StreamingResponse(
        relay.stream(chunks), media_type="text/event-stream", headers=SSE_HEADERS
    )


@app.post("/api/contact")
async def contact(
    payload: Optional[Any] = Body(None),
    advisor: ContactAdvisor = Depends(get_advisor),
    mailer: ContactMailer = Depends(get_mailer),
) -> Dict[str, Any]:
    submission = parse_submission(payload)
    logger.info("Incoming contact: message_len=%s", len(submission.message))
    subject = await advisor.generate_subject(submission.name, submission.message)
    await mailer.deliver(submission, subject)
    return {"ok": True}


@app.post("/api/contact/review")
async def review_contact(
    payload: Optional[Any] = Body(None),
    advisor: ContactAdvisor = Depends(get_advisor),
) -> Dict[str, Any]:
    submission = parse_submission(payload)
    feedback = await advisor.review_message(submission.name, submission.email, submission.message)
    return {"feedback": feedback}


@app.get("/health")
def health():
    return {"status": "ok"}


def run() -> None:
    settings = get_settings()
    try:
        settings.require_credentials()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        raise SystemExit(1)
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.chat_port)


if __name__ == "__main__":
    run()
