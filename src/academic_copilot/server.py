"""FastAPI web server for academic-copilot."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .core import PLAYBACK_ERROR, Attachment, LocalFile, Message
from .formatting import parse_message, render_html
from .gateways import GatewayError
from .session import ChatSession, create_session

logger = logging.getLogger(__name__)

# Session (created on first request)
_session: ChatSession | None = None


def _get_session() -> ChatSession:
    """Lazily create and cache the single chat session."""
    global _session
    if _session is None:
        _session = create_session()
        logger.info("Identity store: %s", _session.identity.name)
    return _session


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the session's HTTP client on shutdown."""
    global _session
    yield
    if _session is not None:
        await _session.aclose()
        _session = None


app = FastAPI(title="academic-copilot", version="0.1.0", lifespan=lifespan)


class SubmitRequest(BaseModel):
    text: str


class SpeechRequest(BaseModel):
    message_id: str


class ProfileRequest(BaseModel):
    name: str = Field(min_length=1)
    age: int = Field(gt=0)


def _message_to_dict(msg: Message) -> dict:
    """Convert a Message dataclass to a JSON-serializable dict."""
    return {
        "id": msg.id,
        "segment_index": msg.segment_index,
        "from_assistant": msg.from_assistant,
        "content": msg.content,
        "html": render_html(parse_message(msg.content)),
        "attachment_paths": list(msg.attachment_paths),
        "timestamp": msg.timestamp.isoformat(),
        "pending": msg.pending,
    }


def _attachment_to_dict(attachment: Attachment) -> dict:
    return {
        "file_name": attachment.file_name,
        "content_type": attachment.file.content_type,
        "size": attachment.file.size,
        "remote_path": attachment.remote_path,
        "upload_progress": attachment.upload_progress,
    }


def _profile_to_dict(session: ChatSession) -> dict:
    profile = session.identity.load()
    return {
        "user_id": session.identity.user_id(),
        "profile": {"name": profile.name, "age": profile.age} if profile else None,
    }


# ── Routes ───────────────────────────────────────────────────────


@app.get("/")
async def index():
    """Serve the frontend."""
    html_path = Path(__file__).parent / "static" / "index.html"
    if not html_path.exists():
        raise HTTPException(status_code=404, detail="Frontend not found")
    return HTMLResponse(html_path.read_text(encoding="utf-8"))


@app.get("/api/state")
async def get_state():
    """Return the transcript, pending attachments and loading flag."""
    session = _get_session()
    return {
        "messages": [_message_to_dict(m) for m in session.conversation.messages],
        "attachments": [_attachment_to_dict(a) for a in session.attachments.pending],
        "is_loading": session.conversation.is_loading,
        "uploading": session.attachments.uploading,
        **_profile_to_dict(session),
    }


@app.post("/api/messages")
async def post_message(body: SubmitRequest):
    """Send a message and wait for the assistant's reply."""
    session = _get_session()
    exchange = await session.conversation.submit(body.text)
    if exchange is None:
        return {"accepted": False, "messages": []}
    return {
        "accepted": True,
        "ok": exchange.ok,
        "messages": [_message_to_dict(exchange.user_message), _message_to_dict(exchange.reply)],
    }


@app.post("/api/attachments")
async def post_attachments(files: list[UploadFile] = File(...)):
    """Validate and upload a batch of files."""
    session = _get_session()
    local_files = []
    for upload in files:
        local_files.append(LocalFile(
            name=upload.filename or "",
            content_type=upload.content_type or "application/octet-stream",
            data=await upload.read(),
        ))

    result = await session.attachments.stage(local_files)
    return {
        "attachments": [_attachment_to_dict(a) for a in session.attachments.pending],
        "accepted": [a.file_name for a in result.accepted],
        "rejected": [{"file_name": r.file_name, "reason": r.reason} for r in result.rejected],
    }


@app.delete("/api/attachments/{file_name:path}")
async def delete_attachment(file_name: str):
    session = _get_session()
    removed = session.attachments.remove(file_name)
    return {
        "removed": removed,
        "attachments": [_attachment_to_dict(a) for a in session.attachments.pending],
    }


@app.post("/api/conversation/reset")
async def reset_conversation():
    session = _get_session()
    if not session.conversation.reset():
        raise HTTPException(status_code=409, detail="A reply is still pending")
    return {"messages": []}


@app.post("/api/speech")
async def post_speech(body: SpeechRequest):
    """Synthesize an assistant message; the browser plays the returned URL."""
    session = _get_session()
    msg = session.conversation.get_message(body.message_id)
    if msg is None or not msg.from_assistant or msg.pending:
        raise HTTPException(status_code=404, detail="Message not found")

    try:
        audio_url = await session.gateways.speech.synthesize(msg.content)
    except GatewayError as e:
        logger.error("Speech synthesis failed for %s: %s", msg.id, e)
        raise HTTPException(status_code=502, detail=PLAYBACK_ERROR)

    return {"audio_url": audio_url}


@app.get("/api/profile")
async def get_profile():
    return _profile_to_dict(_get_session())


@app.put("/api/profile")
async def put_profile(body: ProfileRequest):
    session = _get_session()
    try:
        session.identity.save(body.name, body.age)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _profile_to_dict(session)


@app.delete("/api/profile")
async def delete_profile():
    session = _get_session()
    session.identity.clear()
    return _profile_to_dict(session)
