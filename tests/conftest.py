"""Shared test fixtures for academic-copilot."""

import json

import httpx
import pytest

from academic_copilot.core import LocalFile
from academic_copilot.gateways import ChatGateway, Gateways, SpeechGateway, UploadGateway
from academic_copilot.identity import MemoryIdentityStore
from academic_copilot.session import create_session

CHAT_URL = "https://chat.test"
UPLOAD_URL = "https://upload.test"
TTS_URL = "https://tts.test"


class FakeBackend:
    """Stands in for the chat, upload-url, storage and TTS services.

    Every request is recorded; tweak the attributes to make a service fail.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.chat_status = 200
        self.chat_body: dict = {"success": True, "llm_response": "# Resumo\n- ponto um\n- ponto dois"}
        self.upload_status = 200
        self.failing_uploads: set[str] = set()  # file names whose upload-url call reports failure
        self.put_status = 200
        self.tts_status = 200
        self.tts_body: dict = {"success": True, "audioUrl": "https://tts.test/audio/clip-1.mp3"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host == "chat.test" and request.url.path == "/chat-process":
            return httpx.Response(self.chat_status, json=self.chat_body)

        if host == "upload.test" and request.url.path == "/upload-url":
            body = json.loads(request.content)
            if body["fileName"] in self.failing_uploads:
                return httpx.Response(200, json={"success": False, "error": "quota exceeded"})
            return httpx.Response(self.upload_status, json={
                "success": True,
                "uploadUrl": f"https://storage.test/put/{body['fileName']}?sig=abc",
                "s3Path": f"s3://copilot-docs/{body['userId']}/{body['fileName']}",
            })

        if host == "storage.test" and request.method == "PUT":
            return httpx.Response(self.put_status)

        if host == "tts.test" and request.url.path == "/text-to-speech":
            return httpx.Response(self.tts_status, json=self.tts_body)

        if host == "tts.test" and request.url.path.startswith("/audio/"):
            return httpx.Response(200, content=b"ID3fake-mp3-bytes")

        return httpx.Response(404)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def json_bodies(self, host: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests_to(host)]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def http_client(backend):
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))


@pytest.fixture
def gateways(http_client):
    return Gateways(
        chat=ChatGateway(CHAT_URL, http_client, context="Você é um tutor."),
        upload=UploadGateway(UPLOAD_URL, http_client),
        speech=SpeechGateway(TTS_URL, http_client),
    )


@pytest.fixture
def identity():
    return MemoryIdentityStore()


@pytest.fixture
def session(gateways, identity):
    return create_session(gateways=gateways, identity=identity)


@pytest.fixture
def notes_pdf():
    """A 2 MB PDF."""
    return LocalFile("notes.pdf", "application/pdf", b"%PDF-1.7\n" + b"\0" * (2 * 1024 * 1024))


@pytest.fixture
def diagram_png():
    return LocalFile("diagram.png", "image/png", b"\x89PNG\r\n\x1a\n" + b"\0" * 2048)


@pytest.fixture
def movie_mp4():
    return LocalFile("movie.mp4", "video/mp4", b"\0" * 4096)
