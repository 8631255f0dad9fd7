"""Remote service gateways: chat, upload and speech."""

from dataclasses import dataclass

import httpx

from .base import GatewayError, JsonGateway
from .chat import ChatGateway
from .speech import AudioPlayer, PlaybackError, SpeechGateway, SubprocessAudioPlayer, speak
from .upload import UploadGateway, UploadTarget

__all__ = [
    "AudioPlayer",
    "ChatGateway",
    "GatewayError",
    "Gateways",
    "JsonGateway",
    "PlaybackError",
    "SpeechGateway",
    "SubprocessAudioPlayer",
    "UploadGateway",
    "UploadTarget",
    "create_gateways",
    "speak",
]


@dataclass
class Gateways:
    chat: ChatGateway
    upload: UploadGateway
    speech: SpeechGateway

    async def aclose(self) -> None:
        for gateway in (self.chat, self.upload, self.speech):
            await gateway.aclose()


def create_gateways(client: httpx.AsyncClient | None = None) -> Gateways:
    """Build all three gateways from the environment, sharing one HTTP client."""
    if client is None:
        client = httpx.AsyncClient(timeout=None)
    return Gateways(
        chat=ChatGateway(client=client),
        upload=UploadGateway(client=client),
        speech=SpeechGateway(client=client),
    )
