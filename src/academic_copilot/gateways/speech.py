"""Text-to-speech gateway and local audio playback."""

import asyncio
import logging
import os
import tempfile
from abc import ABC, abstractmethod

import httpx

from ..config import get_audio_player_command, get_tts_endpoint, get_tts_voice
from .base import GatewayError, JsonGateway

logger = logging.getLogger(__name__)


class PlaybackError(Exception):
    """The synthesized audio could not be played."""


class SpeechGateway(JsonGateway):
    name = "speech"

    def __init__(self, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(get_tts_endpoint() if base_url is None else base_url, client)

    async def synthesize(self, text: str, voice_id: str | None = None) -> str:
        """Return a URL of the spoken rendition of ``text``."""
        data = await self._post("/text-to-speech", {
            "text": text,
            "voiceId": voice_id or get_tts_voice(),
        })
        audio_url = data.get("audioUrl")
        if not audio_url:
            raise GatewayError("speech API returned no audioUrl")
        return audio_url


class AudioPlayer(ABC):
    """Plays an audio resource; ``play`` returns once playback has ended."""

    @abstractmethod
    async def play(self, audio_url: str) -> None:
        """Play the clip at ``audio_url``, raising PlaybackError on failure."""
        ...


class SubprocessAudioPlayer(AudioPlayer):
    """Downloads the clip and hands it to a command-line player."""

    def __init__(self, command: list[str] | None = None, client: httpx.AsyncClient | None = None):
        self.command = command or get_audio_player_command()
        self._client = client

    async def _download(self, audio_url: str) -> bytes:
        client = self._client or httpx.AsyncClient(timeout=None)
        try:
            resp = await client.get(audio_url)
            resp.raise_for_status()
            return resp.content
        except httpx.HTTPError as e:
            raise PlaybackError(f"could not fetch audio: {e}") from e
        finally:
            if client is not self._client:
                await client.aclose()

    async def play(self, audio_url: str) -> None:
        audio = await self._download(audio_url)

        fd, path = tempfile.mkstemp(suffix=".mp3", prefix="copilot-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio)

            try:
                proc = await asyncio.create_subprocess_exec(
                    *self.command, path,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                raise PlaybackError(f"audio player unavailable: {self.command[0]}") from e

            returncode = await proc.wait()
            if returncode != 0:
                raise PlaybackError(f"audio player exited with status {returncode}")
        finally:
            os.unlink(path)


async def speak(gateway: SpeechGateway, player: AudioPlayer, text: str) -> None:
    """Synthesize ``text`` and play it, returning when playback ends."""
    audio_url = await gateway.synthesize(text)
    logger.debug("Playing %s", audio_url)
    await player.play(audio_url)
