"""Chat-completion gateway.

Posts the user's query together with the system prompt, identity, attached
document paths and segment index to ``{base}/chat-process`` and returns the
assistant's text.
"""

import logging
from typing import Sequence

import httpx

from ..config import get_chat_endpoint, get_system_prompt
from ..core import UserInfo
from .base import GatewayError, JsonGateway

logger = logging.getLogger(__name__)


class ChatGateway(JsonGateway):
    name = "chat"

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        context: str | None = None,
    ):
        super().__init__(get_chat_endpoint() if base_url is None else base_url, client)
        self.context = context

    def build_payload(
        self,
        query: str,
        attachment_paths: Sequence[str],
        user_info: UserInfo,
        segment_index: int,
    ) -> dict:
        # The backend gets the full system prompt on every call, not only the first.
        return {
            "query": query,
            "context": self.context or get_system_prompt(),
            "userInfo": user_info.to_payload(),
            "s3_paths": list(attachment_paths),
            "segment_index": segment_index,
        }

    async def send(
        self,
        query: str,
        attachment_paths: Sequence[str],
        user_info: UserInfo,
        segment_index: int,
    ) -> str:
        payload = self.build_payload(query, attachment_paths, user_info, segment_index)
        logger.debug(
            "Sending segment %d with %d attachment(s)", segment_index, len(payload["s3_paths"])
        )
        data = await self._post("/chat-process", payload)

        reply = data.get("llm_response")
        if not isinstance(reply, str):
            raise GatewayError("chat API returned no llm_response")
        return reply
