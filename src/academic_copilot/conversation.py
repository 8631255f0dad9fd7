"""Conversation state machine.

A submit appends the user's message and a provisional assistant entry at
once, then waits for the chat service. The provisional entry is confirmed
with the reply, or replaced by a fixed error text if the call fails, so
every user message is followed by exactly one assistant entry.
"""

import dataclasses
import enum
import logging
from dataclasses import dataclass

from .attachments import AttachmentStager
from .core import ERROR_REPLY, Message
from .gateways import ChatGateway, GatewayError
from .identity import IdentityProvider

logger = logging.getLogger(__name__)


class ConversationState(enum.Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


@dataclass(frozen=True)
class Exchange:
    """Outcome of one round trip."""

    user_message: Message
    reply: Message
    ok: bool


class ConversationController:
    def __init__(
        self,
        chat_gateway: ChatGateway,
        attachments: AttachmentStager,
        identity: IdentityProvider,
    ):
        self.chat_gateway = chat_gateway
        self.attachments = attachments
        self.identity = identity
        self.input_text = ""
        self.state = ConversationState.IDLE
        self._messages: list[Message] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_loading(self) -> bool:
        return self.state is ConversationState.AWAITING_RESPONSE

    def get_message(self, message_id: str) -> Message | None:
        return next((m for m in self._messages if m.id == message_id), None)

    def reset(self) -> bool:
        """Start a new conversation. Refused while a reply is outstanding."""
        if self.is_loading:
            return False
        self._messages = []
        self.input_text = ""
        return True

    async def submit(self, text: str | None = None) -> Exchange | None:
        """Send ``text`` (or the current input) and wait for the reply.

        Returns None without doing anything when the text is blank or a
        previous message is still awaiting its reply.
        """
        content = (self.input_text if text is None else text).strip()
        if not content or self.is_loading:
            return None

        sent = self.attachments.pending
        paths = tuple(a.remote_path for a in sent)
        base = len(self._messages)

        user_message = Message(
            segment_index=base + 1,
            from_assistant=False,
            content=content,
            attachment_paths=paths,
        )
        provisional = Message(
            segment_index=base + 2,
            from_assistant=True,
            content="",
            pending=True,
        )
        self._messages.extend([user_message, provisional])
        self.input_text = ""
        self.state = ConversationState.AWAITING_RESPONSE

        try:
            reply_text = await self.chat_gateway.send(
                content, paths, self.identity.identity(), user_message.segment_index
            )
        except (GatewayError, OSError) as e:
            logger.error("Failed to send message: %s", e)
            reply = self._settle(provisional, ERROR_REPLY)
            return Exchange(user_message, reply, ok=False)
        finally:
            self.state = ConversationState.IDLE

        reply = self._settle(provisional, reply_text)
        self.attachments.consume(sent)
        return Exchange(user_message, reply, ok=True)

    def _settle(self, provisional: Message, content: str) -> Message:
        """Swap the provisional entry for its final form, keeping id and position."""
        final = dataclasses.replace(provisional, content=content, pending=False)
        for i, m in enumerate(self._messages):
            if m.id == provisional.id:
                self._messages[i] = final
                break
        return final
