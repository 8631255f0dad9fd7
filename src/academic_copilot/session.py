"""Wiring of one chat session: gateways, identity, attachments, conversation."""

from dataclasses import dataclass

from .attachments import AttachmentStager
from .conversation import ConversationController
from .gateways import Gateways, create_gateways
from .identity import IdentityProvider, get_identity_provider


@dataclass
class ChatSession:
    gateways: Gateways
    identity: IdentityProvider
    attachments: AttachmentStager
    conversation: ConversationController

    async def aclose(self) -> None:
        await self.gateways.aclose()


def create_session(
    gateways: Gateways | None = None,
    identity: IdentityProvider | None = None,
) -> ChatSession:
    gateways = gateways or create_gateways()
    identity = identity or get_identity_provider()
    attachments = AttachmentStager(gateways.upload, identity)
    conversation = ConversationController(gateways.chat, attachments, identity)
    return ChatSession(
        gateways=gateways,
        identity=identity,
        attachments=attachments,
        conversation=conversation,
    )
