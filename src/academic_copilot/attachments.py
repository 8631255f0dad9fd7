"""Staging of user-selected files before they are sent with a message."""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .core import (
    ALLOWED_MEDIA_TYPES,
    DUPLICATE_FILE,
    FILE_TOO_LARGE,
    MAX_ATTACHMENT_BYTES,
    UNSUPPORTED_TYPE,
    UPLOAD_FAILED,
    Attachment,
    LocalFile,
)
from .gateways import GatewayError, UploadGateway
from .identity import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rejection:
    file_name: str
    reason: str  # user-facing, names the file


@dataclass
class StageResult:
    accepted: list[Attachment] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)


class AttachmentStager:
    """Validates, uploads and holds files pending the next message.

    Files in a batch are handled one at a time; a rejected or failed file is
    reported and skipped without affecting the rest of the batch.
    """

    def __init__(self, upload_gateway: UploadGateway, identity: IdentityProvider):
        self.upload_gateway = upload_gateway
        self.identity = identity
        self._pending: list[Attachment] = []
        self._in_flight: set[str] = set()  # names being uploaded by any batch

    @property
    def pending(self) -> list[Attachment]:
        return list(self._pending)

    @property
    def uploading(self) -> bool:
        return bool(self._in_flight)

    @property
    def remote_paths(self) -> list[str]:
        return [a.remote_path for a in self._pending]

    def has(self, file_name: str) -> bool:
        return any(a.file_name == file_name for a in self._pending)

    def validate(self, file: LocalFile) -> str | None:
        """Return a rejection reason for ``file``, or None if it is acceptable."""
        if file.content_type not in ALLOWED_MEDIA_TYPES:
            return UNSUPPORTED_TYPE.format(name=file.name)
        if file.size > MAX_ATTACHMENT_BYTES:
            return FILE_TOO_LARGE.format(name=file.name)
        if self.has(file.name) or file.name in self._in_flight:
            return DUPLICATE_FILE.format(name=file.name)
        return None

    async def stage(self, files: Iterable[LocalFile]) -> StageResult:
        result = StageResult()
        for file in files:
            reason = self.validate(file)
            if reason:
                logger.info("Rejected %s: %s", file.name, reason)
                result.rejected.append(Rejection(file.name, reason))
                continue

            self._in_flight.add(file.name)
            try:
                remote_path = await self.upload_gateway.upload(self.identity.user_id(), file)
            except (GatewayError, OSError) as e:
                logger.error("Upload of %s failed: %s", file.name, e)
                result.rejected.append(Rejection(file.name, UPLOAD_FAILED.format(name=file.name)))
                continue
            finally:
                self._in_flight.discard(file.name)

            attachment = Attachment(
                file_name=file.name,
                file=file,
                remote_path=remote_path,
                upload_progress=100,
            )
            self._pending.append(attachment)
            result.accepted.append(attachment)
        return result

    def remove(self, file_name: str) -> bool:
        """Drop a pending attachment by name. Returns False if it wasn't pending."""
        before = len(self._pending)
        self._pending = [a for a in self._pending if a.file_name != file_name]
        return len(self._pending) != before

    def consume(self, attachments: Iterable[Attachment]) -> None:
        """Remove attachments that have been delivered with a message.

        Matches by object, so a same-named file staged while the message was
        in flight stays pending.
        """
        sent = {id(a) for a in attachments}
        self._pending = [a for a in self._pending if id(a) not in sent]

    def clear(self) -> None:
        self._pending = []
