"""Core data models for academic-copilot."""

import mimetypes
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

# Attachment limits
ALLOWED_MEDIA_TYPES = frozenset({"application/pdf", "image/png", "image/jpeg", "image/jpg"})
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024

# User-facing text (pt-BR)
ERROR_REPLY = "Desculpe, ocorreu um erro ao processar sua mensagem. Por favor, tente novamente."
PLAYBACK_ERROR = "Erro ao reproduzir áudio"
UNSUPPORTED_TYPE = "Tipo de arquivo não suportado: {name}"
FILE_TOO_LARGE = "Arquivo muito grande: {name} (máx 10MB)"
DUPLICATE_FILE = "Arquivo já anexado: {name}"
UPLOAD_FAILED = "Erro ao fazer upload: {name}"


def new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UserInfo:
    """Identity sent along with every chat request."""

    user_id: str
    name: str = ""
    age: int = 0

    def to_payload(self) -> dict:
        return {"userId": self.user_id, "name": self.name, "age": self.age}


@dataclass(frozen=True)
class LocalFile:
    """A file picked by the user, held in memory until uploaded."""

    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path) -> "LocalFile":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or "application/octet-stream",
            data=path.read_bytes(),
        )


@dataclass
class Attachment:
    """A staged file waiting to be referenced by the next message."""

    file_name: str  # unique within the pending set
    file: LocalFile
    remote_path: str = ""  # e.g. "s3://bucket/user/notes.pdf", set after upload
    upload_progress: int = 0  # 0-100


@dataclass(frozen=True)
class Message:
    """A single transcript entry."""

    segment_index: int
    from_assistant: bool
    content: str
    attachment_paths: tuple[str, ...] = ()
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=_now)
    pending: bool = False  # provisional assistant entry awaiting its reply
