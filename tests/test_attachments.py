"""Tests for the attachment stager."""

import asyncio

import pytest

from academic_copilot.core import MAX_ATTACHMENT_BYTES, LocalFile
from academic_copilot.gateways import UploadGateway
from academic_copilot.identity import MemoryIdentityStore
from academic_copilot.session import create_session


class GatedUploadGateway(UploadGateway):
    """Upload gateway that holds the named files until ``release`` is set."""

    def __init__(self, held=()):
        super().__init__("https://upload.test")
        self.held = set(held)
        self.release = asyncio.Event()

    async def upload(self, user_id, file):
        if file.name in self.held:
            await self.release.wait()
        else:
            await asyncio.sleep(0)
        return f"s3://copilot-docs/{user_id}/{file.name}"


class FullDiskIdentityStore(MemoryIdentityStore):
    def set_item(self, key, value):
        raise OSError(28, "No space left on device")


class TestValidation:
    def test_accepts_supported_types(self, session, notes_pdf, diagram_png):
        stager = session.attachments
        assert stager.validate(notes_pdf) is None
        assert stager.validate(diagram_png) is None
        assert stager.validate(LocalFile("photo.jpg", "image/jpeg", b"\xff\xd8")) is None

    def test_rejects_unsupported_type(self, session, movie_mp4):
        reason = session.attachments.validate(movie_mp4)
        assert reason is not None
        assert "movie.mp4" in reason
        assert "não suportado" in reason

    def test_size_limit_is_inclusive(self, session):
        at_limit = LocalFile("big.pdf", "application/pdf", b"\0" * MAX_ATTACHMENT_BYTES)
        over_limit = LocalFile("huge.pdf", "application/pdf", b"\0" * (MAX_ATTACHMENT_BYTES + 1))
        assert session.attachments.validate(at_limit) is None
        reason = session.attachments.validate(over_limit)
        assert "huge.pdf" in reason
        assert "10MB" in reason


class TestStage:
    @pytest.mark.asyncio
    async def test_pdf_is_uploaded_and_pending(self, session, backend, notes_pdf):
        result = await session.attachments.stage([notes_pdf])

        assert [a.file_name for a in result.accepted] == ["notes.pdf"]
        assert result.rejected == []

        pending = session.attachments.pending
        assert len(pending) == 1
        attachment = pending[0]
        user_id = session.identity.user_id()
        assert attachment.remote_path == f"s3://copilot-docs/{user_id}/notes.pdf"
        assert attachment.upload_progress == 100

    @pytest.mark.asyncio
    async def test_upload_request_describes_file(self, session, backend, notes_pdf):
        await session.attachments.stage([notes_pdf])

        [body] = backend.json_bodies("upload.test")
        assert body == {
            "userId": session.identity.user_id(),
            "fileName": "notes.pdf",
            "fileType": "application/pdf",
            "fileSize": notes_pdf.size,
        }

        [put] = backend.requests_to("storage.test")
        assert put.method == "PUT"
        assert put.headers["content-type"] == "application/pdf"
        assert put.content == notes_pdf.data

    @pytest.mark.asyncio
    async def test_rejected_file_leaves_pending_unchanged(self, session, backend, notes_pdf, movie_mp4):
        await session.attachments.stage([notes_pdf])
        before = session.attachments.pending

        result = await session.attachments.stage([movie_mp4])

        assert session.attachments.pending == before
        [rejection] = result.rejected
        assert rejection.file_name == "movie.mp4"
        assert "movie.mp4" in rejection.reason
        # Rejected before any network call
        assert len(backend.requests_to("upload.test")) == 1

    @pytest.mark.asyncio
    async def test_rejection_does_not_abort_batch(self, session, movie_mp4, notes_pdf, diagram_png):
        result = await session.attachments.stage([movie_mp4, notes_pdf, diagram_png])

        assert [r.file_name for r in result.rejected] == ["movie.mp4"]
        assert [a.file_name for a in session.attachments.pending] == ["notes.pdf", "diagram.png"]

    @pytest.mark.asyncio
    async def test_duplicate_name_is_rejected(self, session, notes_pdf):
        await session.attachments.stage([notes_pdf])
        result = await session.attachments.stage([notes_pdf])

        assert len(session.attachments.pending) == 1
        assert "notes.pdf" in result.rejected[0].reason

    @pytest.mark.asyncio
    async def test_failed_authorization_skips_file(self, session, backend, notes_pdf, diagram_png):
        backend.failing_uploads = {"notes.pdf"}

        result = await session.attachments.stage([notes_pdf, diagram_png])

        assert [r.file_name for r in result.rejected] == ["notes.pdf"]
        assert "upload" in result.rejected[0].reason
        assert [a.file_name for a in session.attachments.pending] == ["diagram.png"]
        # No storage PUT for the file whose authorization failed
        assert [r.url.path for r in backend.requests_to("storage.test")] == ["/put/diagram.png"]

    @pytest.mark.asyncio
    async def test_failed_transfer_skips_file(self, session, backend, notes_pdf):
        backend.put_status = 403

        result = await session.attachments.stage([notes_pdf])

        assert session.attachments.pending == []
        assert result.rejected[0].file_name == "notes.pdf"
        assert session.attachments.uploading is False


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove_by_name(self, session, notes_pdf, diagram_png):
        await session.attachments.stage([notes_pdf, diagram_png])

        assert session.attachments.remove("notes.pdf") is True
        assert [a.file_name for a in session.attachments.pending] == ["diagram.png"]

    def test_remove_unknown_is_noop(self, session):
        assert session.attachments.remove("ghost.pdf") is False
        assert session.attachments.pending == []

    @pytest.mark.asyncio
    async def test_consume_keeps_restaged_file(self, session, notes_pdf):
        await session.attachments.stage([notes_pdf])
        sent = session.attachments.pending

        session.attachments.remove("notes.pdf")
        await session.attachments.stage([notes_pdf])
        session.attachments.consume(sent)

        assert [a.file_name for a in session.attachments.pending] == ["notes.pdf"]

    @pytest.mark.asyncio
    async def test_clear(self, session, notes_pdf, diagram_png):
        await session.attachments.stage([notes_pdf, diagram_png])
        session.attachments.clear()
        assert session.attachments.pending == []
        assert session.attachments.remote_paths == []


class TestOverlappingBatches:
    @pytest.mark.asyncio
    async def test_same_name_in_two_batches_is_staged_once(self, session, notes_pdf):
        gateway = GatedUploadGateway(held={"notes.pdf"})
        session.attachments.upload_gateway = gateway

        first = asyncio.create_task(session.attachments.stage([notes_pdf]))
        await asyncio.sleep(0)
        second = await session.attachments.stage([notes_pdf])

        gateway.release.set()
        await first

        assert [a.file_name for a in session.attachments.pending] == ["notes.pdf"]
        assert [r.file_name for r in second.rejected] == ["notes.pdf"]
        assert "já anexado" in second.rejected[0].reason

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_via_gather(self, session, notes_pdf):
        session.attachments.upload_gateway = GatedUploadGateway()

        results = await asyncio.gather(
            session.attachments.stage([notes_pdf]),
            session.attachments.stage([notes_pdf]),
        )

        assert len(session.attachments.pending) == 1
        assert sum(len(r.accepted) for r in results) == 1
        assert sum(len(r.rejected) for r in results) == 1

    @pytest.mark.asyncio
    async def test_uploading_stays_true_while_other_batch_in_flight(self, session, notes_pdf, diagram_png):
        gateway = GatedUploadGateway(held={"notes.pdf"})
        session.attachments.upload_gateway = gateway

        slow = asyncio.create_task(session.attachments.stage([notes_pdf]))
        await asyncio.sleep(0)
        await session.attachments.stage([diagram_png])

        assert not slow.done()
        assert session.attachments.uploading is True

        gateway.release.set()
        await slow
        assert session.attachments.uploading is False


@pytest.mark.asyncio
async def test_identity_storage_error_skips_file(gateways, notes_pdf, diagram_png):
    session = create_session(gateways=gateways, identity=FullDiskIdentityStore())

    result = await session.attachments.stage([notes_pdf, diagram_png])

    assert [r.file_name for r in result.rejected] == ["notes.pdf", "diagram.png"]
    assert session.attachments.pending == []
    assert session.attachments.uploading is False
