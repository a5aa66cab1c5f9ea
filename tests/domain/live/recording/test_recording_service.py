"""Tests for RecordingService: lifecycle, fan-out and finalization."""

import asyncio
from pathlib import Path

import pytest

from app.domain.live.recording import (
    LocalRecordingFinalizer,
    MemorySink,
    Recording,
    RecordingFinalizer,
    RecordingService,
    RecordingSink,
    RecordingSinkError,
    RecordingUploadError,
    S3RecordingFinalizer,
)
from app.domain.live.rooms import RoomHub
from app.schemas import FinalizedRecording, RecordingState, ServerSignal
from tests.fixtures.relay_fixtures import FakeConnection


class CountingFinalizer(RecordingFinalizer):
    """Memory-backed finalizer that records every finalize call."""

    def __init__(self, gate: asyncio.Event | None = None) -> None:
        self.finalized: list[tuple[str, bytes]] = []
        self.gate = gate

    def create_sink(self, filename: str) -> RecordingSink:
        return MemorySink()

    async def finalize(self, recording: Recording) -> FinalizedRecording:
        if self.gate is not None:
            await self.gate.wait()
        sink = recording.sink
        assert isinstance(sink, MemorySink)
        content = sink.assemble()
        self.finalized.append((recording.filename, content))
        return FinalizedRecording(
            filename=recording.filename,
            size=len(content),
            duration=recording.elapsed_seconds(),
            url=f"https://cdn.example.com/{recording.filename}",
        )


class FailingUploadFinalizer(CountingFinalizer):
    async def finalize(self, recording: Recording) -> FinalizedRecording:
        raise RecordingUploadError(recording.filename, "bucket unreachable")


class FailingSinkFinalizer(CountingFinalizer):
    async def finalize(self, recording: Recording) -> FinalizedRecording:
        raise RecordingSinkError(recording.filename, "disk full")


class BrokenWriteSink(MemorySink):
    async def write(self, data: bytes) -> None:
        raise OSError("No space left on device")


class BrokenWriteFinalizer(CountingFinalizer):
    def create_sink(self, filename: str) -> RecordingSink:
        return BrokenWriteSink()


def make_service(finalizer: RecordingFinalizer) -> tuple[RecordingService, RoomHub, FakeConnection]:
    hub = RoomHub()
    connection = FakeConnection("c1")
    hub.attach(connection)
    hub.join("c1", "c1")
    return RecordingService(hub=hub, finalizer=finalizer), hub, connection


class TestStart:
    async def test_start_creates_recording_with_filename(self):
        service, _, _ = make_service(CountingFinalizer())

        recording = await service.start("c1")

        assert recording is not None
        assert recording.filename == f"recording_c1_{recording.started_at_ms}.webm"
        assert recording.chunk_count == 0
        assert service.get_state("c1") == RecordingState.RECORDING

    async def test_second_start_is_rejected(self):
        """A start while recording leaves the active recording untouched."""
        service, _, _ = make_service(CountingFinalizer())
        first = await service.start("c1")
        await service.chunk("c1", b"data")

        second = await service.start("c1")

        assert second is None
        assert service.get_recording("c1") is first
        assert first.chunk_count == 1

    async def test_restart_while_finalizing_saves_both_takes(self):
        """Stop followed right away by start produces two saved recordings."""
        gate = asyncio.Event()
        finalizer = CountingFinalizer(gate=gate)
        service, _, connection = make_service(finalizer)

        first = await service.start("c1")
        await service.chunk("c1", b"take-1")
        first_task = service.stop("c1")
        assert service.get_state("c1") == RecordingState.FINALIZING

        second = await service.start("c1")
        assert second is not None
        assert service.get_state("c1") == RecordingState.RECORDING
        await service.chunk("c1", b"take-2")
        second_task = service.stop("c1")

        gate.set()
        await first_task
        await second_task

        assert second.filename != first.filename
        assert sorted(finalizer.finalized) == sorted(
            [(first.filename, b"take-1"), (second.filename, b"take-2")]
        )
        saved = connection.events_named(ServerSignal.RECORDING_SAVED.value)
        assert {s["filename"] for s in saved} == {first.filename, second.filename}
        assert service.get_state("c1") == RecordingState.IDLE

    async def test_restart_within_same_millisecond_gets_new_filename(self, monkeypatch):
        import app.domain.live.recording.recording_domain as recording_domain

        monkeypatch.setattr(recording_domain, "now_ms", lambda: 1700000000000)
        gate = asyncio.Event()
        service, _, _ = make_service(CountingFinalizer(gate=gate))

        first = await service.start("c1")
        service.stop("c1")
        second = await service.start("c1")

        assert first.filename == "recording_c1_1700000000000.webm"
        assert second.filename == "recording_c1_1700000000001.webm"
        gate.set()
        service.stop("c1")
        await service.drain()


class TestChunk:
    async def test_chunk_without_recording_is_ignored(self):
        service, _, connection = make_service(CountingFinalizer())

        accepted = await service.chunk("c1", b"data")

        assert accepted is False
        assert connection.frames == []

    async def test_chunk_count_matches_accepted_chunks(self):
        service, _, _ = make_service(CountingFinalizer())
        recording = await service.start("c1")

        for i in range(5):
            await service.chunk("c1", bytes([i]), is_first=(i == 0))

        assert recording.chunk_count == 5

    async def test_chunks_are_fanned_out_to_room(self):
        service, hub, broadcaster = make_service(CountingFinalizer())
        viewer = FakeConnection("v1")
        hub.attach(viewer)
        hub.join("v1", "c1")
        await service.start("c1")

        await service.chunk("c1", b"head", is_first=True)
        await service.chunk("c1", b"body")

        assert viewer.frames == [b"head", b"body"]
        assert broadcaster.frames == [b"head", b"body"]

    async def test_fan_out_continues_after_persistence_failure(self):
        service, hub, _ = make_service(BrokenWriteFinalizer())
        viewer = FakeConnection("v1")
        hub.attach(viewer)
        hub.join("v1", "c1")
        recording = await service.start("c1")

        await service.chunk("c1", b"one")
        await service.chunk("c1", b"two")

        assert viewer.frames == [b"one", b"two"]
        assert recording.failed is True
        assert recording.chunk_count == 2


class TestHeaderOrdering:
    async def test_header_leads_even_when_it_arrives_late(self):
        finalizer = CountingFinalizer()
        service, _, _ = make_service(finalizer)
        await service.start("c1")

        await service.chunk("c1", b"B1")
        await service.chunk("c1", b"H", is_first=True)
        await service.chunk("c1", b"B2")
        await service.stop("c1")

        assert finalizer.finalized[0][1] == b"HB1B2"

    async def test_second_first_fragment_is_an_ordinary_chunk(self):
        finalizer = CountingFinalizer()
        service, _, _ = make_service(finalizer)
        await service.start("c1")

        await service.chunk("c1", b"H1", is_first=True)
        await service.chunk("c1", b"H2", is_first=True)
        await service.stop("c1")

        assert finalizer.finalized[0][1] == b"H1H2"

    async def test_local_recording_scenario(self, tmp_path: Path):
        """10-byte header then 90 bytes of body produce a 100-byte file."""
        service, _, connection = make_service(LocalRecordingFinalizer(tmp_path))
        recording = await service.start("c1")

        await service.chunk("c1", b"h" * 10, is_first=True)
        await service.chunk("c1", b"b" * 90)
        result = await service.stop("c1")

        assert result is not None
        assert result.size == 100
        saved = (tmp_path / recording.filename).read_bytes()
        assert saved == b"h" * 10 + b"b" * 90
        payloads = connection.events_named(ServerSignal.RECORDING_SAVED.value)
        assert payloads == [
            {"filename": recording.filename, "size": 100, "duration": result.duration}
        ]


class TestStop:
    async def test_stop_without_recording_returns_none(self):
        service, _, _ = make_service(CountingFinalizer())
        assert service.stop("c1") is None

    async def test_stop_and_disconnect_finalize_once(self):
        finalizer = CountingFinalizer()
        service, _, _ = make_service(finalizer)
        await service.start("c1")

        task = service.stop("c1")
        assert service.disconnect("c1") is None
        await task

        assert len(finalizer.finalized) == 1

    async def test_recording_saved_sent_to_broadcaster(self):
        service, _, connection = make_service(CountingFinalizer())
        recording = await service.start("c1")
        await service.chunk("c1", b"data")

        await service.stop("c1")

        saved = connection.events_named(ServerSignal.RECORDING_SAVED.value)
        assert len(saved) == 1
        assert saved[0]["filename"] == recording.filename
        assert saved[0]["size"] == 4
        assert saved[0]["url"].endswith(recording.filename)

    async def test_upload_failure_sends_upload_failed(self):
        service, _, connection = make_service(FailingUploadFinalizer())
        recording = await service.start("c1")

        result = await service.stop("c1")

        assert result is None
        assert connection.events_named(ServerSignal.UPLOAD_FAILED.value) == [
            {"filename": recording.filename, "reason": "bucket unreachable"}
        ]
        assert connection.events_named(ServerSignal.RECORDING_SAVED.value) == []
        assert service.get_state("c1") == RecordingState.IDLE

    async def test_sink_failure_is_not_reported(self):
        service, _, connection = make_service(FailingSinkFinalizer())
        await service.start("c1")

        await service.stop("c1")

        assert connection.events_named(ServerSignal.RECORDING_SAVED.value) == []
        assert connection.events_named(ServerSignal.UPLOAD_FAILED.value) == []

    async def test_notification_after_disconnect_is_noop(self):
        gate = asyncio.Event()
        service, hub, connection = make_service(CountingFinalizer(gate=gate))
        await service.start("c1")

        hub.detach("c1")
        task = service.disconnect("c1")
        gate.set()
        result = await task

        assert result is not None
        assert connection.events == []


class TestDrain:
    async def test_drain_waits_for_pending_finalizations(self):
        gate = asyncio.Event()
        finalizer = CountingFinalizer(gate=gate)
        service, _, _ = make_service(finalizer)
        await service.start("c1")
        service.stop("c1")
        assert service.pending_finalizations == 1

        asyncio.get_running_loop().call_soon(gate.set)
        await service.drain()

        assert len(finalizer.finalized) == 1
        assert service.pending_finalizations == 0


@pytest.mark.parametrize("is_first", [True, False])
async def test_single_chunk_recording(is_first: bool):
    finalizer = CountingFinalizer()
    service, _, _ = make_service(finalizer)
    await service.start("c1")

    await service.chunk("c1", b"only", is_first=is_first)
    await service.stop("c1")

    assert finalizer.finalized[0][1] == b"only"


class RaisingStorage:
    async def upload_recording(self, filename, content, content_type, metadata=None):
        raise RuntimeError("connection pool is closed")


async def test_unexpected_upload_error_is_reported_to_broadcaster():
    service, _, connection = make_service(S3RecordingFinalizer(storage=RaisingStorage()))  # type: ignore[arg-type]
    recording = await service.start("c1")
    await service.chunk("c1", b"data")

    await service.stop("c1")

    assert connection.events_named(ServerSignal.UPLOAD_FAILED.value) == [
        {"filename": recording.filename, "reason": "RuntimeError: connection pool is closed"}
    ]
    assert connection.events_named(ServerSignal.RECORDING_SAVED.value) == []
