"""
Unit tests for the recognition worker session lifecycle.
"""

import asyncio

import pytest

from conftest import FakeRecognitionEngine
from resume_ingest.recognition import RecognitionWorker, WorkerState


@pytest.mark.unit
class TestRecognitionWorker:
    """Lazy creation, reuse, language replacement and teardown."""

    @pytest.mark.asyncio
    async def test_lazy_initialization(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)
        assert worker.state is WorkerState.UNINITIALIZED
        assert engine.events == []

        async with worker.acquire("eng") as session:
            assert session.language == "eng"

        assert worker.state is WorkerState.READY
        assert worker.language == "eng"
        assert engine.events == ["create:eng"]

    @pytest.mark.asyncio
    async def test_same_language_reuses_session(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)

        async with worker.acquire("eng") as first:
            pass
        async with worker.acquire("eng") as second:
            pass

        assert first is second
        assert worker.sessions_created == 1
        assert engine.events == ["create:eng"]

    @pytest.mark.asyncio
    async def test_language_change_tears_down_exactly_once(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)

        async with worker.acquire("eng"):
            pass
        async with worker.acquire("fra") as session:
            assert session.language == "fra"

        assert engine.events == ["create:eng", "destroy:eng", "create:fra"]
        assert engine.max_live_sessions == 1
        assert worker.sessions_destroyed == 1
        assert worker.language == "fra"

    @pytest.mark.asyncio
    async def test_terminate(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)

        async with worker.acquire("eng"):
            pass
        await worker.terminate()

        assert worker.state is WorkerState.TERMINATED
        assert worker.language is None
        assert engine.live_sessions == 0
        assert engine.events == ["create:eng", "destroy:eng"]

    @pytest.mark.asyncio
    async def test_terminate_is_idempotent(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)

        await worker.terminate()
        async with worker.acquire("eng"):
            pass
        await worker.terminate()
        await worker.terminate()

        assert engine.events == ["create:eng", "destroy:eng"]
        assert worker.state is WorkerState.TERMINATED

    @pytest.mark.asyncio
    async def test_acquire_after_terminate_reinitializes(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)

        async with worker.acquire("eng"):
            pass
        await worker.terminate()
        async with worker.acquire("eng") as session:
            assert session.closed is False

        assert worker.state is WorkerState.READY
        assert worker.sessions_created == 2

    @pytest.mark.asyncio
    async def test_dedicated_session_leaves_shared_untouched(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)

        async with worker.acquire("eng") as shared:
            pass
        async with worker.dedicated("deu") as private:
            assert private is not shared
            assert private.language == "deu"

        assert private.closed is True
        assert shared.closed is False
        assert worker.language == "eng"
        assert engine.events == ["create:eng", "create:deu", "destroy:deu"]

    @pytest.mark.asyncio
    async def test_dedicated_session_destroyed_on_error(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)

        with pytest.raises(RuntimeError):
            async with worker.dedicated("eng"):
                raise RuntimeError("boom")

        assert engine.live_sessions == 0

    @pytest.mark.asyncio
    async def test_session_creation_failure_propagates(self):
        engine = FakeRecognitionEngine(unsupported_languages=("xyz",))
        worker = RecognitionWorker(engine)

        with pytest.raises(ValueError, match="not installed"):
            async with worker.acquire("xyz"):
                pass

        assert worker.state is WorkerState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_concurrent_languages_never_overlap(self):
        engine = FakeRecognitionEngine()
        worker = RecognitionWorker(engine)
        in_use: list[str] = []

        async def use(language: str) -> None:
            async with worker.acquire(language) as session:
                in_use.append(language)
                await asyncio.sleep(0.01)
                # Nobody tore the session down while it was in use
                assert session.closed is False
                assert worker.language == language

        await asyncio.gather(use("eng"), use("fra"), use("eng"), use("deu"))

        assert engine.max_live_sessions == 1
        assert sorted(in_use) == ["deu", "eng", "eng", "fra"]

    @pytest.mark.asyncio
    async def test_cancelled_during_creation_keeps_session(self):
        engine = FakeRecognitionEngine(create_delay=0.2)
        worker = RecognitionWorker(engine)

        async def use() -> None:
            async with worker.acquire("eng"):
                await asyncio.sleep(1)

        task = asyncio.create_task(use())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        # The late session belongs to the worker, so terminate reaches it
        assert worker.state is WorkerState.READY
        assert engine.live_sessions == 1

        await worker.terminate()
        assert engine.live_sessions == 0
        assert engine.events == ["create:eng", "destroy:eng"]

    @pytest.mark.asyncio
    async def test_cancelled_dedicated_creation_destroys_session(self):
        engine = FakeRecognitionEngine(create_delay=0.2)
        worker = RecognitionWorker(engine)

        async def use() -> None:
            async with worker.dedicated("eng"):
                await asyncio.sleep(1)

        task = asyncio.create_task(use())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert engine.live_sessions == 0
        assert engine.events == ["create:eng", "destroy:eng"]
        assert worker.state is WorkerState.UNINITIALIZED
