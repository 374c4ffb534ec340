"""Lifecycle manager for the reusable recognition session.

A RecognitionWorker owns at most one live engine session at a time and is
passed explicitly to whoever needs recognition; there is no module-level
instance. State machine::

    UNINITIALIZED --acquire(L)--> READY(L) --acquire(L)--> READY(L)
    READY(L1) --acquire(L2)--> READY(L2)   (old session torn down first)
    any --terminate()--> TERMINATED --acquire(L)--> READY(L)

Sessions are created lazily on first use. There is no idle timeout: the
owner must call ``terminate()`` when no more recognition is expected,
otherwise the engine session is leaked.

``acquire`` holds an asyncio.Lock for the whole ``async with`` block, so
concurrent pipelines asking for different languages are serialized and a
session is never torn down while another document is using it.

Engine calls run in worker threads through ``run_blocking``. A cancelled
caller (for example a pipeline timeout) waits for the in-flight call to
return, and a session created after cancellation is still owned: the
shared one is kept for ``terminate()``, a dedicated one is destroyed.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from resume_ingest.recognition.types import RecognitionEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_blocking(
    func: Callable[..., T],
    *args: Any,
    on_cancel: Callable[[T], Awaitable[None]] | None = None,
) -> T:
    """Run *func* in a worker thread, outliving cancellation of the caller.

    Threads cannot be interrupted, so when the awaiting task is cancelled
    this waits for the thread to finish before re-raising. Anything the
    thread produced is handed to *on_cancel* so it can be released or
    adopted instead of leaked.
    """
    task = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is None and on_cancel:
            await on_cancel(task.result())
        raise


class WorkerState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    TERMINATED = "terminated"


class RecognitionWorker:
    """Single-owner holder of one recognition engine session."""

    def __init__(self, engine: RecognitionEngine) -> None:
        self.engine = engine
        self._session: Any = None
        self._language: str | None = None
        self._state = WorkerState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self.sessions_created = 0
        self.sessions_destroyed = 0

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def language(self) -> str | None:
        return self._language

    @asynccontextmanager
    async def acquire(self, language: str) -> AsyncIterator[Any]:
        """Yield the shared session for *language*, creating it if needed.

        Raises:
            Exception: Whatever the engine raises while creating a session.
        """
        async with self._lock:
            session = await self._ensure_session(language)
            yield session

    @asynccontextmanager
    async def dedicated(self, language: str) -> AsyncIterator[Any]:
        """Yield a private session that is destroyed on exit.

        Leaves the shared session untouched.
        """
        session = await run_blocking(
            self._create_session, language, on_cancel=self._destroy_session
        )
        try:
            yield session
        finally:
            await self._destroy_session(session)

    async def terminate(self) -> None:
        """Tear down the shared session. Safe to call more than once."""
        async with self._lock:
            if self._session is not None:
                logger.info("Terminating recognition session (%s)", self._language)
                await self._release_shared()
            self._state = WorkerState.TERMINATED

    async def _ensure_session(self, language: str) -> Any:
        if self._session is not None and self._language == language:
            return self._session

        if self._session is not None:
            logger.info(
                "Replacing recognition session: %s -> %s", self._language, language
            )
            await self._release_shared()

        async def adopt(session: Any) -> None:
            # Created after the caller gave up: keep it so terminate() can
            # tear it down
            self._adopt(session, language)

        session = await run_blocking(self._create_session, language, on_cancel=adopt)
        self._adopt(session, language)
        return session

    def _create_session(self, language: str) -> Any:
        session = self.engine.create_session(language)
        self.sessions_created += 1
        return session

    def _adopt(self, session: Any, language: str) -> None:
        self._session = session
        self._language = language
        self._state = WorkerState.READY
        logger.info("Recognition session ready (%s)", language)

    async def _release_shared(self) -> None:
        session = self._session
        self._session = None
        self._language = None
        self._state = WorkerState.UNINITIALIZED
        await self._destroy_session(session)

    async def _destroy_session(self, session: Any) -> None:
        try:
            await run_blocking(self.engine.destroy_session, session)
        except Exception:
            logger.exception("Failed to destroy recognition session")
        finally:
            self.sessions_destroyed += 1
