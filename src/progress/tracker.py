"""Playback-driven progress tracking for one lesson view.

A ``LessonProgressTracker`` lives exactly as long as the view that owns it
(one WebSocket connection). It turns player events into progress writes,
completes the lesson once, and schedules the move to the next lesson.

State per view::

    UNSTARTED -> IN_PROGRESS -> COMPLETED

COMPLETED is terminal for the view. The completion guard is in memory only:
a new view of the same lesson starts UNSTARTED again and may repeat the
(idempotent) completion write.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol
from uuid import UUID

import structlog

from src.navigation.schemas import LessonNavigation, LessonRef

from .models import LessonProgress
from .service import ProgressError, should_persist_progress


logger = structlog.get_logger(__name__)

# Strong references to fire-and-forget writes until they finish
_background_writes: set[asyncio.Task] = set()


class ViewState(str, Enum):
    """Progress state of a single lesson view."""

    UNSTARTED = "unstarted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ProgressStore(Protocol):
    """Where progress records are upserted (``ProgressService``)."""

    async def upsert_progress(
        self,
        user_id: UUID,
        lesson_id: UUID,
        progress: float,
        last_watched: datetime | None = None,
    ) -> LessonProgress: ...

    async def mark_completed(
        self,
        user_id: UUID,
        lesson_id: UUID,
        completed_at: datetime | None = None,
    ) -> LessonProgress: ...


class Navigator(Protocol):
    """Route change requested by auto-advance."""

    async def navigate_to(
        self, course_id: UUID, module_id: UUID, lesson_id: UUID
    ) -> None: ...


def is_playback_complete(percent: float, playing: bool, threshold: float = 95.0) -> bool:
    """Player-side completion: far enough and no longer playing."""
    return percent >= threshold and not playing


class LessonProgressTracker:
    """Reconcile playback events of one lesson view into persisted progress.

    Args:
        course_id: Course being viewed.
        navigation: Result of locating the lesson in the course.
        store: Progress store.
        navigator: Receives the auto-advance route change.
        user_id: Viewer; None for anonymous views, which never persist.
        persist_step: Progress is written when floor(percent) % step == 0.
        auto_advance_delay: Seconds between completion and navigation.
    """

    def __init__(
        self,
        course_id: UUID,
        navigation: LessonNavigation,
        store: ProgressStore,
        navigator: Navigator,
        user_id: UUID | None = None,
        persist_step: int = 5,
        auto_advance_delay: float = 2.0,
    ) -> None:
        self.course_id = course_id
        self.navigation = navigation
        self.store = store
        self.navigator = navigator
        self.user_id = user_id
        self.persist_step = persist_step
        self.auto_advance_delay = auto_advance_delay

        self.state = ViewState.UNSTARTED
        self._completing = False
        self._closed = False
        self._completion_task: asyncio.Task | None = None
        self._advance_task: asyncio.Task | None = None

    @property
    def lesson_id(self) -> UUID | None:
        """Id of the viewed lesson, None when it is not part of the course."""
        current = self.navigation.current_lesson
        return current.lesson.id if current else None

    @property
    def is_completed(self) -> bool:
        return self.state is ViewState.COMPLETED

    @property
    def tracks_progress(self) -> bool:
        """Only signed-in views of an existing lesson write anything."""
        return self.user_id is not None and self.navigation.found and not self._closed

    @property
    def completion_task(self) -> asyncio.Task | None:
        """Latest completion write, if one was started."""
        return self._completion_task

    @property
    def advance_task(self) -> asyncio.Task | None:
        """Pending auto-advance, if one was scheduled."""
        return self._advance_task

    # ==========================================================================
    # Playback events
    # ==========================================================================

    def handle_progress(self, percent: float) -> asyncio.Task | None:
        """Handle a playback position update.

        Qualifying updates start a background write and return its task; the
        caller does not need to await it. Write failures are logged and
        dropped.
        """
        if not self.tracks_progress:
            return None
        if not should_persist_progress(percent, self.persist_step):
            return None

        if self.state is ViewState.UNSTARTED:
            self.state = ViewState.IN_PROGRESS

        task = asyncio.create_task(self._persist_progress(percent, datetime.now(UTC)))
        _background_writes.add(task)
        task.add_done_callback(_on_write_done)
        return task

    async def _persist_progress(self, percent: float, at: datetime) -> None:
        try:
            await self.store.upsert_progress(self.user_id, self.lesson_id, percent, at)
        except ProgressError as e:
            logger.warning(
                "progress_persist_failed",
                lesson_id=str(self.lesson_id),
                progress=percent,
                error=e.message,
            )
            return
        logger.debug("progress_persisted", lesson_id=str(self.lesson_id), progress=percent)

    def request_complete(
        self, on_completed: Callable[[], Awaitable[None]] | None = None
    ) -> asyncio.Task | None:
        """Handle the player's completion signal without waiting for the write.

        Starts the completion write as a background task and returns it, or
        returns None when the lesson is already completed, a write is in
        flight or the view does not track progress. ``on_completed`` runs
        after a successful write, before auto-advance is scheduled.

        On a failed write the view stays incomplete and does not navigate;
        a later signal may try again.
        """
        if self.is_completed or self._completing or not self.tracks_progress:
            return None

        self._completing = True
        task = asyncio.create_task(self._complete(on_completed))
        _background_writes.add(task)
        task.add_done_callback(_on_write_done)
        self._completion_task = task
        return task

    async def handle_complete(self) -> bool:
        """Complete the lesson and wait for the write.

        Returns True only for the call that completed the lesson.
        """
        task = self.request_complete()
        if task is None:
            return False
        return await task

    async def _complete(self, on_completed: Callable[[], Awaitable[None]] | None) -> bool:
        try:
            await self.store.mark_completed(
                self.user_id, self.lesson_id, datetime.now(UTC)
            )
        except ProgressError as e:
            logger.error(
                "completion_persist_failed",
                lesson_id=str(self.lesson_id),
                error=e.message,
            )
            return False
        finally:
            self._completing = False

        self.state = ViewState.COMPLETED
        logger.info("lesson_completed", lesson_id=str(self.lesson_id))

        # The view may have gone away while the write was in flight
        if self._closed:
            return True
        if on_completed is not None:
            await on_completed()
        if not self._closed:
            self._schedule_advance()
        return True

    # ==========================================================================
    # Auto-advance
    # ==========================================================================

    def _schedule_advance(self) -> None:
        target = self.navigation.next_lesson
        if target is None:
            logger.info("auto_advance_skipped_last_lesson", lesson_id=str(self.lesson_id))
            return

        self._advance_task = asyncio.create_task(self._advance(target))
        self._advance_task.add_done_callback(_on_advance_done)
        logger.info(
            "auto_advance_scheduled",
            next_lesson_id=str(target.lesson_id),
            delay_seconds=self.auto_advance_delay,
        )

    async def _advance(self, target: LessonRef) -> None:
        await asyncio.sleep(self.auto_advance_delay)
        await self.navigator.navigate_to(
            self.course_id, target.module_id, target.lesson_id
        )
        logger.info("auto_advance_navigated", next_lesson_id=str(target.lesson_id))

    async def close(self) -> None:
        """Tear the view down: cancel a pending auto-advance.

        Progress and completion writes already started are left to finish on
        their own; a completion that lands after close neither notifies nor
        navigates.
        """
        self._closed = True
        task = self._advance_task
        if task and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("auto_advance_cancelled", lesson_id=str(self.lesson_id))


def _on_write_done(task: asyncio.Task) -> None:
    _background_writes.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "progress_write_crashed",
            error=str(exc),
            error_type=type(exc).__name__,
        )


def _on_advance_done(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "auto_advance_failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
