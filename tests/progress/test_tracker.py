"""Tests for the per-view lesson progress tracker."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch
from uuid import uuid4

import pytest

from src.courses.schemas import CourseDetailResponse
from src.navigation.schemas import LessonNavigation
from src.navigation.sequencer import locate_lesson
from src.progress.service import ProgressPersistError
from src.progress.tracker import (
    LessonProgressTracker,
    ViewState,
    is_playback_complete,
)


@pytest.fixture
def store() -> Mock:
    store = Mock()
    store.upsert_progress = AsyncMock()
    store.mark_completed = AsyncMock()
    return store


@pytest.fixture
def navigator() -> Mock:
    navigator = Mock()
    navigator.navigate_to = AsyncMock()
    return navigator


def _navigation(course: CourseDetailResponse, position: int) -> LessonNavigation:
    lessons = [lesson for module in course.modules for lesson in module.lessons]
    return locate_lesson(course, lessons[position].id)


def _tracker(course, store, navigator, position=0, **kwargs) -> LessonProgressTracker:
    kwargs.setdefault("user_id", uuid4())
    kwargs.setdefault("auto_advance_delay", 0)
    return LessonProgressTracker(
        course_id=course.id,
        navigation=_navigation(course, position),
        store=store,
        navigator=navigator,
        **kwargs,
    )


async def _drain(tasks) -> None:
    await asyncio.gather(*[task for task in tasks if task is not None])


class TestIsPlaybackComplete:
    """Tests for the player-side completion rule."""

    @pytest.mark.parametrize(
        "percent,playing,expected",
        [
            (95.0, False, True),
            (100.0, False, True),
            (94.9, False, False),
            (99.0, True, False),
        ],
    )
    def test_rule(self, percent: float, playing: bool, expected: bool) -> None:
        """Complete once past the threshold and no longer playing."""
        assert is_playback_complete(percent, playing) is expected


class TestHandleProgress:
    """Tests for throttled progress writes."""

    @pytest.mark.asyncio
    async def test_writes_only_multiples_of_five(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Only events whose integer part is a multiple of 5 are written."""
        tracker = _tracker(two_by_two_course, store, navigator)

        tasks = [tracker.handle_progress(p) for p in [4.9, 5.0, 5.1, 9.9]]
        await _drain(tasks)

        written = [call.args[2] for call in store.upsert_progress.await_args_list]
        assert written == [5.0, 5.1]
        assert tasks[0] is None
        assert tasks[3] is None

    @pytest.mark.asyncio
    async def test_write_targets_user_and_lesson(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Writes are keyed by the viewer and the viewed lesson."""
        user_id = uuid4()
        tracker = _tracker(two_by_two_course, store, navigator, user_id=user_id)

        await _drain([tracker.handle_progress(10.0)])

        args = store.upsert_progress.await_args.args
        assert args[0] == user_id
        assert args[1] == tracker.lesson_id
        assert args[3] is not None

    @pytest.mark.asyncio
    async def test_zero_is_written(self, two_by_two_course, store, navigator) -> None:
        """The start of playback qualifies as well."""
        tracker = _tracker(two_by_two_course, store, navigator)
        await _drain([tracker.handle_progress(0.0)])
        store.upsert_progress.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_state_moves_to_in_progress(
        self, two_by_two_course, store, navigator
    ) -> None:
        """A qualifying event starts the view."""
        tracker = _tracker(two_by_two_course, store, navigator)
        assert tracker.state is ViewState.UNSTARTED

        tracker.handle_progress(3.0)
        assert tracker.state is ViewState.UNSTARTED

        await _drain([tracker.handle_progress(15.0)])
        assert tracker.state is ViewState.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_write_failure_is_logged_and_dropped(
        self, two_by_two_course, store, navigator
    ) -> None:
        """A failed write neither raises nor changes the view."""
        store.upsert_progress.side_effect = ProgressPersistError()
        tracker = _tracker(two_by_two_course, store, navigator)

        task = tracker.handle_progress(20.0)
        await task

        assert task.exception() is None
        assert tracker.state is ViewState.IN_PROGRESS
        assert tracker.is_completed is False

    @pytest.mark.asyncio
    async def test_anonymous_view_writes_nothing(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Without a user nothing is persisted."""
        tracker = _tracker(two_by_two_course, store, navigator, user_id=None)

        assert tracker.handle_progress(50.0) is None
        assert await tracker.handle_complete() is False
        store.upsert_progress.assert_not_awaited()
        store.mark_completed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_lesson_writes_nothing(
        self, two_by_two_course, store, navigator
    ) -> None:
        """A lesson that is not in the course ignores all events."""
        tracker = LessonProgressTracker(
            course_id=two_by_two_course.id,
            navigation=locate_lesson(two_by_two_course, uuid4()),
            store=store,
            navigator=navigator,
            user_id=uuid4(),
        )

        assert tracker.lesson_id is None
        assert tracker.handle_progress(50.0) is None
        assert await tracker.handle_complete() is False
        store.upsert_progress.assert_not_awaited()
        store.mark_completed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_closed_view_writes_nothing(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Events after close are ignored."""
        tracker = _tracker(two_by_two_course, store, navigator)
        await tracker.close()

        assert tracker.handle_progress(50.0) is None
        store.upsert_progress.assert_not_awaited()


class TestHandleComplete:
    """Tests for one-shot completion and auto-advance."""

    @pytest.mark.asyncio
    async def test_completes_and_advances(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Completion is written, then the viewer moves to the next lesson."""
        user_id = uuid4()
        tracker = _tracker(two_by_two_course, store, navigator, position=1, user_id=user_id)

        assert await tracker.handle_complete() is True
        assert tracker.is_completed is True
        store.mark_completed.assert_awaited_once()
        assert store.mark_completed.await_args.args[:2] == (user_id, tracker.lesson_id)

        await tracker.advance_task

        following = tracker.navigation.next_lesson
        navigator.navigate_to.assert_awaited_once_with(
            two_by_two_course.id, following.module_id, following.lesson_id
        )

    @pytest.mark.asyncio
    async def test_completes_once(self, two_by_two_course, store, navigator) -> None:
        """Repeated completion signals write once and navigate once."""
        tracker = _tracker(two_by_two_course, store, navigator)

        results = [await tracker.handle_complete() for _ in range(3)]
        await tracker.advance_task

        assert results == [True, False, False]
        store.mark_completed.assert_awaited_once()
        navigator.navigate_to.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_signals_complete_once(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Signals arriving while the write is in flight are ignored."""

        async def slow_write(*_args):
            await asyncio.sleep(0)

        store.mark_completed.side_effect = slow_write
        tracker = _tracker(two_by_two_course, store, navigator)

        results = await asyncio.gather(tracker.handle_complete(), tracker.handle_complete())
        await tracker.advance_task

        assert sorted(results) == [False, True]
        store.mark_completed.assert_awaited_once()
        navigator.navigate_to.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_write_does_not_complete(
        self, two_by_two_course, store, navigator
    ) -> None:
        """A failed completion write leaves the view incomplete and in place."""
        store.mark_completed.side_effect = ProgressPersistError()
        tracker = _tracker(two_by_two_course, store, navigator)

        assert await tracker.handle_complete() is False
        assert tracker.is_completed is False
        assert tracker.advance_task is None
        navigator.navigate_to.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, two_by_two_course, store, navigator) -> None:
        """A later signal may complete the lesson after a failed write."""
        store.mark_completed.side_effect = [ProgressPersistError(), None]
        tracker = _tracker(two_by_two_course, store, navigator)

        assert await tracker.handle_complete() is False
        assert await tracker.handle_complete() is True
        assert store.mark_completed.await_count == 2

        await tracker.close()

    @pytest.mark.asyncio
    async def test_last_lesson_does_not_navigate(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Completing the final lesson schedules nothing."""
        tracker = _tracker(two_by_two_course, store, navigator, position=3)

        assert await tracker.handle_complete() is True
        assert tracker.advance_task is None
        navigator.navigate_to.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_cancels_pending_advance(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Leaving the view before the delay elapses cancels navigation."""
        tracker = _tracker(two_by_two_course, store, navigator, auto_advance_delay=60)

        assert await tracker.handle_complete() is True
        task = tracker.advance_task
        assert task is not None and not task.done()

        await tracker.close()

        assert task.cancelled()
        navigator.navigate_to.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_advance_waits_for_delay(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Navigation happens only after the delay."""
        tracker = _tracker(two_by_two_course, store, navigator, auto_advance_delay=0.05)

        await tracker.handle_complete()
        await asyncio.sleep(0)
        navigator.navigate_to.assert_not_awaited()

        await tracker.advance_task
        navigator.navigate_to.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_progress_after_completion_still_written(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Progress events keep being written after completion."""
        tracker = _tracker(two_by_two_course, store, navigator, position=3)
        await tracker.handle_complete()

        await _drain([tracker.handle_progress(40.0)])

        store.upsert_progress.assert_awaited_once()
        assert tracker.state is ViewState.COMPLETED

    @pytest.mark.asyncio
    async def test_failed_navigation_is_logged(
        self, two_by_two_course, store, navigator
    ) -> None:
        """An auto-advance that blows up is reported instead of left unretrieved."""
        navigator.navigate_to.side_effect = ValueError("boom")
        tracker = _tracker(two_by_two_course, store, navigator)

        with patch("src.progress.tracker.logger") as logger:
            assert await tracker.handle_complete() is True
            await asyncio.wait([tracker.advance_task])
            await asyncio.sleep(0)

        assert isinstance(tracker.advance_task.exception(), ValueError)
        events = [call.args[0] for call in logger.error.call_args_list]
        assert events == ["auto_advance_failed"]
        await tracker.close()


class TestRequestComplete:
    """Tests for completion started in the background of a view."""

    @pytest.mark.asyncio
    async def test_returns_task_without_waiting(
        self, two_by_two_course, store, navigator
    ) -> None:
        """The caller gets the running write back and is not blocked by it."""
        release = asyncio.Event()

        async def held_write(*_args):
            await release.wait()

        store.mark_completed.side_effect = held_write
        tracker = _tracker(two_by_two_course, store, navigator)

        task = tracker.request_complete()
        assert task is tracker.completion_task
        await asyncio.sleep(0)
        assert not task.done()
        assert tracker.is_completed is False

        release.set()
        assert await task is True
        assert tracker.is_completed is True
        await tracker.close()

    @pytest.mark.asyncio
    async def test_signal_during_write_is_ignored(
        self, two_by_two_course, store, navigator
    ) -> None:
        """A second signal while the write is in flight starts nothing."""
        release = asyncio.Event()

        async def held_write(*_args):
            await release.wait()

        store.mark_completed.side_effect = held_write
        tracker = _tracker(two_by_two_course, store, navigator)

        first = tracker.request_complete()
        assert tracker.request_complete() is None

        release.set()
        await first
        assert tracker.request_complete() is None
        store.mark_completed.assert_awaited_once()
        await tracker.close()

    @pytest.mark.asyncio
    async def test_notifies_before_advancing(
        self, two_by_two_course, store, navigator
    ) -> None:
        """The success hook runs before navigation is scheduled."""
        seen = []

        async def on_completed():
            seen.append(tracker.advance_task)

        tracker = _tracker(two_by_two_course, store, navigator)

        assert await tracker.request_complete(on_completed) is True
        await tracker.advance_task

        assert seen == [None]
        navigator.navigate_to.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_write_skips_hook(
        self, two_by_two_course, store, navigator
    ) -> None:
        """Nothing is announced when the completion write fails."""
        store.mark_completed.side_effect = ProgressPersistError()
        on_completed = AsyncMock()
        tracker = _tracker(two_by_two_course, store, navigator)

        assert await tracker.request_complete(on_completed) is False

        on_completed.assert_not_awaited()
        assert tracker.advance_task is None

    @pytest.mark.asyncio
    async def test_write_landing_after_close(
        self, two_by_two_course, store, navigator
    ) -> None:
        """A write that finishes after the view closed neither notifies nor navigates."""
        release = asyncio.Event()

        async def held_write(*_args):
            await release.wait()

        store.mark_completed.side_effect = held_write
        on_completed = AsyncMock()
        tracker = _tracker(two_by_two_course, store, navigator)

        task = tracker.request_complete(on_completed)
        await asyncio.sleep(0)
        await tracker.close()

        release.set()
        assert await task is True

        store.mark_completed.assert_awaited_once()
        on_completed.assert_not_awaited()
        assert tracker.advance_task is None
        navigator.navigate_to.assert_not_awaited()
