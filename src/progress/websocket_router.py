"""WebSocket API for lesson views.

Provides:
- WS /ws/courses/{course_id}/lessons/{lesson_id} - one lesson view

A connection is one view of one lesson. The server answers with the lesson's
navigation, then the client streams playback events. Progress is written
every 5th percent, completion is written once and the server asks the
client to move to the next lesson after a short delay.
"""

import asyncio
from typing import Annotated, Any
from uuid import UUID, uuid4

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from src.auth.dependencies import authenticate_websocket
from src.config.settings import Settings, get_settings
from src.core.context import RequestContext
from src.courses.service import CourseNotFoundError, CourseService
from src.navigation.sequencer import locate_lesson
from src.navigation.service import navigation_response
from src.navigation.viewer import read_attachments, read_completed

from .schemas import (
    CompleteMessage,
    PingMessage,
    ProgressMessage,
    client_message_adapter,
)
from .service import ProgressService
from .tracker import LessonProgressTracker, is_playback_complete


logger = structlog.get_logger(__name__)

router = APIRouter(tags=["lesson-view-ws"])

# Application-defined close code: course could not be loaded
CLOSE_COURSE_UNAVAILABLE = 4404


def lesson_path(course_id: UUID, module_id: UUID, lesson_id: UUID) -> str:
    """Client route of a lesson."""
    return f"/courses/{course_id}/modules/{module_id}/lessons/{lesson_id}"


class WebSocketNavigator:
    """Deliver auto-advance as a ``navigate`` message to the viewer."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    async def navigate_to(
        self, course_id: UUID, module_id: UUID, lesson_id: UUID
    ) -> None:
        try:
            await self.websocket.send_json(
                {
                    "type": "navigate",
                    "course_id": str(course_id),
                    "module_id": str(module_id),
                    "lesson_id": str(lesson_id),
                    "path": lesson_path(course_id, module_id, lesson_id),
                }
            )
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info("navigate_not_delivered", error=str(e))


async def _send_completed(
    websocket: WebSocket, tracker: LessonProgressTracker, settings: Settings
) -> None:
    next_lesson = tracker.navigation.next_lesson
    try:
        await websocket.send_json(
            {
                "type": "completed",
                "lesson_id": str(tracker.lesson_id),
                "next_lesson": next_lesson.model_dump(mode="json") if next_lesson else None,
                "auto_advance_in_ms": (
                    settings.progress_auto_advance_delay_ms if next_lesson else None
                ),
            }
        )
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.info("completed_not_delivered", error=str(e))


def _start_completion(
    websocket: WebSocket, tracker: LessonProgressTracker, settings: Settings
) -> None:
    # Runs beside the receive loop; the view keeps reading while it writes
    tracker.request_complete(lambda: _send_completed(websocket, tracker, settings))


async def _handle_message(
    websocket: WebSocket,
    tracker: LessonProgressTracker,
    message: Any,
    settings: Settings,
) -> None:
    if isinstance(message, ProgressMessage):
        tracker.handle_progress(message.percent)
        if not is_playback_complete(
            message.percent, message.playing, settings.progress_completion_threshold
        ):
            return
        _start_completion(websocket, tracker, settings)
    elif isinstance(message, CompleteMessage):
        _start_completion(websocket, tracker, settings)
    elif isinstance(message, PingMessage):
        await websocket.send_json({"type": "pong"})


@router.websocket("/ws/courses/{course_id}/lessons/{lesson_id}")
async def lesson_view_websocket(
    websocket: WebSocket,
    course_id: UUID,
    lesson_id: UUID,
    settings: Annotated[Settings, Depends(get_settings)],
    token: str | None = Query(None, description="JWT access token (optional)"),
) -> None:
    """WebSocket endpoint for one lesson view.

    Connect with: ws://host/ws/courses/{course_id}/lessons/{lesson_id}?token=<jwt>

    Anonymous views (no or invalid token) get navigation but persist nothing.

    Messages received:
    - {"type": "lesson_view", "data": {...}} - Navigation for the lesson
    - {"type": "course_unavailable"} - Course could not be loaded (then closed)
    - {"type": "completed", ...} - Lesson completion was saved
    - {"type": "navigate", "path": ...} - Move to the next lesson
    - {"type": "ping"} / {"type": "pong"} - Keep-alive
    - {"type": "error", "message": ...} - Unreadable client message

    Messages you can send:
    - {"type": "progress", "percent": 42.5, "playing": true}
    - {"type": "complete"}
    - {"type": "ping"} / {"type": "pong"}
    """
    user = authenticate_websocket(token)
    course_service: CourseService | None = getattr(
        websocket.app.state, "course_service", None
    )
    progress_service: ProgressService | None = getattr(
        websocket.app.state, "progress_service", None
    )

    await websocket.accept()

    with RequestContext(user_id=user.id if user else None, view_id=str(uuid4())):
        logger.info(
            "lesson_view_opened",
            course_id=str(course_id),
            lesson_id=str(lesson_id),
            anonymous=user is None,
        )

        course = None
        if course_service is not None:
            try:
                course = await course_service.get_course_detail(course_id)
            except CourseNotFoundError:
                logger.info("lesson_view_course_not_found", course_id=str(course_id))
            except Exception as e:
                logger.warning(
                    "lesson_view_course_load_failed",
                    course_id=str(course_id),
                    error=str(e),
                )

        if course is None:
            await websocket.send_json({"type": "course_unavailable"})
            await websocket.close(code=CLOSE_COURSE_UNAVAILABLE)
            return

        navigation = locate_lesson(course, lesson_id)

        completed = None
        attachments = []
        if navigation.found:
            completed = await read_completed(
                progress_service, user.id if user else None, lesson_id
            )
            attachments = await read_attachments(course_service, lesson_id)

        tracker = LessonProgressTracker(
            course_id=course_id,
            navigation=navigation,
            store=progress_service,
            navigator=WebSocketNavigator(websocket),
            user_id=user.id if user and progress_service else None,
            persist_step=settings.progress_persist_step,
            auto_advance_delay=settings.progress_auto_advance_delay,
        )

        try:
            await websocket.send_json(
                {
                    "type": "lesson_view",
                    "data": navigation_response(
                        course, navigation, settings, completed, attachments
                    ).model_dump(mode="json"),
                }
            )

            while True:
                try:
                    raw = await asyncio.wait_for(
                        websocket.receive_text(),
                        timeout=settings.lesson_view_ping_interval_seconds,
                    )
                except TimeoutError:
                    await websocket.send_json({"type": "ping"})
                    continue

                try:
                    message = client_message_adapter.validate_json(raw)
                except ValidationError as e:
                    logger.debug("lesson_view_invalid_message", errors=e.error_count())
                    await websocket.send_json(
                        {"type": "error", "message": "Mensagem invalida"}
                    )
                    continue

                await _handle_message(websocket, tracker, message, settings)

        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.warning("lesson_view_error", error=str(e))
        finally:
            await tracker.close()
            logger.info(
                "lesson_view_closed",
                lesson_id=str(lesson_id),
                completed=tracker.is_completed,
            )
