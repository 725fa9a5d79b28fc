"""Public URLs for objects in the storage buckets."""

from urllib.parse import quote
from uuid import UUID

from src.config.settings import Settings


VIDEO_FILENAME = "video.mp4"


def lesson_video_path(course_id: UUID, lesson_id: UUID) -> str:
    """Storage path of a lesson video inside the video bucket.

    Format: {course_id}/{lesson_id}/video.mp4
    """
    return f"{course_id}/{lesson_id}/{VIDEO_FILENAME}"


def public_object_url(settings: Settings, bucket: str, storage_path: str) -> str:
    """Public URL for an object, with each path segment URL-encoded."""
    encoded_path = "/".join(quote(part, safe="") for part in storage_path.split("/"))
    base_url = settings.storage_public_url.rstrip("/")
    return f"{base_url}/{quote(bucket, safe='')}/{encoded_path}"


def lesson_video_url(
    settings: Settings,
    course_id: UUID,
    lesson_id: UUID,
    video_url: str | None = None,
) -> str:
    """URL the player should load for a lesson.

    An explicit ``video_url`` on the lesson wins; otherwise the video is
    expected at the conventional path in the video bucket.
    """
    if video_url:
        return video_url
    return public_object_url(
        settings,
        settings.storage_video_bucket,
        lesson_video_path(course_id, lesson_id),
    )
