"""Storage module: public URLs of bucket objects."""

from src.storage.urls import (
    VIDEO_FILENAME,
    lesson_video_path,
    lesson_video_url,
    public_object_url,
)


__all__ = [
    "VIDEO_FILENAME",
    "lesson_video_path",
    "lesson_video_url",
    "public_object_url",
]
