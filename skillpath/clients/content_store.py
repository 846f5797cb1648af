"""
Content store interface shared by the Supabase and in-memory backends.

Uniqueness rules every backend enforces, raising ConflictError on violation:
- subjects by subject_key
- chapters by (subject_id, order); insert_chapters is all-or-nothing
- notes and video sets by chapter_id
- progress by (student_id, subject_id); update_progress is a compare-and-set on version
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from skillpath.models.learning_models import (
    Chapter, ChapterContent, Notes, Progress, Subject, VideoSet
)


class ContentStore(ABC):

    # --- Subjects ---

    @abstractmethod
    async def get_subject_by_key(self, subject_key: str) -> Optional[Subject]:
        ...

    @abstractmethod
    async def get_subject(self, subject_id: str) -> Optional[Subject]:
        ...

    @abstractmethod
    async def insert_subject(self, subject: Subject) -> Subject:
        ...

    # --- Chapters ---

    @abstractmethod
    async def list_chapters(self, subject_id: str) -> List[Chapter]:
        """Chapters for a subject ordered by order ascending; [] if none."""

    @abstractmethod
    async def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        ...

    @abstractmethod
    async def insert_chapters(self, chapters: List[Chapter]) -> List[Chapter]:
        ...

    @abstractmethod
    async def update_chapter_content(self, chapter_id: str, content: ChapterContent) -> Chapter:
        """Write generated fields onto an existing chapter and return it."""

    # --- Notes ---

    @abstractmethod
    async def get_notes(self, chapter_id: str) -> Optional[Notes]:
        ...

    @abstractmethod
    async def insert_notes(self, notes: Notes) -> Notes:
        ...

    # --- Videos ---

    @abstractmethod
    async def get_video_set(self, chapter_id: str) -> Optional[VideoSet]:
        ...

    @abstractmethod
    async def insert_video_set(self, video_set: VideoSet) -> VideoSet:
        ...

    # --- Progress ---

    @abstractmethod
    async def get_progress(self, student_id: str, subject_id: str) -> Optional[Progress]:
        ...

    @abstractmethod
    async def list_progress(self, student_id: str) -> List[Progress]:
        """All progress rows for a student ordered by started_at, then subject_id."""

    @abstractmethod
    async def insert_progress(self, progress: Progress) -> Progress:
        ...

    @abstractmethod
    async def update_progress(self, progress: Progress, expected_version: int) -> Progress:
        """
        Replace the stored record if its version still equals expected_version.
        The stored copy gets version expected_version + 1.
        """


def progress_sort_key(progress: Progress):
    started = progress.started_at.timestamp() if progress.started_at else float("-inf")
    return (started, progress.subject_id)
