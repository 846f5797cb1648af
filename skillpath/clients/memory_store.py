"""
Process-local content store for development and tests.
Records are copied on the way in and out so callers never share mutable state with the store.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from skillpath.clients.content_store import ContentStore, progress_sort_key
from skillpath.models.learning_models import (
    Chapter, ChapterContent, Notes, Progress, Subject, VideoSet
)
from skillpath.utils.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class InMemoryContentStore(ContentStore):

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.subjects: Dict[str, Subject] = {}
        self.chapters: Dict[str, Chapter] = {}
        self.notes: Dict[str, Notes] = {}
        self.video_sets: Dict[str, VideoSet] = {}
        self.progress: Dict[Tuple[str, str], Progress] = {}

    # --- Subjects ---

    async def get_subject_by_key(self, subject_key: str) -> Optional[Subject]:
        for subject in self.subjects.values():
            if subject.subject_key == subject_key:
                return subject
        return None

    async def get_subject(self, subject_id: str) -> Optional[Subject]:
        return self.subjects.get(subject_id)

    async def insert_subject(self, subject: Subject) -> Subject:
        async with self._lock:
            if await self.get_subject_by_key(subject.subject_key) is not None:
                raise ConflictError(
                    f"Subject key already exists: {subject.subject_key}",
                    context={"subject_key": subject.subject_key},
                )
            self.subjects[subject.id] = subject
        return subject

    # --- Chapters ---

    async def list_chapters(self, subject_id: str) -> List[Chapter]:
        chapters = [c for c in self.chapters.values() if c.subject_id == subject_id]
        return [c.model_copy(deep=True) for c in sorted(chapters, key=lambda c: c.order)]

    async def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        chapter = self.chapters.get(chapter_id)
        return chapter.model_copy(deep=True) if chapter else None

    async def insert_chapters(self, chapters: List[Chapter]) -> List[Chapter]:
        async with self._lock:
            taken = {(c.subject_id, c.order) for c in self.chapters.values()}
            batch_keys = [(c.subject_id, c.order) for c in chapters]
            if len(set(batch_keys)) != len(batch_keys) or taken.intersection(batch_keys):
                raise ConflictError(
                    "Chapter order already taken for subject",
                    context={"subject_ids": sorted({c.subject_id for c in chapters})},
                )
            for chapter in chapters:
                self.chapters[chapter.id] = chapter.model_copy(deep=True)
        return [c.model_copy(deep=True) for c in chapters]

    async def update_chapter_content(self, chapter_id: str, content: ChapterContent) -> Chapter:
        async with self._lock:
            chapter = self.chapters.get(chapter_id)
            if chapter is None:
                raise NotFoundError("Chapter not found", error_code="CHAPTER_NOT_FOUND",
                                    context={"chapter_id": chapter_id})
            updated = chapter.model_copy(update=content.model_dump(), deep=True)
            self.chapters[chapter_id] = updated
        return updated.model_copy(deep=True)

    # --- Notes ---

    async def get_notes(self, chapter_id: str) -> Optional[Notes]:
        notes = self.notes.get(chapter_id)
        return notes.model_copy() if notes else None

    async def insert_notes(self, notes: Notes) -> Notes:
        async with self._lock:
            if notes.chapter_id in self.notes:
                raise ConflictError("Notes already exist for chapter",
                                    context={"chapter_id": notes.chapter_id})
            self.notes[notes.chapter_id] = notes
        return notes

    # --- Videos ---

    async def get_video_set(self, chapter_id: str) -> Optional[VideoSet]:
        video_set = self.video_sets.get(chapter_id)
        return video_set.model_copy(deep=True) if video_set else None

    async def insert_video_set(self, video_set: VideoSet) -> VideoSet:
        async with self._lock:
            if video_set.chapter_id in self.video_sets:
                raise ConflictError("Videos already cached for chapter",
                                    context={"chapter_id": video_set.chapter_id})
            self.video_sets[video_set.chapter_id] = video_set.model_copy(deep=True)
        return video_set

    # --- Progress ---

    async def get_progress(self, student_id: str, subject_id: str) -> Optional[Progress]:
        progress = self.progress.get((student_id, subject_id))
        return progress.model_copy(deep=True) if progress else None

    async def list_progress(self, student_id: str) -> List[Progress]:
        rows = [p.model_copy(deep=True) for (sid, _), p in self.progress.items() if sid == student_id]
        return sorted(rows, key=progress_sort_key)

    async def insert_progress(self, progress: Progress) -> Progress:
        key = (progress.student_id, progress.subject_id)
        async with self._lock:
            if key in self.progress:
                raise ConflictError("Progress already exists",
                                    context={"student_id": key[0], "subject_id": key[1]})
            self.progress[key] = progress.model_copy(deep=True)
        return progress.model_copy(deep=True)

    async def update_progress(self, progress: Progress, expected_version: int) -> Progress:
        key = (progress.student_id, progress.subject_id)
        async with self._lock:
            current = self.progress.get(key)
            if current is None:
                raise NotFoundError("Progress not found", error_code="PROGRESS_NOT_FOUND",
                                    context={"student_id": key[0], "subject_id": key[1]})
            if current.version != expected_version:
                raise ConflictError(
                    f"Progress version moved from {expected_version} to {current.version}",
                    context={"student_id": key[0], "subject_id": key[1]},
                )
            stored = progress.model_copy(update={"version": expected_version + 1}, deep=True)
            self.progress[key] = stored
        return stored.model_copy(deep=True)
