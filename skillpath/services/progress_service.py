"""
Per-student, per-subject progress tracking.

Status moves not-started -> in-progress -> completed. Once any chapter has been
completed a record never returns to not-started; unmarking everything leaves it
in-progress at 0%.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from skillpath.clients.content_store import ContentStore
from skillpath.models.learning_models import (
    LookupState, Progress, ProgressLookup, ProgressStatus, utcnow
)
from skillpath.utils.exceptions import (
    ConflictError, NotFoundError, StoreError, ValidationError
)

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 5


def calculate_percent(completed_count: int, total_chapters: int) -> int:
    """round_half_up(100 * completed / total) clamped to [0, 100]; 0 when total is 0."""
    if total_chapters <= 0:
        return 0
    percent = (200 * completed_count + total_chapters) // (2 * total_chapters)
    return max(0, min(100, percent))


def derive_status(percent: int, completed_count: int, has_completion_history: bool) -> ProgressStatus:
    if percent == 100:
        return ProgressStatus.COMPLETED
    if completed_count == 0 and not has_completion_history:
        return ProgressStatus.NOT_STARTED
    return ProgressStatus.IN_PROGRESS


def apply_completion(
    progress: Progress,
    completed_ids: List[str],
    total_chapters: int,
    now: datetime,
) -> Progress:
    """Return progress with a new completed set and every derived field recomputed."""
    if total_chapters < 0:
        raise ValidationError("totalChapters must not be negative",
                              context={"total_chapters": total_chapters})
    if len(completed_ids) > total_chapters:
        raise ValidationError(
            f"{len(completed_ids)} completed chapters exceed totalChapters={total_chapters}",
            context={"subject_id": progress.subject_id, "total_chapters": total_chapters},
        )

    percent = calculate_percent(len(completed_ids), total_chapters)
    has_history = progress.has_completion_history or bool(completed_ids)
    status = derive_status(percent, len(completed_ids), has_history)

    if status != ProgressStatus.COMPLETED:
        completed_at = None
    elif progress.status == ProgressStatus.COMPLETED and progress.completed_at:
        completed_at = progress.completed_at
    else:
        completed_at = now

    return progress.model_copy(update={
        "completed_chapter_ids": completed_ids,
        "total_chapters": total_chapters,
        "percent_complete": percent,
        "status": status,
        "has_completion_history": has_history,
        "completed_at": completed_at,
        "last_accessed_at": now,
    })


def _union(ids: List[str], chapter_id: str) -> List[str]:
    return ids if chapter_id in ids else [*ids, chapter_id]


class ProgressTracker:

    def __init__(self, store: ContentStore, max_attempts: int = MAX_UPDATE_ATTEMPTS):
        self.store = store
        self.max_attempts = max_attempts

    async def start(self, student_id: str, subject_id: str, subject_name: str) -> Progress:
        """Create the record if missing; an existing record is returned unchanged."""
        existing = await self.store.get_progress(student_id, subject_id)
        if existing:
            return existing

        now = utcnow()
        progress = Progress(
            id=str(uuid.uuid4()),
            student_id=student_id,
            subject_id=subject_id,
            subject_name=subject_name or "",
            started_at=now,
            last_accessed_at=now,
        )
        try:
            created = await self.store.insert_progress(progress)
        except ConflictError:
            stored = await self.store.get_progress(student_id, subject_id)
            if stored is None:
                raise
            return stored

        logger.info(f"Started progress for student {student_id} on subject {subject_id}")
        return created

    async def _check_chapter(self, subject_id: str, chapter_id: str) -> None:
        if not chapter_id or not chapter_id.strip():
            raise ValidationError("chapterId is required")
        chapters = await self.store.list_chapters(subject_id)
        if chapters and chapter_id not in {c.id for c in chapters}:
            raise ValidationError(
                "Chapter does not belong to subject",
                context={"subject_id": subject_id, "chapter_id": chapter_id},
            )

    async def _update(
        self,
        student_id: str,
        subject_id: str,
        mutate: Callable[[Progress, datetime], Progress],
        required: bool,
    ) -> Optional[Progress]:
        """Optimistic read-modify-write, retried while other writers win the version race."""
        for attempt in range(self.max_attempts):
            current = await self.store.get_progress(student_id, subject_id)
            if current is None:
                if required:
                    raise NotFoundError("Progress not found. Start learning first.",
                                        error_code="PROGRESS_NOT_FOUND",
                                        context={"student_id": student_id, "subject_id": subject_id})
                return None

            updated = mutate(current, utcnow())
            try:
                return await self.store.update_progress(updated, current.version)
            except ConflictError:
                logger.warning(
                    f"Progress write conflict for {student_id}/{subject_id} "
                    f"(attempt {attempt + 1}/{self.max_attempts}), retrying"
                )

        logger.error(f"Progress update for {student_id}/{subject_id} kept conflicting")
        raise StoreError("Progress update failed after repeated write conflicts",
                         context={"student_id": student_id, "subject_id": subject_id})

    async def mark_chapter_complete(
        self, student_id: str, subject_id: str, chapter_id: str, total_chapters: int
    ) -> Progress:
        if total_chapters < 1:
            raise ValidationError("totalChapters must be at least 1",
                                  context={"total_chapters": total_chapters})
        await self._check_chapter(subject_id, chapter_id)

        def mutate(progress: Progress, now: datetime) -> Progress:
            completed = _union(progress.completed_chapter_ids, chapter_id)
            return apply_completion(progress, completed, total_chapters, now)

        return await self._update(student_id, subject_id, mutate, required=True)

    async def unmark_chapter_complete(
        self, student_id: str, subject_id: str, chapter_id: str, total_chapters: int
    ) -> Progress:
        if total_chapters < 1:
            raise ValidationError("totalChapters must be at least 1",
                                  context={"total_chapters": total_chapters})
        await self._check_chapter(subject_id, chapter_id)

        def mutate(progress: Progress, now: datetime) -> Progress:
            completed = [cid for cid in progress.completed_chapter_ids if cid != chapter_id]
            return apply_completion(progress, completed, total_chapters, now)

        return await self._update(student_id, subject_id, mutate, required=True)

    async def track_notes_viewed(self, student_id: str, subject_id: str, chapter_id: str) -> Optional[Progress]:
        await self._check_chapter(subject_id, chapter_id)

        def mutate(progress: Progress, now: datetime) -> Progress:
            return progress.model_copy(update={
                "notes_viewed_chapter_ids": _union(progress.notes_viewed_chapter_ids, chapter_id),
                "last_accessed_at": now,
            })

        return await self._update(student_id, subject_id, mutate, required=False)

    async def track_videos_viewed(self, student_id: str, subject_id: str, chapter_id: str) -> Optional[Progress]:
        await self._check_chapter(subject_id, chapter_id)

        def mutate(progress: Progress, now: datetime) -> Progress:
            return progress.model_copy(update={
                "videos_viewed_chapter_ids": _union(progress.videos_viewed_chapter_ids, chapter_id),
                "last_accessed_at": now,
            })

        return await self._update(student_id, subject_id, mutate, required=False)

    async def get_subject_progress(self, student_id: str, subject_id: str) -> ProgressLookup:
        progress = await self.store.get_progress(student_id, subject_id)
        if progress is None:
            return ProgressLookup(
                state=LookupState.NOT_FOUND,
                progress=Progress(student_id=student_id, subject_id=subject_id),
            )
        return ProgressLookup(state=LookupState.FOUND, progress=progress)

    async def get_all_progress(self, student_id: str) -> List[Progress]:
        return await self.store.list_progress(student_id)
