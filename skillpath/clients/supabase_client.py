import os
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv
from supabase import create_client, Client

from skillpath.clients.content_store import ContentStore
from skillpath.models.learning_models import (
    Chapter, ChapterContent, Notes, Progress, Subject, VideoSet
)
from skillpath.utils.exceptions import (
    ConflictError, NotFoundError, SkillPathError, StoreError
)

load_dotenv()

logger = logging.getLogger(__name__)

SUBJECTS_TABLE = "learning_subjects"
CHAPTERS_TABLE = "learning_chapters"
NOTES_TABLE = "learning_notes"
VIDEO_SETS_TABLE = "learning_video_sets"
PROGRESS_TABLE = "learning_subject_progress"

UNIQUE_VIOLATION = "23505"


def create_supabase(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    url = url or os.getenv("SUPABASE_URL")
    key = key or os.getenv("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


def _serialize_for_supabase(data: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively convert enums → .value, datetimes → .isoformat() for Supabase writes."""
    result = {}
    for key, value in data.items():
        if isinstance(value, Enum):
            result[key] = value.value
        elif isinstance(value, datetime):
            result[key] = value.isoformat()
        elif isinstance(value, dict):
            result[key] = _serialize_for_supabase(value)
        elif isinstance(value, list):
            result[key] = [
                _serialize_for_supabase(item) if isinstance(item, dict)
                else item.value if isinstance(item, Enum)
                else item.isoformat() if isinstance(item, datetime)
                else item
                for item in value
            ]
        else:
            result[key] = value
    return result


def _serialize_chapter_data(chapter: Chapter) -> Dict[str, Any]:
    """Serialize chapter for DB insert. Maps 'order' → 'order_index'."""
    serialized = _serialize_for_supabase(chapter.model_dump())
    serialized["order_index"] = serialized.pop("order")
    return serialized


def _chapter_from_row(row: Dict[str, Any]) -> Chapter:
    """Maps order_index → order on read."""
    row = dict(row)
    row["order"] = row.pop("order_index", None)
    return Chapter.model_validate(row)


def _is_unique_violation(exc: Exception) -> bool:
    return getattr(exc, "code", None) == UNIQUE_VIOLATION or "duplicate key" in str(exc)


class SupabaseContentStore(ContentStore):
    """
    Content store backed by Supabase tables.

    The supabase client is synchronous, so each call runs in a worker thread.
    Uniqueness comes from table constraints (see sql/learning_schema.sql);
    a batch insert is a single INSERT statement and therefore all-or-nothing.
    """

    def __init__(self, client: Client):
        self.client = client

    async def _run(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except SkillPathError:
            raise
        except Exception as e:
            if _is_unique_violation(e):
                raise ConflictError(f"{operation}: unique constraint violated",
                                    context={"operation": operation})
            logger.error(f"Supabase {operation} failed: {e}")
            raise StoreError(f"{operation} failed: {e}", context={"operation": operation})

    def _select_one(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        query = self.client.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        response = query.limit(1).execute()
        if response.data and len(response.data) > 0:
            return response.data[0]
        return None

    def _insert(self, table: str, rows: Any) -> List[Dict[str, Any]]:
        response = self.client.table(table).insert(rows).execute()
        if not response.data:
            raise StoreError(f"Supabase insert into {table} returned no rows: {response}")
        return response.data

    # --- Subjects ---

    async def get_subject_by_key(self, subject_key: str) -> Optional[Subject]:
        row = await self._run("get_subject_by_key", self._select_one, SUBJECTS_TABLE,
                              subject_key=subject_key)
        return Subject.model_validate(row) if row else None

    async def get_subject(self, subject_id: str) -> Optional[Subject]:
        row = await self._run("get_subject", self._select_one, SUBJECTS_TABLE, id=subject_id)
        return Subject.model_validate(row) if row else None

    async def insert_subject(self, subject: Subject) -> Subject:
        data = _serialize_for_supabase(subject.model_dump())
        rows = await self._run("insert_subject", self._insert, SUBJECTS_TABLE, data)
        return Subject.model_validate(rows[0])

    # --- Chapters ---

    def _list_chapter_rows(self, subject_id: str) -> List[Dict[str, Any]]:
        response = self.client.table(CHAPTERS_TABLE) \
            .select("*").eq("subject_id", subject_id) \
            .order("order_index").execute()
        return response.data or []

    async def list_chapters(self, subject_id: str) -> List[Chapter]:
        rows = await self._run("list_chapters", self._list_chapter_rows, subject_id)
        return [_chapter_from_row(row) for row in rows]

    async def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        row = await self._run("get_chapter", self._select_one, CHAPTERS_TABLE, id=chapter_id)
        return _chapter_from_row(row) if row else None

    async def insert_chapters(self, chapters: List[Chapter]) -> List[Chapter]:
        data = [_serialize_chapter_data(chapter) for chapter in chapters]
        rows = await self._run("insert_chapters", self._insert, CHAPTERS_TABLE, data)
        return sorted((_chapter_from_row(row) for row in rows), key=lambda c: c.order)

    def _update_chapter_row(self, chapter_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = self.client.table(CHAPTERS_TABLE).update(data).eq("id", chapter_id).execute()
        return response.data[0] if response.data else None

    async def update_chapter_content(self, chapter_id: str, content: ChapterContent) -> Chapter:
        data = _serialize_for_supabase(content.model_dump())
        row = await self._run("update_chapter_content", self._update_chapter_row, chapter_id, data)
        if row is None:
            raise NotFoundError("Chapter not found", error_code="CHAPTER_NOT_FOUND",
                                context={"chapter_id": chapter_id})
        return _chapter_from_row(row)

    # --- Notes ---

    async def get_notes(self, chapter_id: str) -> Optional[Notes]:
        row = await self._run("get_notes", self._select_one, NOTES_TABLE, chapter_id=chapter_id)
        return Notes.model_validate(row) if row else None

    async def insert_notes(self, notes: Notes) -> Notes:
        data = _serialize_for_supabase(notes.model_dump())
        rows = await self._run("insert_notes", self._insert, NOTES_TABLE, data)
        return Notes.model_validate(rows[0])

    # --- Videos ---

    async def get_video_set(self, chapter_id: str) -> Optional[VideoSet]:
        row = await self._run("get_video_set", self._select_one, VIDEO_SETS_TABLE,
                              chapter_id=chapter_id)
        return VideoSet.model_validate(row) if row else None

    async def insert_video_set(self, video_set: VideoSet) -> VideoSet:
        data = _serialize_for_supabase(video_set.model_dump())
        rows = await self._run("insert_video_set", self._insert, VIDEO_SETS_TABLE, data)
        return VideoSet.model_validate(rows[0])

    # --- Progress ---

    async def get_progress(self, student_id: str, subject_id: str) -> Optional[Progress]:
        row = await self._run("get_progress", self._select_one, PROGRESS_TABLE,
                              student_id=student_id, subject_id=subject_id)
        return Progress.model_validate(row) if row else None

    def _list_progress_rows(self, student_id: str) -> List[Dict[str, Any]]:
        response = self.client.table(PROGRESS_TABLE) \
            .select("*").eq("student_id", student_id) \
            .order("started_at").order("subject_id").execute()
        return response.data or []

    async def list_progress(self, student_id: str) -> List[Progress]:
        rows = await self._run("list_progress", self._list_progress_rows, student_id)
        return [Progress.model_validate(row) for row in rows]

    async def insert_progress(self, progress: Progress) -> Progress:
        data = _serialize_for_supabase(progress.model_dump())
        rows = await self._run("insert_progress", self._insert, PROGRESS_TABLE, data)
        return Progress.model_validate(rows[0])

    def _compare_and_set_progress(self, data: Dict[str, Any], expected_version: int) -> Optional[Dict[str, Any]]:
        response = self.client.table(PROGRESS_TABLE).update(data) \
            .eq("student_id", data["student_id"]) \
            .eq("subject_id", data["subject_id"]) \
            .eq("version", expected_version).execute()
        return response.data[0] if response.data else None

    async def update_progress(self, progress: Progress, expected_version: int) -> Progress:
        data = _serialize_for_supabase(progress.model_dump(exclude={"id"}))
        data["version"] = expected_version + 1
        row = await self._run("update_progress", self._compare_and_set_progress, data, expected_version)
        if row is not None:
            return Progress.model_validate(row)

        # Zero rows matched: either the record vanished or someone else bumped the version.
        if await self.get_progress(progress.student_id, progress.subject_id) is None:
            raise NotFoundError("Progress not found", error_code="PROGRESS_NOT_FOUND",
                                context={"student_id": progress.student_id,
                                         "subject_id": progress.subject_id})
        raise ConflictError(
            f"Progress version moved past {expected_version}",
            context={"student_id": progress.student_id, "subject_id": progress.subject_id},
        )
