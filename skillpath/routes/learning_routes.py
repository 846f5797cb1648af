"""
FastAPI routes for the learning system.
Handlers validate parameters and shape the envelope; all behaviour lives in the services.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel

from skillpath.models.learning_models import (
    ChapterGenerateRequest, ProgressAction, ProgressUpdateRequest, SubjectRequest
)
from skillpath.services import LearningServices
from skillpath.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/learning-system", tags=["learning-system"])


def get_services(request: Request) -> LearningServices:
    return request.app.state.learning_services


def _dump(model: Optional[BaseModel]) -> Any:
    if model is None:
        return None
    return model.model_dump(mode="json", by_alias=True)


def _ok(**payload: Any) -> Dict[str, Any]:
    return {"success": True, **payload}


# Subjects
@router.get("/subjects")
async def get_subject(
    skill_name: Optional[str] = Query(None, alias="skillName"),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    services: LearningServices = Depends(get_services),
):
    """
    Look up a subject without generating anything.

    - `?subjectId=` returns the stored subject or 404
    - `?skillName=` reports whether a subject exists for the skill
    """
    if subject_id:
        subject = await services.subjects.get_by_id(subject_id)
        return _ok(subject=_dump(subject), cached=True)

    if skill_name:
        lookup = await services.subjects.check_exists(skill_name)
        return _ok(**_dump(lookup))

    raise ValidationError("skillName or subjectId is required")


@router.post("/subjects")
async def create_subject(
    request: SubjectRequest = Body(...),
    services: LearningServices = Depends(get_services),
):
    """Resolve the subject for a skill, generating its roadmap on first request."""
    result = await services.subjects.get_or_generate(request.skill_name, request.learning_type)
    return _ok(subject=_dump(result.subject), cached=result.cached)


# Chapters
@router.get("/chapters")
async def list_chapters(
    subject_id: str = Query(..., alias="subjectId", min_length=1),
    services: LearningServices = Depends(get_services),
):
    """Stored chapters only; never generates."""
    chapters = await services.chapters.get_by_subject_id(subject_id)
    return _ok(chapters=[_dump(c) for c in chapters], cached=True, hasChapters=bool(chapters))


@router.post("/chapters")
async def generate_chapters(
    request: ChapterGenerateRequest = Body(...),
    services: LearningServices = Depends(get_services),
):
    result = await services.chapters.get_or_generate(request.subject_id)
    return _ok(chapters=[_dump(c) for c in result.chapters], cached=result.cached)


@router.get("/chapters/{chapter_id}")
async def get_chapter(chapter_id: str, services: LearningServices = Depends(get_services)):
    """Chapter with overview and concepts, generated on first view."""
    result = await services.content.get_or_generate_content(chapter_id)
    return _ok(chapter=_dump(result.chapter), cached=result.cached)


@router.post("/chapters/{chapter_id}/notes")
async def generate_notes(chapter_id: str, services: LearningServices = Depends(get_services)):
    result = await services.notes.get_or_generate(chapter_id)
    return _ok(notes=_dump(result.notes), cached=result.cached)


@router.get("/chapters/{chapter_id}/notes")
async def get_notes(chapter_id: str, services: LearningServices = Depends(get_services)):
    notes = await services.notes.get_cached(chapter_id)
    return _ok(notes=_dump(notes), cached=True)


@router.get("/chapters/{chapter_id}/videos")
async def get_videos(chapter_id: str, services: LearningServices = Depends(get_services)):
    """Videos for a chapter; an empty list comes with a YouTube search link."""
    result = await services.videos.get_or_fetch(chapter_id)
    return _ok(**_dump(result))


# Progress
@router.get("/progress")
async def get_progress(
    student_id: str = Query(..., alias="studentId", min_length=1),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    services: LearningServices = Depends(get_services),
):
    if subject_id:
        lookup = await services.progress.get_subject_progress(student_id, subject_id)
        return _ok(progress=_dump(lookup.progress), found=lookup.found)

    progress_list = await services.progress.get_all_progress(student_id)
    return _ok(progressList=[_dump(p) for p in progress_list])


@router.post("/progress")
async def update_progress(
    request: ProgressUpdateRequest = Body(...),
    services: LearningServices = Depends(get_services),
):
    """
    Apply one progress action.

    - start: needs subjectName
    - complete-chapter / uncomplete-chapter: need chapterId and totalChapters >= 1
    - track-notes / track-videos: need chapterId; no-op (progress null) before start
    """
    tracker = services.progress
    action = request.action

    if action == ProgressAction.START:
        if not request.subject_name or not request.subject_name.strip():
            raise ValidationError("subjectName is required for start")
        progress = await tracker.start(request.student_id, request.subject_id, request.subject_name)
        return _ok(progress=_dump(progress))

    if not request.chapter_id:
        raise ValidationError(f"chapterId is required for {action.value}")

    if action in (ProgressAction.COMPLETE_CHAPTER, ProgressAction.UNCOMPLETE_CHAPTER):
        if request.total_chapters is None or request.total_chapters < 1:
            raise ValidationError(f"totalChapters >= 1 is required for {action.value}")
        if action == ProgressAction.COMPLETE_CHAPTER:
            progress = await tracker.mark_chapter_complete(
                request.student_id, request.subject_id, request.chapter_id, request.total_chapters
            )
        else:
            progress = await tracker.unmark_chapter_complete(
                request.student_id, request.subject_id, request.chapter_id, request.total_chapters
            )
        return _ok(progress=_dump(progress))

    if action == ProgressAction.TRACK_NOTES:
        progress = await tracker.track_notes_viewed(request.student_id, request.subject_id, request.chapter_id)
    else:
        progress = await tracker.track_videos_viewed(request.student_id, request.subject_id, request.chapter_id)
    return _ok(progress=_dump(progress))
