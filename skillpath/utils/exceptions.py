"""
Unified exception hierarchy for SkillPath.

All domain exceptions inherit from SkillPathError and carry:
- error_code: machine-readable string (e.g. "CHAPTER_NOT_FOUND")
- status_code: HTTP status code
- message: human-readable description
- context: optional structured metadata dict
"""

from typing import Optional, Dict, Any


class SkillPathError(Exception):
    """Base exception for all SkillPath domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)


class ValidationError(SkillPathError):
    """400-level validation / bad-request errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_INPUT",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=400, context=context)


class NotFoundError(SkillPathError):
    """404 resource-not-found errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "NOT_FOUND",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=404, context=context)


class GenerationError(SkillPathError):
    """500-level AI generation failures (errors, timeouts, unusable output)."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERATION_FAILED",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class RoadmapGenerationError(GenerationError):
    """Failed to generate a subject roadmap."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="ROADMAP_GENERATION_FAILED", context=context)


class ChapterListGenerationError(GenerationError):
    """Failed to generate the chapter list for a subject."""

    def __init__(self, subject_id: str, message: str, context: Optional[Dict[str, Any]] = None):
        self.subject_id = subject_id
        ctx = {"subject_id": subject_id}
        if context:
            ctx.update(context)
        super().__init__(
            f"Chapter generation failed for subject {subject_id}: {message}",
            error_code="CHAPTERS_GENERATION_FAILED",
            context=ctx,
        )


class ChapterContentGenerationError(GenerationError):
    """Failed to generate overview/concepts for a chapter."""

    def __init__(self, chapter_id: str, message: str, context: Optional[Dict[str, Any]] = None):
        self.chapter_id = chapter_id
        ctx = {"chapter_id": chapter_id}
        if context:
            ctx.update(context)
        super().__init__(
            f"Content generation failed for chapter {chapter_id}: {message}",
            error_code="CONTENT_GENERATION_FAILED",
            context=ctx,
        )


class SearchServiceError(SkillPathError):
    """Video search failures. Callers degrade to a fallback link instead of failing."""

    def __init__(
        self,
        message: str,
        error_code: str = "VIDEO_SEARCH_FAILED",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=502, context=context)


class StoreError(SkillPathError):
    """500-level database / storage failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORAGE_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=status_code, context=context)


class ConflictError(StoreError):
    """A unique key or version check rejected the write."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="WRITE_CONFLICT", status_code=409, context=context)
