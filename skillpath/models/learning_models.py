"""
Pydantic models for the learning system.
Python side and store side are snake_case; the HTTP surface is camelCase.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase aliases, accepts either on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Enums for type safety and validation
class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ProgressStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class ProgressAction(str, Enum):
    START = "start"
    COMPLETE_CHAPTER = "complete-chapter"
    UNCOMPLETE_CHAPTER = "uncomplete-chapter"
    TRACK_NOTES = "track-notes"
    TRACK_VIDEOS = "track-videos"


class LookupState(str, Enum):
    """Server-side states of a progress lookup; 'loading' only exists on the client."""
    FOUND = "found"
    NOT_FOUND = "not_found"


# Subject & Roadmap
class RoadmapNode(CamelModel):
    """One step of a subject's learning path"""
    model_config = ConfigDict(frozen=True)

    order: int = Field(..., ge=0)
    title: str
    description: str = ""
    key_topics: List[str] = []


class Subject(CamelModel):
    """A skill's generated roadmap and identity. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    subject_key: str
    display_name: str
    description: str = ""
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_hours: int = 0
    overview: str = ""
    roadmap: List[RoadmapNode] = Field(..., min_length=1)
    tips: List[str] = []
    created_at: datetime = Field(default_factory=utcnow)


# Chapters
class Chapter(CamelModel):
    """One ordered unit of a subject. overview/concepts are attached on first content request."""
    id: str
    subject_id: str
    order: int = Field(..., ge=0)
    title: str
    subject_name: str = ""
    description: str = ""
    estimated_minutes: Optional[int] = None
    key_topics: List[str] = []
    overview: Optional[str] = None
    concepts: Optional[List[str]] = None
    learning_objectives: List[str] = []
    prerequisites: List[str] = []
    content_generated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def has_content(self) -> bool:
        return bool(self.overview) and bool(self.concepts)


class ChapterContent(CamelModel):
    """Generated fields written onto an existing chapter"""
    overview: str
    concepts: List[str]
    learning_objectives: List[str] = []
    prerequisites: List[str] = []
    content_generated_at: datetime = Field(default_factory=utcnow)


# Notes & Videos
class Notes(CamelModel):
    chapter_id: str
    content: str
    generated_at: datetime = Field(default_factory=utcnow)


class Video(CamelModel):
    title: str
    url: str
    thumbnail_url: str = ""
    channel_name: str = ""
    video_id: Optional[str] = None
    description: str = ""
    published_at: Optional[str] = None
    duration: Optional[str] = None
    view_count: Optional[str] = None


class VideoSet(CamelModel):
    chapter_id: str
    videos: List[Video]
    fallback_url: str
    fetched_at: datetime = Field(default_factory=utcnow)


# Progress
class Progress(CamelModel):
    """Per-student, per-subject completion and engagement state"""
    id: Optional[str] = None
    student_id: str
    subject_id: str
    subject_name: str = ""
    total_chapters: int = Field(0, ge=0)
    completed_chapter_ids: List[str] = []
    notes_viewed_chapter_ids: List[str] = []
    videos_viewed_chapter_ids: List[str] = []
    percent_complete: int = Field(0, ge=0, le=100)
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    has_completion_history: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    version: int = 0


# Service results
class SubjectResult(CamelModel):
    subject: Subject
    cached: bool


class SubjectLookup(CamelModel):
    exists: bool
    subject: Optional[Subject] = None
    has_roadmap: bool = False
    has_chapters: bool = False


class ChapterListResult(CamelModel):
    chapters: List[Chapter]
    cached: bool


class ChapterContentResult(CamelModel):
    chapter: Chapter
    cached: bool


class NotesResult(CamelModel):
    notes: Notes
    cached: bool


class VideoResult(CamelModel):
    videos: List[Video]
    cached: bool
    fallback_url: str


class ProgressLookup(CamelModel):
    state: LookupState
    progress: Progress

    @property
    def found(self) -> bool:
        return self.state == LookupState.FOUND


# Request Models
class SubjectRequest(CamelModel):
    """Generate/resolve a subject for a skill"""
    skill_name: str = Field(..., min_length=1, max_length=200)
    learning_type: Optional[str] = None


class ChapterGenerateRequest(CamelModel):
    subject_id: str = Field(..., min_length=1)


class ProgressUpdateRequest(CamelModel):
    """Mutate a student's progress for one subject"""
    student_id: str = Field(..., min_length=1)
    subject_id: str = Field(..., min_length=1)
    action: ProgressAction
    subject_name: Optional[str] = None
    chapter_id: Optional[str] = None
    total_chapters: Optional[int] = None
