from dataclasses import dataclass
from typing import Optional

from skillpath.clients.content_store import ContentStore
from skillpath.config import Settings
from skillpath.services.chapter_content_service import ChapterContentService
from skillpath.services.chapter_service import ChapterGenerator
from skillpath.services.notes_service import NotesService
from skillpath.services.progress_service import ProgressTracker
from skillpath.services.subject_service import SubjectResolver
from skillpath.services.video_service import VideoRecommendationService


@dataclass
class LearningServices:
    """Every learning service, built once per process and shared by the routes."""
    store: ContentStore
    subjects: SubjectResolver
    chapters: ChapterGenerator
    content: ChapterContentService
    notes: NotesService
    videos: VideoRecommendationService
    progress: ProgressTracker


def build_learning_services(
    store: ContentStore,
    generator,
    video_search,
    settings: Optional[Settings] = None,
) -> LearningServices:
    settings = settings or Settings()
    content = ChapterContentService(store, generator)
    return LearningServices(
        store=store,
        subjects=SubjectResolver(store, generator),
        chapters=ChapterGenerator(store, generator),
        content=content,
        notes=NotesService(store, generator, content),
        videos=VideoRecommendationService(store, video_search, max_videos=settings.max_videos),
        progress=ProgressTracker(store),
    )
