"""
Chapter video recommendations with a YouTube search link as the degraded result.
"""

import re
import logging
from typing import Optional
from urllib.parse import quote_plus

from skillpath.clients.content_store import ContentStore
from skillpath.models.learning_models import Chapter, VideoResult, VideoSet
from skillpath.utils.exceptions import ConflictError, NotFoundError, SearchServiceError
from skillpath.utils.single_flight import SingleFlight

logger = logging.getLogger(__name__)

YOUTUBE_RESULTS_URL = "https://www.youtube.com/results?search_query="

_CHAPTER_PREFIX = re.compile(r"^(Chapter \d+:?\s*)", re.IGNORECASE)
_INTRO_PREFIX = re.compile(r"^(Introduction to|Getting Started with|Understanding)\s*", re.IGNORECASE)


def build_video_search_query(subject_name: str, chapter_title: str) -> str:
    """
    e.g. ("React", "Chapter 2: Understanding Hooks") -> "React Hooks"
    """
    clean_subject = re.sub(r"\s+", " ", subject_name or "").strip()
    clean_chapter = _CHAPTER_PREFIX.sub("", (chapter_title or "").strip())
    clean_chapter = _INTRO_PREFIX.sub("", clean_chapter).strip()
    return f"{clean_subject} {clean_chapter}".strip()


def youtube_search_url(query: str) -> str:
    return YOUTUBE_RESULTS_URL + quote_plus(f"{query} tutorial")


class VideoRecommendationService:
    """
    Cache-first videos per chapter.
    Only non-empty search results are stored; failures return the fallback link and are retried next time.
    """

    def __init__(
        self,
        store: ContentStore,
        video_search,
        max_videos: int = 5,
        single_flight: Optional[SingleFlight] = None,
    ):
        self.store = store
        self.video_search = video_search
        self.max_videos = max_videos
        self.single_flight = single_flight or SingleFlight()

    async def get_or_fetch(self, chapter_id: str) -> VideoResult:
        chapter = await self.store.get_chapter(chapter_id)
        if chapter is None:
            raise NotFoundError("Chapter not found", error_code="CHAPTER_NOT_FOUND",
                                context={"chapter_id": chapter_id})

        cached = await self.store.get_video_set(chapter_id)
        if cached:
            logger.info(f"Videos cache hit: {chapter_id}")
            return VideoResult(videos=cached.videos, cached=True, fallback_url=cached.fallback_url)

        logger.info(f"Videos cache miss: {chapter_id}, searching")
        return await self.single_flight.do(f"videos:{chapter_id}", lambda: self._fetch(chapter))

    async def _subject_name(self, chapter: Chapter) -> str:
        subject = await self.store.get_subject(chapter.subject_id)
        return subject.display_name if subject else chapter.subject_name

    async def _fetch(self, chapter: Chapter) -> VideoResult:
        cached = await self.store.get_video_set(chapter.id)
        if cached:
            return VideoResult(videos=cached.videos, cached=True, fallback_url=cached.fallback_url)

        query = build_video_search_query(await self._subject_name(chapter), chapter.title)
        fallback_url = youtube_search_url(query)

        try:
            videos = await self.video_search.search(query, self.max_videos)
        except SearchServiceError as e:
            logger.warning(f"Video search failed for chapter {chapter.id}, returning fallback link: {e.message}")
            return VideoResult(videos=[], cached=False, fallback_url=fallback_url)
        except Exception as e:
            logger.warning(f"Video search errored for chapter {chapter.id}, returning fallback link: {e!r}")
            return VideoResult(videos=[], cached=False, fallback_url=fallback_url)

        if not videos:
            logger.warning(f"No videos found for chapter {chapter.id} ('{query}'), returning fallback link")
            return VideoResult(videos=[], cached=False, fallback_url=fallback_url)

        video_set = VideoSet(chapter_id=chapter.id, videos=videos[:self.max_videos], fallback_url=fallback_url)
        try:
            stored = await self.store.insert_video_set(video_set)
        except ConflictError:
            winner = await self.store.get_video_set(chapter.id)
            if winner is None:
                raise
            return VideoResult(videos=winner.videos, cached=True, fallback_url=winner.fallback_url)

        logger.info(f"Stored {len(stored.videos)} videos for chapter {chapter.id}")
        return VideoResult(videos=stored.videos, cached=False, fallback_url=stored.fallback_url)
