"""
Per-chapter overview and concepts, generated on first request and written onto the chapter.
"""

import logging
from typing import Any, List, Optional

from skillpath.clients.content_store import ContentStore
from skillpath.models.learning_models import Chapter, ChapterContent, ChapterContentResult
from skillpath.prompts.learning_prompts import build_chapter_content_prompt
from skillpath.utils.exceptions import ChapterContentGenerationError, NotFoundError
from skillpath.utils.single_flight import SingleFlight

logger = logging.getLogger(__name__)


def _concept_text(item: Any) -> str:
    if isinstance(item, dict):
        name = str(item.get("name") or item.get("title") or "").strip()
        explanation = str(item.get("explanation") or item.get("description") or "").strip()
        return f"{name}: {explanation}" if name and explanation else name or explanation
    return str(item).strip()


def _text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_concept_text(item) for item in value) if text]


class ChapterContentService:

    def __init__(self, store: ContentStore, generator, single_flight: Optional[SingleFlight] = None):
        self.store = store
        self.generator = generator
        self.single_flight = single_flight or SingleFlight()

    async def _require_chapter(self, chapter_id: str) -> Chapter:
        chapter = await self.store.get_chapter(chapter_id)
        if chapter is None:
            raise NotFoundError("Chapter not found", error_code="CHAPTER_NOT_FOUND",
                                context={"chapter_id": chapter_id})
        return chapter

    async def get_with_content(self, chapter_id: str) -> Chapter:
        """Chapter with overview and concepts, generating them on first request."""
        result = await self.get_or_generate_content(chapter_id)
        return result.chapter

    async def get_or_generate_content(self, chapter_id: str) -> ChapterContentResult:
        chapter = await self._require_chapter(chapter_id)
        if chapter.has_content:
            logger.info(f"Chapter content cache hit: {chapter_id}")
            return ChapterContentResult(chapter=chapter, cached=True)

        logger.info(f"Chapter content cache miss: {chapter_id}, generating")
        return await self.single_flight.do(f"content:{chapter_id}", lambda: self._generate(chapter_id))

    async def _generate(self, chapter_id: str) -> ChapterContentResult:
        chapter = await self._require_chapter(chapter_id)
        if chapter.has_content:
            return ChapterContentResult(chapter=chapter, cached=True)

        subject = await self.store.get_subject(chapter.subject_id)
        subject_name = subject.display_name if subject else chapter.subject_name
        prompt = build_chapter_content_prompt(
            subject_name,
            chapter.title,
            chapter.description,
            roadmap=subject.roadmap if subject else None,
        )
        data = await self.generator.generate_json(prompt)

        overview = str(data.get("overview") or "").strip()
        concepts = _text_list(data.get("concepts"))
        if not overview or not concepts:
            logger.error(f"Chapter {chapter_id}: model returned blank overview or no concepts")
            raise ChapterContentGenerationError(chapter_id, "overview or concepts missing from model output")

        content = ChapterContent(
            overview=overview,
            concepts=concepts,
            learning_objectives=_text_list(data.get("learningObjectives")),
            prerequisites=_text_list(data.get("prerequisites")),
        )
        updated = await self.store.update_chapter_content(chapter_id, content)
        logger.info(f"Generated content for chapter {chapter_id} ({len(concepts)} concepts)")
        return ChapterContentResult(chapter=updated, cached=False)
