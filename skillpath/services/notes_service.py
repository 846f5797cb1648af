"""
Study notes per chapter. Created only on explicit request, never regenerated.
"""

import asyncio
import logging
from typing import Optional, Sequence

from skillpath.clients.content_store import ContentStore
from skillpath.models.learning_models import Notes, NotesResult
from skillpath.prompts.learning_prompts import build_study_notes_prompt
from skillpath.services.chapter_content_service import ChapterContentService
from skillpath.utils.exceptions import ConflictError, GenerationError, NotFoundError
from skillpath.utils.single_flight import SingleFlight

logger = logging.getLogger(__name__)

# Delays before the 2nd and 3rd attempt
NOTES_RETRY_DELAYS = (1.0, 2.0)


class NotesService:

    def __init__(
        self,
        store: ContentStore,
        generator,
        content_service: ChapterContentService,
        single_flight: Optional[SingleFlight] = None,
        retry_delays: Sequence[float] = NOTES_RETRY_DELAYS,
    ):
        self.store = store
        self.generator = generator
        self.content_service = content_service
        self.single_flight = single_flight or SingleFlight()
        self.retry_delays = tuple(retry_delays)

    async def get_cached(self, chapter_id: str) -> Optional[Notes]:
        return await self.store.get_notes(chapter_id)

    async def get_or_generate(self, chapter_id: str) -> NotesResult:
        if await self.store.get_chapter(chapter_id) is None:
            raise NotFoundError("Chapter not found", error_code="CHAPTER_NOT_FOUND",
                                context={"chapter_id": chapter_id})

        cached = await self.store.get_notes(chapter_id)
        if cached:
            logger.info(f"Notes cache hit: {chapter_id}")
            return NotesResult(notes=cached, cached=True)

        logger.info(f"Notes cache miss: {chapter_id}, generating")
        return await self.single_flight.do(f"notes:{chapter_id}", lambda: self._generate(chapter_id))

    async def _generate(self, chapter_id: str) -> NotesResult:
        cached = await self.store.get_notes(chapter_id)
        if cached:
            return NotesResult(notes=cached, cached=True)

        chapter = await self.content_service.get_with_content(chapter_id)
        prompt = build_study_notes_prompt(
            chapter.subject_name, chapter.title, chapter.overview or "", chapter.concepts or []
        )
        content = await self._generate_with_retry(chapter_id, prompt)

        try:
            stored = await self.store.insert_notes(Notes(chapter_id=chapter_id, content=content))
        except ConflictError:
            winner = await self.store.get_notes(chapter_id)
            if winner is None:
                raise
            return NotesResult(notes=winner, cached=True)

        logger.info(f"Generated notes for chapter {chapter_id} ({len(content)} chars)")
        return NotesResult(notes=stored, cached=False)

    async def _generate_with_retry(self, chapter_id: str, prompt: str) -> str:
        max_attempts = len(self.retry_delays) + 1
        for attempt in range(max_attempts):
            try:
                data = await self.generator.generate_json(prompt)
                content = str(data.get("notes") or "").strip()
                if not content:
                    raise GenerationError("Model returned empty notes", error_code="NOTES_GENERATION_FAILED",
                                          context={"chapter_id": chapter_id})
                return content
            except GenerationError as e:
                if attempt >= max_attempts - 1:
                    logger.error(f"Notes generation failed for chapter {chapter_id} after {max_attempts} attempts: {e.message}")
                    raise
                delay = self.retry_delays[attempt]
                logger.warning(
                    f"Notes generation attempt {attempt + 1}/{max_attempts} failed for chapter {chapter_id}: "
                    f"{e.message}. Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)

        raise GenerationError("Notes generation failed", error_code="NOTES_GENERATION_FAILED")
