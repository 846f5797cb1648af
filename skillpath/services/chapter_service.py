"""
Chapter list generation: expands a subject's roadmap into ordered chapters, written in one batch.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from skillpath.clients.content_store import ContentStore
from skillpath.models.learning_models import Chapter, ChapterListResult, Subject
from skillpath.prompts.learning_prompts import build_chapter_list_prompt
from skillpath.utils.exceptions import (
    ChapterListGenerationError, ConflictError, NotFoundError
)
from skillpath.utils.single_flight import SingleFlight

logger = logging.getLogger(__name__)

STEP_KEYS = ("roadmapStep", "chapterNumber")


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _step_index(entry: Dict[str, Any]) -> Optional[int]:
    for key in STEP_KEYS:
        index = _as_int(entry.get(key))
        if index is not None:
            return index
    return None


def order_chapter_entries(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Roadmap order of the model's chapter entries.
    When every entry carries a step index they are stably sorted by it;
    otherwise the model's order is kept.
    """
    indexes = [_step_index(entry) for entry in entries]
    if any(index is None for index in indexes):
        return list(entries)
    return [entry for _, entry in sorted(zip(indexes, entries), key=lambda pair: pair[0])]


def build_chapters(subject: Subject, data: Dict[str, Any]) -> List[Chapter]:
    entries = data.get("chapters")
    if not isinstance(entries, list) or not entries:
        raise ChapterListGenerationError(subject.id, "model returned no chapters")
    if not all(isinstance(entry, dict) for entry in entries):
        raise ChapterListGenerationError(subject.id, "malformed chapter entry")

    chapters = []
    for order, entry in enumerate(order_chapter_entries(entries)):
        title = str(entry.get("title") or "").strip()
        if not title:
            raise ChapterListGenerationError(subject.id, f"chapter {order} has no title")

        topics = entry.get("keyTopics") or []
        chapters.append(Chapter(
            id=str(uuid.uuid4()),
            subject_id=subject.id,
            order=order,
            title=title,
            subject_name=subject.display_name,
            description=str(entry.get("description") or "").strip(),
            estimated_minutes=_as_int(entry.get("estimatedMinutes")),
            key_topics=[str(t).strip() for t in topics if str(t).strip()] if isinstance(topics, list) else [],
        ))
    return chapters


class ChapterGenerator:
    """Cache-first chapter lists per subject"""

    def __init__(self, store: ContentStore, generator, single_flight: Optional[SingleFlight] = None):
        self.store = store
        self.generator = generator
        self.single_flight = single_flight or SingleFlight()

    async def get_or_generate(self, subject_id: str) -> ChapterListResult:
        subject = await self.store.get_subject(subject_id)
        if subject is None:
            raise NotFoundError("Subject not found", error_code="SUBJECT_NOT_FOUND",
                                context={"subject_id": subject_id})

        existing = await self.store.list_chapters(subject_id)
        if existing:
            logger.info(f"Chapters cache hit for subject {subject_id} ({len(existing)} chapters)")
            return ChapterListResult(chapters=existing, cached=True)

        logger.info(f"Chapters cache miss for subject {subject_id}, generating")
        return await self.single_flight.do(f"chapters:{subject_id}", lambda: self._generate(subject))

    async def _generate(self, subject: Subject) -> ChapterListResult:
        existing = await self.store.list_chapters(subject.id)
        if existing:
            return ChapterListResult(chapters=existing, cached=True)

        prompt = build_chapter_list_prompt(subject.display_name, subject.difficulty.value, subject.roadmap)
        data = await self.generator.generate_json(prompt)
        try:
            chapters = build_chapters(subject, data)
        except ChapterListGenerationError as e:
            logger.error(e.message)
            raise

        try:
            stored = await self.store.insert_chapters(chapters)
        except ConflictError:
            winner = await self.store.list_chapters(subject.id)
            if not winner:
                raise
            logger.info(f"Chapters for subject {subject.id} were written concurrently, using stored copy")
            return ChapterListResult(chapters=winner, cached=True)

        logger.info(f"Created {len(stored)} chapters for subject {subject.id}")
        return ChapterListResult(chapters=stored, cached=False)

    async def get_by_subject_id(self, subject_id: str) -> List[Chapter]:
        """Cache-only; [] until chapters have been generated."""
        return await self.store.list_chapters(subject_id)
