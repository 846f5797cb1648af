"""
Subject resolution: one AI-generated roadmap per normalized skill key.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from skillpath.clients.content_store import ContentStore
from skillpath.models.learning_models import (
    RoadmapNode, Subject, SubjectLookup, SubjectResult
)
from skillpath.prompts.learning_prompts import build_roadmap_prompt
from skillpath.utils.exceptions import (
    ConflictError, NotFoundError, RoadmapGenerationError, ValidationError
)
from skillpath.utils.single_flight import SingleFlight
from skillpath.utils.skills import (
    estimate_hours, get_display_name, infer_difficulty, normalize_skill_name
)

logger = logging.getLogger(__name__)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def parse_roadmap(data: Dict[str, Any]) -> List[RoadmapNode]:
    """
    Turn the model's roadmap into ordered nodes.
    Accepts a list of step objects or plain step strings; anything else is rejected.
    """
    steps = data.get("roadmap")
    if isinstance(steps, dict):
        # {"roadmap": {"learningPath": [...]}}
        steps = steps.get("learningPath") or steps.get("steps")
    if not isinstance(steps, list) or not steps:
        raise RoadmapGenerationError("Model returned an empty roadmap")

    nodes = []
    for step in steps:
        if isinstance(step, str):
            title, description, topics = step.strip(), "", []
        elif isinstance(step, dict):
            title = str(step.get("title") or "").strip()
            description = str(step.get("description") or "").strip()
            topics = _string_list(step.get("keyTopics") or step.get("key_topics"))
        else:
            raise RoadmapGenerationError(f"Malformed roadmap step: {step!r}")

        if not title:
            raise RoadmapGenerationError("Roadmap step without a title")
        nodes.append(RoadmapNode(order=len(nodes), title=title,
                                 description=description, key_topics=topics))
    return nodes


class SubjectResolver:
    """Cache-first lookup and creation of Subjects"""

    def __init__(self, store: ContentStore, generator, single_flight: Optional[SingleFlight] = None):
        self.store = store
        self.generator = generator
        self.single_flight = single_flight or SingleFlight()

    @staticmethod
    def _subject_key(skill_name: str) -> str:
        if skill_name is None or not skill_name.strip():
            raise ValidationError("skillName is required")
        key = normalize_skill_name(skill_name)
        if not key:
            raise ValidationError(f"skillName has no usable characters: {skill_name!r}")
        return key

    async def get_or_generate(self, skill_name: str, learning_type: Optional[str] = None) -> SubjectResult:
        subject_key = self._subject_key(skill_name)

        existing = await self.store.get_subject_by_key(subject_key)
        if existing:
            logger.info(f"Subject cache hit: {subject_key}")
            return SubjectResult(subject=existing, cached=True)

        logger.info(f"Subject cache miss: {subject_key}, generating roadmap")
        return await self.single_flight.do(
            f"subject:{subject_key}",
            lambda: self._generate(subject_key, skill_name, learning_type),
        )

    async def _generate(self, subject_key: str, skill_name: str, learning_type: Optional[str]) -> SubjectResult:
        existing = await self.store.get_subject_by_key(subject_key)
        if existing:
            return SubjectResult(subject=existing, cached=True)

        display_name = get_display_name(skill_name)
        difficulty = infer_difficulty(skill_name, learning_type)

        data = await self.generator.generate_json(build_roadmap_prompt(display_name, difficulty.value))
        try:
            roadmap = parse_roadmap(data)
        except RoadmapGenerationError as e:
            logger.error(f"Roadmap generation failed for {subject_key}: {e.message}")
            raise

        subject = Subject(
            id=str(uuid.uuid4()),
            subject_key=subject_key,
            display_name=display_name,
            description=str(data.get("description") or "").strip(),
            difficulty=difficulty,
            estimated_hours=estimate_hours(difficulty),
            overview=str(data.get("overview") or "").strip(),
            roadmap=roadmap,
            tips=_string_list(data.get("tips")),
        )

        try:
            stored = await self.store.insert_subject(subject)
        except ConflictError:
            winner = await self.store.get_subject_by_key(subject_key)
            if winner is None:
                raise
            logger.info(f"Subject {subject_key} was created concurrently, using stored copy")
            return SubjectResult(subject=winner, cached=True)

        logger.info(f"Created subject {stored.id} ({subject_key}) with {len(roadmap)} roadmap steps")
        return SubjectResult(subject=stored, cached=False)

    async def check_exists(self, skill_name: str) -> SubjectLookup:
        """Pure lookup; never generates or writes."""
        subject = await self.store.get_subject_by_key(self._subject_key(skill_name))
        if subject is None:
            return SubjectLookup(exists=False)

        chapters = await self.store.list_chapters(subject.id)
        return SubjectLookup(
            exists=True,
            subject=subject,
            has_roadmap=bool(subject.roadmap),
            has_chapters=bool(chapters),
        )

    async def get_by_id(self, subject_id: str) -> Subject:
        subject = await self.store.get_subject(subject_id)
        if subject is None:
            raise NotFoundError("Subject not found", error_code="SUBJECT_NOT_FOUND",
                                context={"subject_id": subject_id})
        return subject
