import asyncio
import unittest

from skillpath.clients.memory_store import InMemoryContentStore
from skillpath.models.learning_models import Chapter
from skillpath.services.chapter_content_service import ChapterContentService
from skillpath.services.notes_service import NotesService
from skillpath.utils.exceptions import GenerationError, NotFoundError
from tests.fakes import CONTENT_RESPONSE, NOTES_RESPONSE, FakeGenerator, make_subject


class ContentTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.store = InMemoryContentStore()
        self.subject = await self.store.insert_subject(make_subject())
        await self.store.insert_chapters([
            Chapter(id="c1", subject_id=self.subject.id, order=0, title="Understanding Hooks",
                    subject_name="React", description="State with hooks"),
        ])
        self.generator = FakeGenerator()
        self.content = ChapterContentService(self.store, self.generator)


class TestChapterContentService(ContentTestCase):

    async def test_generates_once_then_caches(self):
        self.generator.responses = [CONTENT_RESPONSE]

        result = await self.content.get_or_generate_content("c1")
        self.assertFalse(result.cached)
        self.assertEqual(result.chapter.overview, CONTENT_RESPONSE["overview"])
        self.assertEqual(result.chapter.concepts, CONTENT_RESPONSE["concepts"])
        self.assertEqual(result.chapter.learning_objectives, ["Use useState"])
        self.assertIsNotNone(result.chapter.content_generated_at)

        chapter = await self.content.get_with_content("c1")
        self.assertEqual(chapter.overview, CONTENT_RESPONSE["overview"])
        self.assertEqual(self.generator.calls, 1)

    async def test_prompt_has_chapter_and_roadmap_context(self):
        self.generator.responses = [CONTENT_RESPONSE]
        await self.content.get_with_content("c1")
        prompt = self.generator.prompts[0]
        self.assertIn('Chapter: "Understanding Hooks"', prompt)
        self.assertIn("State with hooks", prompt)
        self.assertIn("2. Components and Props", prompt)

    async def test_missing_chapter(self):
        with self.assertRaises(NotFoundError):
            await self.content.get_with_content("missing")

    async def test_blank_output_writes_nothing(self):
        for bad in ({"overview": "  ", "concepts": ["x"]}, {"overview": "Fine", "concepts": []}):
            self.generator.responses = [bad]
            with self.assertRaises(GenerationError):
                await self.content.get_with_content("c1")
        chapter = await self.store.get_chapter("c1")
        self.assertIsNone(chapter.overview)
        self.assertIsNone(chapter.content_generated_at)

    async def test_concurrent_views_generate_once(self):
        gate = asyncio.Event()
        self.generator.gate = gate
        self.generator.responses = [CONTENT_RESPONSE]
        tasks = [asyncio.create_task(self.content.get_with_content("c1")) for _ in range(3)]
        await asyncio.sleep(0)
        gate.set()
        chapters = await asyncio.gather(*tasks)
        self.assertEqual(self.generator.calls, 1)
        self.assertTrue(all(c.has_content for c in chapters))


class TestNotesService(ContentTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.notes = NotesService(self.store, self.generator, self.content, retry_delays=(0, 0))

    async def test_generates_content_then_notes(self):
        self.generator.responses = [CONTENT_RESPONSE, NOTES_RESPONSE]

        result = await self.notes.get_or_generate("c1")
        self.assertFalse(result.cached)
        self.assertEqual(result.notes.content, NOTES_RESPONSE["notes"])
        self.assertIn("useState: local state", self.generator.prompts[1])
        self.assertTrue((await self.store.get_chapter("c1")).has_content)

        again = await self.notes.get_or_generate("c1")
        self.assertTrue(again.cached)
        self.assertEqual(self.generator.calls, 2)

    async def test_only_eight_concepts_in_prompt(self):
        concepts = [f"Concept {i}" for i in range(12)]
        self.generator.responses = [{"overview": "Overview", "concepts": concepts}, NOTES_RESPONSE]
        await self.notes.get_or_generate("c1")
        self.assertIn("Concept 7", self.generator.prompts[1])
        self.assertNotIn("Concept 8", self.generator.prompts[1])

    async def test_retries_then_succeeds(self):
        self.generator.responses = [CONTENT_RESPONSE, GenerationError("flaky"), {"notes": ""}, NOTES_RESPONSE]
        result = await self.notes.get_or_generate("c1")
        self.assertFalse(result.cached)
        self.assertEqual(self.generator.calls, 4)

    async def test_gives_up_after_three_attempts(self):
        self.generator.responses = [CONTENT_RESPONSE] + [GenerationError("down")] * 3
        with self.assertRaises(GenerationError):
            await self.notes.get_or_generate("c1")
        self.assertEqual(self.generator.calls, 4)
        self.assertIsNone(await self.notes.get_cached("c1"))

    async def test_missing_chapter(self):
        with self.assertRaises(NotFoundError):
            await self.notes.get_or_generate("missing")
        self.assertEqual(self.generator.calls, 0)

    async def test_get_cached_never_generates(self):
        self.assertIsNone(await self.notes.get_cached("c1"))
        self.assertEqual(self.generator.calls, 0)


if __name__ == "__main__":
    unittest.main()
