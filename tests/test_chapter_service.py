import asyncio
import unittest

from skillpath.clients.memory_store import InMemoryContentStore
from skillpath.models.learning_models import Chapter
from skillpath.services.chapter_service import ChapterGenerator, order_chapter_entries
from skillpath.utils.exceptions import GenerationError, NotFoundError
from tests.fakes import CHAPTERS_RESPONSE, FakeGenerator, make_subject


class TestOrderChapterEntries(unittest.TestCase):

    def test_sorted_by_step_when_every_entry_has_one(self):
        entries = [{"chapterNumber": 3, "title": "c"}, {"chapterNumber": 1, "title": "a"},
                   {"chapterNumber": 1, "title": "a2"}]
        self.assertEqual([e["title"] for e in order_chapter_entries(entries)], ["a", "a2", "c"])

    def test_model_order_kept_otherwise(self):
        entries = [{"title": "b", "roadmapStep": 2}, {"title": "a"}]
        self.assertEqual([e["title"] for e in order_chapter_entries(entries)], ["b", "a"])


class TestChapterGenerator(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.store = InMemoryContentStore()
        self.subject = await self.store.insert_subject(make_subject())
        self.generator = FakeGenerator([CHAPTERS_RESPONSE])
        self.chapters = ChapterGenerator(self.store, self.generator)

    async def test_generates_dense_order_then_caches(self):
        result = await self.chapters.get_or_generate(self.subject.id)
        self.assertFalse(result.cached)
        self.assertEqual([c.order for c in result.chapters], [0, 1, 2])
        self.assertEqual(result.chapters[0].title, "Chapter 1: Introduction to JSX")
        self.assertEqual(result.chapters[0].subject_name, "React")
        self.assertEqual(result.chapters[1].estimated_minutes, 45)

        again = await self.chapters.get_or_generate(self.subject.id)
        self.assertTrue(again.cached)
        self.assertEqual([c.id for c in again.chapters], [c.id for c in result.chapters])
        self.assertEqual(self.generator.calls, 1)

    async def test_prompt_carries_roadmap(self):
        await self.chapters.get_or_generate(self.subject.id)
        self.assertIn("3. State and Hooks", self.generator.prompts[0])

    async def test_missing_subject(self):
        with self.assertRaises(NotFoundError):
            await self.chapters.get_or_generate("missing")
        self.assertEqual(self.generator.calls, 0)

    async def test_malformed_output_persists_nothing(self):
        for bad in ({"chapters": []}, {"chapters": "none"}, {"chapters": [{"description": "untitled"}]}):
            self.generator.responses = [bad]
            with self.assertRaises(GenerationError):
                await self.chapters.get_or_generate(self.subject.id)
        self.assertEqual(await self.store.list_chapters(self.subject.id), [])

    async def test_cache_only_lookup(self):
        self.assertEqual(await self.chapters.get_by_subject_id(self.subject.id), [])
        self.assertEqual(self.generator.calls, 0)

        await self.chapters.get_or_generate(self.subject.id)
        self.assertEqual(len(await self.chapters.get_by_subject_id(self.subject.id)), 3)

    async def test_concurrent_requests_write_one_batch(self):
        gate = asyncio.Event()
        self.generator.gate = gate
        tasks = [asyncio.create_task(self.chapters.get_or_generate(self.subject.id)) for _ in range(3)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        self.assertEqual(self.generator.calls, 1)
        self.assertEqual(len(self.store.chapters), 3)
        self.assertEqual(len({tuple(c.id for c in r.chapters) for r in results}), 1)

    async def test_lost_race_returns_stored_chapters(self):
        winner = [Chapter(id=f"w{i}", subject_id=self.subject.id, order=i, title=f"W{i}") for i in range(2)]
        real_insert = self.store.insert_chapters

        async def racing_insert(chapters):
            await real_insert(winner)
            return await real_insert(chapters)

        self.store.insert_chapters = racing_insert
        result = await self.chapters.get_or_generate(self.subject.id)
        self.assertTrue(result.cached)
        self.assertEqual([c.id for c in result.chapters], ["w0", "w1"])


if __name__ == "__main__":
    unittest.main()
