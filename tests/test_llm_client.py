import unittest
from types import SimpleNamespace

from skillpath.clients.llm_client import LLMClient, extract_json
from skillpath.utils.exceptions import GenerationError
from skillpath.utils.rate_limiter import RequestRateLimiter


class TestExtractJson(unittest.TestCase):

    def test_plain_json(self):
        self.assertEqual(extract_json('{"a": 1}'), {"a": 1})

    def test_code_fence(self):
        text = 'Here you go:\n```json\n{"chapters": []}\n```'
        self.assertEqual(extract_json(text), {"chapters": []})

    def test_surrounding_prose(self):
        self.assertEqual(extract_json('Sure! {"notes": "# Title"} Hope it helps.'), {"notes": "# Title"})

    def test_unparseable(self):
        with self.assertRaises(GenerationError):
            extract_json("no json here")
        with self.assertRaises(GenerationError):
            extract_json("[1, 2, 3]")


class FakeCompletions:
    """Chat-completions stand-in that replays scripted contents or exceptions."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **params):
        self.calls.append(params)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message, finish_reason="stop")],
            usage=SimpleNamespace(prompt_tokens=100, completion_tokens=50),
        )


class FakeMessages:
    def __init__(self, text):
        self.text = text
        self.calls = []

    async def create(self, **params):
        self.calls.append(params)
        return SimpleNamespace(
            content=[SimpleNamespace(text=self.text)],
            usage=SimpleNamespace(input_tokens=10, output_tokens=5),
        )


def chat_client(replies):
    completions = FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


class TestLLMClient(unittest.IsolatedAsyncioTestCase):

    async def test_openai_json_mode(self):
        client, completions = chat_client(['{"overview": "x"}'])
        llm = LLMClient("gpt-4o", provider_client=client, backoff_base=0)

        self.assertEqual(await llm.generate_json("prompt"), {"overview": "x"})
        self.assertEqual(completions.calls[0]["response_format"], {"type": "json_object"})
        self.assertEqual(completions.calls[0]["messages"][1]["content"], "prompt")

    async def test_anthropic_text_blocks(self):
        messages = FakeMessages('```json\n{"roadmap": []}\n```')
        llm = LLMClient("claude-haiku-4-5", provider_client=SimpleNamespace(messages=messages))

        self.assertEqual(await llm.generate_json("prompt"), {"roadmap": []})
        self.assertEqual(messages.calls[0]["model"], "claude-haiku-4-5-20251001")

    async def test_retries_unparseable_reply(self):
        client, completions = chat_client(["not json", '{"ok": true}'])
        llm = LLMClient("llama-4-scout", provider_client=client, backoff_base=0)

        self.assertEqual(await llm.generate_json("prompt"), {"ok": True})
        self.assertEqual(len(completions.calls), 2)

    async def test_provider_error_wrapped_after_retries(self):
        client, completions = chat_client([RuntimeError("timeout")] * 3)
        llm = LLMClient("gpt-4o", provider_client=client, backoff_base=0)

        with self.assertRaises(GenerationError) as ctx:
            await llm.generate_json("prompt")
        self.assertEqual(ctx.exception.context["provider"], "openai")
        self.assertEqual(len(completions.calls), 3)

    async def test_rate_limit_fails_fast(self):
        client, completions = chat_client(['{"a": 1}'])
        limiter = RequestRateLimiter(per_minute=1, per_day=10)
        llm = LLMClient("gpt-4o", rate_limiter=limiter, provider_client=client, backoff_base=0)

        await llm.generate_json("first")
        with self.assertRaises(GenerationError) as ctx:
            await llm.generate_json("second")
        self.assertEqual(ctx.exception.error_code, "RATE_LIMITED")
        self.assertEqual(len(completions.calls), 1)

    def test_unknown_model(self):
        with self.assertRaises(ValueError):
            LLMClient("no-such-model")


if __name__ == "__main__":
    unittest.main()
