"""
JSON-producing LLM client used by every learning generator.
Dispatches to Anthropic, OpenAI or Groq based on the model table in utils.model_config.
"""

import os
import re
import json
import asyncio
import logging
from typing import Any, Dict, Optional

from skillpath.utils.exceptions import GenerationError, ValidationError
from skillpath.utils.model_config import DEFAULT_MODEL, ModelConfig, ModelProvider
from skillpath.utils.rate_limiter import RequestRateLimiter

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert educational content creator. "
    "You MUST respond with ONLY a valid JSON object. No markdown code blocks, no extra text. "
    "Start your response with { and end with }."
)

JSON_PATTERNS = [
    r'```json\s*(.*?)\s*```',
    r'```\s*(.*?)\s*```',
    r'\{.*\}',
]


def extract_json(text: str) -> Dict[str, Any]:
    """Parse a JSON object out of a model reply, tolerating code fences and surrounding prose."""
    if text is None:
        raise GenerationError("Model returned an empty response")

    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    for pattern in JSON_PATTERNS:
        for match in re.findall(pattern, text, re.DOTALL):
            try:
                parsed = json.loads(match)
            except (json.JSONDecodeError, ValueError):
                continue
            if isinstance(parsed, dict):
                return parsed

    logger.error(f"Could not extract JSON from: {text[:500]}")
    raise GenerationError("Failed to parse JSON response")


class LLMClient:
    """
    Calls the configured model and returns its reply as a dict.

    Every provider request first takes a slot from the rate limiter. Unparseable
    replies and transient provider errors are retried with exponential backoff;
    a RATE_LIMITED error from the limiter is raised immediately.
    """

    def __init__(
        self,
        model_key: Optional[str] = None,
        rate_limiter: Optional[RequestRateLimiter] = None,
        max_retries: int = 3,
        backoff_base: float = 2.0,
        provider_client: Any = None,
    ):
        self.model_key = model_key or DEFAULT_MODEL
        self.model_config = ModelConfig.get_config(self.model_key)
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._client = provider_client

    @property
    def provider(self) -> ModelProvider:
        return self.model_config["provider"]

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client

        if self.provider == ModelProvider.ANTHROPIC:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=os.getenv("ANTHROPIC_API_KEY"))
        elif self.provider == ModelProvider.OPENAI:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        elif self.provider == ModelProvider.GROQ:
            from groq import AsyncGroq
            self._client = AsyncGroq(api_key=os.getenv("GROQ_API_KEY"))
        else:
            raise ValidationError(f"Unknown provider: {self.provider}", error_code="INVALID_MODEL")
        return self._client

    async def generate_json(self, prompt: str) -> Dict[str, Any]:
        """Send one prompt and return the parsed JSON object."""
        for attempt in range(self.max_retries):
            if self.rate_limiter is not None:
                self.rate_limiter.acquire()

            try:
                text = await self._complete(prompt)
                return extract_json(text)

            except GenerationError as e:
                if e.error_code == "RATE_LIMITED" or attempt >= self.max_retries - 1:
                    raise
                backoff = self.backoff_base ** (attempt + 1)
                logger.warning(
                    f"{self.provider.value} JSON parse failed (attempt {attempt + 1}/{self.max_retries}). "
                    f"Retrying in {backoff}s..."
                )
                await asyncio.sleep(backoff)

            except Exception as e:
                if attempt >= self.max_retries - 1:
                    logger.error(f"{self.provider.value} API error: {e}")
                    raise GenerationError(
                        f"AI generation failed: {e}",
                        context={"provider": self.provider.value, "model": self.model_config["model"]},
                    )
                backoff = self.backoff_base ** (attempt + 1)
                logger.warning(
                    f"{self.provider.value} API error (attempt {attempt + 1}/{self.max_retries}): {e}. "
                    f"Retrying in {backoff}s..."
                )
                await asyncio.sleep(backoff)

        raise GenerationError("AI generation failed: no attempts made")

    async def _complete(self, prompt: str) -> str:
        if self.provider == ModelProvider.ANTHROPIC:
            return await self._call_claude(prompt)
        return await self._call_chat_completions(prompt)

    async def _call_claude(self, prompt: str) -> str:
        response = await self._get_client().messages.create(
            model=self.model_config["model"],
            max_tokens=self.model_config["max_tokens"],
            temperature=self.model_config.get("temperature", 0.3),
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )

        usage = getattr(response, "usage", None)
        if usage is not None:
            self._log_usage(usage.input_tokens, usage.output_tokens)

        # Only text blocks carry the answer
        return "".join(block.text for block in response.content if hasattr(block, "text"))

    async def _call_chat_completions(self, prompt: str) -> str:
        """OpenAI and Groq share the chat completions shape."""
        params = {
            "model": self.model_config["model"],
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
            "max_tokens": self.model_config.get("max_tokens", 8192),
        }
        if self.provider == ModelProvider.GROQ:
            params["temperature"] = self.model_config.get("temperature", 0.3)

        response = await self._get_client().chat.completions.create(**params)
        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning(f"{self.provider.value} response truncated at {params['max_tokens']} tokens")

        usage = getattr(response, "usage", None)
        if usage is not None:
            self._log_usage(usage.prompt_tokens, usage.completion_tokens)

        return choice.message.content

    def _log_usage(self, input_tokens: int, output_tokens: int) -> None:
        cost = ModelConfig.estimate_cost(self.model_key, input_tokens, output_tokens)
        logger.info(
            f"LLM usage: model={self.model_config['model']} "
            f"input_tokens={input_tokens} output_tokens={output_tokens} est_cost=${cost}"
        )
