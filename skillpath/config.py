"""
Environment-driven settings for the learning service.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from skillpath.utils.model_config import DEFAULT_MODEL, ModelConfig

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    store_backend: str = "supabase"
    llm_model: str = DEFAULT_MODEL
    youtube_api_key: Optional[str] = None
    max_videos: int = 5
    rate_limit_per_minute: int = 12
    rate_limit_per_day: int = 1400
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        backend = os.getenv("LEARNING_STORE_BACKEND", "supabase").strip().lower()
        if backend not in ("supabase", "memory"):
            raise ValueError(f"LEARNING_STORE_BACKEND must be 'supabase' or 'memory', got {backend!r}")

        llm_model = os.getenv("LEARNING_MODEL", DEFAULT_MODEL)
        if llm_model not in ModelConfig.get_available_models():
            raise ValueError(f"Unknown LEARNING_MODEL {llm_model!r}. Available: {ModelConfig.get_available_models()}")

        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_KEY"),
            store_backend=backend,
            llm_model=llm_model,
            youtube_api_key=os.getenv("YOUTUBE_API_KEY"),
            max_videos=_int_env("LEARNING_MAX_VIDEOS", 5),
            rate_limit_per_minute=_int_env("LEARNING_RATE_LIMIT_PER_MINUTE", 12),
            rate_limit_per_day=_int_env("LEARNING_RATE_LIMIT_PER_DAY", 1400),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
