"""
Model configuration for learning-content generation.
Centralized model management: one table, looked up by model key.
"""

from typing import Dict, Any, Optional
from enum import Enum


class ModelProvider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GROQ = "groq"


# Learning content wants stable, well-formed JSON, so temperatures stay low.
MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "claude-haiku-4-5": {
        "provider": ModelProvider.ANTHROPIC,
        "model": "claude-haiku-4-5-20251001",
        "max_tokens": 8192,
        "cost_per_1k_input": 0.001,
        "cost_per_1k_output": 0.005,
        "temperature": 0.3
    },
    "claude-sonnet-4-5": {
        "provider": ModelProvider.ANTHROPIC,
        "model": "claude-sonnet-4-5-20250929",
        "max_tokens": 8192,
        "cost_per_1k_input": 0.003,
        "cost_per_1k_output": 0.015,
        "temperature": 0.3
    },
    "gpt-4o": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o",
        "max_tokens": 8192,
        "cost_per_1k_input": 0.0025,
        "cost_per_1k_output": 0.01,
        "temperature": 0.3
    },
    "gpt-5-mini": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-5-mini",
        "max_tokens": 8192,
        "cost_per_1k_input": 0.00025,
        "cost_per_1k_output": 0.002,
        "temperature": 0.3
    },
    "llama-4-scout": {
        "provider": ModelProvider.GROQ,
        "model": "meta-llama/llama-4-scout-17b-16e-instruct",
        "max_tokens": 8192,
        "cost_per_1k_input": 0.00011,
        "cost_per_1k_output": 0.00034,
        "temperature": 0.3
    },
    "llama-4-maverick": {
        "provider": ModelProvider.GROQ,
        "model": "meta-llama/llama-4-maverick-17b-128e-instruct",
        "max_tokens": 8192,
        "cost_per_1k_input": 0.0002,
        "cost_per_1k_output": 0.0006,
        "temperature": 0.3
    }
}

DEFAULT_MODEL = "claude-haiku-4-5"


class ModelConfig:
    """Model configuration manager"""

    @staticmethod
    def get_config(model_key: Optional[str] = None) -> Dict[str, Any]:
        """Get configuration for specified model or default"""
        key = model_key or DEFAULT_MODEL

        if key not in MODEL_CONFIGS:
            raise ValueError(f"Unknown model: {key}. Available: {list(MODEL_CONFIGS.keys())}")

        return MODEL_CONFIGS[key]

    @staticmethod
    def get_available_models() -> list:
        """List all available models"""
        return list(MODEL_CONFIGS.keys())

    @staticmethod
    def estimate_cost(model_key: str, input_tokens: int, output_tokens: int) -> float:
        """Estimate cost for a request"""
        config = ModelConfig.get_config(model_key)

        input_cost = (input_tokens / 1000) * config["cost_per_1k_input"]
        output_cost = (output_tokens / 1000) * config["cost_per_1k_output"]

        return round(input_cost + output_cost, 4)
