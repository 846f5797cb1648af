# Learning System Utilities
from .model_config import (
    ModelConfig,
    ModelProvider,
    MODEL_CONFIGS,
    DEFAULT_MODEL
)

from .rate_limiter import RequestRateLimiter
from .single_flight import SingleFlight

__all__ = [
    'ModelConfig',
    'ModelProvider',
    'MODEL_CONFIGS',
    'DEFAULT_MODEL',
    'RequestRateLimiter',
    'SingleFlight'
]
