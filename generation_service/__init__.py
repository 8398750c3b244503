# Generation service package: LLM backend access and logging setup

from .llm_utils import (
    LLMProvider,
    SamplingParams,
    GenerationResult,
    clean_ollama_response,
    message_text,
)
from .logging_config import (
    setup_logging,
    stop_logging,
    ThreadSafeLoggingConfig,
)

__all__ = [
    "LLMProvider",
    "SamplingParams",
    "GenerationResult",
    "clean_ollama_response",
    "message_text",
    "setup_logging",
    "stop_logging",
    "ThreadSafeLoggingConfig",
]
