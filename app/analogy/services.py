"""
Analogy generation service.

Sequences one request: validate, check the shared quota, call the backend,
count the call. Quota is only counted after the backend succeeded.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Any

from langchain_core.prompts import PromptTemplate

from app.errors import (
    ConfigurationError,
    InvalidInput,
    QuotaExceeded,
    StoreError,
    UpstreamError,
)
from app.quota.manager import QuotaGate
from generation_service.llm_utils import GenerationResult, LLMProvider

from .models import AnalogyRequest, AnalogyResult, UsageInfo

logger = logging.getLogger(__name__)


class AnalogyService:
    """Service for generating analogies under the shared daily quota."""

    def __init__(
        self,
        quota_gate: QuotaGate,
        llm_provider: LLMProvider,
        prompts_dir: Path,
        timeout_seconds: float = 30,
    ):
        self.quota_gate = quota_gate
        self.llm_provider = llm_provider
        self.timeout_seconds = timeout_seconds
        self.prompt_template = PromptTemplate.from_file(
            prompts_dir / "analogy.md", encoding="utf-8"
        )

    def validate(self, concept1: Any, concept2: Any) -> AnalogyRequest:
        """
        Check both concepts are non-empty strings.

        Raises:
            InvalidInput: If either concept is missing, not a string or blank
        """
        values = []
        for value in (concept1, concept2):
            if not isinstance(value, str) or not value.strip():
                raise InvalidInput("Both concepts are required")
            values.append(value.strip())
        return AnalogyRequest(concept1=values[0], concept2=values[1])

    def build_prompt(self, request: AnalogyRequest) -> str:
        return self.prompt_template.format(
            concept1=request.concept1, concept2=request.concept2
        )

    def generate(self, concept1: Any, concept2: Any) -> AnalogyResult:
        """
        Generate an analogy for two concepts.

        Raises:
            InvalidInput: Bad concepts, checked before any store access
            ConfigurationError: No backend credential
            StoreError: Counter unreadable under the fail-closed policy
            QuotaExceeded: Daily limit reached, backend not contacted
            UpstreamError: Backend failed or timed out, nothing counted
        """
        request = self.validate(concept1, concept2)

        if not self.llm_provider.has_credentials():
            logger.error(f"No API key configured for provider {self.llm_provider.provider}")
            raise ConfigurationError("API key not configured")

        decision = self.quota_gate.try_consume()
        if not decision.allowed:
            raise QuotaExceeded(
                current=decision.current,
                limit=decision.limit,
                reset_date=decision.date,
                timezone_name=self.quota_gate.config.timezone,
            )

        generation = self._call_backend(self.build_prompt(request))

        try:
            record = self.quota_gate.commit()
        except StoreError as e:
            # The generation already succeeded; it is returned regardless
            logger.error(f"Failed to record usage after successful generation, not reversed: {e}")
            return AnalogyResult(
                generation=generation,
                usage=UsageInfo(current=decision.current + 1, limit=decision.limit),
                committed=False,
            )

        return AnalogyResult(
            generation=generation,
            usage=UsageInfo(current=record.count, limit=self.quota_gate.config.daily_limit),
        )

    def _call_backend(self, prompt: str) -> GenerationResult:
        """Run the backend call with a hard deadline."""
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="analogy-backend")
        try:
            future = executor.submit(self.llm_provider.generate, prompt)
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as e:
            logger.error(f"Backend call timed out after {self.timeout_seconds}s")
            raise UpstreamError(
                f"Generation timed out after {self.timeout_seconds:g} seconds", cause=e
            ) from e
        except Exception as e:
            logger.error(f"Backend call failed: {e}")
            raise UpstreamError(_upstream_message(e), cause=e) from e
        finally:
            # A timed-out call keeps running in its thread; do not wait for it
            executor.shutdown(wait=False)


def _upstream_message(error: Exception) -> str:
    message = str(error).strip()
    return message or "Failed to generate analogy"
