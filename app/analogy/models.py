from dataclasses import dataclass
from typing import Any, Dict

from generation_service.llm_utils import GenerationResult


@dataclass
class AnalogyRequest:
    """Two validated, trimmed concepts."""
    concept1: str
    concept2: str


@dataclass
class UsageInfo:
    """Usage reported alongside a successful generation."""
    current: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current)

    def to_dict(self) -> Dict[str, int]:
        return {
            "current": self.current,
            "limit": self.limit,
            "remaining": self.remaining,
        }


@dataclass
class AnalogyResult:
    """Result of a completed generation request."""
    generation: GenerationResult
    usage: UsageInfo
    committed: bool = True  # False if the counter write failed after generation

    def to_dict(self) -> Dict[str, Any]:
        payload = self.generation.to_payload()
        payload["usage"] = self.usage.to_dict()
        return payload
