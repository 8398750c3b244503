"""
Shared daily quota for analogy generation.
One counter for all users, reset implicitly when the day changes.
"""

from .models import (
    QuotaConfig,
    QuotaDecision,
    StoreFailurePolicy,
    StrictnessPolicy,
    UsageRecord,
    UsageSnapshot,
)
from .manager import QuotaGate, UsageReporter
from .store import InMemoryUsageStore, JsonFileUsageStore, UsageStore

__all__ = [
    "QuotaConfig",
    "QuotaDecision",
    "StoreFailurePolicy",
    "StrictnessPolicy",
    "UsageRecord",
    "UsageSnapshot",
    "QuotaGate",
    "UsageReporter",
    "InMemoryUsageStore",
    "JsonFileUsageStore",
    "UsageStore",
]
