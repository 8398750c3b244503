"""
Data models for the shared daily quota.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.errors import ConfigurationError


class StrictnessPolicy(Enum):
    """How commits guard against concurrent writers."""
    SOFT = "soft"        # Plain read then write, lost increments accepted
    STRICT = "strict"    # Compare-and-swap on the record version, with retries


class StoreFailurePolicy(Enum):
    """What the gate does when the counter cannot be read."""
    CLOSED = "closed"    # Refuse the request
    OPEN = "open"        # Let the request through unmetered


@dataclass
class UsageRecord:
    """Persisted usage counter for one calendar day."""
    date: Optional[str]  # ISO format date (YYYY-MM-DD), None before the first request
    count: int = 0
    version: int = 0     # Bumped on every write, only read under STRICT

    def effective_count(self, today: str) -> int:
        """Count that applies to `today`; a stale date means nothing has been used."""
        if self.date == today:
            return self.count
        return 0

    def to_dict(self) -> dict:
        return {"date": self.date, "count": self.count, "version": self.version}

    @classmethod
    def from_dict(cls, data: dict) -> "UsageRecord":
        count = int(data.get("count", 0))
        if count < 0:
            raise ValueError(f"Negative usage count: {count}")
        return cls(
            date=data.get("date"),
            count=count,
            version=int(data.get("version", 0)),
        )

    @classmethod
    def empty(cls) -> "UsageRecord":
        return cls(date=None, count=0, version=0)


@dataclass
class QuotaDecision:
    """Result of a gate check: Allowed(current) or Denied(current, limit)."""
    allowed: bool
    current: int
    limit: int
    date: str
    reason: Optional[str] = None  # "daily_limit", "store_unavailable"

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current)

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "current": self.current,
            "limit": self.limit,
            "remaining": self.remaining,
            "date": self.date,
            "reason": self.reason,
        }


@dataclass
class UsageSnapshot:
    """Read-only view of today's usage for display."""
    current: int
    limit: int
    reset_date: str

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current)

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "limit": self.limit,
            "remaining": self.remaining,
            "resetDate": self.reset_date,
        }


@dataclass
class QuotaConfig:
    """Configuration for the shared daily limit."""
    daily_limit: int = 1000
    timezone: str = "UTC"
    strictness: StrictnessPolicy = StrictnessPolicy.SOFT
    store_failure_policy: StoreFailurePolicy = StoreFailurePolicy.CLOSED
    cas_max_retries: int = 5
    store_key: str = "daily-usage"

    @classmethod
    def from_dict(cls, data: dict) -> "QuotaConfig":
        """
        Create QuotaConfig from dictionary.

        Raises:
            ConfigurationError: If any value is out of range or unknown
        """
        try:
            daily_limit = int(data.get("daily_limit", 1000))
            cas_max_retries = int(data.get("cas_max_retries", 5))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid quota setting: {e}") from e

        try:
            strictness = StrictnessPolicy(str(data.get("strictness", "soft")).lower())
        except ValueError:
            raise ConfigurationError(f"Unknown quota strictness: {data.get('strictness')!r}")

        try:
            failure_policy = StoreFailurePolicy(
                str(data.get("store_failure_policy", "closed")).lower()
            )
        except ValueError:
            raise ConfigurationError(
                f"Unknown store failure policy: {data.get('store_failure_policy')!r}"
            )

        config = cls(
            daily_limit=daily_limit,
            timezone=data.get("timezone", "UTC"),
            strictness=strictness,
            store_failure_policy=failure_policy,
            cas_max_retries=cas_max_retries,
            store_key=data.get("store_key", "daily-usage"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.daily_limit < 0:
            raise ConfigurationError(f"Daily limit must be non-negative, got {self.daily_limit}")
        if self.cas_max_retries < 1:
            raise ConfigurationError(
                f"cas_max_retries must be at least 1, got {self.cas_max_retries}"
            )
        if not self.store_key:
            raise ConfigurationError("Quota store key must not be empty")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"Unknown timezone: {self.timezone!r}")
