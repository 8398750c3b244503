"""
Quota gate and usage reporter for the shared daily generation limit.

The check and the commit are separate steps: a request is checked before the
backend is called and only counted after the backend succeeds. Requests that
race through the check together can push the stored count past the limit by
up to N-1 for N concurrent requests. This is a soft limit. Under the SOFT
policy concurrent commits can also overwrite each other's increment; the
STRICT policy closes that gap with compare-and-swap retries.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from app.errors import ConfigurationError, StoreError
from .models import (
    QuotaConfig,
    QuotaDecision,
    StoreFailurePolicy,
    StrictnessPolicy,
    UsageRecord,
    UsageSnapshot,
)
from .store import UsageStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _DailyCounter:
    """Shared plumbing: day computation and record loading."""

    def __init__(self, config: QuotaConfig, store: UsageStore, clock: Optional[Clock] = None):
        self.config = config
        self.store = store
        self._clock = clock or utc_now
        self._zone = ZoneInfo(config.timezone)

    def today(self) -> str:
        """Current calendar day in the configured timezone, recomputed on every call."""
        return self._clock().astimezone(self._zone).date().isoformat()

    def _load_record(self) -> UsageRecord:
        """Load the stored record; absence is a valid empty record."""
        record = self.store.load(self.config.store_key)
        return record if record is not None else UsageRecord.empty()


class QuotaGate(_DailyCounter):
    """
    Decides whether a generation may proceed and counts it once it succeeded.

    Usage:
        decision = gate.try_consume()
        if decision.allowed:
            result = backend_call()
            gate.commit()
    """

    def __init__(self, config: QuotaConfig, store: UsageStore, clock: Optional[Clock] = None):
        super().__init__(config, store, clock)
        if config.strictness == StrictnessPolicy.STRICT and not store.supports_compare_and_swap:
            raise ConfigurationError(
                f"Strict quota policy requires a compare-and-swap store, "
                f"{type(store).__name__} has none"
            )

    def try_consume(self) -> QuotaDecision:
        """
        Check today's usage against the limit without writing anything.

        Returns:
            QuotaDecision, allowed or denied, with the effective count

        Raises:
            StoreError: If the counter cannot be read and the policy is CLOSED
        """
        today = self.today()
        limit = self.config.daily_limit

        try:
            record = self._load_record()
        except StoreError as e:
            if self.config.store_failure_policy == StoreFailurePolicy.OPEN:
                logger.warning(f"Usage store unreadable, failing open: {e}")
                return QuotaDecision(
                    allowed=True, current=0, limit=limit, date=today, reason="store_unavailable"
                )
            logger.error(f"Usage store unreadable, refusing request: {e}")
            raise

        current = record.effective_count(today)
        if record.date is not None and record.date != today:
            logger.debug(f"Stored usage is from {record.date}, treating today ({today}) as fresh")

        if current >= limit:
            logger.warning(f"Daily limit reached: {current}/{limit} on {today}")
            return QuotaDecision(
                allowed=False, current=current, limit=limit, date=today, reason="daily_limit"
            )

        logger.info(f"Quota check passed: {current}/{limit} on {today}")
        return QuotaDecision(allowed=True, current=current, limit=limit, date=today)

    def commit(self) -> UsageRecord:
        """
        Count one successful generation.

        The day and the effective count are derived again here, so a call
        that started before midnight is counted against the new day.

        Returns:
            The record as written

        Raises:
            StoreError: If the store cannot be read or written, or strict
                retries are exhausted
        """
        if self.config.strictness == StrictnessPolicy.STRICT:
            return self._commit_strict()
        return self._commit_soft()

    # =====================
    # Private helper methods
    # =====================

    def _next_record(self, record: UsageRecord) -> UsageRecord:
        today = self.today()
        return UsageRecord(
            date=today,
            count=record.effective_count(today) + 1,
            version=record.version + 1,
        )

    def _commit_soft(self) -> UsageRecord:
        record = self._next_record(self._load_record())
        self.store.save(self.config.store_key, record)
        logger.info(f"Committed usage: {record.count}/{self.config.daily_limit} on {record.date}")
        return record

    def _commit_strict(self) -> UsageRecord:
        key = self.config.store_key
        for attempt in range(1, self.config.cas_max_retries + 1):
            current = self._load_record()
            record = self._next_record(current)
            if self.store.compare_and_swap(key, current.version, record):
                logger.info(
                    f"Committed usage: {record.count}/{self.config.daily_limit} on {record.date} "
                    f"(attempt {attempt})"
                )
                return record
            logger.debug(f"Commit conflict on attempt {attempt}, retrying")

        raise StoreError(
            f"Could not commit usage after {self.config.cas_max_retries} conflicting attempts"
        )

    # =====================
    # Admin methods
    # =====================

    def set_today_count(self, count: int) -> UsageRecord:
        """Overwrite today's count (for admin/testing)."""
        if count < 0:
            raise ValueError(f"Count must be non-negative, got {count}")
        current = self._load_record()
        record = UsageRecord(date=self.today(), count=count, version=current.version + 1)
        self.store.save(self.config.store_key, record)
        logger.info(f"Set today's usage to {count}")
        return record

    def reset_today(self) -> UsageRecord:
        """Reset today's count to zero (for admin/testing)."""
        return self.set_today_count(0)


class UsageReporter(_DailyCounter):
    """Read-only view of the counter for clients that display remaining quota."""

    def peek(self) -> UsageSnapshot:
        """
        Report today's usage without consuming anything.

        Raises:
            StoreError: If the counter cannot be read
        """
        today = self.today()
        record = self._load_record()
        return UsageSnapshot(
            current=record.effective_count(today),
            limit=self.config.daily_limit,
            reset_date=today,
        )

    def raw_record(self) -> Optional[UsageRecord]:
        """Stored record exactly as persisted, for admin display."""
        return self.store.load(self.config.store_key)
