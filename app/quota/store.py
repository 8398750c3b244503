"""
Counter stores for the shared daily usage record.

The gate and the reporter only see the UsageStore interface, so the backing
store can be swapped without touching quota logic.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from app.errors import StoreError
from .models import UsageRecord

logger = logging.getLogger(__name__)


class UsageStore:
    """
    Key-value store holding one UsageRecord per key.

    Implementations raise StoreError for any failure to reach or decode the
    underlying storage. A missing key is not an error: load() returns None.
    """

    supports_compare_and_swap = False

    def load(self, key: str) -> Optional[UsageRecord]:
        raise NotImplementedError

    def save(self, key: str, record: UsageRecord) -> None:
        raise NotImplementedError

    def compare_and_swap(self, key: str, expected_version: int, record: UsageRecord) -> bool:
        """
        Write `record` only if the stored version still equals `expected_version`.

        A missing key counts as version 0.

        Returns:
            True if the write happened, False on a version conflict
        """
        raise NotImplementedError(f"{type(self).__name__} does not support compare-and-swap")


class InMemoryUsageStore(UsageStore):
    """Dictionary-backed store for tests and single-process development."""

    supports_compare_and_swap = True

    def __init__(self, initial: Optional[Dict[str, UsageRecord]] = None):
        self._records: Dict[str, UsageRecord] = dict(initial or {})
        self._lock = Lock()

    def load(self, key: str) -> Optional[UsageRecord]:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            return UsageRecord(date=record.date, count=record.count, version=record.version)

    def save(self, key: str, record: UsageRecord) -> None:
        with self._lock:
            self._records[key] = UsageRecord(date=record.date, count=record.count, version=record.version)

    def compare_and_swap(self, key: str, expected_version: int, record: UsageRecord) -> bool:
        with self._lock:
            current = self._records.get(key)
            current_version = current.version if current else 0
            if current_version != expected_version:
                return False
            self._records[key] = UsageRecord(date=record.date, count=record.count, version=record.version)
            return True


class JsonFileUsageStore(UsageStore):
    """
    Stores all records in a single JSON file.

    File layout:
    {
      "daily-usage": {"date": "2025-11-11", "count": 42, "version": 42}
    }

    Read-modify-write steps are serialised by an in-process lock and files are
    replaced atomically, so readers never see a partial write. Separate
    processes sharing the file get no such guarantee.
    """

    supports_compare_and_swap = True

    def __init__(self, usage_file: Path):
        self.usage_file = usage_file
        self._lock = Lock()

    def load(self, key: str) -> Optional[UsageRecord]:
        with self._lock:
            data = self._read_all()
        return self._decode(key, data.get(key))

    def save(self, key: str, record: UsageRecord) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = record.to_dict()
            self._write_all(data)

    def compare_and_swap(self, key: str, expected_version: int, record: UsageRecord) -> bool:
        with self._lock:
            data = self._read_all()
            current = self._decode(key, data.get(key))
            current_version = current.version if current else 0
            if current_version != expected_version:
                logger.debug(
                    f"Version conflict on {key}: expected {expected_version}, found {current_version}"
                )
                return False
            data[key] = record.to_dict()
            self._write_all(data)
            return True

    # =====================
    # Private helper methods
    # =====================

    def _read_all(self) -> dict:
        """Load the whole file; a missing file is an empty store."""
        if not self.usage_file.exists():
            return {}
        try:
            with open(self.usage_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading usage data from {self.usage_file}: {e}")
            raise StoreError(f"Failed to read usage data: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Usage file {self.usage_file} does not hold a JSON object")
        return data

    def _write_all(self, data: dict) -> None:
        """Write the whole file via a temp file and rename."""
        try:
            self.usage_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.usage_file.parent, prefix=self.usage_file.name, suffix=".tmp"
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.usage_file)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error(f"Error saving usage data to {self.usage_file}: {e}")
            raise StoreError(f"Failed to write usage data: {e}") from e

    def _decode(self, key: str, raw) -> Optional[UsageRecord]:
        if raw is None:
            return None
        try:
            return UsageRecord.from_dict(raw)
        except (AttributeError, TypeError, ValueError, OverflowError) as e:
            raise StoreError(f"Corrupt usage record for {key}: {e}") from e
