import json
import os
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock, patch

import pytest

from generation_service.llm_utils import GenerationResult


class FakeClock:
    """Settable clock returning timezone-aware datetimes."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def clock():
    """Clock frozen at noon UTC on 2025-11-11."""
    return FakeClock(datetime(2025, 11, 11, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def mock_provider():
    """Generation backend that succeeds with a fixed analogy."""
    provider = MagicMock()
    provider.provider = "google"
    provider.has_credentials.return_value = True
    provider.generate.return_value = GenerationResult(
        text="**Summary:** Both carry things across gaps.",
        model="gemini-2.5-flash-lite",
        metadata={"finish_reason": "STOP"},
    )
    return provider


@pytest.fixture()
def make_config_manager(tmp_path):
    """Build a ConfigManager from a temp config file with a clean environment."""
    from config_manager import ConfigManager

    def _make(quota=None, llm=None, env=None):
        config = {
            "paths": {"data_dir": str(tmp_path / "data")},
            "quota": quota if quota is not None else {},
            "llm": llm if llm is not None else {"api_key": "test-key"},
        }
        config_file = tmp_path / "web_app_config.json"
        config_file.write_text(json.dumps(config), encoding="utf-8")
        with patch.dict(os.environ, env or {}, clear=True):
            return ConfigManager(str(config_file))

    return _make
