"""
Factory for creating quota management components.
"""

from pathlib import Path
from typing import Optional

from .models import QuotaConfig
from .manager import Clock, QuotaGate, UsageReporter
from .routes import create_usage_blueprint
from .store import JsonFileUsageStore, UsageStore


def create_quota_module(
    data_dir: Path,
    config: Optional[QuotaConfig] = None,
    store: Optional[UsageStore] = None,
    clock: Optional[Clock] = None,
) -> dict:
    """
    Create quota management module.

    Args:
        data_dir: Directory for the usage data file
        config: Quota settings, defaults to a 1000/day UTC soft limit
        store: Counter store, defaults to a JSON file in data_dir
        clock: Returns the current time; injected by tests

    Returns:
        Dictionary with:
        - gate: QuotaGate instance
        - reporter: UsageReporter instance
        - store: the UsageStore both share
        - config: QuotaConfig instance
        - blueprint: usage routes

    Raises:
        ConfigurationError: If the config is invalid or asks for a strict
            policy the store cannot honour
    """
    config = config or QuotaConfig()
    config.validate()

    if store is None:
        store = JsonFileUsageStore(data_dir / "usage_limits.json")

    gate = QuotaGate(config=config, store=store, clock=clock)
    reporter = UsageReporter(config=config, store=store, clock=clock)

    return {
        "gate": gate,
        "reporter": reporter,
        "store": store,
        "config": config,
        "blueprint": create_usage_blueprint(reporter),
    }
