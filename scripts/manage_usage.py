#!/usr/bin/env python3
"""
Admin script for the shared daily usage counter.

Usage:
    python scripts/manage_usage.py show [--data-dir DATA_DIR]
    python scripts/manage_usage.py reset [--dry-run] [--data-dir DATA_DIR]
    python scripts/manage_usage.py set --count N [--dry-run] [--data-dir DATA_DIR]
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config_manager import ConfigManager
from app.errors import AnalogyServiceError
from app.quota.factory import create_quota_module


def show_usage(module: dict) -> dict:
    """Print the effective snapshot and the raw stored record."""
    snapshot = module["reporter"].peek()
    raw = module["reporter"].raw_record()

    print(f"📊 Usage for {snapshot.reset_date} ({module['config'].timezone})")
    print(f"   Current:   {snapshot.current}")
    print(f"   Limit:     {snapshot.limit}")
    print(f"   Remaining: {snapshot.remaining}")
    if raw is None:
        print("ℹ️  No record stored yet")
    else:
        print(f"📂 Stored record: {raw.to_dict()}")
    return snapshot.to_dict()


def set_usage(module: dict, count: int, dry_run: bool = False) -> None:
    """Overwrite today's count."""
    gate = module["gate"]
    if dry_run:
        print(f"🔍 Dry run: would set usage for {gate.today()} to {count}")
        return
    record = gate.reset_today() if count == 0 else gate.set_today_count(count)
    print(f"✅ Usage for {record.date} set to {record.count}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect or adjust the shared daily usage counter")
    parser.add_argument("--data-dir", type=Path, help="Directory holding usage_limits.json")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Show today's usage")

    reset_parser = subparsers.add_parser("reset", help="Reset today's usage to zero")
    reset_parser.add_argument("--dry-run", action="store_true", help="Show what would be done")

    set_parser = subparsers.add_parser("set", help="Set today's usage to a given count")
    set_parser.add_argument("--count", type=int, required=True, help="New count for today")
    set_parser.add_argument("--dry-run", action="store_true", help="Show what would be done")

    args = parser.parse_args()

    config_manager = ConfigManager()
    data_dir = args.data_dir or Path(__file__).parent.parent / config_manager.get_paths_config().data_dir

    try:
        module = create_quota_module(data_dir=data_dir, config=config_manager.get_quota_config())

        if args.command == "show":
            show_usage(module)
        elif args.command == "reset":
            set_usage(module, 0, dry_run=args.dry_run)
        elif args.command == "set":
            if args.count < 0:
                print("❌ Count must be non-negative")
                return 1
            set_usage(module, args.count, dry_run=args.dry_run)
    except AnalogyServiceError as e:
        print(f"❌ {e.message}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
