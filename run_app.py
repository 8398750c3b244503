#!/usr/bin/env python3
"""
Runner script for the analogy generator API.
Sets up logging, makes sure the project root is importable and serves the app.
"""

import sys
import logging
from pathlib import Path

# Add the current directory to Python path
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from config_manager import ConfigManager
from generation_service.logging_config import setup_logging, stop_logging
from app.main import app

logger = logging.getLogger("run_app")


def main() -> None:
    config_manager = ConfigManager()
    app_config = config_manager.get_app_config()
    llm_config = config_manager.get_llm_config()
    quota_config = config_manager.get_quota_config()

    setup_logging(debug=app_config.debug)

    logger.info(f"Working directory: {current_dir}")
    logger.info(f"LLM provider: {llm_config.provider}, model: {llm_config.model}")
    logger.info(
        f"Daily limit: {quota_config.daily_limit} ({quota_config.timezone}, "
        f"{quota_config.strictness.value} policy)"
    )
    if not llm_config.api_key and llm_config.provider != "ollama":
        logger.warning("No API key configured; generation requests will fail with 500")

    try:
        app.run(
            host=app_config.host,
            port=app_config.port,
            debug=app_config.debug
        )
    finally:
        stop_logging()


if __name__ == "__main__":
    main()
