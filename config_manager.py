"""
Configuration management for the Analogy Generator.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass

from app.errors import ConfigurationError
from app.quota.models import QuotaConfig


# Environment variables holding the backend credential, per provider
API_KEY_ENV_VARS = {
    "google": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "deepseek": ("DEEPSEEK_API_KEY",),
    "openai": ("OPENAI_API_KEY",),
    "ollama": (),
}


@dataclass
class LLMConfig:
    """LLM configuration settings."""
    provider: str
    api_key: str
    base_url: Optional[str]
    model: str
    temperature: float
    top_k: int
    top_p: float
    max_output_tokens: int
    timeout_seconds: float
    max_retries: int


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool


@dataclass
class PathsConfig:
    """Path configuration settings."""
    data_dir: str


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "web_app_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        # Load base config from file
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        # Override with environment variables
        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "llm": {
                "provider": "google",
                "api_key": "",
                "base_url": None,
                "model": "gemini-2.5-flash-lite",
                "temperature": 0.9,
                "top_k": 40,
                "top_p": 0.95,
                "max_output_tokens": 1024,
                "timeout_seconds": 30,
                "max_retries": 0
            },
            "app": {
                "host": "0.0.0.0",
                "port": 8888,
                "debug": False
            },
            "quota": {
                "daily_limit": 1000,
                "timezone": "UTC",
                "strictness": "soft",
                "store_failure_policy": "closed",
                "cas_max_retries": 5,
                "store_key": "daily-usage"
            },
            "paths": {
                "data_dir": "data"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # LLM settings
        if os.getenv("LLM_PROVIDER"):
            provider = os.getenv("LLM_PROVIDER").lower()
            if provider != self._config["llm"]["provider"]:
                # Switching provider drops the other provider's model and endpoint
                base_url, model = get_provider_defaults(provider)
                self._config["llm"]["base_url"] = base_url
                self._config["llm"]["model"] = model
            self._config["llm"]["provider"] = provider

        provider = self._config["llm"]["provider"]
        for env_var in API_KEY_ENV_VARS.get(provider, ()):
            if os.getenv(env_var):
                self._config["llm"]["api_key"] = os.getenv(env_var)
                break

        if os.getenv("OPENAI_API_BASE"):
            self._config["llm"]["base_url"] = os.getenv("OPENAI_API_BASE")

        if os.getenv("LLM_MODEL"):
            self._config["llm"]["model"] = os.getenv("LLM_MODEL")

        if os.getenv("LLM_TIMEOUT_SECONDS"):
            self._config["llm"]["timeout_seconds"] = _env_number("LLM_TIMEOUT_SECONDS", float)

        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = _env_number("APP_PORT", int)

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        # Quota settings
        if os.getenv("DAILY_LIMIT"):
            self._config["quota"]["daily_limit"] = _env_number("DAILY_LIMIT", int)

        if os.getenv("QUOTA_TIMEZONE"):
            self._config["quota"]["timezone"] = os.getenv("QUOTA_TIMEZONE")

        if os.getenv("QUOTA_STRICTNESS"):
            self._config["quota"]["strictness"] = os.getenv("QUOTA_STRICTNESS").lower()

        if os.getenv("QUOTA_STORE_FAILURE_POLICY"):
            self._config["quota"]["store_failure_policy"] = os.getenv("QUOTA_STORE_FAILURE_POLICY").lower()

        # Paths
        if os.getenv("DATA_DIR"):
            self._config["paths"]["data_dir"] = os.getenv("DATA_DIR")

    def get_llm_config(self) -> LLMConfig:
        """Get LLM configuration."""
        llm_config = self._config["llm"]
        return LLMConfig(
            provider=llm_config["provider"],
            api_key=llm_config["api_key"],
            base_url=llm_config["base_url"],
            model=llm_config["model"],
            temperature=llm_config["temperature"],
            top_k=llm_config["top_k"],
            top_p=llm_config["top_p"],
            max_output_tokens=llm_config["max_output_tokens"],
            timeout_seconds=llm_config["timeout_seconds"],
            max_retries=llm_config["max_retries"]
        )

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"]
        )

    def get_quota_config(self) -> QuotaConfig:
        """
        Get quota configuration.

        Raises:
            ConfigurationError: If a quota setting is invalid
        """
        return QuotaConfig.from_dict(self._config["quota"])

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        return PathsConfig(data_dir=self._config["paths"]["data_dir"])


def _env_number(name: str, cast):
    value = os.getenv(name)
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number, got {value!r}")


def get_provider_defaults(provider: str) -> tuple[Optional[str], str]:
    """
    Get default base URL and model for the specified provider.

    Args:
        provider: The LLM provider name

    Returns:
        Tuple of (base_url, model) defaults for the provider
    """
    defaults = {
        "google": (None, "gemini-2.5-flash-lite"),
        "deepseek": (None, "deepseek-chat"),
        "openai": ("https://api.openai.com/v1", "gpt-4o-mini"),
        "ollama": ("http://localhost:11434", "qwen3:8b"),
    }
    return defaults.get(provider.lower(), defaults["google"])
