"""
Logging Configuration Module

Queue-based logging for the web server: request threads hand records to a
queue and a single listener writes them, so lines from concurrent requests
never interleave. Also quiets the HTTP and LangChain client libraries.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from queue import Queue
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "urllib3",
    "openai",
    "google_genai",
    "langchain_core",
    "langchain_google_genai",
    "langchain_deepseek",
    "langchain_ollama",
    "tenacity",
]


class _MuteHttpFilter(logging.Filter):
    """Drop per-request HTTP client chatter."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        name = record.name or ""
        if name.startswith("httpx") or name.startswith("httpcore"):
            return False
        msg = record.getMessage()
        if isinstance(msg, str) and (
            msg.startswith("HTTP Request:") or msg.startswith("HTTP Response:")
        ):
            return False
        return True


class ThreadSafeLoggingConfig:
    """Thread-safe logging configuration with queue-based logging."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None
        self._log_queue: Optional[Queue] = None

    def setup_logging(self, debug: bool = False, log_file: Optional[Path] = None) -> None:
        """
        Route all logging through a queue listener.

        Args:
            debug: Whether to enable debug logging
            log_file: Optional file to write alongside stdout
        """
        # Calling twice must not leave a second listener running
        self.stop()

        self._log_queue = Queue()
        queue_handler = logging.handlers.QueueHandler(self._log_queue)

        formatter = logging.Formatter(LOG_FORMAT)
        handlers: List[logging.Handler] = []

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
            )
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        self._log_listener = logging.handlers.QueueListener(
            self._log_queue, *handlers, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(queue_handler)
        root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

        if not debug:
            self._silence_noisy_libraries()

    def _silence_noisy_libraries(self) -> None:
        """Silence noisy third-party libraries."""
        for handler in logging.getLogger().handlers:
            handler.addFilter(_MuteHttpFilter())

        for name in NOISY_LOGGERS:
            logger = logging.getLogger(name)
            # Be strict with network stacks
            if name in ("httpx", "httpcore"):
                logger.setLevel(logging.CRITICAL)
                logger.disabled = True
            else:
                logger.setLevel(logging.WARNING)
            logger.handlers.clear()
            logger.addHandler(logging.NullHandler())
            logger.propagate = False

    def stop(self) -> None:
        """Stop the logging listener and cleanup."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None
        self._log_queue = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    """Setup thread-safe logging configuration."""
    logging_config.setup_logging(debug, log_file)


def stop_logging() -> None:
    """Stop the logging listener and cleanup."""
    logging_config.stop()
