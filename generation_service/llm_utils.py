"""
llm_utils.py - LLM utilities and provider management

This module provides LLM invocation functionality with support for
Google Gemini, DeepSeek, Ollama, and OpenAI-compatible providers.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_deepseek import ChatDeepSeek
from langchain_deepseek.chat_models import DEFAULT_API_BASE as DEEPSEEK_DEFAULT_API_BASE
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_ollama import OllamaLLM
from langchain_openai import ChatOpenAI

_LOG = logging.getLogger(__name__)

# Default configuration
DEFAULT_LLM_PROVIDER = "google"  # "google", "deepseek", "ollama", or "openai"
DEFAULT_GOOGLE_MODEL = "gemini-2.5-flash-lite"
DEFAULT_DEEPSEEK_MODEL = "deepseek-chat"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "qwen3:8b"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

# Providers that cannot be called without an API key
KEYED_PROVIDERS = ("google", "deepseek", "openai")


@dataclass
class SamplingParams:
    """Fixed sampling parameters sent with every generation request."""
    temperature: float = 0.9
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 1024


@dataclass
class GenerationResult:
    """Text produced by the backend plus what the provider reported about it."""
    text: str
    model: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """
        Convert to the JSON payload returned to clients.

        `candidates` mirrors the Gemini generateContent response so browser
        clients reading candidates[0].content.parts[0].text keep working.
        """
        candidate: Dict[str, Any] = {
            "content": {"parts": [{"text": self.text}], "role": "model"},
        }
        finish_reason = self.metadata.get("finish_reason")
        if finish_reason:
            candidate["finishReason"] = finish_reason
        return {
            "candidates": [candidate],
            "analogy": self.text,
            "model": self.model,
            "metadata": self.metadata,
        }


class LLMProvider:
    """LLM provider configuration and management."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider: str = DEFAULT_LLM_PROVIDER,
        model: str = None,
        timeout: float = 30,
        max_retries: int = 0,
        sampling: Optional[SamplingParams] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.provider = provider.lower()
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.sampling = sampling or SamplingParams()

        # Set defaults based on provider
        self._configure_provider()

    def _configure_provider(self):
        """Configure provider-specific settings."""
        if self.provider == "ollama":
            if not self.base_url:
                self.base_url = os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL)
            if not self.model:
                self.model = os.getenv("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL)
        elif self.provider == "openai":
            if not self.api_key:
                self.api_key = os.getenv("OPENAI_API_KEY")
            if not self.base_url:
                self.base_url = os.getenv(
                    "OPENAI_API_BASE", "https://api.openai.com/v1"
                )
            if not self.model:
                self.model = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
        elif self.provider == "deepseek":
            if not self.api_key:
                self.api_key = os.getenv("DEEPSEEK_API_KEY")
            if not self.model:
                self.model = DEFAULT_DEEPSEEK_MODEL
        else:  # google
            if not self.api_key:
                self.api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            if not self.model:
                self.model = DEFAULT_GOOGLE_MODEL

    def has_credentials(self) -> bool:
        """Whether the provider has everything it needs to authenticate."""
        if self.provider in KEYED_PROVIDERS:
            return bool(self.api_key)
        return True

    def get_llm(self):
        """Get the configured LLM instance."""
        sampling = self.sampling
        if self.provider == "ollama":
            _LOG.debug("Using Ollama provider: %s at %s", self.model, self.base_url)
            return OllamaLLM(
                model=self.model,
                base_url=self.base_url,
                temperature=sampling.temperature,
                top_k=sampling.top_k,
                top_p=sampling.top_p,
                num_predict=sampling.max_output_tokens,
            )
        elif self.provider == "openai":
            if not self.api_key:
                raise ValueError(
                    "OpenAI API key required. Set OPENAI_API_KEY environment variable or pass api_key"
                )
            _LOG.debug(
                "Using OpenAI-compatible provider: %s at %s", self.model, self.base_url
            )
            return ChatOpenAI(
                model=self.model,
                api_key=self.api_key,
                base_url=self.base_url,
                temperature=sampling.temperature,
                top_p=sampling.top_p,
                max_tokens=sampling.max_output_tokens,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        elif self.provider == "deepseek":
            if not self.api_key:
                raise ValueError(
                    "DeepSeek API key required. Set DEEPSEEK_API_KEY environment variable or pass api_key"
                )
            _LOG.debug("Using DeepSeek provider: %s", self.model)
            return ChatDeepSeek(
                model=self.model,
                temperature=sampling.temperature,
                top_p=sampling.top_p,
                max_tokens=sampling.max_output_tokens,
                timeout=self.timeout,
                max_retries=self.max_retries,
                api_key=self.api_key,
                api_base=self.base_url if self.base_url else DEEPSEEK_DEFAULT_API_BASE,
            )
        else:  # google
            if not self.api_key:
                raise ValueError(
                    "Gemini API key required. Set GEMINI_API_KEY environment variable or pass api_key"
                )
            _LOG.debug("Using Google provider: %s", self.model)
            return ChatGoogleGenerativeAI(
                model=self.model,
                google_api_key=self.api_key,
                temperature=sampling.temperature,
                top_k=sampling.top_k,
                top_p=sampling.top_p,
                max_output_tokens=sampling.max_output_tokens,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )

    def invoke(self, messages: List[BaseMessage]) -> AIMessage:
        """Invoke LLM with the configured provider."""
        llm = self.get_llm()

        if self.provider == "ollama":
            # Convert messages to text for Ollama (simpler interface)
            if len(messages) == 1:
                prompt = messages[0].content
            else:
                prompt = "\n\n".join(
                    [
                        f"{'User' if isinstance(m, HumanMessage) else 'Assistant'}: {m.content}"
                        for m in messages
                    ]
                )

            response = llm.invoke(prompt)
            return AIMessage(content=clean_ollama_response(response))
        else:
            return llm.invoke(messages)

    def generate(self, prompt: str) -> GenerationResult:
        """
        Run a single-prompt generation and normalise the response.

        Raises:
            ValueError: If the provider returned no usable text
        """
        response = self.invoke([HumanMessage(content=prompt)])
        text = message_text(response)
        if not text.strip():
            raise ValueError("Backend returned an empty response")

        metadata = dict(getattr(response, "response_metadata", None) or {})
        usage_metadata = getattr(response, "usage_metadata", None)
        if usage_metadata:
            metadata["usage_metadata"] = dict(usage_metadata)

        return GenerationResult(text=text, model=self.model, metadata=metadata)


def clean_ollama_response(content: str) -> str:
    """Clean Ollama response by removing <think> tags."""
    return re.sub(r"<think>.*?</think>", "", content, flags=re.DOTALL)


def message_text(message: AIMessage) -> str:
    """
    Extract plain text from a chat message.

    Gemini may return content as a list of parts rather than a string.
    """
    content = message.content
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    raise ValueError(f"Unexpected response content type: {type(content).__name__}")
