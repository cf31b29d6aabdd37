"""Configuration for the Text Transformation (TT) module."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class ChunkConfig:
    max_items: int = 10
    max_tokens: int = 1500

    @classmethod
    def from_env(cls) -> "ChunkConfig":
        return cls(
            max_items=int(os.getenv("TT_MAX_CHUNK_ITEMS", "10")),
            max_tokens=int(os.getenv("TT_MAX_CHUNK_TOKENS", "1500")),
        )


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    retry_delay: float = 1.0
    chunk_delay: float = 0.5

    @classmethod
    def from_env(cls) -> "RetryConfig":
        return cls(
            max_attempts=int(os.getenv("TT_MAX_ATTEMPTS", "3")),
            retry_delay=float(os.getenv("TT_RETRY_DELAY", "1.0")),
            chunk_delay=float(os.getenv("TT_CHUNK_DELAY", "0.5")),
        )


@dataclass(frozen=True)
class BackendConfig:
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_output_tokens: int = 4000
    request_timeout: float = 60.0

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_env(cls) -> "BackendConfig":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY") or None,
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            model=os.getenv("TT_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("TT_TEMPERATURE", "0.3")),
            max_output_tokens=int(os.getenv("TT_MAX_OUTPUT_TOKENS", "4000")),
            request_timeout=float(os.getenv("TT_REQUEST_TIMEOUT", "60")),
        )


CHARS_PER_TOKEN = 4

# Languages offered by the host; other codes are passed through as-is.
SUPPORTED_LANGUAGES = {
    "ko": "한국어",
    "en": "English",
    "ja": "日本語",
    "zh": "中文",
    "es": "Español",
    "fr": "Français",
    "de": "Deutsch",
}

LANGUAGE_NAMES = {
    "ko": "Korean",
    "en": "English",
    "ja": "Japanese",
    "zh": "Chinese",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ar": "Arabic",
    "hi": "Hindi",
    "th": "Thai",
    "vi": "Vietnamese",
}

FALLBACK_TAGS = {
    "en": "EN",
    "ja": "JP",
    "zh": "CN",
    "es": "ES",
    "fr": "FR",
    "de": "DE",
}

IMPROVEMENT_FAILED_SUFFIX = " (improvement failed)"
FALLBACK_REASON = "processing error occurred"

# One editing session; jobs are not kept beyond it.
JOB_TTL = int(os.getenv("TT_JOB_TTL", "14400"))

EXPORT_HEADERS = ["ID", "Original", "Transformed", "Reason", "Degraded"]
