"""Prompt assembly utilities for TT."""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from .config import LANGUAGE_NAMES, BackendConfig
from .models import BackendRequest, Mode, RewriteWithReason, Translate

TONES = ("friendly", "professional", "casual", "formal")
TARGETS = ("button", "label", "message", "description", "title")

PROMPT_TRANSLATE = """You are a professional translator for product interface text.
Translate each string you receive into {language}.

- Maintain the original tone and style.
- Keep numbers, placeholders such as {{name}} or %s, product names and punctuation intact.
- Keep UI strings short; do not add explanations.
"""

PROMPT_UX = """You are a UX writing expert specializing in clear, concise and user-friendly interface text.

Improve each string you receive following these principles:
- Clarity: make it immediately understandable
- Conciseness: remove unnecessary words
- User-friendliness: use language that feels natural and helpful
- Consistency: keep an appropriate tone throughout
- Accessibility: consider diverse user needs

Target element type: {target}
Desired tone: {tone}

Rules:
1. Keep the core meaning intact
2. Make it more actionable and clear
3. Remove jargon and complex terms
4. Use active voice when possible
5. Consider the user's emotional state
6. Keep the language of the original text
"""

OUTPUT_STRINGS = """Return ONLY a JSON array of {count} strings, one per input string, in the same order.
Do not wrap the array in markdown code fences and do not add any text before or after it."""

OUTPUT_REASONS = """Return ONLY a JSON array of {count} objects, one per input string, in the same order.
Each object must have exactly these string fields:
  "original": the input string unchanged,
  "improved": the improved string,
  "reason": one short sentence explaining the change.
Do not wrap the array in markdown code fences and do not add any text before or after it."""


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def build_system_instruction(mode: Mode) -> str:
    if isinstance(mode, Translate):
        return PROMPT_TRANSLATE.format(language=language_name(mode.target_language))
    return PROMPT_UX.format(
        target=mode.target or "general UI element",
        tone=mode.tone,
    )


def build_user_message(texts: Sequence[str], mode: Mode) -> str:
    payload = json.dumps(list(texts), ensure_ascii=False)
    template = OUTPUT_REASONS if isinstance(mode, RewriteWithReason) else OUTPUT_STRINGS
    return f"{template.format(count=len(texts))}\n\nInput:\n{payload}"


def build_request(texts: Sequence[str], mode: Mode, config: BackendConfig) -> BackendRequest:
    return BackendRequest(
        system_instruction=build_system_instruction(mode),
        user_payload=build_user_message(texts, mode),
        temperature=config.temperature,
        max_output_tokens=config.max_output_tokens,
    )


BUTTON_WORDS = ("클릭", "선택", "확인", "취소", "저장", "삭제", "추가", "등록")
MESSAGE_WORDS = ("오류", "성공", "완료", "실패")
FORMAL_WORDS = ("하십시오", "바랍니다", "드립니다")
PROFESSIONAL_WORDS = ("시스템", "데이터", "프로세스")
CASUAL_WORDS = ("해봐", "해보자", "ㅎㅎ", "!")


def detect_text_type(text: str) -> str:
    """Guess which kind of interface element ``text`` belongs to."""
    lowered = text.lower()
    if any(word in lowered for word in BUTTON_WORDS) or len(text) < 10:
        return "button"
    if len(text) < 30 and "." not in text and "?" not in text:
        return "title"
    if any(word in lowered for word in MESSAGE_WORDS):
        return "message"
    if len(text) > 50:
        return "description"
    return "label"


def detect_text_tone(text: str) -> str:
    lowered = text.lower()
    if any(word in lowered for word in FORMAL_WORDS):
        return "formal"
    if any(word in lowered for word in PROFESSIONAL_WORDS):
        return "professional"
    if any(word in lowered for word in CASUAL_WORDS):
        return "casual"
    return "friendly"


def normalize_tone(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.lower() in TONES:
        return value.lower()
    return None


def normalize_target(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.lower() in TARGETS:
        return value.lower()
    return None
