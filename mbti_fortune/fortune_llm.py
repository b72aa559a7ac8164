"""OpenAI integration for MBTI fortune generation."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Union

from openai import AsyncOpenAI
from pydantic import ValidationError

from .models import DEFAULT_CONCERN, FortuneResponse

log = logging.getLogger("mbti_fortune.llm")

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.8

FORTUNE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "headline": {
            "type": "string",
            "description": "점괘를 요약하는 한 줄 헤드라인",
        },
        "fortune": {
            "type": "string",
            "description": "오늘의 핵심 운세 설명",
        },
        "actionSteps": {
            "type": "array",
            "minItems": 3,
            "items": {"type": "string"},
            "description": "실천 가능한 행동 루틴 3단계",
        },
        "luckyItem": {
            "type": "string",
            "description": "오늘의 행운을 끌어올 아이템",
        },
        "energyLevel": {
            "type": "string",
            "description": "높음/보통/낮음 중 하나",
        },
    },
    "required": ["headline", "fortune", "actionSteps", "luckyItem", "energyLevel"],
}

SYSTEM_PROMPT = (
    "너는 감성적인 MBTI 기반 점성술가다. 모든 답변은 자연스러운 한국어로 작성하고, "
    "사용자가 바로 행동으로 옮길 수 있는 조언을 제공한다."
)


class FortuneGenerationError(RuntimeError):
    pass


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class BlockList:
    blocks: Sequence[Any]


CompletionContent = Union[PlainText, BlockList]


def classify_content(message_content: Any) -> CompletionContent:
    """Wrap raw message content from the SDK in one of the two content shapes."""
    if isinstance(message_content, str):
        return PlainText(message_content)
    if isinstance(message_content, (list, tuple)):
        return BlockList(message_content)
    # None or anything unexpected carries no text
    return PlainText("")


def _block_text(block: Any) -> str | None:
    if isinstance(block, dict):
        text = block.get("text")
    else:
        text = getattr(block, "text", None)
    return text if isinstance(text, str) else None


def normalize_content(content: CompletionContent) -> str:
    if isinstance(content, PlainText):
        return content.text
    texts = [_block_text(block) for block in content.blocks]
    return "\n".join(t for t in texts if t is not None)


def build_messages(mbti: str, concern: str) -> List[Dict[str, str]]:
    user_prompt = f"""MBTI: {mbti}
상황: {concern or DEFAULT_CONCERN}

필수 규칙:
- 결과는 JSON 형식으로만 작성
- actionSteps는 3개의 짧고 실천적인 문장으로 구성
- energyLevel은 "높음", "보통", "낮음" 중 가장 어울리는 단어 사용"""

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def get_api_key() -> str | None:
    api_key = os.getenv("OPENAI_API_KEY")
    if api_key and api_key.strip():
        return api_key
    return None


def get_client(api_key: str) -> AsyncOpenAI:
    # one attempt per incoming request
    return AsyncOpenAI(api_key=api_key, max_retries=0)


def _model_name() -> str:
    return os.getenv("OPENAI_MODEL") or DEFAULT_MODEL


def _temperature() -> float:
    raw = os.getenv("FORTUNE_TEMPERATURE")
    if not raw:
        return DEFAULT_TEMPERATURE
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring invalid FORTUNE_TEMPERATURE=%r", raw)
        return DEFAULT_TEMPERATURE


def parse_fortune(raw_content: str) -> Dict[str, Any]:
    """Parse normalized model output into a fortune payload.

    Raises FortuneGenerationError when the text is empty, is not JSON, or does
    not have the fortune shape.
    """
    if not raw_content:
        raise FortuneGenerationError("모델 응답이 비어 있습니다.")
    try:
        parsed = json.loads(raw_content)
    except (ValueError, RecursionError) as e:
        raise FortuneGenerationError(f"Model output is not valid JSON: {e}") from e
    try:
        return FortuneResponse.model_validate(parsed).model_dump()
    except ValidationError as e:
        raise FortuneGenerationError(f"Model output does not match the fortune schema: {e}") from e


async def generate_fortune(mbti: str, concern: str, api_key: str) -> Dict[str, Any]:
    """Ask the completion service for a fortune and return the parsed payload.

    Any SDK error propagates unchanged; output problems raise
    FortuneGenerationError.
    """
    model = _model_name()
    log.info("Requesting fortune model=%s mbti=%s concern_len=%d", model, mbti, len(concern))

    async with get_client(api_key) as client:
        completion = await client.chat.completions.create(
            model=model,
            temperature=_temperature(),
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "fortune_schema",
                    "schema": FORTUNE_SCHEMA,
                    "strict": True,
                },
            },
            messages=build_messages(mbti, concern),
        )

    choices = getattr(completion, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    content = classify_content(getattr(message, "content", None))
    return parse_fortune(normalize_content(content))
