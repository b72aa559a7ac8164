from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request

from .. import fortune_llm
from ..errors import FortuneError
from ..models import (
    MBTI_TYPES,
    PRESET_CONCERNS,
    ErrorResponse,
    FortuneOptions,
    FortuneResponse,
    normalize_concern,
    normalize_mbti,
)

log = logging.getLogger("mbti_fortune.fortune")
router = APIRouter(prefix="/api/fortune", tags=["Fortune"])

MISSING_KEY_MESSAGE = "OPENAI_API_KEY가 설정되지 않았습니다."
BAD_BODY_MESSAGE = "요청 본문을 읽을 수 없습니다."
BAD_MBTI_MESSAGE = "유효한 MBTI 유형을 선택해 주세요."
UPSTREAM_MESSAGE = "점괘 생성 중 문제가 발생했어요. 잠시 후 다시 시도해 주세요."


@router.get("/options", response_model=FortuneOptions)
def fortune_options():
    return {"types": MBTI_TYPES, "presets": PRESET_CONCERNS}


@router.post(
    "",
    response_model=FortuneResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_fortune(request: Request):
    api_key = fortune_llm.get_api_key()
    if api_key is None:
        raise FortuneError(500, MISSING_KEY_MESSAGE)

    try:
        payload = json.loads(await request.body())
    except (ValueError, RecursionError):
        raise FortuneError(400, BAD_BODY_MESSAGE)
    if not isinstance(payload, dict):
        raise FortuneError(400, BAD_BODY_MESSAGE)

    mbti = normalize_mbti(payload.get("mbti"))
    if mbti is None:
        raise FortuneError(400, BAD_MBTI_MESSAGE)
    concern = normalize_concern(payload.get("concern"))

    try:
        return await fortune_llm.generate_fortune(mbti, concern, api_key)
    except Exception:
        log.exception("fortune api error mbti=%s", mbti)
        raise FortuneError(500, UPSTREAM_MESSAGE)
