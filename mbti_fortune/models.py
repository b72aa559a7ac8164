import re
from itertools import product

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

MBTI_PATTERN = re.compile(r"^[IE][NS][TF][JP]$")

MBTI_TYPES = ["".join(letters) for letters in product("IE", "NS", "TF", "JP")]

ENERGY_LEVELS = ("높음", "보통", "낮음")

DEFAULT_CONCERN = "특별한 고민은 적지 않았어요."

PRESET_CONCERNS = [
    "새로운 프로젝트를 시작했는데 방향성을 잡고 싶어요.",
    "친구와의 감정적 갈등을 부드럽게 풀고 싶어요.",
    "오늘 중요한 발표가 있는데 마음을 다잡고 싶어요.",
]


class FortuneRequest(BaseModel):
    mbti: str
    concern: str = ""


class FortuneResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    headline: str
    fortune: str
    actionSteps: List[str] = Field(..., min_length=3)
    luckyItem: str
    energyLevel: str


class ErrorResponse(BaseModel):
    error: str


class FortuneOptions(BaseModel):
    types: List[str]
    presets: List[str]


def normalize_mbti(value: Optional[object]) -> Optional[str]:
    """Trim and uppercase a type code; None unless it is one of the 16 codes."""
    if not isinstance(value, str):
        return None
    code = value.strip().upper()
    if not code or not MBTI_PATTERN.match(code):
        return None
    return code


def normalize_concern(value: Optional[object]) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()
