"""Client-side state for the fortune page.

FortuneView mirrors what the browser page keeps: the selected type, the
concern text, the latest successful fortune, an in-flight flag, the last error
and a "last updated" label. It talks to the API through any httpx.Client,
so a FastAPI TestClient works in its place.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from .models import MBTI_TYPES, PRESET_CONCERNS, FortuneRequest

log = logging.getLogger("mbti_fortune.client")

FORTUNE_PATH = "/api/fortune"

SELECT_TYPE_MESSAGE = "MBTI 유형을 선택해 주세요."
FETCH_FAILED_MESSAGE = "점괘를 가져오는 중 문제가 발생했어요."
UNKNOWN_ERROR_MESSAGE = "알 수 없는 오류가 발생했어요."

TONE_LABELS = {"high": "활기", "mid": "안정", "low": "휴식"}


class FortuneRequestFailed(Exception):
    pass


def classify_energy(energy_level: str) -> str:
    normalized = energy_level.strip()
    if "높" in normalized:
        return "high"
    if "낮" in normalized:
        return "low"
    return "mid"


def format_clock(moment: datetime) -> str:
    """Format a time the way ko-KR shows hour and minute, e.g. "오후 03:07"."""
    meridiem = "오전" if moment.hour < 12 else "오후"
    hour = moment.hour % 12 or 12
    return f"{meridiem} {hour:02d}:{moment.minute:02d}"


def _read_json(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


class FortuneView:
    def __init__(
        self,
        http: httpx.Client,
        presets: Optional[List[str]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.http = http
        self.presets = list(presets) if presets is not None else list(PRESET_CONCERNS)
        self.clock = clock

        self.mbti = ""
        self.concern = ""
        self.fortune: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.last_updated = ""

        self._tone_for: Optional[Dict[str, Any]] = None
        self._tone: Optional[str] = None

    # -------------------------------------------------------------------
    # INPUT
    # -------------------------------------------------------------------

    def select_type(self, code: str) -> None:
        if code and code not in MBTI_TYPES:
            raise ValueError(f"Unknown MBTI type: {code}")
        self.mbti = code

    def set_concern(self, text: str) -> None:
        self.concern = text

    def apply_preset(self, index: int) -> bool:
        """Replace the concern with a preset. Returns False while a request is in flight."""
        if self.is_loading:
            return False
        self.concern = self.presets[index]
        return True

    # -------------------------------------------------------------------
    # SUBMIT
    # -------------------------------------------------------------------

    def submit(self) -> bool:
        """Request a fortune for the current input. Returns True on success."""
        if not self.mbti:
            self.error = SELECT_TYPE_MESSAGE
            return False

        mbti, concern = self.mbti, self.concern
        self.is_loading = True
        self.error = None
        try:
            body = FortuneRequest(mbti=mbti, concern=concern).model_dump()
            response = self.http.post(FORTUNE_PATH, json=body)
            payload = _read_json(response)
            if not response.is_success or not payload or not isinstance(payload, dict):
                message = payload.get("error") if isinstance(payload, dict) else None
                raise FortuneRequestFailed(message or FETCH_FAILED_MESSAGE)

            self.fortune = payload
            self.last_updated = format_clock(self.clock())
            return True
        except Exception as e:
            log.info("fortune request failed: %s", e)
            self.error = str(e) or UNKNOWN_ERROR_MESSAGE
            return False
        finally:
            self.is_loading = False

    # -------------------------------------------------------------------
    # DERIVED
    # -------------------------------------------------------------------

    @property
    def energy_tone(self) -> Optional[str]:
        if self.fortune is None:
            return None
        if self._tone_for is not self.fortune:
            self._tone_for = self.fortune
            self._tone = classify_energy(str(self.fortune.get("energyLevel", "")))
        return self._tone

    def render(self) -> str:
        lines: List[str] = []
        if self.error:
            lines.append(f"! {self.error}")

        if self.fortune is None:
            lines.append("점괘를 기다리고 있어요")
            return "\n".join(lines)

        f = self.fortune
        tone = self.energy_tone
        lines.append(f"[{self.mbti}] 에너지: {f.get('energyLevel', '')} ({TONE_LABELS.get(tone, '')})")
        lines.append("")
        lines.append(str(f.get("headline", "")))
        lines.append(str(f.get("fortune", "")))
        lines.append("")
        lines.append("추천 행동 루틴")
        for i, step in enumerate(f.get("actionSteps") or [], 1):
            lines.append(f"  {i}. {step}")
        lines.append("")
        lines.append(f"럭키 아이템: {f.get('luckyItem', '')}")
        if self.last_updated:
            lines.append(f"{self.last_updated} 업데이트")
        return "\n".join(lines)
