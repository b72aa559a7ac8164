"""Tests for the client view state and the terminal client."""

import json
from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from mbti_fortune import cli, fortune_llm
from mbti_fortune.client_view import FortuneView, classify_energy, format_clock
from mbti_fortune.main import app

FORTUNE = {
    "headline": "기세가 오르는 날",
    "fortune": "미뤄둔 일을 시작하면 흐름을 탈 수 있어요.",
    "actionSteps": ["메일 정리", "우선순위 정하기", "30분 집중"],
    "luckyItem": "노란 포스트잇",
    "energyLevel": "높음",
}


def fixed_clock():
    return datetime(2026, 10, 19, 15, 7)


def make_view(handler, **kwargs):
    http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://test")
    return FortuneView(http, clock=fixed_clock, **kwargs)


def ok_handler(request):
    return httpx.Response(200, json=FORTUNE)


@pytest.mark.parametrize("level,tone", [
    ("에너지 높음", "high"),
    ("에너지 낮음", "low"),
    ("에너지 보통", "mid"),
    ("높음", "high"),
    (" 낮음 ", "low"),
    ("unknown", "mid"),
    ("", "mid"),
])
def test_classify_energy(level, tone):
    assert classify_energy(level) == tone


@pytest.mark.parametrize("hour,minute,label", [
    (0, 5, "오전 12:05"),
    (9, 30, "오전 09:30"),
    (12, 0, "오후 12:00"),
    (15, 7, "오후 03:07"),
    (23, 59, "오후 11:59"),
])
def test_format_clock(hour, minute, label):
    assert format_clock(datetime(2026, 1, 1, hour, minute)) == label


def test_submit_without_type_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=FORTUNE)

    view = make_view(handler)
    assert view.submit() is False
    assert view.error == "MBTI 유형을 선택해 주세요."
    assert calls == []
    assert view.is_loading is False


def test_submit_success_updates_result_and_timestamp():
    seen = []

    def handler(request):
        seen.append(request)
        assert view.is_loading is True
        return httpx.Response(200, json=FORTUNE)

    view = make_view(handler)
    view.select_type("INTJ")
    view.set_concern("이직 고민")
    assert view.submit() is True

    assert view.fortune == FORTUNE
    assert view.error is None
    assert view.is_loading is False
    assert view.last_updated == "오후 03:07"
    assert seen[0].url.path == "/api/fortune"
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"mbti": "INTJ", "concern": "이직 고민"}


def test_failed_submit_keeps_previous_result():
    responses = [
        httpx.Response(200, json=FORTUNE),
        httpx.Response(500, json={"error": "점괘 생성 중 문제가 발생했어요. 잠시 후 다시 시도해 주세요."}),
    ]
    view = make_view(lambda request: responses.pop(0))
    view.select_type("ENFP")
    assert view.submit() is True
    assert view.submit() is False

    assert view.fortune == FORTUNE
    assert view.last_updated == "오후 03:07"
    assert view.error == "점괘 생성 중 문제가 발생했어요. 잠시 후 다시 시도해 주세요."
    assert view.is_loading is False


def test_error_without_body_uses_fallback_message():
    view = make_view(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
    view.select_type("ISTP")
    assert view.submit() is False
    assert view.error == "점괘를 가져오는 중 문제가 발생했어요."
    assert view.fortune is None


def test_unparseable_success_body_is_an_error():
    view = make_view(lambda request: httpx.Response(200, text="not json"))
    view.select_type("ISTP")
    assert view.submit() is False
    assert view.error == "점괘를 가져오는 중 문제가 발생했어요."


def test_network_error_uses_exception_message():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    view = make_view(handler)
    view.select_type("INFP")
    assert view.submit() is False
    assert view.error == "connection refused"
    assert view.is_loading is False


def test_next_submit_clears_old_error():
    view = make_view(ok_handler)
    view.submit()
    assert view.error is not None
    view.select_type("ESTJ")
    assert view.submit() is True
    assert view.error is None


def test_energy_tone_follows_result_changes():
    view = make_view(ok_handler)
    assert view.energy_tone is None

    view.select_type("ESFJ")
    view.submit()
    assert view.energy_tone == "high"

    view.fortune = {**FORTUNE, "energyLevel": "낮음"}
    assert view.energy_tone == "low"
    view.fortune = {**FORTUNE, "energyLevel": "보통"}
    assert view.energy_tone == "mid"


def test_presets_replace_concern():
    view = make_view(ok_handler)
    view.set_concern("직접 쓴 고민")
    assert view.apply_preset(1) is True
    assert view.concern == view.presets[1]


def test_presets_ignored_while_loading():
    view = make_view(ok_handler)
    view.set_concern("그대로")
    view.is_loading = True
    assert view.apply_preset(0) is False
    assert view.concern == "그대로"


def test_select_unknown_type_rejected():
    view = make_view(ok_handler)
    with pytest.raises(ValueError):
        view.select_type("ABCD")


def test_render_result():
    view = make_view(ok_handler)
    view.select_type("INTJ")
    view.submit()
    text = view.render()
    assert "[INTJ] 에너지: 높음" in text
    assert "기세가 오르는 날" in text
    assert "  3. 30분 집중" in text
    assert "럭키 아이템: 노란 포스트잇" in text
    assert "오후 03:07 업데이트" in text


def test_view_against_app(monkeypatch):
    """End to end: the view talks to the real app with a stubbed generator."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    captured = {}

    async def fake_generate(mbti, concern, api_key):
        captured.update(mbti=mbti, concern=concern)
        return FORTUNE

    monkeypatch.setattr(fortune_llm, "generate_fortune", fake_generate)

    view = FortuneView(TestClient(app), clock=fixed_clock)
    view.select_type("INTJ")
    assert view.submit() is True
    assert view.fortune == FORTUNE
    assert captured == {"mbti": "INTJ", "concern": ""}


def test_cli_prints_fortune(capsys):
    http = httpx.Client(transport=httpx.MockTransport(ok_handler), base_url="http://test")
    code = cli.main(["--mbti", "intj", "--preset", "2"], http=http)
    assert code == 0
    out = capsys.readouterr().out
    assert "기세가 오르는 날" in out


def test_cli_without_type_fails(capsys):
    http = httpx.Client(transport=httpx.MockTransport(ok_handler), base_url="http://test")
    assert cli.main([], http=http) == 1
    assert "MBTI 유형을 선택해 주세요." in capsys.readouterr().out


def test_cli_rejects_unknown_type(capsys):
    assert cli.main(["--mbti", "QQQQ"]) == 2
