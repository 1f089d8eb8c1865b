"""Tests for the JSON-lines headless runner."""

import io
import json

import pytest

from tokenbag.interface.headless import HeadlessRunner
from tokenbag.state.manager import BagSessionManager
from tokenbag.tools.rng import ScriptedRandomSource


def _lines(output: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in output.getvalue().splitlines()]


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def runner(manager, output):
    return HeadlessRunner(manager, output=output, emit_events=False)


class TestHandleCommand:

    def test_status(self, runner):
        result = runner.handle_command({"cmd": "status"})
        assert result["ok"] is True
        assert result["state"]["white_remaining"] == 3
        assert result["state"]["phase"] == "in_progress"

    def test_unknown_command(self, runner):
        result = runner.handle_command({"cmd": "shuffle"})
        assert result == {"ok": False, "error": "Unknown command: shuffle"}

    def test_configure_then_start(self, runner):
        result = runner.handle_command({
            "cmd": "configure",
            "trait_count": 2,
            "difficulty_id": "difficile",
            "base_draw_limit": 3,
        })
        assert result["config"]["trait_count"] == 2
        assert result["state"]["preview_black"] == 4

        result = runner.handle_command({"cmd": "start"})
        assert result["state"]["white_remaining"] == 2
        assert result["state"]["black_remaining"] == 4
        assert result["state"]["draw_limit"] == 3

    def test_configure_override(self, runner):
        result = runner.handle_command({"cmd": "configure", "black_override": True, "manual_blacks": 0})
        assert result["config"]["black_override"] is True
        assert result["state"]["preview_black"] == 0

    def test_draw_returns_token(self):
        manager = BagSessionManager(rng=ScriptedRandomSource([0]))
        runner = HeadlessRunner(manager, output=io.StringIO(), emit_events=False)
        result = runner.handle_command({"cmd": "draw"})
        assert result["drawn"] == {"token": "W", "during_risk": False}
        assert result["state"]["draws_made"] == 1

    def test_draw_when_exhausted(self, runner):
        for _ in range(4):
            runner.handle_command({"cmd": "draw"})
        result = runner.handle_command({"cmd": "draw"})
        assert result["ok"] is True
        assert result["drawn"] is None

    def test_risk_and_spend(self):
        manager = BagSessionManager(rng=ScriptedRandomSource([5, 4, 3, 0]))
        runner = HeadlessRunner(manager, output=io.StringIO(), emit_events=False)
        assert runner.handle_command({"cmd": "risk"})["activated"] is False
        for _ in range(4):
            runner.handle_command({"cmd": "draw"})
        assert runner.handle_command({"cmd": "risk"})["activated"] is True

        result = runner.handle_command({"cmd": "spend", "effect": "adrenaline"})
        assert result["spent"] is True
        assert result["state"]["claimed"] == ["adrenaline"]
        assert runner.handle_command({"cmd": "spend", "effect": "adrenaline"})["spent"] is False

    def test_confuse_hides_bag(self, runner):
        assert runner.handle_command({"cmd": "confuse"})["armed"] is True
        result = runner.handle_command({"cmd": "start"})
        assert result["state"]["bag_hidden"] is True
        assert result["state"]["remaining"] is None

    @pytest.mark.parametrize("armed,expected", [
        ("false", False),
        ("off", False),
        (False, False),
        ("true", True),
        (1, True),
    ])
    def test_confuse_flag_parsing(self, runner, armed, expected):
        result = runner.handle_command({"cmd": "confuse", "armed": armed})
        assert result["armed"] is expected
        assert result["state"]["confusion_pending"] is expected

    def test_odds(self, runner):
        result = runner.handle_command({"cmd": "odds"})
        assert result["success"] == 1.0
        assert result["expected_successes"] == 2.0
        assert result["expected_complications"] == 2.0
        assert set(result["distribution"]) == {"1", "2", "3"}

    def test_reset(self, runner):
        runner.handle_command({"cmd": "configure", "trait_count": 0})
        result = runner.handle_command({"cmd": "reset"})
        assert result["state"]["preview_white"] == 3

    def test_quit(self, runner):
        assert runner.handle_command({"cmd": "quit"}) == {"ok": True, "action": "quit"}


class TestRun:

    def test_ready_then_responses(self, runner, output):
        runner.run(['{"cmd": "draw"}', "", '{"cmd": "quit"}', '{"cmd": "draw"}'])
        lines = _lines(output)

        assert lines[0]["type"] == "ready"
        assert [l["type"] for l in lines[1:]] == ["response", "response"]
        assert lines[-1]["action"] == "quit"

    def test_invalid_input(self, runner, output):
        runner.run(["not json", "[1]"])
        lines = _lines(output)
        assert lines[1]["ok"] is False
        assert lines[1]["error"].startswith("Invalid JSON")
        assert lines[2]["error"] == "Expected a JSON object"

    def test_events_are_streamed(self, manager, output):
        runner = HeadlessRunner(manager, output=output)
        runner.run(['{"cmd": "draw"}'])
        lines = _lines(output)

        events = [l for l in lines if l["type"] == "event"]
        assert events[0]["event_type"] == "token.drawn"
        assert events[0]["test_number"] == 1
        # The event precedes the response that caused it
        assert lines.index(events[0]) < next(i for i, l in enumerate(lines) if l["type"] == "response")
