"""
Headless runner for the token bag.

Provides JSON I/O interface for programmatic control.
Input: JSON commands via stdin, one per line
Output: JSON responses and events via stdout, one per line

This lets another process (a web or desktop front end, a test harness)
drive a session without the terminal UI.
"""

import json
import logging
import sys
from typing import Iterable, TextIO

from ..state.event_bus import GameEvent
from ..state.manager import BagSessionManager
from ..tools.odds import (
    expected_complications,
    expected_successes,
    outcome_distribution,
    success_probability,
)

logger = logging.getLogger(__name__)


class HeadlessRunner:
    """
    Headless token bag runner with JSON I/O.

    Commands are read as JSON objects.
    Events and responses are written to the output as JSON.
    """

    def __init__(
        self,
        manager: BagSessionManager | None = None,
        output: TextIO | None = None,
        emit_events: bool = True,
    ):
        self.manager = manager or BagSessionManager()
        self.output = output or sys.stdout
        if emit_events:
            self.manager.bus.on_all(self._emit_event)

    def _emit_event(self, event: GameEvent):
        """Emit a session event as JSON."""
        self._write_json({
            "type": "event",
            "event_type": event.type.value,
            "data": event.data,
            "test_number": event.test_number,
            "timestamp": event.timestamp.isoformat(),
        })

    def _write_json(self, obj: dict):
        """Write a JSON object to output followed by newline."""
        json.dump(obj, self.output)
        self.output.write("\n")
        self.output.flush()

    def handle_command(self, cmd: dict) -> dict:
        """
        Handle a JSON command.

        Commands:
            {"cmd": "status"} - Current snapshot
            {"cmd": "configure", "trait_count": 2, ...} - Change setup
            {"cmd": "start"} - Start a new test
            {"cmd": "redo"} - Restart the current test
            {"cmd": "draw"} - Draw one token
            {"cmd": "risk"} - Activate risk
            {"cmd": "spend", "effect": "adrenaline"} - Spend a black token
            {"cmd": "confuse", "armed": true} - Arm/disarm confusion
            {"cmd": "odds"} - Exact odds for the next test
            {"cmd": "reset"} - Restore defaults
            {"cmd": "quit"} - Exit

        Returns:
            Response dict
        """
        cmd_type = cmd.get("cmd", "")

        if cmd_type == "status":
            return self._ok()
        elif cmd_type == "configure":
            return self._cmd_configure(cmd)
        elif cmd_type == "start":
            self.manager.start_test()
            return self._ok()
        elif cmd_type == "redo":
            self.manager.reset_test()
            return self._ok()
        elif cmd_type == "draw":
            entry = self.manager.draw()
            return self._ok(
                drawn=entry.model_dump(mode="json") if entry else None,
            )
        elif cmd_type == "risk":
            return self._ok(activated=self.manager.activate_risk())
        elif cmd_type == "spend":
            return self._ok(spent=self.manager.spend(cmd.get("effect", "")))
        elif cmd_type == "confuse":
            return self._ok(armed=self.manager.arm_confusion(cmd.get("armed", True)))
        elif cmd_type == "odds":
            return self._cmd_odds()
        elif cmd_type == "reset":
            self.manager.reset_all()
            return self._ok()
        elif cmd_type == "quit":
            return {"ok": True, "action": "quit"}
        else:
            return {"ok": False, "error": f"Unknown command: {cmd_type}"}

    def _ok(self, **extra) -> dict:
        return {
            "ok": True,
            **extra,
            "state": self.manager.snapshot().model_dump(mode="json"),
        }

    def _cmd_configure(self, cmd: dict) -> dict:
        """Apply any setup fields present in the command."""
        m = self.manager
        if "trait_count" in cmd:
            m.set_traits(cmd["trait_count"])
        if "difficulty_id" in cmd:
            m.set_difficulty(cmd["difficulty_id"])
        if "black_override" in cmd or "manual_blacks" in cmd:
            m.set_black_override(
                cmd.get("black_override", m.config.black_override),
                cmd.get("manual_blacks"),
            )
        if "base_draw_limit" in cmd:
            m.set_draw_limit(cmd["base_draw_limit"])
        return self._ok(config=m.config.model_dump(mode="json"))

    def _cmd_odds(self) -> dict:
        white, black = self.manager.preview()
        draws = self.manager.config.base_draw_limit
        return {
            "ok": True,
            "white": white,
            "black": black,
            "draws": draws,
            "success": float(success_probability(white, black, draws)),
            "expected_successes": float(expected_successes(white, black, draws)),
            "expected_complications": float(expected_complications(white, black, draws)),
            "distribution": {
                str(w): float(p) for w, p in outcome_distribution(white, black, draws).items()
            },
        }

    def run(self, lines: Iterable[str] | None = None) -> None:
        """Process commands until quit or end of input (stdin by default)."""
        if lines is None:
            lines = sys.stdin
        self._write_json({"type": "ready", "state": self.manager.snapshot().model_dump(mode="json")})

        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                cmd = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Invalid JSON received: %s", line[:100])
                self._write_json({"type": "response", "ok": False, "error": f"Invalid JSON: {e}"})
                continue
            if not isinstance(cmd, dict):
                self._write_json({"type": "response", "ok": False, "error": "Expected a JSON object"})
                continue

            result = self.handle_command(cmd)
            self._write_json({"type": "response", **result})
            if result.get("action") == "quit":
                break
