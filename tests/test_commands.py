"""Tests for the command registry, CLI handlers and glyphs."""

import json

import pytest

from tokenbag.interface import glyphs
from tokenbag.interface.cli import build_manager, build_parser
from tokenbag.interface.command_registry import (
    Command,
    CommandCategory,
    create_completer,
    get_registry,
    register_command,
)
from tokenbag.interface.commands import (
    cmd_ascii,
    cmd_confuse,
    cmd_difficulty,
    cmd_draw,
    cmd_limit,
    cmd_odds,
    cmd_override,
    cmd_quit,
    cmd_save,
    cmd_spend,
    cmd_traits,
    create_commands,
    register_all_commands,
)
from tokenbag.interface.config import CONFIG_FILENAME, load_config
from tokenbag.interface.renderer import console, render_snapshot
from tokenbag.state.manager import BagSessionManager
from tokenbag.state.schema import DrawnToken, Token
from tokenbag.tools.rng import ScriptedRandomSource, SeededRandomSource


@pytest.fixture
def commands(registry):
    """All bag commands registered on a fresh registry."""
    register_all_commands()
    return get_registry()


class TestRegistry:

    def test_all_commands_registered(self, registry):
        handlers = create_commands()
        for name in ("/new", "/redo", "/draw", "/d", "/risk", "/spend", "/confuse",
                     "/traits", "/difficulty", "/override", "/limit", "/odds",
                     "/status", "/help", "/?", "/save", "/ascii", "/reset",
                     "/quit", "/exit", "/q"):
            assert name in handlers

    def test_aliases_share_a_command(self, commands):
        assert commands.get("/d") is commands.get("/draw")
        assert "/q" in commands
        assert [c.name for c in commands.all_commands()].count("/draw") == 1

    def test_register_twice_is_harmless(self, commands):
        count = len(commands.all_commands())
        register_all_commands()
        assert len(get_registry().all_commands()) == count

    def test_by_category_sorted(self, commands):
        setup = commands.by_category()[CommandCategory.SETUP]
        assert [c.name for c in setup] == ["/difficulty", "/limit", "/override", "/traits"]

    def test_synopsis(self, commands):
        assert commands.get("/draw").synopsis == "/draw [count]"
        assert commands.get("/new").synopsis == "/new"

    def test_command_defaults_to_available(self, manager):
        cmd = Command(name="/x", description="", category=CommandCategory.INFO)
        assert cmd.is_available(manager)


class TestAutocorrect:
    """Mistyped names resolve to a bag command when unambiguous."""

    def test_known_name_untouched(self, commands):
        assert commands.autocorrect("/draw") == ("/draw", None)
        assert commands.autocorrect("/d") == ("/d", None)

    def test_unique_prefix(self, commands):
        assert commands.autocorrect("/dra") == ("/draw", "Autocorrected to /draw")
        assert commands.autocorrect("/ov") == ("/override", "Autocorrected to /override")

    def test_ambiguous_prefix_not_guessed(self, commands):
        name, message = commands.autocorrect("/re")
        assert name == "/re"
        assert "/redo" in message and "/reset" in message

    def test_misspelling(self, commands):
        assert commands.autocorrect("/drwa") == ("/draw", "Autocorrected to /draw")
        assert commands.autocorrect("/trait") == ("/traits", "Autocorrected to /traits")

    def test_nothing_close(self, commands):
        assert commands.autocorrect("/zzz") == ("/zzz", None)


class TestAvailability:
    """Completion and availability follow the running test."""

    def test_fresh_test(self, commands, manager):
        names = {c.name for c in commands.available_commands(manager)}
        assert "/draw" in names
        assert "/risk" not in names
        assert "/spend" not in names

    def test_after_base_draws(self, commands, manager):
        for _ in range(4):
            manager.draw()
        names = {c.name for c in commands.available_commands(manager)}
        assert "/draw" not in names
        assert "/risk" in names

    def test_spend_hidden_once_both_effects_claimed(self, commands):
        # B, B
        manager = BagSessionManager(rng=ScriptedRandomSource([5, 4]))
        manager.draw()
        manager.draw()
        assert commands.get("/spend").is_available(manager)
        manager.spend("adrenaline")
        assert commands.get("/spend").is_available(manager)
        manager.spend("confusion")
        assert not commands.get("/spend").is_available(manager)

    def test_complete_by_prefix(self, commands, manager):
        assert [c.name for c in commands.complete("/d")] == ["/difficulty", "/draw"]
        assert [c.name for c in commands.complete("r")] == ["/redo", "/reset", "/risk"]
        assert [c.name for c in commands.complete("/r", manager)] == ["/redo", "/reset"]

    def test_completer_yields_available_names(self, commands, manager):
        from prompt_toolkit.document import Document

        completer = create_completer(lambda: manager)
        names = [c.text for c in completer.get_completions(Document("/r"), None)]
        assert names == ["/redo", "/reset"]
        assert list(completer.get_completions(Document("/draw 2"), None)) == []

    def test_register_custom_command(self, registry, manager):
        register_command("/roll", "Extra", CommandCategory.INFO, lambda m, a: None, aliases=["/ro"])
        assert get_registry().get("/ro").name == "/roll"


class TestHandlers:
    """Handlers drive the manager and print through the shared console."""

    def test_draw_count(self, manager):
        with console.capture() as capture:
            cmd_draw(manager, ["3"])
        assert manager.session.draws_made == 3
        assert "Drew" in capture.get()

    def test_draw_bad_argument(self, manager):
        with console.capture() as capture:
            cmd_draw(manager, ["lots"])
        assert manager.session.draws_made == 0
        assert "Usage" in capture.get()

    def test_draw_stops_at_limit(self, manager):
        with console.capture():
            cmd_draw(manager, ["10"])
        assert manager.session.draws_made == 4

    def test_setup_commands(self, manager):
        with console.capture():
            cmd_traits(manager, ["7"])
            cmd_difficulty(manager, ["quasi", "impossibile"])
            cmd_limit(manager, ["2"])
        assert manager.config.trait_count == 7
        assert manager.config.difficulty_id == "quasi_impossibile"
        assert manager.config.base_draw_limit == 2

    def test_unknown_difficulty_warns(self, manager):
        with console.capture() as capture:
            cmd_difficulty(manager, ["brutal"])
        assert "Unknown tier" in capture.get()
        assert manager.config.difficulty_id == "normale"

    def test_difficulty_lists_tiers(self, manager):
        with console.capture() as capture:
            cmd_difficulty(manager, [])
        assert "facilissima" in capture.get()

    def test_override_on_and_off(self, manager):
        with console.capture():
            cmd_override(manager, ["0"])
        assert manager.preview() == (3, 0)
        with console.capture():
            cmd_override(manager, ["off"])
        assert manager.preview() == (3, 3)

    def test_spend(self):
        manager = BagSessionManager(rng=ScriptedRandomSource([5]))
        manager.draw()
        with console.capture() as capture:
            cmd_spend(manager, ["adrenaline"])
            cmd_spend(manager, ["adrenaline"])
        assert manager.session.complications == 0
        assert "already claimed" in capture.get()

    def test_spend_needs_effect(self, manager):
        with console.capture() as capture:
            cmd_spend(manager, [])
        assert "adrenaline, confusion" in capture.get()

    def test_confuse_toggle(self, manager):
        with console.capture():
            cmd_confuse(manager, [])
        assert manager.modifiers.confusion_pending
        with console.capture():
            cmd_confuse(manager, ["off"])
        assert not manager.modifiers.confusion_pending

    def test_odds(self, manager):
        with console.capture() as capture:
            cmd_odds(manager, [])
        assert "100.0%" in capture.get()
        assert "Expected per test: 2.00 white, 2.00 black" in capture.get()

    def test_quit(self, manager):
        assert cmd_quit(manager, []) == "quit"


class TestPreferences:
    """/save and /ascii write the preferences file."""

    @pytest.fixture(autouse=True)
    def restore_unicode(self):
        yield
        glyphs.set_unicode(True)

    def test_save_current_setup(self, manager, tmp_path):
        manager.set_traits(5)
        manager.set_difficulty("difficile")
        manager.set_draw_limit(2)
        with console.capture() as capture:
            cmd_save(manager, [], config_dir=tmp_path)

        saved = json.loads((tmp_path / CONFIG_FILENAME).read_text())
        assert saved["default_traits"] == 5
        assert saved["default_difficulty"] == "difficile"
        assert saved["default_draw_limit"] == 2
        assert "5 white + 4 black" in capture.get()

    def test_saved_setup_starts_next_session(self, manager, tmp_path):
        manager.set_traits(1)
        with console.capture():
            cmd_save(manager, [], config_dir=tmp_path)

        args = build_parser().parse_args(["--config-dir", str(tmp_path), "--seed", "1"])
        assert build_manager(args).snapshot().white_remaining == 1

    def test_ascii_toggle_is_saved(self, manager, tmp_path):
        with console.capture():
            cmd_ascii(manager, [], config_dir=tmp_path)
        assert load_config(tmp_path)["ascii_glyphs"] is True
        assert glyphs.g("white") == "W"

        with console.capture():
            cmd_ascii(manager, ["off"], config_dir=tmp_path)
        assert load_config(tmp_path)["ascii_glyphs"] is False
        assert glyphs.g("white") == "○"

    def test_bound_handlers_use_config_dir(self, registry, manager, tmp_path):
        handlers = create_commands(tmp_path)
        with console.capture():
            handlers["/save"](manager, [])
        assert (tmp_path / CONFIG_FILENAME).exists()


class TestGlyphs:

    @pytest.fixture(autouse=True)
    def restore_unicode(self):
        yield
        glyphs.set_unicode(True)

    def test_ascii_fallback(self):
        glyphs.set_unicode(False)
        assert glyphs.g("white") == "W"
        assert glyphs.g("black") == "B"
        assert glyphs.g("nonexistent") == "?"

    def test_token_glyph_marks_risk(self):
        glyphs.set_unicode(False)
        assert glyphs.token_glyph(DrawnToken(token=Token.BLACK, during_risk=True)) == "B!"
        assert glyphs.token_glyph(Token.WHITE) == "W"

    def test_draw_meter(self):
        glyphs.set_unicode(False)
        assert glyphs.draw_meter(2, 4) == "##--"
        assert glyphs.draw_meter(4, 5, base_limit=4) == "####^"

    def test_same_keys_in_both_sets(self):
        assert set(glyphs.GLYPHS_UNICODE) == set(glyphs.GLYPHS_ASCII)


class TestRendering:

    def test_hidden_bag_shows_no_counts(self):
        manager = BagSessionManager(rng=ScriptedRandomSource([0, 1, 1]))
        manager.arm_confusion()
        manager.start_test()
        with console.capture() as capture:
            console.print(render_snapshot(manager.snapshot()))
        text = capture.get()
        assert "hidden" in text
        assert "left)" not in text


class TestCli:

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.headless is False
        assert args.seed is None

    def test_build_manager_uses_saved_defaults(self, tmp_path):
        (tmp_path / ".tokenbag_config.json").write_text('{"default_traits": 5}')
        args = build_parser().parse_args(["--config-dir", str(tmp_path), "--seed", "3"])
        manager = build_manager(args)
        assert isinstance(manager.rng, SeededRandomSource)
        assert manager.snapshot().white_remaining == 5
