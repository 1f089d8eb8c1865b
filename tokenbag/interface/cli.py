"""
Command-line interface for the token bag.

Main entry point and REPL loop. With --headless, runs the JSON-lines
runner instead of the interactive prompt.
"""

import argparse
import logging
from pathlib import Path

from prompt_toolkit import prompt as pt_prompt
from rich.markup import escape

from ..state.manager import BagSessionManager
from ..tools.rng import SeededRandomSource, SystemRandomSource
from .command_registry import create_completer, get_registry
from .commands import create_commands
from .config import load_config, rule_config_from
from .glyphs import set_unicode
from .headless import HeadlessRunner
from .renderer import THEME, console, pt_style, show_banner, show_status

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Token bag - draw-without-replacement test resolver")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Read JSON commands from stdin, write JSON to stdout",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Plain ASCII glyphs for basic terminals",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed a deterministic random source (for replays)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("."),
        help="Directory holding .tokenbag_config.json",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )
    return parser


def build_manager(args: argparse.Namespace) -> BagSessionManager:
    """Create a session manager from saved preferences and CLI flags."""
    config = load_config(args.config_dir)
    if args.seed is not None or not config.get("secure_random", True):
        rng = SeededRandomSource(args.seed)
        logger.info("Using seeded random source (seed=%s)", args.seed)
    else:
        rng = SystemRandomSource()
    if args.ascii or config.get("ascii_glyphs", False):
        set_unicode(False)
    return BagSessionManager(rng=rng, config=rule_config_from(config))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    manager = build_manager(args)

    if args.headless:
        HeadlessRunner(manager).run()
        return 0

    commands = create_commands(args.config_dir)
    registry = get_registry()
    completer = create_completer(lambda: manager)

    show_banner()
    show_status(manager)
    console.print(f"[{THEME['dim']}]Type /help for commands.[/{THEME['dim']}]\n")

    while True:
        try:
            user_input = pt_prompt(
                "> ",
                completer=completer,
                style=pt_style,
                complete_while_typing=True,
            ).strip()
        except (EOFError, KeyboardInterrupt):
            break

        if not user_input:
            continue

        if not user_input.startswith("/"):
            console.print(f"[{THEME['dim']}]Commands start with /. Try /draw or /help.[/{THEME['dim']}]")
            continue

        parts = user_input.split()
        cmd, correction = registry.autocorrect(parts[0].lower())
        if correction:
            console.print(f"[{THEME['dim']}]{escape(correction)}[/{THEME['dim']}]")

        handler = commands.get(cmd)
        if handler is None:
            if correction:
                continue
            console.print(f"[{THEME['warning']}]Unknown command: {escape(cmd)}[/{THEME['warning']}]")
            continue

        if handler(manager, parts[1:]) == "quit":
            break

    console.print(f"[{THEME['dim']}]Bag closed.[/{THEME['dim']}]")
    return 0
