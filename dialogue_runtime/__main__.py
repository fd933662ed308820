"""
Command-line tools for dialogue documents.

Usage:
    python -m dialogue_runtime validate data/dialogues/*.json
    python -m dialogue_runtime compile scripts/mayor.dialogue -o data/dialogues/mayor.json
    python -m dialogue_runtime play data/dialogues/mayor.json --set met_mayor=1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from dialogue_runtime.core.events import DialogueEvent, Event
from dialogue_runtime.dialogue.conditions import DictVariableStore
from dialogue_runtime.dialogue.errors import DialogueError, DialogueLoadError
from dialogue_runtime.dialogue.manager import DialogueManager
from dialogue_runtime.dialogue.parser import ScriptSyntaxError, compile_script_file
from dialogue_runtime.dialogue.repository import (
    DialogueRepository,
    DirectoryStore,
    reference_warnings,
)

logger = logging.getLogger("dialogue_runtime")


def validate_files(paths: list[Path], out: Optional[TextIO] = None) -> int:
    """Load each document and report problems; returns the failure count."""
    out = out or sys.stdout
    failures = 0
    for path in paths:
        repository = DialogueRepository(DirectoryStore(path.parent, path.suffix))
        try:
            document = repository.load(path.stem)
        except DialogueLoadError as e:
            failures += 1
            print(f"FAIL {path}: {e.message}", file=out)
            continue

        print(f"PASS {path}: {len(document.nodes)} nodes", file=out)
        for warning in reference_warnings(document):
            print(f"  warning: {warning}", file=out)
    return failures


def _parse_assignments(pairs: list[str]) -> dict[str, object]:
    values: dict[str, object] = {}
    for pair in pairs:
        name, sep, raw = pair.partition('=')
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"expected name=value, got {pair!r}")
        try:
            values[name.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            values[name.strip()] = raw
    return values


class _ConsoleSink:
    def __init__(self, out: TextIO):
        self.out = out

    def dispatch(self, command_name: str, argument: str) -> None:
        print(f"  [{command_name}] {argument}", file=self.out)


def play_file(
    path: Path,
    variables: Optional[dict[str, object]] = None,
    inp: Optional[TextIO] = None,
    out: Optional[TextIO] = None,
) -> int:
    """Play a document in the terminal; options are picked by number."""
    inp = inp or sys.stdin
    out = out or sys.stdout
    manager = DialogueManager(
        DialogueRepository(DirectoryStore(path.parent, path.suffix)),
        variables=DictVariableStore(variables),
    )
    manager.commands.sink = _ConsoleSink(out)

    def on_node(event: Event) -> None:
        node = event["node"]
        speaker = f"{node.speaker}: " if node.speaker else ""
        print(f"{speaker}{node.text or ''}", file=out)

    def on_options(event: Event) -> None:
        for i, option in enumerate(event["options"], start=1):
            suffix = f" (unavailable: {option.disabled_reason})" if option.disabled else ""
            print(f"  {i}. {option.text}{suffix}", file=out)

    manager.subscribe(DialogueEvent.NODE_SHOWN, on_node)
    manager.subscribe(DialogueEvent.OPTIONS_SHOWN, on_options)

    if not manager.start(path.stem):
        print(f"Could not start {path}", file=out)
        return 1

    while manager.is_playing:
        if not manager.is_awaiting_choice:
            manager.skip_current_node()
            continue

        line = inp.readline()
        if not line:
            manager.end()
            break
        try:
            manager.select_option(int(line.strip()) - 1)
        except ValueError:
            print("  enter an option number", file=out)
        except DialogueError as e:
            print(f"  {e}", file=out)

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dialogue_runtime", description=__doc__.splitlines()[1])
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="check dialogue documents")
    validate.add_argument("files", nargs="+", type=Path)

    compile_ = sub.add_parser("compile", help="compile a dialogue script to JSON")
    compile_.add_argument("script", type=Path)
    compile_.add_argument("-o", "--output", type=Path, default=None)

    play = sub.add_parser("play", help="play a dialogue document in the terminal")
    play.add_argument("file", type=Path)
    play.add_argument("--set", dest="assignments", action="append", default=[],
                      metavar="NAME=VALUE", help="initial variable value")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        return 1 if validate_files(args.files) else 0

    if args.command == "compile":
        try:
            output = compile_script_file(args.script, args.output)
        except (OSError, ScriptSyntaxError) as e:
            logger.error(f"Compile failed: {e}")
            return 1
        print(f"Compiled {args.script} -> {output}")
        return 0

    try:
        variables = _parse_assignments(args.assignments)
    except argparse.ArgumentTypeError as e:
        logger.error(str(e))
        return 2
    return play_file(args.file, variables)


if __name__ == "__main__":
    sys.exit(main())
