"""Text-mode driver that plays levels in a terminal."""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
import time
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, TextIO

from .catalog import WORLDS
from .config import Settings
from .engine import LearningEngine
from .events import GameEvent
from .schemas import ActivityType, LevelView


CHOICE_KEYS = "abcdefgh"
HIDDEN_CARD = "❓"


def _to_payload(value: Any) -> Any:
    if is_dataclass(value):
        return _to_payload(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _to_payload(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_payload(item) for item in value]
    return value


def render(view: LevelView) -> str:
    activity = view.activity
    lines = [f"{WORLDS[view.world].emoji} {WORLDS[view.world].name} - Level {view.level}"]
    kind = view.activity_type

    if kind is ActivityType.MEMORY_MATCH:
        revealed = {position for pair in view.matched for position in pair}
        cards = activity.payload["cards"]
        lines.append(activity.prompt)
        lines.append(
            " ".join(
                f"{index}:{card if index in revealed else HIDDEN_CARD}"
                for index, card in enumerate(cards)
            )
        )
        lines.append("Flip two cards, e.g. '0 5'")
    elif kind is ActivityType.SHAPE_MATCH:
        placed = {piece for piece, _ in view.matched}
        filled = {slot for _, slot in view.matched}
        lines.append(activity.prompt)
        lines.append(
            "Pieces: "
            + ", ".join(
                f"{index}={piece['shape']}"
                for index, piece in enumerate(activity.payload["pieces"])
                if piece["id"] not in placed
            )
        )
        lines.append(
            "Slots:  "
            + ", ".join(
                f"{index}=[{slot['shape']}]"
                for index, slot in enumerate(activity.payload["slots"])
                if slot["id"] not in filled
            )
        )
        lines.append("Drop a piece into a slot, e.g. '0 2'")
    elif kind is ActivityType.ART_RECREATE:
        lines.append(activity.prompt)
        lines.append("Target:")
        lines.extend("  " + "".join(row) for row in activity.answer)
        lines.append("Canvas:")
        lines.extend("  " + "".join(row) for row in view.canvas or ())
        palette = activity.payload["palette"]
        lines.append("Palette: " + " ".join(f"{index}={color}" for index, color in enumerate(palette)))
        lines.append("Paint a cell with 'row col color', e.g. '0 1 0'")
    else:
        lines.append(f"Question {view.question_number} of {view.total_questions}")
        lines.append(activity.prompt)
        if kind is ActivityType.WORD_UNSCRAMBLE:
            lines.append(f"Hint: {activity.payload['hint']}")
        if kind is ActivityType.COUNT_LEARN:
            lines.append("".join(activity.payload["objects"]))
        if kind is ActivityType.COLOR_MATCH:
            lines.append(f"Color: {activity.payload['target_hex']}")
        for key, option in zip(CHOICE_KEYS, activity.options):
            lines.append(f"  {key}) {option}")
    return "\n".join(lines)


def parse_response(view: LevelView, line: str) -> Any:
    """Turn a typed line into the answer shape the current activity expects."""

    text = line.strip()
    kind = view.activity_type
    activity = view.activity
    parts = text.split()

    if kind is ActivityType.MEMORY_MATCH:
        return parts
    if kind is ActivityType.SHAPE_MATCH:
        pieces = activity.payload["pieces"]
        slots = activity.payload["slots"]
        try:
            piece, slot = (int(part) for part in parts)
        except ValueError:
            return parts
        if not (0 <= piece < len(pieces) and 0 <= slot < len(slots)):
            return parts
        return (pieces[piece]["id"], slots[slot]["id"])
    if activity.options and len(text) == 1 and text.lower() in CHOICE_KEYS[: len(activity.options)]:
        return activity.options[CHOICE_KEYS.index(text.lower())]
    return text


def _paint(engine: LearningEngine, view: LevelView, line: str):
    palette = view.activity.payload["palette"]
    try:
        row, col, color = (int(part) for part in line.split())
    except ValueError:
        return None
    if not 0 <= color < len(palette):
        return None
    return engine.paint_cell(row, col, palette[color])


def play(engine: LearningEngine, world: str, level: int, stdin: TextIO, stdout: TextIO, pace: bool = False) -> int:
    view = engine.start_level(world, level)
    if view is None:
        print(f"Level content coming soon! (unknown world {world!r})", file=stdout)
        return 1
    print(view.dialogue, file=stdout)

    while view is not None:
        print(render(view), file=stdout)
        stdout.flush()
        line = stdin.readline()
        if not line or line.strip().lower() in {"q", "quit"}:
            engine.leave_level()
            print("See you next time!", file=stdout)
            return 0

        if view.activity_type is ActivityType.ART_RECREATE:
            feedback = _paint(engine, view, line)
            if feedback is None:
                print("Type three numbers: row, column and palette color.", file=stdout)
                continue
        else:
            feedback = engine.submit_answer(parse_response(view, line))
            if view.activity_type is ActivityType.MEMORY_MATCH:
                cards = view.activity.payload["cards"]
                parts = line.split()
                if len(parts) == 2 and all(part.isdigit() and int(part) < len(cards) for part in parts):
                    print("You flipped " + " ".join(cards[int(part)] for part in parts), file=stdout)
        print(feedback.feedback_text, file=stdout)

        due = engine.scheduler.next_due()
        if due is not None:
            if pace:
                time.sleep(max(0.0, due - engine.scheduler.clock()))
            engine.pump(due)
        view = engine.current_activity()

    result = engine.last_result
    if result is not None:
        print(f"Level complete! {'⭐' * result.stars}", file=stdout)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play Shibu Kuttan's learning worlds in the terminal")
    parser.add_argument("--database", help="Path to SQLite database override")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    commands = parser.add_subparsers(dest="command", required=True)

    play_parser = commands.add_parser("play", help="Play one level")
    play_parser.add_argument("world", help=f"World to enter ({', '.join(WORLDS)})")
    play_parser.add_argument("--level", type=int, default=1, help="Level number (default: 1)")
    play_parser.add_argument("--seed", type=int, help="Seed for reproducible questions")
    play_parser.add_argument("--pace", action="store_true", help="Wait out feedback delays")

    commands.add_parser("progress", help="Print saved progress as JSON")
    commands.add_parser("reset", help="Clear saved progress")
    return parser


def main(argv: Optional[list[str]] = None, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    args = build_parser().parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.load()
    if args.database:
        settings.database_path = Path(args.database)

    seed = getattr(args, "seed", None)
    engine = LearningEngine(settings=settings, rng=random.Random(seed) if seed is not None else None)

    def announce(event: GameEvent, payload: dict) -> None:
        if event is GameEvent.BADGE_EARNED:
            print(f"🏅 New badge! {payload['name']}: {payload['description']}", file=stdout)

    engine.events.subscribe(announce)

    if args.command == "play":
        return play(engine, args.world, args.level, stdin, stdout, pace=args.pace)
    if args.command == "reset":
        engine.reset_progress()
        print("Progress cleared.", file=stdout)
        return 0

    payload = {
        "progress": _to_payload(engine.get_progress()),
        "badges": engine.badge_board(),
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2), file=stdout)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
