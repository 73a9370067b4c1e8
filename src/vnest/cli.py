"""
Command-line interface for inspecting word data and playing in a terminal.
"""
from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Optional

from vnest import __version__
from vnest.config import load_config
from vnest.exceptions import ConfigError, SeedError, StorageError
from vnest.game import Game
from vnest.models import AdvanceOutcome, ExerciseState, Feedback, Phase, Word, WordType
from vnest.scheduler import ManualScheduler

_WORD_TYPES = {
    "agents": WordType.AGENT,
    "verbs": WordType.VERB,
    "patients": WordType.PATIENT,
}


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the vnest CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        game = Game.open(
            config,
            scheduler=ManualScheduler(),
            rng=random.Random(args.seed) if args.seed is not None else None,
        )
    except (ConfigError, SeedError, StorageError) as e:
        print(f"[ERROR] {e}")
        return 1

    with game:
        return args.func(game, args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="vnest",
        description="Sentence-building word game: agents, verbs and patients",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: warning)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible exercises",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # seed command
    seed_parser = subparsers.add_parser(
        "seed",
        help="Load bundled word data into the store",
    )
    seed_parser.add_argument(
        "--reload",
        action="store_true",
        help="Clear stored word data and seed again",
    )
    seed_parser.set_defaults(func=cmd_seed)

    # words command
    words_parser = subparsers.add_parser(
        "words",
        help="List words of one type",
    )
    words_parser.add_argument(
        "kind",
        choices=sorted(_WORD_TYPES),
        help="Word collection to list",
    )
    words_parser.set_defaults(func=cmd_words)

    # sets command
    sets_parser = subparsers.add_parser(
        "sets",
        help="List word sets and their verbs",
    )
    sets_parser.set_defaults(func=cmd_sets)

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check whether a sentence fits",
    )
    check_parser.add_argument("subject", help="Agent word, e.g. Äiti")
    check_parser.add_argument("verb", help="Verb word, e.g. Syö")
    check_parser.add_argument("object", help="Patient word, e.g. omenaa")
    check_parser.set_defaults(func=cmd_check)

    # bundle command
    bundle_parser = subparsers.add_parser(
        "bundle",
        help="Show the cards of one exercise for a verb",
    )
    bundle_parser.add_argument("verb", help="Verb id or word")
    bundle_parser.set_defaults(func=cmd_bundle)

    # play command
    play_parser = subparsers.add_parser(
        "play",
        help="Play in the terminal",
    )
    play_parser.add_argument(
        "--set",
        type=int,
        default=None,
        dest="set_id",
        help="Start from this set",
    )
    play_parser.set_defaults(func=cmd_play)

    return parser


def cmd_seed(game: Game, args: argparse.Namespace) -> int:
    """Handle seed command."""
    repository = game.repository
    ok = repository.reload() if args.reload else repository.seed_if_needed()
    if not ok:
        print("[ERROR] No word data available")
        return 1
    print(f"\nWord data ({game.store.name} store):")
    for collection, count in repository.counts().items():
        print(f"  {collection:<10} {count}")
    return 0


def cmd_words(game: Game, args: argparse.Namespace) -> int:
    """Handle words command."""
    words = game.repository.get_all(_WORD_TYPES[args.kind])
    if not words:
        print(f"No {args.kind} found.")
        return 1
    for word in words:
        print(f"{word.id:>4}  {word.value}")
    return 0


def cmd_sets(game: Game, args: argparse.Namespace) -> int:
    """Handle sets command."""
    for set_id in game.sets.ids():
        word_set = game.sets.get(set_id)
        verbs = [game.repository.get_by_id(WordType.VERB, v) for v in word_set.verb_ids]
        names = ", ".join(v.value for v in verbs if v is not None)
        print(f"{word_set.id:>3}  {word_set.name:<10} {names}")
    return 0


def cmd_check(game: Game, args: argparse.Namespace) -> int:
    """Handle check command."""
    fits = game.combinations.is_correct_words(args.subject, args.verb, args.object)
    print(f"{'✅' if fits else '❌'} {args.subject} {args.verb.lower()} {args.object}")
    return 0 if fits else 1


def cmd_bundle(game: Game, args: argparse.Namespace) -> int:
    """Handle bundle command."""
    verb = _resolve_verb(game, args.verb)
    if verb is None:
        print(f"Verb {args.verb!r} not found.")
        return 1
    bundle = game.combinations.word_bundle_for_verb(verb.id)
    if bundle is None:
        print(f"Verb {verb.value!r} has no exercises.")
        return 1
    print(f"\n{bundle.verb.value}")
    for agent, patient in zip(bundle.agents, bundle.patients):
        print(f"  {agent.value:<14} {patient.value}")
    return 0


def _resolve_verb(game: Game, text: str) -> Word | None:
    if text.isdigit():
        return game.repository.get_by_id(WordType.VERB, int(text))
    return game.repository.find_by_value(WordType.VERB, text)


def cmd_play(game: Game, args: argparse.Namespace) -> int:
    """Handle play command."""
    session = game.session
    scheduler: ManualScheduler = session.scheduler  # type: ignore[assignment]
    session.start()
    if args.set_id is not None and not session.set_current_set(args.set_id):
        print(f"Set {args.set_id} not found.")
        return 1

    while True:
        state = session.state
        if state.phase is Phase.ERROR:
            print(f"\n[ERROR] {state.error}")
            if _ask("Retry? [y/N] ").lower() not in ("y", "yes"):
                return 1
            session.retry()
            continue

        if state.phase is Phase.PLAYING:
            _print_exercise(state)
            answer = _ask("Pick subject and object (e.g. '1 2'), q to quit: ")
            if answer.lower() == "q":
                return 0
            picks = _parse_picks(answer, len(state.subjects), len(state.objects))
            if picks is None:
                print("Give two card numbers.")
                continue
            session.select(state.subjects[picks[0]])
            session.select(state.objects[picks[1]])
            scheduler.run_pending()
            continue

        if state.phase is Phase.FEEDBACK:
            print(f"\n{state.feedback.message}  ({state.correct_answers}/"
                  f"{session.config.correct_threshold})")
            scheduler.run_pending()
            if session.state.phase is Phase.FEEDBACK:
                if state.feedback is Feedback.CORRECT:
                    session.next()
                else:
                    session.reset()
            continue

        if state.phase is Phase.CONGRATS:
            print(f"\nSet {state.set_id} complete!")
            answer = _ask("[n]ext set, [r]eplay, [q]uit: ").lower()
            if answer.startswith("r"):
                session.replay()
            elif answer.startswith("n"):
                if session.advance_set() is AdvanceOutcome.NO_MORE_SETS:
                    print("\nAll sets complete.")
                    return 0
            else:
                return 0
            continue

        return 0


def _ask(prompt: str) -> str:
    try:
        return input(prompt).strip()
    except EOFError:
        return "q"


def _parse_picks(answer: str, n_subjects: int, n_objects: int) -> tuple[int, int] | None:
    parts = answer.split()
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        return None
    subject, obj = int(parts[0]) - 1, int(parts[1]) - 1
    if not (0 <= subject < n_subjects and 0 <= obj < n_objects):
        return None
    return subject, obj


def _print_exercise(state: ExerciseState) -> None:
    print(f"\nSet {state.set_id}  verb: {state.verb.value}")
    for i, word in enumerate(state.subjects, 1):
        print(f"  subject {i}: {word.value}")
    for i, word in enumerate(state.objects, 1):
        print(f"  object  {i}: {word.value}")


if __name__ == "__main__":
    sys.exit(main())
