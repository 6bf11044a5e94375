"""
CLI Adapter - Command-line interface.

Thin wrapper over the story and audio packages.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Virtual seconds of ambience that pass per step of a text playthrough
PLAY_STEP_SECONDS = 1.5


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    from storygraph.story.types import Environment

    parser = argparse.ArgumentParser(
        prog="storygraph",
        description="Branching visual-novel engine with ambient soundscapes",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # play command
    play_parser = subparsers.add_parser("play", help="Play a story in the terminal")
    play_parser.add_argument("--story", help="Story JSON file (default: built-in story)")
    play_parser.add_argument("--mute", action="store_true", help="Start with ambience muted")
    play_parser.add_argument("--no-narration", action="store_true", help="Disable narration")
    play_parser.add_argument("--seed", type=int, help="Seed for procedural ambience")
    play_parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Event log level (default: warning)",
    )

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Check a story for broken links")
    validate_parser.add_argument("path", nargs="?", help="Story JSON file (default: built-in story)")

    # environments command
    subparsers.add_parser("environments", help="List each environment's ambience layers")

    # render command
    render_parser = subparsers.add_parser("render", help="Render an environment's ambience to WAV")
    render_parser.add_argument(
        "environment",
        choices=[e.value for e in Environment],
        help="Environment to render",
    )
    render_parser.add_argument(
        "-d", "--duration",
        type=float,
        default=10.0,
        help="Seconds to render (default: 10)",
    )
    render_parser.add_argument("-o", "--output", help="Output WAV file (default: <environment>.wav)")
    render_parser.add_argument("--seed", type=int, help="Seed for procedural ambience")
    render_parser.add_argument("--no-music", action="store_true", help="Leave out the music layer")

    # version command
    subparsers.add_parser("version", help="Show version")

    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 0

    if parsed.command == "version":
        from storygraph import __version__
        print(f"storygraph {__version__}")
        return 0

    if parsed.command == "validate":
        return _cmd_validate(parsed)

    if parsed.command == "environments":
        return _cmd_environments()

    if parsed.command == "render":
        return _cmd_render(parsed)

    if parsed.command == "play":
        return _cmd_play(parsed)

    return 1


def _cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    from storygraph.errors import StoryConfigurationError
    from storygraph.story import default_story, load_story

    try:
        if args.path:
            store = load_story(args.path, validate=False)
        else:
            store = default_story()
    except StoryConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = store.validation
    name = args.path or "built-in story"
    print(f"{name}: {len(store)} scenes, {len(store.endings())} endings")
    print(result)

    return 0 if result.is_valid else 1


def _cmd_environments() -> int:
    """Handle environments command."""
    from storygraph.audio.registry import default_registry
    from storygraph.story.types import Environment

    registry = default_registry()

    print("Environments:")
    print("-" * 50)
    for environment in Environment:
        keys = registry.keys_for(environment)
        layers = ", ".join(keys) if keys else "(silent)"
        print(f"  {environment.value:10} {layers}")

    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    """Handle render command."""
    import numpy as np
    import soundfile as sf

    from storygraph.audio.crossfade import CrossfadeManager
    from storygraph.audio.registry import default_registry
    from storygraph.audio.scheduler import ManualScheduler
    from storygraph.config import Config

    if args.duration <= 0:
        print("Error: duration must be positive", file=sys.stderr)
        return 1

    config = Config(seed=args.seed)
    if args.no_music:
        config.music_asset = None

    scheduler = ManualScheduler()
    output = Path(args.output or f"{args.environment}.wav")
    block = config.block_size / config.sample_rate

    with CrossfadeManager(default_registry(config), config, scheduler=scheduler) as manager:
        manager.set_environment(args.environment)
        chunks = []
        rendered = 0.0
        while rendered < args.duration:
            step = min(block, args.duration - rendered)
            scheduler.advance(step)
            chunks.append(manager.engine.render(step))
            rendered += step
        audio = np.concatenate(chunks) if chunks else np.zeros(0, dtype=np.float32)

    output.parent.mkdir(parents=True, exist_ok=True)
    sf.write(str(output), audio, config.sample_rate)

    peak = float(np.max(np.abs(audio))) if len(audio) else 0.0
    print(f"Rendered {args.environment} to: {output}")
    print(f"Duration: {len(audio) / config.sample_rate:.2f}s")
    print(f"Peak: {peak:.3f}")

    return 0


def _cmd_play(args: argparse.Namespace) -> int:
    """Handle play command."""
    from storygraph.audio.scheduler import ManualScheduler
    from storygraph.config import Config
    from storygraph.errors import StoryConfigurationError, StoryError
    from storygraph.monitoring import configure_logging
    from storygraph.preferences import PreferenceStore
    from storygraph.session import GameSession
    from storygraph.story import load_story

    events = configure_logging(args.log_level, json_format=False)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    config = Config(seed=args.seed, start_muted=args.mute)
    try:
        store = load_story(args.story) if args.story else None
    except StoryConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    preferences = PreferenceStore(config.preferences_path)
    scheduler = ManualScheduler()

    with GameSession(
        store,
        config=config,
        scheduler=scheduler,
        preferences=preferences,
        events=events,
    ) as session:
        if args.no_narration:
            session.narrator.enabled = False

        view = session.start()
        _print_scene_header(view)

        show_line = True
        while True:
            if show_line:
                scheduler.advance(PLAY_STEP_SECONDS)
                print(f"  {view.speaker}: {view.text}")
            show_line = True

            if view.is_terminal:
                print(f"\n*** {view.ending_title} ***")
                answer = _prompt("[r]estart or [q]uit: ")
                if answer in (None, "q"):
                    break
                if answer == "r":
                    view = session.restart()
                    _print_scene_header(view)
                else:
                    show_line = False
                continue

            if view.is_choice_point:
                for number, choice in enumerate(view.choices, 1):
                    print(f"    {number}. {choice.text}")
                answer = _prompt("Choose: ")
                if answer in (None, "q"):
                    break
                if not answer.isdigit() or not 1 <= int(answer) <= len(view.choices):
                    print("  Pick one of the numbers above.")
                    show_line = False
                    continue
                choice = view.choices[int(answer) - 1]
                try:
                    view = session.choose(choice.next_scene)
                except StoryError as e:
                    print(f"Error: {e}", file=sys.stderr)
                    return 1
                _print_scene_header(view)
                continue

            answer = _prompt("")
            if answer == "q" or answer is None:
                break
            if answer == "m":
                session.set_muted(not session.audio.muted)
            view = session.advance()

    return 0


def _print_scene_header(view) -> None:
    print(f"\n== {view.title} ==")
    print(view.description)


def _prompt(text: str) -> str | None:
    """Read one answer; None at end of input."""
    try:
        return input(text).strip().lower()
    except EOFError:
        return None


if __name__ == "__main__":
    sys.exit(main())
