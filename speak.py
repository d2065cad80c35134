"""Read text aloud from the command line.

The text is split into sentences and played as a queue through the configured engine. Playback
events are printed as they happen.

Example:
    speechqueue "Hello there. How are you?"
    echo "Bonjour tout le monde." | speechqueue --engine gtts --language fr
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import ALLOWED_ENGINES, ConfigLoader, ConfigLoaderError
from core.tts.factory import create_session
from models.event_models import TTSEventType
from utils.logger_utils import LoggerUtils
from utils.tts_utils import TTSUtils

if TYPE_CHECKING:
    from core.tts.session import PlaybackSession
    from models.config_models import Config
    from models.event_models import TTSEvent
    from models.voice_models import Voice

CFG_FILE: Final[str] = "speechqueue.ini"


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = _ArgumentParser(
        description="Read text aloud sentence by sentence",
        epilog='Example: speechqueue --engine openai --voice nova "Hello there."',
    )
    parser.add_argument("text", nargs="*", help="Text to read; standard input is read when omitted")
    parser.add_argument("--config", dest="config", metavar="FILE", help=f"INI settings file (default: {CFG_FILE})")
    parser.add_argument("--engine", dest="engine", choices=ALLOWED_ENGINES, help="Override the default engine")
    parser.add_argument("--voice", dest="voice", metavar="VOICE_ID", help="Voice to read with")
    parser.add_argument("--language", dest="language", metavar="TAG", help="Read with a voice for this language")
    parser.add_argument("--list-voices", dest="list_voices", action="store_true", help="List voices and exit")
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Load the configuration file and apply CLI overrides.

    Without ``--config`` the default file is used when it exists, the built-in defaults otherwise.

    Raises:
        ConfigLoaderError: If the configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    filename: str | None = args.config
    if filename is None and Path(CFG_FILE).exists():
        filename = CFG_FILE
    return ConfigLoader(
        config_filename=filename,
        script_name=script_name,
        engine=args.engine,
        debug=args.debug,
    ).config


def setup_logging(config: Config) -> None:
    LoggerUtils(config.GENERAL.LOG_FILE).set_level(config.GENERAL.LOG_LEVEL)


def format_voice(voice: Voice) -> str:
    return f"{voice.id:<40} {voice.name:<28} {voice.language.localized_description:<32} {voice.gender} {voice.quality}"


def print_event(event: TTSEvent) -> None:
    if event.type == TTSEventType.PROGRESS_CHANGED:
        return
    if event.type == TTSEventType.ERROR:
        print(f"[error] {event.error}", file=sys.stderr)
        return
    print(f"[{event.type}] {event.text}" if event.text else f"[{event.type}]")


def resolve_voice(session: PlaybackSession, args: argparse.Namespace) -> Voice | None:
    """The voice requested on the command line, None to let the session choose.

    Raises:
        ValueError: If the requested voice or language has no match.
    """
    if args.voice:
        voice: Voice | None = next((v for v in session.available_voices if v.id == args.voice), None)
        if voice is None:
            msg = f"Unknown voice '{args.voice}'. Use --list-voices to see the available voices."
            raise ValueError(msg)
        return voice
    if args.language:
        voices: list[Voice] = session.get_voices_for_language(args.language)
        if not voices:
            msg = f"No voice available for language '{args.language}'"
            raise ValueError(msg)
        return voices[0]
    return None


async def run(args: argparse.Namespace) -> int:
    """Read the text and wait until playback ends.

    Returns:
        int: Process exit status.
    """
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 2
    setup_logging(config)

    session: PlaybackSession = create_session(config)
    try:
        if args.list_voices:
            voices: list[Voice] = (
                session.get_voices_for_language(args.language) if args.language else session.available_voices
            )
            for voice in voices:
                print(format_voice(voice))
            return 0

        text: str = " ".join(args.text) if args.text else sys.stdin.read()
        sentences: list[str] = TTSUtils.split_into_sentences(text)
        if not sentences:
            print("Nothing to read.", file=sys.stderr)
            return 1

        try:
            voice: Voice | None = resolve_voice(session, args)
        except ValueError as err:
            print(f"Error: {err}", file=sys.stderr)
            return 2

        failed: list[TTSEvent] = []
        session.events.subscribe(print_event)
        session.events.subscribe(lambda event: failed.append(event) if event.type == TTSEventType.ERROR else None)
        session.add_to_queue(TTSUtils.to_sentences(sentences, voice=voice))
        session.play_queue()
        await session.wait_until_idle()
        return 1 if failed else 0
    finally:
        await session.close()


def main(argv: list[str] | None = None) -> int:
    """Console entry point."""
    check_python_version()
    args: argparse.Namespace = parse_arguments(argv)
    try:
        return asyncio.run(run(args))
    except (KeyboardInterrupt, EOFError):
        print("\nReading cancelled by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
