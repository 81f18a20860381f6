"""Main application entry point for PressTalk."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Callable, Optional, Awaitable

from rich.console import Console

from . import __version__
from .audio.capture import AudioRecorder
from .audio.sources import select_audio_source
from .config import PressTalkConfig, load_environment, get_api_key
from .models.session import RecordConfig
from .models.ui import idle_prompt
from .services.permission_gate import PermissionGate, SystemPermissionProvider
from .services.recording_service import RecordingController, STATUS_TOPIC
from .transcription.openai_backend import OpenAITranscriptionBackend
from .ui.keyboard_input import create_input_handler
from .ui.transcription_screen import TranscriptionScreen

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
FILE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
CONSOLE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Application:
    """Wires the recorder, permission gate, transcription backend and screen together."""

    def __init__(self, config_path: Optional[str] = None, env_file: Optional[str] = None,
                 log_level: Optional[str] = None, platform: Optional[str] = None,
                 toggle: bool = False):
        self.config = PressTalkConfig(config_path)
        if platform:
            self.config.set('audio.platform', platform)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        load_environment(env_file)
        self.console = Console()
        self.toggle = toggle

    def init(self) -> None:
        logger.info("Initializing services...")

        platform = self.config.get('audio.platform', 'native')
        record_config = RecordConfig(
            bit_rate=self.config.get('audio.bit_rate', 128000),
            sample_rate=self.config.get('audio.sample_rate', 44100),
            num_channels=self.config.get('audio.channels', 1),
        )
        logger.info(f"Audio settings: {platform} capture, {record_config.sample_rate}Hz, "
                    f"{record_config.num_channels} channel(s)")

        self.recorder = AudioRecorder(chunk_size=self.config.get('audio.chunk_size', 1024))
        source = select_audio_source(platform, self.config.get_temp_directory(),
                                     self.config.get('audio.blob_timeout_s'))
        provider = SystemPermissionProvider(
            require_speech_recognition=self.config.get('permissions.require_speech_recognition', False)
        )
        gate = PermissionGate(provider, self.recorder, platform)

        backend = OpenAITranscriptionBackend(
            api_key=get_api_key(),
            endpoint=self.config.get('transcription.endpoint'),
            model=self.config.get('transcription.model'),
        )
        backend.initialize()

        self.controller = RecordingController(
            recorder=self.recorder,
            source=source,
            gate=gate,
            backend=backend,
            record_config=record_config,
            settle_delay=self.config.get('audio.settle_delay_ms', 100) / 1000.0,
            idle_text=idle_prompt(self.config.get('ui.hold_key', 'space'), self.toggle),
        )

    async def run_interactive(self) -> None:
        """Show the screen and transcribe one recording per press-and-hold until quit."""
        loop = asyncio.get_running_loop()
        quit_event = asyncio.Event()

        def schedule(handler: Callable[[], Awaitable]) -> Callable[[], None]:
            def callback() -> None:
                future = asyncio.run_coroutine_threadsafe(handler(), loop)
                future.add_done_callback(_log_handler_failure)
            return callback

        hold_key = self.config.get('ui.hold_key', 'space')
        if self.toggle:
            hint = "Enter: start/stop recording  |  q + Enter: quit"
        else:
            hint = f"Hold {hold_key} to record, release to transcribe  |  q: quit"

        screen = TranscriptionScreen(STATUS_TOPIC, recorder=self.recorder, hint=hint,
                                     console=self.console)
        input_handler = create_input_handler(
            on_start=schedule(self.controller.on_gesture_start),
            on_end=schedule(self.controller.on_gesture_end),
            on_quit=lambda: loop.call_soon_threadsafe(quit_event.set),
            toggle=self.toggle,
            hold_key=hold_key,
        )

        screen.start()
        try:
            await self.controller.initialize()
            input_handler.start()
            await quit_event.wait()
        finally:
            input_handler.stop()
            await self.controller.shutdown()
            screen.stop()

    async def run_auto(self, duration: float) -> bool:
        """Record for a fixed duration, transcribe once and print the result.

        Returns:
            True when a transcript was produced
        """
        await self.controller.initialize()
        try:
            if await self.controller.on_gesture_start():
                self.console.print(f"🔴 Recording for {duration:g}s...", style="bold red")
                await asyncio.sleep(duration)
                await self.controller.on_gesture_end()
        finally:
            await self.controller.shutdown()

        result = self.controller.last_result
        succeeded = result is not None and not result.is_error
        self.console.print(self.controller.status.status_text,
                           style="green" if succeeded else "red", markup=False)
        return succeeded


def _log_handler_failure(future) -> None:
    if not future.cancelled() and future.exception() is not None:
        logger.error(f"Gesture handler failed: {future.exception()}")


def setup_logging(config, level: str = "INFO") -> None:
    """Send everything to the log file; only warnings reach stderr, the screen owns stdout.

    Raises:
        ValueError: if level is not a standard logging level name
    """
    level_name = str(level).upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Invalid logging level {level!r} (expected one of {', '.join(LOG_LEVELS)})")

    log_file_path = Path(config.get('logging.file_path', 'data/logs/presstalk.log'))
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    handlers = [file_handler]

    if config.get('logging.console_output', True):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level_name)
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info(f"PressTalk v{__version__} starting (log level {level_name})")
    logger.info(f"Log file: {log_file_path}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PressTalk - press-and-hold voice transcription",
        epilog="Hold the space bar to record, release to transcribe, q to quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: presstalk.yaml if present)"
    )

    parser.add_argument(
        "--env-file",
        type=str,
        help="Path to the .env file holding OPENAI_API_KEY (default: .env)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--platform",
        type=str,
        choices=["native", "web"],
        help="Capture to a temporary file (native) or in memory (web)"
    )

    parser.add_argument(
        "--toggle",
        action="store_true",
        help="Use Enter to start and stop recording instead of holding a key"
    )

    parser.add_argument(
        "--auto",
        action="store_true",
        help="Run in automatic mode: record for the given duration, transcribe, print and exit"
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=5,
        help="Duration in seconds for auto mode recording (default: 5)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"PressTalk v{__version__}"
    )
    return parser


def main(argv: Optional[list] = None) -> None:
    """Main entry point for PressTalk application."""
    args = build_parser().parse_args(argv)

    try:
        app = Application(args.config, env_file=args.env_file,
                          log_level=args.log_level, platform=args.platform,
                          toggle=args.toggle)
        app.init()
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.auto:
            succeeded = asyncio.run(app.run_auto(args.duration))
            sys.exit(0 if succeeded else 1)
        asyncio.run(app.run_interactive())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")


if __name__ == "__main__":
    main()
