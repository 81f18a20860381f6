"""Press-and-hold keyboard input for the terminal UI."""

import threading
from typing import Optional, Callable, Any
import logging

logger = logging.getLogger(__name__)

QUIT_KEYS = ("q", "esc")


def key_name(key: Any) -> Optional[str]:
    """Name of a pynput key: 'space', 'esc', ... for special keys, the character otherwise."""
    char = getattr(key, "char", None)
    if char:
        return char.lower()
    name = getattr(key, "name", None)
    return name.lower() if name else None


class PushToTalkHandler:
    """Report press and release of the hold key using a global keyboard listener."""

    def __init__(self,
                 on_start: Callable[[], None],
                 on_end: Callable[[], None],
                 on_quit: Callable[[], None],
                 hold_key: str = "space"):
        """Initialize push-to-talk handler.

        Args:
            on_start: Called once when the hold key goes down
            on_end: Called when the hold key is released
            on_quit: Called when a quit key is pressed
            hold_key: Key name ('space', 'f8', ...) or character to hold
        """
        self.on_start = on_start
        self.on_end = on_end
        self.on_quit = on_quit
        self.hold_key = hold_key.lower()
        self.held = False
        self.running = False
        self.listener = None

    def start(self) -> None:
        """Start the keyboard listener."""
        if self.running:
            return

        from pynput import keyboard

        self.listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self.listener.start()
        self.running = True
        logger.info(f"Push-to-talk handler started (hold key: {self.hold_key})")

    def stop(self) -> None:
        """Stop the keyboard listener."""
        self.running = False
        if self.listener:
            self.listener.stop()
            self.listener = None
        logger.info("Push-to-talk handler stopped")

    def _on_press(self, key: Any) -> None:
        name = key_name(key)
        if name == self.hold_key:
            # Key auto-repeat delivers more presses while held
            if self.held:
                return
            self.held = True
            logger.debug("Hold key pressed")
            self.on_start()
        elif name in QUIT_KEYS:
            logger.info(f"Quit key pressed: {name}")
            self.on_quit()

    def _on_release(self, key: Any) -> None:
        if key_name(key) == self.hold_key and self.held:
            self.held = False
            logger.debug("Hold key released")
            self.on_end()


class ToggleInputHandler:
    """Line-based fallback for terminals without a keyboard hook: Enter starts, Enter stops."""

    def __init__(self,
                 on_start: Callable[[], None],
                 on_end: Callable[[], None],
                 on_quit: Callable[[], None],
                 read_line: Callable[[], str] = input):
        self.on_start = on_start
        self.on_end = on_end
        self.on_quit = on_quit
        self.read_line = read_line
        self.held = False
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the input thread."""
        if self.running:
            return

        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "ToggleInputThread"
        self.thread.start()
        logger.info("Toggle input handler started")

    def stop(self) -> None:
        """Stop the input thread."""
        self.running = False
        logger.info("Toggle input handler stopped")

    def handle_line(self, line: str) -> bool:
        """Act on one line of input. Returns False once the user quits."""
        command = line.strip().lower()
        if command in QUIT_KEYS:
            if self.held:
                self.held = False
                self.on_end()
            self.on_quit()
            return False

        self.held = not self.held
        if self.held:
            self.on_start()
        else:
            self.on_end()
        return True

    def _input_loop(self) -> None:
        while self.running:
            try:
                line = self.read_line()
            except (EOFError, KeyboardInterrupt):
                self.on_quit()
                break
            if not self.handle_line(line):
                break
        self.running = False


def create_input_handler(on_start: Callable[[], None],
                         on_end: Callable[[], None],
                         on_quit: Callable[[], None],
                         toggle: bool = False,
                         hold_key: str = "space") -> object:
    """Create the input handler for the chosen gesture style.

    Returns:
        A handler with start() and stop()
    """
    if toggle:
        return ToggleInputHandler(on_start, on_end, on_quit)
    return PushToTalkHandler(on_start, on_end, on_quit, hold_key=hold_key)
