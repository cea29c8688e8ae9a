"""Watch mode: re-check exercises whenever their files change."""

from __future__ import annotations

import enum
import os
import queue
import subprocess
import sys
import threading
import time
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rustlings.exercise import Exercise
from rustlings.verify import VerificationFailed, verify

EXERCISES_DIR = "./exercises"
POLL_INTERVAL = 1.0
DEBOUNCE = 0.2

_CLEAR_SCREEN = "\x1b[2J\x1b[1;1H"
_RESET_TERMINAL = "\x1bc"

_HELP_LINES = (
    "Commands available to you in watch mode:",
    "  hint   - prints the current exercise's hint",
    "  clear  - clears the screen",
    "  quit   - quits watch mode",
    "  !<cmd> - executes a command, like `!rustc --explain E0381`",
    "  help   - displays this help message",
    "",
    "Watch mode automatically re-evaluates the current exercise",
    "when you edit a file's contents.",
)


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class WatchShell:
    """The small command shell that runs alongside watch mode."""

    def __init__(
        self,
        hint: str | None = None,
        stdin: TextIO | None = None,
    ) -> None:
        self.hint = hint
        self.should_quit = threading.Event()
        self._stdin = stdin

    def handle(self, line: str) -> None:
        """Carry out one command typed by the user."""
        command = line.strip()
        if command == "hint":
            hint = self.hint
            if hint is not None:
                print(hint)
        elif command == "clear":
            print(_CLEAR_SCREEN)
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            for help_line in _HELP_LINES:
                print(help_line)
        elif command.startswith("!"):
            self._execute(command[1:])
        else:
            print(f"unknown command: {command}")

    @staticmethod
    def _execute(cmd: str) -> None:
        parts = cmd.split()
        if not parts:
            print("no command provided")
            return
        try:
            subprocess.run(parts, check=False)
        except OSError as exc:
            print(f"failed to execute command `{cmd}`: {exc}")

    def _read_loop(self) -> None:
        stream = self._stdin if self._stdin is not None else sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            self.handle(line)

    def start(self) -> threading.Thread:
        """Greet the user and read commands on a background thread."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._read_loop, daemon=True)
        thread.start()
        return thread


def _ends_with(path: Path, suffix: Path) -> bool:
    tail = suffix.parts
    return len(tail) <= len(path.parts) and path.parts[len(path.parts) - len(tail):] == tail


def pending_after_change(
    exercises: Sequence[Exercise], changed_path: str | os.PathLike
) -> list[Exercise]:
    """Return the exercises to re-check after a file changed.

    The exercise whose file changed comes first, followed by every other
    exercise that is not yet done, in their original order.
    """
    filepath = Path(changed_path).resolve()
    changed = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    head = [changed] if changed is not None else []
    rest = [
        e for e in exercises if not _ends_with(filepath, e.path) and not e.looks_done()
    ]
    return head + rest


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[str]) -> None:
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("created", "modified"):
            return
        self._events.put(os.fsdecode(event.src_path))


def _clear_screen() -> None:
    print(_RESET_TERMINAL)


def _settled_paths(events: queue.Queue[str], first: str) -> list[str]:
    """Gather the burst of events that follows the first one, without repeats."""
    seen = {first: None}
    deadline = time.monotonic() + DEBOUNCE
    while (remaining := deadline - time.monotonic()) > 0:
        try:
            seen.setdefault(events.get(timeout=remaining), None)
        except queue.Empty:
            break
    return list(seen)


def watch(
    exercises: Iterable[Exercise],
    verbose: bool = False,
    success_hints: bool = False,
) -> WatchStatus:
    """Verify the exercises, then re-verify whenever an exercise file changes."""
    exercises = list(exercises)
    events: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(events), EXERCISES_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except VerificationFailed as exc:
            shell = WatchShell(exc.exercise.hint)
        else:
            return WatchStatus.FINISHED
        shell.start()

        while True:
            try:
                first = events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                pass
            else:
                for changed in _settled_paths(events, first):
                    path = Path(changed)
                    if path.suffix != ".rs" or not path.exists():
                        continue
                    pending = pending_after_change(exercises, path)
                    num_done = sum(1 for e in exercises if e.looks_done())
                    _clear_screen()
                    try:
                        verify(
                            pending,
                            (num_done, len(exercises)),
                            verbose,
                            success_hints,
                        )
                    except VerificationFailed as exc:
                        shell.hint = exc.exercise.hint
                    else:
                        return WatchStatus.FINISHED
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()