"""Checking exercises one after another, with progress reporting."""

from __future__ import annotations

import enum
from collections.abc import Iterable

from rich.console import Console
from rich.status import Status
from rich.text import Text

from rustlings.exercise import (
    CompilationError,
    CompiledExercise,
    ContextLine,
    ExecutionError,
    Exercise,
    Mode,
)
from rustlings.ui import no_emoji, success, warn

_BAR_WIDTH = 60
_SEPARATOR = "===================="


class RunMode(enum.Enum):
    """Whether a passing exercise leads to the completion prompt."""

    INTERACTIVE = "interactive"
    NON_INTERACTIVE = "non-interactive"


class VerificationFailed(Exception):
    """An exercise failed to build or run, or is not marked as done."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"exercise {exercise.name} is not finished")
        self.exercise = exercise


def _console(stderr: bool = False) -> Console:
    return Console(stderr=stderr, highlight=False, soft_wrap=True, emoji=False)


def _spinner(message: str) -> Status:
    return _console(stderr=True).status(Text(message))


def _show_progress(position: int, total: int, percentage: float) -> None:
    filled = min(_BAR_WIDTH, position * _BAR_WIDTH // total) if total else _BAR_WIDTH
    head = ">" if filled < _BAR_WIDTH else ""
    rest = _BAR_WIDTH - filled - len(head)
    text = Text("Progress: [")
    text.append("#" * filled + head, style="green")
    text.append("-" * rest, style="red")
    text.append(f"] {position}/{total} ({percentage:.1f} %)")
    _console(stderr=True).print(text)


def _compile(exercise: Exercise, status: Status) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompilationError as exc:
        status.stop()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            return compile_and_test(
                exercise, RunMode.INTERACTIVE, verbose, success_hints
            )
        case Mode.COMPILE:
            return compile_and_run_interactively(exercise, success_hints)
        case Mode.CLIPPY:
            return compile_only(exercise, success_hints)


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int] | None = None,
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise VerificationFailed at the first unfinished one.

    ``progress`` is (already done, total); it defaults to (0, number of exercises).
    """
    if progress is None:
        exercises = list(exercises)
        progress = (0, len(exercises))
    position, total = progress
    percentage = position / total * 100.0 if total else 100.0
    _show_progress(position, total, percentage)

    for exercise in exercises:
        try:
            finished = _check(exercise, verbose, success_hints)
        except (CompilationError, ExecutionError) as exc:
            raise VerificationFailed(exercise) from exc
        if not finished:
            raise VerificationFailed(exercise)
        position += 1
        if total:
            percentage += 100.0 / total
        _show_progress(position, total, percentage)


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run an exercise's tests without prompting."""
    compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def compile_only(exercise: Exercise, success_hints: bool = False) -> bool:
    """Build an exercise without running it; return True when it is done."""
    with _spinner(f"Compiling {exercise}...") as status:
        with _compile(exercise, status):
            pass
    return prompt_for_completion(exercise, None, success_hints)


def compile_and_run_interactively(
    exercise: Exercise, success_hints: bool = False
) -> bool:
    """Build and run an exercise; return True when it is done."""
    with _spinner(f"Compiling {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            status.update(Text(f"Running {exercise}..."))
            try:
                output = compiled.run()
            except ExecutionError as exc:
                status.stop()
                warn(f"Ran {exercise} with errors")
                print(exc.output.stdout)
                print(exc.output.stderr)
                raise
    return prompt_for_completion(exercise, output.stdout, success_hints)


def compile_and_test(
    exercise: Exercise,
    run_mode: RunMode,
    verbose: bool = False,
    success_hints: bool = False,
) -> bool:
    """Build and run an exercise's test harness.

    Interactive runs return whether the exercise is done; others return True.
    """
    with _spinner(f"Testing {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            try:
                output = compiled.run()
            except ExecutionError as exc:
                status.stop()
                warn(
                    f"Testing of {exercise} failed! Please try again. "
                    "Here's the output:"
                )
                print(exc.output.stdout)
                raise
    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def _print_separator(console: Console) -> None:
    console.print(Text(_SEPARATOR, style="bold"))


def _context_text(context_line: ContextLine) -> Text:
    return Text.assemble(
        (f"{context_line.number:>2}", "bold blue"),
        " ",
        ("|", "blue"),
        "  ",
        (context_line.line, "bold" if context_line.important else ""),
    )


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool = False
) -> bool:
    """Return True if the exercise is done; otherwise tell the user how to finish it."""
    context = exercise.state()
    if context is None:
        return True

    match exercise.mode:
        case Mode.COMPILE:
            success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            success(f"Successfully compiled {exercise}!")

    emoji_free = no_emoji()
    clippy_msg = (
        "The code is compiling, and Clippy is happy!"
        if emoji_free
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_msg = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_msg,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    console = _console()
    print()
    if emoji_free:
        print(f"~*~ {success_msg} ~*~")
    else:
        print(f"🎉 🎉  {success_msg} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        _print_separator(console)
        print(prompt_output)
        _print_separator(console)
        print()
    if success_hints:
        print("Hints:")
        _print_separator(console)
        print(exercise.hint)
        _print_separator(console)
        print()

    print("You can keep working on this exercise,")
    console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    print()
    for context_line in context:
        console.print(_context_text(context_line))

    return False