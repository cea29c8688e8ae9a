"""Running a single exercise and resetting it."""

from __future__ import annotations

import os
import subprocess

from rich.console import Console
from rich.text import Text

from rustlings.exercise import CompilationError, ExecutionError, Exercise, Mode
from rustlings.ui import success, warn
from rustlings.verify import test


class RunFailed(Exception):
    """An exercise could not be built, run or reset."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"exercise {exercise.name} failed")
        self.exercise = exercise


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run an exercise, or its tests; raise RunFailed on failure.

    ``verbose`` shows the output of test harnesses.
    """
    try:
        match exercise.mode:
            case Mode.TEST | Mode.BUILD_SCRIPT:
                test(exercise, verbose)
            case Mode.COMPILE | Mode.CLIPPY:
                compile_and_run(exercise)
    except (CompilationError, ExecutionError) as exc:
        raise RunFailed(exercise) from exc


def reset(exercise: Exercise) -> subprocess.Popen:
    """Stash the changes made to an exercise with git."""
    try:
        return subprocess.Popen(["git", "stash", "--", os.fspath(exercise.path)])
    except OSError as exc:
        raise RunFailed(exercise) from exc


def compile_and_run(exercise: Exercise) -> None:
    """Build an exercise and run the binary, showing its output."""
    console = Console(stderr=True, highlight=False, soft_wrap=True, emoji=False)
    with console.status(Text(f"Compiling {exercise}...")) as status:
        try:
            compiled = exercise.compile()
        except CompilationError as exc:
            status.stop()
            warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(exc.output.stderr)
            raise
        with compiled:
            status.update(Text(f"Running {exercise}..."))
            try:
                output = compiled.run()
            except ExecutionError as exc:
                status.stop()
                print(exc.output.stdout)
                print(exc.output.stderr)
                warn(f"Ran {exercise} with errors")
                raise
    print(output.stdout)
    success(f"Successfully ran {exercise}")