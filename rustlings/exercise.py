"""Exercises: loading, compiling, running and checking progress markers."""

from __future__ import annotations

import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path

from rustlings.ui import no_emoji

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Return a temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def clean() -> None:
    """Remove the temporary binary, if there is one."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(enum.Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the progress marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a compiler or binary."""

    stdout: str
    stderr: str


class CompilationError(Exception):
    """Compiling or linting an exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


class ExecutionError(Exception):
    """Running a compiled exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _output_of(proc: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(stdout=_decode(proc.stdout), stderr=_decode(proc.stderr))


def _source_lines(source: str) -> list[str]:
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def _cargo_toml(name: str) -> str:
    return (
        "[package]\n"
        f'name = "{name}"\n'
        'version = "0.0.1"\n'
        'edition = "2021"\n'
        "[[bin]]\n"
        f'name = "{name}"\n'
        f'path = "{name}.rs"'
    )


def _write_cargo_toml(path: str, name: str) -> None:
    message = (
        "Failed to write Clippy Cargo.toml file."
        if no_emoji()
        else "Failed to write 📎 Clippy 📎 Cargo.toml file."
    )
    try:
        Path(path).write_text(_cargo_toml(name), encoding="utf-8")
    except OSError as exc:
        raise OSError(message) from exc


def _capture(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(args, capture_output=True, check=False)


@dataclass
class Exercise:
    """An exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompilationError on failure."""
        source = str(self.path)
        rustc_tail = [*RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
        match self.mode:
            case Mode.COMPILE:
                proc = _capture(["rustc", source, "-o", temp_file(), *rustc_tail])
            case Mode.TEST:
                proc = _capture(
                    ["rustc", "--test", source, "-o", temp_file(), *rustc_tail]
                )
            case Mode.CLIPPY:
                _write_cargo_toml(CLIPPY_CARGO_TOML_PATH, self.name)
                # Build an executable too, so clippy exercises can be run.
                _capture(["rustc", source, "-o", temp_file(), *rustc_tail])
                # A clean is needed for clippy to report every lint.
                _capture(
                    [
                        "cargo",
                        "clean",
                        "--manifest-path",
                        CLIPPY_CARGO_TOML_PATH,
                        *RUSTC_COLOR_ARGS,
                    ]
                )
                proc = _capture(
                    [
                        "cargo",
                        "clippy",
                        "--manifest-path",
                        CLIPPY_CARGO_TOML_PATH,
                        *RUSTC_COLOR_ARGS,
                        "--",
                        "-D",
                        "warnings",
                        "-D",
                        "clippy::float_cmp",
                    ]
                )
            case Mode.BUILD_SCRIPT:
                _write_cargo_toml(BUILD_SCRIPT_CARGO_TOML_PATH, self.name)
                proc = _capture(
                    ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH]
                )
        if proc.returncode != 0:
            clean()
            raise CompilationError(_output_of(proc))
        return CompiledExercise(self)

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        args = ["--show-output"] if self.mode is Mode.TEST else []
        proc = _capture([temp_file(), *args])
        output = _output_of(proc)
        if proc.returncode != 0:
            raise ExecutionError(output)
        return output

    def state(self) -> list[ContextLine] | None:
        """Return the lines around the progress marker, or None when done."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return None
        lines = _source_lines(source)
        matched = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise ValueError(f"progress marker in {self.path} spans several lines")
        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return [
            ContextLine(line=line, number=i + 1, important=i == matched)
            for i, line in enumerate(lines)
            if first <= i <= last
        ]

    def looks_done(self) -> bool:
        """Return True when the progress marker has been removed."""
        return self.state() is None


@dataclass
class CompiledExercise:
    """A built exercise; closing it removes the temporary binary."""

    exercise: Exercise

    def run(self) -> ExerciseOutput:
        """Run the built exercise; raise ExecutionError on failure."""
        return self.exercise._run()

    def close(self) -> None:
        """Remove the temporary binary."""
        clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _exercise_from_entry(entry: dict) -> Exercise:
    try:
        return Exercise(
            name=str(entry["name"]),
            path=Path(entry["path"]),
            mode=Mode(entry["mode"]),
            hint=str(entry["hint"]),
        )
    except KeyError as exc:
        raise ValueError(f"exercise entry is missing {exc.args[0]!r}") from exc


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the list of exercises from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    try:
        entries = data["exercises"]
    except KeyError as exc:
        raise ValueError("info file has no 'exercises' list") from exc
    return [_exercise_from_entry(entry) for entry in entries]