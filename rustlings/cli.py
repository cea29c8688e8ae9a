"""Command-line entry point: list, run, verify, watch and grade exercises."""

from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from rustlings.exercise import Exercise, load_exercises
from rustlings.project import RustAnalyzerProject
from rustlings.run import RunFailed, reset, run
from rustlings.ui import no_emoji
from rustlings.verify import VerificationFailed, verify
from rustlings.watch import WatchStatus, watch

VERSION = "5.5.1"
INFO_FILE = "info.toml"
CHECK_RESULT_PATH = ".github/result/check_result.json"

DEFAULT_OUT = """Thanks for installing Rustlings!

Is this your first time? Don't worry, Rustlings was made for beginners! We are
going to teach you a lot of things about Rust, but before we can get
started, here's a couple of notes about how Rustlings operates:

1. The central concept behind Rustlings is that you solve exercises. These
   exercises usually have some sort of syntax error in them, which will cause
   them to fail compilation or testing. Sometimes there's a logic error instead
   of a syntax error. No matter what error, it's your job to find it and fix it!
   You'll know when you fixed it because then, the exercise will compile and
   Rustlings will be able to move on to the next exercise.
2. If you run Rustlings in watch mode (which we recommend), it'll automatically
   start with the first exercise. Don't get confused by an error message popping
   up as soon as you run Rustlings! This is part of the exercise that you're
   supposed to solve, so open the exercise file in an editor and start your
   detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `rustlings hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to open an issue in the
   project's issue tracker. We look at every issue, and sometimes, other
   learners do too so you can help each other out!
5. If you want to use `rust-analyzer` with exercises, which provides features like
   autocompletion, run the command `rustlings lsp`.

Got all that? Great! To get started, run `rustlings watch` in order to get the first
exercise. Make sure to have your editor open!"""

FENISH_LINE = """+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+--------------------------  ------------------------+
                          \\\\/
     ▒▒          ▒▒▒▒▒▒▒▒      ▒▒▒▒▒▒▒▒          ▒▒
   ▒▒▒▒  ▒▒    ▒▒        ▒▒  ▒▒        ▒▒    ▒▒  ▒▒▒▒
   ▒▒▒▒  ▒▒  ▒▒            ▒▒            ▒▒  ▒▒  ▒▒▒▒
 ░░▒▒▒▒░░▒▒  ▒▒            ▒▒            ▒▒  ▒▒░░▒▒▒▒
   ▓▓▓▓▓▓▓▓  ▓▓      ▓▓██  ▓▓  ▓▓██      ▓▓  ▓▓▓▓▓▓▓▓
     ▒▒▒▒    ▒▒      ████  ▒▒  ████      ▒▒░░  ▒▒▒▒
       ▒▒  ▒▒▒▒▒▒        ▒▒▒▒▒▒        ▒▒▒▒▒▒  ▒▒
         ▒▒▒▒▒▒▒▒▒▒▓▓▓▓▓▓▒▒▒▒▒▒▒▒▓▓▒▒▓▓▒▒▒▒▒▒▒▒
           ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒
             ▒▒▒▒▒▒▒▒▒▒██▒▒▒▒▒▒██▒▒▒▒▒▒▒▒▒▒
           ▒▒  ▒▒▒▒▒▒▒▒▒▒██████▒▒▒▒▒▒▒▒▒▒  ▒▒
         ▒▒    ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒    ▒▒
       ▒▒    ▒▒    ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒    ▒▒    ▒▒
       ▒▒  ▒▒    ▒▒                  ▒▒    ▒▒  ▒▒
           ▒▒  ▒▒                      ▒▒  ▒▒

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them to our repo.
You can also contribute your own exercises to help the greater community!

Before reporting an issue or contributing, please read the contributing
guidelines in the repository."""

WELCOME = r"""       welcome to...
                 _   _ _
  _ __ _   _ ___| |_| (_)_ __   __ _ ___
 | '__| | | / __| __| | | '_ \ / _` / __|
 | |  | |_| \__ \ |_| | | | | | (_| \__ \
 |_|   \__,_|___/\__|_|_|_| |_|\__, |___/
                               |___/"""


@dataclass
class ExerciseResult:
    """Whether one exercise passed during grading."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals gathered while grading."""

    total_exercations: int
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The grading report written after `cicvverify`."""

    statistics: ExerciseStatistics
    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None

    def to_json(self) -> str:
        """Return the report as indented JSON."""
        data = {
            "exercises": [
                {"name": item.name, "result": item.result} for item in self.exercises
            ],
            "user_name": self.user_name,
            "statistics": {
                "total_exercations": self.statistics.total_exercations,
                "total_succeeds": self.statistics.total_succeeds,
                "total_failures": self.statistics.total_failures,
                "total_time": self.statistics.total_time,
            },
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


class ExerciseNotFound(LookupError):
    """No exercise matches the requested name."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the command line."""
    parser = _Parser(
        prog="rustlings",
        description=(
            "Rustlings is a collection of small exercises to get you used to "
            "writing and reading Rust code"
        ),
    )
    parser.add_argument(
        "--nocapture",
        action="store_true",
        help="show outputs from the test exercises",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser(
        "verify", help="Verifies all exercises according to the recommended order"
    )
    watch_parser = commands.add_parser(
        "watch", help="Reruns `verify` when files were edited"
    )
    watch_parser.add_argument(
        "--success-hints", action="store_true", help="show hints on success"
    )
    for name, text in (
        ("run", "Runs/Tests a single exercise"),
        ("reset", 'Resets a single exercise using "git stash -- <filename>"'),
        ("hint", "Returns a hint for the given exercise"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("name", nargs="?", help="the name of the exercise")
    commands.add_parser("lsp", help="Enable rust-analyzer for exercises")

    list_parser = commands.add_parser(
        "list", help="Lists the exercises available in Rustlings"
    )
    list_parser.add_argument(
        "-p", "--paths", action="store_true", help="show only the paths of the exercises"
    )
    list_parser.add_argument(
        "-n", "--names", action="store_true", help="show only the names of the exercises"
    )
    list_parser.add_argument(
        "-f",
        "--filter",
        default=None,
        help=(
            "provide a string to match exercise names; "
            "comma separated patterns are acceptable"
        ),
    )
    list_parser.add_argument(
        "-u", "--unsolved", action="store_true", help="display only exercises not yet solved"
    )
    list_parser.add_argument(
        "-s",
        "--solved",
        action="store_true",
        help="display only exercises that have been solved",
    )
    commands.add_parser("cicvverify", help="cicvverify")
    return parser


def rustc_exists() -> bool:
    """Return True when `rustc --version` runs successfully."""
    try:
        proc = subprocess.run(
            ["rustc", "--version"], stdout=subprocess.DEVNULL, check=False
        )
    except OSError:
        return False
    return proc.returncode == 0


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Return the named exercise, or the first unfinished one for "next"."""
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
        if found is None:
            raise ExerciseNotFound(
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        return found
    found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise ExerciseNotFound(f"No exercise found for '{name}'!")
    return found


def _selected(
    exercise: Exercise,
    done: bool,
    filter_text: str | None,
    solved: bool,
    unsolved: bool,
) -> bool:
    solve_cond = (done and solved) or (not done and unsolved) or not (solved or unsolved)
    if not solve_cond:
        return False
    if filter_text is None:
        return True
    fname = str(exercise.path)
    patterns = [p for p in filter_text.lower().split(",") if p.strip()]
    return any(p in exercise.name or p in fname for p in patterns)


def filter_exercises(
    exercises: Iterable[Exercise],
    filter_text: str | None = None,
    solved: bool = False,
    unsolved: bool = False,
) -> list[Exercise]:
    """Return the exercises matching the filter patterns and solved state."""
    return [
        e
        for e in exercises
        if _selected(e, e.looks_done(), filter_text, solved, unsolved)
    ]


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    filter_text: str | None = None,
    solved: bool = False,
    unsolved: bool = False,
) -> int:
    """Print the exercise table and progress; return the number done."""
    out = sys.stdout
    if not paths and not names:
        out.write(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}\n")
    exercises_done = 0
    for exercise in exercises:
        done = exercise.looks_done()
        if done:
            exercises_done += 1
        if not _selected(exercise, done, filter_text, solved, unsolved):
            continue
        fname = str(exercise.path)
        if paths:
            line = f"{fname}\n"
        elif names:
            line = f"{exercise.name}\n"
        else:
            status = "Done" if done else "Pending"
            line = f"{exercise.name:<17}\t{fname:<46}\t{status:<7}\n"
        out.write(line)
    total = len(exercises)
    percentage = exercises_done / total * 100.0 if total else 0.0
    out.write(
        f"Progress: You completed {exercises_done} / {total} exercises "
        f"({percentage:.1f} %).\n"
    )
    return exercises_done


def _now() -> int:
    return int(time.time())


def cicv_verify(
    exercises: Sequence[Exercise],
    output_path: str | os.PathLike = CHECK_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently, write the report and return it."""
    started = _now()
    total = len(exercises)
    report = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()
    rights = 0

    def grade(exercise: Exercise, task_start: int) -> None:
        nonlocal rights
        try:
            run(exercise, True)
        except RunFailed:
            passed = False
        else:
            passed = True
        with lock:
            if passed:
                rights += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {rights}")
            print(f"当前修改试卷耗时: {_now() - task_start} s")
            report.exercises.append(ExerciseResult(name=exercise.name, result=passed))
            if passed:
                report.statistics.total_succeeds += 1
            else:
                report.statistics.total_failures += 1

    with ThreadPoolExecutor() as pool:
        futures = [pool.submit(grade, exercise, _now()) for exercise in exercises]
        for future in futures:
            future.result()

    total_time = _now() - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    report.statistics.total_time = total_time
    Path(output_path).write_text(report.to_json(), encoding="utf-8")
    return report


def generate_project() -> RustAnalyzerProject:
    """Write rust-project.json for the exercises and report the outcome."""
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError as exc:
        raise RuntimeError(
            "Couldn't find toolchain path, do you have `rustc` installed?"
        ) from exc
    try:
        project.exercises_to_json()
    except OSError as exc:
        raise RuntimeError("Couldn't parse rustlings exercises files") from exc

    if not project.crates:
        print("Failed find any exercises, make sure you're in the `rustlings` folder")
        return project
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return project
    print("Successfully generated rust-project.json")
    print(
        "rust-analyzer will now parse exercises, restart your language server or editor"
    )
    return project


def _run_watch(exercises: Sequence[Exercise], verbose: bool, success_hints: bool) -> int:
    try:
        status = watch(exercises, verbose, success_hints)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print(
            "Most likely you've run out of disk space or your "
            "'inotify limit' has been reached."
        )
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if no_emoji() else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FENISH_LINE}\n")
    else:
        print("We hope you're enjoying learning about Rust!")
        print(
            "If you want to continue working on the exercises at a later point, "
            "you can simply run `rustlings watch` again"
        )
    return 0


def _dispatch(args: argparse.Namespace, exercises: list[Exercise]) -> int:
    verbose = args.nocapture
    match args.command:
        case "list":
            try:
                list_exercises(
                    exercises,
                    args.paths,
                    args.names,
                    args.filter,
                    args.solved,
                    args.unsolved,
                )
            except BrokenPipeError:
                return 0
            except OSError:
                return 1
            return 0
        case "run":
            try:
                run(find_exercise(args.name, exercises), verbose)
            except RunFailed:
                return 1
            return 0
        case "reset":
            try:
                reset(find_exercise(args.name, exercises))
            except RunFailed:
                return 1
            return 0
        case "hint":
            print(find_exercise(args.name, exercises).hint)
            return 0
        case "verify":
            try:
                verify(exercises, (0, len(exercises)), verbose, False)
            except VerificationFailed:
                return 1
            return 0
        case "cicvverify":
            cicv_verify(exercises)
            return 0
        case "lsp":
            generate_project()
            return 0
        case "watch":
            return _run_watch(exercises, verbose, args.success_hints)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the exit status."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command in ("run", "reset", "hint") and args.name is None:
        print("Required positional arguments not provided:\n    name", file=sys.stderr)
        return 1

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the rustlings directory")
        print("Try `cd rustlings/`!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    try:
        return _dispatch(args, exercises)
    except ExerciseNotFound as exc:
        print(exc)
        return 1