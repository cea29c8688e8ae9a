import subprocess

import pytest

from rustlings.exercise import CompilationError, ExecutionError, Exercise, Mode
from rustlings.verify import (
    RunMode,
    VerificationFailed,
    compile_and_run_interactively,
    compile_and_test,
    compile_only,
    prompt_for_completion,
    test as run_tests,
    verify,
)

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


class FakeToolchain:
    def __init__(self, compile_ok=True, run_ok=True, stdout=b""):
        self.compile_ok = compile_ok
        self.run_ok = run_ok
        self.stdout = stdout
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        if args[0] in ("rustc", "cargo"):
            code = 0 if self.compile_ok else 1
            return subprocess.CompletedProcess(
                args, code, b"", b"error[E0425]: cannot find value"
            )
        code = 0 if self.run_ok else 101
        return subprocess.CompletedProcess(args, code, self.stdout, b"thread panicked")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NO_EMOJI", raising=False)
    return tmp_path


def install(monkeypatch, toolchain):
    monkeypatch.setattr(subprocess, "run", toolchain)
    return toolchain


def make_exercise(root, name, source, mode=Mode.COMPILE):
    path = root / f"{name}.rs"
    path.write_text(source, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=f"hint for {name}")


def compiled_paths(toolchain):
    return [call[1] for call in toolchain.calls if call[0] == "rustc"]


def test_verify_passes_when_all_finished(workdir, monkeypatch, capsys):
    toolchain = install(monkeypatch, FakeToolchain())
    first = make_exercise(workdir, "first", FINISHED)
    second = make_exercise(workdir, "second", FINISHED)

    verify([first, second], (0, 2))

    assert compiled_paths(toolchain) == [str(first.path), str(second.path)]
    err = capsys.readouterr().err
    assert "Progress: [" in err
    assert "2/2" in err


def test_verify_default_progress_counts_exercises(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain())
    only = make_exercise(workdir, "only", FINISHED)
    verify(iter([only]))
    assert "1/1" in capsys.readouterr().err


def test_verify_stops_at_pending_exercise(workdir, monkeypatch):
    toolchain = install(monkeypatch, FakeToolchain())
    done = make_exercise(workdir, "done", FINISHED)
    pending = make_exercise(workdir, "pending", PENDING)
    later = make_exercise(workdir, "later", FINISHED)

    with pytest.raises(VerificationFailed) as excinfo:
        verify([done, pending, later], (0, 3))

    assert excinfo.value.exercise is pending
    assert str(later.path) not in compiled_paths(toolchain)


def test_verify_reports_compile_failure(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(compile_ok=False))
    broken = make_exercise(workdir, "broken", FINISHED)

    with pytest.raises(VerificationFailed) as excinfo:
        verify([broken], (0, 1))

    assert excinfo.value.exercise is broken
    assert isinstance(excinfo.value.__cause__, CompilationError)
    out = capsys.readouterr().out
    assert "Compiling of" in out
    assert "cannot find value" in out


def test_prompt_for_completion_done(workdir):
    done = make_exercise(workdir, "done", FINISHED)
    assert prompt_for_completion(done, None, False) is True


def test_prompt_for_completion_pending_shows_context(workdir, capsys):
    pending = make_exercise(workdir, "pending", PENDING)

    assert prompt_for_completion(pending, None, False) is False

    out = capsys.readouterr().out
    assert "Successfully ran" in out
    assert "The code is compiling!" in out
    assert "// I AM NOT DONE" in out
    assert "// fake_exercise" in out
    assert "Hints:" not in out


def test_prompt_for_completion_without_emoji(workdir, monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    pending = make_exercise(workdir, "pending", PENDING, mode=Mode.TEST)

    assert prompt_for_completion(pending, None, False) is False

    out = capsys.readouterr().out
    assert "~*~ The code is compiling, and the tests pass! ~*~" in out
    assert "Successfully tested" in out


def test_prompt_for_completion_with_output_and_hints(workdir, capsys):
    pending = make_exercise(workdir, "pending", PENDING)

    prompt_for_completion(pending, "Hello world!", True)

    out = capsys.readouterr().out
    assert "Output:" in out
    assert "Hello world!" in out
    assert "Hints:" in out
    assert "hint for pending" in out
    assert "====================" in out


def test_compile_and_test_non_interactive_ignores_marker(workdir, monkeypatch):
    install(monkeypatch, FakeToolchain())
    pending = make_exercise(workdir, "pending", PENDING, mode=Mode.TEST)
    assert compile_and_test(pending, RunMode.NON_INTERACTIVE, False, False) is True


def test_compile_and_test_interactive_reports_pending(workdir, monkeypatch):
    install(monkeypatch, FakeToolchain())
    pending = make_exercise(workdir, "pending", PENDING, mode=Mode.TEST)
    assert compile_and_test(pending, RunMode.INTERACTIVE, False, False) is False


def test_compile_and_test_verbose_shows_output(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(stdout=b"THIS TEST TOO SHALL PASS\n"))
    exercise = make_exercise(workdir, "testSuccess", FINISHED, mode=Mode.TEST)

    compile_and_test(exercise, RunMode.NON_INTERACTIVE, True, False)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out

    compile_and_test(exercise, RunMode.NON_INTERACTIVE, False, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_test_raises_when_tests_fail(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(run_ok=False, stdout=b"assertion failed"))
    failing = make_exercise(workdir, "testNotPassed", FINISHED, mode=Mode.TEST)

    with pytest.raises(ExecutionError):
        run_tests(failing, False)

    out = capsys.readouterr().out
    assert "Testing of" in out
    assert "assertion failed" in out


def test_compile_only_runs_clippy(workdir, monkeypatch):
    toolchain = install(monkeypatch, FakeToolchain())
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    exercise = make_exercise(workdir, "clippy1", FINISHED, mode=Mode.CLIPPY)

    assert compile_only(exercise, False) is True

    manifest = (workdir / "exercises" / "clippy" / "Cargo.toml").read_text()
    assert 'name = "clippy1"' in manifest
    assert toolchain.calls[-1][:2] == ["cargo", "clippy"]


def test_compile_and_run_interactively_failure(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(run_ok=False))
    exercise = make_exercise(workdir, "crash", FINISHED)

    with pytest.raises(ExecutionError):
        compile_and_run_interactively(exercise, False)

    out = capsys.readouterr().out
    assert "Ran" in out
    assert "thread panicked" in out


def test_compile_and_run_interactively_shows_output(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(stdout=b"Hello world!\n"))
    pending = make_exercise(workdir, "pending", PENDING)

    assert compile_and_run_interactively(pending, False) is False
    out = capsys.readouterr().out
    assert "Output:" in out
    assert "Hello world!" in out