# rustlings

A command-line trainer for small Rust exercises. Each exercise has an error in
it, either a compiler error or a failing test. Your job is to find it and fix it.
When an exercise compiles, runs and its tests pass, remove the `// I AM NOT DONE`
marker from the file and move on to the next one.

## Requirements

- Python 3.11 or later
- A working Rust toolchain: `rustc` must be on your `PATH`. `cargo` is needed
  for exercises in `clippy` and `buildscript` mode.
- `git`, for `rustlings reset`.

## Installation

```
pip install .
```

This installs the `rustlings` command.

## The exercise directory

Every command except `rustlings -v` must be run from a directory that holds an
`info.toml` file; otherwise the command says so and exits with status 1. The
file lists the exercises in their recommended order:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment to move on."
```

`mode` is one of:

- `compile` – the file is compiled with `rustc` and the binary is run;
- `test` – the file is compiled with `rustc --test` and its tests are run;
- `clippy` – a `Cargo.toml` is written to `exercises/clippy/` and
  `cargo clippy` is run with warnings denied;
- `buildscript` – a `Cargo.toml` is written to `exercises/tests/` and
  `cargo test` is run.

An exercise counts as done once no line of it matches `// I AM NOT DONE`
(two or three slashes, any spacing).

This package provides the trainer only; it ships no `info.toml` and no
exercise files of its own.

## Usage

```
rustlings                     # show the welcome text
rustlings -v                  # print the version
rustlings watch               # verify exercises in order, re-checking on every file save
rustlings verify              # verify all exercises once, in order
rustlings run <name>          # compile and run, or test, one exercise
rustlings hint <name>         # print the hint for an exercise
rustlings reset <name>        # undo your changes with `git stash -- <file>`
rustlings list                # show every exercise with its status
rustlings lsp                 # write rust-project.json for rust-analyzer
rustlings cicvverify          # grade every exercise and write a JSON report
```

For `run`, `hint` and `reset`, the name `next` stands for the first exercise
that is not done yet. An unknown name, or a missing one, ends with status 1.

Put `--nocapture` before the subcommand to see the output of test exercises,
for example `rustlings --nocapture run if1`.

### Watch mode

`rustlings watch` checks the exercises in order and stops at the first one that
fails or still carries the `I AM NOT DONE` marker. It then watches the
`exercises` directory and, whenever a `.rs` file is created or changed, checks
that exercise first and then every other unfinished one. While it runs you can
type:

- `hint` – print the hint for the current exercise
- `clear` – clear the screen
- `quit` – leave watch mode
- `!<cmd>` – run a command, such as `!rustc --explain E0381`
- `help` – list these commands

`rustlings watch --success-hints` also shows the hint when an exercise passes
but is still marked as not done.

### Listing exercises

```
rustlings list --paths        # only paths (-p)
rustlings list --names        # only names (-n)
rustlings list --filter if,var   # comma-separated patterns matched against names and paths (-f)
rustlings list --solved       # only finished exercises (-s)
rustlings list --unsolved     # only unfinished exercises (-u)
```

The list ends with a progress line such as
`Progress: You completed 3 / 10 exercises (30.0 %).`

### rust-analyzer

`rustlings lsp` writes `rust-project.json` with one crate for every `.rs` file
under `exercises/`. The standard library sources are taken from `RUST_SRC_PATH`
when it is set, and otherwise from `rustc --print sysroot`.

### Grading

`rustlings cicvverify` runs every exercise concurrently, prints how each one
went, and writes the results, the number of successes and failures and the
total time as JSON to `.github/result/check_result.json`. The
`.github/result` directory must already exist.

Set the `NO_EMOJI` environment variable if your terminal cannot show emoji.

## Using it from Python

The pieces behind the command are importable:

- `rustlings.exercise.load_exercises(path)` reads `info.toml` into `Exercise`
  objects; `Exercise.state()` returns the `ContextLine`s around the marker, or
  `None` when the exercise is done, and `Exercise.compile()` returns a
  `CompiledExercise` whose `run()` raises `ExecutionError` on failure.
- `rustlings.verify.verify(exercises, progress, verbose, success_hints)` raises
  `VerificationFailed` at the first unfinished exercise.
- `rustlings.run.run(exercise, verbose)` raises `RunFailed` on failure.
- `rustlings.cli.main(argv)` runs the command line and returns the exit status.