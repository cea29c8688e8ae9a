"""A command-line trainer that checks, runs and grades small Rust exercises."""

__version__ = "5.5.1"
__all__ = ["cli", "exercise", "project", "run", "ui", "verify", "watch"]