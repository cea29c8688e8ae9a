"""Describing the exercises as a rust-project.json for rust-analyzer."""

from __future__ import annotations

import glob
import json
import os
import subprocess
from dataclasses import asdict, dataclass, field
from pathlib import Path

PROJECT_FILE = "./rust-project.json"
EXERCISES_DIR = "./exercises"


@dataclass
class Crate:
    """One exercise file, seen by rust-analyzer as a crate of its own."""

    root_module: str
    edition: str = "2021"
    deps: list[str] = field(default_factory=list)
    # Lets rust-analyzer work inside #[test] blocks.
    cfg: list[str] = field(default_factory=lambda: ["test"])


@dataclass
class RustAnalyzerProject:
    """Contents of a rust-project.json file."""

    sysroot_src: str = ""
    crates: list[Crate] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return the project as JSON-ready data."""
        return {
            "sysroot_src": self.sysroot_src,
            "crates": [asdict(crate) for crate in self.crates],
        }

    def write_to_disk(self, path: str | os.PathLike = PROJECT_FILE) -> None:
        """Write the project file."""
        text = json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))
        Path(path).write_text(text, encoding="utf-8")

    def path_to_json(self, path: str | os.PathLike) -> None:
        """Add a crate for the path if it names a .rs file."""
        name = os.fspath(path)
        if os.path.splitext(name)[1] == ".rs":
            self.crates.append(Crate(root_module=name))

    def exercises_to_json(self, root: str | os.PathLike = EXERCISES_DIR) -> None:
        """Add a crate for every .rs file below the exercises directory."""
        pattern = os.path.join(os.fspath(root), "**", "*")
        for match in sorted(glob.glob(pattern, recursive=True, include_hidden=True)):
            self.path_to_json(match)

    def get_sysroot_src(self) -> None:
        """Find the standard library sources of the default toolchain."""
        from_env = os.environ.get("RUST_SRC_PATH")
        if from_env is not None:
            self.sysroot_src = from_env
            return

        proc = subprocess.run(
            ["rustc", "--print", "sysroot"], capture_output=True, check=False
        )
        output = proc.stdout.decode("utf-8", errors="replace")
        tokens = output.split()
        toolchain = tokens[0] if tokens else output

        print(f"Determined toolchain: {toolchain}\n")

        self.sysroot_src = str(
            Path(toolchain, "lib", "rustlib", "src", "rust", "library")
        )