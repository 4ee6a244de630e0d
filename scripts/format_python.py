#!/usr/bin/env python3
"""
Run black over the project sources with the settings from pyproject.toml.

Usage:
    ./scripts/format_python.py           # reformat in place
    ./scripts/format_python.py --check   # only report files that would change
"""

import argparse
import subprocess
import sys
from pathlib import Path

SOURCE_ENTRIES = ["lib", "internal", "tests", "scripts", "main.py"]


def collect_targets(project_root: Path) -> list[Path]:
    """Return existing source directories and modules, skipping virtualenvs."""
    targets = []
    for entry in SOURCE_ENTRIES:
        path = project_root / entry
        if path.exists() and "venv" not in path.parts:
            targets.append(path)
    return targets


def run_black(project_root: Path, targets: list[Path], check: bool) -> int:
    """Invoke black and return its exit code."""
    cmd = [sys.executable, "-m", "black", "--config", str(project_root / "pyproject.toml")]
    if check:
        cmd += ["--check", "--diff"]
    cmd += [str(t) for t in targets]

    result = subprocess.run(cmd, capture_output=True, text=True)
    if "No module named black" in result.stderr:
        print("Error: black not found. Please install it using 'pip install -e .[dev]'.")
        return 1

    if result.stdout:
        print(result.stdout)
    if result.returncode != 0:
        print("Formatting failed:" if not check else "Some files need formatting:")
    print(result.stderr)
    return result.returncode


def main() -> int:
    parser = argparse.ArgumentParser(description="Format project sources with black")
    parser.add_argument("--check", action="store_true", help="Do not write files, only report")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    targets = collect_targets(project_root)
    if not targets:
        print("No sources found to format.")
        return 0

    print(f"Running black on: {', '.join(t.name for t in targets)}")
    return run_black(project_root, targets, args.check)


if __name__ == "__main__":
    sys.exit(main())
