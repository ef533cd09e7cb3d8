from __future__ import annotations

import ast
import os
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
EXAMPLES_ROOT = REPO_ROOT / "examples"
SRC_ROOT = REPO_ROOT / "src"

EXPECTED_MARKER = "# =>"


def _example_paths() -> list[Path]:
    return sorted(EXAMPLES_ROOT.glob("ex_*/01_*.py"))


def _expected_stdout(path: Path) -> list[str]:
    """Collect ``# =>`` annotations of ``print`` calls in source order."""
    source = path.read_text(encoding="utf-8")
    lines = source.splitlines()
    calls = sorted(
        (
            node
            for node in ast.walk(ast.parse(source, filename=str(path)))
            if isinstance(node, ast.Call)
            and isinstance(node.func, ast.Name)
            and node.func.id == "print"
        ),
        key=lambda node: (node.lineno, node.col_offset),
    )

    expected: list[str] = []
    for call in calls:
        closing_line = lines[(call.end_lineno or call.lineno) - 1]
        assert EXPECTED_MARKER in closing_line, (
            f"{path}:{call.lineno}: print() needs a '{EXPECTED_MARKER}' expectation."
        )
        expected.append(closing_line.split(EXPECTED_MARKER, maxsplit=1)[1].strip())
    return expected


@pytest.mark.parametrize(
    "path",
    _example_paths(),
    ids=lambda path: str(path.relative_to(EXAMPLES_ROOT)),
)
def test_example_prints_annotated_output(path: Path) -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        item for item in (str(SRC_ROOT), env.get("PYTHONPATH")) if item
    )

    completed = subprocess.run(  # noqa: S603
        [sys.executable, str(path)],
        cwd=path.parent,
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )

    assert completed.returncode == 0, completed.stderr
    assert completed.stderr == ""
    assert completed.stdout.splitlines() == _expected_stdout(path)
