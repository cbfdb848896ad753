"""Shared test fixtures."""

from pathlib import Path
import shlex
import sys
import textwrap

import pytest

from fasten.genome.models import Fastener, SourceFile
from fasten.genome.values import make_value


def make_file(path: str, entries: list[tuple[str, int]], extra_lines: int = 0) -> SourceFile:
    """A SourceFile with one annotated line per (kind, number) in ``entries``."""
    lines = [f"int v{i} = {number} /* {kind} FASTENABLE */;" for i, (kind, number) in enumerate(entries)]
    lines += [f"// filler {i}" for i in range(extra_lines)]
    fasteners = tuple(
        Fastener(path=path, line=i + 1, original=value, value=value)
        for i, value in enumerate(make_value(kind, number) for kind, number in entries)
    )
    return SourceFile(path=path, lines=tuple(lines), fasteners=fasteners)


@pytest.fixture
def script(tmp_path: Path):
    """Write a Python script under tmp_path and return a command line running it."""
    counter = {"n": 0}

    def _script(code: str, *args: str) -> str:
        counter["n"] += 1
        path = tmp_path / f"script_{counter['n']}.py"
        path.write_text(textwrap.dedent(code))
        return " ".join(shlex.quote(part) for part in (sys.executable, str(path), *args))

    return _script


@pytest.fixture
def noop(script) -> str:
    return script("pass\n")


def process_alive(pid: int) -> bool:
    try:
        with open(f"/proc/{pid}/stat") as f:
            state = f.read().rsplit(")", 1)[1].split()[0]
    except FileNotFoundError:
        return False
    return state != "Z"
