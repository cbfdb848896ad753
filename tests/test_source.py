from pathlib import Path

from loguru import logger
import pytest

from conftest import make_file
from fasten.exceptions import DirectoryNotFoundError, FastenError, InvalidFastenerError
from fasten.genome import BooleanValue, IntegerValue, PowerOfTwoValue
from fasten.source import SourceLoader, patch_line, render_file, write_individual

GC_C = """\
#include "gc.h"
static int nursery_size = 4096 /* POW FASTENABLE */;
static int major_ratio = 3 /*INT FASTENABLE*/;
static int use_cards = 1 /* BOOL FASTENABLE */;
static int untouched = 17;
"""

GC_H = """\
#define LIMIT 12 /* INT FASTENABLE */
"""


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    (tmp_path / "b").mkdir()
    (tmp_path / "a").mkdir()
    (tmp_path / "b" / "gc.c").write_text(GC_C)
    (tmp_path / "a" / "gc.h").write_text(GC_H)
    (tmp_path / "a" / "notes.txt").write_text("7 /* INT FASTENABLE */\n")
    (tmp_path / "a" / "plain.c").write_text("int x = 1;\n")
    return tmp_path


def test_loader_finds_annotated_constants(tree):
    files = SourceLoader().load([tree])
    assert [Path(f.path).relative_to(tree).as_posix() for f in files] == ["a/gc.h", "b/gc.c"]

    header, source = files
    assert [(f.line, f.value) for f in header.fasteners] == [(1, IntegerValue(number=12))]
    assert [(f.line, f.value) for f in source.fasteners] == [
        (2, PowerOfTwoValue(number=4096)),
        (3, IntegerValue(number=3)),
        (4, BooleanValue(flag=True)),
    ]
    assert all(f.original == f.value for f in source.fasteners)
    assert source.lines[4] == "static int untouched = 17;"


def test_loader_is_deterministic(tree):
    loader = SourceLoader()
    assert loader.load([tree]) == loader.load([tree])


def test_loader_respects_file_pattern(tree):
    files = SourceLoader(r"\.txt$").load([tree])
    assert [Path(f.path).name for f in files] == ["notes.txt"]


def test_loader_missing_directory(tmp_path):
    with pytest.raises(DirectoryNotFoundError) as excinfo:
        SourceLoader().load([tmp_path / "missing"])
    assert "missing" in str(excinfo.value)


def test_loader_preserves_root_order(tree):
    files = SourceLoader().load([tree / "b", tree / "a"])
    assert [Path(f.path).name for f in files] == ["gc.c", "gc.h"]


def test_patch_line_replaces_only_the_annotated_literal():
    file = make_file("a.c", [("INT", 10)])
    fastener = file.fasteners[0].with_value(IntegerValue(number=-3))
    text = "int v = 10 /* INT FASTENABLE */; // was 10"
    assert patch_line(text, fastener) == "int v = -3 /* INT FASTENABLE */; // was 10"


def test_patch_line_renders_booleans_as_digits():
    file = make_file("a.c", [("BOOL", 1)])
    fastener = file.fasteners[0].with_value(BooleanValue(flag=False))
    assert patch_line("x = 1 /* BOOL FASTENABLE */", fastener) == "x = 0 /* BOOL FASTENABLE */"


def test_render_file_leaves_other_lines_untouched():
    file = make_file("a.c", [("INT", 10), ("POW", 8)], extra_lines=2)
    mutated = file.with_fasteners(
        (file.fasteners[0], file.fasteners[1].with_value(PowerOfTwoValue(number=16)))
    )
    assert render_file(mutated).splitlines() == [
        "int v0 = 10 /* INT FASTENABLE */;",
        "int v1 = 16 /* POW FASTENABLE */;",
        "// filler 0",
        "// filler 1",
    ]


def test_write_then_reload_round_trips_values(tree):
    loader = SourceLoader()
    seed = loader.load([tree])
    header, source = seed
    changed = source.with_fasteners(
        (source.fasteners[0].with_value(PowerOfTwoValue(number=8192)),) + source.fasteners[1:]
    )
    write_individual((header, changed))

    reloaded = loader.load([tree])
    assert reloaded[1].fasteners[0].value == PowerOfTwoValue(number=8192)
    assert reloaded[1].lines[4] == "static int untouched = 17;"


@pytest.mark.parametrize(
    "literal", ["99999999999999999999", "-9223372036854775809"]
)
def test_loader_rejects_literals_outside_int64(tmp_path, literal):
    (tmp_path / "big.c").write_text(f"int ok = 1 /* INT FASTENABLE */;\nlong n = {literal} /* INT FASTENABLE */;\n")
    with pytest.raises(InvalidFastenerError) as excinfo:
        SourceLoader().load([tmp_path])
    assert isinstance(excinfo.value, FastenError)
    assert excinfo.value.line == 2
    assert excinfo.value.path.endswith("big.c")
    assert "big.c:2" in str(excinfo.value)


def test_loader_accepts_int64_bounds(tmp_path):
    (tmp_path / "edge.c").write_text(
        "long a = 9223372036854775807 /* INT FASTENABLE */;\n"
        "long b = -9223372036854775808 /* INT FASTENABLE */;\n"
    )
    (file,) = SourceLoader().load([tmp_path])
    assert [f.value.number for f in file.fasteners] == [2**63 - 1, -(2**63)]


def test_loader_warns_on_pow_literal_that_is_not_a_power_of_two(tmp_path):
    (tmp_path / "pow.c").write_text("int a = 12 /* POW FASTENABLE */;\nint b = 16 /* POW FASTENABLE */;\n")
    messages = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        (file,) = SourceLoader().load([tmp_path])
    finally:
        logger.remove(handler_id)

    assert [f.value for f in file.fasteners] == [
        PowerOfTwoValue(number=12),
        PowerOfTwoValue(number=16),
    ]
    assert len(messages) == 1
    assert "pow.c:1" in messages[0]
    assert "not a power of two" in messages[0]
