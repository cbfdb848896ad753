"""Splicing evolved values back into source text."""

from __future__ import annotations

from pathlib import Path
import re

from loguru import logger

from fasten.genome.models import Fastener, Individual, SourceFile
from fasten.genome.values import ValueKind

KINDS = "|".join(kind.value for kind in ValueKind)

# A decimal literal immediately followed by e.g. ``/* POW FASTENABLE */``.
FASTENABLE_PATTERN = re.compile(
    rf"(?P<number>-?\d+)(?=\s*/\*\s*(?P<kind>{KINDS})\s+FASTENABLE\s*\*/)"
)


def patch_line(text: str, fastener: Fastener) -> str:
    """Replace the annotated literal on ``text`` with the fastener's current value."""
    return FASTENABLE_PATTERN.sub(
        lambda _match: fastener.value.render(), text, count=1
    )


def render_file(file: SourceFile) -> str:
    by_line = {fastener.line: fastener for fastener in file.fasteners}
    rendered = []
    for number, text in enumerate(file.lines, start=1):
        fastener = by_line.get(number)
        rendered.append(patch_line(text, fastener) if fastener else text)
    return "\n".join(rendered) + "\n"


def write_file(file: SourceFile) -> None:
    Path(file.path).write_text(
        render_file(file), encoding="utf-8", errors="surrogateescape"
    )


def write_individual(individual: Individual) -> None:
    for file in individual:
        write_file(file)
    logger.debug("[Patch] Wrote {} file(s)", len(individual))
