from __future__ import annotations

import os
from pathlib import Path
import re
from typing import Iterable, Iterator

from loguru import logger
from pydantic import ValidationError

from fasten.exceptions import DirectoryNotFoundError, InvalidFastenerError
from fasten.genome.models import Fastener, Individual, SourceFile
from fasten.genome.values import PowerOfTwoValue, is_power_of_two, make_value
from fasten.source.patch import FASTENABLE_PATTERN

DEFAULT_FILE_PATTERN = r"\.(c|h)$"


class SourceLoader:
    """Discovers FASTENABLE-annotated constants under a set of directories.

    Files and fasteners come back in a stable order (sorted walk, then line
    order) so that every individual built from the result lines up with every
    other one.
    """

    def __init__(self, file_pattern: str = DEFAULT_FILE_PATTERN):
        self.file_pattern = re.compile(file_pattern)

    def load(self, directories: Iterable[str | Path]) -> Individual:
        files = tuple(
            file
            for directory in directories
            for file in self.load_directory(directory)
        )
        logger.info(
            "[SourceLoader] Loaded {} fastener(s) from {} file(s)",
            sum(len(file.fasteners) for file in files),
            len(files),
        )
        return files

    def load_directory(self, directory: str | Path) -> Iterator[SourceFile]:
        if not Path(directory).is_dir():
            raise DirectoryNotFoundError(str(directory))
        for path in self._walk(Path(directory)):
            if not self.file_pattern.search(str(path)):
                continue
            file = self.load_file(path)
            if file is not None:
                yield file

    def load_file(self, path: str | Path) -> SourceFile | None:
        path = str(path)
        lines = tuple(
            Path(path).read_text(encoding="utf-8", errors="surrogateescape").splitlines()
        )

        fasteners = []
        for number, text in enumerate(lines, start=1):
            match = FASTENABLE_PATTERN.search(text)
            if match is None:
                continue
            try:
                value = make_value(match.group("kind"), int(match.group("number")))
            except ValidationError as e:
                raise InvalidFastenerError(path, number, e.errors()[0]["msg"]) from e
            if isinstance(value, PowerOfTwoValue) and not is_power_of_two(value.number):
                logger.warning(
                    "[SourceLoader] {}:{}: POW literal {} is not a power of two; "
                    "shifting will not make it one",
                    path,
                    number,
                    value.number,
                )
            fasteners.append(
                Fastener(path=path, line=number, original=value, value=value)
            )

        if not fasteners:
            return None
        logger.debug("[SourceLoader] File {} contains {} fastener(s)", path, len(fasteners))
        return SourceFile(path=path, lines=lines, fasteners=tuple(fasteners))

    @staticmethod
    def _walk(root: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                yield Path(dirpath) / filename
