from fasten.source.loader import DEFAULT_FILE_PATTERN, SourceLoader
from fasten.source.patch import (
    FASTENABLE_PATTERN,
    patch_line,
    render_file,
    write_file,
    write_individual,
)

__all__ = [
    "DEFAULT_FILE_PATTERN",
    "FASTENABLE_PATTERN",
    "SourceLoader",
    "patch_line",
    "render_file",
    "write_file",
    "write_individual",
]
