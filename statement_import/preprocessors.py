"""Text transforms applied to raw CSV content before it is parsed.

Every step is a pure ``str -> str`` function over the whole document. The
pipeline runs a :class:`~statement_import.formats.models.FormatConfig`'s
``preprocessing`` steps left to right, feeding each output into the next.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .csv_line import format_csv_line
from .formats.models import (
    NormalizeLineEndings,
    PreprocessingStep,
    RemoveEmptyRows,
    SkipLines,
    SkipUntilHeader,
    TrimWhitespace,
    TsvToCsv,
)
from .logging_setup import get_logger

_logger = get_logger("statement_import.preprocessors")

_BOM = "\ufeff"


def strip_bom(content: str) -> str:
    """Drop a leading UTF-8 byte-order mark."""

    return content[len(_BOM) :] if content.startswith(_BOM) else content


def normalize_line_endings(content: str) -> str:
    """Collapse ``\\r\\n`` and lone ``\\r`` into ``\\n``."""

    return content.replace("\r\n", "\n").replace("\r", "\n")


def skip_lines(content: str, count: int) -> str:
    return "\n".join(content.split("\n")[count:])


def skip_until_header(content: str, header_pattern: str) -> str:
    """Return ``content`` starting at the first line matching ``header_pattern``.

    The pattern is matched at the start of each line. When no line matches,
    the content is returned unchanged.
    """

    regex = re.compile(header_pattern)
    lines = content.split("\n")
    for idx, line in enumerate(lines):
        if regex.match(line):
            return "\n".join(lines[idx:])
    _logger.debug("skipUntilHeader: no line matched %r; content left unchanged", header_pattern)
    return content


def tsv_to_csv(content: str) -> str:
    """Convert tab-separated lines to comma-separated ones."""

    return "\n".join(format_csv_line(line.split("\t")) for line in content.split("\n"))


def trim_whitespace(content: str) -> str:
    return "\n".join(line.strip() for line in content.split("\n"))


def remove_empty_rows(content: str) -> str:
    return "\n".join(line for line in content.split("\n") if line.strip())


def apply_step(content: str, step: PreprocessingStep) -> str:
    """Apply a single preprocessing step, dispatching on its ``type`` tag."""

    match step:
        case NormalizeLineEndings():
            return normalize_line_endings(content)
        case SkipLines(count=count):
            return skip_lines(content, count)
        case SkipUntilHeader(header_pattern=pattern):
            return skip_until_header(content, pattern)
        case TsvToCsv():
            return tsv_to_csv(content)
        case TrimWhitespace():
            return trim_whitespace(content)
        case RemoveEmptyRows():
            return remove_empty_rows(content)
    raise ValueError(f"unknown preprocessing step: {step!r}")


def run_preprocessing_pipeline(
    content: str, steps: Iterable[PreprocessingStep] | None
) -> str:
    """Run ``steps`` over ``content`` in order; ``None`` or empty is a no-op."""

    result = content
    for step in steps or ():
        result = apply_step(result, step)
    return result


__all__ = [
    "apply_step",
    "normalize_line_endings",
    "remove_empty_rows",
    "run_preprocessing_pipeline",
    "skip_lines",
    "skip_until_header",
    "strip_bom",
    "trim_whitespace",
    "tsv_to_csv",
]
