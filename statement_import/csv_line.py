"""Single-line CSV tokenizer.

Bank exports are read line by line after preprocessing, so this parser works
on one line at a time and does not support newlines embedded in quoted
fields. An unterminated quote closes the field at end of line.
"""

from __future__ import annotations

from collections.abc import Iterable


def parse_csv_line(line: str) -> list[str]:
    """Split ``line`` into fields, honoring double-quoted fields.

    - Outside quotes, ``,`` ends a field and ``"`` opens a quoted section.
    - Inside quotes, ``""`` is an escaped quote and a lone ``"`` closes it.
    - Every emitted field is stripped of surrounding whitespace.

    An empty line yields ``[""]``.
    """

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        char = line[i]
        if in_quotes:
            if char == '"':
                if i + 1 < n and line[i + 1] == '"':
                    current.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                current.append(char)
        elif char == '"':
            in_quotes = True
        elif char == ",":
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


_QUOTE_TRIGGERS = (",", '"', "\n", "\r")


def format_csv_line(fields: Iterable[str]) -> str:
    """Serialize ``fields`` into one CSV line, quoting only where required.

    Parsed fields are always stripped, so ``parse_csv_line(format_csv_line(f))``
    returns ``f`` for any stripped, newline-free ``f``.
    """

    out: list[str] = []
    for field in fields:
        if any(c in field for c in _QUOTE_TRIGGERS):
            out.append('"' + field.replace('"', '""') + '"')
        else:
            out.append(field)
    return ",".join(out)


__all__ = ["format_csv_line", "parse_csv_line"]
