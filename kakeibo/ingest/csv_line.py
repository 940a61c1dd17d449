"""Single-line CSV tokenizer.

Export files are processed line by line (one transaction per physical line),
so this splitter works on one line at a time rather than on a stream:

- commas split fields only outside double-quoted spans;
- ``""`` inside a quoted span yields a literal ``"``;
- every field is trimmed;
- an unterminated quote simply extends to the end of the line.

It never raises; malformed quoting degrades to the best-effort split above.
"""

from __future__ import annotations


def split_csv_line(line: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    quoted = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if quoted:
            if ch == '"' and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            elif ch == '"':
                quoted = False
            else:
                current.append(ch)
        elif ch == '"':
            quoted = True
        elif ch == ",":
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current).strip())
    return fields


__all__ = ["split_csv_line"]
