"""Delimited-text tokenizer for question CSV files.

Rows may contain quoted fields with embedded delimiters and line breaks.
``\\r\\n``, ``\\r`` and ``\\n`` all end a row. The tokenizer never raises:
unbalanced quotes simply run to the end of the input.
"""

DELIMITER = ","
QUOTE = '"'


def split_rows(text: str) -> list[str]:
    """
    Split raw text into row strings.

    Quote characters are kept in the row text so that ``split_fields`` can
    resolve them. A line break inside an open quote belongs to the row.

    Args:
        text: Raw CSV text

    Returns:
        Row strings, without terminators
    """
    if not text.strip():
        return []

    rows: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        ch = text[i]
        if ch == QUOTE:
            in_quotes = not in_quotes
            current.append(ch)
        elif not in_quotes and ch in ("\n", "\r"):
            if ch == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            rows.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    tail = "".join(current)
    if tail.strip():
        rows.append(tail)
    return rows


def split_fields(row: str) -> list[str]:
    """
    Split one row into field values.

    A doubled quote inside a quoted field yields one literal quote.

    Args:
        row: Row text as returned by ``split_rows``

    Returns:
        Field values (unquoted, untrimmed)
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(row)

    while i < length:
        ch = row[i]
        if in_quotes:
            if ch == QUOTE:
                if i + 1 < length and row[i + 1] == QUOTE:
                    current.append(QUOTE)
                    i += 1
                else:
                    in_quotes = False
            else:
                current.append(ch)
        elif ch == QUOTE:
            in_quotes = True
        elif ch == DELIMITER:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))
    return fields


def tokenize(text: str) -> list[list[str]]:
    """Split text into rows of fields."""
    return [split_fields(row) for row in split_rows(text)]
