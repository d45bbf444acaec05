"""
CSV reading shared by the delimited export adapters.
"""

import io
import logging
from collections.abc import Iterator
from typing import Any

import pandas as pd

from .base_parser import MalformedRecordError, UnsupportedVersionError

logger = logging.getLogger(__name__)

POSITION_COLUMN = "__record__"


def number_lines(text: str, delimiter: str) -> str:
    """
    Prefix every line with a leading position field.

    The header gets ``POSITION_COLUMN``, data lines their 1-based record
    number. Blank lines are left as they are, pandas skips them. Quoted fields
    spanning several lines are not supported.
    """
    lines = []
    position = 0
    header_seen = False
    for line in text.removeprefix("\ufeff").splitlines():
        if not line.strip():
            lines.append(line)
        elif not header_seen:
            lines.append(f"{POSITION_COLUMN}{delimiter}{line}")
            header_seen = True
        else:
            position += 1
            lines.append(f"{position}{delimiter}{line}")
    return "\n".join(lines)


def read_csv_records(
    text: str,
    source: str | None,
    delimiter: str,
    required_columns: tuple[str, ...],
) -> Iterator[tuple[int, Any]]:
    """
    Read a delimited export with pandas and yield its rows as dicts.

    Lines with the wrong number of fields are yielded as MalformedRecordError
    in their place, so positions always refer to the data line in the file.
    """
    bad_lines: list[tuple[int, list[str]]] = []

    def collect_bad_line(fields: list[str]) -> None:
        bad_lines.append((int(fields[0]), fields[1:]))
        return None

    try:
        df = pd.read_csv(
            io.StringIO(number_lines(text, delimiter)),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            engine="python",
            on_bad_lines=collect_bad_line,
        )
    except pd.errors.EmptyDataError as e:
        raise UnsupportedVersionError(f"File has no header row: {e}", source) from e
    except pd.errors.ParserError as e:
        raise UnsupportedVersionError(f"File is not a valid CSV export: {e}", source) from e

    df.columns = df.columns.str.strip()
    missing = [column for column in required_columns if column not in df.columns]
    if missing:
        raise UnsupportedVersionError(
            f"Unexpected header, missing columns: {', '.join(missing)}",
            source,
        )

    records: list[tuple[int, Any]] = [
        (int(row.pop(POSITION_COLUMN)), row) for row in df.to_dict("records")
    ]
    for position, fields in bad_lines:
        logger.debug(f"Line of record {position} has {len(fields)} fields")
        records.append(
            (
                position,
                MalformedRecordError(
                    f"Wrong number of fields in line: {delimiter.join(fields)}",
                    source,
                    position,
                ),
            ),
        )
    records.sort(key=lambda record: record[0])

    yield from records
