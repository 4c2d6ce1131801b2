from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from bloodsugar.errors import ParseError
from bloodsugar.models import RawRecord, records_from_rows


logger = logging.getLogger(__name__)

DELIMITER_CANDIDATES: Tuple[str, ...] = (",", "\t", "|", ";")
DEFAULT_DELIMITER = ","
PREVIEW_LINES = 10

_FLOAT_RE = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
_INT_RE = re.compile(r"^\s*-?\d+\s*$")


@dataclass(frozen=True)
class ParseWarning:
    code: str
    message: str
    row: Optional[int] = None


@dataclass(frozen=True)
class ParseResult:
    rows: List[Dict[str, Any]]
    delimiter: str
    fields: List[str] = field(default_factory=list)
    warnings: List[ParseWarning] = field(default_factory=list)

    @property
    def records(self) -> List[RawRecord]:
        return records_from_rows(self.rows)


def infer_value(value: object) -> Any:
    """Dynamic typing for a single cell: blank -> None, true/false -> bool, numerals -> int/float."""
    if value is None:
        return None
    if not isinstance(value, str):
        # short rows are padded with NaN
        return None if pd.isna(value) else value
    if value.strip() == "":
        return None
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    return value


def detect_delimiter(text: str, candidates: Sequence[str] = DELIMITER_CANDIDATES) -> Tuple[str, bool]:
    """Pick the candidate that splits the preview lines into the most consistent field counts.

    Returns the delimiter and whether it was actually detected (False means the default was used).
    """
    lines = [ln for ln in text.splitlines() if ln.strip()][:PREVIEW_LINES]
    if not lines:
        return DEFAULT_DELIMITER, False

    best: Optional[str] = None
    best_delta: Optional[int] = None
    best_avg = 0.0
    for delim in candidates:
        counts = [len(row) for row in csv.reader(lines, delimiter=delim)]
        if not counts:
            continue
        avg = sum(counts) / len(counts)
        if avg <= 1.99:
            continue
        delta = sum(abs(b - a) for a, b in zip(counts, counts[1:]))
        if best_delta is None or delta < best_delta or (delta == best_delta and avg > best_avg):
            best, best_delta, best_avg = delim, delta, avg

    if best is None:
        return DEFAULT_DELIMITER, False
    return best, True


def _overflow_rows(text: str, delimiter: str) -> Tuple[int, List[Tuple[int, List[str]]]]:
    """Header width and the (data row number, cells) of every wider row, in file order."""
    rows = [r for r in csv.reader(io.StringIO(text), delimiter=delimiter) if r]
    if not rows:
        return 0, []
    width = len(rows[0])
    return width, [(i, r) for i, r in enumerate(rows[1:]) if len(r) > width]


def _too_many_fields(cells: List[str], width: int, row: Optional[int], delimiter: str) -> ParseWarning:
    return ParseWarning(
        code="TooManyFields",
        message=(
            f"Too many fields: expected {width} but parsed {len(cells)}; "
            f"extra fields dropped ({delimiter.join(cells)[:80]})"
        ),
        row=row,
    )


def parse_csv(text: str, *, source: Optional[str] = None) -> ParseResult:
    if text.startswith("\ufeff"):
        text = text[1:]
    if not text.strip():
        return ParseResult(rows=[], delimiter=DEFAULT_DELIMITER)

    delimiter, detected = detect_delimiter(text)
    warnings: List[ParseWarning] = []
    if not detected:
        warnings.append(
            ParseWarning(
                code="UndetectableDelimiter",
                message=f"Unable to auto-detect delimiting character; defaulted to {DEFAULT_DELIMITER!r}",
            )
        )

    where = f" from {source}" if source else ""
    try:
        width, overflow = _overflow_rows(text, delimiter)
    except csv.Error as exc:
        raise ParseError(f"Error parsing CSV{where}: {exc}", source=source) from exc
    pending = [row for row, _ in overflow]

    # pandas reads a wide first data row as an implicit index column;
    # index_col=False makes it drop the extra cells instead of calling on_bad_lines.
    wide_first_row = bool(overflow) and overflow[0][0] == 0
    if wide_first_row:
        warnings.extend(_too_many_fields(cells, width, row, delimiter) for row, cells in overflow)

    def _collect_bad_line(bad_line: List[str]) -> List[str]:
        row = pending.pop(0) if pending else None
        warnings.append(_too_many_fields(bad_line, width, row, delimiter))
        return bad_line[:width]

    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            engine="python",
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False if wide_first_row else None,
            on_bad_lines=_collect_bad_line,
        )
    except pd.errors.EmptyDataError:
        return ParseResult(rows=[], delimiter=delimiter, warnings=warnings)
    except (pd.errors.ParserError, csv.Error) as exc:
        raise ParseError(f"Error parsing CSV{where}: {exc}", source=source) from exc

    df.columns = [str(c).strip() for c in df.columns]
    rows = [{k: infer_value(v) for k, v in rec.items()} for rec in df.to_dict(orient="records")]

    if warnings:
        logger.warning("CSV parsing warnings: %s", [w.message for w in warnings])
    logger.info("Processed %d records%s", len(rows), f" from {source}" if source else "")
    return ParseResult(rows=rows, delimiter=delimiter, fields=list(df.columns), warnings=warnings)
