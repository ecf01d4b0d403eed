"""
Data Loading and Parsing for Racing Line Telemetry

This module handles loading delimited telemetry exports (one channel sample per
line) and parsing them into typed TelemetryRow records.
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import pandas as pd

from . import constants

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = (",", ";", "\t", "|")


class TelemetryFormatError(ValueError):
    """Raised when the input is not a telemetry table at all."""


@dataclass(frozen=True)
class TelemetryRow:
    """One raw (timestamp, channel, value) sample from the data logger."""

    timestamp: str
    telemetry_name: str
    telemetry_value: str
    extra: Mapping[str, str] = field(default_factory=dict, compare=False)


def detect_delimiter(header_line: str) -> str:
    """
    Pick the delimiter used by a header line.

    Only the header is inspected because timestamps contain ':' and '.', which
    confuse general-purpose sniffers.

    Args:
        header_line: First line of the table.

    Returns:
        The candidate delimiter occurring most often, ',' when none occur.
    """
    counts = {delim: header_line.count(delim) for delim in CANDIDATE_DELIMITERS}
    best = max(CANDIDATE_DELIMITERS, key=lambda delim: counts[delim])
    return best if counts[best] > 0 else ","


def _drop_unbalanced_quotes(lines: List[str]) -> List[str]:
    """
    Drop data lines with an odd number of quote characters.

    Such a line would open a quoted field that swallows the rest of the file.
    """
    kept = lines[:1]
    for number, line in enumerate(lines[1:], start=2):
        if line.count('"') % 2:
            logger.debug("Skipping line %d: unbalanced quote", number)
            continue
        kept.append(line)
    return kept


def parse_telemetry_text(text: str, delimiter: Optional[str] = None) -> List[TelemetryRow]:
    """
    Parse delimited telemetry text into TelemetryRow records.

    The first line is the header. All cells are kept as stripped strings; no
    numeric conversion happens here, and rows with blank required fields are
    kept so the aggregator can apply its skip rule. Lines with extra fields
    or an unbalanced quote are skipped and logged at DEBUG.

    Args:
        text: Full contents of the telemetry export.
        delimiter: Field delimiter. Detected from the header when None.

    Returns:
        List of TelemetryRow in file order. Empty list for empty input.

    Raises:
        TelemetryFormatError: If a required column is missing from the header.
    """
    text = text.lstrip("\ufeff")
    if not text.strip():
        return []

    lines = text.splitlines()
    if delimiter is None:
        delimiter = detect_delimiter(lines[0])

    lines = _drop_unbalanced_quotes(lines)
    skipped = []

    def skip_bad_line(bad_line: List[str]) -> None:
        skipped.append(bad_line)
        logger.debug("Skipping malformed line with %d fields: %r", len(bad_line), bad_line)
        return None

    df = pd.read_csv(
        io.StringIO("\n".join(lines)),
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        on_bad_lines=skip_bad_line,
        engine="python",
    )
    df.columns = df.columns.str.strip()

    missing = [col for col in constants.REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise TelemetryFormatError(f"Missing required column(s): {', '.join(missing)}")

    df = df.fillna("")
    extra_columns = [col for col in df.columns if col not in constants.REQUIRED_COLUMNS]

    rows = []
    for record in df.to_dict(orient="records"):
        cells: Dict[str, str] = {key: str(value).strip() for key, value in record.items()}
        rows.append(TelemetryRow(
            timestamp=cells[constants.TIMESTAMP_COLUMN],
            telemetry_name=cells[constants.NAME_COLUMN],
            telemetry_value=cells[constants.VALUE_COLUMN],
            extra={col: cells[col] for col in extra_columns},
        ))

    logger.debug("Parsed %d telemetry rows (delimiter=%r, %d malformed lines skipped)",
                 len(rows), delimiter, len(skipped))
    return rows


def load_telemetry_file(file_path: Path = constants.DEFAULT_DATA_FILE,
                        delimiter: Optional[str] = None) -> List[TelemetryRow]:
    """
    Load a telemetry export from disk.

    Args:
        file_path: Path to the delimited telemetry file. Defaults to DEFAULT_DATA_FILE.
        delimiter: Field delimiter. Detected from the header when None.

    Returns:
        List of TelemetryRow parsed from the file.
    """
    with Path(file_path).open("r", encoding="utf-8-sig") as file:
        text = file.read()
    return parse_telemetry_text(text, delimiter=delimiter)
