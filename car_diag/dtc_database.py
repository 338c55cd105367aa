"""
Car Error Code (DTC) Database

In-memory index of diagnostic error codes loaded from a CSV dataset.
Supports exact code lookup, listing by system or severity, and keyword search
across descriptions, causes and recommended actions.

License: GNU General Public License v3.0 (GPL-3.0)

Classes:
    LoadError(Exception) - Dataset could not be loaded
    ErrorCode - One diagnostic entry (immutable)
    DiagnosticsIndex - Code -> ErrorCode index with query operations

Variables (Module-level):
    FIELDS: Tuple[str, ...] - Column names every dataset must provide
    logger: logging.Logger - Module logger
"""

from __future__ import annotations

import csv
import html
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, TextIO, Tuple, Union

logger = logging.getLogger(__name__)

FIELDS: Tuple[str, ...] = (
    'code',
    'description',
    'severity',
    'system',
    'possible_causes',
    'recommended_actions',
)

# Sub-delimiter inside the multi-valued columns
SEGMENT_DELIMITER = '|'

Source = Union[str, Path, TextIO]


class LoadError(Exception):
    """Raised when the error code dataset cannot be loaded"""
    pass


def split_segments(value: str) -> List[str]:
    """Split a '|'-delimited field into trimmed segments (empty ones are kept)."""
    return [segment.strip() for segment in value.split(SEGMENT_DELIMITER)]


@dataclass(frozen=True)
class ErrorCode:
    """
    Diagnostic error code entry

    Attributes:
        code: Error code (e.g., 'P0300'), unique within an index
        description: Short description
        severity: Free-text severity ('Low', 'Medium', 'High', 'Critical', ...)
        system: Subsystem name (e.g., 'Engine', 'ABS')
        possible_causes: Causes joined with '|'
        recommended_actions: Actions joined with '|'
    """
    code: str
    description: str
    severity: str
    system: str
    possible_causes: str
    recommended_actions: str

    @property
    def causes(self) -> List[str]:
        return split_segments(self.possible_causes)

    @property
    def actions(self) -> List[str]:
        return split_segments(self.recommended_actions)

    def render_text(self) -> str:
        """Plain-text report body used by the text exporter."""
        lines = [
            f"Error Code: {self.code}",
            f"Description: {self.description}",
            f"Severity: {self.severity}",
            f"System: {self.system}",
            "",
            "Possible Causes:",
        ]
        lines.extend(f"  - {cause}" for cause in self.causes)
        lines.append("")
        lines.append("Recommended Actions:")
        lines.extend(f"  - {action}" for action in self.actions)
        return "\n".join(lines) + "\n"

    def render_html_fragment(self, escape: bool = True) -> str:
        """
        HTML fragment (one <div class='error-code'>) used by the HTML exporter.

        Args:
            escape: Escape '&', '<' and '>' in field text. Pass False to embed
                values verbatim.
        """
        def clean(value: str) -> str:
            return html.escape(value, quote=False) if escape else value

        lines = [
            "<div class='error-code'>",
            f"<h2>Error Code: {clean(self.code)}</h2>",
            f"<p><strong>Description:</strong> {clean(self.description)}</p>",
            f"<p><strong>Severity:</strong> {clean(self.severity)}</p>",
            f"<p><strong>System:</strong> {clean(self.system)}</p>",
            "<h3>Possible Causes:</h3>",
            "<ul>",
        ]
        lines.extend(f"<li>{clean(cause)}</li>" for cause in self.causes)
        lines.append("</ul>")
        lines.append("<h3>Recommended Actions:</h3>")
        lines.append("<ul>")
        lines.extend(f"<li>{clean(action)}</li>" for action in self.actions)
        lines.append("</ul>")
        lines.append("</div>")
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"ErrorCode({self.code}: {self.description})"


class DiagnosticsIndex:
    """
    Read-only index of error codes keyed by code.

    Usage:
        index = DiagnosticsIndex()
        index.load('data/error_codes.csv')
        index.lookup('P0300')
        index.search('vacuum')

    The index is filled once by load() and only read afterwards.
    """

    def __init__(self) -> None:
        self._errors: Dict[str, ErrorCode] = {}
        self._loaded = False

    def load(self, source: Source) -> int:
        """
        Load error codes from a CSV file or open text stream.

        The header row must name every column in FIELDS (any order, extra
        columns ignored). Duplicate codes: the later row wins.

        Args:
            source: Path to the CSV file, or a readable text stream

        Returns:
            Number of error codes in the index

        Raises:
            LoadError: If the source cannot be read or any row is malformed.
                Nothing is loaded in that case.

        Example:
            >>> index = DiagnosticsIndex()
            >>> index.load(Path('error_codes.csv'))
            42
        """
        name = getattr(source, 'name', '<stream>') if hasattr(source, 'read') else str(source)
        try:
            try:
                if hasattr(source, 'read'):
                    staged = self._parse(source, name)
                else:
                    with open(Path(source), 'r', encoding='utf-8-sig', newline='') as f:
                        staged = self._parse(f, name)
            except OSError as e:
                raise LoadError(f"Cannot read error code database {name}: {e}")
        except LoadError as e:
            logger.error(f"Error loading error codes: {e}")
            raise

        self._errors = staged
        self._loaded = True
        logger.info(f"Loaded {len(staged)} error codes")
        return len(staged)

    def _parse(self, stream: TextIO, name: str) -> Dict[str, ErrorCode]:
        staged: Dict[str, ErrorCode] = {}
        reader = csv.reader(stream)
        try:
            header = next(reader, None)
            if header is None:
                raise LoadError(f"{name}: empty file, expected a header row")

            if header:
                # Streams opened as plain utf-8 keep the BOM
                header[0] = header[0].lstrip('\ufeff')
            header = [column.strip() for column in header]
            missing = [field for field in FIELDS if field not in header]
            if missing:
                raise LoadError(f"{name}: header is missing column(s): {', '.join(missing)}")
            positions = {field: header.index(field) for field in FIELDS}

            for row in reader:
                if not row:
                    continue
                if len(row) != len(header):
                    raise LoadError(
                        f"{name}: line {reader.line_num}: expected {len(header)} fields, "
                        f"found {len(row)}"
                    )
                record = ErrorCode(**{field: row[pos] for field, pos in positions.items()})
                if record.code in staged:
                    logger.debug(f"Duplicate error code {record.code} at line {reader.line_num}, replacing")
                staged[record.code] = record
        except csv.Error as e:
            raise LoadError(f"{name}: line {reader.line_num}: {e}")
        except UnicodeDecodeError as e:
            raise LoadError(f"{name}: not valid UTF-8: {e}")
        return staged

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def lookup(self, code: str) -> Optional[ErrorCode]:
        """Exact, case-sensitive lookup. Returns None if the code is unknown."""
        return self._errors.get(code)

    def list_by_system(self, system: str) -> List[ErrorCode]:
        """Get all error codes for a system (case-insensitive)"""
        system = system.lower()
        return [error for error in self._errors.values() if error.system.lower() == system]

    def list_by_severity(self, severity: str) -> List[ErrorCode]:
        """Get all error codes with a severity level (case-insensitive)"""
        severity = severity.lower()
        return [error for error in self._errors.values() if error.severity.lower() == severity]

    def search(self, keyword: str) -> List[ErrorCode]:
        """
        Search error codes by keyword

        Matches a case-insensitive substring of the description or of the raw
        possible_causes / recommended_actions strings. An empty keyword
        matches every code.

        Args:
            keyword: Search term

        Returns:
            List of matching error codes
        """
        keyword = keyword.lower()
        results = []

        for error in self._errors.values():
            if (keyword in error.description.lower() or
                    keyword in error.possible_causes.lower() or
                    keyword in error.recommended_actions.lower()):
                results.append(error)

        return results

    def __len__(self) -> int:
        return len(self._errors)

    def __contains__(self, code: object) -> bool:
        return code in self._errors

    def __iter__(self) -> Iterator[ErrorCode]:
        return iter(list(self._errors.values()))
