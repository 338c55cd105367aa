"""
Report export for error codes.

Writes a single error code to disk, either as a plain-text report or as a
standalone HTML document, chosen by the file extension.

Classes:
    ReportExportError(Exception) - Report could not be written

Functions:
    build_html_document(error: ErrorCode, escape: bool) -> str
    build_report(error: ErrorCode, file_path: Path, escape_html: bool) -> str
    export_report(error: ErrorCode, file_path: Path, escape_html: bool) -> Path
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .dtc_database import ErrorCode

logger = logging.getLogger(__name__)

REPORT_TITLE = "Car Error Code Report"

HTML_STYLESHEET = (
    "body { font-family: Arial, sans-serif; margin: 20px; }\n"
    ".error-code { border: 1px solid #ddd; padding: 15px; margin-bottom: 20px; }\n"
    "h2 { color: #d9534f; }\n"
    "h3 { color: #5bc0de; }\n"
)


class ReportExportError(Exception):
    """Raised when a report file cannot be written"""
    pass


def build_html_document(error: ErrorCode, escape: bool = True) -> str:
    """Wrap the record's HTML fragment in a complete document."""
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        f"<title>{REPORT_TITLE}</title>\n"
        "<style>\n"
        f"{HTML_STYLESHEET}"
        "</style>\n"
        "</head>\n<body>\n"
        f"<h1>{REPORT_TITLE}</h1>\n"
        f"{error.render_html_fragment(escape=escape)}"
        "</body>\n</html>"
    )


def build_report(error: ErrorCode, file_path: Union[str, Path], escape_html: bool = True) -> str:
    """Report content for file_path: HTML for '.html', plain text otherwise."""
    if str(file_path).endswith('.html'):
        return build_html_document(error, escape=escape_html)
    return error.render_text()


def export_report(error: ErrorCode, file_path: Union[str, Path], escape_html: bool = True) -> Path:
    """
    Export an error code report to a file.

    Args:
        error: Error code to export
        file_path: Destination; '.html' produces an HTML document
        escape_html: Escape field text in HTML output

    Returns:
        Path of the written report

    Raises:
        ReportExportError: If the file cannot be written

    Example:
        >>> export_report(index.lookup('P0300'), 'p0300.html')
        PosixPath('p0300.html')
    """
    path = Path(file_path)
    content = build_report(error, file_path, escape_html=escape_html)

    try:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
    except OSError as e:
        logger.error(f"Error exporting report to {path}: {e}")
        raise ReportExportError(f"Failed to export report: {e}")

    logger.info(f"Exported {error.code} report to {path}")
    return path
