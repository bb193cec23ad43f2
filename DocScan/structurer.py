"""
structurer.py

Parses recognized text into typed document elements.

Grammar, applied line by line without backtracking:
- A line containing '|' whose next line is a separator row (|---)
  opens a table; consecutive '|' lines are its rows.
- A line starting with two or more '#' is a header.
- Any other non-blank line is a paragraph, kept verbatim.
- Blank lines and page-break marker lines are dropped.
"""

import logging
import re
from typing import List

from . import config
from .schemas import HeaderElement, ParagraphElement, ParsedElement, TableElement

logger = logging.getLogger(__name__)

SEPARATOR_PATTERN = re.compile(r"\|\s*:?-{3,}")
SEPARATOR_CELL_PATTERN = re.compile(r"^:?-{3,}:?$")
HEADER_PATTERN = re.compile(r"^(#{2,})(.*)$")


def parse_document(text: str) -> List[ParsedElement]:
    """
    Parse an aggregated text into tables, headers and paragraphs.

    Args:
        text: Newline-delimited text, usually a page-break-joined aggregate.

    Returns:
        Elements in source order.
    """
    lines = text.split("\n")
    elements: List[ParsedElement] = []
    i = 0

    while i < len(lines):
        line = lines[i]

        if "|" in line and i + 1 < len(lines) and is_separator_row(lines[i + 1]):
            rows = []
            while i < len(lines) and "|" in lines[i]:
                if not is_separator_row(lines[i]):
                    cells = split_row(lines[i])
                    if cells:
                        rows.append(cells)
                i += 1
            elements.append(TableElement(rows=rows))
            continue

        stripped = line.strip()
        header = HEADER_PATTERN.match(stripped)
        if header:
            elements.append(
                HeaderElement(level=len(header.group(1)), text=header.group(2).strip())
            )
        elif stripped and config.PAGE_BREAK_MARKER not in line:
            elements.append(ParagraphElement(text=line))
        i += 1

    logger.debug("Parsed %d element(s) from %d line(s)", len(elements), len(lines))
    return elements


def is_separator_row(line: str) -> bool:
    """True for a table separator line such as ``|---|:---:|``."""
    if not SEPARATOR_PATTERN.search(line):
        return False
    cells = split_row(line)
    return bool(cells) and all(SEPARATOR_CELL_PATTERN.match(c) for c in cells if c)


def split_row(line: str) -> List[str]:
    """
    Split a table line into trimmed cells.

    Empty fragments before the first and after the last '|' are
    discarded; empty cells in between are kept.
    """
    cells = [cell.strip() for cell in line.split("|")]
    if cells and not cells[0]:
        cells = cells[1:]
    if cells and not cells[-1]:
        cells = cells[:-1]
    return cells
