"""
exporter.py

Writes parsed document elements to a Word (.docx) document.

- Tables become bordered grids. Each row's cells share the usable page
  width evenly, so rows with fewer cells get wider cells. The first row
  is set larger and bold.
- Headers become bold paragraphs, larger for the shallowest level seen.
- Paragraphs keep their text; empty text becomes a blank placeholder.

When no elements were parsed, the raw text is written one paragraph
per line instead. Sizes in config are half-points, spacing is twips.
"""

import io
import logging
from fractions import Fraction
from pathlib import Path
from typing import List, Optional, Sequence, Union

from docx import Document
from docx.document import Document as DocumentObject
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Pt, Twips
from docx.table import _Cell

from . import config
from .exceptions import ExportError
from .schemas import HeaderElement, ParagraphElement, ParsedElement, TableElement
from .structurer import parse_document

logger = logging.getLogger(__name__)


def export_document(
    elements: Sequence[ParsedElement],
    raw_text: str = "",
    path: Optional[Union[str, Path]] = None,
) -> bytes:
    """
    Serialize elements into .docx bytes.

    Args:
        elements: Parsed elements, in order.
        raw_text: Text used for the line-per-paragraph fallback when
            ``elements`` is empty.
        path: If given, the document is also written there.

    Returns:
        The document as bytes.

    Raises:
        ExportError: If the document cannot be built or saved.
    """
    try:
        document = build_document(elements, raw_text=raw_text)
        buffer = io.BytesIO()
        document.save(buffer)
        data = buffer.getvalue()
    except ExportError:
        raise
    except Exception as e:
        raise ExportError(f"Failed to build document: {e}") from e

    if path is not None:
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            raise ExportError(f"Failed to save document to {path}: {e}") from e
        logger.info("Saved document: %s (%d bytes)", path, len(data))

    return data


def export_text(text: str, path: Optional[Union[str, Path]] = None) -> bytes:
    """Parse ``text`` and export it, falling back to plain lines."""
    return export_document(parse_document(text), raw_text=text, path=path)


def build_document(elements: Sequence[ParsedElement], raw_text: str = "") -> DocumentObject:
    """Build an in-memory python-docx Document from parsed elements."""
    document = Document()

    if not elements:
        logger.info("No structure detected, writing plain paragraphs")
        for line in raw_text.split("\n"):
            _add_paragraph(document, line)
        return document

    header_levels = [e.level for e in elements if isinstance(e, HeaderElement)]
    primary_level = min(header_levels) if header_levels else None

    for element in elements:
        if isinstance(element, TableElement):
            _add_table(document, element.rows)
        elif isinstance(element, HeaderElement):
            _add_header(document, element, primary_level)
        elif isinstance(element, ParagraphElement):
            _add_paragraph(document, element.text)
        else:
            raise ExportError(f"Unsupported element: {element!r}")

    return document


def _style_run(run, size: int, bold: bool = False) -> None:
    """Apply font, half-point size and weight to a run, complex scripts included."""
    run.font.name = config.DOCUMENT_FONT
    run.font.size = Pt(size / 2)
    run.font.bold = bold
    run.font.cs_bold = bold

    rpr = run._element.get_or_add_rPr()
    rfonts = rpr.get_or_add_rFonts()
    rfonts.set(qn("w:cs"), config.DOCUMENT_FONT)
    rfonts.set(qn("w:eastAsia"), config.DOCUMENT_FONT)

    sz_cs = OxmlElement("w:szCs")
    sz_cs.set(qn("w:val"), str(size))
    rpr.sz.addnext(sz_cs)


def _add_paragraph(document: DocumentObject, text: str) -> None:
    paragraph = document.add_paragraph()
    run = paragraph.add_run(text or config.EMPTY_PARAGRAPH_PLACEHOLDER)
    _style_run(run, config.BODY_FONT_SIZE)
    paragraph.paragraph_format.space_after = Twips(config.PARAGRAPH_SPACING_AFTER)


def _add_header(document: DocumentObject, header: HeaderElement, primary_level: Optional[int]) -> None:
    size = (
        config.HEADER_PRIMARY_FONT_SIZE
        if header.level == primary_level
        else config.HEADER_SECONDARY_FONT_SIZE
    )
    paragraph = document.add_paragraph()
    run = paragraph.add_run(header.text or config.EMPTY_PARAGRAPH_PLACEHOLDER)
    _style_run(run, size, bold=True)
    paragraph.paragraph_format.space_before = Twips(config.HEADER_SPACING_BEFORE)
    paragraph.paragraph_format.space_after = Twips(config.HEADER_SPACING_AFTER)


def _usable_width(document: DocumentObject) -> int:
    section = document.sections[-1]
    return section.page_width - section.left_margin - section.right_margin


def _grid_boundaries(rows: List[List[str]]) -> List[Fraction]:
    """Every cell edge of every row, as a fraction of the table width."""
    edges = {Fraction(k, len(cells)) for cells in rows for k in range(1, len(cells) + 1)}
    return sorted(edges)


def _add_table(document: DocumentObject, rows: List[List[str]]) -> None:
    rows = [cells for cells in rows if cells]
    if not rows:
        return

    width = _usable_width(document)
    # Grid columns sit between consecutive cell edges of any row, so each
    # row's even split lands exactly on grid lines.
    edges = _grid_boundaries(rows)
    offsets = [0] + [width * edge.numerator // edge.denominator for edge in edges]
    column_of = {edge: i + 1 for i, edge in enumerate(edges)}

    table = document.add_table(rows=0, cols=len(edges))
    table.style = "Table Grid"
    table.autofit = False
    for column, start, end in zip(table.columns, offsets, offsets[1:]):
        column.width = Emu(end - start)

    for index, cells in enumerate(rows):
        row = table.add_row()
        tr = row._tr
        for tc in tr.tc_lst[len(cells):]:
            tr.remove(tc)

        header_row = index == 0
        size = config.TABLE_HEADER_FONT_SIZE if header_row else config.TABLE_BODY_FONT_SIZE

        first = 0
        for k, (tc, text) in enumerate(zip(tr.tc_lst, cells), start=1):
            last = column_of[Fraction(k, len(cells))]
            tc.grid_span = last - first
            cell = _Cell(tc, table)
            cell.width = Emu(offsets[last] - offsets[first])
            run = cell.paragraphs[0].add_run(text or config.EMPTY_PARAGRAPH_PLACEHOLDER)
            _style_run(run, size, bold=header_row)
            first = last

    spacer = document.add_paragraph()
    spacer.paragraph_format.space_after = Twips(config.TABLE_SPACING_AFTER)
