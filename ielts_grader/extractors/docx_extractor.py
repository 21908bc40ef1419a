"""
Word documents (.docx) read with python-docx.

Legacy .doc files must be converted to .docx first.
"""

from pathlib import Path
from typing import ClassVar, Iterator

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table

from ielts_grader.extractors.base import DocumentExtractor, ExtractionError


class DocxExtractor(DocumentExtractor):
    """
    Loads marker text from Word documents.

    Each non-empty paragraph becomes one line. Tables (common for form and
    note completion tasks) follow the paragraphs, one row per line with
    cells separated by " | ", so markers inside cells are kept.
    """

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".docx",)
    EMPTY_MESSAGE: ClassVar[str] = "Document contains no text"

    def _load(self, path: Path) -> str:
        try:
            doc = Document(str(path))
        except PackageNotFoundError as e:
            raise ExtractionError("File is not a valid .docx document or is corrupted", path, cause=e) from e

        lines = [para.text for para in doc.paragraphs if para.text.strip()]
        for table in doc.tables:
            lines.extend(_table_rows(table))
        return "\n".join(lines)


def _table_rows(table: Table) -> Iterator[str]:
    """Non-empty rows of a Word table as text lines."""
    for row in table.rows:
        cells = [cell.text.strip() for cell in row.cells]
        if any(cells):
            yield " | ".join(cells)
