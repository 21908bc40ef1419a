"""
Marker text files (.txt, .md).

Teachers write these in whatever editor is at hand, so the bytes are
decoded as UTF-8 (with or without a byte order mark) and otherwise as a
Windows or Latin-1 code page.
"""

from pathlib import Path
from typing import ClassVar

from ielts_grader.extractors.base import DocumentExtractor, ExtractionError


class TextExtractor(DocumentExtractor):
    """Loads marker text from plain text and Markdown files."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".txt", ".md")

    # latin-1 decodes any byte, so it has to stay last
    ENCODINGS: ClassVar[tuple[str, ...]] = ("utf-8-sig", "cp1252", "latin-1")

    def _load(self, path: Path) -> str:
        raw = path.read_bytes()
        for encoding in self.ENCODINGS:
            try:
                return raw.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise ExtractionError(f"Could not decode file as any of {self.ENCODINGS}", path)
