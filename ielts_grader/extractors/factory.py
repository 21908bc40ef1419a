"""
Extractor lookup by file extension.
"""

from pathlib import Path

from ielts_grader.extractors.base import DocumentExtractor, ExtractionError
from ielts_grader.extractors.docx_extractor import DocxExtractor
from ielts_grader.extractors.json_extractor import JsonExtractor
from ielts_grader.extractors.text_extractor import TextExtractor
from ielts_grader.models import SourceDocument

# Extension -> extractor class
_BY_EXTENSION: dict[str, type[DocumentExtractor]] = {
    extension: extractor_cls
    for extractor_cls in (DocxExtractor, JsonExtractor, TextExtractor)
    for extension in extractor_cls.SUPPORTED_EXTENSIONS
}


def get_supported_extensions() -> tuple[str, ...]:
    """Return every supported file extension, sorted."""
    return tuple(sorted(_BY_EXTENSION))


def create_extractor(file_path: Path | str) -> DocumentExtractor:
    """
    Create the extractor for a file's extension (case-insensitive).

    Raises:
        ExtractionError: If the file format is not supported.
    """
    path = Path(file_path)
    extractor_cls = _BY_EXTENSION.get(path.suffix.lower())
    if extractor_cls is None:
        raise ExtractionError(
            f"Unsupported file format '{path.suffix.lower()}'. Supported formats: {', '.join(get_supported_extensions())}",
            path,
        )
    return extractor_cls()


def extract_document(file_path: Path | str) -> SourceDocument:
    """
    Load authored content from a .txt, .md, .docx or .json file.

    Raises:
        ExtractionError: If loading fails.
    """
    return create_extractor(file_path).extract(file_path)
