"""
Base class for loading authored content.

Every format goes through the same steps: check the path, read the file
into marker text or a content tree, clean up marker text, and wrap the
result in a ``SourceDocument``. Formats only supply the reading step.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from ielts_grader.models import ContentNode, SourceDocument


class ExtractionError(Exception):
    """
    Raised when a document cannot be loaded.

    Contains the path and the underlying cause.
    """

    def __init__(self, message: str, file_path: str | Path, cause: Exception | None = None):
        self.file_path = str(file_path)
        self.cause = cause
        super().__init__(f"Failed to load '{file_path}': {message}")


class DocumentExtractor(ABC):
    """
    Loads one authored content format.

    Subclasses list their extensions in `SUPPORTED_EXTENSIONS` and implement
    `_load`. Marker text they return has its line endings normalized and
    must not be blank; `EMPTY_MESSAGE` is the error raised when it is.
    """

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = ()
    EMPTY_MESSAGE: ClassVar[str] = "File is empty or contains only whitespace"

    def extract(self, file_path: Path | str) -> SourceDocument:
        """
        Load authored content from a file.

        Args:
            file_path: Path to the document file.

        Returns:
            SourceDocument with marker text or a content tree.

        Raises:
            ExtractionError: If loading fails for any reason.
        """
        path = Path(file_path)
        if not path.exists():
            raise ExtractionError("File does not exist", path)
        if not path.is_file():
            raise ExtractionError("Path is not a file", path)

        extension = path.suffix.lower()
        if extension not in self.SUPPORTED_EXTENSIONS:
            raise ExtractionError(
                f"Unsupported file format '{extension}' for {type(self).__name__}",
                path,
            )

        try:
            content = self._load(path)
        except OSError as e:
            raise ExtractionError(f"Could not read file: {e}", path, cause=e) from e

        if isinstance(content, str):
            content = content.replace("\r\n", "\n").replace("\r", "\n")
            if not content.strip():
                raise ExtractionError(self.EMPTY_MESSAGE, path)

        return SourceDocument(
            content=content,
            source_path=str(path.resolve()),
            file_extension=extension,
        )

    @abstractmethod
    def _load(self, path: Path) -> str | ContentNode:
        """Read a checked file into marker text or a content tree."""
        ...
