"""
Content tree extractor.

Loads tree-shaped authored content saved as JSON by a block editor.
"""

from pathlib import Path
from typing import ClassVar

from pydantic import ValidationError

from ielts_grader.extractors.base import DocumentExtractor, ExtractionError
from ielts_grader.models import ContentNode


class JsonExtractor(DocumentExtractor):
    """Loads a ContentNode tree from a .json file."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".json",)

    def _load(self, path: Path) -> ContentNode:
        try:
            return ContentNode.model_validate_json(path.read_bytes())
        except ValidationError as e:
            raise ExtractionError(f"Not a content tree ({e.error_count()} validation errors)", path, cause=e) from e
