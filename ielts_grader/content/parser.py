"""
Content parser module.

Single entry point for both authored content representations: flat text
with inline markers and the block-editor content tree. Both produce the
same ``Question`` shape, so everything downstream (student view, grading)
works on one model.
"""

from typing import Any

from pydantic import ValidationError

from ielts_grader.content.markers import MarkerGrammar
from ielts_grader.content.tree import TreeAdapter
from ielts_grader.models import ContentNode, ParsedContent, Section


class ContentParseError(Exception):
    """Raised when content is not a supported authored content value."""

    def __init__(self, message: str, content_type: str | None = None):
        self.content_type = content_type
        super().__init__(message)


class ContentParser:
    """
    Parses authored content into placeholder content and numbered questions.

    Supports:
    1. Flat text: "Dining table: - [round] shape"
    2. Content trees: ContentNode, or its JSON-compatible dict form
    """

    def __init__(self, grammar: MarkerGrammar | None = None):
        self._grammar = grammar or MarkerGrammar()
        self._tree = TreeAdapter(self._grammar)

    def parse(
        self,
        content: Any,
        start: int | None = None,
        section: Section | str = Section.READING,
    ) -> ParsedContent:
        """
        Parse authored content.

        Args:
            content: Marker text, a ContentNode, or a dict describing one.
            start: First question number. Text content defaults to the number
                hint of its first marker; trees default to 1.
            section: Section the questions are graded in.

        Returns:
            ParsedContent with placeholder content and questions.

        Raises:
            ContentParseError: If the content is neither text nor a tree, or
                a question node in the tree cannot be read.
        """
        section = Section(section)

        if isinstance(content, str):
            return self._grammar.parse(content, start=start, section=section)

        if isinstance(content, dict):
            try:
                content = ContentNode.model_validate(content)
            except ValidationError as e:
                raise ContentParseError(
                    f"Invalid content tree: {e.error_count()} validation errors",
                    content_type="dict",
                ) from e

        if isinstance(content, ContentNode):
            try:
                return self._tree.parse(content, start=start, section=section)
            except ValueError as e:
                # ValidationError included: a question node the model rejects
                raise ContentParseError(f"Invalid question node: {e}", content_type="tree") from e

        raise ContentParseError(
            f"Unsupported content type: {type(content).__name__}",
            content_type=type(content).__name__,
        )


def parse_content(
    content: Any,
    start: int | None = None,
    section: Section | str = Section.READING,
) -> ParsedContent:
    """
    Parse authored content with a default parser.

    Convenience function for one-off parsing, see ContentParser.parse.
    """
    return ContentParser().parse(content, start=start, section=section)
