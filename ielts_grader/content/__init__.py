"""Authored content parsing, numbering and student views."""

from ielts_grader.content.document import EditableDocument
from ielts_grader.content.markers import PLACEHOLDER_PATTERN, MarkerGrammar, placeholder
from ielts_grader.content.numbering import Numbering, next_available_number, renumber, validate_numbering
from ielts_grader.content.parser import ContentParseError, ContentParser, parse_content
from ielts_grader.content.student_view import StudentViewGenerator, to_student_view
from ielts_grader.content.tree import TreeAdapter, renumber_tree

__all__ = [
    "ContentParseError",
    "ContentParser",
    "EditableDocument",
    "MarkerGrammar",
    "Numbering",
    "PLACEHOLDER_PATTERN",
    "StudentViewGenerator",
    "TreeAdapter",
    "next_available_number",
    "parse_content",
    "placeholder",
    "renumber",
    "renumber_tree",
    "to_student_view",
    "validate_numbering",
]
