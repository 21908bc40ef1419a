"""
Document Loading Module.

Loads authored content from files:
- Plain text (.txt, .md) and Word (.docx) as marker text
- Block editor JSON (.json) as a content tree
"""

from ielts_grader.extractors.base import DocumentExtractor, ExtractionError
from ielts_grader.extractors.factory import create_extractor, extract_document, get_supported_extensions

__all__ = [
    "DocumentExtractor",
    "ExtractionError",
    "create_extractor",
    "extract_document",
    "get_supported_extensions",
]
