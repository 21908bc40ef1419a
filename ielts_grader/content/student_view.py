"""
Student view generation.

Turns parser output into the content shown to test-takers: every
placeholder becomes a numbered input slot and every field that could reveal
a correct answer is removed. The transform is deterministic; any shuffling
for display is left to the renderer.
"""

import logging
import re
from typing import Any, Iterable

from ielts_grader.content.markers import PLACEHOLDER_PATTERN
from ielts_grader.models import (
    ContentNode,
    Question,
    QuestionType,
    StudentQuestion,
    StudentView,
)

logger = logging.getLogger(__name__)

# Attributes a question node may keep in the student view
STUDENT_ATTRS = frozenset(
    [
        "id",
        "number",
        "question_number",
        "prompt",
        "question_text",
        "text",
        "options",
        "left",
        "image_url",
        "imageUrl",
        "points",
        "section",
    ]
)

SLOT_FORMATS = {
    QuestionType.BLANK: "[  {label}  ]",
    QuestionType.MULTIPLE_CHOICE: "[MCQ {label}]",
    QuestionType.MATCHING: "[MATCH {label}]",
    QuestionType.MAP: "[MAP {label}]",
    QuestionType.ESSAY: "[WRITING {label}]",
}


class StudentViewGenerator:
    """Builds the answer-free student view of parsed content."""

    def generate(self, content: str | ContentNode, questions: Iterable[Question]) -> StudentView:
        """
        Generate the student view.

        Args:
            content: Placeholder content as returned by the parser.
            questions: The questions parsed from that content.

        Returns:
            StudentView with numbered slots and sanitized questions.
        """
        students = [to_student_question(q) for q in questions]
        by_id = {q.id: q for q in students}

        if isinstance(content, str):
            rendered: str | ContentNode = self._render_text(content, by_id)
        else:
            rendered = self._render_node(content, by_id) or content.model_copy(
                update={"content": ()}
            )

        return StudentView(content=rendered, questions=tuple(students))

    def _render_text(self, text: str, by_id: dict[str, StudentQuestion]) -> str:
        """Replace placeholders in a text with numbered slots."""

        def slot(match: re.Match[str]) -> str:
            question = by_id.get(match.group(1))
            if question is None:
                logger.warning("Leaving placeholder for unknown question %r", match.group(1))
                return match.group(0)
            return SLOT_FORMATS[question.type].format(label=question.label)

        return PLACEHOLDER_PATTERN.sub(slot, text)

    def _render_node(self, node: ContentNode, by_id: dict[str, StudentQuestion]) -> ContentNode | None:
        """Render a tree node; None when the node has to be dropped."""
        if node.is_question:
            question = by_id.get(str(node.attrs.get("id")))
            if question is None:
                logger.warning("Removing question node with unknown id %r", node.attrs.get("id"))
                return None
            attrs = {k: v for k, v in node.attrs.items() if k in STUDENT_ATTRS}
            attrs.update(id=question.id, number=question.number, metadata=question.metadata)
            return node.model_copy(update={"attrs": attrs, "content": ()})

        if node.text:
            text = self._render_text(node.text, by_id)
            if text == node.text:
                return node
            return node.model_copy(update={"text": text})

        if node.content:
            children = (self._render_node(child, by_id) for child in node.content)
            return node.model_copy(update={"content": tuple(c for c in children if c is not None)})

        return node


def to_student_question(question: Question) -> StudentQuestion:
    """Strip the correct answer from a question."""
    return StudentQuestion(
        id=question.id,
        number=question.number,
        last_number=question.last_number,
        type=question.type,
        prompt=question.prompt,
        metadata=sanitize_metadata(question),
    )


def sanitize_metadata(question: Question) -> dict[str, Any]:
    """
    Return the metadata a student may see.

    Multiple choice keeps its options in order. Matching keeps the left
    prompts and offers the right items sorted, so their position no longer
    tells which left item they pair with. Map keeps the image and the region
    positions without labels or answers.
    """
    spec = question.answer_spec
    metadata = question.metadata

    if question.type is QuestionType.MULTIPLE_CHOICE:
        return {"options": [str(o) for o in metadata.get("options") or []]}

    if question.type is QuestionType.MATCHING:
        pairs = spec if isinstance(spec, dict) else {}
        left = pairs.get("left") or metadata.get("left") or []
        right = pairs.get("right") or metadata.get("right") or []
        return {
            "left": [str(item) for item in left],
            "choices": sorted((str(item) for item in right), key=lambda s: (s.casefold(), s)),
        }

    if question.type is QuestionType.MAP:
        regions = spec if isinstance(spec, list) else metadata.get("regions") or []
        return {
            "image_url": str(metadata.get("image_url") or ""),
            "regions": [
                {"id": r.get("id", index), "x": r.get("x", 0), "y": r.get("y", 0)}
                for index, r in enumerate(regions, start=1)
                if isinstance(r, dict)
            ],
        }

    return {}


def to_student_view(content: str | ContentNode, questions: Iterable[Question]) -> StudentView:
    """Generate a student view with a default generator."""
    return StudentViewGenerator().generate(content, questions)
