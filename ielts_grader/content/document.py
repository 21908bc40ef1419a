"""
Editable document.

A plain authoring surface over tree content: an ordered list of top-level
blocks that questions can be inserted into, removed from and moved around
in. It is independent of any editor widget and always emits the same tree
shape the parser reads. Numbering is not kept up to date continuously:
a new question takes the lowest free number, and ``renumber()`` is called
explicitly after structural edits.
"""

import logging
from typing import Any, Iterable
from uuid import uuid4

from ielts_grader.content.numbering import next_available_number
from ielts_grader.content.tree import TreeAdapter
from ielts_grader.models import ContentNode, Question, QuestionType, Section

logger = logging.getLogger(__name__)


class EditableDocument:
    """In-memory authoring model for tree content."""

    def __init__(
        self,
        blocks: Iterable[ContentNode] = (),
        start: int = 1,
        section: Section = Section.READING,
    ):
        """
        Initialize the document.

        Args:
            blocks: Top-level blocks in document order.
            start: First question number used by renumber().
            section: Section of the questions in this document.
        """
        if start < 1:
            raise ValueError(f"Question numbers start at 1, got {start}")
        self.start = start
        self.section = Section(section)
        self._blocks: list[ContentNode] = list(blocks)
        self._adapter = TreeAdapter()

    @classmethod
    def from_content(cls, root: ContentNode, start: int = 1, section: Section = Section.READING) -> "EditableDocument":
        """Open existing tree content; a non-doc root becomes the only block."""
        blocks = root.content if root.type == "doc" else (root,)
        return cls(blocks, start=start, section=section)

    @property
    def blocks(self) -> tuple[ContentNode, ...]:
        return tuple(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def to_content(self) -> ContentNode:
        """Emit the document as authored tree content."""
        return ContentNode(type="doc", content=tuple(self._blocks))

    def questions(self) -> tuple[Question, ...]:
        """
        Questions of the document in order.

        Question nodes report the number currently stored on them, so edits
        that have not been followed by renumber() are visible.
        """
        parsed = self._adapter.parse(self.to_content(), start=self.start, section=self.section)
        stored = _stored_numbers(self._blocks)
        return tuple(
            q.model_copy(update={"number": stored[q.id]}) if q.id in stored else q
            for q in parsed.questions
        )

    def insert_paragraph(self, text: str, index: int | None = None) -> ContentNode:
        """Insert a paragraph of text, which may contain inline markers."""
        block = ContentNode(type="paragraph", content=(ContentNode(type="text", text=text),))
        self._insert(block, index)
        return block

    def insert_question(
        self,
        question_type: QuestionType | str,
        attrs: dict[str, Any] | None = None,
        index: int | None = None,
    ) -> ContentNode:
        """
        Insert a question node.

        The node gets a fresh id, unless ``attrs`` carries one, and the lowest
        number not used by any existing question.

        Args:
            question_type: Kind of question.
            attrs: Question attributes (prompt, answer_spec, metadata, ...).
            index: Block position; appended when not given.

        Returns:
            The inserted node.
        """
        kind = QuestionType.coerce(question_type)
        if kind is None:
            raise ValueError(f"Unknown question type: {question_type!r}")

        attrs = dict(attrs or {})
        attrs["id"] = str(attrs.get("id") or f"question-{uuid4().hex[:12]}")
        if attrs["id"] in {q.id for q in self.questions()}:
            raise ValueError(f"Question id {attrs['id']!r} is already used")
        attrs["number"] = next_available_number(self.questions())

        block = ContentNode(type=kind.value, attrs=attrs)
        self._insert(block, index)
        logger.debug("Inserted %s question %s as number %d", kind.value, attrs["id"], attrs["number"])
        return block

    def remove_question(self, question_id: str) -> bool:
        """
        Remove a question node wherever it is nested.

        Returns:
            True if a node was removed.
        """
        remaining: list[ContentNode] = []
        removed = False
        for block in self._blocks:
            kept, found = _without_question(block, question_id)
            removed = removed or found
            if kept is not None:
                remaining.append(kept)
        self._blocks = remaining
        if not removed:
            logger.warning("No question node with id %r to remove", question_id)
        return removed

    def move_block(self, source: int, target: int) -> None:
        """Move the block at ``source`` so that it ends up at ``target``."""
        size = len(self._blocks)
        if not (-size <= source < size and -size <= target < size):
            raise IndexError(f"Block index out of range for a document of {size} blocks")
        block = self._blocks.pop(source)
        self._blocks.insert(target % size if target < 0 else target, block)

    def renumber(self) -> int:
        """
        Renumber every question in document order.

        Returns:
            The first free number after the document.
        """
        root, next_number = self._adapter.renumber(self.to_content(), start=self.start)
        self._blocks = list(root.content)
        return next_number

    def _insert(self, block: ContentNode, index: int | None) -> None:
        if index is None:
            self._blocks.append(block)
        else:
            self._blocks.insert(index, block)


def _stored_numbers(nodes: Iterable[ContentNode]) -> dict[str, int]:
    """Numbers written on question nodes, keyed by node id."""
    numbers: dict[str, int] = {}
    for node in nodes:
        if node.is_question:
            number = node.attrs.get("number")
            if node.attrs.get("id") and isinstance(number, int) and number >= 1:
                numbers[str(node.attrs["id"])] = number
        else:
            numbers.update(_stored_numbers(node.content))
    return numbers


def _without_question(node: ContentNode, question_id: str) -> tuple[ContentNode | None, bool]:
    """Drop the question node with the given id from a subtree."""
    if node.is_question:
        if str(node.attrs.get("id")) == question_id:
            return None, True
        return node, False

    found = False
    children: list[ContentNode] = []
    for child in node.content:
        kept, removed = _without_question(child, question_id)
        found = found or removed
        if kept is not None:
            children.append(kept)

    if not found:
        return node, False
    return node.model_copy(update={"content": tuple(children)}), True
