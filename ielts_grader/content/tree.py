"""
Tree content adapter.

Handles authored content in the block-editor JSON shape: a tree of
``ContentNode``s where question segments are nodes typed as a question
kind. Text leaves may still contain inline markers, which are parsed with
the same grammar as flat text. Numbers are derived from node order; number
attributes already present in the tree are ignored.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator

from ielts_grader.content.markers import MarkerGrammar
from ielts_grader.content.numbering import renumber
from ielts_grader.models import ContentNode, ParsedContent, Question, QuestionType, Section

logger = logging.getLogger(__name__)

# Editor attributes that only describe the correct answer
ANSWER_ATTRS = frozenset(
    ["answer_spec", "answers", "answer", "correct_index", "correctIndex", "correct_answers", "right", "boxes"]
)


class _Walk:
    """Mutable state of a single tree walk."""

    def __init__(self, section: Section) -> None:
        self.section = section
        self.questions: list[Question] = []
        self.seen_ids: set[str] = set()

    def claim_id(self, wanted: str | None) -> str:
        """Return a unique question id, preferring the wanted one."""
        ordinal = len(self.questions) + 1
        candidate = wanted or f"question-{ordinal}"
        if candidate in self.seen_ids:
            logger.warning("Duplicate question id %r, assigning a new one", candidate)
            suffix = 2
            while f"{candidate}-{suffix}" in self.seen_ids:
                suffix += 1
            candidate = f"{candidate}-{suffix}"
        self.seen_ids.add(candidate)
        return candidate


class TreeAdapter:
    """Parses and renumbers tree-shaped authored content."""

    def __init__(self, grammar: MarkerGrammar | None = None):
        """
        Initialize the adapter.

        Args:
            grammar: Marker grammar for text leaves. A new one if not provided.
        """
        self._grammar = grammar or MarkerGrammar()

    def parse(
        self,
        root: ContentNode,
        start: int | None = None,
        section: Section = Section.READING,
    ) -> ParsedContent:
        """
        Parse a content tree.

        Args:
            root: Root node of the authored content.
            start: First question number (default 1).
            section: Section for questions that do not name one.

        Returns:
            ParsedContent whose content is the tree with placeholders in text
            leaves and ids/numbers written into question nodes.
        """
        walk = _Walk(section)
        rewritten = self._collect(root, walk)

        numbering = renumber(walk.questions, start=start or 1)
        numbers = {q.id: q.number for q in numbering.questions}
        content = _write_numbers(rewritten, numbers)

        logger.debug("Parsed tree with %d questions", len(numbering.questions))
        return ParsedContent(
            content=content,
            questions=numbering.questions,
            next_number=numbering.next_number,
        )

    def renumber(self, root: ContentNode, start: int = 1) -> tuple[ContentNode, int]:
        """
        Renumber the question nodes of a tree in node order.

        Question nodes without an id get one. Text leaves are left as they
        are, but their inline markers still take up numbers.

        Returns:
            The renumbered tree and the next free number.
        """
        parsed = self.parse(root, start=start)
        numbers = {q.id: q.number for q in parsed.questions}
        ids = _question_node_ids(parsed.content)
        return _write_numbers(_assign_ids(root, iter(ids)), numbers), parsed.next_number

    def _collect(self, node: ContentNode, walk: _Walk) -> ContentNode:
        """Walk a node, collecting questions and rewriting text leaves."""
        if node.is_question:
            question_id = walk.claim_id(_optional_str(node.attrs.get("id")))
            walk.questions.append(question_from_node(node, question_id, walk.section))
            return node.model_copy(update={"attrs": {**node.attrs, "id": question_id}})

        if node.text:
            scanned, markers = self._grammar.scan(node.text)
            if not markers:
                return node
            ids: list[str] = []
            for marker in markers:
                question_id = walk.claim_id(None)
                walk.questions.append(self._grammar.to_question(marker, question_id, walk.section))
                ids.append(question_id)
            return node.model_copy(update={"text": self._grammar.replace_tokens(scanned, ids)})

        if node.content:
            children = tuple(self._collect(child, walk) for child in node.content)
            return node.model_copy(update={"content": children})

        return node


def renumber_tree(root: ContentNode, start: int = 1) -> tuple[ContentNode, int]:
    """Renumber a content tree with a default adapter, see TreeAdapter.renumber."""
    return TreeAdapter().renumber(root, start=start)


def question_from_node(node: ContentNode, question_id: str, section: Section = Section.READING) -> Question:
    """
    Build a question from a question node.

    Accepts both the normalized attribute names (``answer_spec``,
    ``metadata``, ``prompt``) and the attribute names written by the
    editor (``answers``, ``options``/``correct_index``, ``left``/``right``,
    ``boxes``/``imageUrl``).
    """
    question_type = node.question_type
    if question_type is None:
        raise ValueError(f"Node type {node.type!r} is not a question")

    attrs = node.attrs
    prompt = attrs.get("prompt") or attrs.get("question_text") or attrs.get("text") or ""

    if "answer_spec" in attrs:
        answer_spec = attrs["answer_spec"]
        metadata = dict(attrs.get("metadata") or {})
    else:
        answer_spec, metadata = _editor_answer(question_type, attrs)

    return Question(
        id=question_id,
        number=1,
        type=question_type,
        prompt=str(prompt),
        answer_spec=answer_spec,
        metadata=metadata,
        points=_points_attr(attrs.get("points"), question_id),
        section=_section_attr(attrs.get("section"), section, question_id),
    )


def _points_attr(value: Any, question_id: str) -> Decimal | None:
    """Points written on a node, or None for the configured default."""
    if value is None or value == "":
        return None
    try:
        points = Decimal(str(value))
    except InvalidOperation:
        points = None
    if points is None or not points.is_finite() or points <= 0:
        logger.warning("Ignoring invalid points %r on question %r", value, question_id)
        return None
    return points


def _section_attr(value: Any, default: Section, question_id: str) -> Section:
    """Section written on a node, or the section being parsed."""
    if value is None or value == "":
        return default
    if isinstance(value, Section):
        return value
    try:
        return Section(str(value).strip().lower())
    except ValueError:
        logger.warning("Ignoring unknown section %r on question %r", value, question_id)
        return default


def _editor_answer(question_type: QuestionType, attrs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
    """Translate editor attributes into an answer spec and metadata."""
    if question_type is QuestionType.BLANK:
        answers = attrs.get("answers")
        if answers is None and attrs.get("answer") is not None:
            answers = [attrs["answer"]]
        if isinstance(answers, str):
            answers = [answers]
        return [str(a).strip() for a in answers or [] if str(a).strip()], {}

    if question_type is QuestionType.MULTIPLE_CHOICE:
        options = list(attrs.get("options") or [])
        correct = attrs.get("correct_index", attrs.get("correctIndex"))
        return correct, {"options": options}

    if question_type is QuestionType.MATCHING:
        left = list(attrs.get("left") or [])
        right = list(attrs.get("right") or [])
        return {"left": left, "right": right}, {"left": list(left), "right": list(right)}

    if question_type is QuestionType.MAP:
        regions = []
        for index, box in enumerate(attrs.get("boxes") or [], start=1):
            box = box if isinstance(box, dict) else {}
            label = str(box.get("label") or "")
            regions.append(
                {
                    "id": box.get("id", index),
                    "label": label,
                    "answer": str(box.get("answer") or label),
                    "x": box.get("x", 0),
                    "y": box.get("y", 0),
                }
            )
        image_url = attrs.get("image_url") or attrs.get("imageUrl") or ""
        return regions, {"image_url": image_url}

    return None, {}


def _optional_str(value: Any) -> str | None:
    """Stringify an id attribute, treating empty values as missing."""
    if value is None or value == "":
        return None
    return str(value)


def _write_numbers(node: ContentNode, numbers: dict[str, int]) -> ContentNode:
    """Write question numbers into the question nodes of a tree."""
    if node.is_question:
        number = numbers.get(str(node.attrs.get("id")))
        if number is None:
            return node
        attrs = {**node.attrs, "number": number}
        if "question_number" in attrs:
            attrs["question_number"] = number
        return node.model_copy(update={"attrs": attrs})

    if node.content:
        children = tuple(_write_numbers(child, numbers) for child in node.content)
        return node.model_copy(update={"content": children})

    return node


def _question_node_ids(node: ContentNode) -> list[str]:
    """Ids of the question nodes of a parsed tree, in order."""
    if node.is_question:
        return [str(node.attrs["id"])]
    ids: list[str] = []
    for child in node.content:
        ids.extend(_question_node_ids(child))
    return ids


def _assign_ids(node: ContentNode, ids: Iterator[str]) -> ContentNode:
    """Give question nodes the ids chosen during parsing, keeping text as is."""
    if node.is_question:
        return node.model_copy(update={"attrs": {**node.attrs, "id": next(ids)}})
    if node.content:
        children = tuple(_assign_ids(child, ids) for child in node.content)
        return node.model_copy(update={"content": children})
    return node
