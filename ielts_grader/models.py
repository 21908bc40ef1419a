"""
Pydantic models for the IELTS Grader.

These models define the schemas for:
- Questions and the authored content tree they are embedded in
- Parser output and the student-facing view
- Grading results with per-question and per-section scores

All models are frozen: a value is never changed after construction,
derived values are produced with ``model_copy(update=...)``.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ==============================================================================
# Enumerations
# ==============================================================================


class QuestionType(str, Enum):
    """Kinds of question that can be embedded in authored content."""

    BLANK = "blank"
    MULTIPLE_CHOICE = "multiple_choice"
    MATCHING = "matching"
    MAP = "map"
    ESSAY = "essay"  # Writing tasks, never auto-graded for meaning

    @classmethod
    def coerce(cls, value: Any) -> "QuestionType | None":
        """
        Resolve a type name, including the aliases used by stored data.

        Args:
            value: A QuestionType, its value, or a known alias.

        Returns:
            The matching QuestionType, or None if the name is unknown.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        name = value.strip().lower()
        try:
            return cls(name)
        except ValueError:
            return _TYPE_ALIASES.get(name)

    @property
    def is_multi_item(self) -> bool:
        """Whether the question occupies one number per sub-item."""
        return self in (QuestionType.MATCHING, QuestionType.MAP)


_TYPE_ALIASES: dict[str, QuestionType] = {
    "short_answer": QuestionType.BLANK,
    "sentence_completion": QuestionType.BLANK,
    "mcq": QuestionType.MULTIPLE_CHOICE,
    "match": QuestionType.MATCHING,
    "map_labeling": QuestionType.MAP,
    "map_diagram": QuestionType.MAP,
    "writing": QuestionType.ESSAY,
    "task": QuestionType.ESSAY,
}


class Section(str, Enum):
    """Test sections, each graded independently."""

    READING = "reading"
    LISTENING = "listening"
    WRITING = "writing"


# ==============================================================================
# Question Models
# ==============================================================================


class Question(BaseModel):
    """
    A single question of the answer key.

    ``answer_spec`` holds the correct answer in a type-dependent shape:

    - blank: list of acceptable strings
    - multiple_choice: zero-based index into ``metadata["options"]``
    - matching: ``{"left": [...], "right": [...]}``, right[i] pairs with left[i]
    - map: list of regions ``{"id", "x", "y", "label", "answer"}``

    Values loaded back from storage may still be JSON strings; the grading
    engine decodes them and tolerates malformed ones.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the question, unique within a test",
    )

    number: int = Field(
        ...,
        ge=1,
        description="Displayed question number (first number for multi-item types)",
    )

    type: QuestionType = Field(
        ...,
        description="Kind of question",
    )

    prompt: str = Field(
        default="",
        description="Question text shown to the student",
    )

    answer_spec: Any = Field(
        default=None,
        description="Correct answer payload, shape depends on the type",
    )

    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Type-dependent auxiliary data (options, image url, ...)",
    )

    points: Decimal | None = Field(
        default=None,
        gt=0,
        description="Points per correct item; the configured default when unset",
    )

    section: Section = Field(
        default=Section.READING,
        description="Section the question is graded in",
    )

    @field_validator("id", mode="before")
    @classmethod
    def convert_id(cls, v: Any) -> Any:
        """Stored ids may be integers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("type", mode="before")
    @classmethod
    def convert_type(cls, v: Any) -> QuestionType:
        """Accept type aliases such as 'mcq' or 'short_answer'."""
        question_type = QuestionType.coerce(v)
        if question_type is None:
            raise ValueError(f"Unknown question type: {v!r}")
        return question_type

    @field_validator("section", mode="before")
    @classmethod
    def convert_section(cls, v: Any) -> Any:
        """Section names are case-insensitive."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("points", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        """Convert numeric values to Decimal for precision."""
        if v is None or isinstance(v, Decimal):
            return v
        try:
            return Decimal(str(v))
        except InvalidOperation:
            raise ValueError(f"Points must be a number, got {v!r}") from None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def span(self) -> int:
        """Number of consecutive question numbers this question occupies."""
        if not self.type.is_multi_item:
            return 1
        return max(1, count_sub_items(self.type, self.answer_spec, self.metadata))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def last_number(self) -> int:
        """Last question number covered by this question."""
        return self.number + self.span - 1


def count_sub_items(question_type: QuestionType, answer_spec: Any, metadata: dict[str, Any]) -> int:
    """
    Count the sub-items of a matching or map question.

    Looks at the answer spec first and falls back to the metadata, so both
    freshly parsed questions and sanitized copies report the same count.
    """
    if question_type is QuestionType.MATCHING:
        for source in (answer_spec, metadata):
            if isinstance(source, dict) and isinstance(source.get("left"), list):
                return len(source["left"])
        if isinstance(answer_spec, list):
            return len(answer_spec)
        return 0
    if question_type is QuestionType.MAP:
        if isinstance(answer_spec, list):
            return len(answer_spec)
        for key in ("regions", "areas", "boxes"):
            if isinstance(metadata.get(key), list):
                return len(metadata[key])
        return 0
    return 1


# ==============================================================================
# Content Models
# ==============================================================================


class ContentNode(BaseModel):
    """
    A node of tree-shaped authored content.

    Mirrors the JSON document shape produced by block editors: a node has a
    type, optional text (for text leaves), attributes and children. Nodes
    whose type names a question kind are question segments and carry the
    question fields in ``attrs``. Unknown fields (e.g. text marks) are kept.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = Field(
        ...,
        min_length=1,
        description="Node type (doc, paragraph, text, or a question kind)",
    )

    text: str | None = Field(
        default=None,
        description="Text of a text leaf",
    )

    attrs: dict[str, Any] = Field(
        default_factory=dict,
        description="Node attributes; question fields for question segments",
    )

    content: tuple["ContentNode", ...] = Field(
        default=(),
        description="Child nodes in document order",
    )

    @property
    def question_type(self) -> QuestionType | None:
        """The question kind of this node, or None for plain content."""
        return QuestionType.coerce(self.type)

    @property
    def is_question(self) -> bool:
        """Whether this node is a question segment."""
        return self.question_type is not None


class SourceDocument(BaseModel):
    """
    Authored content loaded from a file.

    Text formats yield marker text; JSON files yield a content tree.
    """

    model_config = ConfigDict(frozen=True)

    content: str | ContentNode = Field(
        ...,
        description="Marker text or content tree",
    )

    source_path: str = Field(
        ...,
        description="Path to the source document",
    )

    file_extension: str = Field(
        ...,
        description="File extension of the source document",
    )

    loaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the document was loaded",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def character_count(self) -> int:
        """Number of characters of text content, 0 for trees."""
        return len(self.content) if isinstance(self.content, str) else 0


class ParsedContent(BaseModel):
    """
    Result of parsing authored content.

    ``content`` has the same shape as the input, with every answer marker
    replaced by an opaque ``{{question:<id>}}`` placeholder (string input)
    or with question nodes numbered in place (tree input).
    """

    model_config = ConfigDict(frozen=True)

    content: str | ContentNode = Field(
        ...,
        description="Placeholder content",
    )

    questions: tuple[Question, ...] = Field(
        default=(),
        description="Questions in document order",
    )

    next_number: int = Field(
        default=1,
        ge=1,
        description="First question number after this content",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def question_count(self) -> int:
        """Number of questions (markers) found."""
        return len(self.questions)


class StudentQuestion(BaseModel):
    """A question as shown to a test-taker: no correct answer fields."""

    model_config = ConfigDict(frozen=True)

    id: str
    number: int = Field(..., ge=1)
    last_number: int = Field(..., ge=1)
    type: QuestionType
    prompt: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        """Number label of the input slot, e.g. '3' or '4-7'."""
        if self.last_number > self.number:
            return f"{self.number}-{self.last_number}"
        return str(self.number)


class StudentView(BaseModel):
    """Student-facing content with every answer removed."""

    model_config = ConfigDict(frozen=True)

    content: str | ContentNode
    questions: tuple[StudentQuestion, ...] = ()


# ==============================================================================
# Grading Result Models
# ==============================================================================


class QuestionResult(BaseModel):
    """
    The grading result for a single question or sub-item.

    Matching and map questions produce one result per sub-item.
    """

    model_config = ConfigDict(frozen=True)

    question_id: str = Field(
        ...,
        description="Id of the graded question (sub-items use '<id>_<index>')",
    )

    question_number: int = Field(
        ...,
        ge=1,
        description="Displayed number of the question or sub-item",
    )

    question_text: str = Field(
        default="",
        description="Prompt shown for this item",
    )

    question_type: QuestionType

    user_answer: Any = Field(
        default=None,
        description="Raw answer as submitted, None when absent",
    )

    correct_answer: Any = Field(
        default=None,
        description="Expected answer, None when no correct answer is set",
    )

    is_correct: bool = False

    points: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Points awarded",
    )

    section: Section

    needs_review: bool = Field(
        default=False,
        description="Whether a human should check this item",
    )

    note: str | None = Field(
        default=None,
        description="Why the item needs review or could not be graded",
    )


class SectionScore(BaseModel):
    """Aggregated score for one section."""

    model_config = ConfigDict(frozen=True)

    section: Section
    correct: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    points: Decimal = Field(default=Decimal("0"), ge=0)
    band_score: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=9,
        description="Band score, 0 when the section has no questions",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percentage(self) -> float:
        """Share of correct items, 0 for an empty section."""
        if self.total == 0:
            return 0.0
        return self.correct / self.total * 100


class GradingResult(BaseModel):
    """
    Complete grading result for a submission.

    Contains per-question results, per-section scores and the overall band.
    """

    model_config = ConfigDict(frozen=True)

    result_id: UUID = Field(
        default_factory=uuid4,
        description="Unique identifier for this grading result",
    )

    graded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when grading was completed",
    )

    question_results: tuple[QuestionResult, ...] = ()

    sections: tuple[SectionScore, ...] = ()

    overall_band_score: Decimal = Field(
        default=Decimal("1.0"),
        ge=1,
        le=9,
    )

    def section(self, section: Section | str) -> SectionScore | None:
        """Return the score of a section, if it was graded."""
        wanted = Section(section)
        for score in self.sections:
            if score.section is wanted:
                return score
        return None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_points(self) -> Decimal:
        """Sum of points over all results."""
        return sum((r.points for r in self.question_results), Decimal(0))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def flagged_for_review(self) -> bool:
        """Whether any item needs a human check."""
        return any(r.needs_review for r in self.question_results)
