"""
Question numbering.

Numbers are contiguous in document order. Matching and map questions
reserve one number per sub-item. The running counter is passed in and
returned explicitly so that consecutive parts of a test (e.g. listening
parts 1-4) can be numbered one after another.
"""

from typing import Iterable, NamedTuple, Sequence

from ielts_grader.models import Question


class Numbering(NamedTuple):
    """Renumbered questions and the first free number after them."""

    questions: tuple[Question, ...]
    next_number: int


def renumber(questions: Iterable[Question], start: int = 1) -> Numbering:
    """
    Assign contiguous numbers in list order.

    Running this on already numbered questions changes nothing, so it is
    safe to call after every structural edit.

    Args:
        questions: Questions in document order.
        start: Number of the first question.

    Returns:
        Numbering with the renumbered questions and the next free number.

    Raises:
        ValueError: If start is lower than 1.
    """
    if start < 1:
        raise ValueError(f"Question numbers start at 1, got {start}")

    number = start
    numbered: list[Question] = []

    for question in questions:
        if question.number != number:
            question = question.model_copy(update={"number": number})
        numbered.append(question)
        number += question.span

    return Numbering(tuple(numbered), number)


def next_available_number(questions: Iterable[Question]) -> int:
    """
    Return the lowest number not covered by any question.

    Used for a freshly inserted question until the next renumbering pass.
    """
    used: set[int] = set()
    for question in questions:
        used.update(range(question.number, question.last_number + 1))

    number = 1
    while number in used:
        number += 1
    return number


def validate_numbering(questions: Sequence[Question], start: int = 1) -> list[str]:
    """
    Check that numbers are contiguous from start.

    Returns:
        List of issues, empty when the numbering is consistent.
    """
    issues: list[str] = []
    expected = start

    for question in questions:
        if question.number < expected:
            issues.append(
                f"Question {question.id} has number {question.number}, "
                f"overlapping the previous question (expected {expected})"
            )
        elif question.number > expected:
            issues.append(
                f"Gap before question {question.id}: numbers {expected}-"
                f"{question.number - 1} are unused"
            )
        expected = question.last_number + 1

    return issues
