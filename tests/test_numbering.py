"""
Unit tests for question numbering.
"""

import pytest

from ielts_grader.content.numbering import next_available_number, renumber, validate_numbering
from ielts_grader.models import Question, QuestionType


def make_question(question_id: str, number: int, question_type: QuestionType = QuestionType.BLANK, items: int = 0) -> Question:
    answer_spec: object = ["x"]
    if question_type is QuestionType.MATCHING:
        answer_spec = {"left": [f"l{i}" for i in range(items)], "right": [f"r{i}" for i in range(items)]}
    elif question_type is QuestionType.MAP:
        answer_spec = [{"id": i, "label": f"L{i}", "answer": f"A{i}", "x": 0, "y": 0} for i in range(items)]
    return Question(id=question_id, number=number, type=question_type, answer_spec=answer_spec)


class TestRenumber:
    """Tests for renumber."""

    def test_contiguous_from_start(self) -> None:
        questions = [make_question("a", 7), make_question("b", 3), make_question("c", 3)]

        result = renumber(questions)

        assert [q.number for q in result.questions] == [1, 2, 3]
        assert result.next_number == 4

    def test_multi_item_reserves_range(self) -> None:
        questions = [
            make_question("a", 1),
            make_question("m", 1, QuestionType.MATCHING, items=3),
            make_question("p", 1, QuestionType.MAP, items=2),
            make_question("b", 1),
        ]

        result = renumber(questions)

        assert [(q.number, q.last_number) for q in result.questions] == [(1, 1), (2, 4), (5, 6), (7, 7)]
        assert result.next_number == 8

    def test_idempotent(self) -> None:
        questions = [make_question("a", 4), make_question("m", 9, QuestionType.MATCHING, items=2)]

        once = renumber(questions, start=5)
        twice = renumber(once.questions, start=5)

        assert once == twice

    def test_unchanged_questions_are_kept(self) -> None:
        question = make_question("a", 1)

        result = renumber([question])

        assert result.questions[0] is question

    def test_threaded_counter(self) -> None:
        """Test consecutive parts are numbered one after another."""
        part_one = renumber([make_question("a", 1), make_question("b", 1)])
        part_two = renumber([make_question("c", 1)], start=part_one.next_number)

        assert part_two.questions[0].number == 3
        assert part_two.next_number == 4

    def test_empty(self) -> None:
        result = renumber([], start=11)

        assert result.questions == ()
        assert result.next_number == 11

    def test_invalid_start(self) -> None:
        with pytest.raises(ValueError, match="start at 1"):
            renumber([make_question("a", 1)], start=0)


class TestNextAvailableNumber:
    """Tests for gap filling on insertion."""

    def test_lowest_gap(self) -> None:
        questions = [make_question("a", 1), make_question("b", 2), make_question("c", 4)]

        assert next_available_number(questions) == 3

    def test_ranges_are_used(self) -> None:
        questions = [make_question("m", 1, QuestionType.MATCHING, items=3), make_question("b", 5)]

        assert next_available_number(questions) == 4

    def test_after_last(self) -> None:
        questions = [make_question("a", 1), make_question("b", 2)]

        assert next_available_number(questions) == 3

    def test_empty(self) -> None:
        assert next_available_number([]) == 1


class TestValidateNumbering:
    """Tests for numbering diagnostics."""

    def test_consistent(self) -> None:
        questions = renumber([make_question("a", 1), make_question("m", 1, QuestionType.MAP, items=2)]).questions

        assert validate_numbering(questions) == []

    def test_gap(self) -> None:
        issues = validate_numbering([make_question("a", 1), make_question("b", 4)])

        assert len(issues) == 1
        assert "2-3" in issues[0]

    def test_overlap(self) -> None:
        questions = [make_question("m", 1, QuestionType.MATCHING, items=2), make_question("b", 2)]

        issues = validate_numbering(questions)

        assert len(issues) == 1
        assert "overlapping" in issues[0]
