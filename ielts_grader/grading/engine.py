"""
Grading engine - the core orchestrator.

Grades a submission against the answer key question by question, then
aggregates per-section scores and converts them into band scores. Grading
never raises: broken answer keys are graded as "no correct answer set" and
any unexpected failure is contained to the question it happened on.
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from ielts_grader.config import Settings, get_settings
from ielts_grader.grading.answer_key import (
    AnswerKeyError,
    decode_blank,
    decode_choice,
    decode_options,
    decode_pairs,
    decode_regions,
    region_answer,
)
from ielts_grader.grading.bands import band_for, overall_band, writing_band
from ielts_grader.grading.matcher import AnswerMatcher
from ielts_grader.grading.reconciler import AnswerReconciler, Resolution
from ielts_grader.models import (
    GradingResult,
    Question,
    QuestionResult,
    QuestionType,
    Section,
    SectionScore,
)

logger = logging.getLogger(__name__)

NO_KEY_NOTE = "No correct answer set"
AMBIGUOUS_NOTE = "Answer located by editor key prefix; check that it belongs to this question"
WRITING_NOTE = "Writing tasks require manual assessment"

Grader = Callable[[Question, Resolution], list[QuestionResult]]


class GradingEngine:
    """
    Main grading engine.

    Locates each question's answer through the reconciler, compares it with
    the matcher and converts section counts into bands.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the grading engine.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._settings = settings or get_settings()
        self._matcher = AnswerMatcher(self._settings)
        self._reconciler = AnswerReconciler(self._settings)
        self._graders: dict[QuestionType, Grader] = {
            QuestionType.BLANK: self._grade_blank,
            QuestionType.MULTIPLE_CHOICE: self._grade_choice,
            QuestionType.MATCHING: self._grade_matching,
            QuestionType.MAP: self._grade_map,
            QuestionType.ESSAY: self._grade_essay,
        }

    def grade(self, questions: Iterable[Question], submission: Mapping[str, Any]) -> GradingResult:
        """
        Grade a submission.

        Args:
            questions: The answer key, numbered as shown to the student.
            submission: Submitted answers keyed by question id, number,
                sub-item key or editor key.

        Returns:
            GradingResult with per-question, per-section and overall scores.
        """
        questions = list(questions)
        if not isinstance(submission, Mapping):
            logger.warning("Submission is not a mapping (%s), grading as empty", type(submission).__name__)
            submission = {}

        results: list[QuestionResult] = []
        claimed: set[str] = set()
        for question in questions:
            results.extend(self._grade_question(question, submission, claimed))

        sections = self._score_sections(questions, results)
        overall = overall_band(score.band_score for score in sections)

        logger.info(
            "Graded %d questions (%d results), overall band %s",
            len(questions),
            len(results),
            overall,
        )
        return GradingResult(
            question_results=tuple(results),
            sections=sections,
            overall_band_score=overall,
        )

    def _grade_question(
        self, question: Question, submission: Mapping[str, Any], claimed: set[str]
    ) -> list[QuestionResult]:
        """Grade one question, containing any failure to this question."""
        try:
            resolution = self._reconciler.resolve(question, submission, claimed)
            claimed.update(resolution.keys)
            results = self._graders[question.type](question, resolution)
        except Exception as e:
            logger.exception("Failed to grade question %s", question.id)
            return [
                QuestionResult(
                    question_id=question.id,
                    question_number=question.number,
                    question_text=question.prompt,
                    question_type=question.type,
                    section=question.section,
                    needs_review=True,
                    note=f"Grading failed: {e}",
                )
            ]

        if resolution.ambiguous:
            results = [
                r.model_copy(update={"needs_review": True, "note": r.note or AMBIGUOUS_NOTE})
                for r in results
            ]
        return results

    # ==========================================================================
    # Per-type graders
    # ==========================================================================

    def _grade_blank(self, question: Question, resolution: Resolution) -> list[QuestionResult]:
        answers, note = self._decode(decode_blank, question, [])
        user = resolution.value
        is_correct = self._matcher.matches(user, answers)
        return [
            self._result(
                question,
                user_answer=user,
                correct_answer=answers or None,
                is_correct=is_correct,
                note=note or (None if answers else NO_KEY_NOTE),
            )
        ]

    def _grade_choice(self, question: Question, resolution: Resolution) -> list[QuestionResult]:
        correct, note = self._decode(decode_choice, question, None)
        options, _ = self._decode(decode_options, question, [])

        user = resolution.value
        if isinstance(user, int) and not isinstance(user, bool) and 0 <= user < len(options):
            user = options[user]

        is_correct = correct is not None and self._matcher.matches_option(user, correct)
        return [
            self._result(
                question,
                user_answer=resolution.value,
                correct_answer=correct,
                is_correct=is_correct,
                note=note or (None if correct is not None else NO_KEY_NOTE),
            )
        ]

    def _grade_matching(self, question: Question, resolution: Resolution) -> list[QuestionResult]:
        (left, right), note = self._decode(decode_pairs, question, ([], []))
        count = len(left) or question.span

        results = []
        for index in range(count):
            label = left[index] if index < len(left) else ""
            correct = right[index] if index < len(right) else None
            user = _item_answer(resolution.value, index, label)
            results.append(
                self._result(
                    question,
                    index=index,
                    text=label or question.prompt,
                    user_answer=user,
                    correct_answer=correct,
                    is_correct=correct is not None and self._matcher.matches_option(user, correct),
                    note=note or (None if correct is not None else NO_KEY_NOTE),
                )
            )
        return results

    def _grade_map(self, question: Question, resolution: Resolution) -> list[QuestionResult]:
        regions, note = self._decode(decode_regions, question, [])
        count = len(regions) or question.span

        results = []
        for index in range(count):
            region = regions[index] if index < len(regions) else {}
            correct = region_answer(region)
            user = _item_answer(resolution.value, index, region.get("id"))
            text = f"{question.prompt} - Label {index + 1}".strip(" -")
            results.append(
                self._result(
                    question,
                    index=index,
                    text=text,
                    user_answer=user,
                    correct_answer=correct,
                    is_correct=correct is not None and self._matcher.matches(user, correct),
                    note=note or (None if correct is not None else NO_KEY_NOTE),
                )
            )
        return results

    def _grade_essay(self, question: Question, resolution: Resolution) -> list[QuestionResult]:
        has_answer = not self._matcher.is_empty(resolution.value)
        credit = max(Decimal(1), self._points(question)) * self._settings.writing_credit_ratio
        return [
            QuestionResult(
                question_id=question.id,
                question_number=question.number,
                question_text=question.prompt,
                question_type=question.type,
                user_answer=resolution.value,
                is_correct=has_answer,
                points=credit if has_answer else Decimal(0),
                section=question.section,
                needs_review=True,
                note=WRITING_NOTE,
            )
        ]

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _decode(self, decoder: Callable[[Question], Any], question: Question, default: Any) -> tuple[Any, str | None]:
        """Run an answer key decoder, degrading a broken key to the default."""
        try:
            return decoder(question), None
        except AnswerKeyError as e:
            logger.warning("Question %s: %s", question.id, e)
            return default, NO_KEY_NOTE

    def _points(self, question: Question) -> Decimal:
        return question.points if question.points is not None else self._settings.default_points

    def _result(
        self,
        question: Question,
        *,
        user_answer: Any,
        correct_answer: Any,
        is_correct: bool,
        note: str | None = None,
        index: int | None = None,
        text: str | None = None,
    ) -> QuestionResult:
        """Build the result of a question or of one of its sub-items."""
        return QuestionResult(
            question_id=question.id if index is None else f"{question.id}_{index}",
            question_number=question.number + (index or 0),
            question_text=question.prompt if text is None else text,
            question_type=question.type,
            user_answer=user_answer,
            correct_answer=correct_answer,
            is_correct=is_correct,
            points=self._points(question) if is_correct else Decimal(0),
            section=question.section,
            note=note,
        )

    def _score_sections(
        self, questions: list[Question], results: list[QuestionResult]
    ) -> tuple[SectionScore, ...]:
        """Aggregate results per section, in section order."""
        scores: list[SectionScore] = []

        for section in Section:
            section_results = [r for r in results if r.section is section]
            if not section_results:
                continue

            correct = sum(1 for r in section_results if r.is_correct)
            points = sum((r.points for r in section_results), Decimal(0))

            if section is Section.WRITING:
                max_points = sum(
                    (self._points(q) * q.span for q in questions if q.section is section),
                    Decimal(0),
                )
                band = writing_band(points, max_points)
            else:
                band = band_for(section, correct)

            scores.append(
                SectionScore(
                    section=section,
                    correct=correct,
                    total=len(section_results),
                    points=points,
                    band_score=band,
                )
            )

        return tuple(scores)


def _item_answer(value: Any, index: int, key: Any = None) -> Any:
    """
    Pick the answer of one sub-item out of a multi-item answer.

    Accepts positional lists (plain values or ``{"key", "value"}`` pairs),
    lists of ``{"regionKey", "value"}`` entries, and dicts keyed by the
    item's own key (left item, region id) or by position.
    """
    if isinstance(value, (list, tuple)):
        keyed = {
            str(item["regionKey"]): item.get("value", item.get("answer"))
            for item in value
            if isinstance(item, dict) and "regionKey" in item
        }
        if key is not None and str(key) in keyed:
            return keyed[str(key)]
        if index >= len(value):
            return None
        item = value[index]
        if isinstance(item, dict):
            return item.get("value", item.get("answer"))
        return item

    if isinstance(value, dict):
        for candidate in (key, None if key is None else str(key), str(index), index):
            if candidate is not None and candidate in value:
                return value[candidate]
        return None

    return value if index == 0 else None
