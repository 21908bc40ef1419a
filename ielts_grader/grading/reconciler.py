"""
Answer reconciliation.

Finds the submitted answer for a question when the submission is not keyed
by question id. Editor sessions store answers under transient keys of the
form ``{prefix}_{timestamp}[_{index}]`` (``mcq_1718000000_0``); those are
matched by type prefix as a last resort. Prefix matches are heuristic: when
more than one candidate exists the resolution is marked ambiguous so the
result can be flagged for review.
"""

import logging
import re
from enum import Enum
from typing import Any, Collection, Mapping, NamedTuple

from ielts_grader.config import Settings, get_settings
from ielts_grader.models import Question, QuestionType

logger = logging.getLogger(__name__)

TYPE_PREFIXES: dict[QuestionType, str] = {
    QuestionType.BLANK: "q_",
    QuestionType.MULTIPLE_CHOICE: "mcq_",
    QuestionType.MATCHING: "matching_",
    QuestionType.MAP: "map_",
}

_DIGITS = re.compile(r"\d+")


class Strategy(str, Enum):
    """How an answer was found."""

    ID = "id"
    NUMBER = "number"
    SUB_ITEMS = "sub_items"
    PREFIX = "prefix"
    NONE = "none"


class Resolution(NamedTuple):
    """
    A located answer.

    For multi-item questions found through sub-item or number keys ``value``
    is a positional list; through prefix keys it is a list of
    ``{"key", "value"}`` pairs in key order.
    """

    value: Any = None
    keys: tuple[str, ...] = ()
    strategy: Strategy = Strategy.NONE
    ambiguous: bool = False

    @property
    def found(self) -> bool:
        return self.strategy is not Strategy.NONE


class AnswerReconciler:
    """Locates submitted answers for questions."""

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the reconciler.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._settings = settings or get_settings()

    def resolve(
        self,
        question: Question,
        submission: Mapping[str, Any],
        claimed: Collection[str] = (),
    ) -> Resolution:
        """
        Find the answer submitted for a question.

        Tries, in order: the question id, the question number, sub-item keys
        ``{id}_{i}`` (matching and map), then editor keys by type prefix.

        Args:
            question: The question to find an answer for.
            submission: Submitted answers keyed by any supported key.
            claimed: Keys already used by earlier questions.

        Returns:
            Resolution; ``strategy`` is NONE when nothing was found.
        """
        if question.id in submission:
            logger.debug("Question %s: answer found by id", question.id)
            return Resolution(submission[question.id], (question.id,), Strategy.ID)

        by_number = self._by_number(question, submission, claimed)
        if by_number is not None:
            logger.debug("Question %s: answer found by number %d", question.id, question.number)
            return by_number

        if question.type.is_multi_item:
            keys = [f"{question.id}_{i}" for i in range(question.span)]
            present = tuple(k for k in keys if k in submission)
            if present:
                logger.debug("Question %s: %d sub-item answers found", question.id, len(present))
                return Resolution([submission.get(k) for k in keys], present, Strategy.SUB_ITEMS)

        if self._settings.allow_prefix_fallback:
            by_prefix = self._by_prefix(question, submission, claimed)
            if by_prefix is not None:
                return by_prefix

        logger.debug("Question %s: no answer submitted", question.id)
        return Resolution()

    def _by_number(
        self, question: Question, submission: Mapping[str, Any], claimed: Collection[str]
    ) -> Resolution | None:
        """Look the answer up under the displayed question number."""
        first = str(question.number)
        if first in claimed:
            return None

        if question.span == 1 or isinstance(submission.get(first), (list, dict)):
            if first in submission:
                return Resolution(submission[first], (first,), Strategy.NUMBER)
            return None

        keys = [str(n) for n in range(question.number, question.last_number + 1)]
        present = tuple(k for k in keys if k in submission and k not in claimed)
        if not present:
            return None
        return Resolution(
            [submission.get(k) if k in present else None for k in keys],
            present,
            Strategy.NUMBER,
        )

    def _by_prefix(
        self, question: Question, submission: Mapping[str, Any], claimed: Collection[str]
    ) -> Resolution | None:
        """Fall back to editor keys carrying the question type prefix."""
        prefix = TYPE_PREFIXES.get(question.type)
        if prefix is None:
            return None

        candidates = [k for k in submission if k.startswith(prefix) and k not in claimed]
        if not candidates:
            return None

        if not question.type.is_multi_item:
            key = candidates[0]
            ambiguous = len(candidates) > 1
            if ambiguous:
                logger.warning(
                    "Question %s: %d unclaimed '%s' keys, using %r",
                    question.id,
                    len(candidates),
                    prefix,
                    key,
                )
            return Resolution(submission[key], (key,), Strategy.PREFIX, ambiguous)

        # One editor widget writes all of its sub-items under one timestamp
        groups: dict[str, list[str]] = {}
        for key in candidates:
            groups.setdefault(_group_of(key, prefix), []).append(key)
        ordered = sorted(groups, key=_numeric_parts)
        keys = sorted(groups[ordered[0]], key=_numeric_parts)

        ambiguous = len(ordered) > 1
        if ambiguous:
            logger.warning(
                "Question %s: %d unclaimed '%s' key groups, using %r",
                question.id,
                len(ordered),
                prefix,
                ordered[0],
            )
        value = [{"key": k, "value": submission[k]} for k in keys]
        return Resolution(value, tuple(keys), Strategy.PREFIX, ambiguous)


def _group_of(key: str, prefix: str) -> str:
    """The timestamp part of an editor key, '' if it has none."""
    return key[len(prefix):].split("_", 1)[0]


def _numeric_parts(key: str) -> tuple[int, ...]:
    return tuple(int(part) for part in _DIGITS.findall(key))
