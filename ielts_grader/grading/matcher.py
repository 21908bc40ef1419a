"""
Answer matcher.

Compares one student answer with one or more acceptable answers. Matching
is strict: after normalization only exact equality counts, except that a
single-word answer is accepted when the student typed it as one of several
words ("the child" for "child"). Short answers never get that leniency.
"""

import string
from typing import Any

from ielts_grader.config import Settings, get_settings


class AnswerMatcher:
    """Deterministic comparison of student answers with correct answers."""

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the matcher.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._settings = settings or get_settings()

    @staticmethod
    def normalize(value: Any) -> str:
        """Render an answer as trimmed, case-folded text."""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value).casefold().strip()

    @classmethod
    def is_empty(cls, value: Any) -> bool:
        """Whether a value counts as no answer at all."""
        if value is None:
            return True
        if isinstance(value, (list, tuple, dict)):
            return len(value) == 0
        return cls.normalize(value) == ""

    def matches(self, user_answer: Any, correct_answer: Any) -> bool:
        """
        Check a student answer against the correct answer.

        Args:
            user_answer: The submitted answer.
            correct_answer: A single answer, a list of acceptable answers, or
                a comma-separated string of acceptable answers.

        Returns:
            True if the answer is accepted.
        """
        if self.is_empty(user_answer) or self.is_empty(correct_answer):
            return False

        if isinstance(correct_answer, (list, tuple)):
            return any(self.matches(user_answer, option) for option in correct_answer)

        user = self.normalize(user_answer)

        if isinstance(correct_answer, str) and "," in correct_answer:
            alternatives = {self.normalize(part) for part in correct_answer.split(",")}
            alternatives.discard("")
            return user in alternatives

        correct = self.normalize(correct_answer)

        if user == correct:
            return True

        if len(correct) <= self._settings.exact_match_max_length:
            return False

        if len(correct.split()) == 1:
            tokens = user.split()
            return correct in tokens or correct in (t.strip(string.punctuation) for t in tokens)

        return False

    def matches_option(self, user_answer: Any, option: Any) -> bool:
        """
        Check a chosen option against the correct option.

        Options are picked, not typed, so the option text is compared whole:
        commas inside it are part of the text, not alternatives.
        """
        if self.is_empty(user_answer) or self.is_empty(option):
            return False
        return self.normalize(user_answer) == self.normalize(option)
