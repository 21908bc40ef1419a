"""
Unit tests for the answer matcher.

Covers normalization, multiple acceptable answers, and the precision
rules for short and single-word answers.
"""

import pytest

from ielts_grader.config import Settings
from ielts_grader.grading.matcher import AnswerMatcher


@pytest.fixture
def matcher(test_settings: Settings) -> AnswerMatcher:
    return AnswerMatcher(test_settings)


class TestNormalization:
    """Tests for answer normalization."""

    def test_normalize_case_and_whitespace(self) -> None:
        """Test answers are case-folded and trimmed."""
        assert AnswerMatcher.normalize("  Round ") == "round"

    def test_normalize_booleans(self) -> None:
        """Test booleans render as lower-case words."""
        assert AnswerMatcher.normalize(True) == "true"
        assert AnswerMatcher.normalize(False) == "false"

    def test_normalize_numbers(self) -> None:
        """Test numbers are compared as text."""
        assert AnswerMatcher.normalize(42) == "42"

    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_is_empty(self, value: object) -> None:
        """Test values that count as no answer."""
        assert AnswerMatcher.is_empty(value)

    def test_zero_is_not_empty(self) -> None:
        """Test a zero answer is still an answer."""
        assert not AnswerMatcher.is_empty(0)


class TestMatching:
    """Tests for AnswerMatcher.matches."""

    def test_exact_match(self, matcher: AnswerMatcher) -> None:
        assert matcher.matches("ox", "ox")

    def test_short_answer_requires_exact_match(self, matcher: AnswerMatcher) -> None:
        """Test short correct answers get no leniency."""
        assert not matcher.matches("oxen", "ox")
        assert not matcher.matches("an ox", "ox")

    def test_single_word_found_among_user_words(self, matcher: AnswerMatcher) -> None:
        """Test a single-word answer matches as a whole word."""
        assert matcher.matches("the child", "child")

    def test_no_substring_leniency(self, matcher: AnswerMatcher) -> None:
        """Test a longer word does not match its prefix."""
        assert not matcher.matches("childs", "child")

    def test_surrounding_punctuation_is_tolerated(self, matcher: AnswerMatcher) -> None:
        """Test punctuation around the matching word is ignored."""
        assert matcher.matches("the child.", "child")

    def test_case_insensitive(self, matcher: AnswerMatcher) -> None:
        assert matcher.matches("PARIS", "paris")

    def test_multi_word_requires_exact_match(self, matcher: AnswerMatcher) -> None:
        """Test multi-word answers are not matched word by word."""
        assert matcher.matches("Public Library", "public library")
        assert not matcher.matches("the public library", "public library")

    def test_list_of_answers(self, matcher: AnswerMatcher) -> None:
        """Test any element of a list is accepted."""
        assert matcher.matches("colour", ["color", "colour"])
        assert not matcher.matches("colr", ["color", "colour"])

    def test_comma_separated_answers(self, matcher: AnswerMatcher) -> None:
        """Test comma-separated alternatives are matched by membership."""
        assert matcher.matches("Pine", "oak, pine")
        assert not matcher.matches("oak pine", "oak, pine")

    def test_comma_answers_inside_list(self, matcher: AnswerMatcher) -> None:
        assert matcher.matches("pine", ["oak,pine"])

    def test_time_answer(self, matcher: AnswerMatcher) -> None:
        assert matcher.matches(" 10:30 ", "10:30")

    @pytest.mark.parametrize("user", [None, "", "   "])
    def test_missing_user_answer(self, matcher: AnswerMatcher, user: object) -> None:
        """Test a missing answer never matches."""
        assert not matcher.matches(user, "round")

    @pytest.mark.parametrize("correct", [None, "", [], "  "])
    def test_missing_correct_answer(self, matcher: AnswerMatcher, correct: object) -> None:
        """Test nothing matches an unset correct answer."""
        assert not matcher.matches("round", correct)

    def test_numbers_and_strings(self, matcher: AnswerMatcher) -> None:
        assert matcher.matches(1998, "1998")

    def test_threshold_from_settings(self) -> None:
        """Test the exact-match threshold is configurable."""
        lenient = AnswerMatcher(Settings(exact_match_max_length=0))

        assert lenient.matches("an ox", "ox")


class TestMatchesOption:
    """Tests for AnswerMatcher.matches_option."""

    def test_option_with_comma_is_one_answer(self, matcher: AnswerMatcher) -> None:
        """Test commas inside an option are part of its text."""
        assert matcher.matches_option("London, UK", "London, UK")
        assert matcher.matches_option(" london, uk ", "London, UK")
        assert not matcher.matches_option("London", "London, UK")
        assert not matcher.matches_option("UK", "London, UK")

    def test_no_word_leniency(self, matcher: AnswerMatcher) -> None:
        assert not matcher.matches_option("the Library", "Library")

    def test_missing_answer(self, matcher: AnswerMatcher) -> None:
        assert not matcher.matches_option(None, "Paris")
        assert not matcher.matches_option("Paris", None)
