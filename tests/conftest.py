"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import json
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any, Generator

import pytest

from ielts_grader.config import Settings
from ielts_grader.models import ContentNode, Question, QuestionType, Section


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings with the default grading values."""
    return Settings(
        default_points=Decimal("1"),
        exact_match_max_length=2,
        writing_credit_ratio=Decimal("0.6"),
        allow_prefix_fallback=True,
        log_level="DEBUG",
        output_directory=temp_dir / "output",
    )


@pytest.fixture
def strict_settings(temp_dir: Path) -> Settings:
    """Settings with the editor key fallback switched off."""
    return Settings(
        allow_prefix_fallback=False,
        output_directory=temp_dir / "output",
    )


# ==============================================================================
# Authored Content Fixtures
# ==============================================================================


@pytest.fixture
def sample_marker_text() -> str:
    """Authored text using every marker kind."""
    return """Questions 1-3: Complete the notes.
Dining table: - [round] shape
Chairs: made of [oak,pine] wood
Delivery at [10:30] on Friday

[4:MCQ] Where is the shop? {London|Paris*|Berlin}
[5:MATCH] Match the people {Left:Anna,Ben|Right:likes tea,likes coffee}
[7:MAP] Label the campus {image:http://example.com/map.png|areas:A=Library@45,30;B=Cafe@60,70*}
"""


@pytest.fixture
def sample_tree_dict() -> dict[str, Any]:
    """Editor-shaped content tree with inline and node questions."""
    return {
        "type": "doc",
        "content": [
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "The table is [round] and "},
                    {"type": "text", "text": "made of oak.", "marks": [{"type": "bold"}]},
                ],
            },
            {
                "type": "mcq",
                "attrs": {
                    "id": "q-mcq",
                    "question_text": "Capital of France?",
                    "options": ["London", "Paris", "Berlin"],
                    "correct_index": 1,
                    "number": 42,
                },
            },
            {
                "type": "matching",
                "attrs": {
                    "id": "q-match",
                    "question_text": "Match the drinks",
                    "left": ["Anna", "Ben"],
                    "right": ["tea", "coffee"],
                },
            },
            {
                "type": "short_answer",
                "attrs": {"question_text": "Where do they meet?", "answers": ["library"]},
            },
        ],
    }


@pytest.fixture
def sample_tree(sample_tree_dict: dict[str, Any]) -> ContentNode:
    """The sample tree as a ContentNode."""
    return ContentNode.model_validate(sample_tree_dict)


# ==============================================================================
# Question Fixtures
# ==============================================================================


@pytest.fixture
def blank_question() -> Question:
    """A single blank question."""
    return Question(id="q1", number=1, type=QuestionType.BLANK, answer_spec=["round"])


@pytest.fixture
def mcq_question() -> Question:
    """A multiple choice question with its answer stored as an index."""
    return Question(
        id="q2",
        number=2,
        type=QuestionType.MULTIPLE_CHOICE,
        prompt="Capital of France?",
        answer_spec=1,
        metadata={"options": ["London", "Paris", "Berlin"]},
    )


@pytest.fixture
def matching_question() -> Question:
    """A matching question with two sub-items."""
    return Question(
        id="q3",
        number=3,
        type=QuestionType.MATCHING,
        answer_spec={"left": ["Anna", "Ben"], "right": ["tea", "coffee"]},
        metadata={"left": ["Anna", "Ben"], "right": ["tea", "coffee"]},
    )


@pytest.fixture
def map_question() -> Question:
    """A map question with two regions."""
    return Question(
        id="q5",
        number=5,
        type=QuestionType.MAP,
        prompt="Label the campus",
        answer_spec=[
            {"id": 1, "label": "A", "answer": "Library", "x": 45, "y": 30},
            {"id": 2, "label": "Cafe", "answer": "", "x": 60, "y": 70},
        ],
        metadata={"image_url": "http://example.com/map.png"},
    )


@pytest.fixture
def essay_question() -> Question:
    """A writing task."""
    return Question(
        id="w1",
        number=1,
        type=QuestionType.ESSAY,
        prompt="Describe the chart.",
        points=Decimal("2"),
        section=Section.WRITING,
    )


@pytest.fixture
def reading_questions(
    blank_question: Question,
    mcq_question: Question,
    matching_question: Question,
    map_question: Question,
) -> list[Question]:
    """One question of every auto-graded type, numbered 1-6."""
    return [blank_question, mcq_question, matching_question, map_question]


# ==============================================================================
# File Fixtures
# ==============================================================================


@pytest.fixture
def content_txt_file(temp_dir: Path, sample_marker_text: str) -> Path:
    """Authored marker text saved as .txt."""
    file_path = temp_dir / "reading.txt"
    file_path.write_text(sample_marker_text, encoding="utf-8")
    return file_path


@pytest.fixture
def content_json_file(temp_dir: Path, sample_tree_dict: dict[str, Any]) -> Path:
    """Authored content tree saved as .json."""
    file_path = temp_dir / "listening.json"
    file_path.write_text(json.dumps(sample_tree_dict), encoding="utf-8")
    return file_path


@pytest.fixture
def submission_file(temp_dir: Path) -> Path:
    """Answers to the sample marker text, keyed by number and id."""
    file_path = temp_dir / "submission.json"
    file_path.write_text(
        json.dumps(
            {
                "1": "round",
                "2": "Pine",
                "3": "10:30",
                "question-4": "Paris",
                "question-5": ["likes tea", "likes tea"],
                "question-6": {"1": "Library", "2": "Cafe"},
            }
        ),
        encoding="utf-8",
    )
    return file_path


@pytest.fixture
def empty_file(temp_dir: Path) -> Path:
    """Create an empty file."""
    file_path = temp_dir / "empty.txt"
    file_path.write_text("", encoding="utf-8")
    return file_path


@pytest.fixture
def whitespace_file(temp_dir: Path) -> Path:
    """Create a file with only whitespace."""
    file_path = temp_dir / "whitespace.txt"
    file_path.write_text("   \n\t\n   ", encoding="utf-8")
    return file_path
