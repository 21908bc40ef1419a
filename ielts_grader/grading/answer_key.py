"""
Answer key decoding.

Stored answer keys are not always in the shape the parser produces: values
read back from storage are often JSON strings, and multiple choice answers
may be an index, a numeric string, or the option text itself. The decoders
here turn each type's ``answer_spec`` into plain correct answers and raise
``AnswerKeyError`` when it cannot be read.
"""

import json
from typing import Any

from ielts_grader.models import Question


class AnswerKeyError(Exception):
    """Raised when a stored answer key cannot be decoded."""

    def __init__(self, message: str, question_id: str | None = None, raw_value: Any = None):
        self.question_id = question_id
        self.raw_value = raw_value
        super().__init__(message)


def load_json(raw: Any, question_id: str | None = None) -> Any:
    """
    Decode a JSON-encoded list or object; other values pass through.

    Raises:
        AnswerKeyError: If the value looks like JSON but does not parse.
    """
    if not isinstance(raw, str):
        return raw

    stripped = raw.strip()
    if not stripped.startswith(("[", "{")):
        return raw

    try:
        return json.loads(stripped)
    except json.JSONDecodeError as e:
        raise AnswerKeyError(
            f"Invalid JSON in answer key: {e}",
            question_id=question_id,
            raw_value=raw,
        ) from e


def decode_blank(question: Question) -> list[str]:
    """Acceptable answers of a blank question."""
    spec = load_json(question.answer_spec, question.id)
    if spec is None:
        return []
    if isinstance(spec, (list, tuple)):
        return [str(answer) for answer in spec if answer is not None and str(answer).strip()]
    if isinstance(spec, dict):
        raise AnswerKeyError("Blank answer key must be a list of answers", question.id, spec)
    return [str(spec)] if str(spec).strip() else []


def decode_options(question: Question) -> list[str]:
    """Options of a multiple choice question, in order."""
    options = load_json(question.metadata.get("options"), question.id)
    if options is None:
        return []
    if not isinstance(options, (list, tuple)):
        raise AnswerKeyError("Options must be a list", question.id, options)
    return [str(option) for option in options]


def decode_choice(question: Question) -> str | None:
    """
    Text of the correct option of a multiple choice question.

    The key is an index into the options; a numeric string counts as an
    index and any other string is taken as the answer text. An index
    outside the options means no correct answer is set.
    """
    spec = load_json(question.answer_spec, question.id)
    options = decode_options(question)

    if spec is None or isinstance(spec, bool):
        return None

    index: int | None = None
    if isinstance(spec, int):
        index = spec
    elif isinstance(spec, str) and spec.strip().lstrip("-").isdigit():
        index = int(spec.strip())
    elif isinstance(spec, str):
        return spec.strip() or None
    else:
        raise AnswerKeyError("Multiple choice answer key must be an index", question.id, spec)

    if 0 <= index < len(options):
        return options[index]
    return None


def decode_pairs(question: Question) -> tuple[list[str], list[str]]:
    """Left prompts and their correct right items of a matching question."""
    spec = load_json(question.answer_spec, question.id)
    if spec is None:
        spec = question.metadata
    if not isinstance(spec, dict):
        raise AnswerKeyError("Matching answer key must have left and right lists", question.id, spec)

    left = load_json(spec.get("left"), question.id) or []
    right = load_json(spec.get("right"), question.id) or []
    if not isinstance(left, list) or not isinstance(right, list):
        raise AnswerKeyError("Matching left and right must be lists", question.id, spec)
    return [str(item) for item in left], [str(item) for item in right]


def decode_regions(question: Question) -> list[dict[str, Any]]:
    """Regions of a map question, in order."""
    spec = load_json(question.answer_spec, question.id)
    if spec is None:
        return []
    if isinstance(spec, dict):
        spec = spec.get("regions", spec.get("boxes"))
    if not isinstance(spec, list) or not all(isinstance(region, dict) for region in spec):
        raise AnswerKeyError("Map answer key must be a list of regions", question.id, spec)
    return spec


def region_answer(region: dict[str, Any]) -> str | None:
    """Correct answer of a map region, falling back to its label."""
    for key in ("answer", "label"):
        value = region.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return None
