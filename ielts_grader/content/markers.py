"""
Inline marker grammar.

Parses flat authored text containing question markers into questions and
placeholder text. Two marker families are supported:

1. Simple blanks: "The shape is [round]"
2. Advanced markers: "[1:MCQ] Capital of France? {London|Paris*|Berlin}"
                     "[5:MATCH] Speakers {Left:Anna,Ben|Right:likes tea,likes coffee}"
                     "[9:MAP] Campus {image:http://x/map.png|areas:A=Library@45,30;B=Cafe@60,70}"

Advanced markers are replaced before simple ones. Malformed markers are
never an error: whatever does not match stays in the text as a literal.
"""

import logging
import re
from typing import Any, Callable, NamedTuple

from ielts_grader.content.numbering import renumber
from ielts_grader.models import ParsedContent, Question, QuestionType, Section

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{question:([^{}]+)\}\}")

# Marker position while a text is being scanned; cannot occur in authored text
_TOKEN_PATTERN = re.compile(r"\x00(\d+)\x00")


def placeholder(question_id: str) -> str:
    """Return the placeholder token standing in for a question."""
    return f"{{{{question:{question_id}}}}}"


class Marker(NamedTuple):
    """A question marker found in text, before ids and numbers are assigned."""

    type: QuestionType
    hint: int | None
    prompt: str
    answer_spec: Any
    metadata: dict[str, Any]


class MarkerGrammar:
    """
    Tokenizes marker syntax in flat text.

    ``scan`` finds markers and replaces them with internal tokens in
    document order; ``parse`` turns those into numbered questions and
    public ``{{question:<id>}}`` placeholders.
    """

    ADVANCED_PATTERN = re.compile(
        r"\[\s*(\d+)\s*:\s*(MCQ|MATCH|MAP)\s*\]"  # Header: [number:TYPE]
        r"[ \t]*([^{}\[\]\x00]*?)[ \t]*"  # Prompt (no brackets or braces)
        r"\{([^{}\x00]*)\}",  # Options block
        re.IGNORECASE,
    )

    SIMPLE_PATTERN = re.compile(r"\[([^\[\]{}\x00]+)\]")

    # An advanced header without options block is left alone by the simple pass
    HEADER_PATTERN = re.compile(r"\s*\d+\s*:\s*(?:MCQ|MATCH|MAP)\s*", re.IGNORECASE)

    def parse(
        self,
        text: str,
        start: int | None = None,
        section: Section = Section.READING,
    ) -> ParsedContent:
        """
        Parse marker text into placeholder text and numbered questions.

        Args:
            text: Authored text with inline markers.
            start: First question number. Defaults to the number hint of the
                first marker in the text, or 1.
            section: Section the questions belong to.

        Returns:
            ParsedContent with placeholder text and questions in document order.
        """
        scanned, markers = self.scan(text)

        if start is None:
            start = markers[0].hint if markers and markers[0].hint else 1

        drafts = [
            self.to_question(marker, f"question-{ordinal}", section)
            for ordinal, marker in enumerate(markers, start=1)
        ]
        numbering = renumber(drafts, start=start)

        content = self.replace_tokens(scanned, [q.id for q in numbering.questions])

        logger.debug("Parsed %d markers, next number %d", len(drafts), numbering.next_number)
        return ParsedContent(
            content=content,
            questions=numbering.questions,
            next_number=numbering.next_number,
        )

    def scan(self, text: str) -> tuple[str, list[Marker]]:
        """
        Find all markers in a text.

        Returns:
            The text with every marker replaced by an internal token, and
            the markers in document order (token ``i`` is ``markers[i]``).
        """
        found: list[Marker] = []

        def take(marker: Marker) -> str:
            found.append(marker)
            return f"\x00{len(found) - 1}\x00"

        # Advanced markers first so their option blocks are never read as blanks
        scanned = self.ADVANCED_PATTERN.sub(
            lambda m: take(self._parse_advanced(m)), text
        )
        scanned = self.SIMPLE_PATTERN.sub(
            lambda m: self._replace_simple(m, take), scanned
        )

        # Re-index tokens so they follow document order
        ordered: list[Marker] = []

        def reindex(match: re.Match[str]) -> str:
            ordered.append(found[int(match.group(1))])
            return f"\x00{len(ordered) - 1}\x00"

        scanned = _TOKEN_PATTERN.sub(reindex, scanned)
        return scanned, ordered

    @staticmethod
    def to_question(marker: Marker, question_id: str, section: Section) -> Question:
        """Build an unnumbered question from a marker."""
        return Question(
            id=question_id,
            number=marker.hint or 1,
            type=marker.type,
            prompt=marker.prompt,
            answer_spec=marker.answer_spec,
            metadata=marker.metadata,
            section=section,
        )

    @staticmethod
    def replace_tokens(text: str, question_ids: list[str]) -> str:
        """Swap internal tokens for public placeholders."""
        return _TOKEN_PATTERN.sub(
            lambda m: placeholder(question_ids[int(m.group(1))]), text
        )

    def _replace_simple(self, match: re.Match[str], take: Callable[[Marker], str]) -> str:
        """Turn a simple bracket into a blank marker, or leave it literal."""
        answer = match.group(1).strip()
        if not answer or self.HEADER_PATTERN.fullmatch(match.group(1)):
            return match.group(0)
        return take(
            Marker(
                type=QuestionType.BLANK,
                hint=None,
                prompt="",
                answer_spec=[answer],
                metadata={},
            )
        )

    def _parse_advanced(self, match: re.Match[str]) -> Marker:
        """Parse a matched advanced marker."""
        hint = int(match.group(1))
        kind = match.group(2).upper()
        prompt = match.group(3).strip()
        block = match.group(4)

        if kind == "MCQ":
            options, correct = self._parse_choices(block, hint)
            return Marker(
                type=QuestionType.MULTIPLE_CHOICE,
                hint=hint,
                prompt=prompt,
                answer_spec=correct,
                metadata={"options": options},
            )

        if kind == "MATCH":
            left, right = self._parse_pairs(block, hint)
            return Marker(
                type=QuestionType.MATCHING,
                hint=hint,
                prompt=prompt,
                answer_spec={"left": left, "right": right},
                metadata={"left": list(left), "right": list(right)},
            )

        image_url, regions = self._parse_map(block, hint)
        return Marker(
            type=QuestionType.MAP,
            hint=hint,
            prompt=prompt,
            answer_spec=regions,
            metadata={"image_url": image_url},
        )

    def _parse_choices(self, block: str, hint: int) -> tuple[list[str], int | None]:
        """Parse 'A|B*|C' into options and the index of the starred one."""
        if not block.strip():
            return [], None

        options: list[str] = []
        correct: int | None = None

        for index, part in enumerate(block.split("|")):
            option = part.strip()
            if option.endswith("*"):
                option = option[:-1].rstrip()
                if correct is None:
                    correct = index
                else:
                    logger.warning(
                        "MCQ marker %d marks several options correct, keeping option %d",
                        hint,
                        correct,
                    )
            options.append(option)

        if correct is None:
            logger.warning("MCQ marker %d has no option marked with '*'", hint)
        return options, correct

    def _parse_pairs(self, block: str, hint: int) -> tuple[list[str], list[str]]:
        """Parse 'Left:a,b|Right:x,y' into the two ordered item lists."""
        left: list[str] = []
        right: list[str] = []

        for segment in block.split("|"):
            key, _, value = segment.partition(":")
            items = [item.strip() for item in value.split(",") if item.strip()]
            if key.strip().lower() == "left":
                left = items
            elif key.strip().lower() == "right":
                right = items

        if len(left) != len(right):
            logger.warning(
                "MATCH marker %d has %d left items but %d right items",
                hint,
                len(left),
                len(right),
            )
        return left, right

    def _parse_map(self, block: str, hint: int) -> tuple[str, list[dict[str, Any]]]:
        """Parse 'image:url|areas:label=answer@x,y;...' into url and regions."""
        image_url = ""
        regions: list[dict[str, Any]] = []

        for segment in block.split("|"):
            key, _, value = segment.partition(":")
            if key.strip().lower() == "image":
                image_url = value.strip()
            elif key.strip().lower() == "areas":
                regions = self._parse_areas(value, hint)

        return image_url, regions

    def _parse_areas(self, areas: str, hint: int) -> list[dict[str, Any]]:
        """Parse 'label=answer@x,y;...' entries into map regions."""
        regions: list[dict[str, Any]] = []

        for entry in areas.split(";"):
            if not entry.strip():
                continue
            names, at, coords = entry.partition("@")
            if not at:
                logger.warning("MAP marker %d: area %r has no coordinates", hint, entry.strip())
                continue

            label, _, answer = names.partition("=")
            label = label.strip()
            answer = answer.strip() or label
            x, _, y = coords.partition(",")

            regions.append(
                {
                    "id": len(regions) + 1,
                    "label": label,
                    "answer": answer,
                    "x": _parse_coordinate(x),
                    "y": _parse_coordinate(y),
                }
            )

        return regions


def _parse_coordinate(value: str) -> float:
    """Parse a percentage coordinate; '*' is tolerated, junk becomes 0."""
    try:
        number = float(value.strip().rstrip("*").strip())
    except ValueError:
        return 0.0
    return min(100.0, max(0.0, number))
