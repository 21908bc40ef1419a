"""
IELTS band score tables.

Raw correct counts (out of 40) convert to bands through fixed lookup
tables, one for academic reading and one for listening. Writing has no
table; its band is derived from the share of points awarded.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple

from ielts_grader.models import Section


class BandRange(NamedTuple):
    """Inclusive range of correct answers mapping to one band."""

    low: int
    high: int
    band: Decimal


def _table(*rows: tuple[int, int, str]) -> tuple[BandRange, ...]:
    return tuple(BandRange(low, high, Decimal(band)) for low, high, band in rows)


READING_BANDS = _table(
    (39, 40, "9.0"),
    (37, 38, "8.5"),
    (35, 36, "8.0"),
    (33, 34, "7.5"),
    (30, 32, "7.0"),
    (27, 29, "6.5"),
    (23, 26, "6.0"),
    (19, 22, "5.5"),
    (15, 18, "5.0"),
    (11, 14, "4.5"),
    (8, 10, "4.0"),
    (5, 7, "3.5"),
    (3, 4, "3.0"),
    (1, 2, "2.5"),
    (0, 0, "1.0"),
)

LISTENING_BANDS = _table(
    (39, 40, "9.0"),
    (37, 38, "8.5"),
    (35, 36, "8.0"),
    (32, 34, "7.5"),
    (30, 31, "7.0"),
    (26, 29, "6.5"),
    (23, 25, "6.0"),
    (18, 22, "5.5"),
    (16, 17, "5.0"),
    (13, 15, "4.5"),
    (10, 12, "4.0"),
    (6, 9, "3.5"),
    (4, 5, "3.0"),
    (3, 3, "2.5"),
    (0, 2, "1.0"),
)

BAND_TABLES = {
    Section.READING: READING_BANDS,
    Section.LISTENING: LISTENING_BANDS,
}

MIN_BAND = Decimal("1.0")
MAX_BAND = Decimal("9.0")


def round_to_half(value: Decimal) -> Decimal:
    """Round to the nearest 0.5, halves rounding up."""
    doubled = (value * 2).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return (doubled / 2).quantize(Decimal("0.1"))


def band_for(section: Section | str, correct: int) -> Decimal:
    """
    Look up the band for a number of correct answers.

    Args:
        section: Reading or listening.
        correct: Number of correct answers.

    Returns:
        The band; 1.0 when the count is outside every range.

    Raises:
        ValueError: If the section has no band table (writing).
    """
    section = Section(section)
    table = BAND_TABLES.get(section)
    if table is None:
        raise ValueError(f"No band table for section {section.value!r}")

    for row in table:
        if row.low <= correct <= row.high:
            return row.band
    return MIN_BAND


def writing_band(points: Decimal, max_points: Decimal) -> Decimal:
    """Band for the writing section from awarded and attainable points."""
    if max_points <= 0:
        return Decimal("0")
    band = min(MAX_BAND, max(MIN_BAND, points / max_points * 9))
    return round_to_half(band)


def overall_band(bands: Iterable[Decimal]) -> Decimal:
    """
    Combine section bands into the overall band.

    Sections with band 0 were not taken and are left out of the mean.
    """
    taken = [band for band in bands if band > 0]
    if not taken:
        return MIN_BAND
    return round_to_half(sum(taken, Decimal(0)) / len(taken))
