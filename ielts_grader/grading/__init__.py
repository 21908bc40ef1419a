"""
Grading Engine Module.

Answer matching, reconciliation of submission keys, and band scoring.
"""

from ielts_grader.grading.answer_key import AnswerKeyError
from ielts_grader.grading.bands import band_for, overall_band, writing_band
from ielts_grader.grading.engine import GradingEngine
from ielts_grader.grading.matcher import AnswerMatcher
from ielts_grader.grading.reconciler import AnswerReconciler, Resolution, Strategy

__all__ = [
    "AnswerKeyError",
    "AnswerMatcher",
    "AnswerReconciler",
    "GradingEngine",
    "Resolution",
    "Strategy",
    "band_for",
    "overall_band",
    "writing_band",
]
