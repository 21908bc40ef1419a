"""
IELTS Grader - inline question authoring and automatic band scoring.

This package parses instructor-authored content with inline question
markers into a numbered answer key, renders a student-safe view of that
content, and grades submissions into IELTS band scores.
"""

__version__ = "1.0.0"
__author__ = "IELTS Grader Team"
