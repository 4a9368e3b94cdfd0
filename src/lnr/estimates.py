"""
Estimate scales offered by the ticket form.

Values are the numeric codes Linear stores; "0" always means no estimate.
"""

from __future__ import annotations

from .models import Option

NO_ESTIMATE = "No estimate"

SCALES: dict[str, list[Option]] = {
    "none": [
        Option(NO_ESTIMATE, "0"),
    ],
    "tshirt": [
        Option("XS - Extra Small", "1"),
        Option("S - Small", "2"),
        Option("M - Medium", "3"),
        Option("L - Large", "5"),
        Option("XL - Extra Large", "8"),
    ],
    "fibonacci": [
        Option("1", "1"),
        Option("2", "2"),
        Option("3", "3"),
        Option("5", "5"),
        Option("8", "8"),
        Option("13", "13"),
        Option("21", "21"),
    ],
    "linear": [
        Option("0 - No estimate", "0"),
        Option("1 - Small (< 1 day)", "1"),
        Option("2 - Medium (1-2 days)", "2"),
        Option("3 - Large (3-5 days)", "3"),
        Option("5 - Extra Large (1+ weeks)", "5"),
        Option("8 - Epic (2+ weeks)", "8"),
    ],
}

DEFAULT_SCALE = "tshirt"


def estimate_options(scale: str) -> list[Option]:
    return list(SCALES.get(scale, SCALES[DEFAULT_SCALE]))


def estimate_label(scale: str, code: str) -> str:
    if code in ("", "0"):
        return NO_ESTIMATE
    for option in estimate_options(scale):
        if option.value == code:
            return option.label
    return NO_ESTIMATE
