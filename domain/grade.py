"""
Domain: grade scale and sub-scores.

The final grade is an explicit choice from a fixed, ordered scale:

    1, 2, 3, 4, 5, 6, 7, 8, 8.5, 9, 9.5, 10, 10+

"10+" (Pristine) is stored numerically as 10.5. The four sub-scores
(centering, surfaces, edges, corners) are informative inputs in [0, 10.5];
their arithmetic mean is only ever offered as a suggestion.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

SUB_SCORE_MIN = Decimal("0")
SUB_SCORE_MAX = Decimal("10.5")


class FinalGrade(str, Enum):
    GRADE_1 = "1"
    GRADE_2 = "2"
    GRADE_3 = "3"
    GRADE_4 = "4"
    GRADE_5 = "5"
    GRADE_6 = "6"
    GRADE_7 = "7"
    GRADE_8 = "8"
    GRADE_8_5 = "8.5"
    GRADE_9 = "9"
    GRADE_9_5 = "9.5"
    GRADE_10 = "10"
    PRISTINE_10_PLUS = "10+"

    @property
    def numeric(self) -> Decimal:
        """Numeric position on the scale; 10+ is 10.5."""

        if self is FinalGrade.PRISTINE_10_PLUS:
            return Decimal("10.5")
        return Decimal(self.value)

    @property
    def label(self) -> str:
        if self is FinalGrade.PRISTINE_10_PLUS:
            return "Pristine (10+)"
        return self.value

    @staticmethod
    def parse(value: Any) -> "FinalGrade":
        """
        Resolve a FinalGrade from its label or numeric value.

        Accepts "9.5", 9.5, Decimal("9.5"), "10+" and 10.5. Values that are not
        on the scale raise ValueError; there is no rounding to the nearest grade.
        """

        if isinstance(value, FinalGrade):
            return value

        text = str(value).strip()
        for grade in FinalGrade:
            if grade.value == text:
                return grade

        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"{value!r} is not a grade on the scale") from None
        if not number.is_finite():
            raise ValueError(f"{value!r} is not a grade on the scale")

        for grade in FinalGrade:
            if grade.numeric == number:
                return grade
        raise ValueError(f"{value!r} is not a grade on the scale")

    @staticmethod
    def highest_not_above(score: Decimal) -> Optional["FinalGrade"]:
        """Highest grade whose numeric value is <= score (None below the scale)."""

        candidate: Optional[FinalGrade] = None
        for grade in FinalGrade:
            if grade.numeric <= score:
                candidate = grade
        return candidate


def _require_sub_score(name: str, value: Decimal) -> None:
    if not isinstance(value, Decimal):
        raise TypeError(f"{name} must be a Decimal")
    if not value.is_finite() or not SUB_SCORE_MIN <= value <= SUB_SCORE_MAX:
        raise ValueError(f"{name} must be within [{SUB_SCORE_MIN}, {SUB_SCORE_MAX}]")


@dataclass(frozen=True, slots=True)
class SubScores:
    """The four inspection sub-scores of a graded card."""

    centering: Decimal
    surfaces: Decimal
    edges: Decimal
    corners: Decimal

    def __post_init__(self) -> None:
        _require_sub_score("centering", self.centering)
        _require_sub_score("surfaces", self.surfaces)
        _require_sub_score("edges", self.edges)
        _require_sub_score("corners", self.corners)

    def mean(self) -> Decimal:
        """Arithmetic mean of the sub-scores, rounded to one decimal place."""

        total = self.centering + self.surfaces + self.edges + self.corners
        return (total / 4).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

    def suggested_grade(self) -> Optional[FinalGrade]:
        """The scale grade the mean supports; a hint for the grader, never applied."""

        return FinalGrade.highest_not_above(self.mean())


@dataclass(frozen=True, slots=True)
class GradingDetails:
    """Sub-scores plus the grader's chosen final grade."""

    scores: SubScores
    final_grade: FinalGrade


__all__ = [
    "FinalGrade",
    "GradingDetails",
    "SUB_SCORE_MAX",
    "SUB_SCORE_MIN",
    "SubScores",
]
