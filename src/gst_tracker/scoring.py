"""Negative-marking score calculation and grading."""
from dataclasses import dataclass

from gst_tracker.errors import ValidationError

# One mark is deducted for every four wrong answers.
PENALTY_PER_WRONG = 0.25

STANDARD_SCALE = [
    (90, "A+"),
    (80, "A"),
    (70, "A-"),
    (60, "B"),
    (50, "C"),
]
STANDARD_LOWEST = "F"

MOCK_SCALE = [
    (80, "Elite"),
    (70, "Superior"),
    (60, "Excellent"),
    (50, "Good"),
    (40, "Average"),
]
MOCK_LOWEST = "Needs Work"


@dataclass(frozen=True)
class SectionScore:
    obtained: float
    total: float
    negative: float


def negative_marks(wrong: int) -> float:
    return wrong / 4


def score(correct: int, wrong: int) -> float:
    """Obtained marks after deducting a quarter mark per wrong answer."""
    return correct - negative_marks(wrong)


def score_sections(sections) -> SectionScore:
    """Sum per-section scores of a full mock exam."""
    obtained = 0.0
    total = 0.0
    negative = 0.0
    for section in sections:
        obtained += score(section.correct, section.wrong)
        negative += negative_marks(section.wrong)
        total += section.total
    return SectionScore(obtained=obtained, total=total, negative=negative)


def _scale_for(mock: bool) -> tuple[list, str]:
    if mock:
        return MOCK_SCALE, MOCK_LOWEST
    return STANDARD_SCALE, STANDARD_LOWEST


def grade_for_accuracy(percentage: float, mock: bool = False) -> str:
    scale, lowest = _scale_for(mock)
    for threshold, label in scale:
        if percentage >= threshold:
            return label
    return lowest


def grade(obtained: float, total: float, mock: bool = False) -> str:
    """Letter grade for an exam.

    Args:
        obtained: Marks after negative marking.
        total: Maximum marks. A total of 0 yields the lowest grade.
        mock: Use the full-mock scale instead of the standard one.
    """
    if total == 0:
        return lowest_grade(mock)
    return grade_for_accuracy(obtained * 100 / total, mock=mock)


def lowest_grade(mock: bool = False) -> str:
    return _scale_for(mock)[1]


def validate_marks(obtained: float, total: float, floor: float = -25) -> None:
    if total < 0:
        raise ValidationError(f"Total marks must not be negative (got {total:g})")
    if obtained > total:
        raise ValidationError(f"Obtained marks {obtained:g} exceed total marks {total:g}")
    if obtained < floor:
        raise ValidationError(f"Obtained marks {obtained:g} are below the floor of {floor:g}")


def validate_answer_counts(correct: int, wrong: int, total: float, strict: bool = False) -> None:
    """Reject negative answer counts; with ``strict``, also counts above the total."""
    if correct < 0 or wrong < 0:
        raise ValidationError("Correct and wrong answer counts must not be negative")
    if strict and correct + wrong > total:
        raise ValidationError(
            f"Correct ({correct}) plus wrong ({wrong}) answers exceed total marks {total:g}"
        )
