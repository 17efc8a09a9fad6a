"""
Complexity ratings.

Cyclomatic complexity itself is computed by the parser and arrives as an
integer on each method; this module only classifies those scores.
"""

from dataclasses import dataclass
from typing import Dict


# Methods above this score are reported as high-complexity issues
HIGH_COMPLEXITY_THRESHOLD = 10


@dataclass(frozen=True)
class ComplexityRating:
    """Human-readable band for a cyclomatic complexity score."""
    level: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "description": self.description}


# (inclusive upper bound, level, description)
_RATING_BANDS = (
    (5, "low", "Simple, low risk"),
    (10, "moderate", "Moderate complexity, low risk"),
    (20, "high", "Complex, moderate risk"),
    (50, "very-high", "Very complex, high risk"),
)


def get_complexity_rating(complexity: int) -> ComplexityRating:
    """
    Classify a cyclomatic complexity score.

    Bands: low <= 5, moderate <= 10, high <= 20, very-high <= 50,
    critical above that.
    """
    for upper, level, description in _RATING_BANDS:
        if complexity <= upper:
            return ComplexityRating(level, description)
    return ComplexityRating("critical", "Untestable, very high risk")


def is_high_complexity(complexity: int) -> bool:
    return complexity > HIGH_COMPLEXITY_THRESHOLD
