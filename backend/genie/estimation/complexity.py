"""
Technical and environmental complexity factors.

TCF = 0.6 + 0.01 * sum(weight * rating) over T1..T13
ECF = 1.4 - 0.03 * sum(weight * rating) over E1..E8

Ratings go from 0 (irrelevant) to 5 (essential); factors left out are rated 0.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

MIN_RATING = 0
MAX_RATING = 5

TECHNICAL_FACTORS: List[Tuple[str, str, Decimal]] = [
    ("T1", "Distributed System", Decimal("2")),
    ("T2", "Performance", Decimal("1")),
    ("T3", "End-user Efficiency", Decimal("1")),
    ("T4", "Complex Internal Processing", Decimal("1")),
    ("T5", "Reusability", Decimal("1")),
    ("T6", "Installability", Decimal("0.5")),
    ("T7", "Usability", Decimal("0.5")),
    ("T8", "Portability", Decimal("2")),
    ("T9", "Changeability", Decimal("1")),
    ("T10", "Concurrency", Decimal("1")),
    ("T11", "Special Security Features", Decimal("1")),
    ("T12", "Third Party Access", Decimal("1")),
    ("T13", "User Training Facilities", Decimal("1")),
]

ENVIRONMENTAL_FACTORS: List[Tuple[str, str, Decimal]] = [
    ("E1", "Familiarity with System Development Process", Decimal("1.5")),
    ("E2", "Application Experience", Decimal("0.5")),
    ("E3", "Object Oriented Experience", Decimal("1")),
    ("E4", "Lead Analyst Capability", Decimal("0.5")),
    ("E5", "Motivation", Decimal("1")),
    ("E6", "Stable Requirements", Decimal("2")),
    ("E7", "Part-time Workers", Decimal("-1")),
    ("E8", "Difficult Programming Language", Decimal("-1")),
]

TCF_BASE = Decimal("0.6")
TCF_STEP = Decimal("0.01")
ECF_BASE = Decimal("1.4")
ECF_STEP = Decimal("-0.03")


@dataclass(frozen=True)
class FactorLine:
    code: str
    name: str
    weight: Decimal
    rating: Decimal

    @property
    def score(self) -> Decimal:
        return self.weight * self.rating


@dataclass(frozen=True)
class ComplexityAssessment:
    lines: Tuple[FactorLine, ...]
    total: Decimal
    factor: Decimal

    def to_dict(self) -> Dict:
        return {
            "factor": float(self.factor),
            "total": float(self.total),
            "lines": [
                {
                    "code": line.code,
                    "name": line.name,
                    "weight": float(line.weight),
                    "rating": float(line.rating),
                    "score": float(line.score),
                }
                for line in self.lines
            ],
        }


def _assess(
    table: List[Tuple[str, str, Decimal]],
    ratings: Optional[Mapping[str, float]],
    base: Decimal,
    step: Decimal,
) -> ComplexityAssessment:
    ratings = dict(ratings or {})
    known = {code for code, _, _ in table}
    unknown = sorted(set(ratings) - known)
    if unknown:
        raise ValueError(f"Unknown complexity factor(s): {', '.join(unknown)}")

    lines = []
    for code, name, weight in table:
        rating = Decimal(str(ratings.get(code, 0)))
        if not rating.is_finite() or rating < MIN_RATING or rating > MAX_RATING:
            raise ValueError(f"Rating for {code} must be between {MIN_RATING} and {MAX_RATING}")
        lines.append(FactorLine(code, name, weight, rating))

    total = sum((line.score for line in lines), Decimal(0))
    return ComplexityAssessment(lines=tuple(lines), total=total, factor=base + step * total)


def technical_complexity(ratings: Optional[Mapping[str, float]] = None) -> ComplexityAssessment:
    return _assess(TECHNICAL_FACTORS, ratings, TCF_BASE, TCF_STEP)


def environmental_complexity(ratings: Optional[Mapping[str, float]] = None) -> ComplexityAssessment:
    return _assess(ENVIRONMENTAL_FACTORS, ratings, ECF_BASE, ECF_STEP)
