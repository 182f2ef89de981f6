"""Value types shared by the scoring engines.

A composite score is always reported together with its ScoreComponents so
that every point of the final number can be traced back to an input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Confidence(str, Enum):
    """Input-completeness grade attached to a score or baseline."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def description(self) -> str:
        return {
            Confidence.LOW: "Limited data available",
            Confidence.MEDIUM: "Some data gaps",
            Confidence.HIGH: "Sufficient data quality",
        }[self]

    def downgraded(self) -> Confidence:
        """One step lower (LOW stays LOW)."""
        if self is Confidence.HIGH:
            return Confidence.MEDIUM
        return Confidence.LOW


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"

    def inverted(self) -> TrendDirection:
        """Swap improving/declining, used for lower-is-better metrics."""
        if self is TrendDirection.IMPROVING:
            return TrendDirection.DECLINING
        if self is TrendDirection.DECLINING:
            return TrendDirection.IMPROVING
        return TrendDirection.STABLE


@dataclass(frozen=True)
class ScoreComponent:
    """One weighted term of a composite score."""

    name: str
    raw_value: float
    normalized_value: float  # 0-100
    weight: float  # weights of one score sum to 1.0
    contribution: float  # normalized_value * weight

    @classmethod
    def build(cls, name: str, raw_value: float, normalized_value: float, weight: float) -> ScoreComponent:
        return cls(
            name=name,
            raw_value=raw_value,
            normalized_value=normalized_value,
            weight=weight,
            contribution=normalized_value * weight,
        )

    def __repr__(self) -> str:
        return (
            f"ScoreComponent({self.name}: raw={self.raw_value:.1f}, "
            f"norm={self.normalized_value:.0f}, w={self.weight:.2f}, "
            f"pts={self.contribution:.1f})"
        )
