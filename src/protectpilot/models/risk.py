"""
ProtectPilot Risk Matrix Models

Models for the 5x5 probability x impact matrix used to recommend a
protection tier to a client.

Key components:
- RiskFactor: Catalog entry that can be switched on for an assessment
- RiskBandDefinition: Score range, color and default tier of a band
- QuestionOption: How one questionnaire answer moves the matrix
- RiskAssessment: Result of one evaluation (never mutated)
- MatrixCell: One cell of the rendered grid
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from .enums import AssessmentSource, ProtectionTier, RiskAxis, RiskBand


MIN_AXIS_VALUE = 1
MAX_AXIS_VALUE = 5
MIN_SCORE = MIN_AXIS_VALUE * MIN_AXIS_VALUE
MAX_SCORE = MAX_AXIS_VALUE * MAX_AXIS_VALUE


# =============================================================================
# Risk Factor
# =============================================================================

@dataclass(frozen=True)
class RiskFactor:
    """
    A weighted risk factor.

    Attributes:
        id: Stable identifier (e.g. "received_threats")
        category: Grouping (threat_history, public_exposure, ...)
        name: Display name
        description: What the factor means for the client
        weight: 1 (minor) to 5 (severe)
        axis: Matrix axis the weight is added to
        is_active: Whether the factor applies to this assessment
    """
    id: str
    category: str
    name: str
    description: str
    weight: int
    axis: RiskAxis
    is_active: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.weight <= 5:
            raise ValueError(f"Risk factor '{self.id}' weight must be 1-5, got {self.weight}")

    def with_active(self, active: bool = True) -> RiskFactor:
        """Return a copy with the activation flag set."""
        return replace(self, is_active=active)


# =============================================================================
# Band Definition
# =============================================================================

@dataclass(frozen=True)
class RiskBandDefinition:
    """
    A contiguous score range of the matrix.

    Bands are catalog data so the boundaries can be tuned without
    touching the scoring code.
    """
    band: RiskBand
    label: str
    color: str
    min_score: int
    max_score: int
    protection_tier: ProtectionTier
    recommendations: tuple[str, ...] = ()

    def contains(self, score: int) -> bool:
        return self.min_score <= score <= self.max_score


# =============================================================================
# Questionnaire Mapping
# =============================================================================

@dataclass(frozen=True)
class QuestionOption:
    """Contribution of one questionnaire answer to the matrix axes."""
    value: str
    probability: int = 0
    impact: int = 0
    factor_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class QuestionMapping:
    """All known answers to one questionnaire step."""
    key: str
    label: str
    options: tuple[QuestionOption, ...] = ()

    def option_for(self, value: str) -> Optional[QuestionOption]:
        for option in self.options:
            if option.value == value:
                return option
        return None


# =============================================================================
# Risk Assessment (Result)
# =============================================================================

@dataclass(frozen=True)
class RiskAssessment:
    """
    Outcome of one risk matrix evaluation.

    Each recalculation produces a new instance. Two assessments from
    identical inputs differ only in `last_updated`.

    Invariant: 1 <= score == probability * impact <= 25
    """
    probability: int
    impact: int
    score: int
    band: RiskBand
    band_label: str
    color: str
    protection_tier: ProtectionTier
    recommendations: tuple[str, ...]
    contributing_factors: tuple[RiskFactor, ...]
    confidence: int
    source: AssessmentSource
    last_updated: datetime
    unmapped_responses: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.score != self.probability * self.impact:
            raise ValueError("score must equal probability * impact")
        if not MIN_SCORE <= self.score <= MAX_SCORE:
            raise ValueError(f"score must be within {MIN_SCORE}-{MAX_SCORE}")

    @property
    def factor_names(self) -> list[str]:
        return [f.name for f in self.contributing_factors]


@dataclass(frozen=True)
class MatrixCell:
    """One cell of the 5x5 grid."""
    probability: int
    impact: int
    score: int
    band: RiskBand


@dataclass(frozen=True)
class RiskMatrixCatalog:
    """
    Read-only rule table for the risk matrix engine.

    Attributes:
        factors: All known risk factors (inactive)
        bands: Band definitions, lowest severity first
        category_axes: Category name -> axis it feeds
        axis_step: Accumulated weight per +1 step on an axis
        confidence_floor: Lowest confidence ever reported
        questions: Questionnaire mapping, in question order
        base_probability: Starting probability for questionnaires
        base_impact: Starting impact for questionnaires
    """
    id: str
    version: str
    factors: tuple[RiskFactor, ...]
    bands: tuple[RiskBandDefinition, ...]
    category_axes: dict[str, RiskAxis] = field(default_factory=dict)
    axis_step: int = 3
    confidence_floor: int = 40
    questions: tuple[QuestionMapping, ...] = ()
    base_probability: int = 1
    base_impact: int = 1

    def band_for(self, score: int) -> RiskBandDefinition:
        for band in self.bands:
            if band.contains(score):
                return band
        raise ValueError(f"No risk band covers score {score}")

    def factor(self, factor_id: str) -> Optional[RiskFactor]:
        for factor in self.factors:
            if factor.id == factor_id:
                return factor
        return None

    def categories_for(self, axis: RiskAxis) -> list[str]:
        return sorted(c for c, a in self.category_axes.items() if a == axis)
