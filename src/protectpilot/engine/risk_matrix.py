"""
ProtectPilot Risk Matrix Engine

Scores a close-protection client on a 5x5 probability x impact matrix.

Key features:
- Weighted risk factors accumulate per axis (catalog axis_step)
- Questionnaire answers mapped to axis contributions by the catalog
- Explicit matrix cells accepted as a manual override
- Confidence derived from how much of the input space was covered
- Stateless: every call builds a new RiskAssessment
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence, Union

from ..catalogs.loader import get_default_catalog
from ..exceptions import InvalidInputError
from ..models import (
    MAX_AXIS_VALUE,
    MIN_AXIS_VALUE,
    AssessmentSource,
    MatrixCell,
    RiskAssessment,
    RiskAxis,
    RiskFactor,
    RiskMatrixCatalog,
)


logger = logging.getLogger(__name__)

Response = Union[str, Sequence[str], bool, int, float, None]


def _default_matrix_catalog() -> RiskMatrixCatalog:
    return get_default_catalog().risk_matrix


def clamp_axis(value: int) -> int:
    """Clamp a matrix axis value to 1..5."""
    return max(MIN_AXIS_VALUE, min(MAX_AXIS_VALUE, value))


def _check_axis(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(
            message=f"{name} must be an integer, got {type(value).__name__}",
            details={"axis": name, "value": repr(value)},
        )
    if not MIN_AXIS_VALUE <= value <= MAX_AXIS_VALUE:
        raise InvalidInputError(
            message=f"{name} must be within {MIN_AXIS_VALUE}-{MAX_AXIS_VALUE}, got {value}",
            details={"axis": name, "value": value},
        )
    return value


# =============================================================================
# Risk Matrix Engine
# =============================================================================

@dataclass
class RiskMatrixEngine:
    """
    Computes risk assessments from factors or questionnaire responses.

    Usage:
        engine = RiskMatrixEngine()

        factors = [f.with_active() if f.id == "received_threats" else f
                   for f in engine.default_factors()]
        assessment = engine.assess(factors)

        print(assessment.band, assessment.protection_tier)
    """

    catalog: RiskMatrixCatalog = field(default_factory=_default_matrix_catalog)

    def default_factors(self) -> list[RiskFactor]:
        """Catalog factors, all inactive."""
        return [f.with_active(False) for f in self.catalog.factors]

    def assess(
        self,
        factors: Iterable[RiskFactor],
        probability: Optional[int] = None,
        impact: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> RiskAssessment:
        """
        Assess risk from a factor selection.

        Args:
            factors: Factor list; only active factors contribute
            probability: Explicit probability (1-5), overrides factor weights
            impact: Explicit impact (1-5), overrides factor weights
            as_of: Timestamp recorded on the assessment

        Raises:
            InvalidInputError: If an explicit axis value is outside 1..5
        """
        active = tuple(f for f in factors if f.is_active)
        completeness = (
            self._axis_completeness(active, RiskAxis.PROBABILITY, explicit=probability is not None)
            + self._axis_completeness(active, RiskAxis.IMPACT, explicit=impact is not None)
        ) / 2

        if probability is None:
            probability = self._axis_from_weights(active, RiskAxis.PROBABILITY)
        else:
            _check_axis("probability", probability)
        if impact is None:
            impact = self._axis_from_weights(active, RiskAxis.IMPACT)
        else:
            _check_axis("impact", impact)

        return self._build(
            probability=probability,
            impact=impact,
            contributing=active,
            completeness=completeness,
            source=AssessmentSource.MANUAL,
            as_of=as_of,
        )

    def assess_responses(
        self,
        responses: Mapping[str, Response],
        as_of: Optional[datetime] = None,
    ) -> RiskAssessment:
        """
        Assess risk from questionnaire responses.

        Both axes start from the catalog base and add the contribution of
        every recognised answer. Answers the catalog does not know are
        reported in `unmapped_responses` as "key=value".
        """
        probability = self.catalog.base_probability
        impact = self.catalog.base_impact
        factor_ids: set[str] = set()
        unmapped: list[str] = []
        answered = 0

        known_keys = {q.key for q in self.catalog.questions}
        for key in sorted(set(responses) - known_keys):
            unmapped.extend(f"{key}={value}" for value in _answer_values(responses[key]))

        for question in self.catalog.questions:
            if question.key not in responses:
                continue
            mapped = False
            for value in _answer_values(responses[question.key]):
                option = question.option_for(value)
                if option is None:
                    unmapped.append(f"{question.key}={value}")
                    continue
                mapped = True
                probability += option.probability
                impact += option.impact
                factor_ids.update(option.factor_ids)
            if mapped:
                answered += 1

        contributing = tuple(
            f.with_active() for f in self.catalog.factors if f.id in factor_ids
        )
        questions = len(self.catalog.questions)
        completeness = answered / questions if questions else 0.0

        return self._build(
            probability=clamp_axis(probability),
            impact=clamp_axis(impact),
            contributing=contributing,
            completeness=completeness,
            source=AssessmentSource.QUESTIONNAIRE,
            as_of=as_of,
            unmapped=tuple(unmapped),
        )

    def matrix_cells(self) -> list[list[MatrixCell]]:
        """The 5x5 grid: rows from probability 5 down to 1, columns impact 1 to 5."""
        return [
            [
                MatrixCell(
                    probability=p,
                    impact=i,
                    score=p * i,
                    band=self.catalog.band_for(p * i).band,
                )
                for i in range(MIN_AXIS_VALUE, MAX_AXIS_VALUE + 1)
            ]
            for p in range(MAX_AXIS_VALUE, MIN_AXIS_VALUE - 1, -1)
        ]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _axis_from_weights(self, active: tuple[RiskFactor, ...], axis: RiskAxis) -> int:
        weight = sum(f.weight for f in active if f.axis == axis)
        return clamp_axis(MIN_AXIS_VALUE + weight // self.catalog.axis_step)

    def _axis_completeness(
        self,
        active: tuple[RiskFactor, ...],
        axis: RiskAxis,
        explicit: bool,
    ) -> float:
        """Share of the axis's categories with at least one active factor."""
        if explicit:
            return 1.0
        categories = self.catalog.categories_for(axis)
        if not categories:
            return 0.0
        covered = {f.category for f in active} & set(categories)
        return len(covered) / len(categories)

    def _confidence(self, completeness: float) -> int:
        floor = self.catalog.confidence_floor
        value = round(floor + (100 - floor) * completeness)
        return max(floor, min(100, value))

    def _build(
        self,
        probability: int,
        impact: int,
        contributing: tuple[RiskFactor, ...],
        completeness: float,
        source: AssessmentSource,
        as_of: Optional[datetime],
        unmapped: tuple[str, ...] = (),
    ) -> RiskAssessment:
        score = probability * impact
        band = self.catalog.band_for(score)

        logger.debug(
            "Risk assessed at P%d x I%d",
            probability,
            impact,
            extra={"score": score, "band": band.band.value},
        )

        return RiskAssessment(
            probability=probability,
            impact=impact,
            score=score,
            band=band.band,
            band_label=band.label,
            color=band.color,
            protection_tier=band.protection_tier,
            recommendations=band.recommendations,
            contributing_factors=contributing,
            confidence=self._confidence(completeness),
            source=source,
            last_updated=as_of or datetime.now(timezone.utc),
            unmapped_responses=unmapped,
        )


def _answer_values(answer: Response) -> list[str]:
    """Flatten one answer to strings; unanswered (None) gives nothing."""
    if answer is None:
        return []
    if isinstance(answer, str):
        return [answer]
    if isinstance(answer, (set, frozenset)):
        answer = sorted(answer, key=str)
    if isinstance(answer, (list, tuple)):
        return [str(value) for value in answer if value is not None]
    return [str(answer)]


# =============================================================================
# Convenience Functions
# =============================================================================

def assess_risk(
    factors: Iterable[RiskFactor],
    probability: Optional[int] = None,
    impact: Optional[int] = None,
    as_of: Optional[datetime] = None,
) -> RiskAssessment:
    """Assess a factor selection with the default catalog."""
    return RiskMatrixEngine().assess(factors, probability=probability, impact=impact, as_of=as_of)


def calculate_risk_from_responses(
    responses: Mapping[str, Response],
    as_of: Optional[datetime] = None,
) -> RiskAssessment:
    """Assess questionnaire responses with the default catalog."""
    return RiskMatrixEngine().assess_responses(responses, as_of=as_of)


def get_risk_matrix_cells() -> list[list[MatrixCell]]:
    return RiskMatrixEngine().matrix_cells()


def get_risk_position(assessment: RiskAssessment) -> tuple[int, int]:
    """
    Zero-based (column, row) of an assessment in the grid returned by
    get_risk_matrix_cells().
    """
    return (assessment.impact - MIN_AXIS_VALUE, MAX_AXIS_VALUE - assessment.probability)


def default_risk_factors() -> list[RiskFactor]:
    return RiskMatrixEngine().default_factors()
