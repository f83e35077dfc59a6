"""
ProtectPilot Martyn's Law Planner

Plans premises compliance under the Terrorism (Protection of Premises)
duties.

Key features:
- Capacity tiering (not applicable / standard / enhanced)
- Tier-scoped requirement checklists with stable identifiers
- Terrorism likelihood x impact assessment driven by catalog rules
- Costed, deadlined remediation plan sorted by priority
- Compliance check over the tracked requirement list

Rules are catalog data: threat flags, vulnerabilities and score
contributions are conditions evaluated with three-valued logic against
the VenueProfile. Only rules that evaluate TRUE fire.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Optional, TypeVar, Union

from ..catalogs.loader import get_default_catalog
from ..exceptions import InvalidInputError
from ..models import (
    ActionPriority,
    ActionStatus,
    Breakpoint,
    ComplianceAction,
    ComplianceCheck,
    ComplianceStatus,
    ComplianceTier,
    DeadlineStatus,
    FlagRule,
    Impact,
    Likelihood,
    MartynsLawAssessment,
    MartynsLawCatalog,
    MartynsLawRequirement,
    MitigationMeasure,
    PointsRule,
    RequirementPriority,
    RequirementStatus,
    TerrorismRiskAssessment,
    TerrorismRiskMatrix,
    ThreatAssessment,
    ThreatLevel,
    VenueProfile,
    VulnerabilityAnalysis,
    VulnerabilityCategory,
)
from .condition_evaluator import ConditionEvaluator


logger = logging.getLogger(__name__)

BandT = TypeVar("BandT", Likelihood, Impact, ThreatLevel)

MAX_NEXT_ACTIONS = 5


def _default_martyns_law_catalog() -> MartynsLawCatalog:
    return get_default_catalog().martyns_law


def _now(as_of: Optional[datetime]) -> datetime:
    return as_of or datetime.now(timezone.utc)


def _coerce_threat_level(level: Union[ThreatLevel, str]) -> ThreatLevel:
    try:
        if isinstance(level, ThreatLevel):
            return level
        return ThreatLevel(str(level).strip().lower())
    except ValueError:
        raise InvalidInputError(
            message=f"Unknown threat level: {level}",
            details={"threat_level": str(level), "valid": [t.value for t in ThreatLevel]},
        ) from None


def _band(points: int, breakpoints: tuple[Breakpoint, ...], band_type: type[BandT]) -> BandT:
    """First breakpoint (highest first) whose minimum is reached; else the last band."""
    for breakpoint in breakpoints:
        if points >= breakpoint.min_score:
            return band_type(breakpoint.band)
    return band_type(breakpoints[-1].band)


# =============================================================================
# Martyn's Law Planner
# =============================================================================

@dataclass
class MartynsLawPlanner:
    """
    Compliance planning for one Martyn's Law rule catalog.

    Usage:
        planner = MartynsLawPlanner()

        tier = planner.determine_compliance_tier(venue.capacity)
        risk = planner.conduct_terrorism_risk_assessment(venue, ThreatLevel.HIGH)
        plan = planner.generate_action_plan(
            planner.generate_requirements(venue.capacity),
            risk.overall_risk_level,
        )
    """

    catalog: MartynsLawCatalog = field(default_factory=_default_martyns_law_catalog)
    evaluator: ConditionEvaluator = field(default_factory=ConditionEvaluator)

    # -------------------------------------------------------------------------
    # Tiering and requirements
    # -------------------------------------------------------------------------

    def determine_compliance_tier(self, capacity: int) -> ComplianceTier:
        """
        Tier for a capacity. Each band includes its lower edge.

        Raises:
            InvalidInputError: If capacity is negative
        """
        if capacity < 0:
            raise InvalidInputError(
                message=f"Venue capacity cannot be negative, got {capacity}",
                details={"capacity": capacity},
            )
        if capacity >= self.catalog.enhanced_threshold:
            return ComplianceTier.ENHANCED
        if capacity >= self.catalog.standard_threshold:
            return ComplianceTier.STANDARD
        return ComplianceTier.NOT_APPLICABLE

    def generate_requirements(self, capacity: int) -> list[MartynsLawRequirement]:
        """
        The checklist for a capacity, every item starting NOT_MET.

        Ids are `ML-{TIER}-{nnn}` numbered within the tier's list, so
        standard and enhanced ids never collide.
        """
        tier = self.determine_compliance_tier(capacity)
        tag = tier.value.upper()
        return [
            MartynsLawRequirement(
                id=f"ML-{tag}-{index + 1:03d}",
                category=template.category,
                requirement=template.requirement,
                applicable_for=tier,
                responsible=template.responsible,
                priority=template.priority,
            )
            for index, template in enumerate(self.catalog.templates_for(tier))
        ]

    # -------------------------------------------------------------------------
    # Terrorism risk assessment
    # -------------------------------------------------------------------------

    def conduct_terrorism_risk_assessment(
        self,
        venue: VenueProfile,
        threat_level: Union[ThreatLevel, str] = ThreatLevel.MEDIUM,
        as_of: Optional[datetime] = None,
    ) -> TerrorismRiskAssessment:
        """
        Assess terrorism risk for a venue.

        Args:
            venue: Venue profile
            threat_level: Local threat level (low, medium, high, critical)
            as_of: Assessment time; the next review is scheduled from it

        Raises:
            InvalidInputError: If the threat level is unknown
        """
        level = _coerce_threat_level(threat_level)
        now = _now(as_of)

        threats = tuple(rule.text for rule in self._fired(self.catalog.threat_rules, venue))
        vulnerabilities = self._analyze_vulnerabilities(venue)
        matrix = self._risk_matrix(venue, level)
        mitigations = tuple(
            MitigationMeasure(
                id=template.id,
                measure=template.measure,
                type=template.type,
                effectiveness=template.effectiveness,
                implementation_cost=template.implementation_cost,
                timeline=f"{template.timeline_days} days",
                responsible=template.responsible,
            )
            for template in self.catalog.mitigations
            if template.applies_to(matrix.risk_level)
        )

        logger.debug(
            "Terrorism risk assessed",
            extra={"risk_level": matrix.risk_level.value, "score": matrix.risk_score},
        )

        return TerrorismRiskAssessment(
            venue_profile=venue,
            threat_assessment=ThreatAssessment(
                local_threat_level=level,
                specific_threats=threats,
            ),
            vulnerability_analysis=vulnerabilities,
            risk_matrix=matrix,
            mitigation_measures=mitigations,
            overall_risk_level=matrix.risk_level,
            last_updated=now,
            next_review=now + timedelta(days=self.catalog.review_interval_days),
        )

    def _fired(self, rules: Iterable[FlagRule], venue: VenueProfile) -> list[FlagRule]:
        fired = []
        for rule in rules:
            if self.evaluator.evaluate(rule.when, venue).is_satisfied:
                logger.debug("Rule fired: %s", rule.text, extra={"rule_id": rule.id})
                fired.append(rule)
        return fired

    def _points(self, rules: Iterable[PointsRule], venue: VenueProfile) -> int:
        total = 0
        for rule in rules:
            if self.evaluator.evaluate(rule.when, venue).is_satisfied:
                logger.debug("Rule %s adds %d", rule.id, rule.points, extra={"rule_id": rule.id})
                total += rule.points
        return total

    def _analyze_vulnerabilities(self, venue: VenueProfile) -> VulnerabilityAnalysis:
        buckets: dict[VulnerabilityCategory, list[str]] = {c: [] for c in VulnerabilityCategory}
        for rule in self._fired(self.catalog.vulnerability_rules, venue):
            buckets[rule.category or VulnerabilityCategory.PHYSICAL].append(rule.text)
        return VulnerabilityAnalysis(
            physical_vulnerabilities=tuple(buckets[VulnerabilityCategory.PHYSICAL]),
            procedure_gaps=tuple(buckets[VulnerabilityCategory.PROCEDURE]),
            staffing_weaknesses=tuple(buckets[VulnerabilityCategory.STAFFING]),
            technical_vulnerabilities=tuple(buckets[VulnerabilityCategory.TECHNICAL]),
            communication_gaps=tuple(buckets[VulnerabilityCategory.COMMUNICATION]),
        )

    def _risk_matrix(self, venue: VenueProfile, level: ThreatLevel) -> TerrorismRiskMatrix:
        catalog = self.catalog

        likelihood_points = catalog.threat_level_points.get(level, 0)
        likelihood_points += self._points(catalog.likelihood_rules, venue)
        likelihood = _band(likelihood_points, catalog.likelihood_breakpoints, Likelihood)

        impact_points = 0
        for bracket in catalog.impact_brackets:
            if venue.capacity > bracket.above:
                impact_points = bracket.points
                break
        impact_points += self._points(catalog.impact_rules, venue)
        impact = _band(impact_points, catalog.impact_breakpoints, Impact)

        score = likelihood.value_score * impact.value_score
        return TerrorismRiskMatrix(
            likelihood=likelihood,
            impact=impact,
            risk_score=score,
            risk_level=_band(score, catalog.risk_level_breakpoints, ThreatLevel),
            likelihood_points=likelihood_points,
            impact_points=impact_points,
        )

    # -------------------------------------------------------------------------
    # Action plan
    # -------------------------------------------------------------------------

    def generate_action_plan(
        self,
        requirements: Iterable[MartynsLawRequirement],
        risk_level: Union[ThreatLevel, str],
        as_of: Optional[datetime] = None,
    ) -> list[ComplianceAction]:
        """
        One action per NOT_MET requirement, critical first.

        Priority and deadline cascade:
        1. Risk assessment / security plan items: critical, shortest deadline
        2. Otherwise, on a high-risk venue: high, medium deadline
        3. Otherwise: the requirement's own priority, longest deadline

        Action ids follow the requirement's position in the input list.
        """
        level = _coerce_threat_level(risk_level)
        now = _now(as_of)
        rules = self.catalog.action_rules
        actions: list[ComplianceAction] = []

        for index, requirement in enumerate(requirements):
            if requirement.status != RequirementStatus.NOT_MET:
                continue

            if requirement.category in rules.critical_categories:
                priority, days = ActionPriority.CRITICAL, rules.critical_deadline_days
            elif level in rules.escalation_risk_levels:
                priority, days = ActionPriority.HIGH, rules.escalation_deadline_days
            elif requirement.priority == RequirementPriority.HIGH:
                priority, days = ActionPriority.HIGH, rules.default_deadline_days
            else:
                priority = ActionPriority.MEDIUM
                days = rules.default_deadline_days

            actions.append(ComplianceAction(
                id=f"ACT-{index + 1:03d}",
                action=requirement.requirement,
                priority=priority,
                deadline=now + timedelta(days=days),
                responsible=requirement.responsible,
                requirement_id=requirement.id,
                cost=self.estimate_cost(requirement.requirement),
            ))

        # Stable: equal priorities keep requirement order
        return sorted(actions, key=lambda a: a.priority.severity_rank)

    def estimate_cost(self, requirement: str) -> int:
        """First catalog keyword contained in the text (case-insensitive), else the default."""
        text = requirement.lower()
        for estimate in self.catalog.cost_estimates:
            if estimate.keyword.lower() in text:
                return estimate.cost
        return self.catalog.default_cost

    # -------------------------------------------------------------------------
    # Compliance check and assessment
    # -------------------------------------------------------------------------

    def check_compliance(
        self,
        assessment: MartynsLawAssessment,
        as_of: Optional[datetime] = None,
    ) -> ComplianceCheck:
        """
        Compliance over the assessment's tracked requirements.

        Compliant means every tracked requirement is met and no
        high-priority requirement is outstanding.
        """
        now = _now(as_of)
        requirements = assessment.requirements
        met = sum(1 for r in requirements if r.status == RequirementStatus.MET)
        percentage = round(met / len(requirements) * 100) if requirements else 0

        critical_gaps = tuple(
            r.requirement
            for r in requirements
            if r.priority == RequirementPriority.HIGH
            and r.status in (RequirementStatus.NOT_MET, RequirementStatus.PARTIALLY_MET)
        )

        next_actions = tuple(
            a.action for a in assessment.action_plan if a.status == ActionStatus.NOT_STARTED
        )[:MAX_NEXT_ACTIONS]

        deadlines = tuple(
            DeadlineStatus(
                action=a.action,
                deadline=a.deadline,
                overdue=a.deadline < now and a.status != ActionStatus.COMPLETED,
            )
            for a in assessment.action_plan
        )

        return ComplianceCheck(
            is_compliant=percentage == 100 and not critical_gaps,
            compliance_percentage=percentage,
            critical_gaps=critical_gaps,
            next_actions=next_actions,
            deadlines=deadlines,
        )

    def build_assessment(
        self,
        venue_id: str,
        venue_name: str,
        venue: VenueProfile,
        threat_level: Union[ThreatLevel, str] = ThreatLevel.MEDIUM,
        assessor: str = "",
        statuses: Optional[Mapping[str, RequirementStatus]] = None,
        as_of: Optional[datetime] = None,
    ) -> MartynsLawAssessment:
        """
        Assess a venue end to end.

        Args:
            venue_id: Host application's venue identifier
            venue_name: Display name
            venue: Venue profile
            threat_level: Local threat level
            assessor: Person or team performing the assessment
            statuses: Known requirement statuses by requirement id
            as_of: Assessment time

        Returns:
            MartynsLawAssessment with tier, checklist, risk assessment,
            action plan and derived compliance status
        """
        now = _now(as_of)
        statuses = statuses or {}

        requirements = tuple(
            r.with_status(statuses[r.id]) if r.id in statuses else r
            for r in self.generate_requirements(venue.capacity)
        )
        risk = self.conduct_terrorism_risk_assessment(venue, threat_level, as_of=now)
        plan = tuple(self.generate_action_plan(requirements, risk.overall_risk_level, as_of=now))

        assessment = MartynsLawAssessment(
            venue_id=venue_id,
            venue_name=venue_name,
            capacity=venue.capacity,
            assessment_date=now,
            assessor=assessor,
            compliance_tier=self.determine_compliance_tier(venue.capacity),
            risk_level=risk.overall_risk_level,
            compliance_status=ComplianceStatus.ASSESSMENT_REQUIRED,
            requirements=requirements,
            action_plan=plan,
            next_review_date=risk.next_review,
            risk_assessment=risk,
        )
        status = self._derive_status(self.check_compliance(assessment, as_of=now), requirements)

        logger.info(
            "Venue assessed",
            extra={
                "venue_id": venue_id,
                "tier": assessment.compliance_tier.value,
                "risk_level": assessment.risk_level.value,
            },
        )
        return replace(assessment, compliance_status=status)

    @staticmethod
    def _derive_status(
        check: ComplianceCheck,
        requirements: tuple[MartynsLawRequirement, ...],
    ) -> ComplianceStatus:
        if not requirements:
            return ComplianceStatus.ASSESSMENT_REQUIRED
        if check.is_compliant:
            return ComplianceStatus.COMPLIANT
        if any(r.status != RequirementStatus.NOT_MET for r in requirements):
            return ComplianceStatus.PARTIALLY_COMPLIANT
        return ComplianceStatus.NON_COMPLIANT


# =============================================================================
# Convenience Functions
# =============================================================================

def determine_compliance_tier(capacity: int) -> ComplianceTier:
    return MartynsLawPlanner().determine_compliance_tier(capacity)


def generate_requirements(capacity: int) -> list[MartynsLawRequirement]:
    return MartynsLawPlanner().generate_requirements(capacity)


def conduct_terrorism_risk_assessment(
    venue: VenueProfile,
    threat_level: Union[ThreatLevel, str] = ThreatLevel.MEDIUM,
    as_of: Optional[datetime] = None,
) -> TerrorismRiskAssessment:
    """Terrorism risk assessment with the default catalog."""
    return MartynsLawPlanner().conduct_terrorism_risk_assessment(venue, threat_level, as_of=as_of)


def generate_action_plan(
    requirements: Iterable[MartynsLawRequirement],
    risk_level: Union[ThreatLevel, str],
    as_of: Optional[datetime] = None,
) -> list[ComplianceAction]:
    return MartynsLawPlanner().generate_action_plan(requirements, risk_level, as_of=as_of)


def check_compliance(
    assessment: MartynsLawAssessment,
    as_of: Optional[datetime] = None,
) -> ComplianceCheck:
    return MartynsLawPlanner().check_compliance(assessment, as_of=as_of)


def build_assessment(
    venue_id: str,
    venue_name: str,
    venue: VenueProfile,
    threat_level: Union[ThreatLevel, str] = ThreatLevel.MEDIUM,
    assessor: str = "",
    statuses: Optional[Mapping[str, RequirementStatus]] = None,
    as_of: Optional[datetime] = None,
) -> MartynsLawAssessment:
    """Full venue assessment with the default catalog."""
    return MartynsLawPlanner().build_assessment(
        venue_id,
        venue_name,
        venue,
        threat_level=threat_level,
        assessor=assessor,
        statuses=statuses,
        as_of=as_of,
    )
