"""
ProtectPilot Venue Models

Models for Martyn's Law premises compliance: the venue profile being
assessed, its requirement checklist and action plan, and the terrorism
likelihood x impact assessment.

Key components:
- VenueProfile: Attributes of the premises (input)
- MartynsLawRequirement / ComplianceAction: Checklist and remediation plan
- TerrorismRiskAssessment: Threats, vulnerabilities, matrix and mitigations
- MartynsLawAssessment: Everything known about one venue at one point in time
- MartynsLawCatalog: Rule table driving all of the above
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..exceptions import InvalidInputError
from .conditions import Condition
from .enums import (
    ActionPriority,
    ActionStatus,
    ComplianceStatus,
    ComplianceTier,
    Impact,
    Likelihood,
    MitigationStatus,
    MitigationType,
    PublicProfile,
    Rating,
    RequirementCategory,
    RequirementPriority,
    RequirementStatus,
    ThreatLevel,
    VulnerabilityCategory,
)


# =============================================================================
# Venue Profile
# =============================================================================

@dataclass(frozen=True)
class VenueProfile:
    """
    The premises being assessed.

    Attributes:
        venue_type: Free-text type (e.g. "Conference Centre")
        capacity: Maximum occupancy, >= 0
        location: Free-text address or city
        opening_hours: Free-text opening hours
        event_types: Lower-case event tags (e.g. "political", "concert")
        security_features: Installed measures (e.g. "CCTV", "Access Control")
        access_points: Number of public entrances
        emergency_exits: Number of emergency exits
        public_profile: How visible the venue is
    """
    venue_type: str
    capacity: int
    location: str
    public_profile: PublicProfile = PublicProfile.LOW
    opening_hours: str = ""
    event_types: tuple[str, ...] = ()
    security_features: tuple[str, ...] = ()
    access_points: int = 0
    emergency_exits: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.public_profile, PublicProfile):
            try:
                profile = PublicProfile(str(self.public_profile).strip().lower())
            except ValueError:
                raise InvalidInputError(
                    message=f"Unknown public profile: {self.public_profile}",
                    details={
                        "public_profile": str(self.public_profile),
                        "valid": [p.value for p in PublicProfile],
                    },
                ) from None
            object.__setattr__(self, "public_profile", profile)

    @property
    def security_feature_count(self) -> int:
        return len(self.security_features)


# =============================================================================
# Requirements and Actions
# =============================================================================

@dataclass(frozen=True)
class MartynsLawRequirement:
    """
    One statutory requirement.

    `applicable_for` is the tier the item was generated for; standard
    items re-issued for an enhanced venue carry ENHANCED.
    """
    id: str
    category: RequirementCategory
    requirement: str
    applicable_for: ComplianceTier
    responsible: str
    priority: RequirementPriority
    status: RequirementStatus = RequirementStatus.NOT_MET
    evidence: tuple[str, ...] = ()
    deadline: Optional[datetime] = None

    def with_status(
        self,
        status: RequirementStatus,
        evidence: tuple[str, ...] = (),
    ) -> MartynsLawRequirement:
        """Return a copy with a new status (and optional evidence)."""
        return replace(self, status=status, evidence=evidence or self.evidence)


@dataclass(frozen=True)
class ComplianceAction:
    """A remediation step for one unmet requirement."""
    id: str
    action: str
    priority: ActionPriority
    deadline: datetime
    responsible: str
    requirement_id: str
    cost: int = 0
    status: ActionStatus = ActionStatus.NOT_STARTED
    dependencies: tuple[str, ...] = ()

    def with_status(self, status: ActionStatus) -> ComplianceAction:
        return replace(self, status=status)


# =============================================================================
# Terrorism Risk Assessment
# =============================================================================

@dataclass(frozen=True)
class ThreatAssessment:
    local_threat_level: ThreatLevel
    specific_threats: tuple[str, ...] = ()
    historical_incidents: bool = False
    intelligence_reports: tuple[str, ...] = ()
    proximity_to_targets: tuple[str, ...] = ()


@dataclass(frozen=True)
class VulnerabilityAnalysis:
    """Vulnerabilities grouped into five buckets."""
    physical_vulnerabilities: tuple[str, ...] = ()
    procedure_gaps: tuple[str, ...] = ()
    staffing_weaknesses: tuple[str, ...] = ()
    technical_vulnerabilities: tuple[str, ...] = ()
    communication_gaps: tuple[str, ...] = ()

    def for_category(self, category: VulnerabilityCategory) -> tuple[str, ...]:
        return {
            VulnerabilityCategory.PHYSICAL: self.physical_vulnerabilities,
            VulnerabilityCategory.PROCEDURE: self.procedure_gaps,
            VulnerabilityCategory.STAFFING: self.staffing_weaknesses,
            VulnerabilityCategory.TECHNICAL: self.technical_vulnerabilities,
            VulnerabilityCategory.COMMUNICATION: self.communication_gaps,
        }[category]

    @property
    def total(self) -> int:
        return sum(len(self.for_category(c)) for c in VulnerabilityCategory)


@dataclass(frozen=True)
class TerrorismRiskMatrix:
    """
    Likelihood x impact for a venue.

    Invariant: risk_score == likelihood.value_score * impact.value_score
    """
    likelihood: Likelihood
    impact: Impact
    risk_score: int
    risk_level: ThreatLevel
    likelihood_points: int = 0
    impact_points: int = 0


@dataclass(frozen=True)
class MitigationMeasure:
    id: str
    measure: str
    type: MitigationType
    effectiveness: Rating
    implementation_cost: Rating
    timeline: str
    responsible: str
    status: MitigationStatus = MitigationStatus.PROPOSED


@dataclass(frozen=True)
class TerrorismRiskAssessment:
    """Full terrorism risk assessment of one venue."""
    venue_profile: VenueProfile
    threat_assessment: ThreatAssessment
    vulnerability_analysis: VulnerabilityAnalysis
    risk_matrix: TerrorismRiskMatrix
    mitigation_measures: tuple[MitigationMeasure, ...]
    overall_risk_level: ThreatLevel
    last_updated: datetime
    next_review: datetime


# =============================================================================
# Venue Assessment and Compliance Results
# =============================================================================

@dataclass(frozen=True)
class MartynsLawAssessment:
    """
    Compliance position of one venue.

    The requirement list is the source of truth for compliance checks;
    requirements not listed here are not considered.
    """
    venue_id: str
    venue_name: str
    capacity: int
    assessment_date: datetime
    assessor: str
    compliance_tier: ComplianceTier
    risk_level: ThreatLevel
    compliance_status: ComplianceStatus
    requirements: tuple[MartynsLawRequirement, ...]
    action_plan: tuple[ComplianceAction, ...]
    next_review_date: datetime
    risk_assessment: Optional[TerrorismRiskAssessment] = None


@dataclass(frozen=True)
class DeadlineStatus:
    action: str
    deadline: datetime
    overdue: bool


@dataclass(frozen=True)
class ComplianceCheck:
    """Result of checking an assessment's compliance."""
    is_compliant: bool
    compliance_percentage: int
    critical_gaps: tuple[str, ...]
    next_actions: tuple[str, ...]
    deadlines: tuple[DeadlineStatus, ...]


@dataclass(frozen=True)
class ComplianceReport:
    """Narrative compliance report for a venue."""
    executive_summary: str
    compliance_status: str
    risk_summary: str
    key_findings: tuple[str, ...]
    recommendations: tuple[str, ...]
    cost_estimate: int
    timeline: str


# =============================================================================
# Catalog Entries
# =============================================================================

@dataclass(frozen=True)
class RequirementTemplate:
    """Checklist item before it is issued to a venue."""
    category: RequirementCategory
    requirement: str
    responsible: str
    priority: RequirementPriority
    tier: ComplianceTier


@dataclass(frozen=True)
class FlagRule:
    """A rule that emits `text` when `when` holds for the venue."""
    id: str
    text: str
    when: Condition
    category: Optional[VulnerabilityCategory] = None


@dataclass(frozen=True)
class PointsRule:
    """A rule that adds `points` when `when` holds for the venue."""
    id: str
    points: int
    when: Condition
    description: str = ""


@dataclass(frozen=True)
class CapacityBracket:
    """Points for capacity strictly above `above`."""
    above: int
    points: int


@dataclass(frozen=True)
class Breakpoint:
    """Minimum accumulated score for a band; breakpoints are checked highest first."""
    min_score: int
    band: str


@dataclass(frozen=True)
class MitigationTemplate:
    id: str
    measure: str
    type: MitigationType
    effectiveness: Rating
    implementation_cost: Rating
    timeline_days: int
    responsible: str
    risk_levels: tuple[ThreatLevel, ...] = ()

    def applies_to(self, risk_level: ThreatLevel) -> bool:
        return not self.risk_levels or risk_level in self.risk_levels


@dataclass(frozen=True)
class CostEstimate:
    keyword: str
    cost: int


@dataclass(frozen=True)
class ActionPlanRules:
    """Priority and deadline cascade for remediation actions."""
    critical_categories: tuple[RequirementCategory, ...]
    critical_deadline_days: int
    escalation_risk_levels: tuple[ThreatLevel, ...]
    escalation_deadline_days: int
    default_deadline_days: int


@dataclass(frozen=True)
class MartynsLawCatalog:
    """
    Read-only rule table for the compliance planner.

    Attributes:
        standard_threshold: Lowest capacity of the standard tier
        enhanced_threshold: Lowest capacity of the enhanced tier
        requirements: Checklist templates, standard items first
        threat_rules: Specific-threat flags
        vulnerability_rules: Vulnerability flags with their bucket
        threat_level_points: Base likelihood points per threat level
        likelihood_rules: Venue-attribute likelihood contributions
        likelihood_breakpoints: Points -> Likelihood band, highest first
        impact_brackets: Capacity brackets, highest first
        impact_rules: Venue-attribute impact contributions
        impact_breakpoints: Points -> Impact band, highest first
        risk_level_breakpoints: Score -> overall level, highest first
        mitigations: Mitigation templates
        cost_estimates: Keyword cost table, first match wins
    """
    id: str
    version: str
    standard_threshold: int
    enhanced_threshold: int
    requirements: tuple[RequirementTemplate, ...]
    threat_rules: tuple[FlagRule, ...]
    vulnerability_rules: tuple[FlagRule, ...]
    threat_level_points: dict[ThreatLevel, int]
    likelihood_rules: tuple[PointsRule, ...]
    likelihood_breakpoints: tuple[Breakpoint, ...]
    impact_brackets: tuple[CapacityBracket, ...]
    impact_rules: tuple[PointsRule, ...]
    impact_breakpoints: tuple[Breakpoint, ...]
    risk_level_breakpoints: tuple[Breakpoint, ...]
    mitigations: tuple[MitigationTemplate, ...]
    cost_estimates: tuple[CostEstimate, ...]
    default_cost: int
    action_rules: ActionPlanRules
    review_interval_days: int = 90

    def templates_for(self, tier: ComplianceTier) -> list[RequirementTemplate]:
        if tier == ComplianceTier.NOT_APPLICABLE:
            return []
        if tier == ComplianceTier.STANDARD:
            return [t for t in self.requirements if t.tier == ComplianceTier.STANDARD]
        return list(self.requirements)
