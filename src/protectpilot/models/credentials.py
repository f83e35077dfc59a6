"""
ProtectPilot Credential Models

Models for SIA licences, officer profiles and the results of
credential, insurance and team compliance checks.

Input records (SIALicense, OfficerProfile, ...) are supplied by the host
application. Result records are created fresh per call and carry the
human-readable reasons behind every flag.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from .enums import (
    AvailabilityStatus,
    BackgroundCheckLevel,
    BackgroundCheckStatus,
    BackgroundCheckType,
    ExperienceLevel,
    InsuranceLine,
    LicenseCategory,
    LicenseStatus,
    ScoreCategory,
    ServiceTier,
    VerificationDepth,
    VerificationStatus,
)


# =============================================================================
# Licence and Officer Inputs
# =============================================================================

@dataclass(frozen=True)
class SIALicense:
    """
    An SIA licence as held on the public register.

    Licence numbers follow `{2-letter category code}{8 digits}`,
    e.g. "CP12345678".
    """
    license_number: str
    category: LicenseCategory
    holder_name: str
    issue_date: date
    expiry_date: date
    status: LicenseStatus = LicenseStatus.ACTIVE
    endorsements: tuple[str, ...] = ()
    additional_qualifications: tuple[str, ...] = ()

    @property
    def sia_level(self) -> int:
        return self.category.sia_level

    def is_expired(self, as_of: date) -> bool:
        return self.expiry_date < as_of


@dataclass(frozen=True)
class AdditionalCertification:
    """A non-SIA qualification (first aid, driving, ...)."""
    name: str
    issuing_body: str
    certificate_number: str
    issue_date: date
    expiry_date: Optional[date] = None
    level: Optional[str] = None


@dataclass(frozen=True)
class BackgroundCheck:
    """A DBS or security-clearance record."""
    check_type: BackgroundCheckType
    issue_date: date
    status: BackgroundCheckStatus
    expiry_date: Optional[date] = None
    level: Optional[BackgroundCheckLevel] = None
    certificate_number: Optional[str] = None

    def is_current(self, as_of: date) -> bool:
        """Current status and not past its expiry date."""
        if self.status != BackgroundCheckStatus.CURRENT:
            return False
        return self.expiry_date is None or self.expiry_date >= as_of


@dataclass(frozen=True)
class InsurancePolicy:
    """One line of insurance cover."""
    provider: str
    coverage_amount: Decimal
    expiry_date: date
    policy_number: str

    def is_expired(self, as_of: date) -> bool:
        return self.expiry_date < as_of


@dataclass(frozen=True)
class InsuranceStatus:
    """Insurance held by an officer or their employer."""
    professional_indemnity: InsurancePolicy
    public_liability: InsurancePolicy
    employers_liability: Optional[InsurancePolicy] = None

    def policy_for(self, line: InsuranceLine) -> Optional[InsurancePolicy]:
        return {
            InsuranceLine.PROFESSIONAL_INDEMNITY: self.professional_indemnity,
            InsuranceLine.PUBLIC_LIABILITY: self.public_liability,
            InsuranceLine.EMPLOYERS_LIABILITY: self.employers_liability,
        }[line]


@dataclass(frozen=True)
class OfficerProfile:
    """
    A close-protection officer.

    Attributes:
        name: Officer name
        sia_license: The officer's SIA licence
        additional_certifications: Other qualifications held
        experience_level: Entry to elite
        specializations: Free-text specialisms (e.g. "Former Military")
        background_checks: DBS / clearance records
        insurance_status: Insurance cover
        availability_status: Booking availability
        years_experience: Years in role, when known
    """
    name: str
    sia_license: SIALicense
    experience_level: ExperienceLevel
    insurance_status: InsuranceStatus
    additional_certifications: tuple[AdditionalCertification, ...] = ()
    specializations: tuple[str, ...] = ()
    background_checks: tuple[BackgroundCheck, ...] = ()
    availability_status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    years_experience: Optional[int] = None


# =============================================================================
# Catalog Entries
# =============================================================================

@dataclass(frozen=True)
class LicenseCategoryRule:
    """Register prefix and qualification title of a licence category."""
    category: LicenseCategory
    prefix: str
    title: str


@dataclass(frozen=True)
class ServiceRequirementProfile:
    """
    What an officer needs to be deployed at a given service tier.

    Attributes:
        tier: Requested service tier
        display_name: Human-readable tier name
        sia_level: Minimum SIA level
        required_certifications: Must be held (substring match)
        recommended_certifications: Suggested, never blocking
        minimum_experience_years: Minimum years in role
        dbs_level: Minimum background check
        additional_requirements: Free-text extra requirements
        requires_service_background: Military/police background mandatory
        insurance_minimums: Minimum cover per insurance line
        employers_liability_required: Missing EL cover is an issue
    """
    tier: ServiceTier
    display_name: str
    sia_level: int
    required_certifications: tuple[str, ...]
    recommended_certifications: tuple[str, ...]
    minimum_experience_years: int
    dbs_level: BackgroundCheckType
    additional_requirements: tuple[str, ...] = ()
    requires_service_background: bool = False
    insurance_minimums: dict[InsuranceLine, Decimal] = field(default_factory=dict)
    employers_liability_required: bool = True
    insurance_recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class CredentialCatalog:
    """Read-only rule table for the credential engine."""
    id: str
    version: str
    license_categories: tuple[LicenseCategoryRule, ...]
    service_requirements: dict[ServiceTier, ServiceRequirementProfile]
    dbs_ranks: dict[BackgroundCheckType, int]
    service_background_keywords: tuple[str, ...]
    score_caps: dict[ScoreCategory, int]
    license_active_points: int
    license_level_points: dict[int, int]
    background_check_points: dict[BackgroundCheckType, int]
    experience_points: dict[ExperienceLevel, int]
    certification_points: int
    insurance_points: dict[InsuranceLine, int]
    high_value_event_threshold: Decimal
    high_value_event_recommendation: str
    expiry_warning_days: int = 30
    invalid_recheck_days: int = 30
    valid_recheck_days: int = 90

    def rule_for(self, category: LicenseCategory) -> Optional[LicenseCategoryRule]:
        for rule in self.license_categories:
            if rule.category == category:
                return rule
        return None

    def requirements_for(self, tier: ServiceTier) -> ServiceRequirementProfile:
        return self.service_requirements[tier]

    @property
    def max_score(self) -> int:
        return sum(self.score_caps.values())


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of checking a licence against the register.

    `errors` block validity; `warnings` are advisory only.
    """
    is_valid: bool
    status: VerificationStatus
    verification_level: VerificationDepth
    verification_date: datetime
    next_check_due: datetime
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    license_details: Optional[SIALicense] = None


@dataclass(frozen=True)
class RequirementCheck:
    """Whether an officer satisfies a tier's requirements, and why not."""
    meets: bool
    missing: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoreBreakdownItem:
    """Contribution of one category to the fitness score."""
    category: ScoreCategory
    label: str
    score: int
    max_score: int
    details: str


@dataclass(frozen=True)
class VerificationScore:
    """Weighted officer fitness score."""
    score: int
    max_score: int
    breakdown: tuple[ScoreBreakdownItem, ...]

    @property
    def percentage(self) -> int:
        if self.max_score == 0:
            return 0
        return round(self.score / self.max_score * 100)


@dataclass(frozen=True)
class InsuranceAdequacy:
    """Whether insurance cover is adequate for a tier."""
    adequate: bool
    issues: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class OfficerComplianceResult:
    """One officer's line in a team report."""
    officer: str
    compliant: bool
    issues: tuple[str, ...]
    score: int


@dataclass(frozen=True)
class TeamSummary:
    """Aggregates across a deployment team."""
    total_officers: int
    compliant_officers: int
    average_score: int
    critical_issues: tuple[str, ...]


@dataclass(frozen=True)
class TeamComplianceReport:
    """Compliance of a whole team for one service tier."""
    tier: ServiceTier
    overall_compliance: bool
    officer_results: tuple[OfficerComplianceResult, ...]
    team_summary: TeamSummary
