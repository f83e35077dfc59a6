"""
ProtectPilot Enumerations

All enumeration types used throughout the ProtectPilot engines.
Organized by domain area for clarity.

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Risk Matrix
# =============================================================================

class RiskBand(str, Enum):
    """Four ordered severity bands of the 5x5 risk matrix (lowest first)."""
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"

    @property
    def severity(self) -> int:
        """Ordinal severity, 0 for GREEN up to 3 for RED."""
        return list(RiskBand).index(self)


class ProtectionTier(str, Enum):
    """Protection service levels recommended by the risk matrix."""
    ESSENTIAL = "essential"      # Essential Protection
    EXECUTIVE = "executive"      # Executive Shield
    SHADOW = "shadow"            # Shadow Protocol
    ENHANCED = "enhanced"        # Enhanced Security


class RiskAxis(str, Enum):
    """Matrix axis a risk factor feeds."""
    PROBABILITY = "probability"
    IMPACT = "impact"


class AssessmentSource(str, Enum):
    """How a risk assessment's inputs were obtained."""
    QUESTIONNAIRE = "questionnaire"   # Derived from questionnaire responses
    MANUAL = "manual"                 # Factors or matrix cell selected by hand


# =============================================================================
# SIA Licensing
# =============================================================================

class LicenseCategory(str, Enum):
    """SIA licence categories."""
    DOOR_SUPERVISION = "level_2_door_supervision"
    CLOSE_PROTECTION = "level_3_close_protection"
    SECURITY_GUARDING = "level_2_security_guarding"
    CCTV = "level_2_cctv"
    CASH_TRANSIT = "level_2_cash_transit"

    @property
    def sia_level(self) -> int:
        """SIA qualification level implied by the category."""
        return 3 if self.value.startswith("level_3") else 2


class LicenseStatus(str, Enum):
    """Status of an SIA licence on the public register."""
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"
    REVOKED = "revoked"
    PENDING = "pending"


class VerificationDepth(str, Enum):
    """How far a licence verification got."""
    BASIC = "basic"          # Format check only
    ENHANCED = "enhanced"    # Register lookup with temporal checks
    FULL = "full"            # Register plus supporting documents


class VerificationStatus(str, Enum):
    """Outcome class of a licence verification."""
    VERIFIED = "verified"
    INVALID = "invalid"
    UNVERIFIABLE = "unverifiable"   # Register did not answer in time


class ServiceTier(str, Enum):
    """Requested protection service tiers, lowest to highest."""
    DOOR_SUPERVISION = "door_supervision"
    CLOSE_PROTECTION = "close_protection"
    ELITE_PROTECTION = "elite_protection"


class ExperienceLevel(str, Enum):
    """Officer experience tiers (entry to elite)."""
    ENTRY = "entry"
    STANDARD = "standard"
    EXPERIENCED = "experienced"
    EXPERT = "expert"
    ELITE = "elite"


class BackgroundCheckType(str, Enum):
    """Background check products."""
    BASIC_DBS = "basic_dbs"
    ENHANCED_DBS = "enhanced_dbs"
    ENHANCED_DBS_BARRED = "enhanced_dbs_barred"
    SECURITY_CLEARANCE = "security_clearance"

    @property
    def label(self) -> str:
        return {
            "basic_dbs": "Basic DBS",
            "enhanced_dbs": "Enhanced DBS",
            "enhanced_dbs_barred": "Enhanced DBS with Barred List",
            "security_clearance": "Security Clearance",
        }[self.value]


class BackgroundCheckLevel(str, Enum):
    """Clearance level recorded on a background check."""
    SC = "sc"
    DV = "dv"
    ENHANCED = "enhanced"
    STANDARD = "standard"


class BackgroundCheckStatus(str, Enum):
    """Status of a background check."""
    CURRENT = "current"
    EXPIRED = "expired"
    PENDING = "pending"
    NOT_REQUIRED = "not_required"


class AvailabilityStatus(str, Enum):
    """Officer availability."""
    AVAILABLE = "available"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"
    ON_LEAVE = "on_leave"


class InsuranceLine(str, Enum):
    """Insurance lines held by an officer."""
    PROFESSIONAL_INDEMNITY = "professional_indemnity"
    PUBLIC_LIABILITY = "public_liability"
    EMPLOYERS_LIABILITY = "employers_liability"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class ScoreCategory(str, Enum):
    """Categories of the officer fitness score."""
    SIA_LICENSE = "sia_license"
    BACKGROUND_CHECKS = "background_checks"
    EXPERIENCE = "experience"
    CERTIFICATIONS = "certifications"
    INSURANCE = "insurance"


# =============================================================================
# Martyn's Law
# =============================================================================

class ComplianceTier(str, Enum):
    """Statutory premises tier by capacity."""
    NOT_APPLICABLE = "not_applicable"
    STANDARD = "standard"
    ENHANCED = "enhanced"


class RequirementCategory(str, Enum):
    """Martyn's Law requirement categories."""
    RISK_ASSESSMENT = "risk_assessment"
    SECURITY_PLAN = "security_plan"
    TRAINING = "training"
    PROCEDURES = "procedures"
    COMMUNICATION = "communication"
    REVIEW = "review"


class RequirementStatus(str, Enum):
    """Status of a single requirement."""
    MET = "met"
    PARTIALLY_MET = "partially_met"
    NOT_MET = "not_met"
    NOT_APPLICABLE = "not_applicable"


class RequirementPriority(str, Enum):
    """Priority stated on a requirement."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionPriority(str, Enum):
    """Priority of a remediation action (critical first)."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def severity_rank(self) -> int:
        """Sort rank, 0 for CRITICAL."""
        return list(ActionPriority).index(self)


class ActionStatus(str, Enum):
    """Progress of a remediation action."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class ComplianceStatus(str, Enum):
    """Overall compliance standing of a venue."""
    COMPLIANT = "compliant"
    PARTIALLY_COMPLIANT = "partially_compliant"
    NON_COMPLIANT = "non_compliant"
    ASSESSMENT_REQUIRED = "assessment_required"


class ThreatLevel(str, Enum):
    """Local threat level and overall venue risk band."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PublicProfile(str, Enum):
    """How publicly visible a venue is."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Likelihood(str, Enum):
    """Five-level attack likelihood band."""
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def value_score(self) -> int:
        return list(Likelihood).index(self) + 1


class Impact(str, Enum):
    """Five-level attack impact band."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    SEVERE = "severe"
    CATASTROPHIC = "catastrophic"

    @property
    def value_score(self) -> int:
        return list(Impact).index(self) + 1


class VulnerabilityCategory(str, Enum):
    """Buckets of the vulnerability analysis."""
    PHYSICAL = "physical"
    PROCEDURE = "procedure"
    STAFFING = "staffing"
    TECHNICAL = "technical"
    COMMUNICATION = "communication"


class MitigationType(str, Enum):
    """Type of mitigation measure."""
    PREVENTIVE = "preventive"
    DETECTIVE = "detective"
    RESPONSIVE = "responsive"
    RECOVERY = "recovery"


class Rating(str, Enum):
    """Low/medium/high rating for effectiveness and cost."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MitigationStatus(str, Enum):
    """Lifecycle of a mitigation measure."""
    PROPOSED = "proposed"
    APPROVED = "approved"
    IMPLEMENTED = "implemented"
    REJECTED = "rejected"


# =============================================================================
# Condition Operators
# =============================================================================

class ConditionOperator(str, Enum):
    """Operators for condition evaluation."""
    # Logical operators (for composing conditions)
    AND = "and"
    OR = "or"
    NOT = "not"

    # Comparison operators (for predicates)
    EQ = "eq"                # Equal
    NE = "ne"                # Not equal
    GT = "gt"                # Greater than
    LT = "lt"                # Less than
    GTE = "gte"              # Greater than or equal
    LTE = "lte"              # Less than or equal
    IN = "in"                # In list
    NOT_IN = "not_in"        # Not in list
    CONTAINS = "contains"    # String/list contains
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    MATCHES = "matches"      # Regex match
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    BETWEEN = "between"      # Value between two bounds (inclusive)
