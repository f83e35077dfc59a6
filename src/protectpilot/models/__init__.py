"""
ProtectPilot Models

All domain models for the ProtectPilot risk and compliance engines.

Exports all models organized by category for convenient imports:

    from protectpilot.models import (
        # Enums
        RiskBand, ProtectionTier, ServiceTier, ComplianceTier,
        # Conditions
        TriBool, Condition, Predicate, AND, OR, NOT, PRED,
        # Risk matrix
        RiskFactor, RiskAssessment, MatrixCell,
        # Credentials
        SIALicense, OfficerProfile, VerificationResult,
        # Venue
        VenueProfile, MartynsLawRequirement, ComplianceAction,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    ActionPriority,
    ActionStatus,
    AssessmentSource,
    AvailabilityStatus,
    BackgroundCheckLevel,
    BackgroundCheckStatus,
    BackgroundCheckType,
    ComplianceStatus,
    ComplianceTier,
    ConditionOperator,
    ExperienceLevel,
    Impact,
    InsuranceLine,
    LicenseCategory,
    LicenseStatus,
    Likelihood,
    MitigationStatus,
    MitigationType,
    ProtectionTier,
    PublicProfile,
    Rating,
    RequirementCategory,
    RequirementPriority,
    RequirementStatus,
    RiskAxis,
    RiskBand,
    ScoreCategory,
    ServiceTier,
    ThreatLevel,
    VerificationDepth,
    VerificationStatus,
    VulnerabilityCategory,
)

# =============================================================================
# Conditions
# =============================================================================
from .conditions import (
    AND,
    CONTAINS,
    EQ,
    GT,
    IN,
    LT,
    NOT,
    OR,
    PRED,
    Condition,
    EvaluationResult,
    Predicate,
    TriBool,
)

# =============================================================================
# Risk Matrix
# =============================================================================
from .risk import (
    MAX_AXIS_VALUE,
    MAX_SCORE,
    MIN_AXIS_VALUE,
    MIN_SCORE,
    MatrixCell,
    QuestionMapping,
    QuestionOption,
    RiskAssessment,
    RiskBandDefinition,
    RiskFactor,
    RiskMatrixCatalog,
)

# =============================================================================
# Credentials
# =============================================================================
from .credentials import (
    AdditionalCertification,
    BackgroundCheck,
    CredentialCatalog,
    InsuranceAdequacy,
    InsurancePolicy,
    InsuranceStatus,
    LicenseCategoryRule,
    OfficerComplianceResult,
    OfficerProfile,
    RequirementCheck,
    ScoreBreakdownItem,
    ServiceRequirementProfile,
    SIALicense,
    TeamComplianceReport,
    TeamSummary,
    VerificationResult,
    VerificationScore,
)

# =============================================================================
# Venue / Martyn's Law
# =============================================================================
from .venue import (
    ActionPlanRules,
    Breakpoint,
    CapacityBracket,
    ComplianceAction,
    ComplianceCheck,
    ComplianceReport,
    CostEstimate,
    DeadlineStatus,
    FlagRule,
    MartynsLawAssessment,
    MartynsLawCatalog,
    MartynsLawRequirement,
    MitigationMeasure,
    MitigationTemplate,
    PointsRule,
    RequirementTemplate,
    TerrorismRiskAssessment,
    TerrorismRiskMatrix,
    ThreatAssessment,
    VenueProfile,
    VulnerabilityAnalysis,
)

__all__ = [
    # Enums
    "ActionPriority",
    "ActionStatus",
    "AssessmentSource",
    "AvailabilityStatus",
    "BackgroundCheckLevel",
    "BackgroundCheckStatus",
    "BackgroundCheckType",
    "ComplianceStatus",
    "ComplianceTier",
    "ConditionOperator",
    "ExperienceLevel",
    "Impact",
    "InsuranceLine",
    "LicenseCategory",
    "LicenseStatus",
    "Likelihood",
    "MitigationStatus",
    "MitigationType",
    "ProtectionTier",
    "PublicProfile",
    "Rating",
    "RequirementCategory",
    "RequirementPriority",
    "RequirementStatus",
    "RiskAxis",
    "RiskBand",
    "ScoreCategory",
    "ServiceTier",
    "ThreatLevel",
    "VerificationDepth",
    "VerificationStatus",
    "VulnerabilityCategory",
    # Conditions
    "AND",
    "CONTAINS",
    "EQ",
    "GT",
    "IN",
    "LT",
    "NOT",
    "OR",
    "PRED",
    "Condition",
    "EvaluationResult",
    "Predicate",
    "TriBool",
    # Risk matrix
    "MAX_AXIS_VALUE",
    "MAX_SCORE",
    "MIN_AXIS_VALUE",
    "MIN_SCORE",
    "MatrixCell",
    "QuestionMapping",
    "QuestionOption",
    "RiskAssessment",
    "RiskBandDefinition",
    "RiskFactor",
    "RiskMatrixCatalog",
    # Credentials
    "AdditionalCertification",
    "BackgroundCheck",
    "CredentialCatalog",
    "InsuranceAdequacy",
    "InsurancePolicy",
    "InsuranceStatus",
    "LicenseCategoryRule",
    "OfficerComplianceResult",
    "OfficerProfile",
    "RequirementCheck",
    "ScoreBreakdownItem",
    "ServiceRequirementProfile",
    "SIALicense",
    "TeamComplianceReport",
    "TeamSummary",
    "VerificationResult",
    "VerificationScore",
    # Venue
    "ActionPlanRules",
    "Breakpoint",
    "CapacityBracket",
    "ComplianceAction",
    "ComplianceCheck",
    "ComplianceReport",
    "CostEstimate",
    "DeadlineStatus",
    "FlagRule",
    "MartynsLawAssessment",
    "MartynsLawCatalog",
    "MartynsLawRequirement",
    "MitigationMeasure",
    "MitigationTemplate",
    "PointsRule",
    "RequirementTemplate",
    "TerrorismRiskAssessment",
    "TerrorismRiskMatrix",
    "ThreatAssessment",
    "VenueProfile",
    "VulnerabilityAnalysis",
]
