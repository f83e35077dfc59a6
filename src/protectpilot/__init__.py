"""
ProtectPilot - Risk & Compliance Scoring Engine for Close-Protection Bookings

ProtectPilot is the rule-evaluation core of a close-protection booking
service. It scores clients, officers and venues; the host application
renders the results and makes the booking decisions.

Key Features:
- Client risk matrix (probability x impact, four bands, protection tier)
- SIA licence verification against the public register
- Officer requirement matching, fitness scoring and insurance adequacy
- Martyn's Law venue tiering, terrorism risk assessment and action plans
- Rule tables as versioned YAML catalogs, never as code branches

Quick Start:
    from protectpilot import (
        RiskMatrixEngine, CredentialEngine, MartynsLawPlanner,
        VenueProfile, ServiceTier, ThreatLevel,
    )

    risk = RiskMatrixEngine().assess_responses({"step1": "celebrity"})

    check = CredentialEngine().verify_officer_requirements(
        officer, ServiceTier.CLOSE_PROTECTION,
    )

    venue = VenueProfile(venue_type="Arena", capacity=2500, location="London")
    assessment = MartynsLawPlanner().build_assessment(
        "VEN-001", "City Arena", venue, ThreatLevel.HIGH,
    )

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"
__author__ = "ProtectPilot Team"

# =============================================================================
# Core Models (Re-exported for convenience)
# =============================================================================
from .models import (
    # Enums
    ActionPriority,
    ComplianceStatus,
    ComplianceTier,
    ExperienceLevel,
    LicenseCategory,
    LicenseStatus,
    ProtectionTier,
    PublicProfile,
    RequirementStatus,
    RiskBand,
    ServiceTier,
    ThreatLevel,
    VerificationStatus,
    # Inputs
    BackgroundCheck,
    InsurancePolicy,
    InsuranceStatus,
    OfficerProfile,
    RiskFactor,
    SIALicense,
    VenueProfile,
    # Results
    ComplianceCheck,
    ComplianceReport,
    MartynsLawAssessment,
    RiskAssessment,
    TeamComplianceReport,
    VerificationResult,
    VerificationScore,
)

# =============================================================================
# Engines
# =============================================================================
from .engine import (
    CredentialEngine,
    MartynsLawPlanner,
    RiskMatrixEngine,
    SimulatedLicenseRegistry,
    generate_report,
)

# =============================================================================
# Catalogs, Errors, Serialization
# =============================================================================
from .catalogs import get_default_catalog, load_catalog
from .canon import assessment_fingerprint, canonical_json, content_hash, to_dict
from .exceptions import (
    CatalogLoadError,
    CatalogValidationError,
    CatalogVersionMismatch,
    InvalidInputError,
    ProtectPilotError,
    RegistryUnavailableError,
)
from .logging_config import configure_logging

__all__ = [
    "__version__",
    # Enums
    "ActionPriority",
    "ComplianceStatus",
    "ComplianceTier",
    "ExperienceLevel",
    "LicenseCategory",
    "LicenseStatus",
    "ProtectionTier",
    "PublicProfile",
    "RequirementStatus",
    "RiskBand",
    "ServiceTier",
    "ThreatLevel",
    "VerificationStatus",
    # Inputs
    "BackgroundCheck",
    "InsurancePolicy",
    "InsuranceStatus",
    "OfficerProfile",
    "RiskFactor",
    "SIALicense",
    "VenueProfile",
    # Results
    "ComplianceCheck",
    "ComplianceReport",
    "MartynsLawAssessment",
    "RiskAssessment",
    "TeamComplianceReport",
    "VerificationResult",
    "VerificationScore",
    # Engines
    "CredentialEngine",
    "MartynsLawPlanner",
    "RiskMatrixEngine",
    "SimulatedLicenseRegistry",
    "generate_report",
    # Catalogs
    "get_default_catalog",
    "load_catalog",
    # Serialization
    "assessment_fingerprint",
    "canonical_json",
    "content_hash",
    "to_dict",
    # Errors
    "CatalogLoadError",
    "CatalogValidationError",
    "CatalogVersionMismatch",
    "InvalidInputError",
    "ProtectPilotError",
    "RegistryUnavailableError",
    # Logging
    "configure_logging",
]
