"""
Pytest configuration and fixtures for ProtectPilot tests.

Provides helper factories and common fixtures matching actual model definitions.
All time-dependent behaviour is pinned to AS_OF.
"""
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from protectpilot.catalogs import get_default_catalog, reset_default_catalog
from protectpilot.models import (
    AdditionalCertification,
    BackgroundCheck,
    BackgroundCheckStatus,
    BackgroundCheckType,
    ExperienceLevel,
    InsurancePolicy,
    InsuranceStatus,
    LicenseCategory,
    LicenseStatus,
    OfficerProfile,
    PublicProfile,
    SIALicense,
    VenueProfile,
)


AS_OF = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
TODAY = AS_OF.date()


# =============================================================================
# Factory Helpers
# =============================================================================

def make_license(
    license_number: str = "CP12345678",
    category: LicenseCategory = LicenseCategory.CLOSE_PROTECTION,
    holder_name: str = "Alex Morgan",
    expiry_date: date = date(2027, 1, 15),
    status: LicenseStatus = LicenseStatus.ACTIVE,
    endorsements: tuple = (),
    additional_qualifications: tuple = (),
) -> SIALicense:
    """Create an SIALicense with required fields."""
    return SIALicense(
        license_number=license_number,
        category=category,
        holder_name=holder_name,
        issue_date=date(2024, 1, 15),
        expiry_date=expiry_date,
        status=status,
        endorsements=endorsements,
        additional_qualifications=additional_qualifications,
    )


def make_check(
    check_type: BackgroundCheckType = BackgroundCheckType.ENHANCED_DBS,
    status: BackgroundCheckStatus = BackgroundCheckStatus.CURRENT,
    expiry_date: date = None,
) -> BackgroundCheck:
    """Create a BackgroundCheck issued a year before AS_OF."""
    return BackgroundCheck(
        check_type=check_type,
        issue_date=date(2024, 6, 1),
        status=status,
        expiry_date=expiry_date,
    )


def make_certification(name: str, expiry_date: date = None) -> AdditionalCertification:
    return AdditionalCertification(
        name=name,
        issuing_body="Highfield",
        certificate_number=f"CERT-{abs(hash(name)) % 100000:05d}",
        issue_date=date(2023, 3, 1),
        expiry_date=expiry_date,
    )


def make_policy(
    coverage_amount: int,
    expiry_date: date = date(2026, 6, 1),
    provider: str = "Hiscox",
) -> InsurancePolicy:
    return InsurancePolicy(
        provider=provider,
        coverage_amount=Decimal(coverage_amount),
        expiry_date=expiry_date,
        policy_number=f"POL-{coverage_amount}",
    )


def make_insurance(
    professional_indemnity: int = 5_000_000,
    public_liability: int = 10_000_000,
    employers_liability: int = 5_000_000,
    expiry_date: date = date(2026, 6, 1),
) -> InsuranceStatus:
    """Create insurance cover; pass employers_liability=None to omit EL."""
    return InsuranceStatus(
        professional_indemnity=make_policy(professional_indemnity, expiry_date),
        public_liability=make_policy(public_liability, expiry_date),
        employers_liability=(
            make_policy(employers_liability, expiry_date)
            if employers_liability is not None else None
        ),
    )


def make_officer(
    name: str = "Alex Morgan",
    license: SIALicense = None,
    experience_level: ExperienceLevel = ExperienceLevel.EXPERIENCED,
    background_checks: tuple = None,
    certifications: tuple = (),
    specializations: tuple = (),
    insurance: InsuranceStatus = None,
    years_experience: int = None,
) -> OfficerProfile:
    """Create an OfficerProfile; defaults describe a compliant CP officer."""
    return OfficerProfile(
        name=name,
        sia_license=license or make_license(holder_name=name),
        experience_level=experience_level,
        insurance_status=insurance or make_insurance(),
        additional_certifications=tuple(make_certification(c) for c in certifications),
        specializations=specializations,
        background_checks=(make_check(),) if background_checks is None else background_checks,
        years_experience=years_experience,
    )


def make_venue(
    capacity: int = 500,
    location: str = "Leeds",
    public_profile: PublicProfile = PublicProfile.LOW,
    event_types: tuple = ("concert",),
    security_features: tuple = ("CCTV", "Access Control", "Bag Search"),
    access_points: int = 2,
    venue_type: str = "Concert Hall",
) -> VenueProfile:
    """Create a VenueProfile; defaults trigger no threat or vulnerability rule."""
    return VenueProfile(
        venue_type=venue_type,
        capacity=capacity,
        location=location,
        public_profile=public_profile,
        event_types=event_types,
        security_features=security_features,
        access_points=access_points,
        emergency_exits=4,
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def catalog():
    """The packaged rule catalogs."""
    return get_default_catalog()


@pytest.fixture(autouse=True)
def _isolate_catalog_env(monkeypatch):
    """Keep PP_* variables from the developer's shell out of the tests."""
    for name in (
        "PP_CATALOG_DIR",
        "PP_LOG_LEVEL",
        "PP_LOG_FORMAT",
        "PP_REGISTRY_LATENCY_SECONDS",
        "PP_REGISTRY_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    reset_default_catalog()
