"""
Tests for the credential engine.

Register lookups run against SimulatedLicenseRegistry with zero latency
unless a test is about timeouts. Async code is driven with asyncio.run.
"""
import asyncio
import pytest
from datetime import date, timedelta

from protectpilot.engine.credentials import (
    CredentialEngine,
    EXPIRED_ERROR,
    INVALID_FORMAT_ERROR,
    NOT_FOUND_ERROR,
    generate_compliance_report,
    validate_license_format,
    verify_license,
)
from protectpilot.engine.registry import SimulatedLicenseRegistry, normalize_license_number
from protectpilot.exceptions import InvalidInputError, RegistryUnavailableError
from protectpilot.models import (
    BackgroundCheckStatus,
    BackgroundCheckType,
    ExperienceLevel,
    LicenseCategory,
    LicenseStatus,
    ScoreCategory,
    ServiceTier,
    VerificationDepth,
    VerificationStatus,
)
from tests.conftest import (
    AS_OF,
    TODAY,
    make_check,
    make_insurance,
    make_license,
    make_officer,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def engine():
    return CredentialEngine()


@pytest.fixture
def registry():
    registry = SimulatedLicenseRegistry(latency_seconds=0)
    registry.register("CP12345678", "Jane Doe", date(2024, 1, 15), date(2027, 1, 15))
    registry.register("CP11112222", "Old Hand", date(2021, 1, 1), date(2024, 1, 1))
    registry.register("DS87654321", "Soon Due", date(2022, 6, 20), TODAY + timedelta(days=10))
    registry.register(
        "CP99990000", "Sam Suspended", date(2024, 1, 1), date(2027, 1, 1),
        status=LicenseStatus.SUSPENDED,
    )
    return registry


def _verify(engine, number, registry, **kwargs):
    return asyncio.run(engine.verify_license(number, registry=registry, as_of=AS_OF, **kwargs))


# =============================================================================
# Licence Format Tests
# =============================================================================

class TestLicenseFormat:
    """Tests for the licence number grammar."""

    @pytest.mark.parametrize("number", ["CP12345678", "cp12345678", "CP 1234 5678", " cp1234\t5678 "])
    def test_valid_close_protection_numbers(self, engine, number):
        assert engine.validate_license_format(number, LicenseCategory.CLOSE_PROTECTION)

    @pytest.mark.parametrize("number", [
        "DS12345678",     # wrong prefix for the category
        "CP1234567",      # 7 digits
        "CP123456789",    # 9 digits
        "CP1234567A",     # letter in the digits
        "CP-12345678",    # punctuation
        "",
    ])
    def test_invalid_numbers(self, engine, number):
        assert not engine.validate_license_format(number, LicenseCategory.CLOSE_PROTECTION)

    def test_category_as_string(self):
        assert validate_license_format("DS12345678", "level_2_door_supervision")

    def test_unknown_category(self, engine):
        assert not engine.validate_license_format("CP12345678", "level_9_unknown")

    def test_category_for_number(self, engine):
        assert engine.category_for_number("cc 12345678") == LicenseCategory.CCTV
        assert engine.category_for_number("XX12345678") is None

    def test_normalize(self):
        assert normalize_license_number(" cp 1234 5678\n") == "CP12345678"


# =============================================================================
# Register Verification Tests
# =============================================================================

class TestVerifyLicense:
    """Tests for asynchronous register verification."""

    def test_valid_license(self, engine, registry):
        result = _verify(engine, "cp 1234 5678", registry)

        assert result.is_valid
        assert result.status == VerificationStatus.VERIFIED
        assert result.verification_level == VerificationDepth.ENHANCED
        assert result.errors == ()
        assert result.warnings == ()
        assert result.verification_date == AS_OF
        assert result.next_check_due == AS_OF + timedelta(days=90)
        assert result.license_details.holder_name == "Jane Doe"
        assert result.license_details.endorsements == ("First Aid at Work", "Conflict Management")

    def test_expired_license(self, engine, registry):
        result = _verify(engine, "CP11112222", registry)

        assert not result.is_valid
        assert result.status == VerificationStatus.INVALID
        assert EXPIRED_ERROR in result.errors
        assert result.license_details.status == LicenseStatus.EXPIRED

    def test_expiring_license_warns(self, engine, registry):
        result = _verify(engine, "DS87654321", registry)

        assert result.is_valid
        assert result.warnings == ("SIA license expires within 30 days - renewal required",)

    def test_suspended_license(self, engine, registry):
        result = _verify(engine, "CP99990000", registry)

        assert not result.is_valid
        assert result.errors == ("SIA license is suspended",)

    def test_not_found(self, engine, registry):
        result = _verify(engine, "CP00000001", registry)

        assert not result.is_valid
        assert result.status == VerificationStatus.INVALID
        assert result.verification_level == VerificationDepth.ENHANCED
        assert result.errors == (NOT_FOUND_ERROR,)
        assert result.license_details is None
        assert result.next_check_due == AS_OF + timedelta(days=30)

    def test_bad_format_skips_register(self, engine):
        """Test a malformed number is rejected without any lookup."""
        registry = SimulatedLicenseRegistry(latency_seconds=0, available=False)
        result = _verify(engine, "XY123", registry)

        assert result.status == VerificationStatus.INVALID
        assert result.verification_level == VerificationDepth.BASIC
        assert result.errors == (INVALID_FORMAT_ERROR,)

    def test_timeout_is_unverifiable(self, engine, registry):
        registry.latency_seconds = 1
        result = _verify(engine, "CP12345678", registry, timeout=0.01)

        assert not result.is_valid
        assert result.status == VerificationStatus.UNVERIFIABLE
        assert result.verification_level == VerificationDepth.BASIC
        assert "verification pending" in result.errors[0]
        assert result.next_check_due == AS_OF + timedelta(days=30)

    def test_register_unavailable_raises(self, engine, registry):
        registry.available = False
        with pytest.raises(RegistryUnavailableError) as exc_info:
            _verify(engine, "CP12345678", registry)
        assert exc_info.value.subject_id == "CP12345678"

    def test_convenience_function(self, registry):
        result = asyncio.run(verify_license("CP12345678", registry=registry, as_of=AS_OF))
        assert result.is_valid

    def test_register_unknown_prefix(self):
        registry = SimulatedLicenseRegistry(latency_seconds=0)
        with pytest.raises(InvalidInputError):
            registry.register("ZZ12345678", "Nobody", date(2024, 1, 1), date(2026, 1, 1))


# =============================================================================
# Officer Requirement Tests
# =============================================================================

class TestOfficerRequirements:
    """Tests for requirement matching against service tiers."""

    def test_compliant_close_protection_officer(self, engine):
        check = engine.verify_officer_requirements(
            make_officer(), ServiceTier.CLOSE_PROTECTION, as_of=AS_OF
        )

        assert check.meets
        assert check.missing == ()
        assert check.recommendations == (
            "Consider obtaining: First Aid at Work",
            "Consider obtaining: Defensive Driving",
            "Consider obtaining: Surveillance Awareness",
        )

    def test_door_supervisor_requesting_close_protection(self, engine):
        officer = make_officer(
            license=make_license("DS12345678", LicenseCategory.DOOR_SUPERVISION),
            background_checks=(),
        )
        check = engine.verify_officer_requirements(officer, "close_protection", as_of=AS_OF)

        assert not check.meets
        assert "SIA Level 3 license required" in check.missing
        assert "SIA Level 3 Close Protection" in check.missing
        assert "Enhanced DBS check required" in check.missing

    def test_higher_dbs_satisfies_lower(self, engine):
        officer = make_officer(background_checks=(make_check(BackgroundCheckType.ENHANCED_DBS_BARRED),))
        assert engine.verify_officer_requirements(officer, ServiceTier.CLOSE_PROTECTION, as_of=AS_OF).meets

    def test_lower_or_stale_dbs_rejected(self, engine):
        for checks in (
            (make_check(BackgroundCheckType.BASIC_DBS),),
            (make_check(BackgroundCheckType.SECURITY_CLEARANCE),),
            (make_check(status=BackgroundCheckStatus.EXPIRED),),
            (make_check(expiry_date=date(2025, 5, 1)),),
        ):
            check = engine.verify_officer_requirements(
                make_officer(background_checks=checks), ServiceTier.CLOSE_PROTECTION, as_of=AS_OF
            )
            assert check.missing == ("Enhanced DBS check required",)

    def test_endorsement_counts_as_certification(self, engine):
        officer = make_officer(
            license=make_license(endorsements=("First Aid at Work",)),
            certifications=("Defensive Driving Level 2",),
        )
        check = engine.verify_officer_requirements(officer, ServiceTier.CLOSE_PROTECTION, as_of=AS_OF)
        assert check.recommendations == ("Consider obtaining: Surveillance Awareness",)

    def test_elite_requires_service_background(self, engine):
        check = engine.verify_officer_requirements(
            make_officer(), ServiceTier.ELITE_PROTECTION, as_of=AS_OF
        )
        assert check.missing == ("Military or Police background required for Elite Protection",)

        veteran = make_officer(specializations=("Former military (Royal Marines)",))
        assert engine.verify_officer_requirements(veteran, ServiceTier.ELITE_PROTECTION, as_of=AS_OF).meets

    def test_experience_checked_when_known(self, engine):
        officer = make_officer(years_experience=2)
        check = engine.verify_officer_requirements(officer, ServiceTier.CLOSE_PROTECTION, as_of=AS_OF)
        assert check.missing == ("Minimum 3 years' experience required",)

    def test_unknown_tier(self, engine):
        with pytest.raises(InvalidInputError):
            engine.verify_officer_requirements(make_officer(), "bodyguard_royale")


# =============================================================================
# Score Tests
# =============================================================================

class TestVerificationScore:
    """Tests for the capped fitness score."""

    def test_default_officer_score(self, engine):
        score = engine.calculate_verification_score(make_officer(), as_of=AS_OF)
        by_category = {item.category: item.score for item in score.breakdown}

        assert by_category == {
            ScoreCategory.SIA_LICENSE: 30,
            ScoreCategory.BACKGROUND_CHECKS: 12,
            ScoreCategory.EXPERIENCE: 12,
            ScoreCategory.CERTIFICATIONS: 0,
            ScoreCategory.INSURANCE: 10,
        }
        assert score.score == 64
        assert score.max_score == 100
        assert [item.label for item in score.breakdown] == [
            "SIA License",
            "Background Checks",
            "Experience Level",
            "Additional Certifications",
            "Insurance Status",
        ]

    def test_caps_bound_the_total(self, engine):
        officer = make_officer(
            experience_level=ExperienceLevel.ELITE,
            background_checks=(
                make_check(BackgroundCheckType.ENHANCED_DBS_BARRED),
                make_check(BackgroundCheckType.ENHANCED_DBS),
                make_check(BackgroundCheckType.SECURITY_CLEARANCE),
            ),
            certifications=("A", "B", "C", "D", "E", "F", "G"),
        )
        score = engine.calculate_verification_score(officer, as_of=AS_OF)

        assert score.score == 100
        assert score.percentage == 100
        assert all(item.score <= item.max_score for item in score.breakdown)

    def test_expired_license_and_insurance_score_zero(self, engine):
        officer = make_officer(
            license=make_license(expiry_date=date(2025, 1, 1)),
            insurance=make_insurance(expiry_date=date(2025, 1, 1)),
            background_checks=(),
        )
        score = engine.calculate_verification_score(officer, as_of=AS_OF)
        by_category = {item.category: item.score for item in score.breakdown}

        assert by_category[ScoreCategory.SIA_LICENSE] == 0
        assert by_category[ScoreCategory.INSURANCE] == 0
        assert score.score == 12

    def test_suspended_license_scores_zero(self, engine):
        officer = make_officer(license=make_license(status=LicenseStatus.SUSPENDED))
        score = engine.calculate_verification_score(officer, as_of=AS_OF)
        assert score.breakdown[0].score == 0

    def test_insurance_expiring_today_still_counts(self, engine):
        """Test score and adequacy agree on a policy whose last day is today."""
        insurance = make_insurance(expiry_date=TODAY)
        officer = make_officer(insurance=insurance)

        score = engine.calculate_verification_score(officer, as_of=AS_OF)
        adequacy = engine.verify_insurance_adequacy(insurance, ServiceTier.CLOSE_PROTECTION, as_of=AS_OF)

        assert score.breakdown[4].score == 10
        assert adequacy.adequate

    def test_level_two_license_points(self, engine):
        officer = make_officer(license=make_license("DS12345678", LicenseCategory.DOOR_SUPERVISION))
        score = engine.calculate_verification_score(officer, as_of=AS_OF)
        assert score.breakdown[0].score == 25


# =============================================================================
# Insurance Tests
# =============================================================================

class TestInsuranceAdequacy:
    """Tests for insurance cover against tier minimums."""

    def test_adequate_cover(self, engine):
        result = engine.verify_insurance_adequacy(
            make_insurance(), ServiceTier.CLOSE_PROTECTION, as_of=AS_OF
        )
        assert result.adequate
        assert result.issues == ()
        assert result.recommendations == ()

    def test_below_minimum(self, engine):
        insurance = make_insurance(professional_indemnity=1_000_000)
        result = engine.verify_insurance_adequacy(insurance, ServiceTier.CLOSE_PROTECTION, as_of=AS_OF)

        assert not result.adequate
        assert result.issues == ("Professional Indemnity coverage below minimum £2,000,000",)

    def test_missing_employers_liability(self, engine):
        insurance = make_insurance(employers_liability=None)
        result = engine.verify_insurance_adequacy(insurance, ServiceTier.DOOR_SUPERVISION, as_of=AS_OF)
        assert result.issues == ("Employers Liability insurance required",)

    def test_expired_policies(self, engine):
        insurance = make_insurance(expiry_date=date(2025, 3, 1))
        result = engine.verify_insurance_adequacy(insurance, ServiceTier.DOOR_SUPERVISION, as_of=AS_OF)
        assert result.issues == (
            "Professional Indemnity insurance expired",
            "Public Liability insurance expired",
            "Employers Liability insurance expired",
        )

    def test_high_value_event_recommendation(self, engine):
        result = engine.verify_insurance_adequacy(
            make_insurance(), ServiceTier.CLOSE_PROTECTION, event_value=2_500_000, as_of=AS_OF
        )
        assert result.adequate
        assert result.recommendations == ("Consider additional coverage for high-value events",)

    def test_elite_tier_recommendations(self, engine):
        result = engine.verify_insurance_adequacy(
            make_insurance(), ServiceTier.ELITE_PROTECTION, event_value=1_000_000, as_of=AS_OF
        )
        assert result.recommendations == (
            "Consider worldwide coverage for international assignments",
            "Verify kidnap & ransom insurance if applicable",
        )


# =============================================================================
# Team Report Tests
# =============================================================================

class TestTeamReport:
    """Tests for team-level compliance reports."""

    @pytest.fixture
    def team(self):
        return [
            make_officer("Alex Morgan"),
            make_officer(
                "Blake Chen",
                license=make_license("DS12345678", LicenseCategory.DOOR_SUPERVISION, "Blake Chen"),
                background_checks=(),
            ),
            make_officer("Casey Park", experience_level=ExperienceLevel.EXPERT),
        ]

    def test_team_summary(self, engine, team):
        report = engine.generate_compliance_report(team, ServiceTier.CLOSE_PROTECTION, as_of=AS_OF)

        assert report.tier == ServiceTier.CLOSE_PROTECTION
        assert not report.overall_compliance
        assert report.team_summary.total_officers == 3
        assert report.team_summary.compliant_officers == 2
        assert [r.officer for r in report.officer_results] == ["Alex Morgan", "Blake Chen", "Casey Park"]
        assert report.team_summary.critical_issues == (
            "Enhanced DBS check required",
            "SIA Level 3 Close Protection",
            "SIA Level 3 license required",
        )

    def test_summary_independent_of_order(self, engine, team):
        forward = engine.generate_compliance_report(team, ServiceTier.CLOSE_PROTECTION, as_of=AS_OF)
        backward = engine.generate_compliance_report(
            list(reversed(team)), ServiceTier.CLOSE_PROTECTION, as_of=AS_OF
        )
        assert forward.team_summary == backward.team_summary
        assert forward.overall_compliance == backward.overall_compliance

    def test_all_compliant(self, engine):
        report = generate_compliance_report(
            [make_officer("A"), make_officer("B")], ServiceTier.CLOSE_PROTECTION, as_of=AS_OF, max_workers=2
        )
        assert report.overall_compliance
        assert report.team_summary.average_score == 64

    def test_empty_team(self, engine):
        report = engine.generate_compliance_report([], ServiceTier.DOOR_SUPERVISION, as_of=AS_OF)

        assert not report.overall_compliance
        assert report.officer_results == ()
        assert report.team_summary.total_officers == 0
        assert report.team_summary.average_score == 0
