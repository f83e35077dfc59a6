"""
Tests for ProtectPilot models.

Covers result invariants, enum helpers and the small behaviours models
carry themselves (status copies, expiry checks, tier templates).
"""
import pytest
from datetime import date

from protectpilot.models import (
    ActionPriority,
    AssessmentSource,
    BackgroundCheckStatus,
    BackgroundCheckType,
    ComplianceTier,
    Impact,
    InsuranceLine,
    LicenseCategory,
    Likelihood,
    MartynsLawRequirement,
    ProtectionTier,
    RequirementCategory,
    RequirementPriority,
    RequirementStatus,
    RiskAssessment,
    RiskAxis,
    RiskBand,
    RiskFactor,
    VerificationScore,
)
from tests.conftest import AS_OF, TODAY, make_check, make_insurance, make_license


def _assessment(probability: int, impact: int, score: int) -> RiskAssessment:
    return RiskAssessment(
        probability=probability,
        impact=impact,
        score=score,
        band=RiskBand.GREEN,
        band_label="Low Risk",
        color="#28a745",
        protection_tier=ProtectionTier.ESSENTIAL,
        recommendations=(),
        contributing_factors=(),
        confidence=40,
        source=AssessmentSource.MANUAL,
        last_updated=AS_OF,
    )


# =============================================================================
# Risk Model Tests
# =============================================================================

class TestRiskAssessmentInvariant:
    """Tests that a RiskAssessment cannot hold an inconsistent score."""

    def test_consistent_score_accepted(self):
        assert _assessment(2, 2, 4).score == 4

    def test_score_must_equal_product(self):
        with pytest.raises(ValueError, match="probability \\* impact"):
            _assessment(2, 3, 5)

    def test_score_out_of_range(self):
        with pytest.raises(ValueError):
            _assessment(0, 3, 0)


class TestRiskFactor:
    def test_weight_range(self):
        with pytest.raises(ValueError, match="weight must be 1-5"):
            RiskFactor(
                id="x", category="threat_history", name="X", description="",
                weight=6, axis=RiskAxis.PROBABILITY,
            )

    def test_with_active_returns_copy(self):
        factor = RiskFactor(
            id="x", category="threat_history", name="X", description="",
            weight=3, axis=RiskAxis.PROBABILITY,
        )
        active = factor.with_active()
        assert active.is_active
        assert not factor.is_active


# =============================================================================
# Enum Tests
# =============================================================================

class TestEnums:
    """Tests for enum helper properties."""

    def test_band_severity_order(self):
        assert [b.severity for b in RiskBand] == [0, 1, 2, 3]

    def test_action_priority_rank(self):
        assert ActionPriority.CRITICAL.severity_rank == 0
        assert ActionPriority.LOW.severity_rank == 3

    def test_axis_value_scores(self):
        assert Likelihood.VERY_LOW.value_score == 1
        assert Likelihood.VERY_HIGH.value_score == 5
        assert Impact.CATASTROPHIC.value_score == 5

    def test_license_category_level(self):
        assert LicenseCategory.CLOSE_PROTECTION.sia_level == 3
        assert LicenseCategory.DOOR_SUPERVISION.sia_level == 2

    def test_labels(self):
        assert BackgroundCheckType.ENHANCED_DBS_BARRED.label == "Enhanced DBS with Barred List"
        assert InsuranceLine.EMPLOYERS_LIABILITY.display_name == "Employers Liability"

    def test_str_enum_values(self):
        assert ComplianceTier("enhanced") is ComplianceTier.ENHANCED
        assert RiskBand.RED == "red"


# =============================================================================
# Credential Model Tests
# =============================================================================

class TestCredentialModels:
    def test_license_expiry(self):
        license = make_license(expiry_date=date(2025, 5, 31))
        assert license.is_expired(TODAY)
        assert not make_license(expiry_date=TODAY).is_expired(TODAY)

    def test_background_check_current(self):
        assert make_check().is_current(TODAY)
        assert not make_check(expiry_date=date(2025, 1, 1)).is_current(TODAY)
        assert not make_check(status=BackgroundCheckStatus.PENDING).is_current(TODAY)

    def test_policy_lookup(self):
        insurance = make_insurance(employers_liability=None)
        assert insurance.policy_for(InsuranceLine.EMPLOYERS_LIABILITY) is None
        assert insurance.policy_for(InsuranceLine.PUBLIC_LIABILITY) is insurance.public_liability

    def test_score_percentage(self):
        assert VerificationScore(score=64, max_score=100, breakdown=()).percentage == 64
        assert VerificationScore(score=0, max_score=0, breakdown=()).percentage == 0


# =============================================================================
# Venue Model Tests
# =============================================================================

class TestVenueModels:
    def test_requirement_with_status(self):
        requirement = MartynsLawRequirement(
            id="ML-STANDARD-001",
            category=RequirementCategory.RISK_ASSESSMENT,
            requirement="Conduct terrorism risk assessment",
            applicable_for=ComplianceTier.STANDARD,
            responsible="Senior Manager",
            priority=RequirementPriority.HIGH,
        )
        met = requirement.with_status(RequirementStatus.MET, evidence=("report.pdf",))

        assert requirement.status == RequirementStatus.NOT_MET
        assert met.status == RequirementStatus.MET
        assert met.evidence == ("report.pdf",)
        assert met.id == requirement.id

    def test_templates_for_tier(self, catalog):
        martyns_law = catalog.martyns_law
        assert martyns_law.templates_for(ComplianceTier.NOT_APPLICABLE) == []
        assert len(martyns_law.templates_for(ComplianceTier.STANDARD)) == 6
        assert len(martyns_law.templates_for(ComplianceTier.ENHANCED)) == 12
