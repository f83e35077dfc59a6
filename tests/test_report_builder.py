"""
Tests for report assembly and one-line summaries.
"""
import asyncio
import pytest
from datetime import date

from protectpilot.engine.credentials import CredentialEngine
from protectpilot.engine.martyns_law import MartynsLawPlanner
from protectpilot.engine.registry import SimulatedLicenseRegistry
from protectpilot.engine.report_builder import (
    generate_report,
    summarize_risk_assessment,
    summarize_team_report,
    summarize_verification,
)
from protectpilot.engine.risk_matrix import RiskMatrixEngine
from protectpilot.models import PublicProfile, RequirementStatus, ServiceTier, ThreatLevel
from tests.conftest import AS_OF, make_officer, make_venue


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def planner():
    return MartynsLawPlanner()


@pytest.fixture
def town_hall(planner):
    return planner.build_assessment(
        "VEN-001", "Town Hall", make_venue(capacity=500), ThreatLevel.LOW, as_of=AS_OF
    )


# =============================================================================
# Compliance Report Tests
# =============================================================================

class TestComplianceReport:
    """Tests for the narrative Martyn's Law report."""

    def test_non_compliant_standard_venue(self, planner, town_hall):
        report = generate_report(town_hall, as_of=AS_OF, planner=planner)

        assert report.executive_summary == (
            "Town Hall (capacity: 500) falls under Martyn's Law Standard tier requirements. "
            "Current compliance: 0%. Risk level: Low."
        )
        assert report.compliance_status == "3 critical gaps identified requiring immediate attention"
        assert report.risk_summary == (
            "Terrorism risk assessed as Low. 6 security measures require implementation."
        )
        assert report.key_findings == (
            "Compliance level: Standard tier (500 capacity)",
            "0% of requirements currently met",
            "3 critical security gaps identified",
            "6 actions required for full compliance",
        )
        assert len(report.recommendations) == 4
        assert report.cost_estimate == 15500
        assert report.timeline == "Estimated 2 months for full compliance"

    def test_compliant_venue(self, planner):
        statuses = {f"ML-STANDARD-{i:03d}": RequirementStatus.MET for i in range(1, 7)}
        assessment = planner.build_assessment(
            "VEN-002", "Gallery", make_venue(capacity=300), statuses=statuses, as_of=AS_OF
        )
        report = generate_report(assessment, as_of=AS_OF)

        assert report.compliance_status == "Fully compliant with Martyn's Law requirements"
        assert report.cost_estimate == 0
        assert report.timeline == "No actions required - venue is compliant"

    def test_high_risk_recommendation(self, planner):
        venue = make_venue(
            capacity=2500, location="London", public_profile=PublicProfile.HIGH,
            event_types=("political",),
        )
        assessment = planner.build_assessment("VEN-003", "City Arena", venue, ThreatLevel.HIGH, as_of=AS_OF)
        report = generate_report(assessment, as_of=AS_OF, planner=planner)

        assert "Martyn's Law Enhanced tier" in report.executive_summary
        assert "Risk level: Critical." in report.executive_summary
        assert report.recommendations[-1] == "Consider enhanced security measures given high risk level"
        assert report.timeline == "Estimated 3 months for full compliance"


# =============================================================================
# Summary Tests
# =============================================================================

class TestSummaries:
    """Tests for one-line summaries."""

    def test_risk_summary(self):
        assessment = RiskMatrixEngine().assess([], probability=3, impact=4, as_of=AS_OF)
        assert summarize_risk_assessment(assessment) == (
            "High Risk: P3 x I4 = 12 (Shadow Protocol recommended, 100% confidence)"
        )

    def test_verification_summaries(self):
        engine = CredentialEngine()
        registry = SimulatedLicenseRegistry(latency_seconds=0)
        registry.register("CP12345678", "Jane Doe", date(2024, 1, 15), date(2027, 1, 15))

        verified = asyncio.run(engine.verify_license("CP12345678", registry=registry, as_of=AS_OF))
        missing = asyncio.run(engine.verify_license("CP00000001", registry=registry, as_of=AS_OF))

        assert summarize_verification(verified) == "SIA licence CP12345678 verified"
        assert summarize_verification(missing) == (
            "SIA licence verification failed: SIA license not found in public register"
        )

    def test_pending_verification_summary(self):
        registry = SimulatedLicenseRegistry(latency_seconds=1)
        registry.register("CP12345678", "Jane Doe", date(2024, 1, 15), date(2027, 1, 15))
        result = asyncio.run(
            CredentialEngine().verify_license("CP12345678", registry=registry, timeout=0.01, as_of=AS_OF)
        )
        assert summarize_verification(result).startswith("SIA licence verification pending: ")

    def test_team_summary(self):
        report = CredentialEngine().generate_compliance_report(
            [make_officer("A"), make_officer("B")], ServiceTier.CLOSE_PROTECTION, as_of=AS_OF
        )
        assert summarize_team_report(report) == (
            "2/2 officers compliant for Close Protection (average score 64%)"
        )
