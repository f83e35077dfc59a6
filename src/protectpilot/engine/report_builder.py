"""
Report Builder -- turns engine results into the narrative and one-line
summaries the host application renders.

No computation of its own beyond counting and formatting: compliance
figures come from MartynsLawPlanner.check_compliance, scores from the
engines that produced them.
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ..models import (
    ComplianceReport,
    MartynsLawAssessment,
    ProtectionTier,
    RequirementStatus,
    RiskAssessment,
    TeamComplianceReport,
    ThreatLevel,
    VerificationResult,
    VerificationStatus,
)
from .martyns_law import MartynsLawPlanner


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ACTIONS_PER_MONTH = 4

_PROTECTION_TIER_DISPLAY: dict[ProtectionTier, str] = {
    ProtectionTier.ESSENTIAL: "Essential Protection",
    ProtectionTier.EXECUTIVE: "Executive Shield",
    ProtectionTier.SHADOW: "Shadow Protocol",
    ProtectionTier.ENHANCED: "Enhanced Security",
}

_BASE_RECOMMENDATIONS = (
    "Prioritize critical security gaps for immediate action",
    "Implement terrorism risk assessment as foundation",
    "Develop comprehensive written security plan",
    "Establish regular review and update procedures",
)

_HIGH_RISK_RECOMMENDATION = "Consider enhanced security measures given high risk level"


def _display(value: str) -> str:
    """'not_applicable' -> 'Not Applicable'."""
    return value.replace("_", " ").title()


# ---------------------------------------------------------------------------
# Martyn's Law report
# ---------------------------------------------------------------------------

def generate_report(
    assessment: MartynsLawAssessment,
    as_of: Optional[datetime] = None,
    planner: Optional[MartynsLawPlanner] = None,
) -> ComplianceReport:
    """
    Narrative compliance report for a venue assessment.

    Cost is the sum of the action plan's estimates; the timeline allows
    four actions per month.
    """
    planner = planner or MartynsLawPlanner()
    compliance = planner.check_compliance(assessment, as_of=as_of)

    tier = _display(assessment.compliance_tier.value)
    risk = _display(assessment.risk_level.value)
    gaps = len(compliance.critical_gaps)
    actions = len(assessment.action_plan)
    unmet = sum(1 for r in assessment.requirements if r.status == RequirementStatus.NOT_MET)

    executive_summary = (
        f"{assessment.venue_name} (capacity: {assessment.capacity}) falls under "
        f"Martyn's Law {tier} tier requirements. "
        f"Current compliance: {compliance.compliance_percentage}%. Risk level: {risk}."
    )

    if compliance.is_compliant:
        status_line = "Fully compliant with Martyn's Law requirements"
    else:
        status_line = f"{gaps} critical gaps identified requiring immediate attention"

    recommendations = list(_BASE_RECOMMENDATIONS)
    if assessment.risk_level in (ThreatLevel.HIGH, ThreatLevel.CRITICAL):
        recommendations.append(_HIGH_RISK_RECOMMENDATION)

    if actions:
        timeline = f"Estimated {math.ceil(actions / ACTIONS_PER_MONTH)} months for full compliance"
    else:
        timeline = "No actions required - venue is compliant"

    return ComplianceReport(
        executive_summary=executive_summary,
        compliance_status=status_line,
        risk_summary=(
            f"Terrorism risk assessed as {risk}. "
            f"{unmet} security measures require implementation."
        ),
        key_findings=(
            f"Compliance level: {tier} tier ({assessment.capacity} capacity)",
            f"{compliance.compliance_percentage}% of requirements currently met",
            f"{gaps} critical security gaps identified",
            f"{actions} actions required for full compliance",
        ),
        recommendations=tuple(recommendations),
        cost_estimate=sum(a.cost for a in assessment.action_plan),
        timeline=timeline,
    )


# ---------------------------------------------------------------------------
# One-line summaries
# ---------------------------------------------------------------------------

def summarize_risk_assessment(assessment: RiskAssessment) -> str:
    tier = _PROTECTION_TIER_DISPLAY[assessment.protection_tier]
    return (
        f"{assessment.band_label}: P{assessment.probability} x I{assessment.impact} "
        f"= {assessment.score} ({tier} recommended, {assessment.confidence}% confidence)"
    )


def summarize_verification(result: VerificationResult) -> str:
    if result.status == VerificationStatus.UNVERIFIABLE:
        return "SIA licence verification pending: " + "; ".join(result.errors)
    if not result.is_valid:
        return "SIA licence verification failed: " + "; ".join(result.errors)

    number = result.license_details.license_number if result.license_details else ""
    summary = f"SIA licence {number} verified".replace("  ", " ")
    if result.warnings:
        summary += " (" + "; ".join(result.warnings) + ")"
    return summary


def summarize_team_report(report: TeamComplianceReport) -> str:
    summary = report.team_summary
    return (
        f"{summary.compliant_officers}/{summary.total_officers} officers compliant "
        f"for {_display(report.tier.value)} (average score {summary.average_score}%)"
    )
