"""
ProtectPilot Engine

Stateless services over the rule catalogs.

Services:
- ConditionEvaluator: Evaluate composable catalog conditions
- RiskMatrixEngine: Client risk on the 5x5 probability x impact matrix
- CredentialEngine: SIA licence verification and officer compliance
- MartynsLawPlanner: Venue tiering, terrorism risk and action plans
- report_builder: Narrative reports and one-line summaries

Usage:
    from protectpilot.engine import (
        RiskMatrixEngine,
        CredentialEngine,
        MartynsLawPlanner,
        generate_report,
    )
"""
from __future__ import annotations

from .condition_evaluator import (
    ConditionEvaluator,
    check_condition,
    compare_values,
    evaluate_condition,
    resolve_field_path,
)
from .credentials import (
    CredentialEngine,
    calculate_verification_score,
    generate_compliance_report,
    validate_license_format,
    verify_insurance_adequacy,
    verify_license,
    verify_officer_requirements,
)
from .martyns_law import (
    MartynsLawPlanner,
    build_assessment,
    check_compliance,
    conduct_terrorism_risk_assessment,
    determine_compliance_tier,
    generate_action_plan,
    generate_requirements,
)
from .registry import (
    LicenseRegistry,
    SimulatedLicenseRegistry,
    normalize_license_number,
)
from .report_builder import (
    generate_report,
    summarize_risk_assessment,
    summarize_team_report,
    summarize_verification,
)
from .risk_matrix import (
    RiskMatrixEngine,
    assess_risk,
    calculate_risk_from_responses,
    default_risk_factors,
    get_risk_matrix_cells,
    get_risk_position,
)

__all__ = [
    # Conditions
    "ConditionEvaluator",
    "check_condition",
    "compare_values",
    "evaluate_condition",
    "resolve_field_path",
    # Risk matrix
    "RiskMatrixEngine",
    "assess_risk",
    "calculate_risk_from_responses",
    "default_risk_factors",
    "get_risk_matrix_cells",
    "get_risk_position",
    # Credentials
    "CredentialEngine",
    "LicenseRegistry",
    "SimulatedLicenseRegistry",
    "calculate_verification_score",
    "generate_compliance_report",
    "normalize_license_number",
    "validate_license_format",
    "verify_insurance_adequacy",
    "verify_license",
    "verify_officer_requirements",
    # Martyn's Law
    "MartynsLawPlanner",
    "build_assessment",
    "check_compliance",
    "conduct_terrorism_risk_assessment",
    "determine_compliance_tier",
    "generate_action_plan",
    "generate_requirements",
    # Reports
    "generate_report",
    "summarize_risk_assessment",
    "summarize_team_report",
    "summarize_verification",
]
