"""
ProtectPilot Rule Catalog Schemas

Pydantic models for validating the rule catalog YAML files.

These schemas define the structure of the catalogs loaded at startup.
They map to the frozen catalog dataclasses in protectpilot.models.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders check the major version for compatibility
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Enums as Literals (for YAML validation)
# =============================================================================

RiskAxisValue = Literal["probability", "impact"]

RiskBandValue = Literal["green", "yellow", "orange", "red"]

ProtectionTierValue = Literal["essential", "executive", "shadow", "enhanced"]

LicenseCategoryValue = Literal[
    "level_2_door_supervision", "level_3_close_protection",
    "level_2_security_guarding", "level_2_cctv", "level_2_cash_transit",
]

ServiceTierValue = Literal["door_supervision", "close_protection", "elite_protection"]

BackgroundCheckTypeValue = Literal[
    "basic_dbs", "enhanced_dbs", "enhanced_dbs_barred", "security_clearance"
]

ExperienceLevelValue = Literal["entry", "standard", "experienced", "expert", "elite"]

InsuranceLineValue = Literal[
    "professional_indemnity", "public_liability", "employers_liability"
]

ScoreCategoryValue = Literal[
    "sia_license", "background_checks", "experience", "certifications", "insurance"
]

ComplianceTierValue = Literal["standard", "enhanced"]

RequirementCategoryValue = Literal[
    "risk_assessment", "security_plan", "training",
    "procedures", "communication", "review",
]

PriorityValue = Literal["high", "medium", "low"]

ThreatLevelValue = Literal["low", "medium", "high", "critical"]

VulnerabilityCategoryValue = Literal[
    "physical", "procedure", "staffing", "technical", "communication"
]

MitigationTypeValue = Literal["preventive", "detective", "responsive", "recovery"]

RatingValue = Literal["low", "medium", "high"]

ConditionOperatorValue = Literal[
    "and", "or", "not",
    "eq", "ne", "gt", "lt", "gte", "lte",
    "in", "not_in", "contains", "starts_with", "ends_with",
    "matches", "is_null", "is_not_null", "is_empty", "is_not_empty", "between"
]


class CatalogModel(BaseModel):
    """Base for all catalog schemas: unknown keys are rejected."""
    model_config = {
        "extra": "forbid",
    }


class CatalogHeaderSchema(CatalogModel):
    """Fields every catalog file carries."""
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    id: str = Field(..., description="Unique catalog identifier")
    name: str = Field(..., description="Human-readable name")
    version: str = Field(..., description="Content version (e.g., '2025.1')")
    effective_date: date = Field(..., description="When this version is effective")
    description: Optional[str] = None


# =============================================================================
# Conditions
# =============================================================================

class ConditionSchema(CatalogModel):
    """
    Schema for a composable condition.

    For logical operators (and, or, not), use children.
    For comparison operators, use field and value.
    """
    op: ConditionOperatorValue = Field(..., description="Operator")
    children: Optional[list["ConditionSchema"]] = Field(
        None, description="Child conditions for AND/OR/NOT"
    )
    field: Optional[str] = Field(None, description="Field path for comparison")
    value: Optional[Any] = Field(None, description="Value for comparison")
    id: Optional[str] = Field(None, description="Condition ID")
    description: Optional[str] = Field(None, description="Human-readable description")

    @model_validator(mode="after")
    def validate_structure(self) -> "ConditionSchema":
        """Validate condition structure based on operator type."""
        if self.op in {"and", "or", "not"}:
            if not self.children:
                raise ValueError(f"Logical operator '{self.op}' requires 'children'")
            if self.op == "not" and len(self.children) != 1:
                raise ValueError("NOT operator must have exactly one child")
        elif self.field is None:
            raise ValueError(f"Comparison operator '{self.op}' requires 'field'")
        return self


# =============================================================================
# Risk Matrix Catalog
# =============================================================================

class RiskCategorySchema(CatalogModel):
    id: str = Field(..., description="Category identifier (e.g., 'threat_history')")
    axis: RiskAxisValue = Field(..., description="Matrix axis the category feeds")


class RiskFactorSchema(CatalogModel):
    id: str
    category: str
    name: str
    description: str = ""
    weight: int = Field(..., ge=1, le=5, description="1 (minor) to 5 (severe)")


class RiskBandSchema(CatalogModel):
    band: RiskBandValue
    label: str
    color: str
    min_score: int = Field(..., ge=1, le=25)
    max_score: int = Field(..., ge=1, le=25)
    protection_tier: ProtectionTierValue
    recommendations: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_range(self) -> "RiskBandSchema":
        if self.min_score > self.max_score:
            raise ValueError(f"Band '{self.band}' min_score exceeds max_score")
        return self


class QuestionOptionSchema(CatalogModel):
    value: str
    probability: int = Field(0, ge=0, le=4)
    impact: int = Field(0, ge=0, le=4)
    factors: list[str] = Field(default_factory=list, description="Factor ids this answer activates")


class QuestionSchema(CatalogModel):
    key: str = Field(..., description="Response key (e.g., 'step1')")
    label: str
    options: list[QuestionOptionSchema] = Field(..., min_length=1)


class RiskMatrixCatalogSchema(CatalogHeaderSchema):
    """Top-level schema for risk_matrix.yaml."""
    axis_step: int = Field(3, ge=1, description="Accumulated weight per axis step")
    confidence_floor: int = Field(40, ge=0, le=100)
    base_probability: int = Field(1, ge=1, le=5)
    base_impact: int = Field(1, ge=1, le=5)
    categories: list[RiskCategorySchema] = Field(..., min_length=1)
    factors: list[RiskFactorSchema] = Field(..., min_length=1)
    bands: list[RiskBandSchema] = Field(..., min_length=1)
    questions: list[QuestionSchema] = Field(default_factory=list)


# =============================================================================
# Credential Catalog
# =============================================================================

class LicenseCategorySchema(CatalogModel):
    category: LicenseCategoryValue
    prefix: str = Field(..., pattern=r"^[A-Z]{2}$")
    title: str


class ServiceRequirementSchema(CatalogModel):
    tier: ServiceTierValue
    display_name: str
    sia_level: int = Field(..., ge=1, le=3)
    required_certifications: list[str] = Field(default_factory=list)
    recommended_certifications: list[str] = Field(default_factory=list)
    minimum_experience_years: int = Field(0, ge=0)
    dbs_level: BackgroundCheckTypeValue
    additional_requirements: list[str] = Field(default_factory=list)
    requires_service_background: bool = False
    insurance_minimums: dict[InsuranceLineValue, Decimal] = Field(default_factory=dict)
    employers_liability_required: bool = True
    insurance_recommendations: list[str] = Field(default_factory=list)


class ScoringSchema(CatalogModel):
    caps: dict[ScoreCategoryValue, int]
    license_active: int = Field(..., ge=0)
    license_level: dict[int, int]
    background_checks: dict[BackgroundCheckTypeValue, int]
    experience: dict[ExperienceLevelValue, int]
    per_certification: int = Field(..., ge=0)
    insurance: dict[InsuranceLineValue, int]

    @field_validator("caps")
    @classmethod
    def validate_caps(cls, v: dict[str, int]) -> dict[str, int]:
        missing = set(ScoreCategoryValue.__args__) - set(v)
        if missing:
            raise ValueError(f"Missing score caps: {sorted(missing)}")
        return v


class VerificationSchema(CatalogModel):
    expiry_warning_days: int = Field(30, ge=0)
    invalid_recheck_days: int = Field(30, ge=1)
    valid_recheck_days: int = Field(90, ge=1)


class CredentialCatalogSchema(CatalogHeaderSchema):
    """Top-level schema for credentials.yaml."""
    license_categories: list[LicenseCategorySchema] = Field(..., min_length=1)
    service_requirements: list[ServiceRequirementSchema] = Field(..., min_length=1)
    dbs_ranks: dict[BackgroundCheckTypeValue, int]
    service_background_keywords: list[str] = Field(default_factory=list)
    scoring: ScoringSchema
    verification: VerificationSchema = Field(default_factory=VerificationSchema)
    high_value_event_threshold: Decimal = Field(Decimal("1000000"), ge=0)
    high_value_event_recommendation: str


# =============================================================================
# Martyn's Law Catalog
# =============================================================================

class ThresholdsSchema(CatalogModel):
    standard: int = Field(..., ge=0)
    enhanced: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_order(self) -> "ThresholdsSchema":
        if self.enhanced <= self.standard:
            raise ValueError("enhanced threshold must be above standard threshold")
        return self


class RequirementTemplateSchema(CatalogModel):
    category: RequirementCategoryValue
    requirement: str
    responsible: str
    priority: PriorityValue
    tier: ComplianceTierValue


class FlagRuleSchema(CatalogModel):
    id: str
    text: str
    when: ConditionSchema
    category: Optional[VulnerabilityCategoryValue] = None


class PointsRuleSchema(CatalogModel):
    id: str
    points: int
    when: ConditionSchema
    description: str = ""


class CapacityBracketSchema(CatalogModel):
    above: int = Field(..., ge=0)
    points: int


class BreakpointSchema(CatalogModel):
    min_score: int
    band: str


class LikelihoodSchema(CatalogModel):
    threat_level_points: dict[ThreatLevelValue, int]
    rules: list[PointsRuleSchema] = Field(default_factory=list)
    breakpoints: list[BreakpointSchema] = Field(..., min_length=1)


class ImpactSchema(CatalogModel):
    capacity_brackets: list[CapacityBracketSchema] = Field(default_factory=list)
    rules: list[PointsRuleSchema] = Field(default_factory=list)
    breakpoints: list[BreakpointSchema] = Field(..., min_length=1)


class RiskLevelSchema(CatalogModel):
    breakpoints: list[BreakpointSchema] = Field(..., min_length=1)


class MitigationSchema(CatalogModel):
    id: str
    measure: str
    type: MitigationTypeValue
    effectiveness: RatingValue
    implementation_cost: RatingValue
    timeline_days: int = Field(..., ge=1)
    responsible: str
    risk_levels: list[ThreatLevelValue] = Field(
        default_factory=list, description="Overall levels that trigger it (empty = always)"
    )


class CostEstimateSchema(CatalogModel):
    keyword: str
    cost: int = Field(..., ge=0)


class ActionRulesSchema(CatalogModel):
    critical_categories: list[RequirementCategoryValue]
    critical_deadline_days: int = Field(..., ge=1)
    escalation_risk_levels: list[ThreatLevelValue]
    escalation_deadline_days: int = Field(..., ge=1)
    default_deadline_days: int = Field(..., ge=1)


class MartynsLawCatalogSchema(CatalogHeaderSchema):
    """Top-level schema for martyns_law.yaml."""
    thresholds: ThresholdsSchema
    requirements: list[RequirementTemplateSchema] = Field(..., min_length=1)
    threat_rules: list[FlagRuleSchema] = Field(default_factory=list)
    vulnerability_rules: list[FlagRuleSchema] = Field(default_factory=list)
    likelihood: LikelihoodSchema
    impact: ImpactSchema
    risk_level: RiskLevelSchema
    mitigations: list[MitigationSchema] = Field(default_factory=list)
    cost_estimates: list[CostEstimateSchema] = Field(default_factory=list)
    default_cost: int = Field(2000, ge=0)
    action_rules: ActionRulesSchema
    review_interval_days: int = Field(90, ge=1)

    @model_validator(mode="after")
    def validate_vulnerability_categories(self) -> "MartynsLawCatalogSchema":
        for rule in self.vulnerability_rules:
            if rule.category is None:
                raise ValueError(f"Vulnerability rule '{rule.id}' requires 'category'")
        return self


# =============================================================================
# Validation Helpers
# =============================================================================

def check_schema_version(data: dict[str, Any]) -> bool:
    """
    Check if a catalog's schema version is compatible.

    Only the major version has to match.
    """
    catalog_version = str(data.get("schema_version", SCHEMA_VERSION))
    return catalog_version.split(".")[0] == SCHEMA_VERSION.split(".")[0]
