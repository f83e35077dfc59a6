"""
ProtectPilot Rule Catalog Loader

Loads and validates the rule catalogs from YAML files.

Converts Pydantic schema models to frozen ProtectPilot catalog models and
checks their reference integrity. The packaged catalogs (or the directory
named by PP_CATALOG_DIR) are loaded once per process by
get_default_catalog().
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from ..config import get_settings
from ..exceptions import CatalogLoadError, CatalogValidationError, CatalogVersionMismatch
from ..models import (
    ActionPlanRules,
    BackgroundCheckType,
    Breakpoint,
    CapacityBracket,
    ComplianceTier,
    Condition,
    ConditionOperator,
    CostEstimate,
    CredentialCatalog,
    ExperienceLevel,
    FlagRule,
    Impact,
    InsuranceLine,
    LicenseCategory,
    LicenseCategoryRule,
    Likelihood,
    MartynsLawCatalog,
    MitigationTemplate,
    MitigationType,
    PointsRule,
    Predicate,
    ProtectionTier,
    QuestionMapping,
    QuestionOption,
    Rating,
    RequirementCategory,
    RequirementPriority,
    RequirementTemplate,
    RiskAxis,
    RiskBand,
    RiskBandDefinition,
    RiskFactor,
    RiskMatrixCatalog,
    ScoreCategory,
    ServiceRequirementProfile,
    ServiceTier,
    ThreatLevel,
    VulnerabilityCategory,
)
from ..models.conditions import LOGICAL_OPERATORS
from ..models.risk import MAX_SCORE, MIN_SCORE
from .schema import (
    SCHEMA_VERSION,
    BreakpointSchema,
    ConditionSchema,
    CredentialCatalogSchema,
    FlagRuleSchema,
    MartynsLawCatalogSchema,
    PointsRuleSchema,
    RiskMatrixCatalogSchema,
    ServiceRequirementSchema,
    check_schema_version,
)


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

RISK_MATRIX_FILE = "risk_matrix.yaml"
CREDENTIALS_FILE = "credentials.yaml"
MARTYNS_LAW_FILE = "martyns_law.yaml"

SchemaT = TypeVar("SchemaT", bound=BaseModel)
CatalogT = TypeVar("CatalogT")


@dataclass(frozen=True)
class RuleCatalog:
    """The three rule tables the engines run on."""
    risk_matrix: RiskMatrixCatalog
    credentials: CredentialCatalog
    martyns_law: MartynsLawCatalog
    source: str = ""


# =============================================================================
# Reference Integrity Validation
# =============================================================================

def _duplicates(values: list[Any]) -> list[Any]:
    seen: set[Any] = set()
    dupes: list[Any] = []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def _raise_integrity(errors: list[str], path: str) -> None:
    if errors:
        path_str = f" in {path}" if path else ""
        raise ValueError(
            f"Reference integrity errors{path_str}:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )


def validate_risk_matrix_integrity(catalog: RiskMatrixCatalog, path: str = "") -> None:
    """
    Validate a risk matrix catalog.

    Catches:
    - Duplicate factor ids and question keys
    - Factors in undeclared categories
    - Bands that do not partition 1..25 in ascending severity
    - Questionnaire options that activate unknown factors

    Raises:
        ValueError: If reference integrity errors are found
    """
    errors: list[str] = []

    for dup in _duplicates([f.id for f in catalog.factors]):
        errors.append(f"Duplicate factor ID: '{dup}'")

    for factor in catalog.factors:
        if factor.category not in catalog.category_axes:
            errors.append(f"Factor '{factor.id}' references unknown category '{factor.category}'")

    bands = sorted(catalog.bands, key=lambda b: b.min_score)
    expected_min = MIN_SCORE
    for band in bands:
        if band.min_score != expected_min:
            errors.append(
                f"Band '{band.band.value}' starts at {band.min_score}, expected {expected_min}"
            )
        expected_min = band.max_score + 1
    if bands and bands[-1].max_score != MAX_SCORE:
        errors.append(f"Bands end at {bands[-1].max_score}, expected {MAX_SCORE}")
    severities = [b.band.severity for b in bands]
    if severities != sorted(severities) or _duplicates(severities):
        errors.append("Bands must increase in severity with score")

    for dup in _duplicates([q.key for q in catalog.questions]):
        errors.append(f"Duplicate question key: '{dup}'")

    factor_ids = {f.id for f in catalog.factors}
    for question in catalog.questions:
        for dup in _duplicates([o.value for o in question.options]):
            errors.append(f"Question '{question.key}' has duplicate option '{dup}'")
        for option in question.options:
            for factor_id in option.factor_ids:
                if factor_id not in factor_ids:
                    errors.append(
                        f"Question '{question.key}' option '{option.value}' "
                        f"references unknown factor '{factor_id}'"
                    )

    _raise_integrity(errors, path)


def validate_credential_integrity(catalog: CredentialCatalog, path: str = "") -> None:
    """
    Validate a credential catalog.

    Every licence category needs a unique prefix and every service tier
    needs a requirement profile.

    Raises:
        ValueError: If reference integrity errors are found
    """
    errors: list[str] = []

    for dup in _duplicates([r.category for r in catalog.license_categories]):
        errors.append(f"Duplicate licence category: '{dup.value}'")
    for dup in _duplicates([r.prefix for r in catalog.license_categories]):
        errors.append(f"Duplicate licence prefix: '{dup}'")
    for category in LicenseCategory:
        if catalog.rule_for(category) is None:
            errors.append(f"No rule for licence category '{category.value}'")

    for tier in ServiceTier:
        if tier not in catalog.service_requirements:
            errors.append(f"No requirement profile for service tier '{tier.value}'")

    for profile in catalog.service_requirements.values():
        if profile.dbs_level not in catalog.dbs_ranks:
            errors.append(
                f"Tier '{profile.tier.value}' requires unranked check '{profile.dbs_level.value}'"
            )

    _raise_integrity(errors, path)


def _check_breakpoints(
    name: str,
    breakpoints: tuple[Breakpoint, ...],
    band_type: type,
    errors: list[str],
) -> None:
    scores = [bp.min_score for bp in breakpoints]
    if scores != sorted(scores, reverse=True) or _duplicates(scores):
        errors.append(f"{name} breakpoints must be strictly descending")
    for bp in breakpoints:
        try:
            band_type(bp.band)
        except ValueError:
            errors.append(f"{name} breakpoint has unknown band '{bp.band}'")


def validate_martyns_law_integrity(catalog: MartynsLawCatalog, path: str = "") -> None:
    """
    Validate a Martyn's Law catalog.

    Catches duplicate rule ids, unordered breakpoints or capacity brackets,
    unknown band names and a missing standard checklist.

    Raises:
        ValueError: If reference integrity errors are found
    """
    errors: list[str] = []

    rule_ids = [r.id for r in catalog.threat_rules + catalog.vulnerability_rules]
    rule_ids += [r.id for r in catalog.likelihood_rules + catalog.impact_rules]
    for dup in _duplicates(rule_ids):
        errors.append(f"Duplicate rule ID: '{dup}'")

    for dup in _duplicates([m.id for m in catalog.mitigations]):
        errors.append(f"Duplicate mitigation ID: '{dup}'")

    if not catalog.templates_for(ComplianceTier.STANDARD):
        errors.append("No standard tier requirements defined")

    for dup in _duplicates([t.requirement for t in catalog.requirements]):
        errors.append(f"Duplicate requirement: '{dup}'")

    _check_breakpoints("Likelihood", catalog.likelihood_breakpoints, Likelihood, errors)
    _check_breakpoints("Impact", catalog.impact_breakpoints, Impact, errors)
    _check_breakpoints("Risk level", catalog.risk_level_breakpoints, ThreatLevel, errors)

    brackets = [b.above for b in catalog.impact_brackets]
    if brackets != sorted(brackets, reverse=True) or _duplicates(brackets):
        errors.append("Impact capacity brackets must be strictly descending")

    _raise_integrity(errors, path)


# =============================================================================
# Schema to Model Converters
# =============================================================================

def _convert_condition(schema: ConditionSchema) -> Condition:
    """Convert ConditionSchema to Condition model."""
    op = ConditionOperator(schema.op)

    if op in LOGICAL_OPERATORS:
        return Condition(
            op=op,
            children=tuple(_convert_condition(c) for c in (schema.children or [])),
            id=schema.id,
            description=schema.description,
        )

    value = schema.value
    if isinstance(value, list):
        value = tuple(value)
    predicate = Predicate(
        field=schema.field or "",
        operator=op,
        value=value,
        description=schema.description,
    )
    return Condition(
        op=op,
        predicate=predicate,
        id=schema.id,
        description=schema.description or f"{predicate.field} {op.value} {value}",
    )


def _convert_risk_matrix(schema: RiskMatrixCatalogSchema) -> RiskMatrixCatalog:
    """Convert RiskMatrixCatalogSchema to RiskMatrixCatalog model."""
    category_axes = {c.id: RiskAxis(c.axis) for c in schema.categories}

    factors = tuple(
        RiskFactor(
            id=f.id,
            category=f.category,
            name=f.name,
            description=f.description,
            weight=f.weight,
            # Unknown categories are reported by the integrity check
            axis=category_axes.get(f.category, RiskAxis.PROBABILITY),
        )
        for f in schema.factors
    )

    bands = tuple(
        RiskBandDefinition(
            band=RiskBand(b.band),
            label=b.label,
            color=b.color,
            min_score=b.min_score,
            max_score=b.max_score,
            protection_tier=ProtectionTier(b.protection_tier),
            recommendations=tuple(b.recommendations),
        )
        for b in sorted(schema.bands, key=lambda b: b.min_score)
    )

    questions = tuple(
        QuestionMapping(
            key=q.key,
            label=q.label,
            options=tuple(
                QuestionOption(
                    value=o.value,
                    probability=o.probability,
                    impact=o.impact,
                    factor_ids=tuple(o.factors),
                )
                for o in q.options
            ),
        )
        for q in schema.questions
    )

    return RiskMatrixCatalog(
        id=schema.id,
        version=schema.version,
        factors=factors,
        bands=bands,
        category_axes=category_axes,
        axis_step=schema.axis_step,
        confidence_floor=schema.confidence_floor,
        questions=questions,
        base_probability=schema.base_probability,
        base_impact=schema.base_impact,
    )


def _convert_service_requirement(schema: ServiceRequirementSchema) -> ServiceRequirementProfile:
    """Convert ServiceRequirementSchema to ServiceRequirementProfile model."""
    return ServiceRequirementProfile(
        tier=ServiceTier(schema.tier),
        display_name=schema.display_name,
        sia_level=schema.sia_level,
        required_certifications=tuple(schema.required_certifications),
        recommended_certifications=tuple(schema.recommended_certifications),
        minimum_experience_years=schema.minimum_experience_years,
        dbs_level=BackgroundCheckType(schema.dbs_level),
        additional_requirements=tuple(schema.additional_requirements),
        requires_service_background=schema.requires_service_background,
        insurance_minimums={
            InsuranceLine(line): amount for line, amount in schema.insurance_minimums.items()
        },
        employers_liability_required=schema.employers_liability_required,
        insurance_recommendations=tuple(schema.insurance_recommendations),
    )


def _convert_credentials(schema: CredentialCatalogSchema) -> CredentialCatalog:
    """Convert CredentialCatalogSchema to CredentialCatalog model."""
    scoring = schema.scoring
    return CredentialCatalog(
        id=schema.id,
        version=schema.version,
        license_categories=tuple(
            LicenseCategoryRule(
                category=LicenseCategory(r.category),
                prefix=r.prefix,
                title=r.title,
            )
            for r in schema.license_categories
        ),
        service_requirements={
            ServiceTier(r.tier): _convert_service_requirement(r)
            for r in schema.service_requirements
        },
        dbs_ranks={BackgroundCheckType(k): v for k, v in schema.dbs_ranks.items()},
        service_background_keywords=tuple(schema.service_background_keywords),
        score_caps={ScoreCategory(k): v for k, v in scoring.caps.items()},
        license_active_points=scoring.license_active,
        license_level_points=dict(scoring.license_level),
        background_check_points={
            BackgroundCheckType(k): v for k, v in scoring.background_checks.items()
        },
        experience_points={ExperienceLevel(k): v for k, v in scoring.experience.items()},
        certification_points=scoring.per_certification,
        insurance_points={InsuranceLine(k): v for k, v in scoring.insurance.items()},
        high_value_event_threshold=schema.high_value_event_threshold,
        high_value_event_recommendation=schema.high_value_event_recommendation,
        expiry_warning_days=schema.verification.expiry_warning_days,
        invalid_recheck_days=schema.verification.invalid_recheck_days,
        valid_recheck_days=schema.verification.valid_recheck_days,
    )


def _convert_flag_rule(schema: FlagRuleSchema) -> FlagRule:
    return FlagRule(
        id=schema.id,
        text=schema.text,
        when=_convert_condition(schema.when),
        category=VulnerabilityCategory(schema.category) if schema.category else None,
    )


def _convert_points_rule(schema: PointsRuleSchema) -> PointsRule:
    return PointsRule(
        id=schema.id,
        points=schema.points,
        when=_convert_condition(schema.when),
        description=schema.description,
    )


def _convert_breakpoints(schemas: list[BreakpointSchema]) -> tuple[Breakpoint, ...]:
    return tuple(Breakpoint(min_score=b.min_score, band=b.band) for b in schemas)


def _convert_martyns_law(schema: MartynsLawCatalogSchema) -> MartynsLawCatalog:
    """Convert MartynsLawCatalogSchema to MartynsLawCatalog model."""
    rules = schema.action_rules
    return MartynsLawCatalog(
        id=schema.id,
        version=schema.version,
        standard_threshold=schema.thresholds.standard,
        enhanced_threshold=schema.thresholds.enhanced,
        requirements=tuple(
            RequirementTemplate(
                category=RequirementCategory(r.category),
                requirement=r.requirement,
                responsible=r.responsible,
                priority=RequirementPriority(r.priority),
                tier=ComplianceTier(r.tier),
            )
            for r in sorted(schema.requirements, key=lambda r: r.tier != "standard")
        ),
        threat_rules=tuple(_convert_flag_rule(r) for r in schema.threat_rules),
        vulnerability_rules=tuple(_convert_flag_rule(r) for r in schema.vulnerability_rules),
        threat_level_points={
            ThreatLevel(k): v for k, v in schema.likelihood.threat_level_points.items()
        },
        likelihood_rules=tuple(_convert_points_rule(r) for r in schema.likelihood.rules),
        likelihood_breakpoints=_convert_breakpoints(schema.likelihood.breakpoints),
        impact_brackets=tuple(
            CapacityBracket(above=b.above, points=b.points)
            for b in schema.impact.capacity_brackets
        ),
        impact_rules=tuple(_convert_points_rule(r) for r in schema.impact.rules),
        impact_breakpoints=_convert_breakpoints(schema.impact.breakpoints),
        risk_level_breakpoints=_convert_breakpoints(schema.risk_level.breakpoints),
        mitigations=tuple(
            MitigationTemplate(
                id=m.id,
                measure=m.measure,
                type=MitigationType(m.type),
                effectiveness=Rating(m.effectiveness),
                implementation_cost=Rating(m.implementation_cost),
                timeline_days=m.timeline_days,
                responsible=m.responsible,
                risk_levels=tuple(ThreatLevel(level) for level in m.risk_levels),
            )
            for m in schema.mitigations
        ),
        cost_estimates=tuple(
            CostEstimate(keyword=c.keyword, cost=c.cost) for c in schema.cost_estimates
        ),
        default_cost=schema.default_cost,
        action_rules=ActionPlanRules(
            critical_categories=tuple(RequirementCategory(c) for c in rules.critical_categories),
            critical_deadline_days=rules.critical_deadline_days,
            escalation_risk_levels=tuple(ThreatLevel(t) for t in rules.escalation_risk_levels),
            escalation_deadline_days=rules.escalation_deadline_days,
            default_deadline_days=rules.default_deadline_days,
        ),
        review_interval_days=schema.review_interval_days,
    )


# =============================================================================
# Catalog Loader
# =============================================================================

class CatalogLoader:
    """
    Loads rule catalogs from YAML files.

    Usage:
        loader = CatalogLoader()
        catalog = loader.load_directory("path/to/catalogs")
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject catalogs with incompatible schema versions
        """
        self.strict_version = strict_version

    def load_risk_matrix(self, path: Union[str, Path]) -> RiskMatrixCatalog:
        return self._load(
            Path(path), RiskMatrixCatalogSchema, _convert_risk_matrix, validate_risk_matrix_integrity
        )

    def load_credentials(self, path: Union[str, Path]) -> CredentialCatalog:
        return self._load(
            Path(path), CredentialCatalogSchema, _convert_credentials, validate_credential_integrity
        )

    def load_martyns_law(self, path: Union[str, Path]) -> MartynsLawCatalog:
        return self._load(
            Path(path), MartynsLawCatalogSchema, _convert_martyns_law, validate_martyns_law_integrity
        )

    def load_directory(self, directory: Union[str, Path]) -> RuleCatalog:
        """
        Load all three catalogs from a directory.

        Raises:
            CatalogLoadError: If a file cannot be read
            CatalogValidationError: If validation fails
            CatalogVersionMismatch: If a schema version is incompatible
        """
        directory = Path(directory)
        catalog = RuleCatalog(
            risk_matrix=self.load_risk_matrix(directory / RISK_MATRIX_FILE),
            credentials=self.load_credentials(directory / CREDENTIALS_FILE),
            martyns_law=self.load_martyns_law(directory / MARTYNS_LAW_FILE),
            source=str(directory),
        )
        logger.info(
            "Loaded rule catalogs",
            extra={
                "catalog_dir": str(directory),
                "risk_matrix_version": catalog.risk_matrix.version,
                "credentials_version": catalog.credentials.version,
                "martyns_law_version": catalog.martyns_law.version,
            },
        )
        return catalog

    def _load(
        self,
        path: Path,
        schema_cls: type[SchemaT],
        convert: Callable[[SchemaT], CatalogT],
        validate_integrity: Callable[[CatalogT, str], None],
    ) -> CatalogT:
        try:
            data = self._load_file(path)
        except (OSError, yaml.YAMLError) as e:
            raise CatalogLoadError(
                message=f"Failed to load catalog: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        return parse_catalog(data, schema_cls, convert, validate_integrity, str(path), self.strict_version)

    def _load_file(self, path: Path) -> dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)


def parse_catalog(
    data: Any,
    schema_cls: type[SchemaT],
    convert: Callable[[SchemaT], CatalogT],
    validate_integrity: Callable[[CatalogT, str], None],
    path: str = "",
    strict_version: bool = True,
) -> CatalogT:
    """
    Validate, convert and integrity-check already parsed catalog data.

    Raises:
        CatalogLoadError: If the document is not a mapping
        CatalogValidationError: If validation fails
        CatalogVersionMismatch: If the schema version is incompatible
    """
    if not isinstance(data, dict):
        raise CatalogLoadError(
            message="Catalog document must be a mapping",
            details={"path": path, "type": type(data).__name__},
        )

    if strict_version and not check_schema_version(data):
        catalog_version = data.get("schema_version", "unknown")
        raise CatalogVersionMismatch(
            message=f"Schema version mismatch: catalog has {catalog_version}, expected {SCHEMA_VERSION}",
            details={
                "catalog_version": catalog_version,
                "expected_version": SCHEMA_VERSION,
                "path": path,
            },
        )

    try:
        schema = schema_cls.model_validate(data)
    except ValidationError as e:
        raise CatalogValidationError(
            message=f"Catalog validation failed: {e.error_count()} errors",
            details={"errors": e.errors(include_url=False), "path": path},
        ) from e

    catalog = convert(schema)

    try:
        validate_integrity(catalog, path)
    except ValueError as e:
        raise CatalogValidationError(
            message="Reference integrity validation failed",
            details={"errors": str(e), "path": path},
        ) from e

    return catalog


# =============================================================================
# Convenience Functions
# =============================================================================

def load_catalog_from_string(content: str, kind: str) -> Any:
    """
    Load a single catalog from a YAML string.

    Args:
        content: YAML document
        kind: "risk_matrix", "credentials" or "martyns_law"
    """
    parsers = {
        "risk_matrix": (RiskMatrixCatalogSchema, _convert_risk_matrix, validate_risk_matrix_integrity),
        "credentials": (CredentialCatalogSchema, _convert_credentials, validate_credential_integrity),
        "martyns_law": (MartynsLawCatalogSchema, _convert_martyns_law, validate_martyns_law_integrity),
    }
    if kind not in parsers:
        raise ValueError(f"Unknown catalog kind: {kind}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise CatalogLoadError(message=f"Failed to parse catalog: {e}") from e

    schema_cls, convert, validate_integrity = parsers[kind]
    return parse_catalog(data, schema_cls, convert, validate_integrity)


def load_catalog(directory: Optional[Union[str, Path]] = None) -> RuleCatalog:
    """Load the catalogs from a directory (packaged data by default)."""
    return CatalogLoader().load_directory(directory or DATA_DIR)


@lru_cache(maxsize=1)
def get_default_catalog() -> RuleCatalog:
    """
    Process-wide catalog, loaded on first use.

    Reads PP_CATALOG_DIR when set, otherwise the packaged catalogs.
    """
    settings = get_settings()
    return load_catalog(settings.catalog_dir or DATA_DIR)


def reset_default_catalog() -> None:
    """Forget the cached catalog (tests and configuration reloads)."""
    get_default_catalog.cache_clear()
