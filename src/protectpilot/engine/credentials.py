"""
ProtectPilot Credential Engine

Checks SIA licences and officer fitness for a requested service tier.

Key features:
- Strict licence number grammar per category
- Asynchronous register lookup with a caller-controlled timeout
- Requirement matching against the tier's requirement profile
- Capped, weighted 0-100 fitness score
- Insurance adequacy per tier and team-level compliance reports

Business-rule problems are returned as data (errors, warnings, missing,
issues); only register transport failures raise.
"""
from __future__ import annotations

import asyncio
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, Union

from ..catalogs.loader import get_default_catalog
from ..config import get_settings
from ..exceptions import InvalidInputError
from ..models import (
    BackgroundCheckType,
    CredentialCatalog,
    InsuranceAdequacy,
    InsuranceLine,
    InsuranceStatus,
    LicenseCategory,
    LicenseStatus,
    OfficerComplianceResult,
    OfficerProfile,
    RequirementCheck,
    ScoreBreakdownItem,
    ScoreCategory,
    ServiceRequirementProfile,
    ServiceTier,
    SIALicense,
    TeamComplianceReport,
    TeamSummary,
    VerificationDepth,
    VerificationResult,
    VerificationScore,
    VerificationStatus,
)
from .registry import LicenseRegistry, SimulatedLicenseRegistry, normalize_license_number


logger = logging.getLogger(__name__)

INVALID_FORMAT_ERROR = "Invalid SIA license number format"
NOT_FOUND_ERROR = "SIA license not found in public register"
EXPIRED_ERROR = "SIA license has expired"


def _default_credential_catalog() -> CredentialCatalog:
    return get_default_catalog().credentials


def _now(as_of: Optional[datetime]) -> datetime:
    return as_of or datetime.now(timezone.utc)


def _coerce_tier(tier: Union[ServiceTier, str]) -> ServiceTier:
    try:
        return ServiceTier(tier)
    except ValueError:
        raise InvalidInputError(
            message=f"Unknown service tier: {tier}",
            details={"tier": str(tier), "valid": [t.value for t in ServiceTier]},
        ) from None


def _holds(held: list[str], wanted: str) -> bool:
    return any(wanted in name for name in held)


# =============================================================================
# Credential Engine
# =============================================================================

@dataclass
class CredentialEngine:
    """
    Licence verification and officer compliance for one rule catalog.

    Usage:
        engine = CredentialEngine()

        check = engine.verify_officer_requirements(officer, ServiceTier.CLOSE_PROTECTION)
        if not check.meets:
            print("Missing:", check.missing)

        score = engine.calculate_verification_score(officer)
        print(f"{score.score}/{score.max_score}")
    """

    catalog: CredentialCatalog = field(default_factory=_default_credential_catalog)
    max_workers: Optional[int] = None

    # -------------------------------------------------------------------------
    # Licence format and register verification
    # -------------------------------------------------------------------------

    def validate_license_format(
        self,
        license_number: str,
        category: Union[LicenseCategory, str],
    ) -> bool:
        """
        True if the number is the category's prefix followed by 8 digits.

        Whitespace anywhere is ignored and case does not matter. An unknown
        category never matches.
        """
        try:
            rule = self.catalog.rule_for(LicenseCategory(category))
        except ValueError:
            return False
        if rule is None:
            return False
        clean = normalize_license_number(license_number)
        return re.fullmatch(rf"{re.escape(rule.prefix)}[0-9]{{8}}", clean) is not None

    def category_for_number(self, license_number: str) -> Optional[LicenseCategory]:
        """The category whose grammar the number matches, if any."""
        for rule in self.catalog.license_categories:
            if self.validate_license_format(license_number, rule.category):
                return rule.category
        return None

    async def verify_license(
        self,
        license_number: str,
        registry: Optional[LicenseRegistry] = None,
        timeout: Optional[float] = None,
        as_of: Optional[datetime] = None,
    ) -> VerificationResult:
        """
        Verify a licence against the SIA register.

        Args:
            license_number: Licence number as entered
            registry: Register to query (simulated register by default)
            timeout: Seconds to wait for the register (PP_REGISTRY_TIMEOUT_SECONDS)
            as_of: Verification timestamp; temporal checks use its date

        Returns:
            VerificationResult. A register timeout yields an UNVERIFIABLE
            result rather than an exception.

        Raises:
            RegistryUnavailableError: If the register cannot be reached
        """
        now = _now(as_of)
        clean = normalize_license_number(license_number)

        if self.category_for_number(clean) is None:
            return self._result(
                now,
                status=VerificationStatus.INVALID,
                depth=VerificationDepth.BASIC,
                recheck_days=self.catalog.invalid_recheck_days,
                errors=[INVALID_FORMAT_ERROR],
            )

        if registry is None:
            registry = SimulatedLicenseRegistry(catalog=self.catalog)
        if timeout is None:
            timeout = get_settings().registry_timeout_seconds

        started = time.monotonic()
        try:
            license = await asyncio.wait_for(registry.fetch_license(clean), timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "SIA register lookup timed out",
                extra={"license_number": clean, "timeout_seconds": timeout},
            )
            return self._result(
                now,
                status=VerificationStatus.UNVERIFIABLE,
                depth=VerificationDepth.BASIC,
                recheck_days=self.catalog.invalid_recheck_days,
                errors=[f"SIA registry did not respond within {timeout:g}s - verification pending"],
            )
        duration_ms = round((time.monotonic() - started) * 1000)

        if license is None:
            result = self._result(
                now,
                status=VerificationStatus.INVALID,
                depth=VerificationDepth.ENHANCED,
                recheck_days=self.catalog.invalid_recheck_days,
                errors=[NOT_FOUND_ERROR],
            )
        else:
            result = self._check_license(license, now)

        logger.info(
            "SIA licence verified",
            extra={
                "license_number": clean,
                "verification_status": result.status.value,
                "duration_ms": duration_ms,
            },
        )
        return result

    def _check_license(self, license: SIALicense, now: datetime) -> VerificationResult:
        errors: list[str] = []
        warnings: list[str] = []
        today = now.date()

        if license.is_expired(today):
            errors.append(EXPIRED_ERROR)
            license = replace(license, status=LicenseStatus.EXPIRED)
        elif license.expiry_date < today + timedelta(days=self.catalog.expiry_warning_days):
            warnings.append(
                f"SIA license expires within {self.catalog.expiry_warning_days} days "
                "- renewal required"
            )

        if license.status in (LicenseStatus.SUSPENDED, LicenseStatus.REVOKED):
            errors.append(f"SIA license is {license.status.value}")

        return self._result(
            now,
            status=VerificationStatus.INVALID if errors else VerificationStatus.VERIFIED,
            depth=VerificationDepth.ENHANCED,
            recheck_days=self.catalog.valid_recheck_days,
            errors=errors,
            warnings=warnings,
            license=license,
        )

    @staticmethod
    def _result(
        now: datetime,
        status: VerificationStatus,
        depth: VerificationDepth,
        recheck_days: int,
        errors: list[str],
        warnings: Optional[list[str]] = None,
        license: Optional[SIALicense] = None,
    ) -> VerificationResult:
        return VerificationResult(
            is_valid=not errors and status == VerificationStatus.VERIFIED,
            status=status,
            verification_level=depth,
            verification_date=now,
            next_check_due=now + timedelta(days=recheck_days),
            errors=tuple(errors),
            warnings=tuple(warnings or ()),
            license_details=license,
        )

    # -------------------------------------------------------------------------
    # Officer requirements
    # -------------------------------------------------------------------------

    def profile_for(self, tier: Union[ServiceTier, str]) -> ServiceRequirementProfile:
        return self.catalog.requirements_for(_coerce_tier(tier))

    def verify_officer_requirements(
        self,
        officer: OfficerProfile,
        tier: Union[ServiceTier, str],
        as_of: Optional[datetime] = None,
    ) -> RequirementCheck:
        """
        Compare an officer with a tier's requirement profile.

        Required items that are absent go to `missing`; absent recommended
        certifications go to `recommendations` and never affect `meets`.

        Raises:
            InvalidInputError: If the tier is unknown
        """
        profile = self.profile_for(tier)
        today = _now(as_of).date()
        missing: list[str] = []
        recommendations: list[str] = []

        if officer.sia_license.sia_level < profile.sia_level:
            missing.append(f"SIA Level {profile.sia_level} license required")

        held = self._held_qualifications(officer)
        for required in profile.required_certifications:
            if not _holds(held, required):
                missing.append(required)

        if not self._has_background_check(officer, profile.dbs_level, today):
            missing.append(f"{profile.dbs_level.label} check required")

        if (
            officer.years_experience is not None
            and officer.years_experience < profile.minimum_experience_years
        ):
            missing.append(
                f"Minimum {profile.minimum_experience_years} years' experience required"
            )

        if profile.requires_service_background and not self._has_service_background(officer):
            missing.append(f"Military or Police background required for {profile.display_name}")

        for recommended in profile.recommended_certifications:
            if not _holds(held, recommended):
                recommendations.append(f"Consider obtaining: {recommended}")

        return RequirementCheck(
            meets=not missing,
            missing=tuple(missing),
            recommendations=tuple(recommendations),
        )

    def _held_qualifications(self, officer: OfficerProfile) -> list[str]:
        """Certification names, licence title, endorsements and extra qualifications."""
        license = officer.sia_license
        held = [c.name for c in officer.additional_certifications]
        rule = self.catalog.rule_for(license.category)
        if rule is not None:
            held.append(rule.title)
        held.extend(license.endorsements)
        held.extend(license.additional_qualifications)
        return held

    def _has_background_check(
        self,
        officer: OfficerProfile,
        required: BackgroundCheckType,
        today: date,
    ) -> bool:
        """A current check ranked at or above the required one."""
        ranks = self.catalog.dbs_ranks
        needed = ranks[required]
        return any(
            check.is_current(today) and ranks.get(check.check_type, 0) >= needed
            for check in officer.background_checks
        )

    def _has_service_background(self, officer: OfficerProfile) -> bool:
        keywords = [k.lower() for k in self.catalog.service_background_keywords]
        return any(
            keyword in specialization.lower()
            for specialization in officer.specializations
            for keyword in keywords
        )

    # -------------------------------------------------------------------------
    # Fitness score
    # -------------------------------------------------------------------------

    def calculate_verification_score(
        self,
        officer: OfficerProfile,
        as_of: Optional[datetime] = None,
    ) -> VerificationScore:
        """
        Weighted fitness score across five capped categories.

        No category can exceed its cap, so the total never exceeds
        max_score (the sum of the caps).
        """
        catalog = self.catalog
        today = _now(as_of).date()
        license = officer.sia_license

        sia_points = 0
        if license.status == LicenseStatus.ACTIVE and not license.is_expired(today):
            sia_points += catalog.license_active_points
            sia_points += catalog.license_level_points.get(license.sia_level, 0)

        current_checks = [c for c in officer.background_checks if c.is_current(today)]
        check_points = sum(
            catalog.background_check_points.get(c.check_type, 0) for c in current_checks
        )

        experience_points = catalog.experience_points.get(officer.experience_level, 0)

        certifications = len(officer.additional_certifications)
        certification_points = certifications * catalog.certification_points

        insurance_points = 0
        for line, points in catalog.insurance_points.items():
            policy = officer.insurance_status.policy_for(line)
            if policy is not None and not policy.is_expired(today):
                insurance_points += points

        breakdown = (
            self._item(
                ScoreCategory.SIA_LICENSE, "SIA License", sia_points,
                f"{license.category.value} - {license.status.value}",
            ),
            self._item(
                ScoreCategory.BACKGROUND_CHECKS, "Background Checks", check_points,
                f"{len(current_checks)} current checks",
            ),
            self._item(
                ScoreCategory.EXPERIENCE, "Experience Level", experience_points,
                officer.experience_level.value,
            ),
            self._item(
                ScoreCategory.CERTIFICATIONS, "Additional Certifications", certification_points,
                f"{certifications} certifications",
            ),
            self._item(
                ScoreCategory.INSURANCE, "Insurance Status", insurance_points,
                "Current insurance coverage",
            ),
        )

        return VerificationScore(
            score=sum(item.score for item in breakdown),
            max_score=catalog.max_score,
            breakdown=breakdown,
        )

    def _item(
        self,
        category: ScoreCategory,
        label: str,
        raw: int,
        details: str,
    ) -> ScoreBreakdownItem:
        cap = self.catalog.score_caps[category]
        return ScoreBreakdownItem(
            category=category,
            label=label,
            score=max(0, min(raw, cap)),
            max_score=cap,
            details=details,
        )

    # -------------------------------------------------------------------------
    # Insurance
    # -------------------------------------------------------------------------

    def verify_insurance_adequacy(
        self,
        insurance: InsuranceStatus,
        tier: Union[ServiceTier, str],
        event_value: Optional[Union[Decimal, int, float]] = None,
        as_of: Optional[datetime] = None,
    ) -> InsuranceAdequacy:
        """
        Check each insurance line for expiry and the tier's minimum cover.

        Recommendations (high-value events, worldwide or kidnap & ransom
        cover) never change `adequate`.

        Raises:
            InvalidInputError: If the tier is unknown
        """
        profile = self.profile_for(tier)
        today = _now(as_of).date()
        issues: list[str] = []
        recommendations: list[str] = []

        for line in InsuranceLine:
            policy = insurance.policy_for(line)
            if policy is None:
                if line == InsuranceLine.EMPLOYERS_LIABILITY and profile.employers_liability_required:
                    issues.append("Employers Liability insurance required")
                continue
            if policy.is_expired(today):
                issues.append(f"{line.display_name} insurance expired")
                continue
            minimum = profile.insurance_minimums.get(line)
            if minimum is not None and policy.coverage_amount < minimum:
                issues.append(f"{line.display_name} coverage below minimum £{minimum:,}")

        if event_value is not None and Decimal(str(event_value)) > self.catalog.high_value_event_threshold:
            recommendations.append(self.catalog.high_value_event_recommendation)
        recommendations.extend(profile.insurance_recommendations)

        return InsuranceAdequacy(
            adequate=not issues,
            issues=tuple(issues),
            recommendations=tuple(recommendations),
        )

    # -------------------------------------------------------------------------
    # Team report
    # -------------------------------------------------------------------------

    def generate_compliance_report(
        self,
        officers: Iterable[OfficerProfile],
        tier: Union[ServiceTier, str],
        as_of: Optional[datetime] = None,
    ) -> TeamComplianceReport:
        """
        Evaluate every officer for a tier and summarise the team.

        Officers are evaluated independently (on a thread pool); the
        summary figures do not depend on officer order.

        Raises:
            InvalidInputError: If the tier is unknown
        """
        service_tier = _coerce_tier(tier)
        now = _now(as_of)
        officers = list(officers)

        if officers:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = tuple(pool.map(
                    lambda officer: self._officer_result(officer, service_tier, now),
                    officers,
                ))
        else:
            results = ()

        compliant = sum(1 for r in results if r.compliant)
        average = round(sum(r.score for r in results) / len(results)) if results else 0
        critical = tuple(sorted({issue for r in results for issue in r.issues}))

        logger.info(
            "Team compliance evaluated",
            extra={"tier": service_tier.value, "officer_count": len(results)},
        )

        return TeamComplianceReport(
            tier=service_tier,
            overall_compliance=bool(results) and compliant == len(results),
            officer_results=results,
            team_summary=TeamSummary(
                total_officers=len(results),
                compliant_officers=compliant,
                average_score=average,
                critical_issues=critical,
            ),
        )

    def _officer_result(
        self,
        officer: OfficerProfile,
        tier: ServiceTier,
        now: datetime,
    ) -> OfficerComplianceResult:
        check = self.verify_officer_requirements(officer, tier, as_of=now)
        score = self.calculate_verification_score(officer, as_of=now)
        return OfficerComplianceResult(
            officer=officer.name,
            compliant=check.meets,
            issues=check.missing,
            score=score.percentage,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def validate_license_format(license_number: str, category: Union[LicenseCategory, str]) -> bool:
    return CredentialEngine().validate_license_format(license_number, category)


async def verify_license(
    license_number: str,
    registry: Optional[LicenseRegistry] = None,
    timeout: Optional[float] = None,
    as_of: Optional[datetime] = None,
) -> VerificationResult:
    """Verify a licence with the default catalog."""
    return await CredentialEngine().verify_license(
        license_number, registry=registry, timeout=timeout, as_of=as_of
    )


def verify_officer_requirements(
    officer: OfficerProfile,
    tier: Union[ServiceTier, str],
    as_of: Optional[datetime] = None,
) -> RequirementCheck:
    return CredentialEngine().verify_officer_requirements(officer, tier, as_of=as_of)


def calculate_verification_score(
    officer: OfficerProfile,
    as_of: Optional[datetime] = None,
) -> VerificationScore:
    return CredentialEngine().calculate_verification_score(officer, as_of=as_of)


def verify_insurance_adequacy(
    insurance: InsuranceStatus,
    tier: Union[ServiceTier, str],
    event_value: Optional[Union[Decimal, int, float]] = None,
    as_of: Optional[datetime] = None,
) -> InsuranceAdequacy:
    return CredentialEngine().verify_insurance_adequacy(
        insurance, tier, event_value=event_value, as_of=as_of
    )


def generate_compliance_report(
    officers: Iterable[OfficerProfile],
    tier: Union[ServiceTier, str],
    as_of: Optional[datetime] = None,
    max_workers: Optional[int] = None,
) -> TeamComplianceReport:
    """Team compliance report with the default catalog."""
    return CredentialEngine(max_workers=max_workers).generate_compliance_report(
        officers, tier, as_of=as_of
    )
