"""
ProtectPilot Licence Registry

The external SIA public register, seen from the credential engine.

A registry answers one question: what does the register hold for this
licence number? Lookups are asynchronous; the caller bounds them with a
timeout. Transport failures raise RegistryUnavailableError; an unknown
number is a normal answer (None).
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Protocol

from ..catalogs.loader import get_default_catalog
from ..config import get_settings
from ..exceptions import InvalidInputError, RegistryUnavailableError
from ..models import CredentialCatalog, LicenseCategory, LicenseStatus, SIALicense


logger = logging.getLogger(__name__)

DEFAULT_ENDORSEMENTS = ("First Aid at Work", "Conflict Management")
DEFAULT_QUALIFICATIONS = ("Advanced Driving Certificate",)


def normalize_license_number(license_number: str) -> str:
    """Strip all whitespace and upper-case ("cp 1234 5678" -> "CP12345678")."""
    return re.sub(r"\s+", "", license_number).upper()


class LicenseRegistry(Protocol):
    """Anything that can look a licence up on the register."""

    async def fetch_license(self, license_number: str) -> Optional[SIALicense]:
        """
        Return the register entry for a normalized licence number.

        Returns None when the register has no such licence.

        Raises:
            RegistryUnavailableError: If the register cannot be reached
        """
        ...


def _default_credential_catalog() -> CredentialCatalog:
    return get_default_catalog().credentials


def _default_latency() -> float:
    return get_settings().registry_latency_seconds


@dataclass
class SimulatedLicenseRegistry:
    """
    In-memory stand-in for the SIA register.

    Every lookup waits `latency_seconds` before answering, so timeouts
    behave as they would against the real service. Set `available` to
    False to simulate an outage.

    Usage:
        registry = SimulatedLicenseRegistry(latency_seconds=0)
        registry.register("CP12345678", "Jane Doe",
                          date(2024, 1, 15), date(2027, 1, 15))
        result = await verify_license("CP12345678", registry=registry)
    """

    latency_seconds: float = field(default_factory=_default_latency)
    records: dict[str, SIALicense] = field(default_factory=dict)
    available: bool = True
    catalog: CredentialCatalog = field(default_factory=_default_credential_catalog)

    def add(self, license: SIALicense) -> None:
        self.records[normalize_license_number(license.license_number)] = license

    def register(
        self,
        license_number: str,
        holder_name: str,
        issue_date: date,
        expiry_date: date,
        status: LicenseStatus = LicenseStatus.ACTIVE,
        endorsements: tuple[str, ...] = DEFAULT_ENDORSEMENTS,
        additional_qualifications: tuple[str, ...] = DEFAULT_QUALIFICATIONS,
    ) -> SIALicense:
        """
        Add a register entry, taking the category from the number's prefix.

        Raises:
            InvalidInputError: If no licence category uses the prefix
        """
        number = normalize_license_number(license_number)
        category = self._category_for_prefix(number[:2])
        license = SIALicense(
            license_number=number,
            category=category,
            holder_name=holder_name,
            issue_date=issue_date,
            expiry_date=expiry_date,
            status=status,
            endorsements=tuple(endorsements),
            additional_qualifications=tuple(additional_qualifications),
        )
        self.records[number] = license
        return license

    async def fetch_license(self, license_number: str) -> Optional[SIALicense]:
        await asyncio.sleep(self.latency_seconds)
        if not self.available:
            raise RegistryUnavailableError(
                message="SIA register is unavailable",
                subject_id=license_number,
            )
        return self.records.get(normalize_license_number(license_number))

    def _category_for_prefix(self, prefix: str) -> LicenseCategory:
        for rule in self.catalog.license_categories:
            if rule.prefix == prefix:
                return rule.category
        raise InvalidInputError(
            message=f"No SIA licence category uses prefix '{prefix}'",
            details={"prefix": prefix},
        )
