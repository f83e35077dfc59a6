"""
ProtectPilot Rule Catalogs

Schema validation and loading for the rule catalogs.

Catalogs are versioned YAML files holding every threshold, weight, band,
checklist and cost table the engines use. Three ship with the package:
risk_matrix.yaml, credentials.yaml and martyns_law.yaml.

Usage:
    from protectpilot.catalogs import get_default_catalog, CatalogLoader

    # Process-wide catalog (packaged data, or PP_CATALOG_DIR)
    catalog = get_default_catalog()

    # Load a directory explicitly
    catalog = CatalogLoader().load_directory("path/to/catalogs")
"""
from __future__ import annotations

from .loader import (
    DATA_DIR,
    CatalogLoader,
    RuleCatalog,
    get_default_catalog,
    load_catalog,
    load_catalog_from_string,
    parse_catalog,
    reset_default_catalog,
    validate_credential_integrity,
    validate_martyns_law_integrity,
    validate_risk_matrix_integrity,
)
from .schema import (
    SCHEMA_VERSION,
    ConditionSchema,
    CredentialCatalogSchema,
    MartynsLawCatalogSchema,
    RiskMatrixCatalogSchema,
    check_schema_version,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "DATA_DIR",
    "CatalogLoader",
    "RuleCatalog",
    "get_default_catalog",
    "load_catalog",
    "load_catalog_from_string",
    "parse_catalog",
    "reset_default_catalog",
    # Validation
    "check_schema_version",
    "validate_credential_integrity",
    "validate_martyns_law_integrity",
    "validate_risk_matrix_integrity",
    # Schemas
    "ConditionSchema",
    "CredentialCatalogSchema",
    "MartynsLawCatalogSchema",
    "RiskMatrixCatalogSchema",
]
