"""
Tests for catalog loading and validation.

The packaged catalogs must load cleanly; broken variants of them must be
rejected with the right error class.
"""
import pytest
import yaml

from protectpilot.canon import compute_catalog_hash
from protectpilot.catalogs import (
    DATA_DIR,
    CatalogLoader,
    get_default_catalog,
    load_catalog,
    load_catalog_from_string,
    reset_default_catalog,
)
from protectpilot.exceptions import (
    CatalogLoadError,
    CatalogValidationError,
    CatalogVersionMismatch,
)
from protectpilot.models import (
    ComplianceTier,
    InsuranceLine,
    LicenseCategory,
    RiskAxis,
    RiskBand,
    ServiceTier,
    ThreatLevel,
)


# =============================================================================
# Fixtures
# =============================================================================

def _packaged(name: str) -> dict:
    with open(DATA_DIR / name, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _dump(data: dict) -> str:
    return yaml.safe_dump(data, sort_keys=False)


@pytest.fixture
def risk_matrix_data():
    return _packaged("risk_matrix.yaml")


@pytest.fixture
def credentials_data():
    return _packaged("credentials.yaml")


@pytest.fixture
def martyns_law_data():
    return _packaged("martyns_law.yaml")


# =============================================================================
# Packaged Catalog Tests
# =============================================================================

class TestPackagedCatalogs:
    """Tests that the shipped catalogs load and hold the expected rules."""

    def test_load_directory(self):
        catalog = load_catalog()
        assert catalog.risk_matrix.id == "protectpilot-risk-matrix"
        assert catalog.credentials.id == "protectpilot-credentials"
        assert catalog.martyns_law.id == "protectpilot-martyns-law"
        assert catalog.source == str(DATA_DIR)

    def test_default_catalog_is_cached(self):
        assert get_default_catalog() is get_default_catalog()
        first = get_default_catalog()
        reset_default_catalog()
        assert get_default_catalog() is not first

    def test_bands_partition_score_range(self, catalog):
        """Test every score 1..25 falls in exactly one band."""
        bands = catalog.risk_matrix.bands
        for score in range(1, 26):
            assert sum(1 for b in bands if b.contains(score)) == 1

    def test_band_boundaries(self, catalog):
        risk_matrix = catalog.risk_matrix
        assert risk_matrix.band_for(4).band == RiskBand.GREEN
        assert risk_matrix.band_for(5).band == RiskBand.YELLOW
        assert risk_matrix.band_for(15).band == RiskBand.ORANGE
        assert risk_matrix.band_for(16).band == RiskBand.RED

    def test_factor_axes(self, catalog):
        risk_matrix = catalog.risk_matrix
        assert risk_matrix.factor("received_threats").axis == RiskAxis.PROBABILITY
        assert risk_matrix.factor("dependents_at_risk").axis == RiskAxis.IMPACT
        assert risk_matrix.factor("nonexistent") is None

    def test_credential_rules(self, catalog):
        credentials = catalog.credentials
        assert credentials.rule_for(LicenseCategory.CLOSE_PROTECTION).prefix == "CP"
        assert credentials.max_score == 100
        elite = credentials.requirements_for(ServiceTier.ELITE_PROTECTION)
        assert elite.requires_service_background
        assert elite.insurance_minimums[InsuranceLine.PUBLIC_LIABILITY] == 10_000_000

    def test_martyns_law_rules(self, catalog):
        martyns_law = catalog.martyns_law
        assert martyns_law.standard_threshold == 200
        assert martyns_law.enhanced_threshold == 800
        assert martyns_law.threat_level_points[ThreatLevel.CRITICAL] == 4
        assert len(martyns_law.templates_for(ComplianceTier.ENHANCED)) == 12


# =============================================================================
# Validation Tests
# =============================================================================

class TestCatalogValidation:
    """Tests that malformed catalogs are rejected."""

    def test_round_trip_of_packaged_data(self, risk_matrix_data):
        catalog = load_catalog_from_string(_dump(risk_matrix_data), "risk_matrix")
        assert len(catalog.factors) == 10

    def test_schema_version_mismatch(self, risk_matrix_data):
        risk_matrix_data["schema_version"] = "2.0.0"
        with pytest.raises(CatalogVersionMismatch) as exc_info:
            load_catalog_from_string(_dump(risk_matrix_data), "risk_matrix")
        assert exc_info.value.code == "PP_CATALOG_VERSION_MISMATCH"

    def test_minor_version_accepted(self, credentials_data):
        credentials_data["schema_version"] = "1.4.0"
        catalog = load_catalog_from_string(_dump(credentials_data), "credentials")
        assert catalog.version == "2025.1"

    def test_missing_required_key(self, risk_matrix_data):
        del risk_matrix_data["factors"]
        with pytest.raises(CatalogValidationError):
            load_catalog_from_string(_dump(risk_matrix_data), "risk_matrix")

    def test_unknown_key_rejected(self, martyns_law_data):
        martyns_law_data["surprise"] = True
        with pytest.raises(CatalogValidationError):
            load_catalog_from_string(_dump(martyns_law_data), "martyns_law")

    def test_band_gap_rejected(self, risk_matrix_data):
        """Test bands that leave a score uncovered fail integrity checks."""
        risk_matrix_data["bands"][1]["min_score"] = 6
        with pytest.raises(CatalogValidationError) as exc_info:
            load_catalog_from_string(_dump(risk_matrix_data), "risk_matrix")
        assert "starts at 6" in exc_info.value.details["errors"]

    def test_unknown_factor_in_question(self, risk_matrix_data):
        risk_matrix_data["questions"][0]["options"][0]["factors"] = ["no_such_factor"]
        with pytest.raises(CatalogValidationError):
            load_catalog_from_string(_dump(risk_matrix_data), "risk_matrix")

    def test_duplicate_licence_prefix(self, credentials_data):
        credentials_data["license_categories"][1]["prefix"] = "DS"
        with pytest.raises(CatalogValidationError):
            load_catalog_from_string(_dump(credentials_data), "credentials")

    def test_unordered_breakpoints(self, martyns_law_data):
        martyns_law_data["likelihood"]["breakpoints"].reverse()
        with pytest.raises(CatalogValidationError):
            load_catalog_from_string(_dump(martyns_law_data), "martyns_law")

    def test_document_must_be_mapping(self):
        with pytest.raises(CatalogLoadError):
            load_catalog_from_string("- just\n- a list\n", "risk_matrix")

    def test_unparseable_yaml(self):
        with pytest.raises(CatalogLoadError):
            load_catalog_from_string("key: [unclosed", "risk_matrix")

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            load_catalog_from_string("{}", "tariffs")

    def test_missing_directory(self, tmp_path):
        with pytest.raises(CatalogLoadError):
            CatalogLoader().load_directory(tmp_path)

    def test_catalog_dir_from_environment(self, tmp_path, monkeypatch):
        for name in ("risk_matrix.yaml", "credentials.yaml", "martyns_law.yaml"):
            data = _packaged(name)
            if name == "martyns_law.yaml":
                data["version"] = "2026.1"
            (tmp_path / name).write_text(_dump(data), encoding="utf-8")

        monkeypatch.setenv("PP_CATALOG_DIR", str(tmp_path))
        reset_default_catalog()

        assert get_default_catalog().martyns_law.version == "2026.1"


# =============================================================================
# Catalog Hash Tests
# =============================================================================

class TestCatalogHash:
    def test_hash_independent_of_location(self, tmp_path):
        for name in ("risk_matrix.yaml", "credentials.yaml", "martyns_law.yaml"):
            (tmp_path / name).write_text(
                (DATA_DIR / name).read_text(encoding="utf-8"), encoding="utf-8"
            )
        assert compute_catalog_hash(load_catalog(tmp_path)) == compute_catalog_hash(load_catalog())

    def test_hash_changes_with_content(self, risk_matrix_data):
        original = load_catalog_from_string(_dump(risk_matrix_data), "risk_matrix")
        risk_matrix_data["axis_step"] = 4
        changed = load_catalog_from_string(_dump(risk_matrix_data), "risk_matrix")
        assert compute_catalog_hash(original) != compute_catalog_hash(changed)
        assert len(compute_catalog_hash(original)) == 64
