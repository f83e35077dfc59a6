"""
ProtectPilot Exception Hierarchy

Domain-specific exceptions for the risk and compliance engines.
All exceptions include error codes for tracking and logging.

Business-rule outcomes (expired licences, missing certifications,
underinsured officers, unmet requirements) are NOT exceptions. They are
returned as populated errors/issues/missing lists on result objects.
Only catalog problems, malformed caller input and transport failures raise.

Exception codes follow the pattern: PP_<CATEGORY>_<SPECIFIC>
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ProtectPilotError(Exception):
    """
    Base exception for all ProtectPilot errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (PP_*)
        details: Additional context about the error
        subject_id: Licence number, venue or officer the error relates to
    """
    message: str
    code: str = "PP_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    subject_id: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.subject_id:
            parts.append(f"(subject: {self.subject_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/API responses."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.subject_id:
            result["subject_id"] = self.subject_id
        return result


# =============================================================================
# Catalog Errors
# =============================================================================

@dataclass
class CatalogLoadError(ProtectPilotError):
    """Failed to read a rule catalog file."""
    code: str = "PP_CATALOG_LOAD_ERROR"


@dataclass
class CatalogValidationError(ProtectPilotError):
    """Rule catalog failed schema or integrity validation."""
    code: str = "PP_CATALOG_VALIDATION_ERROR"


@dataclass
class CatalogVersionMismatch(ProtectPilotError):
    """Catalog schema version is incompatible with this release."""
    code: str = "PP_CATALOG_VERSION_MISMATCH"


# =============================================================================
# Rule Evaluation Errors
# =============================================================================

@dataclass
class ConditionEvaluationError(ProtectPilotError):
    """Condition evaluation failed."""
    code: str = "PP_CONDITION_EVAL_ERROR"


@dataclass
class InvalidConditionError(ProtectPilotError):
    """Condition structure is invalid."""
    code: str = "PP_INVALID_CONDITION"


# =============================================================================
# Caller Input Errors
# =============================================================================

@dataclass
class InvalidInputError(ProtectPilotError):
    """
    Caller passed a value outside the engine's domain.

    Raised for programming errors such as an unknown service tier,
    a matrix axis outside 1..5 or a negative venue capacity.
    """
    code: str = "PP_INVALID_INPUT"


# =============================================================================
# Transport Errors
# =============================================================================

@dataclass
class RegistryError(ProtectPilotError):
    """Base class for failures talking to the external licence register."""
    code: str = "PP_REGISTRY_ERROR"


@dataclass
class RegistryUnavailableError(RegistryError):
    """Licence register could not be reached. Callers may retry."""
    code: str = "PP_REGISTRY_UNAVAILABLE"
