"""
ProtectPilot Condition Evaluator

Evaluates catalog rule conditions against a subject record (usually a
VenueProfile) using three-valued logic.

Key features:
- TriBool evaluation (TRUE, FALSE, UNKNOWN)
- Field path resolution over attributes, properties and dict keys
- Stable evaluation order for determinism
- Tracks missing fields for UNKNOWN results
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from ..exceptions import ConditionEvaluationError
from ..models import (
    Condition,
    ConditionOperator,
    EvaluationResult,
    TriBool,
)


logger = logging.getLogger(__name__)

NUMERIC_OPERATORS = frozenset({
    ConditionOperator.GT,
    ConditionOperator.GTE,
    ConditionOperator.LT,
    ConditionOperator.LTE,
    ConditionOperator.BETWEEN,
})

NULL_OPERATORS = frozenset({
    ConditionOperator.IS_NULL,
    ConditionOperator.IS_NOT_NULL,
})


# =============================================================================
# Field Path Resolution
# =============================================================================

def resolve_field_path(obj: Any, path: str) -> tuple[Any, bool]:
    """
    Resolve a dot-notation field path to a value.

    Supports:
    - Object attributes and properties: "capacity", "security_feature_count"
    - Dictionary keys: "metadata.region"
    - Nested paths: "profile.location"

    Returns:
        Tuple of (resolved_value, found). If not found, returns (None, False).
    """
    current = obj

    for part in path.split("."):
        if isinstance(current, dict):
            if part not in current:
                return (None, False)
            current = current[part]
        elif hasattr(current, part):
            current = getattr(current, part)
        else:
            return (None, False)

    return (current, True)


# =============================================================================
# Comparison Operators
# =============================================================================

def compare_values(
    actual: Any,
    operator: ConditionOperator,
    expected: Any,
) -> TriBool:
    """
    Compare two values using the specified operator.

    Enum members compare by their value so catalog strings such as
    "high" match PublicProfile.HIGH.
    """
    if operator == ConditionOperator.IS_NULL:
        return TriBool.from_bool(actual is None)

    if operator == ConditionOperator.IS_NOT_NULL:
        return TriBool.from_bool(actual is not None)

    if actual is None:
        return TriBool.UNKNOWN

    actual = _plain(actual)

    if operator == ConditionOperator.IS_EMPTY:
        if isinstance(actual, (str, list, tuple, dict, set, frozenset)):
            return TriBool.from_bool(len(actual) == 0)
        return TriBool.FALSE

    if operator == ConditionOperator.IS_NOT_EMPTY:
        if isinstance(actual, (str, list, tuple, dict, set, frozenset)):
            return TriBool.from_bool(len(actual) > 0)
        return TriBool.TRUE

    if operator in NUMERIC_OPERATORS:
        actual = _coerce_numeric(actual)
        if isinstance(expected, (list, tuple)):
            expected = tuple(_coerce_numeric(v) for v in expected)
        else:
            expected = _coerce_numeric(expected)

    try:
        if operator == ConditionOperator.EQ:
            return TriBool.from_bool(actual == expected)

        elif operator == ConditionOperator.NE:
            return TriBool.from_bool(actual != expected)

        elif operator == ConditionOperator.GT:
            return TriBool.from_bool(actual > expected)

        elif operator == ConditionOperator.GTE:
            return TriBool.from_bool(actual >= expected)

        elif operator == ConditionOperator.LT:
            return TriBool.from_bool(actual < expected)

        elif operator == ConditionOperator.LTE:
            return TriBool.from_bool(actual <= expected)

        elif operator == ConditionOperator.IN:
            if isinstance(expected, (list, tuple, set, frozenset)):
                return TriBool.from_bool(actual in expected)
            return TriBool.FALSE

        elif operator == ConditionOperator.NOT_IN:
            if isinstance(expected, (list, tuple, set, frozenset)):
                return TriBool.from_bool(actual not in expected)
            return TriBool.TRUE

        elif operator == ConditionOperator.CONTAINS:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.from_bool(expected in actual)
            elif isinstance(actual, (list, tuple, set, frozenset)):
                return TriBool.from_bool(expected in {_plain(a) for a in actual})
            return TriBool.FALSE

        elif operator == ConditionOperator.STARTS_WITH:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.from_bool(actual.startswith(expected))
            return TriBool.FALSE

        elif operator == ConditionOperator.ENDS_WITH:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.from_bool(actual.endswith(expected))
            return TriBool.FALSE

        elif operator == ConditionOperator.MATCHES:
            if isinstance(actual, str) and isinstance(expected, str):
                return TriBool.from_bool(re.search(expected, actual) is not None)
            return TriBool.FALSE

        elif operator == ConditionOperator.BETWEEN:
            if isinstance(expected, (list, tuple)) and len(expected) == 2:
                low, high = expected
                return TriBool.from_bool(low <= actual <= high)
            return TriBool.FALSE

        else:
            return TriBool.UNKNOWN

    except (TypeError, ValueError):
        # Incompatible types
        return TriBool.UNKNOWN


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _coerce_numeric(value: Any) -> Union[int, float, Decimal]:
    """Coerce a value to numeric type for comparison."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value
    if isinstance(value, str):
        try:
            if "." in value:
                return Decimal(value)
            return int(value)
        except (ValueError, ArithmeticError):
            return value
    return value


# =============================================================================
# Condition Evaluator
# =============================================================================

@dataclass
class ConditionEvaluator:
    """
    Evaluates composable conditions against a subject record.

    Usage:
        evaluator = ConditionEvaluator()
        result = evaluator.evaluate(condition, venue)

        if result.is_satisfied:
            ...
        elif result.is_uncertain:
            print(f"Missing fields: {result.missing_fields}")
    """

    def evaluate(self, condition: Condition, subject: Any) -> EvaluationResult:
        """Evaluate a condition against a subject."""
        if condition.is_logical:
            return self._evaluate_logical(condition, subject)
        return self._evaluate_predicate(condition, subject)

    def _evaluate_logical(self, condition: Condition, subject: Any) -> EvaluationResult:
        op = condition.op

        if op == ConditionOperator.AND:
            return self._fold(condition.children, subject, TriBool.TRUE, "AND")
        elif op == ConditionOperator.OR:
            return self._fold(condition.children, subject, TriBool.FALSE, "OR")
        elif op == ConditionOperator.NOT:
            return ~self.evaluate(condition.children[0], subject)
        else:
            raise ConditionEvaluationError(
                message=f"Unknown logical operator: {op}",
                details={"operator": op.value},
            )

    def _fold(
        self,
        children: tuple[Condition, ...],
        subject: Any,
        identity: TriBool,
        label: str,
    ) -> EvaluationResult:
        """
        Combine children with Kleene AND/OR.

        FALSE short-circuits AND, TRUE short-circuits OR. Children are
        visited in a stable order so explanations are deterministic.
        """
        ordered = sorted(children, key=lambda c: c.id or c.description or "")
        result = EvaluationResult(value=identity, explanation=label)
        dominant = TriBool.FALSE if label == "AND" else TriBool.TRUE

        for child in ordered:
            child_result = self.evaluate(child, subject)
            result = result & child_result if label == "AND" else result | child_result
            if result.value is dominant:
                break

        return result

    def _evaluate_predicate(self, condition: Condition, subject: Any) -> EvaluationResult:
        predicate = condition.predicate
        if predicate is None:
            raise ConditionEvaluationError(
                message="Predicate condition missing predicate",
                details={"condition_id": condition.id},
            )

        actual, found = resolve_field_path(subject, predicate.field)

        value = compare_values(actual, predicate.operator, predicate.value)
        if not found and predicate.operator not in NULL_OPERATORS:
            value = TriBool.UNKNOWN

        expr = f"{predicate.field} {predicate.operator.value} {predicate.value}"
        if value is TriBool.TRUE:
            explanation = f"{expr}: PASSED"
        elif value is TriBool.FALSE:
            explanation = f"{expr}: FAILED (actual: {actual})"
        else:
            explanation = f"{expr}: UNKNOWN (missing field)"

        return EvaluationResult(
            value=value,
            explanation=explanation,
            missing_fields=[] if found else [predicate.field],
            evaluated_fields=[predicate.field],
        )

    def get_required_fields(self, condition: Condition) -> set[str]:
        """All subject fields referenced by a condition."""
        fields: set[str] = set()
        self._collect_fields(condition, fields)
        return fields

    def _collect_fields(self, condition: Condition, fields: set[str]) -> None:
        if condition.is_logical:
            for child in condition.children:
                self._collect_fields(child, fields)
        elif condition.predicate:
            fields.add(condition.predicate.field)


# =============================================================================
# Convenience Functions
# =============================================================================

def evaluate_condition(condition: Condition, subject: Any) -> EvaluationResult:
    """Evaluate a condition with a temporary evaluator."""
    return ConditionEvaluator().evaluate(condition, subject)


def check_condition(condition: Condition, subject: Any) -> bool:
    """
    Check if a condition is satisfied (TRUE).

    Returns False for both FALSE and UNKNOWN results.
    """
    result = evaluate_condition(condition, subject)
    if result.is_uncertain:
        logger.debug(
            "Condition %s undetermined, missing fields %s",
            condition.id or condition.description,
            result.missing_fields,
        )
    return result.is_satisfied
