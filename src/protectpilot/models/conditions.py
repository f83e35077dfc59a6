"""
ProtectPilot Rule Conditions

Composable predicates used by catalog rules (threat flags, vulnerability
gaps, likelihood and impact contributions) to test a subject record such
as a VenueProfile.

Key components:
- TriBool: TRUE / FALSE / UNKNOWN with Kleene algebra
- Predicate: one comparison against a field of the subject
- Condition: AND/OR/NOT tree of predicates
- Builders: AND(), OR(), NOT(), PRED() and shorthand comparisons

A rule fires only when its condition evaluates to TRUE. A field that the
subject does not carry yields UNKNOWN, so the rule stays silent rather
than guessing.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .enums import ConditionOperator


LOGICAL_OPERATORS = frozenset({
    ConditionOperator.AND,
    ConditionOperator.OR,
    ConditionOperator.NOT,
})


# =============================================================================
# Three-Valued Logic
# =============================================================================

class TriBool(Enum):
    """
    Kleene three-valued boolean.

        AND: FALSE dominates, then UNKNOWN
        OR:  TRUE dominates, then UNKNOWN
        NOT: UNKNOWN stays UNKNOWN
    """
    TRUE = True
    FALSE = False
    UNKNOWN = None

    def __and__(self, other: TriBool) -> TriBool:
        if not isinstance(other, TriBool):
            return NotImplemented
        if TriBool.FALSE in (self, other):
            return TriBool.FALSE
        if TriBool.UNKNOWN in (self, other):
            return TriBool.UNKNOWN
        return TriBool.TRUE

    def __or__(self, other: TriBool) -> TriBool:
        if not isinstance(other, TriBool):
            return NotImplemented
        if TriBool.TRUE in (self, other):
            return TriBool.TRUE
        if TriBool.UNKNOWN in (self, other):
            return TriBool.UNKNOWN
        return TriBool.FALSE

    def __invert__(self) -> TriBool:
        if self is TriBool.UNKNOWN:
            return TriBool.UNKNOWN
        return TriBool.FALSE if self is TriBool.TRUE else TriBool.TRUE

    def __bool__(self) -> bool:
        """Refuse to collapse UNKNOWN silently."""
        if self is TriBool.UNKNOWN:
            raise ValueError(
                "Cannot convert TriBool.UNKNOWN to bool. "
                "Handle UNKNOWN explicitly in your logic."
            )
        return self is TriBool.TRUE

    @classmethod
    def from_bool(cls, value: Optional[bool]) -> TriBool:
        """Convert Python bool/None to TriBool."""
        if value is None:
            return cls.UNKNOWN
        return cls.TRUE if value else cls.FALSE


# =============================================================================
# Evaluation Result
# =============================================================================

@dataclass
class EvaluationResult:
    """
    Outcome of evaluating a condition against a subject.

    `missing_fields` lists the field paths the subject could not supply
    when the value is UNKNOWN.
    """
    value: TriBool
    explanation: str
    missing_fields: list[str] = field(default_factory=list)
    evaluated_fields: list[str] = field(default_factory=list)

    @property
    def is_satisfied(self) -> bool:
        return self.value is TriBool.TRUE

    @property
    def is_uncertain(self) -> bool:
        return self.value is TriBool.UNKNOWN

    def _merge(self, other: EvaluationResult, value: TriBool, joiner: str) -> EvaluationResult:
        return EvaluationResult(
            value=value,
            explanation=f"({self.explanation}) {joiner} ({other.explanation})",
            missing_fields=sorted(set(self.missing_fields) | set(other.missing_fields)),
            evaluated_fields=self.evaluated_fields + other.evaluated_fields,
        )

    def __and__(self, other: EvaluationResult) -> EvaluationResult:
        return self._merge(other, self.value & other.value, "AND")

    def __or__(self, other: EvaluationResult) -> EvaluationResult:
        return self._merge(other, self.value | other.value, "OR")

    def __invert__(self) -> EvaluationResult:
        return EvaluationResult(
            value=~self.value,
            explanation=f"NOT ({self.explanation})",
            missing_fields=list(self.missing_fields),
            evaluated_fields=list(self.evaluated_fields),
        )


# =============================================================================
# Predicate and Condition
# =============================================================================

@dataclass(frozen=True)
class Predicate:
    """
    A leaf comparison: `<subject.field> <operator> <value>`.

    Attributes:
        field: Dot-notation path on the subject (e.g. "capacity",
            "security_features", "metadata.region")
        operator: Comparison operator
        value: Value to compare against
    """
    field: str
    operator: ConditionOperator
    value: Any = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.operator in LOGICAL_OPERATORS:
            raise ValueError(
                f"Predicate cannot use logical operator '{self.operator.value}'. "
                f"Use Condition for AND/OR/NOT."
            )


@dataclass(frozen=True)
class Condition:
    """
    A condition tree node.

    Logical nodes (AND, OR, NOT) carry `children`; comparison nodes carry
    a `predicate`. NOT takes exactly one child.
    """
    op: ConditionOperator
    children: tuple[Condition, ...] = ()
    predicate: Optional[Predicate] = None
    id: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.op in LOGICAL_OPERATORS:
            if not self.children:
                raise ValueError(f"Logical operator '{self.op.value}' requires children")
            if self.predicate is not None:
                raise ValueError(f"Logical operator '{self.op.value}' cannot have predicate")
            if self.op == ConditionOperator.NOT and len(self.children) != 1:
                raise ValueError("NOT operator must have exactly one child")
        else:
            if self.predicate is None:
                raise ValueError(f"Comparison operator '{self.op.value}' requires predicate")
            if self.children:
                raise ValueError(f"Comparison operator '{self.op.value}' cannot have children")

    @property
    def is_logical(self) -> bool:
        return self.op in LOGICAL_OPERATORS


# =============================================================================
# Builders
# =============================================================================

def AND(*conditions: Condition) -> Condition:
    """All children must hold."""
    return Condition(op=ConditionOperator.AND, children=tuple(conditions))


def OR(*conditions: Condition) -> Condition:
    """At least one child must hold."""
    return Condition(op=ConditionOperator.OR, children=tuple(conditions))


def NOT(condition: Condition) -> Condition:
    """Negate a condition."""
    return Condition(op=ConditionOperator.NOT, children=(condition,))


def PRED(
    field: str,
    operator: ConditionOperator,
    value: Any = None,
    description: Optional[str] = None,
) -> Condition:
    """
    Create a leaf condition.

    Example:
        large_venue = PRED("capacity", ConditionOperator.GT, 1000)
    """
    return Condition(
        op=operator,
        predicate=Predicate(field=field, operator=operator, value=value, description=description),
        description=description or f"{field} {operator.value} {value}",
    )


def EQ(field: str, value: Any) -> Condition:
    return PRED(field, ConditionOperator.EQ, value)


def GT(field: str, value: Any) -> Condition:
    return PRED(field, ConditionOperator.GT, value)


def LT(field: str, value: Any) -> Condition:
    return PRED(field, ConditionOperator.LT, value)


def IN(field: str, values: list[Any]) -> Condition:
    return PRED(field, ConditionOperator.IN, values)


def CONTAINS(field: str, value: Any) -> Condition:
    return PRED(field, ConditionOperator.CONTAINS, value)
