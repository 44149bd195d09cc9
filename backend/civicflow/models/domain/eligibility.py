"""Eligibility scoring results."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional

from civicflow.core.enums import ComparisonOperator


def to_jsonable(value: Any) -> Any:
    """Convert Decimals (also nested) to int/float for JSON output."""
    if isinstance(value, Decimal):
        if not value.is_finite():
            return str(value)
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


@dataclass(frozen=True)
class CriterionResult:
    """
    Result of evaluating one criterion against one application.

    Attributes:
        field: Field the criterion tested
        description: Criterion description from the rule
        passed: Whether the comparison held
        actual_value: Value resolved from the application (None if missing)
        expected_value: Operand from the rule
        operator: Comparison operator
        weight: Criterion weight
        points_earned: weight if passed, else 0
        resolved: Whether the field value was present
        error: Type-mismatch explanation when the criterion could not be compared
    """

    field: str
    description: str
    passed: bool
    actual_value: Any
    expected_value: Any
    operator: ComparisonOperator
    weight: Decimal
    points_earned: Decimal
    resolved: bool = True
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "description": self.description,
            "passed": self.passed,
            "actualValue": to_jsonable(self.actual_value),
            "expectedValue": to_jsonable(self.expected_value),
            "operator": self.operator.value,
            "weight": to_jsonable(self.weight),
            "pointsEarned": to_jsonable(self.points_earned),
            "resolved": self.resolved,
            "error": self.error,
        }


@dataclass(frozen=True)
class EligibilityResult:
    """
    Aggregated eligibility outcome for one application under one rule version.

    Attributes:
        score: Weighted score on a 0-100 scale, two decimal places
        passed: score >= passing_score (always False when no weight is configured)
        reasons: Ordered explanations, failures in declaration order
        program_rules_applied: Identifiers of the rule versions used
        confidence_score: Share of criteria whose field was present, 0-100
        criteria_results: Per-criterion results in declaration order
        passing_score: Threshold the score was compared against
    """

    score: Decimal
    passed: bool
    reasons: List[str]
    program_rules_applied: List[str]
    confidence_score: Decimal
    criteria_results: List[CriterionResult] = field(default_factory=list)
    passing_score: Decimal = Decimal("0")

    @property
    def failed_criteria(self) -> List[CriterionResult]:
        return [result for result in self.criteria_results if not result.passed]

    @property
    def missing_fields(self) -> List[str]:
        """Fields that were absent from the application, in declaration order."""
        missing: List[str] = []
        for result in self.criteria_results:
            if not result.resolved and result.field not in missing:
                missing.append(result.field)
        return missing

    def to_dict(self) -> dict:
        return {
            "score": to_jsonable(self.score),
            "passed": self.passed,
            "reasons": list(self.reasons),
            "programRulesApplied": list(self.program_rules_applied),
            "confidenceScore": to_jsonable(self.confidence_score),
            "passingScore": to_jsonable(self.passing_score),
            "criteriaResults": [result.to_dict() for result in self.criteria_results],
        }
