"""Eligibility scoring: weighted aggregation of criterion results."""

import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional

from civicflow.models.domain.eligibility import CriterionResult, EligibilityResult
from civicflow.models.schemas.program_rule import ProgramRule
from civicflow.services.rule_engine.evaluator import CriterionEvaluator

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")


def quantize_score(value: Decimal) -> Decimal:
    """Round to the two decimal places scores are persisted with."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_value(value: Any) -> str:
    """Render a criterion operand for reasoning text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal) and value.is_finite():
        return str(int(value)) if value == value.to_integral_value() else str(value.normalize())
    return str(value)


def describe_failure(result: CriterionResult) -> str:
    """Explain a failed criterion, including actual vs. expected."""
    if not result.resolved:
        return f"{result.description} (not provided)"
    detail = (
        f"actual: {format_value(result.actual_value)}, "
        f"expected {result.operator.value} {format_value(result.expected_value)}"
    )
    if result.error:
        detail = f"{detail}; {result.error}"
    return f"{result.description} ({detail})"


class EligibilityScorer:
    """
    Scorer for an application under one program rule version.

    Evaluates every criterion in declaration order, normalizes the earned
    points by the total weight to a 0-100 score and measures how much of the
    required data was present.
    """

    def __init__(self, evaluator: Optional[CriterionEvaluator] = None):
        """
        Initialize the scorer.

        Args:
            evaluator: Optional CriterionEvaluator (creates a new one if not provided)
        """
        self.evaluator = evaluator or CriterionEvaluator()

    def score(
        self,
        rule: ProgramRule,
        attributes: Mapping[str, Any],
        include_passed_reasons: bool = False,
    ) -> EligibilityResult:
        """
        Score an application against a rule.

        Args:
            rule: The resolved program rule
            attributes: The application's attribute set
            include_passed_reasons: Also list met criteria after the failures

        Returns:
            EligibilityResult with score, verdict, reasons and confidence
        """
        config = rule.rules
        passing_score = Decimal(str(config.passing_score))

        criteria_results: List[CriterionResult] = [
            self.evaluator.evaluate(criterion, attributes)
            for criterion in config.eligibility_criteria
        ]

        total_weight = sum((result.weight for result in criteria_results), Decimal("0"))
        earned = sum((result.points_earned for result in criteria_results), Decimal("0"))

        # A rule with no weight can never be satisfied
        if total_weight > 0:
            score = quantize_score(HUNDRED * earned / total_weight)
            passed = score >= passing_score
        else:
            score = quantize_score(Decimal("0"))
            passed = False

        if criteria_results:
            resolved = sum(1 for result in criteria_results if result.resolved)
            confidence_score = quantize_score(HUNDRED * resolved / len(criteria_results))
        else:
            confidence_score = quantize_score(HUNDRED)

        reasons = self._build_reasons(
            rule, criteria_results, score, passing_score, passed, include_passed_reasons
        )

        result = EligibilityResult(
            score=score,
            passed=passed,
            reasons=reasons,
            program_rules_applied=[rule.identifier],
            confidence_score=confidence_score,
            criteria_results=criteria_results,
            passing_score=passing_score,
        )

        logger.info(
            f"Eligibility scored under {rule.identifier}: score={score} "
            f"passed={passed} confidence={confidence_score}"
        )
        return result

    @staticmethod
    def _build_reasons(
        rule: ProgramRule,
        criteria_results: List[CriterionResult],
        score: Decimal,
        passing_score: Decimal,
        passed: bool,
        include_passed_reasons: bool,
    ) -> List[str]:
        if not criteria_results:
            return [f"No eligibility criteria configured for {rule.identifier}"]

        reasons = [describe_failure(result) for result in criteria_results if not result.passed]

        if not reasons:
            reasons.append(
                f"All {len(criteria_results)} eligibility criteria met "
                f"(score {score} against passing score {format_value(passing_score)})"
            )
        elif include_passed_reasons:
            reasons.extend(
                f"Met: {result.description}" for result in criteria_results if result.passed
            )

        if not passed and all(result.weight == 0 for result in criteria_results):
            reasons.append(f"Criteria for {rule.identifier} carry no weight; score cannot pass")

        return reasons
