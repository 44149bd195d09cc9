"""Criterion evaluator: one eligibility criterion against one application."""

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional

from civicflow.core.exceptions import InvalidCriterionTypeError
from civicflow.core.fields import get_field_accessor
from civicflow.models.domain.eligibility import CriterionResult
from civicflow.models.schemas.program_rule import EligibilityCriterion
from civicflow.services.rule_engine.operators import compare

logger = logging.getLogger(__name__)


class CriterionEvaluator:
    """
    Evaluator for a single weighted criterion.

    Missing fields and uncomparable operands are normal applicant-data states:
    both produce a failed result with no points instead of an error.
    """

    def evaluate(self, criterion: EligibilityCriterion, attributes: Mapping[str, Any]) -> CriterionResult:
        """
        Resolve the criterion's field from an attribute set and evaluate it.

        Args:
            criterion: Criterion from the active rule
            attributes: The application's attribute set

        Returns:
            CriterionResult with pass/fail and points earned
        """
        accessor = get_field_accessor(criterion.field)
        return self.evaluate_value(criterion, accessor.resolve(attributes))

    def evaluate_value(self, criterion: EligibilityCriterion, actual_value: Any) -> CriterionResult:
        """
        Evaluate a criterion against an already-resolved field value.

        Args:
            criterion: Criterion from the active rule
            actual_value: Field value, or None if the application lacks it

        Returns:
            CriterionResult with pass/fail and points earned
        """
        weight = Decimal(str(criterion.weight))

        if actual_value is None:
            return self._result(criterion, weight, actual_value, passed=False, resolved=False)

        try:
            passed = compare(criterion.operator, actual_value, criterion.value, field=criterion.field)
        except InvalidCriterionTypeError as e:
            logger.warning(f"Criterion treated as failed: {e}")
            return self._result(criterion, weight, actual_value, passed=False, error=e.reason)

        return self._result(criterion, weight, actual_value, passed=passed)

    @staticmethod
    def _result(
        criterion: EligibilityCriterion,
        weight: Decimal,
        actual_value: Any,
        passed: bool,
        resolved: bool = True,
        error: Optional[str] = None,
    ) -> CriterionResult:
        return CriterionResult(
            field=criterion.field,
            description=criterion.description,
            passed=passed,
            actual_value=actual_value,
            expected_value=criterion.value,
            operator=criterion.operator,
            weight=weight,
            points_earned=weight if passed else Decimal("0"),
            resolved=resolved,
            error=error,
        )
