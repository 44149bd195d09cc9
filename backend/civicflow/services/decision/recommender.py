"""Decision recommender combining eligibility and fraud outcomes."""

import logging
from typing import List

from civicflow.core.enums import RecommendedAction
from civicflow.models.domain.decision import Recommendation
from civicflow.models.domain.eligibility import EligibilityResult
from civicflow.models.domain.fraud import FraudAnalysis
from civicflow.services.rule_engine.scoring import format_value

logger = logging.getLogger(__name__)


class DecisionRecommender:
    """
    Recommend a staff action for a scored application.

    Priority order (first match wins):
    1. Fraud analysis requires investigation -> REQUEST_INFO
    2. Eligibility failed with incomplete data -> REQUEST_INFO
    3. Eligibility failed on complete data -> REJECT
    4. Otherwise -> APPROVE
    """

    def recommend(self, eligibility: EligibilityResult, fraud: FraudAnalysis) -> Recommendation:
        """
        Recommend an action.

        Args:
            eligibility: Scorer output
            fraud: Fraud analyzer output

        Returns:
            Recommendation with a non-empty reasoning list
        """
        if fraud.requires_investigation:
            action = RecommendedAction.REQUEST_INFO
            reasoning = [
                f"Fraud review required (risk score {fraud.risk_score})",
                *(flag.description for flag in fraud.flags),
            ]
        elif not eligibility.passed and eligibility.confidence_score < 100:
            action = RecommendedAction.REQUEST_INFO
            reasoning = self._missing_data_reasoning(eligibility)
        elif not eligibility.passed:
            action = RecommendedAction.REJECT
            reasoning = [
                f"Eligibility score {eligibility.score} is below the passing score "
                f"{format_value(eligibility.passing_score)}",
                *eligibility.reasons,
            ]
        else:
            action = RecommendedAction.APPROVE
            reasoning = [
                f"Eligibility score {eligibility.score} meets the passing score "
                f"{format_value(eligibility.passing_score)}"
            ]

        logger.info(
            f"Recommended {action.value} under {', '.join(eligibility.program_rules_applied)}"
        )
        return Recommendation(action=action, reasoning=reasoning)

    @staticmethod
    def _missing_data_reasoning(eligibility: EligibilityResult) -> List[str]:
        missing = eligibility.missing_fields
        return [
            f"Incomplete application data (confidence {eligibility.confidence_score}%); "
            f"missing: {', '.join(missing)}",
            *eligibility.reasons,
        ]
