"""Decision recommendation and assessment results."""

from dataclasses import dataclass
from typing import List

from civicflow.core.enums import RecommendedAction
from civicflow.models.domain.eligibility import EligibilityResult
from civicflow.models.domain.fraud import FraudAnalysis
from civicflow.models.schemas.program_rule import ProgramRule


@dataclass(frozen=True)
class Recommendation:
    """Recommended staff action with ordered, non-empty reasoning."""

    action: RecommendedAction
    reasoning: List[str]

    def to_dict(self) -> dict:
        return {"action": self.action.value, "reasoning": list(self.reasoning)}


@dataclass(frozen=True)
class Assessment:
    """
    Full assessment of one application.

    Attributes:
        application_id: The assessed application
        rule: Rule version the application was scored under
        eligibility: Scoring outcome
        missing_documents: Required document types not yet provided
        fraud: Fraud analysis outcome
        recommendation: Recommended action
    """

    application_id: str
    rule: ProgramRule
    eligibility: EligibilityResult
    missing_documents: List[str]
    fraud: FraudAnalysis
    recommendation: Recommendation

    def to_dict(self) -> dict:
        return {
            "applicationId": self.application_id,
            "programRule": self.rule.identifier,
            "programName": self.rule.program_name,
            "eligibility": self.eligibility.to_dict(),
            "missingDocuments": list(self.missing_documents),
            "fraud": self.fraud.to_dict(),
            "recommendation": self.recommendation.to_dict(),
        }
