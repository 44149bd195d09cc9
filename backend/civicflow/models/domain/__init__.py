"""Domain result models for the engine."""

from civicflow.models.domain.decision import Assessment, Recommendation
from civicflow.models.domain.eligibility import CriterionResult, EligibilityResult
from civicflow.models.domain.fraud import FraudAnalysis, FraudFlag

__all__ = [
    "CriterionResult",
    "EligibilityResult",
    "FraudFlag",
    "FraudAnalysis",
    "Recommendation",
    "Assessment",
]
