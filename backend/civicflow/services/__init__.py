"""Service layer for eligibility, fraud and decision logic."""

from civicflow.services.assessment_service import AssessmentService
from civicflow.services.decision.recommender import DecisionRecommender
from civicflow.services.fraud.analyzer import ApplicantLookup, FraudAnalyzer
from civicflow.services.rule_engine.scoring import EligibilityScorer

__all__ = [
    "AssessmentService",
    "ApplicantLookup",
    "DecisionRecommender",
    "EligibilityScorer",
    "FraudAnalyzer",
]
