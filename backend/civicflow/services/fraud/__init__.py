"""Fraud signal detection."""

from .analyzer import ApplicantLookup, FraudAnalyzer, calculate_risk_score

__all__ = ["ApplicantLookup", "FraudAnalyzer", "calculate_risk_score"]
