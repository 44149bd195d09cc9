"""CivicFlow eligibility scoring, fraud analysis and decision recommendation core."""

__version__ = "1.0.0"
