"""Core enums for type safety across the engine."""

from enum import Enum


class ComparisonOperator(str, Enum):
    """Comparison operators allowed in eligibility criteria."""

    GREATER_OR_EQUAL = ">="
    LESS_OR_EQUAL = "<="
    EQUAL = "=="
    NOT_EQUAL = "!="
    GREATER = ">"
    LESS = "<"

    @property
    def is_numeric(self) -> bool:
        """Ordering operators require numeric operands."""
        return self not in (ComparisonOperator.EQUAL, ComparisonOperator.NOT_EQUAL)


class FieldType(str, Enum):
    """Runtime type of an application field."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"


class DocumentType(str, Enum):
    """Classified document types."""

    W9 = "W9"
    EIN_VERIFICATION = "EIN_VERIFICATION"
    BANK_STATEMENT = "BANK_STATEMENT"
    TAX_RETURN = "TAX_RETURN"
    BUSINESS_LICENSE = "BUSINESS_LICENSE"
    OTHER = "OTHER"


class FraudFlagType(str, Enum):
    """Kinds of anomaly the fraud analyzer can report."""

    DUPLICATE_EIN = "DUPLICATE_EIN"
    SUSPICIOUS_DOCUMENT = "SUSPICIOUS_DOCUMENT"
    DATA_MISMATCH = "DATA_MISMATCH"
    PATTERN_ANOMALY = "PATTERN_ANOMALY"


class FraudSeverity(str, Enum):
    """Fraud flag severity levels."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def risk_points(self) -> int:
        """Contribution of one flag of this severity to the risk score."""
        return _SEVERITY_POINTS[self]

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_POINTS = {
    FraudSeverity.LOW: 10,
    FraudSeverity.MEDIUM: 30,
    FraudSeverity.HIGH: 60,
}

_SEVERITY_RANK = {
    FraudSeverity.LOW: 1,
    FraudSeverity.MEDIUM: 2,
    FraudSeverity.HIGH: 3,
}


class RecommendedAction(str, Enum):
    """Action recommended to staff after an assessment."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_INFO = "REQUEST_INFO"
