"""Fraud analysis results."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from civicflow.core.enums import FraudFlagType, FraudSeverity
from civicflow.models.domain.eligibility import to_jsonable


@dataclass(frozen=True)
class FraudFlag:
    """
    One detected anomaly.

    Attributes:
        type: Kind of anomaly
        severity: LOW, MEDIUM or HIGH
        description: Human-readable explanation (EINs masked)
        evidence: Structured payload identifying the triggering signal
    """

    type: FraudFlagType
    severity: FraudSeverity
    description: str
    evidence: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "evidence": to_jsonable(self.evidence),
        }


@dataclass(frozen=True)
class FraudAnalysis:
    """
    Fraud analysis outcome.

    Attributes:
        risk_score: Severity-weighted score, capped at 100
        flags: Flags in detection order
        requires_investigation: Any HIGH flag, or risk score at/above the threshold
    """

    risk_score: int
    flags: List[FraudFlag]
    requires_investigation: bool

    @property
    def highest_severity(self) -> Optional[FraudSeverity]:
        if not self.flags:
            return None
        return max((flag.severity for flag in self.flags), key=lambda severity: severity.rank)

    def to_dict(self) -> dict:
        return {
            "riskScore": self.risk_score,
            "flags": [flag.to_dict() for flag in self.flags],
            "requiresInvestigation": self.requires_investigation,
        }
