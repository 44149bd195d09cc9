"""Engine-specific exceptions."""

from datetime import datetime
from typing import Any, Optional, Sequence


class EligibilityEngineError(Exception):
    """Base exception for the eligibility engine"""

    pass


class RuleCatalogError(EligibilityEngineError):
    """Rule catalog document could not be parsed or validated"""

    pass


class NoActiveRuleError(EligibilityEngineError):
    """No rule version covers the requested program type and instant"""

    def __init__(self, program_type: str, as_of: Optional[datetime] = None):
        self.program_type = program_type
        self.as_of = as_of
        when = f" at {as_of.isoformat()}" if as_of else ""
        super().__init__(f"No active program rule for '{program_type}'{when}")


class AmbiguousRuleError(EligibilityEngineError):
    """More than one rule shares the highest active version for a program"""

    def __init__(self, program_type: str, version: int, rule_ids: Sequence[Optional[str]]):
        self.program_type = program_type
        self.version = version
        self.rule_ids = list(rule_ids)
        super().__init__(
            f"{len(self.rule_ids)} active rules for '{program_type}' share version {version}: "
            f"{self.rule_ids}"
        )


class InvalidCriterionTypeError(EligibilityEngineError):
    """Criterion operand types can never be compared by its operator"""

    def __init__(self, field: str, operator: str, value: Any, reason: str):
        self.field = field
        self.operator = operator
        self.value = value
        self.reason = reason
        super().__init__(f"Criterion '{field} {operator} {value!r}' is not evaluable: {reason}")


class FraudLookupFailure(EligibilityEngineError):
    """An injected fraud lookup (duplicate EIN check) failed"""

    pass
