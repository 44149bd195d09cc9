"""Pydantic schemas for versioned program rule configurations.

The JSON form uses camelCase field names (``programType``, ``activeFrom``,
``eligibilityCriteria``, ``passingScore``...). Parsing and dumping with
``by_alias=True`` round-trips a rule document without loss.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel

from civicflow.core.enums import ComparisonOperator
from civicflow.core.fields import is_known_field

Number = Union[int, float]


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RuleSchema(BaseModel):
    """Base for rule documents: camelCase aliases, immutable instances, no unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


# ==================== Criterion Schemas ====================


class EligibilityCriterion(RuleSchema):
    """One weighted, operator-based test against an application field."""

    field: str = Field(..., min_length=1, description="Registered field name (e.g., 'businessAge')")
    operator: ComparisonOperator
    value: Any = Field(..., description="Comparison operand")
    weight: Number = Field(..., ge=0, description="Points awarded when the criterion passes")
    description: str = Field(..., min_length=1)

    @field_validator("field")
    @classmethod
    def validate_field(cls, v: str) -> str:
        """Reject field names without a registered accessor."""
        if not is_known_field(v):
            raise ValueError(f"Unknown eligibility field '{v}'")
        return v


class FundingRange(RuleSchema):
    """Inclusive funding bounds for a program."""

    min: Number = Field(..., ge=0)
    max: Number = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "FundingRange":
        if self.max < self.min:
            raise ValueError("fundingRange.max must not be less than fundingRange.min")
        return self


# ==================== Rule Configuration Schemas ====================


class ProgramRulesConfig(RuleSchema):
    """Rule payload: weighted criteria, scalar bounds and passing threshold."""

    eligibility_criteria: list[EligibilityCriterion] = Field(default_factory=list)
    passing_score: Number = Field(..., ge=0, le=100)
    required_documents: list[str] = Field(default_factory=list)

    min_credit_score: Optional[Number] = None
    max_loan_amount: Optional[Number] = Field(None, ge=0)
    min_business_age: Optional[Number] = Field(None, ge=0)
    max_business_age: Optional[Number] = Field(None, ge=0)
    min_annual_revenue: Optional[Number] = Field(None, ge=0)
    max_applications_per_year: Optional[int] = Field(None, ge=0)
    funding_range: Optional[FundingRange] = None
    interest_rate: Optional[Number] = Field(None, ge=0)
    repayment_term_months: Optional[int] = Field(None, ge=0)

    @property
    def total_weight(self) -> Number:
        return sum(criterion.weight for criterion in self.eligibility_criteria)


class ProgramRule(RuleSchema):
    """A versioned, time-bounded rule set for one program type."""

    id: Optional[str] = None
    program_type: str = Field(..., min_length=1)
    program_name: Optional[str] = None
    version: int = Field(..., ge=1)
    rules: ProgramRulesConfig
    active_from: datetime
    active_to: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("active_from", "active_to", "created_at", "updated_at")
    @classmethod
    def validate_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Normalize timestamps to aware datetimes."""
        return ensure_utc(v) if v is not None else v

    @model_validator(mode="after")
    def validate_window(self) -> "ProgramRule":
        if self.active_to is not None and self.active_to <= self.active_from:
            raise ValueError("activeTo must be later than activeFrom")
        return self

    @property
    def identifier(self) -> str:
        """Stable identifier used in audit output (e.g., 'MICRO_BUSINESS_GRANT:2')."""
        return f"{self.program_type}:{self.version}"

    def is_active_at(self, instant: datetime) -> bool:
        """Check whether the half-open window [active_from, active_to) contains instant."""
        instant = ensure_utc(instant)
        if instant < self.active_from:
            return False
        return self.active_to is None or instant < self.active_to


program_rule_list_adapter = TypeAdapter(list[ProgramRule])
