"""Pydantic schemas for rule configuration and application input."""

from civicflow.models.schemas.application import (
    Applicant,
    Application,
    DocumentMetadata,
)
from civicflow.models.schemas.program_rule import (
    EligibilityCriterion,
    FundingRange,
    ProgramRule,
    ProgramRulesConfig,
)

__all__ = [
    # Application schemas
    "Applicant",
    "Application",
    "DocumentMetadata",
    # Program rule schemas
    "EligibilityCriterion",
    "FundingRange",
    "ProgramRule",
    "ProgramRulesConfig",
]
