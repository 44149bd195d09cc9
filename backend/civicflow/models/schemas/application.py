"""Pydantic schemas for the application records the engine consumes."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from civicflow.core.enums import DocumentType


# ==================== Applicant Schemas ====================


class Applicant(BaseModel):
    """Applicant identity and contact fields."""

    id: str = Field(..., min_length=1)
    business_name: str = Field(..., min_length=1, max_length=255)
    ein: str = Field(..., min_length=1, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)

    model_config = ConfigDict(frozen=True)

    @property
    def normalized_ein(self) -> str:
        """EIN reduced to its digits."""
        return "".join(ch for ch in self.ein if ch.isdigit())


# ==================== Application Schemas ====================


class Application(BaseModel):
    """
    Application submitted for a program.

    ``attributes`` carries intake data keyed by eligibility field name
    (e.g., {"businessAge": 2, "annualRevenue": 60000}).
    """

    id: str = Field(..., min_length=1)
    applicant_id: str = Field(..., min_length=1)
    program_type: str = Field(..., min_length=1)
    requested_amount: Decimal = Field(..., ge=0)
    attributes: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


# ==================== Document Schemas ====================


class DocumentMetadata(BaseModel):
    """Classification and extraction output for one uploaded document."""

    id: str = Field(..., min_length=1)
    document_type: Optional[DocumentType] = None
    classification_confidence: Optional[float] = Field(None, ge=0, le=100)
    extracted_data: dict[str, Any] = Field(default_factory=dict)
    requires_manual_review: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("document_type", mode="before")
    @classmethod
    def validate_document_type(cls, v: Any) -> Any:
        """Accept document type names case-insensitively."""
        return v.upper() if isinstance(v, str) else v
