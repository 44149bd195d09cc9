"""Pytest fixtures for testing"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import pytest

from civicflow.core.enums import DocumentType
from civicflow.models.schemas.application import Applicant, Application, DocumentMetadata
from civicflow.models.schemas.program_rule import ProgramRule


class StubApplicantLookup:
    """In-memory applicant lookup keyed by EIN digits"""

    def __init__(self, applicants_by_ein: Optional[Dict[str, List[str]]] = None):
        self.applicants_by_ein = applicants_by_ein or {}
        self.calls: List[str] = []

    def find_applicant_ids_by_ein(self, ein: str) -> Sequence[str]:
        self.calls.append(ein)
        return self.applicants_by_ein.get(ein, [])


class FailingApplicantLookup:
    """Lookup whose backing store is unavailable"""

    def find_applicant_ids_by_ein(self, ein: str) -> Sequence[str]:
        raise ConnectionError("applicant store unavailable")


def make_rule(
    criteria: list,
    passing_score: float = 70,
    program_type: str = "MICRO_BUSINESS_GRANT",
    version: int = 1,
    active_from: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
    active_to: Optional[datetime] = None,
    **config,
) -> ProgramRule:
    """Build a ProgramRule from camelCase criterion dicts"""
    return ProgramRule.model_validate(
        {
            "id": f"{program_type.lower()}-v{version}",
            "programType": program_type,
            "programName": "Test Program",
            "version": version,
            "activeFrom": active_from,
            "activeTo": active_to,
            "rules": {
                "eligibilityCriteria": criteria,
                "passingScore": passing_score,
                "requiredDocuments": config.pop("requiredDocuments", []),
                **config,
            },
        }
    )


@pytest.fixture
def micro_grant_rule() -> ProgramRule:
    """Small Business Recovery Grant, version 1"""
    return make_rule(
        [
            {"field": "businessAge", "operator": ">=", "value": 1, "weight": 20,
             "description": "Business must be at least 1 year old"},
            {"field": "annualRevenue", "operator": ">=", "value": 25000, "weight": 30,
             "description": "Minimum annual revenue of $25,000"},
            {"field": "employeeCount", "operator": "<=", "value": 10, "weight": 15,
             "description": "Maximum 10 employees (micro-business)"},
            {"field": "creditScore", "operator": ">=", "value": 600, "weight": 25,
             "description": "Minimum credit score of 600"},
            {"field": "hasValidEIN", "operator": "==", "value": True, "weight": 10,
             "description": "Valid EIN verification required"},
        ],
        passing_score=70,
        requiredDocuments=["W9", "EIN_VERIFICATION", "BANK_STATEMENT"],
        maxLoanAmount=50000,
        fundingRange={"min": 5000, "max": 50000},
    )


@pytest.fixture
def applicant() -> Applicant:
    return Applicant(
        id="applicant-1",
        business_name="Sunrise Bakery LLC",
        ein="12-3456789",
        email="owner@sunrisebakery.example",
    )


@pytest.fixture
def application() -> Application:
    return Application(
        id="application-1",
        applicant_id="applicant-1",
        program_type="MICRO_BUSINESS_GRANT",
        requested_amount=Decimal("25000"),
        attributes={
            "businessAge": 3,
            "annualRevenue": 120000,
            "employeeCount": 6,
            "creditScore": 710,
        },
    )


@pytest.fixture
def documents() -> List[DocumentMetadata]:
    """Clean, consistent document set covering the required types"""
    return [
        DocumentMetadata(
            id="doc-w9",
            document_type=DocumentType.W9,
            classification_confidence=97,
            extracted_data={"businessName": "Sunrise Bakery LLC", "ein": "12-3456789"},
        ),
        DocumentMetadata(
            id="doc-ein",
            document_type=DocumentType.EIN_VERIFICATION,
            classification_confidence=95,
            extracted_data={"businessName": "Sunrise Bakery, LLC", "ein": "123456789"},
        ),
        DocumentMetadata(
            id="doc-bank",
            document_type=DocumentType.BANK_STATEMENT,
            classification_confidence=91,
            extracted_data={},
        ),
    ]


@pytest.fixture
def lookup() -> StubApplicantLookup:
    return StubApplicantLookup()


@pytest.fixture
def failing_lookup() -> FailingApplicantLookup:
    return FailingApplicantLookup()


@pytest.fixture
def rule_factory():
    """Factory for ad-hoc rules: rule_factory(criteria, passing_score=..., ...)"""
    return make_rule
