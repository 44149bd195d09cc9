"""Unit tests for fraud analysis"""

from decimal import Decimal

import pytest

from civicflow.core.enums import DocumentType, FraudFlagType, FraudSeverity
from civicflow.core.exceptions import FraudLookupFailure
from civicflow.models.domain.fraud import FraudFlag
from civicflow.models.schemas.application import DocumentMetadata
from civicflow.observability.logging import mask_ein
from civicflow.services.fraud.analyzer import FraudAnalyzer, calculate_risk_score
from civicflow.services.fraud.similarity import normalize_identifier, normalize_text, similarity


@pytest.fixture
def analyzer(lookup):
    return FraudAnalyzer(lookup)


def _document(doc_id, confidence=95, manual_review=False, **extracted):
    return DocumentMetadata(
        id=doc_id,
        document_type=DocumentType.OTHER,
        classification_confidence=confidence,
        extracted_data=extracted,
        requires_manual_review=manual_review,
    )


def test_clean_application_has_no_flags(analyzer, applicant, application, documents, micro_grant_rule):
    result = analyzer.analyze(applicant, application, documents, rule=micro_grant_rule)

    assert result.flags == []
    assert result.risk_score == 0
    assert not result.requires_investigation
    assert result.highest_severity is None


def test_duplicate_ein_is_high_severity(analyzer, lookup, applicant, application):
    lookup.applicants_by_ein["123456789"] = ["applicant-1", "applicant-9", "applicant-3"]

    result = analyzer.analyze(applicant, application)

    assert lookup.calls == ["123456789"]
    assert len(result.flags) == 1
    flag = result.flags[0]
    assert flag.type == FraudFlagType.DUPLICATE_EIN
    assert flag.severity == FraudSeverity.HIGH
    assert flag.evidence == {"duplicateApplicantIds": ["applicant-3", "applicant-9"], "count": 2}
    assert result.risk_score == 60
    assert result.requires_investigation


def test_duplicate_ein_description_masks_ein(analyzer, lookup, applicant, application):
    lookup.applicants_by_ein["123456789"] = ["applicant-2"]

    flag = analyzer.analyze(applicant, application).flags[0]

    assert "***-***6789" in flag.description
    assert "123456789" not in flag.description
    assert "12-3456789" not in flag.description


def test_own_record_is_not_a_duplicate(analyzer, lookup, applicant, application):
    lookup.applicants_by_ein["123456789"] = ["applicant-1"]

    result = analyzer.analyze(applicant, application)

    assert result.flags == []


def test_lookup_failure_propagates(failing_lookup, applicant, application):
    """A failed duplicate check must not read as a clean result"""
    analyzer = FraudAnalyzer(failing_lookup)

    with pytest.raises(FraudLookupFailure) as exc_info:
        analyzer.analyze(applicant, application)

    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert "6789" in str(exc_info.value)
    assert "123456789" not in str(exc_info.value)


@pytest.mark.parametrize(
    "confidence,severity",
    [
        (45, FraudSeverity.MEDIUM),
        (30, FraudSeverity.HIGH),
        (5, FraudSeverity.HIGH),
    ],
)
def test_low_confidence_document(analyzer, applicant, application, confidence, severity):
    result = analyzer.analyze(applicant, application, [_document("doc-1", confidence=confidence)])

    assert len(result.flags) == 1
    flag = result.flags[0]
    assert flag.type == FraudFlagType.SUSPICIOUS_DOCUMENT
    assert flag.severity == severity
    assert flag.evidence["documentId"] == "doc-1"
    assert flag.evidence["documentType"] == "OTHER"


def test_confidence_at_threshold_is_not_suspicious(analyzer, applicant, application):
    result = analyzer.analyze(applicant, application, [_document("doc-1", confidence=60)])

    assert result.flags == []


def test_manual_review_document(analyzer, applicant, application):
    result = analyzer.analyze(applicant, application, [_document("doc-1", manual_review=True)])

    assert [(f.type, f.severity) for f in result.flags] == [
        (FraudFlagType.SUSPICIOUS_DOCUMENT, FraudSeverity.MEDIUM)
    ]
    assert result.flags[0].evidence["requiresManualReview"] is True


def test_medium_flags_reach_investigation_threshold(analyzer, applicant, application):
    """Two MEDIUM flags score 60, above the default threshold of 50"""
    documents = [_document("doc-1", manual_review=True), _document("doc-2", manual_review=True)]

    result = analyzer.analyze(applicant, application, documents)

    assert result.risk_score == 60
    assert result.highest_severity == FraudSeverity.MEDIUM
    assert result.requires_investigation


def test_business_name_mismatch(analyzer, applicant, application):
    documents = [
        _document("doc-1", businessName="Sunrise Bakery, LLC"),
        _document("doc-2", businessName="Moonlight Auto Repair Inc"),
    ]

    result = analyzer.analyze(applicant, application, documents)

    assert len(result.flags) == 1
    flag = result.flags[0]
    assert flag.type == FraudFlagType.DATA_MISMATCH
    assert flag.severity == FraudSeverity.MEDIUM
    assert flag.evidence["field"] == "businessName"
    pairs = {(m["left"], m["right"]) for m in flag.evidence["mismatches"]}
    assert pairs == {("applicant", "document:doc-2"), ("document:doc-1", "document:doc-2")}
    assert not result.requires_investigation


def test_minor_name_differences_are_tolerated(analyzer, applicant, application):
    documents = [_document("doc-1", businessName="SUNRISE BAKERY LLC."), _document("doc-2", businessName="Sunrise Bakery LLC")]

    result = analyzer.analyze(applicant, application, documents)

    assert result.flags == []


def test_ein_mismatch_is_exact_and_masked(analyzer, applicant, application):
    documents = [_document("doc-1", ein="12-3456788")]

    result = analyzer.analyze(applicant, application, documents)

    assert len(result.flags) == 1
    flag = result.flags[0]
    assert flag.evidence["field"] == "ein"
    assert flag.evidence["threshold"] == 1.0
    assert flag.evidence["values"] == {"applicant": "***-***6789", "document:doc-1": "***-***6788"}


def test_revenue_ratio_anomaly(analyzer, applicant, application, micro_grant_rule):
    application = application.model_copy(
        update={"requested_amount": Decimal("45000"), "attributes": {"annualRevenue": 20000}}
    )

    result = analyzer.analyze(applicant, application, rule=micro_grant_rule)

    assert len(result.flags) == 1
    flag = result.flags[0]
    assert flag.type == FraudFlagType.PATTERN_ANOMALY
    assert flag.severity == FraudSeverity.LOW
    assert flag.evidence["ratio"] == Decimal("2.25")
    assert result.risk_score == 10
    assert not result.requires_investigation


def test_no_revenue_anomaly(analyzer, applicant, application):
    application = application.model_copy(update={"attributes": {"annualRevenue": 0}})

    result = analyzer.analyze(applicant, application)

    assert [f.type for f in result.flags] == [FraudFlagType.PATTERN_ANOMALY]
    assert "no reported annual revenue" in result.flags[0].description


def test_revenue_from_documents_is_used(analyzer, applicant, application):
    application = application.model_copy(update={"attributes": {}})
    documents = [_document("doc-1", annualRevenue="5,000")]

    result = analyzer.analyze(applicant, application, documents)

    assert [f.type for f in result.flags] == [FraudFlagType.PATTERN_ANOMALY]
    assert result.flags[0].evidence["annualRevenue"] == Decimal("5000")


def test_request_outside_funding_range(analyzer, applicant, application, micro_grant_rule):
    application = application.model_copy(update={"requested_amount": Decimal("2000")})

    result = analyzer.analyze(applicant, application, rule=micro_grant_rule)

    assert len(result.flags) == 1
    assert "funding range 5000-50000" in result.flags[0].description


def test_funding_checks_need_a_rule(analyzer, applicant, application):
    application = application.model_copy(update={"requested_amount": Decimal("2000")})

    result = analyzer.analyze(applicant, application)

    assert result.flags == []


def test_risk_score_is_capped(analyzer, lookup, applicant, application):
    lookup.applicants_by_ein["123456789"] = ["applicant-2"]
    documents = [_document(f"doc-{i}", confidence=10) for i in range(3)]

    result = analyzer.analyze(applicant, application, documents)

    assert len(result.flags) == 4
    assert result.risk_score == 100


def test_flags_keep_detection_order(analyzer, lookup, applicant, application):
    lookup.applicants_by_ein["123456789"] = ["applicant-2"]
    application = application.model_copy(update={"attributes": {"annualRevenue": 1000}})
    documents = [_document("doc-1", confidence=50, businessName="Unrelated Holdings")]

    result = analyzer.analyze(applicant, application, documents)

    assert [f.type for f in result.flags] == [
        FraudFlagType.DUPLICATE_EIN,
        FraudFlagType.SUSPICIOUS_DOCUMENT,
        FraudFlagType.DATA_MISMATCH,
        FraudFlagType.PATTERN_ANOMALY,
    ]


def test_thresholds_can_be_overridden(lookup, applicant, application):
    analyzer = FraudAnalyzer(lookup, confidence_threshold=90, investigation_threshold=20)

    result = analyzer.analyze(applicant, application, [_document("doc-1", confidence=85)])

    assert result.risk_score == 30
    assert result.requires_investigation


def test_calculate_risk_score():
    flags = [
        FraudFlag(FraudFlagType.PATTERN_ANOMALY, FraudSeverity.LOW, "low"),
        FraudFlag(FraudFlagType.DATA_MISMATCH, FraudSeverity.MEDIUM, "medium"),
    ]
    assert calculate_risk_score(flags) == 40
    assert calculate_risk_score([]) == 0


def test_flag_to_dict_is_json_ready(analyzer, applicant, application):
    application = application.model_copy(update={"attributes": {"annualRevenue": 1000}})

    payload = analyzer.analyze(applicant, application).to_dict()

    assert payload["riskScore"] == 10
    assert payload["flags"][0]["type"] == "PATTERN_ANOMALY"
    assert payload["flags"][0]["severity"] == "LOW"
    assert payload["flags"][0]["evidence"]["requestedAmount"] == 25000


def test_mask_ein():
    assert mask_ein("12-3456789") == "***-***6789"
    assert mask_ein("12") == "***-******"
    assert mask_ein(None) == "***-******"


def test_similarity():
    assert normalize_text("  Sunrise   Bakery, LLC. ") == "sunrise bakery llc"
    assert similarity("Sunrise Bakery LLC", "sunrise bakery llc") == 1.0
    assert similarity("", "Sunrise") == 0.0
    assert similarity("Sunrise Bakery", "Moonlight Garage") < 0.85
    assert normalize_identifier(" 12 345-6789 ") == "123456789"


@pytest.mark.parametrize("extracted_ein", ["12 3456789", "12-3456789", " 123-456-789 ", "123456789"])
def test_ein_formatting_differences_are_not_mismatches(analyzer, applicant, application, extracted_ein):
    """Separators and spacing from OCR do not count as a different EIN"""
    documents = [
        DocumentMetadata(id="doc-w9", document_type=DocumentType.W9, extracted_data={"ein": extracted_ein})
    ]

    result = analyzer.analyze(applicant, application, documents)

    assert result.flags == []


def test_ein_mismatch_reports_zero_similarity(analyzer, applicant, application):
    documents = [_document("doc-1", ein="12 3456780")]

    flag = analyzer.analyze(applicant, application, documents).flags[0]

    assert flag.evidence["mismatches"] == [
        {"left": "applicant", "right": "document:doc-1", "similarity": 0.0}
    ]


def test_non_finite_revenue_is_ignored(analyzer, applicant, application):
    application = application.model_copy(update={"attributes": {"annualRevenue": Decimal("NaN")}})

    result = analyzer.analyze(applicant, application)

    assert result.flags == []
