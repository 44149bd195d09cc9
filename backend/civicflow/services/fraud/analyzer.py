"""Fraud analyzer: anomaly detection over applicant, application and documents."""

import logging
from decimal import Decimal
from itertools import combinations
from typing import Any, Iterable, List, Optional, Protocol, Sequence, Tuple

from civicflow.config import settings
from civicflow.core.enums import FraudFlagType, FraudSeverity
from civicflow.core.exceptions import FraudLookupFailure
from civicflow.core.fields import get_field_accessor, to_decimal
from civicflow.models.domain.fraud import FraudAnalysis, FraudFlag
from civicflow.models.schemas.application import Applicant, Application, DocumentMetadata
from civicflow.models.schemas.program_rule import ProgramRule
from civicflow.observability.logging import mask_ein
from civicflow.services.fraud.similarity import normalize_identifier, similarity
from civicflow.services.rule_engine.attributes import AttributeSet

logger = logging.getLogger(__name__)

# Identifiers must match exactly, ignoring separators and case
EXACT_MATCH_FIELDS = frozenset({"ein"})


class ApplicantLookup(Protocol):
    """Capability for finding applicant records by EIN."""

    def find_applicant_ids_by_ein(self, ein: str) -> Sequence[str]:
        """Return ids of every applicant registered with the EIN (digits only)."""
        ...


class FraudAnalyzer:
    """
    Fraud analyzer for a single application.

    Runs four independent checks, in order:
    - DUPLICATE_EIN: EIN already registered to another applicant
    - SUSPICIOUS_DOCUMENT: low classification confidence or manual-review flag
    - DATA_MISMATCH: documents disagree on the same semantic field
    - PATTERN_ANOMALY: requested amount out of proportion to revenue or program bounds
    """

    def __init__(
        self,
        applicant_lookup: ApplicantLookup,
        confidence_threshold: Optional[float] = None,
        confidence_high_gap: Optional[float] = None,
        similarity_threshold: Optional[float] = None,
        max_request_to_revenue_ratio: Optional[float] = None,
        investigation_threshold: Optional[int] = None,
        mismatch_fields: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            applicant_lookup: Lookup used by the duplicate EIN check
            confidence_threshold: Classification confidence below which a document is suspicious
            confidence_high_gap: Shortfall from the threshold that makes the flag HIGH
            similarity_threshold: Minimum normalized similarity for matching values
            max_request_to_revenue_ratio: Largest acceptable requested amount / annual revenue
            investigation_threshold: Risk score at which investigation is required
            mismatch_fields: Extracted-data fields compared across documents

        Unset thresholds fall back to the engine settings.
        """
        self.applicant_lookup = applicant_lookup
        self.confidence_threshold = _pick(confidence_threshold, settings.DOCUMENT_CONFIDENCE_THRESHOLD)
        self.confidence_high_gap = _pick(confidence_high_gap, settings.DOCUMENT_CONFIDENCE_HIGH_GAP)
        self.similarity_threshold = _pick(similarity_threshold, settings.NAME_SIMILARITY_THRESHOLD)
        self.max_request_to_revenue_ratio = Decimal(
            str(_pick(max_request_to_revenue_ratio, settings.MAX_REQUEST_TO_REVENUE_RATIO))
        )
        self.investigation_threshold = _pick(investigation_threshold, settings.INVESTIGATION_RISK_THRESHOLD)
        self.mismatch_fields = list(
            mismatch_fields if mismatch_fields is not None else settings.data_mismatch_fields_list
        )

    def analyze(
        self,
        applicant: Applicant,
        application: Application,
        documents: Iterable[DocumentMetadata] = (),
        rule: Optional[ProgramRule] = None,
    ) -> FraudAnalysis:
        """
        Analyze an application for fraud signals.

        Args:
            applicant: Applicant record
            application: Application record
            documents: Classified documents for the application
            rule: Active program rule, enables funding-bound checks

        Returns:
            FraudAnalysis with flags in detection order

        Raises:
            FraudLookupFailure: If the duplicate EIN lookup fails
        """
        documents = list(documents)
        flags: List[FraudFlag] = []

        flags.extend(self._check_duplicate_ein(applicant))
        flags.extend(self._check_suspicious_documents(documents))
        flags.extend(self._check_data_mismatch(applicant, documents))
        flags.extend(self._check_pattern_anomalies(application, documents, rule))

        risk_score = calculate_risk_score(flags)
        requires_investigation = (
            any(flag.severity == FraudSeverity.HIGH for flag in flags)
            or risk_score >= self.investigation_threshold
        )

        if flags:
            logger.warning(
                f"Fraud analysis for application {application.id} "
                f"(EIN {mask_ein(applicant.ein)}): {len(flags)} flag(s), "
                f"risk_score={risk_score}, requires_investigation={requires_investigation}"
            )
        else:
            logger.info(f"Fraud analysis for application {application.id}: no flags")

        return FraudAnalysis(
            risk_score=risk_score,
            flags=flags,
            requires_investigation=requires_investigation,
        )

    def _check_duplicate_ein(self, applicant: Applicant) -> List[FraudFlag]:
        """
        Check whether the EIN belongs to other applicant records.

        Raises:
            FraudLookupFailure: If the lookup raises
        """
        ein = applicant.normalized_ein
        try:
            applicant_ids = self.applicant_lookup.find_applicant_ids_by_ein(ein)
        except Exception as e:
            logger.error(f"Duplicate EIN lookup failed for EIN {mask_ein(ein)}: {e}")
            raise FraudLookupFailure(f"Duplicate EIN lookup failed for EIN {mask_ein(ein)}") from e

        duplicates = sorted({str(other) for other in applicant_ids if str(other) != applicant.id})
        if not duplicates:
            return []

        return [
            FraudFlag(
                type=FraudFlagType.DUPLICATE_EIN,
                severity=FraudSeverity.HIGH,
                description=(
                    f"EIN {mask_ein(ein)} is registered to {len(duplicates)} other applicant(s)"
                ),
                evidence={
                    "duplicateApplicantIds": duplicates,
                    "count": len(duplicates),
                },
            )
        ]

    def _check_suspicious_documents(self, documents: List[DocumentMetadata]) -> List[FraudFlag]:
        """Flag low-confidence classifications and documents held for manual review."""
        flags: List[FraudFlag] = []

        for doc in documents:
            confidence = doc.classification_confidence
            if confidence is not None and confidence < self.confidence_threshold:
                gap = self.confidence_threshold - confidence
                severity = FraudSeverity.HIGH if gap >= self.confidence_high_gap else FraudSeverity.MEDIUM
                flags.append(
                    FraudFlag(
                        type=FraudFlagType.SUSPICIOUS_DOCUMENT,
                        severity=severity,
                        description=(
                            f"Document {doc.id} has low classification confidence "
                            f"({confidence:g}% < {self.confidence_threshold:g}%)"
                        ),
                        evidence={
                            "documentId": doc.id,
                            "documentType": doc.document_type.value if doc.document_type else None,
                            "confidence": confidence,
                            "threshold": self.confidence_threshold,
                        },
                    )
                )

            if doc.requires_manual_review:
                flags.append(
                    FraudFlag(
                        type=FraudFlagType.SUSPICIOUS_DOCUMENT,
                        severity=FraudSeverity.MEDIUM,
                        description=f"Document {doc.id} flagged for manual review",
                        evidence={
                            "documentId": doc.id,
                            "documentType": doc.document_type.value if doc.document_type else None,
                            "requiresManualReview": True,
                        },
                    )
                )

        return flags

    def _check_data_mismatch(
        self,
        applicant: Applicant,
        documents: List[DocumentMetadata],
    ) -> List[FraudFlag]:
        """Compare each semantic field across every source that reports it."""
        flags: List[FraudFlag] = []

        for field in self.mismatch_fields:
            sources = self._collect_sources(field, applicant, documents)
            if len(sources) < 2:
                continue

            exact = field in EXACT_MATCH_FIELDS
            threshold = 1.0 if exact else self.similarity_threshold
            mismatches = []
            for (left_source, left_value), (right_source, right_value) in combinations(sources, 2):
                if exact:
                    ratio = 1.0 if normalize_identifier(left_value) == normalize_identifier(right_value) else 0.0
                else:
                    ratio = similarity(left_value, right_value)
                if ratio < threshold:
                    mismatches.append(
                        {"left": left_source, "right": right_source, "similarity": ratio}
                    )

            if not mismatches:
                continue

            lowest = min(mismatch["similarity"] for mismatch in mismatches)
            flags.append(
                FraudFlag(
                    type=FraudFlagType.DATA_MISMATCH,
                    severity=FraudSeverity.MEDIUM,
                    description=(
                        f"'{field}' disagrees across {len(sources)} sources "
                        f"(lowest similarity {lowest:.2f})"
                    ),
                    evidence={
                        "field": field,
                        "values": {
                            source: _redact(field, value) for source, value in sources
                        },
                        "mismatches": mismatches,
                        "threshold": threshold,
                    },
                )
            )

        return flags

    @staticmethod
    def _collect_sources(
        field: str,
        applicant: Applicant,
        documents: List[DocumentMetadata],
    ) -> List[Tuple[str, Any]]:
        sources: List[Tuple[str, Any]] = []
        if field == "businessName":
            sources.append(("applicant", applicant.business_name))
        elif field == "ein":
            sources.append(("applicant", applicant.ein))

        for doc in documents:
            value = doc.extracted_data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            sources.append((f"document:{doc.id}", value))
        return sources

    def _check_pattern_anomalies(
        self,
        application: Application,
        documents: List[DocumentMetadata],
        rule: Optional[ProgramRule],
    ) -> List[FraudFlag]:
        """Bounds and ratio checks on the requested amount."""
        flags: List[FraudFlag] = []
        requested = application.requested_amount

        attributes = AttributeSet.from_application(application, documents)
        revenue = to_decimal(get_field_accessor("annualRevenue").resolve(attributes))

        if revenue is not None and requested > 0:
            if revenue <= 0:
                flags.append(
                    _pattern_flag(
                        f"Requested amount {requested} with no reported annual revenue",
                        requestedAmount=requested,
                        annualRevenue=revenue,
                    )
                )
            elif requested / revenue > self.max_request_to_revenue_ratio:
                ratio = (requested / revenue).quantize(Decimal("0.01"))
                flags.append(
                    _pattern_flag(
                        f"Requested amount is {ratio}x annual revenue "
                        f"(limit {self.max_request_to_revenue_ratio}x)",
                        requestedAmount=requested,
                        annualRevenue=revenue,
                        ratio=ratio,
                    )
                )

        if rule is not None:
            config = rule.rules
            funding = config.funding_range
            if funding is not None and not (
                Decimal(str(funding.min)) <= requested <= Decimal(str(funding.max))
            ):
                flags.append(
                    _pattern_flag(
                        f"Requested amount {requested} outside the {rule.program_type} "
                        f"funding range {funding.min}-{funding.max}",
                        requestedAmount=requested,
                        fundingRange={"min": funding.min, "max": funding.max},
                    )
                )
            elif config.max_loan_amount is not None and requested > Decimal(str(config.max_loan_amount)):
                flags.append(
                    _pattern_flag(
                        f"Requested amount {requested} exceeds the {rule.program_type} "
                        f"maximum of {config.max_loan_amount}",
                        requestedAmount=requested,
                        maxLoanAmount=config.max_loan_amount,
                    )
                )

        return flags


def calculate_risk_score(flags: Iterable[FraudFlag]) -> int:
    """Severity-weighted sum of flags (LOW=10, MEDIUM=30, HIGH=60), capped at 100."""
    return min(100, sum(flag.severity.risk_points for flag in flags))


def _pattern_flag(description: str, **evidence: Any) -> FraudFlag:
    return FraudFlag(
        type=FraudFlagType.PATTERN_ANOMALY,
        severity=FraudSeverity.LOW,
        description=description,
        evidence=evidence,
    )


def _redact(field: str, value: Any) -> Any:
    return mask_ein(str(value)) if field == "ein" else value


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value
