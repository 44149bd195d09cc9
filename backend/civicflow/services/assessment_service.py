"""Assessment service for orchestrating eligibility, fraud and decision steps."""

import logging
import time
from datetime import datetime
from typing import Iterable, Optional

from civicflow.models.domain.decision import Assessment
from civicflow.models.schemas.application import Applicant, Application, DocumentMetadata
from civicflow.observability.logging import mask_ein
from civicflow.repositories.rule_repository import RuleRepository
from civicflow.services.decision.recommender import DecisionRecommender
from civicflow.services.fraud.analyzer import FraudAnalyzer
from civicflow.services.rule_engine.attributes import AttributeSet
from civicflow.services.rule_engine.documents import detect_missing_documents
from civicflow.services.rule_engine.scoring import EligibilityScorer

logger = logging.getLogger(__name__)


class AssessmentService:
    """
    Assessment service to orchestrate one application review.

    This service:
    - Resolves the program rule in effect for the application
    - Scores eligibility and detects missing required documents
    - Runs fraud analysis with the same rule
    - Produces the recommended action and logs a structured summary
    """

    def __init__(
        self,
        repository: RuleRepository,
        analyzer: FraudAnalyzer,
        scorer: Optional[EligibilityScorer] = None,
        recommender: Optional[DecisionRecommender] = None,
    ):
        """
        Initialize the assessment service.

        Args:
            repository: Program rule repository
            analyzer: Fraud analyzer with its lookup capability
            scorer: Optional EligibilityScorer (creates a new one if not provided)
            recommender: Optional DecisionRecommender (creates a new one if not provided)
        """
        self.repository = repository
        self.analyzer = analyzer
        self.scorer = scorer or EligibilityScorer()
        self.recommender = recommender or DecisionRecommender()

    def assess(
        self,
        applicant: Applicant,
        application: Application,
        documents: Iterable[DocumentMetadata] = (),
        as_of: Optional[datetime] = None,
    ) -> Assessment:
        """
        Assess an application.

        Args:
            applicant: Applicant record
            application: Application record
            documents: Classified documents for the application
            as_of: Instant used for rule resolution (defaults to now)

        Returns:
            Assessment with eligibility, fraud analysis and recommendation

        Raises:
            ValueError: If the application does not belong to the applicant
            NoActiveRuleError: If no rule is active for the program
            AmbiguousRuleError: If the rule catalog is inconsistent
            FraudLookupFailure: If the duplicate EIN lookup fails
        """
        if application.applicant_id != applicant.id:
            raise ValueError(
                f"Application {application.id} belongs to applicant {application.applicant_id}, "
                f"not {applicant.id}"
            )

        started = time.perf_counter()
        documents = list(documents)

        rule = self.repository.resolve_active_rule(application.program_type, as_of)
        attributes = AttributeSet.from_application(application, documents)

        eligibility = self.scorer.score(rule, attributes)
        missing_documents = detect_missing_documents(rule, documents)
        fraud = self.analyzer.analyze(applicant, application, documents, rule=rule)
        recommendation = self.recommender.recommend(eligibility, fraud)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "Assessment completed",
            extra={
                "application_id": application.id,
                "applicant_ein": mask_ein(applicant.ein),
                "program_rule": rule.identifier,
                "eligibility_score": float(eligibility.score),
                "eligibility_passed": eligibility.passed,
                "confidence_score": float(eligibility.confidence_score),
                "risk_score": fraud.risk_score,
                "flag_count": len(fraud.flags),
                "missing_documents": missing_documents,
                "action": recommendation.action.value,
                "duration_ms": duration_ms,
            },
        )

        return Assessment(
            application_id=application.id,
            rule=rule,
            eligibility=eligibility,
            missing_documents=missing_documents,
            fraud=fraud,
            recommendation=recommendation,
        )
