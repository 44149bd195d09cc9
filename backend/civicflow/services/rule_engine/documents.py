"""Required-document checks against a program rule."""

import logging
from typing import Iterable, List

from civicflow.models.schemas.application import DocumentMetadata
from civicflow.models.schemas.program_rule import ProgramRule

logger = logging.getLogger(__name__)


def detect_missing_documents(rule: ProgramRule, documents: Iterable[DocumentMetadata]) -> List[str]:
    """
    Find required document types not present among classified documents.

    Args:
        rule: The resolved program rule
        documents: Documents uploaded for the application

    Returns:
        Missing document types, in the order the rule lists them
    """
    uploaded = {doc.document_type.value for doc in documents if doc.document_type is not None}
    missing = [doc_type for doc_type in rule.rules.required_documents if doc_type not in uploaded]

    if missing:
        logger.info(f"Missing documents under {rule.identifier}: {', '.join(missing)}")
    return missing
