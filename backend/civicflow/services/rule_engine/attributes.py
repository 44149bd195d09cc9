"""Attribute set construction for rule evaluation."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Optional

from civicflow.core.enums import DocumentType
from civicflow.models.schemas.application import Application, DocumentMetadata


class AttributeSet(Mapping[str, Any]):
    """
    Read-only view of everything known about an application.

    Built from document extracted data (later documents override earlier
    ones), then the application's own intake attributes, then the
    application-level fields, so that applicant-entered values win over
    values read from documents.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Mapping[str, Any] = MappingProxyType(dict(values or {}))

    @classmethod
    def from_application(
        cls,
        application: Application,
        documents: Iterable[DocumentMetadata] = (),
    ) -> "AttributeSet":
        documents = list(documents)
        values: Dict[str, Any] = {}

        for document in documents:
            values.update(document.extracted_data)

        values.update(application.attributes)
        values["requestedAmount"] = application.requested_amount
        values["programType"] = application.program_type
        values.setdefault(
            "hasValidEIN",
            any(doc.document_type == DocumentType.EIN_VERIFICATION for doc in documents),
        )
        return cls(values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AttributeSet({dict(self._values)!r})"
