"""Field accessor registry for eligibility criteria.

Every field a criterion may reference is declared here with its runtime type
and an extraction function over an application's attribute set. Criteria that
name a field missing from the registry are rejected when the rule is loaded.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from civicflow.core.enums import FieldType

Extractor = Callable[[Mapping[str, Any]], Any]


def lookup_path(attributes: Mapping[str, Any], path: str) -> Any:
    """
    Walk a dotted path through nested mappings.

    Args:
        attributes: The application's attribute set
        path: Dotted field path (e.g. "owner.creditScore")

    Returns:
        The value at the path, or None if any segment is absent
    """
    current: Any = attributes
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


def to_decimal(value: Any) -> Optional[Decimal]:
    """Coerce a numeric value (or numeric string) to Decimal; booleans are not numbers."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        number = Decimal(str(value))
        return number if number.is_finite() else None
    if isinstance(value, str):
        try:
            number = Decimal(value.strip().replace(",", ""))
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def _coerce_boolean(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return value


@dataclass(frozen=True)
class FieldAccessor:
    """
    Typed accessor for one application field.

    Attributes:
        name: Field name as used in criteria
        field_type: Runtime type of the value
        extract: Function returning the raw value from an attribute set
        description: Human-readable label
    """

    name: str
    field_type: FieldType
    extract: Extractor
    description: str = ""

    def resolve(self, attributes: Mapping[str, Any]) -> Any:
        """
        Extract and normalize the field value.

        Returns None when the field is absent. Numbers are returned as Decimal
        when they can be coerced; values that cannot be coerced are returned
        unchanged so the comparison can report the type mismatch.
        """
        raw = self.extract(attributes)
        if raw is None:
            return None
        if self.field_type == FieldType.NUMBER:
            number = to_decimal(raw)
            return number if number is not None else raw
        if self.field_type == FieldType.BOOLEAN:
            return _coerce_boolean(raw)
        if self.field_type == FieldType.STRING and isinstance(raw, (int, float, Decimal)):
            return str(raw)
        return raw


_REGISTRY: Dict[str, FieldAccessor] = {}


def register_field(
    name: str,
    field_type: FieldType,
    extract: Optional[Extractor] = None,
    description: str = "",
) -> FieldAccessor:
    """
    Register a field accessor.

    Args:
        name: Field name (dotted paths address nested attributes)
        field_type: Runtime type of the value
        extract: Custom extraction function (defaults to a dotted-path lookup)
        description: Human-readable label

    Returns:
        The registered accessor

    Raises:
        ValueError: If the name is already registered
    """
    if name in _REGISTRY:
        raise ValueError(f"Field '{name}' is already registered")
    accessor = FieldAccessor(
        name=name,
        field_type=field_type,
        extract=extract or (lambda attributes: lookup_path(attributes, name)),
        description=description,
    )
    _REGISTRY[name] = accessor
    return accessor


def get_field_accessor(name: str) -> FieldAccessor:
    """
    Look up a registered accessor.

    Raises:
        KeyError: If no accessor is registered under the name
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        raise KeyError(f"Unknown eligibility field '{name}'") from None


def is_known_field(name: str) -> bool:
    return name in _REGISTRY


# Application-level fields
register_field("requestedAmount", FieldType.NUMBER, description="Requested funding amount")
register_field("programType", FieldType.STRING, description="Program identifier")

# Business profile
register_field("businessAge", FieldType.NUMBER, description="Years in business")
register_field("annualRevenue", FieldType.NUMBER, description="Annual revenue")
register_field("employeeCount", FieldType.NUMBER, description="Number of employees")
register_field("creditScore", FieldType.NUMBER, description="Credit score")
register_field("businessName", FieldType.STRING, description="Legal business name")
register_field("industry", FieldType.STRING, description="Industry")
register_field("state", FieldType.STRING, description="State of operation")

# Program-specific attestations
register_field("hasValidEIN", FieldType.BOOLEAN, description="EIN verification on file")
register_field("hasEmergencyNeed", FieldType.BOOLEAN, description="Documented emergency need")
register_field("hasBusinessPlan", FieldType.BOOLEAN, description="Business plan submitted")
register_field("isMinorityOwned", FieldType.BOOLEAN, description="Minority-owned business")

# Owner details
register_field("owner.creditScore", FieldType.NUMBER, description="Owner credit score")
register_field("owner.yearsExperience", FieldType.NUMBER, description="Owner industry experience")
