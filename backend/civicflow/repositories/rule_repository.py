"""Program rule catalog and active-version resolution."""

import json
import logging
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from civicflow.config import settings
from civicflow.core.exceptions import AmbiguousRuleError, NoActiveRuleError, RuleCatalogError
from civicflow.models.schemas.program_rule import (
    ProgramRule,
    ensure_utc,
    program_rule_list_adapter,
)

logger = logging.getLogger(__name__)


def resolve_active_rule(
    rules: Sequence[ProgramRule],
    program_type: str,
    as_of: datetime,
) -> ProgramRule:
    """
    Select the rule version in effect for a program at an instant.

    Keeps rules whose half-open window [active_from, active_to) contains
    ``as_of`` and returns the one with the highest version.

    Args:
        rules: Candidate rules (any program type)
        program_type: Program to resolve
        as_of: Evaluation instant (naive values are treated as UTC)

    Returns:
        The active ProgramRule

    Raises:
        NoActiveRuleError: If no rule window contains as_of
        AmbiguousRuleError: If several active rules share the highest version
    """
    as_of = ensure_utc(as_of)
    matches = [
        rule
        for rule in rules
        if rule.program_type == program_type and rule.is_active_at(as_of)
    ]

    if not matches:
        raise NoActiveRuleError(program_type, as_of)

    top_version = max(rule.version for rule in matches)
    top = [rule for rule in matches if rule.version == top_version]
    if len(top) > 1:
        raise AmbiguousRuleError(program_type, top_version, [rule.id for rule in top])

    return top[0]


class RuleCatalog:
    """
    Immutable snapshot of program rules grouped by program type.

    Instances are never modified after construction; the repository replaces
    the whole snapshot when rules change.
    """

    def __init__(self, rules: Iterable[ProgramRule] = ()):
        grouped: defaultdict[str, list[ProgramRule]] = defaultdict(list)
        for rule in rules:
            grouped[rule.program_type].append(rule)
        self._rules: Mapping[str, Tuple[ProgramRule, ...]] = MappingProxyType(
            {
                program_type: tuple(sorted(group, key=lambda r: r.version))
                for program_type, group in grouped.items()
            }
        )

    def program_types(self) -> List[str]:
        return sorted(self._rules)

    def rules_for(self, program_type: str) -> Tuple[ProgramRule, ...]:
        return self._rules.get(program_type, ())

    def __len__(self) -> int:
        return sum(len(group) for group in self._rules.values())

    def __iter__(self):
        for program_type in self.program_types():
            yield from self._rules[program_type]


class RuleRepository:
    """
    Read-mostly repository over the program rule catalog.

    This class:
    - Resolves the active rule version for a program at a given instant
    - Lists the active version of every program
    - Swaps in a new catalog snapshot atomically when rules are reloaded
    """

    def __init__(self, rules: Iterable[ProgramRule] = ()):
        """
        Initialize the repository.

        Args:
            rules: Initial catalog contents
        """
        self._catalog = RuleCatalog(rules)

    @classmethod
    def from_json(cls, payload: str) -> "RuleRepository":
        """Build a repository from a JSON array of program rule documents."""
        return cls(load_rules(payload))

    @classmethod
    def from_json_file(cls, path: Path) -> "RuleRepository":
        """Build a repository from a JSON catalog file."""
        path = Path(path)
        logger.info(f"Loading program rule catalog from: {path}")
        return cls.from_json(path.read_text(encoding="utf-8"))

    @classmethod
    def from_settings(cls) -> "RuleRepository":
        """Build a repository from RULE_CATALOG_PATH, or an empty one if unset."""
        if not settings.RULE_CATALOG_PATH:
            logger.warning("RULE_CATALOG_PATH is not set; starting with an empty rule catalog")
            return cls()
        return cls.from_json_file(Path(settings.RULE_CATALOG_PATH))

    @property
    def catalog(self) -> RuleCatalog:
        return self._catalog

    def replace_catalog(self, rules: Iterable[ProgramRule]) -> None:
        """
        Replace the catalog with a new snapshot.

        The snapshot is fully built before the reference is swapped, so
        concurrent resolutions see either the old or the new catalog.
        """
        catalog = RuleCatalog(rules)
        self._catalog = catalog
        logger.info(
            f"Rule catalog replaced: {len(catalog)} rules across "
            f"{len(catalog.program_types())} programs"
        )

    def program_types(self) -> List[str]:
        return self._catalog.program_types()

    def resolve_active_rule(
        self,
        program_type: str,
        as_of: Optional[datetime] = None,
    ) -> ProgramRule:
        """
        Resolve the active rule for a program.

        Args:
            program_type: Program identifier (e.g., 'MICRO_BUSINESS_GRANT')
            as_of: Evaluation instant (defaults to now, UTC)

        Returns:
            The active ProgramRule

        Raises:
            NoActiveRuleError: If the program is unknown or has no active version
            AmbiguousRuleError: If the catalog holds conflicting versions
        """
        catalog = self._catalog
        instant = as_of if as_of is not None else datetime.now(timezone.utc)
        return resolve_active_rule(catalog.rules_for(program_type), program_type, instant)

    def list_active_rules(self, as_of: Optional[datetime] = None) -> List[ProgramRule]:
        """
        Return the active rule of every program that has one.

        Programs without an active window are skipped; catalog conflicts still
        raise AmbiguousRuleError.
        """
        catalog = self._catalog
        instant = as_of if as_of is not None else datetime.now(timezone.utc)
        active: List[ProgramRule] = []
        for program_type in catalog.program_types():
            try:
                active.append(
                    resolve_active_rule(catalog.rules_for(program_type), program_type, instant)
                )
            except NoActiveRuleError:
                continue
        return active


def load_rules(payload: str) -> List[ProgramRule]:
    """
    Parse a JSON array of program rule documents.

    Raises:
        RuleCatalogError: If the payload is not valid JSON or fails validation
    """
    try:
        return program_rule_list_adapter.validate_json(payload)
    except ValidationError as e:
        raise RuleCatalogError(f"Invalid program rule catalog: {e}") from e


def dump_rules(rules: Iterable[ProgramRule]) -> str:
    """Serialize rules to the camelCase JSON catalog form."""
    return json.dumps(
        [rule.model_dump(mode="json", by_alias=True) for rule in rules],
        indent=2,
    )
