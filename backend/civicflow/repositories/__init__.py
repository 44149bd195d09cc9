from .rule_repository import RuleCatalog, RuleRepository, resolve_active_rule

__all__ = [
    "RuleCatalog",
    "RuleRepository",
    "resolve_active_rule",
]
