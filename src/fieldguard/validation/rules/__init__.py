"""Rule catalog and built-in rule kinds."""

from fieldguard.validation.rules.builtin import (
    is_blank,
    is_valid_email,
    normalized_length,
    register_builtin_rules,
)
from fieldguard.validation.rules.catalog import (
    RuleCatalog,
    RuleContext,
    RulePredicate,
    RuleSpec,
)

__all__ = [
    "RuleCatalog",
    "RuleContext",
    "RulePredicate",
    "RuleSpec",
    "is_blank",
    "is_valid_email",
    "normalized_length",
    "register_builtin_rules",
]
