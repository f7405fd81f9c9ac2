"""fieldguard validation engine.

Three cooperating parts:
- RuleCatalog: one pure predicate per rule kind (required, length, date, ...)
- DependencyGraph: which fields depend on which proxies, with per-pass
  memoization of proxy conditions and cycle detection
- FormValidator: walks a form's fields in registered order and aggregates
  per-field outcomes

Usage:
    from fieldguard.forms import FormDefinition
    from fieldguard.validation import FormState, FormValidator

    form = FormDefinition("signup")
    form.add("email", {"required": ["Required"], "email": ["Invalid"]})
    result = await FormValidator(form, state=FormState(values={"email": ""})).validate_all()
"""

from fieldguard.validation.dependencies import (
    DependencyGraph,
    ProxyEntry,
    condition_met,
    condition_signature,
)
from fieldguard.validation.errors import (
    ConfigurationError,
    DependencyCycleError,
    FormValidationError,
    ValidationInProgressError,
)
from fieldguard.validation.mimes import MimeTypeResolver
from fieldguard.validation.orchestrator import FormValidator
from fieldguard.validation.presentation import (
    CollectingPresentationAdapter,
    LoggingPresentationAdapter,
    NullPresentationAdapter,
    PresentationAdapter,
)
from fieldguard.validation.registry import (
    CallbackRegistry,
    CustomRuleRegistry,
    custom_rule,
    dependency_callback,
)
from fieldguard.validation.rules import (
    RuleCatalog,
    RuleContext,
    RuleSpec,
    register_builtin_rules,
)
from fieldguard.validation.types import (
    Callback,
    DependencyBinding,
    Field,
    FieldFeedback,
    FieldKind,
    FieldOutcome,
    FormState,
    PassContext,
    PassResult,
    PassStatus,
    Rule,
    UploadInfo,
)

__all__ = [
    # Types
    "Callback",
    "DependencyBinding",
    "Field",
    "FieldFeedback",
    "FieldKind",
    "FieldOutcome",
    "FormState",
    "PassContext",
    "PassResult",
    "PassStatus",
    "Rule",
    "UploadInfo",
    # Errors
    "ConfigurationError",
    "DependencyCycleError",
    "FormValidationError",
    "ValidationInProgressError",
    # Rules
    "RuleCatalog",
    "RuleContext",
    "RuleSpec",
    "register_builtin_rules",
    # Registries
    "CallbackRegistry",
    "CustomRuleRegistry",
    "custom_rule",
    "dependency_callback",
    # Dependencies
    "DependencyGraph",
    "ProxyEntry",
    "condition_met",
    "condition_signature",
    # Orchestration
    "FormValidator",
    "MimeTypeResolver",
    # Presentation
    "CollectingPresentationAdapter",
    "LoggingPresentationAdapter",
    "NullPresentationAdapter",
    "PresentationAdapter",
]
