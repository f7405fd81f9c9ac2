"""Rule catalog for fieldguard.

Every rule kind is a pure predicate registered together with the field kinds
it applies to. Evaluating a rule against a field of any other kind is a
no-op that passes, so irrelevant rules on a field are ignored rather than
treated as errors.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from fieldguard.validation.errors import ConfigurationError
from fieldguard.validation.mimes import MimeTypeResolver
from fieldguard.validation.types import Field, FieldKind, FormState, Rule


@dataclass
class RuleContext:
    """Everything a rule predicate may look at.

    Attributes:
        field: The field being validated
        rule: The rule being evaluated (kind, params, message)
        value: The field's current value
        state: The live form state; only the "date" rule writes to it
        lookup: Resolves another field by id (raises ConfigurationError)
        validate_other: Validates another field by id, returning True or
            the name of its failing rule
        mimes: Lookup table used by the "filetype" rule
    """

    field: Field
    rule: Rule
    value: Any
    state: FormState
    lookup: Callable[[str], Field]
    validate_other: Callable[[str], bool | str]
    mimes: MimeTypeResolver = field(default_factory=MimeTypeResolver)

    @property
    def params(self) -> tuple[Any, ...]:
        return self.rule.params

    def param(self, index: int, default: Any = None) -> Any:
        return self.rule.param(index, default)


RulePredicate = Callable[[RuleContext], bool]


@dataclass(frozen=True)
class RuleSpec:
    """Definition of a rule kind.

    Attributes:
        kind: Name used in declarations
        applies_to: Field kinds the rule is evaluated for
        predicate: Returns True when the value passes
        needs_mimes: True if the rule reads the mime lookup table
    """

    kind: str
    applies_to: frozenset[FieldKind]
    predicate: RulePredicate
    needs_mimes: bool = False


class RuleCatalog:
    """Registry of rule kinds.

    Example:
        RuleCatalog.register(RuleSpec("even", frozenset({FieldKind.TEXT}), is_even))
        RuleCatalog.evaluate("even", ctx)
    """

    _rules: dict[str, RuleSpec] = {}

    @classmethod
    def register(cls, spec: RuleSpec) -> None:
        """Register a rule kind. Idempotent for an already registered kind."""
        if spec.kind in cls._rules:
            return
        cls._rules[spec.kind] = spec

    @classmethod
    def get(cls, kind: str) -> RuleSpec:
        """Get a rule kind.

        Raises:
            ConfigurationError: If the kind is not registered
        """
        if kind not in cls._rules:
            raise ConfigurationError(
                f'Unknown rule "{kind}". Available rules: ' + ", ".join(cls.list_registered())
            )
        return cls._rules[kind]

    @classmethod
    def is_registered(cls, kind: str) -> bool:
        return kind in cls._rules

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._rules.keys())

    @classmethod
    def evaluate(cls, kind: str, ctx: RuleContext) -> bool:
        """Evaluate one rule for the field in context.

        Returns:
            True if the value passes, or if the rule does not apply to the
            field's kind
        """
        spec = cls.get(kind)
        if ctx.field.kind not in spec.applies_to:
            return True
        return bool(spec.predicate(ctx))

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._rules.clear()
