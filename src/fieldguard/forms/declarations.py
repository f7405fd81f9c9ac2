"""Parsing of per-field rule declarations.

A declaration maps rule kind to its parameters, in evaluation order. The
error message is always the last entry; a bare string is a message with no
parameters:

    required: "Email is required"
    length: [6, 10, "Between 6 and 10 characters"]
    custom:
      - [is_even, "Must be even"]
      - [divisible_by, 3, "Must be divisible by 3"]
    dependencies: [{room: "A"}, "toggle_panel, extras"]

"dependencies" does not produce a rule; it becomes the field's
DependencyBinding.
"""

from typing import Any

from fieldguard.validation.errors import ConfigurationError
from fieldguard.validation.types import Callback, DependencyBinding, Rule

DEPENDENCIES = "dependencies"
CUSTOM = "custom"


def parse_rules(field_id: str, declarations: dict[str, Any] | None) -> tuple[tuple[Rule, ...], DependencyBinding | None]:
    """Turn a declaration mapping into ordered rules and a dependency binding.

    Raises:
        ConfigurationError: If a declaration is malformed
    """
    rules: list[Rule] = []
    dependency: DependencyBinding | None = None

    for kind, declared in (declarations or {}).items():
        if kind == DEPENDENCIES:
            dependency = parse_dependency(field_id, declared)
        elif kind == CUSTOM and _is_nested(declared):
            for entry in declared:
                rules.append(_parse_rule(field_id, kind, entry))
        else:
            rules.append(_parse_rule(field_id, kind, declared))

    return tuple(rules), dependency


def parse_dependency(field_id: str, declared: Any) -> DependencyBinding:
    """Parse ``{proxy: expected}`` or ``[{proxy: expected}, "callback, args"]``."""
    callback: Callback | None = None
    conditions = declared

    if isinstance(declared, (list, tuple)):
        if not declared or len(declared) > 2:
            raise ConfigurationError(
                f'Field "{field_id}": dependencies must be a mapping or [mapping, callback]'
            )
        conditions = declared[0]
        if len(declared) == 2 and declared[1]:
            callback = Callback.parse(str(declared[1]))

    if not isinstance(conditions, dict) or not conditions:
        raise ConfigurationError(f'Field "{field_id}": dependency conditions must be a non-empty mapping')

    return DependencyBinding(conditions={str(k): v for k, v in conditions.items()}, callback=callback)


def _is_nested(declared: Any) -> bool:
    return (
        isinstance(declared, (list, tuple))
        and len(declared) > 0
        and all(isinstance(entry, (list, tuple)) for entry in declared)
    )


def _parse_rule(field_id: str, kind: str, declared: Any) -> Rule:
    if isinstance(declared, str):
        return Rule(kind=kind, message=declared)

    if not isinstance(declared, (list, tuple)) or not declared:
        raise ConfigurationError(
            f'Field "{field_id}": rule "{kind}" must be a message or a list ending with one'
        )

    *params, message = declared
    if not isinstance(message, str):
        raise ConfigurationError(
            f'Field "{field_id}": rule "{kind}" must end with an error message'
        )
    return Rule(kind=kind, params=tuple(params), message=message)


def format_rules(rules: tuple[Rule, ...], dependency: DependencyBinding | None = None) -> dict[str, Any]:
    """Inverse of parse_rules: the declaration mapping for a field."""
    declared: dict[str, Any] = {}

    if dependency is not None:
        if dependency.callback is not None:
            callback = ", ".join((dependency.callback.name,) + dependency.callback.args)
            declared[DEPENDENCIES] = [dict(dependency.conditions), callback]
        else:
            declared[DEPENDENCIES] = dict(dependency.conditions)

    customs = [rule for rule in rules if rule.kind == CUSTOM]
    for rule in rules:
        entry = [*rule.params, rule.message]
        if rule.kind == CUSTOM:
            if len(customs) > 1:
                declared.setdefault(CUSTOM, []).append(entry)
            else:
                declared[CUSTOM] = entry
        else:
            declared[rule.kind] = entry

    return declared
