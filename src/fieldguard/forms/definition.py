"""FormDefinition: the ordered registry of fields to validate.

Fields are validated in the order they were registered. A field may be
inserted directly after another one with ``after=``; the order never depends
on how the form is rendered.

Building a form resolves every name the declarations reference (rule kinds,
custom functions, callbacks, compare targets) and rejects dependency cycles,
so a broken definition fails before the first validation pass.
"""

import logging
from typing import Any, Iterable

from fieldguard.config import ValidatorSettings
from fieldguard.forms.declarations import format_rules, parse_rules
from fieldguard.validation.dates import ENGLISH_DAYS, ENGLISH_MONTHS
from fieldguard.validation.dependencies import DependencyGraph
from fieldguard.validation.errors import ConfigurationError, DependencyCycleError
from fieldguard.validation.registry import CallbackRegistry, CustomRuleRegistry
from fieldguard.validation.rules import RuleCatalog, register_builtin_rules
from fieldguard.validation.types import Field, FieldKind

logger = logging.getLogger(__name__)

# Rules whose first parameter names another field
FIELD_REFERENCE_RULES = ("compare", "datecompare")


class FormDefinition:
    """A named form: its fields in validation order, buttons and settings.

    Usage:
        form = FormDefinition("reservation", buttons=["book"])
        form.add("email", {"required": "Required", "email": "Invalid"})
        form.add("extra_requirements", {"dependencies": {"room": "A"}}, after="email")
        form.build()
    """

    def __init__(
        self,
        name: str,
        buttons: Iterable[str] = (),
        settings: ValidatorSettings | None = None,
        description: str = "",
    ):
        register_builtin_rules()
        self.name = name
        self.buttons = list(buttons)
        self.settings = settings or ValidatorSettings()
        self.description = description
        self._fields: list[Field] = []
        self._graph: DependencyGraph | None = None

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, form_field: Field, after: str | None = None) -> Field:
        """Add a field to the validation order.

        Args:
            form_field: The field to add
            after: Id of an already registered field to insert directly after;
                appended at the end when omitted

        Raises:
            ConfigurationError: If the id is already registered or the
                ``after`` field is unknown
        """
        if self.has(form_field.id):
            raise ConfigurationError(
                f'Field "{form_field.id}" is already registered on form "{self.name}"'
            )

        if after is None:
            self._fields.append(form_field)
        else:
            position = self._index(after)
            self._fields.insert(position + 1, form_field)

        self._graph = None
        return form_field

    def add(
        self,
        field_id: str,
        rules: dict[str, Any] | None = None,
        *,
        name: str | None = None,
        kind: FieldKind | str = FieldKind.TEXT,
        after: str | None = None,
        format: str | None = None,
        other: bool = False,
        days: Iterable[str] | None = None,
        months: Iterable[str] | None = None,
    ) -> Field:
        """Build a field from a rule declaration mapping and register it."""
        try:
            field_kind = FieldKind(kind)
        except ValueError:
            raise ConfigurationError(
                f'Field "{field_id}" has unknown kind "{kind}". '
                "Available kinds: " + ", ".join(k.value for k in FieldKind)
            ) from None

        parsed_rules, dependency = parse_rules(field_id, rules)
        form_field = Field(
            id=field_id,
            name=name or field_id,
            kind=field_kind,
            rules=parsed_rules,
            dependency=dependency,
            format=format,
            other=other,
            day_names=tuple(days) if days else ENGLISH_DAYS,
            month_names=tuple(months) if months else ENGLISH_MONTHS,
        )
        return self.register(form_field, after=after)

    # =========================================================================
    # Lookups
    # =========================================================================

    @property
    def fields(self) -> list[Field]:
        return list(self._fields)

    def has(self, field_id: str) -> bool:
        return any(form_field.id == field_id for form_field in self._fields)

    def get(self, field_id: str) -> Field:
        """Get a field by id.

        Raises:
            ConfigurationError: If no such field is registered
        """
        return self._fields[self._index(field_id)]

    def _index(self, field_id: str) -> int:
        for index, form_field in enumerate(self._fields):
            if form_field.id == field_id:
                return index
        raise ConfigurationError(f'Form "{self.name}" has no field "{field_id}"')

    @property
    def graph(self) -> DependencyGraph:
        if self._graph is None:
            self.build()
        return self._graph

    # =========================================================================
    # Build
    # =========================================================================

    def build(self) -> "FormDefinition":
        """Resolve references and construct the dependency graph.

        Idempotent until another field is registered.

        Raises:
            ConfigurationError: If a rule kind, custom function, callback or
                referenced field cannot be resolved
            DependencyCycleError: If the dependency relation has a cycle
        """
        if self._graph is not None:
            return self

        for form_field in self._fields:
            self._resolve(form_field)

        graph = DependencyGraph(self._fields, buttons=self.buttons)
        cycles = graph.find_cycles()
        if cycles:
            raise DependencyCycleError(cycles[0])

        self._graph = graph
        logger.info('Built form "%s" with %d field(s)', self.name, len(self._fields))
        return self

    def _resolve(self, form_field: Field) -> None:
        for rule in form_field.rules:
            RuleCatalog.get(rule.kind)

            if rule.kind == "custom":
                CustomRuleRegistry.get(str(rule.param(0, "")))
            elif rule.kind in FIELD_REFERENCE_RULES:
                target = rule.param(0)
                if target is None:
                    raise ConfigurationError(
                        f'Field "{form_field.id}": rule "{rule.kind}" needs a field to compare with'
                    )
                self.get(str(target))
            elif rule.kind == "date" and not (rule.param(0) or form_field.format):
                raise ConfigurationError(
                    f'Field "{form_field.id}" has a date rule but no date format'
                )

        binding = form_field.dependency
        if binding is not None and binding.callback is not None:
            CallbackRegistry.get(binding.callback.name)

    # =========================================================================
    # Export
    # =========================================================================

    def declarations(self) -> dict[str, dict[str, Any]]:
        """Field id -> declaration mapping, in validation order."""
        return {
            form_field.id: format_rules(form_field.rules, form_field.dependency)
            for form_field in self._fields
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "form": self.name,
            "description": self.description,
            "buttons": list(self.buttons),
            "settings": {
                "validateAll": self.settings.validate_all,
                "validateOnTheFly": self.settings.validate_on_the_fly,
            },
            "fields": [
                {
                    "id": form_field.id,
                    "name": form_field.name,
                    "kind": form_field.kind.value,
                    "rules": format_rules(form_field.rules, form_field.dependency),
                }
                for form_field in self._fields
            ],
        }
