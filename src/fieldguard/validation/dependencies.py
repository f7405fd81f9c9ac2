"""Dependency resolution between fields.

A field carrying a DependencyBinding is only validated when every condition
on its proxies holds. Proxies are addressed by name: a field name (shared by
grouped controls), a field id, or the name of a submit button.

Condition results are memoized in the PassContext under
(proxy name, condition signature), so dependents that share a condition on
the same proxy pay for its evaluation once per pass.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from fieldguard.validation.errors import ConfigurationError, DependencyCycleError
from fieldguard.validation.registry import CallbackRegistry
from fieldguard.validation.types import Field, FormState, PassContext

logger = logging.getLogger(__name__)

# Value a button proxy takes when it was the button that submitted the form
BUTTON_CLICKED = "click"


@dataclass
class ProxyEntry:
    """A field or button that other fields depend on.

    Attributes:
        proxy_name: Name the dependents refer to
        dependent_field_ids: Dependent fields, in registration order
        conditions: Condition signature -> expected value, for every
            distinct condition dependents place on this proxy
    """

    proxy_name: str
    dependent_field_ids: list[str] = field(default_factory=list)
    conditions: dict[str, Any] = field(default_factory=dict)


def condition_signature(expected: Any) -> str:
    """Canonical string form of an expected value.

    Scalars compare as strings, so 1 and "1" share a signature.
    """
    if isinstance(expected, (list, tuple)):
        return "[" + ",".join(condition_signature(item) for item in expected) + "]"
    if isinstance(expected, bool):
        return "true" if expected else "false"
    return str(expected)


def condition_met(values: list[str], expected: Any) -> bool:
    """Check a proxy's current values against one expected value.

    A scalar must be among the values. A list is met when any scalar entry
    is among the values, or when every member of a nested list is.
    """
    if isinstance(expected, (list, tuple)):
        for item in expected:
            if isinstance(item, (list, tuple)):
                if item and all(condition_signature(member) in values for member in item):
                    return True
            elif condition_signature(item) in values:
                return True
        return False
    return condition_signature(expected) in values


class DependencyGraph:
    """Maps proxies to their dependents and evaluates dependency bindings.

    Built once from the registered fields; never mutated afterwards.

    Usage:
        graph = DependencyGraph(fields, buttons=["save"])
        ctx = PassContext(state)
        graph.is_satisfied("extra_requirements", ctx)
    """

    def __init__(self, fields: Iterable[Field], buttons: Iterable[str] = ()):
        self._fields: dict[str, Field] = {}
        self._by_name: dict[str, list[Field]] = {}
        self.buttons = frozenset(buttons)
        self.proxies: dict[str, ProxyEntry] = {}

        for form_field in fields:
            self._fields[form_field.id] = form_field
            self._by_name.setdefault(form_field.name, []).append(form_field)

        for form_field in self._fields.values():
            if form_field.dependency is None:
                continue
            for proxy, expected in form_field.dependency.conditions.items():
                entry = self.proxies.setdefault(proxy, ProxyEntry(proxy_name=proxy))
                entry.dependent_field_ids.append(form_field.id)
                entry.conditions[condition_signature(expected)] = expected

        for proxy in self.proxies:
            if not self.knows(proxy):
                logger.warning(
                    'Dependency proxy "%s" names no field or button; '
                    "conditions on it never hold",
                    proxy,
                )

    # =========================================================================
    # Lookups
    # =========================================================================

    def knows(self, proxy: str) -> bool:
        return proxy in self.buttons or bool(self._proxy_fields(proxy))

    def dependents_of(self, proxy: str) -> list[str]:
        entry = self.proxies.get(proxy)
        return list(entry.dependent_field_ids) if entry else []

    def _proxy_fields(self, proxy: str) -> list[Field]:
        if proxy in self._by_name:
            return self._by_name[proxy]
        if proxy in self._fields:
            return [self._fields[proxy]]
        return []

    def proxy_values(self, proxy: str, state: FormState) -> list[str]:
        """Current values of a proxy, as a list of strings.

        Empty strings and None are not values. A button proxy has the value
        "click" only while it is the clicked button.
        """
        if proxy in self.buttons:
            return [BUTTON_CLICKED] if state.clicked_button == proxy else []

        if proxy in state.values:
            raw = [state.values[proxy]]
        else:
            raw = [state.value_of(form_field) for form_field in self._proxy_fields(proxy)]

        values: list[str] = []
        for value in raw:
            items = value if isinstance(value, (list, tuple, set)) else [value]
            for item in items:
                if item is None or item == "":
                    continue
                values.append(condition_signature(item))
        return values

    # =========================================================================
    # Evaluation
    # =========================================================================

    def is_satisfied(
        self,
        field_id: str,
        ctx: PassContext,
        _trail: tuple[str, ...] = (),
    ) -> bool:
        """Whether the field's dependency conditions all hold.

        Conditions are checked in declaration order and evaluation stops at
        the first one that fails. A proxy that has a dependency binding of its
        own must be satisfied before its value counts.

        Raises:
            ConfigurationError: If field_id is not a registered field
            DependencyCycleError: If the chain of proxies re-enters a name
                already on the current path
        """
        if field_id not in self._fields:
            raise ConfigurationError(f'Unknown field "{field_id}"')

        form_field = self._fields[field_id]
        if form_field.dependency is None:
            return True

        trail = _trail or (form_field.name,)

        for proxy, expected in form_field.dependency.conditions.items():
            if not self._evaluate(proxy, expected, ctx, trail):
                logger.debug('Field "%s" exempt: condition on "%s" not met', field_id, proxy)
                return False
        return True

    def _evaluate(
        self,
        proxy: str,
        expected: Any,
        ctx: PassContext,
        trail: tuple[str, ...],
    ) -> bool:
        key = (proxy, condition_signature(expected))
        if key in ctx.proxy_cache:
            logger.debug("Proxy cache hit for %s", key)
            return ctx.proxy_cache[key]

        if proxy in trail:
            raise DependencyCycleError(list(trail) + [proxy])

        result = self.knows(proxy)
        if result:
            for proxy_field in self._proxy_fields(proxy):
                if proxy_field.dependency is None:
                    continue
                if not self.is_satisfied(proxy_field.id, ctx, trail + (proxy,)):
                    result = False
                    break

        if result:
            ctx.evaluations += 1
            result = condition_met(self.proxy_values(proxy, ctx.state), expected)

        ctx.proxy_cache[key] = result
        return result

    def proxy_changed(self, proxy: str, state: FormState) -> dict[str, bool]:
        """Recompute satisfaction for every dependent of a proxy.

        Declared callbacks are invoked as callback(satisfied, *args).

        Returns:
            Dependent field id -> whether its conditions now hold
        """
        results: dict[str, bool] = {}
        ctx = PassContext(state=state)
        for field_id in self.dependents_of(proxy):
            satisfied = self.is_satisfied(field_id, ctx)
            results[field_id] = satisfied

            binding = self._fields[field_id].dependency
            if binding is not None and binding.callback is not None:
                callback = CallbackRegistry.get(binding.callback.name)
                callback(satisfied, *binding.callback.args)
        return results

    # =========================================================================
    # Static checks
    # =========================================================================

    def find_cycles(self) -> list[list[str]]:
        """List every dependency cycle, each as a closed path of names.

        Independent of any form state; used when a form is built and by
        tooling.
        """
        edges: dict[str, list[str]] = {}
        for form_field in self._fields.values():
            if form_field.dependency is None:
                continue
            targets = edges.setdefault(form_field.name, [])
            for proxy in form_field.dependency.conditions:
                for proxy_field in self._proxy_fields(proxy):
                    if proxy_field.name not in targets:
                        targets.append(proxy_field.name)

        cycles: list[list[str]] = []
        seen: set[tuple[str, ...]] = set()

        def visit(name: str, path: list[str]) -> None:
            for target in edges.get(name, []):
                if target in path:
                    cycle = path[path.index(target):]
                    start = cycle.index(min(cycle))
                    canonical = tuple(cycle[start:] + cycle[:start])
                    if canonical not in seen:
                        seen.add(canonical)
                        cycles.append(list(canonical) + [canonical[0]])
                    continue
                visit(target, path + [target])

        for name in edges:
            visit(name, [name])
        return cycles
