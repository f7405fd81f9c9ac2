"""Registries for application-provided predicates and callbacks.

Custom rules and dependency callbacks are referenced from form declarations
by name. Both must be explicitly registered before a form that references
them is built; an unknown name is a ConfigurationError at build time.
"""

from typing import Any, Callable

from fieldguard.validation.errors import ConfigurationError

# Custom predicate signature: (value, *args) -> bool
CustomPredicate = Callable[..., bool]

# Callback signature: (satisfied, *args) -> None
DependencyCallback = Callable[..., Any]


class CustomRuleRegistry:
    """Registry for predicates referenced by the "custom" rule.

    Example:
        @custom_rule("is_even")
        def is_even(value: str) -> bool:
            return value.isdigit() and int(value) % 2 == 0

        CustomRuleRegistry.get("is_even")("4")  # True
    """

    _predicates: dict[str, CustomPredicate] = {}

    @classmethod
    def register(cls, name: str, predicate: CustomPredicate) -> None:
        """Register a predicate by name.

        Re-registering a name replaces the previous predicate.

        Args:
            name: Name used in rule declarations
            predicate: Callable invoked as predicate(value, *args)
        """
        cls._predicates[name] = predicate

    @classmethod
    def get(cls, name: str) -> CustomPredicate:
        """Get a registered predicate.

        Raises:
            ConfigurationError: If no predicate is registered under the name
        """
        if name not in cls._predicates:
            raise ConfigurationError(
                f'Custom rule function "{name}" is not registered. '
                "Custom functions must be registered before the form is built."
            )
        return cls._predicates[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._predicates

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._predicates.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._predicates.clear()


class CallbackRegistry:
    """Registry for callbacks named in dependency bindings.

    Callbacks are invoked when a proxy's value changes, with the new
    satisfaction result followed by the declared arguments.
    """

    _callbacks: dict[str, DependencyCallback] = {}

    @classmethod
    def register(cls, name: str, callback: DependencyCallback) -> None:
        cls._callbacks[name] = callback

    @classmethod
    def get(cls, name: str) -> DependencyCallback:
        """Get a registered callback.

        Raises:
            ConfigurationError: If no callback is registered under the name
        """
        if name not in cls._callbacks:
            raise ConfigurationError(f'Dependency callback "{name}" is not registered.')
        return cls._callbacks[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._callbacks

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._callbacks.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._callbacks.clear()


def custom_rule(name: str) -> Callable[[CustomPredicate], CustomPredicate]:
    """Decorator to register a custom rule predicate.

    Usage:
        @custom_rule("is_even")
        def is_even(value: str) -> bool:
            ...
    """

    def decorator(fn: CustomPredicate) -> CustomPredicate:
        CustomRuleRegistry.register(name, fn)
        return fn

    return decorator


def dependency_callback(name: str) -> Callable[[DependencyCallback], DependencyCallback]:
    """Decorator to register a dependency callback."""

    def decorator(fn: DependencyCallback) -> DependencyCallback:
        CallbackRegistry.register(name, fn)
        return fn

    return decorator
