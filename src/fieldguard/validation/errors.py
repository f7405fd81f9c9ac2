"""Exceptions raised by the fieldguard validation engine.

A value that does not satisfy a rule is *not* an exception: it is reported
as an invalid FieldOutcome. The exceptions below signal a broken form
definition and always propagate out of a validation pass.
"""


class FormValidationError(Exception):
    """Base class for all fieldguard errors."""

    pass


class ConfigurationError(FormValidationError):
    """The form definition references something that does not exist.

    Raised for unknown rule kinds, unresolvable custom functions or
    callbacks, missing compare targets and malformed declarations.
    """

    pass


class DependencyCycleError(ConfigurationError):
    """Dependency resolution re-entered a field already on the current path.

    Attributes:
        path: Field names in visiting order, ending with the repeated name
    """

    def __init__(self, path: list[str]):
        self.path = list(path)
        super().__init__(
            "Dependency cycle detected: " + " -> ".join(f'"{name}"' for name in self.path)
        )


class ValidationInProgressError(FormValidationError):
    """A validation pass was started while another one is still running."""

    pass
