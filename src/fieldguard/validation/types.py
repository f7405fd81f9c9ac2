"""Core types for the fieldguard validation engine.

This module defines the data model shared by every layer:
- Field definitions: FieldKind, Rule, DependencyBinding, Field
- Live form state: FormState, UploadInfo
- Per-pass context: PassContext
- Results: FieldOutcome, PassResult, FieldFeedback
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fieldguard.validation.dates import ENGLISH_DAYS, ENGLISH_MONTHS


class FieldKind(Enum):
    """The closed set of control kinds a field can be."""

    TEXT = "text"  # text, password, textarea, email and number inputs
    CHOICE_SINGLE = "choice-single"  # select
    CHOICE_MULTI = "choice-multi"  # select[multiple]
    BOOLEAN_GROUP = "boolean-group"  # radio buttons / checkboxes sharing a name
    FILE = "file"
    COMPOSITE_TIME = "composite-time"  # hours/minutes/seconds/ampm selects


TIME_COMPONENTS = ("hours", "minutes", "seconds", "ampm")


class PassStatus(Enum):
    """State of a FormValidator's most recent validation pass."""

    IDLE = "idle"
    RUNNING = "running"
    ALL_VALID = "all-valid"
    SOME_INVALID = "some-invalid"


# =============================================================================
# Field Definitions
# =============================================================================


@dataclass(frozen=True)
class Rule:
    """A single rule bound to a field.

    Attributes:
        kind: Rule kind as registered in the RuleCatalog ("required", "length", ...)
        params: Positional parameters, in declaration order
        message: Error message surfaced when this rule is the first to fail
    """

    kind: str
    params: tuple[Any, ...] = ()
    message: str = ""

    def param(self, index: int, default: Any = None) -> Any:
        if index < len(self.params) and self.params[index] is not None:
            return self.params[index]
        return default


@dataclass(frozen=True)
class Callback:
    """A named callback fired when a proxy's value changes."""

    name: str
    args: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "Callback":
        """Parse the "name, arg1, arg2" declaration form."""
        segments = [segment.strip() for segment in text.split(",")]
        return cls(name=segments[0], args=tuple(segments[1:]))


@dataclass(frozen=True)
class DependencyBinding:
    """Conditions under which a dependent field is validated at all.

    Attributes:
        conditions: Proxy field name -> expected value. A scalar must equal
            one of the proxy's values; a list is met when any scalar entry
            matches, or when every member of a nested list is selected.
        callback: Optional callback invoked with (satisfied, *args)
    """

    conditions: dict[str, Any]
    callback: Callback | None = None


@dataclass(frozen=True)
class Field:
    """A registered form field.

    The shape of a field never changes after registration; its value is read
    from the FormState on every pass.
    """

    id: str
    name: str = ""
    kind: FieldKind = FieldKind.TEXT
    rules: tuple[Rule, ...] = ()
    dependency: DependencyBinding | None = None
    format: str | None = None  # date format used by the "date" rule
    other: bool = False  # select with an "other" option backed by <id>_other
    day_names: tuple[str, ...] = ENGLISH_DAYS
    month_names: tuple[str, ...] = ENGLISH_MONTHS

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)

    def has_rule(self, kind: str) -> bool:
        return any(rule.kind == kind for rule in self.rules)


# =============================================================================
# Live State
# =============================================================================


@dataclass(frozen=True)
class UploadInfo:
    """Side-channel record delivered after an asynchronous file upload.

    Attributes:
        file_name: Original name of the uploaded file
        mime_type: Mime type reported by the upload handler
        error_code: Upload error code; 0 means success
        byte_size: Size of the uploaded file in bytes
    """

    file_name: str
    mime_type: str
    error_code: int = 0
    byte_size: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UploadInfo":
        return cls(
            file_name=data.get("fileName", ""),
            mime_type=data.get("mimeType", ""),
            error_code=int(data.get("errorCode", 0)),
            byte_size=int(data.get("byteSize", 0)),
        )


@dataclass
class FormState:
    """The current values of a form, read fresh on every pass.

    Attributes:
        values: Field id or name -> current value. Text-like fields hold a
            string, multi-value controls a list of strings, composite time
            fields a dict keyed by TIME_COMPONENTS.
        clicked_button: Name of the submit button that triggered the pass
        hidden: Ids of fields that are currently not displayed
        uploads: Field id -> upload side-channel record
        timestamps: Field id -> derived timestamp written by the "date" rule
    """

    values: dict[str, Any] = field(default_factory=dict)
    clicked_button: str | None = None
    hidden: set[str] = field(default_factory=set)
    uploads: dict[str, UploadInfo] = field(default_factory=dict)
    timestamps: dict[str, int] = field(default_factory=dict)

    def value_of(self, form_field: Field) -> Any:
        if form_field.id in self.values:
            return self.values[form_field.id]
        return self.values.get(form_field.name)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value


@dataclass
class PassContext:
    """Mutable context scoped to a single validation call.

    Attributes:
        state: The form state being validated
        proxy_cache: (proxy name, condition signature) -> condition result
        active: Ids of fields currently being validated, outermost first
        evaluations: Number of proxy conditions actually evaluated
    """

    state: FormState
    proxy_cache: dict[tuple[str, str], bool] = field(default_factory=dict)
    active: list[str] = field(default_factory=list)
    evaluations: int = 0


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class FieldFeedback:
    """What the engine hands to a PresentationAdapter for one field."""

    field_id: str
    valid: bool
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"fieldId": self.field_id, "valid": self.valid}
        if self.message is not None:
            result["message"] = self.message
        return result


@dataclass(frozen=True)
class FieldOutcome:
    """Result of validating one field.

    Attributes:
        field_id: The validated field
        valid: False when a rule failed
        rule: Kind of the first failing rule
        message: Message of the first failing rule
        value: Snapshot of the offending value
        exempt: True when the field was skipped because its dependency
            conditions are not met (counts as valid)
    """

    field_id: str
    valid: bool
    rule: str | None = None
    message: str | None = None
    value: Any = None
    exempt: bool = False

    @property
    def verdict(self) -> bool | str:
        """True when valid, otherwise the name of the failing rule."""
        if self.valid:
            return True
        return self.rule or ""

    def to_feedback(self) -> FieldFeedback:
        return FieldFeedback(
            field_id=self.field_id,
            valid=self.valid,
            message=None if self.valid else self.message,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "valid": self.valid,
            "exempt": self.exempt,
            "rule": self.rule,
            "message": self.message,
        }


@dataclass
class PassResult:
    """Result of a full-form validation pass.

    Attributes:
        valid: True if no evaluated field failed
        outcomes: Field id -> outcome, in validation order. In fail-fast
            mode fields after the first invalid one are absent.
    """

    valid: bool
    outcomes: dict[str, FieldOutcome] = field(default_factory=dict)

    @property
    def failures(self) -> list[FieldOutcome]:
        return [outcome for outcome in self.outcomes.values() if not outcome.valid]

    @property
    def verdict(self) -> bool | str:
        """True when valid, otherwise the failing rule of the first invalid field."""
        failures = self.failures
        if not failures:
            return True
        return failures[0].verdict

    @property
    def status(self) -> PassStatus:
        return PassStatus.ALL_VALID if self.valid else PassStatus.SOME_INVALID

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "fields": [outcome.to_dict() for outcome in self.outcomes.values()],
            "errors": [outcome.to_feedback().to_dict() for outcome in self.failures],
        }
