"""Form definitions: rule declarations, ordered field registry and YAML loading."""

from fieldguard.forms.declarations import format_rules, parse_dependency, parse_rules
from fieldguard.forms.definition import FormDefinition
from fieldguard.forms.loader import FormLoader
from fieldguard.forms.validator import ValidationIssue, validate_form_file, validate_forms_dir

__all__ = [
    "FormDefinition",
    "FormLoader",
    "ValidationIssue",
    "format_rules",
    "parse_dependency",
    "parse_rules",
    "validate_form_file",
    "validate_forms_dir",
]
