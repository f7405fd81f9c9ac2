"""
forms/validator.py: JSON Schema validation for fieldguard form YAML files.

Usage:
    from fieldguard.forms.validator import validate_forms_dir, validate_form_file

    issues = validate_forms_dir(Path("forms"))
    for issue in issues:
        print(issue)

Schema checks cover shape only. Whether rule kinds, custom functions and
compare targets resolve is checked when the form is built.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

FORM_SCHEMA = "form.schema.json"


@dataclass
class ValidationIssue:
    """A single validation finding for a form YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "fields[0]/rules"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _load_registry() -> Registry:
    """Build a jsonschema Registry containing the form schemas."""
    resources = []
    for name in ("_defs.schema.json", FORM_SCHEMA):
        schema = _load_schema(name)
        resources.append(
            (schema["$id"], Resource(contents=schema, specification=DRAFT202012))
        )
    return Registry().with_resources(resources)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_form_file(
    yaml_path: Path,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single form file against the form schema.

    Args:
        yaml_path: Path to the YAML file to validate.
        registry:  Pre-built schema registry.  Built automatically if omitted.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            doc = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if doc is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    if registry is None:
        registry = _load_registry()

    validator = Draft202012Validator(_load_schema(FORM_SCHEMA), registry=registry)

    issues = [
        ValidationIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    ]

    # Duplicate ids are legal YAML and valid against the schema
    entries = doc.get("fields") if isinstance(doc, dict) else None
    if not isinstance(entries, list):
        entries = []

    seen: set[str] = set()
    for index, entry in enumerate(entries):
        field_id = entry.get("id") if isinstance(entry, dict) else None
        if field_id is None:
            continue
        if field_id in seen:
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message=f'Duplicate field id "{field_id}"',
                    path=f"fields[{index}]/id",
                )
            )
        seen.add(field_id)

    return issues


def validate_forms_dir(forms_dir: Path) -> list[ValidationIssue]:
    """
    Validate every ``*.yaml`` file in *forms_dir*.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not forms_dir.is_dir():
        return [
            ValidationIssue(
                file=forms_dir,
                message=f"Forms directory does not exist: {forms_dir}",
            )
        ]

    try:
        registry = _load_registry()
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            ValidationIssue(
                file=_SCHEMAS_DIR,
                message=f"Failed to load JSON Schema files: {exc}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    for yaml_file in sorted(forms_dir.glob("*.yaml")):
        all_issues.extend(validate_form_file(yaml_file, registry=registry))
    return all_issues
