"""Form CLI commands: check definitions and run server-side passes."""

import asyncio
import importlib
import json
from pathlib import Path
from typing import Any

import click

from fieldguard.config import ValidatorSettings, forms_path
from fieldguard.forms.loader import FormLoader
from fieldguard.forms.validator import validate_form_file, validate_forms_dir
from fieldguard.validation.errors import ConfigurationError
from fieldguard.validation.orchestrator import FormValidator
from fieldguard.validation.types import FormState, UploadInfo


@click.group()
def forms():
    """Form definition commands."""
    pass


def _import_functions(modules: tuple[str, ...]) -> None:
    """Import modules that register custom rules and callbacks."""
    for module in modules:
        try:
            importlib.import_module(module)
        except ImportError as e:
            click.echo(f"Error: cannot import {module}: {e}", err=True)
            raise SystemExit(1)


@forms.command()
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Check a single YAML file instead of the whole forms directory.",
)
@click.option(
    "--functions",
    "modules",
    multiple=True,
    help="Module that registers custom rules or callbacks (repeatable).",
)
def check(target_path: Path | None, modules: tuple[str, ...]):
    """Check form YAML files against the schema, then build them."""
    _import_functions(modules)

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    if target_path is not None:
        files = [target_path]
        schema_issues = validate_form_file(target_path)
    else:
        directory = forms_path()
        if not directory.exists():
            click.echo(f"Error: Forms directory not found at {directory}", err=True)
            raise SystemExit(1)
        files = sorted(directory.glob("*.yaml"))
        schema_issues = validate_forms_dir(directory)

    for issue in schema_issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    errors = [i for i in schema_issues if i.severity == "error"]
    if errors:
        click.echo(click.style(f"\n{len(errors)} schema error(s) found", fg="red", bold=True))
        raise SystemExit(1)

    # ── Semantic validation (references, cycles) ────────────────────────────
    click.echo(f"Checked {len(files)} form file(s):")
    for yaml_file in files:
        try:
            form = FormLoader.load_file(yaml_file).build()
        except ConfigurationError as e:
            click.echo(click.style(f"\n{yaml_file}: {e}", fg="red"), err=True)
            raise SystemExit(1)
        click.echo(f"  ✓ {form.name} ({len(form.fields)} fields)")

    click.echo(click.style("\nAll forms are valid.", fg="green", bold=True))


def _read_state(values_file: Path) -> FormState:
    """Read a submission: either a plain values mapping or
    {values, clickedButton, hidden, uploads}."""
    with open(values_file) as f:
        data: dict[str, Any] = json.load(f)

    if "values" not in data:
        return FormState(values=data)

    return FormState(
        values=data["values"],
        clicked_button=data.get("clickedButton"),
        hidden=set(data.get("hidden") or []),
        uploads={
            field_id: UploadInfo.from_dict(upload)
            for field_id, upload in (data.get("uploads") or {}).items()
        },
    )


@forms.command("validate")
@click.argument("form_file", type=click.Path(exists=True, path_type=Path))
@click.argument("values_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--all",
    "collect_all",
    is_flag=True,
    default=False,
    help="Validate every field instead of stopping at the first invalid one.",
)
@click.option(
    "--functions",
    "modules",
    multiple=True,
    help="Module that registers custom rules or callbacks (repeatable).",
)
def validate_cmd(form_file: Path, values_file: Path, collect_all: bool, modules: tuple[str, ...]):
    """Validate a JSON submission against a form definition."""
    _import_functions(modules)

    try:
        form = FormLoader.load_file(form_file)
        settings = ValidatorSettings.from_dict(
            {"validateAll": True} if collect_all else None, base=form.settings
        )
        validator = FormValidator(form, settings=settings, state=_read_state(values_file))
        result = asyncio.run(validator.validate_all())
    except ConfigurationError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        raise SystemExit(2)

    for outcome in result.outcomes.values():
        if outcome.exempt:
            click.echo(f"  - {outcome.field_id} (exempt)")
        elif outcome.valid:
            click.echo(f"  ✓ {outcome.field_id}")
        else:
            click.echo(click.style(f"  ✗ {outcome.field_id} [{outcome.rule}] {outcome.message}", fg="red"))

    if not result.valid:
        click.echo(click.style(f"\n{len(result.failures)} invalid field(s)", fg="red", bold=True))
        raise SystemExit(1)

    click.echo(click.style("\nSubmission is valid.", fg="green", bold=True))
