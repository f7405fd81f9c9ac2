"""Load form definitions from YAML files."""

import logging
from pathlib import Path
from typing import Any

import yaml

from fieldguard.config import ValidatorSettings
from fieldguard.forms.definition import FormDefinition
from fieldguard.validation.errors import ConfigurationError

logger = logging.getLogger(__name__)


class FormLoader:
    """Loads every ``*.yaml`` form definition in a directory.

    A form file looks like:

        form: reservation
        buttons: [book]
        settings:
          validateAll: true
        fields:
          - id: email
            rules:
              required: "Email is required"
              email: "Email is invalid"
    """

    def __init__(self, forms_path: Path):
        self.forms_path = Path(forms_path)
        self.forms: dict[str, FormDefinition] = {}

    def load_all(self) -> None:
        """Load and build all forms in the directory."""
        if not self.forms_path.exists():
            logger.warning("Forms directory %s does not exist", self.forms_path)
            return

        for yaml_file in sorted(self.forms_path.glob("*.yaml")):
            form = self.load_file(yaml_file)
            if form.name in self.forms:
                raise ConfigurationError(
                    f'Form "{form.name}" is defined more than once ({yaml_file})'
                )
            self.forms[form.name] = form.build()

    @classmethod
    def load_file(cls, yaml_file: Path) -> FormDefinition:
        """Parse one form file. The returned form is not built yet."""
        with open(yaml_file) as f:
            data = yaml.safe_load(f)
        if not data or "form" not in data:
            raise ConfigurationError(f"{yaml_file} does not define a form")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FormDefinition:
        form = FormDefinition(
            name=str(data["form"]),
            buttons=data.get("buttons") or [],
            settings=ValidatorSettings.from_dict(data.get("settings")),
            description=data.get("description", ""),
        )
        for entry in data.get("fields") or []:
            cls._resolve_field(form, entry)
        return form

    @staticmethod
    def _resolve_field(form: FormDefinition, data: dict[str, Any]) -> None:
        if "id" not in data:
            raise ConfigurationError(f'Form "{form.name}" has a field without an id')
        form.add(
            str(data["id"]),
            data.get("rules") or {},
            name=data.get("name"),
            kind=data.get("kind", "text"),
            after=data.get("after"),
            format=data.get("format"),
            other=bool(data.get("other", False)),
            days=data.get("days"),
            months=data.get("months"),
        )

    def get_form(self, name: str) -> FormDefinition | None:
        """Get a loaded form by name."""
        return self.forms.get(name)

    def list_forms(self) -> list[str]:
        """List all form names."""
        return list(self.forms.keys())
