"""Validator configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

TRUE_VALUES = ("1", "true", "yes", "on")


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


@dataclass
class ValidatorSettings:
    """Behavior of a FormValidator.

    Attributes:
        validate_all: Collect-all when true; fail-fast (stop at the first
            invalid field) when false
        validate_on_the_fly: Validate and present errors when a field loses
            focus
        mimes_path: JSON table used by the "filetype" rule; None means the
            packaged table
    """

    validate_all: bool = False
    validate_on_the_fly: bool = False
    mimes_path: Path | None = None

    @classmethod
    def from_env(cls) -> ValidatorSettings:
        """Create settings from environment variables.

        Reads FIELDGUARD_VALIDATE_ALL, FIELDGUARD_VALIDATE_ON_THE_FLY and
        FIELDGUARD_MIMES_PATH; anything unset keeps its default.
        """
        mimes_path = os.environ.get("FIELDGUARD_MIMES_PATH")
        return cls(
            validate_all=_flag(os.environ.get("FIELDGUARD_VALIDATE_ALL", "")),
            validate_on_the_fly=_flag(os.environ.get("FIELDGUARD_VALIDATE_ON_THE_FLY", "")),
            mimes_path=Path(mimes_path) if mimes_path else None,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, base: ValidatorSettings | None = None) -> ValidatorSettings:
        """Overlay the camelCase ``settings:`` block of a form file.

        Args:
            data: The settings mapping (validateAll, validateOnTheFly, mimesPath)
            base: Settings to start from; defaults to from_env()
        """
        settings = base or cls.from_env()
        data = data or {}
        mimes_path = data.get("mimesPath")
        return cls(
            validate_all=_flag(data["validateAll"]) if "validateAll" in data else settings.validate_all,
            validate_on_the_fly=(
                _flag(data["validateOnTheFly"])
                if "validateOnTheFly" in data
                else settings.validate_on_the_fly
            ),
            mimes_path=Path(mimes_path) if mimes_path else settings.mimes_path,
        )


def forms_path() -> Path:
    """Directory holding form definition files (FIELDGUARD_FORMS_PATH, default ./forms)."""
    return Path(os.environ.get("FIELDGUARD_FORMS_PATH", "forms"))
