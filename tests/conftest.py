"""Shared fixtures for fieldguard tests."""

from pathlib import Path

import pytest

from fieldguard.validation.registry import CallbackRegistry, CustomRuleRegistry
from fieldguard.validation.rules import RuleCatalog, register_builtin_rules

FORMS_DIR = Path(__file__).parent.parent / "forms"


@pytest.fixture(autouse=True)
def setup_registries(monkeypatch):
    """Start every test with only the built-in rules registered."""
    for name in ("FIELDGUARD_VALIDATE_ALL", "FIELDGUARD_VALIDATE_ON_THE_FLY", "FIELDGUARD_MIMES_PATH"):
        monkeypatch.delenv(name, raising=False)

    RuleCatalog.clear()
    CustomRuleRegistry.clear()
    CallbackRegistry.clear()
    register_builtin_rules()
    yield
    RuleCatalog.clear()
    CustomRuleRegistry.clear()
    CallbackRegistry.clear()


@pytest.fixture
def forms_dir() -> Path:
    return FORMS_DIR
