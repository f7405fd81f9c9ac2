"""Tests for rule declarations, form definitions, loading and schema checks."""

from pathlib import Path

import pytest
import yaml

from fieldguard.config import ValidatorSettings, forms_path
from fieldguard.forms.declarations import format_rules, parse_dependency, parse_rules
from fieldguard.forms.definition import FormDefinition
from fieldguard.forms.loader import FormLoader
from fieldguard.forms.validator import validate_form_file, validate_forms_dir
from fieldguard.validation.errors import ConfigurationError, DependencyCycleError
from fieldguard.validation.registry import custom_rule, dependency_callback
from fieldguard.validation.types import Callback, FieldKind, Rule


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


# =============================================================================
# Declarations
# =============================================================================


class TestParseRules:
    def test_message_only(self):
        rules, dependency = parse_rules("email", {"required": "Required", "email": "Invalid"})
        assert rules == (Rule("required", (), "Required"), Rule("email", (), "Invalid"))
        assert dependency is None

    def test_message_is_last_entry(self):
        rules, _ = parse_rules("password", {"length": [6, 10, "Too short/long"]})
        assert rules[0].params == (6, 10)
        assert rules[0].message == "Too short/long"

        rules, _ = parse_rules("bio", {"length": [0, "Too long"]})
        assert rules[0].params == (0,)

    def test_declaration_order_kept(self):
        rules, _ = parse_rules("x", {"regexp": ["^a", "m1"], "required": "m2", "length": [1, 2, "m3"]})
        assert [rule.kind for rule in rules] == ["regexp", "required", "length"]

    def test_multiple_custom_entries(self):
        rules, _ = parse_rules(
            "n", {"custom": [["is_digit", "Digits only"], ["divisible_by", 3, "Not divisible"]]}
        )
        assert [(rule.params, rule.message) for rule in rules] == [
            (("is_digit",), "Digits only"),
            (("divisible_by", 3), "Not divisible"),
        ]

    def test_single_custom_entry(self):
        rules, _ = parse_rules("n", {"custom": ["is_even", "Must be even"]})
        assert rules == (Rule("custom", ("is_even",), "Must be even"),)

    def test_dependencies_become_binding(self):
        rules, dependency = parse_rules(
            "extra_requirements", {"dependencies": {"room": "A"}, "required": "Required"}
        )
        assert [rule.kind for rule in rules] == ["required"]
        assert dependency.conditions == {"room": "A"}
        assert dependency.callback is None

    def test_dependency_callback(self):
        dependency = parse_dependency("extras", [{"room": ["A", "B"]}, "toggle, panel, fast"])
        assert dependency.conditions == {"room": ["A", "B"]}
        assert dependency.callback == Callback("toggle", ("panel", "fast"))

    def test_malformed(self):
        with pytest.raises(ConfigurationError, match="must end with an error message"):
            parse_rules("x", {"length": [6, 10]})
        with pytest.raises(ConfigurationError):
            parse_rules("x", {"required": []})
        with pytest.raises(ConfigurationError):
            parse_dependency("x", {})
        with pytest.raises(ConfigurationError):
            parse_dependency("x", [{"a": 1}, "cb", "extra"])

    def test_format_rules_inverse(self):
        declared = {
            "dependencies": [{"room": "A"}, "toggle, panel"],
            "required": ["Required"],
            "length": [0, 200, "Too long"],
            "custom": [["is_digit", "Digits only"], ["is_even", "Must be even"]],
        }
        rules, dependency = parse_rules("x", declared)
        assert format_rules(rules, dependency) == declared


# =============================================================================
# FormDefinition
# =============================================================================


class TestFormDefinition:
    def test_insert_after(self):
        form = FormDefinition("f")
        form.add("a")
        form.add("c")
        form.add("b", after="a")
        assert [f.id for f in form.fields] == ["a", "b", "c"]

    def test_unknown_after(self):
        form = FormDefinition("f")
        with pytest.raises(ConfigurationError, match="no field"):
            form.add("b", after="missing")

    def test_duplicate_id(self):
        form = FormDefinition("f")
        form.add("a")
        with pytest.raises(ConfigurationError, match="already registered"):
            form.add("a")

    def test_unknown_kind(self):
        with pytest.raises(ConfigurationError, match="unknown kind"):
            FormDefinition("f").add("a", kind="slider")

    def test_field_attributes(self):
        form = FormDefinition("f")
        field = form.add("color_red", name="color", kind="boolean-group")
        assert field.name == "color"
        assert field.kind == FieldKind.BOOLEAN_GROUP
        assert form.get("color_red") is field

    def test_unknown_rule_kind_at_build(self):
        form = FormDefinition("f")
        form.add("a", {"telepathy": "Nope"})
        with pytest.raises(ConfigurationError, match="Unknown rule"):
            form.build()

    def test_unresolved_custom_function_at_build(self):
        form = FormDefinition("f")
        form.add("a", {"custom": ["is_prime", "Not prime"]})
        with pytest.raises(ConfigurationError, match="is_prime"):
            form.build()

        custom_rule("is_prime")(lambda value: value in ("2", "3", "5", "7"))
        assert form.build() is form

    def test_missing_compare_target(self):
        form = FormDefinition("f")
        form.add("confirm", {"compare": ["password", "Passwords differ"]})
        with pytest.raises(ConfigurationError, match="password"):
            form.build()

    def test_unregistered_callback(self):
        form = FormDefinition("f")
        form.add("room")
        form.add("extras", {"dependencies": [{"room": "A"}, "toggle"]})
        with pytest.raises(ConfigurationError, match="toggle"):
            form.build()

        dependency_callback("toggle")(lambda satisfied: None)
        form.build()

    def test_date_without_format(self):
        form = FormDefinition("f")
        form.add("when", {"date": "Invalid"})
        with pytest.raises(ConfigurationError, match="date format"):
            form.build()

    def test_dependency_cycle_at_build(self):
        form = FormDefinition("f")
        form.add("a", {"dependencies": {"b": "x"}})
        form.add("b", {"dependencies": {"c": "x"}})
        form.add("c", {"dependencies": {"a": "x"}})

        with pytest.raises(DependencyCycleError) as exc_info:
            form.build()
        assert exc_info.value.path == ["a", "b", "c", "a"]

    def test_registration_invalidates_build(self):
        form = FormDefinition("f")
        form.add("a")
        graph = form.graph
        form.add("b", {"dependencies": {"a": "x"}})
        assert form.graph is not graph
        assert form.graph.dependents_of("a") == ["b"]

    def test_to_dict(self):
        form = FormDefinition("login", buttons=["sign_in"])
        form.add("email", {"required": "Required"})
        data = form.to_dict()
        assert data["form"] == "login"
        assert data["buttons"] == ["sign_in"]
        assert data["fields"] == [
            {"id": "email", "name": "email", "kind": "text", "rules": {"required": ["Required"]}}
        ]


# =============================================================================
# Loader
# =============================================================================


class TestFormLoader:
    def test_load_repository_forms(self, forms_dir):
        loader = FormLoader(forms_dir)
        loader.load_all()

        assert sorted(loader.list_forms()) == ["login", "reservation"]
        reservation = loader.get_form("reservation")
        assert reservation.buttons == ["book", "save_draft"]
        assert reservation.settings.validate_all is True
        assert reservation.get("room").kind == FieldKind.BOOLEAN_GROUP
        assert reservation.get("departure").format == "Y-m-d"

    def test_field_options(self, tmp_path):
        write_yaml(
            tmp_path / "event.yaml",
            {
                "form": "event",
                "fields": [
                    {"id": "title", "rules": {"required": "Required"}},
                    {"id": "day", "format": "j F Y", "months": [f"m{i}" for i in range(12)]},
                    {"id": "subtitle", "after": "title"},
                    {"id": "source", "kind": "choice-single", "other": True},
                ],
            },
        )
        form = FormLoader.load_file(tmp_path / "event.yaml")

        assert [f.id for f in form.fields] == ["title", "subtitle", "day", "source"]
        assert form.get("day").month_names[0] == "m0"
        assert form.get("source").other is True

    def test_not_a_form(self, tmp_path):
        write_yaml(tmp_path / "other.yaml", {"entity": "Contact"})
        with pytest.raises(ConfigurationError, match="does not define a form"):
            FormLoader.load_file(tmp_path / "other.yaml")

    def test_duplicate_form_names(self, tmp_path):
        write_yaml(tmp_path / "a.yaml", {"form": "same", "fields": []})
        write_yaml(tmp_path / "b.yaml", {"form": "same", "fields": []})
        with pytest.raises(ConfigurationError, match="more than once"):
            FormLoader(tmp_path).load_all()

    def test_missing_directory(self, tmp_path):
        loader = FormLoader(tmp_path / "nowhere")
        loader.load_all()
        assert loader.list_forms() == []


# =============================================================================
# Schema
# =============================================================================


class TestSchemaValidation:
    def test_repository_forms_are_valid(self, forms_dir):
        assert validate_forms_dir(forms_dir) == []

    def test_unknown_key_and_kind(self, tmp_path):
        path = write_yaml(
            tmp_path / "bad.yaml",
            {"form": "bad", "fields": [{"id": "a", "kind": "slider", "colour": "red"}]},
        )
        issues = validate_form_file(path)
        assert len(issues) == 2
        assert all(issue.path.startswith("fields[0]") for issue in issues)

    def test_malformed_dependencies(self, tmp_path):
        path = write_yaml(
            tmp_path / "bad.yaml",
            {"form": "bad", "fields": [{"id": "a", "rules": {"dependencies": "room"}}]},
        )
        issues = validate_form_file(path)
        assert issues
        assert issues[0].path == "fields[0]/rules/dependencies"

    def test_duplicate_field_ids(self, tmp_path):
        path = write_yaml(
            tmp_path / "dup.yaml", {"form": "dup", "fields": [{"id": "a"}, {"id": "a"}]}
        )
        issues = validate_form_file(path)
        assert [issue.message for issue in issues] == ['Duplicate field id "a"']

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        issues = validate_form_file(path)
        assert "empty" in issues[0].message

    def test_yaml_error(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("form: [unclosed\n")
        issues = validate_form_file(path)
        assert "YAML parse error" in issues[0].message

    def test_issue_str(self, tmp_path):
        path = write_yaml(tmp_path / "bad.yaml", {"fields": []})
        issues = validate_form_file(path)
        assert str(issues[0]).startswith("[ERROR]")

    def test_missing_directory(self, tmp_path):
        issues = validate_forms_dir(tmp_path / "nowhere")
        assert "does not exist" in issues[0].message


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    def test_defaults(self):
        settings = ValidatorSettings.from_env()
        assert settings.validate_all is False
        assert settings.validate_on_the_fly is False
        assert settings.mimes_path is None

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FIELDGUARD_VALIDATE_ALL", "true")
        monkeypatch.setenv("FIELDGUARD_VALIDATE_ON_THE_FLY", "0")
        monkeypatch.setenv("FIELDGUARD_MIMES_PATH", str(tmp_path / "mimes.json"))

        settings = ValidatorSettings.from_env()
        assert settings.validate_all is True
        assert settings.validate_on_the_fly is False
        assert settings.mimes_path == tmp_path / "mimes.json"

    def test_from_dict_overlays_base(self):
        base = ValidatorSettings(validate_all=True, validate_on_the_fly=True)
        settings = ValidatorSettings.from_dict({"validateAll": False}, base=base)
        assert settings.validate_all is False
        assert settings.validate_on_the_fly is True

    def test_forms_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FIELDGUARD_FORMS_PATH", str(tmp_path))
        assert forms_path() == tmp_path
