"""Tests for fieldguard CLI commands."""

import json

import pytest
import yaml
from click.testing import CliRunner

from fieldguard.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def repo_forms(monkeypatch, forms_dir):
    """Point the CLI at the repository's forms directory."""
    monkeypatch.setenv("FIELDGUARD_FORMS_PATH", str(forms_dir))
    return forms_dir


def write_json(path, data):
    path.write_text(json.dumps(data))
    return path


class TestFormsCheck:
    def test_check_succeeds(self, runner, repo_forms):
        result = runner.invoke(cli, ["forms", "check"])
        assert result.exit_code == 0
        assert "All forms are valid" in result.output
        assert "reservation" in result.output
        assert "login" in result.output

    def test_check_single_file(self, runner, repo_forms):
        result = runner.invoke(cli, ["forms", "check", "--path", str(repo_forms / "login.yaml")])
        assert result.exit_code == 0
        assert "Checked 1 form file(s)" in result.output

    def test_schema_error(self, runner, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text(yaml.safe_dump({"form": "bad", "fields": [{"id": "a", "kind": "slider"}]}))

        result = runner.invoke(cli, ["forms", "check", "--path", str(bad)])
        assert result.exit_code == 1
        assert "schema error(s) found" in result.output

    def test_unresolved_reference(self, runner, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text(
            yaml.safe_dump(
                {"form": "bad", "fields": [{"id": "a", "rules": {"custom": ["is_prime", "Nope"]}}]}
            )
        )

        result = runner.invoke(cli, ["forms", "check", "--path", str(bad)])
        assert result.exit_code == 1
        assert "is_prime" in result.output

    def test_missing_directory(self, runner, monkeypatch, tmp_path):
        monkeypatch.setenv("FIELDGUARD_FORMS_PATH", str(tmp_path / "nowhere"))
        result = runner.invoke(cli, ["forms", "check"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestFormsValidate:
    def test_invalid_submission(self, runner, repo_forms, tmp_path):
        values = write_json(tmp_path / "values.json", {"email": "", "password": "abcdefgh"})

        result = runner.invoke(cli, ["forms", "validate", str(repo_forms / "login.yaml"), str(values)])
        assert result.exit_code == 1
        assert "email [required] Required" in result.output
        assert "password" not in result.output

    def test_collect_all(self, runner, repo_forms, tmp_path):
        values = write_json(tmp_path / "values.json", {"email": "", "password": "abc"})

        result = runner.invoke(
            cli, ["forms", "validate", str(repo_forms / "login.yaml"), str(values), "--all"]
        )
        assert result.exit_code == 1
        assert "password [length] Too short/long" in result.output
        assert "2 invalid field(s)" in result.output

    def test_valid_submission(self, runner, repo_forms, tmp_path):
        values = write_json(tmp_path / "values.json", {"email": "a@b.com", "password": "abcdefgh"})

        result = runner.invoke(cli, ["forms", "validate", str(repo_forms / "login.yaml"), str(values)])
        assert result.exit_code == 0
        assert "Submission is valid" in result.output

    def test_full_submission_document(self, runner, repo_forms, tmp_path):
        values = write_json(
            tmp_path / "values.json",
            {
                "values": {
                    "name": "Ann Lee",
                    "email": "ann@example.com",
                    "room": "B",
                    "arrival": "2024-01-10",
                    "departure": "2024-02-01",
                    "guests": "",
                },
                "clickedButton": "book",
            },
        )

        result = runner.invoke(
            cli, ["forms", "validate", str(repo_forms / "reservation.yaml"), str(values)]
        )
        assert result.exit_code == 1
        assert "extra_requirements (exempt)" in result.output
        assert "guests [required] Number of guests is required" in result.output

    def test_functions_module(self, runner, tmp_path, monkeypatch):
        module = tmp_path / "cli_test_functions.py"
        module.write_text(
            "from fieldguard.validation import custom_rule\n"
            "\n"
            "@custom_rule('is_even')\n"
            "def is_even(value):\n"
            "    return int(value) % 2 == 0\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        form = tmp_path / "numbers.yaml"
        form.write_text(
            yaml.safe_dump(
                {"form": "numbers", "fields": [{"id": "n", "rules": {"custom": ["is_even", "Even only"]}}]}
            )
        )
        values = write_json(tmp_path / "values.json", {"n": "3"})

        result = runner.invoke(
            cli,
            ["forms", "validate", str(form), str(values), "--functions", "cli_test_functions"],
        )
        assert result.exit_code == 1
        assert "n [custom] Even only" in result.output

    def test_configuration_error(self, runner, tmp_path):
        form = tmp_path / "numbers.yaml"
        form.write_text(
            yaml.safe_dump(
                {"form": "numbers", "fields": [{"id": "n", "rules": {"custom": ["missing", "Nope"]}}]}
            )
        )
        values = write_json(tmp_path / "values.json", {"n": "3"})

        result = runner.invoke(cli, ["forms", "validate", str(form), str(values)])
        assert result.exit_code == 2
        assert "Configuration error" in result.output
