"""Tests for the tagorm CLI."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from tagorm.cli.app import app

runner = CliRunner()

RECORDS = "tests._support.records"


class TestRootApp:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "describe" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("tagorm ")

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)


class TestDescribe:
    def test_json(self):
        result = runner.invoke(app, ["describe", f"{RECORDS}:Item", "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["table"] == "ITEM"
        assert [col["name"] for col in payload["columns"]] == ["NAME", "OWNERID", "ID"]
        assert payload["columns"][2]["roles"] == "id,pk"
        assert payload["columns"][1]["type"] == "I64"
        assert payload["sql"] == {
            "select": "SELECT NAME, OWNERID, ID FROM ITEM",
            "insert": "INSERT INTO ITEM (NAME, OWNERID) VALUES (:1, :2) RETURNING ID INTO :RET_VAL",
            "delete": "DELETE FROM ITEM WHERE ID = :WHERE_VAL",
        }

    def test_schema_and_table(self):
        result = runner.invoke(
            app, ["describe", f"{RECORDS}:Person", "--schema", "HR", "--table", "staff", "--json"]
        )
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["table"] == "HR.STAFF"
        assert payload["sql"]["delete"] == "DELETE FROM HR.STAFF WHERE PERSON_ID = :WHERE_VAL"

    def test_schema_from_environment(self, monkeypatch):
        monkeypatch.setenv("TAGORM_SCHEMA_NAME", "ENV")
        result = runner.invoke(app, ["describe", f"{RECORDS}:Item", "--json"])
        assert json.loads(result.stdout)["table"] == "ENV.ITEM"

    def test_without_key(self):
        result = runner.invoke(app, ["describe", f"{RECORDS}:Reading", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["sql"]["delete"] == "(no primary key)"

    def test_table_output(self):
        result = runner.invoke(app, ["describe", f"{RECORDS}:Item"])
        assert result.exit_code == 0, result.output
        assert "OWNERID" in result.output
        assert "fk1" in result.output
        assert "RET_VAL" in result.output

    def test_invalid_record(self):
        result = runner.invoke(app, ["describe", f"{RECORDS}:TwoKeys"])
        assert result.exit_code == 1
        assert "TwoKeys" in result.output

    def test_bad_target(self):
        result = runner.invoke(app, ["describe", "no_colon_here"])
        assert result.exit_code == 2

    def test_unknown_attribute(self):
        result = runner.invoke(app, ["describe", f"{RECORDS}:Missing"])
        assert result.exit_code == 2


class TestLoggingOutput:
    def test_debug_logs_stay_off_stdout(self, monkeypatch):
        monkeypatch.setenv("TAGORM_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TAGORM_LOG_JSON", "true")
        result = runner.invoke(app, ["describe", f"{RECORDS}:Item", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["table"] == "ITEM"
        events = [json.loads(line) for line in result.stderr.splitlines() if line.strip()]
        assert "metadata.resolved" in [event["event"] for event in events]

    def test_default_level_writes_no_logs(self):
        result = runner.invoke(app, ["describe", f"{RECORDS}:Item", "--json"])
        assert result.exit_code == 0, result.output
        assert result.stderr == ""
