import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from provider_advisor.cli.main import cli
from provider_advisor.report.emitter import DiagnosticPayload
from provider_advisor.utils.errors import ExecutionDirError


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("ADVISOR_EXECUTION_DIR", "ADVISOR_API_ID", "ADVISOR_API_KEY", "ADVISOR_LLM_PROVIDER"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


def test_version_and_log_level_options(runner):
    assert "0.1.0" in runner.invoke(cli, ["--version"]).output

    result = runner.invoke(cli, ["--log-level", "debug", "--log-dir", "", "tasks"])

    assert result.exit_code == 0


def test_tasks_lists_canonical_tasks(runner):
    result = runner.invoke(cli, ["--log-dir", "", "tasks"])

    assert result.exit_code == 0
    assert "inventory-diff" in result.output
    assert "new-feature-adoption" in result.output


def test_inventory_json(runner, execution_dir):
    result = runner.invoke(cli, ["--log-dir", "", "inventory", "--execution-dir", str(execution_dir), "--format", "json"])

    assert result.exit_code == 0
    assert json.loads(result.output) == [{"type": "incapsula_site_v3", "id": "42"}]


def test_inventory_table(runner, execution_dir):
    result = runner.invoke(cli, ["--log-dir", "", "inventory", "--execution-dir", str(execution_dir)])

    assert result.exit_code == 0
    assert "incapsula_site_v3" in result.output
    assert "1 declared resource(s)" in result.output


def test_inventory_missing_execution_dir(runner, tmp_path):
    result = runner.invoke(cli, ["--log-dir", "", "inventory", "--execution-dir", str(tmp_path / "nope")])

    assert result.exit_code == 1


def test_run_passes_overrides_and_prints_payload(runner, execution_dir):
    payload = DiagnosticPayload(detail="use variables", failed_tasks=["inventory-diff"])

    with patch("provider_advisor.cli.main.run_advisory_cycle", return_value=payload) as run_cycle:
        result = runner.invoke(cli, [
            "--log-dir", "", "run",
            "--execution-dir", str(execution_dir),
            "--sequential",
            "--llm-provider", "anthropic",
            "--llm-model", "claude-test",
        ])

    assert result.exit_code == 0
    settings = run_cycle.call_args.args[0]
    assert settings.execution_dir == str(execution_dir)
    assert settings.concurrent is False
    assert settings.agent.provider == "anthropic"
    assert settings.agent.model == "claude-test"
    assert "Best Practice Suggestion" in result.output
    assert "use variables" in result.output
    assert "inventory-diff" in result.output


def test_run_exits_on_execution_dir_error(runner):
    with patch("provider_advisor.cli.main.run_advisory_cycle", side_effect=ExecutionDirError("gone")):
        result = runner.invoke(cli, ["--log-dir", "", "run"])

    assert result.exit_code == 1
    assert "gone" in result.output


def test_run_exits_on_invalid_config(runner, tmp_path):
    (tmp_path / "advisor.yaml").write_text("diff_direction: sideways\n")

    result = runner.invoke(cli, ["--log-dir", "", "run"])

    assert result.exit_code == 1
    assert "diff_direction" in result.output
