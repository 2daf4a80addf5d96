"""Tests for the twinstrap CLI commands."""
import pytest
import yaml
from typer.testing import CliRunner

import twinstrap.cli as cli_module
from twinstrap.cli import app
from twinstrap.cli_setup_commands import STARTER_CONFIG

from conftest import SECRETS, write_env

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_file_logging(monkeypatch):
    monkeypatch.setattr("twinstrap.cli_support.setup_file_logging", lambda **kwargs: None)
    # Wide console so table cells and error lines are not wrapped
    monkeypatch.setattr(cli_module.console, "width", 200)


@pytest.fixture
def config_file(tmp_path, workspace_dict, secrets_file):
    path = tmp_path / "twinstrap.yml"
    path.write_text(yaml.safe_dump(workspace_dict))
    return path


class TestMainHelp:
    """Test main CLI help output."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "twinstrap - Bootstrap a frontend/backend web project" in result.stdout
        for command in ("init", "check", "plan", "run", "bundles", "version"):
            assert command in result.stdout

    def test_run_help_lists_options(self):
        result = runner.invoke(app, ["run", "--help"])

        assert result.exit_code == 0
        for option in ("--dry-run", "--strict-env", "--no-deploy", "--only", "--env-file"):
            assert option in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "twinstrap v0.1.0" in result.stdout


class TestInit:
    """Test twinstrap init."""

    def test_writes_starter_config(self, tmp_path):
        target = tmp_path / "twinstrap.yml"

        result = runner.invoke(app, ["init", "--path", str(target)])

        assert result.exit_code == 0
        assert target.read_text() == STARTER_CONFIG.read_text()

    def test_custom_name(self, tmp_path):
        target = tmp_path / "twinstrap.yml"

        runner.invoke(app, ["init", "--path", str(target), "--name", "Acme"])

        assert yaml.safe_load(target.read_text())["name"] == "Acme"

    def test_refuses_to_overwrite(self, tmp_path):
        target = tmp_path / "twinstrap.yml"
        target.write_text("name: mine\n")

        result = runner.invoke(app, ["init", "--path", str(target)])

        assert result.exit_code == 1
        assert target.read_text() == "name: mine\n"

    def test_force_overwrites(self, tmp_path):
        target = tmp_path / "twinstrap.yml"
        target.write_text("name: mine\n")

        result = runner.invoke(app, ["init", "--path", str(target), "--force"])

        assert result.exit_code == 0
        assert "BizFlow" in target.read_text()


class TestBundles:
    """Test twinstrap bundles."""

    def test_lists_builtin_bundles(self):
        result = runner.invoke(app, ["bundles"])

        assert result.exit_code == 0
        for name in ("next-lint", "api-client", "express-api", "node-lint"):
            assert name in result.stdout


class TestCheck:
    """Test twinstrap check exit codes."""

    def test_ready(self, config_file, all_commands):
        result = runner.invoke(app, ["check", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Ready to bootstrap" in result.stdout

    def test_missing_config_exit_1(self, tmp_path):
        result = runner.invoke(app, ["check", "--config", str(tmp_path / "nope.yml")])

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_missing_secret_exit_1(self, config_file, tmp_path, all_commands):
        env = write_env(tmp_path / "partial.env", {k: v for k, v in SECRETS.items() if k != "SUPABASE_KEY"})

        result = runner.invoke(app, ["check", "--config", str(config_file), "--env-file", str(env)])

        assert result.exit_code == 1
        assert "SUPABASE_KEY" in result.stdout

    def test_missing_command_exit_2(self, config_file, monkeypatch):
        monkeypatch.setattr(
            "twinstrap.core.preflight.shutil.which",
            lambda name: None if name == "npx" else f"/usr/bin/{name}",
        )

        result = runner.invoke(app, ["check", "--config", str(config_file)])

        assert result.exit_code == 2
        assert "npx" in result.stdout

    def test_config_from_environment(self, config_file, monkeypatch, all_commands):
        monkeypatch.setenv("TWINSTRAP_CONFIG", str(config_file))

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 0


class TestPlanAndRun:
    """Test twinstrap plan and run."""

    def test_plan(self, config_file):
        result = runner.invoke(app, ["plan", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "template:express-api" in result.stdout
        assert "deploy to vercel" in result.stdout

    def test_plan_without_deploy(self, config_file):
        result = runner.invoke(app, ["plan", "--config", str(config_file), "--no-deploy"])

        assert result.exit_code == 0
        assert "deploy to" not in result.stdout

    def test_run_dry_run(self, config_file, tmp_path, all_commands):
        result = runner.invoke(app, ["run", "--config", str(config_file), "--dry-run"])

        assert result.exit_code == 0
        assert "Dry run complete" in result.stdout
        assert "VERCEL_TOKEN" in result.stdout
        assert not (tmp_path / "work" / "api").exists()

    def test_run_mock_from_environment(self, config_file, tmp_path, monkeypatch, all_commands):
        monkeypatch.setenv("TWINSTRAP_MOCK", "1")

        result = runner.invoke(app, ["run", "--config", str(config_file), "--only", "backend"])

        assert result.exit_code == 0
        assert not (tmp_path / "work" / "api").exists()

    def test_run_unknown_project_exit_1(self, config_file, all_commands):
        result = runner.invoke(app, ["run", "--config", str(config_file), "--dry-run", "--only", "mobile"])

        assert result.exit_code == 1

    def test_run_missing_command_exit_2(self, config_file, monkeypatch):
        monkeypatch.setattr("twinstrap.core.preflight.shutil.which", lambda name: None)

        result = runner.invoke(app, ["run", "--config", str(config_file), "--dry-run"])

        assert result.exit_code == 2
