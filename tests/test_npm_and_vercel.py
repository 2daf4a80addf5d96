"""Tests for the npm and Vercel CLI wrappers."""
import json

import pytest

from twinstrap.core.errors import DependencyInstallError, DeploymentError, EnvRegistrationError, MutationError
from twinstrap.models.project import RetryPolicy
from twinstrap.services.npm_manager import NpmManager
from twinstrap.services.vercel_manager import VercelManager

from conftest import FakeRunner


class TestNpmManager:
    """Test NpmManager."""

    def test_init_creates_package_json(self, tmp_path):
        runner = FakeRunner()

        assert NpmManager(runner).init(tmp_path) is True
        assert (tmp_path / "package.json").exists()

    def test_init_skipped_when_package_json_exists(self, tmp_path):
        (tmp_path / "package.json").write_text("{}")
        runner = FakeRunner()

        assert NpmManager(runner).init(tmp_path) is False
        assert runner.commands == []

    def test_install_dependencies(self, tmp_path):
        runner = FakeRunner()

        NpmManager(runner).install(tmp_path, ["express", "cors"])

        assert runner.commands == [["npm", "install", "express", "cors"]]
        assert runner.calls[0][1] == str(tmp_path)

    def test_install_dev_dependencies(self, tmp_path):
        runner = FakeRunner()

        NpmManager(runner).install(tmp_path, ["eslint"], dev=True)

        assert runner.commands == [["npm", "install", "--save-dev", "eslint"]]

    def test_install_failure(self, tmp_path):
        runner = FakeRunner()
        runner.fail("npm", "install", stderr="ERESOLVE unable to resolve dependency tree")

        with pytest.raises(DependencyInstallError) as exc_info:
            NpmManager(runner).install(tmp_path)

        assert exc_info.value.exit_code == 4
        assert "ERESOLVE" in str(exc_info.value)

    def test_run_script_failure_is_mutation_error(self, tmp_path):
        runner = FakeRunner()
        runner.fail("npm", "run", "lint:fix")

        with pytest.raises(MutationError):
            NpmManager(runner).run_script(tmp_path, "lint:fix")

    def test_render_scripts_merges(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"name": "api", "scripts": {"test": "jest"}}))

        content = NpmManager(FakeRunner()).render_scripts(tmp_path, {"start": "node index.js"})

        assert json.loads(content)["scripts"] == {"test": "jest", "start": "node index.js"}
        assert content.endswith("\n")

    def test_render_scripts_without_package_json(self, tmp_path):
        assert NpmManager(FakeRunner()).render_scripts(tmp_path, {"a": "b"}) is None

    def test_invalid_package_json(self, tmp_path):
        (tmp_path / "package.json").write_text("{not json")

        with pytest.raises(MutationError):
            NpmManager(FakeRunner()).read_package_json(tmp_path)


class TestVercelManager:
    """Test VercelManager."""

    def test_deploy_production(self, tmp_path):
        runner = FakeRunner()

        url = VercelManager(runner, "tok-1", RetryPolicy(delay=0)).deploy(tmp_path)

        assert url == "https://backend-demo.vercel.app"
        assert runner.commands == [["vercel", "deploy", "--prod", "--yes", "--token", "tok-1"]]

    def test_deploy_preview(self, tmp_path):
        runner = FakeRunner()

        VercelManager(runner, "tok-1").deploy(tmp_path, production=False)

        assert "--prod" not in runner.commands[0]

    def test_deploy_failure_exit_5(self, tmp_path):
        runner = FakeRunner()
        runner.fail("vercel", "deploy", stderr="Error: team not found")

        with pytest.raises(DeploymentError) as exc_info:
            VercelManager(runner, "tok-1", RetryPolicy(attempts=2, delay=0)).deploy(tmp_path)

        assert exc_info.value.exit_code == 5
        assert runner.count("vercel", "deploy") == 2

    def test_token_is_redacted(self, tmp_path):
        runner = FakeRunner()
        VercelManager(runner, "tok-secret-xyz")

        assert "tok-secret-xyz" not in runner.display(["vercel", "--token", "tok-secret-xyz"])

    def test_add_env_sends_value_on_stdin(self, tmp_path):
        runner = FakeRunner()

        VercelManager(runner, "tok-1").add_env(tmp_path, "SUPABASE_URL", "https://db", target="production")

        argv, _cwd, stdin = runner.calls[0]
        assert argv == ["vercel", "env", "add", "SUPABASE_URL", "production", "--token", "tok-1"]
        assert "https://db" not in argv
        assert stdin == "https://db\n"

    def test_add_env_failure(self, tmp_path):
        runner = FakeRunner()
        runner.fail("vercel", "env", "add", stderr="already exists")

        with pytest.raises(EnvRegistrationError) as exc_info:
            VercelManager(runner, "tok-1").add_env(tmp_path, "SUPABASE_URL", "x")

        assert exc_info.value.name == "SUPABASE_URL"
        assert exc_info.value.target == "production"
