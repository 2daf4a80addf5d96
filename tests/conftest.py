"""Shared test fixtures for twinstrap tests."""
import json
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

from twinstrap.core.errors import CommandFailed, CommandTimeout
from twinstrap.core.logger import clear_secrets
from twinstrap.models.config_set import ConfigurationSet
from twinstrap.models.project import WorkspaceConfig
from twinstrap.services.runner import CommandResult, CommandRunner

SECRETS = {
    "VERCEL_API_TOKEN": "vercel-token-123",
    "GITHUB_API_KEY": "ghp-test-key",
    "SUPABASE_URL": "https://demo.supabase.co",
    "SUPABASE_KEY": "anon-key-456",
    "OPENAI_API_KEY": "sk-openai-secret",
    "HUGGINGFACE_API_KEY": "hf-secret-789",
}


class FakeRunner(CommandRunner):
    """Records every command and simulates git/npm/vercel side effects."""

    def __init__(self, clone_files: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.calls = []
        self.failures = []
        self.clean = False
        self.clone_files = clone_files or {}

    def fail(
        self,
        *prefix: str,
        returncode: int = 1,
        stderr: str = "boom",
        timeout: bool = False,
        times: Optional[int] = None,
        partial: bool = False,
    ):
        """Make commands starting with prefix fail (optionally only the first N times).

        With partial=True a failing clone leaves target/.git behind, like an
        interrupted git clone.
        """
        self.failures.append({
            "prefix": list(prefix),
            "returncode": returncode,
            "stderr": stderr,
            "timeout": timeout,
            "remaining": times,
            "partial": partial,
        })

    @property
    def commands(self):
        return [argv for argv, _cwd, _input in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(argv[:len(prefix)] == list(prefix) for argv in self.commands)

    def count(self, *prefix: str) -> int:
        return sum(1 for argv in self.commands if argv[:len(prefix)] == list(prefix))

    def _match_failure(self, argv):
        for failure in self.failures:
            if argv[:len(failure["prefix"])] != failure["prefix"]:
                continue
            if failure["remaining"] is not None:
                if failure["remaining"] <= 0:
                    continue
                failure["remaining"] -= 1
            return failure
        return None

    def run(self, args, cwd=None, input=None, timeout=None, check=True):
        argv = [str(a) for a in args]
        self.calls.append((argv, str(cwd) if cwd else None, input))

        failure = self._match_failure(argv)
        if failure:
            if failure["partial"] and argv[:2] == ["git", "clone"]:
                (Path(argv[-1]) / ".git" / "objects").mkdir(parents=True, exist_ok=True)
            if failure["timeout"]:
                raise CommandTimeout(argv, 1.0, display=self.display(argv))
            if check:
                raise CommandFailed(argv, failure["returncode"], failure["stderr"], display=self.display(argv))
            return CommandResult(argv, failure["returncode"], "", failure["stderr"])

        return self._simulate(argv, cwd)

    def _simulate(self, argv, cwd) -> CommandResult:
        if argv[:2] == ["git", "clone"]:
            target = Path(argv[-1])
            if target.exists() and any(target.iterdir()):
                stderr = f"fatal: destination path '{target}' already exists and is not an empty directory."
                raise CommandFailed(argv, 128, stderr, display=self.display(argv))
            (target / ".git").mkdir(parents=True, exist_ok=True)
            for relative, content in self.clone_files.items():
                path = target / relative
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content)
            return CommandResult(argv)

        if argv[:3] == ["git", "diff", "--cached"]:
            return CommandResult(argv, returncode=0 if self.clean else 1)

        if argv[:2] == ["git", "rev-parse"]:
            return CommandResult(argv, stdout="abc1234\n")

        if argv[:3] == ["npm", "init", "-y"]:
            package = {"name": Path(cwd).name, "version": "1.0.0", "scripts": {"test": "echo \"Error\""}}
            (Path(cwd) / "package.json").write_text(json.dumps(package, indent=2))
            return CommandResult(argv)

        if argv[:2] == ["vercel", "deploy"]:
            return CommandResult(argv, stdout="https://backend-demo.vercel.app\n")

        return CommandResult(argv)


def write_env(path: Path, values: Dict[str, str]) -> Path:
    path.write_text("".join(f"{key}={value}\n" for key, value in values.items()))
    return path


@pytest.fixture(autouse=True)
def fresh_secret_registry():
    """Each test starts with no masked log values."""
    clear_secrets()
    yield
    clear_secrets()


@pytest.fixture
def secrets():
    return dict(SECRETS)


@pytest.fixture
def config_set():
    return ConfigurationSet(SECRETS, source="test")


@pytest.fixture
def secrets_file(tmp_path):
    """Secrets file with all six required values."""
    return write_env(tmp_path / ".env", SECRETS)


@pytest.fixture
def fake_runner():
    return FakeRunner(clone_files={"frontend/package.json": json.dumps({"name": "web", "scripts": {}})})


@pytest.fixture
def all_commands(monkeypatch):
    """Every executable resolves on PATH."""
    monkeypatch.setattr("twinstrap.core.preflight.shutil.which", lambda name: f"/usr/bin/{name}")


def make_workspace_dict(root: Path, projects: Optional[Iterable[str]] = None) -> dict:
    """Two-project workspace mirroring the starter config, rooted in a temp dir."""
    frontend = {
        "name": "frontend",
        "repo": "git@github.com:demo/web.git",
        "path": str(root / "work" / "web"),
        "workdir": "frontend",
        "public": True,
        "steps": [
            "install",
            "install-dev",
            "template:next-lint",
            "scripts",
            "run:lint:fix",
            "run:format",
            "env-file",
            "template:api-client",
        ],
        "dev_dependencies": ["eslint", "prettier"],
        "scripts": {
            "lint": "eslint 'src/**/*.{js,jsx,ts,tsx}'",
            "lint:fix": "eslint 'src/**/*.{js,jsx,ts,tsx}' --fix",
            "format": "prettier --write 'src/**/*.{js,jsx,ts,tsx,css,md}'",
        },
        "env_file": ".env.local",
        "env": {
            "NEXT_PUBLIC_SUPABASE_URL": "{{ SUPABASE_URL }}",
            "NEXT_PUBLIC_SUPABASE_ANON_KEY": "{{ SUPABASE_KEY }}",
            "NEXT_PUBLIC_OPENAI_API_KEY": "{{ OPENAI_API_KEY }}",
            "HUGGINGFACE_API_KEY": "{{ HUGGINGFACE_API_KEY }}",
        },
        "context": {"api_base_url": "https://backend-demo.vercel.app/api"},
        "commit_message": "Apply frontend setup",
    }
    backend = {
        "name": "backend",
        "repo": "git@github.com:demo/api.git",
        "path": str(root / "work" / "api"),
        "steps": [
            "npm-init",
            "install",
            "template:express-api",
            "env-file",
            "scripts",
            "install-dev",
            "template:node-lint",
            "run:lint:fix",
        ],
        "dependencies": ["express", "cors"],
        "dev_dependencies": ["nodemon", "eslint"],
        "scripts": {"start": "node index.js", "lint": "eslint src/**", "lint:fix": "eslint src/** --fix"},
        "env": {
            "SUPABASE_URL": "{{ SUPABASE_URL }}",
            "SUPABASE_KEY": "{{ SUPABASE_KEY }}",
            "OPENAI_API_KEY": "{{ OPENAI_API_KEY }}",
            "HUGGINGFACE_API_KEY": "{{ HUGGINGFACE_API_KEY }}",
            "PORT": "5000",
        },
        "commit_message": "Configure backend",
        "ci": {"enabled": True, "node_version": "20"},
        "deploy": {
            "enabled": True,
            "env": ["SUPABASE_URL", "SUPABASE_KEY", "OPENAI_API_KEY", "HUGGINGFACE_API_KEY"],
        },
    }
    selected = {"frontend": frontend, "backend": backend}
    names = list(projects) if projects else ["frontend", "backend"]
    return {
        "name": "Demo",
        "secrets_file": str(root / ".env"),
        "retry": {"attempts": 2, "delay": 0},
        "projects": [selected[name] for name in names],
    }


@pytest.fixture
def workspace_dict(tmp_path):
    return make_workspace_dict(tmp_path)


@pytest.fixture
def workspace(workspace_dict):
    return WorkspaceConfig.model_validate(workspace_dict)
