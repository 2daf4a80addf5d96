"""Workspace and project descriptor models loaded from twinstrap.yml."""
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_REQUIRED = [
    "VERCEL_API_TOKEN",
    "GITHUB_API_KEY",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "OPENAI_API_KEY",
    "HUGGINGFACE_API_KEY",
]

# Backend-only secrets that must never reach a public-facing project.
DEFAULT_DENYLIST = ["OPENAI_API_KEY", "HUGGINGFACE_API_KEY"]

DEFAULT_PREFLIGHT = ["git", "npm", "npx", "vercel"]

# Step kinds and whether they take an argument after the colon.
STEP_KINDS = {
    "npm-init": False,
    "install": False,
    "install-dev": False,
    "scripts": False,
    "env-file": False,
    "template": True,
    "run": True,
    "mkdir": True,
}

_ENV_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def parse_step(step: str) -> Tuple[str, Optional[str]]:
    """Split a step such as 'run:lint:fix' into ('run', 'lint:fix')."""
    kind, sep, arg = step.partition(":")
    kind = kind.strip()
    if kind not in STEP_KINDS:
        raise ValueError(f"Unknown step '{step}'. Known kinds: {', '.join(sorted(STEP_KINDS))}")
    if STEP_KINDS[kind]:
        if not sep or not arg.strip():
            raise ValueError(f"Step '{kind}' needs an argument (e.g. '{kind}:<name>')")
        return kind, arg.strip()
    if sep:
        raise ValueError(f"Step '{kind}' takes no argument. Got: {step}")
    return kind, None


def _check_env_names(names: List[str]) -> List[str]:
    for name in names:
        if not _ENV_NAME.match(name):
            raise ValueError(
                f"'{name}' is not a valid environment variable name. "
                "Use letters, numbers and underscores only."
            )
    return names


class RetryPolicy(BaseModel):
    """Retry policy for network-bound commands (clone, pull, push, deploy)."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    attempts: int = Field(3, ge=1)
    delay: float = Field(2.0, ge=0)
    backoff: float = Field(2.0, ge=1)


class GitIdentity(BaseModel):
    """Optional author identity used for bootstrap commits."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    name: Optional[str] = None
    email: Optional[str] = None


class CISettings(BaseModel):
    """GitHub Actions workflow written into the working copy."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    enabled: bool = False
    workflow: str = "backend.yml"
    name: str = "Backend CI/CD"
    branch: str = "main"
    node_version: str = "14"
    lint_script: str = "lint"
    token_secret: str = "VERCEL_TOKEN"
    commit_message: str = "Add GitHub Actions CI/CD workflow"
    repo_secrets: List[str] = Field(
        default_factory=lambda: [
            "VERCEL_TOKEN",
            "SUPABASE_URL",
            "SUPABASE_KEY",
            "OPENAI_API_KEY",
            "HUGGINGFACE_API_KEY",
        ]
    )

    @field_validator('workflow')
    @classmethod
    def validate_workflow(cls, v):
        """Workflow must be a plain YAML file name."""
        if "/" in v or not v.endswith((".yml", ".yaml")):
            raise ValueError(f"Workflow must be a .yml file name without directories. Got: {v}")
        return v

    @field_validator('token_secret')
    @classmethod
    def validate_token_secret(cls, v):
        _check_env_names([v])
        return v


class DeploySettings(BaseModel):
    """Hosting provider deployment and runtime variable forwarding."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    enabled: bool = False
    provider: Literal["vercel"] = "vercel"
    target: str = "production"
    token_var: str = "VERCEL_API_TOKEN"
    env: List[str] = Field(
        default_factory=list,
        description="Configuration names forwarded one by one as provider env vars",
    )

    @field_validator('env')
    @classmethod
    def validate_env(cls, v):
        return _check_env_names(v)


class ProjectDescriptor(BaseModel):
    """One managed repository and the steps that bring it to a deployable state."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    name: str
    repo: str
    path: str
    branch: str = "main"
    workdir: Optional[str] = Field(None, description="Subdirectory of the clone where npm runs")
    public: bool = Field(False, description="Public-facing project; denylisted secrets are stripped")
    requires: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    dev_dependencies: List[str] = Field(default_factory=list)
    scripts: Dict[str, str] = Field(default_factory=dict)
    env_file: str = ".env"
    env: Dict[str, str] = Field(default_factory=dict)
    context: Dict[str, Any] = Field(default_factory=dict)
    commit_message: str = "Apply bootstrap scaffolding"
    ci: CISettings = Field(default_factory=CISettings)
    deploy: DeploySettings = Field(default_factory=DeploySettings)

    @field_validator('repo')
    @classmethod
    def validate_repo(cls, v):
        """Remote must look like a git URL or an existing local path."""
        if v.startswith(('https://', 'http://', 'git@', 'ssh://', 'file://')):
            return v
        if Path(v).expanduser().is_absolute():
            return v
        raise ValueError(
            f"Repository URL must start with https://, git@, ssh:// or file://. Got: {v}"
        )

    @field_validator('steps')
    @classmethod
    def validate_steps(cls, v):
        for step in v:
            parse_step(step)
        return v

    @field_validator('env')
    @classmethod
    def validate_env_names(cls, v):
        _check_env_names(list(v))
        return v

    @field_validator('workdir', 'env_file')
    @classmethod
    def validate_relative(cls, v):
        if v is not None and (Path(v).is_absolute() or ".." in Path(v).parts):
            raise ValueError(f"Path must stay inside the working copy. Got: {v}")
        return v

    @property
    def local_path(self) -> Path:
        """Absolute location of the working copy."""
        return Path(self.path).expanduser()

    @property
    def workdir_path(self) -> Path:
        """Directory where files are written and npm runs."""
        if self.workdir:
            return self.local_path / self.workdir
        return self.local_path

    def parsed_steps(self) -> List[Tuple[str, Optional[str]]]:
        return [parse_step(step) for step in self.steps]


class WorkspaceConfig(BaseModel):
    """Top-level twinstrap.yml document."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    name: str
    secrets_file: str = ".env"
    required: List[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRED))
    denylist: List[str] = Field(default_factory=lambda: list(DEFAULT_DENYLIST))
    preflight: List[str] = Field(default_factory=lambda: list(DEFAULT_PREFLIGHT))
    command_timeout: float = Field(600.0, gt=0)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    git: GitIdentity = Field(default_factory=GitIdentity)
    projects: List[ProjectDescriptor] = Field(..., min_length=1)

    @field_validator('required', 'denylist')
    @classmethod
    def validate_names(cls, v):
        return _check_env_names(v)

    @model_validator(mode='after')
    def validate_projects(self) -> 'WorkspaceConfig':
        """Project names must be unique and public projects must not forward denylisted vars."""
        seen = set()
        for project in self.projects:
            if project.name in seen:
                raise ValueError(f"Duplicate project name: {project.name}")
            seen.add(project.name)
            if project.public and project.deploy.enabled:
                leaked = sorted(set(project.deploy.env) & set(self.denylist))
                if leaked:
                    raise ValueError(
                        f"Public project '{project.name}' forwards denylisted variables: {', '.join(leaked)}"
                    )
        return self

    def required_commands(self) -> List[str]:
        """Global preflight list plus each project's requirements, de-duplicated in order."""
        commands: List[str] = []
        for name in [*self.preflight, *(cmd for p in self.projects for cmd in p.requires)]:
            if name not in commands:
                commands.append(name)
        return commands

    def get_project(self, name: str) -> ProjectDescriptor:
        for project in self.projects:
            if project.name == name:
                return project
        available = ', '.join(p.name for p in self.projects)
        raise KeyError(f"Project '{name}' not found. Available: {available}")
