"""Run report: per-project lifecycle state and non-fatal warnings."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from twinstrap.core.errors import EnvRegistrationError


class ProjectState(str, Enum):
    """Lifecycle of one working copy during a run."""

    ABSENT = "absent"
    SYNCED = "synced"
    MUTATED = "mutated"
    COMMITTED = "committed"
    PUSHED = "pushed"
    DEPLOYED = "deployed"


@dataclass
class ProjectRun:
    """Outcome of the pipeline for one project."""

    name: str
    state: ProjectState = ProjectState.ABSENT
    cloned: bool = False
    commits: List[str] = field(default_factory=list)
    ci_workflow: Optional[Path] = None
    registered_env: List[str] = field(default_factory=list)
    env_failures: List[EnvRegistrationError] = field(default_factory=list)

    def advance(self, state: ProjectState) -> None:
        self.state = state


@dataclass
class BootstrapReport:
    """Aggregated result of a full bootstrap run."""

    projects: List[ProjectRun] = field(default_factory=list)
    repo_secrets: List[str] = field(default_factory=list)

    def add(self, name: str) -> ProjectRun:
        run = ProjectRun(name=name)
        self.projects.append(run)
        return run

    def get(self, name: str) -> ProjectRun:
        for run in self.projects:
            if run.name == name:
                return run
        raise KeyError(name)

    @property
    def warnings(self) -> List[EnvRegistrationError]:
        return [failure for run in self.projects for failure in run.env_failures]

    @property
    def ok(self) -> bool:
        return not self.warnings
