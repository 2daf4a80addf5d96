"""GitHub Actions workflow generation for deployable projects."""
from pathlib import Path
from typing import Optional

from twinstrap.models.project import CISettings, ProjectDescriptor
from twinstrap.scaffold.templates import TemplateEngine

WORKFLOW_DIR = Path(".github") / "workflows"
WORKFLOW_TEMPLATE = "ci_workflow.yml.j2"


class CIWorkflowGenerator:
    """Renders the install → lint → deploy workflow."""

    def __init__(self, engine: Optional[TemplateEngine] = None):
        self.engine = engine or TemplateEngine()

    def workflow_path(self, project: ProjectDescriptor) -> Path:
        """Workflow location inside the working copy (always at the clone root)."""
        return project.local_path / WORKFLOW_DIR / project.ci.workflow

    def render(self, project: ProjectDescriptor) -> str:
        ci: CISettings = project.ci
        return self.engine.render_template(
            WORKFLOW_TEMPLATE,
            {
                "name": ci.name,
                "branch": ci.branch,
                "node_version": ci.node_version,
                "lint_script": ci.lint_script,
                "token_secret": ci.token_secret,
                "workdir": project.workdir,
                "target": project.deploy.target,
            },
        )

    def write(self, project: ProjectDescriptor) -> Path:
        """Write the workflow file, replacing any previous version."""
        path = self.workflow_path(project)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(project))
        return path
