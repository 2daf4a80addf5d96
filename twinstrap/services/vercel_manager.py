"""Vercel CLI deployment and environment variable registration."""
from pathlib import Path
from typing import Optional

from twinstrap.core.errors import CommandError, DeploymentError, EnvRegistrationError
from twinstrap.core.logger import get_logger
from twinstrap.core.retry import retry_with_policy
from twinstrap.models.project import RetryPolicy
from twinstrap.services.runner import CommandRunner

logger = get_logger(__name__)


class VercelManager:
    """Deploys a working copy and forwards runtime variables to Vercel."""

    def __init__(self, runner: CommandRunner, token: str, retry_policy: Optional[RetryPolicy] = None):
        self.runner = runner
        self.token = token
        self.retry_policy = retry_policy or RetryPolicy()
        self.runner.add_secrets([token])

    def deploy(self, workdir: Path, production: bool = True) -> str:
        """Deploy the project and return the CLI output (deployment URL).

        Raises:
            DeploymentError: Deployment failed after all attempts
        """
        args = ["vercel", "deploy", "--yes", "--token", self.token]
        if production:
            args.insert(2, "--prod")

        logger.info(f"Deploying {workdir} to Vercel" + (" (production)" if production else ""))
        try:
            result = retry_with_policy(
                lambda: self.runner.run(args, cwd=workdir),
                self.retry_policy,
                (CommandError,),
                description=f"vercel deploy of {workdir}",
            )
        except CommandError as e:
            raise DeploymentError(f"Vercel deployment failed for {workdir}", context=str(e)) from e

        url = result.stdout.strip().splitlines()[-1] if result.stdout.strip() else ""
        logger.info(f"✓ Deployed {url}".rstrip())
        return url

    def add_env(self, workdir: Path, name: str, value: str, target: str = "production") -> None:
        """Register one environment variable; the value goes through stdin.

        Raises:
            EnvRegistrationError: The CLI rejected the variable
        """
        try:
            self.runner.run(
                ["vercel", "env", "add", name, target, "--token", self.token],
                cwd=workdir,
                input=f"{value}\n",
            )
        except CommandError as e:
            raise EnvRegistrationError(name, target, detail=str(e)) from e
        logger.info(f"✓ Registered {name} for {target}")
