"""Drive the external tools that deploy the web service.

``cdk`` provisions the stack, ``ansible-playbook`` configures the host.
Both are invoked through a ``CommandRunner`` so tests can record commands
instead of executing them.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from .config import DeployConfig
from .exceptions import CommandError, DeployGuardError
from .inventory import inventory_from_outputs, write_inventory
from .outputs import StackOutputs, read_outputs_file
from .playbook import write_bundle

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[2]
DEFAULT_OUTPUTS_FILE = "cdk-outputs.json"


class CommandRunner:
    """Run external commands, raising ``CommandError`` on failure."""

    def __init__(self, cwd: Path | None = None, dry_run: bool = False):
        self.cwd = cwd or ROOT
        self.dry_run = dry_run

    def run(self, cmd: list[str], env: dict[str, str] | None = None, check: bool = True) -> int:
        logger.info("$ %s", " ".join(cmd))
        if self.dry_run:
            return 0

        full_env = {**os.environ, **env} if env else None
        try:
            completed = subprocess.run(cmd, cwd=str(self.cwd), env=full_env, check=False)
        except FileNotFoundError as e:
            raise CommandError(f"Executable not found: {cmd[0]}", command=cmd, returncode=127) from e

        if check and completed.returncode != 0:
            raise CommandError(
                f"{cmd[0]} exited with status {completed.returncode}",
                command=cmd,
                returncode=completed.returncode,
            )
        return completed.returncode


class Deployer:
    """Synth, deploy, provision and destroy one environment's stack."""

    def __init__(self, config: DeployConfig, runner: CommandRunner | None = None):
        self.config = config
        self.runner = runner or CommandRunner()

    @property
    def stack_name(self) -> str:
        return self.config.stack_name

    def _context_args(self) -> list[str]:
        return ["--context", f"environment={self.config.environment}"]

    def synth(self) -> None:
        self.runner.run(["cdk", "synth", self.stack_name, *self._context_args()])

    def deploy(self, outputs_file: str | Path = DEFAULT_OUTPUTS_FILE, confirm: bool = False) -> StackOutputs:
        """Deploy the stack and return its outputs.

        Production deploys require ``confirm=True``.
        """
        if self.config.environment == "prod" and not confirm:
            raise DeployGuardError(
                "Production deploy requires confirmation", environment=self.config.environment
            )

        outputs_path = Path(outputs_file)
        self.runner.run(
            [
                "cdk", "deploy", self.stack_name,
                "--require-approval", "never",
                "--outputs-file", str(outputs_path),
                *self._context_args(),
            ]
        )
        if not outputs_path.is_absolute():
            outputs_path = self.runner.cwd / outputs_path
        outputs = read_outputs_file(outputs_path, self.stack_name)
        logger.info("Stack %s deployed, instance at %s", self.stack_name, outputs.public_ip)
        return outputs

    def destroy(self, confirm: bool = False) -> None:
        if not confirm:
            raise DeployGuardError(
                f"Refusing to destroy {self.stack_name} without confirmation",
                environment=self.config.environment,
            )
        self.runner.run(["cdk", "destroy", self.stack_name, "--force", *self._context_args()])
        logger.info("Destroyed stack %s", self.stack_name)

    def write_artifacts(self, outputs: StackOutputs) -> dict[str, Path]:
        """Write inventory, playbook and unit file for ``outputs``."""
        inventory = inventory_from_outputs(outputs, self.config.ansible)
        inventory_path = write_inventory(inventory, self.runner.cwd / self.config.ansible.inventory_path)
        bundle = write_bundle(self.config, (self.runner.cwd / self.config.ansible.playbook_path).parent)
        return {"inventory": inventory_path, **bundle}

    def provision(self, outputs: StackOutputs) -> dict[str, Path]:
        """Configure the instance with ansible-playbook."""
        artifacts = self.write_artifacts(outputs)
        self.runner.run(
            ["ansible-playbook", "-i", str(artifacts["inventory"]), str(artifacts["playbook"])],
            env={"ANSIBLE_HOST_KEY_CHECKING": "False"},
        )
        return artifacts
