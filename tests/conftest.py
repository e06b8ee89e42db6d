"""Pytest configuration and shared fixtures for Hello Service tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from hello_service.config import DeployConfig
from hello_service.deploy import CommandRunner

TEST_PUBLIC_KEY = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC7testkey deployer@example"


def make_config_dict(environment: str = "dev") -> dict:
    return {
        "environment": environment,
        "aws_region": "us-east-1",
        "instance": {
            "ami": "ami-0123456789abcdef0",
            "instance_type": "t2.micro",
            "key_name": f"hello-service-{environment}",
            "public_key_material": TEST_PUBLIC_KEY,
        },
        "ansible": {
            "user": "ubuntu",
            "private_key_file": "~/.ssh/hello.pem",
            "inventory_path": "ansible/inventory",
            "playbook_path": "ansible/hello_service.yml",
        },
    }


@pytest.fixture
def sample_config() -> DeployConfig:
    """Sample configuration for testing."""
    return DeployConfig(**make_config_dict("dev"))


@pytest.fixture
def prod_config() -> DeployConfig:
    return DeployConfig(**make_config_dict("prod"))


class RecordingRunner(CommandRunner):
    """Records commands instead of executing them.

    ``cdk deploy`` writes an outputs file the way the real CLI does.
    """

    def __init__(self, cwd: Path, public_ip: str = "203.0.113.10", fail_on: str | None = None):
        super().__init__(cwd=cwd)
        self.public_ip = public_ip
        self.fail_on = fail_on
        self.commands: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []

    def run(self, cmd, env=None, check=True):
        self.commands.append(list(cmd))
        self.envs.append(env)

        if self.fail_on and cmd[0] == self.fail_on:
            from hello_service.exceptions import CommandError

            raise CommandError(f"{cmd[0]} exited with status 1", command=list(cmd), returncode=1)

        if cmd[:2] == ["cdk", "deploy"]:
            stack = cmd[2]
            outputs_file = Path(cmd[cmd.index("--outputs-file") + 1])
            if not outputs_file.is_absolute():
                outputs_file = self.cwd / outputs_file
            outputs_file.write_text(
                json.dumps(
                    {
                        stack: {
                            "InstancePublicIp": self.public_ip,
                            "InstanceId": "i-0abc123def4567890",
                            "VpcId": "vpc-0123",
                            "SecurityGroupId": "sg-0123",
                            "KeyPairName": "hello-service-dev",
                        }
                    }
                )
            )
        return 0


@pytest.fixture
def recording_runner(tmp_path: Path) -> RecordingRunner:
    return RecordingRunner(cwd=tmp_path)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep deployment overrides from the shell out of tests."""
    for var in [
        "AMI_ID",
        "INSTANCE_TYPE",
        "TF_VAR_ami",
        "TF_VAR_instance_type",
        "PUBLIC_KEY_PATH",
        "PUBLIC_KEY_MATERIAL",
        "ANSIBLE_USER",
        "ANSIBLE_PRIVATE_KEY_FILE",
        "REPO_URL",
        "ENVIRONMENT",
        "AWS_ACCOUNT_ID",
        "LOG_LEVEL",
    ]:
        monkeypatch.delenv(var, raising=False)
    yield
    # Clean up any credentials a test may have exported
    for var in ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"]:
        if var in os.environ:
            del os.environ[var]


@pytest.fixture
def config_dict():
    """Factory for raw config dictionaries, as read from YAML."""
    return make_config_dict
