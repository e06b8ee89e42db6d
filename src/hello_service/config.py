"""Configuration management for Hello Service.

Provides environment-specific configuration loading and validation for
the instance, the Ansible run and the systemd-supervised web service.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .exceptions import ConfigurationError

ALLOWED_ENVIRONMENTS = ["dev", "staging", "prod"]
ALLOWED_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"


class InstanceConfig(BaseModel):
    """Configuration for the network and the EC2 instance."""

    ami: str = Field(..., description="AMI id for the instance")
    instance_type: str = Field("t2.micro", description="EC2 instance type")

    # SSH key pair
    key_name: str = Field("hello-service-deployer", description="Name of the EC2 key pair")
    public_key_path: str = Field("~/.ssh/id_rsa.pub", description="Public key imported into the key pair")
    public_key_material: str | None = Field(None, description="Inline public key, wins over public_key_path")

    # Network
    vpc_cidr: str = Field("10.0.0.0/16", description="VPC CIDR block")
    subnet_cidr_mask: int = Field(24, ge=16, le=28, description="Public subnet prefix length")
    ingress_ports: list[int] = Field(
        default_factory=lambda: [22, 80], description="TCP ports open to the internet"
    )

    @field_validator("ami")
    @classmethod
    def validate_ami(cls, v: str) -> str:
        if not v.startswith("ami-"):
            raise ValueError(f"AMI id must start with 'ami-', got {v!r}")
        return v

    @field_validator("ingress_ports")
    @classmethod
    def validate_ingress_ports(cls, v: list[int]) -> list[int]:
        """Reject out-of-range ports and drop duplicates, keeping order."""
        seen: list[int] = []
        for port in v:
            if not 1 <= port <= 65535:
                raise ValueError(f"Port out of range: {port}")
            if port not in seen:
                seen.append(port)
        return seen

    def resolve_public_key(self) -> str:
        """Return the public key material, reading ``public_key_path`` if needed."""
        if self.public_key_material:
            return self.public_key_material.strip()

        key_path = Path(self.public_key_path).expanduser()
        if not key_path.exists():
            raise ConfigurationError(
                f"Public key not found: {key_path}",
                details={"public_key_path": str(key_path)},
            )
        return key_path.read_text(encoding="utf-8").strip()


class AnsibleConfig(BaseModel):
    """Configuration for the Ansible run against the instance."""

    user: str = Field("ubuntu", description="Remote SSH user")
    private_key_file: str = Field("~/.ssh/id_rsa", description="Private key used by ansible")
    group: str = Field("server", description="Inventory group targeted by the play")
    inventory_path: str = Field("ansible/inventory", description="Where the inventory is written")
    playbook_path: str = Field("ansible/hello_service.yml", description="Where the playbook is written")

    # Application source
    repo_url: str = Field(
        "https://github.com/example/hello-service.git", description="Git repository cloned on the host"
    )
    repo_version: str = Field("main", description="Branch, tag or commit to check out")
    app_dir: str = Field("/opt/hello-service", description="Checkout directory on the host")


class ServiceConfig(BaseModel):
    """Configuration for the systemd unit supervising the web process."""

    name: str = Field("hello-service", description="systemd unit name without suffix")
    description: str = Field("Hello world web service", description="Unit description")
    interpreter: str = Field(
        "/opt/hello-service/.venv/bin/python", description="Executable started by systemd"
    )
    entrypoint: str = Field(
        "/opt/hello-service/src/hello_service/server.py", description="Script passed to the interpreter"
    )
    restart: str = Field("always", description="systemd Restart= policy")
    restart_sec: int = Field(1, ge=0, description="systemd RestartSec= in seconds")
    service_type: str = Field("simple", description="systemd Type=")
    user: str | None = Field(None, description="User= for the service, root when unset")
    working_directory: str | None = Field(None, description="WorkingDirectory= for the service")
    port: int = Field(80, ge=1, le=65535, description="Port the web server listens on")
    environment: dict[str, str] = Field(default_factory=dict, description="Extra Environment= entries")

    @property
    def unit_name(self) -> str:
        return f"{self.name}.service"

    @property
    def exec_start(self) -> str:
        return f"{self.interpreter} {self.entrypoint}"


class DeployConfig(BaseModel):
    """Main configuration class for Hello Service."""

    # Environment
    environment: str = Field(..., description="Deployment environment")
    aws_region: str = Field("us-east-1", description="AWS region")
    aws_account_id: str | None = Field(None, description="AWS account ID")

    # Sub-configurations
    instance: InstanceConfig
    ansible: AnsibleConfig = Field(default_factory=AnsibleConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment values."""
        if v not in ALLOWED_ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {ALLOWED_ENVIRONMENTS}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level values."""
        if v.upper() not in ALLOWED_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {ALLOWED_LOG_LEVELS}")
        return v.upper()

    @model_validator(mode="after")
    def align_service_with_host(self) -> "DeployConfig":
        """Keep ExecStart inside the checkout and the service port reachable.

        An interpreter or entrypoint left unset follows ``ansible.app_dir``;
        an explicit interpreter must live in the virtualenv the playbook builds.
        """
        app_dir = self.ansible.app_dir.rstrip("/")
        venv = f"{app_dir}/.venv/"
        service = self.service
        derived: dict[str, str] = {}

        if "interpreter" not in service.model_fields_set:
            derived["interpreter"] = f"{venv}bin/python"
        elif not service.interpreter.startswith(venv):
            raise ValueError(
                f"service.interpreter {service.interpreter!r} is not inside the virtualenv {venv}"
            )
        if "entrypoint" not in service.model_fields_set:
            derived["entrypoint"] = f"{app_dir}/src/hello_service/server.py"
        if derived:
            self.service = service.model_copy(update=derived)

        if service.port not in self.instance.ingress_ports:
            raise ValueError(
                f"service.port {service.port} is not in instance.ingress_ports {self.instance.ingress_ports}"
            )
        return self

    @property
    def stack_name(self) -> str:
        return f"hello-service-{self.environment}"

    @classmethod
    def from_env(cls) -> "DeployConfig":
        """Load configuration from environment variables.

        ``AMI_ID`` and ``INSTANCE_TYPE`` win over ``TF_VAR_ami`` and
        ``TF_VAR_instance_type``, which CI pipelines already export as secrets.
        """
        environment = os.environ.get("ENVIRONMENT", "dev")

        ami = os.environ.get("AMI_ID") or os.environ.get("TF_VAR_ami")
        if not ami:
            raise ConfigurationError(
                "No AMI configured: set AMI_ID (or TF_VAR_ami)",
                details={"environment": environment},
            )

        instance: dict[str, Any] = {
            "ami": ami,
            "instance_type": os.environ.get("INSTANCE_TYPE")
            or os.environ.get("TF_VAR_instance_type", "t2.micro"),
        }
        if os.environ.get("PUBLIC_KEY_PATH"):
            instance["public_key_path"] = os.environ["PUBLIC_KEY_PATH"]
        if os.environ.get("PUBLIC_KEY_MATERIAL"):
            instance["public_key_material"] = os.environ["PUBLIC_KEY_MATERIAL"]

        ansible: dict[str, Any] = {}
        if os.environ.get("ANSIBLE_USER"):
            ansible["user"] = os.environ["ANSIBLE_USER"]
        if os.environ.get("ANSIBLE_PRIVATE_KEY_FILE"):
            ansible["private_key_file"] = os.environ["ANSIBLE_PRIVATE_KEY_FILE"]
        if os.environ.get("REPO_URL"):
            ansible["repo_url"] = os.environ["REPO_URL"]

        config_data = {
            "environment": environment,
            "aws_region": os.environ.get("AWS_REGION", "us-east-1"),
            "aws_account_id": os.environ.get("AWS_ACCOUNT_ID"),
            "instance": instance,
            "ansible": ansible,
            "log_level": os.environ.get("LOG_LEVEL", "INFO"),
        }

        return cls(**config_data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DeployConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            DeployConfig instance loaded from the file
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Infer environment from filename if not provided
        if "environment" not in data:
            stem = config_path.stem.lower()
            if stem in ALLOWED_ENVIRONMENTS:
                data["environment"] = stem
            else:
                data["environment"] = os.environ.get("ENVIRONMENT", "dev")

        data.setdefault("aws_account_id", os.getenv("AWS_ACCOUNT_ID"))

        return cls(**data)


def load_config(environment: str, config_path: Path | None = None) -> DeployConfig:
    """Load configuration for the specified environment.

    Args:
        environment: Target environment (dev/staging/prod)
        config_path: Optional custom config file path

    Returns:
        Loaded configuration object

    Raises:
        FileNotFoundError: If config file is not found
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_DIR / f"{environment}.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    config_data["environment"] = environment

    if "aws_account_id" not in config_data:
        config_data["aws_account_id"] = os.getenv("AWS_ACCOUNT_ID")

    # CI may inject the AMI and instance type instead of committing them
    instance = config_data.setdefault("instance", {})
    ami_override = os.getenv("AMI_ID") or os.getenv("TF_VAR_ami")
    if ami_override:
        instance["ami"] = ami_override
    type_override = os.getenv("INSTANCE_TYPE") or os.getenv("TF_VAR_instance_type")
    if type_override:
        instance["instance_type"] = type_override
    if os.getenv("PUBLIC_KEY_MATERIAL"):
        instance["public_key_material"] = os.environ["PUBLIC_KEY_MATERIAL"]

    return DeployConfig(**config_data)


def get_default_config(environment: str) -> dict[str, Any]:
    """Get default configuration for an environment.

    Args:
        environment: Target environment

    Returns:
        Default configuration dictionary
    """
    base_config: dict[str, Any] = {
        "environment": environment,
        "aws_region": "us-east-1",
        "instance": {
            "instance_type": "t2.micro",
            "key_name": f"hello-service-{environment}",
        },
        "service": {"restart": "always", "restart_sec": 1},
    }

    if environment == "prod":
        base_config["instance"]["instance_type"] = "t3.small"
        base_config["log_level"] = "WARNING"
    elif environment == "dev":
        base_config["log_level"] = "DEBUG"

    return base_config


def resolve_config(environment: str, config_path: Path | None = None) -> DeployConfig:
    """Load the YAML config, falling back to environment variables.

    An explicit ``config_path`` that does not exist is an error; only the
    default per-environment file may be absent.
    """
    try:
        return load_config(environment, config_path)
    except FileNotFoundError:
        if config_path is not None:
            raise
        config = DeployConfig.from_env()
        if config.environment != environment:
            config = DeployConfig(**{**config.model_dump(), "environment": environment})
        return config
