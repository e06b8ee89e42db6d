"""Hello Service - provision and deploy a Hello world web service on EC2.

This package provides the deployment configuration, the Ansible and systemd
artifacts, and the web server itself. The AWS resources are declared in the
``infra`` CDK app.
"""

__version__ = "0.1.0"

from .config import DeployConfig, load_config
from .exceptions import HelloServiceError

__all__ = [
    "DeployConfig",
    "HelloServiceError",
    "load_config",
]
