"""Custom exceptions for Hello Service.

Defines the exception hierarchy raised while provisioning, configuring
and checking a deployment.
"""

from __future__ import annotations

from typing import Any


class HelloServiceError(Exception):
    """Base exception for all hello-service errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(HelloServiceError):
    """Raised when deployment configuration cannot be assembled."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "CONFIG")
        super().__init__(message, **kwargs)


class CommandError(HelloServiceError):
    """Raised when an external tool (cdk, ansible-playbook) exits non-zero."""

    def __init__(self, message: str, command: list[str], returncode: int, **kwargs):
        kwargs.setdefault("error_code", "COMMAND")
        super().__init__(message, **kwargs)
        self.command = command
        self.returncode = returncode
        self.details.update({"command": " ".join(command), "returncode": returncode})


class DeployGuardError(HelloServiceError):
    """Raised when a guarded operation is attempted without confirmation."""

    def __init__(self, message: str, environment: str, **kwargs):
        kwargs.setdefault("error_code", "GUARD")
        super().__init__(message, **kwargs)
        self.environment = environment
        self.details["environment"] = environment


class StackOutputError(HelloServiceError):
    """Raised when stack outputs are missing or unreadable."""

    def __init__(self, message: str, stack_name: str, **kwargs):
        kwargs.setdefault("error_code", "OUTPUTS")
        super().__init__(message, **kwargs)
        self.stack_name = stack_name
        self.details["stack_name"] = stack_name


class InventoryError(HelloServiceError):
    """Raised when an Ansible inventory cannot be parsed."""

    def __init__(self, message: str, line_number: int | None = None, **kwargs):
        kwargs.setdefault("error_code", "INVENTORY")
        super().__init__(message, **kwargs)
        self.line_number = line_number
        if line_number is not None:
            self.details["line"] = line_number


class SmokeCheckError(HelloServiceError):
    """Raised when the deployed service cannot be reached."""

    def __init__(self, message: str, url: str, attempts: int, **kwargs):
        kwargs.setdefault("error_code", "SMOKE")
        super().__init__(message, **kwargs)
        self.url = url
        self.attempts = attempts
        self.details.update({"url": url, "attempts": attempts})
