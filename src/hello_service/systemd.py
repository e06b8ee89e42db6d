"""systemd unit file rendering for the web service.

The unit runs the web server in the foreground (``Type=simple``) and has
systemd restart it whenever it exits (``Restart=always``).
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

from .config import ServiceConfig

logger = logging.getLogger(__name__)

RESTART_POLICIES = ["no", "always", "on-success", "on-failure", "on-abnormal", "on-abort", "on-watchdog"]
SERVICE_TYPES = ["simple", "exec", "forking", "oneshot", "notify"]


class ServiceUnit(BaseModel):
    """A systemd service unit descriptor."""

    description: str = Field(..., description="[Unit] Description=")
    exec_start: str = Field(..., description="[Service] ExecStart=")
    after: str = Field("network.target", description="[Unit] After=")
    restart: str = Field("always", description="[Service] Restart=")
    restart_sec: int = Field(1, ge=0, description="[Service] RestartSec=")
    service_type: str = Field("simple", description="[Service] Type=")
    user: str | None = Field(None, description="[Service] User=")
    working_directory: str | None = Field(None, description="[Service] WorkingDirectory=")
    environment: dict[str, str] = Field(default_factory=dict, description="[Service] Environment=")
    wanted_by: str = Field("multi-user.target", description="[Install] WantedBy=")

    @field_validator("restart")
    @classmethod
    def validate_restart(cls, v: str) -> str:
        if v not in RESTART_POLICIES:
            raise ValueError(f"Restart must be one of: {RESTART_POLICIES}")
        return v

    @field_validator("service_type")
    @classmethod
    def validate_service_type(cls, v: str) -> str:
        if v not in SERVICE_TYPES:
            raise ValueError(f"Type must be one of: {SERVICE_TYPES}")
        return v

    @field_validator("exec_start")
    @classmethod
    def validate_exec_start(cls, v: str) -> str:
        # systemd requires an absolute executable path
        if not v.startswith("/"):
            raise ValueError(f"ExecStart must use an absolute path, got {v!r}")
        return v

    def render(self) -> str:
        """Render the unit as systemd INI text."""
        lines = [
            "[Unit]",
            f"Description={self.description}",
            f"After={self.after}",
            "",
            "[Service]",
            f"Type={self.service_type}",
            f"ExecStart={self.exec_start}",
            f"Restart={self.restart}",
            f"RestartSec={self.restart_sec}",
        ]
        if self.user:
            lines.append(f"User={self.user}")
        if self.working_directory:
            lines.append(f"WorkingDirectory={self.working_directory}")
        for key in sorted(self.environment):
            lines.append(f'Environment="{key}={self.environment[key]}"')
        lines += [
            "",
            "[Install]",
            f"WantedBy={self.wanted_by}",
        ]
        return "\n".join(lines) + "\n"


def parse_unit(text: str) -> dict[str, dict[str, str]]:
    """Parse unit text into ``{section: {key: value}}``.

    Repeated keys (``Environment=``) are joined with a space, which is how
    systemd accumulates them.
    """
    sections: dict[str, dict[str, str]] = {}
    current: dict[str, str] | None = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if line.startswith("[") and line.endswith("]"):
            current = sections.setdefault(line[1:-1], {})
            continue
        if current is None or "=" not in line:
            raise ValueError(f"Malformed unit line: {raw!r}")
        key, value = line.split("=", 1)
        key = key.strip()
        if key in current:
            current[key] = f"{current[key]} {value.strip()}"
        else:
            current[key] = value.strip()

    return sections


def unit_from_config(service: ServiceConfig) -> ServiceUnit:
    """Build the unit for the configured service."""
    environment = {"PORT": str(service.port), **service.environment}
    unit = ServiceUnit(
        description=service.description,
        exec_start=service.exec_start,
        restart=service.restart,
        restart_sec=service.restart_sec,
        service_type=service.service_type,
        user=service.user,
        working_directory=service.working_directory,
        environment=environment,
    )
    logger.debug("Built unit %s: %s", service.unit_name, unit.exec_start)
    return unit
