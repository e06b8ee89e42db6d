"""Ansible playbook generation for the web service host.

The play updates packages, installs the Python runtime, clones the
application, installs its dependencies into a virtualenv, copies the
systemd unit and enables the service. Each task uses a module that
declares target state, so re-running the play against a configured host
reports no changes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .config import DeployConfig
from .systemd import unit_from_config

logger = logging.getLogger(__name__)

RUNTIME_PACKAGES = ["python3", "python3-venv", "python3-pip", "git"]
UNIT_DIR = "/etc/systemd/system"


def build_playbook(config: DeployConfig) -> list[dict[str, Any]]:
    """Return the play list for ``config``."""
    ansible = config.ansible
    service = config.service
    restart_handler = f"Restart {service.name}"

    tasks: list[dict[str, Any]] = [
        {
            "name": "Update apt cache and upgrade packages",
            "ansible.builtin.apt": {
                "update_cache": True,
                "cache_valid_time": 3600,
                "upgrade": "safe",
            },
        },
        {
            "name": "Install Python runtime and git",
            "ansible.builtin.apt": {"name": RUNTIME_PACKAGES, "state": "present"},
        },
        {
            "name": "Clone application repository",
            "ansible.builtin.git": {
                "repo": "{{ repo_url }}",
                "dest": "{{ app_dir }}",
                "version": "{{ repo_version }}",
            },
            "notify": restart_handler,
        },
        {
            "name": "Install application dependencies",
            "ansible.builtin.pip": {
                "requirements": "{{ app_dir }}/requirements.txt",
                "virtualenv": "{{ app_dir }}/.venv",
                "virtualenv_command": "python3 -m venv",
            },
            "notify": restart_handler,
        },
        {
            "name": "Install systemd unit",
            "ansible.builtin.copy": {
                "src": f"files/{service.unit_name}",
                "dest": f"{UNIT_DIR}/{service.unit_name}",
                "owner": "root",
                "group": "root",
                "mode": "0644",
            },
            "notify": restart_handler,
        },
        {
            "name": "Enable and start service",
            "ansible.builtin.systemd_service": {
                "name": service.unit_name,
                "daemon_reload": True,
                "enabled": True,
                "state": "started",
            },
        },
    ]

    play = {
        "name": f"Deploy {service.name}",
        "hosts": ansible.group,
        "become": True,
        "vars": {
            "app_dir": ansible.app_dir,
            "repo_url": ansible.repo_url,
            "repo_version": ansible.repo_version,
        },
        "tasks": tasks,
        "handlers": [
            {
                "name": restart_handler,
                "ansible.builtin.systemd_service": {
                    "name": service.unit_name,
                    "daemon_reload": True,
                    "state": "restarted",
                },
            }
        ],
    }
    return [play]


def render_playbook(plays: list[dict[str, Any]]) -> str:
    """Dump plays as YAML in block style, keeping task key order."""
    body = yaml.safe_dump(plays, sort_keys=False, default_flow_style=False, width=100)
    return "---\n" + body


def write_bundle(config: DeployConfig, out_dir: str | Path | None = None) -> dict[str, Path]:
    """Write the playbook and the unit file it copies.

    The unit goes to ``files/`` beside the playbook, where ``copy`` looks
    for relative ``src`` paths.
    """
    playbook_path = Path(config.ansible.playbook_path)
    if out_dir is not None:
        playbook_path = Path(out_dir) / playbook_path.name
    playbook_path.parent.mkdir(parents=True, exist_ok=True)

    unit_path = playbook_path.parent / "files" / config.service.unit_name
    unit_path.parent.mkdir(parents=True, exist_ok=True)

    playbook_path.write_text(render_playbook(build_playbook(config)), encoding="utf-8")
    unit_path.write_text(unit_from_config(config.service).render(), encoding="utf-8")

    logger.info("Wrote playbook %s and unit %s", playbook_path, unit_path)
    return {"playbook": playbook_path, "unit": unit_path}
