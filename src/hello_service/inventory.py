"""Ansible INI inventory for the provisioned host.

Format::

    [server]
    203.0.113.10 ansible_user=ubuntu ansible_ssh_private_key_file=~/.ssh/id_rsa
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import AnsibleConfig
from .exceptions import InventoryError
from .outputs import StackOutputs

logger = logging.getLogger(__name__)


@dataclass
class InventoryHost:
    address: str
    user: str
    private_key_file: str
    extra_vars: dict[str, str] = field(default_factory=dict)

    def render(self) -> str:
        parts = [
            self.address,
            f"ansible_user={self.user}",
            f"ansible_ssh_private_key_file={self.private_key_file}",
        ]
        parts += [f"{k}={v}" for k, v in sorted(self.extra_vars.items())]
        return " ".join(parts)


@dataclass
class Inventory:
    group: str = "server"
    hosts: list[InventoryHost] = field(default_factory=list)

    def render(self) -> str:
        lines = [f"[{self.group}]"]
        lines += [host.render() for host in self.hosts]
        return "\n".join(lines) + "\n"


def parse_inventory(text: str) -> list[Inventory]:
    """Parse INI inventory text into one ``Inventory`` per group."""
    groups: list[Inventory] = []
    current: Inventory | None = None

    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(("#", ";")):
            continue

        if line.startswith("[") and line.endswith("]"):
            current = Inventory(group=line[1:-1].strip(), hosts=[])
            groups.append(current)
            continue

        if current is None:
            raise InventoryError("Host declared before any group header", line_number=number)

        address, *assignments = line.split()
        host_vars: dict[str, str] = {}
        for item in assignments:
            if "=" not in item:
                raise InventoryError(f"Expected key=value, got {item!r}", line_number=number)
            key, value = item.split("=", 1)
            host_vars[key] = value

        try:
            user = host_vars.pop("ansible_user")
            key_file = host_vars.pop("ansible_ssh_private_key_file")
        except KeyError as e:
            raise InventoryError(f"Host {address} is missing {e.args[0]}", line_number=number) from e

        current.hosts.append(
            InventoryHost(address=address, user=user, private_key_file=key_file, extra_vars=host_vars)
        )

    return groups


def inventory_from_outputs(outputs: StackOutputs, ansible: AnsibleConfig) -> Inventory:
    """Build the inventory targeting the instance in ``outputs``."""
    host = InventoryHost(
        address=outputs.public_ip,
        user=ansible.user,
        private_key_file=ansible.private_key_file,
    )
    return Inventory(group=ansible.group, hosts=[host])


def write_inventory(inventory: Inventory, path: str | Path) -> Path:
    """Write ``inventory`` to ``path``, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(inventory.render(), encoding="utf-8")
    logger.info("Wrote inventory for %d host(s) to %s", len(inventory.hosts), target)
    return target
