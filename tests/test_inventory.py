import pytest

from hello_service.exceptions import InventoryError
from hello_service.inventory import (
    Inventory,
    InventoryHost,
    inventory_from_outputs,
    parse_inventory,
    write_inventory,
)
from hello_service.outputs import StackOutputs


def test_inventory_from_outputs_renders_server_group(sample_config):
    outputs = StackOutputs(public_ip="203.0.113.10", instance_id="i-0abc")

    text = inventory_from_outputs(outputs, sample_config.ansible).render()

    assert text == (
        "[server]\n"
        "203.0.113.10 ansible_user=ubuntu ansible_ssh_private_key_file=~/.ssh/hello.pem\n"
    )


def test_parse_reads_back_rendered_inventory():
    inv = Inventory(
        group="server",
        hosts=[
            InventoryHost("203.0.113.10", "ubuntu", "~/.ssh/a.pem"),
            InventoryHost("203.0.113.11", "admin", "~/.ssh/b.pem", extra_vars={"ansible_port": "2222"}),
        ],
    )

    groups = parse_inventory(inv.render())

    assert len(groups) == 1
    assert groups[0].group == "server"
    assert groups[0].hosts[1].user == "admin"
    assert groups[0].hosts[1].extra_vars == {"ansible_port": "2222"}


def test_parse_ignores_comments_and_blank_lines():
    text = "# generated\n\n[server]\n; primary\n198.51.100.5 ansible_user=ubuntu ansible_ssh_private_key_file=k\n"
    groups = parse_inventory(text)
    assert [h.address for h in groups[0].hosts] == ["198.51.100.5"]


def test_host_before_group_is_an_error():
    with pytest.raises(InventoryError) as exc:
        parse_inventory("198.51.100.5 ansible_user=ubuntu ansible_ssh_private_key_file=k\n")
    assert exc.value.line_number == 1


def test_missing_host_variable_is_an_error():
    with pytest.raises(InventoryError):
        parse_inventory("[server]\n198.51.100.5 ansible_user=ubuntu\n")


def test_malformed_assignment_is_an_error():
    with pytest.raises(InventoryError):
        parse_inventory("[server]\n198.51.100.5 ansible_user\n")


def test_write_inventory_creates_parents(tmp_path):
    path = write_inventory(
        Inventory(hosts=[InventoryHost("203.0.113.10", "ubuntu", "k")]),
        tmp_path / "ansible" / "inventory",
    )
    assert path.read_text().startswith("[server]\n")
