"""Command-line interface for Hello Service.

Provides CLI commands for provisioning the host, configuring it with
Ansible, checking the deployed service and running the server locally.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import DeployConfig, resolve_config
from .deploy import DEFAULT_OUTPUTS_FILE, Deployer
from .exceptions import HelloServiceError
from .inventory import inventory_from_outputs, write_inventory
from .logging_setup import configure_logging
from .outputs import StackOutputs, fetch_stack_outputs, read_outputs_file
from .playbook import write_bundle
from .smoke import check_hello

app = typer.Typer(
    name="hello-service",
    help="Hello Service - provision, configure and check the web host",
    rich_markup_mode="rich",
    no_args_is_help=True,
)
console = Console()

# Config problems surface as FileNotFoundError or pydantic ValidationError
CLI_ERRORS = (HelloServiceError, FileNotFoundError, ValueError)

EnvOption = typer.Option("dev", "--env", help="Environment (dev/staging/prod)")
ConfigOption = typer.Option(None, "--config-path", help="Custom config file path")


def _load(env: str, config_path: Path | None) -> DeployConfig:
    config = resolve_config(env, config_path)
    configure_logging(config.log_level)
    return config


def _fail(message: str, error: Exception) -> None:
    console.print(f"[bold red]❌ {message}: {error}[/bold red]")
    sys.exit(1)


def _outputs(config: DeployConfig, ip: str | None, outputs_file: Path | None) -> StackOutputs:
    """Resolve stack outputs from an explicit IP, an outputs file or CloudFormation."""
    if ip:
        return StackOutputs(public_ip=ip)
    if outputs_file is not None:
        return read_outputs_file(outputs_file, config.stack_name)
    return fetch_stack_outputs(config.stack_name)


@app.command("show-config")
def show_config(env: str = EnvOption, config_path: Path | None = ConfigOption) -> None:
    """Show the resolved configuration."""
    try:
        config = _load(env, config_path)
    except CLI_ERRORS as e:
        _fail("Invalid configuration", e)
        return

    table = Table(title=f"Hello Service config ({config.environment})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Stack", config.stack_name)
    table.add_row("Region", config.aws_region)
    table.add_row("AMI", config.instance.ami)
    table.add_row("Instance type", config.instance.instance_type)
    table.add_row("Ingress ports", ", ".join(str(p) for p in config.instance.ingress_ports))
    table.add_row("SSH user", config.ansible.user)
    table.add_row("Service", config.service.unit_name)
    table.add_row("ExecStart", config.service.exec_start)
    console.print(table)


@app.command()
def synth(env: str = EnvOption, config_path: Path | None = ConfigOption) -> None:
    """Synthesize the CloudFormation template."""
    try:
        config = _load(env, config_path)
        Deployer(config).synth()
    except CLI_ERRORS as e:
        _fail("Synth failed", e)
    console.print("[bold green]✅ Synth completed[/bold green]")


@app.command()
def deploy(
    env: str = EnvOption,
    config_path: Path | None = ConfigOption,
    outputs_file: Path = typer.Option(Path(DEFAULT_OUTPUTS_FILE), help="Where cdk writes stack outputs"),
    yes: bool = typer.Option(False, "--yes", help="Confirm production deploys"),
    provision: bool = typer.Option(True, help="Run the Ansible playbook after deploying"),
    smoke: bool = typer.Option(True, help="Check GET / after provisioning"),
) -> None:
    """Deploy the stack, configure the host and check the service."""
    console.print(f"[bold blue]🚀 Deploying hello-service to {env}...[/bold blue]")
    try:
        config = _load(env, config_path)
        deployer = Deployer(config)
        outputs = deployer.deploy(outputs_file=outputs_file, confirm=yes)
        console.print(f"✅ Instance reachable at {outputs.public_ip}")

        if provision:
            deployer.provision(outputs)
            console.print("✅ Host configured")

        if provision and smoke:
            result = check_hello(outputs.base_url)
            _display_smoke_result(result)
            if not result.ok:
                sys.exit(1)
    except CLI_ERRORS as e:
        _fail("Deploy failed", e)

    console.print("[bold green]✅ Deploy completed[/bold green]")


@app.command()
def destroy(
    env: str = EnvOption,
    config_path: Path | None = ConfigOption,
    yes: bool = typer.Option(False, "--yes", help="Confirm destroying the stack"),
) -> None:
    """Destroy the stack."""
    try:
        config = _load(env, config_path)
        Deployer(config).destroy(confirm=yes)
    except CLI_ERRORS as e:
        _fail("Destroy failed", e)
    console.print(f"[bold green]🧹 Destroyed hello-service-{env}[/bold green]")


@app.command()
def inventory(
    env: str = EnvOption,
    config_path: Path | None = ConfigOption,
    ip: str | None = typer.Option(None, help="Host address, skips reading stack outputs"),
    outputs_file: Path | None = typer.Option(None, help="cdk outputs file to read"),
    output: Path | None = typer.Option(None, help="Inventory path, defaults to config"),
) -> None:
    """Write the Ansible inventory for the deployed instance."""
    try:
        config = _load(env, config_path)
        outputs = _outputs(config, ip, outputs_file)
        inv = inventory_from_outputs(outputs, config.ansible)
        path = write_inventory(inv, output or Path(config.ansible.inventory_path))
    except CLI_ERRORS as e:
        _fail("Inventory failed", e)
        return
    console.print(f"✅ Inventory written to {path}")


@app.command()
def render(
    env: str = EnvOption,
    config_path: Path | None = ConfigOption,
    out_dir: Path | None = typer.Option(None, help="Directory for the playbook and unit file"),
) -> None:
    """Render the playbook and the systemd unit file."""
    try:
        config = _load(env, config_path)
        paths = write_bundle(config, out_dir)
    except CLI_ERRORS as e:
        _fail("Render failed", e)
        return
    for kind, path in paths.items():
        console.print(f"✅ {kind}: {path}")


@app.command()
def provision(
    env: str = EnvOption,
    config_path: Path | None = ConfigOption,
    ip: str | None = typer.Option(None, help="Host address, skips reading stack outputs"),
    outputs_file: Path | None = typer.Option(None, help="cdk outputs file to read"),
) -> None:
    """Configure the instance with ansible-playbook."""
    try:
        config = _load(env, config_path)
        outputs = _outputs(config, ip, outputs_file)
        Deployer(config).provision(outputs)
    except CLI_ERRORS as e:
        _fail("Provision failed", e)
    console.print("[bold green]✅ Host configured[/bold green]")


@app.command()
def smoke(
    url: str = typer.Option(..., help="Base URL of the service, e.g. http://203.0.113.10"),
    retries: int = typer.Option(5, min=1, help="Attempts while the host is unreachable"),
    delay: float = typer.Option(2.0, help="Seconds between attempts"),
) -> None:
    """Check that GET / answers 200 with the greeting."""
    try:
        result = check_hello(url, retries=retries, delay=delay)
    except CLI_ERRORS as e:
        _fail("Smoke check failed", e)
        return

    _display_smoke_result(result)
    if not result.ok:
        sys.exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(80, help="Listen port"),
) -> None:
    """Run the web server in the foreground."""
    from .server import run

    run(host=host, port=port)


def _display_smoke_result(result) -> None:
    """Display smoke check table."""
    table = Table(title="Smoke Check")
    table.add_column("URL", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Body", style="yellow")
    table.add_column("Result")
    table.add_row(
        result.url,
        str(result.status_code),
        result.body[:60],
        "✅ PASS" if result.ok else "❌ FAIL",
    )
    console.print(table)


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
