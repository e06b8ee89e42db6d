#!/usr/bin/env python3
"""Deployment flow: synth -> deploy -> inventory -> provision -> smoke.

Guardrails:
- Prevent prod deploys from non-main/master unless --force
- Require confirmation for prod unless --yes
- Optional smoke test post-deploy
"""
from __future__ import annotations

import argparse
import os
import subprocess
from pathlib import Path

from hello_service.config import resolve_config
from hello_service.deploy import DEFAULT_OUTPUTS_FILE, CommandRunner, Deployer
from hello_service.exceptions import HelloServiceError
from hello_service.logging_setup import configure_logging
from hello_service.smoke import check_hello

ROOT = Path(__file__).resolve().parents[1]

# Config problems surface as FileNotFoundError or pydantic ValidationError
SCRIPT_ERRORS = (HelloServiceError, FileNotFoundError, ValueError)


def get_branch() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=ROOT)
        return out.decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return os.getenv("GITHUB_REF_NAME", "")


def main(argv: list[str] | None = None, runner: CommandRunner | None = None) -> int:
    p = argparse.ArgumentParser(description="Deploy and configure the hello-service host")
    p.add_argument("--env", required=True, choices=["dev", "staging", "prod"], help="Target environment")
    p.add_argument("--config-path", type=Path, default=None, help="Custom config file path")
    p.add_argument("--outputs-file", default=DEFAULT_OUTPUTS_FILE, help="Where cdk writes stack outputs")
    p.add_argument("--yes", action="store_true", help="Auto-confirm prompts (required for prod)")
    p.add_argument("--force", action="store_true", help="Bypass branch guardrails for prod")
    p.add_argument("--skip-provision", action="store_true", help="Skip the Ansible run")
    p.add_argument("--skip-smoke", action="store_true", help="Skip smoke test after deployment")
    p.add_argument("--dry-run", action="store_true", help="Print commands without running them")
    args = p.parse_args(argv)

    # Guardrails
    branch = get_branch()
    if args.env == "prod" and not args.force:
        if branch not in {"main", "master"}:
            print(f"❌ Refusing to deploy prod from branch '{branch}'. Use --force to override.")
            return 2
        if not args.yes:
            print("❌ Production deploy requires --yes confirmation flag.")
            return 2

    try:
        config = resolve_config(args.env, args.config_path)
        configure_logging(config.log_level)
        deployer = Deployer(config, runner or CommandRunner(cwd=ROOT, dry_run=args.dry_run))

        # Step 1: CDK synth
        deployer.synth()

        if args.dry_run:
            print(f"✅ Dry run for {config.stack_name} complete")
            return 0

        # Step 2: CDK deploy
        outputs = deployer.deploy(outputs_file=args.outputs_file, confirm=args.yes or args.force)

        # Step 3: Inventory + playbook
        if not args.skip_provision:
            deployer.provision(outputs)

        # Step 4: Smoke test
        if not args.skip_provision and not args.skip_smoke:
            result = check_hello(outputs.base_url)
            if not result.ok:
                print(f"❌ Smoke check failed: {result.status_code} {result.body!r}")
                return 1
    except SCRIPT_ERRORS as e:
        print(f"❌ {e}")
        return 1

    print(f"✅ Deployed {config.stack_name} at {outputs.public_ip}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
