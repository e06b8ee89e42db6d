#!/usr/bin/env python3
"""Teardown script to destroy the hello-service stack safely."""
from __future__ import annotations

import argparse
from pathlib import Path

from hello_service.config import resolve_config
from hello_service.deploy import CommandRunner, Deployer
from hello_service.exceptions import HelloServiceError

ROOT = Path(__file__).resolve().parents[1]

# Config problems surface as FileNotFoundError or pydantic ValidationError
SCRIPT_ERRORS = (HelloServiceError, FileNotFoundError, ValueError)


def main(argv: list[str] | None = None, runner: CommandRunner | None = None) -> int:
    p = argparse.ArgumentParser(description="Destroy the CDK stack with confirmation")
    p.add_argument("--env", required=True, choices=["dev", "staging", "prod"], help="Target environment")
    p.add_argument("--config-path", type=Path, default=None, help="Custom config file path")
    p.add_argument("--yes", action="store_true", help="Auto-confirm destroy")
    args = p.parse_args(argv)

    try:
        config = resolve_config(args.env, args.config_path)

        if not args.yes:
            print(f"⚠️  You are about to destroy stack: {config.stack_name}")
            return 2

        Deployer(config, runner or CommandRunner(cwd=ROOT)).destroy(confirm=True)
    except SCRIPT_ERRORS as e:
        print(f"❌ {e}")
        return 1

    print(f"🧹 Destroyed stack: {config.stack_name}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
