#!/usr/bin/env python3
"""
CDK Application for Hello Service

Deploys the web service host for one environment.
"""

import logging
import os

import aws_cdk as cdk

from hello_service.config import resolve_config
from hello_service.logging_setup import configure_logging
from infra.web_stack import WebServiceStack

logger = logging.getLogger(__name__)


def build_app(app: cdk.App | None = None) -> cdk.App:
    """Create the stack for the requested environment on ``app``."""
    app = app or cdk.App()

    # Get environment from context or environment variable
    environment = app.node.try_get_context("environment") or os.environ.get("ENVIRONMENT", "dev")
    config = resolve_config(environment)
    logger.info("Synthesizing %s for %s", config.stack_name, environment)

    account = app.node.try_get_context("account") or config.aws_account_id or os.environ.get("CDK_DEFAULT_ACCOUNT")
    region = app.node.try_get_context("region") or config.aws_region

    stack = WebServiceStack(
        app, config.stack_name,
        settings=config.instance,
        environment=environment,
        aws_region=region,
        env=cdk.Environment(account=account, region=region),
        description=f"Hello Service web host for {environment} environment"
    )

    cdk.Tags.of(stack).add("Project", "hello-service")
    return app


def main():
    """Main CDK application entry point."""
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    build_app().synth()


if __name__ == "__main__":
    main()
