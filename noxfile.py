"""Nox configuration for Hello Service development automation.

This file defines automated development tasks including linting, testing,
formatting, template synthesis, deployment and teardown.
"""

import nox

# Python versions to test against
PYTHON_VERSIONS = ["3.11"]

# Default sessions to run when no specific session is requested
nox.options.sessions = ["lint", "test", "coverage"]


@nox.session(python=PYTHON_VERSIONS)
def lint(session):
    """Run linting with ruff and mypy."""
    session.install("poetry")
    session.run("poetry", "install", "--extras", "test")

    session.run("poetry", "run", "ruff", "check", "src", "infra", "scripts", "tests")
    session.run("poetry", "run", "mypy", "src")

    session.log("✅ Linting completed successfully")


@nox.session(python=PYTHON_VERSIONS)
def format_code(session):
    """Format code with black and isort."""
    session.install("poetry")
    session.run("poetry", "install", "--extras", "test")

    session.run("poetry", "run", "black", "src", "infra", "scripts", "tests")
    session.run("poetry", "run", "isort", "src", "infra", "scripts", "tests")
    session.run("poetry", "run", "ruff", "check", "--fix", "src", "infra", "scripts", "tests")

    session.log("✅ Code formatting completed")


@nox.session(python=PYTHON_VERSIONS)
def test(session):
    """Run the test suite with pytest."""
    session.install("poetry")
    session.run("poetry", "install", "--extras", "test")

    session.run(
        "poetry", "run", "pytest",
        "tests/",
        "-v",
        "--tb=short",
        "--strict-markers",
        "-m", "not slow",
    )

    session.log("✅ Unit tests completed successfully")


@nox.session(python=PYTHON_VERSIONS)
def coverage(session):
    """Run tests with coverage reporting."""
    session.install("poetry")
    session.run("poetry", "install", "--extras", "test")

    session.run(
        "poetry", "run", "pytest",
        "tests/",
        "--cov=src",
        "--cov=infra",
        "--cov-report=term-missing",
        "--cov-report=xml:coverage.xml",
        "--cov-fail-under=80",
        "-m", "not slow",
    )

    session.log("✅ Coverage analysis completed")


@nox.session(python=PYTHON_VERSIONS)
def synth(session):
    """Synthesize the CloudFormation template (needs the cdk CLI on PATH).

    Examples:
      nox -s synth -- dev
    """
    session.install("poetry")
    session.run("poetry", "install")
    env = session.posargs[0] if session.posargs else "dev"
    session.run("poetry", "run", "cdk", "synth", f"hello-service-{env}",
                "--context", f"environment={env}", external=True)
    session.log("✅ Synth completed")


@nox.session(python=PYTHON_VERSIONS)
def deploy(session):
    """Deploy with guardrails: synth -> deploy -> provision -> smoke.

    Examples:
      nox -s deploy -- --env dev
      nox -s deploy -- --env prod --yes
    """
    session.install("poetry")
    session.run("poetry", "install")
    args = session.posargs or ["--env", "dev"]
    session.run("poetry", "run", "python", "scripts/deploy_flow.py", *args)
    session.log("✅ Deployment flow completed")


@nox.session(python=PYTHON_VERSIONS)
def teardown(session):
    """Teardown the CDK stack with confirmation.

    Examples:
      nox -s teardown -- --env dev --yes
    """
    session.install("poetry")
    session.run("poetry", "install")
    args = session.posargs or ["--env", "dev"]
    session.run("poetry", "run", "python", "scripts/teardown.py", *args)
    session.log("✅ Teardown completed")


@nox.session(python=PYTHON_VERSIONS)
def clean(session):
    """Clean up build artifacts and cache files."""
    import os
    import shutil

    clean_dirs = [
        ".pytest_cache",
        "__pycache__",
        ".coverage",
        "coverage.xml",
        "cdk.out",
        "cdk-outputs.json",
        "dist",
        ".ruff_cache",
        ".mypy_cache",
    ]

    for dir_name in clean_dirs:
        if os.path.exists(dir_name):
            if os.path.isdir(dir_name):
                shutil.rmtree(dir_name)
                session.log(f"🗑️  Removed directory: {dir_name}")
            else:
                os.remove(dir_name)
                session.log(f"🗑️  Removed file: {dir_name}")

    session.log("✅ Cleanup completed")
