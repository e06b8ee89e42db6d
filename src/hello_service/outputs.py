"""Read the outputs of the deployed web service stack.

Outputs come either from the JSON file written by ``cdk deploy --outputs-file``
or straight from CloudFormation. Accepts an injected ``cf_client`` so tests
can pass a stubbed boto3 client.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from botocore.exceptions import ClientError

from .exceptions import StackOutputError

logger = logging.getLogger(__name__)

# CfnOutput ids declared by infra.web_stack
OUTPUT_KEYS = {
    "public_ip": "InstancePublicIp",
    "instance_id": "InstanceId",
    "vpc_id": "VpcId",
    "security_group_id": "SecurityGroupId",
    "key_pair_name": "KeyPairName",
}


@dataclass
class StackOutputs:
    public_ip: str
    instance_id: str | None = None
    vpc_id: str | None = None
    security_group_id: str | None = None
    key_pair_name: str | None = None

    @property
    def base_url(self) -> str:
        return f"http://{self.public_ip}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _from_mapping(stack_name: str, values: dict[str, str]) -> StackOutputs:
    public_ip = values.get(OUTPUT_KEYS["public_ip"])
    if not public_ip:
        raise StackOutputError(
            f"Stack {stack_name} has no {OUTPUT_KEYS['public_ip']} output",
            stack_name=stack_name,
            details={"available": sorted(values)},
        )
    return StackOutputs(
        public_ip=public_ip,
        instance_id=values.get(OUTPUT_KEYS["instance_id"]),
        vpc_id=values.get(OUTPUT_KEYS["vpc_id"]),
        security_group_id=values.get(OUTPUT_KEYS["security_group_id"]),
        key_pair_name=values.get(OUTPUT_KEYS["key_pair_name"]),
    )


def read_outputs_file(path: str | Path, stack_name: str) -> StackOutputs:
    """Parse a ``cdk deploy --outputs-file`` document for one stack."""
    outputs_path = Path(path)
    if not outputs_path.exists():
        raise StackOutputError(f"Outputs file not found: {outputs_path}", stack_name=stack_name)

    try:
        data = json.loads(outputs_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StackOutputError(
            f"Outputs file is not valid JSON: {e}", stack_name=stack_name
        ) from e

    if stack_name not in data:
        raise StackOutputError(
            f"Stack {stack_name} not present in {outputs_path}",
            stack_name=stack_name,
            details={"stacks": sorted(data)},
        )
    return _from_mapping(stack_name, data[stack_name])


def fetch_stack_outputs(stack_name: str, cf_client: Any | None = None) -> StackOutputs:
    """Fetch outputs for ``stack_name`` from CloudFormation."""
    if cf_client is None:
        import boto3

        cf_client = boto3.client("cloudformation")

    try:
        response = cf_client.describe_stacks(StackName=stack_name)
    except ClientError as e:
        raise StackOutputError(
            f"Unable to describe stack {stack_name}: {e}", stack_name=stack_name
        ) from e

    stacks = response.get("Stacks") or []
    if not stacks:
        raise StackOutputError(f"Stack {stack_name} not found", stack_name=stack_name)

    values = {o["OutputKey"]: o["OutputValue"] for o in stacks[0].get("Outputs", []) or []}
    logger.info("Fetched %d outputs for stack %s", len(values), stack_name)
    return _from_mapping(stack_name, values)
