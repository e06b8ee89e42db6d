"""
CDK Stack for hello-service

Deploys a single public EC2 host for the Hello world web service: one VPC,
one public subnet, one security group, one imported key pair and one
instance. CloudFormation orders creation from the construct references.
"""

import aws_cdk as cdk
from aws_cdk import (
    Stack,
    CfnOutput,
    aws_ec2 as ec2,
)
from constructs import Construct

from hello_service.config import InstanceConfig


class WebServiceStack(Stack):
    """Network and compute for the Hello world web service."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: InstanceConfig,
        environment: str = "dev",
        aws_region: str = "us-east-1",
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Avoid clashing with Stack.environment
        self.env_name = environment
        self.settings = settings
        self.aws_region = aws_region

        self.vpc = self._create_vpc()
        self.security_group = self._create_security_group()
        self.key_pair = self._create_key_pair()
        self.instance = self._create_instance()

        cdk.Tags.of(self).add("App", "hello-service")
        cdk.Tags.of(self).add("Environment", self.env_name)

        self._create_outputs()

    def _create_vpc(self) -> ec2.Vpc:
        """Create a VPC with a single public subnet and no NAT gateway."""
        return ec2.Vpc(
            self, "WebVpc",
            ip_addresses=ec2.IpAddresses.cidr(self.settings.vpc_cidr),
            max_azs=1,
            nat_gateways=0,
            restrict_default_security_group=False,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PUBLIC,
                    name="Public",
                    cidr_mask=self.settings.subnet_cidr_mask
                )
            ]
        )

    def _create_security_group(self) -> ec2.SecurityGroup:
        """Open each configured TCP port to the internet."""
        sg = ec2.SecurityGroup(
            self, "WebSecurityGroup",
            vpc=self.vpc,
            description=f"hello-service {self.env_name} ingress",
            allow_all_outbound=True
        )
        for port in self.settings.ingress_ports:
            sg.add_ingress_rule(
                peer=ec2.Peer.any_ipv4(),
                connection=ec2.Port.tcp(port),
                description=f"Allow TCP {port}"
            )
        return sg

    def _create_key_pair(self) -> ec2.KeyPair:
        """Import the deployer's public key."""
        material = self.settings.resolve_public_key()
        key_type = ec2.KeyPairType.ED25519 if material.startswith("ssh-ed25519") else ec2.KeyPairType.RSA
        return ec2.KeyPair(
            self, "DeployerKeyPair",
            key_pair_name=self.settings.key_name,
            public_key_material=material,
            type=key_type
        )

    def _create_instance(self) -> ec2.Instance:
        # Environment-agnostic stacks map the AMI under the configured region
        region = self.aws_region if cdk.Token.is_unresolved(self.region) else self.region
        return ec2.Instance(
            self, "WebInstance",
            vpc=self.vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
            instance_type=ec2.InstanceType(self.settings.instance_type),
            machine_image=ec2.MachineImage.generic_linux({region: self.settings.ami}),
            security_group=self.security_group,
            key_pair=self.key_pair
        )

    def _create_outputs(self):
        """Create CloudFormation outputs."""
        CfnOutput(
            self, "InstancePublicIp",
            value=self.instance.instance_public_ip,
            description="Public IP of the web service instance"
        )

        CfnOutput(
            self, "InstanceId",
            value=self.instance.instance_id,
            description="EC2 instance id"
        )

        CfnOutput(
            self, "VpcId",
            value=self.vpc.vpc_id,
            description="VPC id"
        )

        CfnOutput(
            self, "SecurityGroupId",
            value=self.security_group.security_group_id,
            description="Security group id"
        )

        CfnOutput(
            self, "KeyPairName",
            value=self.key_pair.key_pair_name,
            description="EC2 key pair name"
        )
