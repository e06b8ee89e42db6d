"""Infrastructure modules for Hello Service.

AWS CDK stack and app declaring the network and the EC2 host.
"""
