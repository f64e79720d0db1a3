from ipaddress import IPv4Network
from textwrap import dedent

import pytest

from hubspoke.config import Config
from hubspoke.controller import TopologyController
from hubspoke.environment import Scope

CONTROLLER_ACCOUNT = "111111111111"
NETWORK_ACCOUNT = "222222222222"
HOME_REGION = "us-east-1"

TOPOLOGY = dedent(
    """
    [controller]
    account = "111111111111"
    region = "us-east-1"
    default_netmask = 16

    [[stacks]]
    name = "network-us-east-1"
    account = "222222222222"
    region = "us-east-1"

    [[stacks]]
    name = "network-eu-west-1"
    account = "333333333333"
    region = "eu-west-1"

    [[cidrs]]
    stack = "network-us-east-1"
    key = "on-premises"
    cidr = "10.0.0.0/16"

    [[hubs]]
    stack = "network-us-east-1"
    name = "hub"
    max_azs = 3
    default_route_table = "tgw-rtb-0123"

    [[hubs]]
    stack = "network-eu-west-1"
    name = "hub"
    availability_zones = ["eu-west-1a", "eu-west-1b"]

    [[spokes]]
    stack = "network-us-east-1"
    name = "workloads"
    netmask = 20

    [[spokes]]
    stack = "network-eu-west-1"
    name = "workloads"
    """
)


@pytest.fixture
def root():
    return Scope(None, "")


@pytest.fixture
def controller_stack(root):
    return Scope(root, "controller-stack", CONTROLLER_ACCOUNT, HOME_REGION)


@pytest.fixture
def controller(controller_stack):
    return TopologyController(controller_stack, "network-controller", default_netmask=16)


@pytest.fixture
def stack_factory(root):
    """create stacks below the shared root"""

    def factory(name, account=NETWORK_ACCOUNT, region=HOME_REGION):
        return Scope(root, name, account, region)

    return factory


@pytest.fixture
def small_pool_config():
    """room for four /16 networks"""
    return Config(address_pool=IPv4Network("10.0.0.0/14"))
