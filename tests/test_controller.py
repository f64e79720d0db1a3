from ipaddress import IPv4Network

import pytest

from hubspoke.controller import TopologyController
from hubspoke.environment import Scope, unique_id
from hubspoke.flowlogs import FlowLogFormat, LogRule, LogSink
from hubspoke.models import (
    AddressExhaustedError,
    AllocationKeyError,
    Concrete,
    Deferred,
    DuplicateHubError,
    DuplicateSpokeError,
    InvalidOptionsError,
    MissingHubError,
    SymbolicIdentifierError,
    UnboundEnvironmentError,
)

from conftest import CONTROLLER_ACCOUNT, HOME_REGION, NETWORK_ACCOUNT


def test_controller_requires_concrete_environment(root):
    stack = Scope(root, "no-region", account=CONTROLLER_ACCOUNT)
    with pytest.raises(UnboundEnvironmentError):
        TopologyController(stack, "network-controller")


def test_controller_requires_an_environment(root):
    with pytest.raises(UnboundEnvironmentError):
        TopologyController(Scope(root, "bare"), "network-controller")


def test_controller_defaults(controller_stack):
    controller = TopologyController(controller_stack, "nc")
    assert controller.default_netmask == 16
    assert controller.flow_log_format is FlowLogFormat.V5
    assert controller.account == Concrete(CONTROLLER_ACCOUNT)
    assert controller.region == Concrete(HOME_REGION)
    assert controller.hubs == {}
    assert controller.registered_accounts == []
    assert controller.registered_regions == []


def test_controller_rejects_invalid_netmask(controller_stack):
    with pytest.raises(InvalidOptionsError):
        TopologyController(controller_stack, "nc", default_netmask=33)


def test_log_sink_named_after_controller(controller):
    assert controller.flow_log_sink.name == unique_id(controller.scope).lower()
    assert controller.flow_log_sink.name.startswith("controllerstacknetworkcontroller")
    assert controller.flow_log_sink.format is FlowLogFormat.V5


def test_supplied_log_sink_is_used(controller_stack, stack_factory):
    sink = LogSink("central-flow-logs", FlowLogFormat.V2)
    controller = TopologyController(
        controller_stack, "nc", flow_log_sink=sink, flow_log_format=FlowLogFormat.V2
    )
    hub = controller.add_hub(stack_factory("net"), "hub")
    assert hub.flow_logs == {
        "flow-log-default": LogRule(destination=sink, format=FlowLogFormat.V2)
    }


def test_add_hub(controller, stack_factory):
    stack = stack_factory("net")
    hub = controller.add_hub(stack, "hub1", max_azs=3, default_route_table="tgw-rtb-1")
    assert controller.hubs == {HOME_REGION: hub}
    assert controller.hub_for(HOME_REGION) is hub
    assert hub.region == HOME_REGION
    assert hub.account == NETWORK_ACCOUNT
    assert hub.network == IPv4Network("10.0.0.0/16")
    assert hub.options.max_azs == 3
    assert hub.default_route_table == "tgw-rtb-1"
    assert hub.flow_logs["flow-log-default"].destination is controller.flow_log_sink


def test_duplicate_hub_keeps_original(controller, stack_factory):
    original = controller.add_hub(stack_factory("net-a"), "hub1")
    with pytest.raises(DuplicateHubError) as exc:
        controller.add_hub(stack_factory("net-b", account="333333333333"), "hub2")
    assert exc.value.region == HOME_REGION
    assert dict(controller.hubs) == {HOME_REGION: original}
    assert "333333333333" not in controller.registered_accounts


def test_hub_with_unresolved_region(controller, root):
    stack = Scope(root, "net", account=NETWORK_ACCOUNT)
    with pytest.raises(UnboundEnvironmentError):
        controller.add_hub(stack, "hub1")
    assert len(controller.hubs) == 0
    assert controller.registered_accounts == []


def test_hub_with_unresolved_account(controller, root):
    stack = Scope(root, "net", region="eu-west-1")
    with pytest.raises(UnboundEnvironmentError):
        controller.add_hub(stack, "hub1")
    assert len(controller.hubs) == 0


def test_hub_option_conflict_leaves_registry_unchanged(controller, stack_factory):
    with pytest.raises(InvalidOptionsError):
        controller.add_hub(
            stack_factory("net"), "hub1", availability_zones=["us-east-1a"], max_azs=2
        )
    assert len(controller.hubs) == 0
    assert list(controller.address_manager.allocations()) == []


def test_spoke_without_hub_allocates_nothing(controller, stack_factory):
    with pytest.raises(MissingHubError) as exc:
        controller.add_spoke(stack_factory("net", region="eu-west-1"), "spoke1")
    assert exc.value.region == "eu-west-1"
    assert "eu-west-1" in str(exc.value)
    assert list(controller.address_manager.allocations()) == []
    assert controller.registered_regions == []


def test_end_to_end(controller, stack_factory):
    scope_a = stack_factory("net-a")
    scope_b = stack_factory("net-b", region="eu-west-1")

    hub = controller.add_hub(scope_a, "hub1")
    assert hub.network.prefixlen == 16

    spoke1 = controller.add_spoke(scope_a, "spoke1")
    spoke2 = controller.add_spoke(scope_a, "spoke2", netmask=20)
    assert spoke1.region == hub.region
    assert spoke2.network.prefixlen == 20
    assert not spoke1.network.overlaps(hub.network)
    assert not spoke2.network.overlaps(hub.network)
    assert not spoke1.network.overlaps(spoke2.network)
    assert hub.spokes == [spoke1, spoke2]
    assert controller.hub_of(spoke1) is hub

    with pytest.raises(MissingHubError):
        controller.add_spoke(scope_b, "spoke2")


def test_spoke_inherits_log_rule(controller, stack_factory):
    stack = stack_factory("net")
    hub = controller.add_hub(stack, "hub")
    spoke = controller.add_spoke(stack, "spoke")
    assert spoke.flow_logs == hub.flow_logs


def test_spokes_across_regions(controller, stack_factory):
    east = stack_factory("east")
    west = stack_factory("west", account="333333333333", region="eu-west-1")
    controller.add_hub(east, "hub")
    controller.add_hub(west, "hub")
    controller.add_spoke(east, "apps")
    controller.add_spoke(west, "apps")

    names = sorted((s.region, s.name) for s in controller.spokes())
    assert names == [("eu-west-1", "apps"), ("us-east-1", "apps")]
    assert controller.registered_accounts == [NETWORK_ACCOUNT, "333333333333"]
    assert controller.registered_regions == ["eu-west-1"]

    networks = [h.network for h in controller.hubs.values()]
    networks += [s.network for s in controller.spokes()]
    for i, left in enumerate(networks):
        for right in networks[i + 1:]:
            assert not left.overlaps(right)


def test_duplicate_spoke_name(controller, stack_factory):
    stack = stack_factory("net")
    controller.add_hub(stack, "hub")
    controller.add_spoke(stack, "spoke")
    with pytest.raises(DuplicateSpokeError):
        controller.add_spoke(stack_factory("other"), "spoke")
    assert len(list(controller.address_manager.allocations())) == 2


def test_spoke_default_netmask_from_config(controller_stack, stack_factory):
    from hubspoke.config import Config

    controller = TopologyController(
        controller_stack, "nc", config=Config(default_netmask=16, spoke_netmask=24)
    )
    stack = stack_factory("net")
    assert controller.add_hub(stack, "hub").network.prefixlen == 16
    assert controller.add_spoke(stack, "spoke").network.prefixlen == 24


def test_register_cidr_is_avoided(controller, stack_factory):
    stack = stack_factory("net")
    controller.register_cidr(stack, "on-premises", "10.0.0.0/16")
    hub = controller.add_hub(stack, "hub")
    assert hub.network == IPv4Network("10.1.0.0/16")


def test_register_own_identifiers_is_noop(controller):
    controller.register_account(Concrete(CONTROLLER_ACCOUNT))
    controller.register_region(Concrete(HOME_REGION))
    assert controller.registered_accounts == []
    assert controller.registered_regions == []


def test_register_is_idempotent(controller):
    controller.register_account(Concrete(NETWORK_ACCOUNT))
    controller.register_account(Concrete(NETWORK_ACCOUNT))
    controller.register_region(Concrete("eu-west-1"))
    controller.register_region(Concrete("eu-west-1"))
    assert controller.registered_accounts == [NETWORK_ACCOUNT]
    assert controller.registered_regions == ["eu-west-1"]


def test_register_deferred_fails(controller):
    controller.register_account(Concrete(NETWORK_ACCOUNT))
    with pytest.raises(SymbolicIdentifierError):
        controller.register_account(Deferred())
    with pytest.raises(SymbolicIdentifierError):
        controller.register_region(Deferred())
    assert controller.registered_accounts == [NETWORK_ACCOUNT]
    assert controller.registered_regions == []


def test_global_network(controller):
    assert controller.global_network.scope.parent is controller.scope
    assert controller.global_network.name.startswith("controllerstacknetworkcontrollerglobalnetwork")


def test_failed_construction_leaves_no_scope(root):
    stack = Scope(root, "no-region", account=CONTROLLER_ACCOUNT)
    for _ in range(2):
        with pytest.raises(UnboundEnvironmentError):
            TopologyController(stack, "nc")
    assert "nc" not in stack.children


def test_construction_can_be_retried(controller_stack):
    with pytest.raises(InvalidOptionsError):
        TopologyController(controller_stack, "nc", default_netmask=40)
    controller = TopologyController(controller_stack, "nc", default_netmask=20)
    assert controller.scope.parent is controller_stack


def test_hub_netmask_outside_pool_registers_nothing(controller, stack_factory):
    stack = stack_factory("net", region="eu-west-1")
    with pytest.raises(InvalidOptionsError):
        controller.add_hub(stack, "hub", netmask=4)
    assert len(controller.hubs) == 0
    assert controller.registered_accounts == []
    assert controller.registered_regions == []


def test_hub_key_taken_by_manual_range_registers_nothing(controller, stack_factory):
    stack = stack_factory("net", region="eu-west-1")
    controller.register_cidr(stack, "hub", "192.168.0.0/16")
    with pytest.raises(AllocationKeyError):
        controller.add_hub(stack, "hub")
    assert len(controller.hubs) == 0
    assert controller.registered_accounts == []
    assert controller.registered_regions == []


def test_spoke_netmask_outside_pool_registers_nothing(controller, stack_factory):
    controller.add_hub(stack_factory("net"), "hub")
    with pytest.raises(InvalidOptionsError):
        controller.add_spoke(stack_factory("other", account="333333333333"), "spoke", netmask=4)
    assert controller.registered_accounts == [NETWORK_ACCOUNT]
    assert list(controller.spokes()) == []


def test_register_cidr_is_avoided_by_spokes(controller, stack_factory):
    stack = stack_factory("net")
    hub = controller.add_hub(stack, "hub")
    assert hub.network == IPv4Network("10.0.0.0/16")
    controller.register_cidr(stack, "on-premises", "10.1.0.0/16")
    spoke = controller.add_spoke(stack, "spoke")
    assert spoke.network == IPv4Network("10.2.0.0/16")
    assert not spoke.network.overlaps(IPv4Network("10.1.0.0/16"))


def test_exhaustion_is_reported_by_the_range_that_does_not_fit(
    controller_stack, stack_factory, small_pool_config
):
    controller = TopologyController(controller_stack, "nc", config=small_pool_config)
    stack = stack_factory("net")
    hub = controller.add_hub(stack, "hub")
    spokes = [controller.add_spoke(stack, f"spoke{i}") for i in range(4)]
    assert hub.network == IPv4Network("10.0.0.0/16")
    assert spokes[2].network == IPv4Network("10.3.0.0/16")
    with pytest.raises(AddressExhaustedError):
        spokes[3].network
