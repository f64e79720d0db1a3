"""
hubspoke Topology Controller - Hub-and-Spoke Topology Orchestration

PURPOSE:
    Central object of a topology definition pass. Enforces the structural
    rules of the topology and coordinates address allocation:

    - at most one hub per region
    - a spoke needs a hub in its region first
    - every range allocated for a hub or spoke is unique within the pool
    - accounts and regions touched by the topology are tracked, except the
      controller's own, and only when they are concrete

WHO READS ME:
    - definition.py: Builds a controller from a topology definition file
    - report.py: Summarizes a finished controller
    - __init__.py: Public API export

WHO I READ:
    - addressing.py: IpAddressManager
    - config.py: Config defaults
    - environment.py: Scope, EnvironmentResolver, unique_id
    - flowlogs.py: LogSink, default_flow_logs
    - models.py: error taxonomy, identifiers
    - network.py: Hub, Spoke, NetworkOptions
    - registry.py: HubRegistry, AccountRegionTracker

FLOW (add_hub):
    1. resolve account/region of the scope, both must be concrete
    2. reject a second hub for the region
    3. check the request against the address manager
    4. register account and region, then allocate the range
    5. create the hub with the default flow log rule and store it

FLOW (add_spoke):
    1. resolve account/region of the scope, both must be concrete
    2. look up the region's hub, fail if there is none
    3. check a request keyed uniquely to this call
    4. register account and region, then allocate the range
    5. let the hub create the spoke
"""

import logging
from ipaddress import IPV4LENGTH
from typing import Iterator, Mapping

from hubspoke.addressing import IpAddressManager
from hubspoke.config import Config
from hubspoke.environment import Environment, EnvironmentResolver, Scope, unique_id
from hubspoke.flowlogs import FlowLogFormat, LogSink, default_flow_logs
from hubspoke.models import (
    Concrete,
    DuplicateHubError,
    DuplicateSpokeError,
    Identifier,
    InvalidOptionsError,
    MissingHubError,
    UnboundEnvironmentError,
)
from hubspoke.network import Hub, NetworkOptions, Spoke
from hubspoke.registry import AccountRegionTracker, HubRegistry

_LOGGER = logging.getLogger(__name__)


def _check_netmask(netmask: int):
    if not 0 <= netmask <= IPV4LENGTH:
        raise InvalidOptionsError(f"netmask must be between 0 and {IPV4LENGTH}, got {netmask}")


class GlobalNetwork:
    """the cross-region core network hubs are attached to"""

    def __init__(self, scope: Scope, name: str):
        self.scope = Scope(scope, name)
        self.name = unique_id(self.scope)

    def __repr__(self) -> str:
        return f"GlobalNetwork({self.name!r})"


class TopologyController:
    """defines a hub-and-spoke topology across accounts and regions

    The controller itself lives in a scope with a fully concrete environment;
    that account and region are its own and are never registered.
    """

    def __init__(
        self,
        scope: Scope,
        name: str,
        *,
        default_netmask: int | None = None,
        flow_log_format: FlowLogFormat | None = None,
        flow_log_sink: LogSink | None = None,
        config: Config | None = None,
        resolver: EnvironmentResolver | None = None,
    ):
        self.config = config or Config()
        self.resolver = resolver or EnvironmentResolver()

        env = self.resolver.resolve(scope)
        if not env.is_concrete:
            raise UnboundEnvironmentError(
                "A network controller can only be deployed using a scope with a "
                f"fully qualified environment, got {env}."
            )
        self.account: Concrete = env.account  # type: ignore[assignment]
        self.region: Concrete = env.region  # type: ignore[assignment]

        self.default_netmask = (
            default_netmask if default_netmask is not None else self.config.default_netmask
        )
        _check_netmask(self.default_netmask)
        self.scope = Scope(scope, name)
        self.flow_log_format = flow_log_format or self.config.flow_log_format

        self._hubs = HubRegistry()
        self._tracker = AccountRegionTracker(self.account, self.region)

        self.address_manager = IpAddressManager(self.config.address_pool)
        self.global_network = GlobalNetwork(self.scope, "global-network")
        self.flow_log_sink = flow_log_sink or LogSink(
            name=unique_id(self.scope).lower(), format=self.flow_log_format
        )
        _LOGGER.info(
            "controller %s in %s/%s, logs to %s",
            self.scope.path,
            self.account,
            self.region,
            self.flow_log_sink.name,
        )

    @property
    def hubs(self) -> Mapping[str, Hub]:
        return self._hubs.view()

    @property
    def registered_accounts(self) -> list[str]:
        return self._tracker.accounts

    @property
    def registered_regions(self) -> list[str]:
        return self._tracker.regions

    def hub_for(self, region: str) -> Hub | None:
        return self._hubs.get(region)

    def hub_of(self, spoke: Spoke) -> Hub:
        hub = self._hubs.get(spoke.hub_region)
        if hub is None:
            raise MissingHubError(spoke.hub_region)
        return hub

    def spokes(self) -> Iterator[Spoke]:
        for hub in self._hubs:
            yield from hub

    def _resolve(self, scope: Scope, kind: str) -> tuple[str, str]:
        env: Environment = self.resolver.resolve(scope)
        if not env.is_concrete:
            raise UnboundEnvironmentError(
                f"To add a {kind} network please provide a scope that belongs to "
                f"a fully qualified environment, got {env} for {scope!r}."
            )
        return str(env.account), str(env.region)

    def _netmask(self, netmask: int | None, fallback: int) -> int:
        netmask = fallback if netmask is None else netmask
        _check_netmask(netmask)
        return netmask

    def add_hub(
        self,
        scope: Scope,
        name: str,
        *,
        availability_zones: list[str] | None = None,
        max_azs: int | None = None,
        netmask: int | None = None,
        default_route_table: str | None = None,
    ) -> Hub:
        """create the hub network for the region of the given scope"""
        account, region = self._resolve(scope, "hub")
        if region in self._hubs:
            raise DuplicateHubError(region)
        options = NetworkOptions(
            tuple(availability_zones) if availability_zones is not None else None,
            max_azs,
        )
        netmask = self._netmask(netmask, self.default_netmask)
        self.address_manager.check(scope, name, netmask)

        self.register_account(Concrete(account))
        self.register_region(Concrete(region))

        provider = self.address_manager.allocate(scope, name, netmask)
        hub = Hub(
            name=name,
            scope=scope,
            account=account,
            region=region,
            cidr=provider,
            options=options,
            flow_logs=default_flow_logs(self.flow_log_sink, self.flow_log_format),
            default_route_table=default_route_table,
        )
        self._hubs.add(hub)
        _LOGGER.info("hub: %s (%s/%s)", name, account, region)
        return hub

    def add_spoke(
        self,
        scope: Scope,
        name: str,
        *,
        availability_zones: list[str] | None = None,
        max_azs: int | None = None,
        netmask: int | None = None,
    ) -> Spoke:
        """create a spoke attached to the hub of the scope's region"""
        account, region = self._resolve(scope, "spoke")
        hub = self._hubs.get(region)
        if hub is None:
            raise MissingHubError(region)
        options = NetworkOptions(
            tuple(availability_zones) if availability_zones is not None else None,
            max_azs,
        )
        spoke_default = self.config.spoke_netmask
        netmask = self._netmask(
            netmask, self.default_netmask if spoke_default is None else spoke_default
        )
        if hub.has_spoke(name):
            raise DuplicateSpokeError(f"hub '{hub.name}' already has a spoke named '{name}'")
        key = f"{name}-{scope.addr}"
        self.address_manager.check(scope, key, netmask)

        self.register_account(Concrete(account))
        self.register_region(Concrete(region))

        provider = self.address_manager.allocate(scope, key, netmask)
        return hub.add_spoke(
            scope,
            name,
            account=account,
            region=region,
            cidr=provider,
            options=options,
            flow_logs=default_flow_logs(self.flow_log_sink, self.flow_log_format),
        )

    def register_cidr(self, scope: Scope, key: str, cidr: str):
        """keep automatic allocations clear of an externally managed range"""
        self.address_manager.register_manual(scope, key, cidr)

    def register_account(self, account: Identifier):
        self._tracker.register_account(account)

    def register_region(self, region: Identifier):
        self._tracker.register_region(region)
