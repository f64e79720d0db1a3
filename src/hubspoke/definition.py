"""
hubspoke Topology Definition - TOML Topology Files

PURPOSE:
    Describes a whole topology in a TOML file and applies it to a new
    topology controller in one definition pass: stacks (scopes with an
    account/region environment) first, then manually managed ranges, hubs
    and finally spokes.

WHO READS ME:
    - main.py: load_definition() and build() for the CLI

WHO I READ:
    - config.py: Config
    - controller.py: TopologyController
    - environment.py: Scope
    - flowlogs.py: FlowLogFormat, LogSink
    - models.py: DefinitionError

DEPENDENCIES:
    - serde: TOML deserialization of the definition dataclasses
    - enlighten: optional progress bar while building

FILE FORMAT:
    ```toml
    [controller]
    name = "network-controller"
    account = "111111111111"
    region = "us-east-1"
    default_netmask = 16

    [[stacks]]
    name = "network-us-east-1"
    account = "222222222222"
    region = "us-east-1"

    [[cidrs]]
    stack = "network-us-east-1"
    key = "on-premises"
    cidr = "10.0.0.0/16"

    [[hubs]]
    stack = "network-us-east-1"
    name = "hub"
    max_azs = 3

    [[spokes]]
    stack = "network-us-east-1"
    name = "workloads"
    netmask = 20
    ```

    An omitted account or region leaves that value unresolved.
"""

import logging
from dataclasses import dataclass, field

import enlighten
from serde import deserialize, SerdeError
from serde.toml import from_toml

from hubspoke.config import Config
from hubspoke.controller import TopologyController
from hubspoke.environment import Scope
from hubspoke.flowlogs import FlowLogFormat, LogSink
from hubspoke.models import DefinitionError

_LOGGER = logging.getLogger(__name__)


@deserialize
@dataclass
class StackSpec:
    name: str
    account: str | None = None
    region: str | None = None


@deserialize
@dataclass
class ControllerSpec:
    account: str | None = None
    region: str | None = None
    name: str = "network-controller"
    default_netmask: int | None = None
    flow_log_format: FlowLogFormat | None = None
    flow_log_sink: str | None = None


@deserialize
@dataclass
class CidrSpec:
    stack: str
    key: str
    cidr: str


@deserialize
@dataclass
class HubSpec:
    stack: str
    name: str
    availability_zones: list[str] | None = None
    max_azs: int | None = None
    netmask: int | None = None
    default_route_table: str | None = None


@deserialize
@dataclass
class SpokeSpec:
    stack: str
    name: str
    availability_zones: list[str] | None = None
    max_azs: int | None = None
    netmask: int | None = None


@deserialize
@dataclass
class TopologyDefinition:
    """a complete topology as read from a definition file"""

    controller: ControllerSpec
    stacks: list[StackSpec] = field(default_factory=list)
    cidrs: list[CidrSpec] = field(default_factory=list)
    hubs: list[HubSpec] = field(default_factory=list)
    spokes: list[SpokeSpec] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.cidrs) + len(self.hubs) + len(self.spokes)


def parse_definition(text: str) -> TopologyDefinition:
    try:
        return from_toml(TopologyDefinition, text)
    except (TypeError, ValueError, KeyError, SerdeError) as exc:
        raise DefinitionError(f"invalid topology definition: {exc}") from exc


def load_definition(filename: str) -> TopologyDefinition:
    """load a topology definition, unlike the configuration there are no
    defaults to fall back to"""
    try:
        with open(filename, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise DefinitionError(f"can't read topology definition {filename}: {exc}") from exc
    definition = parse_definition(text)
    _LOGGER.info("Topology definition loaded from file %s", filename)
    return definition


def create_stacks(root: Scope, stacks: list[StackSpec]) -> dict[str, Scope]:
    scopes: dict[str, Scope] = {}
    for stack in stacks:
        try:
            scopes[stack.name] = Scope(root, stack.name, stack.account, stack.region)
        except ValueError as exc:
            raise DefinitionError(str(exc)) from exc
    return scopes


def build(
    definition: TopologyDefinition, cfg: Config, progress: bool = False
) -> TopologyController:
    """run the definition pass and return the resulting controller"""
    spec = definition.controller
    root = Scope(None, "")
    stacks = create_stacks(root, definition.stacks)
    try:
        controller_stack = Scope(root, f"{spec.name}-stack", spec.account, spec.region)
    except ValueError as exc:
        raise DefinitionError(str(exc)) from exc

    def stack_for(name: str) -> Scope:
        try:
            return stacks[name]
        except KeyError:
            raise DefinitionError(f"unknown stack '{name}'") from None

    sink = None
    if spec.flow_log_sink:
        sink = LogSink(spec.flow_log_sink, spec.flow_log_format or cfg.flow_log_format)
    controller = TopologyController(
        controller_stack,
        spec.name,
        default_netmask=spec.default_netmask,
        flow_log_format=spec.flow_log_format,
        flow_log_sink=sink,
        config=cfg,
    )

    manager = None
    ticks = None
    if progress:
        manager = enlighten.get_manager()
        ticks = manager.counter(
            total=definition.size,
            desc="topology",
            unit="networks",
            leave=False,
            color="cyan",
        )

    for cidr in definition.cidrs:
        controller.register_cidr(stack_for(cidr.stack), cidr.key, cidr.cidr)
        if progress:
            ticks.update()  # type: ignore
    for hub in definition.hubs:
        controller.add_hub(
            stack_for(hub.stack),
            hub.name,
            availability_zones=hub.availability_zones,
            max_azs=hub.max_azs,
            netmask=hub.netmask,
            default_route_table=hub.default_route_table,
        )
        if progress:
            ticks.update()  # type: ignore
    for spoke in definition.spokes:
        controller.add_spoke(
            stack_for(spoke.stack),
            spoke.name,
            availability_zones=spoke.availability_zones,
            max_azs=spoke.max_azs,
            netmask=spoke.netmask,
        )
        if progress:
            ticks.update()  # type: ignore

    # resolve all ranges while the definition is still at hand
    controller.address_manager.resolve()

    if progress:
        ticks.close()  # type: ignore
        manager.stop()  # type: ignore
    _LOGGER.warning(
        "Topology defined: %d hubs, %d spokes",
        len(controller.hubs),
        sum(1 for _ in controller.spokes()),
    )
    return controller
