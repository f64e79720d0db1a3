"""
hubspoke Networks - Hub and Spoke Network Descriptors

PURPOSE:
    The networks a topology controller creates. A Hub exclusively owns the
    spokes attached to it. A Spoke only remembers the region key of its hub;
    the hub itself is looked up through the controller's hub registry.

WHO READS ME:
    - controller.py: Creates hubs, delegates spoke creation to hubs
    - registry.py: Stores hubs by region
    - report.py: Walks hubs and spokes

WHO I READ:
    - addressing.py: AddressRangeProvider
    - environment.py: Scope
    - flowlogs.py: LogRule
    - models.py: DuplicateSpokeError, RegionMismatchError, InvalidOptionsError

KEY EXPORTS:
    - NetworkOptions: AZ constraints shared by hubs and spokes
    - Network, Hub, Spoke
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator

from hubspoke.addressing import AddressRangeProvider
from hubspoke.environment import Scope
from hubspoke.flowlogs import LogRule
from hubspoke.models import DuplicateSpokeError, InvalidOptionsError, RegionMismatchError

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkOptions:
    """availability zone placement, explicit zones and a zone count exclude
    each other"""

    availability_zones: tuple[str, ...] | None = None
    max_azs: int | None = None

    def __post_init__(self):
        if self.availability_zones is not None and self.max_azs is not None:
            raise InvalidOptionsError(
                "availability_zones and max_azs cannot be specified together"
            )
        if self.max_azs is not None and self.max_azs < 1:
            raise InvalidOptionsError(f"max_azs must be at least 1, got {self.max_azs}")
        if self.availability_zones is not None and not self.availability_zones:
            raise InvalidOptionsError("availability_zones must not be empty")


@dataclass
class Network:
    """common attributes of hubs and spokes"""

    name: str
    scope: Scope
    account: str
    region: str
    cidr: AddressRangeProvider
    options: NetworkOptions = field(default_factory=NetworkOptions)
    flow_logs: dict[str, LogRule] = field(default_factory=dict)

    @property
    def network(self):
        return self.cidr.network


@dataclass
class Spoke(Network):
    """a spoke network, hub_region is the registry key of its hub"""

    hub_region: str = ""


@dataclass
class Hub(Network):
    """the single hub network of a region"""

    default_route_table: str | None = None
    _spokes: dict[str, Spoke] = field(default_factory=dict, repr=False, init=False)

    @property
    def spokes(self) -> list[Spoke]:
        return list(self._spokes.values())

    def __iter__(self) -> Iterator[Spoke]:
        return iter(self._spokes.values())

    def has_spoke(self, name: str) -> bool:
        return name in self._spokes

    def add_spoke(
        self,
        scope: Scope,
        name: str,
        *,
        account: str,
        region: str,
        cidr: AddressRangeProvider,
        options: NetworkOptions | None = None,
        flow_logs: dict[str, LogRule] | None = None,
    ) -> Spoke:
        """attach a new spoke to this hub"""
        if region != self.region:
            raise RegionMismatchError(
                f"spoke '{name}' is in '{region}' but hub '{self.name}' is in '{self.region}'"
            )
        if name in self._spokes:
            raise DuplicateSpokeError(
                f"hub '{self.name}' already has a spoke named '{name}'"
            )
        spoke = Spoke(
            name=name,
            scope=scope,
            account=account,
            region=region,
            cidr=cidr,
            options=options or NetworkOptions(),
            flow_logs=dict(flow_logs or {}),
            hub_region=self.region,
        )
        self._spokes[name] = spoke
        _LOGGER.info("spoke: %s (%s) attached to hub %s", name, region, self.name)
        return spoke
