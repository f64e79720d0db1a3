"""
hubspoke Registries - Controller-owned Topology State

PURPOSE:
    The mutable state of a topology controller, kept in two explicit
    structures whose methods are the only mutators:

    HubRegistry:
        region -> Hub, at most one hub per region.

    AccountRegionTracker:
        de-duplicated accounts and regions the topology touches, excluding
        the controller's own account and region. Only concrete identifiers
        are tracked; they are later used to set up cross-account and
        cross-region resource sharing.

WHO READS ME:
    - controller.py: Owns one of each

WHO I READ:
    - models.py: Concrete, Identifier, DuplicateHubError, SymbolicIdentifierError
    - network.py: Hub
"""

import logging
from types import MappingProxyType
from typing import Iterator, Mapping

from hubspoke.models import (
    Concrete,
    DuplicateHubError,
    Identifier,
    SymbolicIdentifierError,
    is_unresolved,
)
from hubspoke.network import Hub

_LOGGER = logging.getLogger(__name__)


class HubRegistry:
    """one hub per region"""

    def __init__(self):
        self._hubs: dict[str, Hub] = {}

    def __contains__(self, region: str) -> bool:
        return region in self._hubs

    def __len__(self) -> int:
        return len(self._hubs)

    def __iter__(self) -> Iterator[Hub]:
        return iter(self._hubs.values())

    def get(self, region: str) -> Hub | None:
        return self._hubs.get(region)

    def add(self, hub: Hub):
        if hub.region in self._hubs:
            raise DuplicateHubError(hub.region)
        self._hubs[hub.region] = hub

    def view(self) -> Mapping[str, Hub]:
        return MappingProxyType(self._hubs)


class AccountRegionTracker:
    """concrete accounts and regions other than the owner's"""

    def __init__(self, own_account: Concrete, own_region: Concrete):
        self.own_account = own_account
        self.own_region = own_region
        self._accounts: dict[str, None] = {}
        self._regions: dict[str, None] = {}

    @property
    def accounts(self) -> list[str]:
        return list(self._accounts)

    @property
    def regions(self) -> list[str]:
        return list(self._regions)

    @staticmethod
    def _register(kind: str, value: Identifier, own: Concrete, known: dict[str, None]):
        if is_unresolved(value):
            raise SymbolicIdentifierError(
                f"{kind}s registered with a network controller cannot be unresolved: {value}"
            )
        if value == own:
            _LOGGER.debug("not registering own %s %s", kind, value)
            return
        if value.value in known:
            return
        known[value.value] = None
        _LOGGER.info("registered %s %s", kind, value)

    def register_account(self, account: Identifier):
        self._register("account", account, self.own_account, self._accounts)

    def register_region(self, region: Identifier):
        self._register("region", region, self.own_region, self._regions)
