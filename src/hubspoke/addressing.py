"""
hubspoke Address Manager - Non-overlapping IPv4 Range Allocation

PURPOSE:
    Hands out IPv4 ranges from a single pool so that no two ranges requested
    through the same manager overlap, and so that automatically allocated
    ranges avoid any range registered manually.

    Allocation is lazy: allocate() records the request and returns a provider.
    Reading a provider's network resolves pending requests in request order,
    first-fit from the start of the pool, up to and including that provider.

WHO READS ME:
    - controller.py: allocate() for hubs and spokes, register_manual() for
      externally managed ranges
    - report.py: allocations() for the summary

WHO I READ:
    - environment.py: Scope (requests are keyed by scope path and key)
    - models.py: AllocationKeyError, AddressConflictError,
      AddressExhaustedError, InvalidOptionsError

DEPENDENCIES:
    - ipaddress: IPv4Network arithmetic
    - logging: Allocation messages

KEY EXPORTS:
    - AddressRangeProvider: lazily resolved range
    - IpAddressManager: the allocator
"""

import logging
from ipaddress import IPV4LENGTH, IPv4Network
from typing import Iterator

from hubspoke.environment import Scope
from hubspoke.models import (
    AddressConflictError,
    AddressExhaustedError,
    AllocationKeyError,
    InvalidOptionsError,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_POOL = IPv4Network("10.0.0.0/8")


class AddressRangeProvider:
    """a range which is resolved on first use"""

    def __init__(self, manager: "IpAddressManager", owner: str, key: str, netmask: int):
        self._manager = manager
        self.owner = owner
        self.key = key
        self.netmask = netmask
        self._network: IPv4Network | None = None

    @property
    def resolved(self) -> bool:
        return self._network is not None

    @property
    def network(self) -> IPv4Network:
        if self._network is None:
            self._manager.resolve(until=self)
        assert self._network is not None
        return self._network

    @property
    def cidr(self) -> str:
        return str(self.network)

    def __repr__(self) -> str:
        state = str(self._network) if self._network else f"pending /{self.netmask}"
        return f"AddressRangeProvider({self.owner}/{self.key}, {state})"


class IpAddressManager:
    """allocates non-overlapping ranges from a pool"""

    def __init__(self, pool: IPv4Network = DEFAULT_POOL):
        self.pool = pool
        self._requests: dict[tuple[str, str], AddressRangeProvider] = {}
        self._manual: dict[tuple[str, str], IPv4Network] = {}

    def _check_key(self, slot: tuple[str, str]):
        if slot in self._requests or slot in self._manual:
            raise AllocationKeyError(
                f"address range '{slot[1]}' was already requested in '{slot[0]}'"
            )

    def check(self, scope: Scope, key: str, netmask: int):
        """raise if allocate() would reject this request"""
        if not self.pool.prefixlen <= netmask <= IPV4LENGTH:
            raise InvalidOptionsError(
                f"netmask /{netmask} cannot be allocated from pool {self.pool}"
            )
        self._check_key((scope.path, key))

    def allocate(self, scope: Scope, key: str, netmask: int) -> AddressRangeProvider:
        """request a range of the given prefix length"""
        self.check(scope, key, netmask)
        slot = (scope.path, key)
        provider = AddressRangeProvider(self, scope.path, key, netmask)
        self._requests[slot] = provider
        _LOGGER.debug("requested /%d for %s", netmask, provider.owner + "/" + key)
        return provider

    def register_manual(self, scope: Scope, key: str, cidr: str):
        """record an externally managed range, later allocations avoid it"""
        try:
            network = IPv4Network(cidr)
        except ValueError as exc:
            raise InvalidOptionsError(f"invalid CIDR '{cidr}': {exc}") from exc
        slot = (scope.path, key)
        self._check_key(slot)
        for provider in self._requests.values():
            if provider.resolved and provider.network.overlaps(network):
                raise AddressConflictError(
                    f"{network} overlaps {provider.network} allocated to "
                    f"{provider.owner}/{provider.key}"
                )
        self._manual[slot] = network
        _LOGGER.info("registered manual range %s (%s)", network, key)

    def _taken(self) -> list[IPv4Network]:
        nets = list(self._manual.values())
        nets.extend(p._network for p in self._requests.values() if p._network)
        return sorted(nets, key=lambda n: int(n.network_address))

    def _first_fit(self, prefixlen: int) -> IPv4Network:
        size = 1 << (IPV4LENGTH - prefixlen)
        start = int(self.pool.network_address)
        end = start + self.pool.num_addresses
        taken = self._taken()
        addr = start
        while addr + size <= end:
            candidate = IPv4Network((addr, prefixlen))
            blocker = next((n for n in taken if n.overlaps(candidate)), None)
            if blocker is None:
                return candidate
            after = int(blocker.broadcast_address) + 1
            addr = max(addr + size, (after + size - 1) // size * size)
        raise AddressExhaustedError(f"no free /{prefixlen} left in pool {self.pool}")

    def resolve(self, until: AddressRangeProvider | None = None):
        """assign networks to pending requests in request order

        With until given, stops once that provider has its network.
        """
        for provider in self._requests.values():
            if not provider.resolved:
                provider._network = self._first_fit(provider.netmask)
                _LOGGER.info(
                    "allocated %s to %s/%s", provider._network, provider.owner, provider.key
                )
            if provider is until:
                return

    def allocations(self) -> Iterator[tuple[str, str, IPv4Network]]:
        """(owner, key, network) for manual and allocated ranges"""
        self.resolve()
        for (owner, key), network in self._manual.items():
            yield owner, key, network
        for provider in self._requests.values():
            yield provider.owner, provider.key, provider.network
