"""
hubspoke Data Models - Identifiers and Errors

PURPOSE:
    Defines the identifier value types used for account and region ids, and
    the exception hierarchy raised by every part of hubspoke.

WHO READS ME:
    - environment.py: Builds Environment values from Concrete/Deferred ids
    - registry.py: Tracks Concrete account/region ids
    - controller.py: Raises the topology errors
    - main.py: Uses HubspokeError for exception handling

WHO I READ:
    - None (leaf module, no internal dependencies)

DEPENDENCIES:
    - dataclasses: @dataclass decorator

KEY EXPORTS:
    - Concrete: identifier whose value is known at definition time
    - Deferred: identifier that is only resolved later (symbolic)
    - Identifier: Concrete | Deferred
    - as_identifier(): str/None -> Identifier
    - is_unresolved(): True for Deferred values
    - HubspokeError and its subclasses

IDENTIFIERS:
    Concrete("123456789012") == Concrete("123456789012")
    Deferred values never compare equal to anything but themselves and are
    never stored in registration sets.

ERRORS:
    HubspokeError
    ├── UnboundEnvironmentError  account/region unresolved where required
    ├── DuplicateHubError        region already owns a hub
    ├── MissingHubError          spoke requested before the region's hub
    ├── SymbolicIdentifierError  registering a Deferred account/region
    ├── DuplicateSpokeError      spoke name already used on a hub
    ├── RegionMismatchError      spoke region differs from hub region
    ├── InvalidOptionsError      bad netmask or AZ options
    ├── AllocationKeyError       allocation key requested twice
    ├── AddressConflictError     manual range overlaps an allocated one
    ├── AddressExhaustedError    pool has no room for the request
    └── DefinitionError          unreadable topology definition file
"""

from dataclasses import dataclass, field


class HubspokeError(Exception):
    """Base class for all errors raised by hubspoke"""


class UnboundEnvironmentError(HubspokeError):
    """account or region is not concrete where it has to be"""


class DuplicateHubError(HubspokeError):
    """a hub already exists for the region"""

    def __init__(self, region: str):
        super().__init__(f"A hub network already exists for the region '{region}'.")
        self.region = region


class MissingHubError(HubspokeError):
    """a spoke was requested for a region without hub"""

    def __init__(self, region: str):
        super().__init__(
            f"A hub network must be registered for the '{region}' region before "
            "a spoke can be added for that region."
        )
        self.region = region


class SymbolicIdentifierError(HubspokeError):
    """an unresolved account or region was registered"""


class DuplicateSpokeError(HubspokeError):
    """the spoke name is already taken on the hub"""


class RegionMismatchError(HubspokeError):
    """spoke and hub live in different regions"""


class InvalidOptionsError(HubspokeError):
    """network options are out of range or contradict each other"""


class AllocationKeyError(HubspokeError):
    """the same allocation key was requested twice within one scope"""


class AddressConflictError(HubspokeError):
    """a manually registered range overlaps an allocated range"""


class AddressExhaustedError(HubspokeError):
    """the address pool cannot satisfy the request"""


class DefinitionError(HubspokeError):
    """a topology definition file could not be used"""


@dataclass(frozen=True)
class Concrete:
    """an identifier whose value is known at definition time"""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, eq=False)
class Deferred:
    """an identifier that is only known after the definition pass.

    Identity comparison only, so two Deferred values are never mistaken for
    the same account or region.
    """

    label: str = field(default="${Token[unresolved]}")

    def __str__(self) -> str:
        return self.label


Identifier = Concrete | Deferred


def as_identifier(value: "str | Identifier | None", label: str = "") -> Identifier:
    """wrap a plain string, None becomes Deferred"""
    if isinstance(value, (Concrete, Deferred)):
        return value
    if value is None:
        return Deferred(f"${{Token[{label}]}}") if label else Deferred()
    return Concrete(value)


def is_unresolved(value: Identifier) -> bool:
    return isinstance(value, Deferred)
