"""
File Chain:
- Called by: main.py, definition.py, controller.py
- Purpose: Configuration loading and defaults management

hubspoke Configuration - Configuration Loading and Defaults Management

PURPOSE:
    Manages configuration loading from TOML files and provides sensible
    defaults for topology definition: the address pool ranges are allocated
    from, the default prefix lengths and the flow log record format.

WHO READS ME:
    - main.py: Loads configuration via Config.load() during bootstrap
    - controller.py: Uses Config for pool, netmask and flow log defaults
    - definition.py: Passes Config to the controller it builds

WHO I READ:
    - flowlogs.py: FlowLogFormat

DEPENDENCIES:
    - serde: TOML serialization/deserialization (@deserialize, @serialize)
    - serde.toml: from_toml(), to_toml()
    - dataclasses: @dataclass decorator
    - ipaddress: IPv4Network for the address pool
    - logging: Configuration loading status messages

CONFIG PARAMETERS:
    - address_pool: IPv4Network all hub/spoke ranges come from (default: 10.0.0.0/8)
    - default_netmask: prefix length of hubs and spokes (default: 16)
    - spoke_netmask: prefix length of spokes, falls back to default_netmask
    - flow_log_format: flow log record schema (default: v5)

FILE FORMAT:
    config.toml example:
    ```toml
    address_pool = "10.0.0.0/8"
    default_netmask = 16
    spoke_netmask = 20
    flow_log_format = "v5"
    ```
"""

import logging
from dataclasses import dataclass
from ipaddress import IPv4Network

from serde import deserialize, field, serialize, SerdeError
from serde.toml import from_toml, to_toml

from hubspoke.flowlogs import FlowLogFormat

_LOGGER = logging.getLogger(__name__)


@deserialize
@serialize
@dataclass
class Config:
    """topology controller configuration"""

    address_pool: IPv4Network = IPv4Network("10.0.0.0/8")
    default_netmask: int = 16
    spoke_netmask: int | None = field(default=None, skip_if_default=True)
    flow_log_format: FlowLogFormat = FlowLogFormat.V5

    @classmethod
    def load(cls, filename: str) -> "Config":
        """load the configuration from the given file"""
        try:
            with open(filename, encoding="utf-8") as handle:
                cfg = from_toml(cls, handle.read())
            _LOGGER.info("Configuration loaded from file %s", filename)
        except (FileNotFoundError, TypeError, ValueError, SerdeError) as exc:
            if not isinstance(exc, FileNotFoundError):
                _LOGGER.error(exc)
            cfg = cls()
            _LOGGER.warning("using configuration defaults")
        return cfg

    def save(self, filename: str):
        """save the configuration to the given file"""
        with open(filename, "w+", encoding="utf-8") as handle:
            handle.write(to_toml(self))
