"""
File Chain:
- Called by: Python import system (when `import hubspoke` is executed), entry_points (CLI command)
- Reads from: importlib.metadata (package metadata), config.py, controller.py, main.py
- Calls into: importlib.metadata.metadata

Purpose: Package initialization for hubspoke. Defines the public API exports and
         loads package metadata (__version__, __description__).

Package Structure:
    - models.py: Identifiers (Concrete/Deferred) and the error hierarchy
    - environment.py: Construction scopes and environment resolution
    - addressing.py: Non-overlapping IPv4 range allocation
    - flowlogs.py: Flow log formats, log sink, log rules
    - network.py: Hub and Spoke networks
    - registry.py: Hub registry, account/region tracker
    - controller.py: The topology controller
    - config.py: Configuration management
    - definition.py: TOML topology definition files
    - report.py: Topology graph (NetworkX) and summary (Jinja2)
    - colorlog.py: Colored log output formatter
    - main.py: CLI entry point and argument parsing
    - templates/: Jinja2 templates for the summary

Entry Points:
    - hubspoke: CLI command (calls main.main())
    - python -m hubspoke: Direct module execution
"""

import importlib.metadata as importlib_metadata

from .config import Config
from .controller import TopologyController
from .environment import EnvironmentResolver, Scope
from .flowlogs import FlowLogFormat, LogSink
from .models import Concrete, Deferred, HubspokeError
from .main import main

_metadata = importlib_metadata.metadata("hubspoke")
__version__ = _metadata["Version"]
__description__ = _metadata["Summary"]


__all__ = [
    "Concrete",
    "Config",
    "Deferred",
    "EnvironmentResolver",
    "FlowLogFormat",
    "HubspokeError",
    "LogSink",
    "Scope",
    "TopologyController",
    "main",
]
