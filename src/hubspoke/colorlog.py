"""
File Chain:
- Called by: main.py
- Purpose: ANSI color-coded log formatter for console output

PURPOSE:
    Colors console log lines by severity so errors about the topology stand
    out from the allocation chatter.

COLOR SCHEME:
    - DEBUG: Grey
    - INFO: Cyan
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red

LOG FORMAT:
    %(asctime)s - %(levelname)s - %(name)s - %(message)s
    Example: "2026-10-17 13:04:26,789 - INFO - hubspoke.controller - hub: hub (222222222222/us-east-1)"
"""

import logging


class CustomFormatter(logging.Formatter):
    """return a formatter that prints log messages with color"""

    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    cyan = "\x1b[36;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    template = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.formatters = {
            level: logging.Formatter(color + self.template + self.reset if use_color else self.template)
            for level, color in (
                (logging.DEBUG, self.grey),
                (logging.INFO, self.cyan),
                (logging.WARNING, self.yellow),
                (logging.ERROR, self.red),
                (logging.CRITICAL, self.bold_red),
            )
        }
        self.fallback = logging.Formatter(self.template)

    def format(self, record):
        return self.formatters.get(record.levelno, self.fallback).format(record)
