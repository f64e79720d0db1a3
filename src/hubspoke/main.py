"""
hubspoke Main Entry Point - CLI Argument Parsing and Application Bootstrap

PURPOSE:
    Entry point for the hubspoke CLI tool. Parses arguments, loads the
    configuration, runs the definition pass for a topology file and prints
    (or writes) the summary, optionally exporting the topology as GraphML.

WHO READS ME:
    - Users: via CLI command `hubspoke` or `python -m hubspoke`

WHO I READ:
    - config.py: Configuration loading and defaults
    - definition.py: load_definition(), build()
    - report.py: render_summary(), write_graphml()
    - models.py: HubspokeError exception handling
    - colorlog.py: Custom log formatting

FLOW:
    1. Parse CLI arguments (create_argparser)
    2. Load configuration from config.toml (or defaults), optionally write it
    3. Load the topology definition and build the controller
    4. Print the summary or write it to --output, write --graphml if given
"""

import argparse
import logging
import os
import sys

import hubspoke
from hubspoke.colorlog import CustomFormatter
from hubspoke.config import Config
from hubspoke.definition import build, load_definition
from hubspoke.models import HubspokeError
from hubspoke.report import render_summary, write_graphml

_LOGGER = logging.getLogger(__name__)


def create_argparser(parser_class=argparse.ArgumentParser):
    """create the argparser for hubspoke"""
    parser = parser_class(prog=hubspoke.__name__, description=hubspoke.__description__)
    config_settings = parser.add_argument_group("configuration")

    config_settings.add_argument(
        "-c",
        "--config",
        dest="configfile",
        help="Use the configuration from this file, defaults to %(default)s",
        default="config.toml",
    )
    config_settings.add_argument(
        "-w",
        "--write",
        dest="writeconfig",
        action="store_true",
        help="Write the default configuration to a file and exit",
        default=False,
    )
    config_settings.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {hubspoke.__version__}"
    )
    config_settings.add_argument(
        "-l",
        "--loglevel",
        type=str,
        default=os.environ.get("LOG_LEVEL", "WARN"),
        help="DEBUG, INFO, WARN, ERROR, CRITICAL, defaults to %(default)s",
    )
    config_settings.add_argument(
        "-p",
        "--progress",
        action="store_true",
        help="show a progress bar",
    )

    parser.add_argument(
        "-o",
        "--output",
        dest="output",
        metavar="FILE",
        type=str,
        help="Write the topology summary to FILE instead of stdout",
    )
    parser.add_argument(
        "--graphml",
        dest="graphml",
        metavar="FILE",
        type=str,
        help="Export the topology graph as GraphML to FILE",
    )
    parser.add_argument(
        "topology",
        nargs="?",
        help="Topology definition file (TOML)",
    )
    return parser


def get_log_level(level_name: str) -> tuple[int, bool]:
    log_levels = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
        "NOTSET": logging.NOTSET,
    }
    level_name = level_name.upper()
    if level_name in log_levels:
        return log_levels[level_name], False
    return logging.WARNING, True


def setup_logging(loglevel: str):
    """sets up the logging, takes the given loglevel and uses the custom,
    colorful log formatter when stderr is a terminal
    """
    logging.basicConfig(level=logging.WARN)
    level, unknown_loglevel = get_log_level(loglevel)
    logging.root.setLevel(level)
    custom_formatter = CustomFormatter(use_color=sys.stderr.isatty())
    for handler in logging.root.handlers:
        handler.setFormatter(custom_formatter)
    if unknown_loglevel:
        _LOGGER.warning("Unknown log level: %s", loglevel.upper())


def main(argv: list[str] | None = None) -> int:
    """main function, returns 0 on success, 1 otherwise"""
    parser = create_argparser()
    args = parser.parse_args(argv)
    setup_logging(args.loglevel)

    cfg = Config.load(args.configfile)
    if args.writeconfig:
        cfg.save(args.configfile)
        return 0

    if not args.topology:
        parser.error("a topology definition file is required")

    try:
        definition = load_definition(args.topology)
        controller = build(definition, cfg, progress=args.progress)
        summary = render_summary(controller)
        if args.output:
            with open(args.output, "w", encoding="utf-8") as handle:
                handle.write(summary)
            _LOGGER.warning("Summary written to %s", args.output)
        else:
            print(summary)
        if args.graphml:
            write_graphml(controller, args.graphml)
    except (HubspokeError, OSError) as exc:
        _LOGGER.error(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
