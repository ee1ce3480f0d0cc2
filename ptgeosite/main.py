#!/usr/bin/env python
"""
pt-geosite command line.

Usage:
    pt-geosite -qb admin:adminadmin@192.168.1.1:8080 -tr user:password@192.168.1.1:9091
    pt-geosite -qb admin:adminadmin@192.168.1.1:8080 -dat /usr/share/xray/pt.dat --category PT

Exit codes:
    0  artifact written
    1  run aborted (a backend failed, or encoding/writing failed)
    2  usage or configuration error
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import CATEGORIES, MATCH_TYPES, Config, build_run_config
from .processors.pipeline import run_pipeline
from .services.exceptions import ConfigurationError
from .services.structured_logging import setup_json_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pt-geosite",
        description="Build a V2Ray/Xray GeoSite list from the trackers of your torrent clients",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
  pt-geosite -qb admin:adminadmin@192.168.1.1:8080 -tr user:password@192.168.1.1:9091

Endpoints can also be given as comma-separated lists in PTGEOSITE_QB and
PTGEOSITE_TR. If any backend fails, the output file is left untouched.
        """
    )
    parser.add_argument(
        "-qb", "--qb",
        action="append",
        default=[],
        metavar="USER:PASS@HOST:PORT",
        help="qBittorrent API credentials and URL (can be used multiple times)"
    )
    parser.add_argument(
        "-tr", "--tr",
        action="append",
        default=[],
        metavar="USER:PASS@HOST:PORT",
        help="Transmission RPC credentials and URL (can be used multiple times)"
    )
    parser.add_argument(
        "-dat", "--dat",
        default=Config.DAT_PATH,
        help=f"The path where the .dat file will be written (default: {Config.DAT_PATH})"
    )
    parser.add_argument(
        "--category",
        type=str.upper,
        choices=CATEGORIES,
        default=Config.CATEGORY,
        help=f"GeoSite category label (default: {Config.CATEGORY})"
    )
    parser.add_argument(
        "--match-type",
        type=str.lower,
        choices=MATCH_TYPES,
        default=Config.MATCH_TYPE,
        help="full: exact hostname match; domain: hostname and its subdomains "
             f"(default: {Config.MATCH_TYPE})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=Config.HTTP_TIMEOUT,
        help=f"Per-request HTTP timeout in seconds (default: {Config.HTTP_TIMEOUT:g})"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=Config.DEBUG,
        help="Enable verbose debug logging"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=Config.JSON_LOGS,
        help="Emit logs as JSON lines"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the domain list after writing"
    )
    return parser


def run(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    qb_specs = args.qb + Config.QB_ENDPOINTS
    tr_specs = args.tr + Config.TR_ENDPOINTS
    if not qb_specs and not tr_specs:
        print("At least one qb or tr parameter must be specified.", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 2

    if not Config.validate():
        print(f"Invalid PTGEOSITE_* environment defaults: {Config.get_summary()}", file=sys.stderr)
        return 2

    try:
        run_config = build_run_config(
            qb_specs=qb_specs,
            tr_specs=tr_specs,
            dat_path=args.dat,
            category=args.category,
            match_type=args.match_type,
            http_timeout=args.timeout,
        )
    except ConfigurationError as e:
        print(e, file=sys.stderr)
        return 2

    logger.debug(f"Configuration: {Config.get_summary()}")
    result = asyncio.run(run_pipeline(run_config))

    if not result.written:
        return 1

    if not args.quiet:
        print(f"{run_config.category.lower()} -> {result.output_path}")
        for domain in result.domains:
            print(domain)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the pipeline and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = setup_json_logging(
        logger_name="ptgeosite",
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_output=args.json_logs,
    )
    try:
        return run(parser, args)
    finally:
        logging.getLogger("ptgeosite").removeHandler(handler)


if __name__ == "__main__":
    sys.exit(main())
