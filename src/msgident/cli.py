"""
Command line interface.

    msgident resolve --index build.parquet --curated names.ini -o snapshot.ini
    msgident stats --index build.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from msgident.build_index import HashBuildIndex
from msgident.catalog import MessageCatalog
from msgident.config import ConfigValidationError, ConfigValidator, ResolverConfig
from msgident.identifiers import MalformedLineError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="msgident",
        description="Resolve curated message names against a protocol build",
    )
    parser.add_argument("--config", "-c", type=Path, help="YAML or JSON config file")
    parser.add_argument("--log-level", help="Logging level (default: from config, INFO)")

    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Write a name=id snapshot for one build")
    resolve.add_argument("--index", "-i", type=Path, help="Build index (.parquet or .json)")
    resolve.add_argument("--curated", "-n", type=Path, help="Curated name=hash file")
    resolve.add_argument("--output", "-o", type=Path, help="Snapshot path (default: stdout)")
    resolve.add_argument("--section", action="append", dest="sections",
                         help="Section to resolve (repeatable, default: Incoming, Outgoing)")

    stats = sub.add_parser("stats", help="Show build index statistics")
    stats.add_argument("--index", "-i", type=Path, help="Build index (.parquet or .json)")

    return parser


def load_config(args: argparse.Namespace) -> ResolverConfig:
    """Merge the optional config file with command line overrides."""
    config = ResolverConfig.load(args.config) if args.config else ResolverConfig()

    if getattr(args, "index", None):
        config.build_index_path = args.index
    if getattr(args, "curated", None):
        config.curated_path = args.curated
    if getattr(args, "output", None):
        config.output_path = args.output
    if getattr(args, "sections", None):
        config.sections = args.sections
    if args.log_level:
        config.log_level = args.log_level.upper()

    ConfigValidator().validate_or_raise(config)
    return config


def cmd_resolve(config: ResolverConfig) -> int:
    if not config.build_index_path or not config.curated_path:
        logger.error("resolve needs both a build index and a curated file")
        return 2

    index = HashBuildIndex.load(config.build_index_path)
    catalog = MessageCatalog.from_sections(config.sections, encoding=config.encoding)
    catalog.load(index, config.curated_path)

    if config.output_path:
        catalog.save(config.output_path)
    else:
        catalog.save(sys.stdout)

    for section, stats in catalog.stats().items():
        logger.info(
            f"[{section}] {stats['resolved']}/{stats['total_names']} resolved, "
            f"{stats['unresolved']} unresolved"
        )
    return 0


def cmd_stats(config: ResolverConfig) -> int:
    if not config.build_index_path:
        logger.error("stats needs a build index")
        return 2

    index = HashBuildIndex.load(config.build_index_path)
    for key, value in index.stats().items():
        print(f"{key}: {value:,}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args)
    except ConfigValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "stats":
        return cmd_stats(config)
    try:
        return cmd_resolve(config)
    except MalformedLineError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
