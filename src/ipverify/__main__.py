"""Run the IP verify HTTP service."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from ipverify.api.gateway import create_app
from ipverify.common.config import Config, LogLevel, get_config
from ipverify.common.exceptions import IPVerifyException
from ipverify.common.logging import configure_logging
from ipverify.service import create_verification_service


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Command line flags; each overrides its IPVERIFY_* variable."""
    parser = argparse.ArgumentParser(
        prog="ipverify",
        description="Impossible travel detection service",
    )
    parser.add_argument("--port", type=int, help="HTTP port number")
    parser.add_argument("--log", dest="log_level", help="log level, e.g. INFO or DEBUG")
    parser.add_argument("--timeout", type=int, help="server keep-alive timeout (seconds)")
    parser.add_argument("--mmdb", help="location of MaxMind DB file")
    parser.add_argument("--db", help="location of SQLite DB file")
    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    if args.port is not None:
        config.api_port = args.port
    if args.log_level:
        level = args.log_level.upper()
        config.log_level = LogLevel.DEBUG if level.startswith("D") else LogLevel(level)
    if args.timeout is not None:
        config.timeout_seconds = args.timeout
    if args.mmdb:
        config.mmdb_path = Path(args.mmdb)
    if args.db:
        config.db_path = Path(args.db)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        config = apply_overrides(get_config(), args)
    except (IPVerifyException, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logger = configure_logging(config.log_level.value)
    logger.info(f"IPVerify starting in {config.environment.value} mode")

    try:
        service = create_verification_service(config)
    except IPVerifyException as e:
        logger.error(f"Error initializing service: {e.message}")
        return 1

    logger.info(f"Listening for connections on port {config.api_port}")
    uvicorn.run(
        create_app(service, enable_docs=config.enable_docs),
        host=config.api_host,
        port=config.api_port,
        timeout_keep_alive=config.timeout_seconds,
        log_level=config.log_level.value.lower(),
    )
    logger.info("Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
