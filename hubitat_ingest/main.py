"""CLI entry point del servicio de ingesta."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading

from .api import start_health_server
from .common.config import get_settings
from .service import HubIngestService

logger = logging.getLogger(__name__)


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Hubitat event socket → InfluxDB logger")
    p.add_argument("--env-file", default=None, help="dotenv file to load before reading the environment")
    p.add_argument("--log-level", default=None, help="overrides LOG_LEVEL")
    p.add_argument("--dry-run", action="store_true", help="log measurements instead of writing them")
    p.add_argument("--health-port", type=int, default=None, help="overrides HEALTH_PORT (0 disables)")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    if args.dry_run:
        os.environ["HUBITAT_DRY_RUN"] = "true"

    try:
        settings = get_settings(args.env_file)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    logger.info("Starting Hubitat ingest service")

    service = HubIngestService(settings)
    shutdown = threading.Event()

    def _request_shutdown(signum, frame):
        logger.info("Received signal %s, shutting down...", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _request_shutdown)
    signal.signal(signal.SIGTERM, _request_shutdown)

    health_port = settings.health_port if args.health_port is None else args.health_port
    if health_port > 0:
        start_health_server(service, health_port)

    exit_code = 0
    try:
        service.start()
        logger.info("Started Hubitat client. Press Ctrl+C to shut down.")
        while not shutdown.wait(1.0):
            pass
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        exit_code = 1
    finally:
        logger.info("Application is shutting down...")
        service.stop()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
