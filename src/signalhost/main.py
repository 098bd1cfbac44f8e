#!/usr/bin/env python3
"""
signalhost - Daemon entry point
"""

import argparse
import logging
import os
import signal
import sys
from typing import List, Optional

from .controller import HostController

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def _install_stop_handlers(controller: HostController) -> None:
    def on_signal(signum, frame):
        logger.info(f"Signal {signum} received, stopping host")
        controller.running = False
        # Unwinds run() through its KeyboardInterrupt path
        raise KeyboardInterrupt()

    for signum in (signal.SIGTERM, signal.SIGINT):
        signal.signal(signum, on_signal)


def serve(config_path: str) -> int:
    """
    Run the host until stopped.

    Returns:
        Process exit code
    """
    config_path = os.path.expanduser(config_path)
    if not os.path.exists(config_path):
        logger.error(f"Configuration file not found: {config_path}")
        return 1

    controller = HostController(config_path)
    _install_stop_handlers(controller)

    try:
        controller.run()
    except KeyboardInterrupt:
        logger.info("Host stopped")
    except Exception as e:
        logger.error(f"Host crashed: {e}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="signalhost - signal/noise surface host")
    parser.add_argument("config", help="YAML configuration file")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)
    return serve(args.config)


if __name__ == "__main__":
    sys.exit(main())
