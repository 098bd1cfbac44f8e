#!/usr/bin/env python3
"""
signalhost CLI - Unified command-line interface for signalhost.

This module provides the daemon entry point and one-shot commands for
refreshing, inspecting and feeding the shared state.
"""

import argparse
import logging
import sys
from typing import Optional

import yaml

from .config.loader import ConfigLoader
from .controller import HostController
from .main import LOG_FORMAT, serve
from .managers.fetch import FetchOutcome
from .managers.surface import SurfaceRegistry
from .state.snapshot import read_snapshot
from .utils.errors import ConfigurationError

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


class SignalHostCLI:
    """Main CLI handler for signalhost commands."""

    def run_daemon(self, config_path: str, log_level: str = "INFO") -> int:
        """Run the host in the foreground until a signal stops it."""
        logging.getLogger().setLevel(getattr(logging, log_level))
        return serve(config_path)

    def _controller(self, config_path: str) -> Optional[HostController]:
        controller = HostController(config_path, platform=None)
        if not controller.load_config():
            print(f"Cannot load configuration: {config_path}")
            return None
        return controller

    def refresh(self, config_path: str) -> int:
        """Fetch once and redraw every configured surface."""
        controller = self._controller(config_path)
        if controller is None:
            return 1

        try:
            controller.activate_all(fetch=False)
            outcome = controller.refresh_now()
            snapshot = read_snapshot(controller.store)
        finally:
            controller.stop()

        print(f"Refresh: {outcome.value}")
        print(f"  {snapshot}")
        return 1 if outcome == FetchOutcome.FAILED else 0

    def show_state(self, config_path: str) -> int:
        """Print the shared state store."""
        controller = self._controller(config_path)
        if controller is None:
            return 1

        state = controller.store.as_dict()
        if not state:
            print("State store is empty.")
            return 0

        print(yaml.safe_dump(state, default_flow_style=False, allow_unicode=True, sort_keys=True), end="")
        return 0

    def push(self, config_path: str, payload: str) -> int:
        """Store a pushed payload as if it came from the web page."""
        controller = self._controller(config_path)
        if controller is None:
            return 1

        try:
            controller.activate_all(fetch=False)
            accepted = controller.push(payload)
        finally:
            controller.stop()

        if not accepted:
            print("Payload rejected.")
            return 1

        print("Payload stored.")
        return 0

    def validate_config(self, config_path: str) -> int:
        """
        Validate a configuration file.

        Args:
            config_path: Path to the YAML configuration
        """
        print(f"Validating {config_path}...")

        try:
            config = ConfigLoader().load(config_path)
        except (ConfigurationError, FileNotFoundError) as e:
            print(f"\n❌ Validation FAILED:\n  ERROR: {e}")
            return 1

        warnings = []
        registry = SurfaceRegistry()
        registry.auto_discover()
        known_types = registry.list_surfaces()
        styles = config.get("styles", {})

        if not config["surfaces"]:
            warnings.append("No surfaces defined (nothing will be rendered)")

        for surface in config["surfaces"]:
            if surface["type"] not in known_types:
                warnings.append(f"Surface '{surface['id']}' has unknown type '{surface['type']}'")
            style = surface.get("style")
            if style and style not in styles:
                warnings.append(f"Surface '{surface['id']}' uses undefined style '{style}'")

        if config["source"]["min_interval"] < 1:
            warnings.append("source.min_interval below 1s disables effective rate limiting")

        print("\n✅ Configuration is valid")

        if warnings:
            print("\n⚠️  Warnings:")
            for warning in warnings:
                print(f"  WARNING: {warning}")
        else:
            print("\n✨ Configuration looks good!")

        return 0

    def list_surfaces(self) -> int:
        """List the available surface types."""
        registry = SurfaceRegistry()
        registry.auto_discover()

        print("Available surface types:\n")
        for surface_type in registry.list_surfaces():
            surface_class = registry.get_surface_class(surface_type)
            print(f"  {surface_type:<10} refresh every {surface_class.refresh_interval:.0f}s")
        return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="signalhost",
        description="signalhost - signal/noise surface host",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  signalhost run ~/.signalhost/config.yaml           # Run daemon directly
  signalhost refresh ~/.signalhost/config.yaml       # Fetch once and redraw
  signalhost state ~/.signalhost/config.yaml         # Show stored state
  signalhost push config.yaml '{"ratio": 82}'        # Store pushed data
  signalhost validate ~/.signalhost/config.yaml      # Validate configuration
  signalhost surfaces                                # List surface types
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the daemon directly")
    run_parser.add_argument("config", help="Path to configuration file")
    run_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level",
    )

    refresh_parser = subparsers.add_parser("refresh", help="Fetch once and redraw all surfaces")
    refresh_parser.add_argument("config", help="Path to configuration file")

    state_parser = subparsers.add_parser("state", help="Show the shared state store")
    state_parser.add_argument("config", help="Path to configuration file")

    push_parser = subparsers.add_parser("push", help="Store a pushed JSON payload")
    push_parser.add_argument("config", help="Path to configuration file")
    push_parser.add_argument("payload", help="JSON object with ratio, status, streak, premium, pattern")

    validate_parser = subparsers.add_parser("validate", help="Validate a configuration")
    validate_parser.add_argument("config", help="Path to configuration file")

    subparsers.add_parser("surfaces", help="List available surface types")

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    cli = SignalHostCLI()

    if args.command == "run":
        return cli.run_daemon(args.config, args.log_level)

    elif args.command == "refresh":
        return cli.refresh(args.config)

    elif args.command == "state":
        return cli.show_state(args.config)

    elif args.command == "push":
        return cli.push(args.config, args.payload)

    elif args.command == "validate":
        return cli.validate_config(args.config)

    elif args.command == "surfaces":
        return cli.list_surfaces()

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
