#!/usr/bin/env python3
"""lanwake - Main Entry Point

Sends Wake-on-LAN magic packets to the given MAC addresses or aliases.
Targets come from the command line or, in a pipeline, from stdin.
"""

import argparse
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from lanwake import __version__
from lanwake.alias_resolver import AliasResolver
from lanwake.config_manager import ConfigManager
from lanwake.errors import TransmissionFailureError
from lanwake.utils import normalize_mac_address, validate_mac_address
from lanwake.wake_manager import WakeManager, WakeStatus
from lanwake.wol_sender import parse_mac_address


def setup_logging(config: dict, level_override: Optional[int] = None) -> None:
    """Set up logging configuration."""
    log_config = config.get("logging", {})
    log_level = level_override or getattr(logging, log_config.get("level", "WARNING").upper())
    log_file = log_config.get("file")
    max_size_mb = log_config.get("max_size_mb", 10)
    backup_count = log_config.get("backup_count", 3)
    console_output = log_config.get("console_output", True)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console goes to stderr so stdout stays clean in pipelines
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=int(max_size_mb * 1024 * 1024),
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            logging.debug(f"Logging configured - Level: {logging.getLevelName(log_level)}, File: {log_file}")

        except OSError as e:
            print(f"Warning: Could not set up file logging: {e}", file=sys.stderr)
            print("Continuing with console logging only", file=sys.stderr)

    # Without any handler logging falls back to printing warnings on stderr
    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())


def read_targets(stream: TextIO) -> List[str]:
    """Read whitespace separated targets from a stream, skipping blanks and '#' comments."""
    targets = []
    for line in stream:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        targets.extend(line.split())
    return targets


def collect_targets(args_targets: List[str], stdin: TextIO) -> List[str]:
    """Combine targets from arguments and stdin.

    A lone '-' argument, or no arguments with piped stdin, reads stdin.
    """
    if args_targets == ['-'] or (not args_targets and not stdin.isatty()):
        return read_targets(stdin)
    return [target for target in args_targets if target != '-']


def load_config(args) -> dict:
    """Load the configuration file and apply command line overrides."""
    config_manager = ConfigManager(args.config)
    config_manager.load_config()
    return config_manager.apply_overrides({
        "network.broadcast_address": args.broadcast,
        "network.port": args.port,
        "network.dry_run": True if args.dry_run else None,
        "aliases.file": args.aliases
    })


def wake(targets: List[str], config: dict) -> int:
    """Send magic packets for ``targets``; returns the process exit code."""
    manager = WakeManager(config)
    try:
        manager.run(targets)
    except TransmissionFailureError as e:
        logging.error(f"Fatal error: {e}")
        return 1

    for result in manager.results:
        if result.status is WakeStatus.DRY_RUN:
            packet_info = manager.sender.get_packet_info(parse_mac_address(result.address))
            print(f"{result.token}\t{packet_info['mac_bytes_hex']}\t{packet_info['packet_hex']}")
    return 0


def create_example_config(path: str) -> None:
    """Create an example configuration file."""
    config_manager = ConfigManager()
    config_manager.save_example_config(path)
    print(f"Example configuration saved to: {path}")


def validate_config(path: str) -> None:
    """Validate configuration file."""
    try:
        config_manager = ConfigManager(path)
        config = config_manager.load_config()
        print(f"Configuration file {path} is valid")

        print("\nConfiguration Summary:")
        network = config['network']
        print(f"  Destination: {network['broadcast_address']}:{network['port']}")
        print(f"  Dry Run: {'Enabled' if network['dry_run'] else 'Disabled'}")
        alias_path = AliasResolver(config['aliases']['file']).alias_path
        print(f"  Alias File: {alias_path}")
        print(f"  Log Level: {config['logging']['level']}")

    except ValueError as e:
        print(f"Configuration validation failed: {e}", file=sys.stderr)
        sys.exit(1)


def list_aliases(config: dict) -> None:
    """Print the alias table."""
    alias_config = config["aliases"]
    resolver = AliasResolver(alias_config["file"], repair_on_error=alias_config["repair_on_error"])
    aliases = resolver.load()

    if not aliases:
        print(f"No aliases defined in {resolver.alias_path}")
        return

    width = max(len(name) for name in aliases)
    for name, address in aliases.items():
        if validate_mac_address(address):
            address = normalize_mac_address(address)
        else:
            address = f"{address} (invalid)"
        print(f"  {name.ljust(width)}  {address}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lanwake",
        description="Send Wake-on-LAN magic packets to MAC addresses or aliases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 00-1F-D0-98-CD-44                 # Wake one device
  %(prog)s 00:1F:D0:98:CD:44 Server3         # Wake a MAC and an alias
  cat hosts.txt | %(prog)s                   # Read targets from stdin
  %(prog)s --dry-run Server3                 # Show the packet, do not send
  %(prog)s --list-aliases                    # Show defined aliases
        """
    )

    parser.add_argument(
        'targets',
        nargs='*',
        metavar='TARGET',
        help="MAC address (XX:XX:XX:XX:XX:XX or XX-XX-XX-XX-XX-XX) or alias name; '-' reads stdin"
    )

    parser.add_argument(
        '--config', '-c',
        default='config.json',
        help='Configuration file path (default: config.json)'
    )

    parser.add_argument(
        '--aliases', '-a',
        help='Alias file path (default: wol_aliases.json next to the lanwake package)'
    )

    parser.add_argument(
        '--port', '-p',
        type=int,
        help='UDP destination port (default: 4000)'
    )

    parser.add_argument(
        '--broadcast', '-b',
        help='Broadcast address (default: 255.255.255.255)'
    )

    parser.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Validate targets and print packets without sending'
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        '--verbose',
        action='store_true',
        help='Report alias resolutions and sent packets'
    )
    verbosity.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    parser.add_argument(
        '--list-aliases',
        action='store_true',
        help='Show the alias table and exit'
    )

    parser.add_argument(
        '--create-config',
        action='store_true',
        help='Create an example configuration file'
    )

    parser.add_argument(
        '--validate-config',
        action='store_true',
        help='Validate the configuration file'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'lanwake {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """Main entry point with command line argument handling."""
    parser = build_parser()
    args = parser.parse_args(argv)
    stdin = stdin if stdin is not None else sys.stdin

    if args.create_config:
        create_example_config(args.config + '.example')
        return 0

    if args.validate_config:
        validate_config(args.config)
        return 0

    try:
        config = load_config(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    level_override = None
    if args.debug:
        level_override = logging.DEBUG
    elif args.verbose:
        level_override = logging.INFO
    setup_logging(config, level_override)

    if args.list_aliases:
        list_aliases(config)
        return 0

    targets = collect_targets(args.targets, stdin)
    if not targets:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: at least one TARGET is required", file=sys.stderr)
        return 2

    try:
        return wake(targets, config)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == '__main__':
    sys.exit(main())
