#!/usr/bin/env python3
"""
On-Premises Quick-Start CLI entry point.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from . import console
from .config import load_settings
from .constants import EXIT_FAILURE, EXIT_SUCCESS, MAX_PORT
from .errors import QuickStartError
from .installer import collect_run_config, print_completion, print_welcome, run_install


def get_cli_version() -> str:
    try:
        from importlib.metadata import PackageNotFoundError, version as package_version

        return package_version("onprem-quickstart")
    except PackageNotFoundError:
        from . import __version__

        return __version__


def _port(value: str) -> int:
    port = int(value)
    if not 1 <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port must be between 1 and {MAX_PORT}, got {value}")
    return port


def _timeout(value: str) -> float:
    seconds = float(value)
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"timeout can not be negative, got {value}")
    return seconds


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command-line arguments for the installer.

    Credential arguments accept both the underscore and dash spelling:
    1. --license_key <key> - License key (prompted when missing)
    2. --docker_token <token> - Registry token (prompted when missing)
    3. --env_secret <secret> - Environment secret (prompted when missing)
    4. --dev - Use the development registry
    5. --cs_port / --node_port <port> - Host ports (first free port from 8000 / 3000 otherwise)
    6. --config <path> - Settings TOML file (default: ./quickstart.toml if present)
    7. --compose-file <path> - Compose file to edit and start
    8. --startup-timeout <seconds> - Readiness deadline (0 waits forever)
    9. --log-level <level> - DEBUG, INFO, WARNING or ERROR
    10. -y, --non-interactive - Fail instead of prompting for missing credentials
    """
    parser = argparse.ArgumentParser(
        prog='onprem-quickstart',
        description='On-Premises Quick-Start installation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Interactive installation (prompts for credentials)
  %(prog)s

  # Unattended installation against the development registry
  %(prog)s --license_key <key> --docker_token <token> --env_secret <secret> --dev -y

  # Fixed host ports
  %(prog)s --cs_port 8080 --node_port 3080
        '''
    )

    parser.add_argument('--license_key', '--license-key', dest='license_key', metavar='KEY',
                        help='License key')
    parser.add_argument('--docker_token', '--docker-token', dest='docker_token', metavar='TOKEN',
                        help='Docker registry token')
    parser.add_argument('--env_secret', '--env-secret', dest='env_secret', metavar='SECRET',
                        help='Environment secret')
    parser.add_argument('--dev', action='store_true',
                        help='Use the development registry')
    parser.add_argument('--cs_port', '--cs-port', dest='cs_port', type=_port, default=None, metavar='PORT',
                        help='Host port for the collaboration server (default: first free from 8000)')
    parser.add_argument('--node_port', '--node-port', dest='node_port', type=_port, default=None, metavar='PORT',
                        help='Host port for the node server (default: first free from 3000)')

    parser.add_argument('--config', type=Path, default=None, metavar='PATH',
                        help='Settings file (default: ./quickstart.toml if present)')
    parser.add_argument('--compose-file', type=Path, default=None, metavar='PATH',
                        help='Compose file to edit and start (default: docker-compose.yml)')
    parser.add_argument('--startup-timeout', type=_timeout, default=None, metavar='SECONDS',
                        help='Seconds to wait for the services to become ready (0 waits forever)')
    parser.add_argument('--log-level', default=None, metavar='LEVEL',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        type=str.upper,
                        help='Log level (default: INFO)')
    parser.add_argument('-y', '--non-interactive', action='store_true',
                        help='Never prompt; fail when a credential is missing')
    parser.add_argument('--version', action='version', version=f'%(prog)s {get_cli_version()}')

    return parser.parse_args(argv)


def report_failure(err: QuickStartError) -> None:
    console.step_failed(err.step)
    console.error(f"\n {err.message} \n")
    if err.details:
        console.error(err.details)


def main(argv: Optional[list] = None) -> int:
    args = parse_arguments(argv)

    try:
        settings = load_settings(args.config).replace(
            compose_file=args.compose_file,
            startup_timeout=args.startup_timeout,
            log_level=args.log_level,
        )
        console.configure_logging(settings.log_level)

        print_welcome()
        config = collect_run_config(args, settings)
        result = run_install(config, settings)
    except QuickStartError as e:
        report_failure(e)
        return e.exit_code
    except KeyboardInterrupt:
        console.error("\n Installation interrupted \n")
        return EXIT_FAILURE

    print_completion(result.ip, config.node_port)
    console.info("Press Ctrl+C to stop the containers.")
    result.stack.wait()
    return EXIT_SUCCESS


if __name__ == '__main__':
    raise SystemExit(main())
