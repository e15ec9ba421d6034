#!/usr/bin/env python3
"""Console output and logging setup."""

from __future__ import annotations

import logging
import sys

# Color codes for output
BLUE = '\033[94m'
GREEN = '\033[92m'
RED = '\033[91m'
CYAN = '\033[96m'
UNDERLINE = '\033[4m'
RESET = '\033[0m'

logger = logging.getLogger(__name__)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure logging module with specified level.
    """
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR
    }

    level = level_map.get(str(log_level).upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='[%(levelname)s] %(message)s',
        force=True
    )

    logging.getLogger("onprem_quickstart").setLevel(level)
    logger.debug(f"Logging configured: {logging.getLevelName(level)}")


def info(msg: str) -> None:
    print(f"   {msg}", flush=True)


def step_running(step: str) -> None:
    """Announce a long-running step."""
    print(f"{BLUE}[....]{RESET} {step}...", flush=True)


def step_ok(step: str) -> None:
    print(f"{GREEN}[ OK ]{RESET} {step}", flush=True)


def step_failed(step: str) -> None:
    print(f"{RED}[FAIL]{RESET} {step}", file=sys.stderr, flush=True)


def error(msg: str) -> None:
    print(f"{RED}{msg}{RESET}", file=sys.stderr, flush=True)


def highlight(text: str) -> str:
    return f"{GREEN}{text}{RESET}"


def link(url: str) -> str:
    return f"{UNDERLINE}{CYAN}{url}{RESET}"
