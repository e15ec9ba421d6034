#!/usr/bin/env python3
"""
Credential collection, validation and host port selection.
"""

from __future__ import annotations

import getpass
import logging
import re
import socket
from typing import Callable, Dict, Optional

from . import console
from .constants import LOOPBACK_ADDRESS, MAX_PORT
from .errors import CredentialError

logger = logging.getLogger(__name__)

LICENSE_KEY_MIN_LENGTH = 300
DOCKER_TOKEN_LENGTH = 36

LICENSE_KEY_PATTERN = re.compile(r"[0-9a-f]*")
DOCKER_TOKEN_PATTERN = re.compile(r"[0-9a-f\-]*")

CREDENTIAL_FIELDS = ("license_key", "docker_token", "env_secret")
SECRET_FIELDS = {"env_secret"}


def _prompt(name: str) -> str:
    if name in SECRET_FIELDS:
        return getpass.getpass(f"{name}: ").strip()
    return input(f"{name}: ").strip()


def collect_credentials(
    license_key: Optional[str],
    docker_token: Optional[str],
    env_secret: Optional[str],
    non_interactive: bool = False,
    prompt: Callable[[str], str] = _prompt,
) -> Dict[str, str]:
    """
    Merge credentials given on the command line with interactive answers.

    Only values that are missing (None or empty) are prompted for.

    Args:
        license_key: --license_key value, if any
        docker_token: --docker_token value, if any
        env_secret: --env_secret value, if any
        non_interactive: Raise instead of prompting for missing values
        prompt: Callable asking for a single named value

    Returns:
        Dict with license_key, docker_token and env_secret
    """
    given = {
        "license_key": license_key or "",
        "docker_token": docker_token or "",
        "env_secret": env_secret or "",
    }
    missing = [name for name in CREDENTIAL_FIELDS if not given[name]]
    if not missing:
        return given

    if non_interactive:
        raise CredentialError(
            f"Missing required credential(s): {', '.join(missing)}",
            "Pass them as command line flags or run without --non-interactive.",
        )

    console.info("Some credentials are missing or were passed incorrectly. Please provide them below.\n")
    try:
        for name in missing:
            given[name] = prompt(name)
    except EOFError as e:
        raise CredentialError(
            f"Missing required credential(s): {', '.join(missing)}",
            "stdin closed; pass them as command line flags or use --non-interactive.",
        ) from e
    print("", flush=True)

    return given


def validate_credentials(license_key: str, docker_token: str, env_secret: str) -> None:
    """
    Check credential formats, stopping at the first violation.

    Raises:
        CredentialError: naming the field that failed
    """
    if len(license_key) < LICENSE_KEY_MIN_LENGTH or not LICENSE_KEY_PATTERN.fullmatch(license_key):
        raise CredentialError("Provided License Key is invalid")

    if len(docker_token) != DOCKER_TOKEN_LENGTH or not DOCKER_TOKEN_PATTERN.fullmatch(docker_token):
        raise CredentialError("Provided Docker Token is invalid")

    if len(env_secret) == 0:
        raise CredentialError("Environment secret can not be empty")


def is_port_in_use(port: int, host: str = LOOPBACK_ADDRESS, timeout: float = 0.5) -> bool:
    """Return True when something accepts TCP connections on host:port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        return sock.connect_ex((host, port)) == 0


def find_first_unused_port(start: int, in_use: Optional[Callable[[int], bool]] = None) -> int:
    """
    Return the smallest port >= start that is not in use.
    """
    in_use = in_use or is_port_in_use
    port = start
    while in_use(port):
        logger.debug(f"Port {port} is in use, trying {port + 1}")
        port += 1
        if port > MAX_PORT:
            raise CredentialError(f"No unused port found starting from {start}")
    return port
