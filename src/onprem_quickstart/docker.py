#!/usr/bin/env python3
"""
Docker CLI checks and registry operations.
"""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Optional

from .config import RunConfig, Settings
from .errors import EnvironmentCheckError, ImagePullError, RegistryLoginError

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"(\d+)\.(\d+)")

DOCKER_MISSING_MESSAGE = (
    "Docker is not installed on your machine. "
    "Please install docker to run this setup process."
)
DOCKER_TOO_OLD_MESSAGE = (
    "Wrong docker version. "
    "Please install newer version of docker to run this setup process."
)


def parse_docker_version(output: str) -> Optional[int]:
    """
    Extract the major version from docker version output.

    Examples:
        >>> parse_docker_version("24.0.7")
        24
        >>> parse_docker_version("Docker version 18.09.1, build 4c52b90")
        18
        >>> parse_docker_version("command not found") is None
        True
    """
    match = VERSION_PATTERN.search(output or "")
    if not match:
        return None
    return int(match.group(1))


def _query_docker_version() -> Optional[str]:
    """Return raw version output, or None when docker cannot be run at all."""
    queries = [
        ["docker", "version", "--format", "{{.Client.Version}}"],
        ["docker", "--version"],
    ]
    for cmd in queries:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except (FileNotFoundError, PermissionError) as e:
            logger.debug(f"  {cmd[0]} not runnable: {e}")
            return None

        output = (result.stdout or "").strip()
        if output and parse_docker_version(output) is not None:
            return output
        logger.debug(f"  No usable version (exit {result.returncode}): {result.stderr.strip() if result.stderr else ''}")

    return None


def check_docker_version(settings: Settings) -> int:
    """
    Verify docker is installed and new enough.

    Returns:
        Detected major version

    Raises:
        EnvironmentCheckError: docker missing or older than settings.min_docker_version
    """
    output = _query_docker_version()
    if output is None:
        raise EnvironmentCheckError(DOCKER_MISSING_MESSAGE)

    major = parse_docker_version(output)
    logger.debug(f"Docker client version: {output} (major {major})")
    if major is None or major < settings.min_docker_version:
        raise EnvironmentCheckError(DOCKER_TOO_OLD_MESSAGE, f"Detected version: {output}")

    return major


def registry_login(config: RunConfig, settings: Settings) -> None:
    """
    Log in to the registry with the docker token.

    The token goes through stdin so it never shows up in the process list.
    """
    cmd = [
        "docker", "login",
        "-u", settings.registry_user,
        "--password-stdin",
        f"https://{config.registry}",
    ]
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, input=config.docker_token, capture_output=True, text=True)
    except OSError as e:
        raise RegistryLoginError(f"Could not run docker login for {config.registry}", str(e)) from e

    if result.returncode != 0:
        raise RegistryLoginError(
            f"Login to {config.registry} failed (exit {result.returncode})",
            (result.stderr or "").strip(),
        )


def pull_image(config: RunConfig, settings: Settings) -> str:
    """
    Pull the service image from the authenticated registry.

    Returns:
        The pulled image reference
    """
    image = settings.image_ref(config.registry)
    cmd = ["docker", "pull", image]
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ImagePullError(f"Could not run docker pull for {image}", str(e)) from e

    if result.returncode != 0:
        raise ImagePullError(
            f"Pulling {image} failed (exit {result.returncode})",
            (result.stderr or "").strip(),
        )

    return image
