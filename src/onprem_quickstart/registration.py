#!/usr/bin/env python3
"""
Registering the new installation with the node server.
"""

from __future__ import annotations

import logging
import socket
from typing import Dict, List

import psutil
import requests

from .config import RunConfig, Settings
from .constants import LOOPBACK_ADDRESS
from .errors import RegistrationError

logger = logging.getLogger(__name__)


def list_ipv4_addresses() -> List[str]:
    """All IPv4 addresses of local interfaces, in interface order."""
    addresses = []
    for device, entries in psutil.net_if_addrs().items():
        for entry in entries:
            if entry.family == socket.AF_INET:
                logger.debug(f"  {device}: {entry.address}")
                addresses.append(entry.address)
    return addresses


def detect_ip_address() -> str:
    """Pick the first non-loopback IPv4 address, falling back to loopback."""
    candidates = [ip for ip in list_ipv4_addresses() if ip != LOOPBACK_ADDRESS]
    if candidates:
        return candidates[0]
    return LOOPBACK_ADDRESS


def build_init_payload(config: RunConfig, ip: str) -> Dict[str, object]:
    return {
        "ip": ip,
        "csPort": config.cs_port,
        "nodePort": config.node_port,
        "secret": config.env_secret,
    }


def register_environment(config: RunConfig, ip: str, settings: Settings) -> None:
    """
    POST the installation details to the local node server's /init endpoint.

    Raises:
        RegistrationError: on connection failure or a non-2xx response
    """
    url = f"http://localhost:{config.node_port}/init"
    logger.debug(f"POST {url} (ip={ip}, csPort={config.cs_port}, nodePort={config.node_port})")
    try:
        response = requests.post(url, json=build_init_payload(config, ip), timeout=settings.request_timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise RegistrationError(f"Registering the environment at {url} failed", str(e)) from e
