#!/usr/bin/env python3
"""
Docker Compose manifest editing.

The manifest shipped with the quick-start contains two services:

    services:
      ckeditor-cs:
        environment:
          LICENSE_KEY: ...
        ports:
          - "8000:8000"
      node-server:
        ports:
          - "3000:3000"

Only the license key and the first host port mapping of each service are
rewritten; everything else is written back as loaded.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path

import yaml

from .config import RunConfig
from .constants import (
    CS_CONTAINER_PORT,
    CS_SERVICE,
    LICENSE_KEY_ENV,
    NODE_CONTAINER_PORT,
    NODE_SERVICE,
)
from .errors import ComposeFileError

logger = logging.getLogger(__name__)


def _service(manifest: dict, name: str) -> dict:
    services = manifest.get("services") if isinstance(manifest, dict) else None
    if not isinstance(services, dict):
        raise ComposeFileError("Compose file has no 'services' mapping")
    service = services.get(name)
    if not isinstance(service, dict):
        raise ComposeFileError(f"Compose file has no '{name}' service")
    return service


def _set_first_port(service: dict, name: str, mapping: str) -> None:
    ports = service.get("ports")
    if not isinstance(ports, list) or not ports:
        raise ComposeFileError(f"Service '{name}' has no port mappings")
    ports[0] = mapping


def _set_environment(service: dict, name: str, key: str, value: str) -> None:
    """Set an environment variable in either the mapping or the KEY=VALUE list form."""
    environment = service.get("environment")
    if environment is None:
        environment = service["environment"] = {}

    if isinstance(environment, dict):
        environment[key] = value
        return

    if isinstance(environment, list):
        entry = f"{key}={value}"
        for idx, item in enumerate(environment):
            if isinstance(item, str) and item.split("=", 1)[0] == key:
                environment[idx] = entry
                return
        environment.append(entry)
        return

    raise ComposeFileError(f"Service '{name}' environment must be a mapping or a list")


def apply_run_config(manifest: dict, license_key: str, cs_port: int, node_port: int) -> dict:
    """
    Return a copy of the manifest with license key and host ports applied.

    The input manifest is left untouched.
    """
    updated = copy.deepcopy(manifest)

    cs = _service(updated, CS_SERVICE)
    _set_environment(cs, CS_SERVICE, LICENSE_KEY_ENV, license_key)
    _set_first_port(cs, CS_SERVICE, f"{cs_port}:{CS_CONTAINER_PORT}")

    node = _service(updated, NODE_SERVICE)
    _set_first_port(node, NODE_SERVICE, f"{node_port}:{NODE_CONTAINER_PORT}")

    return updated


def load_manifest(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            manifest = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ComposeFileError(f"Failed to read {path}", str(e)) from e

    if not isinstance(manifest, dict):
        raise ComposeFileError(f"{path} does not contain a compose mapping")
    return manifest


def dump_manifest(manifest: dict) -> str:
    return yaml.safe_dump(manifest, sort_keys=False, default_flow_style=False)


def edit_compose_file(path: Path, config: RunConfig) -> None:
    """
    Rewrite the compose file in place for this installation.

    No backup of the original file is kept.
    """
    manifest = load_manifest(path)
    updated = apply_run_config(manifest, config.license_key, config.cs_port, config.node_port)

    try:
        path.write_text(dump_manifest(updated), encoding="utf-8")
    except OSError as e:
        raise ComposeFileError(f"Failed to write {path}", str(e)) from e

    logger.debug(f"Compose file updated: {path} (cs {config.cs_port}, node {config.node_port})")
