#!/usr/bin/env python3
"""
Installation pipeline.

Steps run strictly in order; each either completes or raises a
QuickStartError, which ends the run:

    collect credentials -> validate credentials -> check docker ->
    registry login -> pull image -> edit compose file ->
    start containers -> register environment -> report
"""

from __future__ import annotations

import argparse
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from . import console, docker
from .compose import edit_compose_file
from .config import RunConfig, Settings
from .credentials import collect_credentials, find_first_unused_port, validate_credentials
from .readiness import ComposeStack, start_containers
from .registration import detect_ip_address, register_environment

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    ip: str
    stack: ComposeStack


def print_welcome() -> None:
    console.info(f"This is {console.highlight('On-Premises Quick-Start')} installation")
    console.info("It installs and starts the collaboration server stack on this machine.\n")


def print_completion(ip: str, node_port: int) -> None:
    print("", flush=True)
    console.info(console.highlight("Installation complete"))
    console.info(f"Visit {console.link(f'http://{ip}:{node_port}')} to start collaborating")


def collect_run_config(args: argparse.Namespace, settings: Settings) -> RunConfig:
    """
    Resolve credentials and ports, validate them and freeze the result.
    """
    registry = settings.registry_for(args.dev)
    cs_port = args.cs_port or find_first_unused_port(settings.cs_port)
    node_port = args.node_port or find_first_unused_port(settings.node_port)
    logger.debug(f"Registry: {registry}, cs port: {cs_port}, node port: {node_port}")

    credentials = collect_credentials(
        args.license_key,
        args.docker_token,
        args.env_secret,
        non_interactive=args.non_interactive,
    )
    validate_credentials(**credentials)
    console.step_ok("Validating credentials")

    return RunConfig(
        license_key=credentials["license_key"],
        docker_token=credentials["docker_token"],
        env_secret=credentials["env_secret"],
        dev=bool(args.dev),
        registry=registry,
        cs_port=cs_port,
        node_port=node_port,
    )


def run_install(
    config: RunConfig,
    settings: Settings,
    cancel: Optional[threading.Event] = None,
) -> InstallResult:
    """Run every step after credential validation."""
    docker.check_docker_version(settings)
    console.step_ok("Validating environment")

    console.step_running("Docker registry authorization")
    docker.registry_login(config, settings)
    console.step_ok("Docker registry authorization")

    console.step_running("Pulling docker image")
    image = docker.pull_image(config, settings)
    logger.debug(f"Pulled {image}")
    console.step_ok("Pulling docker image")

    edit_compose_file(settings.compose_file, config)
    console.step_ok(f"Editing {settings.compose_file.name} file")

    console.step_running("Starting docker containers")
    stack = start_containers(settings.compose_file, settings, cancel)
    console.step_ok("Starting docker containers")

    console.step_running("Creating environment")
    ip = detect_ip_address()
    try:
        register_environment(config, ip, settings)
    except BaseException:
        stack.stop()
        raise
    console.step_ok("Creating environment")

    return InstallResult(ip=ip, stack=stack)
