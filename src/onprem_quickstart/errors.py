#!/usr/bin/env python3
"""
Installer error types.

Every step raises a QuickStartError subclass; only the CLI entry point turns
them into console output and an exit code.
"""

from __future__ import annotations

from typing import Optional

from .constants import EXIT_FAILURE


class QuickStartError(Exception):
    """Base class for installer failures.

    Args:
        message: Human readable reason shown to the user
        details: Raw underlying output (subprocess stderr, exception text)
    """

    step = "Installation"
    exit_code = EXIT_FAILURE

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigError(QuickStartError):
    step = "Loading configuration"


class CredentialError(QuickStartError):
    step = "Validating credentials"


class EnvironmentCheckError(QuickStartError):
    step = "Validating environment"


class RegistryLoginError(QuickStartError):
    step = "Docker registry authorization"


class ImagePullError(QuickStartError):
    step = "Pulling docker image"


class ComposeFileError(QuickStartError):
    step = "Editing docker-compose.yml file"


class ContainerStartError(QuickStartError):
    step = "Starting docker containers"


class RegistrationError(QuickStartError):
    step = "Creating environment"
