#!/usr/bin/env python3
"""
Constants for the On-Premises Quick-Start installer.

This is the single place for registry hostnames, image names, compose service
names and the log markers the services print on startup. Runtime overrides go
through config.Settings, never through edits scattered across modules.
"""

# ============================================================================
# Registry and image
# ============================================================================

REGISTRY_PROD = 'docker.cke-cs.com'
REGISTRY_DEV = 'docker.cke-cs-dev.com'
REGISTRY_USER = 'cs'

IMAGE_NAME = 'cs'
IMAGE_TAG = 'latest'

MIN_DOCKER_VERSION = 18

# ============================================================================
# Compose manifest
# ============================================================================

COMPOSE_FILE = 'docker-compose.yml'

CS_SERVICE = 'ckeditor-cs'
NODE_SERVICE = 'node-server'
LICENSE_KEY_ENV = 'LICENSE_KEY'

# Container-side ports; the host side is chosen at install time
CS_CONTAINER_PORT = 8000
NODE_CONTAINER_PORT = 3000

DEFAULT_CS_PORT = 8000
DEFAULT_NODE_PORT = 3000
MAX_PORT = 65535

# ============================================================================
# Startup log markers
# ============================================================================

CS_READY_MARKER = 'Server is listening on port 8000.'
NODE_READY_MARKER = 'Node-server is listening on port 3000'
LICENSE_REJECTED_MARKER = 'Wrong license key.'

READY_MARKERS = (CS_READY_MARKER, NODE_READY_MARKER)

# ============================================================================
# Timing
# ============================================================================

POLL_INTERVAL = 0.1
STARTUP_TIMEOUT = 600.0
REQUEST_TIMEOUT = 30.0

# ============================================================================
# Configuration file
# ============================================================================

SETTINGS_FILE = 'quickstart.toml'
SETTINGS_TABLE = 'quickstart'

LOOPBACK_ADDRESS = '127.0.0.1'

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
