#!/usr/bin/env python3
"""
Container launch and startup readiness detection.

docker compose output (stdout and stderr merged) is read on a background
thread and appended to a ReadinessMonitor. The main thread waits on the
monitor until both services print their listening marker, the license is
rejected, the compose process exits, the deadline passes or the wait is
cancelled.
"""

from __future__ import annotations

import enum
import logging
import subprocess
import threading
import time
from pathlib import Path
from typing import List, Optional

from . import console
from .config import Settings
from .constants import LICENSE_REJECTED_MARKER, POLL_INTERVAL, READY_MARKERS
from .errors import ContainerStartError

logger = logging.getLogger(__name__)

OUTPUT_TAIL_LINES = 20


class ReadinessState(enum.Enum):
    PENDING = "pending"
    READY = "ready"
    LICENSE_REJECTED = "license_rejected"
    EXITED = "exited"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


def scan_output(output: str) -> ReadinessState:
    """
    Classify accumulated compose output.

    A rejected license wins over readiness, even when both are present.
    """
    if LICENSE_REJECTED_MARKER in output:
        return ReadinessState.LICENSE_REJECTED
    if all(marker in output for marker in READY_MARKERS):
        return ReadinessState.READY
    return ReadinessState.PENDING


class ReadinessMonitor:
    """Output buffer with a single writer (the reader thread) and a single waiter."""

    def __init__(self, poll_interval: float = POLL_INTERVAL) -> None:
        self.poll_interval = poll_interval
        self._cond = threading.Condition()
        self._buffer = ""
        self._closed = False
        self._decision: Optional[ReadinessState] = None

    @property
    def output(self) -> str:
        with self._cond:
            return self._buffer

    def feed(self, text: str) -> bool:
        """Append output. Returns False once a decision was made and the text was dropped."""
        with self._cond:
            if self._decision is not None:
                return False
            self._buffer += text
            self._cond.notify_all()
            return True

    def close(self) -> None:
        """Mark the output stream as finished."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def tail(self, lines: int = OUTPUT_TAIL_LINES) -> str:
        return "\n".join(self.output.rstrip().splitlines()[-lines:])

    def wait(self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None) -> ReadinessState:
        """
        Block until the startup outcome is known.

        Args:
            timeout: Seconds to wait; None or 0 waits without a deadline
            cancel: Event that aborts the wait when set

        Returns:
            The final state. Later calls return the same state.
        """
        deadline = time.monotonic() + timeout if timeout else None

        with self._cond:
            while self._decision is None:
                state = scan_output(self._buffer)
                if state is ReadinessState.PENDING:
                    if cancel is not None and cancel.is_set():
                        state = ReadinessState.CANCELLED
                    elif self._closed:
                        state = ReadinessState.EXITED
                    elif deadline is not None and time.monotonic() >= deadline:
                        state = ReadinessState.TIMED_OUT

                if state is not ReadinessState.PENDING:
                    self._decision = state
                    break

                wait_for = self.poll_interval
                if deadline is not None:
                    wait_for = max(0.0, min(wait_for, deadline - time.monotonic()))
                self._cond.wait(wait_for)

            return self._decision


def stop_process(proc: subprocess.Popen, grace: float = 5.0) -> None:
    if proc.poll() is not None:
        return
    logger.debug("Stopping docker compose...")
    proc.terminate()
    try:
        proc.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


class ComposeStack:
    """A running `docker compose up` process attached to the installer."""

    def __init__(self, proc: subprocess.Popen, monitor: ReadinessMonitor, reader: threading.Thread) -> None:
        self.proc = proc
        self.monitor = monitor
        self.reader = reader

    def stop(self) -> None:
        stop_process(self.proc)

    def wait(self) -> int:
        """Stay attached until compose exits; Ctrl+C stops the stack."""
        try:
            return self.proc.wait()
        except KeyboardInterrupt:
            console.step_running("Stopping docker containers")
            self.stop()
            return 0


def _pump_output(proc: subprocess.Popen, monitor: ReadinessMonitor) -> None:
    try:
        for line in proc.stdout:
            if not monitor.feed(line):
                logger.debug(f"  [COMPOSE] {line.rstrip()}")
    finally:
        monitor.close()


def compose_up_command(compose_file: Path) -> List[str]:
    return ["docker", "compose", "-f", str(compose_file), "up", "--build"]


_FAILURE_MESSAGES = {
    ReadinessState.LICENSE_REJECTED: "The license key was rejected by the server",
    ReadinessState.EXITED: "docker compose exited before the services became ready",
    ReadinessState.TIMED_OUT: "Services did not become ready within {timeout:g}s",
    ReadinessState.CANCELLED: "Container startup was cancelled",
}


def start_containers(
    compose_file: Path,
    settings: Settings,
    cancel: Optional[threading.Event] = None,
) -> ComposeStack:
    """
    Launch the compose stack and wait until both services are ready.

    Raises:
        ContainerStartError: on license rejection, early exit, timeout or cancellation
    """
    cmd = compose_up_command(compose_file)
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except OSError as e:
        raise ContainerStartError("Could not run docker compose", str(e)) from e

    monitor = ReadinessMonitor(settings.poll_interval)
    reader = threading.Thread(target=_pump_output, args=(proc, monitor), name="compose-output", daemon=True)
    reader.start()

    try:
        state = monitor.wait(settings.startup_timeout, cancel)
    except KeyboardInterrupt:
        stop_process(proc)
        raise

    if state is ReadinessState.READY:
        return ComposeStack(proc, monitor, reader)

    stop_process(proc)
    message = _FAILURE_MESSAGES[state].format(timeout=settings.startup_timeout)
    raise ContainerStartError(message, monitor.tail() or None)
