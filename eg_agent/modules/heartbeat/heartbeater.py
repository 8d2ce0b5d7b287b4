"""
Heartbeater - periodic liveness reporting on its own thread.

Heartbeats are best effort: failures are logged and the next tick
proceeds as usual. Nothing here is shared with the poller.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from eg_agent.modules.api.models import AgentIdentity

logger = logging.getLogger("eg-agent.heartbeat")


class HeartbeatState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Heartbeater:
    """Sends a heartbeat every interval until stopped."""

    def __init__(
        self,
        client,
        identity_factory: Callable[[], AgentIdentity],
        interval: float = 30.0,
    ):
        """
        Initialize heartbeater.

        Args:
            client: Object with heartbeat(HeartbeatRequest); owned by this heartbeater
            identity_factory: Builds the identity reported on each tick
            interval: Seconds between heartbeats
        """
        self.client = client
        self.interval = interval
        self.identity_factory = identity_factory
        self.state = HeartbeatState.IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self.state is HeartbeatState.RUNNING

    def start(self) -> None:
        """Start the background heartbeat thread."""
        with self._lock:
            if self.state is HeartbeatState.RUNNING:
                return
            if self.state is HeartbeatState.STOPPED:
                raise RuntimeError("Heartbeater cannot be restarted after stop")

            self._thread = threading.Thread(target=self._run, daemon=True, name="heartbeat")
            self.state = HeartbeatState.RUNNING
            self._thread.start()

        logger.info(f"Heartbeat started (interval={self.interval}s)")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop sending heartbeats. Safe to call more than once."""
        with self._lock:
            if self.state is HeartbeatState.STOPPED:
                return
            self.state = HeartbeatState.STOPPED
            self._stop_event.set()
            thread = self._thread

        if thread and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.info("Heartbeat stopped")

    def _run(self) -> None:
        # wait() returns True as soon as stop is requested
        while not self._stop_event.wait(self.interval):
            self.send_heartbeat()

    def send_heartbeat(self) -> bool:
        """Send one heartbeat. Returns False if it failed."""
        try:
            identity = self.identity_factory()
            response = self.client.heartbeat(identity.to_heartbeat_request())
        except Exception as e:
            logger.warning(f"Heartbeat failed: {e}")
            return False

        logger.debug(f"Heartbeat sent (status={getattr(response, 'status', None)})")
        return True
