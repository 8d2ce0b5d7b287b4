"""
Shared pytest fixtures for eg-agent tests.

This module provides common fixtures including:
- FakeAgentClient: in-memory command source/sink recording every call
- RecordingRunner: script runner stand-in that records execute() calls
- write_script: executable shell scripts in a temporary directory
- config_file: YAML config file factory
"""

import os
import stat
import sys
import threading
import time
from typing import Callable, List, Optional

import pytest
import yaml

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from eg_agent.modules.api.models import (  # noqa: E402
    AgentResponse,
    Command,
    CommandResultRequest,
    ExecutionResult,
    HeartbeatRequest,
)


# =============================================================================
# Control Plane Fakes
# =============================================================================

def make_command(
    command_id: str,
    command_type: str = "APPLY",
    cidr: str = "203.0.113.5/32",
    description: str = "alice-laptop",
) -> Command:
    """Build a Command the way it arrives from a poll."""
    return Command.model_validate({
        "id": command_id,
        "commandType": command_type,
        "cidr": cidr,
        "description": description,
        "resourceIdentifier": "sg-123",
        "resourceType": "SECURITY_GROUP",
    })


class FakeAgentClient:
    """
    In-memory stand-in for AgentClient.

    Each poll pops the next queued batch; polls past the end return [].
    Set poll_error/report_error/heartbeat_error to make calls raise.
    """

    def __init__(self, batches: Optional[List[List[Command]]] = None):
        self.batches = list(batches or [])
        self.poll_count = 0
        self.reports: List[tuple] = []
        self.heartbeats: List[HeartbeatRequest] = []
        self.poll_error: Optional[Exception] = None
        self.report_error: Optional[Exception] = None
        self.heartbeat_error: Optional[Exception] = None
        self.polled = threading.Event()
        self._lock = threading.Lock()

    def poll_commands(self) -> List[Command]:
        self.poll_count += 1
        self.polled.set()
        if self.poll_error:
            raise self.poll_error
        return self.batches.pop(0) if self.batches else []

    def report_result(self, command_id: str, req: CommandResultRequest) -> None:
        self.reports.append((command_id, req))
        if self.report_error:
            raise self.report_error

    def heartbeat(self, req: HeartbeatRequest) -> AgentResponse:
        with self._lock:
            self.heartbeats.append(req)
        if self.heartbeat_error:
            raise self.heartbeat_error
        return AgentResponse(id="agent-1", name="test", status="ONLINE")

    @property
    def heartbeat_count(self) -> int:
        with self._lock:
            return len(self.heartbeats)

    def report_for(self, command_id: str) -> CommandResultRequest:
        return next(req for cid, req in self.reports if cid == command_id)


class RecordingRunner:
    """Script runner stand-in returning a canned result."""

    def __init__(
        self,
        result: Optional[ExecutionResult] = None,
        on_execute: Optional[Callable[[str, str, str], None]] = None,
    ):
        self.result = result or ExecutionResult(success=True, output="", duration=0.0)
        self.on_execute = on_execute
        self.calls: List[tuple] = []

    def execute(self, script_path: str, cidr: str, description: str) -> ExecutionResult:
        self.calls.append((script_path, cidr, description))
        if self.on_execute:
            self.on_execute(script_path, cidr, description)
        return self.result


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def fake_client():
    return FakeAgentClient()


@pytest.fixture
def recording_runner():
    return RecordingRunner()


# =============================================================================
# Filesystem Helpers
# =============================================================================

@pytest.fixture
def write_script(tmp_path):
    """
    Factory writing an executable /bin/sh script and returning its path.

    Usage:
        def test_something(write_script):
            path = write_script("echo hello")
    """
    counter = {"n": 0}

    def _write(body: str, name: Optional[str] = None) -> str:
        counter["n"] += 1
        path = tmp_path / (name or f"script{counter['n']}.sh")
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _write


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Factory writing a YAML config and returning its path. Clears env overrides."""
    for var in ("EG_AGENT_CONFIG", "EG_AGENT_SERVER_URL", "EG_AGENT_API_KEY"):
        monkeypatch.delenv(var, raising=False)

    def _write(data) -> str:
        path = tmp_path / "config.yml"
        with open(path, "w") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                yaml.safe_dump(data, f)
        return str(path)

    return _write


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "subprocess: Tests that spawn real shell scripts"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
