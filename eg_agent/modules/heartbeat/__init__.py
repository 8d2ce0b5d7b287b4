"""
Heartbeat Module - Black Box Interface

Purpose: Periodic liveness reporting to the control plane
Interface: Heartbeater.start(), Heartbeater.stop()
Hidden: Ticker thread, failure handling

Runs independently of command execution; a hung script never delays a heartbeat.
"""

from .heartbeater import Heartbeater, HeartbeatState

__all__ = ["Heartbeater", "HeartbeatState"]
