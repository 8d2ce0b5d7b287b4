"""
Poller Module - Black Box Interface

Purpose: Turn pending control-plane commands into script runs and reports
Interface: Poller.run(), Poller.request_stop(), Poller.poll_once()
Hidden: Tick scheduling, script resolution, report construction

Dispatch is strictly sequential; batches are processed in delivery order.
"""

from .poller import DEFAULT_RULE_ID_PREFIX, Poller, PollerState

__all__ = ["DEFAULT_RULE_ID_PREFIX", "Poller", "PollerState"]
