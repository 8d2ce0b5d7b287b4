"""
EntryGuard Agent - host-side command executor

Polls the EntryGuard control plane for pending IP rule commands and runs
the matching local script for each one.

Architecture:
- Each module is self-contained with clear interfaces
- Core modules receive plain values, never read config files themselves
- Poller and heartbeater each own their API client

Modules:
- api: wire models and the control-plane client
- executor: bounded script execution
- heartbeat: background liveness reporting
- poller: fetch/dispatch/report loop
"""

__version__ = "1.0.0"
