"""
API Module - Black Box Interface

Purpose: Talk to the EntryGuard control plane on behalf of the agent
Interface: AgentClient (register, heartbeat, poll_commands, report_result), wire models
Hidden: HTTP session handling, authentication header, JSON encoding

Can be replaced with any command source/sink that honours the same calls.
"""

from .client import AgentAPIError, AgentClient
from .models import (
    AgentIdentity,
    AgentResponse,
    Command,
    CommandResultRequest,
    CommandType,
    ExecutionResult,
    HeartbeatRequest,
    RegisterRequest,
)

__all__ = [
    "AgentAPIError",
    "AgentClient",
    "AgentIdentity",
    "AgentResponse",
    "Command",
    "CommandResultRequest",
    "CommandType",
    "ExecutionResult",
    "HeartbeatRequest",
    "RegisterRequest",
]
