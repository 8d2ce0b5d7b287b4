"""
Executor Module - Black Box Interface

Purpose: Run the local apply/revoke script for a command
Interface: ScriptRunner.execute(script_path, cidr, description) -> ExecutionResult
Hidden: Process spawning, deadline enforcement, output capture and capping

Failures (non-zero exit, timeout, spawn error) come back as unsuccessful results.
"""

from .script_runner import (
    MAX_OUTPUT,
    TRUNCATION_MARKER,
    ScriptRunner,
    format_duration,
    truncate_output,
)

__all__ = [
    "MAX_OUTPUT",
    "TRUNCATION_MARKER",
    "ScriptRunner",
    "format_duration",
    "truncate_output",
]
