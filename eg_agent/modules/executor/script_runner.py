"""
Script runner - bounded execution of the local apply/revoke scripts.

Execution failures are outcomes, not errors: every call returns an
ExecutionResult and nothing is raised to the caller.
"""

import logging
import os
import signal
import subprocess
import time
from typing import Optional, Tuple

from eg_agent.modules.api.models import ExecutionResult

logger = logging.getLogger("eg-agent.executor")

DEFAULT_TIMEOUT = 30.0
MAX_OUTPUT = 4096
TRUNCATION_MARKER = "\n... (truncated)"

# How long to wait for pipes to drain after the process group is killed
_DRAIN_TIMEOUT = 5.0


def format_duration(seconds: float) -> str:
    """Render seconds the way Go prints a time.Duration (30s, 1m30s, 500ms)."""
    if seconds < 1:
        return f"{round(seconds * 1000, 6):g}ms"
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    secs_text = f"{round(secs, 6):g}s"
    if hours:
        return f"{int(hours)}h{int(minutes)}m{secs_text}"
    if minutes:
        return f"{int(minutes)}m{secs_text}"
    return secs_text


def truncate_output(output: str, limit: int = MAX_OUTPUT) -> str:
    """Cap output at limit characters, appending the truncation marker when clipped."""
    if len(output) > limit:
        return output[:limit] + TRUNCATION_MARKER
    return output


def combine_output(stdout: str, stderr: str) -> str:
    """stdout first, then stderr, newline-separated when both are present."""
    output = stdout or ""
    if stderr:
        if output:
            output += "\n"
        output += stderr
    return output


def _as_text(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class ScriptRunner:
    """Runs one script per call under a hard wall-clock deadline."""

    def __init__(
        self,
        shell: str = "/bin/bash",
        timeout: float = DEFAULT_TIMEOUT,
        max_output: int = MAX_OUTPUT,
    ):
        """
        Initialize runner.

        Args:
            shell: Interpreter the script path is passed to
            timeout: Deadline in seconds; the process group is killed when it expires
            max_output: Character cap for reported output
        """
        self.shell = shell
        self.timeout = timeout
        self.max_output = max_output

    def execute(self, script_path: str, cidr: str, description: str) -> ExecutionResult:
        """
        Run script_path with cidr as $1 and description as $2.

        Returns:
            ExecutionResult with combined stdout/stderr, success on exit code 0
        """
        cmd = [self.shell, script_path, cidr, description]
        logger.debug(f"Running: {cmd}")

        start = time.monotonic()
        try:
            stdout, stderr, returncode, timed_out = self._run(cmd)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            # ValueError covers arguments Popen refuses, e.g. embedded NUL bytes
            duration = time.monotonic() - start
            logger.error(f"Failed to start {script_path}: {e}")
            return ExecutionResult(
                success=False,
                output=truncate_output(f"Script failed: {e}\n", self.max_output),
                duration=duration,
            )
        duration = time.monotonic() - start

        output = combine_output(stdout, stderr)

        if timed_out:
            logger.warning(f"Script {script_path} timed out after {format_duration(self.timeout)}")
            message = f"Script timed out after {format_duration(self.timeout)}\n{output}"
            success = False
        elif returncode != 0:
            message = f"Script failed: {self._describe_exit(returncode)}\n{output}"
            success = False
        else:
            message = output
            success = True

        return ExecutionResult(
            success=success,
            output=truncate_output(message, self.max_output),
            duration=duration,
        )

    def _run(self, cmd) -> Tuple[str, str, Optional[int], bool]:
        """Spawn, wait for exit or deadline, and collect output."""
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=(os.name == "posix"),
        )

        try:
            stdout, stderr = process.communicate(timeout=self.timeout)
            return stdout, stderr, process.returncode, False
        except subprocess.TimeoutExpired:
            self._kill(process)

        try:
            stdout, stderr = process.communicate(timeout=_DRAIN_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            # a detached descendant still holds the pipes open
            stdout, stderr = _as_text(e.stdout), _as_text(e.stderr)
            for pipe in (process.stdout, process.stderr):
                if pipe:
                    pipe.close()
            process.wait()
        return stdout, stderr, process.returncode, True

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        """Kill the script and everything it spawned."""
        if os.name == "posix":
            try:
                os.killpg(process.pid, signal.SIGKILL)
                return
            except (ProcessLookupError, PermissionError):
                pass
        try:
            process.kill()
        except ProcessLookupError:
            pass

    @staticmethod
    def _describe_exit(returncode: int) -> str:
        if returncode < 0:
            return f"signal: {-returncode}"
        return f"exit status {returncode}"
