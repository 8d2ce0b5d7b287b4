"""
Poller - fetches pending commands, runs them in order and reports results.

Commands are returned oldest first and executed sequentially, one script
at a time, so earlier sessions are always applied before later ones.
Stop requests are honoured between ticks, never in the middle of a batch.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from eg_agent.config.provider import ScriptsConfig
from eg_agent.modules.api.models import (
    Command,
    CommandResultRequest,
    CommandType,
    ExecutionResult,
)

logger = logging.getLogger("eg-agent.poller")

DEFAULT_RULE_ID_PREFIX = "agent-"


class PollerState(Enum):
    IDLE = "idle"
    POLLING = "polling"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"


class Poller:
    """Poll/dispatch/report loop."""

    def __init__(
        self,
        client,
        runner,
        scripts: ScriptsConfig,
        interval: float = 3.0,
        rule_id_prefix: str = DEFAULT_RULE_ID_PREFIX,
    ):
        """
        Initialize poller.

        Args:
            client: Command source/sink with poll_commands() and report_result()
            runner: Object with execute(script_path, cidr, description)
            scripts: Script paths per command type
            interval: Seconds to wait between polls
            rule_id_prefix: Prefix of the rule id reported for successful commands
        """
        self.client = client
        self.runner = runner
        self.scripts = scripts
        self.interval = interval
        self.rule_id_prefix = rule_id_prefix
        self.state = PollerState.IDLE
        self._stop_event = threading.Event()
        self._started = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def request_stop(self) -> None:
        """Ask the loop to exit after the current tick. Signal-handler safe."""
        self._stop_event.set()

    def run(self) -> None:
        """Block polling until request_stop() is called."""
        if self._started:
            raise RuntimeError("Poller.run() can only be called once")
        self._started = True

        logger.info(f"Poller starting (interval={self.interval}s)")

        # Poll immediately on start
        if not self._stop_event.is_set():
            self._tick()

        while not self._stop_event.wait(self.interval):
            self._tick()

        self.state = PollerState.STOPPED
        logger.info("Poller stopped")

    def _tick(self) -> None:
        try:
            self.poll_once()
        except Exception:
            logger.exception("Unexpected error during poll cycle")
        finally:
            self.state = PollerState.IDLE

    def poll_once(self) -> int:
        """
        Fetch one batch and process every command in delivery order.

        Returns:
            Number of commands processed (0 when the poll itself failed)
        """
        self.state = PollerState.POLLING
        try:
            commands = self.client.poll_commands()
        except Exception as e:
            logger.error(f"Failed to poll commands: {e}")
            return 0

        if not commands:
            return 0

        logger.info(f"Received {len(commands)} command(s)")
        self.state = PollerState.DISPATCHING
        for command in commands:
            try:
                self.process_command(command)
            except Exception:
                logger.exception(f"Failed to process command {command.id}")
        return len(commands)

    def resolve_script(self, command_type: str) -> Optional[str]:
        """Script path for a command type, None if the type is unknown."""
        if command_type == CommandType.APPLY.value:
            return self.scripts.apply
        if command_type == CommandType.REVOKE.value:
            return self.scripts.revoke
        return None

    def rule_id_for(self, command_id: str) -> str:
        return self.rule_id_prefix + command_id

    def process_command(self, command: Command) -> None:
        """Execute one command and report its outcome."""
        script_path = self.resolve_script(command.command_type)

        if script_path is None:
            logger.error(f"Unknown command type: {command.command_type} (command={command.id})")
            self._report(
                command,
                CommandResultRequest(
                    success=False,
                    result_message=f"Unknown command type: {command.command_type}",
                ),
            )
            return

        if not script_path:
            logger.error(f"No script configured for {command.command_type} (command={command.id})")
            self._report(
                command,
                CommandResultRequest(
                    success=False,
                    result_message=f"No script configured for {command.command_type}",
                ),
            )
            return

        logger.info(
            f"Executing {command.command_type}: cidr={command.cidr} "
            f"resource={command.resource_identifier} (command={command.id})"
        )

        result: ExecutionResult = self.runner.execute(script_path, command.cidr, command.description)

        logger.info(
            f"{command.command_type} result: success={result.success} "
            f"duration={result.duration:.3f}s (command={command.id})"
        )
        if result.output:
            logger.info(f"Output: {result.output}")

        report = CommandResultRequest(
            success=result.success,
            result_message=result.output,
            provider_rule_id=self.rule_id_for(command.id) if result.success else None,
        )

        self._report(command, report)

    def _report(self, command: Command, report: CommandResultRequest) -> bool:
        try:
            self.client.report_result(command.id, report)
        except Exception as e:
            logger.error(f"Failed to report result for command {command.id}: {e}")
            return False
        return True
