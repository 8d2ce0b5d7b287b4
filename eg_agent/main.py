#!/usr/bin/env python3
"""
EntryGuard Agent - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Registers with the control plane
3. Runs the heartbeater and the poller until a shutdown signal arrives

All business logic is in the modules, following black box principles.
"""

import argparse
import json
import logging
import logging.config as log_config
import signal
import sys
import threading
from typing import Dict, List, Optional

from eg_agent import __version__
from eg_agent.config import DEFAULT_CONFIG_PATH, AgentSettings, YamlConfigProvider
from eg_agent.logging_config import get_logging_config
from eg_agent.modules.api import AgentAPIError, AgentClient, AgentIdentity
from eg_agent.modules.executor import ScriptRunner
from eg_agent.modules.heartbeat import Heartbeater
from eg_agent.modules.poller import Poller

logger = logging.getLogger("eg-agent")


class AgentStartupError(Exception):
    """The agent cannot enter its poll loop."""


def load_settings(config_path: Optional[str]) -> AgentSettings:
    try:
        return YamlConfigProvider(config_path).get_settings()
    except ValueError as e:
        raise AgentStartupError(str(e)) from e


def build_client(settings: AgentSettings) -> AgentClient:
    return AgentClient(
        settings.server.url,
        settings.server.api_key,
        verify=settings.server.verify,
    )


def install_signal_handlers(poller: Poller) -> Dict[int, object]:
    """
    Route SIGINT/SIGTERM to a cooperative poller stop. Returns previous handlers.

    Handlers run on the main thread, which must not be the thread inside
    Poller.run (see run_agent).
    """

    def _handle(signum, frame):
        logger.info("shutting down...")
        poller.request_stop()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handle)
    return previous


def restore_signal_handlers(previous: Dict[int, object]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def run_agent(settings: AgentSettings, version: str = __version__, install_signals: bool = True) -> None:
    """
    Register, then heartbeat and poll until stopped.

    Raises:
        AgentStartupError: if registration fails
    """
    logger.info(f"eg-agent {version} starting (name={settings.agent.name})")

    client = build_client(settings)
    heartbeat_client = build_client(settings)

    try:
        identity = AgentIdentity.detect(settings.agent.name, version)
        try:
            resp = client.register(identity.to_register_request())
        except AgentAPIError as e:
            raise AgentStartupError(f"failed to register: {e}") from e
        logger.info(f"registered as {resp.name} (id={resp.id}, status={resp.status})")

        heartbeater = Heartbeater(
            heartbeat_client,
            identity_factory=lambda: AgentIdentity.detect(settings.agent.name, version),
            interval=settings.agent.heartbeat_interval,
        )
        runner = ScriptRunner(shell=settings.execution.shell, timeout=settings.execution.timeout)
        poller = Poller(client, runner, settings.scripts, interval=settings.agent.poll_interval)

        previous = install_signal_handlers(poller) if install_signals else {}
        heartbeater.start()
        # poll on a worker so the main thread is free to take signals
        worker = threading.Thread(target=poller.run, name="poller")
        try:
            worker.start()
            while worker.is_alive():
                worker.join(timeout=0.5)
        finally:
            if worker.is_alive():
                poller.request_stop()
                worker.join()
            heartbeater.stop()
            restore_signal_handlers(previous)
    finally:
        client.close()
        heartbeat_client.close()


def show_status(settings: AgentSettings, config_path: str, version: str = __version__) -> None:
    """Print configuration and check the connection with one heartbeat."""
    print("EntryGuard Agent Status")
    print("=======================")
    print(f"Version:  {version}")
    print(f"Config:   {config_path}")
    print(f"Server:   {settings.server.url}")
    print(f"Agent:    {settings.agent.name}")
    print(f"Apply:    {settings.scripts.apply}")
    print(f"Revoke:   {settings.scripts.revoke}")
    print()

    print("Checking connection...")
    identity = AgentIdentity.detect(settings.agent.name, version)
    with build_client(settings) as client:
        try:
            resp = client.heartbeat(identity.to_heartbeat_request())
        except AgentAPIError as e:
            print(f"Connection: FAILED ({e})")
            return

    print("Connection: OK")
    print(f"Agent info: {json.dumps(resp.model_dump(by_alias=True), indent=2)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eg-agent",
        description="EntryGuard Agent - executes IP whitelisting scripts on Linux hosts",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help=f"Path to config file (default: $EG_AGENT_CONFIG or {DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "run",
        help="Start the agent daemon",
        description="Registers with EntryGuard, starts heartbeat, and polls for commands to execute.",
    )
    subparsers.add_parser(
        "status",
        help="Show agent status",
        description="Display current configuration and connection status.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
        log_config.dictConfig(get_logging_config(secret=settings.server.api_key))

        if args.command == "run":
            run_agent(settings)
        else:
            show_status(settings, args.config or str(YamlConfigProvider().path))
    except AgentStartupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Agent stopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
