"""
Control plane client used by the agent.

One client wraps one requests.Session. The poller and the heartbeater
each get their own instance so they never share a connection.
"""

import logging
from typing import Any, List, Optional, Union

import requests
from pydantic import ValidationError

from .models import (
    AgentResponse,
    Command,
    CommandResultRequest,
    HeartbeatRequest,
    RegisterRequest,
)

logger = logging.getLogger("eg-agent.api")


class AgentAPIError(Exception):
    """A control plane call failed to complete or could not be understood."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AgentClient:
    """Thin JSON client for the agent endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        verify: Union[bool, str] = True,
    ):
        """
        Initialize client.

        Args:
            base_url: API root, e.g. https://app.entryguard.io/api/v1
            api_key: Key with agent:connect scope, sent as X-API-Key
            timeout: Per-request timeout in seconds
            verify: TLS verification flag or CA bundle path
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify = verify
        self.session = requests.Session()
        self.session.headers.update({"X-API-Key": api_key, "Accept": "application/json"})

        if self.base_url.startswith("http://"):
            logger.warning("Using HTTP without TLS - this should only be used for local development!")

    def register(self, req: RegisterRequest) -> AgentResponse:
        data = self._request("POST", "/agents/register", req.to_payload())
        return self._parse(AgentResponse.model_validate, data, "register")

    def heartbeat(self, req: HeartbeatRequest) -> AgentResponse:
        data = self._request("POST", "/agents/heartbeat", req.to_payload())
        return self._parse(AgentResponse.model_validate, data, "heartbeat")

    def poll_commands(self) -> List[Command]:
        """
        Fetch pending commands, oldest first.

        Entries are validated one at a time; an entry that cannot be parsed
        is logged and skipped so the rest of the batch still runs.
        """
        data = self._request("GET", "/agents/commands/poll")
        if data is None:
            return []
        if not isinstance(data, list):
            raise AgentAPIError("failed to parse response: expected a list of commands")

        commands = []
        for position, item in enumerate(data):
            try:
                commands.append(Command.model_validate(item))
            except ValidationError as e:
                command_id = item.get("id") if isinstance(item, dict) else None
                logger.error(f"Skipping unparseable command at position {position} (command={command_id}): {e}")
        return commands

    def report_result(self, command_id: str, req: CommandResultRequest) -> None:
        self._request("POST", f"/agents/commands/{command_id}/result", req.to_payload())

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "AgentClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, body: Optional[dict] = None) -> Any:
        """
        Perform one request and decode the JSON response.

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            AgentAPIError: on transport failure, non-2xx status or bad JSON
        """
        url = self.base_url + path
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                json=body,
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.RequestException as e:
            raise AgentAPIError(f"request failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise AgentAPIError(
                f"API error (HTTP {response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise AgentAPIError(
                f"failed to parse response: {e}", status_code=response.status_code
            ) from e

    @staticmethod
    def _parse(validator, data: Any, operation: str):
        if data is None:
            raise AgentAPIError(f"failed to parse response: empty {operation} response")
        try:
            return validator(data)
        except ValidationError as e:
            raise AgentAPIError(f"failed to parse response: {e}") from e
