"""
Agent wire models.

These models define the JSON exchanged with the EntryGuard control plane.
Field names are camelCase on the wire and snake_case in Python.
"""

import platform
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Enums


class CommandType(str, Enum):
    """Types of agent commands."""

    APPLY = "APPLY"
    REVOKE = "REVOKE"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict:
        """Serialize for the wire, dropping empty optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


# Request Models (Agent Output)


class RegisterRequest(_WireModel):
    """Agent registration announcement."""

    name: str
    agent_version: str = Field(..., alias="agentVersion")
    hostname: str
    os_info: str = Field(..., alias="osInfo")


class HeartbeatRequest(_WireModel):
    """Liveness ping. Empty fields are omitted from the payload."""

    agent_version: Optional[str] = Field(None, alias="agentVersion")
    hostname: Optional[str] = None
    os_info: Optional[str] = Field(None, alias="osInfo")


class CommandResultRequest(_WireModel):
    """Outcome report for one command."""

    success: bool
    result_message: Optional[str] = Field(None, alias="resultMessage")
    provider_rule_id: Optional[str] = Field(None, alias="providerRuleId")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        # omitempty: an empty message is left out like a missing one
        if not payload.get("resultMessage"):
            payload.pop("resultMessage", None)
        return payload


# Response Models (Agent Input)


class AgentResponse(_WireModel):
    """Agent record returned by register and heartbeat."""

    id: str
    name: str = ""
    status: str = ""
    agent_version: Optional[str] = Field(None, alias="agentVersion")
    hostname: Optional[str] = None
    os_info: Optional[str] = Field(None, alias="osInfo")
    last_heartbeat_at: Optional[str] = Field(None, alias="lastHeartbeatAt")
    created_at: Optional[str] = Field(None, alias="createdAt")


class Command(_WireModel):
    """
    Pending command delivered by a poll.

    command_type stays a plain string so that types this agent does not
    know about still parse and can be reported back as failures.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    command_type: str = Field("", alias="commandType")
    cidr: str = ""
    description: str = ""
    resource_identifier: str = Field("", alias="resourceIdentifier")
    resource_type: str = Field("", alias="resourceType")

    @field_validator(
        "command_type", "cidr", "description", "resource_identifier", "resource_type", mode="before"
    )
    @classmethod
    def null_as_empty(cls, v):
        """A JSON null decodes to an empty string, like a missing field."""
        return "" if v is None else v


# Internal Models


_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
    "armv6l": "arm",
}


def os_info() -> str:
    """Return the ``os/arch`` string reported to the control plane."""
    machine = platform.machine().lower()
    return f"{platform.system().lower()}/{_ARCH_ALIASES.get(machine, machine)}"


@dataclass(frozen=True)
class AgentIdentity:
    """Who this agent is. Built per registration/heartbeat, never persisted."""

    name: str
    version: str
    hostname: str
    os_info: str

    @classmethod
    def detect(cls, name: str, version: str) -> "AgentIdentity":
        return cls(name=name, version=version, hostname=socket.gethostname(), os_info=os_info())

    def to_register_request(self) -> RegisterRequest:
        return RegisterRequest(
            name=self.name,
            agent_version=self.version,
            hostname=self.hostname,
            os_info=self.os_info,
        )

    def to_heartbeat_request(self) -> HeartbeatRequest:
        return HeartbeatRequest(
            agent_version=self.version or None,
            hostname=self.hostname or None,
            os_info=self.os_info or None,
        )


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one script run. duration is wall time in seconds."""

    success: bool
    output: str
    duration: float
