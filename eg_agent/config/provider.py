"""Configuration provider following Black Box Design principles."""
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import yaml

DEFAULT_CONFIG_PATH = "/etc/eg-agent/config.yml"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration into seconds.

    Accepts bare numbers (seconds) or Go-style strings such as
    ``500ms``, ``3s`` and ``1m30s``.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                raise ValueError(f"Invalid duration: {value!r}")

    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds


@dataclass
class ServerConfig:
    """Control plane connection."""
    url: str
    api_key: str
    verify_ssl: bool = True
    ca_cert: Optional[str] = None

    @property
    def verify(self) -> Union[bool, str]:
        """Value for the requests ``verify`` argument."""
        return self.ca_cert if self.ca_cert else self.verify_ssl


@dataclass
class AgentConfig:
    """Agent identity and schedules."""
    name: str
    poll_interval: float = 3.0
    heartbeat_interval: float = 30.0


@dataclass(frozen=True)
class ScriptsConfig:
    """Script paths per command type, resolved once at startup."""
    apply: str = ""
    revoke: str = ""


@dataclass
class ExecutionConfig:
    """Script execution limits."""
    timeout: float = 30.0
    shell: str = "/bin/bash"


@dataclass
class AgentSettings:
    """Complete agent configuration."""
    server: ServerConfig
    agent: AgentConfig
    scripts: ScriptsConfig = field(default_factory=ScriptsConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_settings(self) -> AgentSettings:
        """Get the agent configuration."""
        ...


class YamlConfigProvider:
    """YAML file configuration provider with environment overrides."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or os.getenv("EG_AGENT_CONFIG", DEFAULT_CONFIG_PATH))

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ValueError(f"failed to read config file {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise ValueError(f"failed to parse config file {self.path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"failed to parse config file {self.path}: expected a mapping")
        return data

    def get_settings(self) -> AgentSettings:
        """Load, merge defaults and validate the configuration file."""
        data = self._read()
        server = data.get("server") or {}
        agent = data.get("agent") or {}
        scripts = data.get("scripts") or {}
        execution = data.get("execution") or {}

        url = os.getenv("EG_AGENT_SERVER_URL") or server.get("url") or ""
        api_key = os.getenv("EG_AGENT_API_KEY") or server.get("api_key") or ""
        name = agent.get("name") or ""

        if not url:
            raise ValueError("server.url is required")
        if not api_key:
            raise ValueError("server.api_key is required")
        if not name:
            raise ValueError("agent.name is required")

        verify_ssl = server.get("verify_ssl", True)
        if not isinstance(verify_ssl, bool):
            raise ValueError(f"server.verify_ssl must be true or false, got {verify_ssl!r}")

        return AgentSettings(
            server=ServerConfig(
                url=url.rstrip("/"),
                api_key=api_key,
                verify_ssl=verify_ssl,
                ca_cert=server.get("ca_cert"),
            ),
            agent=AgentConfig(
                name=name,
                poll_interval=parse_duration(agent.get("poll_interval", "3s")),
                heartbeat_interval=parse_duration(agent.get("heartbeat_interval", "30s")),
            ),
            scripts=ScriptsConfig(
                apply=scripts.get("apply") or "",
                revoke=scripts.get("revoke") or "",
            ),
            execution=ExecutionConfig(
                timeout=parse_duration(execution.get("timeout", "30s")),
                shell=execution.get("shell") or "/bin/bash",
            ),
        )
