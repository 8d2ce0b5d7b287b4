"""
Config Module - Black Box Interface

Purpose: Agent configuration loading
Interface: YamlConfigProvider, AgentSettings, parse_duration()
Hidden: File format, defaults, environment overrides

Only the host process reads configuration; core modules get plain values.
"""

from .provider import (
    DEFAULT_CONFIG_PATH,
    AgentConfig,
    AgentSettings,
    ConfigProvider,
    ExecutionConfig,
    ScriptsConfig,
    ServerConfig,
    YamlConfigProvider,
    parse_duration,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AgentConfig",
    "AgentSettings",
    "ConfigProvider",
    "ExecutionConfig",
    "ScriptsConfig",
    "ServerConfig",
    "YamlConfigProvider",
    "parse_duration",
]
