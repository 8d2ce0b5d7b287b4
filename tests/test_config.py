"""
Tests for the YAML configuration provider.
"""

import pytest

from eg_agent.config import ScriptsConfig, YamlConfigProvider, parse_duration

MINIMAL = {
    "server": {"url": "https://eg.example.com/api/v1/", "api_key": "eg_key"},
    "agent": {"name": "edge-1"},
}


class TestYamlConfigProvider:
    def test_defaults(self, config_file):
        settings = YamlConfigProvider(config_file(MINIMAL)).get_settings()

        assert settings.server.url == "https://eg.example.com/api/v1"
        assert settings.server.verify is True
        assert settings.agent.poll_interval == 3.0
        assert settings.agent.heartbeat_interval == 30.0
        assert settings.execution.timeout == 30.0
        assert settings.execution.shell == "/bin/bash"
        assert settings.scripts == ScriptsConfig(apply="", revoke="")

    def test_full_config(self, config_file):
        path = config_file("""
server:
  url: https://eg.example.com/api/v1
  api_key: eg_key
  ca_cert: /etc/ssl/eg.pem
agent:
  name: edge-1
  poll_interval: 500ms
  heartbeat_interval: 1m
scripts:
  apply: /etc/eg-agent/scripts/apply.sh
  revoke: /etc/eg-agent/scripts/revoke.sh
execution:
  timeout: 45s
  shell: /bin/sh
""")
        settings = YamlConfigProvider(path).get_settings()

        assert settings.server.verify == "/etc/ssl/eg.pem"
        assert settings.agent.poll_interval == 0.5
        assert settings.agent.heartbeat_interval == 60.0
        assert settings.scripts.apply == "/etc/eg-agent/scripts/apply.sh"
        assert settings.scripts.revoke == "/etc/eg-agent/scripts/revoke.sh"
        assert settings.execution.timeout == 45.0
        assert settings.execution.shell == "/bin/sh"

    @pytest.mark.parametrize(
        "section,key,message",
        [
            ("server", "url", "server.url is required"),
            ("server", "api_key", "server.api_key is required"),
            ("agent", "name", "agent.name is required"),
        ],
    )
    def test_required_keys(self, config_file, section, key, message):
        data = {s: dict(v) for s, v in MINIMAL.items()}
        del data[section][key]

        with pytest.raises(ValueError, match=message):
            YamlConfigProvider(config_file(data)).get_settings()

    def test_env_overrides(self, config_file, monkeypatch):
        path = config_file({"agent": {"name": "edge-1"}})
        monkeypatch.setenv("EG_AGENT_SERVER_URL", "https://other.example.com")
        monkeypatch.setenv("EG_AGENT_API_KEY", "from-env")

        settings = YamlConfigProvider(path).get_settings()

        assert settings.server.url == "https://other.example.com"
        assert settings.server.api_key == "from-env"

    def test_config_path_from_env(self, config_file, monkeypatch):
        path = config_file(MINIMAL)
        monkeypatch.setenv("EG_AGENT_CONFIG", path)

        assert str(YamlConfigProvider().path) == path

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="failed to read config file"):
            YamlConfigProvider(str(tmp_path / "nope.yml")).get_settings()

    def test_invalid_yaml(self, config_file):
        with pytest.raises(ValueError, match="failed to parse config file"):
            YamlConfigProvider(config_file("server: [unclosed")).get_settings()

    def test_non_mapping(self, config_file):
        with pytest.raises(ValueError, match="expected a mapping"):
            YamlConfigProvider(config_file("- a\n- b\n")).get_settings()

    def test_verify_ssl_disabled(self, config_file):
        data = {s: dict(v) for s, v in MINIMAL.items()}
        data["server"]["verify_ssl"] = False

        assert YamlConfigProvider(config_file(data)).get_settings().server.verify is False

    @pytest.mark.parametrize("value", ["false", "no", 0, 1])
    def test_verify_ssl_must_be_boolean(self, config_file, value):
        data = {s: dict(v) for s, v in MINIMAL.items()}
        data["server"]["verify_ssl"] = value

        with pytest.raises(ValueError, match="server.verify_ssl must be true or false"):
            YamlConfigProvider(config_file(data)).get_settings()

    def test_bad_duration(self, config_file):
        data = {s: dict(v) for s, v in MINIMAL.items()}
        data["agent"]["poll_interval"] = "soon"

        with pytest.raises(ValueError, match="Invalid duration"):
            YamlConfigProvider(config_file(data)).get_settings()


class TestParseDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (3, 3.0),
            (2.5, 2.5),
            ("10", 10.0),
            ("3s", 3.0),
            ("500ms", 0.5),
            ("1m30s", 90.0),
            ("1h", 3600.0),
            ("1.5s", 1.5),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "3x", "s", "3s junk", "0s", -1, True])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)
