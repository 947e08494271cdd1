"""Tests for launcher presets and environment overrides."""

from __future__ import annotations

import pytest

from video_agent.config import ConfigurationError
from video_agent.config.launcher import (
    DEFAULT_PRESET,
    PRESETS,
    apply_overrides,
    get_preset,
    load_launcher_settings,
    parse_probe_mode,
)
from video_agent.process_supervisor_helpers.types import ProbeMode

_LAUNCHER_VARS = (
    "VIDEO_AGENT_BACKEND_COMMAND",
    "VIDEO_AGENT_BACKEND_SCRIPT",
    "VIDEO_AGENT_BACKEND_PORT",
    "VIDEO_AGENT_BACKEND_HOST",
    "VIDEO_AGENT_STARTUP_TIMEOUT_MS",
    "VIDEO_AGENT_PROBE_MODE",
    "VIDEO_AGENT_FRONTEND_URL",
    "VIDEO_AGENT_OPEN_BROWSER",
    "VIDEO_AGENT_BACKEND_CWD",
)


@pytest.fixture(autouse=True)
def clean_launcher_env(monkeypatch):
    for name in _LAUNCHER_VARS:
        monkeypatch.delenv(name, raising=False)


class TestPresets:
    """Tests for preset lookup."""

    def test_default_preset_runs_start_server_script(self) -> None:
        settings = load_launcher_settings()

        assert settings.supervisor.command == "bash"
        assert settings.supervisor.args == ("start-server.sh",)
        assert settings.supervisor.port == 3000
        assert settings.supervisor.startup_timeout_seconds == 60.0
        assert settings.supervisor.probe_mode is ProbeMode.TCP
        assert settings.frontend_url == "http://localhost:3000"
        assert settings.open_browser is True

    def test_named_preset(self) -> None:
        settings = load_launcher_settings("node-react")

        assert settings.supervisor.command == "node"
        assert settings.supervisor.port == 5173
        assert settings.supervisor.startup_timeout_seconds == 30.0

    def test_unknown_preset_lists_known_ones(self) -> None:
        with pytest.raises(ConfigurationError, match="python-nextjs"):
            get_preset("rails")

    def test_empty_name_is_default(self) -> None:
        assert get_preset(None) is DEFAULT_PRESET
        assert set(PRESETS) == {"python-nextjs", "node-react", "shell-script", "npm-script"}


class TestEnvironmentOverrides:
    """Tests for VIDEO_AGENT_* variables."""

    def test_environment_replaces_preset_values(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("VIDEO_AGENT_BACKEND_COMMAND", "python3")
        monkeypatch.setenv("VIDEO_AGENT_BACKEND_SCRIPT", "app.py")
        monkeypatch.setenv("VIDEO_AGENT_BACKEND_PORT", "8123")
        monkeypatch.setenv("VIDEO_AGENT_STARTUP_TIMEOUT_MS", "2500")
        monkeypatch.setenv("VIDEO_AGENT_PROBE_MODE", "HTTP")
        monkeypatch.setenv("VIDEO_AGENT_OPEN_BROWSER", "false")
        monkeypatch.setenv("VIDEO_AGENT_BACKEND_CWD", str(tmp_path))

        settings = load_launcher_settings()

        assert settings.supervisor.command_line == "python3 app.py"
        assert settings.supervisor.port == 8123
        assert settings.supervisor.startup_timeout_seconds == 2.5
        assert settings.supervisor.probe_mode is ProbeMode.HTTP
        assert settings.supervisor.cwd == str(tmp_path)
        assert settings.open_browser is False

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("VIDEO_AGENT_BACKEND_PORT", "0"),
            ("VIDEO_AGENT_BACKEND_PORT", "70000"),
            ("VIDEO_AGENT_BACKEND_PORT", "http"),
            ("VIDEO_AGENT_STARTUP_TIMEOUT_MS", "0"),
            ("VIDEO_AGENT_PROBE_MODE", "udp"),
        ],
    )
    def test_invalid_values_raise(self, monkeypatch, name, value) -> None:
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigurationError):
            load_launcher_settings()


class TestApplyOverrides:
    """Tests for apply_overrides."""

    def test_explicit_values_win(self) -> None:
        settings = apply_overrides(
            load_launcher_settings(),
            command="node",
            script="server.js",
            port=5000,
            timeout_ms=1500,
            probe="http",
            frontend_url="http://localhost:5000",
            open_browser=False,
        )

        assert settings.supervisor.command_line == "node server.js"
        assert settings.supervisor.port == 5000
        assert settings.supervisor.startup_timeout_seconds == 1.5
        assert settings.supervisor.probe_mode is ProbeMode.HTTP
        assert settings.frontend_url == "http://localhost:5000"
        assert settings.open_browser is False

    def test_no_overrides_keeps_settings(self) -> None:
        base = load_launcher_settings()

        assert apply_overrides(base) == base

    def test_empty_script_drops_arguments(self) -> None:
        settings = apply_overrides(load_launcher_settings(), script="")

        assert settings.supervisor.args == ()

    def test_invalid_port_override(self) -> None:
        with pytest.raises(ConfigurationError):
            apply_overrides(load_launcher_settings(), port=70000)


class TestProbeMode:
    """Tests for probe mode parsing."""

    @pytest.mark.parametrize(("raw", "mode"), [("tcp", ProbeMode.TCP), (" HTTP ", ProbeMode.HTTP)])
    def test_known_modes(self, raw, mode) -> None:
        assert parse_probe_mode(raw) is mode

    def test_malformed_mode_reports_expected_format(self, monkeypatch) -> None:
        monkeypatch.setenv("VIDEO_AGENT_PROBE_MODE", "udp")

        with pytest.raises(ConfigurationError, match=r"probe mode has invalid format \(received 'udp'\)\. Expected 'tcp' or 'http'"):
            load_launcher_settings()
