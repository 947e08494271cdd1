
"""Launcher settings assembled from presets, config files and the environment."""

from __future__ import annotations


from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from video_agent.process_supervisor_helpers.types import DEFAULT_BACKEND_HOST, ProbeMode, SupervisorSettings

from .errors import ConfigurationError
from .runtime import env_bool, env_int, env_milliseconds, env_str

MAX_PORT = 65535


@dataclass(frozen=True)
class LauncherPreset:
    """Backend/frontend pairing the launcher knows how to start."""

    command: str
    script: str
    port: int
    frontend_url: str
    startup_timeout_ms: int


DEFAULT_PRESET = LauncherPreset(
    command="bash",
    script="start-server.sh",
    port=3000,
    frontend_url="http://localhost:3000",
    startup_timeout_ms=60_000,
)

PRESETS: dict[str, LauncherPreset] = {
    "python-nextjs": LauncherPreset(
        command="python3",
        script="backend/main.py",
        port=3000,
        frontend_url="http://localhost:3000",
        startup_timeout_ms=30_000,
    ),
    "node-react": LauncherPreset(
        command="node",
        script="backend/server.js",
        port=5173,
        frontend_url="http://localhost:5173",
        startup_timeout_ms=30_000,
    ),
    "shell-script": LauncherPreset(
        command="bash",
        script="start-all.sh",
        port=8000,
        frontend_url="http://localhost:8000",
        startup_timeout_ms=45_000,
    ),
    "npm-script": LauncherPreset(
        command="bash",
        script="start-dev.sh",
        port=3000,
        frontend_url="http://localhost:3000",
        startup_timeout_ms=60_000,
    ),
}


@dataclass(frozen=True)
class LauncherSettings:
    supervisor: SupervisorSettings
    frontend_url: str
    open_browser: bool = True


def get_preset(name: Optional[str]) -> LauncherPreset:
    if not name:
        return DEFAULT_PRESET
    try:
        return PRESETS[name]
    except KeyError as exc:
        raise ConfigurationError.unknown_preset(name, sorted(PRESETS)) from exc


def parse_probe_mode(raw: str) -> ProbeMode:
    try:
        return ProbeMode(raw.strip().lower())
    except ValueError as exc:
        raise ConfigurationError.invalid_format("probe mode", raw, "'tcp' or 'http'") from exc


def validate_port(port: int) -> int:
    if not 0 < port <= MAX_PORT:
        raise ConfigurationError.invalid_value("backend port", port, f"Must be between 1 and {MAX_PORT}")
    return port


def validate_timeout_ms(timeout_ms: int) -> int:
    if timeout_ms <= 0:
        raise ConfigurationError.invalid_value("startup timeout", timeout_ms, "Must be a positive number of milliseconds")
    return timeout_ms


def load_launcher_settings(preset: Optional[str] = None) -> LauncherSettings:
    """
    Build launcher settings from ``preset`` overlaid with ``VIDEO_AGENT_*`` variables.

    Raises:
        ConfigurationError: If a value is missing or malformed
    """
    base = get_preset(preset)

    command = env_str("VIDEO_AGENT_BACKEND_COMMAND", or_value=base.command)
    script = env_str("VIDEO_AGENT_BACKEND_SCRIPT", or_value=base.script)
    port = validate_port(int(env_int("VIDEO_AGENT_BACKEND_PORT", or_value=base.port)))
    host = env_str("VIDEO_AGENT_BACKEND_HOST", or_value=DEFAULT_BACKEND_HOST)
    timeout_ms = validate_timeout_ms(int(env_milliseconds("VIDEO_AGENT_STARTUP_TIMEOUT_MS", or_value=base.startup_timeout_ms)))
    probe_mode = parse_probe_mode(str(env_str("VIDEO_AGENT_PROBE_MODE", or_value=ProbeMode.TCP.value)))
    frontend_url = env_str("VIDEO_AGENT_FRONTEND_URL", or_value=base.frontend_url)
    open_browser = env_bool("VIDEO_AGENT_OPEN_BROWSER", or_value=True)
    cwd = env_str("VIDEO_AGENT_BACKEND_CWD")

    if not command:
        raise ConfigurationError.missing_value("VIDEO_AGENT_BACKEND_COMMAND")

    supervisor = SupervisorSettings(
        command=command,
        args=(script,) if script else (),
        port=port,
        host=str(host),
        startup_timeout_seconds=timeout_ms / 1000,
        probe_mode=probe_mode,
        cwd=str(Path(cwd).expanduser()) if cwd else None,
    )
    return LauncherSettings(supervisor=supervisor, frontend_url=str(frontend_url), open_browser=bool(open_browser))


def apply_overrides(
    settings: LauncherSettings,
    *,
    command: Optional[str] = None,
    script: Optional[str] = None,
    port: Optional[int] = None,
    timeout_ms: Optional[int] = None,
    probe: Optional[str] = None,
    frontend_url: Optional[str] = None,
    open_browser: Optional[bool] = None,
) -> LauncherSettings:
    """Return ``settings`` with explicitly given values replaced."""
    supervisor = settings.supervisor
    if command:
        supervisor = replace(supervisor, command=command)
    if script is not None:
        supervisor = replace(supervisor, args=(script,) if script else ())
    if port is not None:
        supervisor = replace(supervisor, port=validate_port(port))
    if timeout_ms is not None:
        supervisor = replace(supervisor, startup_timeout_seconds=validate_timeout_ms(timeout_ms) / 1000)
    if probe:
        supervisor = replace(supervisor, probe_mode=parse_probe_mode(probe))

    return replace(
        settings,
        supervisor=supervisor,
        frontend_url=frontend_url or settings.frontend_url,
        open_browser=settings.open_browser if open_browser is None else open_browser,
    )


__all__ = [
    "DEFAULT_PRESET",
    "LauncherPreset",
    "LauncherSettings",
    "PRESETS",
    "apply_overrides",
    "get_preset",
    "load_launcher_settings",
]
