import json

import pytest

from video_agent.config import ConfigurationError, runtime
from video_agent.config.runtime import env_bool, env_int, env_milliseconds, env_str, reset_default_values
from video_agent.config.runtime_helpers import DotenvLoader, JsonConfigLoader


@pytest.fixture
def file_defaults(tmp_path, monkeypatch):
    """Point the default-value lookup at files under tmp_path."""
    dotenv_path = tmp_path / ".env"
    json_path = tmp_path / "launcher_env.json"
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", (dotenv_path,))
    monkeypatch.setattr(runtime, "_JSON_ENV_CANDIDATES", (json_path,))
    reset_default_values()
    return dotenv_path, json_path


def test_env_str_prefers_environment(monkeypatch):
    monkeypatch.setenv("VIDEO_AGENT_TEST_VALUE", "  from-env  ")

    assert env_str("VIDEO_AGENT_TEST_VALUE") == "from-env"
    assert env_str("VIDEO_AGENT_TEST_VALUE", strip=False) == "  from-env  "


def test_env_str_blank_uses_fallback(monkeypatch):
    monkeypatch.setenv("VIDEO_AGENT_TEST_VALUE", "")

    assert env_str("VIDEO_AGENT_TEST_VALUE", or_value="fallback") == "fallback"
    assert env_str("VIDEO_AGENT_TEST_VALUE", allow_blank=True) == ""


def test_env_str_required_raises(monkeypatch):
    monkeypatch.delenv("VIDEO_AGENT_TEST_VALUE", raising=False)

    with pytest.raises(ConfigurationError, match="VIDEO_AGENT_TEST_VALUE"):
        env_str("VIDEO_AGENT_TEST_VALUE", required=True)


def test_env_int_parses_and_rejects(monkeypatch):
    monkeypatch.setenv("VIDEO_AGENT_TEST_PORT", "8080")
    assert env_int("VIDEO_AGENT_TEST_PORT") == 8080

    monkeypatch.setenv("VIDEO_AGENT_TEST_PORT", "eighty")
    with pytest.raises(ConfigurationError, match="must be an integer"):
        env_int("VIDEO_AGENT_TEST_PORT")


@pytest.mark.parametrize(("raw", "expected"), [("1", True), ("yes", True), ("ON", True), ("0", False), ("off", False)])
def test_env_bool_values(monkeypatch, raw, expected):
    monkeypatch.setenv("VIDEO_AGENT_TEST_FLAG", raw)

    assert env_bool("VIDEO_AGENT_TEST_FLAG") is expected


def test_env_bool_rejects_garbage(monkeypatch):
    monkeypatch.setenv("VIDEO_AGENT_TEST_FLAG", "maybe")

    with pytest.raises(ConfigurationError):
        env_bool("VIDEO_AGENT_TEST_FLAG")


def test_env_milliseconds_rejects_negative(monkeypatch):
    monkeypatch.setenv("VIDEO_AGENT_TEST_MS", "-5")

    with pytest.raises(ConfigurationError, match="non-negative"):
        env_milliseconds("VIDEO_AGENT_TEST_MS")


def test_defaults_come_from_dotenv_then_json(file_defaults, monkeypatch):
    dotenv_path, json_path = file_defaults
    dotenv_path.write_text("VIDEO_AGENT_A=dotenv\n# comment\nexport VIDEO_AGENT_B='quoted value'\n", encoding="utf-8")
    json_path.write_text(json.dumps({"VIDEO_AGENT_A": "json", "VIDEO_AGENT_C": 42}), encoding="utf-8")
    for name in ("VIDEO_AGENT_A", "VIDEO_AGENT_B", "VIDEO_AGENT_C"):
        monkeypatch.delenv(name, raising=False)

    assert env_str("VIDEO_AGENT_A") == "dotenv"
    assert env_str("VIDEO_AGENT_B") == "quoted value"
    assert env_int("VIDEO_AGENT_C") == 42


def test_environment_overrides_file_defaults(file_defaults, monkeypatch):
    dotenv_path, _json_path = file_defaults
    dotenv_path.write_text("VIDEO_AGENT_A=dotenv\n", encoding="utf-8")
    monkeypatch.setenv("VIDEO_AGENT_A", "env")

    assert env_str("VIDEO_AGENT_A") == "env"


def test_dotenv_loader_skips_valueless_keys(tmp_path):
    path = tmp_path / ".env"
    path.write_text("WITH_VALUE=1\nNO_VALUE\n", encoding="utf-8")

    assert DotenvLoader.load_from_file(path) == {"WITH_VALUE": "1"}


def test_missing_files_load_nothing(tmp_path):
    assert DotenvLoader.load_from_file(tmp_path / "absent.env") == {}
    assert JsonConfigLoader.load_from_file(tmp_path / "absent.json") == {}


def test_json_loader_normalizes_scalars(tmp_path):
    path = tmp_path / "env.json"
    path.write_text(json.dumps({"FLAG": True, "EMPTY": None, "PORT": 3000}), encoding="utf-8")

    assert JsonConfigLoader.load_from_file(path) == {"FLAG": "true", "EMPTY": "", "PORT": "3000"}


@pytest.mark.parametrize("payload", ['{"NESTED": {"a": 1}}', "[1, 2]", "{not json"])
def test_json_loader_rejects_bad_files(tmp_path, payload):
    path = tmp_path / "env.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        JsonConfigLoader.load_from_file(path)


def test_env_milliseconds_parses_and_falls_back(monkeypatch):
    monkeypatch.setenv("VIDEO_AGENT_TEST_MS", "2500")
    assert env_milliseconds("VIDEO_AGENT_TEST_MS") == 2500

    monkeypatch.delenv("VIDEO_AGENT_TEST_MS")
    assert env_milliseconds("VIDEO_AGENT_TEST_MS", or_value=60_000) == 60_000
