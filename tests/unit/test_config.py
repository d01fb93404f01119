"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from workflow_engine.config import EngineSettings

_ENV_VARS = (
    "LOG_LEVEL",
    "WORKFLOW_STORE_PATH",
    "WORKFLOW_ACTION_TIMEOUT_SECONDS",
    "WORKFLOW_DEFAULT",
)


@pytest.fixture(autouse=True)
def _clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_settings_defaults() -> None:
    settings = EngineSettings()

    assert settings.log_level == "INFO"
    assert settings.store_path == Path("workflow_state/entities.json")
    assert settings.action_timeout_seconds is None
    assert settings.default_workflow == "task"


def test_settings_loads_from_dotenv(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "LOG_LEVEL=DEBUG",
                "WORKFLOW_STORE_PATH=state/custom.json",
                "WORKFLOW_ACTION_TIMEOUT_SECONDS=2.5",
                "WORKFLOW_DEFAULT=approval",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = EngineSettings()

    assert settings.log_level == "DEBUG"
    assert settings.store_path == Path("state/custom.json")
    assert settings.action_timeout_seconds == 2.5
    assert settings.default_workflow == "approval"


def test_environment_overrides_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("LOG_LEVEL=DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    assert EngineSettings().log_level == "WARNING"


def test_action_timeout_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORKFLOW_ACTION_TIMEOUT_SECONDS", "0")
    with pytest.raises(ValidationError):
        EngineSettings()


def test_log_level_is_normalised(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    assert EngineSettings().log_level == "DEBUG"


def test_unknown_log_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        EngineSettings()
