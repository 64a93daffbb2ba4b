from __future__ import annotations

import pytest
import yaml

from storefront.shared.core.configuration import ConfigManager, SystemConfig, ValidationLevel


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "STOREFRONT_STORAGE_KEY",
        "STOREFRONT_STORAGE_BACKEND",
        "STOREFRONT_STORAGE_PATH",
        "STOREFRONT_MAX_SNAPSHOT_BYTES",
        "STOREFRONT_DEBUG",
        "LOG_LEVEL",
        "LOG_FILE",
    ):
        monkeypatch.delenv(key, raising=False)


def _write(path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_defaults(tmp_path) -> None:
    config = ConfigManager(tmp_path).get_config()

    assert config.store.storage_key == "storefront_state_v1"
    assert config.dispatcher.markers() == {
        "click": "data-action",
        "change": "data-action-change",
        "input": "data-action-input",
    }
    assert config == SystemConfig()


def test_project_overrides_user(tmp_path) -> None:
    _write(tmp_path / "config" / "user.yaml", {"store": {"storage_key": "user_key", "history_limit": 10}})
    _write(tmp_path / "config" / "project.yaml", {"store": {"storage_key": "project_key"}})

    config = ConfigManager(tmp_path).get_config()

    assert config.store.storage_key == "project_key"
    assert config.store.history_limit == 10


def test_environment_wins(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path / "config" / "project.yaml", {"store": {"storage_backend": "duckdb"}})
    monkeypatch.setenv("STOREFRONT_STORAGE_BACKEND", "memory")
    monkeypatch.setenv("STOREFRONT_DEBUG", "yes")
    monkeypatch.setenv("STOREFRONT_MAX_SNAPSHOT_BYTES", "not-a-number")
    monkeypatch.setenv("LOG_LEVEL", "info")

    config = ConfigManager(tmp_path).get_config()

    assert config.store.storage_backend == "memory"
    assert config.store.debug is True
    assert config.store.max_snapshot_bytes == 100_000
    assert config.logging.level == "INFO"


def test_invalid_config_strict_raises(tmp_path) -> None:
    _write(tmp_path / "config" / "project.yaml", {"store": {"storage_backend": "cookies"}})

    with pytest.raises(ValueError):
        ConfigManager(tmp_path).get_config(ValidationLevel.STRICT)


def test_invalid_config_lenient_uses_defaults(tmp_path) -> None:
    _write(tmp_path / "config" / "project.yaml", {"store": {"storage_backend": "cookies"}})

    config = ConfigManager(tmp_path).get_config(ValidationLevel.LENIENT)

    assert config.store.storage_backend == "duckdb"


def test_unreadable_yaml_is_ignored(tmp_path) -> None:
    path = tmp_path / "config" / "user.yaml"
    path.parent.mkdir(parents=True)
    path.write_text("store: [unclosed", encoding="utf-8")

    assert ConfigManager(tmp_path).get_config() == SystemConfig()


def test_save_project_config(tmp_path) -> None:
    manager = ConfigManager(tmp_path)
    manager.get_config()

    assert manager.save_project_config({"dispatcher": {"click_marker": "data-cmd"}}) is True

    assert manager.get_config().dispatcher.click_marker == "data-cmd"


def test_reload_config_picks_up_edited_files(tmp_path) -> None:
    manager = ConfigManager(tmp_path)
    _write(tmp_path / "config" / "user.yaml", {"store": {"history_limit": 10}})
    assert manager.get_config().store.history_limit == 10

    _write(tmp_path / "config" / "user.yaml", {"store": {"history_limit": 20}})
    assert manager.get_config().store.history_limit == 10

    manager.reload_config()

    assert manager.get_config().store.history_limit == 20
