import json
import pytest

from colortags.core.config import AppConfig, ConfigManager, default_storage_path


def test_config_defaults(tmp_path):
    manager = ConfigManager(str(tmp_path / "config.json"))
    data = manager.data

    assert data.display.style == "block"
    assert data.display.debounce_delay_ms == 20
    assert data.tagging.use_relative_names is False
    assert data.tagging.root is None
    assert data.storage.autosave_interval_s == 0
    assert data.storage.path.endswith("tags.json")

def test_default_config_written_on_first_load(tmp_path):
    path = tmp_path / "config.json"
    ConfigManager(str(path))

    assert path.exists()
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["display"]["style"] == "block"

def test_default_storage_path_honours_xdg_cache(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    assert default_storage_path() == str(tmp_path / "colortags" / "tags.json")

def test_config_update_event(tmp_path):
    manager = ConfigManager(str(tmp_path / "config.json"))
    received = []

    def on_change(section, key, val):
        received.append((section, key, val))

    manager.on_changed.connect(on_change)
    manager.update("display", "style", "background")

    assert manager.data.display.style == "background"
    assert received[-1] == ("display", "style", "background")

def test_config_update_persists(tmp_path):
    path = str(tmp_path / "config.json")
    ConfigManager(path).update("tagging", "use_relative_names", True)

    reloaded = ConfigManager(path)
    assert reloaded.get("tagging", "use_relative_names") is True

def test_config_update_rejects_invalid_value(tmp_path):
    manager = ConfigManager(str(tmp_path / "config.json"))

    with pytest.raises(ValueError):
        manager.update("display", "style", "sparkles")

    assert manager.data.display.style == "block"

def test_config_update_rejects_unknown_keys(tmp_path):
    manager = ConfigManager(str(tmp_path / "config.json"))

    with pytest.raises(ValueError):
        manager.update("nope", "style", "block")
    with pytest.raises(ValueError):
        manager.update("display", "nope", 1)

def test_corrupt_config_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    manager = ConfigManager(str(path))

    assert manager.data == AppConfig()
    assert json.loads(path.read_text(encoding="utf-8"))["display"]["glyph"] == "■"

def test_toml_config(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[display]\nstyle = "background"\ndebounce_delay_ms = 50\n', encoding="utf-8")

    manager = ConfigManager(str(path))

    assert manager.data.display.style == "background"
    assert manager.data.display.debounce_delay_ms == 50
