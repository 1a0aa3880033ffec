from typing import Any, Literal, Optional
import json
import os
from pydantic import BaseModel, Field, ValidationError
from loguru import logger
from .events import Signal


def default_storage_path() -> str:
    """Tag index location under the user's cache directory."""
    cache_root = os.environ.get("XDG_CACHE_HOME") or os.path.join(os.path.expanduser("~"), ".cache")
    return os.path.join(cache_root, "colortags", "tags.json")


# --- Settings Models ---
class GeneralSettings(BaseModel):
    debug_mode: bool = False
    log_dir: str = "logs"

class DisplaySettings(BaseModel):
    style: Literal["block", "background"] = "block"
    glyph: str = "■"
    debounce_delay_ms: int = Field(default=20, ge=0)

class TaggingSettings(BaseModel):
    use_relative_names: bool = False
    root: Optional[str] = None  # None: relative to the listing's own directory

class StorageSettings(BaseModel):
    path: str = Field(default_factory=default_storage_path)
    autosave_interval_s: float = Field(default=0.0, ge=0)  # 0 disables idle saves

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    tagging: TaggingSettings = Field(default_factory=TaggingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with persistence and reactivity.
    """
    def __init__(self, filepath: str = "config.json"):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if key not in type(section_obj).model_fields:
            raise ValueError(f"Invalid key: {key} in section {section}")

        raw = section_obj.model_dump()
        raw[key] = value
        try:
            validated = type(section_obj).model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {section}.{key}: {value!r}") from e

        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except Exception as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file."""
        if self.filepath.endswith('.toml'):
            # TOML files are read-only
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4, ensure_ascii=False)
        except Exception as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
