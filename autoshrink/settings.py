"""
Compression settings: defaults, validation, persistence and the text-field
boundary used by settings panels.

Settings are loaded once at startup (merged over the defaults in
`autoshrink.config`), changed one field at a time through `SettingsPanel`
and persisted after every accepted change.
"""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .plugin_api import Notifier, SettingsError

logger = logging.getLogger(__name__)

# Optional integer fields: blank text means "unset"
DIMENSION_FIELDS = ("max_width", "max_height", "width", "height")
NUMERIC_FIELDS = ("quality", "convert_size") + DIMENSION_FIELDS

# Keys as the original plugin stored them in its data blob
FIELD_ALIASES = {
    "convertSize": "convert_size",
    "maxWidth": "max_width",
    "maxHeight": "max_height",
    "ignoredPaths": "ignored_paths",
}

FIELD_LABELS = {
    "quality": "Quality",
    "convert_size": "Convert size",
    "max_width": "Max width",
    "max_height": "Max height",
    "width": "Width",
    "height": "Height",
    "ignored_paths": "Ignored paths",
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class CompressionSettings:
    """User-facing compression configuration."""

    quality: Optional[float] = config.DEFAULT_QUALITY
    convert_size: int = config.DEFAULT_CONVERT_SIZE
    max_width: Optional[int] = config.DEFAULT_MAX_WIDTH
    max_height: Optional[int] = config.DEFAULT_MAX_HEIGHT
    width: Optional[int] = config.DEFAULT_WIDTH
    height: Optional[int] = config.DEFAULT_HEIGHT
    ignored_paths: List[str] = field(
        default_factory=lambda: list(config.DEFAULT_IGNORED_PATHS)
    )

    def validate(self) -> "CompressionSettings":
        """Check every field; raise SettingsError on the first bad one."""
        for f in fields(self):
            validate_field(f.name, getattr(self, f.name))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompressionSettings":
        """Merge a persisted mapping over the defaults.

        Unknown keys and invalid values are logged and skipped so that one
        bad entry never discards the rest of the user's configuration.
        """
        settings = cls()
        known = {f.name for f in fields(cls)}
        for key, value in (data or {}).items():
            name = FIELD_ALIASES.get(key, key)
            if name not in known:
                logger.debug(f"Ignoring unknown settings key: {key}")
                continue
            try:
                value = _coerce(name, value)
                validate_field(name, value)
            except SettingsError as e:
                logger.warning(f"{e}; keeping default {getattr(settings, name)!r}")
                continue
            setattr(settings, name, value)
        return settings


def _coerce(name: str, value: Any) -> Any:
    # JSON writers may emit 1024.0 for an integer field
    if name != "quality" and isinstance(value, float) and value.is_integer():
        return int(value)
    if name == "ignored_paths" and isinstance(value, tuple):
        return list(value)
    return value


def validate_field(name: str, value: Any) -> None:
    if name == "quality":
        if value is None:
            return
        if not _is_number(value) or not math.isfinite(value):
            raise SettingsError(name, value, "must be a number between 0 and 1")
        if not 0 <= value <= 1:
            raise SettingsError(name, value, "must be between 0 and 1")
    elif name == "convert_size":
        if not _is_int(value):
            raise SettingsError(name, value, "must be a whole number of bytes")
        if value < 0:
            raise SettingsError(name, value, "must not be negative")
    elif name in DIMENSION_FIELDS:
        if value is None:
            return
        if not _is_int(value) or value <= 0:
            raise SettingsError(name, value, "must be a positive whole number")
    elif name == "ignored_paths":
        if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
            raise SettingsError(name, value, "must be a list of patterns")
    else:
        raise SettingsError(name, value, "unknown setting")


def parse_field(name: str, text: str) -> Any:
    """Convert settings-panel text for a numeric field into its value."""
    if name not in NUMERIC_FIELDS:
        raise SettingsError(name, text, "not a numeric setting")
    text = (text or "").strip()
    if not text:
        if name == "convert_size":
            raise SettingsError(name, text, "a value is required")
        return None
    try:
        if name == "quality":
            value = float(text)
        else:
            value = int(text)
    except ValueError:
        raise SettingsError(name, text, "not a number") from None
    validate_field(name, value)
    return value


def parse_ignored_paths(text: str) -> List[str]:
    """One pattern per line, trimmed; blank lines dropped."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def format_field(settings: CompressionSettings, name: str) -> str:
    value = getattr(settings, name)
    if name == "ignored_paths":
        return "\n".join(value)
    return "" if value is None else str(value)


class SettingsStore:
    """JSON persistence for CompressionSettings."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> CompressionSettings:
        if not self.path.exists():
            logger.debug(f"No settings file at {self.path}, using defaults")
            return CompressionSettings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read settings from {self.path}: {e}; using defaults")
            return CompressionSettings()
        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.path} does not hold a mapping; using defaults")
            return CompressionSettings()
        return CompressionSettings.from_dict(data)

    def save(self, settings: CompressionSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + config.TMP_SUFFIX)
        try:
            tmp.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug(f"Saved settings to {self.path}")


class SettingsPanel:
    """
    Text-field boundary between a settings UI and the plugin.

    Each setter parses the raw text, rejects bad input with a notice while
    leaving the current configuration untouched, and otherwise hands the
    updated configuration to `plugin.on_settings_changed`, which persists it.
    """

    def __init__(self, plugin, notifier: Notifier):
        self.plugin = plugin
        self.notifier = notifier

    def set_field(self, name: str, text: str) -> bool:
        """
        Apply the text of one numeric field.

        Args:
            name: Field name, e.g. "quality" or "convertSize"
            text: Raw text as typed by the user

        Returns:
            bool: True if the value was accepted and saved
        """
        name = FIELD_ALIASES.get(name, name)
        label = FIELD_LABELS.get(name, name)
        try:
            value = parse_field(name, text)
            updated = replace(self.plugin.settings, **{name: value}).validate()
        except SettingsError as e:
            logger.warning(f"Rejected {label}: {e}")
            self.notifier.notice(f"{label}: {e.message} ({text!r})", "warning")
            return False
        return self._apply(updated, label)

    def set_ignored_paths(self, text: str) -> bool:
        patterns = parse_ignored_paths(text)
        updated = replace(self.plugin.settings, ignored_paths=patterns)
        return self._apply(updated, FIELD_LABELS["ignored_paths"])

    def _apply(self, updated: CompressionSettings, label: str) -> bool:
        try:
            self.plugin.on_settings_changed(updated)
        except OSError as e:
            logger.error(f"Could not save {label}: {e}")
            self.notifier.notice(f"Could not save {label}: {e}", "error")
            return False
        return True

    def values(self) -> Dict[str, str]:
        """Current settings rendered as field text."""
        settings = self.plugin.settings
        return {f.name: format_field(settings, f.name) for f in fields(settings)}
