"""Tests for settings validation, persistence and the settings panel."""

import json

import pytest

from autoshrink.plugin import AutoCompressPlugin
from autoshrink.plugin_api import SettingsError
from autoshrink.settings import (
    CompressionSettings,
    SettingsPanel,
    SettingsStore,
    parse_field,
    parse_ignored_paths,
    validate_field,
)


class TestCompressionSettings:
    def test_defaults(self):
        settings = CompressionSettings()
        assert settings.quality == 0.5
        assert settings.convert_size == 100 * 1024
        assert settings.max_width is None
        assert settings.max_height is None
        assert settings.width is None
        assert settings.height is None
        assert settings.ignored_paths == []
        assert settings.validate() is settings

    def test_defaults_do_not_share_ignore_lists(self):
        a = CompressionSettings()
        a.ignored_paths.append("x")
        assert CompressionSettings().ignored_paths == []

    @pytest.mark.parametrize(
        "name,value",
        [
            ("quality", -0.1),
            ("quality", 1.01),
            ("quality", float("nan")),
            ("quality", "0.5"),
            ("quality", True),
            ("convert_size", -1),
            ("convert_size", 1.5),
            ("convert_size", None),
            ("max_width", 0),
            ("max_height", -5),
            ("width", 10.5),
            ("height", "100"),
            ("ignored_paths", "^draft/"),
            ("ignored_paths", [1, 2]),
            ("colour", 1),
        ],
    )
    def test_invalid_values(self, name, value):
        with pytest.raises(SettingsError) as exc:
            validate_field(name, value)
        assert exc.value.field == name

    @pytest.mark.parametrize(
        "name,value",
        [
            ("quality", 0),
            ("quality", 1),
            ("quality", None),
            ("convert_size", 0),
            ("max_width", 1),
            ("width", None),
        ],
    )
    def test_valid_values(self, name, value):
        validate_field(name, value)

    def test_from_dict_accepts_original_key_names(self):
        settings = CompressionSettings.from_dict(
            {"quality": 0.8, "convertSize": 4096, "maxWidth": 1200, "ignoredPaths": ["^a/"]}
        )
        assert settings.quality == 0.8
        assert settings.convert_size == 4096
        assert settings.max_width == 1200
        assert settings.ignored_paths == ["^a/"]

    def test_from_dict_keeps_defaults_for_bad_entries(self, caplog):
        caplog.set_level("WARNING")
        settings = CompressionSettings.from_dict(
            {"quality": "high", "max_height": 720, "mystery": 3}
        )
        assert settings.quality == 0.5
        assert settings.max_height == 720
        assert any("quality" in r.message for r in caplog.records)

    def test_from_dict_coerces_integral_floats(self):
        assert CompressionSettings.from_dict({"convert_size": 2048.0}).convert_size == 2048


class TestSettingsStore:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert SettingsStore(tmp_path / "none.json").load() == CompressionSettings()

    def test_save_then_load(self, tmp_path):
        store = SettingsStore(tmp_path / "nested" / "settings.json")
        settings = CompressionSettings(quality=None, max_width=800, ignored_paths=["^x/"])
        store.save(settings)

        assert store.load() == settings
        assert json.loads(store.path.read_text())["quality"] is None
        assert list(store.path.parent.iterdir()) == [store.path]

    def test_malformed_json_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        caplog.set_level("WARNING")
        assert SettingsStore(path).load() == CompressionSettings()
        assert caplog.records

    def test_non_mapping_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")
        assert SettingsStore(path).load() == CompressionSettings()


class TestParsing:
    def test_parse_numbers(self):
        assert parse_field("quality", " 0.75 ") == 0.75
        assert parse_field("convert_size", "2048") == 2048
        assert parse_field("max_width", "1920") == 1920

    def test_blank_unsets_optional_fields(self):
        assert parse_field("quality", "") is None
        assert parse_field("width", "   ") is None

    def test_blank_convert_size_rejected(self):
        with pytest.raises(SettingsError):
            parse_field("convert_size", "")

    @pytest.mark.parametrize("name,text", [("quality", "abc"), ("convert_size", "1e"), ("max_width", "12.5"), ("quality", "nan")])
    def test_non_numeric_rejected(self, name, text):
        with pytest.raises(SettingsError):
            parse_field(name, text)

    def test_ignored_paths_lines_trimmed(self):
        text = "  ^draft/.*  \n\n^tmp/\n   \n"
        assert parse_ignored_paths(text) == ["^draft/.*", "^tmp/"]


class TestSettingsPanel:
    @pytest.fixture
    def store(self, tmp_path):
        return SettingsStore(tmp_path / "settings.json")

    @pytest.fixture
    def panel_plugin(self, vault, codec, notifier, store):
        plugin = AutoCompressPlugin(vault, codec, notifier, store)
        plugin.load()
        return plugin

    @pytest.fixture
    def panel(self, panel_plugin, notifier):
        return SettingsPanel(panel_plugin, notifier)

    def test_non_numeric_quality_rejected(self, panel, panel_plugin, notifier, store):
        assert panel.set_field("quality", "0.6") is True
        notifier.notices.clear()

        assert panel.set_field("quality", "abc") is False

        assert panel_plugin.settings.quality == 0.6
        assert store.load().quality == 0.6
        assert len(notifier.at("warning")) == 1
        assert "Quality" in notifier.at("warning")[0]

    def test_out_of_range_rejected(self, panel, panel_plugin, notifier):
        assert panel.set_field("quality", "1.5") is False
        assert panel_plugin.settings.quality == 0.5
        assert notifier.at("warning")

    def test_accepted_value_is_persisted(self, panel, panel_plugin, store):
        assert panel.set_field("maxWidth", "1024") is True
        assert panel_plugin.settings.max_width == 1024
        assert store.load().max_width == 1024

    def test_blank_unsets(self, panel, panel_plugin):
        panel.set_field("height", "300")
        panel.set_field("height", "")
        assert panel_plugin.settings.height is None

    def test_unknown_field_rejected(self, panel, notifier):
        assert panel.set_field("colour", "red") is False
        assert notifier.at("warning")

    def test_set_ignored_paths(self, panel, panel_plugin, store):
        panel.set_ignored_paths("^draft/.*\n  ^archive/  \n")
        assert panel_plugin.settings.ignored_paths == ["^draft/.*", "^archive/"]
        assert store.load().ignored_paths == ["^draft/.*", "^archive/"]

    def test_values_render_as_text(self, panel):
        panel.set_ignored_paths("a\nb")
        values = panel.values()
        assert values["quality"] == "0.5"
        assert values["max_width"] == ""
        assert values["ignored_paths"] == "a\nb"


class TestSettingsPanelSaveFailure:
    @pytest.fixture
    def panel_plugin(self, vault, codec, notifier, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        return AutoCompressPlugin(vault, codec, notifier, SettingsStore(blocker / "settings.json"))

    @pytest.fixture
    def panel(self, panel_plugin, notifier):
        return SettingsPanel(panel_plugin, notifier)

    def test_field_not_adopted_when_save_fails(self, panel, panel_plugin, notifier):
        assert panel.set_field("quality", "0.8") is False

        assert panel_plugin.settings.quality == 0.5
        errors = notifier.at("error")
        assert len(errors) == 1
        assert "Could not save Quality" in errors[0]

    def test_ignored_paths_not_adopted_when_save_fails(self, panel, panel_plugin, notifier):
        assert panel.set_ignored_paths("^draft/") is False

        assert panel_plugin.settings.ignored_paths == []
        assert "Could not save Ignored paths" in notifier.at("error")[0]
