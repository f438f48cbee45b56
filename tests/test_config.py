"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest
import yaml

from catalog_studio import config
from catalog_studio.config import AppConfig, load_config, load_yaml_config
from catalog_studio.templates import BUILTIN_PRESETS, create_template_registry, get_style_presets


PROJECT_CONFIG = Path(__file__).parent.parent / 'config'


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    for name in ('FLASK_ENV', 'LOG_LEVEL', 'SECRET_KEY', 'EXPORT_FOLDER', 'MAX_SELECTION'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, 'CONFIG_DIR', tmp_path)
    return tmp_path


def write_yaml(path: Path, data) -> None:
    path.write_text(yaml.safe_dump(data), encoding='utf-8')


class TestLoadConfig:
    """Test merging settings from YAML and the environment."""

    def test_defaults_without_files(self, config_dir):
        """Test defaults apply when no settings files exist."""
        cfg = load_config()

        assert cfg.MAX_SELECTION == 20
        assert (cfg.PAGE_WIDTH, cfg.PAGE_HEIGHT) == (595, 842)
        assert cfg.EXPORT_SCALE == 4.0
        assert cfg.PREVIEW_SCALE == 0.5
        assert cfg.DEBUG is True

    def test_environment_file_overrides_base(self, config_dir):
        """Test the environment file overrides the base settings."""
        write_yaml(config_dir / 'settings.yaml', {'MAX_SELECTION': 12, 'LOG_LEVEL': 'DEBUG'})
        write_yaml(config_dir / 'settings_production.yaml', {'LOG_LEVEL': 'WARNING'})

        cfg = load_config('production')

        assert cfg.MAX_SELECTION == 12
        assert cfg.LOG_LEVEL == 'WARNING'
        assert cfg.FLASK_ENV == 'production'
        assert cfg.DEBUG is False

    def test_environment_variables_win(self, config_dir, monkeypatch):
        """Test environment variables override both files."""
        write_yaml(config_dir / 'settings.yaml', {'MAX_SELECTION': 12})
        monkeypatch.setenv('MAX_SELECTION', '5')

        assert load_config().MAX_SELECTION == 5

    def test_invalid_config_falls_back_to_defaults(self, config_dir):
        """Test invalid settings fall back to defaults."""
        write_yaml(config_dir / 'settings.yaml', {'PAGE_WIDTH': 'wide', 'MAX_SELECTION': 3})

        cfg = load_config()

        assert cfg.PAGE_WIDTH == 595
        assert cfg.MAX_SELECTION == 20

    def test_unreadable_yaml(self, tmp_path):
        """Test broken or missing YAML loads as an empty mapping."""
        path = tmp_path / 'broken.yaml'
        path.write_text('key: [unclosed', encoding='utf-8')

        assert load_yaml_config(path) == {}
        assert load_yaml_config(tmp_path / 'missing.yaml') == {}


class TestTemplateAndPresetFiles:
    """Test template and preset files."""

    def test_templates_from_yaml(self, config_dir):
        """Test templates are read from YAML."""
        write_yaml(config_dir / 'templates.yaml', {'templates': [
            {'id': 'a', 'name': 'A', 'items_per_page': 2, 'columns': 2, 'rows': 1},
        ]})

        registry = create_template_registry()

        assert [t.id for t in registry.all()] == ['a']

    def test_builtin_templates_without_file(self, config_dir):
        """Test built-in templates are used without a file."""
        assert len(create_template_registry()) == 8

    def test_presets_fallback(self, config_dir):
        """Test built-in presets are used without a file."""
        assert get_style_presets() == BUILTIN_PRESETS

    def test_shipped_files_match_builtins(self, monkeypatch):
        """Test the shipped YAML files match the built-in definitions."""
        monkeypatch.setattr(config, 'CONFIG_DIR', PROJECT_CONFIG)

        assert [t.id for t in create_template_registry().all()] == ['1', '2', '3', '4', '6', '8', '9', '12']
        assert get_style_presets() == BUILTIN_PRESETS

    def test_shipped_settings_are_valid(self):
        """Test the shipped settings files validate."""
        data = load_yaml_config(PROJECT_CONFIG / 'settings.yaml')

        cfg = AppConfig(**data)
        assert cfg.ITEM_SOURCES['digital'] == 'data/products.json'
