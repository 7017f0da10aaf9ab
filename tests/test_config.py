"""
Unit tests for configuration loading.
"""

import pytest

from giftcomposer.config import AppConfig, get_config, load_config, reset_config


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Run from an empty directory with a config/ folder."""
    monkeypatch.chdir(tmp_path)
    for var in ('FLASK_ENV', 'LOG_LEVEL', 'SECRET_KEY', 'TEMPLATES_DIR', 'COMPOSE_MAX_WORKERS'):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / 'config').mkdir()
    return tmp_path / 'config'


class TestLoadConfig:

    def test_defaults_without_files(self, config_dir):
        config = load_config('development')

        assert config.PREVIEW_MAX_WIDTH == 800
        assert config.PNG_COMPRESS_LEVEL == 9
        assert config.MAX_UPLOAD_SIZE_MB == 20.0
        assert config.DEBUG is True

    def test_environment_file_overrides_base(self, config_dir):
        (config_dir / 'settings.yaml').write_text("PREVIEW_MAX_WIDTH: 640\nLOG_LEVEL: INFO\n")
        (config_dir / 'settings_production.yaml').write_text("LOG_LEVEL: WARNING\n")

        config = load_config('production')

        assert config.PREVIEW_MAX_WIDTH == 640
        assert config.LOG_LEVEL == 'WARNING'
        assert config.DEBUG is False

    def test_environment_variables_win(self, config_dir, monkeypatch):
        (config_dir / 'settings.yaml').write_text("COMPOSE_MAX_WORKERS: 2\n")
        monkeypatch.setenv('COMPOSE_MAX_WORKERS', '6')
        monkeypatch.setenv('TEMPLATES_DIR', '/srv/templates')

        config = load_config()

        assert config.COMPOSE_MAX_WORKERS == 6
        assert config.TEMPLATES_DIR == '/srv/templates'

    def test_invalid_values_fall_back_to_defaults(self, config_dir):
        (config_dir / 'settings.yaml').write_text("PNG_COMPRESS_LEVEL: 42\n")

        config = load_config()

        assert config.PNG_COMPRESS_LEVEL == AppConfig().PNG_COMPRESS_LEVEL

    def test_broken_yaml_is_ignored(self, config_dir):
        (config_dir / 'settings.yaml').write_text("PREVIEW_MAX_WIDTH: [unclosed\n")

        assert load_config().PREVIEW_MAX_WIDTH == 800


class TestGetConfig:

    def test_cached_until_reset(self, config_dir):
        reset_config()
        try:
            first = get_config()
            assert get_config() is first
            reset_config()
            assert get_config() is not first
        finally:
            reset_config()
