"""
Test Suite for Configuration Management

Author: Survey Analytics Team
Date: 2025
"""

import math

import pytest
import yaml

from config.config import ConfigManager, load_config


@pytest.fixture
def default_config():
    return load_config()


def _write_variant(tmp_path, default_config, section, key, value):
    data = yaml.safe_load(default_config.config_path.read_text())
    data[section][key] = value
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump(data))
    return path


class TestConfigManager:

    def test_default_config_loads(self, default_config):
        assert default_config.project.name == 'cyclone-panel-attrition'
        assert default_config.sources.key_column == 'caseid'
        assert default_config.analysis.alpha == 0.05
        assert default_config.get('cleaning.excluded_outcomes') == ['Incomplete (callback)']

    def test_breakpoints_end_in_infinity(self, default_config):
        breakpoints = default_config.bucketing.breakpoints
        assert breakpoints[:-1] == [18, 25, 35, 45, 55, 65]
        assert math.isinf(breakpoints[-1])
        assert len(default_config.bucketing.labels) == len(breakpoints) - 1

    def test_dot_notation_default(self, default_config):
        assert default_config.get('analysis.missing_key', 'fallback') == 'fallback'
        assert default_config.get('flags.timestamp_fields') == ['starttime', 'endtime', 'submissiondate']

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager(tmp_path / 'absent.yaml')

    @pytest.mark.parametrize('section,key,value', [
        ('analysis', 'alpha', 1.5),
        ('bucketing', 'breakpoints', [18, 30, 25, 40, 50, 60, 70]),
        ('bucketing', 'labels', ['young', 'old']),
        ('bucketing', 'out_of_range', 'clamp'),
    ])
    def test_invalid_values_rejected(self, tmp_path, default_config, section, key, value):
        path = _write_variant(tmp_path, default_config, section, key, value)
        with pytest.raises(ValueError):
            ConfigManager(path)

    def test_missing_section(self, tmp_path, default_config):
        data = yaml.safe_load(default_config.config_path.read_text())
        del data['flags']
        path = tmp_path / 'config.yaml'
        path.write_text(yaml.safe_dump(data))
        with pytest.raises(ValueError):
            ConfigManager(path)

    def test_update_and_save(self, tmp_path, default_config):
        default_config.update_config({'analysis': {'alpha': 0.01}})
        assert default_config.analysis.alpha == 0.01

        saved = tmp_path / 'saved.yaml'
        default_config.save_config(saved)
        reloaded = ConfigManager(saved)
        assert reloaded.analysis.alpha == 0.01
        assert math.isinf(reloaded.bucketing.breakpoints[-1])

    def test_create_directories(self, tmp_path, monkeypatch, default_config):
        monkeypatch.chdir(tmp_path)
        default_config.create_directories()
        assert (tmp_path / 'data' / 'raw').is_dir()
        assert (tmp_path / 'output' / 'visualizations').is_dir()

    def test_logging_format_from_config(self, tmp_path, default_config):
        default_config.update_config({'logging': {
            'format': '%(levelname)s|%(message)s',
            'log_file': str(tmp_path / 'logs' / 'panel.log'),
        }})
        logger = default_config.setup_logging()
        try:
            formats = {handler.formatter._fmt for handler in logger.handlers}
            assert formats == {'%(levelname)s|%(message)s'}
            assert (tmp_path / 'logs' / 'panel.log').exists()
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
