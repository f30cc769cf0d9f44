"""
Tests for gate policy loading.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from yachty_receipts.config import DEFAULT_CONFIG_PATH, load_config, parse_config
from yachty_receipts.errors import ConfigError


def write(tmp_path, text):
    path = tmp_path / 'gate.yaml'
    path.write_text(text, encoding='utf-8')
    return path


class TestLoadConfig:

    def test_full_config(self, tmp_path):
        path = write(tmp_path, (
            "gate:\n"
            "  auto_approve_threshold: 0.9\n"
            "  max_auto_approve_amount: 250\n"
            "  require_po_or_boat_name: true\n"
        ))
        config = load_config(path)
        assert config.auto_approve_threshold == 0.9
        assert config.max_auto_approve_amount == 250.0
        assert config.require_po_or_boat_name is True

    def test_partial_config_keeps_defaults(self, tmp_path):
        config = load_config(write(tmp_path, "gate:\n  max_auto_approve_amount: 100\n"))
        assert config.auto_approve_threshold == 0.95
        assert config.max_auto_approve_amount == 100.0

    def test_empty_file(self, tmp_path):
        config = load_config(write(tmp_path, ""))
        assert config.auto_approve_threshold == 0.95

    def test_shipped_default(self):
        assert DEFAULT_CONFIG_PATH.exists()
        config = load_config()
        assert config.auto_approve_threshold == 0.95
        assert config.max_auto_approve_amount is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / 'nope.yaml')

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(write(tmp_path, "gate: [unclosed\n"))

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_config(write(tmp_path, "gate:\n  auto_aprove_threshold: 0.5\n"))
        assert 'auto_aprove_threshold' in str(exc_info.value)

    def test_out_of_range_threshold(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(write(tmp_path, "gate:\n  auto_approve_threshold: 95\n"))


class TestParseConfig:

    def test_none(self):
        assert parse_config(None).auto_approve_threshold == 0.95

    def test_root_not_mapping(self):
        with pytest.raises(ConfigError):
            parse_config(['gate'])

    def test_gate_not_mapping(self):
        with pytest.raises(ConfigError):
            parse_config({'gate': 0.95})
