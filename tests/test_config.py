"""Tests for operating rule configuration."""

import dataclasses
import json

import pytest

from wardflow.core.config import (
    DEFAULT_CONFIG,
    OperationsConfig,
    get_default_config_dir,
    list_available_configs,
    load_config,
    save_config,
)
from wardflow.core.entities import AcuityLevel


class TestOperationsConfig:
    """Test OperationsConfig validation."""

    def test_defaults(self):
        assert DEFAULT_CONFIG.fatigue_risk_threshold == 70
        assert DEFAULT_CONFIG.min_skill_for(AcuityLevel.CRITICAL) == 9
        assert DEFAULT_CONFIG.usage_jitter == (0.8, 1.2)
        assert DEFAULT_CONFIG.reorder_multiplier == 3

    def test_string_keys_coerced(self):
        config = OperationsConfig(acuity_skill_thresholds={"1": 1, "2": 3, "3": 6, "4": 8})
        assert config.min_skill_for(AcuityLevel.HIGH) == 6

    def test_missing_level_rejected(self):
        with pytest.raises(ValueError, match="missing"):
            OperationsConfig(acuity_skill_thresholds={1: 1, 2: 4, 3: 7})

    def test_skill_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="1-10"):
            OperationsConfig(acuity_skill_thresholds={1: 1, 2: 4, 3: 7, 4: 11})

    def test_bad_jitter_rejected(self):
        with pytest.raises(ValueError, match="usage_jitter"):
            OperationsConfig(usage_jitter=(1.2, 0.8))

    def test_bad_timeout_rejected(self):
        with pytest.raises(ValueError, match="advisory_timeout_s"):
            OperationsConfig(advisory_timeout_s=0)

    def test_shared_default_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.fatigue_risk_threshold = 10
        assert DEFAULT_CONFIG.fatigue_risk_threshold == 70

    def test_replace_derives_validated_variant(self):
        variant = dataclasses.replace(DEFAULT_CONFIG, site_name="Ward 7", reorder_multiplier=5)
        assert variant.reorder_multiplier == 5
        assert DEFAULT_CONFIG.reorder_multiplier == 3
        with pytest.raises(ValueError, match="reorder_multiplier"):
            dataclasses.replace(DEFAULT_CONFIG, reorder_multiplier=0)


class TestConfigFiles:
    """Test YAML/JSON load and save."""

    def test_yaml_round_trip(self, tmp_path):
        path = tmp_path / "site.yaml"
        config = OperationsConfig(site_name="St Elsewhere", fatigue_risk_threshold=60)
        save_config(config, path)

        loaded = load_config(path)
        assert loaded.site_name == "St Elsewhere"
        assert loaded.fatigue_risk_threshold == 60
        assert loaded.usage_jitter == (0.8, 1.2)
        assert loaded.acuity_skill_thresholds == config.acuity_skill_thresholds

    def test_json_load(self, tmp_path):
        path = tmp_path / "site.json"
        path.write_text(json.dumps({"site_name": "JSON Site", "reorder_multiplier": 4}))
        assert load_config(path).reorder_multiplier == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "site.toml"
        path.write_text("x = 1")
        with pytest.raises(ValueError, match="Unsupported"):
            load_config(path)

    def test_packaged_default_matches_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("WARDFLOW_CONFIG_DIR", raising=False)
        config_dir = get_default_config_dir()
        assert config_dir.name == "default_config"
        loaded = load_config(config_dir / "default.yaml")
        assert loaded == DEFAULT_CONFIG

    def test_env_var_config_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WARDFLOW_CONFIG_DIR", str(tmp_path))
        save_config(DEFAULT_CONFIG, tmp_path / "a.yaml")
        save_config(DEFAULT_CONFIG, tmp_path / "b.json")
        assert get_default_config_dir() == tmp_path
        assert {p.name for p in list_available_configs()} == {"a.yaml", "b.json"}

    def test_local_config_dir_preferred(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("WARDFLOW_CONFIG_DIR", raising=False)
        (tmp_path / "config").mkdir()
        assert get_default_config_dir() == tmp_path / "config"

    def test_missing_dir_lists_nothing(self, tmp_path):
        assert list_available_configs(tmp_path / "absent") == []

    def test_non_rule_files_ignored(self, tmp_path):
        save_config(DEFAULT_CONFIG, tmp_path / "site.yml")
        (tmp_path / "notes.txt").write_text("not a rule file")
        assert [p.name for p in list_available_configs(tmp_path)] == ["site.yml"]
