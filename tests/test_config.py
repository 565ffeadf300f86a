"""Tests for configuration management."""

import json
import logging
from pathlib import Path

import pytest
import yaml

from config import settings
from config.settings import ConfigurationManager, get_config_manager

ENV_VARS = [
    "MOUNTMAP_MAX_WORKERS",
    "MOUNTMAP_MAX_PREFIX_SEGMENTS",
    "MOUNTMAP_BASE_URL_DETECTION",
    "MOUNTMAP_OUTPUT_FORMAT",
    "MOUNTMAP_CONFIG",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "_config_manager", None)


class TestLoading:
    """Test configuration files."""

    def test_defaults(self):
        config = ConfigurationManager([]).config

        assert config.analysis.max_prefix_segments == 32
        assert config.analysis.max_fixpoint_passes == 100
        assert config.performance.max_workers is None
        assert config.base_url.enabled is True
        assert "node_modules" in config.discovery.exclude_dirs
        assert config.output.default_format == "terminal"

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "mountmap.yaml"
        path.write_text(yaml.dump({
            "analysis": {"max_prefix_segments": 8, "unknown_key": 1},
            "output": {"default_format": "json"},
            "discovery": {"exclude_dirs": ["node_modules", "fixtures"]},
        }))

        config = ConfigurationManager([str(path)]).config

        assert config.analysis.max_prefix_segments == 8
        assert config.analysis.chain_window == 400
        assert config.output.default_format == "json"
        assert config.discovery.exclude_dirs == ["node_modules", "fixtures"]

    def test_json_file(self, tmp_path: Path):
        path = tmp_path / "mountmap.json"
        path.write_text(json.dumps({"performance": {"max_workers": 3}}))

        assert ConfigurationManager([str(path)]).config.performance.max_workers == 3

    def test_later_files_win(self, tmp_path: Path):
        first = tmp_path / "a.yaml"
        second = tmp_path / "b.yaml"
        first.write_text("analysis:\n  chain_window: 100\n  max_fixpoint_passes: 7\n")
        second.write_text("analysis:\n  chain_window: 200\n")

        config = ConfigurationManager([str(first), str(second)]).config

        assert config.analysis.chain_window == 200
        assert config.analysis.max_fixpoint_passes == 7

    @pytest.mark.parametrize("content", ["analysis: [unclosed", "- just\n- a list\n"])
    def test_bad_file_skipped(self, tmp_path: Path, caplog, content):
        path = tmp_path / "bad.yaml"
        path.write_text(content)

        with caplog.at_level(logging.WARNING):
            config = ConfigurationManager([str(path)]).config

        assert config.analysis.max_prefix_segments == 32
        assert "Failed to load config" in caplog.text

    def test_missing_file_skipped(self, tmp_path: Path):
        config = ConfigurationManager([str(tmp_path / "absent.yaml")]).config
        assert config.analysis.max_prefix_segments == 32

    def test_example_config_round_trip(self, tmp_path: Path):
        path = tmp_path / "example.yaml"
        ConfigurationManager([]).create_example_config(str(path))

        data = yaml.safe_load(path.read_text())
        assert set(data) >= {"discovery", "analysis", "base_url", "performance", "output"}
        assert ConfigurationManager([str(path)]).config.performance.max_workers == 8


class TestEnvironmentAndValidation:
    """Test environment overrides and clamping."""

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MOUNTMAP_MAX_WORKERS", "4")
        monkeypatch.setenv("MOUNTMAP_MAX_PREFIX_SEGMENTS", "12")
        monkeypatch.setenv("MOUNTMAP_BASE_URL_DETECTION", "false")
        monkeypatch.setenv("MOUNTMAP_OUTPUT_FORMAT", "JSON")

        config = ConfigurationManager([]).config

        assert config.performance.max_workers == 4
        assert config.analysis.max_prefix_segments == 12
        assert config.base_url.enabled is False
        assert config.output.default_format == "json"

    def test_non_numeric_environment_ignored(self, monkeypatch):
        monkeypatch.setenv("MOUNTMAP_MAX_WORKERS", "many")
        assert ConfigurationManager([]).config.performance.max_workers is None

    def test_config_env_variable(self, monkeypatch, tmp_path: Path):
        path = tmp_path / "custom.yaml"
        path.write_text("analysis:\n  max_fixpoint_passes: 9\n")
        monkeypatch.setenv("MOUNTMAP_CONFIG", str(path))
        monkeypatch.chdir(tmp_path)

        assert ConfigurationManager().config.analysis.max_fixpoint_passes == 9

    def test_clamping(self, tmp_path: Path):
        path = tmp_path / "odd.yaml"
        path.write_text(yaml.dump({
            "analysis": {"max_prefix_segments": 0, "max_fixpoint_passes": -1, "chain_window": 0},
            "performance": {"max_workers": 0},
            "output": {"default_format": "xml"},
            "discovery": {"include_extensions": ["js", ".TS"]},
        }))

        config = ConfigurationManager([str(path)]).config

        assert config.analysis.max_prefix_segments == 1
        assert config.analysis.max_fixpoint_passes == 1
        assert config.analysis.chain_window == 400
        assert config.performance.max_workers is None
        assert config.output.default_format == "terminal"
        assert config.discovery.include_extensions == [".js", ".ts"]


class TestScanConfig:
    """Test ScanConfig construction."""

    def test_build_scan_config(self, tmp_path: Path):
        path = tmp_path / "mountmap.yaml"
        path.write_text("analysis:\n  max_prefix_segments: 10\nbase_url:\n  keys: [SERVICE_URL]\n")
        manager = ConfigurationManager([str(path)])

        scan_config = manager.build_scan_config("/repo", max_workers=None, detect_base_url=False)

        assert scan_config.repo_path == "/repo"
        assert scan_config.max_prefix_segments == 10
        assert scan_config.max_workers is None
        assert scan_config.detect_base_url is False
        assert scan_config.base_url_keys == ["SERVICE_URL"]

    def test_cli_overrides_win(self):
        scan_config = ConfigurationManager([]).build_scan_config("/repo", max_prefix_segments=5, output_format="json")
        assert scan_config.max_prefix_segments == 5
        assert scan_config.output_format == "json"


def test_get_config_manager_caches(tmp_path: Path):
    path = tmp_path / "mountmap.yaml"
    path.write_text("analysis:\n  chain_window: 50\n")

    manager = get_config_manager([str(path)])

    assert get_config_manager() is manager
    assert manager.config.analysis.chain_window == 50
