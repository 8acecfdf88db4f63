from __future__ import annotations

from pathlib import Path

import pytest

from flexglove.config import GloveConfig, config_from_mapping, load_config
from flexglove.config.runtime import HM10_CHARACTERISTIC_UUIDS, HM10_SERVICE_UUIDS


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg == GloveConfig()
    assert cfg.history_capacity == 50
    assert cfg.reassembly_limit == 50
    assert cfg.simulation_interval_s == 0.5
    assert cfg.service_uuids == HM10_SERVICE_UUIDS
    assert cfg.characteristic_uuids == HM10_CHARACTERISTIC_UUIDS
    assert load_config(None) == GloveConfig()


def test_load_yaml_with_glove_block(tmp_path: Path) -> None:
    path = tmp_path / "glove.yaml"
    path.write_text(
        "glove:\n"
        "  history_capacity: 60\n"
        "  framing: NEWLINE\n"
        "  service_uuids: [FFE0, 6E400001-B5A3-F393-E0A9-E50E24DCCA9E]\n"
        "  characteristic_uuids: ffe1\n"
        "log_level: debug\n"
        "unrelated: 1\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.history_capacity == 60
    assert cfg.framing == "newline"
    assert cfg.service_uuids == ("ffe0", "6e400001-b5a3-f393-e0a9-e50e24dcca9e")
    assert cfg.characteristic_uuids == ("ffe1",)
    assert cfg.log_level == "DEBUG"


def test_values_are_sanitized() -> None:
    cfg = config_from_mapping(
        {"history_capacity": 0, "simulation_interval_s": -1, "log_level": "loud", "device_name": "  "}
    )
    assert cfg.history_capacity == 1
    assert cfg.simulation_interval_s == 0.01
    assert cfg.log_level == "INFO"
    assert cfg.device_name is None


def test_invalid_framing_rejected() -> None:
    with pytest.raises(ValueError):
        config_from_mapping({"framing": "lines"})


def test_empty_uuid_list_rejected() -> None:
    with pytest.raises(ValueError):
        config_from_mapping({"service_uuids": []})


def test_non_mapping_yaml_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_glove_block_must_be_a_mapping() -> None:
    with pytest.raises(ValueError, match="glove"):
        config_from_mapping({"glove": [1, 2]})


def test_glove_block_overrides_root_keys() -> None:
    cfg = config_from_mapping({"history_capacity": 10, "glove": {"history_capacity": 60}})
    assert cfg.history_capacity == 60


def test_empty_yaml_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == GloveConfig()
