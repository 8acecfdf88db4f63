"""Runtime configuration for the glove ingestion pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# HM-10 style serial bridge: 16-bit alias first, then its canonical 128-bit form.
HM10_SERVICE_UUIDS: Tuple[str, ...] = ("ffe0", "0000ffe0-0000-1000-8000-00805f9b34fb")
HM10_CHARACTERISTIC_UUIDS: Tuple[str, ...] = ("ffe1", "0000ffe1-0000-1000-8000-00805f9b34fb")

FRAMING_CHOICES = frozenset({"auto", "newline", "field_count"})


@dataclass(slots=True)
class GloveConfig:
    """
    Tuning knobs for ingestion, simulation and device discovery.

    Defaults match a ~2 Hz glove feeding a 50-sample live window.
    """

    history_capacity: int = 50
    reassembly_limit: int = 50
    framing: str = "auto"
    simulation_interval_s: float = 0.5
    min_report_samples: int = 5

    device_name: Optional[str] = None
    scan_timeout_s: float = 10.0
    service_uuids: Tuple[str, ...] = field(default_factory=lambda: HM10_SERVICE_UUIDS)
    characteristic_uuids: Tuple[str, ...] = field(default_factory=lambda: HM10_CHARACTERISTIC_UUIDS)

    log_level: str = "INFO"

    def sanitized(self) -> GloveConfig:
        """Return a copy with limits applied and UUIDs normalized."""
        framing = str(self.framing).strip().lower()
        if framing not in FRAMING_CHOICES:
            raise ValueError(f"Unknown framing {self.framing!r}")
        level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            level = "INFO"
        name = self.device_name.strip() if self.device_name else None
        return GloveConfig(
            history_capacity=max(1, int(self.history_capacity)),
            reassembly_limit=max(1, int(self.reassembly_limit)),
            framing=framing,
            simulation_interval_s=max(0.01, float(self.simulation_interval_s)),
            min_report_samples=max(1, int(self.min_report_samples)),
            device_name=name or None,
            scan_timeout_s=max(0.5, float(self.scan_timeout_s)),
            service_uuids=_normalize_uuids(self.service_uuids, "service_uuids"),
            characteristic_uuids=_normalize_uuids(
                self.characteristic_uuids, "characteristic_uuids"
            ),
            log_level=level,
        )


def _normalize_uuids(values: Any, name: str) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = [values]
    cleaned = tuple(str(v).strip().lower() for v in values or () if str(v).strip())
    if not cleaned:
        raise ValueError(f"{name} must list at least one UUID")
    return cleaned


_FIELD_NAMES = frozenset(f.name for f in fields(GloveConfig))


def _flatten_glove_block(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge an optional ``glove:`` block over the root keys."""
    merged = {key: value for key, value in data.items() if key != "glove"}
    block = data.get("glove")
    if block is None:
        return merged
    if not isinstance(block, Mapping):
        raise ValueError(f"'glove' must be a mapping, got {type(block).__name__}")
    merged.update(block)
    return merged


def config_from_mapping(data: Mapping[str, Any] | None) -> GloveConfig:
    """Build a sanitized :class:`GloveConfig`; unknown keys are logged and skipped."""
    if not data:
        return GloveConfig()
    flat = _flatten_glove_block(data)
    unknown = sorted(set(flat) - _FIELD_NAMES)
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
    return GloveConfig(**{k: v for k, v in flat.items() if k in _FIELD_NAMES}).sanitized()


def load_config(path: str | Path | None) -> GloveConfig:
    """
    Load configuration from a YAML file.

    ``None`` or a missing file gives the defaults; an empty file does too.
    """
    if path is None:
        return GloveConfig()
    cfg_path = Path(path)
    if not cfg_path.is_file():
        logger.info("No config at %s; using defaults", cfg_path)
        return GloveConfig()
    raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    if raw is None:
        return GloveConfig()
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = [
    "GloveConfig",
    "config_from_mapping",
    "load_config",
    "HM10_SERVICE_UUIDS",
    "HM10_CHARACTERISTIC_UUIDS",
]
