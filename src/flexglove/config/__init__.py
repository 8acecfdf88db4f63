"""Configuration objects and helpers for FlexGlove.

A single YAML file (see :mod:`runtime`) tunes the history window, the
reassembly safety limit, the simulation cadence and the BLE UUID candidates
tried during discovery.
"""

from .runtime import GloveConfig, config_from_mapping, load_config

__all__ = ["GloveConfig", "config_from_mapping", "load_config"]
