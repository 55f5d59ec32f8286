"""
Configuration management for pentool.

Loads YAML configuration with sensible defaults for the editor core.
"""

import os
from dataclasses import dataclass, field

import yaml


@dataclass
class SamplingConfig:
    """Configuration for curve and group sample tables."""
    lut_num_points: int = 100
    group_lut_num_points: int = 200
    dense_samples: int = 256  # bezier evaluations before arc-length resampling


@dataclass
class LatchConfig:
    """Configuration for latching."""
    latch_distance: float = 5.0
    mirror_on_latch: bool = True  # also set the latching control to the mirror of the partner's


@dataclass
class HistoryConfig:
    """Configuration for the undo/redo log."""
    enabled: bool = True


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class EditorConfig:
    """Complete editor configuration."""
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    latch: LatchConfig = field(default_factory=LatchConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)


_SECTIONS = ("sampling", "latch", "history", "tracing")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = EditorConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass. Unknown keys are ignored."""
    for section in _SECTIONS:
        if section not in yaml_data:
            continue
        target = getattr(config, section)
        for key, value in (yaml_data[section] or {}).items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    config = EditorConfig()

    yaml_data = {
        "sampling": {
            "lut_num_points": config.sampling.lut_num_points,
            "group_lut_num_points": config.sampling.group_lut_num_points,
            "dense_samples": config.sampling.dense_samples,
        },
        "latch": {
            "latch_distance": config.latch.latch_distance,
            "mirror_on_latch": config.latch.mirror_on_latch,
        },
        "history": {
            "enabled": config.history.enabled,
        },
        "tracing": {
            "enabled": config.tracing.enabled,
            "level": config.tracing.level,
        },
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
