"""Tests for configuration loading."""

import os

import yaml


class TestConfig:
    """Tests for YAML config handling."""

    def test_defaults(self):
        """Test the built-in defaults."""
        from pentool.config import load_config

        config = load_config(None)

        assert config.sampling.lut_num_points == 100
        assert config.sampling.group_lut_num_points == 200
        assert config.latch.latch_distance == 5.0
        assert config.latch.mirror_on_latch is True
        assert config.history.enabled is True
        assert config.tracing.enabled is False

    def test_missing_file_falls_back(self, temp_dir):
        """Test that a missing path gives defaults."""
        from pentool.config import load_config

        config = load_config(os.path.join(temp_dir, "nope.yaml"))

        assert config.latch.latch_distance == 5.0

    def test_partial_override(self, temp_dir):
        """Test that YAML values override only what they name."""
        from pentool.config import load_config

        path = os.path.join(temp_dir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump({"latch": {"latch_distance": 12.5, "bogus": 1}, "sampling": {"lut_num_points": 40}}, f)

        config = load_config(path)

        assert config.latch.latch_distance == 12.5
        assert config.latch.mirror_on_latch is True
        assert config.sampling.lut_num_points == 40
        assert not hasattr(config.latch, "bogus")

    def test_save_default_round_trip(self, temp_dir):
        """Test that the written default file loads back to the defaults."""
        from pentool.config import EditorConfig, load_config, save_default_config

        path = os.path.join(temp_dir, "default.yaml")
        save_default_config(path)

        assert load_config(path) == EditorConfig()

    def test_config_drives_table_size(self, temp_dir):
        """Test that the editor samples with the configured size."""
        from pentool.config import load_config
        from pentool.editor import Editor
        from pentool.models import CubicBezier

        path = os.path.join(temp_dir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump({"sampling": {"lut_num_points": 16}}, f)

        editor = Editor(load_config(path))
        editor.spawn(CubicBezier.line([0, 0], [10, 0]))

        assert len(editor.curve(1).lut) == 16
