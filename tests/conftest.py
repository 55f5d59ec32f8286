"""Pytest fixtures for pentool tests."""

import tempfile

import pytest


def line_positions(start, end):
    """Straight cubic from start to end with controls at the thirds."""
    from pentool.models import CubicBezier
    return CubicBezier.line(start, end)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default editor configuration."""
    from pentool.config import EditorConfig
    return EditorConfig()


@pytest.fixture
def editor(default_config):
    """Empty editor with default configuration."""
    from pentool.editor import Editor
    return Editor(default_config)


@pytest.fixture
def chain_editor(editor):
    """
    Editor holding an A-B-C chain, A.end <-> B.start and B.end <-> C.start.

    Curves are 1 (A), 2 (B) and 3 (C), spawned and latched without history so
    each test starts from an empty log.
    """
    editor.spawn(line_positions([0, 0], [30, 0]), record=False)
    editor.spawn(line_positions([30, 0], [60, 0]), record=False)
    editor.spawn(line_positions([60, 0], [90, 0]), record=False)
    editor.graph.latch((1, "end"), (2, "start"))
    editor.graph.latch((2, "end"), (3, "start"))
    editor._refresh()
    editor.drain_events()
    return editor
