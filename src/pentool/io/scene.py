"""
Scene persistence for pentool.

A scene is the whole editor state as one pydantic model: curves with their
latch halves and group tags, groups, the history log and both id counters.
It round-trips through JSON so undo keeps working after a reload.
"""

import json
import os
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from pentool.editor import Editor
from pentool.events import CurveCreated, GroupFormed
from pentool.history import HistoryLog
from pentool.models import Curve, Group
from pentool.tracer import get_tracer, trace


class Scene(BaseModel):
    """Serializable snapshot of an editor."""
    curves: List[Curve] = Field(default_factory=list)
    groups: List[Group] = Field(default_factory=list)
    history: HistoryLog = Field(default_factory=HistoryLog)
    next_curve_id: int = 1
    next_group_id: int = 1

    model_config = ConfigDict(extra="forbid")


def snapshot_scene(editor):
    """Deep copy of the editor state as a Scene."""
    return Scene(
        curves=[curve.model_copy(deep=True) for curve in editor.store.curves()],
        groups=[group.model_copy(deep=True) for group in editor.groups.groups()],
        history=editor.history.model_copy(deep=True),
        next_curve_id=editor.store.next_id,
        next_group_id=editor.groups.next_id,
    )


@trace(label="restore_scene")
def restore_scene(scene, config=None):
    """
    Build an Editor from a Scene.

    Latches are checked for mirrors before the editor is handed back, a
    one-sided latch raises LatchCorruptionError. Sample tables are recomputed
    and creation events are queued for every curve and group.
    """
    tracer = get_tracer()
    editor = Editor(config)

    for curve in scene.curves:
        restored = curve.model_copy(deep=True)
        restored.dirty = True
        editor.store.insert(restored.curve_id, restored)
        editor.outbox.push(CurveCreated(curve_id=restored.curve_id))

    for group in scene.groups:
        restored = group.model_copy(deep=True)
        editor.groups.restore(restored)
        editor.outbox.push(GroupFormed(group_id=restored.group_id, members=list(restored.members)))

    editor.store.advance_to(scene.next_curve_id)
    editor.groups.advance_to(scene.next_group_id)
    editor.history = scene.history.model_copy(deep=True)

    editor.graph.verify()
    editor._refresh()

    tracer.event(
        f"Restored {len(editor.store)} curves, {len(editor.groups)} groups, "
        f"{len(editor.history)} history actions"
    )
    return editor


def save_scene(editor, path, indent=2):
    """Write the editor state to a JSON file."""
    tracer = get_tracer()

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot_scene(editor).model_dump(mode="json"), f, indent=indent)

    tracer.event(f"Saved scene: {path}")


def load_scene(path, config=None):
    """Read a JSON scene file and restore an Editor from it."""
    with open(path, "r", encoding="utf-8") as f:
        scene_data = json.load(f)

    return restore_scene(Scene.model_validate(scene_data), config)
