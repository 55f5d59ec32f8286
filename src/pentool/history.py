"""
Linear undo/redo history for pentool.

The log holds structural deltas, not snapshots. Undo applies the inverse of
the action under the cursor, redo re-applies the next one; both drive the same
editor mutation paths a live edit uses, with recording switched off, so the
side effects of a replay match the original edit.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from pentool.errors import HistoryAtBottom, HistoryAtTop
from pentool.models import (
    DeletedCurve, HistoryAction, Latched, MovedAnchor, MovedChain, SpawnedCurve, Unlatched,
)
from pentool.tracer import get_tracer, trace


class HistoryLog(BaseModel):
    """
    Ordered action log with a cursor.

    `index` is the position of the last applied action, -1 when everything
    has been undone.
    """
    actions: List[HistoryAction] = Field(default_factory=list)
    index: int = -1

    model_config = ConfigDict(extra="forbid")

    def __len__(self):
        return len(self.actions)

    @property
    def at_bottom(self):
        return self.index == -1

    @property
    def at_top(self):
        return self.index + 1 > len(self.actions) - 1

    def record(self, action):
        """Record a single action."""
        self.record_batch([action])

    def record_batch(self, actions):
        """
        Record the actions of one logical edit.

        A tail branching away from the cursor is discarded once, before the
        first action, so siblings appended by the same edit survive.
        """
        actions = list(actions)
        if not actions:
            return

        if self.index != len(self.actions) - 1:
            dropped = len(self.actions) - (self.index + 1)
            self.actions = self.actions[:self.index + 1]
            get_tracer().event(f"Discarded {dropped} redo actions")

        for action in actions:
            self.actions.append(action)
            self.index += 1

    def current(self):
        """Action undo would revert."""
        if self.at_bottom:
            raise HistoryAtBottom(f"Undo has reached the end of the history: {self.index}")
        return self.actions[self.index]

    def upcoming(self):
        """Action redo would apply."""
        if self.at_top:
            raise HistoryAtTop("Redo has reached the top of the history", index=self.index)
        return self.actions[self.index + 1]


def _revert(editor, action):
    """Apply the inverse of an action. Returns the changed curve ids."""
    if isinstance(action, MovedAnchor):
        return editor._apply_move(action, forward=False)

    if isinstance(action, MovedChain):
        return editor._translate(action.curve_ids, [-action.delta[0], -action.delta[1]])

    if isinstance(action, SpawnedCurve):
        # a redo brings the curve back as it is now, group tag included
        action.snapshot = editor._snapshot(action.curve_id)
        return editor._remove(action.curve_id)

    if isinstance(action, DeletedCurve):
        return editor._materialize(action.curve_id, action.snapshot)

    if isinstance(action, Latched):
        a, b = action.pair
        editor.graph.unlatch(a, b)
        return [a.curve_id, b.curve_id]

    if isinstance(action, Unlatched):
        a, b = action.pair
        editor.graph.latch(a, b)
        return [a.curve_id, b.curve_id]

    raise TypeError(f"Unknown history action: {type(action).__name__}")


def _replay(editor, action):
    """Apply an action forward. Returns the changed curve ids."""
    if isinstance(action, MovedAnchor):
        return editor._apply_move(action)

    if isinstance(action, MovedChain):
        return editor._translate(action.curve_ids, action.delta)

    if isinstance(action, SpawnedCurve):
        return editor._materialize(action.curve_id, action.snapshot)

    if isinstance(action, DeletedCurve):
        # same path as a live delete: select the target, then delete it
        editor.select([action.curve_id])
        return editor._delete_selected(from_redo=True)

    if isinstance(action, Latched):
        a, b = action.pair
        editor.graph.latch(a, b)
        return [a.curve_id, b.curve_id]

    if isinstance(action, Unlatched):
        a, b = action.pair
        editor.graph.unlatch(a, b)
        return [a.curve_id, b.curve_id]

    raise TypeError(f"Unknown history action: {type(action).__name__}")


@trace(label="undo")
def undo(editor):
    """
    Revert the action under the cursor and step the cursor back.

    Raises HistoryAtBottom when there is nothing to undo. A failing revert
    leaves the cursor where it was.
    """
    history = editor.history
    action = history.current()
    get_tracer().event(f"Undoing {action.kind}", action=action)

    changed = _revert(editor, action)
    history.index -= 1
    return changed


@trace(label="redo")
def redo(editor):
    """
    Re-apply the action after the cursor and step the cursor forward.

    Raises HistoryAtTop when there is nothing to redo.
    """
    history = editor.history
    action = history.upcoming()
    get_tracer().event(f"Redoing {action.kind}", action=action)

    changed = _replay(editor, action)
    history.index += 1
    return changed
