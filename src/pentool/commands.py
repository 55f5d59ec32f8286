"""
Command dispatch for pentool.

Edit intents arrive as plain dicts (from a JSON ops file or an input layer),
are validated into typed commands, and are applied one at a time.

Commands format:
[
    {"op": "spawn", "positions": [[0, 0], [1, 0], [2, 0], [3, 0]]},
    {"op": "latch", "a": {"curve_id": 1, "edge": "end"}, "b": {"curve_id": 2, "edge": "start"}},
    {"op": "move_anchor", "curve_id": 1, "anchor": "control_end", "position": [2, 1]},
    {"op": "undo"},
]
"""

from collections import deque
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from pentool.models import Anchor, AnchorEdge, CubicBezier
from pentool.tracer import get_tracer, trace


class EndpointRef(BaseModel):
    """One endpoint of one curve, as written in a command."""
    curve_id: int
    edge: AnchorEdge

    model_config = ConfigDict(extra="forbid")

    def as_tuple(self):
        return self.curve_id, self.edge


class SpawnCommand(BaseModel):
    op: Literal["spawn"] = "spawn"
    positions: Union[CubicBezier, List[List[float]]]
    curve_id: Optional[int] = None
    record: bool = True

    model_config = ConfigDict(extra="forbid")


class MoveAnchorCommand(BaseModel):
    op: Literal["move_anchor"] = "move_anchor"
    curve_id: int
    anchor: Anchor
    position: List[float] = Field(..., min_length=2, max_length=2)

    model_config = ConfigDict(extra="forbid")


class TranslateChainCommand(BaseModel):
    op: Literal["translate_chain"] = "translate_chain"
    curve_id: int
    delta: List[float] = Field(..., min_length=2, max_length=2)

    model_config = ConfigDict(extra="forbid")


class LatchCommand(BaseModel):
    op: Literal["latch"] = "latch"
    a: EndpointRef
    b: EndpointRef
    mirror: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class LatchNearestCommand(BaseModel):
    op: Literal["latch_nearest"] = "latch_nearest"
    curve_id: int
    edge: AnchorEdge

    model_config = ConfigDict(extra="forbid")


class UnlatchCommand(BaseModel):
    op: Literal["unlatch"] = "unlatch"
    a: EndpointRef
    b: EndpointRef

    model_config = ConfigDict(extra="forbid")


class DeleteCommand(BaseModel):
    op: Literal["delete"] = "delete"
    curve_ids: List[int]

    model_config = ConfigDict(extra="forbid")


class GroupCommand(BaseModel):
    op: Literal["group"] = "group"
    curve_ids: List[int]

    model_config = ConfigDict(extra="forbid")


class UngroupCommand(BaseModel):
    op: Literal["ungroup"] = "ungroup"
    curve_ids: List[int]

    model_config = ConfigDict(extra="forbid")


class DissolveGroupCommand(BaseModel):
    op: Literal["dissolve_group"] = "dissolve_group"
    group_id: int

    model_config = ConfigDict(extra="forbid")


class UndoCommand(BaseModel):
    op: Literal["undo"] = "undo"

    model_config = ConfigDict(extra="forbid")


class RedoCommand(BaseModel):
    op: Literal["redo"] = "redo"

    model_config = ConfigDict(extra="forbid")


Command = Annotated[
    Union[
        SpawnCommand, MoveAnchorCommand, TranslateChainCommand, LatchCommand,
        LatchNearestCommand, UnlatchCommand, DeleteCommand, GroupCommand,
        UngroupCommand, DissolveGroupCommand, UndoCommand, RedoCommand,
    ],
    Field(discriminator="op"),
]

_COMMANDS = TypeAdapter(List[Command])


def parse_commands(raw):
    """Validate a list of command dicts. Raises pydantic.ValidationError on bad input."""
    return _COMMANDS.validate_python(raw)


def dispatch(editor, command):
    """Apply one typed command to the editor and return its EditResult."""
    if isinstance(command, SpawnCommand):
        return editor.spawn(command.positions, curve_id=command.curve_id, record=command.record)

    elif isinstance(command, MoveAnchorCommand):
        return editor.move_anchor(command.curve_id, command.anchor, command.position)

    elif isinstance(command, TranslateChainCommand):
        return editor.translate_chain(command.curve_id, command.delta)

    elif isinstance(command, LatchCommand):
        return editor.latch(command.a.as_tuple(), command.b.as_tuple(), mirror=command.mirror)

    elif isinstance(command, LatchNearestCommand):
        return editor.latch_nearest(command.curve_id, command.edge)

    elif isinstance(command, UnlatchCommand):
        return editor.unlatch(command.a.as_tuple(), command.b.as_tuple())

    elif isinstance(command, DeleteCommand):
        return editor.delete(command.curve_ids)

    elif isinstance(command, GroupCommand):
        return editor.form_group(command.curve_ids)

    elif isinstance(command, UngroupCommand):
        return editor.ungroup(command.curve_ids)

    elif isinstance(command, DissolveGroupCommand):
        return editor.dissolve_group(command.group_id)

    elif isinstance(command, UndoCommand):
        return editor.undo()

    elif isinstance(command, RedoCommand):
        return editor.redo()

    raise TypeError(f"Unknown command: {type(command).__name__}")


@trace(label="apply_commands")
def apply_commands(editor, raw):
    """
    Parse and apply a list of commands in order.

    A failed command does not stop the run. Returns the EditResult of each
    command.
    """
    tracer = get_tracer()
    results = []

    for i, command in enumerate(parse_commands(raw)):
        with tracer.span(f"command_{i}", module="commands", op=command.op):
            result = dispatch(editor, command)
        if not result.ok:
            tracer.event(f"Command {i} ({command.op}) failed: {result.error}", level="WARN")
        results.append(result)

    return results


class CommandQueue:
    """
    Pending edit intents, drained one per tick.

    One command is fully applied before the next one is looked at.
    """

    def __init__(self, editor):
        self.editor = editor
        self._pending = deque()

    def __len__(self):
        return len(self._pending)

    def submit(self, command):
        """Queue a typed command or a command dict."""
        if isinstance(command, dict):
            command = parse_commands([command])[0]
        self._pending.append(command)

    def tick(self):
        """Apply the oldest pending command. Returns its EditResult, or None when idle."""
        if not self._pending:
            return None
        return dispatch(self.editor, self._pending.popleft())
