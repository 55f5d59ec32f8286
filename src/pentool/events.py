"""
Lifecycle events for the entity layer.

The core never touches render entities. It queues these messages and the
adapter drains them once per tick to spawn or despawn whatever it draws.
"""

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class CurveCreated(BaseModel):
    event: Literal["curve_created"] = "curve_created"
    curve_id: int

    model_config = ConfigDict(extra="forbid")


class CurveDestroyed(BaseModel):
    event: Literal["curve_destroyed"] = "curve_destroyed"
    curve_id: int

    model_config = ConfigDict(extra="forbid")


class GroupFormed(BaseModel):
    event: Literal["group_formed"] = "group_formed"
    group_id: int
    members: List[int]

    model_config = ConfigDict(extra="forbid")


class GroupDissolved(BaseModel):
    event: Literal["group_dissolved"] = "group_dissolved"
    group_id: int
    members: List[int]

    model_config = ConfigDict(extra="forbid")


LifecycleEvent = Annotated[
    Union[CurveCreated, CurveDestroyed, GroupFormed, GroupDissolved],
    Field(discriminator="event"),
]

_EVENT = TypeAdapter(LifecycleEvent)


class EventOutbox:
    """FIFO of lifecycle events waiting for the adapter."""

    def __init__(self):
        self._pending = []

    def __len__(self):
        return len(self._pending)

    def push(self, event):
        """Queue an event model, or a dict tagged with `event`."""
        self._pending.append(_EVENT.validate_python(event))

    def drain(self):
        """Return every queued event in emission order and clear the queue."""
        events, self._pending = self._pending, []
        return events
