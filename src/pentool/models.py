"""
Pydantic data models for the pentool curve graph.

Curves, latches, groups and history actions all flow through these validated
models so that the store, the history log and saved scenes share one shape.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AnchorEdge(str, Enum):
    """The two latch-capable endpoints of a curve."""
    START = "start"
    END = "end"

    @property
    def opposite(self):
        return AnchorEdge.END if self is AnchorEdge.START else AnchorEdge.START


class Anchor(str, Enum):
    """Any draggable point of a curve: both endpoints and both control points."""
    START = "start"
    END = "end"
    CONTROL_START = "control_start"
    CONTROL_END = "control_end"

    @property
    def edge(self):
        """Edge this anchor belongs to. Control points resolve to the endpoint they hang off."""
        if self in (Anchor.START, Anchor.CONTROL_START):
            return AnchorEdge.START
        return AnchorEdge.END

    @property
    def is_control(self):
        return self in (Anchor.CONTROL_START, Anchor.CONTROL_END)

    @classmethod
    def for_edge(cls, edge):
        return cls.START if AnchorEdge(edge) is AnchorEdge.START else cls.END

    @classmethod
    def control_for(cls, edge):
        return cls.CONTROL_START if AnchorEdge(edge) is AnchorEdge.START else cls.CONTROL_END


# Anchor -> CubicBezier field name
_ANCHOR_FIELDS = {
    Anchor.START: "p0",
    Anchor.CONTROL_START: "p1",
    Anchor.CONTROL_END: "p2",
    Anchor.END: "p3",
}


class CubicBezier(BaseModel):
    """A single cubic Bezier curve segment."""
    p0: List[float] = Field(..., min_length=2, max_length=2)  # start point
    p1: List[float] = Field(..., min_length=2, max_length=2)  # control point 1
    p2: List[float] = Field(..., min_length=2, max_length=2)  # control point 2
    p3: List[float] = Field(..., min_length=2, max_length=2)  # end point

    def get(self, anchor):
        return list(getattr(self, _ANCHOR_FIELDS[Anchor(anchor)]))

    def set(self, anchor, position):
        setattr(self, _ANCHOR_FIELDS[Anchor(anchor)], [float(position[0]), float(position[1])])

    def opposite_control(self, edge):
        """Reflection of the edge's control point through the edge anchor."""
        anchor = self.get(Anchor.for_edge(edge))
        control = self.get(Anchor.control_for(edge))
        return [2 * anchor[0] - control[0], 2 * anchor[1] - control[1]]

    def translated(self, delta):
        dx, dy = delta
        return CubicBezier(
            p0=[self.p0[0] + dx, self.p0[1] + dy],
            p1=[self.p1[0] + dx, self.p1[1] + dy],
            p2=[self.p2[0] + dx, self.p2[1] + dy],
            p3=[self.p3[0] + dx, self.p3[1] + dy],
        )

    @classmethod
    def line(cls, start, end):
        """Straight segment with controls at one and two thirds."""
        sx, sy = start
        ex, ey = end
        return cls(
            p0=[sx, sy],
            p1=[sx + (ex - sx) / 3, sy + (ey - sy) / 3],
            p2=[sx + 2 * (ex - sx) / 3, sy + 2 * (ey - sy) / 3],
            p3=[ex, ey],
        )


class CurveEdge(NamedTuple):
    """One endpoint of one curve."""
    curve_id: int
    edge: AnchorEdge


class LatchData(BaseModel):
    """
    One directed half of a latch.

    The partner curve always holds the mirror entry under `partners_edge`,
    pointing back under `self_edge`.
    """
    latched_to_id: int
    self_edge: AnchorEdge
    partners_edge: AnchorEdge

    model_config = ConfigDict(extra="forbid")

    def mirrored(self, self_id):
        return LatchData(
            latched_to_id=self_id,
            self_edge=self.partners_edge,
            partners_edge=self.self_edge,
        )


class Curve(BaseModel):
    """A bezier curve record held by the store."""
    curve_id: int
    positions: CubicBezier
    latches: Dict[AnchorEdge, LatchData] = Field(default_factory=dict)
    group: Optional[int] = None
    lut: List[List[float]] = Field(default_factory=list)
    length: float = 0.0
    dirty: bool = True

    model_config = ConfigDict(extra="forbid")

    def is_latched(self, edge):
        return AnchorEdge(edge) in self.latches

    def snapshot(self):
        return CurveSnapshot(positions=self.positions.model_copy(deep=True), group=self.group)


class CurveSnapshot(BaseModel):
    """
    Body of a curve as stored in history. Latches are restored by their own entries.

    `group_members` lists the group as it was, so a restore can rebuild a group
    the removal dissolved.
    """
    positions: CubicBezier
    group: Optional[int] = None
    group_members: List[int] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ChainLink(BaseModel):
    """A curve in chain order, `reversed` when walked from end to start."""
    curve_id: int
    reversed: bool = False

    model_config = ConfigDict(extra="forbid")


class Group(BaseModel):
    """A connected chain of curves treated as one compound shape."""
    group_id: int
    members: List[int] = Field(default_factory=list)
    chain: List[ChainLink] = Field(default_factory=list)
    lut: List[List[float]] = Field(default_factory=list)
    length: float = 0.0
    dirty: bool = True

    model_config = ConfigDict(extra="forbid")


# History actions

class AnchorShift(BaseModel):
    """An anchor dragged along by a move: the edge's control, or the latched partner's points."""
    curve_id: int
    anchor: Anchor
    previous_position: List[float]
    new_position: List[float]

    model_config = ConfigDict(extra="forbid")


class MovedAnchor(BaseModel):
    kind: Literal["moved_anchor"] = "moved_anchor"
    curve_id: int
    anchor: Anchor
    previous_position: List[float]
    new_position: List[float]
    carried: List[AnchorShift] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class MovedChain(BaseModel):
    kind: Literal["moved_chain"] = "moved_chain"
    curve_ids: List[int]
    delta: List[float]

    model_config = ConfigDict(extra="forbid")


class SpawnedCurve(BaseModel):
    kind: Literal["spawned_curve"] = "spawned_curve"
    curve_id: int
    snapshot: CurveSnapshot

    model_config = ConfigDict(extra="forbid")


class DeletedCurve(BaseModel):
    kind: Literal["deleted_curve"] = "deleted_curve"
    curve_id: int
    snapshot: CurveSnapshot

    model_config = ConfigDict(extra="forbid")


class Latched(BaseModel):
    kind: Literal["latched"] = "latched"
    a_id: int
    a_edge: AnchorEdge
    b_id: int
    b_edge: AnchorEdge

    model_config = ConfigDict(extra="forbid")

    @property
    def pair(self):
        return CurveEdge(self.a_id, self.a_edge), CurveEdge(self.b_id, self.b_edge)


class Unlatched(BaseModel):
    kind: Literal["unlatched"] = "unlatched"
    a_id: int
    a_edge: AnchorEdge
    b_id: int
    b_edge: AnchorEdge

    model_config = ConfigDict(extra="forbid")

    @property
    def pair(self):
        return CurveEdge(self.a_id, self.a_edge), CurveEdge(self.b_id, self.b_edge)


HistoryAction = Annotated[
    Union[MovedAnchor, MovedChain, SpawnedCurve, DeletedCurve, Latched, Unlatched],
    Field(discriminator="kind"),
]


class EditResult(BaseModel):
    """Outcome of one edit intent, with the ids the caller should refresh."""
    ok: bool = True
    error: Optional[str] = None
    message: str = ""
    changed_curves: List[int] = Field(default_factory=list)
    changed_groups: List[int] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def success(cls, changed_curves=(), changed_groups=(), message=""):
        return cls(
            changed_curves=sorted(set(changed_curves)),
            changed_groups=sorted(set(changed_groups)),
            message=message,
        )

    @classmethod
    def failure(cls, error):
        return cls(ok=False, error=error.kind.value, message=str(error))


# Severity / report models used by integrity checks

class Severity(str, Enum):
    """Severity levels for integrity checks."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class CheckResult(BaseModel):
    """Result of a single integrity check."""
    rule_id: str
    severity: Severity
    passed: bool
    message: str
    evidence: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ValidationReport(BaseModel):
    """Collection of integrity check results."""
    checks: List[CheckResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def has_errors(self):
        """Check if any errors exist."""
        return any(c.severity == Severity.ERROR and not c.passed for c in self.checks)

    @property
    def error_count(self):
        """Count of failed error-level checks."""
        return sum(1 for c in self.checks if c.severity == Severity.ERROR and not c.passed)

    @property
    def warning_count(self):
        """Count of failed warning-level checks."""
        return sum(1 for c in self.checks if c.severity == Severity.WARN and not c.passed)


def coincident(p, q, tolerance=1e-9):
    """Check whether two [x, y] points are the same position."""
    return abs(p[0] - q[0]) <= tolerance and abs(p[1] - q[1]) <= tolerance
