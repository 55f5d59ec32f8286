"""
Latch graph for pentool.

A latch pins one curve endpoint to another. It is stored as two mirrored
LatchData entries, one on each curve, and every operation here installs or
removes both halves together. A half without its mirror is corruption: it is
reported with LatchCorruptionError and never patched up.
"""

import numpy as np

from pentool.errors import (
    AlreadyLatched, InvalidLatch, LatchCorruptionError, NotLatched,
)
from pentool.models import Anchor, AnchorEdge, CurveEdge, LatchData, Latched, Unlatched
from pentool.tracer import get_tracer


def as_curve_edge(value):
    """Accept a CurveEdge, a (curve_id, edge) pair or a {curve_id, edge} dict."""
    if isinstance(value, dict):
        return CurveEdge(int(value["curve_id"]), AnchorEdge(value["edge"]))
    curve_id, edge = value
    # control points latch through the edge they hang off
    if edge in (Anchor.CONTROL_START.value, Anchor.CONTROL_END.value):
        edge = Anchor(edge).edge
    return CurveEdge(int(curve_id), AnchorEdge(edge))


class LatchGraph:
    """Symmetric endpoint relation over a CurveStore."""

    def __init__(self, store):
        self.store = store

    def partner_of(self, curve_id, edge):
        """Return the CurveEdge latched to (curve_id, edge), or None."""
        curve = self.store.get_mut(curve_id)
        latch = curve.latches.get(AnchorEdge(edge))
        if latch is None:
            return None
        self.check_mirror(curve_id, edge)
        return CurveEdge(latch.latched_to_id, latch.partners_edge)

    def check_mirror(self, curve_id, edge):
        """Raise LatchCorruptionError unless the entry at (curve_id, edge) has its exact mirror."""
        edge = AnchorEdge(edge)
        latch = self.store.get_mut(curve_id).latches.get(edge)
        if latch is None:
            return

        if latch.self_edge != edge:
            raise LatchCorruptionError(curve_id, edge, f"entry filed under {edge.value} claims {latch.self_edge.value}")

        partner = self.store.get(latch.latched_to_id)
        if partner is None:
            raise LatchCorruptionError(curve_id, edge, f"partner {latch.latched_to_id} does not exist")

        mirror = partner.latches.get(latch.partners_edge)
        if mirror != latch.mirrored(curve_id):
            raise LatchCorruptionError(curve_id, edge, f"partner {latch.latched_to_id} holds {mirror}")

    def verify(self):
        """Check every entry in the store."""
        for curve in self.store.curves():
            for edge in list(curve.latches):
                self.check_mirror(curve.curve_id, edge)

    def pairs(self):
        """Each latch pair once, as (CurveEdge, CurveEdge) with the smaller side first."""
        seen = set()
        result = []
        for curve in self.store.curves():
            for edge, latch in sorted(curve.latches.items(), key=lambda item: item[0].value):
                a = CurveEdge(curve.curve_id, edge)
                b = CurveEdge(latch.latched_to_id, latch.partners_edge)
                key = frozenset([a, b])
                if key in seen:
                    continue
                seen.add(key)
                result.append((a, b))
        return result

    def ensure_latchable(self, a, b):
        """Raise unless endpoints a and b exist and are both free. Returns both curves."""
        a, b = as_curve_edge(a), as_curve_edge(b)
        curve_a = self.store.get_mut(a.curve_id)
        curve_b = self.store.get_mut(b.curve_id)

        if a == b:
            raise InvalidLatch(f"Cannot latch {a.curve_id}.{a.edge.value} to itself", a=a)

        if curve_a.is_latched(a.edge) or curve_b.is_latched(b.edge):
            raise AlreadyLatched(
                f"Cannot latch {a.curve_id}.{a.edge.value} to {b.curve_id}.{b.edge.value}: edge already latched",
                a=a, b=b,
            )

        return curve_a, curve_b

    def latch(self, a, b):
        """
        Install a mirrored latch between endpoints a and b.

        Returns the Latched history action. Positions are left alone, snapping
        is the editor's job so that it can be recorded.
        """
        a, b = as_curve_edge(a), as_curve_edge(b)
        curve_a, curve_b = self.ensure_latchable(a, b)

        half = LatchData(latched_to_id=b.curve_id, self_edge=a.edge, partners_edge=b.edge)
        curve_a.latches[a.edge] = half
        curve_b.latches[b.edge] = half.mirrored(a.curve_id)
        curve_a.dirty = True
        curve_b.dirty = True

        get_tracer().event(f"Latched {a.curve_id}.{a.edge.value} <-> {b.curve_id}.{b.edge.value}")
        return Latched(a_id=a.curve_id, a_edge=a.edge, b_id=b.curve_id, b_edge=b.edge)

    def unlatch(self, a, b):
        """Remove the mirrored latch between a and b. Returns the Unlatched action."""
        a, b = as_curve_edge(a), as_curve_edge(b)
        curve_a = self.store.get_mut(a.curve_id)
        self.store.get_mut(b.curve_id)

        if self.partner_of(a.curve_id, a.edge) != b:
            raise NotLatched(
                f"{a.curve_id}.{a.edge.value} is not latched to {b.curve_id}.{b.edge.value}",
                a=a, b=b,
            )

        curve_b = self.store.get_mut(b.curve_id)
        del curve_a.latches[a.edge]
        # a self-latch from start to end lives on one curve, both halves go
        curve_b.latches.pop(b.edge, None)
        curve_a.dirty = True
        curve_b.dirty = True

        get_tracer().event(f"Unlatched {a.curve_id}.{a.edge.value} <-> {b.curve_id}.{b.edge.value}")
        return Unlatched(a_id=a.curve_id, a_edge=a.edge, b_id=b.curve_id, b_edge=b.edge)

    def latches_of(self, curve_id):
        """Unlatched actions that would detach every partner of a curve, seen from that curve."""
        curve = self.store.get_mut(curve_id)
        actions = []
        for edge in (AnchorEdge.START, AnchorEdge.END):
            latch = curve.latches.get(edge)
            if latch is None:
                continue
            self.check_mirror(curve_id, edge)
            actions.append(Unlatched(
                a_id=curve_id, a_edge=edge,
                b_id=latch.latched_to_id, b_edge=latch.partners_edge,
            ))
        return actions

    def find_candidate(self, curve_id, edge, max_distance):
        """
        Nearest still-unlatched endpoint of another curve within max_distance.

        Returns a CurveEdge or None. The moving endpoint itself must be free.
        """
        edge = AnchorEdge(edge)
        curve = self.store.get_mut(curve_id)
        if curve.is_latched(edge):
            return None

        position = np.array(curve.positions.get(Anchor.for_edge(edge)))
        best = None
        best_dist = float("inf")

        for other in self.store.curves():
            if other.curve_id == curve_id:
                continue
            for other_edge in (AnchorEdge.START, AnchorEdge.END):
                if other.is_latched(other_edge):
                    continue
                other_pos = np.array(other.positions.get(Anchor.for_edge(other_edge)))
                dist = float(np.linalg.norm(position - other_pos))
                if dist <= max_distance and (best is None or dist < best_dist):
                    best = CurveEdge(other.curve_id, other_edge)
                    best_dist = dist

        return best
