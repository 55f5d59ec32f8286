"""
Curve store for pentool.

Identity-keyed storage of curve records plus the id -> location index the
entity layer binds render handles into. Ids come from a monotonic counter so an
id that history still refers to is never handed out again.
"""

from pentool.errors import DuplicateId, UnknownId
from pentool.tracer import get_tracer


class CurveStore:
    """Owns every live Curve and the index of where each one is rendered."""

    def __init__(self, next_id=1):
        self._curves = {}
        self._locations = {}
        self._next_id = next_id

    def __contains__(self, curve_id):
        return curve_id in self._curves

    def __iter__(self):
        return iter(sorted(self._curves))

    def __len__(self):
        return len(self._curves)

    @property
    def next_id(self):
        return self._next_id

    def ids(self):
        return sorted(self._curves)

    def curves(self):
        return [self._curves[cid] for cid in sorted(self._curves)]

    def advance_to(self, next_id):
        """Move the id counter forward, never back."""
        self._next_id = max(self._next_id, next_id)

    def allocate_id(self):
        curve_id = self._next_id
        self._next_id += 1
        return curve_id

    def get(self, curve_id):
        """Return the curve or None."""
        return self._curves.get(curve_id)

    def get_mut(self, curve_id):
        """Return the curve for mutation, raising UnknownId when it is missing."""
        curve = self._curves.get(curve_id)
        if curve is None:
            raise UnknownId(f"Unknown curve id: {curve_id}", curve_id=curve_id)
        return curve

    def insert(self, curve_id, curve):
        if curve_id in self._curves:
            raise DuplicateId(f"Curve id already in use: {curve_id}", curve_id=curve_id)

        curve.curve_id = curve_id
        self._curves[curve_id] = curve
        if curve_id >= self._next_id:
            self._next_id = curve_id + 1

        get_tracer().event(f"Inserted curve {curve_id}", level="DEBUG")
        return curve

    def remove(self, curve_id):
        """
        Remove a curve and drop it from the location index.

        Latch and group cascades are the editor's job, they need history.
        """
        if curve_id not in self._curves:
            raise UnknownId(f"Unknown curve id: {curve_id}", curve_id=curve_id)

        self._locations.pop(curve_id, None)
        curve = self._curves.pop(curve_id)

        get_tracer().event(f"Removed curve {curve_id}", level="DEBUG")
        return curve

    def bind_location(self, curve_id, handle):
        """Record where the entity layer materialized a curve."""
        self.get_mut(curve_id)
        self._locations[curve_id] = handle

    def location_of(self, curve_id):
        return self._locations.get(curve_id)
