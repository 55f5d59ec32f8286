"""Tests for the curve store."""

import pytest


def make_curve(curve_id=0):
    from pentool.models import CubicBezier, Curve
    return Curve(curve_id=curve_id, positions=CubicBezier.line([0, 0], [10, 0]))


class TestCurveStore:
    """Tests for identity-keyed storage."""

    def test_insert_and_get(self):
        """Test that inserted curves are found under their id."""
        from pentool.store import CurveStore

        store = CurveStore()
        store.insert(4, make_curve())

        assert store.get(4).curve_id == 4
        assert 4 in store
        assert store.get(5) is None

    def test_get_mut_unknown(self):
        """Test that get_mut reports missing ids."""
        from pentool.errors import UnknownId
        from pentool.store import CurveStore

        with pytest.raises(UnknownId):
            CurveStore().get_mut(1)

    def test_insert_duplicate(self):
        """Test that an id cannot be inserted twice."""
        from pentool.errors import DuplicateId
        from pentool.store import CurveStore

        store = CurveStore()
        store.insert(1, make_curve())

        with pytest.raises(DuplicateId):
            store.insert(1, make_curve())

    def test_remove_unknown(self):
        """Test that removing a missing id fails."""
        from pentool.errors import UnknownId
        from pentool.store import CurveStore

        with pytest.raises(UnknownId):
            CurveStore().remove(3)

    def test_ids_never_reused(self):
        """Test that a removed id is not handed out again."""
        from pentool.store import CurveStore

        store = CurveStore()
        first = store.allocate_id()
        store.insert(first, make_curve())
        store.remove(first)

        assert store.allocate_id() == first + 1

    def test_location_index(self):
        """Test binding and dropping render locations."""
        from pentool.store import CurveStore

        store = CurveStore()
        store.insert(2, make_curve())
        store.bind_location(2, ("entity", 17))

        assert store.location_of(2) == ("entity", 17)

        store.remove(2)
        assert store.location_of(2) is None

    def test_iteration_sorted(self):
        """Test that ids iterate in ascending order."""
        from pentool.store import CurveStore

        store = CurveStore()
        for curve_id in (5, 1, 3):
            store.insert(curve_id, make_curve())

        assert list(store) == [1, 3, 5]
        assert [c.curve_id for c in store.curves()] == [1, 3, 5]
        assert len(store) == 3
