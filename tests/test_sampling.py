"""Tests for curve and chain sample tables."""

import numpy as np
import pytest


class TestEvaluate:
    """Tests for bezier evaluation."""

    def test_endpoints(self):
        """Test that t=0 and t=1 hit the endpoints."""
        from pentool.models import CubicBezier
        from pentool.sampling import evaluate_bezier

        bezier = CubicBezier(p0=[0, 0], p1=[0, 10], p2=[10, 10], p3=[10, 0])

        assert evaluate_bezier(bezier, 0.0) == pytest.approx([0.0, 0.0])
        assert evaluate_bezier(bezier, 1.0) == pytest.approx([10.0, 0.0])
        assert evaluate_bezier(bezier, 0.5) == pytest.approx([5.0, 7.5])

    def test_array_input(self):
        """Test that an array of t gives an (n, 2) array."""
        from pentool.models import CubicBezier
        from pentool.sampling import evaluate_bezier

        bezier = CubicBezier.line([0, 0], [9, 0])
        points = evaluate_bezier(bezier, np.linspace(0, 1, 4))

        assert points.shape == (4, 2)
        assert points[:, 0] == pytest.approx([0, 3, 6, 9])


class TestTables:
    """Tests for arc-length tables."""

    def test_curve_table_even_spacing(self):
        """Test that a straight curve's table is evenly spaced."""
        from pentool.models import CubicBezier
        from pentool.sampling import compute_curve_table

        table, length = compute_curve_table(CubicBezier.line([0, 0], [100, 0]), 11)

        assert length == pytest.approx(100.0)
        assert [p[0] for p in table] == pytest.approx([0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100])

    def test_degenerate_curve(self):
        """Test that a zero-length curve repeats its point."""
        from pentool.models import CubicBezier
        from pentool.sampling import compute_curve_table

        bezier = CubicBezier(p0=[3, 4], p1=[3, 4], p2=[3, 4], p3=[3, 4])
        table, length = compute_curve_table(bezier, 5)

        assert length == 0.0
        assert table == [[3.0, 4.0]] * 5

    def test_chain_table_follows_reversed_links(self):
        """Test that a reversed link is walked end to start."""
        from pentool.models import ChainLink, CubicBezier, Curve
        from pentool.sampling import compute_chain_table

        curves = {
            1: Curve(curve_id=1, positions=CubicBezier.line([0, 0], [10, 0])),
            2: Curve(curve_id=2, positions=CubicBezier.line([20, 0], [10, 0])),
        }
        chain = [ChainLink(curve_id=1), ChainLink(curve_id=2, reversed=True)]

        table, length = compute_chain_table(curves, chain, 21)

        assert length == pytest.approx(20.0)
        assert table[0] == pytest.approx([0.0, 0.0])
        assert table[-1] == pytest.approx([20.0, 0.0])
        assert table[10] == pytest.approx([10.0, 0.0])

    def test_empty_chain(self):
        """Test that an empty chain has an empty table."""
        from pentool.sampling import compute_chain_table

        assert compute_chain_table({}, [], 10) == ([], 0.0)
