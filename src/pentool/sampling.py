"""
Sample tables for curves and chains.

A sample (look-up) table is a list of [x, y] points spaced evenly by arc
length, plus the total length. Curves cache their own table; groups cache the
concatenation of their members' tables in chain order.
"""

import numpy as np

from pentool.tracer import get_tracer, trace


def _bernstein(i, t):
    """Compute Bernstein basis polynomial value B_i,3(t)."""
    if i == 0:
        return (1 - t) ** 3
    elif i == 1:
        return 3 * (1 - t) ** 2 * t
    elif i == 2:
        return 3 * (1 - t) * t ** 2
    else:
        return t ** 3


def evaluate_bezier(bezier, t):
    """
    Evaluate a cubic Bezier at parameter t.

    t may be a scalar (returns [x, y]) or an array (returns an (n, 2) array).
    """
    control = np.array([bezier.p0, bezier.p1, bezier.p2, bezier.p3], dtype=float)

    if np.isscalar(t):
        weights = np.array([_bernstein(i, t) for i in range(4)])
        return (weights @ control).tolist()

    t = np.asarray(t, dtype=float)
    weights = np.stack([_bernstein(i, t) for i in range(4)], axis=1)
    return weights @ control


def resample_polyline(points, num_points):
    """
    Resample a polyline to num_points evenly spaced by arc length.

    Returns (table, length). A zero-length polyline collapses to its first
    point repeated.
    """
    points = np.asarray(points, dtype=float)
    if len(points) == 0 or num_points <= 0:
        return [], 0.0

    seg_lengths = np.linalg.norm(np.diff(points, axis=0), axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(seg_lengths)])
    length = float(cumulative[-1])

    if np.isclose(length, 0.0):
        return [points[0].tolist() for _ in range(num_points)], 0.0

    targets = np.linspace(0.0, length, num_points)
    xs = np.interp(targets, cumulative, points[:, 0])
    ys = np.interp(targets, cumulative, points[:, 1])
    return np.column_stack([xs, ys]).tolist(), length


def compute_curve_table(bezier, num_points, dense_samples=256):
    """Arc-length sample table of one curve."""
    dense = evaluate_bezier(bezier, np.linspace(0.0, 1.0, max(dense_samples, 2)))
    return resample_polyline(dense, num_points)


@trace(label="compute_chain_table")
def compute_chain_table(curves, chain, num_points, dense_samples=256):
    """
    Aggregate sample table of a chain.

    Args:
        curves: mapping of curve id to Curve
        chain: ordered ChainLink list, `reversed` links are walked end to start
        num_points: size of the resulting table

    Returns:
        tuple of (table, length)
    """
    tracer = get_tracer()

    walked = []
    for link in chain:
        curve = curves[link.curve_id]
        dense = evaluate_bezier(curve.positions, np.linspace(0.0, 1.0, max(dense_samples, 2)))
        if link.reversed:
            dense = dense[::-1]
        # latched joints coincide, drop the duplicate
        if walked and np.allclose(walked[-1][-1], dense[0]):
            dense = dense[1:]
        if len(dense):
            walked.append(dense)

    if not walked:
        return [], 0.0

    table, length = resample_polyline(np.concatenate(walked), num_points)
    tracer.event(f"Chain table: {len(chain)} curves, length={length:.2f}")
    return table, length
