"""Tests for the tracer module."""

import numpy as np
import pytest


class TestSummarize:
    """Tests for object summarization."""

    def test_numpy_array_summary(self):
        """Test that numpy arrays are summarized with shape and type."""
        from pentool.tracer import summarize

        arr = np.zeros((200, 2), dtype=np.float64)
        summary = summarize(arr)

        assert "ndarray" in summary
        assert "200x2" in summary
        assert "float64" in summary

    def test_summary_capped_length(self):
        """Test that summary never exceeds max length."""
        from pentool.tracer import summarize

        large_dict = {f"key_{i}": f"value_{i}" for i in range(100)}
        summary = summarize(large_dict, max_len=200)

        assert len(summary) <= 200

    def test_small_id_list_spelled_out(self):
        """Test that short id lists are shown in full."""
        from pentool.tracer import summarize

        assert summarize([3, 1, 2]) == "list([3, 1, 2])"
        assert summarize({3, 1, 2}) == "set([1, 2, 3])"

    def test_long_list_summary(self):
        """Test list summarization."""
        from pentool.tracer import summarize

        summary = summarize(list(range(20)))

        assert "list" in summary
        assert "len=20" in summary

    def test_none_summary(self):
        """Test None summarization."""
        from pentool.tracer import summarize

        assert summarize(None) == "None"

    def test_history_action_summary(self):
        """Test that history actions show their kind and curve."""
        from pentool.models import Anchor, MovedAnchor
        from pentool.tracer import summarize

        action = MovedAnchor(
            curve_id=4, anchor=Anchor.START,
            previous_position=[0, 0], new_position=[1, 1],
        )

        assert summarize(action) == "MovedAnchor(moved_anchor:curve_id=4)"

    def test_curve_edge_summary(self):
        """Test that endpoints read as curve and edge."""
        from pentool.models import AnchorEdge, CurveEdge
        from pentool.tracer import summarize

        assert summarize(CurveEdge(2, AnchorEdge.END)) == "CurveEdge(curve_id=2,edge=end)"

    def test_graph_summary(self):
        """Test networkx graph summarization."""
        import networkx as nx

        from pentool.tracer import summarize

        graph = nx.MultiGraph()
        graph.add_edge(1, 2)

        assert summarize(graph) == "MultiGraph(nodes=2,edges=1)"


class TestTracerSpan:
    """Tests for tracer span functionality."""

    def test_span_nesting(self, capsys):
        """Test that spans produce start/end lines around events."""
        from pentool.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="INFO")
        tracer = get_tracer()

        with tracer.span("outer", module="test"):
            with tracer.span("inner", module="test"):
                tracer.event("inside")

        captured = capsys.readouterr()
        lines = captured.err.strip().split("\n")

        assert len(lines) >= 5

        configure_tracer(enabled=False)

    def test_tracer_disabled_no_output(self, capsys):
        """Test that disabled tracer produces no output."""
        from pentool.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=False)
        tracer = get_tracer()

        with tracer.span("test", module="test"):
            tracer.event("should not appear")

        captured = capsys.readouterr()
        assert captured.err == ""

    def test_failed_edit_logs_warning(self, capsys, editor):
        """Test that a refused edit shows up as a WARN event."""
        from pentool.tracer import configure_tracer

        configure_tracer(enabled=True, level="WARN")
        editor.undo()
        configure_tracer(enabled=False)

        captured = capsys.readouterr()
        assert "WARN" in captured.err
        assert "undo failed" in captured.err


class TestTraceDecorator:
    """Tests for the @trace decorator."""

    def test_decorator_runs_function(self):
        """Test that decorated function executes normally."""
        from pentool.tracer import configure_tracer, trace

        configure_tracer(enabled=False)

        @trace(label="test_func")
        def my_func(x):
            return x * 2

        assert my_func(5) == 10

    def test_decorator_with_exception(self):
        """Test that decorator re-raises exceptions."""
        from pentool.tracer import configure_tracer, trace

        configure_tracer(enabled=True, level="ERROR")

        @trace(label="failing_func", arg_names=["value"])
        def failing_func(value):
            raise ValueError("test error")

        with pytest.raises(ValueError):
            failing_func(value=3)

        configure_tracer(enabled=False)
