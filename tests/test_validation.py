"""Tests for integrity checks and report output."""

import os

from conftest import line_positions


def check_by_id(report, rule_id):
    return next(c for c in report.checks if c.rule_id == rule_id)


class TestIntegrityChecks:
    """Tests for the individual rules."""

    def test_clean_editor_passes(self, chain_editor):
        """Test that a consistent editor passes every check."""
        from pentool.validate.rules import run_integrity_checks

        chain_editor.form_group({1, 2, 3})
        report = run_integrity_checks(chain_editor)

        assert all(c.passed for c in report.checks)
        assert len(report.checks) == 6

    def test_no_errors_after_edit_sequence(self, chain_editor):
        """Test that the report stays error-free through edits, undos and redos."""
        from pentool.validate.rules import run_integrity_checks

        steps = [
            lambda e: e.form_group({1, 2, 3}),
            lambda e: e.move_anchor(2, "end", [64, 4]),
            lambda e: e.spawn(line_positions([100, 0], [120, 0])),
            lambda e: e.latch((4, "start"), (3, "end")),
            lambda e: e.delete([2]),
            lambda e: e.undo(),
            lambda e: e.undo(),
            lambda e: e.redo(),
            lambda e: e.translate_chain(4, [0, 5]),
        ]

        for step in steps:
            assert step(chain_editor).ok
            report = run_integrity_checks(chain_editor)
            assert not report.has_errors

    def test_broken_mirror_reported(self, chain_editor):
        """Test that a one-sided latch is an error, not an exception."""
        from pentool.models import AnchorEdge
        from pentool.validate.rules import run_integrity_checks

        del chain_editor.curve(2).latches[AnchorEdge.START]
        report = run_integrity_checks(chain_editor)

        check = check_by_id(report, "latch_mirror")
        assert not check.passed
        assert report.has_errors

    def test_latch_apart_warns(self, editor):
        """Test that latched endpoints apart are a warning."""
        from pentool.validate.rules import run_integrity_checks

        editor.spawn(line_positions([0, 0], [10, 0]))
        editor.spawn(line_positions([12, 0], [20, 0]))
        # latch straight on the graph, which does not snap
        editor.graph.latch((1, "end"), (2, "start"))
        editor._refresh()

        report = run_integrity_checks(editor)

        assert not check_by_id(report, "latch_coincidence").passed
        assert report.warning_count == 1
        assert not report.has_errors

    def test_split_group_warns(self, chain_editor):
        """Test that unlatching inside a group leaves a split group flagged."""
        from pentool.validate.rules import run_integrity_checks

        chain_editor.form_group({1, 2, 3})
        chain_editor.unlatch((1, "end"), (2, "start"))

        report = run_integrity_checks(chain_editor)

        assert not check_by_id(report, "group_connectivity").passed
        assert not report.has_errors

    def test_stale_table_warns(self, chain_editor):
        """Test that a curve moved behind the editor's back has a stale table."""
        from pentool.validate.rules import run_integrity_checks

        chain_editor.curve(1).positions.set("start", [-20, 0])
        report = run_integrity_checks(chain_editor)

        assert not check_by_id(report, "table_freshness").passed

    def test_cursor_out_of_range(self, chain_editor):
        """Test that a cursor past the log is an error."""
        from pentool.validate.rules import run_integrity_checks

        chain_editor.history.index = 4
        report = run_integrity_checks(chain_editor)

        assert not check_by_id(report, "history_cursor").passed
        assert report.error_count == 1


class TestReport:
    """Tests for report rendering."""

    def test_format_report(self, chain_editor):
        """Test that the summary lists every check."""
        from pentool.validate.report import format_report
        from pentool.validate.rules import run_integrity_checks

        text = format_report(run_integrity_checks(chain_editor))

        assert "Total checks: 6" in text
        assert "[PASS][ERROR] latch_mirror" in text

    def test_write_report(self, chain_editor, temp_dir):
        """Test that JSON and text files are written."""
        from pentool.validate.report import write_report
        from pentool.validate.rules import run_integrity_checks

        json_path, summary_path = write_report(run_integrity_checks(chain_editor), temp_dir)

        assert os.path.exists(json_path)
        assert os.path.exists(summary_path)
