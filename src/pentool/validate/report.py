"""
Integrity report rendering for pentool.

Turns a ValidationReport into a human-readable summary and optionally writes
it next to a JSON dump.
"""

import json
import os

from pentool.tracer import get_tracer


def format_check_result(check):
    """Format a single check result for display."""
    status = "PASS" if check.passed else "FAIL"
    severity = check.severity.value.upper()
    return f"[{status}][{severity}] {check.rule_id}: {check.message}"


def format_report(report):
    """Render the whole report as text, failed checks first."""
    lines = ["pentool integrity report", "=" * 40, ""]

    passed = [c for c in report.checks if c.passed]
    failed = [c for c in report.checks if not c.passed]

    lines.append(f"Total checks: {len(report.checks)}")
    lines.append(f"Passed: {len(passed)}")
    lines.append(f"Failed: {len(failed)}")
    lines.append("")

    if failed:
        lines.append("ISSUES:")
        lines.append("-" * 40)
        for check in failed:
            severity_mark = "[ERROR]" if check.severity.value == "error" else "[WARN]"
            lines.append(f"{severity_mark} {check.rule_id}: {check.message}")
        lines.append("")

    lines.append("ALL CHECKS:")
    lines.append("-" * 40)
    for check in report.checks:
        lines.append(format_check_result(check))

    return "\n".join(lines)


def write_report(report, out_dir):
    """
    Write report files.

    Creates:
    - integrity_report.json: Full check results
    - integrity_summary.txt: Human-readable summary
    """
    tracer = get_tracer()
    os.makedirs(out_dir, exist_ok=True)

    report_path = os.path.join(out_dir, "integrity_report.json")
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(report.model_dump(mode="json"), f, indent=2)

    summary_path = os.path.join(out_dir, "integrity_summary.txt")
    with open(summary_path, "w", encoding="utf-8") as f:
        f.write(format_report(report))

    tracer.event(f"Report saved: {len(report.checks)} checks, {report.error_count} errors")
    return report_path, summary_path
