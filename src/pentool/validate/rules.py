"""
Integrity checks for pentool.

Each rule inspects the editor state read-only and produces a CheckResult.
Unlike the core, these rules report a one-sided latch instead of raising, so a
broken scene can be diagnosed.
"""

import networkx as nx

from pentool.chain import latch_network
from pentool.errors import LatchCorruptionError
from pentool.models import Anchor, CheckResult, Severity, ValidationReport, coincident
from pentool.sampling import compute_chain_table, compute_curve_table
from pentool.tracer import get_tracer, trace


@trace(label="run_integrity_checks")
def run_integrity_checks(editor):
    """
    Run all integrity checks on the editor.

    Returns ValidationReport with all check results.
    """
    tracer = get_tracer()

    checks = []
    checks.append(check_latch_mirror(editor))
    checks.append(check_latch_coincidence(editor))
    checks.append(check_group_connectivity(editor))
    checks.append(check_group_exclusivity(editor))
    checks.append(check_history_cursor(editor))
    checks.append(check_table_freshness(editor))

    report = ValidationReport(checks=checks)
    tracer.event(f"Integrity checks complete: {report.error_count} errors, {report.warning_count} warnings")

    return report


def check_latch_mirror(editor):
    """Every latch half must have its exact mirror on the partner."""
    broken = []
    for curve in editor.store.curves():
        for edge in list(curve.latches):
            try:
                editor.graph.check_mirror(curve.curve_id, edge)
            except LatchCorruptionError as e:
                broken.append(str(e))

    if broken:
        return CheckResult(
            rule_id="latch_mirror",
            severity=Severity.ERROR,
            passed=False,
            message=f"{len(broken)} latch entries have no mirror",
            evidence={"broken": broken},
        )

    return CheckResult(
        rule_id="latch_mirror",
        severity=Severity.ERROR,
        passed=True,
        message=f"All {len(editor.graph.pairs())} latches are mirrored",
    )


def check_latch_coincidence(editor, tolerance=1e-6):
    """
    Latched endpoints should sit on the same position.

    The editor always snaps on latch, only a write that bypasses it can pull
    them apart. Reported as a warning.
    """
    apart = []
    for curve in editor.store.curves():
        for edge, latch in curve.latches.items():
            partner = editor.store.get(latch.latched_to_id)
            if partner is None:
                continue
            p = curve.positions.get(Anchor.for_edge(edge))
            q = partner.positions.get(Anchor.for_edge(latch.partners_edge))
            if not coincident(p, q, tolerance):
                apart.append([curve.curve_id, edge.value, latch.latched_to_id, latch.partners_edge.value])

    if apart:
        return CheckResult(
            rule_id="latch_coincidence",
            severity=Severity.WARN,
            passed=False,
            message=f"{len(apart)} latched endpoints are not coincident",
            evidence={"apart": apart},
        )

    return CheckResult(
        rule_id="latch_coincidence",
        severity=Severity.WARN,
        passed=True,
        message="All latched endpoints are coincident",
    )


def check_group_connectivity(editor):
    """
    Every group's live members should lie in one chain.

    Unlatching inside a group, or undoing a delete before its unlatches,
    leaves a group split for a while, so this is a warning.
    """
    network = latch_network(editor.store)
    split = []
    for group in editor.groups.groups():
        present = [cid for cid in group.members if cid in editor.store]
        if len(present) > 1 and not nx.is_connected(network.subgraph(present)):
            split.append(group.group_id)

    if split:
        return CheckResult(
            rule_id="group_connectivity",
            severity=Severity.WARN,
            passed=False,
            message=f"{len(split)} groups are no longer one connected chain",
            evidence={"groups": split},
        )

    return CheckResult(
        rule_id="group_connectivity",
        severity=Severity.WARN,
        passed=True,
        message="All groups are connected",
    )


def check_group_exclusivity(editor):
    """Each curve is in at most one group, and its tag agrees with the group's member list."""
    owners = {}
    conflicts = []

    for group in editor.groups.groups():
        for curve_id in group.members:
            if curve_id in owners:
                conflicts.append(f"curve {curve_id} in groups {owners[curve_id]} and {group.group_id}")
            owners[curve_id] = group.group_id
            curve = editor.store.get(curve_id)
            if curve is None:
                conflicts.append(f"group {group.group_id} lists missing curve {curve_id}")
            elif curve.group != group.group_id:
                conflicts.append(f"curve {curve_id} tagged {curve.group}, listed by group {group.group_id}")

    for curve in editor.store.curves():
        if curve.group is not None and owners.get(curve.curve_id) != curve.group:
            conflicts.append(f"curve {curve.curve_id} tagged {curve.group} but not listed by it")

    if conflicts:
        return CheckResult(
            rule_id="group_exclusivity",
            severity=Severity.ERROR,
            passed=False,
            message=f"{len(conflicts)} group membership conflicts",
            evidence={"conflicts": conflicts},
        )

    return CheckResult(
        rule_id="group_exclusivity",
        severity=Severity.ERROR,
        passed=True,
        message="Group membership is consistent",
    )


def check_history_cursor(editor):
    """The cursor must be -1 or index an action in the log."""
    index = editor.history.index
    length = len(editor.history)

    if -1 <= index <= length - 1:
        return CheckResult(
            rule_id="history_cursor",
            severity=Severity.ERROR,
            passed=True,
            message=f"History cursor {index} within {length} actions",
        )

    return CheckResult(
        rule_id="history_cursor",
        severity=Severity.ERROR,
        passed=False,
        message=f"History cursor {index} out of range for {length} actions",
        evidence={"index": index, "length": length},
    )


def check_table_freshness(editor, tolerance=1e-6):
    """Cached curve and group tables match a fresh recomputation."""
    sampling = editor.config.sampling
    stale = []

    for curve in editor.store.curves():
        table, length = compute_curve_table(curve.positions, sampling.lut_num_points, sampling.dense_samples)
        if curve.dirty or abs(length - curve.length) > tolerance or len(table) != len(curve.lut):
            stale.append(f"curve {curve.curve_id}")

    for group in editor.groups.groups():
        curves = {cid: editor.store.get(cid) for cid in group.members if cid in editor.store}
        if any(link.curve_id not in curves for link in group.chain):
            stale.append(f"group {group.group_id}")
            continue
        _, length = compute_chain_table(curves, group.chain, sampling.group_lut_num_points, sampling.dense_samples)
        if group.dirty or abs(length - group.length) > tolerance:
            stale.append(f"group {group.group_id}")

    if stale:
        return CheckResult(
            rule_id="table_freshness",
            severity=Severity.WARN,
            passed=False,
            message=f"{len(stale)} sample tables are stale",
            evidence={"stale": stale},
        )

    return CheckResult(
        rule_id="table_freshness",
        severity=Severity.WARN,
        passed=True,
        message="All sample tables are fresh",
    )
