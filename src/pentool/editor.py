"""
Editor facade for pentool.

The Editor owns the curve store, the latch graph, the group registry, the
history log, the selection and the lifecycle outbox. Every edit intent goes
through `_execute`: the work either completes and is recorded as one history
batch, or raises an EditError that is logged and turned into a failed
EditResult. Cached sample tables are refreshed before an edit returns.
"""

from pentool import history
from pentool.chain import chain_of, connected_component
from pentool.config import EditorConfig
from pentool.errors import EditError
from pentool.events import (
    CurveCreated, CurveDestroyed, EventOutbox, GroupDissolved, GroupFormed,
)
from pentool.groups import GroupRegistry
from pentool.history import HistoryLog
from pentool.latch_graph import LatchGraph, as_curve_edge
from pentool.models import (
    Anchor, AnchorEdge, AnchorShift, CubicBezier, Curve, CurveSnapshot, DeletedCurve,
    EditResult, MovedAnchor, MovedChain, SpawnedCurve, coincident,
)
from pentool.sampling import compute_curve_table
from pentool.store import CurveStore
from pentool.tracer import get_tracer


def as_bezier(value):
    """
    Accept a CubicBezier, a dict of p0..p3 or start/control_start/control_end/end,
    or a list of four [x, y] points.
    """
    if isinstance(value, CubicBezier):
        return value.model_copy(deep=True)

    if isinstance(value, dict):
        if "p0" in value:
            return CubicBezier.model_validate(value)
        return CubicBezier(
            p0=value[Anchor.START.value],
            p1=value[Anchor.CONTROL_START.value],
            p2=value[Anchor.CONTROL_END.value],
            p3=value[Anchor.END.value],
        )

    p0, p1, p2, p3 = value
    return CubicBezier(p0=list(p0), p1=list(p1), p2=list(p2), p3=list(p3))


def _point(position):
    x, y = position
    return [float(x), float(y)]


class Editor:
    """Single-writer editing core over a set of latched bezier curves."""

    def __init__(self, config=None):
        self.config = config or EditorConfig()
        self.store = CurveStore()
        self.graph = LatchGraph(self.store)
        self.groups = GroupRegistry(
            self.store,
            self.graph,
            num_points=self.config.sampling.group_lut_num_points,
            dense_samples=self.config.sampling.dense_samples,
        )
        self.history = HistoryLog()
        self.selection = set()
        self.outbox = EventOutbox()
        self._pending = []

    # Read-only queries

    def curve(self, curve_id):
        return self.store.get(curve_id)

    def group(self, group_id):
        return self.groups.get(group_id)

    def group_of(self, curve_id):
        return self.groups.group_of(curve_id)

    def partner_of(self, curve_id, edge):
        return self.graph.partner_of(curve_id, edge)

    def connected_component(self, curve_id):
        return connected_component(self.store, curve_id, self.graph)

    def select(self, ids):
        """Replace the selection. Ids are checked when an edit uses them."""
        self.selection = set(ids)

    def drain_events(self):
        return self.outbox.drain()

    def bind_location(self, curve_id, handle):
        self.store.bind_location(curve_id, handle)

    # Edit plumbing

    def _record(self, action):
        self._pending.append(action)

    def _execute(self, label, func, *args, **kwargs):
        """
        Run one edit intent.

        func returns (changed curve ids, changed group ids). Its recorded
        actions become one history batch; an EditError drops them and yields a
        failed EditResult.
        """
        tracer = get_tracer()
        self._pending = []

        with tracer.span(label, module="editor"):
            try:
                changed_curves, changed_groups = func(*args, **kwargs)
            except EditError as e:
                self._pending = []
                tracer.event(f"{label} failed: {e}", level="WARN", kind=e.kind.value)
                self._refresh()
                return EditResult.failure(e)

            if self.config.history.enabled:
                self.history.record_batch(self._pending)
            self._pending = []

            refreshed = self._refresh()

        return EditResult.success(changed_curves, set(changed_groups) | set(refreshed))

    def _refresh(self):
        """Recompute every stale curve table, then every group touching one."""
        sampling = self.config.sampling
        stale = [curve for curve in self.store.curves() if curve.dirty]
        for curve in stale:
            curve.lut, curve.length = compute_curve_table(
                curve.positions, sampling.lut_num_points, sampling.dense_samples,
            )
            curve.dirty = False

        self.groups.mark_dirty_for([curve.curve_id for curve in stale])
        return self.groups.refresh()

    # Mutation paths shared by live edits and history replay. None of these record.

    def _materialize(self, curve_id, snapshot):
        """Create a curve under curve_id from a snapshot, re-joining its group if it had one."""
        curve = Curve(curve_id=curve_id, positions=snapshot.positions.model_copy(deep=True))
        self.store.insert(curve_id, curve)
        self.outbox.push(CurveCreated(curve_id=curve_id))

        if snapshot.group is not None:
            recreated = snapshot.group not in self.groups
            group = self.groups.reattach_member(snapshot.group, curve_id, snapshot.group_members)
            if recreated:
                self.outbox.push(GroupFormed(group_id=group.group_id, members=list(group.members)))

        return [curve_id]

    def _snapshot(self, curve_id):
        """Snapshot of a live curve, with its group's member list."""
        snapshot = self.store.get_mut(curve_id).snapshot()
        group = self.groups.get(snapshot.group) if snapshot.group is not None else None
        if group is not None:
            snapshot.group_members = list(group.members)
        return snapshot

    def _remove(self, curve_id):
        """Remove a curve, detaching any partner and dissolving its group."""
        self.store.get_mut(curve_id)
        changed = [curve_id] + [action.b_id for action in self._unlatch_all(curve_id, set())]

        self._detach(curve_id)
        self.store.remove(curve_id)
        self.selection.discard(curve_id)
        self.outbox.push(CurveDestroyed(curve_id=curve_id))
        return changed

    def _unlatch_all(self, curve_id, done):
        """
        Unlatch every partner of a curve, skipping pairs already in done.

        A self-latch shows up from both of its edges but is removed once.
        Returns the Unlatched actions performed.
        """
        performed = []
        for action in self.graph.latches_of(curve_id):
            key = frozenset(action.pair)
            if key in done:
                continue
            done.add(key)
            performed.append(self.graph.unlatch(*action.pair))
        return performed

    def _detach(self, curve_id):
        dissolved = self.groups.detach_member(curve_id)
        if dissolved is not None:
            group_id, members = dissolved
            self.outbox.push(GroupDissolved(group_id=group_id, members=members))
        return dissolved

    def _plan_move(self, curve_id, anchor, position):
        """
        Work out every anchor a move touches, without mutating.

        An edge anchor carries its control with it. A latched partner follows:
        its edge takes the same position and its control becomes the mirror of
        ours. Returns (curve_id, anchor, position) triples, the moved anchor first.
        """
        anchor = Anchor(anchor)
        positions = self.store.get_mut(curve_id).positions
        edge = anchor.edge
        partner = self.graph.partner_of(curve_id, edge)

        edge_point = positions.get(Anchor.for_edge(edge))
        control_point = positions.get(Anchor.control_for(edge))
        if anchor.is_control:
            control_point = position
            plan = [(curve_id, anchor, position)]
        else:
            control_point = [
                control_point[0] + position[0] - edge_point[0],
                control_point[1] + position[1] - edge_point[1],
            ]
            edge_point = position
            plan = [(curve_id, anchor, position), (curve_id, Anchor.control_for(edge), control_point)]

        if partner is not None:
            mirror = [2 * edge_point[0] - control_point[0], 2 * edge_point[1] - control_point[1]]
            if not anchor.is_control:
                plan.append((partner.curve_id, Anchor.for_edge(partner.edge), edge_point))
            plan.append((partner.curve_id, Anchor.control_for(partner.edge), mirror))
        return plan

    def _place(self, shifts, forward=True):
        """
        Put each (curve_id, anchor, previous, new) shift at its new position,
        or at its previous one walking backwards. Returns the changed curve ids.
        """
        curves = [self.store.get_mut(shift[0]) for shift in shifts]
        if not forward:
            shifts, curves = shifts[::-1], curves[::-1]

        changed = []
        for curve, (curve_id, anchor, previous, new) in zip(curves, shifts):
            curve.positions.set(anchor, new if forward else previous)
            curve.dirty = True
            if curve_id not in changed:
                changed.append(curve_id)
        return changed

    def _apply_move(self, action, forward=True):
        """Replay or revert a MovedAnchor from its recorded positions."""
        shifts = [(action.curve_id, action.anchor, action.previous_position, action.new_position)]
        shifts += [(s.curve_id, s.anchor, s.previous_position, s.new_position) for s in action.carried]
        return self._place(shifts, forward)

    def _translate(self, curve_ids, delta):
        curves = [self.store.get_mut(curve_id) for curve_id in curve_ids]
        for curve in curves:
            curve.positions = curve.positions.translated(delta)
            curve.dirty = True
        return [curve.curve_id for curve in curves]

    def _delete_selected(self, from_redo=False):
        """
        Delete every selected curve.

        Partners are unlatched first, once per unordered pair, then the bodies
        go. A live delete records the Unlatched entries before the
        DeletedCurve entries; a redo records nothing.
        """
        ids = sorted(self.selection)
        for curve_id in ids:
            self.store.get_mut(curve_id)

        changed = list(ids)
        done = set()
        for curve_id in ids:
            for action in self._unlatch_all(curve_id, done):
                changed.append(action.b_id)
                if not from_redo:
                    self._record(action)

        deleted = []
        for curve_id in ids:
            snapshot = self._snapshot(curve_id)
            self._detach(curve_id)
            self.store.remove(curve_id)
            self.outbox.push(CurveDestroyed(curve_id=curve_id))
            deleted.append(DeletedCurve(curve_id=curve_id, snapshot=snapshot))

        if not from_redo:
            for action in deleted:
                self._record(action)

        self.selection = set()
        get_tracer().event(f"Deleted {len(ids)} curves")
        return changed

    def _move_recorded(self, curve_id, anchor, position):
        anchor = Anchor(anchor)
        previous = self.store.get_mut(curve_id).positions.get(anchor)
        position = _point(position)
        if coincident(previous, position, tolerance=0.0):
            return []

        shifts = []
        for target_id, target, new in self._plan_move(curve_id, anchor, position):
            old = self.store.get(target_id).positions.get(target)
            if not shifts or not coincident(old, new, tolerance=0.0):
                shifts.append((target_id, target, old, new))

        changed = self._place(shifts)
        self._record(MovedAnchor(
            curve_id=curve_id, anchor=anchor,
            previous_position=previous, new_position=position,
            carried=[
                AnchorShift(curve_id=cid, anchor=a, previous_position=old, new_position=new)
                for cid, a, old, new in shifts[1:]
            ],
        ))
        return changed

    # Edit intents

    def spawn(self, positions, curve_id=None, record=True):
        """Create a curve. The new id is the first entry of changed_curves."""
        def work():
            bezier = as_bezier(positions)
            new_id = curve_id if curve_id is not None else self.store.allocate_id()
            self._materialize(new_id, CurveSnapshot(positions=bezier))
            if record:
                self._record(SpawnedCurve(curve_id=new_id, snapshot=CurveSnapshot(positions=bezier)))
            return [new_id], []

        return self._execute("spawn", work)

    def move_anchor(self, curve_id, anchor, position):
        def work():
            return self._move_recorded(curve_id, anchor, position), []

        return self._execute("move_anchor", work)

    def translate_chain(self, curve_id, delta):
        """Move every curve of the chain holding curve_id by delta."""
        def work():
            ids = sorted(chain_of(self.store, curve_id, self.graph))
            step = _point(delta)
            if step == [0.0, 0.0]:
                return [], []
            changed = self._translate(ids, step)
            self._record(MovedChain(curve_ids=ids, delta=step))
            return changed, []

        return self._execute("translate_chain", work)

    def latch(self, a, b, mirror=None):
        """
        Latch endpoint a to endpoint b.

        a's edge always moves onto b's before the latch is installed. With
        mirroring, a's control also moves onto the mirror of b's control.
        """
        return self._execute("latch", lambda: (self._latch(a, b, mirror), []))

    def _latch(self, a, b, mirror):
        first, second = as_curve_edge(a), as_curve_edge(b)
        _, curve_b = self.graph.ensure_latchable(first, second)

        changed = [first.curve_id, second.curve_id]
        target = curve_b.positions.get(Anchor.for_edge(second.edge))
        changed += self._move_recorded(first.curve_id, Anchor.for_edge(first.edge), target)

        do_mirror = self.config.latch.mirror_on_latch if mirror is None else mirror
        if do_mirror:
            opposite = curve_b.positions.opposite_control(second.edge)
            changed += self._move_recorded(first.curve_id, Anchor.control_for(first.edge), opposite)

        self._record(self.graph.latch(first, second))
        return changed

    def latch_nearest(self, curve_id, edge):
        """
        Latch a free endpoint to the closest free endpoint of another curve
        within latch_distance. Finding nothing in range is not an error, the
        result just lists no changes.
        """
        def work():
            candidate = self.graph.find_candidate(curve_id, edge, self.config.latch.latch_distance)
            if candidate is None:
                get_tracer().event(f"No latch candidate near {curve_id}.{AnchorEdge(edge).value}")
                return [], []
            return self._latch((curve_id, AnchorEdge(edge)), candidate, None), []

        return self._execute("latch_nearest", work)

    def unlatch(self, a, b):
        def work():
            action = self.graph.unlatch(a, b)
            self._record(action)
            return [action.a_id, action.b_id], []

        return self._execute("unlatch", work)

    def delete(self, ids):
        self.select(ids)
        return self.delete_selected()

    def delete_selected(self):
        return self._execute("delete", lambda: (self._delete_selected(), []))

    def form_group(self, ids):
        def work():
            group = self.groups.form_group(ids)
            self.outbox.push(GroupFormed(group_id=group.group_id, members=list(group.members)))
            return list(group.members), [group.group_id]

        return self._execute("form_group", work)

    def dissolve_group(self, group_id):
        def work():
            members = list(self.groups.get_mut(group_id).members)
            freed = self.groups.dissolve_group(group_id)
            self.outbox.push(GroupDissolved(group_id=group_id, members=members))
            return freed, [group_id]

        return self._execute("dissolve_group", work)

    def ungroup(self, ids):
        """Dissolve the group whose complete chain is exactly ids."""
        def work():
            group_id, freed = self.groups.ungroup_selection(ids)
            self.outbox.push(GroupDissolved(group_id=group_id, members=list(freed)))
            return freed, [group_id]

        return self._execute("ungroup", work)

    def undo(self):
        return self._execute("undo", lambda: (history.undo(self), []))

    def redo(self):
        return self._execute("redo", lambda: (history.redo(self), []))
