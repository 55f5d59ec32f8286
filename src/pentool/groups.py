"""
Curve groups for pentool.

A group is one complete latch chain treated as a compound shape. Grouping is
validated against the latch graph; the group caches an aggregate sample table
of its members in chain order.
"""

from pentool.chain import chain_of, order_chain
from pentool.errors import AlreadyGrouped, NotFullyConnected, NotGrouped, UnknownId
from pentool.models import Group
from pentool.sampling import compute_chain_table
from pentool.tracer import get_tracer, trace


class GroupRegistry:
    """Owns every Group and the id -> group index."""

    def __init__(self, store, graph, next_id=1, num_points=200, dense_samples=256):
        self.store = store
        self.graph = graph
        self.num_points = num_points
        self.dense_samples = dense_samples
        self._groups = {}
        self._next_id = next_id

    def __contains__(self, group_id):
        return group_id in self._groups

    def __iter__(self):
        return iter(sorted(self._groups))

    def __len__(self):
        return len(self._groups)

    @property
    def next_id(self):
        return self._next_id

    def advance_to(self, next_id):
        self._next_id = max(self._next_id, next_id)

    def get(self, group_id):
        return self._groups.get(group_id)

    def get_mut(self, group_id):
        group = self._groups.get(group_id)
        if group is None:
            raise UnknownId(f"Unknown group id: {group_id}", group_id=group_id)
        return group

    def groups(self):
        return [self._groups[gid] for gid in sorted(self._groups)]

    def group_of(self, curve_id):
        """Group the curve belongs to, or None."""
        curve = self.store.get_mut(curve_id)
        if curve.group is None:
            return None
        return self._groups.get(curve.group)

    def _require_curves(self, selection):
        ids = set(selection)
        for curve_id in sorted(ids):
            self.store.get_mut(curve_id)
        return ids

    @trace(label="form_group", arg_names=["selection"])
    def form_group(self, selection):
        """
        Group a selection that is exactly one complete chain.

        Raises NotFullyConnected when the selection is empty, split, or leaves
        out part of its chain; AlreadyGrouped when any member has a group.
        """
        tracer = get_tracer()
        ids = self._require_curves(selection)

        if not ids:
            raise NotFullyConnected("Cannot group an empty selection")

        chain = chain_of(self.store, min(ids), self.graph)
        if chain != ids:
            tracer.event("Cannot group. Selection is not one complete latched chain", level="WARN")
            raise NotFullyConnected(
                "Cannot group. Select one complete chain of latched curves",
                selection=sorted(ids), chain=sorted(chain),
            )

        grouped = [cid for cid in sorted(ids) if self.store.get(cid).group is not None]
        if grouped:
            tracer.event("Cannot group. Selected curves are already in a group", level="WARN")
            raise AlreadyGrouped(
                "Cannot group. Selected curves are already in a group",
                curves=grouped,
            )

        group = Group(group_id=self._next_id, members=sorted(ids))
        self._next_id += 1
        for curve_id in group.members:
            self.store.get(curve_id).group = group.group_id
        self._groups[group.group_id] = group
        self._recompute(group)

        tracer.event(f"Formed group {group.group_id} with {len(ids)} curves")
        return group

    @trace(label="dissolve_group", arg_names=["group_id"])
    def dissolve_group(self, group_id):
        """Remove a group and clear its members' tags. Returns the freed member ids."""
        group = self.get_mut(group_id)
        freed = []
        for curve_id in group.members:
            curve = self.store.get(curve_id)
            if curve is not None and curve.group == group_id:
                curve.group = None
                freed.append(curve_id)
        del self._groups[group_id]

        get_tracer().event(f"Dissolved group {group_id}, freed {len(freed)} curves")
        return freed

    def ungroup_selection(self, selection):
        """
        Dissolve the group a selection covers.

        The selection must be grouped, all in one group, and cover that
        group's complete chain. Returns (group_id, freed ids).
        """
        ids = self._require_curves(selection)
        if not ids:
            raise NotGrouped("Cannot ungroup. No curves selected")

        group_ids = {self.store.get(cid).group for cid in ids}
        if None in group_ids:
            raise NotGrouped("Cannot ungroup. Not all curves are part of a group", selection=sorted(ids))
        if len(group_ids) > 1:
            raise NotFullyConnected(
                "Cannot ungroup. Not all curves are part of the same group",
                groups=sorted(group_ids),
            )

        group_id = group_ids.pop()
        chain = chain_of(self.store, min(ids), self.graph)
        if ids != chain or ids != set(self.get_mut(group_id).members):
            raise NotFullyConnected(
                "Cannot ungroup. Curves are not one complete chain",
                selection=sorted(ids), chain=sorted(chain),
            )

        return group_id, self.dissolve_group(group_id)

    def detach_member(self, curve_id):
        """
        Dissolve the group of a curve being removed.

        The survivors lose their group tag and stay free to be grouped again.
        Returns (group_id, former members) or None when the curve was ungrouped.
        """
        curve = self.store.get_mut(curve_id)
        group_id = curve.group
        if group_id is None:
            return None

        curve.group = None
        group = self._groups.pop(group_id, None)
        if group is None:
            return None

        for member in group.members:
            survivor = self.store.get(member)
            if survivor is not None and survivor.group == group_id:
                survivor.group = None

        get_tracer().event(f"Group {group_id} dissolved by removing curve {curve_id}")
        return group_id, list(group.members)

    def reattach_member(self, group_id, curve_id, members=()):
        """
        Put a restored curve back into its group.

        A group the removal dissolved is rebuilt from members, taking back each
        one that is still present and has not joined another group since.
        """
        curve = self.store.get_mut(curve_id)
        group = self._groups.get(group_id)
        if group is None:
            group = Group(group_id=group_id)
            self._groups[group_id] = group
            if group_id >= self._next_id:
                self._next_id = group_id + 1
            for member in members:
                other = self.store.get(member)
                if member != curve_id and other is not None and other.group is None:
                    other.group = group_id
                    group.members.append(member)

        if curve_id not in group.members:
            group.members.append(curve_id)
        group.members = sorted(group.members)
        curve.group = group_id
        group.dirty = True
        return group

    def restore(self, group):
        """Install a saved group record. Its table is recomputed on the next refresh."""
        group.dirty = True
        self._groups[group.group_id] = group
        if group.group_id >= self._next_id:
            self._next_id = group.group_id + 1

    def mark_dirty_for(self, curve_ids):
        """Flag every group holding one of the curves."""
        touched = set()
        for curve_id in curve_ids:
            curve = self.store.get(curve_id)
            if curve is None or curve.group is None:
                continue
            group = self._groups.get(curve.group)
            if group is not None:
                group.dirty = True
                touched.add(group.group_id)
        return touched

    def _recompute(self, group):
        present = [cid for cid in group.members if cid in self.store]
        group.chain = order_chain(self.store, present)
        curves = {cid: self.store.get(cid) for cid in present}
        group.lut, group.length = compute_chain_table(curves, group.chain, self.num_points, self.dense_samples)
        group.dirty = False

    def refresh(self):
        """Recompute the chain order and table of every dirty group. Returns refreshed ids."""
        refreshed = []
        for group in self.groups():
            if group.dirty:
                self._recompute(group)
                refreshed.append(group.group_id)
        return refreshed
