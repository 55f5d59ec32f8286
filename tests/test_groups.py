"""Tests for curve groups."""

import pytest

from conftest import line_positions


class TestFormGroup:
    """Tests for forming groups."""

    def test_group_complete_chain(self, chain_editor):
        """Test that the whole A-B-C chain can be grouped."""
        result = chain_editor.form_group({1, 2, 3})

        assert result.ok
        group = chain_editor.group_of(1)
        assert group is not None
        assert group.members == [1, 2, 3]
        assert chain_editor.group_of(3).group_id == group.group_id

    def test_group_partial_chain_fails(self, chain_editor):
        """Test that {A, C} is not a complete chain."""
        result = chain_editor.form_group({1, 3})

        assert not result.ok
        assert result.error == "not_fully_connected"
        assert chain_editor.group_of(1) is None

    def test_group_subset_of_chain_fails(self, chain_editor):
        """Test that a connected subset that leaves part of its chain out is refused."""
        result = chain_editor.form_group({1, 2})

        assert result.error == "not_fully_connected"

    def test_group_empty_selection_fails(self, chain_editor):
        """Test that an empty selection cannot be grouped."""
        assert chain_editor.form_group(set()).error == "not_fully_connected"

    def test_group_twice_fails(self, chain_editor):
        """Test that grouped curves cannot join another group."""
        chain_editor.form_group({1, 2, 3})
        result = chain_editor.form_group({1, 2, 3})

        assert result.error == "already_grouped"
        assert len(chain_editor.groups) == 1

    def test_group_table(self, chain_editor, default_config):
        """Test that the group table spans the whole chain in order."""
        chain_editor.form_group({1, 2, 3})
        group = chain_editor.group_of(2)

        assert len(group.lut) == default_config.sampling.group_lut_num_points
        assert group.length == pytest.approx(90.0)
        assert group.lut[0] == pytest.approx([0.0, 0.0])
        assert group.lut[-1] == pytest.approx([90.0, 0.0])
        assert not group.dirty

    def test_group_formed_event(self, chain_editor):
        """Test that grouping announces the new group."""
        chain_editor.form_group({1, 2, 3})
        events = chain_editor.drain_events()

        assert [e.event for e in events] == ["group_formed"]
        assert events[0].members == [1, 2, 3]


class TestUngroup:
    """Tests for ungrouping and dissolving."""

    def test_ungroup_whole_group(self, chain_editor):
        """Test that selecting the whole grouped chain ungroups it."""
        chain_editor.form_group({1, 2, 3})
        result = chain_editor.ungroup({1, 2, 3})

        assert result.ok
        assert len(chain_editor.groups) == 0
        assert all(chain_editor.curve(cid).group is None for cid in (1, 2, 3))

    def test_ungroup_partial_selection_fails(self, chain_editor):
        """Test that ungrouping needs the complete chain selected."""
        chain_editor.form_group({1, 2, 3})
        result = chain_editor.ungroup({1, 2})

        assert result.error == "not_fully_connected"
        assert len(chain_editor.groups) == 1

    def test_ungroup_ungrouped_fails(self, chain_editor):
        """Test that ungrouping free curves reports NotGrouped."""
        assert chain_editor.ungroup({1, 2, 3}).error == "not_grouped"

    def test_dissolve_group(self, chain_editor):
        """Test that dissolving frees every member."""
        chain_editor.form_group({1, 2, 3})
        group_id = chain_editor.group_of(1).group_id
        chain_editor.drain_events()

        result = chain_editor.dissolve_group(group_id)

        assert result.ok
        assert result.changed_curves == [1, 2, 3]
        assert chain_editor.group(group_id) is None
        assert [e.event for e in chain_editor.drain_events()] == ["group_dissolved"]

    def test_dissolve_unknown_group(self, chain_editor):
        """Test that an unknown group id reports UnknownId."""
        assert chain_editor.dissolve_group(12).error == "unknown_id"


class TestGroupMaintenance:
    """Tests for group tables following edits."""

    def test_move_refreshes_group_table(self, chain_editor):
        """Test that moving a member's free end updates the group table."""
        chain_editor.form_group({1, 2, 3})
        result = chain_editor.move_anchor(3, "end", [120, 0])

        group = chain_editor.group_of(1)
        assert group.group_id in result.changed_groups
        assert group.length == pytest.approx(120.0)
        assert group.lut[-1] == pytest.approx([120.0, 0.0])

    def test_delete_member_dissolves_group(self, chain_editor):
        """Test that deleting a member drops the group and frees the survivors."""
        chain_editor.form_group({1, 2, 3})
        group_id = chain_editor.group_of(1).group_id
        chain_editor.drain_events()

        chain_editor.delete([3])

        assert chain_editor.group(group_id) is None
        assert chain_editor.curve(1).group is None
        assert chain_editor.curve(2).group is None
        dissolved = [e for e in chain_editor.drain_events() if e.event == "group_dissolved"]
        assert [(e.group_id, e.members) for e in dissolved] == [(group_id, [1, 2, 3])]

    def test_survivors_can_regroup(self, chain_editor):
        """Test that the pieces left by deleting a middle member can be grouped again."""
        chain_editor.form_group({1, 2, 3})
        chain_editor.delete([2])

        assert chain_editor.form_group({1}).ok
        assert chain_editor.form_group({3}).ok
        assert len(chain_editor.groups) == 2

    def test_delete_last_member_drops_group(self, editor):
        """Test that a group with no members left is removed."""
        editor.spawn(line_positions([0, 0], [10, 0]))
        editor.form_group({1})
        editor.drain_events()

        editor.delete([1])

        assert len(editor.groups) == 0
        assert [e.event for e in editor.drain_events()] == ["group_dissolved", "curve_destroyed"]

    def test_undo_delete_rejoins_group(self, chain_editor):
        """Test that an undone delete puts the curve back into its group."""
        chain_editor.form_group({1, 2, 3})
        group_id = chain_editor.group_of(1).group_id

        chain_editor.delete([2])
        chain_editor.undo()

        assert chain_editor.group(group_id).members == [1, 2, 3]
        assert chain_editor.curve(2).group == group_id
        assert chain_editor.curve(1).group == group_id
        assert chain_editor.curve(3).group == group_id
