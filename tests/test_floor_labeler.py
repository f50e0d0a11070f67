"""
Integration Tests for Story and Building Labeling

Tests secondary orchestration across components, mirror mode, section
rules, and label propagation across standard floors.
"""

from beammark.core.config import LabelingConfig, SecondaryNumberingConfig
from beammark.core.data_models import AxisDirection, Member, SymmetryAxis
from beammark.core.sections import FixedLabelRule
from beammark.engines.floor_groups import StandardFloorIndex
from beammark.engines.floor_labeler import (
    generate_secondary_labels,
    label_building,
    label_story,
    propagate_labels,
    story_keyed_labels,
)


def _text(labels, member):
    return labels[member.key].new_label


class TestGenerateSecondaryLabels:
    """Tests for component ordering and numbering modes."""

    def test_components_numbered_left_to_right(self, build_members):
        members, joints = build_members(
            [
                ("RIGHT", (20, 2), (24, 2)),
                ("LEFT", (0, 2), (4, 2)),
            ],
            prop="SB30x50",
        )
        labels = generate_secondary_labels(members, [], joints)
        assert _text(labels, members[1]) == "b1"
        # Counter rounds up to the next decade between components
        assert _text(labels, members[0]) == "b11"

    def test_primary_beams_join_components(self, build_members):
        secondary, joints = build_members(
            [
                ("S1", (0, 2), (4, 2)),
                ("S2", (10, 2), (14, 2)),
            ],
            prop="SB30x50",
        )
        primary, primary_joints = build_members([("G1", (4, 2), (10, 2))], prop="B40x60")
        joints.update(primary_joints)
        labels = generate_secondary_labels(secondary, primary, joints)
        assert _text(labels, secondary[0]) == "b1"
        assert _text(labels, secondary[1]) == "b2"
        assert primary[0].key not in labels

    def test_custom_starts(self, build_members):
        members, joints = build_members(
            [
                ("H1", (0, 2), (4, 2)),
                ("V1", (4, 2), (4, 8)),
                ("V2", (30, 4), (30, 8)),
            ],
            prop="SB30x50",
        )
        config = LabelingConfig(
            secondary=SecondaryNumberingConfig(use_custom_start=True, horizontal_start=5, vertical_start=40),
        )
        labels = generate_secondary_labels(members, [], joints, config=config)
        assert _text(labels, members[0]) == "b5"
        assert _text(labels, members[1]) == "b40"
        # Vertical start is used once per floor
        assert _text(labels, members[2]) == "b41"

    def test_mirror_mode_with_axis(self, build_members):
        members, joints = build_members(
            [
                ("M1", (1, 2), (5, 2)),
                ("S1", (15, 2), (19, 2)),
            ],
            prop="SB30x50",
        )
        config = LabelingConfig(mirror_mode=True, symmetry_axis=SymmetryAxis(AxisDirection.VERTICAL, 10.0))
        labels = generate_secondary_labels(members, [], joints, config=config)
        assert _text(labels, members[0]) == "b1"
        assert _text(labels, members[1]) == "b1"

    def test_mirror_mode_derives_axis(self, build_members):
        members, joints = build_members(
            [
                ("S1", (15, 2), (19, 2)),
                ("M1", (1, 2), (5, 2)),
            ],
            prop="SB30x50",
        )
        labels = generate_secondary_labels(members, [], joints, config=LabelingConfig(mirror_mode=True))
        assert _text(labels, members[0]) == _text(labels, members[1]) == "b1"

    def test_no_secondary_members(self, build_members):
        primary, joints = build_members([("G1", (0, 0), (5, 0))])
        assert generate_secondary_labels([], primary, joints) == {}


class TestLabelStory:
    """Tests for the per-story pipeline."""

    def test_story_pipeline(self, abc_grids, build_members):
        primary, joints = build_members([("G1", (0, 0), (5, 0)), ("G2", (0, 8), (5, 8))], prop="B40x60")
        secondary, sec_joints = build_members([("S1", (2, 0), (2, 8))], prop="SB30x50")
        wall, wall_joints = build_members([("W1", (5, 0), (10, 0))], prop="WB30x60")
        joints.update(sec_joints)
        joints.update(wall_joints)

        result = label_story("2F", primary + secondary + wall, joints, abc_grids)

        assert set(result.primary) == {primary[0].key, primary[1].key}
        assert result.primary[primary[0].key].primary_grid_name == "1"
        assert result.secondary[secondary[0].key].new_label == "b1"
        assert result.fixed == {wall[0].key: "WB1"}
        assert result.total_labeled == 4

    def test_other_stories_and_columns_ignored(self, abc_grids, build_members):
        beams, joints = build_members([("G1", (0, 0), (5, 0))], prop="B40x60", story="3F")
        columns, col_joints = build_members([("C1", (0, 0), (0, 0.1))], prop="C80x80", story="2F")
        joints.update(col_joints)
        result = label_story("2F", beams + columns, joints, abc_grids)
        assert result.total_labeled == 0

    def test_fixed_rules_reserve_serials(self, abc_grids, build_members):
        secondary, joints = build_members([("S1", (0, 2), (4, 2))], prop="SB30x50")
        stair, stair_joints = build_members([("ST", (6, 5), (9, 5))], prop="SB25x50")
        joints.update(stair_joints)
        rules = [FixedLabelRule("SB25x50", "b1")]

        result = label_story("2F", secondary + stair, joints, abc_grids, rules=rules)

        assert result.fixed == {stair[0].key: "b1"}
        assert stair[0].key not in result.secondary
        assert result.secondary[secondary[0].key].new_label == "b2"

    def test_detect_axis_in_mirror_mode(self, abc_grids, build_members):
        members, joints = build_members(
            [
                ("M1", (1, 2), (5, 2)),
                ("S1", (15, 2), (19, 2)),
            ],
            prop="SB30x50",
        )
        result = label_story("2F", members, joints, abc_grids, LabelingConfig(mirror_mode=True), detect_axis=True)
        assert result.symmetry_axis == SymmetryAxis(AxisDirection.VERTICAL, 10.0)
        assert result.secondary[members[1].key].new_label == "b1"


class TestLabelBuilding:
    """Tests for standard floor propagation."""

    def _building(self, build_members):
        members, joints = [], {}
        for story in ("2F", "3F"):
            story_members, story_joints = build_members(
                [("G1", (0, 0), (5, 0)), ("G2", (0, 8), (5, 8))], prop="B40x60", story=story
            )
            sec, sec_joints = build_members([(f"S{story}", (2, 0), (2, 8))], prop="SB30x50", story=story)
            members.extend(story_members + sec)
            joints.update(story_joints)
            joints.update(sec_joints)
        roof, roof_joints = build_members([("R1", (0, 0), (10, 0))], prop="B40x60", story="RF")
        joints.update(roof_joints)
        return members + roof, joints

    def test_labels_propagated_to_standard_floors(self, abc_grids, build_members):
        members, joints = self._building(build_members)
        results = label_building(["2F", "3F", "RF"], members, joints, abc_grids)

        assert list(results) == ["2F", "3F", "RF"]
        sec_3f = next(m for m in members if m.name == "S3F")
        assert results["3F"].secondary[sec_3f.key].new_label == "b1"
        assert len(results["3F"].primary) == len(results["2F"].primary) == 2
        assert len(results["RF"].primary) == 1

    def test_propagate_matches_reversed_members(self, abc_grids, build_members):
        source_members, joints = build_members([("G1", (0, 0), (5, 0))], story="2F")
        target_members, target_joints = build_members([("X1", (5, 0), (0, 0))], story="3F")
        joints.update(target_joints)
        members = source_members + target_members

        source = label_story("2F", members, joints, abc_grids)
        target = propagate_labels(source, "3F", members, joints)
        assert target.primary[target_members[0].key] == source.primary[source_members[0].key]

    def test_reuses_given_index(self, abc_grids, build_members):
        members, joints = self._building(build_members)
        index = StandardFloorIndex(["2F", "3F", "RF"], members, joints)
        label_building(["2F", "3F", "RF"], members, joints, abc_grids, index=index)
        assert index.version == 0
        assert index.groups() == [["2F", "3F"], ["RF"]]

    def test_story_keyed_labels(self, abc_grids, build_members):
        members, joints = self._building(build_members)
        keyed = story_keyed_labels(label_building(["2F", "3F", "RF"], members, joints, abc_grids))
        assert "3F|S3F|J2_0|J2_8" in keyed
        assert keyed["3F|S3F|J2_0|J2_8"].new_label == "b1"

    def test_mapping_joints(self, abc_grids):
        members = [
            Member("G1", "B40x60", "a", "b", "2F"),
            Member("S1", "SB30x50", "c", "d", "2F"),
        ]
        joints = {
            "a": {"x": 0, "y": 0},
            "b": {"x": 5, "y": 0},
            "c": {"x": 2, "y": 0},
            "d": {"x": 2, "y": 8},
        }
        results = label_building(["2F"], members, joints, abc_grids)
        assert results["2F"].primary[members[0].key].primary_grid_name == "1"
        assert results["2F"].secondary[members[1].key].new_label == "b1"
