"""Tests for grouping motions by their effective primary muscle."""
from deltamatrix.models.records import Motion
from deltamatrix.scoring.grouping import (
    MotionRow,
    SectionHeader,
    effective_grouping_id,
    group_motions,
)


def _summarise(items):
    out = []
    for item in items:
        if isinstance(item, SectionHeader):
            out.append(("header", item.label, item.level, item.muscle_id))
        else:
            out.append(("motion", item.motion.id, item.level))
    return out


class TestEffectiveGrouping:
    """Test stored versus computed grouping."""

    def test_stored_grouping_wins(self, catalog):
        motion = Motion("M", "M", muscle_targets={"BICEP": 0.9}, muscle_grouping_id="TRICEP")
        assert effective_grouping_id(motion, catalog) == "TRICEP"

    def test_default_prefers_root_on_tie(self, motions, catalog):
        by_id = {m.id: m for m in motions}
        assert effective_grouping_id(by_id["CURL"], catalog) == "ARM"
        assert effective_grouping_id(by_id["HAMMER_CURL"], catalog) == "ARM"
        assert effective_grouping_id(by_id["PUSHDOWN"], catalog) == "ARM"

    def test_no_targets(self, catalog):
        assert effective_grouping_id(Motion("M", "M"), catalog) is None

    def test_non_positive_root_score_excludes_candidates(self, catalog):
        motion = Motion("M", "M", muscle_targets={"BICEP": 0.9, "TRICEP": -1.0})
        assert effective_grouping_id(motion, catalog) is None

    def test_nothing_above_threshold(self, catalog):
        motion = Motion("M", "M", muscle_targets={"BICEP": 0.2})
        assert effective_grouping_id(motion, catalog) is None


class TestGroupMotions:
    """Test the ordered matrix listing."""

    def test_full_listing(self, motions, catalog):
        assert _summarise(group_motions(motions, catalog)) == [
            ("header", "Arm", 0, "ARM"),
            ("motion", "CURL", 0),
            ("motion", "HAMMER_CURL", 1),
            ("motion", "PUSHDOWN", 0),
            ("header", "Back", 0, "BACK"),
            ("motion", "PULLDOWN", 0),
            ("header", "No Primary Muscle", 0, None),
            ("motion", "PLANK", 0),
        ]

    def test_every_motion_listed_once(self, motions, catalog):
        rows = [i for i in group_motions(motions, catalog) if isinstance(i, MotionRow)]
        assert sorted(r.motion.id for r in rows) == sorted(m.id for m in motions)

    def test_root_bucket_stays_flat_beside_secondary(self, catalog):
        motions = [
            Motion("ROW", "Row", muscle_grouping_id="BACK"),
            Motion("PULLDOWN", "Pulldown", muscle_grouping_id="LATS"),
        ]
        assert _summarise(group_motions(motions, catalog)) == [
            ("header", "Back", 0, "BACK"),
            ("motion", "ROW", 0),
            ("header", "Lats", 1, "LATS"),
            ("motion", "PULLDOWN", 2),
        ]

    def test_orphan_variant_listed_at_base_level(self, catalog):
        motions = [Motion("V", "Variant", parent_id="MISSING", muscle_grouping_id="ARM")]
        items = group_motions(motions, catalog)
        assert _summarise(items) == [("header", "Arm", 0, "ARM"), ("motion", "V", 0)]

    def test_labels_sort_case_insensitively(self, catalog):
        motions = [
            Motion("B", "bench", muscle_grouping_id="ARM"),
            Motion("A", "Arnold", muscle_grouping_id="ARM"),
        ]
        ids = [i.motion.id for i in group_motions(motions, catalog) if isinstance(i, MotionRow)]
        assert ids == ["A", "B"]

    def test_to_dict(self, catalog):
        items = group_motions([Motion("V", "Variant", parent_id="BASE")], catalog)
        assert [i.to_dict() for i in items] == [
            {"type": "header", "label": "No Primary Muscle", "level": 0, "muscle_id": None},
            {"type": "motion", "id": "V", "label": "Variant", "parent_id": "BASE", "level": 0},
        ]
