"""Tests for the matrix service over an in-memory gateway."""
import pytest

from deltamatrix.core.exceptions import (
    DraftCommitError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from deltamatrix.matrix.trees import InternalNode
from deltamatrix.models.delta_value import INHERIT, ScoreMap
from deltamatrix.repositories.memory import InMemoryTableGateway
from deltamatrix.scoring.grouping import SectionHeader
from deltamatrix.services.matrix_service import MotionDeltaMatrixService

KEYS = ("motionPaths", "grips", "equipment")


@pytest.fixture
def service(gateway):
    return MotionDeltaMatrixService(gateway, KEYS)


class TestLoad:
    """Test snapshot loading."""

    @pytest.mark.asyncio
    async def test_loads_every_table(self, service):
        snapshot = await service.load()
        assert len(snapshot.motions) == 5
        assert len(snapshot.muscles) == 9
        assert list(snapshot.tables) == list(KEYS)
        assert snapshot.row("grips", "NEUTRAL").label == "Neutral"

    @pytest.mark.asyncio
    async def test_unavailable_table_loads_empty(self, gateway, service):
        gateway.unavailable_tables.add("grips")
        snapshot = await service.load()
        assert snapshot.tables["grips"] == []
        assert len(snapshot.tables["motionPaths"]) == 3

    @pytest.mark.asyncio
    async def test_lookup_errors(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_motion("NOPE")
        assert exc_info.value.code == "NF_MOTION_001"
        with pytest.raises(NotFoundError):
            await service.get_row("grips", "NOPE")
        with pytest.raises(ValidationError):
            await service.get_row("stances", "WIDE")


class TestQueries:
    """Test read operations."""

    @pytest.mark.asyncio
    async def test_grouped_motions(self, service):
        items = await service.grouped_motions()
        headers = [i.label for i in items if isinstance(i, SectionHeader)]
        assert headers == ["Arm", "Back", "No Primary Muscle"]

    @pytest.mark.asyncio
    async def test_grouping_options(self, service):
        groups, default = await service.grouping_options("HAMMER_CURL")
        assert default == "ARM"
        assert [o.id for o in groups[0].options] == ["ARM", "BICEP"]

    @pytest.mark.asyncio
    async def test_stored_grouping_is_default(self, service):
        _, default = await service.grouping_options("PULLDOWN")
        assert default == "LATS"
        assert await service.effective_grouping("PULLDOWN") == "LATS"

    @pytest.mark.asyncio
    async def test_relationships_with_draft(self, service):
        draft = await service.new_draft("CURL")
        draft.remove("grips", "NEUTRAL")
        plain = await service.relationships_for("CURL")
        preview = await service.relationships_for("CURL", draft)
        assert [r.row_id for r in plain["grips"]] == ["NEUTRAL", "SUPINATED"]
        assert [r.row_id for r in preview["grips"]] == ["SUPINATED"]

    @pytest.mark.asyncio
    async def test_counts(self, service):
        counts = await service.counts_for("HAMMER_CURL", "motionPaths")
        assert (counts.total, counts.inherit, counts.empty) == (2, 1, 1)

    @pytest.mark.asyncio
    async def test_resolve_delta(self, service):
        resolved = await service.resolve_delta("HAMMER_CURL", "motionPaths", "MID_MID")
        assert resolved.scores == {"BICEPS": 5}
        assert resolved.inherit_chain == ("HAMMER_CURL",)

    @pytest.mark.asyncio
    async def test_resolve_selections(self, service):
        resolved = await service.resolve_selections(
            "HAMMER_CURL",
            [("grips", "SUPINATED"), ("motionPaths", "HIGH_LOW")],
        )
        assert [(r.row_id, r.scores, r.inherited) for r in resolved] == [
            ("SUPINATED", {"BICEP": 0.1}, True),
        ]
        with pytest.raises(ValidationError):
            await service.resolve_selections("CURL", [("stances", "WIDE")])

    @pytest.mark.asyncio
    async def test_delta_trees(self, service, gateway):
        gateway.tables["grips"][0]["delta_rules"]["CURL"] = {"BICEP_INNER": 0.3, "TRICEP": 0.2}
        display, edit = await service.delta_trees("CURL", "grips", "SUPINATED")
        assert [n.id for n in display] == ["ARM"]
        arm = edit.find("ARM")
        assert isinstance(arm, InternalNode)
        assert arm.derived_score == 0.5

    @pytest.mark.asyncio
    async def test_family_planes(self, service):
        planes = await service.family_planes("CURL")
        assert [(p.row_id, p.motion_id) for p in planes] == [
            ("HIGH_LOW", "HAMMER_CURL"),
            ("LOW_HIGH", None),
            ("MID_MID", "HAMMER_CURL"),
        ]


class TestQuickEdits:
    """Test single-cell writes."""

    @pytest.mark.asyncio
    async def test_set_delta_writes_one_key_and_syncs_one_level(self, service, gateway, rules_of):
        await service.set_delta("grips", "NEUTRAL", "HAMMER_CURL", INHERIT)
        assert rules_of("grips", "NEUTRAL") == {"CURL": {}, "HAMMER_CURL": "inherit"}
        assert gateway.syncs == ["HAMMER_CURL", "CURL"]
        relationships = await service.relationships_for("HAMMER_CURL")
        assert relationships["grips"][0].value == INHERIT

    @pytest.mark.asyncio
    async def test_base_motion_syncs_itself_only(self, service, gateway):
        await service.add_delta("motionPaths", "LOW_HIGH", "CURL")
        assert gateway.syncs == ["CURL"]

    @pytest.mark.asyncio
    async def test_remove_delta(self, service, rules_of):
        await service.remove_delta("motionPaths", "MID_MID", "CURL")
        assert rules_of("motionPaths", "MID_MID") == {"HAMMER_CURL": "inherit"}

    @pytest.mark.asyncio
    async def test_write_failure_raises(self, service, gateway):
        gateway.fail_updates.add(("grips", "NEUTRAL"))
        with pytest.raises(PersistenceError):
            await service.set_delta("grips", "NEUTRAL", "CURL", ScoreMap({"BICEP": 1}))
        assert gateway.syncs == []

    @pytest.mark.asyncio
    async def test_sync_failure_is_swallowed(self, service, gateway, rules_of):
        gateway.fail_syncs.add("HAMMER_CURL")
        await service.set_delta("grips", "SUPINATED", "HAMMER_CURL", ScoreMap({}))
        assert rules_of("grips", "SUPINATED")["HAMMER_CURL"] == {}
        assert gateway.syncs == []


class TestDraftCommit:
    """Test committing buffered edits."""

    @pytest.mark.asyncio
    async def test_commit_writes_and_clears(self, service, gateway, rules_of):
        draft = await service.new_draft("CURL")
        draft.set("grips", "SUPINATED", INHERIT)
        draft.remove("grips", "NEUTRAL")
        draft.add("motionPaths", "LOW_HIGH", "Low-High")

        result = await service.commit_draft(draft)

        assert (result.written, result.skipped) == (3, [])
        assert not draft.is_dirty
        assert rules_of("grips", "SUPINATED") == {"CURL": "inherit"}
        assert rules_of("grips", "NEUTRAL") == {"HAMMER_CURL": {"BRACHIORADIALIS": 0.2}}
        assert rules_of("motionPaths", "LOW_HIGH") == {"CURL": {}}
        assert gateway.syncs == ["CURL"]

    @pytest.mark.asyncio
    async def test_missing_row_skipped(self, service, gateway):
        draft = await service.new_draft("CURL")
        draft.add("grips", "WIDE", "Wide")
        draft.set("grips", "SUPINATED", ScoreMap({}))
        result = await service.commit_draft(draft)
        assert result.written == 1
        assert result.skipped == ['grips: row "WIDE" not found, skipped']
        assert [w[1] for w in gateway.writes] == ["SUPINATED"]
        assert not draft.is_dirty

    @pytest.mark.asyncio
    async def test_failure_keeps_draft_for_retry(self, service, gateway, rules_of):
        gateway.fail_updates.add(("grips", "NEUTRAL"))
        draft = await service.new_draft("CURL")
        draft.set("grips", "SUPINATED", INHERIT)
        draft.set("grips", "NEUTRAL", INHERIT)

        with pytest.raises(DraftCommitError) as exc_info:
            await service.commit_draft(draft)

        assert exc_info.value.written == 1
        assert exc_info.value.errors == ['grips "NEUTRAL": save failed - Failed to update grips/NEUTRAL']
        assert draft.is_dirty
        assert gateway.syncs == []

        gateway.fail_updates.clear()
        assert (await service.commit_draft(draft)).written == 2
        assert rules_of("grips", "NEUTRAL")["CURL"] == "inherit"
        assert not draft.is_dirty

    @pytest.mark.asyncio
    async def test_unknown_motion_cannot_draft(self, service):
        with pytest.raises(NotFoundError):
            await service.new_draft("NOPE")


class TestOtherWrites:
    """Test plane reassignment, grouping and import."""

    @pytest.mark.asyncio
    async def test_reassign_plane(self, service, gateway, rules_of):
        await service.reassign_plane("HIGH_LOW", "HAMMER_CURL", "CURL")
        assert rules_of("motionPaths", "HIGH_LOW") == {"CURL": {}}
        assert gateway.syncs == []
        planes = await service.family_planes("HAMMER_CURL")
        assert ("HIGH_LOW", "CURL") in [(p.row_id, p.motion_id) for p in planes]

    @pytest.mark.asyncio
    async def test_set_muscle_grouping(self, service, gateway):
        await service.set_muscle_grouping("CURL", "BICEP")
        assert gateway.writes[-1] == ("motions", "CURL", {"muscle_grouping_id": "BICEP"})
        assert await service.effective_grouping("CURL") == "BICEP"

        await service.set_muscle_grouping("CURL", None)
        assert await service.effective_grouping("CURL") == "ARM"

    @pytest.mark.asyncio
    async def test_set_muscle_grouping_rejects_unknown_muscle(self, service, gateway):
        with pytest.raises(ValidationError):
            await service.set_muscle_grouping("CURL", "GHOST")
        assert gateway.writes == []

    @pytest.mark.asyncio
    async def test_import_reloads_snapshot(self, service):
        result = await service.import_text('motion_id\tgrips\nPLANK\t{"NEUTRAL":{}}')
        assert result.updated == 1
        relationships = await service.relationships_for("PLANK")
        assert [r.row_id for r in relationships["grips"]] == ["NEUTRAL"]

    @pytest.mark.asyncio
    async def test_import_skips_unknown_motion(self, service, gateway, rules_of):
        result = await service.import_text('motion_id\tgrips\nNO_SUCH_MOTION\t{"SUPINATED":{"BICEP":1}}')
        assert result.updated == 0
        assert result.errors == ['Row 2: motion "NO_SUCH_MOTION" not found, skipped']
        assert rules_of("grips", "SUPINATED") == {"CURL": {"BICEP": 0.1}}
        assert gateway.writes == []

    @pytest.mark.asyncio
    async def test_export_text(self, service):
        text = await service.export_text()
        assert text.split("\n")[0].split("\t")[4:] == list(KEYS)


class TestGatewayLifecycle:
    @pytest.mark.asyncio
    async def test_close_delegates(self):
        closed = []

        class TrackingGateway(InMemoryTableGateway):
            async def close(self):
                closed.append(True)

        await MotionDeltaMatrixService(TrackingGateway()).close()
        assert closed == [True]
