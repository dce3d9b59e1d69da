"""Shared fixtures: a small arm/back muscle catalog, curl family motions and delta tables."""
import pytest

from deltamatrix.models.records import DeltaRow, Motion
from deltamatrix.repositories.memory import InMemoryTableGateway
from deltamatrix.scoring.hierarchy import MuscleCatalog
from deltamatrix.services.matrix_service import MotionDeltaMatrixService


MUSCLE_RECORDS = [
    {"id": "ARM", "label": "Arm", "parent_ids": []},
    {"id": "BICEP", "label": "Biceps", "parent_ids": ["ARM"]},
    {"id": "BICEP_INNER", "label": "Biceps (Short Head)", "parent_ids": ["BICEP"]},
    {"id": "BICEP_OUTER", "label": "Biceps (Long Head)", "parent_ids": ["BICEP"]},
    {"id": "TRICEP", "label": "Triceps", "parent_ids": ["ARM"]},
    {"id": "BACK", "label": "Back", "parent_ids": []},
    {"id": "LATS", "label": "Lats", "parent_ids": ["BACK"]},
    {"id": "BRACHIORADIALIS", "label": "Brachioradialis", "parent_ids": ["ARM", "BACK"]},
    {"id": "CHEST", "label": "Chest"},
]

MOTION_RECORDS = [
    {"id": "CURL", "label": "Curl", "muscle_targets": {"BICEP": 0.9}},
    {
        "id": "HAMMER_CURL",
        "label": "Hammer Curl",
        "parent_id": "CURL",
        "muscle_targets": {"BICEP": 0.6, "BRACHIORADIALIS": 0.4},
    },
    {"id": "PUSHDOWN", "label": "Pushdown", "muscle_targets": {"TRICEP": 0.9}},
    {
        "id": "PULLDOWN",
        "label": "Pulldown",
        "muscle_targets": {"LATS": 0.8},
        "muscle_grouping_id": "LATS",
    },
    {"id": "PLANK", "label": "Plank", "muscle_targets": None},
]

DELTA_TABLE_RECORDS = {
    "motionPaths": [
        {"id": "MID_MID", "label": "Mid-Mid", "delta_rules": {"CURL": {"BICEPS": 5}, "HAMMER_CURL": "inherit"}},
        {"id": "HIGH_LOW", "label": "High-Low", "delta_rules": {"HAMMER_CURL": {}}},
        {"id": "LOW_HIGH", "label": "Low-High", "delta_rules": {}},
    ],
    "grips": [
        {"id": "SUPINATED", "label": "Supinated", "delta_rules": {"CURL": {"BICEP": 0.1}}},
        {
            "id": "NEUTRAL",
            "label": "Neutral",
            "delta_rules": {"CURL": {}, "HAMMER_CURL": {"BRACHIORADIALIS": 0.2}},
        },
    ],
    "equipment": [
        {"id": "CABLE", "label": "Cable", "delta_rules": {"PUSHDOWN": "inherit", "CURL": {"BICEP": "x"}}},
    ],
}


def build_tables_data() -> dict:
    """Fresh copy of every table, keyed the way the admin API names them."""
    import copy

    data = {"muscles": copy.deepcopy(MUSCLE_RECORDS), "motions": copy.deepcopy(MOTION_RECORDS)}
    data.update(copy.deepcopy(DELTA_TABLE_RECORDS))
    return data


@pytest.fixture
def catalog() -> MuscleCatalog:
    return MuscleCatalog.from_records(MUSCLE_RECORDS)


@pytest.fixture
def motions() -> list[Motion]:
    return [Motion.from_record(r) for r in MOTION_RECORDS]


@pytest.fixture
def delta_tables() -> dict[str, list[DeltaRow]]:
    return {
        key: [DeltaRow.from_record(r) for r in rows]
        for key, rows in DELTA_TABLE_RECORDS.items()
    }


@pytest.fixture
def tables_data() -> dict:
    return build_tables_data()


@pytest.fixture
def gateway(tables_data) -> InMemoryTableGateway:
    return InMemoryTableGateway(tables_data)


@pytest.fixture
def service(gateway) -> MotionDeltaMatrixService:
    return MotionDeltaMatrixService(gateway)


@pytest.fixture
def rules_of(gateway):
    """Lookup of the current delta_rules of one row held by ``gateway``."""

    def lookup(table: str, row_id: str) -> dict:
        for row in gateway.tables[table]:
            if row["id"] == row_id:
                return row["delta_rules"]
        raise KeyError(row_id)

    return lookup
