"""Request and response models for the matrix API."""
from typing import Literal

from pydantic import BaseModel, Field, model_validator


DeltaValueField = dict[str, float] | Literal["inherit"]


class GroupedItemResponse(BaseModel):
    """A section header or a motion row in the grouped listing."""

    type: Literal["header", "motion"]
    label: str
    level: int = Field(..., ge=0, le=3)
    id: str | None = None
    muscle_id: str | None = None
    parent_id: str | None = None


class RelationshipResponse(BaseModel):
    table_key: str
    row_id: str
    row_label: str
    value: DeltaValueField


class CountsResponse(BaseModel):
    total: int = 0
    inherit: int = 0
    empty: int = 0
    configured: int = 0


class MuscleOptionResponse(BaseModel):
    id: str
    label: str
    path: str


class OptionGroupResponse(BaseModel):
    primary: dict[str, str]
    options: list[MuscleOptionResponse]


class GroupingOptionsResponse(BaseModel):
    motion_id: str
    stored: str | None = None
    default: str | None = None
    effective: str | None = None
    groups: list[OptionGroupResponse] = Field(default_factory=list)


class GroupingUpdate(BaseModel):
    """Set or clear a motion's grouping muscle."""

    muscle_grouping_id: str | None = None


class DraftCell(BaseModel):
    """One buffered cell; ``remove`` drops the motion's key from the row."""

    table_key: str
    row_id: str
    value: DeltaValueField | None = None
    remove: bool = False

    @model_validator(mode="after")
    def check_value(self):
        if not self.remove and self.value is None:
            raise ValueError("value is required unless remove is set")
        return self


class DraftAddedRow(BaseModel):
    table_key: str
    row_id: str
    row_label: str | None = None


class DraftCommitRequest(BaseModel):
    overrides: list[DraftCell] = Field(default_factory=list)
    added: list[DraftAddedRow] = Field(default_factory=list)


class DraftCommitResponse(BaseModel):
    motion_id: str
    written: int
    skipped: list[str] = Field(default_factory=list)


class PlaneAssignmentResponse(BaseModel):
    row_id: str
    row_label: str
    motion_id: str | None = None
    motion_label: str | None = None


class PlaneReassignRequest(BaseModel):
    from_motion_id: str | None = None
    to_motion_id: str


class ResolvedDeltaResponse(BaseModel):
    table_key: str
    row_id: str
    motion_id: str
    scores: dict[str, float]
    inherited: bool = False
    inherit_chain: list[str] = Field(default_factory=list)


class DeltaSelection(BaseModel):
    table_key: str
    row_id: str


class ResolveSelectionsRequest(BaseModel):
    """Rows chosen for a motion, one per table or more."""

    selections: list[DeltaSelection] = Field(default_factory=list)


class DeltaDetailResponse(BaseModel):
    """One relationship cell with its trees and inherited resolution."""

    value: DeltaValueField | None = None
    display_tree: list[dict] = Field(default_factory=list)
    edit_tree: dict = Field(default_factory=dict)
    resolved: ResolvedDeltaResponse | None = None


class ImportRequest(BaseModel):
    text: str


class ImportResultResponse(BaseModel):
    updated: int
    errors: list[str] = Field(default_factory=list)


class DeltaTableResponse(BaseModel):
    key: str
    label: str
    group: str


class TableGroupResponse(BaseModel):
    """A run of adjacent tables sharing a group, for spanning column headers."""

    group: str
    start: int
    count: int


class TableCatalogResponse(BaseModel):
    tables: list[DeltaTableResponse]
    groups: list[TableGroupResponse]
