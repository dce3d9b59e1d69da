"""API routes for the motion delta matrix."""
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from deltamatrix.config.delta_tables import DELTA_TABLES, DeltaTable, grouped_table_headers
from deltamatrix.exchange.delimited import COMMA, TAB
from deltamatrix.matrix.drafts import DraftBuffer
from deltamatrix.models.delta_value import INHERIT, Absent, ScoreMap
from deltamatrix.schemas.base import APIResponse, ResponseMeta
from deltamatrix.schemas.matrix import (
    CountsResponse,
    DeltaDetailResponse,
    DeltaTableResponse,
    DraftCommitRequest,
    DraftCommitResponse,
    GroupedItemResponse,
    GroupingOptionsResponse,
    GroupingUpdate,
    ImportRequest,
    ImportResultResponse,
    PlaneAssignmentResponse,
    PlaneReassignRequest,
    RelationshipResponse,
    ResolveSelectionsRequest,
    ResolvedDeltaResponse,
    TableCatalogResponse,
    TableGroupResponse,
)
from deltamatrix.services.matrix_service import MotionDeltaMatrixService

router = APIRouter()


def get_matrix_service(request: Request) -> MotionDeltaMatrixService:
    """Matrix service attached to the application at startup."""
    return request.app.state.matrix_service


def _meta(request: Request, warnings: list[str] | None = None) -> ResponseMeta:
    return ResponseMeta(
        request_id=getattr(request.state, "request_id", None),
        warnings=warnings or [],
    )


@router.get("/tables", response_model=APIResponse[TableCatalogResponse])
async def list_delta_tables(
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """Delta tables served by this matrix, with their column-group spans."""
    known = {t.key: t for t in DELTA_TABLES}
    tables = tuple(known.get(key) or DeltaTable(key, key, "") for key in service.table_keys)
    return APIResponse(
        data=TableCatalogResponse(
            tables=[DeltaTableResponse(key=t.key, label=t.label, group=t.group) for t in tables],
            groups=[
                TableGroupResponse(group=group, start=start, count=count)
                for group, start, count in grouped_table_headers(tables)
            ],
        ),
        meta=_meta(request),
    )


@router.get("/motions/grouped", response_model=APIResponse[list[GroupedItemResponse]])
async def list_grouped_motions(
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """Motions ordered and sectioned by their effective grouping muscle."""
    items = await service.grouped_motions()
    return APIResponse(
        data=[GroupedItemResponse(**item.to_dict()) for item in items],
        meta=_meta(request),
    )


@router.get(
    "/motions/{motion_id}/relationships",
    response_model=APIResponse[dict[str, list[RelationshipResponse]]],
)
async def get_relationships(
    motion_id: str,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    await service.get_motion(motion_id)
    relationships = await service.relationships_for(motion_id)
    return APIResponse(
        data={
            table_key: [RelationshipResponse(**rel.to_dict()) for rel in rels]
            for table_key, rels in relationships.items()
        },
        meta=_meta(request),
    )


@router.get("/motions/{motion_id}/counts", response_model=APIResponse[dict[str, CountsResponse]])
async def get_counts(
    motion_id: str,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """Relationship counts per delta table, every table included."""
    await service.get_motion(motion_id)
    data = {}
    for table_key in service.table_keys:
        counts = await service.counts_for(motion_id, table_key)
        data[table_key] = CountsResponse(**counts.to_dict())
    return APIResponse(data=data, meta=_meta(request))


@router.get(
    "/motions/{motion_id}/grouping-options",
    response_model=APIResponse[GroupingOptionsResponse],
)
async def get_grouping_options(
    motion_id: str,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    motion = await service.get_motion(motion_id)
    groups, default = await service.grouping_options(motion_id)
    return APIResponse(
        data=GroupingOptionsResponse(
            motion_id=motion_id,
            stored=motion.muscle_grouping_id,
            default=default,
            effective=await service.effective_grouping(motion_id),
            groups=[g.to_dict() for g in groups],
        ),
        meta=_meta(request),
    )


@router.put("/motions/{motion_id}/grouping", response_model=APIResponse[GroupingOptionsResponse])
async def update_grouping(
    motion_id: str,
    payload: GroupingUpdate,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    await service.set_muscle_grouping(motion_id, payload.muscle_grouping_id or None)
    return await get_grouping_options(motion_id, request, service)


@router.get(
    "/motions/{motion_id}/deltas/{table_key}/{row_id}",
    response_model=APIResponse[DeltaDetailResponse],
)
async def get_delta_detail(
    motion_id: str,
    table_key: str,
    row_id: str,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """One cell with its display tree, edit tree and inherited resolution."""
    await service.get_motion(motion_id)
    row = await service.get_row(table_key, row_id)
    value = row.rule_for(motion_id)
    display_tree, edit_tree = await service.delta_trees(motion_id, table_key, row_id)
    resolved = await service.resolve_delta(motion_id, table_key, row_id)
    return APIResponse(
        data=DeltaDetailResponse(
            value=None if isinstance(value, Absent) else value.to_raw(),
            display_tree=[node.to_dict() for node in display_tree],
            edit_tree=edit_tree.to_dict(),
            resolved=ResolvedDeltaResponse(**resolved.to_dict()) if resolved else None,
        ),
        meta=_meta(request),
    )


@router.post(
    "/motions/{motion_id}/deltas/resolve",
    response_model=APIResponse[list[ResolvedDeltaResponse]],
)
async def resolve_selected_deltas(
    motion_id: str,
    payload: ResolveSelectionsRequest,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """Resolve the modifiers a set of chosen rows applies to a motion, following inherit chains."""
    selections = [(s.table_key, s.row_id) for s in payload.selections]
    resolved = await service.resolve_selections(motion_id, selections)
    return APIResponse(
        data=[ResolvedDeltaResponse(**r.to_dict()) for r in resolved],
        meta=_meta(request),
    )


@router.post("/motions/{motion_id}/draft", response_model=APIResponse[DraftCommitResponse])
async def commit_draft(
    motion_id: str,
    payload: DraftCommitRequest,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """Commit a batch of buffered cell edits for one motion."""
    draft: DraftBuffer = await service.new_draft(motion_id)
    for added in payload.added:
        draft.add(added.table_key, added.row_id, added.row_label)
    for cell in payload.overrides:
        if cell.remove:
            draft.remove(cell.table_key, cell.row_id)
        elif cell.value == "inherit":
            draft.set(cell.table_key, cell.row_id, INHERIT)
        else:
            draft.set(cell.table_key, cell.row_id, ScoreMap(dict(cell.value)))
    result = await service.commit_draft(draft)
    return APIResponse(
        data=DraftCommitResponse(motion_id=motion_id, **result.to_dict()),
        meta=_meta(request, result.skipped),
    )


@router.get(
    "/motions/{motion_id}/family-planes",
    response_model=APIResponse[list[PlaneAssignmentResponse]],
)
async def get_family_planes(
    motion_id: str,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    planes = await service.family_planes(motion_id)
    return APIResponse(
        data=[PlaneAssignmentResponse(**p.to_dict()) for p in planes],
        meta=_meta(request),
    )


@router.post("/planes/{row_id}/reassign", response_model=APIResponse[list[PlaneAssignmentResponse]])
async def reassign_plane(
    row_id: str,
    payload: PlaneReassignRequest,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    await service.reassign_plane(row_id, payload.from_motion_id, payload.to_motion_id)
    return await get_family_planes(payload.to_motion_id, request, service)


@router.get("/export", response_class=PlainTextResponse)
async def export_matrix(
    format: Literal["tsv", "csv"] = Query("tsv"),
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """Whole matrix as tab- or comma-separated text."""
    text = await service.export_text(TAB if format == "tsv" else COMMA)
    media_type = "text/csv" if format == "csv" else "text/tab-separated-values"
    return PlainTextResponse(
        text,
        media_type=f"{media_type}; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="motion-delta-matrix.{format}"'},
    )


@router.post("/import", response_model=APIResponse[ImportResultResponse])
async def import_matrix(
    payload: ImportRequest,
    request: Request,
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    """Apply pasted exchange text. Per-row problems are returned, not raised."""
    result = await service.import_text(payload.text)
    return APIResponse(
        data=ImportResultResponse(**result.to_dict()),
        meta=_meta(request, warnings=result.errors),
    )


@router.post("/reload")
async def reload_matrix(
    service: MotionDeltaMatrixService = Depends(get_matrix_service),
):
    snapshot = await service.load()
    return {
        "motions": len(snapshot.motions),
        "muscles": len(snapshot.muscles),
        "tables": {key: len(rows) for key, rows in snapshot.tables.items()},
    }
