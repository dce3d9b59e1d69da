"""Delta rule matrix: relationships, inheritance, score trees, drafts and families."""
from deltamatrix.matrix.drafts import (
    REMOVE,
    DraftBuffer,
    DraftCommitResult,
    RemoveMarker,
    cell_key,
    split_cell_key,
)
from deltamatrix.matrix.family import (
    PlaneAssignment,
    family_motions,
    family_plane_assignments,
    reassign_plane,
)
from deltamatrix.matrix.relationships import (
    DeltaRelationship,
    RelationshipCounts,
    ResolvedDelta,
    counts_for,
    relationships_for,
    resolve_all_deltas,
    resolve_delta,
)
from deltamatrix.matrix.trees import (
    DisplayNode,
    EditTree,
    InternalNode,
    LeafScore,
    add_muscle,
    build_display_tree,
    build_edit_tree,
    flatten_edit_tree,
    remove_muscle,
    set_leaf_score,
)

__all__ = [
    "REMOVE",
    "DeltaRelationship",
    "DisplayNode",
    "DraftBuffer",
    "DraftCommitResult",
    "EditTree",
    "InternalNode",
    "LeafScore",
    "PlaneAssignment",
    "RelationshipCounts",
    "RemoveMarker",
    "ResolvedDelta",
    "add_muscle",
    "build_display_tree",
    "build_edit_tree",
    "cell_key",
    "counts_for",
    "family_motions",
    "family_plane_assignments",
    "flatten_edit_tree",
    "reassign_plane",
    "relationships_for",
    "remove_muscle",
    "resolve_all_deltas",
    "resolve_delta",
    "set_leaf_score",
    "split_cell_key",
]
