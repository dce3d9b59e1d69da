"""Muscle hierarchy walking, score aggregation, selection and grouping."""
from deltamatrix.scoring.aggregation import argmax, calculated_score, is_derived
from deltamatrix.scoring.grouping import (
    MotionRow,
    SectionHeader,
    effective_grouping_id,
    group_motions,
)
from deltamatrix.scoring.hierarchy import (
    MuscleCatalog,
    ancestors,
    depth_under_root,
    find_root,
    level_of,
    paths_from_roots,
    primary_ancestors,
    primary_descendants,
    primary_path,
)
from deltamatrix.scoring.selection import (
    MuscleOption,
    OptionGroup,
    best_default,
    option_groups,
    selectable_ids,
)

__all__ = [
    "MotionRow",
    "MuscleCatalog",
    "MuscleOption",
    "OptionGroup",
    "SectionHeader",
    "ancestors",
    "argmax",
    "best_default",
    "calculated_score",
    "depth_under_root",
    "effective_grouping_id",
    "find_root",
    "group_motions",
    "is_derived",
    "level_of",
    "option_groups",
    "paths_from_roots",
    "primary_ancestors",
    "primary_descendants",
    "primary_path",
    "selectable_ids",
]
