"""The reorganization pipeline for a single type body.

classify -> group -> sort -> relocate labels -> space groups -> assemble.
Each stage takes and returns plain lists of ``MemberHandle``; nothing is
shared between calls.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from classfmt.options import ReorganizeOptions
from classfmt.stages.assembler import FIELD_SECTIONS, INSTANCE_FIELD_SECTION, assemble, gather_sections
from classfmt.stages.classifier import InvalidInputError, MemberHandle, classify_members
from classfmt.stages.grouping import assign_groups
from classfmt.stages.relocator import relocate_labels
from classfmt.stages.sorter import sort_slots
from classfmt.stages.spacing import separate_groups
from classfmt.syntax import MemberNode

__all__ = ["InvalidInputError", "reorganize", "reorganize_handles"]


def reorganize_handles(
    members: Sequence[MemberNode],
    options: Optional[ReorganizeOptions] = None,
) -> List[MemberHandle]:
    options = options or ReorganizeOptions()
    handles = classify_members(list(members), options)
    handles = assign_groups(handles, reset_on_non_field=options.reset_groups_on_non_field)
    sections = gather_sections(sort_slots(handles))
    for idx in FIELD_SECTIONS:
        sections[idx] = relocate_labels(sections[idx], options)
    if options.spacing_enabled:
        sections[INSTANCE_FIELD_SECTION] = separate_groups(sections[INSTANCE_FIELD_SECTION], options.line_break)
    return assemble(sections)


def reorganize(
    members: Sequence[MemberNode],
    options: Optional[ReorganizeOptions] = None,
) -> List[MemberNode]:
    """New member order for one type body; the input nodes are not modified."""
    return [h.node for h in reorganize_handles(members, options)]
