from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, NamedTuple, Sequence, Tuple

from classfmt.stages.classifier import MemberHandle
from classfmt.utils import get_logger

logger = get_logger(__name__)

UNGROUPED = 0


class GroupState(NamedTuple):
    current: int = 0
    open_group: int = -1


def step(state: GroupState, handle: MemberHandle, *, reset_on_non_field: bool = True) -> Tuple[GroupState, int]:
    """Advance the scan by one member in declaration order.

    Returns the new state and the group id for ``handle``. A label opens a new
    group that every following unlabeled member joins until the next label.
    With ``reset_on_non_field`` a member outside grouping closes the open
    group, and later unlabeled members fall back to UNGROUPED until the next
    label.
    """
    current, open_group = state
    if not handle.groupable:
        if reset_on_non_field and open_group >= 0:
            return GroupState(current, -1), UNGROUPED
        return state, UNGROUPED
    if handle.has_label:
        current += 1
        open_group = current
    group_id = open_group if open_group >= 0 else UNGROUPED
    return GroupState(current, open_group), group_id


def group_positions(handles: Sequence[MemberHandle]) -> Dict[int, List[int]]:
    """Indices of each group's members, in list order."""
    positions: Dict[int, List[int]] = {}
    for i, h in enumerate(handles):
        positions.setdefault(h.group_id, []).append(i)
    return positions


def assign_groups(handles: Sequence[MemberHandle], *, reset_on_non_field: bool = True) -> List[MemberHandle]:
    state = GroupState()
    out: List[MemberHandle] = []
    for h in handles:
        state, group_id = step(state, h, reset_on_non_field=reset_on_non_field)
        out.append(replace(h, group_id=group_id))
    logger.debug("group.assign: members=%d groups=%d reset=%s", len(out), state.current, reset_on_non_field)
    return out
