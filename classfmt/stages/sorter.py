from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from classfmt.stages.classifier import FIELD_KINDS, MemberHandle, MemberKind
from classfmt.utils import get_logger

logger = get_logger(__name__)

# Slots that ignore grouping: access rank, then name
UNGROUPED_KINDS = frozenset({
    MemberKind.CONSTRUCTOR,
    MemberKind.LIFECYCLE_METHOD,
    MemberKind.PUBLIC_METHOD,
    MemberKind.PRIVATE_METHOD,
    MemberKind.NESTED_TYPE,
})


def sort_key(h: MemberHandle) -> Tuple:
    if h.kind in UNGROUPED_KINDS:
        return (h.access_rank, h.name)
    if h.kind in FIELD_KINDS:
        # the label carrier only wins ties on name; the relocator moves labels
        return (h.access_rank, h.group_id, h.name, 0 if h.has_label else 1)
    return (h.access_rank, h.group_id, h.name)


def sort_slot(handles: Sequence[MemberHandle]) -> List[MemberHandle]:
    # sorted() is stable, so exact ties keep declaration order
    return sorted(handles, key=sort_key)


def split_slots(handles: Sequence[MemberHandle]) -> Dict[MemberKind, List[MemberHandle]]:
    slots: Dict[MemberKind, List[MemberHandle]] = {kind: [] for kind in MemberKind}
    for h in handles:
        slots[h.kind].append(h)
    return slots


def sort_slots(handles: Sequence[MemberHandle]) -> Dict[MemberKind, List[MemberHandle]]:
    slots = {kind: sort_slot(members) for kind, members in split_slots(handles).items()}
    logger.debug(
        "sort.slots: %s",
        " ".join(f"{kind.name.lower()}={len(members)}" for kind, members in slots.items() if members),
    )
    return slots
