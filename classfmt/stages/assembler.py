from __future__ import annotations

from typing import Dict, List, Mapping, Sequence, Tuple

from classfmt.stages.classifier import MemberHandle, MemberKind
from classfmt.utils import get_logger

logger = get_logger(__name__)

# Canonical section order; exposed and plain fields share one section
SECTIONS: Tuple[Tuple[MemberKind, ...], ...] = (
    (MemberKind.CONSTANT_FIELD,),
    (MemberKind.STATIC_FIELD,),
    (MemberKind.EXPOSED_FIELD, MemberKind.PLAIN_FIELD),
    (MemberKind.CONSTRUCTOR,),
    (MemberKind.PROPERTY,),
    (MemberKind.EVENT_OR_DELEGATE,),
    (MemberKind.LIFECYCLE_METHOD,),
    (MemberKind.PUBLIC_METHOD,),
    (MemberKind.PRIVATE_METHOD,),
    (MemberKind.NESTED_TYPE,),
)
FIELD_SECTIONS = (0, 1, 2)
INSTANCE_FIELD_SECTION = 2

_SECTION_OF: Dict[MemberKind, int] = {
    kind: idx for idx, kinds in enumerate(SECTIONS) for kind in kinds
}


def section_of(kind: MemberKind) -> int:
    return _SECTION_OF[kind]


def _group_key(h: MemberHandle) -> Tuple[int, int]:
    return (h.access_rank, h.group_id)


def gather_sections(slots: Mapping[MemberKind, Sequence[MemberHandle]]) -> List[List[MemberHandle]]:
    """Sorted slots merged into sections, in canonical order.

    A section built from several slots is re-bucketed by access rank and group,
    so each group stays contiguous with its exposed members ahead of the rest.
    """
    sections = []
    for kinds in SECTIONS:
        members = [h for kind in kinds for h in slots.get(kind, ())]
        if len(kinds) > 1:
            members.sort(key=_group_key)
        sections.append(members)
    return sections


def assemble(sections: Sequence[Sequence[MemberHandle]]) -> List[MemberHandle]:
    out = [h for section in sections for h in section]
    logger.debug("assemble.sections: members=%d sections=%d", len(out), sum(1 for s in sections if s))
    return out
