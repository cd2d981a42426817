from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from classfmt.options import ReorganizeOptions
from classfmt.stages.classifier import MemberHandle, find_label
from classfmt.stages.grouping import group_positions
from classfmt.syntax import split_blank_prefix
from classfmt.utils import get_logger

logger = get_logger(__name__)


def _move_label(
    carrier: MemberHandle,
    leader: MemberHandle,
    options: ReorganizeOptions,
) -> Tuple[MemberHandle, MemberHandle]:
    """Move the section attribute from ``carrier`` onto ``leader``.

    The blank lines in front of the two members are swapped as well, so the
    gap that used to precede the label still precedes it.
    """
    attr = find_label(carrier.node, options.section_attributes)
    carrier_blank, carrier_rest = split_blank_prefix(carrier.node.leading_trivia)
    leader_blank, leader_rest = split_blank_prefix(leader.node.leading_trivia)

    leader_node = leader.node.with_leading_trivia(carrier_blank + leader_rest)
    leader_node = leader_node.with_attribute(attr, options.line_break, carrier.node.list_of(attr).target)
    carrier_node = carrier.node.without_attribute(attr)
    carrier_node = carrier_node.with_leading_trivia(leader_blank + carrier_rest)

    new_leader = replace(leader, node=leader_node, has_label=True, label_value=carrier.label_value)
    new_carrier = replace(carrier, node=carrier_node, has_label=False, label_value=None)
    return new_leader, new_carrier


def relocate_labels(
    handles: Sequence[MemberHandle],
    options: Optional[ReorganizeOptions] = None,
) -> List[MemberHandle]:
    """Put each group's label on the member that sorts first in the group."""
    options = options or ReorganizeOptions()
    out = list(handles)
    moved = 0
    for group_id, idxs in group_positions(out).items():
        leader_idx = idxs[0]
        carrier_idx = next((i for i in idxs if out[i].has_label), None)
        if carrier_idx is None or carrier_idx == leader_idx:
            continue
        out[leader_idx], out[carrier_idx] = _move_label(out[carrier_idx], out[leader_idx], options)
        moved += 1
        logger.debug(
            "relocate.labels: group=%d label=%r %s -> %s",
            group_id,
            out[leader_idx].label_value,
            out[carrier_idx].name,
            out[leader_idx].name,
        )
    logger.debug("relocate.labels: members=%d moved=%d", len(out), moved)
    return out
