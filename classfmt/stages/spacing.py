from __future__ import annotations

from dataclasses import replace
from typing import List, Sequence

from classfmt.stages.classifier import MemberHandle, MemberKind
from classfmt.stages.grouping import group_positions
from classfmt.syntax import MemberNode, Trivia, TriviaKind, ends_with_blank_line
from classfmt.utils import get_logger

logger = get_logger(__name__)


def _with_blank_line(node: MemberNode, following: MemberNode, newline: str) -> MemberNode:
    trailing = list(node.trailing_trivia)
    for _ in range(2):
        if ends_with_blank_line(trailing, following.leading_trivia):
            break
        trailing.append(Trivia(TriviaKind.END_OF_LINE, newline))
    return node.with_trailing_trivia(trailing)


def separate_groups(handles: Sequence[MemberHandle], newline: str = "\n") -> List[MemberHandle]:
    """Leave a blank line after the last exposed field of every group.

    Only applies when other members of the same group come after it.
    """
    out = list(handles)
    added = 0
    for idxs in group_positions(out).values():
        last_exposed = next((i for i in reversed(idxs) if out[i].kind is MemberKind.EXPOSED_FIELD), None)
        if last_exposed is None or last_exposed == idxs[-1]:
            continue
        following = out[last_exposed + 1].node
        node = out[last_exposed].node
        if ends_with_blank_line(node.trailing_trivia, following.leading_trivia):
            continue
        out[last_exposed] = replace(out[last_exposed], node=_with_blank_line(node, following, newline))
        added += 1
    logger.debug("spacing.groups: members=%d blank_lines_added=%d", len(out), added)
    return out
