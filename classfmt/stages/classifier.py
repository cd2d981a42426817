from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence

from classfmt.options import ReorganizeOptions
from classfmt.syntax import Attribute, MemberNode, MemberShape, TYPE_SHAPES
from classfmt.utils import get_logger

logger = get_logger(__name__)


class InvalidInputError(ValueError):
    pass


class MemberKind(IntEnum):
    CONSTANT_FIELD = 0
    STATIC_FIELD = 1
    EXPOSED_FIELD = 2
    PLAIN_FIELD = 3
    CONSTRUCTOR = 4
    PROPERTY = 5
    EVENT_OR_DELEGATE = 6
    LIFECYCLE_METHOD = 7
    PUBLIC_METHOD = 8
    PRIVATE_METHOD = 9
    NESTED_TYPE = 10


FIELD_KINDS = frozenset({
    MemberKind.CONSTANT_FIELD,
    MemberKind.STATIC_FIELD,
    MemberKind.EXPOSED_FIELD,
    MemberKind.PLAIN_FIELD,
})

# Access ranks: Public < Internal/ProtectedInternal < Protected < Private
PUBLIC_RANK = 0
INTERNAL_RANK = 1
PROTECTED_RANK = 2
PRIVATE_RANK = 3


@dataclass(frozen=True)
class MemberHandle:
    node: MemberNode
    kind: MemberKind
    access_rank: int
    name: str
    has_label: bool = False
    label_value: Optional[str] = None
    group_id: int = 0
    groupable: bool = True


def access_rank(modifiers: Sequence[str]) -> int:
    """Rank of the declared accessibility; no modifier means private."""
    if "public" in modifiers:
        return PUBLIC_RANK
    if "internal" in modifiers:
        return INTERNAL_RANK
    if "protected" in modifiers:
        return PROTECTED_RANK
    return PRIVATE_RANK


def _is_public_surface(modifiers: Sequence[str]) -> bool:
    # "protected internal" stays with the private methods
    if "public" in modifiers:
        return True
    return "internal" in modifiers and "protected" not in modifiers


def find_label(node: MemberNode, section_names: Sequence[str]) -> Optional[Attribute]:
    """First section attribute whose first argument is a non-empty literal."""
    for attr in node.attributes:
        if attr.matches(section_names) and attr.first_literal():
            return attr
    return None


def _kind_of(node: MemberNode, options: ReorganizeOptions) -> MemberKind:
    shape = node.shape
    if shape is MemberShape.FIELD:
        if node.has_modifier("const"):
            return MemberKind.CONSTANT_FIELD
        if node.has_modifier("static"):
            return MemberKind.STATIC_FIELD
        if node.has_attribute(options.exposure_attributes):
            return MemberKind.EXPOSED_FIELD
        return MemberKind.PLAIN_FIELD
    if shape is MemberShape.PROPERTY:
        return MemberKind.PROPERTY
    if shape is MemberShape.CONSTRUCTOR:
        return MemberKind.CONSTRUCTOR
    if shape is MemberShape.METHOD:
        if node.name in options.lifecycle_methods:
            return MemberKind.LIFECYCLE_METHOD
        if _is_public_surface(node.modifiers):
            return MemberKind.PUBLIC_METHOD
        return MemberKind.PRIVATE_METHOD
    if shape in (MemberShape.EVENT, MemberShape.EVENT_FIELD, MemberShape.DELEGATE):
        return MemberKind.EVENT_OR_DELEGATE
    if shape in TYPE_SHAPES:
        return MemberKind.NESTED_TYPE
    return MemberKind.PLAIN_FIELD


def _is_groupable(node: MemberNode, kind: MemberKind) -> bool:
    if kind in FIELD_KINDS or kind is MemberKind.PROPERTY:
        return True
    return kind is MemberKind.EVENT_OR_DELEGATE and node.shape is not MemberShape.DELEGATE


def classify(node: MemberNode, options: Optional[ReorganizeOptions] = None) -> MemberHandle:
    if not isinstance(node, MemberNode):
        raise InvalidInputError(f"not a member declaration: {node!r}")
    options = options or ReorganizeOptions()
    kind = _kind_of(node, options)
    groupable = _is_groupable(node, kind)
    label = find_label(node, options.section_attributes) if groupable else None
    return MemberHandle(
        node=node,
        kind=kind,
        access_rank=access_rank(node.modifiers),
        name=node.name,
        has_label=label is not None,
        label_value=label.first_literal() if label else None,
        groupable=groupable,
    )


def classify_members(nodes: Sequence[MemberNode], options: Optional[ReorganizeOptions] = None) -> List[MemberHandle]:
    handles = [classify(n, options) for n in nodes]
    logger.debug(
        "classify.members: members=%d labelled=%d",
        len(handles),
        sum(1 for h in handles if h.has_label),
    )
    return handles
