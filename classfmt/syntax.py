"""Concrete syntax model for the members of a type body.

Nodes keep every character of the source, including comments and whitespace,
as trivia. They are immutable: each edit builds a new node and leaves the
original untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, Optional, Sequence, Tuple


class TriviaKind(str, Enum):
    WHITESPACE = "whitespace"
    END_OF_LINE = "end_of_line"
    COMMENT = "comment"
    DIRECTIVE = "directive"


@dataclass(frozen=True)
class Trivia:
    kind: TriviaKind
    text: str


_TRIVIA_RE = re.compile(
    r"(?P<eol>\r\n|\n|\r)"
    r"|(?P<ws>[^\S\r\n]+)"
    r"|(?P<comment>//[^\r\n]*|/\*.*?\*/)"
    r"|(?P<directive>#[^\r\n]*)",
    re.S,
)
_TRIVIA_KINDS = {
    "eol": TriviaKind.END_OF_LINE,
    "ws": TriviaKind.WHITESPACE,
    "comment": TriviaKind.COMMENT,
    "directive": TriviaKind.DIRECTIVE,
}


def split_trivia(text: str) -> Tuple[Trivia, ...]:
    """Split a run of non-code text into trivia pieces."""
    out = []
    pos = 0
    while pos < len(text):
        m = _TRIVIA_RE.match(text, pos)
        if not m or m.end() == pos:
            raise ValueError(f"not trivia at offset {pos}: {text[pos:pos + 20]!r}")
        out.append(Trivia(_TRIVIA_KINDS[m.lastgroup], m.group()))
        pos = m.end()
    return tuple(out)


def render_trivia(trivia: Iterable[Trivia]) -> str:
    return "".join(t.text for t in trivia)


def ends_with_blank_line(trailing: Sequence[Trivia], following: Sequence[Trivia] = ()) -> bool:
    """True when two line breaks separated only by whitespace occur."""
    seen_break = False
    for t in tuple(trailing) + tuple(following):
        if t.kind is TriviaKind.END_OF_LINE:
            if seen_break:
                return True
            seen_break = True
        elif t.kind is not TriviaKind.WHITESPACE:
            seen_break = False
    return False


def split_blank_prefix(trivia: Sequence[Trivia]) -> Tuple[Tuple[Trivia, ...], Tuple[Trivia, ...]]:
    """Split leading trivia into its blank lines and whatever follows them."""
    cut = 0
    for i, t in enumerate(trivia):
        if t.kind is TriviaKind.END_OF_LINE:
            cut = i + 1
        elif t.kind is not TriviaKind.WHITESPACE:
            break
    return tuple(trivia[:cut]), tuple(trivia[cut:])


# ---------- Literal helpers ----------

_ARG_NAME_RE = re.compile(r"^@?\w+\s*(?::(?!:)|=(?!=))\s*")
_REGULAR_STRING_RE = re.compile(r'"(?:[^"\\\r\n]|\\.)*"')
_VERBATIM_STRING_RE = re.compile(r'@"(?:[^"]|"")*"', re.S)
_CHAR_RE = re.compile(r"'(?:[^'\\\r\n]|\\.)+'")
_NUMBER_RE = re.compile(r"[0-9][0-9A-Za-z_]*(?:\.[0-9][0-9A-Za-z_]*)?|\.[0-9][0-9A-Za-z_]*")
_ESCAPE_RE = re.compile(r"\\(u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|x[0-9A-Fa-f]{1,4}|.)", re.S)
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "0": "\0", "a": "\a",
    "b": "\b", "f": "\f", "v": "\v", "\\": "\\", '"': '"', "'": "'",
}


def _unescape(body: str) -> str:
    def sub(m: re.Match) -> str:
        esc = m.group(1)
        if esc[0] in "uUx" and len(esc) > 1:
            return chr(int(esc[1:], 16))
        return _SIMPLE_ESCAPES.get(esc, esc)

    return _ESCAPE_RE.sub(sub, body)


def literal_value(expression: str) -> Optional[str]:
    """Value of a literal argument expression, or None if it is not a literal.

    Accepts an optional ``name:`` or ``name =`` prefix. Strings come back
    unescaped, numbers and booleans as written.
    """
    text = _ARG_NAME_RE.sub("", expression.strip(), count=1)
    if _REGULAR_STRING_RE.fullmatch(text):
        return _unescape(text[1:-1])
    if _VERBATIM_STRING_RE.fullmatch(text):
        return text[2:-1].replace('""', '"')
    if _CHAR_RE.fullmatch(text):
        return _unescape(text[1:-1])
    if _NUMBER_RE.fullmatch(text) or text in ("true", "false"):
        return text
    return None


# ---------- Attributes ----------

@dataclass(frozen=True)
class Attribute:
    name: str
    text: str
    arguments: Tuple[str, ...] = ()

    @property
    def simple_name(self) -> str:
        return re.split(r"\.|::", self.name)[-1]

    def matches(self, names: Iterable[str]) -> bool:
        names = tuple(names)
        return self.name in names or self.simple_name in names

    def first_literal(self) -> Optional[str]:
        if not self.arguments:
            return None
        return literal_value(self.arguments[0])


@dataclass(frozen=True)
class AttributeList:
    attributes: Tuple[Attribute, ...]
    text: str
    separator: Tuple[Trivia, ...] = ()
    target: Optional[str] = None

    def without(self, names: Iterable[str]) -> Optional["AttributeList"]:
        """Drop matching attributes; None when nothing is left."""
        names = tuple(names)
        return self._keep(tuple(a for a in self.attributes if not a.matches(names)))

    def without_attribute(self, attribute: Attribute) -> Optional["AttributeList"]:
        """Drop the first occurrence of ``attribute``; None when nothing is left."""
        if attribute not in self.attributes:
            return self
        idx = self.attributes.index(attribute)
        return self._keep(self.attributes[:idx] + self.attributes[idx + 1:])

    def _keep(self, kept: Tuple[Attribute, ...]) -> Optional["AttributeList"]:
        if len(kept) == len(self.attributes):
            return self
        if not kept:
            return None
        prefix = f"{self.target}: " if self.target else ""
        text = "[" + prefix + ", ".join(a.text for a in kept) + "]"
        return replace(self, attributes=kept, text=text)


# ---------- Members ----------

class MemberShape(str, Enum):
    FIELD = "field"
    PROPERTY = "property"
    CONSTRUCTOR = "constructor"
    METHOD = "method"
    EVENT = "event"
    EVENT_FIELD = "event_field"
    DELEGATE = "delegate"
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"
    OTHER = "other"


TYPE_SHAPES = frozenset({
    MemberShape.CLASS,
    MemberShape.STRUCT,
    MemberShape.INTERFACE,
    MemberShape.ENUM,
    MemberShape.RECORD,
})


@dataclass(frozen=True)
class MemberNode:
    shape: MemberShape
    declaration: str
    modifiers: Tuple[str, ...] = ()
    names: Tuple[str, ...] = ()
    attribute_lists: Tuple[AttributeList, ...] = ()
    leading_trivia: Tuple[Trivia, ...] = ()
    trailing_trivia: Tuple[Trivia, ...] = ()

    @property
    def name(self) -> str:
        return self.names[0] if self.names else ""

    @property
    def attributes(self) -> Iterator[Attribute]:
        for al in self.attribute_lists:
            yield from al.attributes

    @property
    def indentation(self) -> str:
        """Whitespace between the last line break of the leading trivia and the member."""
        indent = ""
        for t in self.leading_trivia:
            if t.kind is TriviaKind.WHITESPACE:
                indent = t.text
            else:
                indent = ""
        return indent

    def has_modifier(self, word: str) -> bool:
        return word in self.modifiers

    def find_attribute(self, names: Iterable[str]) -> Optional[Attribute]:
        names = tuple(names)
        for attr in self.attributes:
            if attr.matches(names):
                return attr
        return None

    def has_attribute(self, names: Iterable[str]) -> bool:
        return self.find_attribute(names) is not None

    def list_of(self, attribute: Attribute) -> Optional[AttributeList]:
        """The attribute list holding ``attribute``."""
        for al in self.attribute_lists:
            if attribute in al.attributes:
                return al
        return None

    def with_attribute(self, attribute: Attribute, newline: str = "\n", target: Optional[str] = None) -> "MemberNode":
        separator = [Trivia(TriviaKind.END_OF_LINE, newline)]
        if self.indentation:
            separator.append(Trivia(TriviaKind.WHITESPACE, self.indentation))
        new_list = AttributeList(
            attributes=(attribute,),
            text=f"[{target}: {attribute.text}]" if target else f"[{attribute.text}]",
            separator=tuple(separator),
            target=target,
        )
        return replace(self, attribute_lists=(new_list,) + self.attribute_lists)

    def without_attributes(self, names: Iterable[str]) -> "MemberNode":
        names = tuple(names)
        lists = []
        for al in self.attribute_lists:
            kept = al.without(names)
            if kept is not None:
                lists.append(kept)
        return replace(self, attribute_lists=tuple(lists))

    def without_attribute(self, attribute: Attribute) -> "MemberNode":
        """Drop one occurrence of ``attribute``, leaving other attributes alone."""
        lists = []
        removed = False
        for al in self.attribute_lists:
            if not removed and attribute in al.attributes:
                removed = True
                al = al.without_attribute(attribute)
                if al is None:
                    continue
            lists.append(al)
        return replace(self, attribute_lists=tuple(lists))

    def with_leading_trivia(self, trivia: Iterable[Trivia]) -> "MemberNode":
        return replace(self, leading_trivia=tuple(trivia))

    def with_trailing_trivia(self, trivia: Iterable[Trivia]) -> "MemberNode":
        return replace(self, trailing_trivia=tuple(trivia))

    def to_full_string(self) -> str:
        parts = [render_trivia(self.leading_trivia)]
        for al in self.attribute_lists:
            parts.append(al.text)
            parts.append(render_trivia(al.separator))
        parts.append(self.declaration)
        parts.append(render_trivia(self.trailing_trivia))
        return "".join(parts)
