"""Member-level reader and writer for C# source.

Only as much of the grammar is recognised as the reorganizer needs: class
bodies at compilation-unit or namespace level, split into member nodes with
their trivia. Member declarations are kept as opaque source text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from classfmt.syntax import (
    Attribute,
    AttributeList,
    MemberNode,
    MemberShape,
    TriviaKind,
    split_trivia,
)
from classfmt.utils import get_logger

logger = get_logger(__name__)


class SourceParseError(ValueError):
    pass


IDENT = "ident"
LITERAL = "literal"
PUNCT = "punct"


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int


MODIFIERS = frozenset({
    "public", "private", "protected", "internal", "static", "readonly", "const",
    "volatile", "virtual", "override", "abstract", "sealed", "extern", "unsafe",
    "new", "partial", "async", "required", "file", "fixed", "ref",
})
TYPE_KEYWORDS = {
    "class": MemberShape.CLASS,
    "struct": MemberShape.STRUCT,
    "interface": MemberShape.INTERFACE,
    "enum": MemberShape.ENUM,
    "record": MemberShape.RECORD,
}
_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = {v: k for k, v in _OPEN.items()}

_IDENT_RE = re.compile(r"@?[^\W\d]\w*")
_NUMBER_RE = re.compile(r"\d\w*(?:\.\d\w*)?")
_STRING_PREFIX_RE = re.compile(r"[@$]*(?=\")")
_QUOTES_RE = re.compile(r'"+')
_LINE_END_RE = re.compile(r"[\r\n]")


# ---------- Tokenizer ----------

def _skip_quoted(text: str, i: int, quote: str) -> int:
    """End offset of a regular string or char literal starting at ``i``."""
    j = i + 1
    while j < len(text):
        c = text[j]
        if c == "\\":
            j += 2
            continue
        if c == quote:
            return j + 1
        if c in "\r\n":
            break
        j += 1
    raise SourceParseError(f"unterminated literal at offset {i}")


def _skip_hole(text: str, i: int) -> int:
    """End offset of an interpolation hole whose '{' is at ``i``."""
    depth = 0
    j = i
    while j < len(text):
        c = text[j]
        if c in "\"'@$" and (c in "\"'" or _STRING_PREFIX_RE.match(text, j)):
            j = _skip_literal(text, j)
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return j + 1
        j += 1
    raise SourceParseError(f"unterminated interpolation at offset {i}")


def _skip_literal(text: str, i: int) -> int:
    if text[i] == "'":
        return _skip_quoted(text, i, "'")
    prefix = _STRING_PREFIX_RE.match(text, i).group()
    verbatim = "@" in prefix
    interpolated = "$" in prefix
    j = i + len(prefix)
    quotes = len(_QUOTES_RE.match(text, j).group())
    if quotes >= 3 and not verbatim:
        delim = '"' * quotes
        end = text.find(delim, j + quotes)
        if end < 0:
            raise SourceParseError(f"unterminated raw string at offset {i}")
        return end + quotes
    j += 1
    while j < len(text):
        c = text[j]
        if c == "\\" and not verbatim:
            j += 2
            continue
        if c == '"':
            if verbatim and text.startswith('""', j):
                j += 2
                continue
            return j + 1
        if interpolated and c == "{":
            if text.startswith("{{", j):
                j += 2
                continue
            j = _skip_hole(text, j)
            continue
        if c in "\r\n" and not verbatim:
            break
        j += 1
    raise SourceParseError(f"unterminated string at offset {i}")


def tokenize(text: str) -> List[Token]:
    """Significant tokens only; the gaps between them are trivia."""
    tokens: List[Token] = []
    i = 0
    n = len(text)
    line_start = True
    while i < n:
        c = text[i]
        if c in "\r\n":
            i += 1
            line_start = True
            continue
        if c.isspace():
            i += 1
            continue
        if text.startswith("//", i):
            nl = _LINE_END_RE.search(text, i)
            i = nl.start() if nl else n
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                raise SourceParseError(f"unterminated comment at offset {i}")
            i = end + 2
            line_start = False
            continue
        if c == "#" and line_start:
            nl = _LINE_END_RE.search(text, i)
            i = nl.start() if nl else n
            continue
        line_start = False
        if c in "\"'" or (c in "@$" and _STRING_PREFIX_RE.match(text, i)):
            end = _skip_literal(text, i)
            tokens.append(Token(LITERAL, text[i:end], i, end))
            i = end
            continue
        m = _IDENT_RE.match(text, i)
        if m:
            tokens.append(Token(IDENT, m.group(), i, m.end()))
            i = m.end()
            continue
        m = _NUMBER_RE.match(text, i)
        if m:
            tokens.append(Token(LITERAL, m.group(), i, m.end()))
            i = m.end()
            continue
        width = 2 if text.startswith("=>", i) or text.startswith("::", i) else 1
        tokens.append(Token(PUNCT, text[i:i + width], i, i + width))
        i += width
    return tokens


def match_brackets(tokens: Sequence[Token]) -> Dict[int, int]:
    """Map the index of every opening bracket token to its closing partner."""
    pairs: Dict[int, int] = {}
    stack: List[int] = []
    for idx, tok in enumerate(tokens):
        if tok.kind != PUNCT:
            continue
        if tok.text in _OPEN:
            stack.append(idx)
        elif tok.text in _CLOSE:
            if not stack or tokens[stack[-1]].text != _CLOSE[tok.text]:
                raise SourceParseError(f"unbalanced {tok.text!r} at offset {tok.start}")
            pairs[stack.pop()] = idx
    if stack:
        tok = tokens[stack[-1]]
        raise SourceParseError(f"unclosed {tok.text!r} at offset {tok.start}")
    return pairs


# ---------- Source model ----------

@dataclass(frozen=True)
class TypeBody:
    name: str
    start: int
    end: int
    members: Tuple[MemberNode, ...]


@dataclass(frozen=True)
class SourceFile:
    text: str
    types: Tuple[TypeBody, ...]

    def render(self, replacements: Optional[Mapping[int, Sequence[MemberNode]]] = None) -> str:
        """Write the file back, substituting member lists by type index."""
        replacements = replacements or {}
        parts = []
        cursor = 0
        for idx, body in enumerate(self.types):
            members = replacements.get(idx, body.members)
            parts.append(self.text[cursor:body.start])
            parts.extend(m.to_full_string() for m in members)
            cursor = body.end
        parts.append(self.text[cursor:])
        return "".join(parts)


class _Reader:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pairs = match_brackets(self.tokens)

    def tok(self, idx: int) -> Optional[Token]:
        return self.tokens[idx] if 0 <= idx < len(self.tokens) else None

    def is_punct(self, idx: int, text: str) -> bool:
        t = self.tok(idx)
        return t is not None and t.kind == PUNCT and t.text == text

    def is_ident(self, idx: int, text: Optional[str] = None) -> bool:
        t = self.tok(idx)
        return t is not None and t.kind == IDENT and (text is None or t.text == text)

    def gap(self, idx: int) -> str:
        """Text between token ``idx`` and the token after it."""
        start = self.tokens[idx].end
        nxt = self.tok(idx + 1)
        return self.text[start:nxt.start if nxt else len(self.text)]

    def trailing_end(self, idx: int) -> int:
        """Offset where the trailing trivia of token ``idx`` stops."""
        start = self.tokens[idx].end
        pos = start
        for t in split_trivia(self.gap(idx)):
            pos += len(t.text)
            if t.kind is TriviaKind.END_OF_LINE:
                break
        return pos

    # ---------- container level ----------

    def scan_container(self, start: int, stop: int, out: List[TypeBody]) -> None:
        i = start
        while i < stop:
            tok = self.tokens[i]
            if tok.kind == IDENT and tok.text == "namespace":
                j = i + 1
                while j < stop and not (self.is_punct(j, "{") or self.is_punct(j, ";")):
                    j += 1
                if j < stop and self.is_punct(j, "{"):
                    close = self.pairs[j]
                    self.scan_container(j + 1, close, out)
                    i = close + 1
                else:
                    i = j + 1
                continue
            if tok.kind == IDENT and tok.text == "class" and not self._is_constraint(i):
                i = self._read_class(i, stop, out)
                continue
            if tok.kind == PUNCT and tok.text in _OPEN:
                i = self.pairs[i] + 1
                continue
            i += 1

    def _is_constraint(self, idx: int) -> bool:
        prev = self.tok(idx - 1)
        return prev is not None and prev.kind == PUNCT and prev.text in (":", ",", "<")

    def _read_class(self, idx: int, stop: int, out: List[TypeBody]) -> int:
        name = self.tokens[idx + 1].text if self.is_ident(idx + 1) else ""
        j = idx + 1
        while j < stop:
            if self.is_punct(j, ";"):
                return j + 1
            if self.is_punct(j, "{"):
                break
            if self.tokens[j].kind == PUNCT and self.tokens[j].text in ("(", "["):
                j = self.pairs[j]
            j += 1
        else:
            return stop
        close = self.pairs[j]
        out.append(self.read_body(name, j, close))
        return close + 1

    # ---------- type body ----------

    def read_body(self, name: str, open_idx: int, close_idx: int) -> TypeBody:
        body_start = self.trailing_end(open_idx)
        pos = body_start
        idx = open_idx + 1
        members: List[MemberNode] = []
        while idx < close_idx:
            leading = split_trivia(self.text[pos:self.tokens[idx].start])
            lists: List[AttributeList] = []
            while self.is_punct(idx, "["):
                end = self.pairs[idx]
                lists.append(self._attribute_list(idx, end))
                idx = end + 1
            if idx >= close_idx:
                raise SourceParseError(f"dangling attribute list in {name} at offset {self.tokens[idx - 1].start}")
            end = self._declaration_end(idx, close_idx)
            shape, modifiers, names = self._describe(idx, end)
            trailing_stop = self.trailing_end(end)
            members.append(MemberNode(
                shape=shape,
                declaration=self.text[self.tokens[idx].start:self.tokens[end].end],
                modifiers=modifiers,
                names=names,
                attribute_lists=tuple(lists),
                leading_trivia=leading,
                trailing_trivia=split_trivia(self.text[self.tokens[end].end:trailing_stop]),
            ))
            pos = trailing_stop
            idx = end + 1
        logger.debug("parse.body: type=%s members=%d", name, len(members))
        return TypeBody(name=name, start=body_start, end=pos if members else body_start, members=tuple(members))

    def _attribute_list(self, open_idx: int, close_idx: int) -> AttributeList:
        i = open_idx + 1
        target = None
        if self.is_ident(i) and self.is_punct(i + 1, ":"):
            target = self.tokens[i].text
            i += 2
        attributes = [self._attribute(a, b) for a, b in self._split_commas(i, close_idx)]
        return AttributeList(
            attributes=tuple(attributes),
            text=self.text[self.tokens[open_idx].start:self.tokens[close_idx].end],
            separator=split_trivia(self.gap(close_idx)),
            target=target,
        )

    def _attribute(self, start: int, stop: int) -> Attribute:
        j = start
        while j < stop and not self.is_punct(j, "("):
            j += 1
        name = "".join(t.text for t in self.tokens[start:j])
        arguments: Tuple[str, ...] = ()
        if j < stop:
            close = self.pairs[j]
            arguments = tuple(
                self.text[self.tokens[a].start:self.tokens[b - 1].end]
                for a, b in self._split_commas(j + 1, close)
            )
        return Attribute(
            name=name,
            text=self.text[self.tokens[start].start:self.tokens[stop - 1].end],
            arguments=arguments,
        )

    def _split_commas(self, start: int, stop: int) -> List[Tuple[int, int]]:
        """Depth-0 comma separated [start, stop) token ranges; empty ranges dropped."""
        spans = []
        i = seg = start
        while i < stop:
            t = self.tokens[i]
            if t.kind == PUNCT and t.text in _OPEN:
                i = self.pairs[i] + 1
                continue
            if t.kind == PUNCT and t.text == ",":
                if i > seg:
                    spans.append((seg, i))
                seg = i + 1
            i += 1
        if stop > seg:
            spans.append((seg, stop))
        return spans

    def _declaration_end(self, idx: int, close_idx: int) -> int:
        seen_assign = False
        k = idx
        while k < close_idx:
            t = self.tokens[k]
            if t.kind == PUNCT:
                if t.text == ";":
                    return k
                if t.text in ("=", "=>"):
                    seen_assign = True
                elif t.text in ("(", "["):
                    k = self.pairs[k] + 1
                    continue
                elif t.text == "{":
                    end = self.pairs[k]
                    if seen_assign or self.is_punct(end + 1, "=") or self.is_punct(end + 1, ";"):
                        k = end + 1
                        continue
                    return end
            k += 1
        raise SourceParseError(f"unterminated member declaration at offset {self.tokens[idx].start}")

    # ---------- declaration headers ----------

    def _describe(self, start: int, end: int) -> Tuple[MemberShape, Tuple[str, ...], Tuple[str, ...]]:
        k = start
        modifiers = []
        while k <= end and self.is_ident(k) and self.tokens[k].text in MODIFIERS:
            modifiers.append(self.tokens[k].text)
            k += 1
        mods = tuple(modifiers)
        head = self.tok(k)
        if head is None or k > end:
            return MemberShape.OTHER, mods, ()
        if head.kind == IDENT and head.text in TYPE_KEYWORDS:
            shape = TYPE_KEYWORDS[head.text]
            if head.text == "record" and self.is_ident(k + 1) and self.tokens[k + 1].text in ("class", "struct"):
                k += 1
            return shape, mods, self._ident_at(k + 1)
        if head.kind == IDENT and head.text == "delegate":
            paren = self._find(k, end, "(")
            return MemberShape.DELEGATE, mods, self._name_before(paren)
        if head.kind == IDENT and head.text == "event":
            brace = self._find(k, end, "{", stops=("=",))
            if brace is not None:
                return MemberShape.EVENT, mods, self._name_before(brace)
            return MemberShape.EVENT_FIELD, mods, self._declarators(self._skip_type(k + 1), end)
        if head.kind == IDENT and head.text in ("implicit", "explicit"):
            return MemberShape.OTHER, mods, ()
        if head.kind == PUNCT and head.text == "~":
            return MemberShape.OTHER, mods, self._ident_at(k + 1)
        if head.kind == IDENT and self.is_punct(k + 1, "("):
            return MemberShape.CONSTRUCTOR, mods, (head.text,)

        k = self._skip_type(k)
        if self.is_ident(k, "operator") or (self.is_ident(k, "this") and self.is_punct(k + 1, "[")):
            return MemberShape.OTHER, mods, ()
        if not self.is_ident(k):
            return MemberShape.OTHER, mods, ()
        # explicit interface implementations: IFoo.Bar, IFoo<T>.Bar
        while True:
            after = self._skip_generic(k + 1)
            if not (self.is_punct(after, ".") and self.is_ident(after + 1)):
                break
            k = after + 1
        name = self.tokens[k].text
        after = self._skip_generic(k + 1)
        if self.is_punct(after, "("):
            return MemberShape.METHOD, mods, (name,)
        if self.is_punct(after, "{") or self.is_punct(after, "=>"):
            return MemberShape.PROPERTY, mods, (name,)
        if any(self.is_punct(after, p) for p in ("=", ";", ",", "[")):
            return MemberShape.FIELD, mods, self._declarators(k, end)
        return MemberShape.OTHER, mods, (name,)

    def _ident_at(self, idx: int) -> Tuple[str, ...]:
        return (self.tokens[idx].text,) if self.is_ident(idx) else ()

    def _find(self, start: int, end: int, text: str, stops: Tuple[str, ...] = ()) -> Optional[int]:
        k = start
        while k <= end:
            if self.is_punct(k, text):
                return k
            if any(self.is_punct(k, s) for s in stops):
                return None
            if self.tokens[k].kind == PUNCT and self.tokens[k].text in _OPEN:
                k = self.pairs[k] + 1
                continue
            k += 1
        return None

    def _name_before(self, idx: Optional[int]) -> Tuple[str, ...]:
        if idx is None:
            return ()
        k = idx - 1
        if self.is_punct(k, ">"):
            depth = 0
            while k >= 0:
                if self.is_punct(k, ">"):
                    depth += 1
                elif self.is_punct(k, "<"):
                    depth -= 1
                    if depth == 0:
                        break
                k -= 1
            k -= 1
        return self._ident_at(k)

    def _skip_generic(self, idx: int) -> int:
        if not self.is_punct(idx, "<"):
            return idx
        depth = 0
        k = idx
        while k < len(self.tokens):
            if self.is_punct(k, "<"):
                depth += 1
            elif self.is_punct(k, ">"):
                depth -= 1
                if depth == 0:
                    return k + 1
            k += 1
        return idx

    def _skip_type(self, idx: int) -> int:
        """Index just past the type that starts at ``idx``."""
        k = idx
        if self.is_punct(k, "("):
            k = self.pairs[k] + 1
        elif self.is_ident(k):
            k = self._skip_generic(k + 1)
            while (self.is_punct(k, ".") or self.is_punct(k, "::")) and self.is_ident(k + 1):
                k = self._skip_generic(k + 2)
        else:
            return k
        while True:
            if self.is_punct(k, "?") or self.is_punct(k, "*"):
                k += 1
            elif self.is_punct(k, "[") and not self.is_ident(k + 1):
                # rank specifier such as [] or [,]
                k = self.pairs[k] + 1
            else:
                return k

    def _declarators(self, idx: int, end: int) -> Tuple[str, ...]:
        names = []
        expect_name = True
        angle = 0
        k = idx
        while k <= end:
            t = self.tokens[k]
            if expect_name and t.kind == IDENT:
                names.append(t.text)
                expect_name = False
            elif t.kind == PUNCT and t.text in _OPEN:
                k = self.pairs[k] + 1
                continue
            elif t.kind == PUNCT and t.text == "<":
                angle += 1
            elif t.kind == PUNCT and t.text == ">":
                angle = max(0, angle - 1)
            elif t.kind == PUNCT and t.text == "," and angle == 0:
                expect_name = True
            k += 1
        return tuple(names)


def parse_source(text: str) -> SourceFile:
    """Split every class body in ``text`` into member nodes."""
    reader = _Reader(text)
    types: List[TypeBody] = []
    reader.scan_container(0, len(reader.tokens), types)
    logger.debug("parse.source: classes=%d tokens=%d", len(types), len(reader.tokens))
    return SourceFile(text=text, types=tuple(types))


def parse_members(body: str) -> Tuple[MemberNode, ...]:
    """Parse the members of a bare class body (the text between the braces)."""
    source = parse_source("class _ {" + body + "}")
    return source.types[0].members
