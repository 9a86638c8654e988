# The AST the trace engine walks.
# A pattern is broken down into a tree of these nodes by the parser and then
# executed against a text by the engine. Nodes carry no behavior: matching
# lives in charmatch.py and engine.py.
#
# Nodes compare by identity (eq=False), so a trace step pointing at a node
# points at exactly one place in the tree even when two subtrees look alike.

from dataclasses import dataclass, field
from typing import Optional, Tuple


class AstNode:
    # Base class for every node kind. Never instantiated directly.
    __slots__ = ()


# --- LEAF NODES: match one character or one position. ---

ANCHOR_KINDS = ("start", "end", "boundary", "not-boundary")
ESCAPE_KINDS = ("d", "D", "w", "W", "s", "S")


@dataclass(frozen=True, eq=False)
class Anchor(AstNode):
    # Zero-width: '^', '$', '\b', '\B'.
    kind: str


@dataclass(frozen=True, eq=False)
class Value(AstNode):
    # A single literal character, stored as its code point.
    code_point: int


@dataclass(frozen=True, eq=False)
class Dot(AstNode):
    pass


@dataclass(frozen=True, eq=False)
class ClassEscape(AstNode):
    # '\d', '\w', '\s' and their negations, inside or outside brackets.
    value: str


@dataclass(frozen=True, eq=False)
class ClassRange:
    # 'a-z' inside brackets; both ends inclusive. Only ever a class item.
    min: int
    max: int


@dataclass(frozen=True, eq=False)
class CharacterClass(AstNode):
    # '[...]' or '[^...]'. Items are Value, ClassRange or ClassEscape;
    # children() does not descend into them.
    negative: bool
    body: Tuple[AstNode, ...] = ()


@dataclass(frozen=True, eq=False)
class Unsupported(AstNode):
    # Backreferences, unicode property escapes. Never matches.
    kind: str
    raw: str = ""


# --- COMBINER NODES ---

GROUP_BEHAVIORS = (
    "capturing",
    "non-capturing",
    "lookahead",
    "negative-lookahead",
    "lookbehind",
    "negative-lookbehind",
)
LOOKAROUND_BEHAVIORS = GROUP_BEHAVIORS[2:]


@dataclass(frozen=True, eq=False)
class Alternative(AstNode):
    # A run of nodes matched in order.
    body: Tuple[AstNode, ...] = ()


@dataclass(frozen=True, eq=False)
class Disjunction(AstNode):
    # Ordered alternation: the first branch that leads to a match wins.
    body: Tuple[Alternative, ...] = ()


@dataclass(frozen=True, eq=False)
class Group(AstNode):
    behavior: str
    body: Tuple[AstNode, ...] = ()
    name: Optional[str] = None
    number: Optional[int] = None


@dataclass(frozen=True, eq=False)
class Quantifier(AstNode):
    # max=None means unbounded. symbol keeps the '*', '+' or '?' shorthand
    # the pattern was written with, if any.
    min: int
    max: Optional[int]
    greedy: bool
    body: AstNode = field(default=None)
    symbol: Optional[str] = None


# Every concrete node kind. Dispatch tables elsewhere are checked against this.
NODE_TYPES = frozenset([
    Anchor, Value, Dot, ClassEscape, CharacterClass, Unsupported,
    Alternative, Disjunction, Group, Quantifier,
])

LEAF_TYPES = (Value, Dot, CharacterClass, ClassEscape)
CLASS_ITEM_TYPES = (Value, ClassRange, ClassEscape)


def check_dispatch(table, name, types=NODE_TYPES):
    """
    Fail loudly when a dispatch table does not cover every node kind.
    """
    missing = set(types) - set(table)
    if missing:
        names = ", ".join(sorted(t.__name__ for t in missing))
        raise TypeError(f"{name} has no handler for: {names}")


def children(node):
    """
    Child nodes of any AST node, in pattern order.
    """
    if isinstance(node, (Alternative, Disjunction, Group)):
        return list(node.body)
    if isinstance(node, Quantifier):
        return [node.body]
    if isinstance(node, AstNode):
        return []
    raise TypeError(f"not an AST node: {node!r}")


def is_root(node):
    return isinstance(node, (Alternative, Disjunction))
