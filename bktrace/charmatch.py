# Character-level matching: does one code point satisfy one leaf node?
# Pure predicates, no positions and no trace. The engine decides how far to
# advance once a leaf has matched.

import re

from .nodes import (
    CharacterClass, ClassEscape, ClassRange, Dot, LEAF_TYPES, Value,
    check_dispatch,
)

# Membership for '\d', '\w', '\s' is delegated to the host regex engine so it
# agrees with the native match path character for character.
_ESCAPES = {kind: re.compile("\\" + kind) for kind in "dDwWsS"}
_WORD = _ESCAPES["w"]

LINE_TERMINATORS = frozenset([0x0A, 0x0D, 0x2028, 0x2029])


def escape_matches(kind, cp):
    pattern = _ESCAPES.get(kind)
    if pattern is None:
        return False
    return pattern.fullmatch(chr(cp)) is not None


def is_word_code_point(cp):
    # Absent characters (string edges) count as non-word.
    if cp is None:
        return False
    return _WORD.fullmatch(chr(cp)) is not None


def case_variants(cp):
    # The code point with its single-character lower and upper case forms.
    variants = {cp}
    for other in (chr(cp).lower(), chr(cp).upper()):
        if len(other) == 1:
            variants.add(ord(other))
    return variants


def class_item_matches(item, cp, ignore_case=False):
    if isinstance(item, Value):
        if ignore_case:
            return item.code_point in case_variants(cp) or cp in case_variants(item.code_point)
        return item.code_point == cp
    if isinstance(item, ClassRange):
        if ignore_case:
            return any(item.min <= v <= item.max for v in case_variants(cp))
        return item.min <= cp <= item.max
    if isinstance(item, ClassEscape):
        return escape_matches(item.value, cp)
    return False


def _match_value(node, cp, dot_all, ignore_case):
    return class_item_matches(node, cp, ignore_case)


def _match_dot(node, cp, dot_all, ignore_case):
    return dot_all or cp not in LINE_TERMINATORS


def _match_escape(node, cp, dot_all, ignore_case):
    return escape_matches(node.value, cp)


def _match_class(node, cp, dot_all, ignore_case):
    in_class = any(class_item_matches(item, cp, ignore_case) for item in node.body)
    # (in class) != negative covers both the plain and the negated class.
    return in_class != node.negative


_LEAF_MATCHERS = {
    Value: _match_value,
    Dot: _match_dot,
    ClassEscape: _match_escape,
    CharacterClass: _match_class,
}
check_dispatch(_LEAF_MATCHERS, "matches_leaf", LEAF_TYPES)


def matches_leaf(node, cp: int, dot_all: bool = True, ignore_case: bool = False) -> bool:
    """
    True when code point `cp` satisfies leaf `node`.

    `dot_all` only affects Dot: when False, line terminators are excluded.
    `ignore_case` compares literals and ranges against the lower and upper
    case forms of `cp` as well.
    Raises TypeError for nodes that are not leaves.
    """
    matcher = _LEAF_MATCHERS.get(type(node))
    if matcher is None:
        raise TypeError(f"not a leaf node: {node!r}")
    return matcher(node, cp, dot_all, ignore_case)
