"""
Plain-English explanations for AST nodes, used by the explanation panel and
the `explain` command.
"""

from dataclasses import dataclass
from typing import List, Optional

from .nodes import (
    Alternative, Anchor, CharacterClass, ClassEscape, ClassRange,
    Disjunction, Dot, Group, Quantifier, Unsupported, Value, check_dispatch,
)

ESCAPE_NAMES = {
    "d": "digits (0-9)",
    "D": "non-digits",
    "w": "word characters (a-z, A-Z, 0-9, _)",
    "W": "non-word characters",
    "s": "whitespace characters",
    "S": "non-whitespace characters",
}

STANDALONE_ESCAPE_NAMES = {
    "d": "any digit (0-9)",
    "D": "any non-digit",
    "w": "any word character (a-z, A-Z, 0-9, _)",
    "W": "any non-word character",
    "s": "any whitespace character",
    "S": "any non-whitespace character",
}

ANCHOR_TEXT = {
    "start": "Matches the start of the string (^)",
    "end": "Matches the end of the string ($)",
    "boundary": "Matches a word boundary (\\b)",
    "not-boundary": "Matches a non-word boundary (\\B)",
}

GROUP_TEXT = {
    "lookahead": "Positive lookahead: matches only if followed by the pattern",
    "negative-lookahead": "Negative lookahead: matches only if NOT followed by the pattern",
    "lookbehind": "Positive lookbehind: matches only if preceded by the pattern",
    "negative-lookbehind": "Negative lookbehind: matches only if NOT preceded by the pattern",
    "non-capturing": "Non-capturing group: groups without storing the match",
}


@dataclass
class Explanation:
    node_id: str
    text: str
    node: object = None


def describe_class_item(item):
    if isinstance(item, ClassRange):
        return f"{chr(item.min)} to {chr(item.max)}"
    if isinstance(item, Value):
        return chr(item.code_point)
    if isinstance(item, ClassEscape):
        return ESCAPE_NAMES.get(item.value, f"\\{item.value}")
    return ""


def _anchor(node):
    return ANCHOR_TEXT[node.kind]


def _character_class(node):
    items = ", ".join(filter(None, (describe_class_item(i) for i in node.body)))
    if node.negative:
        return f"Matches any character NOT in: {items}"
    return f"Matches any character in: {items}"


def _dot(node):
    return "Matches any character (.)"


def _group(node):
    if node.behavior != "capturing":
        return GROUP_TEXT[node.behavior]
    if node.name:
        info = f'named "{node.name}"'
    else:
        info = f"group {node.number}"
    return f"Captures {info}: stores the matched text for later reference"


def quantifier_phrase(node):
    if node.symbol == "*":
        return "zero or more times"
    if node.symbol == "+":
        return "one or more times"
    if node.symbol == "?":
        return "zero or one time (optional)"
    if node.max is None:
        return f"at least {node.min} times"
    if node.min == node.max:
        return f"exactly {node.min} times"
    return f"between {node.min} and {node.max} times"


def _quantifier(node):
    greedy = " (greedy)" if node.greedy else " (non-greedy)"
    return f"Matches the preceding element {quantifier_phrase(node)}{greedy}"


def _disjunction(node):
    return "Alternation (|): matches one of the alternatives"


def _alternative(node):
    return "Sequence: matches each element in order"


def _value(node):
    return f'Matches the literal character "{chr(node.code_point)}"'


def _class_escape(node):
    name = STANDALONE_ESCAPE_NAMES.get(node.value, "\\" + node.value)
    return f"Matches {name}"


def _unsupported(node):
    return f"Not supported by the step debugger: {node.kind} {node.raw}".rstrip()


_EXPLAINERS = {
    Anchor: _anchor,
    CharacterClass: _character_class,
    Dot: _dot,
    Group: _group,
    Quantifier: _quantifier,
    Disjunction: _disjunction,
    Alternative: _alternative,
    Value: _value,
    ClassEscape: _class_escape,
    Unsupported: _unsupported,
}
check_dispatch(_EXPLAINERS, "explain_node")


def explain_node(node) -> str:
    explainer = _EXPLAINERS.get(type(node))
    if explainer is None:
        raise TypeError(f"cannot explain {node!r}")
    return explainer(node)


def _walk(node, node_id, out):
    out.append(Explanation(node_id, explain_node(node), node))
    if isinstance(node, (Alternative, Group)):
        for index, child in enumerate(node.body):
            _walk(child, f"{node_id}-{index}", out)
    elif isinstance(node, Quantifier):
        _walk(node.body, f"{node_id}-child-0", out)
    elif isinstance(node, Disjunction):
        for index, child in enumerate(node.body):
            _walk(child, f"{node_id}-branch-{index}", out)


def explain(root) -> List[Explanation]:
    """
    Explanations for every node of the tree, in pre-order. Ids are path-like:
    'root', 'root-0', 'root-0-child-0', 'root-branch-1', ...
    """
    if root is None:
        return []
    out = []
    _walk(root, "root", out)
    return out


def find_explanation(root, node_id: str) -> Optional[Explanation]:
    for item in explain(root):
        if item.node_id == node_id:
            return item
    return None
