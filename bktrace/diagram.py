import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from graphviz import Digraph

from . import config
from .nodes import (
    Alternative, Anchor, CharacterClass, ClassEscape, ClassRange,
    Disjunction, Dot, Group, Quantifier, Unsupported, Value, check_dispatch,
    children,
)
from .trace import END, START

# Diagram tooling: turns an AST into a flow graph (start marker, one node per
# AST node, loop edges for quantifiers, branch/merge for alternation, end
# marker), renders it with graphviz and maps trace steps onto it.


# --- LABELS ---

def _class_item_label(item):
    if isinstance(item, ClassRange):
        return f"{chr(item.min)}-{chr(item.max)}"
    if isinstance(item, Value):
        return chr(item.code_point)
    if isinstance(item, ClassEscape):
        return f"\\{item.value}"
    return ""


def _anchor_label(node):
    return {"start": "^", "end": "$", "boundary": "\\b", "not-boundary": "\\B"}[node.kind]


def _class_label(node):
    items = ", ".join(filter(None, (_class_item_label(i) for i in node.body)))
    return f"[^{items}]" if node.negative else f"[{items}]"


def _group_label(node):
    if node.behavior == "capturing":
        return f"({node.name})" if node.name else "(group)"
    return f"({node.behavior})"


def _quantifier_label(node):
    if node.symbol:
        label = node.symbol
    elif node.max is None:
        label = f"{{{node.min},}}"
    elif node.min == node.max:
        label = f"{{{node.min}}}"
    else:
        label = f"{{{node.min},{node.max}}}"
    return label if node.greedy else label + "?"


_LABELS = {
    Anchor: _anchor_label,
    CharacterClass: _class_label,
    Dot: lambda node: ".",
    Group: _group_label,
    Quantifier: _quantifier_label,
    Disjunction: lambda node: "|",
    Alternative: lambda node: "alternative",
    Value: lambda node: chr(node.code_point),
    ClassEscape: lambda node: f"\\{node.value}",
    Unsupported: lambda node: node.raw or node.kind,
}
check_dispatch(_LABELS, "node_label")


def node_label(node) -> str:
    labeler = _LABELS.get(type(node))
    if labeler is None:
        raise TypeError(f"no label for {node!r}")
    return labeler(node)


# --- FLOW GRAPH ---

@dataclass
class FlowNode:
    id: str
    type: str  # start, match, loop, group, alternation, end
    label: str
    node: object = None
    data: dict = field(default_factory=dict)


@dataclass
class FlowEdge:
    id: str
    source: str
    target: str
    type: str = "default"  # default, loop, alternation


@dataclass
class FlowGraph:
    nodes: List[FlowNode] = field(default_factory=list)
    edges: List[FlowEdge] = field(default_factory=list)
    # AST node -> flow node id. AST nodes hash by identity.
    index: Dict[object, str] = field(default_factory=dict)


class _FlowState:
    # Id counters for one build_flow call.

    def __init__(self):
        self.node_count = 0
        self.edge_count = 0

    def node_id(self):
        node_id = f"node-{self.node_count}"
        self.node_count += 1
        return node_id

    def edge(self, graph, source, target, kind="default"):
        graph.edges.append(FlowEdge(f"edge-{self.edge_count}", source, target, kind))
        self.edge_count += 1


def _flow_type(node):
    if isinstance(node, Anchor) and node.kind == "start":
        return "start"
    if isinstance(node, Quantifier):
        return "loop"
    if isinstance(node, Group):
        return "group"
    if isinstance(node, Disjunction):
        return "alternation"
    return "match"


def _add(node, state, graph, parent_id):
    # Adds `node` and its subtree; returns the id later nodes attach to.
    current = state.node_id()
    label = node_label(node)
    data = {}
    if isinstance(node, Quantifier):
        data["quantifier"] = label
    elif isinstance(node, Group) and node.behavior == "capturing":
        data["group_number"] = node.number
        if node.name:
            data["group_name"] = node.name
    elif isinstance(node, CharacterClass):
        data["character_class"] = label
    graph.nodes.append(FlowNode(current, _flow_type(node), label, node, data))
    graph.index[node] = current
    state.edge(graph, parent_id, current)

    if isinstance(node, (Alternative, Group)):
        last = current
        for child in node.body:
            last = _add(child, state, graph, last)
        return last

    if isinstance(node, Quantifier):
        child_last = _add(node.body, state, graph, current)
        state.edge(graph, child_last, current, "loop")
        forward = state.node_id()
        graph.nodes.append(FlowNode(forward, "match", "→"))
        state.edge(graph, child_last, forward)
        return forward

    if isinstance(node, Disjunction):
        branch_ends = [_add(alt, state, graph, current) for alt in node.body]
        merge = state.node_id()
        graph.nodes.append(FlowNode(merge, "match", "→"))
        for branch_end in branch_ends:
            state.edge(graph, branch_end, merge, "alternation")
        return merge

    return current


def build_flow(root) -> FlowGraph:
    """
    Flow graph for a parsed pattern. Ids come from counters local to this
    call, so the same tree always produces the same ids.
    """
    graph = FlowGraph()
    if root is None:
        return graph
    state = _FlowState()
    graph.nodes.append(FlowNode("start", "start", "START"))
    last = _add(root, state, graph, "start")
    graph.nodes.append(FlowNode("end", "end", "END"))
    state.edge(graph, last, "end")
    return graph


def flow_node_for(graph: FlowGraph, node) -> Optional[str]:
    if node is START:
        return "start"
    if node is END:
        return "end"
    return graph.index.get(node)


def trace_path(graph: FlowGraph, trace) -> List[str]:
    """
    Flow node ids in the order the trace visits them.
    """
    path = []
    for step in trace:
        flow_id = flow_node_for(graph, step.node)
        if flow_id is not None:
            path.append(flow_id)
    return path


# --- GRAPHVIZ ---

_SHAPES = {
    "start": "circle",
    "end": "doublecircle",
    "match": "box",
    "loop": "diamond",
    "group": "box",
    "alternation": "diamond",
}


def to_digraph(graph: FlowGraph, highlight=None, format: str = None) -> Digraph:
    """
    Graphviz Digraph for a flow graph. Node ids in `highlight` are filled,
    which is how a trace is shown on the diagram.
    """
    highlight = set(highlight or ())
    dot = Digraph(comment="Regex flow", format=format or config.DEFAULT_DIAGRAM_FORMAT)
    dot.attr(rankdir=config.DEFAULT_RANKDIR)
    for flow_node in graph.nodes:
        attrs = {"shape": _SHAPES.get(flow_node.type, "box")}
        if flow_node.type == "group":
            attrs["style"] = "rounded"
        if flow_node.id in highlight:
            attrs["style"] = "filled"
            attrs["fillcolor"] = config.HIGHLIGHT_COLOR
        dot.node(flow_node.id, flow_node.label, **attrs)
    for edge in graph.edges:
        if edge.type == "loop":
            dot.edge(edge.source, edge.target, style="dashed", constraint="false")
        elif edge.type == "alternation":
            dot.edge(edge.source, edge.target, style="dotted")
        else:
            dot.edge(edge.source, edge.target)
    return dot


def render_flow(graph: FlowGraph, output_path: str = "regex_flow", format: str = None,
                highlight=None) -> str:
    """
    Render the flow graph with graphviz. Returns the path of the rendered file.
    """
    return to_digraph(graph, highlight, format).render(output_path, cleanup=True)


# --- JSON ---

def ast_to_dict(node, node_id: str = "root") -> dict:
    """
    Convert an AST into a JSON-serializable dictionary.
    """
    data = {
        "id": node_id,
        "type": type(node).__name__,
        "repr": node_label(node),
        "children": [],
    }
    if isinstance(node, Value):
        data["code_point"] = node.code_point
    elif isinstance(node, CharacterClass):
        data["negative"] = node.negative
        data["items"] = [_class_item_label(i) for i in node.body]
    elif isinstance(node, Quantifier):
        data.update(min=node.min, max=node.max, greedy=node.greedy)
    elif isinstance(node, Group):
        data.update(behavior=node.behavior, name=node.name, number=node.number)
    elif isinstance(node, Anchor):
        data["kind"] = node.kind
    for index, child in enumerate(children(node)):
        data["children"].append(ast_to_dict(child, f"{node_id}-{index}"))
    return data


def persist_ast(node, filename: str) -> None:
    """
    Serialize the AST to a JSON file.
    """
    with open(filename, "w") as f:
        json.dump(ast_to_dict(node), f, indent=2)
