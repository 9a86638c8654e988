"""
Trace data types: the recorded path of a match, step by step.

A Trace is append-only until rollback. The engine takes a checkpoint with
mark() before entering a node and calls rollback() with it when the node
fails, so whatever was explored on a failed branch never reaches the caller.
"""

from dataclasses import dataclass
from typing import Iterator, List, Union

from .nodes import AstNode


class Sentinel:
    """
    Marker for a step that belongs to no AST node: the scan start or the
    overall match end. Diagram consumers map these to fixed start/end markers.
    """

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self):
        return self.name


START = Sentinel("START")
END = Sentinel("END")


@dataclass(frozen=True)
class Step:
    string_index: int
    node: Union[AstNode, Sentinel]

    @property
    def is_sentinel(self) -> bool:
        return isinstance(self.node, Sentinel)


class Trace:
    def __init__(self, steps=None):
        self._steps: List[Step] = list(steps or [])

    def append(self, string_index: int, node) -> None:
        self._steps.append(Step(string_index, node))

    def mark(self) -> int:
        # A checkpoint is simply the current length.
        return len(self._steps)

    def rollback(self, checkpoint: int) -> None:
        """
        Discard every step appended after `checkpoint`.
        """
        if checkpoint < 0 or checkpoint > len(self._steps):
            raise ValueError(f"invalid checkpoint {checkpoint} for trace of {len(self._steps)}")
        del self._steps[checkpoint:]

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    @property
    def start(self):
        # Offset the winning scan started at, or None for an empty trace.
        if self._steps and self._steps[0].node is START:
            return self._steps[0].string_index
        return None

    @property
    def end(self):
        if self._steps and self._steps[-1].node is END:
            return self._steps[-1].string_index
        return None

    @property
    def span(self):
        if self.start is None or self.end is None:
            return None
        return (self.start, self.end)

    def __len__(self):
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __getitem__(self, index):
        return self._steps[index]

    def __bool__(self):
        return bool(self._steps)

    def __repr__(self):
        return f"Trace({self._steps!r})"

    def to_list(self, node_ids=None) -> list:
        """
        JSON-friendly rendering of the steps. `node_ids` maps an AST node to
        a display id; without it the node type name is used.
        """
        out = []
        for step in self._steps:
            if step.is_sentinel:
                ref = step.node.name.lower()
            elif node_ids is not None:
                ref = node_ids.get(step.node, type(step.node).__name__)
            else:
                ref = type(step.node).__name__
            out.append({"string_index": step.string_index, "node": ref})
        return out
