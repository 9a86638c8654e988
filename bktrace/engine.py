# Backtracking trace engine.
# ...we execute a parsed pattern tree against a text the way a textbook
# backtracking matcher does, and record which node was entered at which
# position along the path that produced the first match.
#
# Every node is matched by a generator that yields each possible end
# position, best first. A consumer that cannot continue from one end
# position simply asks the generator for the next; when the generator runs
# dry, the node has failed. Trace bookkeeping follows the same rhythm:
#   - entering a node appends a step,
#   - being asked for another option rolls back whatever was recorded after
#     that step,
#   - running dry rolls back the entry step too.
# So the steps left in the trace when the top-level scan succeeds are exactly
# the winning path.

import logging
from dataclasses import dataclass, replace
from typing import Optional

from . import config
from .charmatch import is_word_code_point, matches_leaf
from .nodes import (
    Alternative, Anchor, CharacterClass, ClassEscape, Disjunction, Dot,
    Group, LOOKAROUND_BEHAVIORS, Quantifier, Unsupported, Value,
    check_dispatch,
)
from .trace import END, START, Trace
from .units import code_point_at, code_point_before, code_point_width, code_units

logger = logging.getLogger(__name__)

# Multiline `^` and `$` break lines at "\n" only, like the native engine.
_NEWLINE = 0x0A


class BacktrackLimitExceeded(RuntimeError):
    def __init__(self, max_steps):
        super().__init__(f"gave up after {max_steps} node entries")
        self.max_steps = max_steps


@dataclass(frozen=True)
class EngineOptions:
    """
    Knobs that change how the search runs.

    honor_lazy: when False (the default) a non-greedy quantifier
        is still searched most-repetitions-first. When True it tries `min`
        repetitions first and adds one at a time.
    lookaround: "consume" (the default) matches lookaround groups like any
        other group, eating input. "assert" makes them zero-width.
    dot_all: whether '.' also matches line terminators.
    max_steps: optional cap on node entries per build_trace call. Exceeding it
        raises BacktrackLimitExceeded. None means no cap.
    ignore_case, multiline: the `i` and `m` pattern flags. Use with_flags()
        to set them from a flag string.
    """

    honor_lazy: bool = False
    lookaround: str = "consume"
    dot_all: bool = True
    max_steps: Optional[int] = None
    ignore_case: bool = False
    multiline: bool = False

    def __post_init__(self):
        if self.lookaround not in config.LOOKAROUND_MODES:
            raise ValueError(
                f"lookaround must be one of {config.LOOKAROUND_MODES}, got {self.lookaround!r}")
        if self.max_steps is not None and self.max_steps < 1:
            raise ValueError("max_steps must be positive")

    @classmethod
    def from_config(cls, **overrides):
        values = {
            "honor_lazy": config.DEFAULT_HONOR_LAZY,
            "lookaround": config.DEFAULT_LOOKAROUND,
            "dot_all": config.DEFAULT_DOT_ALL,
            "max_steps": config.DEFAULT_MAX_STEPS,
        }
        values.update(overrides)
        return cls(**values)

    def with_flags(self, flags: str) -> "EngineOptions":
        # `s` can only turn dot_all on. Flags other than i, m and s are ignored.
        return replace(
            self,
            ignore_case="i" in flags,
            multiline="m" in flags,
            dot_all=self.dot_all or "s" in flags,
        )


class _Search:
    # State for one build_trace call: the input, the trace of the start
    # offset being tried, and the step budget shared by all start offsets.

    def __init__(self, units, options):
        self.units = units
        self.options = options
        self.trace = Trace()
        self.entries = 0

    def enter(self, pos, node):
        self.entries += 1
        limit = self.options.max_steps
        if limit is not None and self.entries > limit:
            logger.warning("step budget of %d exhausted", limit)
            raise BacktrackLimitExceeded(limit)
        self.trace.append(pos, node)

    def match(self, node, pos):
        handler = _HANDLERS.get(type(node))
        if handler is None:
            raise TypeError(f"cannot match {node!r}")
        return handler(self, node, pos)

    def match_root(self, root, pos):
        # The root itself is not recorded: an Alternative root runs as a bare
        # sequence, a Disjunction root as bare branches.
        if isinstance(root, Alternative):
            return self._sequence(root.body, pos)
        if isinstance(root, Disjunction):
            return self._branches(root.body, pos)
        return self.match(root, pos)

    # --- COMBINERS ---

    def _sequence(self, body, pos):
        # One candidate iterator per element, kept on an explicit stack so a
        # long run does not nest Python frames. When an element cannot be
        # followed by the rest, the stack unwinds to it and asks for its next
        # candidate. A quantifier element thereby tries its largest count
        # first and gives up repetitions one at a time.
        if not body:
            yield pos
            return
        stack = [self.match(body[0], pos)]
        while stack:
            try:
                end = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            if len(stack) == len(body):
                yield end
            else:
                stack.append(self.match(body[len(stack)], end))

    def _branches(self, alternatives, pos):
        for alternative in alternatives:
            # A failed branch has already rolled itself back.
            yield from self.match(alternative, pos)

    def _alternative(self, node, pos):
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        yield from self._sequence(node.body, pos)
        self.trace.rollback(checkpoint)

    def _disjunction(self, node, pos):
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        yield from self._branches(node.body, pos)
        self.trace.rollback(checkpoint)

    def _group(self, node, pos):
        if node.behavior in LOOKAROUND_BEHAVIORS and self.options.lookaround == "assert":
            yield from self._lookaround(node, pos)
            return
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        yield from self._sequence(node.body, pos)
        self.trace.rollback(checkpoint)

    def _lookaround(self, node, pos):
        # Zero-width and atomic: only whether the body can match matters.
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        positive = not node.behavior.startswith("negative")
        found = False
        if node.behavior.endswith("lookbehind"):
            for start in range(0, pos + 1):
                for end in self._sequence(node.body, start):
                    if end == pos:
                        found = True
                        break
                if found:
                    break
        else:
            for _ in self._sequence(node.body, pos):
                found = True
                break
        if found is positive:
            # Positive assertions keep the body's steps; a negative one can
            # only succeed when the body failed and left nothing behind.
            yield pos
        self.trace.rollback(checkpoint)

    def _quantifier(self, node, pos):
        qmin, qmax = node.min, node.max
        if qmin < 0 or (qmax is not None and qmax < qmin):
            logger.warning("malformed quantifier {%s,%s}, treating as no match", qmin, qmax)
            return
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        if self.options.honor_lazy and not node.greedy:
            yield from self._repeat_lazy(node.body, qmin, qmax, pos)
        else:
            yield from self._repeat_greedy(node.body, qmin, qmax, pos)
        self.trace.rollback(checkpoint)

    def _repeat_greedy(self, child, qmin, qmax, pos):
        # stack[i] yields the ways to do repetition i+1; ends[i] is the
        # position after i repetitions. Greedy: try one more repetition
        # before offering the current count.
        if qmax == 0:
            yield pos
            return
        ends = [pos]
        stack = [self.match(child, pos)]
        while stack:
            count = len(stack)
            try:
                end = next(stack[-1])
            except StopIteration:
                stack.pop()
                count -= 1
                del ends[count + 1:]
                if count >= qmin:
                    yield ends[count]
                continue
            # Past the minimum, a repetition that consumes nothing would
            # repeat forever.
            if count > qmin and end == ends[count - 1]:
                continue
            del ends[count:]
            ends.append(end)
            if qmax is None or count < qmax:
                stack.append(self.match(child, end))
            else:
                yield end

    def _repeat_lazy(self, child, qmin, qmax, pos):
        # Same bookkeeping as _repeat_greedy, but offer the current count
        # before trying one more repetition.
        if qmin == 0:
            yield pos
        if qmax == 0:
            return
        ends = [pos]
        stack = [self.match(child, pos)]
        while stack:
            count = len(stack)
            try:
                end = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            if count > qmin and end == ends[count - 1]:
                continue
            del ends[count:]
            ends.append(end)
            if count >= qmin:
                yield end
            if qmax is None or count < qmax:
                stack.append(self.match(child, end))

    # --- LEAVES ---

    def _anchor(self, node, pos):
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        if node.kind == "start":
            ok = pos == 0 or (self.options.multiline and self.units[pos - 1] == _NEWLINE)
        elif node.kind == "end":
            ok = pos == len(self.units) or (self.options.multiline and self.units[pos] == _NEWLINE)
        else:
            before = is_word_code_point(code_point_before(self.units, pos))
            after = is_word_code_point(code_point_at(self.units, pos))
            ok = (before != after) == (node.kind == "boundary")
        if ok:
            yield pos
        self.trace.rollback(checkpoint)

    def _leaf(self, node, pos):
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        cp = code_point_at(self.units, pos)
        if cp is not None and matches_leaf(node, cp, self.options.dot_all, self.options.ignore_case):
            yield pos + code_point_width(cp)
        self.trace.rollback(checkpoint)

    def _unsupported(self, node, pos):
        # Backreferences and property escapes never match here, even where
        # the native engine would accept them.
        checkpoint = self.trace.mark()
        self.enter(pos, node)
        self.trace.rollback(checkpoint)
        yield from ()


_HANDLERS = {
    Alternative: _Search._alternative,
    Disjunction: _Search._disjunction,
    Group: _Search._group,
    Quantifier: _Search._quantifier,
    Anchor: _Search._anchor,
    Value: _Search._leaf,
    Dot: _Search._leaf,
    CharacterClass: _Search._leaf,
    ClassEscape: _Search._leaf,
    Unsupported: _Search._unsupported,
}
check_dispatch(_HANDLERS, "engine")


class TraceEngine:
    # The public entry point. Holds options only; every call builds its own
    # search state, so one engine can be reused freely.

    def __init__(self, options: Optional[EngineOptions] = None):
        self.options = options if options is not None else EngineOptions.from_config()

    def build_trace(self, root, text: str) -> Trace:
        """
        Trace of the leftmost match of `root` in `text`, or an empty Trace.

        Start offsets are tried in increasing order; the first one from which
        the pattern matches wins, leftmost rather than longest.
        """
        if root is None:
            return Trace()
        search = _Search(code_units(text), self.options)
        for start in range(len(search.units) + 1):
            search.trace = Trace()
            search.trace.append(start, START)
            for end in search.match_root(root, start):
                search.trace.append(end, END)
                logger.debug("match at [%d, %d) after %d node entries", start, end, search.entries)
                return search.trace
        logger.debug("no match after %d node entries", search.entries)
        return Trace()

    def search(self, root, text: str):
        # (start, end) in code units, or None.
        return self.build_trace(root, text).span


def build_trace(root, text: str, options: Optional[EngineOptions] = None) -> Trace:
    return TraceEngine(options).build_trace(root, text)
