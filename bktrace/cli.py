import argparse
import json
import logging
import sys

from . import config, native
from .diagram import build_flow, node_label, persist_ast, render_flow, to_digraph, trace_path
from .engine import BacktrackLimitExceeded, EngineOptions, TraceEngine
from .explain import explain
from .parser import parse_regex
from .session import RegexSession

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_BAD_PATTERN = 2


def _parse_or_report(pattern):
    result = parse_regex(pattern)
    if result.error:
        print(f"error: {result.error}", file=sys.stderr)
    return result


def _options(args):
    # Command line flags override the environment defaults.
    overrides = {}
    if args.honor_lazy:
        overrides["honor_lazy"] = True
    if args.lookaround:
        overrides["lookaround"] = args.lookaround
    if args.no_dot_all:
        overrides["dot_all"] = False
    if args.max_steps is not None:
        overrides["max_steps"] = args.max_steps
    return EngineOptions.from_config(**overrides)


def cmd_trace(args):
    parsed = _parse_or_report(args.pattern)
    if parsed.ast is None:
        return EXIT_BAD_PATTERN
    try:
        trace = TraceEngine(_options(args).with_flags(parsed.flags)).build_trace(parsed.ast, args.text)
    except BacktrackLimitExceeded as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_NO_MATCH

    if args.json:
        node_ids = {item.node: item.node_id for item in explain(parsed.ast)}
        print(json.dumps({"span": trace.span, "steps": trace.to_list(node_ids)}, indent=2))
        return EXIT_OK if trace else EXIT_NO_MATCH

    if not trace:
        print(f"[TRACE] {args.pattern!r} in {args.text!r} → no match")
        return EXIT_NO_MATCH
    print(f"[TRACE] {args.pattern!r} in {args.text!r} → match {list(trace.span)}")
    for step in trace:
        label = step.node.name if step.is_sentinel else node_label(step.node)
        kind = "" if step.is_sentinel else type(step.node).__name__
        print(f"  {step.string_index:>4}  {label:<12} {kind}")
    return EXIT_OK


def cmd_match(args):
    if args.all:
        result = native.test_match_all(args.pattern, args.text)
        if result.error:
            print(f"error: {result.error}", file=sys.stderr)
            return EXIT_BAD_PATTERN
        for item in result.results:
            print(f"{item.index}: [{item.start}, {item.end}) {item.match!r} groups={item.groups}")
        return EXIT_OK if result.matches else EXIT_NO_MATCH

    outcome = native.test_match(args.pattern, args.text)
    if outcome.error:
        print(f"error: {outcome.error}", file=sys.stderr)
        return EXIT_BAD_PATTERN
    if not outcome.matches:
        print("no match")
        return EXIT_NO_MATCH
    print(f"match [{outcome.start}, {outcome.end}) groups={outcome.groups}")
    return EXIT_OK


def cmd_explain(args):
    parsed = _parse_or_report(args.pattern)
    if parsed.ast is None:
        return EXIT_BAD_PATTERN
    for item in explain(parsed.ast):
        print(f"{item.node_id:<24} {item.text}")
    return EXIT_OK


def cmd_diagram(args):
    parsed = _parse_or_report(args.pattern)
    if parsed.ast is None:
        return EXIT_BAD_PATTERN
    graph = build_flow(parsed.ast)
    highlight = None
    if args.text is not None:
        try:
            trace = TraceEngine(_options(args).with_flags(parsed.flags)).build_trace(parsed.ast, args.text)
        except BacktrackLimitExceeded as e:
            print(f"error: {e}", file=sys.stderr)
            return EXIT_NO_MATCH
        highlight = trace_path(graph, trace)
    if args.json:
        persist_ast(parsed.ast, args.json)
    if args.source:
        print(to_digraph(graph, highlight, args.format).source)
        return EXIT_OK
    path = render_flow(graph, args.output, args.format, highlight)
    print(path)
    return EXIT_OK


def cmd_batch(args):
    session = RegexSession()
    session.set_regex_input(args.pattern)
    with open(args.file, encoding="utf-8") as f:
        session.set_batch_test_strings(f.read().splitlines())
    results = session.test_batch()
    if results and results[0].error:
        print(f"error: {results[0].error}", file=sys.stderr)
        return EXIT_BAD_PATTERN
    for result in results:
        print(f"{'MATCH' if result.matches else '-----'}  {result.line}")
    matched = sum(result.matches for result in results)
    print(f"{matched}/{len(results)} lines matched")
    return EXIT_OK


def _add_engine_flags(sub):
    sub.add_argument("--honor-lazy", action="store_true",
                     help="search non-greedy quantifiers fewest-repetitions-first")
    sub.add_argument("--lookaround", choices=config.LOOKAROUND_MODES,
                     help="how lookaround groups are traced (default: consume)")
    sub.add_argument("--no-dot-all", action="store_true",
                     help="'.' does not match line terminators")
    sub.add_argument("--max-steps", type=int, help="give up after this many node entries")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bktrace", description="Step through a backtracking regex match")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    trace = commands.add_parser("trace", help="print the step trace of the first match")
    trace.add_argument("pattern")
    trace.add_argument("text")
    trace.add_argument("--json", action="store_true", help="print the trace as JSON")
    _add_engine_flags(trace)
    trace.set_defaults(func=cmd_trace)

    match = commands.add_parser("match", help="match with the native regex engine")
    match.add_argument("pattern")
    match.add_argument("text")
    match.add_argument("--all", action="store_true", help="list every match")
    match.set_defaults(func=cmd_match)

    expl = commands.add_parser("explain", help="explain every node of a pattern")
    expl.add_argument("pattern")
    expl.set_defaults(func=cmd_explain)

    diagram = commands.add_parser("diagram", help="render the pattern as a flow diagram")
    diagram.add_argument("pattern")
    diagram.add_argument("text", nargs="?", help="highlight the trace of this string")
    diagram.add_argument("-o", "--output", default="regex_flow", help="output path without extension")
    diagram.add_argument("--format", default=config.DEFAULT_DIAGRAM_FORMAT)
    diagram.add_argument("--json", metavar="FILE", help="also dump the AST as JSON")
    diagram.add_argument("--source", action="store_true", help="print DOT source instead of rendering")
    _add_engine_flags(diagram)
    diagram.set_defaults(func=cmd_diagram)

    batch = commands.add_parser("batch", help="match every line of a file")
    batch.add_argument("pattern")
    batch.add_argument("file")
    batch.set_defaults(func=cmd_batch)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
