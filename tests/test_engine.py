import pytest

from bktrace.engine import BacktrackLimitExceeded, EngineOptions, TraceEngine, build_trace
from bktrace.nodes import Alternative, Quantifier, Value
from bktrace.parser import RegexParser
from bktrace.trace import END, START


def parse(pattern):
    return RegexParser(pattern).parse()


def span(pattern, text, **options):
    return build_trace(parse(pattern), text, EngineOptions(**options)).span


def test_greedy_star_then_literal():
    root = parse("a*c")
    star, c = root.body
    a = star.body
    trace = build_trace(root, "aaac", EngineOptions())

    assert [s.string_index for s in trace] == [0, 0, 0, 1, 2, 3, 4]
    assert [s.node for s in trace] == [START, star, a, a, a, c, END]


def test_alternation_takes_first_branch():
    root = parse("(a|ab)")
    group = root.body[0]
    disjunction = group.body[0]
    first, second = disjunction.body
    trace = build_trace(root, "ab", EngineOptions())

    assert trace.span == (0, 1)
    assert [s.node for s in trace] == [START, group, disjunction, first, first.body[0], END]
    assert all(s.node is not second for s in trace)
    assert all(s.node is not second.body[1] for s in trace)


def test_negated_class():
    assert span("[^a-c]", "d") == (0, 1)
    assert span("[^a-c]", "b") is None


def test_word_boundary():
    assert span(r"\bcat\b", "a cat sat") == (2, 5)


def test_minimum_not_met():
    trace = build_trace(parse("a{2,3}"), "a", EngineOptions())
    assert len(trace) == 0
    assert not trace


def test_leftmost_start_wins():
    trace = build_trace(parse("b+"), "aabbb", EngineOptions())
    assert trace[0].node is START
    assert trace[0].string_index == 2
    assert trace[-1].node is END
    assert trace[-1].string_index == 5


def test_failed_branch_leaves_no_steps():
    root = parse("(ab|ac)d")
    group, d = root.body
    ab, ac = group.body[0].body
    trace = build_trace(root, "acd", EngineOptions())

    assert trace.span == (0, 3)
    visited = [s.node for s in trace]
    assert ab not in visited
    assert ab.body[0] not in visited and ab.body[1] not in visited
    assert visited[-2] is d


def test_quantifier_gives_back_repetitions():
    root = parse("a*ab")
    star, a, b = root.body
    trace = build_trace(root, "aaab", EngineOptions())

    assert [s.string_index for s in trace] == [0, 0, 0, 1, 2, 3, 4]
    # Three repetitions were tried first; only two survive in the trace.
    assert sum(1 for s in trace if s.node is star.body) == 2
    assert [s.node for s in trace][-3:] == [a, b, END]


def test_disjunction_root_records_branch_not_root():
    root = parse("cat|dog")
    trace = build_trace(root, "hotdog", EngineOptions())

    assert trace.span == (3, 6)
    assert trace[1].node is root.body[1]
    assert all(s.node is not root for s in trace)


def test_anchors_on_empty_string():
    root = parse("^$")
    start, end = root.body
    trace = build_trace(root, "", EngineOptions())
    assert [(s.string_index, s.node) for s in trace] == [(0, START), (0, start), (0, end), (0, END)]


def test_empty_pattern_matches_at_zero():
    assert span("", "abc") == (0, 0)


def test_no_ast_gives_empty_trace():
    assert len(build_trace(None, "abc", EngineOptions())) == 0


def test_unsupported_nodes_never_match():
    assert span(r"(a)\1", "aa") is None
    assert span(r"\p{L}", "a") is None
    assert span(r"\k<x>|b", "ab") == (1, 2)


def test_malformed_quantifier_is_treated_as_no_match(caplog):
    root = Alternative((Quantifier(3, 1, True, Value(ord("a"))),))
    assert len(build_trace(root, "aaa", EngineOptions())) == 0
    assert "malformed quantifier" in caplog.text


def test_unknown_node_type_raises():
    with pytest.raises(TypeError):
        build_trace(Alternative((object(),)), "a", EngineOptions())


def test_astral_characters_take_two_units():
    root = parse("\U0001F600+")
    trace = build_trace(root, "a\U0001F600\U0001F600b", EngineOptions())
    assert trace.span == (1, 5)
    assert [s.string_index for s in trace] == [1, 1, 1, 3, 5]


def test_zero_width_repetition_stops():
    assert span("(?:)*", "x") == (0, 0)
    assert span("(a|)*b", "aab") == (0, 3)


def test_repeated_calls_are_identical():
    engine = TraceEngine(EngineOptions())
    root = parse("(x|y)*z")
    first = engine.build_trace(root, "xyxz")
    second = engine.build_trace(root, "xyxz")
    assert first.steps == second.steps
    assert engine.search(root, "xyxz") == (0, 4)


# --- options ---

LAZY_TESTS = [
    # (pattern, text, default span, honor_lazy span)
    ("a+?", "aaa", (0, 3), (0, 1)),
    ("<.+?>", "<a><b>", (0, 6), (0, 3)),
    ("a{2,4}?", "aaaa", (0, 4), (0, 2)),
    ("a*?b", "aab", (0, 3), (0, 3)),
    ("x??", "x", (0, 1), (0, 0)),
]


@pytest.mark.parametrize("pattern,text,greedy,lazy", LAZY_TESTS)
def test_lazy_quantifiers(pattern, text, greedy, lazy):
    assert span(pattern, text) == greedy
    assert span(pattern, text, honor_lazy=True) == lazy


def test_lazy_trace_tries_fewest_first():
    root = parse("a*?b")
    star = root.body[0]
    trace = build_trace(root, "aab", EngineOptions(honor_lazy=True))
    assert sum(1 for s in trace if s.node is star.body) == 2
    assert trace.span == (0, 3)


LOOKAROUND_TESTS = [
    # (pattern, text, consume span, assert span)
    ("foo(?=bar)", "foobar", (0, 6), (0, 3)),
    ("a(?!b)", "ab", (0, 2), None),
    ("a(?!b)", "ac", None, (0, 1)),
    ("(?<=a)b", "cab", (1, 3), (2, 3)),
    ("(?<!a)b", "abcb", (0, 2), (3, 4)),
]


@pytest.mark.parametrize("pattern,text,consume,zero_width", LOOKAROUND_TESTS)
def test_lookaround_modes(pattern, text, consume, zero_width):
    assert span(pattern, text, lookaround="consume") == consume
    assert span(pattern, text, lookaround="assert") == zero_width


def test_negative_lookahead_leaves_no_body_steps():
    root = parse("a(?!b)")
    body = root.body[1].body[0]
    trace = build_trace(root, "ac", EngineOptions(lookaround="assert"))
    assert all(s.node is not body for s in trace)


def test_dot_all_option():
    assert span("a.b", "a\nb") == (0, 3)
    assert span("a.b", "a\nb", dot_all=False) is None


def test_step_budget():
    with pytest.raises(BacktrackLimitExceeded):
        span("(x+x+)+y", "x" * 16, max_steps=1000)
    # A budget large enough for the search does not change the result.
    assert span("(x+x+)+y", "xxxy", max_steps=10_000) == (0, 4)


def test_invalid_options():
    with pytest.raises(ValueError):
        EngineOptions(lookaround="sideways")
    with pytest.raises(ValueError):
        EngineOptions(max_steps=0)


def test_options_from_config_overrides():
    options = EngineOptions.from_config(honor_lazy=True, max_steps=5)
    assert options.honor_lazy
    assert options.max_steps == 5


FLAG_TESTS = [
    # (pattern, text, flags, span)
    ("abc", "xABC", "i", (1, 4)),
    ("abc", "xABC", "", None),
    ("[a-c]+", "CAB", "i", (0, 3)),
    ("[^a]", "A", "i", None),
    ("^b", "a\nb", "m", (2, 3)),
    ("^b", "a\nb", "", None),
    ("a$", "a\nb", "m", (0, 1)),
    ("a$", "a\nb", "", None),
]


@pytest.mark.parametrize("pattern,text,flags,expected", FLAG_TESTS)
def test_pattern_flags(pattern, text, flags, expected):
    options = EngineOptions().with_flags(flags)
    assert build_trace(parse(pattern), text, options).span == expected


def test_with_flags():
    options = EngineOptions(dot_all=False, max_steps=50).with_flags("gims")
    assert options.ignore_case and options.multiline and options.dot_all
    assert options.max_steps == 50
    assert not EngineOptions().with_flags("g").ignore_case
