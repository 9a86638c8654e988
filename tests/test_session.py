from bktrace import config
from bktrace.session import RegexSession


def test_empty_session_has_no_trace_and_no_error():
    session = RegexSession()
    session.set_regex_input("")
    assert session.ast is None
    assert session.error is None
    assert len(session.debug_trace("abc")) == 0
    assert session.test_match("abc").error == config.NO_PATTERN_ERROR


def test_parse_error_is_kept_on_the_session():
    session = RegexSession()
    session.set_regex_input("(ab")
    assert session.ast is None
    assert "Unterminated group" in session.error
    assert len(session.debug_trace("ab")) == 0


def test_debug_trace():
    session = RegexSession()
    session.set_regex_input("b+")
    trace = session.debug_trace("abb")
    assert trace.span == (1, 3)


def test_literal_flags_reach_native_match():
    session = RegexSession()
    session.set_regex_input("/ABC/i")
    assert session.flags == "i"
    assert session.test_match("xabc").matches
    assert len(session.test_match_all("abc ABC").results) == 2


def test_batch():
    session = RegexSession()
    session.set_regex_input("^cat")
    session.set_batch_test_strings(["cat", "concat", "catalog"])
    assert [r.matches for r in session.test_batch()] == [True, False, True]
    session.clear_batch_test_strings()
    assert session.test_batch() == []


def test_explanation_follows_selected_node():
    session = RegexSession()
    session.set_regex_input("a+")
    assert session.explanation is None
    session.set_explanation_node("root-0")
    assert session.explanation.text == "Matches the preceding element one or more times (greedy)"
    session.set_explanation_node("root-7")
    assert session.explanation is None


def test_trace_and_native_agree_on_flags():
    session = RegexSession()
    for pattern, text in [("/abc/i", "xABC"), ("/^b/m", "a\nb")]:
        session.set_regex_input(pattern)
        outcome = session.test_match(text)
        assert outcome.matches
        assert session.debug_trace(text).span == (outcome.start, outcome.end)


def test_safe_and_denied_strings():
    session = RegexSession()
    session.set_regex_input(r"^\d+$")
    session.set_safe_string("123")
    session.set_denied_string("12a")
    assert session.safe_string == "123"
    assert session.test_safe_string().matches
    assert not session.test_denied_string().matches
