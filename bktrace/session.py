"""
Editing session state: the pattern being worked on, its parse result, the
strings it is tested against, and which node the user is inspecting.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from . import native
from .engine import EngineOptions, TraceEngine
from .explain import Explanation, find_explanation
from .parser import parse_regex
from .trace import Trace

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    line: str
    matches: bool
    error: Optional[str] = None


class RegexSession:
    def __init__(self, options: Optional[EngineOptions] = None):
        self.engine = TraceEngine(options)
        self.regex_input = ""
        self.safe_string = ""
        self.denied_string = ""
        self.batch_test_strings: List[str] = []
        self.ast = None
        self.error: Optional[str] = None
        self.flags = ""
        self.explanation_node_id: Optional[str] = None

    def set_regex_input(self, text: str) -> None:
        self.regex_input = text
        self.parse()

    def parse(self) -> None:
        if not self.regex_input.strip():
            self.ast, self.error, self.flags = None, None, ""
            return
        result = parse_regex(self.regex_input)
        self.ast, self.error, self.flags = result.ast, result.error, result.flags
        if self.error:
            logger.debug("parse error: %s", self.error)

    def set_safe_string(self, text: str) -> None:
        self.safe_string = text

    def set_denied_string(self, text: str) -> None:
        self.denied_string = text

    def test_safe_string(self) -> native.MatchOutcome:
        # The safe string is expected to match the pattern.
        return self.test_match(self.safe_string)

    def test_denied_string(self) -> native.MatchOutcome:
        # The denied string is expected not to.
        return self.test_match(self.denied_string)

    def set_batch_test_strings(self, lines) -> None:
        self.batch_test_strings = list(lines)

    def clear_batch_test_strings(self) -> None:
        self.batch_test_strings = []

    def debug_trace(self, text: str) -> Trace:
        # No AST (empty or invalid pattern) means no trace and no error.
        if self.ast is None:
            return Trace()
        engine = TraceEngine(self.engine.options.with_flags(self.flags))
        return engine.build_trace(self.ast, text)

    def test_match(self, text: str) -> native.MatchOutcome:
        return native.test_match(self.regex_input, text, self.flags)

    def test_match_all(self, text: str) -> native.MatchAllResult:
        return native.test_match_all(self.regex_input, text, self.flags)

    def test_batch(self) -> List[BatchResult]:
        results = []
        for line in self.batch_test_strings:
            outcome = self.test_match(line)
            results.append(BatchResult(line, outcome.matches, outcome.error))
        return results

    def set_explanation_node(self, node_id: Optional[str]) -> None:
        self.explanation_node_id = node_id

    @property
    def explanation(self) -> Optional[Explanation]:
        if self.explanation_node_id is None:
            return None
        return find_explanation(self.ast, self.explanation_node_id)
